"""
Pydantic API schemas for generation endpoints.

WHAT: Request and response models for FastAPI
WHY: Type-safe validation and serialization matching the frontend form
HOW: Pydantic v2 models with field constraints and defaults from settings
"""

from typing import Literal
from pydantic import BaseModel, Field, field_validator

from ..core.config import settings
from ..llm.types import GenerationRequest, StreamMode


class GenerateRequest(BaseModel):
    """Prompt form submitted by the frontend."""
    prompt: str = Field(..., min_length=1, max_length=20000, description="User prompt")
    model: str = Field(default_factory=lambda: settings.DEFAULT_MODEL, min_length=1, description="Model name")
    temperature: float = Field(default_factory=lambda: settings.DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    mode: Literal["native", "openai"] = Field(
        default_factory=lambda: settings.DEFAULT_STREAM_MODE,
        description="native = /api/generate, openai = /v1/chat/completions"
    )

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, v: str) -> str:
        """Reject whitespace-only prompts."""
        if not v.strip():
            raise ValueError("prompt must not be blank")
        return v

    def to_generation_request(self) -> GenerationRequest:
        return GenerationRequest(
            model=self.model,
            prompt=self.prompt,
            temperature=self.temperature,
            mode=StreamMode(self.mode),
        )


class SiteResponse(BaseModel):
    """One-shot generated website."""
    html: str
    css: str
    js: str
    document: str = Field(..., description="html with css and js inlined, ready for preview")
