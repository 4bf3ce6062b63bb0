"""
Application configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated config with sensible defaults
HOW: Pydantic BaseSettings reads from .env and environment
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from typing import Literal
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App metadata
    APP_NAME: str = "Slate Streaming Preview"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Server bind address (local only by default)
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # Ollama native API (/api/generate, JSON lines)
    OLLAMA_BASE_URL: str = "http://127.0.0.1:11434"

    # OpenAI-compatible API (/chat/completions, SSE)
    OPENAI_BASE_URL: str = "http://127.0.0.1:11434/v1"
    OPENAI_API_KEY: str = "ollama"  # Ollama accepts any bearer for local use

    # Generation defaults
    DEFAULT_MODEL: str = "codeqwen:7b"
    DEFAULT_TEMPERATURE: float = 0.6
    DEFAULT_STREAM_MODE: Literal["native", "openai"] = "native"

    # Transport timeouts (seconds)
    LLM_CONNECT_TIMEOUT: float = 5.0
    LLM_READ_TIMEOUT: float = 120.0

    # Keep an unterminated JSON line across chunks in native mode.
    # Off by default: a record split at a chunk boundary is dropped.
    NATIVE_CARRY_PARTIAL_LINES: bool = False

    # Streaming / SSE relay
    SSE_COALESCE_TOKENS: int = 1  # fragments merged per "token" event

    # CORS - accepts comma-separated string or list
    CORS_ORIGINS: str = "http://localhost:1420,http://localhost:5173"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, list):
            return ",".join(v)
        return v

    @field_validator("SSE_COALESCE_TOKENS")
    @classmethod
    def validate_coalesce(cls, v: int) -> int:
        """At least one fragment per relayed event."""
        if v < 1:
            raise ValueError("SSE_COALESCE_TOKENS must be >= 1")
        return v

    def get_cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./data/logs/slate.log"

    class Config:
        # Look for .env in project root first, then backend/.env
        env_file = [
            str(Path(__file__).parent.parent.parent.parent / ".env"),
            str(Path(__file__).parent.parent.parent / ".env"),
        ]
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Singleton instance
settings = Settings()
