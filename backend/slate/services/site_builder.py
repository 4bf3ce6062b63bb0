"""
Website generation helpers.

WHAT: Prompt wrapping, JSON triple extraction and document composition
WHY: The one-shot generator returns {"html", "css", "js"} inside free text
HOW: Slice from first '{' to last '}', validate keys, inline CSS/JS into one page
"""

import json

from ..llm.types import SiteTriple
from ..utils.exceptions import SiteParseError
from ..utils.logger import get_logger

logger = get_logger(__name__)

SYSTEM_INSTRUCTIONS = """
You are an expert front-end web generator.
OUTPUT FORMAT (MANDATORY):
Return ONLY a JSON object with EXACT keys: "html", "css", "js". No commentary.
- "html": full HTML allowed, semantic and accessible.
- "css": plain CSS (no <style> tag).
- "js": plain JS (no <script> tag).
Constraints: mobile-first, responsive, no external CDNs, self-contained, no inline events; use addEventListener.
"""

TRIPLE_KEYS = ("html", "css", "js")


def build_site_prompt(user_prompt: str) -> str:
    """Prefix the user's prompt with the output contract."""
    return f"{SYSTEM_INSTRUCTIONS}\n\nUSER PROMPT:\n{user_prompt}"


def extract_json_triple(text: str) -> SiteTriple:
    """
    Pull the html/css/js object out of model output.

    Anything before the first '{' or after the last '}' (prose, code
    fences) is discarded.

    Args:
        text: Raw model response

    Returns:
        SiteTriple

    Raises:
        SiteParseError: No JSON object, invalid JSON, or a missing/non-string key
    """
    start = text.find("{")
    if start == -1:
        raise SiteParseError("No JSON start")
    end = text.rfind("}")
    if end == -1 or end < start:
        raise SiteParseError("No JSON end")

    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        logger.warning(f"Model output is not valid JSON: {e}")
        raise SiteParseError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise SiteParseError("JSON is not an object")

    values = {}
    for key in TRIPLE_KEYS:
        value = data.get(key)
        if not isinstance(value, str):
            raise SiteParseError(f"missing {key}")
        values[key] = value

    return SiteTriple(**values)


def compose_document(triple: SiteTriple) -> str:
    """
    Merge a triple into a single HTML document for preview.

    If the html already is a full document, the style goes before
    </head> and the script before </body>; otherwise a minimal page is
    wrapped around it.
    """
    style = f"<style>\n{triple.css}\n</style>"
    script = f"<script>\n{triple.js}\n</script>"
    html = triple.html

    lowered = html.lower()
    if "</head>" in lowered and "</body>" in lowered:
        head_at = lowered.rfind("</head>")
        html = html[:head_at] + style + "\n" + html[head_at:]
        body_at = html.lower().rfind("</body>")
        return html[:body_at] + script + "\n" + html[body_at:]

    return (
        "<!DOCTYPE html>\n"
        "<html lang=\"en\">\n"
        "<head>\n"
        "<meta charset=\"utf-8\">\n"
        "<meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">\n"
        f"{style}\n"
        "</head>\n"
        "<body>\n"
        f"{html}\n"
        f"{script}\n"
        "</body>\n"
        "</html>\n"
    )
