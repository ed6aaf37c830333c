# =============================================================================
# core/genai_client.py  —  Thin async wrapper around the Gemini API
# =============================================================================
#
# Both live collaborators (weather advisor, expense categorizer) send one
# prompt and read back one text answer.  This module owns that single call so
# neither of them deals with client construction or response shapes.
#
# Errors are NOT handled here.  Each caller turns any failure into its own
# documented fallback value.
# =============================================================================

from google import genai
from google.genai import types

from core.config import Settings, get_settings


async def generate_text(prompt: str, json_mode: bool = False, settings: Settings | None = None) -> str:
    """Send one prompt to Gemini and return the stripped response text.

    Args:
        prompt: The full prompt.
        json_mode: Ask the model for an application/json response body.
        settings: Model name and API key; read from the environment if omitted.

    Returns:
        The response text ("" when the model returned no text).
    """
    settings = settings or get_settings()
    client = genai.Client(api_key=settings.gemini_api_key)
    config = types.GenerateContentConfig(response_mime_type="application/json") if json_mode else None
    response = await client.aio.models.generate_content(
        model=settings.gemini_model,
        contents=prompt,
        config=config,
    )
    return (response.text or "").strip()
