"""
Gemini text generation helpers shared by the plan generators.

Clients are passed in explicitly (None = generation unavailable) so callers
and tests control which client is used.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional

from google import genai
from google.genai import types as genai_types

from core.config import settings
from core.exceptions import LLMUnavailableError

logger = logging.getLogger(__name__)

GENERATION_MAX_TOKENS = 8192


def get_gemini_client() -> Optional[Any]:
    """Get a Gemini client instance, or None if unavailable."""
    if not settings.GOOGLE_AI_API_KEY:
        return None
    try:
        return genai.Client(api_key=settings.GOOGLE_AI_API_KEY)
    except Exception as e:
        logger.warning(f"Could not initialize Gemini client: {e}")
        return None


def generate_text(
    client: Any,
    prompt: str,
    temperature: Optional[float] = None,
    system_instruction: Optional[str] = None,
    max_output_tokens: int = GENERATION_MAX_TOKENS,
) -> str:
    """
    Single-turn generation. Returns the first candidate's text.

    Raises:
        LLMUnavailableError: no client, provider error, or empty response
    """
    if client is None:
        raise LLMUnavailableError("Generation is not configured (GOOGLE_AI_API_KEY missing)")

    config = genai_types.GenerateContentConfig(
        system_instruction=system_instruction,
        max_output_tokens=max_output_tokens,
        temperature=settings.GENERATION_TEMPERATURE if temperature is None else temperature,
    )
    contents = [
        genai_types.Content(role="user", parts=[genai_types.Part(text=prompt)]),
    ]

    start = time.monotonic()
    try:
        response = client.models.generate_content(
            model=settings.GEMINI_MODEL,
            contents=contents,
            config=config,
        )
    except Exception as e:
        logger.error(f"Gemini generation failed: {e}")
        raise LLMUnavailableError(f"Generation request failed: {e}") from e

    latency_ms = int((time.monotonic() - start) * 1000)

    text = ""
    if response.candidates:
        candidate = response.candidates[0]
        if candidate.content and candidate.content.parts:
            text = candidate.content.parts[0].text or ""

    logger.info(
        "Gemini generation complete",
        extra={"extra_fields": {"model": settings.GEMINI_MODEL, "latency_ms": latency_ms, "chars": len(text)}},
    )

    if not text.strip():
        raise LLMUnavailableError("Generation returned an empty response")
    return text


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Extract the first JSON object from model output.

    Handles bare JSON, markdown fences and leading/trailing commentary.

    Raises:
        ValueError: no JSON object could be decoded
    """
    if not text:
        raise ValueError("Empty model response")

    # Fast path: direct JSON
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    # Fallback: outermost {...} block
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise ValueError("No JSON object found in model response")

    parsed = json.loads(text[start : end + 1])
    if not isinstance(parsed, dict):
        raise ValueError("Model response JSON is not an object")
    return parsed
