"""
Nutrition Parsing

Converts a free-form meal description, or a meal photo, into approximate
macros with the OpenAI chat API.

- Best-effort structured estimate (not medical-grade accuracy)
- Vague text or unclear photos yield None values rather than guesses
- Manual entry remains the fallback when parsing is unavailable
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from openai import OpenAI

from core.config import settings
from core.exceptions import LLMUnavailableError
from services.llm_client import extract_json_object

logger = logging.getLogger(__name__)


def get_openai_client() -> Optional[Any]:
    """OpenAI client, or None when OPENAI_API_KEY is not configured."""
    if not settings.OPENAI_API_KEY:
        return None
    return OpenAI(api_key=settings.OPENAI_API_KEY)


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        v = value.strip()
        if v == "":
            return None
        try:
            return float(v)
        except ValueError:
            return None
    return None


SYSTEM_PROMPT = (
    "You are a nutrition logging helper. "
    "Given a short text describing a meal, or a photo of one, estimate its macros. "
    "Return ONLY valid JSON. No markdown, no commentary."
)


def _build_user_prompt(text: str) -> str:
    return f"""Meal: {text}

Return a JSON object with these keys:
{{
  "calories": number|null,
  "protein_grams": number|null,
  "carbs_grams": number|null,
  "fats_grams": number|null,
  "description": string
}}

Rules:
- Prefer conservative, reasonable estimates if uncertain.
- If the text is too vague, set numbers to null but still return a description.
- description should be a short canonicalized list of detected items."""


IMAGE_PROMPT = """Estimate the nutrition of the meal in this photo.

Return a JSON object with these keys:
{
  "calories": number|null,
  "protein_grams": number|null,
  "carbs_grams": number|null,
  "fats_grams": number|null,
  "description": string
}

Rules:
- Identify each food and estimate its portion from the plate and utensils.
- If the photo does not show food, set numbers to null and say what you see.
- description should be a short canonicalized list of detected items."""

# Inline uploads arrive as data URLs; hosted images as http(s) links
IMAGE_URL_PREFIXES = ("data:image/", "https://", "http://")


def _request_estimate(client: Any, user_content: Any) -> Dict[str, Any]:
    if client is None:
        raise LLMUnavailableError("OPENAI_API_KEY not configured")

    try:
        response = client.chat.completions.create(
            model=settings.OPENAI_NUTRITION_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_content},
            ],
            max_tokens=400,
        )
        content = response.choices[0].message.content or ""
    except Exception as e:
        logger.error(f"OpenAI nutrition parse failed: {e}")
        raise LLMUnavailableError("OpenAI request failed") from e

    return extract_json_object(content)


def _to_estimate(data: Dict[str, Any], fallback_description: str) -> Dict[str, Optional[float] | str]:
    description = data.get("description")
    if not isinstance(description, str) or not description.strip():
        description = fallback_description

    return {
        "calories": _coerce_float(data.get("calories")),
        "protein_grams": _coerce_float(data.get("protein_grams")),
        "carbs_grams": _coerce_float(data.get("carbs_grams")),
        "fats_grams": _coerce_float(data.get("fats_grams")),
        "description": description.strip(),
    }


def parse_nutrition_text(text: str, client: Any) -> Dict[str, Optional[float] | str]:
    """
    Parse a meal description using OpenAI.

    Returns:
      dict with keys: calories, protein_grams, carbs_grams, fats_grams, description

    Raises:
        ValueError: empty text or unparseable model output
        LLMUnavailableError: no client or the request failed
    """
    if not text or not text.strip():
        raise ValueError("text is required")

    data = _request_estimate(client, _build_user_prompt(text))
    return _to_estimate(data, text.strip())


def parse_nutrition_image(image_url: str, client: Any, fallback_description: str = "Meal photo") -> Dict[str, Optional[float] | str]:
    """
    Estimate macros from a meal photo (data URL or http(s) link).

    Same result shape and errors as parse_nutrition_text.
    """
    image_url = (image_url or "").strip()
    if not image_url.startswith(IMAGE_URL_PREFIXES):
        raise ValueError("image_url must be a data:image/ URL or an http(s) link")

    data = _request_estimate(client, [
        {"type": "text", "text": IMAGE_PROMPT},
        {"type": "image_url", "image_url": {"url": image_url}},
    ])
    return _to_estimate(data, fallback_description)
