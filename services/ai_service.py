"""
Thin wrapper around the OpenAI client used by menu generation and
questionnaire validation.
"""

import json
import logging
import re
from json import JSONDecodeError
from typing import Any, Dict, Optional

from openai import OpenAI

from app.config import settings

logger = logging.getLogger("calo.ai")

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)


def get_openai_client() -> Optional[OpenAI]:
    """Return an OpenAI client if an API key is configured, otherwise None."""
    if not settings.openai_api_key:
        return None
    return OpenAI(api_key=settings.openai_api_key)


def is_available() -> bool:
    return get_openai_client() is not None


def parse_json_response(text: str) -> Dict[str, Any]:
    """Parse a model reply that should contain one JSON object.

    Markdown fences are removed and the text between the first "{" and the
    last "}" is decoded. Raises ValueError when nothing decodable is found.
    """
    if not text:
        raise ValueError("Empty AI response")

    cleaned = _FENCE_RE.sub("", text).strip()
    try:
        parsed = json.loads(cleaned)
    except JSONDecodeError:
        start, end = cleaned.find("{"), cleaned.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("No JSON object in AI response")
        try:
            parsed = json.loads(cleaned[start : end + 1])
        except JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in AI response: {e}") from e

    if not isinstance(parsed, dict):
        raise ValueError("AI response is not a JSON object")
    return parsed


def chat_json(
    system: str,
    user: str,
    temperature: float = 0.8,
    max_tokens: int = 4096,
    client: Optional[OpenAI] = None,
) -> Dict[str, Any]:
    """Run a JSON-mode chat completion and return the decoded object."""
    client = client or get_openai_client()
    if client is None:
        raise RuntimeError("OpenAI API key is not configured")

    response = client.chat.completions.create(
        model=settings.openai_model,
        messages=[
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        temperature=temperature,
        max_tokens=max_tokens,
        response_format={"type": "json_object"},
    )
    content = response.choices[0].message.content if response.choices else None
    if not content:
        raise ValueError("No AI response")
    return parse_json_response(content)


def generate_image(prompt: str, client: Optional[OpenAI] = None) -> Optional[str]:
    """Generate one image and return its URL, or None if generation failed."""
    client = client or get_openai_client()
    if client is None:
        return None
    try:
        response = client.images.generate(
            model=settings.openai_image_model,
            prompt=prompt,
            n=1,
            size="1024x1024",
        )
    except Exception as e:
        logger.warning("Image generation failed: %s", e)
        return None
    if not response.data:
        return None
    return response.data[0].url
