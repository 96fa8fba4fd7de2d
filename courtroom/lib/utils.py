"""Utility functions for the courtroom backend."""

import json
from typing import Any

from courtroom.lib.exceptions import LLMResponseParseError


def extract_json_object(content: str) -> dict[str, Any]:
    """
    Pull a single JSON object out of a model response.

    Handles:
    - Raw JSON
    - JSON wrapped in ```json fences
    - JSON surrounded by stray prose

    Args:
        content: Raw response text

    Returns:
        The decoded object

    Raises:
        LLMResponseParseError: If no JSON object can be decoded

    Examples:
        >>> extract_json_object('```json\\n{"a": 1}\\n```')
        {'a': 1}
    """
    text = content.strip()

    if "```json" in text:
        start = text.find("```json") + 7
        end = text.find("```", start)
        json_str = text[start:end if end >= 0 else None].strip()
    elif text.startswith("{"):
        json_str = text
    else:
        start = text.find("{")
        end = text.rfind("}") + 1
        if start >= 0 and end > start:
            json_str = text[start:end]
        else:
            raise LLMResponseParseError(
                "No JSON found in response", raw_response=content
            )

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise LLMResponseParseError(
            f"Invalid JSON in response: {e}", raw_response=content
        )

    if not isinstance(data, dict):
        raise LLMResponseParseError(
            "Expected a JSON object", raw_response=content
        )
    return data

