"""Helpers for turning model output into Python values."""

import json
import logging
import math
from typing import Any, Dict, Optional

logger = logging.getLogger("adhdone.parsing")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code block (```json ... ```) if present."""
    cleaned = text.strip()
    if cleaned.startswith('```json'):
        cleaned = cleaned[7:]
        if cleaned.endswith('```'):
            cleaned = cleaned[:-3]
        cleaned = cleaned.strip()
    elif cleaned.startswith('```'):
        cleaned = cleaned[3:]
        if cleaned.endswith('```'):
            cleaned = cleaned[:-3]
        cleaned = cleaned.strip()
    return cleaned


def parse_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parse model output as a JSON object.

    Returns None when the text is empty, is not JSON, or is JSON but not an
    object; callers treat all three the same way.
    """
    if not text or not isinstance(text, str):
        return None
    try:
        result = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        logger.debug(f"Model output is not JSON: {e}")
        return None
    if not isinstance(result, dict):
        logger.debug(f"Model output is JSON but not an object: {type(result).__name__}")
        return None
    return result


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (22.5 -> 23)."""
    return int(math.floor(value + 0.5))


def coerce_positive_number(value: Any) -> Optional[float]:
    """Return ``value`` as a positive float, or None if it is not one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number) or number <= 0:
        return None
    return number
