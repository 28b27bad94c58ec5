"""
Helpers that turn free-form model output into safe, typed values.

The vision model is not trusted: it may wrap JSON in markdown, leave out
fields, add units or return nonsense. Everything that cannot be read as a
plausible number becomes None.
"""

import json
import math
from typing import Any, Dict, Optional

from trialops.core.errors import ExtractionError

LVEF_MIN = 5.0
LVEF_MAX = 90.0


def parse_json_object(text: str) -> Dict[str, Any]:
    """
    Pull the outermost ``{...}`` out of a model reply.

    >>> parse_json_object('```json\\n{"hb": 13.1}\\n```')
    {'hb': 13.1}
    """
    if not text:
        raise ExtractionError("Vision model returned an empty response")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ExtractionError("Vision model did not return JSON")

    try:
        parsed = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Failed to parse JSON from vision model: {e.msg}") from None

    if not isinstance(parsed, dict):
        raise ExtractionError("Vision model did not return a JSON object")
    return parsed


def to_number_or_none(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.replace("%", "").strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def to_non_negative_or_none(value: Any) -> Optional[float]:
    number = to_number_or_none(value)
    if number is None or number < 0:
        return None
    return number


def to_lvef_or_none(value: Any) -> Optional[float]:
    """LVEF is a percentage; anything outside 5-90 is treated as a misread."""
    number = to_number_or_none(value)
    if number is None or not LVEF_MIN <= number <= LVEF_MAX:
        return None
    return number


def clean_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None
