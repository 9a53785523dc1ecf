"""Turn raw model output into the canonical food schema."""

import json
import logging
import math
import re

from nutriscan.domain.scan import Confidence, Macros, ScannedFood

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*", flags=re.IGNORECASE)
_NUMBER_PATTERN = re.compile(r"-?\d{1,3}(?:,\d{3})+(?:\.\d+)?|-?\d+(?:\.\d+)?")

_logger = logging.getLogger(__name__)


def normalize(raw_text: str) -> dict[str, object] | None:
    """Extract the JSON object from model output, or None if there is none."""
    cleaned = _FENCE_PATTERN.sub("", raw_text).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end != -1:
        cleaned = cleaned[start : end + 1]
    try:
        parsed = json.loads(cleaned)
    except (ValueError, RecursionError):
        _logger.warning("Could not parse model output as JSON: %.200s", raw_text)
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


def to_scanned_food(
    payload: dict[str, object] | None, *, image_base64: str, source_model: str
) -> ScannedFood | None:
    """Coerce a parsed payload into a ScannedFood.

    Numbers are coerced leniently and default to zero, unknown confidence
    values fall back to Medium. Returns None when the payload has no name.
    """
    if payload is None:
        return None
    name = payload.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    raw_macros = payload.get("macros")
    macros = raw_macros if isinstance(raw_macros, dict) else {}
    return ScannedFood(
        name=name.strip(),
        calories=_to_amount(payload.get("calories")),
        confidence=_to_confidence(payload.get("confidence")),
        macros=Macros(
            protein=_to_amount(macros.get("protein")),
            carbs=_to_amount(macros.get("carbs")),
            fat=_to_amount(macros.get("fat")),
        ),
        image=f"data:image/jpeg;base64,{image_base64}",
        source_model=source_model,
    )


def _to_amount(value: object) -> float:
    """Read a non-negative number, tolerating strings like '95 kcal' or '1,200'."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMBER_PATTERN.search(value)
        if match is None:
            return 0.0
        number = float(match.group().replace(",", ""))
    else:
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def _to_confidence(value: object) -> Confidence:
    if isinstance(value, str):
        lowered = value.strip().lower()
        for confidence in Confidence:
            if confidence.value.lower() == lowered:
                return confidence
    return Confidence.MEDIUM
