# carbon_coach/services/response_parser.py
import json
import logging
import math
import re
from typing import Any, Iterator, List

from carbon_coach.core.errors import ParseError
from carbon_coach.services.prompts import SUGGESTION_COUNT

logger = logging.getLogger(__name__)

DEFAULT_IMPACT = 0.5
DIFFICULTIES = ("Easy", "Medium", "Hard")
DEFAULT_DIFFICULTY = "Medium"

FALLBACK_SUGGESTIONS = [
    {
        "title": "Use public transport",
        "description": "Switch to bus or metro for your daily commute to significantly cut transport emissions.",
        "impact": 0.8,
        "difficulty": "Easy",
    },
    {
        "title": "Reduce meat consumption",
        "description": "Going meat-free 3 days a week can cut your diet footprint by up to 30%.",
        "impact": 0.6,
        "difficulty": "Easy",
    },
    {
        "title": "Switch to LED bulbs",
        "description": "Replacing all bulbs with LEDs saves energy and reduces your home electricity bill.",
        "impact": 0.3,
        "difficulty": "Easy",
    },
]

_OPENING_FENCE = re.compile(r"^```[\w-]*[ \t]*\n?")
_CLOSING_FENCE = re.compile(r"\n?```\s*$")
_LEADING_NUMBER = re.compile(r"^\s*[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?")


def clean_reply(text: str) -> str:
    return (text or "").strip()


def strip_code_fences(text: str) -> str:
    cleaned = (text or "").strip()
    cleaned = _OPENING_FENCE.sub("", cleaned)
    cleaned = _CLOSING_FENCE.sub("", cleaned)
    return cleaned.strip()


def _balanced_arrays(text: str) -> Iterator[str]:
    """Substrings `[...]` balanceados más externos, en orden; ignora corchetes dentro de strings."""
    open_positions: List[int] = []
    pairs = []
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"' and open_positions:
            in_string = True
        elif char == "[":
            open_positions.append(index)
        elif char == "]" and open_positions:
            pairs.append((open_positions.pop(), index))

    last_end = -1
    for start, end in sorted(pairs):
        if start > last_end:
            yield text[start:end + 1]
            last_end = end


def extract_json_array(text: str) -> List[Any]:
    cleaned = strip_code_fences(text)
    try:
        data = json.loads(cleaned)
        if isinstance(data, list):
            return data
    except (ValueError, RecursionError):
        pass

    for candidate in _balanced_arrays(cleaned):
        try:
            return json.loads(candidate)
        except (ValueError, RecursionError):
            continue
    raise ParseError("No JSON array found in model response.")


def normalize_impact(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            number = float(value)
        except OverflowError:
            return DEFAULT_IMPACT
        return number if number >= 0 and math.isfinite(number) else DEFAULT_IMPACT
    match = _LEADING_NUMBER.match(str(value)) if value is not None else None
    if match:
        number = float(match.group(0))
        if number > 0 and math.isfinite(number):
            return number
    return DEFAULT_IMPACT


def normalize_difficulty(value: Any) -> str:
    label = str(value or "").strip().capitalize()
    return label if label in DIFFICULTIES else DEFAULT_DIFFICULTY


def parse_suggestions(response_text: str | None) -> List[dict]:
    """
    Convierte la respuesta del modelo en exactamente 3 sugerencias.

    Nunca lanza excepciones: si no se puede extraer un array JSON, se devuelven
    las sugerencias genéricas y se registra la respuesta cruda.
    """
    try:
        items = extract_json_array(response_text or "")
    except ParseError as e:
        logger.error(f"Suggestions JSON parse failed: {e} Raw response: {(response_text or '')[:500]}")
        return [dict(item) for item in FALLBACK_SUGGESTIONS]

    suggestions = []
    for item in items:
        if not isinstance(item, dict):
            logger.warning(f"Skipping invalid suggestion item (expected an object): {item!r}")
            continue
        suggestions.append({
            "title": str(item.get("title") or "Suggestion"),
            "description": str(item.get("description") or ""),
            "impact": normalize_impact(item.get("impact")),
            "difficulty": normalize_difficulty(item.get("difficulty")),
        })

    if len(suggestions) > SUGGESTION_COUNT:
        logger.warning(f"Model returned {len(suggestions)} suggestions, keeping the first {SUGGESTION_COUNT}.")
    for fallback in FALLBACK_SUGGESTIONS:
        if len(suggestions) >= SUGGESTION_COUNT:
            break
        logger.warning("Not enough suggestions from the model, padding with a default one.")
        suggestions.append(dict(fallback))
    return suggestions[:SUGGESTION_COUNT]
