"""
Response extraction.

Recovers a StructuredResult from the model's free-text answer.

The model is asked for a bare JSON object but routinely wraps it in prose or
markdown fences. Extraction takes the span from the FIRST '{' to the LAST '}'
and parses it. Three fallback tiers keep the result well-formed:

  Tier             Trigger                              Result
  ───────────────  ───────────────────────────────────  ─────────────────────────────────────────────
  no_json          no '{' ... '}' pair in order         neutral, 0.5, "Unable to parse sentiment"
  malformed        candidate is not a JSON object       error,   0.0, "Error processing response"
  field_defaults   object parsed, a field missing/bad   per field: neutral / 0.5 / "No analysis available"

Pure function: no I/O, never raises.
"""

import json
import math
from typing import Any, Optional, Tuple

from analyzer.types import VALID_SENTIMENTS, ExtractionTier, StructuredResult

DEFAULT_SENTIMENT = "neutral"
DEFAULT_CONFIDENCE = 0.5
DEFAULT_ANALYSIS = "No analysis available"

NO_JSON_RESULT = StructuredResult(
    sentiment="neutral",
    confidence=0.5,
    analysis="Unable to parse sentiment",
    tier=ExtractionTier.NO_JSON,
)

MALFORMED_RESULT = StructuredResult(
    sentiment="error",
    confidence=0.0,
    analysis="Error processing response",
    tier=ExtractionTier.MALFORMED,
)


def find_json_candidate(raw_text: str) -> Optional[str]:
    """Substring from the first '{' to the last '}' inclusive, or None."""
    start = raw_text.find("{")
    end = raw_text.rfind("}")
    if start == -1 or end == -1 or start >= end:
        return None
    return raw_text[start : end + 1]


def _read_sentiment(value: Any) -> Tuple[str, bool]:
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in VALID_SENTIMENTS:
            return normalized, True
    return DEFAULT_SENTIMENT, False


def _read_confidence(value: Any) -> Tuple[float, bool]:
    # bool is an int subclass; "true" is not a confidence
    if isinstance(value, bool):
        return DEFAULT_CONFIDENCE, False

    if not isinstance(value, (int, float, str)):
        return DEFAULT_CONFIDENCE, False

    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        return DEFAULT_CONFIDENCE, False

    if not math.isfinite(number):
        return DEFAULT_CONFIDENCE, False
    return min(1.0, max(0.0, number)), True


def _read_analysis(value: Any) -> Tuple[str, bool]:
    if isinstance(value, str):
        return value, True
    return DEFAULT_ANALYSIS, False


def extract(raw_text: str) -> StructuredResult:
    """
    Convert raw model text into a StructuredResult.

    Args:
        raw_text: Text of the first content block of the model response

    Returns:
        StructuredResult whose ``tier`` records which path was taken
    """
    candidate = find_json_candidate(raw_text or "")
    if candidate is None:
        return NO_JSON_RESULT

    try:
        data = json.loads(candidate)
    except (json.JSONDecodeError, RecursionError):
        return MALFORMED_RESULT

    if not isinstance(data, dict):
        return MALFORMED_RESULT

    sentiment, sentiment_ok = _read_sentiment(data.get("sentiment"))
    confidence, confidence_ok = _read_confidence(data.get("confidence"))
    analysis, analysis_ok = _read_analysis(data.get("analysis"))

    complete = sentiment_ok and confidence_ok and analysis_ok
    return StructuredResult(
        sentiment=sentiment,
        confidence=confidence,
        analysis=analysis,
        tier=ExtractionTier.PARSED if complete else ExtractionTier.FIELD_DEFAULTS,
    )
