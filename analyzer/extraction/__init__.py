"""Text-to-structure recovery for model responses."""

from analyzer.extraction.extractor import (
    extract,
    find_json_candidate,
    NO_JSON_RESULT,
    MALFORMED_RESULT,
)

__all__ = ["extract", "find_json_candidate", "NO_JSON_RESULT", "MALFORMED_RESULT"]
