from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Sentiment = Literal["positive", "negative", "neutral", "error"]

VALID_SENTIMENTS = frozenset({"positive", "negative", "neutral"})


class ExtractionTier(str, Enum):
    """Which extraction path produced a StructuredResult."""

    PARSED = "parsed"                  # every field read from the model's JSON
    FIELD_DEFAULTS = "field_defaults"  # JSON parsed, at least one field defaulted
    NO_JSON = "no_json"                # no {...} candidate in the text
    MALFORMED = "malformed"            # candidate found but not a JSON object


class StructuredResult(BaseModel):
    """Sentiment recovered from the model's free-text answer."""

    model_config = ConfigDict(frozen=True)

    sentiment: Sentiment
    confidence: float = Field(..., ge=0.0, le=1.0)
    analysis: str
    tier: ExtractionTier


class ErrorKind(str, Enum):
    """Classified failure of one orchestrated call."""

    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    MALFORMED_ENVELOPE = "malformed_envelope"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class Success:
    result: StructuredResult
    duration_seconds: float
    trace_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return True

    @property
    def duration_ms(self) -> int:
        return int(self.duration_seconds * 1000)


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    duration_seconds: float
    trace_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def duration_ms(self) -> int:
        return int(self.duration_seconds * 1000)


Outcome = Union[Success, Failure]
