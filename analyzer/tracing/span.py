"""Span record shared by the tracker and the tracing sinks."""

from dataclasses import dataclass, field
from enum import Enum
from contextvars import Token
from typing import Any, Dict, Optional, Set


class SpanStatus(str, Enum):
    UNSET = "unset"
    OK = "ok"
    ERROR = "error"


@dataclass(eq=False)
class Span:
    """
    A timed, attributed record of one logical operation.

    ``end_time`` is None while the span is open and is set exactly once by
    SpanTracker.end(). Spans compare by identity.
    """

    span_id: str
    trace_id: str
    name: str
    start_time: float
    parent_id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)
    status: SpanStatus = SpanStatus.UNSET
    status_detail: Optional[str] = None
    end_time: Optional[float] = None

    # Tracker bookkeeping, not part of the exported record
    parent: Optional["Span"] = field(default=None, repr=False)
    open_children: Set[str] = field(default_factory=set, repr=False)
    context_token: Optional[Token] = field(default=None, repr=False)

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @property
    def duration_ms(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time) * 1000

    def to_dict(self) -> Dict[str, Any]:
        """Exported form handed to sinks and the observability store."""
        return {
            "span_id": self.span_id,
            "trace_id": self.trace_id,
            "parent_id": self.parent_id,
            "name": self.name,
            "attributes": dict(self.attributes),
            "status": self.status.value,
            "status_detail": self.status_detail,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_ms": self.duration_ms,
        }
