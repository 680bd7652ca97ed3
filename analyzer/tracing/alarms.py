"""
Span-discipline alarms.

Alarms are smoke detectors, NOT sprinklers:
- Emit events only (no authority)
- Never affect the orchestrated call
- Never block execution
- Non-fatal if the tracing sink is unavailable

Violations detected:
1. Parent span closed while a child span is still open
2. Span closed more than once
3. Attribute or status written to a span after it was closed
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from analyzer.tracing.tracer import TraceMetadata

logger = logging.getLogger(__name__)


class ViolationType(Enum):
    """Possible violation types."""

    PARENT_CLOSED_WITH_OPEN_CHILD = "parent_closed_with_open_child"
    SPAN_ENDED_TWICE = "span_ended_twice"
    MUTATION_OF_CLOSED_SPAN = "mutation_of_closed_span"


@dataclass
class InvariantViolationEvent:
    """
    Immutable event representing a detected invariant violation.

    Purpose: Emit-only alarm (never affects control flow).
    """

    violation_type: ViolationType
    trace_id: str
    span_name: str
    description: str
    context: Dict[str, Any]
    severity: str  # "warn", "error"

    def __post_init__(self):
        """Validate fields."""
        if not self.trace_id:
            raise ValueError("trace_id is required for all violations")
        if not self.span_name:
            raise ValueError("span_name is required")
        if self.severity not in ("warn", "error"):
            raise ValueError(f"Invalid severity: {self.severity}")


class InvariantAlarmSystem:
    """
    Detects and emits span-discipline violations.

    Non-blocking: violations are observed and logged, never raised.
    """

    def __init__(self, tracer: Optional[Any] = None):
        """
        Initialize alarm system.

        Args:
            tracer: Optional tracing sink to emit alarms to. Alarms are always
                collected locally as well.
        """
        self._tracer = tracer
        self._violations: List[InvariantViolationEvent] = []

    def detect_parent_closed_with_open_child(
        self, trace_id: str, span_name: str, open_children: List[str]
    ) -> None:
        """A parent is closing before its children."""
        violation = InvariantViolationEvent(
            violation_type=ViolationType.PARENT_CLOSED_WITH_OPEN_CHILD,
            trace_id=trace_id,
            span_name=span_name,
            description=f"Span '{span_name}' closed while children still open: {open_children}",
            context={"open_children": open_children},
            severity="error",
        )
        self._emit_violation(violation)

    def detect_span_ended_twice(self, trace_id: str, span_name: str) -> None:
        """end() called on an already closed span."""
        violation = InvariantViolationEvent(
            violation_type=ViolationType.SPAN_ENDED_TWICE,
            trace_id=trace_id,
            span_name=span_name,
            description=f"Span '{span_name}' was ended more than once",
            context={},
            severity="warn",
        )
        self._emit_violation(violation)

    def detect_mutation_of_closed_span(
        self, trace_id: str, span_name: str, field_name: str
    ) -> None:
        """Attribute or status written after close."""
        violation = InvariantViolationEvent(
            violation_type=ViolationType.MUTATION_OF_CLOSED_SPAN,
            trace_id=trace_id,
            span_name=span_name,
            description=f"'{field_name}' written to closed span '{span_name}'",
            context={"field": field_name},
            severity="warn",
        )
        self._emit_violation(violation)

    def get_violations(self) -> List[InvariantViolationEvent]:
        """Get all recorded violations (for testing)."""
        return list(self._violations)

    def clear_violations(self) -> None:
        """Clear violation history (for testing)."""
        self._violations.clear()

    def _emit_violation(self, violation: InvariantViolationEvent) -> None:
        """
        Emit a violation event.

        Non-blocking: sink failures are logged at debug level.
        """
        self._violations.append(violation)

        log = logger.error if violation.severity == "error" else logger.warning
        log(
            f"Invariant violation: {violation.description}. TraceId: {violation.trace_id}",
            extra={"trace_id": violation.trace_id},
        )

        if self._tracer and self._tracer.is_enabled():
            try:
                self._tracer.record_event(
                    name=f"invariant_violation.{violation.violation_type.value}",
                    metadata={
                        "description": violation.description,
                        "severity": violation.severity,
                        **violation.context,
                    },
                    trace_metadata=TraceMetadata(trace_id=violation.trace_id),
                )
            except Exception as e:
                logger.debug(f"Failed to emit alarm to tracer: {e}")
