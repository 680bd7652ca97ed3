"""
Logging-backed tracing sink.

Writes every closed span as one structured log record.

Constraints:
- Metadata only: attributes on the deny list are dropped
- Long string values are truncated
- Failures are silent and non-fatal
"""

import json
import logging
from typing import Any, Dict

from analyzer.tracing.span import Span
from analyzer.tracing.tracer import TraceMetadata, Tracer

logger = logging.getLogger("analyzer.spans")

_MAX_VALUE_CHARS = 256

# Substrings that mark an attribute as unsafe to export
_DENY_MARKERS = ("api_key", "api-key", "authorization", "token", "secret", "prompt", "raw_input")


def filter_safe_metadata(metadata: Dict[str, Any]) -> Dict[str, Any]:
    """
    Drop unsafe keys and sanitize values.

    Strings longer than 256 chars are truncated; non-scalar values are
    stringified and truncated.
    """
    filtered = {}
    for key, value in metadata.items():
        lowered = key.lower()
        if any(marker in lowered for marker in _DENY_MARKERS):
            continue

        if isinstance(value, str):
            if len(value) > _MAX_VALUE_CHARS:
                filtered[key] = value[:_MAX_VALUE_CHARS] + "..."
            else:
                filtered[key] = value
        elif isinstance(value, (int, float, bool)) or value is None:
            filtered[key] = value
        else:
            filtered[key] = str(value)[:_MAX_VALUE_CHARS]

    return filtered


class LoggingTracer(Tracer):
    """
    Log implementation of the Tracer interface.

    Span starts are logged at DEBUG, span ends and events at INFO.
    """

    def __init__(self, enabled: bool = True, level: int = logging.INFO):
        self._enabled = enabled
        self._level = level

    def on_span_start(self, span: Span) -> None:
        if not self._enabled:
            return
        logger.debug(
            f"span started: {span.name} TraceId: {span.trace_id}",
            extra={"trace_id": span.trace_id, "span_id": span.span_id},
        )

    def on_span_end(self, span: Span) -> None:
        if not self._enabled:
            return

        record = span.to_dict()
        record["attributes"] = self._filter_safe_metadata(record["attributes"])
        logger.log(
            self._level,
            f"span closed: {span.name} status={span.status.value} "
            f"duration_ms={record['duration_ms']:.1f} "
            f"TraceId: {span.trace_id} SpanId: {span.span_id} "
            f"ParentId: {span.parent_id} "
            f"attributes={json.dumps(record['attributes'], default=str)}",
            extra={"trace_id": span.trace_id, "span": record},
        )

    def record_event(
        self, name: str, metadata: Dict[str, Any], trace_metadata: TraceMetadata
    ) -> None:
        if not self._enabled:
            return
        event = self._filter_safe_metadata(metadata)
        logger.log(
            self._level,
            f"trace event: {name} TraceId: {trace_metadata.trace_id} "
            f"metadata={json.dumps(event, default=str)}",
            extra={"trace_id": trace_metadata.trace_id, "event": event},
        )

    def is_enabled(self) -> bool:
        return self._enabled

    _filter_safe_metadata = staticmethod(filter_safe_metadata)
