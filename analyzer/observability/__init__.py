"""
Local observability module.

Read-only inspection of recorded spans without affecting behavior.
"""

from analyzer.observability.store import ObservabilityStore, SpanRecord, EventRecord

__all__ = [
    "ObservabilityStore",
    "SpanRecord",
    "EventRecord",
]
