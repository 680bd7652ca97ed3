"""Call counters and duration timer."""

from analyzer.metrics.recorder import MetricsRecorder, MetricSnapshot, DurationSummary

__all__ = ["MetricsRecorder", "MetricSnapshot", "DurationSummary"]
