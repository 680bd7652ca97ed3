"""Instrumented sentiment analysis: tracing, metrics, extraction and call orchestration."""
