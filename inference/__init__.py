"""
Model boundary layer for the outbound sentiment call.

Supported backends:
- StubModelBackend: Deterministic fake model (default for CI/tests)
- AnthropicModelBackend: Anthropic Messages API over httpx

Example usage:
    from inference import StubModelBackend, CallRequest

    backend = StubModelBackend()
    request = CallRequest(text="I love it", model="claude-3-5-sonnet-20241022")
    raw_body = await backend.send(request)
    text = backend.unwrap(raw_body)
"""

from .types import CallRequest, MessagesPayload, MessagesEnvelope, MAX_INPUT_CHARS
from .errors import MalformedEnvelopeError
from .base import ModelBackend
from .stub import StubModelBackend
from .anthropic import AnthropicModelBackend

__all__ = [
    "CallRequest",
    "MessagesPayload",
    "MessagesEnvelope",
    "MAX_INPUT_CHARS",
    "MalformedEnvelopeError",
    "ModelBackend",
    "StubModelBackend",
    "AnthropicModelBackend",
]
