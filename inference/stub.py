import asyncio
import json
from typing import Optional

from .base import ModelBackend
from .types import CallRequest

DEFAULT_STUB_REPLY = (
    '{"sentiment": "neutral", "confidence": 0.5, '
    '"analysis": "This is a stubbed response."}'
)


class StubModelBackend(ModelBackend):
    """
    Deterministic fake model for testing and CI.

    Wraps ``reply_text`` in a Messages-API envelope. ``delay_s`` suspends
    before answering (simulates a slow provider), ``error`` is raised instead
    of answering, and ``raw_body`` bypasses the envelope entirely.
    """

    endpoint = "stub://messages"

    def __init__(
        self,
        reply_text: str = DEFAULT_STUB_REPLY,
        delay_s: float = 0.0,
        error: Optional[BaseException] = None,
        raw_body: Optional[str] = None,
    ):
        self.reply_text = reply_text
        self.delay_s = delay_s
        self.error = error
        self.raw_body = raw_body
        self.requests: list[CallRequest] = []

    async def send(self, request: CallRequest) -> str:
        self.requests.append(request)

        if self.delay_s:
            await asyncio.sleep(self.delay_s)

        if self.error is not None:
            raise self.error

        if self.raw_body is not None:
            return self.raw_body

        return json.dumps({
            "id": "msg_stub",
            "type": "message",
            "role": "assistant",
            "model": request.model,
            "content": [{"type": "text", "text": self.reply_text}],
            "stop_reason": "end_turn",
        })
