from abc import ABC, abstractmethod

from analyzer.prompting import build_sentiment_prompt

from .errors import MalformedEnvelopeError
from .types import CallRequest, ChatMessage, MessagesEnvelope, MessagesPayload


class ModelBackend(ABC):
    """
    Abstract model boundary.
    The orchestrator depends ONLY on this interface.
    """

    #: Target URL, tagged onto the http.call span.
    endpoint: str = ""

    def build_payload(self, request: CallRequest) -> MessagesPayload:
        """Single user-role message: fixed instruction followed by the input text."""
        return MessagesPayload(
            model=request.model,
            max_tokens=request.max_tokens,
            messages=[ChatMessage(role="user", content=build_sentiment_prompt(request.text))],
        )

    @abstractmethod
    async def send(self, request: CallRequest) -> str:
        """
        Issue the outbound call and return the raw response body.

        Raises httpx.TimeoutException / httpx.HTTPError on transport failure.
        """
        raise NotImplementedError

    def unwrap(self, raw_body: str) -> str:
        """
        Return the text of the first content block of a response envelope.

        Raises:
            MalformedEnvelopeError: body is not JSON or has no text content.
        """
        try:
            envelope = MessagesEnvelope.model_validate_json(raw_body)
        except ValueError as e:
            raise MalformedEnvelopeError(f"Unreadable response envelope: {e}") from e

        if not envelope.content:
            raise MalformedEnvelopeError("Response envelope has no content blocks")

        text = envelope.content[0].text
        if text is None:
            raise MalformedEnvelopeError(
                f"First content block ({envelope.content[0].type}) has no text"
            )
        return text

    async def aclose(self) -> None:
        """Release pooled connections. Backends without a client need nothing."""
        pass
