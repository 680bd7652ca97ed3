from typing import Optional

import httpx

from .base import ModelBackend
from .types import CallRequest

ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_API_URL = "https://api.anthropic.com/v1/messages"


class AnthropicModelBackend(ModelBackend):
    """
    Anthropic Messages API backend.

    POSTs a single user message and returns the raw response body.
    One httpx.AsyncClient is created on first use and reused so connections
    are pooled; aclose() releases it.
    Transport problems are NOT swallowed here: httpx.TimeoutException,
    httpx.HTTPStatusError (non-2xx) and httpx.RequestError propagate so the
    orchestrator can classify them.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        anthropic_version: str = ANTHROPIC_VERSION,
        connect_timeout_s: float = 10.0,
    ):
        """
        Initialize Anthropic backend.

        Args:
            api_key:           Value of the x-api-key header
            api_url:           Messages endpoint
            anthropic_version: Protocol-version marker header
            connect_timeout_s: Socket-level timeout; the overall call deadline
                               is enforced by the orchestrator
        """
        self.api_key = api_key
        self.endpoint = api_url
        self.anthropic_version = anthropic_version
        self.connect_timeout_s = connect_timeout_s
        self._client: Optional[httpx.AsyncClient] = None

    def _build_headers(self) -> dict:
        """API key and version headers. The key never goes into the body."""
        return {
            "x-api-key": self.api_key,
            "anthropic-version": self.anthropic_version,
            "content-type": "application/json",
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(None, connect=self.connect_timeout_s)
            )
        return self._client

    async def send(self, request: CallRequest) -> str:
        payload = self.build_payload(request).model_dump()

        response = await self._get_client().post(
            self.endpoint, json=payload, headers=self._build_headers()
        )
        response.raise_for_status()
        return response.text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
