from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_INPUT_CHARS = 10_000


class CallRequest(BaseModel):
    """One outbound sentiment call. Immutable, owned by a single invocation."""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    text: str = Field(..., min_length=1, max_length=MAX_INPUT_CHARS)
    model: str = Field(..., min_length=1)
    max_tokens: int = Field(default=1024, gt=0)

    @field_validator("text")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("text must not be blank")
        return value


class ChatMessage(BaseModel):
    role: str
    content: str


class MessagesPayload(BaseModel):
    """Request body of the Messages API."""

    model: str
    max_tokens: int
    messages: List[ChatMessage]


class ContentBlock(BaseModel):
    type: str = "text"
    text: Optional[str] = None


class MessagesEnvelope(BaseModel):
    """The parts of the provider response envelope this service reads."""

    content: List[ContentBlock] = Field(default_factory=list)
    model: Optional[str] = None
    stop_reason: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None
