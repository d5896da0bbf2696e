"""Brand-neutral intermediate representation (IR)

Every provider adapter normalizes into these models and transforms out of
them. All models are frozen: once built, an IR value never changes and holds
no reference to transport state.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from ..core.exceptions import UnrecognizedRoleError


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"

    @classmethod
    def parse(cls, value: Any, provider: str = "ir") -> "Role":
        """Match a wire role string case-insensitively"""
        if isinstance(value, Role):
            return value
        if isinstance(value, str):
            try:
                return cls(value.lower())
            except ValueError:
                pass
        raise UnrecognizedRoleError(value, provider)


class IRModel(BaseModel):
    """Base for all IR models"""

    model_config = ConfigDict(frozen=True, extra="forbid")


class IRMessage(IRModel):
    role: Role
    content: str
    name: Optional[str] = None

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: Any) -> Role:
        return Role.parse(value)


class IRRequest(IRModel):
    messages: Tuple[IRMessage, ...]
    model: str
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stop: Optional[Tuple[str, ...]] = None
    stream: bool = False

    # Wire key the token limit arrived under, when a provider has more than
    # one. Not serialized; only the adapter that set it reads it back.
    _max_tokens_field: Optional[str] = PrivateAttr(default=None)

    @property
    def max_tokens_field(self) -> Optional[str]:
        return self._max_tokens_field

    @property
    def system_messages(self) -> Tuple[IRMessage, ...]:
        return tuple(m for m in self.messages if m.role is Role.SYSTEM)


class IRDelta(IRModel):
    role: Optional[Role] = None
    content: Optional[str] = None
    name: Optional[str] = None

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: Any) -> Optional[Role]:
        if value is None:
            return None
        return Role.parse(value)


class IRChoice(IRModel):
    index: int = 0
    message: Optional[IRMessage] = None
    delta: Optional[IRDelta] = None
    finish_reason: Optional[str] = None

    @model_validator(mode="after")
    def _message_or_delta(self) -> "IRChoice":
        if self.message is not None and self.delta is not None:
            raise ValueError("a choice carries either a message or a delta, not both")
        return self


class IRUsage(IRModel):
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _derive_total(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("total_tokens") is None:
            data = dict(data)
            data["total_tokens"] = (data.get("prompt_tokens") or 0) + (
                data.get("completion_tokens") or 0
            )
        return data

    @classmethod
    def from_counts(cls, prompt_tokens: int, completion_tokens: int) -> "IRUsage":
        return cls(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )


class IRResponse(IRModel):
    id: str
    model: str
    choices: Tuple[IRChoice, ...] = ()
    usage: Optional[IRUsage] = None


class IRError(IRModel):
    type: str
    message: str
    code: Optional[str] = None
    param: Optional[str] = None


class MessageStart(IRModel):
    type: Literal["message_start"] = "message_start"
    id: str = ""
    model: str = ""


class MessageDelta(IRModel):
    type: Literal["message_delta"] = "message_delta"
    delta: IRDelta


class MessageEnd(IRModel):
    type: Literal["message_end"] = "message_end"
    finish_reason: Optional[str] = None
    usage: Optional[IRUsage] = None


class StreamError(IRModel):
    type: Literal["error"] = "error"
    error: IRError


IRStreamEvent = Annotated[
    Union[MessageStart, MessageDelta, MessageEnd, StreamError],
    Field(discriminator="type"),
]

TERMINAL_EVENT_TYPES = (MessageEnd, StreamError)
