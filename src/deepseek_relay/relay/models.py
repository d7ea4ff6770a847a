"""Data models for the relay pipeline."""

from dataclasses import dataclass
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MODEL = "deepseek-chat"

UsageStats = dict[str, Any]


class ChatRequest(BaseModel):
    """Inbound chat call, immutable once built."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    message: str = Field(..., min_length=1)
    model: str = DEFAULT_MODEL
    stream: bool = True


@dataclass(slots=True)
class DeltaEvent:
    """Incremental reasoning and/or answer text from one upstream frame."""

    reasoning: str | None = None
    answer: str | None = None
    kind: Literal["delta"] = "delta"


@dataclass(slots=True)
class UsageEvent:
    """Token usage reported by upstream, passed through verbatim."""

    tokens: UsageStats
    kind: Literal["usage"] = "usage"


@dataclass(slots=True)
class DoneEvent:
    """End of the upstream stream, explicit ([DONE]) or implicit (EOF)."""

    kind: Literal["done"] = "done"


UpstreamEvent = Union[DeltaEvent, UsageEvent, DoneEvent]


class ProgressNotification(BaseModel):
    """Event relayed to the downstream client as one SSE frame."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["thinking", "response", "error"]
    content: str | None = None
    full_thinking: str | None = Field(default=None, alias="fullThinking")
    full_response: str | None = Field(default=None, alias="fullResponse")
    error: str | None = None

    def to_wire(self) -> dict[str, Any]:
        """Camel-cased dict with absent optional fields dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)


class StreamResult(BaseModel):
    """Accumulated outcome of one completion call."""

    response: str
    reasoning_content: str | None = None
    usage: UsageStats | None = None
    model: str
