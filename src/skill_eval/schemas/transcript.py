"""Transcript schemas for agent runs.

Raw stream records are narrowed into these variants once, in
``skill_eval.parser.transcript``; everything downstream matches on types
instead of probing dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class TextBlock(BaseModel):
    """Assistant text content."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: Literal["text"] = "text"
    text: str = ""


class ToolUseBlock(BaseModel):
    """A tool invocation issued by the assistant."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: Literal["tool_use"] = "tool_use"
    id: str = ""
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class UnknownBlock(BaseModel):
    """Any block whose shape is not recognized."""

    model_config = ConfigDict(frozen=True)

    type: str = "unknown"
    raw: Any = None


ContentBlock = TextBlock | ToolUseBlock | UnknownBlock


class AssistantMessage(BaseModel):
    """Assistant turn with zero or more content blocks."""

    model_config = ConfigDict(frozen=True)

    type: Literal["assistant"] = "assistant"
    content: tuple[ContentBlock, ...] = ()


class UserMessage(BaseModel):
    """User turn (prompt or tool results)."""

    model_config = ConfigDict(frozen=True)

    type: Literal["user"] = "user"


class SystemMessage(BaseModel):
    """Runtime system event (init, status)."""

    model_config = ConfigDict(frozen=True)

    type: Literal["system"] = "system"
    subtype: str = ""


class ResultMessage(BaseModel):
    """Terminal message of an agent run."""

    model_config = ConfigDict(frozen=True)

    type: Literal["result"] = "result"
    subtype: str = "success"
    is_error: bool = False
    result: str | None = None
    has_structured_output: bool = False
    structured_output: Any = None
    num_turns: int | None = None
    total_cost_usd: float | None = None

    @property
    def errored(self) -> bool:
        return self.is_error or self.subtype.startswith("error")


class UnknownMessage(BaseModel):
    """Any record whose type is not recognized."""

    model_config = ConfigDict(frozen=True)

    type: str = "unknown"


TranscriptMessage = (
    AssistantMessage | UserMessage | SystemMessage | ResultMessage | UnknownMessage
)


@dataclass(frozen=True, slots=True)
class Transcript:
    """Ordered messages of one agent execution plus the raw records."""

    messages: tuple[TranscriptMessage, ...]
    records: tuple[dict[str, Any], ...] = field(default=())

    def assistant_messages(self) -> list[AssistantMessage]:
        return [message for message in self.messages if isinstance(message, AssistantMessage)]

    def result_messages(self) -> list[ResultMessage]:
        return [message for message in self.messages if isinstance(message, ResultMessage)]

    @property
    def terminal_result(self) -> ResultMessage | None:
        """Return the single non-error result message, if the run completed."""
        results = self.result_messages()
        if len(results) != 1 or results[0].errored:
            return None
        return results[0]

    @property
    def is_complete(self) -> bool:
        return self.terminal_result is not None

    def describe_incomplete(self) -> str:
        """Explain why ``terminal_result`` is missing."""
        results = self.result_messages()
        if not results:
            return "no result message in transcript"
        if len(results) > 1:
            return f"{len(results)} result messages in transcript"
        return f"run ended with '{results[0].subtype}'"
