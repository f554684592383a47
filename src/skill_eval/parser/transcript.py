"""Transcript parsing and skill-invocation extraction.

Raw agent output (stream-json lines or a persisted JSON array) is narrowed
into the closed message and block types of ``skill_eval.schemas.transcript``
here and nowhere else. Records or blocks with unexpected shapes become
``Unknown*`` variants instead of raising, so drift in the runtime's output
degrades detection accuracy rather than availability.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..schemas.transcript import (
    AssistantMessage,
    ContentBlock,
    ResultMessage,
    SystemMessage,
    TextBlock,
    ToolUseBlock,
    Transcript,
    TranscriptMessage,
    UnknownBlock,
    UnknownMessage,
    UserMessage,
)

SKILL_TOOL_NAME = "Skill"
SKILL_ARGUMENT = "skill"
NAMESPACE_DELIMITER = ":"


def normalize_skill_name(name: str, delimiter: str = NAMESPACE_DELIMITER) -> str:
    """Strip a namespace prefix from a skill identifier.

    Everything up to and including the first ``delimiter`` is removed, so
    ``"org:writer"`` becomes ``"writer"`` and ``"a:b:c"`` becomes ``"b:c"``.
    Identifiers without the delimiter are returned unchanged.
    """
    _, found, remainder = name.partition(delimiter)
    return remainder if found else name


def parse_stream_json(text: str) -> list[dict[str, Any]]:
    """Decode newline-delimited JSON records, skipping non-object lines."""
    records: list[dict[str, Any]] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(payload, dict):
            records.append(payload)
    return records


def _parse_block(raw: Any) -> ContentBlock:
    if not isinstance(raw, dict):
        return UnknownBlock(raw=raw)
    block_type = raw.get("type")
    try:
        if block_type == "tool_use":
            return ToolUseBlock.model_validate(raw)
        if block_type == "text":
            return TextBlock.model_validate(raw)
    except ValidationError:
        pass
    return UnknownBlock(type=str(block_type or "unknown"), raw=raw)


def _assistant_content(raw: dict[str, Any]) -> list[Any]:
    # Stream records nest the API message; persisted SDK dumps may not.
    message = raw.get("message")
    content = message.get("content") if isinstance(message, dict) else raw.get("content")
    return content if isinstance(content, list) else []


def _parse_result(raw: dict[str, Any]) -> ResultMessage:
    subtype = raw.get("subtype")
    result = raw.get("result")
    num_turns = raw.get("num_turns")
    cost = raw.get("total_cost_usd")
    return ResultMessage(
        subtype=subtype if isinstance(subtype, str) else "success",
        is_error=raw.get("is_error") is True,
        result=result if isinstance(result, str) else None,
        has_structured_output="structured_output" in raw,
        structured_output=raw.get("structured_output"),
        num_turns=num_turns if isinstance(num_turns, int) else None,
        total_cost_usd=float(cost) if isinstance(cost, (int, float)) else None,
    )


def parse_message(raw: Any) -> TranscriptMessage:
    """Narrow one raw record into a transcript message variant."""
    if not isinstance(raw, dict):
        return UnknownMessage()
    message_type = raw.get("type")
    if message_type == "assistant":
        blocks = tuple(_parse_block(block) for block in _assistant_content(raw))
        return AssistantMessage(content=blocks)
    if message_type == "user":
        return UserMessage()
    if message_type == "system":
        subtype = raw.get("subtype")
        return SystemMessage(subtype=subtype if isinstance(subtype, str) else "")
    if message_type == "result":
        return _parse_result(raw)
    return UnknownMessage(type=str(message_type or "unknown"))


def parse_transcript(records: Iterable[Any]) -> Transcript:
    """Build a transcript from raw records, keeping dict records for persistence."""
    kept = tuple(record for record in records if isinstance(record, dict))
    return Transcript(messages=tuple(parse_message(record) for record in kept), records=kept)


def load_transcript(path: Path) -> Transcript:
    """Load a transcript persisted as a JSON array (or JSONL)."""
    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return parse_transcript(parse_stream_json(text))
    if isinstance(data, dict):
        data = [data]
    return parse_transcript(data if isinstance(data, list) else [])


def save_transcript(transcript: Transcript, path: Path) -> Path:
    """Persist raw transcript records as pretty-printed JSON."""
    path.write_text(json.dumps(list(transcript.records), indent=2), encoding="utf-8")
    return path


def assistant_content_blocks(transcript: Transcript) -> list[ContentBlock]:
    """Flatten content blocks of all assistant messages."""
    return [block for message in transcript.assistant_messages() for block in message.content]


def extract_skill(
    block: ContentBlock,
    tool_name: str = SKILL_TOOL_NAME,
    argument: str = SKILL_ARGUMENT,
) -> str | None:
    """Return the skill named by a skill-tool invocation, if any."""
    if not isinstance(block, ToolUseBlock) or block.name != tool_name:
        return None
    skill = block.input.get(argument)
    if not isinstance(skill, str):
        return None
    return skill


def extract_invoked_skills(
    transcript: Transcript,
    tool_name: str = SKILL_TOOL_NAME,
    argument: str = SKILL_ARGUMENT,
) -> frozenset[str]:
    """Return the set of unique, namespace-stripped skills invoked in a transcript."""
    skills: set[str] = set()
    for block in assistant_content_blocks(transcript):
        skill = extract_skill(block, tool_name, argument)
        if skill is None:
            continue
        name = normalize_skill_name(skill.strip())
        if name:
            skills.add(name)
    return frozenset(skills)
