"""Transcript builders and a recording agent service for tests."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from skill_eval.harness.service import AgentRequest, AgentService
from skill_eval.parser.transcript import parse_transcript
from skill_eval.schemas.transcript import Transcript


def skill_call(skill: str, tool_name: str = "Skill") -> dict[str, Any]:
    """Assistant record invoking ``skill`` through the skill tool."""
    block = {
        "type": "tool_use",
        "id": f"toolu_{skill}",
        "name": tool_name,
        "input": {"skill": skill},
    }
    return {"type": "assistant", "message": {"content": [block]}}


def text_message(text: str) -> dict[str, Any]:
    return {"type": "assistant", "message": {"content": [{"type": "text", "text": text}]}}


def result_record(subtype: str = "success", **fields: Any) -> dict[str, Any]:
    return {"type": "result", "subtype": subtype, "is_error": subtype != "success", **fields}


def verdict_record(success: bool, explanation: str) -> dict[str, Any]:
    return result_record(structured_output={"success": success, "explanation": explanation})


def task_transcript(*skills: str) -> Transcript:
    """Complete task-run transcript invoking ``skills`` in order."""
    records: list[dict[str, Any]] = [{"type": "system", "subtype": "init"}]
    records.extend(skill_call(skill) for skill in skills)
    records.append(text_message("Done."))
    records.append(result_record(result="Done."))
    return parse_transcript(records)


def judge_transcript(success: bool, explanation: str = "ok") -> Transcript:
    return parse_transcript([text_message("Checked."), verdict_record(success, explanation)])


def iteration_of(request: AgentRequest) -> int:
    """Iteration index encoded in a run directory name (``scenario-<i>-<j>``)."""
    return int(request.working_directory.name.rsplit("-", 1)[1])


class StubAgentService(AgentService):
    """Records requests and answers from a handler instead of spawning a CLI."""

    name = "stub"

    def __init__(self, handler: Callable[[AgentRequest], Transcript]) -> None:
        self._handler = handler
        self._lock = threading.Lock()
        self.requests: list[AgentRequest] = []

    def run(self, request: AgentRequest) -> Transcript:
        with self._lock:
            self.requests.append(request)
        return self._handler(request)

    @property
    def judge_requests(self) -> list[AgentRequest]:
        return [request for request in self.requests if request.output_schema is not None]

    @property
    def task_requests(self) -> list[AgentRequest]:
        return [request for request in self.requests if request.output_schema is None]
