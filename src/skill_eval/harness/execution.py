"""Task execution for the agent under test."""

from __future__ import annotations

from pathlib import Path

from ..config import EvalSettings
from ..errors import ExecutionError
from ..parser.transcript import save_transcript
from ..prompts import build_task_prompt
from ..schemas.transcript import Transcript
from .service import AgentRequest, AgentService


def build_task_request(task: str, directory: Path, settings: EvalSettings) -> AgentRequest:
    """Bind ``task`` to ``directory`` with the task-run tool allow-list."""
    agent = settings.agent
    return AgentRequest(
        prompt=build_task_prompt(task, directory, agent.bootstrap_skill),
        working_directory=directory,
        allowed_tools=tuple(agent.allowed_tools),
        permission_mode=agent.permission_mode,
        plugin_dirs=tuple(path.resolve() for path in agent.plugin_dirs),
        max_turns=agent.max_turns,
        timeout_sec=agent.timeout_sec,
        model=agent.model,
        runtime_settings=agent.sandbox.runtime_settings(),
    )


def call_service(service: AgentService, request: AgentRequest) -> Transcript:
    """Invoke ``service``; timeouts and unexpected failures become ``ExecutionError``."""
    try:
        return service.run(request)
    except ExecutionError:
        raise
    except TimeoutError as exc:
        raise ExecutionError(f"Agent call timed out after {request.timeout_sec}s") from exc
    except OSError as exc:
        raise ExecutionError(f"Agent call failed: {exc}") from exc


def execute_task(
    task: str,
    directory: Path,
    *,
    service: AgentService,
    settings: EvalSettings,
) -> Transcript:
    """Run ``task`` in ``directory`` and return the complete transcript.

    The transcript is written to ``directory`` before the completeness check,
    so runs that hit the turn limit can still be inspected.

    Raises:
        ExecutionError: The call failed, timed out, or never reached a terminal result.
    """
    request = build_task_request(task, directory, settings)
    transcript = call_service(service, request)
    save_transcript(transcript, directory / settings.agent.transcript_filename)
    if not transcript.is_complete:
        raise ExecutionError(f"Agent run incomplete: {transcript.describe_incomplete()}")
    return transcript
