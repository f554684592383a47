"""LLM-as-judge evaluation of scenario outcomes.

The judge is a second, independent agent run. It sees the original task,
the expectation and the transcript of the task run, and must answer with a
schema-constrained ``{success, explanation}`` payload. The runtime validates
the payload against the schema; a missing result or missing fields is a
protocol violation and raises ``EvaluationError`` instead of counting as a
failed expectation.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..config import EvalSettings
from ..errors import EvaluationError
from ..harness.execution import call_service
from ..harness.service import AgentRequest, AgentService
from ..parser.transcript import save_transcript
from ..prompts import build_judge_prompt_inline, build_judge_prompt_reference
from ..schemas.evaluation import JudgeVerdict
from ..schemas.transcript import Transcript

JUDGE_OUTPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "success": {"type": "boolean"},
        "explanation": {"type": "string"},
    },
    "required": ["success", "explanation"],
    "additionalProperties": False,
}


def build_judge_prompt(
    task: str,
    expectation: str,
    transcript: Transcript,
    transcript_path: Path,
    max_inline_chars: int,
) -> str:
    """Embed the transcript when it fits, otherwise reference the persisted file."""
    transcript_json = json.dumps(list(transcript.records), indent=2)
    if len(transcript_json) <= max_inline_chars:
        return build_judge_prompt_inline(task, expectation, transcript_json)
    return build_judge_prompt_reference(task, expectation, transcript_path)


def build_judge_request(prompt: str, directory: Path, settings: EvalSettings) -> AgentRequest:
    """Judge runs get inspection tools only, no plugins and no skill directive."""
    judge = settings.judge
    return AgentRequest(
        prompt=prompt,
        working_directory=directory,
        allowed_tools=tuple(judge.allowed_tools),
        permission_mode=settings.agent.permission_mode,
        output_schema=JUDGE_OUTPUT_SCHEMA,
        plugin_dirs=(),
        max_turns=judge.max_turns,
        timeout_sec=judge.timeout_sec,
        model=judge.model,
        runtime_settings=settings.agent.sandbox.runtime_settings(),
    )


def extract_structured_output(transcript: Transcript) -> Any:
    """Return the structured payload of the judge's result message.

    Raises:
        EvaluationError: No terminal result, or no structured output on it.
    """
    result = transcript.terminal_result
    if result is None:
        raise EvaluationError(
            f"No result message found in judge conversation ({transcript.describe_incomplete()})"
        )
    if not result.has_structured_output or result.structured_output is None:
        raise EvaluationError("No structured_output field found in judge result message")
    return result.structured_output


def parse_verdict(payload: Any) -> JudgeVerdict:
    """Read ``success`` and ``explanation`` from a schema-validated payload."""
    if not isinstance(payload, dict) or not {"success", "explanation"} <= payload.keys():
        raise EvaluationError(f"Judge structured output is missing required fields: {payload!r}")
    try:
        return JudgeVerdict.model_validate(payload)
    except ValidationError as exc:
        raise EvaluationError(f"Judge structured output has unexpected types: {exc}") from exc


def judge_outcome(
    task: str,
    expectation: str,
    transcript: Transcript,
    directory: Path,
    *,
    service: AgentService,
    settings: EvalSettings,
) -> JudgeVerdict:
    """Ask an independent agent run whether ``expectation`` was met.

    Raises:
        ExecutionError: The judge call failed or timed out.
        EvaluationError: The judge returned no result or no structured verdict.
    """
    transcript_path = directory / settings.agent.transcript_filename
    prompt = build_judge_prompt(
        task,
        expectation,
        transcript,
        transcript_path,
        settings.judge.max_inline_chars,
    )
    request = build_judge_request(prompt, directory, settings)
    judge_transcript = call_service(service, request)
    save_transcript(judge_transcript, directory / settings.judge.transcript_filename)
    return parse_verdict(extract_structured_output(judge_transcript))
