"""Tests for the LLM-as-judge evaluator."""

import json
from pathlib import Path

import pytest
from stubs import StubAgentService, judge_transcript, result_record, task_transcript, text_message

from skill_eval.config import EvalSettings
from skill_eval.errors import EvaluationError, ExecutionError
from skill_eval.parser.transcript import parse_transcript
from skill_eval.scoring.judge import (
    JUDGE_OUTPUT_SCHEMA,
    build_judge_prompt,
    extract_structured_output,
    judge_outcome,
    parse_verdict,
)


def test_small_transcript_is_embedded(tmp_path: Path) -> None:
    transcript = task_transcript("writer")

    prompt = build_judge_prompt(
        "Write docs", "A README exists", transcript, tmp_path / "transcript.json", 10_000
    )

    assert "Task: Write docs" in prompt
    assert "Expectation: A README exists" in prompt
    assert '"name": "Skill"' in prompt
    assert str(tmp_path / "transcript.json") not in prompt
    assert "do not create, modify or delete anything" in prompt


def test_large_transcript_is_referenced_by_path(tmp_path: Path) -> None:
    transcript = task_transcript("writer")
    path = tmp_path / "transcript.json"

    prompt = build_judge_prompt("Write docs", "A README exists", transcript, path, 10)

    assert str(path) in prompt
    assert '"name": "Skill"' not in prompt
    assert "grep -n" in prompt
    assert "do not create, modify or delete anything" in prompt


def test_verdict_requires_terminal_result() -> None:
    with pytest.raises(EvaluationError, match="No result message"):
        extract_structured_output(parse_transcript([text_message("thinking")]))


def test_verdict_requires_structured_output() -> None:
    with pytest.raises(EvaluationError, match="No structured_output"):
        extract_structured_output(parse_transcript([result_record(result="yes")]))


def test_null_structured_output_is_rejected() -> None:
    with pytest.raises(EvaluationError, match="No structured_output"):
        extract_structured_output(parse_transcript([result_record(structured_output=None)]))


@pytest.mark.parametrize(
    "payload",
    [
        {"success": True},
        {"explanation": "missing success"},
        ["success", "explanation"],
        {"success": "maybe", "explanation": "wrong type"},
    ],
)
def test_parse_verdict_rejects_bad_payloads(payload) -> None:
    with pytest.raises(EvaluationError):
        parse_verdict(payload)


def test_parse_verdict_accepts_valid_payload() -> None:
    verdict = parse_verdict({"success": False, "explanation": "No file was written."})

    assert verdict.success is False
    assert verdict.explanation == "No file was written."


def test_judge_outcome_sends_schema_and_saves_transcript(
    tmp_path: Path, eval_settings: EvalSettings
) -> None:
    service = StubAgentService(lambda request: judge_transcript(True, "README present."))

    verdict = judge_outcome(
        "Write docs",
        "A README exists",
        task_transcript("writer"),
        tmp_path,
        service=service,
        settings=eval_settings,
    )

    assert verdict.success is True
    assert verdict.explanation == "README present."
    request = service.requests[0]
    assert request.output_schema == JUDGE_OUTPUT_SCHEMA
    assert request.plugin_dirs == ()
    assert request.allowed_tools == tuple(eval_settings.judge.allowed_tools)
    assert request.working_directory == tmp_path
    assert "using-skills" not in request.prompt
    assert request.runtime_settings["sandbox"]["enabled"] is True
    saved = json.loads((tmp_path / "judge-transcript.json").read_text())
    assert saved[-1]["structured_output"]["success"] is True


def test_judge_timeout_becomes_execution_error(
    tmp_path: Path, eval_settings: EvalSettings
) -> None:
    def hang(request):
        raise TimeoutError

    with pytest.raises(ExecutionError):
        judge_outcome(
            "t",
            "e",
            task_transcript(),
            tmp_path,
            service=StubAgentService(hang),
            settings=eval_settings,
        )
