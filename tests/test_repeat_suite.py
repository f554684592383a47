"""Tests for iteration fan-out, aggregation and report rendering."""

import json
import threading
import time
from datetime import UTC, datetime
from pathlib import Path

import pytest
from stubs import StubAgentService, iteration_of, judge_transcript, task_transcript

from skill_eval.config import EvalSettings
from skill_eval.errors import ExecutionError
from skill_eval.repeat_suite import (
    build_scenario_report,
    create_suite_summary,
    evaluate_scenario_iterations,
    persist_suite_summary,
    render_scenario_report,
)
from skill_eval.schemas.evaluation import (
    EvaluationWithExpectation,
    EvaluationWithoutExpectation,
    round_percent,
)
from skill_eval.schemas.scenario import Scenario


def _judged(success: bool, explanation: str = "", skills=()) -> EvaluationWithExpectation:
    return EvaluationWithExpectation(
        invoked_skills=frozenset(skills), success=success, explanation=explanation
    )


def _unjudged(*skills: str) -> EvaluationWithoutExpectation:
    return EvaluationWithoutExpectation(invoked_skills=frozenset(skills))


@pytest.mark.parametrize(
    ("count", "total", "expected"),
    [(2, 3, 67), (1, 3, 33), (1, 2, 50), (1, 8, 13), (0, 5, 0), (4, 4, 100), (0, 0, 0)],
)
def test_round_percent(count: int, total: int, expected: int) -> None:
    assert round_percent(count, total) == expected


def test_skill_hit_rate_two_of_three() -> None:
    scenario = Scenario(description="d", task="t", expectedSkill="writer")
    results = [_unjudged("writer"), _unjudged(), _unjudged("writer", "other")]

    report = build_scenario_report(scenario, 0, results)
    rendered = render_scenario_report(report)

    assert report.skill_hits[0].percentage == 67
    assert "67% (2/3)" in rendered
    assert "Expected Result" not in rendered


def test_pass_fail_counts_and_failure_explanations() -> None:
    scenario = Scenario(description="Docs", task="t", expectation="README exists")
    results = [
        _judged(True, "fine"),
        _judged(False, "No README was written."),
        _judged(True, "fine"),
        _judged(False, "README is empty."),
    ]

    report = build_scenario_report(scenario, 4, results)
    rendered = render_scenario_report(report)

    assert (report.judged, report.passed, report.failed) == (4, 2, 2)
    assert [failure.iteration for failure in report.failures] == [1, 3]
    assert "Scenario 4: Docs" in rendered
    assert "Expected Result: README exists" in rendered
    assert "✔ 2 passed" in rendered
    assert "✗ 2 failed" in rendered
    assert "Iteration 1: No README was written." in rendered
    assert "Iteration 3: README is empty." in rendered
    assert "Expected Skills" not in rendered


def test_zero_pass_or_fail_lines_are_omitted() -> None:
    scenario = Scenario(description="d", task="t", expectation="e")

    rendered = render_scenario_report(build_scenario_report(scenario, 0, [_judged(True)] * 2))

    assert "✔ 2 passed" in rendered
    assert "failed" not in rendered


def test_combined_skill_match_line() -> None:
    all_of = Scenario(description="d", task="t", expectedSkills=["a", "b"])
    any_of = Scenario(description="d", task="t", expectedSkills=["a", "b"], skillMatch="any")
    results = [_unjudged("a", "b"), _unjudged("a"), _unjudged()]

    all_report = build_scenario_report(all_of, 0, results)
    any_report = build_scenario_report(any_of, 0, results)

    assert [hit.invoked_count for hit in all_report.skill_hits] == [2, 1]
    assert all_report.matched.invoked_count == 1
    assert any_report.matched.invoked_count == 2
    assert "(all expected skills)" in render_scenario_report(all_report)


def test_iterations_run_concurrently_and_keep_index_order(
    eval_settings: EvalSettings,
) -> None:
    scenario = Scenario(description="d", task="t", expectation="e")
    started = threading.Barrier(3, timeout=5)

    def handler(request):
        iteration = iteration_of(request)
        if request.output_schema is None:
            started.wait()
            # Later iterations finish first.
            time.sleep(0.01 * (3 - iteration))
            return task_transcript()
        return judge_transcript(iteration != 1, f"run {iteration}")

    results = evaluate_scenario_iterations(
        scenario, 0, 3, service=StubAgentService(handler), settings=eval_settings
    )

    assert [result.explanation for result in results] == ["run 0", "run 1", "run 2"]
    assert [result.success for result in results] == [True, False, True]


def test_max_parallel_caps_concurrency(eval_settings: EvalSettings) -> None:
    scenario = Scenario(description="d", task="t")
    lock = threading.Lock()
    active = 0
    peak = 0

    def handler(request):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        time.sleep(0.02)
        with lock:
            active -= 1
        return task_transcript()

    results = evaluate_scenario_iterations(
        scenario,
        0,
        4,
        service=StubAgentService(handler),
        settings=eval_settings,
        max_parallel=1,
    )

    assert len(results) == 4
    assert peak == 1


def test_iteration_error_propagates(eval_settings: EvalSettings) -> None:
    scenario = Scenario(description="d", task="t")

    def handler(request):
        if iteration_of(request) == 1:
            raise ExecutionError("Claude Code CLI timed out after 600s")
        return task_transcript()

    with pytest.raises(ExecutionError, match="timed out"):
        evaluate_scenario_iterations(
            scenario, 0, 3, service=StubAgentService(handler), settings=eval_settings
        )


def test_suite_summary_is_persisted(tmp_path: Path) -> None:
    scenario = Scenario(description="Docs", task="t", expectedSkill="writer", expectation="e")
    report = build_scenario_report(
        scenario, 0, [_judged(True, skills={"writer"}), _judged(False, "bad")]
    )

    summary = create_suite_summary(
        scenarios_file=tmp_path / "My Scenarios.yaml",
        iterations=2,
        reports=[report],
        started_at=datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC),
    )
    path = persist_suite_summary(tmp_path / "runs", summary)

    saved = json.loads(path.read_text())
    assert path.name == "summary.json"
    assert saved["suite_id"] == "20260102-030405Z__my-scenarios__x2"
    assert saved["config"]["iterations"] == 2
    scenario_entry = saved["scenarios"][0]
    assert scenario_entry["passed"] == 1
    assert scenario_entry["failed"] == 1
    assert scenario_entry["skill_hits"][0]["percentage"] == 50
    assert scenario_entry["failures"] == [{"iteration": 1, "explanation": "bad"}]
