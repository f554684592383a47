"""Repeat-suite helpers: concurrent iterations, aggregation and reporting."""

from __future__ import annotations

import concurrent.futures
import json
from datetime import UTC, datetime
from pathlib import Path

from .config import EvalSettings
from .harness.service import AgentService
from .log import scenario_logger
from .runner import evaluate_scenario
from .schemas.evaluation import (
    EvaluationResult,
    EvaluationWithExpectation,
    FailedIteration,
    ScenarioReport,
    SkillHitRate,
)
from .schemas.scenario import RunIdentifier, Scenario

RULE = "━" * 60
SKILL_COLUMN_WIDTH = 40


def evaluate_scenario_iterations(
    scenario: Scenario,
    scenario_index: int,
    iterations: int,
    *,
    service: AgentService,
    settings: EvalSettings,
    runs_dir: Path | None = None,
    max_parallel: int | None = None,
) -> list[EvaluationResult]:
    """Run ``iterations`` isolated evaluations of ``scenario`` concurrently.

    Results are ordered by iteration index, not completion order. The first
    failing run's exception propagates to the caller.
    """
    log = scenario_logger("suite", scenario_index)
    log.info("Start (%d iteration%s)", iterations, "" if iterations == 1 else "s")
    if iterations <= 0:
        return []

    workers = max(1, min(max_parallel or iterations, iterations))
    by_index: dict[int, EvaluationResult] = {}
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix=f"scenario-{scenario_index}"
    ) as executor:
        future_map = {
            executor.submit(
                evaluate_scenario,
                scenario,
                RunIdentifier(scenario_index, iteration),
                service=service,
                settings=settings,
                runs_dir=runs_dir,
            ): iteration
            for iteration in range(iterations)
        }
        try:
            for future in concurrent.futures.as_completed(future_map):
                by_index[future_map[future]] = future.result()
        except BaseException:
            for pending in future_map:
                pending.cancel()
            raise
    return [by_index[iteration] for iteration in range(iterations)]


def _skill_matched(scenario: Scenario, invoked: frozenset[str]) -> bool:
    expected = set(scenario.expected_skills)
    if scenario.skill_match == "any":
        return bool(expected & invoked)
    return expected <= invoked


def build_scenario_report(
    scenario: Scenario,
    scenario_index: int,
    results: list[EvaluationResult],
) -> ScenarioReport:
    """Project per-iteration results into a scenario report.

    ``results[i]`` must be the result of iteration ``i``.
    """
    total = len(results)
    skill_hits = tuple(
        SkillHitRate(
            skill=skill,
            invoked_count=sum(1 for result in results if skill in result.invoked_skills),
            total=total,
        )
        for skill in scenario.expected_skills
    )
    matched = None
    if scenario.expected_skills:
        matched = SkillHitRate(
            skill=f"({scenario.skill_match} expected skills)",
            invoked_count=sum(
                1 for result in results if _skill_matched(scenario, result.invoked_skills)
            ),
            total=total,
        )

    judged = [
        (iteration, result)
        for iteration, result in enumerate(results)
        if isinstance(result, EvaluationWithExpectation)
    ]
    failures = tuple(
        FailedIteration(iteration=iteration, explanation=result.explanation)
        for iteration, result in judged
        if not result.success
    )
    return ScenarioReport(
        scenario_index=scenario_index,
        description=scenario.description,
        iterations=total,
        skill_match=scenario.skill_match,
        skill_hits=skill_hits,
        matched=matched,
        expectation=scenario.expectation,
        judged=len(judged),
        passed=sum(1 for _, result in judged if result.success),
        failures=failures,
    )


def _hit_line(hit: SkillHitRate) -> str:
    return (
        f"  · {hit.skill.ljust(SKILL_COLUMN_WIDTH)} "
        f"{hit.percentage}% ({hit.invoked_count}/{hit.total})"
    )


def render_scenario_report(report: ScenarioReport) -> str:
    """Render a report as human-readable text."""
    lines = [RULE, f"Scenario {report.scenario_index}: {report.description}", ""]

    if report.skill_hits:
        lines.append("Expected Skills:")
        lines.extend(_hit_line(hit) for hit in report.skill_hits)
        if report.matched is not None and len(report.skill_hits) > 1:
            lines.append(_hit_line(report.matched))
        lines.append("")

    if report.expectation is not None:
        lines.append(f"Expected Result: {report.expectation}")
        if report.passed > 0:
            lines.append(f"  ✔ {report.passed} passed")
        if report.failed > 0:
            lines.append(f"  ✗ {report.failed} failed")
            lines.extend(
                f"     Iteration {failure.iteration}: {failure.explanation}"
                for failure in report.failures
            )
        lines.append("")

    return "\n".join(lines)


def _suite_id(scenarios_file: Path, iterations: int, started_utc: datetime) -> str:
    return (
        f"{started_utc.strftime('%Y%m%d-%H%M%SZ')}__"
        f"{scenarios_file.stem.lower().replace(' ', '-')}__"
        f"x{iterations}"
    )


def create_suite_summary(
    *,
    scenarios_file: Path,
    iterations: int,
    reports: list[ScenarioReport],
    started_at: datetime,
) -> dict[str, object]:
    """Build a JSON-serializable summary of one suite invocation."""
    started_utc = started_at.astimezone(UTC)
    finished_utc = datetime.now(UTC)
    return {
        "suite_id": _suite_id(scenarios_file, iterations, started_utc),
        "started_at_utc": started_utc.isoformat(),
        "completed_at_utc": finished_utc.isoformat(),
        "config": {
            "scenarios_file": str(scenarios_file),
            "iterations": iterations,
            "scenario_indices": [report.scenario_index for report in reports],
        },
        "scenarios": [report.model_dump(mode="json") for report in reports],
    }


def persist_suite_summary(
    runs_dir: Path, suite_summary: dict[str, object], filename: str = "summary.json"
) -> Path:
    """Write the suite summary next to the run directories."""
    runs_dir.mkdir(parents=True, exist_ok=True)
    summary_path = runs_dir / filename
    summary_path.write_text(json.dumps(suite_summary, indent=2), encoding="utf-8")
    return summary_path
