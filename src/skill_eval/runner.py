"""Single-run scenario evaluation: isolate, execute, analyze, judge."""

from __future__ import annotations

from pathlib import Path

from .config import EvalSettings
from .harness.execution import execute_task
from .harness.service import AgentService
from .isolation import prepare_run_directory
from .log import run_logger
from .parser.transcript import extract_invoked_skills
from .schemas.evaluation import (
    EvaluationResult,
    EvaluationWithExpectation,
    EvaluationWithoutExpectation,
)
from .schemas.scenario import RunIdentifier, Scenario
from .scoring.judge import judge_outcome


def evaluate_scenario(
    scenario: Scenario,
    run_id: RunIdentifier,
    *,
    service: AgentService,
    settings: EvalSettings,
    runs_dir: Path | None = None,
) -> EvaluationResult:
    """Evaluate one iteration of ``scenario``.

    Errors from any stage propagate unchanged; a crashed run is never turned
    into a failed evaluation.
    """
    log = run_logger("runner", run_id)
    log.info("Starting")

    directory = prepare_run_directory(runs_dir or settings.suite.runs_dir, run_id)
    log.debug("Working directory %s", directory)

    transcript = execute_task(scenario.task, directory, service=service, settings=settings)

    invoked_skills = extract_invoked_skills(
        transcript,
        tool_name=settings.agent.skill_tool,
        argument=settings.agent.skill_argument,
    )
    log.info(
        "Skill check: invoked %s",
        ", ".join(sorted(invoked_skills)) if invoked_skills else "no skills",
    )

    if scenario.expectation is None:
        log.info("Complete (no expectation)")
        return EvaluationWithoutExpectation(invoked_skills=invoked_skills)

    log.info("Evaluating outcome with LLM-as-judge")
    verdict = judge_outcome(
        scenario.task,
        scenario.expectation,
        transcript,
        directory,
        service=service,
        settings=settings,
    )
    log.info("Complete (%s)", "passed" if verdict.success else "failed")
    return EvaluationWithExpectation(
        invoked_skills=invoked_skills,
        success=verdict.success,
        explanation=verdict.explanation,
    )
