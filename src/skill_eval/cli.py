"""CLI entrypoint for the skill evaluation harness."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import click
from dotenv import load_dotenv

from .config import EvalSettings
from .errors import ScenarioFileError, SkillEvalError
from .harness.claude_code_cli import ClaudeCodeCliService
from .harness.service import AgentService
from .log import configure_logging
from .repeat_suite import (
    build_scenario_report,
    create_suite_summary,
    evaluate_scenario_iterations,
    persist_suite_summary,
    render_scenario_report,
)
from .schemas.scenario import Scenario, load_scenarios, select_scenarios

ENV_FILENAME = ".env"


@click.group()
@click.version_option(package_name="skill-eval")
def main() -> None:
    """Scenario-based skill evaluation for Claude Code."""
    env_path = Path.cwd() / ENV_FILENAME
    if env_path.exists():
        load_dotenv(env_path, override=False)


@dataclass(frozen=True, slots=True)
class RunCliOptions:
    """Normalized CLI options for a suite run."""

    scenarios_file: Path
    iterations: int
    scenario_indices: tuple[int, ...]
    runs_dir: Path | None
    plugin_dirs: tuple[Path, ...]
    model: str | None
    parallel: int | None

    def apply(self, base: EvalSettings) -> EvalSettings:
        """Return ``base`` with CLI overrides applied."""
        agent_updates: dict[str, object] = {}
        if self.plugin_dirs:
            agent_updates["plugin_dirs"] = [path.resolve() for path in self.plugin_dirs]
        if self.model:
            agent_updates["model"] = self.model
        suite_updates: dict[str, object] = {}
        if self.runs_dir is not None:
            suite_updates["runs_dir"] = self.runs_dir.resolve()
        if self.parallel is not None:
            suite_updates["max_parallel"] = self.parallel
        return base.model_copy(
            update={
                "agent": base.agent.model_copy(update=agent_updates),
                "suite": base.suite.model_copy(update=suite_updates),
            }
        )


def _build_service() -> AgentService:
    return ClaudeCodeCliService()


def _load_selected(path: Path, indices: tuple[int, ...]) -> list[tuple[int, Scenario]]:
    try:
        return select_scenarios(load_scenarios(path), indices)
    except ScenarioFileError as exc:
        raise click.ClickException(exc.render()) from exc


def _echo_run_header(options: RunCliOptions, run_settings: EvalSettings, count: int) -> None:
    click.echo(f"Scenarios file: {options.scenarios_file}", err=True)
    click.echo(f"Scenarios selected: {count}", err=True)
    click.echo(f"Iterations: {options.iterations}", err=True)
    click.echo(f"Runs dir: {run_settings.suite.runs_dir.resolve()}", err=True)


def _execute_suite(options: RunCliOptions, base_settings: EvalSettings) -> None:
    run_settings = options.apply(base_settings)
    selected = _load_selected(options.scenarios_file, options.scenario_indices)
    service = _build_service()
    try:
        service.validate()
    except SkillEvalError as exc:
        raise click.ClickException(str(exc)) from exc

    _echo_run_header(options, run_settings, len(selected))
    started_at = datetime.now(UTC)
    reports = []
    for scenario_index, scenario in selected:
        try:
            results = evaluate_scenario_iterations(
                scenario,
                scenario_index,
                options.iterations,
                service=service,
                settings=run_settings,
                max_parallel=run_settings.suite.max_parallel,
            )
        except SkillEvalError as exc:
            raise click.ClickException(f"Scenario {scenario_index} failed: {exc}") from exc
        report = build_scenario_report(scenario, scenario_index, results)
        reports.append(report)
        click.echo(render_scenario_report(report))

    summary = create_suite_summary(
        scenarios_file=options.scenarios_file,
        iterations=options.iterations,
        reports=reports,
        started_at=started_at,
    )
    summary_path = persist_suite_summary(
        run_settings.suite.runs_dir, summary, run_settings.suite.summary_filename
    )
    click.echo(f"Suite summary: {summary_path}", err=True)


@main.command()
@click.option(
    "--scenarios",
    "-s",
    "scenarios_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Path to the YAML file containing test scenarios",
)
@click.option(
    "--iterations",
    "-n",
    type=click.IntRange(min=1),
    default=None,
    help="Number of times to run each scenario (default: 3)",
)
@click.option(
    "--scenario",
    "-i",
    "scenario_indices",
    type=click.IntRange(min=0),
    multiple=True,
    help="Run a specific scenario index (repeatable)",
)
@click.option(
    "--runs-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Root directory for per-run working directories",
)
@click.option(
    "--plugin-dir",
    "plugin_dirs",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    multiple=True,
    help="Plugin directory exposing the skills under test (repeatable)",
)
@click.option("--model", type=str, default=None, help="Model override for task runs")
@click.option(
    "--parallel",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum concurrent iterations per scenario",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def run(
    scenarios_file: Path,
    iterations: int | None,
    scenario_indices: tuple[int, ...],
    runs_dir: Path | None,
    plugin_dirs: tuple[Path, ...],
    model: str | None,
    parallel: int | None,
    verbose: bool,
) -> None:
    """Run test scenarios and summarize the results."""
    configure_logging(verbose)
    # Read after the group callback has loaded .env.
    base_settings = EvalSettings()
    options = RunCliOptions(
        scenarios_file=scenarios_file.resolve(),
        iterations=iterations or base_settings.suite.default_iterations,
        scenario_indices=scenario_indices,
        runs_dir=runs_dir,
        plugin_dirs=plugin_dirs,
        model=model,
        parallel=parallel,
    )
    _execute_suite(options, base_settings)


@main.command()
@click.option(
    "--scenarios",
    "-s",
    "scenarios_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="Path to the YAML file containing test scenarios",
)
def validate(scenarios_file: Path) -> None:
    """Validate a scenario file without running anything."""
    for scenario_index, scenario in _load_selected(scenarios_file, ()):
        skills = ", ".join(scenario.expected_skills) or "-"
        judged = "judged" if scenario.has_expectation else "skills only"
        click.echo(f"{scenario_index:02d}. {scenario.description} | skills={skills} | {judged}")
    click.echo("Scenario file is valid.")


if __name__ == "__main__":
    main()
