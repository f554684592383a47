"""Shared test fixtures for the skill evaluation harness."""

from pathlib import Path

import pytest

from skill_eval.config import AgentSettings, EvalSettings, JudgeSettings, SuiteSettings


@pytest.fixture
def eval_settings(tmp_path: Path) -> EvalSettings:
    """Default settings with run directories under ``tmp_path``."""
    return EvalSettings(
        agent=AgentSettings(),
        judge=JudgeSettings(),
        suite=SuiteSettings(runs_dir=tmp_path / "runs"),
    )


@pytest.fixture
def scenarios_yaml(tmp_path: Path) -> Path:
    """A two-scenario file: one judged, one checked for skills only."""
    path = tmp_path / "scenarios.yaml"
    path.write_text(
        """- description: Writes a design doc
  task: Write a short design document for a todo app
  expectedSkills:
    - superpowers:brainstorming
    - writing-plans
  expectation: A markdown design document exists in the working directory
- description: Plans only
  task: Plan a refactor of the billing module
  expectedSkill: writing-plans
"""
    )
    return path
