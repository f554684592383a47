"""Pydantic models for scenario definitions."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from ..errors import ScenarioFileError
from ..parser.transcript import normalize_skill_name


class Scenario(BaseModel):
    """A test scenario for evaluating skill behavior."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    description: str = Field(description="Human-readable description of what this scenario tests")
    task: str = Field(description="The task prompt to give to the agent")
    expected_skills: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("expectedSkills", "expected_skills"),
        description="Skills that should be invoked during this scenario",
    )
    expectation: str | None = Field(
        default=None,
        validation_alias=AliasChoices("expectation", "expectedResult", "expected_result"),
        description="Expected end-state, judged by a second agent run",
    )
    skill_match: Literal["all", "any"] = Field(
        default="all",
        validation_alias=AliasChoices("skillMatch", "skill_match"),
        description="Whether a run must invoke all expected skills or any of them",
    )

    @model_validator(mode="before")
    @classmethod
    def _fold_singular_skill(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "expectedSkill" not in data:
            return data
        data = dict(data)
        single = data.pop("expectedSkill")
        if "expectedSkills" in data or "expected_skills" in data:
            raise ValueError("use either expectedSkill or expectedSkills, not both")
        data["expectedSkills"] = [] if single is None else [single]
        return data

    @field_validator("expected_skills", mode="after")
    @classmethod
    def _normalize_skills(cls, skills: tuple[str, ...]) -> tuple[str, ...]:
        normalized: list[str] = []
        for skill in skills:
            name = normalize_skill_name(skill.strip())
            if not name:
                raise ValueError(f"invalid skill name {skill!r}")
            if name not in normalized:
                normalized.append(name)
        return tuple(normalized)

    @field_validator("task", "description")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("expectation")
    @classmethod
    def _blank_expectation_is_absent(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value

    @property
    def has_expectation(self) -> bool:
        return self.expectation is not None


@dataclass(frozen=True, slots=True)
class RunIdentifier:
    """Identifies one isolated execution of a scenario."""

    scenario_index: int
    iteration: int

    def __post_init__(self) -> None:
        if self.scenario_index < 0 or self.iteration < 0:
            raise ValueError("scenario_index and iteration must be non-negative")

    @property
    def label(self) -> str:
        return f"Scenario {self.scenario_index} - Run {self.iteration}"

    @property
    def directory_name(self) -> str:
        return f"scenario-{self.scenario_index}-{self.iteration}"


_SCENARIO_LIST = TypeAdapter(list[Scenario])


def format_validation_issues(exc: ValidationError) -> list[str]:
    """Render pydantic errors as ``path: message`` lines."""
    issues: list[str] = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error["loc"]) or "<root>"
        issues.append(f"{path}: {error['msg']}")
    return issues


def parse_scenarios(data: Any) -> list[Scenario]:
    """Validate a decoded scenario document; all-or-nothing."""
    if not isinstance(data, list):
        raise ScenarioFileError(
            "Invalid scenario file format",
            ["<root>: expected a list of scenarios"],
        )
    try:
        return _SCENARIO_LIST.validate_python(data)
    except ValidationError as exc:
        raise ScenarioFileError(
            "Invalid scenario file format", format_validation_issues(exc)
        ) from exc


def load_scenarios(path: Path) -> list[Scenario]:
    """Load and validate all scenarios from a YAML file."""
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ScenarioFileError(f"Cannot read scenario file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ScenarioFileError(f"Scenario file {path} is not valid YAML: {exc}") from exc
    return parse_scenarios(data)


def select_scenarios(
    scenarios: list[Scenario], indices: list[int] | tuple[int, ...] | None = None
) -> list[tuple[int, Scenario]]:
    """Return ``(index, scenario)`` pairs in declaration order.

    Unknown indices are rejected rather than ignored.
    """
    if not indices:
        return list(enumerate(scenarios))
    unknown = sorted({index for index in indices if not 0 <= index < len(scenarios)})
    if unknown:
        raise ScenarioFileError(
            "Unknown scenario index",
            [f"scenario {index}: file defines {len(scenarios)} scenario(s)" for index in unknown],
        )
    wanted = set(indices)
    return [(index, scenario) for index, scenario in enumerate(scenarios) if index in wanted]
