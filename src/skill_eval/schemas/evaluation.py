"""Evaluation result and report schemas.

``EvaluationResult`` is a tagged union so that "no expectation declared"
can never be mistaken for a judged pass or fail.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field


class JudgeVerdict(BaseModel):
    """Structured output returned by the judge run."""

    model_config = ConfigDict(frozen=True)

    success: bool = Field(description="True only if the expectation was clearly met")
    explanation: str = Field(description="Brief (1-2 sentences) explanation of the verdict")


class EvaluationWithExpectation(BaseModel):
    """Result of a run whose outcome was judged."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["judged"] = "judged"
    invoked_skills: frozenset[str] = Field(default_factory=frozenset)
    success: bool
    explanation: str


class EvaluationWithoutExpectation(BaseModel):
    """Result of a run checked for skill invocation only."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unjudged"] = "unjudged"
    invoked_skills: frozenset[str] = Field(default_factory=frozenset)


EvaluationResult = Annotated[
    EvaluationWithExpectation | EvaluationWithoutExpectation,
    Field(discriminator="kind"),
]


def round_percent(count: int, total: int) -> int:
    """Percentage rounded half-up to the nearest integer.

    ``round_percent(1, 8) == 13`` where ``round(12.5)`` would give 12.
    """
    if total <= 0:
        return 0
    return (200 * count + total) // (2 * total)


class SkillHitRate(BaseModel):
    """How often one expected skill was invoked across iterations."""

    model_config = ConfigDict(frozen=True)

    skill: str
    invoked_count: int = Field(ge=0)
    total: int = Field(ge=0)

    @computed_field
    @property
    def percentage(self) -> int:
        return round_percent(self.invoked_count, self.total)


class FailedIteration(BaseModel):
    """A judged iteration that did not meet the expectation."""

    model_config = ConfigDict(frozen=True)

    iteration: int = Field(ge=0)
    explanation: str


class ScenarioReport(BaseModel):
    """Aggregate view of all iterations of one scenario."""

    model_config = ConfigDict(frozen=True)

    scenario_index: int
    description: str
    iterations: int
    skill_match: Literal["all", "any"] = "all"
    skill_hits: tuple[SkillHitRate, ...] = ()
    matched: SkillHitRate | None = None
    expectation: str | None = None
    judged: int = 0
    passed: int = 0
    failures: tuple[FailedIteration, ...] = ()

    @computed_field
    @property
    def failed(self) -> int:
        return self.judged - self.passed
