"""Error taxonomy for the evaluation harness."""

from __future__ import annotations


class SkillEvalError(Exception):
    """Base class for harness faults (as opposed to failed expectations)."""


class IsolationError(SkillEvalError):
    """A run directory could not be removed or created."""


class ExecutionError(SkillEvalError):
    """The agent service failed, timed out, or produced no terminal result."""


class EvaluationError(SkillEvalError):
    """The judge call violated its output protocol."""


class ScenarioFileError(SkillEvalError):
    """A scenario file could not be read or failed validation."""

    def __init__(self, message: str, issues: list[str] | None = None) -> None:
        super().__init__(message)
        self.issues = issues or []

    def render(self) -> str:
        if not self.issues:
            return str(self)
        listed = "\n".join(f"  - {issue}" for issue in self.issues)
        return f"{self}:\n\n{listed}"
