"""Centralized configuration using pydantic-settings.

All configurable values for the skill evaluation harness.
Values can be overridden via environment variables with SKILL_EVAL_ prefix.

Example:
    SKILL_EVAL_AGENT__TIMEOUT_SEC=900
    SKILL_EVAL_SUITE__RUNS_DIR=/tmp/skill-eval
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SandboxSettings(BaseModel):
    """Runtime sandbox for agent runs.

    Permission prompts are bypassed for unattended runs, so the sandbox is
    what confines Bash and network access.
    """

    enabled: bool = Field(default=True, description="Run agent commands inside the sandbox")
    auto_allow_bash_if_sandboxed: bool = Field(default=True)
    allow_unsandboxed_commands: bool = Field(
        default=False,
        description="Allow commands to fall back to running outside the sandbox",
    )
    allow_local_binding: bool = Field(default=False)
    allow_all_unix_sockets: bool = Field(default=False)
    allow_unix_sockets: list[str] = Field(default_factory=list)

    def runtime_settings(self) -> dict[str, Any]:
        """Render as the ``sandbox`` block of the agent runtime's settings."""
        return {
            "sandbox": {
                "enabled": self.enabled,
                "autoAllowBashIfSandboxed": self.auto_allow_bash_if_sandboxed,
                "allowUnsandboxedCommands": self.allow_unsandboxed_commands,
                "network": {
                    "allowLocalBinding": self.allow_local_binding,
                    "allowAllUnixSockets": self.allow_all_unix_sockets,
                    "allowUnixSockets": list(self.allow_unix_sockets),
                },
            }
        }


class AgentSettings(BaseSettings):
    """Task-run settings for the agent under test."""

    model_config = SettingsConfigDict(env_prefix="SKILL_EVAL_AGENT__")

    max_turns: int = Field(default=20, gt=0, description="Hard turn cap per agent run")
    timeout_sec: int = Field(default=600, gt=0, description="Wall-clock timeout per agent run")
    permission_mode: str = Field(
        default="bypassPermissions",
        description="Permission mode passed to the agent runtime",
    )
    allowed_tools: list[str] = Field(
        default_factory=lambda: ["Read", "Write", "Edit", "Bash", "Glob", "Grep", "Task", "Skill"],
        description="Safety-reviewed tool allow-list for task runs",
    )
    plugin_dirs: list[Path] = Field(
        default_factory=list,
        description="Local plugin directories exposing the skills under test",
    )
    model: str | None = Field(default=None, description="Optional model override")
    skill_tool: str = Field(default="Skill", description="Tool name used to invoke a skill")
    skill_argument: str = Field(default="skill", description="Tool input key naming the skill")
    bootstrap_skill: str = Field(
        default="using-skills",
        description="Skill the agent must invoke before anything else",
    )
    transcript_filename: str = Field(default="transcript.json")
    sandbox: SandboxSettings = Field(
        default_factory=SandboxSettings,
        description="Sandbox applied to task and judge runs",
    )


class JudgeSettings(BaseSettings):
    """LLM-as-judge configuration."""

    model_config = SettingsConfigDict(env_prefix="SKILL_EVAL_JUDGE__")

    max_turns: int = Field(default=10, gt=0, description="Turn cap for the judge call")
    timeout_sec: int = Field(default=300, gt=0, description="Wall-clock timeout for the judge")
    allowed_tools: list[str] = Field(
        default_factory=lambda: ["Read", "Glob", "Grep", "Bash"],
        description="Inspection tools available to the judge",
    )
    max_inline_chars: int = Field(
        default=200_000,
        gt=0,
        description="Largest transcript (in JSON chars) embedded directly in the judge prompt",
    )
    model: str | None = Field(default=None, description="Optional judge model override")
    transcript_filename: str = Field(default="judge-transcript.json")


class SuiteSettings(BaseSettings):
    """Iteration and artifact settings."""

    model_config = SettingsConfigDict(env_prefix="SKILL_EVAL_SUITE__")

    runs_dir: Path = Field(default=Path("tmp"), description="Root for per-run directories")
    default_iterations: int = Field(default=3, gt=0)
    max_parallel: int | None = Field(
        default=None,
        gt=0,
        description="Cap on concurrent iterations (defaults to the iteration count)",
    )
    summary_filename: str = Field(default="summary.json")


class EvalSettings(BaseSettings):
    """Root configuration for the harness.

    All settings can be overridden via environment variables with SKILL_EVAL_ prefix.
    Nested settings use double underscore: SKILL_EVAL_AGENT__MAX_TURNS=30
    """

    model_config = SettingsConfigDict(
        env_prefix="SKILL_EVAL_",
        env_nested_delimiter="__",
    )

    agent: AgentSettings = Field(default_factory=AgentSettings)
    judge: JudgeSettings = Field(default_factory=JudgeSettings)
    suite: SuiteSettings = Field(default_factory=SuiteSettings)

