"""Base interface for agent execution services.

A service takes one prompt bound to a working directory and returns the
full ordered transcript of the run. Task runs and judge runs go through the
same interface with different requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..schemas.transcript import Transcript


@dataclass(frozen=True, slots=True)
class AgentRequest:
    """Input bundle for one agent invocation."""

    prompt: str
    working_directory: Path
    allowed_tools: tuple[str, ...] | None = None
    permission_mode: str = "bypassPermissions"
    output_schema: dict[str, Any] | None = None
    plugin_dirs: tuple[Path, ...] = field(default=())
    max_turns: int = 20
    timeout_sec: int = 600
    model: str | None = None
    runtime_settings: dict[str, Any] | None = None


class AgentService:
    """Base contract for agent runtime integrations."""

    name = "agent"

    # ------------------------------------------------------------------
    # Lifecycle hooks
    # ------------------------------------------------------------------
    def validate(self) -> None:
        """Validate configuration or environment prior to execution."""

    def run(self, request: AgentRequest) -> Transcript:
        """Execute ``request`` to completion and return its transcript.

        Implementations enforce ``request.timeout_sec`` and raise
        ``ExecutionError`` (or ``TimeoutError``) when it expires.
        """
        raise NotImplementedError
