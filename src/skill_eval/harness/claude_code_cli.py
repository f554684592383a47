"""Claude Code CLI agent service."""

from __future__ import annotations

import json
import os
import shutil
import subprocess

from ..errors import ExecutionError
from ..parser.transcript import parse_stream_json, parse_transcript
from ..schemas.transcript import Transcript
from .service import AgentRequest, AgentService

STDERR_TAIL_CHARS = 2000


class ClaudeCodeCliService(AgentService):
    """Run prompts through the ``claude`` binary in stream-json print mode."""

    name = "claude-code"
    CLI_ENV_VAR = "CLAUDE_CODE_CLI_PATH"
    DEFAULT_BINARY = "claude"

    def __init__(self, cli_path: str | None = None) -> None:
        self._cli_path = cli_path

    def _resolve_cli(self) -> str:
        if self._cli_path:
            return self._cli_path
        candidate = os.environ.get(self.CLI_ENV_VAR)
        if not candidate:
            candidate = shutil.which(self.DEFAULT_BINARY)
        if not candidate:
            raise ExecutionError(
                "Claude Code CLI not found. Set CLAUDE_CODE_CLI_PATH or add 'claude' to PATH."
            )
        self._cli_path = candidate
        return candidate

    def validate(self) -> None:
        self._resolve_cli()

    def build_command(self, request: AgentRequest) -> list[str]:
        """Construct the CLI command for ``request``."""
        cmd: list[str] = [
            self._resolve_cli(),
            "--print",
            "--verbose",
            "--output-format",
            "stream-json",
            "--max-turns",
            str(request.max_turns),
            "--permission-mode",
            request.permission_mode,
        ]
        if request.allowed_tools is not None:
            tools = ",".join(request.allowed_tools)
            # --tools limits which tools exist; --allowedTools only pre-approves them.
            cmd.extend(["--tools", tools, "--allowedTools", tools])
        if request.runtime_settings is not None:
            cmd.extend(["--settings", json.dumps(request.runtime_settings)])
        for plugin_dir in request.plugin_dirs:
            cmd.extend(["--plugin-dir", str(plugin_dir)])
        if request.output_schema is not None:
            cmd.extend(["--json-schema", json.dumps(request.output_schema)])
        if request.model:
            cmd.extend(["--model", request.model])
        # "--" ends option parsing; the prompt is positional.
        cmd.extend(["--", request.prompt])
        return cmd

    def run(self, request: AgentRequest) -> Transcript:
        cmd = self.build_command(request)
        try:
            result = subprocess.run(
                cmd,
                cwd=request.working_directory,
                capture_output=True,
                text=True,
                stdin=subprocess.DEVNULL,
                timeout=request.timeout_sec,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExecutionError(
                f"Claude Code CLI timed out after {request.timeout_sec}s"
            ) from exc
        except OSError as exc:
            raise ExecutionError(f"Claude Code CLI could not be started: {exc}") from exc

        records = parse_stream_json(result.stdout or "")
        if result.returncode != 0 and not records:
            stderr_tail = (result.stderr or "").strip()[-STDERR_TAIL_CHARS:]
            raise ExecutionError(
                f"Claude Code CLI exited with code {result.returncode}: {stderr_tail}"
            )
        return parse_transcript(records)
