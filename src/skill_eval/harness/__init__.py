"""Agent execution services and the task-run adapter."""

from .claude_code_cli import ClaudeCodeCliService
from .execution import execute_task
from .service import AgentRequest, AgentService

__all__ = ["AgentRequest", "AgentService", "ClaudeCodeCliService", "execute_task"]
