"""Prompt templates for task runs and judge runs."""

from __future__ import annotations

from pathlib import Path


def skill_directive(bootstrap_skill: str) -> str:
    """Mandatory instruction to select a skill before doing anything else."""
    return (
        "**CRITICAL: Upon starting ANY conversation or receiving ANY task, you MUST immediately "
        f"invoke the `{bootstrap_skill}` skill as your first action before any other response.**"
    )


def build_task_prompt(task: str, working_directory: Path, bootstrap_skill: str) -> str:
    """Render the prompt for the agent under test."""
    return f"""You are an expert software development AI tasked with completing the following
task.

IMPORTANT: Only create and edit files in the provided working directory. Do not read or write
files outside of this directory.

Task: {task}
Working directory: {working_directory}

{skill_directive(bootstrap_skill)}
"""


JUDGE_INSTRUCTIONS = """Evaluate whether the agent met the expectation. Return:

- success: true if the expectation was clearly met, false otherwise
- explanation: Brief (1-2 sentences) explanation of your evaluation

Be strict: only mark success as true if there is clear evidence in the conversation that the
agent completed the expected result. Ambiguous, partial, or unverifiable completion is a failure.

You may inspect files in the working directory, but do not create, modify or delete anything."""


def build_judge_prompt_inline(task: str, expectation: str, transcript_json: str) -> str:
    """Judge prompt embedding the full transcript."""
    return f"""You are an evaluator that determines whether an AI agent successfully completed an
expected result.

Task: {task}

Expectation: {expectation}

Conversation:

{transcript_json}

{JUDGE_INSTRUCTIONS}
"""


def build_judge_prompt_reference(task: str, expectation: str, transcript_path: Path) -> str:
    """Judge prompt pointing at the persisted transcript file."""
    return f"""You are an evaluator that determines whether an AI agent successfully completed an
expected result.

Task: {task}

Expectation: {expectation}

Conversation: the full conversation is too large to include here. It is stored as a JSON array
of messages at:

    {transcript_path}

Inspect it with read-only commands, for example:

    grep -n '"type": "tool_use"' {transcript_path}
    grep -n '"type": "result"' {transcript_path}

The files the agent produced are in {transcript_path.parent}.

{JUDGE_INSTRUCTIONS}
"""
