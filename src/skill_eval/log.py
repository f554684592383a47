"""Logging setup and run-scoped log context."""

from __future__ import annotations

import logging
from collections.abc import MutableMapping
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

from .schemas.scenario import RunIdentifier

LOGGER_ROOT = "skill_eval"


class RunLoggerAdapter(logging.LoggerAdapter):
    """Prefix messages with the run identifier and attach structured context."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        context = dict(self.extra or {})
        extra = kwargs.setdefault("extra", {})
        extra.update(context)
        prefix = context.get("run_label")
        if prefix:
            return f"{prefix} - {msg}", kwargs
        return msg, kwargs


def run_logger(component: str, run_id: RunIdentifier | None = None) -> RunLoggerAdapter:
    """Return a logger for ``component`` tagged with ``run_id``.

    The run label is passed explicitly so that interleaved output from
    concurrent iterations stays attributable.
    """
    extra: dict[str, Any] = {"component": component}
    if run_id is not None:
        extra["scenario_index"] = run_id.scenario_index
        extra["iteration"] = run_id.iteration
        extra["run_label"] = run_id.label
    return RunLoggerAdapter(logging.getLogger(f"{LOGGER_ROOT}.{component}"), extra)


def scenario_logger(component: str, scenario_index: int) -> RunLoggerAdapter:
    """Return a logger tagged with a scenario index only."""
    return RunLoggerAdapter(
        logging.getLogger(f"{LOGGER_ROOT}.{component}"),
        {
            "component": component,
            "scenario_index": scenario_index,
            "run_label": f"Scenario {scenario_index}",
        },
    )


def configure_logging(verbose: bool = False) -> None:
    """Install a stderr Rich handler on the package logger."""
    logger = logging.getLogger(LOGGER_ROOT)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
