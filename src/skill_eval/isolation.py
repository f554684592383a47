"""Per-run working directory isolation."""

from __future__ import annotations

import shutil
from pathlib import Path

from .errors import IsolationError
from .schemas.scenario import RunIdentifier


def run_directory(runs_dir: Path, run_id: RunIdentifier) -> Path:
    """Return the deterministic working directory for one run."""
    return runs_dir.resolve() / run_id.directory_name


def prepare_run_directory(runs_dir: Path, run_id: RunIdentifier) -> Path:
    """Create an empty working directory for ``run_id``.

    Leftovers from an earlier (possibly crashed) run at the same path are
    removed first, so retries always start clean.
    """
    directory = run_directory(runs_dir, run_id)
    try:
        if directory.is_symlink() or directory.is_file():
            directory.unlink()
        elif directory.exists():
            shutil.rmtree(directory)
        directory.mkdir(parents=True)
    except OSError as exc:
        raise IsolationError(f"Cannot prepare run directory {directory}: {exc}") from exc
    return directory
