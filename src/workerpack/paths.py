"""
Project path utilities for workerpack.

A project root is the directory holding the worker entry script (or a
``workerpack.json`` config). Builds are normally started from the root
itself, but any subdirectory works: the root is found by walking up.
"""

from pathlib import Path

CONFIG_FILENAME = "workerpack.json"
ENTRY_MARKER = Path("src") / "worker.js"


def is_project_root(path: Path) -> bool:
    return (path / CONFIG_FILENAME).is_file() or (path / ENTRY_MARKER).is_file()


def find_project_root(start: str | Path | None = None) -> Path:
    """
    Walk up from *start* (default: cwd) to the nearest project root.

    Falls back to *start* itself when no ancestor looks like a project, so
    that the missing-file errors name paths the user recognises.
    """
    start = Path(start) if start is not None else Path.cwd()
    start = start.resolve()
    for candidate in (start, *start.parents):
        if is_project_root(candidate):
            return candidate
    return start


def default_config_path(project_root: Path) -> Path | None:
    """The project's ``workerpack.json`` if it exists."""
    path = project_root / CONFIG_FILENAME
    return path if path.is_file() else None
