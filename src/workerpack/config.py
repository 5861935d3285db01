"""
Loading of build configuration files.

A config file is the JSON form of :class:`~workerpack.models.BuildConfig`.
Every field is optional; ``project_root`` is resolved against the directory holding
the file.
"""

import json
from pathlib import Path

from .models import BuildConfig


def load_config(file_path: str | Path) -> BuildConfig:
    """
    Load a build config from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON or does not hold an object.
        pydantic.ValidationError: If the JSON does not match the BuildConfig
            schema.
    """
    path = Path(file_path)
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object, not {type(data).__name__}")
    root = Path(data.get("project_root", "."))
    if not root.is_absolute():
        root = path.resolve().parent / root
    data["project_root"] = str(root)
    return BuildConfig.model_validate(data)
