"""
Bundles the worker entry point into a single ES module with esbuild.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .errors import AssetError
from .node import NodeRunner
from .rendering import render

logger = logging.getLogger(__name__)


def bundle_worker(
    entry: str | Path,
    defines: dict[str, str],
    runner: NodeRunner,
    external: list[str] | None = None,
    platform: str = "browser",
    target: str = "es2020",
) -> str:
    """
    Bundle *entry* and everything it imports.

    Args:
        entry: Path to the worker entry script.
        defines: Compile-time constants, name -> JavaScript expression.
        runner: Node runner used to drive esbuild.
        external: Module specifiers left as runtime imports.
        platform: esbuild platform.
        target: esbuild language target.

    Returns:
        The bundled ES module source.

    Raises:
        AssetError: If the entry script does not exist.
        ToolError: If esbuild fails.
    """
    entry = Path(entry)
    if not entry.is_file():
        raise AssetError(f"Entry script not found: {entry}")

    payload = {
        "entry": str(entry.resolve()),
        "define": defines,
        "external": list(external or []),
        "platform": platform,
        "target": target,
    }
    code = runner.run("esbuild", render("bundle.mjs.j2"), payload)
    logger.info("Bundled %s (%d chars).", entry.name, len(code))
    return code
