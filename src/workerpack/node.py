"""
Runs Node.js driver scripts for the JavaScript-side tools.

esbuild, terser and js-confuser are Node packages. Each is driven by a small
ES module script (rendered from ``workerpack/templates``) that reads a JSON
payload from stdin and writes its result text to stdout. Scripts run with
the project root as working directory, so the packages resolve from the
project's own ``node_modules``.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from .errors import ToolError

logger = logging.getLogger(__name__)


class NodeRunner:
    """Executes driver scripts with ``node --input-type=module --eval``."""

    def __init__(self, command: str = "node", cwd: str | Path | None = None):
        self.command = command
        self.cwd = Path(cwd) if cwd is not None else None

    def run(self, tool: str, script: str, payload: Any) -> str:
        """
        Run *script* with *payload* serialised as JSON on stdin.

        Args:
            tool: Tool name used in log lines and error messages.
            script: ES module source of the driver.
            payload: JSON-serialisable input for the driver.

        Returns:
            Everything the driver wrote to stdout.

        Raises:
            ToolError: If Node cannot be started or the driver exits non-zero.
        """
        logger.debug("Running %s via %s.", tool, self.command)
        try:
            completed = subprocess.run(
                [self.command, "--input-type=module", "--eval", script],
                input=json.dumps(payload),
                capture_output=True,
                text=True,
                encoding="utf-8",
                cwd=self.cwd,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ToolError(tool, f"cannot run {self.command!r}: {exc}") from exc

        if completed.returncode != 0:
            stderr = completed.stderr.strip()
            raise ToolError(
                tool,
                stderr or f"exited with status {completed.returncode}",
                returncode=completed.returncode,
                stderr=stderr,
            )
        return completed.stdout
