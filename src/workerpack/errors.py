"""
Exception hierarchy for workerpack.

Every fatal build failure is a :class:`BuildError`. Text transforms never
raise for malformed input; they skip the offending match instead.
"""

from __future__ import annotations


class BuildError(Exception):
    """Raised when a build stage fails and the build must abort."""


class AssetError(BuildError):
    """Raised when an input file is missing or cannot be read."""


class ToolError(BuildError):
    """Raised when an external tool (bundler, minifier, obfuscator) fails."""

    def __init__(self, tool: str, message: str, returncode: int | None = None, stderr: str = ""):
        self.tool = tool
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{tool}: {message}")
