"""
workerpack: build pipeline for a single-file edge worker.

Bundles the worker with its HTML pages inlined, minifies it, runs the
post-build text transforms, obfuscates it and packages it as a zip.
"""

__version__ = "0.1.0"

from .models import (
    BuildConfig,
    BuildResult,
    CipherKeys,
    ObfuscatorOptions,
    PostBuildConfig,
)

__all__ = [
    "BuildConfig",
    "BuildResult",
    "CipherKeys",
    "ObfuscatorOptions",
    "PostBuildConfig",
]
