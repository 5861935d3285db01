"""
Build orchestration for workerpack.

Runs the full pipeline: asset collection, bundling, minification, post-build
text transforms, obfuscation and packaging. Every stage waits for the
previous one; the first failure propagates and aborts the build. Nothing is
retried and partially written output is left as is.

The heavy lifting lives in the dedicated stage modules. This module simply
wires them together in the correct order and records the script size after
each stage.
"""

from __future__ import annotations

import random

import structlog

from .assets import build_defines, collect_pages, read_binary
from .bundler import bundle_worker
from .cipher import generate_keys
from .minifier import minify_bundle
from .models import BuildConfig, BuildResult, StageSize
from .node import NodeRunner
from .obfuscator import obfuscate
from .packager import package_worker
from .transforms import run_post_build
from .wordlist import load_sensitive_words

logger = structlog.get_logger(__name__)


def build_worker(
    config: BuildConfig,
    runner: NodeRunner | None = None,
    rng: random.Random | None = None,
) -> BuildResult:
    """
    Build the worker described by *config*.

    Args:
        config: Project layout and stage settings.
        runner: Node runner for esbuild/terser/js-confuser. Defaults to one
            using ``config.node_command`` in the project root.
        rng: Random source for marker labels and cipher keys.

    Returns:
        A :class:`BuildResult` with per-stage sizes and output paths.

    Raises:
        AssetError: If an input file is missing or unreadable.
        ToolError: If an external tool fails.
    """
    runner = runner or NodeRunner(config.node_command, cwd=config.project_root)
    sizes: list[StageSize] = []

    def _record(stage: str, code: str) -> None:
        size = StageSize(stage=stage, size=len(code))
        sizes.append(size)
        logger.info("Stage complete", stage=stage, size_kb=size.kilobytes)

    # --- 1. Pages and icon ---
    pages = collect_pages(config.resolve(config.asset_dir))
    logger.info("Assets bundled", pages=sorted(pages))
    unknown = sorted(set(pages) - set(config.pages))
    if unknown:
        logger.warning("Pages without a constant are not injected", pages=unknown)
    icon = read_binary(config.resolve(config.icon))
    defines = build_defines(pages, config.pages, icon, config.icon_constant)

    # --- 2. Bundle ---
    code = bundle_worker(
        config.resolve(config.entry),
        defines,
        runner,
        external=config.external,
        platform=config.platform,
        target=config.target,
    )
    _record("bundle", code)

    # --- 3. Minify ---
    code = minify_bundle(code, runner)
    _record("minify", code)

    # --- 4. Post-build transforms ---
    code = run_post_build(code, config.post_build, rng, on_stage=_record)

    # --- 5. Obfuscate ---
    keys = None
    if config.obfuscate:
        words = load_sensitive_words(config.resolve(config.words_file))
        keys = generate_keys(config.cipher_base, rng)
        logger.info(
            "Cipher keys generated",
            xor_key=keys.xor,
            shift_key=keys.shift,
            base_key=keys.base,
            sensitive_words=len(words),
        )
        code = obfuscate(code, words, keys, runner, config.obfuscator)
        _record("obfuscate", code)
    else:
        logger.info("Obfuscation disabled")

    # --- 6. Package ---
    package = package_worker(
        code,
        config.resolve(config.output_dir),
        script_name=config.script_name,
        archive_name=config.archive_name,
        archive_entry=config.archive_entry,
    )
    sizes.append(StageSize(stage="final", size=package.size))
    logger.info("Build complete", script=str(package.script_path), archive=str(package.archive_path))

    return BuildResult(
        pages=sorted(pages),
        sizes=sizes,
        keys=keys,
        script_path=package.script_path,
        archive_path=package.archive_path,
    )
