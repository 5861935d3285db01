"""
Command-line interface for workerpack.

Running ``workerpack`` with no arguments builds the project in the current
directory. This module is the entry point referenced in pyproject.toml as
``workerpack.cli:main``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import structlog

from .errors import BuildError
from .models import BuildConfig, BuildResult


# ---------------------------------------------------------------------------
# ANSI color helpers
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if stdout appears to support ANSI color codes."""
    if not hasattr(sys.stdout, "isatty"):
        return False
    if not sys.stdout.isatty():
        return False
    return True


_COLOR_ENABLED: bool | None = None


def _color(text: str, code: str) -> str:
    """Wrap *text* in ANSI escape codes if the terminal supports it."""
    global _COLOR_ENABLED
    if _COLOR_ENABLED is None:
        _COLOR_ENABLED = _supports_color()
    if not _COLOR_ENABLED:
        return text
    return f"\033[{code}m{text}\033[0m"


def _red(text: str) -> str:
    return _color(text, "31")


def _green(text: str) -> str:
    return _color(text, "32")


def _bold(text: str) -> str:
    return _color(text, "1")


def _dim(text: str) -> str:
    return _color(text, "2")


# ---------------------------------------------------------------------------
# Output formatting helpers
# ---------------------------------------------------------------------------

def _print_header(text: str) -> None:
    """Print a section header with visual separation."""
    print()
    print(_bold(f"  {text}"))
    print(_dim(f"  {'-' * len(text)}"))


def _print_result(result: BuildResult) -> None:
    """Print the per-stage size report and output paths."""
    _print_header("Pages")
    if result.pages:
        for page in result.pages:
            print(f"  {page}")
    else:
        print(f"  {_dim('No pages found.')}")

    _print_header("Sizes")
    for size in result.sizes:
        print(f"  {size.stage + ':':<24s} {size.kilobytes}KB")

    if result.keys is not None:
        _print_header("Cipher")
        print(f"  XOR key:   {result.keys.xor}")
        print(f"  Shift key: {result.keys.shift}")
        print(f"  Base:      {result.keys.base}")

    _print_header("Output Files")
    print(f"  Worker script: {result.script_path.resolve()}")
    print(f"  Archive:       {result.archive_path.resolve()}")
    print()
    print(f"  {_green('Done!')}")


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def configure_logging(verbose: bool = False) -> None:
    """Route stdlib logging and structlog to stderr at INFO (or DEBUG)."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

def _load_build_config(args: argparse.Namespace) -> BuildConfig:
    """Build the BuildConfig from the config file (if any) and CLI flags."""
    from .config import load_config
    from .paths import default_config_path, find_project_root

    root = Path(args.root) if args.root else find_project_root()
    config_path = Path(args.config) if args.config else default_config_path(root)

    if config_path is not None:
        config = load_config(config_path)
        if args.root:
            config.project_root = root
    else:
        config = BuildConfig(project_root=root)

    if args.output:
        config.output_dir = Path(args.output)
    if args.no_obfuscate:
        config.obfuscate = False
    if args.keep_console:
        config.post_build.remove_console_logs = False
    if args.keep_names:
        config.post_build.replace_name_calls = False
    if args.keep_non_ascii:
        config.post_build.remove_non_ascii = False
    if args.no_normalize_whitespace:
        config.post_build.normalize_whitespace = False
    return config


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="workerpack",
        description="workerpack: bundle, minify, obfuscate and package an edge worker.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument(
        "--root",
        default=None,
        help="Project root (default: nearest directory with src/worker.js or workerpack.json)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to a JSON build config (default: <root>/workerpack.json if present)",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Output directory, relative to the project root (default: output)",
    )
    parser.add_argument(
        "--no-obfuscate",
        action="store_true",
        default=False,
        help="Skip the js-confuser stage",
    )
    parser.add_argument(
        "--keep-console",
        action="store_true",
        default=False,
        help="Do not strip console.* calls",
    )
    parser.add_argument(
        "--keep-names",
        action="store_true",
        default=False,
        help="Do not randomize __name labels",
    )
    parser.add_argument(
        "--keep-non-ascii",
        action="store_true",
        default=False,
        help="Do not strip non-ASCII characters and unicode escapes",
    )
    parser.add_argument(
        "--no-normalize-whitespace",
        action="store_true",
        default=False,
        help="Do not collapse whitespace",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging",
    )
    return parser


def _get_version() -> str:
    """Return the package version string."""
    from . import __version__
    return __version__


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the workerpack CLI.

    Builds the project and exits 0, or prints the error and exits 1.

    Args:
        argv: Optional argument list for testing. Defaults to sys.argv[1:].
    """
    from .builder import build_worker

    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = _load_build_config(args)
        _print_header("Building Worker")
        print(f"  Project: {config.project_root}")
        result = build_worker(config)
    except KeyboardInterrupt:
        print("\nInterrupted.")
        sys.exit(130)
    except (BuildError, ValueError, OSError) as exc:
        # ValueError covers malformed config JSON and pydantic validation.
        print(f"\n{_red('Build failed:')} {exc}")
        sys.exit(1)

    _print_result(result)
    sys.exit(0)


if __name__ == "__main__":
    main()
