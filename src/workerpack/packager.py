"""
Writes the final worker script and its deployable zip archive.
"""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path

from .models import PackageResult

logger = logging.getLogger(__name__)

SCRIPT_HEADER = "// @ts-nocheck\n"


def package_worker(
    code: str,
    output_dir: str | Path,
    script_name: str = "worker.js",
    archive_name: str = "worker.zip",
    archive_entry: str = "_worker.js",
) -> PackageResult:
    """
    Write ``<output_dir>/<script_name>`` and ``<output_dir>/<archive_name>``.

    The script is prefixed with ``// @ts-nocheck``. The archive holds the
    same bytes under *archive_entry*, DEFLATE-compressed. *output_dir* is
    created if absent; existing files are overwritten.

    Raises:
        OSError: If either file cannot be written.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    worker = SCRIPT_HEADER + code
    script_path = output_dir / script_name
    script_path.write_text(worker, encoding="utf-8")

    archive_path = output_dir / archive_name
    with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(archive_entry, worker)

    logger.info("Wrote %s and %s.", script_path, archive_path)
    return PackageResult(script_path=script_path, archive_path=archive_path, size=len(worker))
