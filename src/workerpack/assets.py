"""
Asset collection: turns page directories into inlined, minified HTML.

Each page lives in its own directory under the asset root and consists of
three files::

    src/assets/panel/index.html   (contains __STYLE__ and __SCRIPT__)
    src/assets/panel/style.css
    src/assets/panel/script.js

The stylesheet is inlined as ``<style>...</style>`` in place of every
``__STYLE__`` token, the minified script replaces every ``__SCRIPT__`` token,
and the resulting document is minified. Pages are returned JSON-encoded,
ready to be injected into the bundle as compile-time constants.
"""

from __future__ import annotations

import base64
import json
import logging
from pathlib import Path

from .errors import AssetError
from .minifier import minify_css, minify_html, minify_js

logger = logging.getLogger(__name__)

STYLE_TOKEN = "__STYLE__"
SCRIPT_TOKEN = "__SCRIPT__"

INDEX_FILE = "index.html"
STYLE_FILE = "style.css"
SCRIPT_FILE = "script.js"

EMPTY_CONSTANT = '""'


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise AssetError(f"Cannot read asset {path}: {exc}") from exc


def read_binary(path: str | Path) -> bytes:
    """Read a binary asset (e.g. the favicon)."""
    path = Path(path)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise AssetError(f"Cannot read asset {path}: {exc}") from exc


def discover_pages(asset_dir: str | Path) -> list[str]:
    """
    Return the names of all page directories under *asset_dir*.

    A page is any directory (at any depth) holding an ``index.html``; its
    name is the directory path relative to *asset_dir*, using ``/``. A
    top-level ``index.html`` yields the page name ``"."``.
    """
    asset_dir = Path(asset_dir)
    if not asset_dir.is_dir():
        raise AssetError(f"Asset directory not found: {asset_dir}")
    return sorted(
        index.parent.relative_to(asset_dir).as_posix()
        for index in asset_dir.glob(f"**/{INDEX_FILE}")
    )


def render_page(index_html: str, style_css: str, script_js: str) -> str:
    """Inline the stylesheet and minified script into the page, then minify it."""
    style_tag = f"<style>{minify_css(style_css)}</style>"
    html = index_html.replace(STYLE_TOKEN, style_tag)
    html = html.replace(SCRIPT_TOKEN, minify_js(script_js))
    return minify_html(html)


def collect_pages(asset_dir: str | Path) -> dict[str, str]:
    """
    Build every page under *asset_dir*.

    Returns:
        Mapping of page name to the JSON-encoded minified HTML.

    Raises:
        AssetError: If the asset directory or any page file is missing.
    """
    asset_dir = Path(asset_dir)
    pages: dict[str, str] = {}
    for name in discover_pages(asset_dir):
        page_dir = asset_dir / name
        html = render_page(
            _read_text(page_dir / INDEX_FILE),
            _read_text(page_dir / STYLE_FILE),
            _read_text(page_dir / SCRIPT_FILE),
        )
        pages[name] = json.dumps(html)
        logger.info("Bundled page %s (%d chars).", name, len(html))
    return pages


def build_defines(
    pages: dict[str, str],
    page_constants: dict[str, str],
    icon: bytes,
    icon_constant: str = "__ICON__",
) -> dict[str, str]:
    """
    Compile-time constants for the bundler.

    Every constant in *page_constants* (page name -> constant name) is
    defined, falling back to an empty string literal when the page was not
    found. The icon is base64-encoded and JSON-encoded.
    """
    defines = {
        constant: pages.get(page, EMPTY_CONSTANT)
        for page, constant in page_constants.items()
    }
    defines[icon_constant] = json.dumps(base64.b64encode(icon).decode("ascii"))
    return defines
