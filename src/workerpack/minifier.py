"""
Minification of page assets and of the bundled worker.

Page scripts and stylesheets are small classic scripts inlined into HTML,
so they are minified in-process with rjsmin / rcssmin. The worker bundle is
an ES module and goes through terser (via :class:`~workerpack.node.NodeRunner`)
with comments stripped.
"""

from __future__ import annotations

import logging
import re

import rcssmin
import rjsmin

from .node import NodeRunner
from .rendering import render

logger = logging.getLogger(__name__)

TERSER_OPTIONS = {
    "module": True,
    "format": {"comments": False},
}


def minify_js(code: str) -> str:
    return rjsmin.jsmin(code)


def minify_css(code: str) -> str:
    return rcssmin.cssmin(code)


# ---------------------------------------------------------------------------
# HTML
# ---------------------------------------------------------------------------

# Elements whose content must not be touched.
_RAW_TEXT_ELEMENTS = "script|style|pre|textarea"

# Whitespace next to these is kept as one space; next to any other element
# it is dropped.
_INLINE_TAGS = frozenset({
    "a", "abbr", "acronym", "b", "bdi", "bdo", "big", "button", "cite",
    "code", "del", "dfn", "em", "font", "i", "img", "input", "ins", "kbd",
    "label", "mark", "math", "nobr", "object", "q", "rp", "rt", "rtc",
    "ruby", "s", "samp", "select", "small", "span", "strike", "strong",
    "sub", "sup", "svg", "textarea", "time", "tt", "u", "var",
})

_ATTRS = r"""(?:[^<>"']|"[^"]*"|'[^']*')*"""
_NODE_RE = re.compile(
    rf"(?P<raw><(?P<raw_name>{_RAW_TEXT_ELEMENTS})\b{_ATTRS}>.*?</(?P=raw_name)\s*>)"
    r"|(?P<comment><!--.*?-->)"
    rf"|(?P<tag><(?P<slash>/?)(?P<name>[A-Za-z][\w:-]*)(?P<attrs>{_ATTRS})>)"
    r"|<![^>]*>",
    re.IGNORECASE | re.DOTALL,
)
_WHITESPACE_RE = re.compile(r"\s+")
_ATTR_TOKEN_RE = re.compile(r"""("[^"]*"|'[^']*')|\s+""")
_UNQUOTED_VALUE_RE = re.compile(r"[A-Za-z0-9_\-.:#%+,]+")


def _minify_tag(match: re.Match[str]) -> str:
    """Collapse whitespace between attributes and drop unneeded quotes."""
    attrs = match.group("attrs")

    def _attr_token(token: re.Match[str]) -> str:
        quoted = token.group(1)
        if quoted is None:
            return " "
        value = quoted[1:-1]
        start, end = token.span()
        if (
            start > 0
            and attrs[start - 1] == "="
            and _UNQUOTED_VALUE_RE.fullmatch(value)
            and not attrs.startswith("/", end)
        ):
            return value
        return quoted

    attrs = _ATTR_TOKEN_RE.sub(_attr_token, attrs)
    if attrs.endswith(" "):
        attrs = attrs[:-1]
    return f"<{match.group('slash')}{match.group('name')}{attrs}>"


def minify_html(html: str) -> str:
    """
    Collapse whitespace, drop comments and unneeded attribute quotes.

    Text whitespace collapses to one space, and is removed entirely where it
    borders a block-level tag. Quoted attribute values, conditional comments
    and the content of ``<script>``, ``<style>``, ``<pre>`` and
    ``<textarea>`` are copied through unchanged.
    """
    # Alternating text and (markup, is_inline) nodes, starting and ending with text.
    texts: list[str] = []
    nodes: list[tuple[str, bool]] = []
    pending = []
    pos = 0
    for match in _NODE_RE.finditer(html):
        pending.append(html[pos:match.start()])
        pos = match.end()
        if match.group("comment"):
            if not match.group("comment").startswith("<!--[if"):
                continue
            node = (match.group(0), False)
        elif match.group("raw"):
            node = (match.group(0), match.group("raw_name").lower() in _INLINE_TAGS)
        elif match.group("tag"):
            node = (_minify_tag(match), match.group("name").lower() in _INLINE_TAGS)
        else:
            node = (match.group(0), False)
        texts.append("".join(pending))
        pending = []
        nodes.append(node)
    pending.append(html[pos:])
    texts.append("".join(pending))

    parts = []
    for index, text in enumerate(texts):
        text = _WHITESPACE_RE.sub(" ", text)
        if index == 0 or not nodes[index - 1][1]:
            text = text.lstrip(" ")
        if index == len(nodes) or not nodes[index][1]:
            text = text.rstrip(" ")
        parts.append(text)
        if index < len(nodes):
            parts.append(nodes[index][0])
    return "".join(parts)


# ---------------------------------------------------------------------------
# Worker bundle
# ---------------------------------------------------------------------------

def minify_bundle(code: str, runner: NodeRunner) -> str:
    """
    Minify the ES module bundle with terser.

    Raises:
        ToolError: If terser fails.
    """
    script = render("minify.mjs.j2", options=TERSER_OPTIONS)
    minified = runner.run("terser", script, {"code": code})
    logger.info("Minified bundle: %d -> %d chars.", len(code), len(minified))
    return minified
