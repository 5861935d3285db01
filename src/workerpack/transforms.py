"""
Post-build text transforms for the bundled worker script.

These run on already-bundled, already-minified JavaScript, between the
minifier and the obfuscator. None of them parse JavaScript: they are textual
scanners that rely on the upstream bundler having produced valid output.

Four transforms, always applied in this order when enabled:

1. :func:`remove_console_logs` - replace ``console.<method>(...)`` calls with
   ``void 0``, using a balanced-parenthesis scanner.
2. :func:`replace_name_calls` - give every ``__name(fn, "label")`` helper call
   a random hex label.
3. :func:`remove_non_ascii` - drop non-ASCII characters and ``\\u`` escapes.
4. :func:`normalize_whitespace` - collapse whitespace outside of string,
   template, regex and comment literals.

Malformed matches (an unterminated call, a label the pattern cannot isolate)
are skipped, never raised.
"""

from __future__ import annotations

import logging
import random
import re
from enum import Enum
from typing import Callable, NamedTuple

from .models import PostBuildConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Scanner states
# ---------------------------------------------------------------------------

class ScanState(Enum):
    NORMAL = "normal"
    SINGLE_QUOTE = "single_quote"
    DOUBLE_QUOTE = "double_quote"
    TEMPLATE = "template"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    REGEX = "regex"
    REGEX_CLASS = "regex_class"  # inside [...] of a regex literal


_QUOTE_STATES = {
    "'": ScanState.SINGLE_QUOTE,
    '"': ScanState.DOUBLE_QUOTE,
    "`": ScanState.TEMPLATE,
}

_CLOSING_QUOTES = {state: char for char, state in _QUOTE_STATES.items()}


# ---------------------------------------------------------------------------
# 1. Console call removal
# ---------------------------------------------------------------------------

def find_call_end(code: str, open_paren: int) -> int | None:
    """
    Return the offset just past the ``)`` matching ``code[open_paren]``.

    Parentheses inside quoted strings and template literals are ignored, and
    a backslash inside a literal escapes the next character. Returns ``None``
    if the text ends before the parentheses balance.
    """
    depth = 1
    state = ScanState.NORMAL
    escaped = False
    pos = open_paren + 1

    while pos < len(code):
        char = code[pos]
        pos += 1

        if state is ScanState.NORMAL:
            if char in _QUOTE_STATES:
                state = _QUOTE_STATES[char]
            elif char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
                if depth == 0:
                    return pos
        elif escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == _CLOSING_QUOTES[state]:
            state = ScanState.NORMAL

    return None


def _console_pattern(obj: str, methods: list[str]) -> re.Pattern[str]:
    names = "|".join(re.escape(m) for m in methods)
    return re.compile(rf"(?<![\w$.]){re.escape(obj)}\s*\.\s*(?:{names})\s*\(")


def remove_console_logs(
    code: str,
    methods: list[str] | None = None,
    obj: str = "console",
) -> str:
    """
    Replace every complete ``<obj>.<method>(...)`` call with ``void 0``.

    A ``;`` following the call (after optional whitespace) is consumed and
    re-emitted, giving ``void 0;``. Calls nested in the arguments of a
    removed call go with it. Calls whose parentheses never balance are left
    alone.

    Args:
        code: Bundled JavaScript source.
        methods: Method names to strip. Defaults to
            ``PostBuildConfig().console_methods``.
        obj: Object the methods are called on.

    Returns:
        The source with the calls replaced.
    """
    if methods is None:
        methods = PostBuildConfig().console_methods
    if not methods:
        return code

    pattern = _console_pattern(obj, methods)
    spans: list[tuple[int, int, bool]] = []
    pos = 0

    while True:
        match = pattern.search(code, pos)
        if match is None:
            break

        end = find_call_end(code, match.end() - 1)
        if end is None:
            pos = match.end()
            continue

        after = end
        while after < len(code) and code[after].isspace():
            after += 1
        terminated = after < len(code) and code[after] == ";"
        if terminated:
            end = after + 1

        spans.append((match.start(), end, terminated))
        pos = end

    # Highest offset first so earlier offsets stay valid.
    for start, end, terminated in sorted(spans, reverse=True):
        code = code[:start] + ("void 0;" if terminated else "void 0") + code[end:]

    logger.info("Removed %d %s call(s).", len(spans), obj)
    return code


# ---------------------------------------------------------------------------
# 2. Marker label randomisation
# ---------------------------------------------------------------------------

_HEX_DIGITS = "0123456789abcdef"


def random_label(length: int = 4, rng: random.Random | None = None) -> str:
    """Return a random lowercase hex string of *length* characters."""
    source = rng if rng is not None else random
    return "".join(source.choices(_HEX_DIGITS, k=length))


def replace_name_calls(
    code: str,
    marker: str = "__name",
    label_length: int = 4,
    rng: random.Random | None = None,
) -> str:
    """
    Give every ``marker(<expr>, "<label>")`` call a fresh random label.

    Only the label changes; the first argument and the call shape are kept.
    The first argument must not contain a comma: ``[^,]+`` is all the
    pattern knows about expressions, so a comma inside it makes the call
    unrecognised, and a bracket-spanning first argument can make the pattern
    pick up the wrong label. The bundler's helper calls never hit either case.
    """
    pattern = re.compile(rf'(?<![\w$]){re.escape(marker)}\(([^,]+),\s*"([^"]+)"\)')
    count = 0

    def _relabel(match: re.Match[str]) -> str:
        nonlocal count
        count += 1
        text = match.group(0)
        label_start = match.start(2) - match.start()
        label_end = match.end(2) - match.start()
        return text[:label_start] + random_label(label_length, rng) + text[label_end:]

    result = pattern.sub(_relabel, code)
    if count:
        logger.info("Replaced %d %s label(s).", count, marker)
    else:
        logger.info("No %s calls found.", marker)
    return result


# ---------------------------------------------------------------------------
# 3. Non-ASCII removal
# ---------------------------------------------------------------------------

_NON_ASCII_RE = re.compile(r"[^\x00-\x7F]")
_UNICODE_ESCAPE_RE = re.compile(r"\\u[0-9A-Fa-f]{4}|\\u\{[0-9A-Fa-f]{1,6}\}")


def remove_non_ascii(code: str) -> str:
    """
    Remove every character above U+007F and every ``\\uXXXX`` / ``\\u{X}`` escape.

    Context-free: string contents are stripped like everything else. Removal
    is repeated until no escape remains, since deleting one can join its
    neighbours into a new one.
    """
    cleaned, removed_chars = _NON_ASCII_RE.subn("", code)
    removed_escapes = 0
    while True:
        cleaned, count = _UNICODE_ESCAPE_RE.subn("", cleaned)
        if not count:
            break
        removed_escapes += count

    logger.info(
        "Removed %d non-ASCII character(s) and %d unicode escape(s).",
        removed_chars,
        removed_escapes,
    )
    return cleaned


# ---------------------------------------------------------------------------
# 4. Whitespace normalisation
# ---------------------------------------------------------------------------

class TokenKind(str, Enum):
    FREE = "free"
    STRING = "string"
    TEMPLATE = "template"
    REGEX = "regex"
    BLOCK_COMMENT = "block_comment"
    LINE_COMMENT = "line_comment"


class Token(NamedTuple):
    kind: TokenKind
    text: str


_STATE_KINDS = {
    ScanState.NORMAL: TokenKind.FREE,
    ScanState.SINGLE_QUOTE: TokenKind.STRING,
    ScanState.DOUBLE_QUOTE: TokenKind.STRING,
    ScanState.TEMPLATE: TokenKind.TEMPLATE,
    ScanState.LINE_COMMENT: TokenKind.LINE_COMMENT,
    ScanState.BLOCK_COMMENT: TokenKind.BLOCK_COMMENT,
    ScanState.REGEX: TokenKind.REGEX,
    ScanState.REGEX_CLASS: TokenKind.REGEX,
}

# Keywords after which a slash starts a regex rather than a division.
_REGEX_KEYWORDS = frozenset({
    "return", "typeof", "instanceof", "in", "of", "new", "delete", "void",
    "throw", "case", "do", "else", "yield", "await",
})


def _is_ident(char: str) -> bool:
    return char.isalnum() or char in "_$"


def _regex_allowed(prev: str, word: str) -> bool:
    """Whether a ``/`` after *prev* (last significant char) can open a regex."""
    if not prev:
        return True
    if word in _REGEX_KEYWORDS:
        return True
    if _is_ident(prev) or prev in ")]'\"`":
        return False
    return True


def _regex_closes(code: str, pos: int) -> bool:
    """Whether the slash at *pos* has an unescaped closing slash on its line."""
    escaped = False
    in_class = False
    for index in range(pos + 1, len(code)):
        char = code[index]
        if char in "\r\n":
            return False
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif in_class:
            if char == "]":
                in_class = False
        elif char == "[":
            in_class = True
        elif char == "/":
            return True
    return False


def tokenize(code: str) -> list[Token]:
    """
    Split *code* into free spans and protected literal/comment spans.

    Concatenating the token texts always reproduces *code*. Regex literals
    are recognised heuristically: a slash opens one only where an operand is
    expected and only if it closes on the same line. This is not a lexer;
    ambiguous division/regex cases can be misread, which at worst protects
    some whitespace from collapsing.
    """
    tokens: list[Token] = []
    state = ScanState.NORMAL
    escaped = False
    start = 0
    prev = ""   # last significant character in NORMAL state
    word = ""   # identifier run ending at prev
    pos = 0
    length = len(code)

    def _emit(end: int) -> None:
        nonlocal start
        if end > start:
            tokens.append(Token(_STATE_KINDS[state], code[start:end]))
        start = end

    while pos < length:
        char = code[pos]

        if state is ScanState.NORMAL:
            nxt = code[pos + 1:pos + 2]
            if char in _QUOTE_STATES:
                _emit(pos)
                state = _QUOTE_STATES[char]
                escaped = False
                pos += 1
            elif char == "/" and nxt == "*":
                _emit(pos)
                state = ScanState.BLOCK_COMMENT
                pos += 2
            elif char == "/" and nxt == "/":
                _emit(pos)
                state = ScanState.LINE_COMMENT
                pos += 2
            elif char == "/" and _regex_allowed(prev, word) and _regex_closes(code, pos):
                _emit(pos)
                state = ScanState.REGEX
                escaped = False
                pos += 1
            else:
                if not char.isspace():
                    if _is_ident(char):
                        word = word + char if pos > 0 and _is_ident(code[pos - 1]) else char
                    else:
                        word = ""
                    prev = char
                pos += 1

        elif state is ScanState.LINE_COMMENT:
            if char in "\r\n":
                _emit(pos)
                state = ScanState.NORMAL
            else:
                pos += 1

        elif state is ScanState.BLOCK_COMMENT:
            if code.startswith("*/", pos):
                pos += 2
                _emit(pos)
                state = ScanState.NORMAL
            else:
                pos += 1

        elif state in (ScanState.SINGLE_QUOTE, ScanState.DOUBLE_QUOTE, ScanState.TEMPLATE):
            if escaped:
                escaped = False
                pos += 1
            elif char == "\\":
                escaped = True
                pos += 1
            elif char == _CLOSING_QUOTES[state]:
                pos += 1
                _emit(pos)
                state = ScanState.NORMAL
                prev, word = char, ""
            elif char in "\r\n" and state is not ScanState.TEMPLATE:
                # Unterminated quoted string: plain quotes cannot span lines.
                _emit(pos)
                state = ScanState.NORMAL
                prev, word = char, ""
            else:
                pos += 1

        else:  # REGEX / REGEX_CLASS
            pos += 1
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif state is ScanState.REGEX_CLASS:
                if char == "]":
                    state = ScanState.REGEX
            elif char == "[":
                state = ScanState.REGEX_CLASS
            elif char == "/":
                while pos < length and code[pos].isalpha():
                    pos += 1  # flags
                _emit(pos)
                state = ScanState.NORMAL
                prev, word = ")", ""  # a regex literal is an operand

    _emit(length)
    return tokens


_HSPACE_RE = re.compile(r"[ \t]+")
_LINE_BREAKS_RE = re.compile(r"[\r\n]+")


def normalize_whitespace(code: str) -> str:
    """
    Collapse whitespace outside of literals and comments.

    In free spans, runs of spaces/tabs become one space and runs of line
    breaks become one ``\\n``. Strings, template literals, regex literals and
    comments are copied through unchanged. Idempotent.
    """
    parts = []
    for token in tokenize(code):
        if token.kind is TokenKind.FREE:
            parts.append(_LINE_BREAKS_RE.sub("\n", _HSPACE_RE.sub(" ", token.text)))
        else:
            parts.append(token.text)
    normalized = "".join(parts)

    logger.info("Normalized whitespace (%d -> %d chars).", len(code), len(normalized))
    return normalized


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

TRANSFORM_ORDER = (
    "remove_console_logs",
    "replace_name_calls",
    "remove_non_ascii",
    "normalize_whitespace",
)


def apply_transform(
    name: str,
    code: str,
    config: PostBuildConfig,
    rng: random.Random | None = None,
) -> str:
    """Apply one named transform with the settings in *config*."""
    if name == "remove_console_logs":
        return remove_console_logs(code, config.console_methods, config.console_object)
    if name == "replace_name_calls":
        return replace_name_calls(code, config.marker_name, config.marker_label_length, rng)
    if name == "remove_non_ascii":
        return remove_non_ascii(code)
    if name == "normalize_whitespace":
        return normalize_whitespace(code)
    raise ValueError(f"Unknown transform: {name!r}")


def enabled_transforms(config: PostBuildConfig) -> list[str]:
    """Names of the transforms *config* enables, in pipeline order."""
    return [name for name in TRANSFORM_ORDER if getattr(config, name)]


def run_post_build(
    code: str,
    config: PostBuildConfig | None = None,
    rng: random.Random | None = None,
    on_stage: Callable[[str, str], None] | None = None,
) -> str:
    """
    Run every enabled transform over *code* in pipeline order.

    *on_stage*, if given, is called with the transform name and the
    resulting code after each transform.

    Console removal runs before label randomisation so markers inside removed
    calls are never touched; non-ASCII removal runs before whitespace
    normalisation so gaps left by removed escapes get collapsed.
    """
    config = config or PostBuildConfig()
    for name in enabled_transforms(config):
        code = apply_transform(name, code, config, rng)
        if on_stage is not None:
            on_stage(name, code)
    return code
