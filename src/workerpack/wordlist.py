"""
Sensitive-word list for string concealment.

The list is a plain text file, one word per line. Any string literal in the
worker whose lower-cased text contains one of the words gets concealed by
the obfuscator.
"""

from pathlib import Path

from .errors import AssetError


def parse_sensitive_words(text: str) -> list[str]:
    """Split *text* into trimmed, lower-cased, non-empty words, keeping order."""
    words = []
    for line in text.splitlines():
        word = line.strip().lower()
        if word:
            words.append(word)
    return words


def load_sensitive_words(path: str | Path) -> list[str]:
    """
    Load the sensitive-word list from disk.

    Raises:
        AssetError: If the file does not exist or cannot be read.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise AssetError(f"Cannot read sensitive word list {path}: {exc}") from exc
    return parse_sensitive_words(raw)


def should_conceal(text: str, words: list[str]) -> bool:
    """Whether *text* contains any of *words*, ignoring case."""
    lowered = text.lower()
    return any(word in lowered for word in words)
