"""
Identifier renaming and string concealment with js-confuser.

The option set comes from :class:`~workerpack.models.ObfuscatorOptions`.
Two options are functions and cannot travel as JSON, so the driver script
attaches them itself:

- ``stringConcealing``: conceal a literal when it contains a word from the
  sensitive-word list (same rule as :func:`workerpack.wordlist.should_conceal`).
- ``customStringEncodings``: the per-build shift/XOR cipher, as the decoder
  source from :func:`workerpack.cipher.render_decoder` plus the matching
  encoder.
"""

from __future__ import annotations

import logging

from .cipher import render_decoder, render_encoder
from .models import CipherKeys, ObfuscatorOptions
from .node import NodeRunner
from .rendering import render
from .transforms import TokenKind, tokenize
from .wordlist import should_conceal

logger = logging.getLogger(__name__)


def count_sensitive_literals(code: str, words: list[str]) -> int:
    """Number of string and template literals in *code* containing a sensitive word."""
    return sum(
        1
        for token in tokenize(code)
        if token.kind in (TokenKind.STRING, TokenKind.TEMPLATE) and should_conceal(token.text, words)
    )


def render_driver(options: ObfuscatorOptions, keys: CipherKeys) -> str:
    """Render the Node driver script for one obfuscation run."""
    return render(
        "obfuscate.mjs.j2",
        options=options.to_js(),
        decoder=render_decoder(keys),
        encoder=render_encoder(keys),
    )


def obfuscate(
    code: str,
    words: list[str],
    keys: CipherKeys,
    runner: NodeRunner,
    options: ObfuscatorOptions | None = None,
) -> str:
    """
    Obfuscate *code*.

    Raises:
        ToolError: If js-confuser fails.
    """
    options = options or ObfuscatorOptions()
    script = render_driver(options, keys)
    concealed = count_sensitive_literals(code, words)
    result = runner.run("js-confuser", script, {"code": code, "words": words})
    logger.info(
        "Obfuscated bundle: %d -> %d chars (%d literal(s) concealed, %d sensitive word(s)).",
        len(code),
        len(result),
        concealed,
        len(words),
    )
    return result
