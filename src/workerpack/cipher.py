"""
Shift/XOR substitution cipher used to conceal sensitive string literals.

A fresh pair of keys is drawn for every build. The obfuscator encodes each
concealed literal with :func:`encode` semantics at build time; the worker
decodes it at run time with the function produced by :func:`render_decoder`,
which has the keys baked in as number literals (identifier renaming must not
be able to reach them).

Encoding is ``c ^ xor`` then ``(c + shift) % base``; decoding is the exact
inverse, ``(c - shift + base) % base`` then ``^ xor``. The base must be a power
of two, so XOR with a key below it never leaves the ``[0, base)`` range, and
both keys are drawn from ``[1, base - 1]``. Under those two conditions the
round trip holds for every code in the range.
"""

from __future__ import annotations

import random

from .models import CipherKeys
from .rendering import render

DEFAULT_BASE = 128


def generate_keys(base: int = DEFAULT_BASE, rng: random.Random | None = None) -> CipherKeys:
    """Draw a shift key and an XOR key uniformly from ``[1, base - 1]``."""
    source = rng if rng is not None else random
    return CipherKeys(
        base=base,
        shift=source.randint(1, base - 1),
        xor=source.randint(1, base - 1),
    )


def encode_char(code: int, keys: CipherKeys) -> int:
    code ^= keys.xor
    return (code + keys.shift) % keys.base


def decode_char(code: int, keys: CipherKeys) -> int:
    code = (code - keys.shift + keys.base) % keys.base
    return code ^ keys.xor


def encode(text: str, keys: CipherKeys) -> str:
    return "".join(chr(encode_char(ord(char), keys)) for char in text)


def decode(text: str, keys: CipherKeys) -> str:
    return "".join(chr(decode_char(ord(char), keys)) for char in text)


def render_decoder(keys: CipherKeys) -> str:
    """
    JavaScript source of the run-time decoder.

    The function is named ``{fnName}``; js-confuser substitutes its own
    generated name for that placeholder.
    """
    return render("decoder.js.j2", keys=keys).rstrip("\n")


def render_encoder(keys: CipherKeys) -> str:
    """JavaScript arrow function performing :func:`encode` inside Node."""
    return render("encoder.js.j2", keys=keys).rstrip("\n")
