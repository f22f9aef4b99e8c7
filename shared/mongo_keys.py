"""
Reversible encoding of dimension keys used inside MongoDB field paths.

Counter updates address map entries with dotted paths
(``analytics.referrers.<host>``), so a literal ``.`` in a key would create
nesting and a leading ``$`` is rejected by the server. Those characters are
swapped for full-width look-alikes on write and restored on read.
"""

from __future__ import annotations

from typing import Mapping

_DOT = "."
_DOLLAR = "$"
_DOT_SUB = "．"
_DOLLAR_SUB = "＄"


def encode_key(key: str) -> str:
    key = key.replace(_DOT, _DOT_SUB)
    if key.startswith(_DOLLAR):
        key = _DOLLAR_SUB + key[1:]
    return key


def decode_key(key: str) -> str:
    key = key.replace(_DOT_SUB, _DOT)
    if key.startswith(_DOLLAR_SUB):
        key = _DOLLAR + key[1:]
    return key


def decode_counts(counts: Mapping[str, int]) -> dict[str, int]:
    """Decode every key of a stored ``{key: count}`` map."""
    return {decode_key(str(key)): value for key, value in counts.items()}
