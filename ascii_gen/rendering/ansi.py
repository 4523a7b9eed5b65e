#!/usr/bin/env python3
# ascii_gen/rendering/ansi.py
"""
The two escape sequences the mapper emits, and a scanner that reads them back.

The scanner only knows `ESC[38;2;R;G;Bm` (true-color foreground) and
`ESC[0m` (reset). Anything else that starts with ESC, including a sequence
cut off at the end of the text, is handed back as plain characters.
"""

from __future__ import annotations

from typing import Iterator, Optional, Tuple, Union

ESC = "\x1b"
RESET = ESC + "[0m"
FG_PREFIX = ESC + "[38;2;"

TEXT = "text"
COLOR = "color"
RESET_TOKEN = "reset"

RGB = Tuple[int, int, int]
Token = Tuple[str, Union[str, RGB, None]]

__all__ = [
    "ESC",
    "RESET",
    "fg_escape",
    "paint",
    "scan",
    "strip",
    "TEXT",
    "COLOR",
    "RESET_TOKEN",
]


def fg_escape(r: int, g: int, b: int) -> str:
    return f"{FG_PREFIX}{r};{g};{b}m"


def paint(ch: str, r: int, g: int, b: int) -> str:
    """Self-contained colored cell: color, glyph, reset."""
    return f"{fg_escape(r, g, b)}{ch}{RESET}"


def _parse_fg(seq: str) -> Optional[RGB]:
    if not (seq.startswith(FG_PREFIX) and seq.endswith("m")):
        return None
    parts = seq[len(FG_PREFIX):-1].split(";")
    if len(parts) != 3 or not all(p.isascii() and p.isdigit() for p in parts):
        return None
    rgb = tuple(int(p) for p in parts)
    if any(v > 255 for v in rgb):
        return None
    return rgb  # type: ignore[return-value]


def scan(text: str) -> Iterator[Token]:
    """Yield ("text", ch), ("color", (r, g, b)) and ("reset", None) tokens."""
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch != ESC:
            yield TEXT, ch
            i += 1
            continue

        # Inside an escape: collect up to and including the final 'm'.
        end = text.find("m", i + 1)
        nl = text.find("\n", i + 1)
        if end == -1 or (nl != -1 and nl < end):
            yield TEXT, ch
            i += 1
            continue

        seq = text[i:end + 1]
        if seq == RESET:
            yield RESET_TOKEN, None
            i = end + 1
            continue
        rgb = _parse_fg(seq)
        if rgb is not None:
            yield COLOR, rgb
            i = end + 1
            continue

        # Unrecognized: ESC is kept as an ordinary character, the rest is rescanned.
        yield TEXT, ch
        i += 1


def strip(text: str) -> str:
    """Text with recognized escapes removed."""
    return "".join(value for kind, value in scan(text) if kind == TEXT)  # type: ignore[misc]
