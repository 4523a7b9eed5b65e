#!/usr/bin/env python3
# ascii_gen/rendering/density.py
"""
Ink-density ordering for custom charsets.

Each character is drawn in black on a small white buffer and the number of
dark pixels is used as its density. Sorting is stable, so ties keep their
input order and the result is deterministic for a given font.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ascii_gen.fonts import load_font

__all__ = ["char_density", "sort_by_density", "DENSITY_FONT_SIZE"]

DENSITY_FONT_SIZE = 24
BUFFER_SIZE = 32
DARK_THRESHOLD = 200


def char_density(ch: str, font: ImageFont.FreeTypeFont) -> int:
    """Count pixels darker than the threshold after drawing `ch`."""
    img = Image.new("L", (BUFFER_SIZE, BUFFER_SIZE), 255)
    ImageDraw.Draw(img).text((0, 0), ch, fill=0, font=font)
    arr = np.asarray(img, dtype=np.uint8)
    return int(np.count_nonzero(arr < DARK_THRESHOLD))


def sort_by_density(
    chars: str,
    font: Optional[ImageFont.FreeTypeFont] = None,
    font_path: Optional[str] = None,
) -> str:
    """Return `chars` reordered by ascending ink coverage. Duplicates are kept."""
    if font is None:
        font = load_font(DENSITY_FONT_SIZE, font_path)

    cache = {}
    measured: List[Tuple[str, int]] = []
    for ch in chars:
        if ch not in cache:
            cache[ch] = char_density(ch, font)
        measured.append((ch, cache[ch]))

    measured.sort(key=lambda pair: pair[1])
    return "".join(ch for ch, _ in measured)
