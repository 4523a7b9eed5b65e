#!/usr/bin/env python3
# ascii_gen/rendering/projector.py
"""
Render-back projector: text (optionally ANSI colored) -> RGB bitmap.

Every character occupies a fixed cell of int(0.6 * font_size) x font_size
pixels. Glyphs are centered in their cell horizontally and sit on a shared
baseline; coverage is blended between the current foreground and the
background. Escape sequences never advance the cursor.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from ascii_gen.config import AsciiConfig
from ascii_gen.fonts import load_font
from ascii_gen.rendering import ansi

RGB = Tuple[int, int, int]

DEFAULT_BACKGROUND: RGB = (0x0C, 0x0C, 0x0C)
DEFAULT_FOREGROUND: RGB = (0xCC, 0xCC, 0xCC)
CELL_WIDTH_RATIO = 0.6

__all__ = ["AsciiImageRenderer", "DEFAULT_BACKGROUND", "DEFAULT_FOREGROUND", "cell_size"]


def cell_size(font_size: int) -> Tuple[int, int]:
    return int(font_size * CELL_WIDTH_RATIO), font_size


def _rows(text: str) -> List[str]:
    """Rows split on LF only; a trailing LF does not open a new row."""
    rows = text.split("\n")
    if rows and rows[-1] == "":
        rows.pop()
    return rows


class AsciiImageRenderer:
    """
    Draws text frames with one font and one pair of default colors.
    Holds no per-frame state, so a single instance may serve many threads.
    """

    def __init__(
        self,
        config: AsciiConfig,
        font_size: int = 16,
        background: RGB = DEFAULT_BACKGROUND,
        foreground: RGB = DEFAULT_FOREGROUND,
        font: Optional[ImageFont.FreeTypeFont] = None,
        font_path: Optional[str] = None,
    ):
        self.config = config
        self.font_size = font_size
        self.background = tuple(background)
        self.foreground = tuple(foreground)
        self.font = font if font is not None else load_font(font_size, font_path)
        self.cell_w, self.cell_h = cell_size(font_size)

        ascent, descent = self.font.getmetrics()
        self.ascent = ascent
        font_height = ascent + descent
        baseline_offset = math.ceil(ascent - font_height / 2.0)
        # y of the ascender line relative to the top of a cell
        self.line_top = self.cell_h // 2 - baseline_offset
        self._glyphs: Dict[str, Optional[Tuple[np.ndarray, int, int]]] = {}

    def with_colors(self, background: RGB, foreground: RGB) -> "AsciiImageRenderer":
        self.background = tuple(background)
        self.foreground = tuple(foreground)
        return self

    # ----------------------
    # Glyph coverage
    # ----------------------

    def _glyph(self, ch: str) -> Optional[Tuple[np.ndarray, int, int]]:
        """(coverage in [0, 1], ink left, ink top) or None for blank glyphs."""
        if ch in self._glyphs:
            return self._glyphs[ch]
        entry = None
        if ch.isprintable():
            left, top, right, bottom = self.font.getbbox(ch)
            if right > left and bottom > top:
                mask = Image.new("L", (right - left, bottom - top), 0)
                ImageDraw.Draw(mask).text((-left, -top), ch, fill=255, font=self.font)
                cov = np.asarray(mask, dtype=np.float32) / 255.0
                if cov.any():
                    entry = (cov, left, top)
        # Concurrent workers may compute the same entry twice; both are equal.
        self._glyphs[ch] = entry
        return entry

    # ----------------------
    # Rendering
    # ----------------------

    def canvas_size(self, text: str) -> Tuple[int, int]:
        return self.config.width * self.cell_w, len(_rows(text)) * self.cell_h

    def render(self, text: str) -> Image.Image:
        width, height = self.canvas_size(text)
        if width == 0 or height == 0:
            return Image.new("RGB", (width, height), self.background)
        canvas = np.empty((height, width, 3), dtype=np.uint8)
        canvas[...] = self.background
        bg = np.array(self.background, dtype=np.float32)

        fg = self.foreground
        for row, line in enumerate(_rows(text)):
            col = 0
            for kind, value in ansi.scan(line):
                if kind == ansi.COLOR:
                    fg = value
                    continue
                if kind == ansi.RESET_TOKEN:
                    fg = self.foreground
                    continue
                if value != " ":
                    self._draw(canvas, bg, fg, value, col, row)
                col += 1

        return Image.fromarray(canvas, "RGB")

    def _draw(self, canvas: np.ndarray, bg: np.ndarray, fg: RGB, ch: str, col: int, row: int) -> None:
        glyph = self._glyph(ch)
        if glyph is None:
            return
        cov, _left, top = glyph
        gh, gw = cov.shape

        h_offset = (self.cell_w - gw) // 2 if gw <= self.cell_w else 0
        x0 = col * self.cell_w + h_offset
        y0 = row * self.cell_h + self.line_top + top

        height, width = canvas.shape[:2]
        cx0, cy0 = max(x0, 0), max(y0, 0)
        cx1, cy1 = min(x0 + gw, width), min(y0 + gh, height)
        if cx0 >= cx1 or cy0 >= cy1:
            return

        c = cov[cy0 - y0:cy1 - y0, cx0 - x0:cx1 - x0, None]
        fg_arr = np.array(fg, dtype=np.float32)
        blended = fg_arr * c + bg * (1.0 - c)
        canvas[cy0:cy1, cx0:cx1] = blended.astype(np.uint8)
