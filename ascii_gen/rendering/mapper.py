#!/usr/bin/env python3
# ascii_gen/rendering/mapper.py
"""
Pixel-block mapper: image -> text grid.

- Each output cell averages a floor(wr) x floor(hr) block of source pixels
  (at least 1x1) with truncating integer division per channel.
- Rec. 601 luminance, truncated, then gamma corrected in floating point.
- Luminance picks a glyph from the active ramp; colored output wraps every
  cell in its own foreground escape and reset.

Block sums come from a summed-area table, so the cost is one pass over the
source plus one lookup per cell.
"""

from __future__ import annotations

import math

import numpy as np
from PIL import Image

from ascii_gen.config import AsciiConfig
from ascii_gen.rendering import ansi
from ascii_gen.rendering.charset import active_glyphs

__all__ = [
    "AsciiMapper",
    "map_image",
    "resolve_height",
    "rgb_to_luminance",
    "apply_gamma",
    "luminance_to_index",
]


def resolve_height(config: AsciiConfig, src_w: int, src_h: int) -> int:
    """Configured height, or width scaled by the source aspect ratio."""
    if config.height:
        return config.height
    if src_w <= 0:
        return 0
    return int(math.floor(config.width * src_h / src_w + 0.5))


def rgb_to_luminance(r, g, b):
    """floor(0.299 R + 0.587 G + 0.114 B), exact in integer arithmetic."""
    return (299 * r + 587 * g + 114 * b) // 1000


def apply_gamma(lum, gamma: float):
    """round(255 * (lum / 255) ** gamma). Works on ints and integer arrays."""
    if isinstance(lum, np.ndarray):
        out = np.floor(255.0 * np.power(lum / 255.0, gamma) + 0.5)
        return out.astype(np.int64)
    return int(math.floor(255.0 * (lum / 255.0) ** gamma + 0.5))


def luminance_to_index(lum, count: int):
    """floor(lum * count / 255) clamped to [0, count - 1]."""
    if isinstance(lum, np.ndarray):
        return np.clip(lum * count // 255, 0, count - 1)
    return max(0, min(lum * count // 255, count - 1))


def _block_averages(arr: np.ndarray, width: int, height: int) -> np.ndarray:
    """(height, width, 3) int64 per-cell channel averages."""
    src_h, src_w = arr.shape[:2]
    width_ratio = src_w / width
    height_ratio = src_h / height
    bw = max(1, int(width_ratio))
    bh = max(1, int(height_ratio))

    xs = np.floor(np.arange(width) * width_ratio).astype(np.int64)
    ys = np.floor(np.arange(height) * height_ratio).astype(np.int64)
    x0 = np.minimum(xs, src_w - 1)[None, :]
    y0 = np.minimum(ys, src_h - 1)[:, None]
    x1 = np.minimum(x0 + bw, src_w)
    y1 = np.minimum(y0 + bh, src_h)

    sat = np.zeros((src_h + 1, src_w + 1, 3), dtype=np.int64)
    sat[1:, 1:] = arr.astype(np.int64).cumsum(axis=0).cumsum(axis=1)
    sums = sat[y1, x1] - sat[y0, x1] - sat[y1, x0] + sat[y0, x0]
    counts = ((y1 - y0) * (x1 - x0))[..., None]
    return sums // counts


class AsciiMapper:
    """Converts still images with one fixed config."""

    def __init__(self, config: AsciiConfig):
        self.config = config
        self.glyphs = np.array(list(active_glyphs(config)))

    def image_to_ascii(self, img: Image.Image) -> str:
        cfg = self.config
        width = cfg.width
        height = resolve_height(cfg, img.width, img.height)
        if width <= 0 or height <= 0 or img.width == 0 or img.height == 0:
            return ""

        if img.mode != "RGB":
            img = img.convert("RGB")
        arr = np.asarray(img, dtype=np.uint8)

        avg = _block_averages(arr, width, height)
        lum = rgb_to_luminance(avg[..., 0], avg[..., 1], avg[..., 2])
        lum = apply_gamma(lum, cfg.gamma)
        idx = luminance_to_index(lum, len(self.glyphs))
        chars = self.glyphs[idx]

        rows = []
        if cfg.color:
            for y in range(height):
                cells = []
                for x in range(width):
                    r, g, b = avg[y, x].tolist()
                    cells.append(ansi.paint(chars[y, x], r, g, b))
                rows.append("".join(cells))
        else:
            for y in range(height):
                rows.append("".join(chars[y].tolist()))
        return "".join(row + "\n" for row in rows)


def map_image(img: Image.Image, config: AsciiConfig) -> str:
    return AsciiMapper(config).image_to_ascii(img)
