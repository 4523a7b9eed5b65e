#!/usr/bin/env python3
# ascii_gen/fonts.py
"""
Process-wide font access.

Fonts are loaded once per (path, size) and shared read-only by the density
sorter and the render-back projector, including the parallel GIF workers.
With no path configured, Pillow's bundled FreeType font is used.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from PIL import ImageFont

from ascii_gen.errors import ResourceUnavailable

__all__ = ["load_font"]


@lru_cache(maxsize=16)
def load_font(size: int, path: Optional[str] = None) -> ImageFont.FreeTypeFont:
    """Return a FreeType font at `size` px, raising ResourceUnavailable on failure."""
    try:
        if path:
            font = ImageFont.truetype(path, size)
        else:
            font = ImageFont.load_default(size=size)
    except (OSError, ValueError, ImportError) as exc:
        raise ResourceUnavailable(f"Fail to load font {path or '<bundled>'}: {exc}") from exc

    # Bitmap fonts carry no metrics; baseline alignment needs a FreeType face.
    if not isinstance(font, ImageFont.FreeTypeFont):
        raise ResourceUnavailable("FreeType support is required to rasterize glyphs")
    return font
