#!/usr/bin/env python3
# ascii_gen/source.py
"""
Input boundary: open a local path or URL as a decoded Pillow image.

The image is fully loaded before returning, so any decode error surfaces
here as DecodeFailure rather than later inside the mapper.
"""

from __future__ import annotations

import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ascii_gen.cache import SourceCache, is_remote
from ascii_gen.errors import DecodeFailure

log = logging.getLogger(__name__)

__all__ = ["open_source", "is_animated"]


def open_source(source: str, cache: Optional[SourceCache] = None) -> Image.Image:
    path = source
    if is_remote(source):
        if cache is None:
            raise DecodeFailure(f"No download cache configured for {source}")
        path = str(cache.fetch(source))

    try:
        img = Image.open(path)
        img.load()
    except FileNotFoundError as exc:
        raise DecodeFailure(f"Input file not found: {source}") from exc
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as exc:
        raise DecodeFailure(f"Failed to decode {source}: {exc}") from exc

    log.debug("opened %s: %sx%s mode=%s frames=%s", source, img.width, img.height,
              img.mode, getattr(img, "n_frames", 1))
    return img


def is_animated(img: Image.Image) -> bool:
    return getattr(img, "n_frames", 1) > 1
