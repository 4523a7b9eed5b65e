#!/usr/bin/env python3
# ascii_gen/rendering/charset.py
"""
Glyph ramps.

Ramps are ordered from the darkest luminance (index 0) to the lightest. The
built-in ramps start with a space so dark pixels stay blank on a dark
terminal. A custom ramp is density-sorted once and then behaves like any
built-in one.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from ascii_gen.errors import InvalidConfiguration

__all__ = [
    "Charset",
    "BUILTIN_RAMPS",
    "DEFAULT_CHARSET",
    "named_charset",
    "custom_charset",
    "active_glyphs",
]

BUILTIN_RAMPS: Dict[str, str] = {
    "simple": " .:-=+*#%@",
    "default": " .'`^\",:;Il!i><~+_-?][}{1)(|\\/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$",
}

DEFAULT_CHARSET = "default"
CUSTOM = "custom"


@dataclass(frozen=True)
class Charset:
    glyphs: str
    kind: str = DEFAULT_CHARSET

    def __post_init__(self):
        if not self.glyphs:
            raise InvalidConfiguration("Charset must contain at least one character")

    @property
    def is_custom(self) -> bool:
        return self.kind == CUSTOM

    def ordered(self, invert: bool = False) -> str:
        return self.glyphs[::-1] if invert else self.glyphs

    def lookup(self, index: int, invert: bool = False) -> str:
        """Glyph at `index`, clamped into range."""
        glyphs = self.ordered(invert)
        return glyphs[max(0, min(index, len(glyphs) - 1))]

    def __len__(self) -> int:
        return len(self.glyphs)


def named_charset(name: Optional[str]) -> Charset:
    """Resolve a built-in ramp by name (case-insensitive)."""
    key = (name or DEFAULT_CHARSET).strip().lower()
    if key not in BUILTIN_RAMPS:
        raise InvalidConfiguration(
            f"Unsupported or undefined charset: {name} (choose from {', '.join(sorted(BUILTIN_RAMPS))})"
        )
    return Charset(BUILTIN_RAMPS[key], key)


def custom_charset(chars: str, font=None, font_path: Optional[str] = None) -> Charset:
    """Density-sort `chars` into a custom ramp."""
    if not chars:
        raise InvalidConfiguration("Custom charset must not be empty")
    bad = sorted({ch for ch in chars if not ch.isprintable()})
    if bad:
        # Line breaks and control characters would change the row count.
        raise InvalidConfiguration(f"Custom charset contains unprintable characters: {bad!r}")
    # Imported here so that named ramps never touch the font machinery.
    from ascii_gen.rendering.density import sort_by_density

    return Charset(sort_by_density(chars, font=font, font_path=font_path), CUSTOM)


def active_glyphs(config) -> str:
    """The ordered glyph sequence the mapper indexes into for `config`."""
    return config.charset.ordered(config.invert)
