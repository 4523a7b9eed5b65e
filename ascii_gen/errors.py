#!/usr/bin/env python3
# ascii_gen/errors.py
"""
Error kinds raised by the converter.

Everything derives from AsciiGenError so the CLI can report any failure
with one handler and a non-zero exit status.
"""

from __future__ import annotations

__all__ = [
    "AsciiGenError",
    "InvalidConfiguration",
    "ResourceUnavailable",
    "DecodeFailure",
    "EncodeFailure",
    "UnsupportedOutputExtension",
]


class AsciiGenError(Exception):
    """Base class for all converter errors."""


class InvalidConfiguration(AsciiGenError):
    """Bad width/height/gamma/charset value."""


class ResourceUnavailable(AsciiGenError):
    """A required font or asset could not be loaded."""


class DecodeFailure(AsciiGenError):
    """The source image or animation could not be read."""


class EncodeFailure(AsciiGenError):
    """The output could not be produced or written."""


class UnsupportedOutputExtension(EncodeFailure):
    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"Unsupported file extension: .{extension}")
