#!/usr/bin/env python3
# ascii_gen/output.py
"""
Output formats, selected by the output file's extension.

Every format turns finished ASCII art plus its config into bytes via
serialize(); save() writes those bytes atomically so a failed encode never
leaves a file behind that looks complete. The set of formats is closed:
an unknown extension raises UnsupportedOutputExtension.
"""

from __future__ import annotations

import html
import io
import json
import logging
import os
from typing import Dict, List, Optional, Tuple, Type

from PIL import Image
from prompt_toolkit.formatted_text import ANSI, to_formatted_text

from ascii_gen.config import AsciiConfig, atomic_write_bytes
from ascii_gen.errors import EncodeFailure, UnsupportedOutputExtension
from ascii_gen.rendering.projector import (
    DEFAULT_BACKGROUND,
    DEFAULT_FOREGROUND,
    AsciiImageRenderer,
)
from ascii_gen.version import GENERATOR_NAME, __version__

log = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

__all__ = [
    "OutputFormat",
    "TxtFormat",
    "JsonFormat",
    "HtmlFormat",
    "ImageFormat",
    "FORMATS",
    "resolve_output",
    "count_lines",
    "ansi_to_html",
]


def count_lines(text: str) -> int:
    return text.count("\n")


def _actual_height(ascii_art: str, config: AsciiConfig) -> int:
    return config.height if config.height else count_lines(ascii_art)


class OutputFormat:
    """Interface for all output formats."""
    extension: str = ""

    def serialize(self, ascii_art: str, config: AsciiConfig) -> bytes:
        raise NotImplementedError

    def save(self, ascii_art: str, config: AsciiConfig, path: str) -> None:
        data = self.serialize(ascii_art, config)
        try:
            atomic_write_bytes(path, data)
        except OSError as exc:
            raise EncodeFailure(f"Failed to write {path}: {exc}") from exc
        log.info("ASCII Art saved to %s", path)


class TxtFormat(OutputFormat):
    extension = "txt"

    def serialize(self, ascii_art: str, config: AsciiConfig) -> bytes:
        footer = (
            "\n" + "-" * 50 + "\n"
            f"Generated by {GENERATOR_NAME} v{__version__}\n"
            f"Charset: {config.charset_string}, Enable Color: {config.color}, "
            f"Invert Output: {config.invert}\n"
        )
        return (ascii_art + footer).encode("utf-8")


class JsonFormat(OutputFormat):
    extension = "json"

    def serialize(self, ascii_art: str, config: AsciiConfig) -> bytes:
        doc = {
            "info": f"Generated by {GENERATOR_NAME}",
            "version": __version__,
            "config": {
                "width": config.width,
                "height": _actual_height(ascii_art, config),
                "gamma": config.gamma,
                "charset": config.charset_string,
                "color_enable": config.color,
                "invert_output": config.invert,
            },
            "ascii_art": ascii_art,
        }
        return (json.dumps(doc, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def _style_to_css(style: str) -> str:
    # prompt_toolkit styles look like "#rrggbb bg:#rrggbb bold"
    css = []
    for token in style.split():
        if token.startswith("#"):
            css.append(f"color:{token}")
        elif token.startswith("bg:#"):
            css.append(f"background-color:{token[3:]}")
        elif token == "bold":
            css.append("font-weight:bold")
    return ";".join(css)


def ansi_to_html(text: str) -> str:
    """Colored terminal text -> escaped HTML with <span> runs per color."""
    fragments = to_formatted_text(ANSI(text))
    out: List[str] = []
    run_style: Optional[str] = None
    run_text: List[str] = []

    def flush() -> None:
        if not run_text:
            return
        body = html.escape("".join(run_text), quote=False)
        css = _style_to_css(run_style or "")
        out.append(f'<span style="{css}">{body}</span>' if css else body)
        run_text.clear()

    for fragment in fragments:
        style, chunk = fragment[0], fragment[1]
        if "[ZeroWidthEscape]" in style:
            continue
        # Newlines never carry a color.
        if chunk == "\n":
            flush()
            run_style = None
            out.append("\n")
            continue
        if style != run_style:
            flush()
            run_style = style
        run_text.append(chunk)
    flush()
    return "".join(out)


_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>ASCII Art - {width}x{height}</title>
    <style>
        body {{
            background-color: #000;
            color: #fff;
            font-family: monospace;
            margin: 0;
            padding: 0;
            display: flex;
            flex-direction: column;
            min-height: 100vh;
        }}
        .config {{
            background-color: #1a1a1a;
            padding: 15px 30px;
            margin: 20px;
            border-radius: 5px;
            font-family: sans-serif;
            white-space: normal;
            text-align: left;
        }}
        .ascii-container {{
            flex: 1;
            display: flex;
            justify-content: center;
            align-items: center;
            padding: 20px;
            overflow-x: auto;
        }}
        .ascii-art {{
            line-height: 1.2;
            letter-spacing: 0.8px;
            text-align: left;
        }}
    </style>
</head>
<body>
    <div class="config">
        <h3>ASCII Art Configuration</h3>
        <p><strong>Generator:</strong> {generator} v{version}</p>
        <p><strong>Charset:</strong> {charset}</p>
        <p><strong>Dimensions:</strong> {width}x{height}</p>
        <p><strong>Gamma Correction:</strong> {gamma}</p>
        <p><strong>Enable Color:</strong> {color}</p>
        <p><strong>Invert Output:</strong> {invert}</p>
    </div>
    <div class="ascii-container">
        <pre class="ascii-art">
{content}
        </pre>
    </div>
</body>
</html>
"""


class HtmlFormat(OutputFormat):
    extension = "html"

    def serialize(self, ascii_art: str, config: AsciiConfig) -> bytes:
        if config.color:
            content = ansi_to_html(ascii_art)
        else:
            content = html.escape(ascii_art, quote=False)
        page = _HTML_TEMPLATE.format(
            width=config.width,
            height=_actual_height(ascii_art, config),
            generator=GENERATOR_NAME,
            version=__version__,
            charset=html.escape(config.charset_string),
            gamma=config.gamma,
            color=config.color,
            invert=config.invert,
            content=content,
        )
        return page.encode("utf-8")


class ImageFormat(OutputFormat):
    """Bitmap render of the art: png, jpg/jpeg, or a single-frame gif."""

    _PIL_FORMATS = {"png": "PNG", "jpg": "JPEG", "jpeg": "JPEG", "gif": "GIF"}

    def __init__(
        self,
        extension: str = "png",
        font_size: int = 32,
        background: RGB = DEFAULT_BACKGROUND,
        foreground: RGB = DEFAULT_FOREGROUND,
        font_path: Optional[str] = None,
    ):
        self.extension = extension if extension in self._PIL_FORMATS else "png"
        self.font_size = font_size
        self.background = background
        self.foreground = foreground
        self.font_path = font_path

    def render(self, ascii_art: str, config: AsciiConfig) -> Image.Image:
        renderer = AsciiImageRenderer(config, self.font_size, font_path=self.font_path)
        return renderer.with_colors(self.background, self.foreground).render(ascii_art)

    def serialize(self, ascii_art: str, config: AsciiConfig) -> bytes:
        img = self.render(ascii_art, config)
        if img.width == 0 or img.height == 0:
            raise EncodeFailure("Nothing to render: the ASCII art is empty")
        buf = io.BytesIO()
        try:
            img.save(buf, format=self._PIL_FORMATS[self.extension])
        except (OSError, ValueError) as exc:
            raise EncodeFailure(f"Image encoding failed: {exc}") from exc
        return buf.getvalue()


FORMATS: Dict[str, Type[OutputFormat]] = {
    "txt": TxtFormat,
    "json": JsonFormat,
    "html": HtmlFormat,
    "png": ImageFormat,
    "jpg": ImageFormat,
    "jpeg": ImageFormat,
    "gif": ImageFormat,
}


def resolve_output(output_path: str, **image_options) -> Tuple[OutputFormat, str]:
    """
    Pick the format for `output_path`. A path without an extension gets
    ".txt" appended. `image_options` are passed to ImageFormat.
    """
    _root, ext = os.path.splitext(output_path)
    if not ext:
        return TxtFormat(), output_path + ".txt"

    key = ext[1:].lower()
    cls = FORMATS.get(key)
    if cls is None:
        raise UnsupportedOutputExtension(ext[1:])
    if cls is ImageFormat:
        return ImageFormat(key, **image_options), output_path
    return cls(), output_path
