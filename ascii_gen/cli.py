#!/usr/bin/env python3
# ascii_gen/cli.py
"""
Entry point for ASCII Art Generator.

Converts an image (or animated GIF) to ASCII art. Without --output the art
is printed, or the animation played, in the terminal; otherwise the output
extension picks the format.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from ascii_gen.animation import GifAsciiHandler
from ascii_gen.cache import SourceCache, is_remote
from ascii_gen.config import AsciiConfig, Config, parse_hex_color
from ascii_gen.errors import AsciiGenError
from ascii_gen.logging_conf import setup_logging
from ascii_gen.output import ImageFormat, resolve_output
from ascii_gen.rendering.charset import BUILTIN_RAMPS
from ascii_gen.rendering.mapper import map_image
from ascii_gen.source import is_animated, open_source
from ascii_gen.ui.terminal import TerminalSink
from ascii_gen.version import GENERATOR_NAME, version_info

log = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ascii-gen",
        description="A Tool for Converting Images to ASCII Art",
    )
    p.add_argument("-i", "--input", required=True, metavar="FILE",
                   help="Input image file or http(s) URL")
    p.add_argument("-o", "--output", metavar="FILE",
                   help="Output file (.txt .json .html .png .jpg .jpeg .gif); default: terminal")
    # Numbers stay strings here so bad values are reported as configuration errors.
    p.add_argument("-w", "--width", metavar="WIDTH", help="Width of the output ASCII art (default 80)")
    p.add_argument("-H", "--height", metavar="HEIGHT",
                   help="Height of the output ASCII art (default: keep aspect ratio)")
    p.add_argument("-g", "--gamma", metavar="GAMMA", help="Gamma correction factor (default 1.0)")
    p.add_argument("-c", "--charset", metavar="NAME",
                   help=f"Built-in charset: {', '.join(sorted(BUILTIN_RAMPS))} (default: default)")
    p.add_argument("--custom-charset", metavar="CHARS",
                   help="Characters to use instead of a built-in charset, sorted by ink density")
    p.add_argument("--color", action="store_true", default=None, help="Emit 24-bit ANSI color")
    p.add_argument("--invert", action="store_true", default=None, help="Invert the brightness mapping")
    p.add_argument("--loops", type=int, metavar="N",
                   help="Play an animation N times (default: until interrupted)")
    p.add_argument("--font", metavar="TTF", help="Font file used for density sorting and image output")
    p.add_argument("--config", metavar="PATH", help="Settings file (JSON)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log progress and debug details")
    p.add_argument("--version", action="version", version=version_info())
    return p


def _image_options(cfg: Config, font_path: Optional[str]) -> dict:
    out = cfg["output"]
    return {
        "font_size": out["font_size_image"],
        "background": parse_hex_color(out["background"]),
        "foreground": parse_hex_color(out["foreground"]),
        "font_path": font_path,
    }


def run(argv: Optional[List[str]] = None, sink=None) -> int:
    args = build_parser().parse_args(argv)
    cfg = Config.load(args.config)
    setup_logging(cfg, "DEBUG" if args.verbose else None)
    if args.font:
        cfg["font"]["path"] = args.font

    try:
        config = AsciiConfig.from_settings(
            cfg,
            width=args.width,
            height=args.height,
            gamma=args.gamma,
            charset=args.charset,
            # An explicit --charset beats a custom charset from the settings file.
            custom_charset=args.custom_charset if args.custom_charset else ("" if args.charset else None),
            color=args.color,
            invert=args.invert,
        )
        log.debug("config: %s", config)

        fmt = path = None
        if args.output:
            fmt, path = resolve_output(args.output, **_image_options(cfg, cfg.font_path))

        cache = None
        if is_remote(args.input):
            cache = SourceCache.from_config(cfg)
        img = open_source(args.input, cache)
        if cache is not None:
            cache.prune(cfg["cache"]["max_bytes"], cfg["cache"]["prune_watermark"])

        animated = is_animated(img)
        if animated and (fmt is None or (isinstance(fmt, ImageFormat) and fmt.extension == "gif")):
            out = cfg["output"]
            handler = GifAsciiHandler(
                config,
                font_size=out["font_size_gif"],
                workers=cfg["render"]["workers"],
                background=parse_hex_color(out["background"]),
                foreground=parse_hex_color(out["foreground"]),
                font_path=cfg.font_path,
            )
            if fmt is None:
                loops = args.loops if args.loops is not None else cfg["playback"]["loops"]
                with (sink or TerminalSink(hide_cursor=cfg["playback"]["hide_cursor"])) as s:
                    handler.play(img, s, loops)
                return 0
            count = handler.export_gif(img, path)
            print(f"{GENERATOR_NAME}: {count} frames saved to {path}")
            return 0

        if animated:
            # Other formats take the first frame.
            img.seek(0)
        ascii_art = map_image(img, config)

        if fmt is None:
            s = sink or TerminalSink(hide_cursor=False)
            s.write(ascii_art)
            s.flush()
            return 0

        fmt.save(ascii_art, config, path)
        print(f"ASCII Art saved to {path}")
        return 0
    except AsciiGenError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


def main():
    raise SystemExit(run())


if __name__ == "__main__":
    main()
