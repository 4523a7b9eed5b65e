#!/usr/bin/env python3
# ascii_gen/animation.py
"""
Animated GIF pipeline.

- decode & convert: every source frame becomes a FrameRecord holding its
  text and its original delay in milliseconds.
- play: frames are written to a sink, each after clearing the previous one,
  paced by wall-clock sleeps.
- export: texts are rendered back to bitmaps on a thread pool. Each worker
  writes into its own slot of a list pre-sized to the frame count, so the
  encoder sees frames in source order whatever order the workers finish in.
"""

from __future__ import annotations

import io
import itertools
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from PIL import Image, ImageSequence

from ascii_gen.config import AsciiConfig, atomic_write_bytes
from ascii_gen.errors import DecodeFailure, EncodeFailure
from ascii_gen.rendering.mapper import AsciiMapper
from ascii_gen.rendering.projector import (
    DEFAULT_BACKGROUND,
    DEFAULT_FOREGROUND,
    AsciiImageRenderer,
)

log = logging.getLogger(__name__)

__all__ = [
    "FrameRecord",
    "GifAsciiHandler",
    "decode_frames",
    "encode_gif",
    "format_duration",
]


@dataclass
class FrameRecord:
    index: int
    image: Optional[Image.Image]
    delay_ms: int
    text: str = ""


Source = Union[Image.Image, Sequence[FrameRecord]]


def decode_frames(img: Image.Image) -> List[FrameRecord]:
    """Split an (animated) image into RGB frames with their delays."""
    frames: List[FrameRecord] = []
    try:
        for i, frame in enumerate(ImageSequence.Iterator(img)):
            delay = int(round(float(frame.info.get("duration", 0) or 0)))
            frames.append(FrameRecord(i, frame.convert("RGB"), delay))
    except (OSError, ValueError, EOFError) as exc:
        raise DecodeFailure(f"Failed to decode frame {len(frames)}: {exc}") from exc
    if not frames:
        raise DecodeFailure("Source contains no frames")
    return frames


def _to_palette(bitmap: Image.Image) -> Image.Image:
    if bitmap.mode == "P":
        return bitmap.copy()
    return bitmap.convert("RGB").convert("P", palette=Image.Palette.ADAPTIVE, colors=256)


def _same_frame(a: Image.Image, b: Image.Image) -> bool:
    return a.size == b.size and a.getpalette() == b.getpalette() and a.tobytes() == b.tobytes()


def _nudge(frame: Image.Image) -> Image.Image:
    """Shift the top-left pixel by one red level."""
    frame = frame.copy()
    palette = frame.getpalette() or []
    index = frame.getpixel((0, 0))
    r, g, b = palette[index * 3:index * 3 + 3]
    count = len(palette) // 3
    if count < 256:
        frame.putpalette(palette + [r + 1 if r < 255 else r - 1, g, b])
        frame.putpixel((0, 0), count)
    else:
        frame.putpixel((0, 0), index + 1 if index < 255 else index - 1)
    return frame


def _distinct_frames(bitmaps: Sequence[Image.Image]) -> List[Image.Image]:
    """
    Palette frames where no frame equals the one before it.
    Pillow's GIF writer folds a repeated frame into its predecessor and adds
    the durations, which would change both the frame count and the delays.
    """
    frames: List[Image.Image] = []
    for bitmap in bitmaps:
        frame = _to_palette(bitmap)
        if frames and _same_frame(frame, frames[-1]):
            frame = _nudge(frame)
        frames.append(frame)
    return frames


def encode_gif(bitmaps: Sequence[Image.Image], delays: Sequence[int]) -> bytes:
    """Encode an infinitely looping GIF with one duration per bitmap."""
    if not bitmaps:
        raise EncodeFailure("No frames to encode")
    if len(bitmaps) != len(delays):
        raise EncodeFailure(f"{len(bitmaps)} frames but {len(delays)} delays")
    buf = io.BytesIO()
    first, *rest = _distinct_frames(bitmaps)
    try:
        first.save(
            buf,
            format="GIF",
            save_all=True,
            append_images=rest,
            duration=list(delays),
            loop=0,
        )
    except (OSError, ValueError) as exc:
        raise EncodeFailure(f"GIF encoding failed: {exc}") from exc
    return buf.getvalue()


def format_duration(seconds: float) -> str:
    if seconds >= 60:
        minutes, rest = divmod(seconds, 60)
        return f"{int(minutes)}m{rest:.2f}s" if rest >= 0.001 else f"{int(minutes)}m"
    if seconds >= 1:
        return f"{seconds:.2f}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:.2f}ms"
    if seconds >= 1e-6:
        return f"{int(seconds * 1e6)}μs"
    return f"{int(seconds * 1e9)}ns"


def _default_workers() -> int:
    return min(8, os.cpu_count() or 1)


class GifAsciiHandler:
    """Converts, plays and re-encodes animations with one config."""

    def __init__(
        self,
        config: AsciiConfig,
        font_size: int = 16,
        workers: Optional[int] = None,
        background: Tuple[int, int, int] = DEFAULT_BACKGROUND,
        foreground: Tuple[int, int, int] = DEFAULT_FOREGROUND,
        font_path: Optional[str] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.font_size = font_size
        self.workers = workers or _default_workers()
        self.background = background
        self.foreground = foreground
        self.font_path = font_path
        self._sleep = sleep

    # ----------------------
    # Decode & convert
    # ----------------------

    def convert(self, img: Image.Image) -> List[FrameRecord]:
        mapper = AsciiMapper(self.config)
        frames = decode_frames(img)
        for frame in frames:
            frame.text = mapper.image_to_ascii(frame.image)
        log.debug("converted %d frames", len(frames))
        return frames

    def gif_to_ascii(self, source: Source) -> Tuple[List[str], List[int]]:
        frames = self._frames(source)
        return [f.text for f in frames], [f.delay_ms for f in frames]

    def _frames(self, source: Source) -> List[FrameRecord]:
        if isinstance(source, Image.Image):
            return self.convert(source)
        return list(source)

    # ----------------------
    # Live playback
    # ----------------------

    def play(self, source: Source, sink, loops: Optional[int] = None) -> None:
        """Show every frame on `sink`; loops=None repeats until interrupted."""
        frames = self._frames(source)
        rounds = itertools.count() if loops is None else range(loops)
        for _ in rounds:
            for frame in frames:
                sink.clear()
                sink.write(frame.text)
                sink.flush()
                self._sleep(frame.delay_ms / 1000.0)

    # ----------------------
    # Re-encode
    # ----------------------

    def renderer(self) -> AsciiImageRenderer:
        return AsciiImageRenderer(
            self.config,
            self.font_size,
            background=self.background,
            foreground=self.foreground,
            font_path=self.font_path,
        )

    def render_frames(self, frames: Sequence[FrameRecord]) -> List[Image.Image]:
        """Render every frame's text to a bitmap, in frame order."""
        renderer = self.renderer()
        total = len(frames)
        bitmaps: List[Optional[Image.Image]] = [None] * total

        def render_one(i: int) -> None:
            bitmaps[i] = renderer.render(frames[i].text)

        t0 = time.perf_counter()
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = {pool.submit(render_one, i): i for i in range(total)}
            for done, fut in enumerate(as_completed(futures), 1):
                try:
                    fut.result()
                except Exception as exc:
                    for other in futures:
                        other.cancel()
                    raise EncodeFailure(f"Failed to convert frame {futures[fut]} to image: {exc}") from exc
                log.info("Render Frame %d/%d succeed in %s", done, total,
                         format_duration(time.perf_counter() - t0))

        log.info("Rendering finished in %s", format_duration(time.perf_counter() - t0))
        return bitmaps  # type: ignore[return-value]

    def export_gif(self, source: Source, output_path: str) -> int:
        """Write the re-rendered animation to `output_path`. Returns the frame count."""
        frames = self._frames(source)
        log.info("Total Frames: %d", len(frames))
        bitmaps = self.render_frames(frames)
        data = encode_gif(bitmaps, [f.delay_ms for f in frames])
        try:
            atomic_write_bytes(output_path, data)
        except OSError as exc:
            raise EncodeFailure(f"Failed to write {output_path}: {exc}") from exc
        return len(frames)
