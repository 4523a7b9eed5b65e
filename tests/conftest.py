"""Shared fixtures: synthetic images, GIF builder, fake terminal sink."""

from typing import List, Sequence, Tuple

import pytest
from PIL import Image


class FakeSink:
    """Records every sink call in order."""

    def __init__(self):
        self.events: List[Tuple[str, str]] = []

    def clear(self):
        self.events.append(("clear", ""))

    def write(self, text):
        self.events.append(("write", text))

    def flush(self):
        self.events.append(("flush", ""))

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return None

    @property
    def writes(self) -> List[str]:
        return [text for kind, text in self.events if kind == "write"]


@pytest.fixture
def sink():
    return FakeSink()


@pytest.fixture
def solid():
    def make(color=(255, 255, 255), size=(2, 2), mode="RGB"):
        return Image.new(mode, size, color)
    return make


@pytest.fixture
def make_gif(tmp_path):
    def make(colors: Sequence[Tuple[int, int, int]], delays: Sequence[int], size=(8, 8), name="anim.gif"):
        frames = [Image.new("RGB", size, c) for c in colors]
        path = tmp_path / name
        frames[0].save(
            path,
            save_all=True,
            append_images=frames[1:],
            duration=list(delays),
            loop=0,
        )
        return path
    return make


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Never read or write the real user settings file."""
    monkeypatch.setenv("ASCII_GEN_CONFIG", str(tmp_path / "settings" / "ascii_gen.json"))
