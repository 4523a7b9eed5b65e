"""End-to-end tests for the command line."""

import pytest
from PIL import Image

from ascii_gen.cli import build_parser, run


@pytest.fixture
def settings(tmp_path):
    return str(tmp_path / "settings.json")


@pytest.fixture
def white_png(tmp_path):
    path = tmp_path / "white.png"
    Image.new("RGB", (4, 4), (255, 255, 255)).save(path)
    return str(path)


class TestStillImages:

    def test_prints_to_sink(self, white_png, settings, sink):
        assert run(["-i", white_png, "-w", "2", "-c", "simple", "--config", settings], sink=sink) == 0
        assert sink.writes == ["@@\n@@\n"]

    def test_invert_and_custom_charset(self, white_png, settings, sink):
        run(["-i", white_png, "-w", "2", "--custom-charset", "#. ", "--config", settings], sink=sink)
        run(["-i", white_png, "-w", "2", "--custom-charset", "#. ", "--invert", "--config", settings], sink=sink)
        assert sink.writes == ["##\n##\n", "  \n  \n"]

    def test_saves_txt(self, white_png, settings, tmp_path, capsys):
        out = tmp_path / "art"
        assert run(["-i", white_png, "-o", str(out), "-w", "3", "--config", settings]) == 0
        saved = tmp_path / "art.txt"
        assert saved.read_text(encoding="utf-8").startswith("$$$\n$$$\n$$$\n\n---")
        assert f"ASCII Art saved to {saved}" in capsys.readouterr().out

    def test_saves_png(self, white_png, settings, tmp_path):
        out = tmp_path / "art.png"
        assert run(["-i", white_png, "-o", str(out), "-w", "2", "--config", settings]) == 0
        with Image.open(out) as img:
            assert img.format == "PNG"

    def test_settings_file_supplies_defaults(self, white_png, tmp_path, sink):
        path = tmp_path / "custom.json"
        path.write_text('{"render": {"width": 3, "charset": "simple"}}')
        assert run(["-i", white_png, "--config", str(path)], sink=sink) == 0
        assert sink.writes == ["@@@\n@@@\n@@@\n"]

    def test_explicit_charset_beats_settings_custom(self, white_png, tmp_path, sink):
        path = tmp_path / "custom.json"
        path.write_text('{"render": {"custom_charset": "ab"}}')
        run(["-i", white_png, "-w", "1", "-c", "simple", "--config", str(path)], sink=sink)
        assert sink.writes == ["@\n"]


class TestErrors:

    def test_invalid_width(self, white_png, settings, capsys):
        assert run(["-i", white_png, "-w", "abc", "--config", settings]) == 1
        assert "error: Invalid width" in capsys.readouterr().err

    def test_invalid_charset(self, white_png, settings, capsys):
        assert run(["-i", white_png, "-c", "fancy", "--config", settings]) == 1
        assert "fancy" in capsys.readouterr().err

    def test_unsupported_extension(self, tmp_path, settings, capsys):
        # Checked before the input is opened.
        assert run(["-i", str(tmp_path / "missing.png"), "-o", "out.bmp", "--config", settings]) == 1
        assert ".bmp" in capsys.readouterr().err

    def test_missing_input(self, tmp_path, settings, capsys):
        assert run(["-i", str(tmp_path / "missing.png"), "--config", settings]) == 1
        assert "not found" in capsys.readouterr().err

    def test_undecodable_input(self, tmp_path, settings, capsys):
        bad = tmp_path / "bad.png"
        bad.write_bytes(b"definitely not an image")
        assert run(["-i", str(bad), "--config", settings]) == 1
        assert "error:" in capsys.readouterr().err

    def test_input_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestAnimations:

    def test_plays_in_terminal(self, make_gif, settings, sink):
        path = make_gif([(0, 0, 0), (255, 255, 255)], [20, 20])
        assert run(["-i", str(path), "-w", "2", "--loops", "1", "--config", settings], sink=sink) == 0
        assert sink.writes == ["  \n  \n", "$$\n$$\n"]

    def test_exports_gif(self, make_gif, settings, tmp_path, capsys):
        path = make_gif([(0, 0, 0), (255, 255, 255), (128, 128, 128)], [40, 60, 80])
        out = tmp_path / "out.gif"
        assert run(["-i", str(path), "-o", str(out), "-w", "3", "--config", settings]) == 0
        assert "3 frames saved to" in capsys.readouterr().out
        with Image.open(out) as img:
            assert img.n_frames == 3

    def test_still_format_takes_first_frame(self, make_gif, settings, tmp_path):
        path = make_gif([(255, 255, 255), (0, 0, 0)], [20, 20])
        out = tmp_path / "first.txt"
        assert run(["-i", str(path), "-o", str(out), "-w", "2", "--config", settings]) == 0
        assert out.read_text(encoding="utf-8").startswith("$$\n$$\n\n")
