"""Tests for the settings file and the strict conversion config."""

import json
import math
import os

import pytest

from ascii_gen.config import DEFAULT_CONFIG, AsciiConfig, Config, parse_hex_color
from ascii_gen.errors import InvalidConfiguration


class TestAsciiConfigBuild:

    def test_defaults(self):
        cfg = AsciiConfig.build()
        assert (cfg.width, cfg.height, cfg.gamma) == (80, 0, 1.0)
        assert cfg.charset.kind == "default"
        assert not cfg.color and not cfg.invert

    def test_parses_strings(self):
        cfg = AsciiConfig.build(width="120", height=" 40 ", gamma="0.8")
        assert (cfg.width, cfg.height, cfg.gamma) == (120, 40, 0.8)

    @pytest.mark.parametrize("width", ["abc", "", "12.5", 0, -3, None, True])
    def test_bad_width(self, width):
        with pytest.raises(InvalidConfiguration):
            AsciiConfig.build(width=width)

    @pytest.mark.parametrize("height", ["x", -1])
    def test_bad_height(self, height):
        with pytest.raises(InvalidConfiguration):
            AsciiConfig.build(height=height)

    @pytest.mark.parametrize("gamma", ["0", "-1", "nan", "inf", "fast", None])
    def test_bad_gamma(self, gamma):
        with pytest.raises(InvalidConfiguration):
            AsciiConfig.build(gamma=gamma)

    def test_unknown_charset_rejected_even_with_custom(self):
        with pytest.raises(InvalidConfiguration):
            AsciiConfig.build(charset="fancy", custom="ab")

    def test_immutable(self):
        cfg = AsciiConfig.build()
        with pytest.raises(Exception):
            cfg.width = 10  # type: ignore[misc]
        assert cfg.replace(width=10).width == 10
        assert cfg.width == 80


class TestFromSettings:

    def test_overrides_win(self, tmp_path):
        settings = Config.load(str(tmp_path / "none.json"))
        settings["render"]["width"] = 50
        cfg = AsciiConfig.from_settings(settings, gamma="2.0", invert=True)
        assert cfg.width == 50
        assert cfg.gamma == 2.0
        assert cfg.invert

    def test_none_overrides_are_ignored(self, tmp_path):
        settings = Config.load(str(tmp_path / "none.json"))
        cfg = AsciiConfig.from_settings(settings, width=None, color=None)
        assert cfg.width == 80
        assert not cfg.color


class TestSettingsFile:

    def test_missing_file_gives_defaults_without_writing(self, tmp_path):
        path = tmp_path / "cfg.json"
        cfg = Config.load(str(path))
        assert cfg["render"]["width"] == 80
        assert not path.exists()

    def test_create_if_missing(self, tmp_path):
        path = tmp_path / "sub" / "cfg.json"
        Config.load(str(path), create_if_missing=True)
        assert json.loads(path.read_text())["render"]["gamma"] == 1.0

    def test_user_values_merged_and_coerced(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text(json.dumps({
            "render": {"width": "100", "gamma": 99, "charset": "bogus", "color": "yes"},
            "logging": {"level": "LOUD"},
        }))
        cfg = Config.load(str(path))
        assert cfg["render"]["width"] == 100
        assert cfg["render"]["gamma"] == 10.0
        assert cfg["render"]["charset"] == "default"
        assert cfg["render"]["color"] is True
        assert cfg["logging"]["level"] == "WARNING"
        assert cfg["output"]["font_size_gif"] == 16

    def test_corrupt_file_backed_up(self, tmp_path):
        path = tmp_path / "cfg.json"
        path.write_text("{not json")
        cfg = Config.load(str(path))
        assert cfg["render"]["width"] == 80
        assert os.path.exists(str(path) + ".corrupt.bak")

    def test_save_round_trip(self, tmp_path):
        path = tmp_path / "cfg.json"
        cfg = Config.load(str(path))
        cfg.update({"render": {"invert": True}, "playback": {"loops": 3}})
        cfg.save()
        again = Config.load(str(path))
        assert again["render"]["invert"] is True
        assert again["playback"]["loops"] == 3

    def test_defaults_never_mutated(self, tmp_path):
        before = json.dumps(DEFAULT_CONFIG, sort_keys=True)
        cfg = Config.load(str(tmp_path / "x.json"))
        cfg["render"]["width"] = 3
        cfg.update({"cache": {"max_bytes": 1}})
        assert json.dumps(DEFAULT_CONFIG, sort_keys=True) == before

    def test_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / "env.json"
        path.write_text(json.dumps({"render": {"width": 33}}))
        monkeypatch.setenv("ASCII_GEN_CONFIG", str(path))
        assert Config.load()["render"]["width"] == 33


class TestHexColor:

    def test_parse(self):
        assert parse_hex_color("#0C0C0C") == (12, 12, 12)
        assert parse_hex_color("cccccc") == (204, 204, 204)

    @pytest.mark.parametrize("value", ["#fff", "zzzzzz", None, 12])
    def test_reject(self, value):
        with pytest.raises(InvalidConfiguration):
            parse_hex_color(value)
