#!/usr/bin/env python3
# ascii_gen/config.py
"""
Settings file and conversion config for ASCII Art Generator.

Two layers:
- Config: the user's JSON settings file, deep-merged over defaults and
  coerced to sane values (a broken file never blocks startup).
- AsciiConfig: the immutable value passed into every conversion stage. It is
  built from settings plus command-line overrides and validated strictly;
  bad values raise InvalidConfiguration instead of being coerced.

Usage:
    from ascii_gen.config import Config, AsciiConfig
    cfg = Config.load()
    acfg = AsciiConfig.from_settings(cfg, width="120", gamma="0.8")
"""

from __future__ import annotations

import json
import math
import os
import platform
import shutil
import tempfile
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from ascii_gen.errors import InvalidConfiguration
from ascii_gen.rendering.charset import (
    BUILTIN_RAMPS,
    DEFAULT_CHARSET,
    Charset,
    custom_charset,
    named_charset,
)

# ----------------------------
# Defaults
# ----------------------------

DEFAULT_CONFIG: Dict[str, Any] = {
    "render": {
        "width": 80,
        "height": 0,                      # 0 = derive from aspect ratio
        "gamma": 1.0,
        "charset": DEFAULT_CHARSET,       # simple | default
        "custom_charset": None,           # overrides charset when set
        "color": False,
        "invert": False,
        "workers": None,                  # GIF render pool; None = min(8, cpus)
    },
    "output": {
        "font_size_image": 32,
        "font_size_gif": 16,
        "background": "#0c0c0c",
        "foreground": "#cccccc",
    },
    "playback": {
        "loops": None,                    # None = until interrupted
        "hide_cursor": True,
    },
    "font": {
        "path": None,                     # None = Pillow's bundled font
    },
    "network": {
        "user_agent": "ascii-gen/0.3 (+https://example.invalid)",
        "connect_timeout_s": 5.0,
        "read_timeout_s": 15.0,
        "retries": 2,
        "pool_size": 4,
    },
    "cache": {
        "dir": None,                      # auto if None: OS cache dir
        "max_bytes": 64 * 1024 * 1024,
        "prune_watermark": 0.85,
    },
    "logging": {
        "level": "WARNING",
        "http_debug": False,
        "file": None,
        "rotate_bytes": 5 * 1024 * 1024,
        "rotate_keep": 3,
    },
}

# ----------------------------
# Helpers
# ----------------------------

def _os_config_home() -> str:
    """Return per-OS config base directory."""
    if platform.system() == "Windows":
        base = os.environ.get("APPDATA") or os.path.expanduser("~\\AppData\\Roaming")
        return os.path.join(base, "AsciiGen")
    if platform.system() == "Darwin":
        return os.path.join(os.path.expanduser("~/Library/Application Support"), "AsciiGen")
    return os.path.join(os.path.expanduser("~/.config"), "ascii_gen")

def _os_cache_home() -> str:
    """Return per-OS cache base directory."""
    if platform.system() == "Windows":
        base = os.environ.get("LOCALAPPDATA") or os.path.expanduser("~\\AppData\\Local")
        return os.path.join(base, "AsciiGen", "Cache")
    if platform.system() == "Darwin":
        return os.path.join(os.path.expanduser("~/Library/Caches"), "AsciiGen")
    return os.path.join(os.path.expanduser("~/.cache"), "ascii_gen")

def _default_config_path() -> str:
    """Resolve default config path, honoring ASCII_GEN_CONFIG env override."""
    env = os.environ.get("ASCII_GEN_CONFIG")
    if env:
        return os.path.expanduser(env)
    return os.path.join(_os_config_home(), "ascii_gen.json")

def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Return deep-merged copy of dicts: values in b override a."""
    out = dict(a)
    for k, v in b.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out

def atomic_write_bytes(path: str, data: bytes) -> None:
    """Write `data` to `path` via a temp file in the same directory."""
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".tmp_out_", dir=directory)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise

def _atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    text = json.dumps(data, indent=2, sort_keys=True) + "\n"
    atomic_write_bytes(path, text.encode("utf-8"))

def _coerce_num(v: Any, default: float, minmax: Optional[Tuple[float, float]] = None) -> float:
    try:
        x = float(v)
        if minmax:
            lo, hi = minmax
            if x < lo: x = lo
            if x > hi: x = hi
        return x
    except (TypeError, ValueError):
        return float(default)

def _coerce_int(v: Any, default: int, minmax: Optional[Tuple[int, int]] = None) -> int:
    try:
        x = int(v)
        if minmax:
            lo, hi = minmax
            if x < lo: x = lo
            if x > hi: x = hi
        return x
    except (TypeError, ValueError):
        return int(default)

def _coerce_bool(v: Any, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("1", "true", "yes", "on"): return True
        if s in ("0", "false", "no", "off"): return False
    return default

def _coerce_hex(v: Any, default: str) -> str:
    try:
        parse_hex_color(v)
        return str(v).lower()
    except InvalidConfiguration:
        return default

def parse_hex_color(value: Any) -> Tuple[int, int, int]:
    """'#rrggbb' -> (r, g, b)."""
    s = str(value or "").strip().lstrip("#")
    if len(s) != 6:
        raise InvalidConfiguration(f"Invalid color value: {value!r}")
    try:
        return int(s[0:2], 16), int(s[2:4], 16), int(s[4:6], 16)
    except ValueError:
        raise InvalidConfiguration(f"Invalid color value: {value!r}") from None

# ----------------------------
# Validation
# ----------------------------

def _validate(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Return validated copy with fallbacks applied."""
    c = _deep_merge(json.loads(json.dumps(DEFAULT_CONFIG)), cfg or {})
    d = DEFAULT_CONFIG

    # render
    r = c["render"]
    r["width"]  = _coerce_int(r.get("width"), d["render"]["width"], (1, 2000))
    r["height"] = _coerce_int(r.get("height"), d["render"]["height"], (0, 2000))
    r["gamma"]  = _coerce_num(r.get("gamma"), d["render"]["gamma"], (0.05, 10.0))
    if str(r.get("charset") or "").lower() not in BUILTIN_RAMPS:
        r["charset"] = d["render"]["charset"]
    cc = r.get("custom_charset")
    r["custom_charset"] = str(cc) if cc else None
    r["color"]  = _coerce_bool(r.get("color"), d["render"]["color"])
    r["invert"] = _coerce_bool(r.get("invert"), d["render"]["invert"])
    w = r.get("workers")
    r["workers"] = _coerce_int(w, 1, (1, 64)) if w is not None else None

    # output
    o = c["output"]
    o["font_size_image"] = _coerce_int(o.get("font_size_image"), 32, (4, 256))
    o["font_size_gif"]   = _coerce_int(o.get("font_size_gif"), 16, (4, 256))
    o["background"] = _coerce_hex(o.get("background"), d["output"]["background"])
    o["foreground"] = _coerce_hex(o.get("foreground"), d["output"]["foreground"])

    # playback
    p = c["playback"]
    loops = p.get("loops")
    p["loops"] = _coerce_int(loops, 1, (0, 1_000_000)) if loops is not None else None
    p["hide_cursor"] = _coerce_bool(p.get("hide_cursor"), d["playback"]["hide_cursor"])

    # font
    f = c["font"]
    fp = f.get("path")
    f["path"] = os.path.expanduser(str(fp)) if fp else None

    # network
    n = c["network"]
    n["user_agent"] = str(n.get("user_agent") or d["network"]["user_agent"])
    n["connect_timeout_s"] = _coerce_num(n.get("connect_timeout_s"), 5.0, (0.2, 60.0))
    n["read_timeout_s"]    = _coerce_num(n.get("read_timeout_s"), 15.0, (0.5, 120.0))
    n["retries"]           = _coerce_int(n.get("retries"), 2, (0, 10))
    n["pool_size"]         = _coerce_int(n.get("pool_size"), 4, (1, 32))

    # cache
    ca = c["cache"]
    ca["dir"] = ca.get("dir") or os.path.join(_os_cache_home(), "sources")
    ca["max_bytes"] = int(max(1024 * 1024, _coerce_int(ca.get("max_bytes"), d["cache"]["max_bytes"])))
    ca["prune_watermark"] = min(0.99, max(0.50, _coerce_num(ca.get("prune_watermark"), 0.85)))

    # logging
    lg = c["logging"]
    if lg.get("level") not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"):
        lg["level"] = d["logging"]["level"]
    lg["http_debug"] = _coerce_bool(lg.get("http_debug"), d["logging"]["http_debug"])
    lf = lg.get("file")
    lg["file"] = str(lf) if lf else None
    lg["rotate_bytes"] = _coerce_int(lg.get("rotate_bytes"), d["logging"]["rotate_bytes"], (256 * 1024, 50 * 1024 * 1024))
    lg["rotate_keep"]  = _coerce_int(lg.get("rotate_keep"), d["logging"]["rotate_keep"], (0, 50))

    return c

# ----------------------------
# Settings file
# ----------------------------

@dataclass
class Config:
    """Thin wrapper around a nested dict with load/save/merge."""
    data: Dict[str, Any] = field(default_factory=lambda: _validate({}))
    path: str = field(default_factory=_default_config_path)

    def __getitem__(self, k: str) -> Any:
        return self.data[k]

    def __setitem__(self, k: str, v: Any) -> None:
        self.data[k] = v

    def get(self, k: str, default: Any = None) -> Any:
        return self.data.get(k, default)

    @classmethod
    def load(cls, path: Optional[str] = None, create_if_missing: bool = False) -> "Config":
        cfg_path = os.path.expanduser(path) if path else _default_config_path()
        if not os.path.exists(cfg_path):
            cfg = _validate({})
            if create_if_missing:
                _atomic_write_json(cfg_path, cfg)
            return cls(cfg, cfg_path)

        try:
            with open(cfg_path, "r", encoding="utf-8") as f:
                user_cfg = json.load(f)
            if not isinstance(user_cfg, dict):
                raise ValueError("top-level JSON value must be an object")
        except (OSError, ValueError):
            # Corrupt file. Keep a backup and fall back to defaults.
            try:
                shutil.copyfile(cfg_path, cfg_path + ".corrupt.bak")
            except OSError:
                pass
            user_cfg = {}

        return cls(_validate(user_cfg), cfg_path)

    def save(self) -> None:
        """Persist to JSON atomically."""
        self.data = _validate(self.data)
        _atomic_write_json(self.path, self.data)

    def update(self, partial: Dict[str, Any]) -> None:
        """Deep-merge a partial config then validate."""
        self.data = _validate(_deep_merge(self.data, partial))

    @property
    def cache_dir(self) -> str:
        return self.data["cache"]["dir"]

    @property
    def font_path(self) -> Optional[str]:
        return self.data["font"]["path"]

# ----------------------------
# Conversion config
# ----------------------------

def _strict_int(name: str, value: Any, minimum: int) -> int:
    if isinstance(value, bool):
        raise InvalidConfiguration(f"Invalid {name} value: {value!r}")
    try:
        x = int(str(value).strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"Invalid {name} value: {value!r}") from None
    if isinstance(value, float) and value != x:
        raise InvalidConfiguration(f"Invalid {name} value: {value!r}")
    if x < minimum:
        raise InvalidConfiguration(f"{name} must be >= {minimum}, got {x}")
    return x

def _strict_gamma(value: Any) -> float:
    try:
        g = float(value)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"Invalid gamma value: {value!r}") from None
    if not math.isfinite(g) or g <= 0:
        raise InvalidConfiguration(f"gamma must be a positive number, got {value!r}")
    return g


@dataclass(frozen=True)
class AsciiConfig:
    width: int = 80
    height: int = 0
    gamma: float = 1.0
    charset: Charset = field(default_factory=lambda: named_charset(DEFAULT_CHARSET))
    color: bool = False
    invert: bool = False

    @classmethod
    def build(
        cls,
        width: Any = 80,
        height: Any = 0,
        gamma: Any = 1.0,
        charset: Optional[str] = None,
        custom: Optional[str] = None,
        color: bool = False,
        invert: bool = False,
        font_path: Optional[str] = None,
    ) -> "AsciiConfig":
        """Validate raw values (strings allowed) into a config.

        A non-empty `custom` string wins over the named `charset`; the named
        charset is still checked so a typo never passes silently.
        """
        w = _strict_int("width", width, 1)
        h = _strict_int("height", 0 if height is None else height, 0)
        g = _strict_gamma(gamma)
        named = named_charset(charset)
        chosen = custom_charset(custom, font_path=font_path) if custom else named
        return cls(w, h, g, chosen, bool(color), bool(invert))

    @classmethod
    def from_settings(cls, cfg: Config, **overrides: Any) -> "AsciiConfig":
        """Build from the settings file's render section, with overrides on top."""
        r = dict(cfg["render"])
        for key, value in overrides.items():
            if value is not None:
                r[key] = value
        return cls.build(
            width=r.get("width"),
            height=r.get("height"),
            gamma=r.get("gamma"),
            charset=r.get("charset"),
            custom=r.get("custom_charset"),
            color=r.get("color", False),
            invert=r.get("invert", False),
            font_path=cfg.font_path,
        )

    def replace(self, **changes: Any) -> "AsciiConfig":
        return replace(self, **changes)

    @property
    def charset_string(self) -> str:
        return self.charset.glyphs


__all__ = [
    "Config",
    "AsciiConfig",
    "DEFAULT_CONFIG",
    "atomic_write_bytes",
    "parse_hex_color",
    "_default_config_path",
]
