#!/usr/bin/env python3
# ascii_gen/cache.py
"""
Download cache for remote input images.

Features:
- SHA1-named cache files so the same URL is fetched once.
- Thread-safe disk read/write.
- Automatic retry on transient HTTP statuses using urllib3 Retry.
- Size-bounded pruning, oldest files first.
"""

from __future__ import annotations

import hashlib
import logging
import os
import threading
from pathlib import Path
from typing import List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ascii_gen.config import atomic_write_bytes
from ascii_gen.errors import DecodeFailure

log = logging.getLogger(__name__)

__all__ = ["SourceCache", "is_remote"]


def is_remote(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _cache_name(url: str) -> str:
    """Deterministic file name for a URL, keeping its extension when it has one."""
    h = hashlib.sha1(url.encode("utf-8")).hexdigest()
    ext = os.path.splitext(url.split("?", 1)[0])[1].lower()
    if not ext or len(ext) > 6:
        ext = ".bin"
    return h + ext


class SourceCache:
    """
    Persistent cache of downloaded source images.
    Safe for multi-reader use.
    """

    def __init__(
        self,
        cache_dir: Path,
        user_agent: str,
        connect_timeout: float = 5.0,
        read_timeout: float = 15.0,
        retries: int = 2,
        pool_size: int = 4,
        session: Optional[requests.Session] = None,
    ):
        self.root_dir = Path(cache_dir)
        self.timeout: Tuple[float, float] = (connect_timeout, read_timeout)

        if session is None:
            session = requests.Session()
            retry = Retry(
                total=retries,
                connect=retries,
                read=retries,
                backoff_factor=0.3,
                status_forcelist=(429, 500, 502, 503, 504),
                allowed_methods=frozenset(["GET"]),
            )
            adapter = HTTPAdapter(max_retries=retry, pool_connections=pool_size, pool_maxsize=pool_size)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        session.headers["User-Agent"] = user_agent
        self.session = session

        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, cfg) -> "SourceCache":
        n = cfg["network"]
        return cls(
            Path(cfg["cache"]["dir"]),
            n["user_agent"],
            connect_timeout=n["connect_timeout_s"],
            read_timeout=n["read_timeout_s"],
            retries=n["retries"],
            pool_size=n["pool_size"],
        )

    def path_for(self, url: str) -> Path:
        return self.root_dir / _cache_name(url)

    def fetch(self, url: str) -> Path:
        """Return a local path holding the bytes behind `url`."""
        p = self.path_for(url)
        with self._lock:
            if p.exists() and p.stat().st_size > 0:
                log.debug("cache hit %s -> %s", url, p)
                return p

        log.info("downloading %s", url)
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as exc:
            raise DecodeFailure(f"Failed to download {url}: {exc}") from exc
        if not r.content:
            raise DecodeFailure(f"Empty response from {url}")

        with self._lock:
            self.root_dir.mkdir(parents=True, exist_ok=True)
            atomic_write_bytes(str(p), r.content)
        return p

    def prune(self, max_bytes: int, watermark: float = 0.85) -> int:
        """
        Delete oldest files if cache exceeds max_bytes.
        Returns the number of files removed.
        """
        if not self.root_dir.is_dir():
            return 0
        total = 0
        files: List[Path] = []
        for p in self.root_dir.iterdir():
            if p.is_file() and not p.name.startswith(".tmp_"):
                total += p.stat().st_size
                files.append(p)
        if total <= max_bytes:
            return 0

        files.sort(key=lambda p: p.stat().st_mtime)
        target = int(max_bytes * watermark)
        removed = 0
        with self._lock:
            for f in files:
                if total <= target:
                    break
                try:
                    s = f.stat().st_size
                    f.unlink()
                except OSError as exc:
                    log.warning("could not prune %s: %s", f, exc)
                    continue
                total -= s
                removed += 1
        return removed
