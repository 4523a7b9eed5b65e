#!/usr/bin/env python3
# ascii_gen/logging_conf.py
"""
Central logging setup for ASCII Art Generator.
Supports console and optional rotating file logs.
"""

import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from ascii_gen.config import Config

FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def setup_logging(cfg: Config, level_override: Optional[str] = None) -> None:
    level_name = (level_override or cfg["logging"].get("level", "WARNING")).upper()
    level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(level=level, format=FORMAT)

    log_file = cfg["logging"].get("file")
    if log_file:
        handler = RotatingFileHandler(
            log_file,
            maxBytes=int(cfg["logging"].get("rotate_bytes", 5 * 1024 * 1024)),
            backupCount=int(cfg["logging"].get("rotate_keep", 3)),
            encoding="utf-8",
        )
        handler.setFormatter(logging.Formatter(FORMAT))
        logging.getLogger().addHandler(handler)

    if cfg["logging"].get("http_debug"):
        logging.getLogger("urllib3").setLevel(logging.DEBUG)
        logging.getLogger("requests").setLevel(logging.DEBUG)

    # PIL logs every chunk it parses at DEBUG.
    logging.getLogger("PIL").setLevel(max(level, logging.INFO))
