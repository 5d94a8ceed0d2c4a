"""Налаштування логування.

Термінал зайнятий TUI, тому логи йдуть у файл
(--log-file / ENV ``TTYDASH_LOG_FILE`` / <data_dir>/ttydash.log).
Рівень: -v → DEBUG, інакше ENV ``TTYDASH_LOG_LEVEL`` або INFO.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ttydash.config import data_dir, env_str

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def resolve_log_path(log_file: Optional[str] = None) -> Path:
    raw = log_file or env_str("TTYDASH_LOG_FILE")
    if raw:
        return Path(raw).expanduser()
    return data_dir() / "ttydash.log"


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> Path:
    """Один раз на процес; повертає шлях до лог-файлу."""
    if verbose:
        level = logging.DEBUG
    else:
        level_name = (env_str("TTYDASH_LOG_LEVEL") or "INFO").upper()
        level = getattr(logging, level_name, logging.INFO)
        if not isinstance(level, int):
            level = logging.INFO
    path = resolve_log_path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        filename=str(path),
        filemode="w",
        encoding="utf-8",
    )
    return path
