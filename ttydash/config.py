"""Єдиний завантажувач конфігурації ttydash.

Пріоритет (від нижчого до вищого):
  1) дефолти DashConfig
  2) JSON-файл (--config або ENV ``TTYDASH_CONFIG``, дефолт <config_dir>/config.json)
  3) ENV ``TTYDASH_*`` (після python-dotenv: .env з поточного каталогу)
  4) CLI-прапорці

Результат — незмінний DashConfig; валідація тут, ДО старту ingestion.
Іменовані regex-патерни (add/remove/list) — PatternStore у <config_dir>/patterns.json.
"""
from __future__ import annotations

import dataclasses
import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from dotenv import load_dotenv

from ttydash.core.grid import LAYOUT_AUTO, LAYOUT_MODES
from ttydash.core.series import DEFAULT_CAPACITY
from ttydash.errors import ConfigError, PatternStoreError
from ttydash.ingest import DEFAULT_UPDATE_INTERVAL_MS

APP_NAME = "ttydash"
_ENV_PREFIX = "TTYDASH_"


@dataclasses.dataclass(frozen=True)
class DashConfig:
    """Провалідована конфігурація одного запуску."""

    tick_rate: float = 4.0
    frame_rate: float = 60.0
    titles: Tuple[str, ...] = ()
    units: Tuple[str, ...] = ()
    indices: Tuple[int, ...] = ()
    update_frequency_ms: int = DEFAULT_UPDATE_INTERVAL_MS
    layout: str = LAYOUT_AUTO
    capacity: int = DEFAULT_CAPACITY
    max_value: Optional[float] = None
    bar_width: int = 1
    bar_gap: int = 0
    group_gap: int = 0
    log_file: Optional[str] = None
    verbose: bool = False

    def title_for(self, index: int) -> str:
        if index < len(self.titles):
            return self.titles[index]
        return "Chart {0}".format(index + 1)


# ---------------------------------------------------------------------------
# Directories / ENV
# ---------------------------------------------------------------------------
def env_str(key: str) -> Optional[str]:
    """Зчитує ENV-змінну, очищає пробіли, повертає None якщо порожньо."""
    value = os.environ.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def config_dir() -> Path:
    raw = env_str(_ENV_PREFIX + "CONFIG_DIR")
    if raw:
        return Path(raw).expanduser()
    base = env_str("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base).expanduser() / APP_NAME


def data_dir() -> Path:
    raw = env_str(_ENV_PREFIX + "DATA_DIR")
    if raw:
        return Path(raw).expanduser()
    base = env_str("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base).expanduser() / APP_NAME


def load_env_profile(dotenv_path: Optional[str] = None, override: bool = False) -> bool:
    """Підвантажити .env (python-dotenv). Значення не логуються."""
    if dotenv_path is not None:
        return bool(load_dotenv(dotenv_path=dotenv_path, override=override))
    candidate = Path.cwd() / ".env"
    if not candidate.exists():
        return False
    return bool(load_dotenv(dotenv_path=str(candidate), override=override))


def load_config_file(path: Optional[str] = None) -> Dict[str, Any]:
    """JSON-конфіг як dict.

    Явно заданий шлях, якого нема, або битий JSON → ConfigError.
    Дефолтний шлях, якого нема → {}.
    """
    explicit = path or env_str(_ENV_PREFIX + "CONFIG")
    target = Path(explicit).expanduser() if explicit else config_dir() / "config.json"
    if not target.exists():
        if explicit:
            raise ConfigError("config file not found: {0}".format(target))
        return {}
    try:
        with open(target, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        raise ConfigError("cannot read config {0}: {1}".format(target, exc)) from exc
    if not isinstance(data, dict):
        raise ConfigError("config {0} must be a JSON object".format(target))
    return data


# ENV ключ → (поле, тип)
_ENV_FIELDS = {
    "TICK_RATE": ("tick_rate", float),
    "FRAME_RATE": ("frame_rate", float),
    "UPDATE_FREQUENCY": ("update_frequency_ms", int),
    "LAYOUT": ("layout", str),
    "CAPACITY": ("capacity", int),
    "MAX": ("max_value", float),
    "BAR_WIDTH": ("bar_width", int),
    "BAR_GAP": ("bar_gap", int),
    "GROUP_GAP": ("group_gap", int),
    "LOG_FILE": ("log_file", str),
    "UNITS": ("units", "list"),
    "TITLES": ("titles", "list"),
    "INDICES": ("indices", "intlist"),
}

# JSON-ключі приймаються як у CLI (update_frequency) так і за іменем поля
_FILE_ALIASES = {
    "update_frequency": "update_frequency_ms",
    "max": "max_value",
}


def _env_overrides() -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for suffix, (field, kind) in _ENV_FIELDS.items():
        raw = env_str(_ENV_PREFIX + suffix)
        if raw is None:
            continue
        try:
            if kind == "list":
                out[field] = [p.strip() for p in raw.split(",") if p.strip()]
            elif kind == "intlist":
                out[field] = [int(p) for p in raw.split(",") if p.strip()]
            else:
                out[field] = kind(raw)
        except ValueError as exc:
            raise ConfigError("bad {0}{1}={2!r}: {3}".format(
                _ENV_PREFIX, suffix, raw, exc)) from exc
    return out


def _file_overrides(data: Mapping[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in dataclasses.fields(DashConfig)}
    out: Dict[str, Any] = {}
    for key, value in data.items():
        field = _FILE_ALIASES.get(key, key)
        if field in names:
            out[field] = value
    return out


def _cli_overrides(args: Any) -> Dict[str, Any]:
    mapping = {
        "tick_rate": "tick_rate",
        "frame_rate": "frame_rate",
        "titles": "titles",
        "units": "units",
        "indices": "indices",
        "update_frequency": "update_frequency_ms",
        "layout": "layout",
        "capacity": "capacity",
        "max": "max_value",
        "bar_width": "bar_width",
        "bar_gap": "bar_gap",
        "group_gap": "group_gap",
        "log_file": "log_file",
        "verbose": "verbose",
    }
    out: Dict[str, Any] = {}
    for attr, field in mapping.items():
        value = getattr(args, attr, None)
        if value is None or value is False:
            continue
        out[field] = value
    return out


def validate(cfg: DashConfig) -> DashConfig:
    if cfg.layout not in LAYOUT_MODES:
        raise ConfigError("unknown layout {0!r}, expected one of {1}".format(
            cfg.layout, ", ".join(LAYOUT_MODES)))
    if cfg.capacity < 1:
        raise ConfigError("capacity must be >= 1, got {0}".format(cfg.capacity))
    if cfg.update_frequency_ms < 0:
        raise ConfigError("update frequency must be >= 0 ms, got {0}".format(
            cfg.update_frequency_ms))
    if cfg.tick_rate <= 0 or cfg.frame_rate <= 0:
        raise ConfigError("tick/frame rate must be > 0")
    if cfg.bar_width < 0 or cfg.bar_gap < 0 or cfg.group_gap < 0:
        raise ConfigError("bar width and gaps must be >= 0")
    if any(i < 1 for i in cfg.indices):
        raise ConfigError("column indices are 1-based, got {0}".format(list(cfg.indices)))
    if cfg.max_value is not None and cfg.max_value <= 0:
        raise ConfigError("max must be > 0, got {0}".format(cfg.max_value))
    return cfg


def _as_list(key: str, value: Any) -> list:
    """Скаляр (напр. "units": "ms" у JSON) → один елемент, а не список символів."""
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        return [value]
    raise ConfigError("{0} must be a list, got {1!r}".format(key, value))


def build_config(args: Any = None, file_data: Optional[Mapping[str, Any]] = None) -> DashConfig:
    """Зібрати DashConfig: дефолти → файл → ENV → CLI."""
    merged: Dict[str, Any] = {}
    if file_data:
        merged.update(_file_overrides(file_data))
    merged.update(_env_overrides())
    if args is not None:
        merged.update(_cli_overrides(args))

    for key in ("titles", "units", "indices"):
        if key in merged:
            merged[key] = _as_list(key, merged[key])
    for key in ("titles", "units"):
        if key in merged:
            merged[key] = tuple(str(v) for v in merged[key])
    try:
        if "indices" in merged:
            merged["indices"] = tuple(int(v) for v in merged["indices"])
        for key in ("capacity", "update_frequency_ms", "bar_width", "bar_gap", "group_gap"):
            if key in merged:
                merged[key] = int(merged[key])
        for key in ("tick_rate", "frame_rate"):
            if key in merged:
                merged[key] = float(merged[key])
        if merged.get("max_value") is not None:
            merged["max_value"] = float(merged["max_value"])
    except (TypeError, ValueError) as exc:
        raise ConfigError("invalid config value: {0}".format(exc)) from exc
    if "layout" in merged:
        merged["layout"] = str(merged["layout"]).lower()
    return validate(DashConfig(**merged))


# ---------------------------------------------------------------------------
# Named patterns (add / remove / list)
# ---------------------------------------------------------------------------
class PatternStore:
    """JSON-файл {name: regex}; regex валідується при додаванні."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path if path is not None else config_dir() / "patterns.json"

    def load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as exc:
            raise PatternStoreError("cannot read {0}: {1}".format(self.path, exc)) from exc
        if not isinstance(data, dict):
            raise PatternStoreError("{0} must be a JSON object".format(self.path))
        return {str(k): str(v) for k, v in data.items()}

    def _save(self, patterns: Mapping[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(dict(sorted(patterns.items())), f, ensure_ascii=False, indent=2)
        os.replace(tmp, self.path)

    def add(self, name: str, regex: str) -> None:
        name = name.strip()
        if not name:
            raise PatternStoreError("pattern name must not be empty")
        try:
            re.compile(regex)
        except re.error as exc:
            raise PatternStoreError("invalid regex {0!r}: {1}".format(regex, exc)) from exc
        patterns = self.load()
        patterns[name] = regex
        self._save(patterns)

    def remove(self, name: str) -> bool:
        patterns = self.load()
        if name not in patterns:
            return False
        del patterns[name]
        self._save(patterns)
        return True

    def items(self):
        return sorted(self.load().items())
