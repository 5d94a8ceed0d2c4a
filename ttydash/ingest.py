"""Ingest — рядки stdin → семпли → SeriesPool.

Два взаємовиключні режими (обираються один раз при старті):
  - UnitRouter:   "42.5 ms" → slot за позицією unit у списку, unit пишеться в Series
  - ColumnRouter: whitespace-токени → float; або задані колонки (1-based),
                  або всі значення позиційно (pool росте)

Рядок без збігів — тихий no-op. Невалідна конфігурація → ConfigError
при конструюванні, ДО старту потоку.

Потік Ingestor: wait(interval) → readline() → route → write-lock → push.
Зупинка кооперативна (stop_event); заблокований readline() на stdin,
що більше нічого не дає, затримує вихід потоку до закриття входу.
"""
from __future__ import annotations

import io
import logging
import re
import sys
import threading
from typing import IO, List, Optional, Sequence, Tuple

from ttydash.core.series import SeriesPool
from ttydash.errors import ConfigError, TtydashError

_log = logging.getLogger(__name__)

Sample = Tuple[int, float, Optional[str]]  # (slot, value, unit)

DEFAULT_UPDATE_INTERVAL_MS = 1000

# unit є фрагментом regex (як у CLI), тому патерн може бути невалідним
_UNIT_PATTERN = r"(?i)\b(\d+(\.\d+)?)\s*{unit}\b"


class UnitRouter:
    """Unit-tag режим: одне число на кожен налаштований unit."""

    def __init__(self, units: Sequence[str]) -> None:
        if not units:
            raise ConfigError("unit router requires at least one unit")
        self.units = [str(u) for u in units]
        self._patterns: List["re.Pattern[str]"] = []
        for unit in self.units:
            if not unit.strip():
                raise ConfigError("empty unit label")
            try:
                self._patterns.append(re.compile(_UNIT_PATTERN.format(unit=unit)))
            except re.error as exc:
                raise ConfigError("invalid unit pattern {0!r}: {1}".format(unit, exc)) from exc

    def route(self, line: str) -> List[Sample]:
        out: List[Sample] = []
        for slot, (unit, pattern) in enumerate(zip(self.units, self._patterns)):
            m = pattern.search(line)
            if m is None:
                continue
            try:
                value = float(m.group(1))
            except ValueError:
                value = 0.0
            out.append((slot, value, unit))
        return out


def parse_numbers(line: str) -> List[float]:
    """Whitespace-токени, що парсяться як float; решта ігнорується."""
    values: List[float] = []
    for token in line.split():
        try:
            values.append(float(token))
        except ValueError:
            continue
    return values


class ColumnRouter:
    """Позиційний режим: задані колонки або всі значення по порядку."""

    def __init__(self, indices: Optional[Sequence[int]] = None) -> None:
        if indices is not None:
            indices = [int(i) for i in indices]
            bad = [i for i in indices if i < 1]
            if bad:
                raise ConfigError("column indices are 1-based, got {0}".format(bad))
            if not indices:
                indices = None
        self.indices = indices

    def route(self, line: str) -> List[Sample]:
        values = parse_numbers(line)
        if not values:
            return []
        if self.indices is None:
            return [(slot, value, None) for slot, value in enumerate(values)]
        # колонки поза межами рядка пропускаються, наступні зсуваються на вільний slot
        picked = [values[i - 1] for i in self.indices if i - 1 < len(values)]
        return [(slot, value, None) for slot, value in enumerate(picked)]


def make_router(units: Optional[Sequence[str]] = None,
                indices: Optional[Sequence[int]] = None):
    """Units мають пріоритет над колонками."""
    if units:
        router = UnitRouter(units)
        _log.info("ROUTER_READY mode=units units=%s", router.units)
        return router
    router = ColumnRouter(indices)
    _log.info("ROUTER_READY mode=columns indices=%s", router.indices or "all")
    return router


def open_text_input(stream: IO[str]) -> IO[str]:
    """Текстовий потік, який не падає на невалідному UTF-8.

    Биті байти стають U+FFFD, тож рядок просто не парситься як число.
    Потоки без .buffer (StringIO) повертаються як є.
    """
    raw = getattr(stream, "buffer", None)
    if raw is None:
        return stream
    return io.TextIOWrapper(raw, encoding="utf-8", errors="replace")


def apply_samples(pool: SeriesPool, samples: Sequence[Sample]) -> int:
    """Записати семпли в pool за одне write-acquire."""
    if not samples:
        return 0
    with pool.write() as writer:
        for slot, value, unit in samples:
            writer.push(slot, value, unit)
    return len(samples)


class Ingestor:
    """Фоновий потік читання stdin з фіксованим інтервалом."""

    def __init__(self, pool: SeriesPool, router, stream: Optional[IO[str]] = None,
                 interval_ms: int = DEFAULT_UPDATE_INTERVAL_MS) -> None:
        self._pool = pool
        self._router = router
        self._stream = stream if stream is not None else open_text_input(sys.stdin)
        self._interval_s = max(0, interval_ms) / 1000.0
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.lines_read = 0
        self.samples_total = 0
        self.eof = False
        self.error: Optional[BaseException] = None

    def ingest_line(self, line: str) -> int:
        samples = self._router.route(line)
        if not samples:
            _log.debug("INGEST_SKIP no numeric match line=%r", line[:80])
            return 0
        n = apply_samples(self._pool, samples)
        self.samples_total += n
        return n

    def run(self) -> None:
        _log.info("INGEST_START interval_ms=%d", int(self._interval_s * 1000))
        try:
            while not self._stop_event.is_set():
                # wait() повертає True при stop → вихід без читання
                if self._stop_event.wait(self._interval_s):
                    break
                line = self._stream.readline()
                if not line:
                    self.eof = True
                    _log.info("INGEST_EOF lines=%d samples=%d",
                              self.lines_read, self.samples_total)
                    break
                self.lines_read += 1
                self.ingest_line(line)
        except TtydashError as exc:
            self.error = exc
            _log.error("INGEST_FATAL err=%s", exc)
        except Exception as exc:
            self.error = exc
            _log.exception("INGEST_CRASH err=%s", exc)
        _log.info("INGEST_STOP lines=%d samples=%d", self.lines_read, self.samples_total)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self.run, name="ttydash-ingest", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
