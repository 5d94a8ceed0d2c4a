"""Series + SeriesPool — ковзне вікно семплів зі статистикою.

Інваріанти:
  S0: чисті структури, NO I/O
  S1: average/min/max — рівно по `length` останніх семплах (full rescan)
  S2: length = min(pushes, capacity); після заповнення кожен push витісняє найстаріший
  S3: pool тільки росте; доступ — через write()/read() під RW-lock
  S4: write-секція, що впала, отруює pool → PoolPoisonedError назавжди
"""
from __future__ import annotations

import collections
import contextlib
import dataclasses
import math
import threading
from typing import Deque, Iterator, List, Optional, Sequence, Tuple

from ttydash.errors import PoolPoisonedError

DEFAULT_CAPACITY = 200

Stats = Tuple[float, float, float]  # (average, min, max)
_EMPTY_STATS: Stats = (0.0, math.inf, -math.inf)


def window_stats(values: Sequence[float]) -> Stats:
    """(average, min, max) по values; порожнє вікно → (0.0, +inf, -inf)."""
    if not values:
        return _EMPTY_STATS
    total = 0.0
    for v in values:
        total += v
    return total / len(values), min(values), max(values)


def _tail(values: Sequence[float], n: int) -> List[float]:
    if n <= 0:
        return []
    return list(values)[-n:]


@dataclasses.dataclass(frozen=True)
class SeriesSnapshot:
    """Незмінна копія Series на момент read-acquire."""

    values: Tuple[float, ...]   # від найстарішого до найновішого
    capacity: int
    unit: str
    average: float
    min: float
    max: float

    @property
    def length(self) -> int:
        return len(self.values)

    def tail(self, n: int) -> List[float]:
        return _tail(self.values, n)

    def window_stats(self, n: int) -> Stats:
        return window_stats(self.tail(n))


class Series:
    """Кільцевий буфер семплів фіксованої ємності."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, unit: str = "") -> None:
        if capacity < 1:
            raise ValueError("series capacity must be >= 1, got %r" % (capacity,))
        self._data: Deque[float] = collections.deque(maxlen=capacity)
        self.unit = unit
        self.average, self.min, self.max = _EMPTY_STATS

    @property
    def capacity(self) -> int:
        return self._data.maxlen or 0

    @property
    def length(self) -> int:
        return len(self._data)

    def push(self, value: float) -> None:
        """Додати семпл; non-finite приймається як є (відповідальність caller-а)."""
        self._data.append(value)
        self.average, self.min, self.max = window_stats(self._data)

    def values(self) -> List[float]:
        return list(self._data)

    def tail(self, n: int) -> List[float]:
        """n найновіших семплів, від старішого до новішого."""
        return _tail(self._data, n)

    def window_stats(self, n: int) -> Stats:
        return window_stats(self.tail(n))

    def snapshot(self) -> SeriesSnapshot:
        return SeriesSnapshot(
            values=tuple(self._data),
            capacity=self.capacity,
            unit=self.unit,
            average=self.average,
            min=self.min,
            max=self.max,
        )

    def __repr__(self) -> str:
        return "Series(capacity={0}, length={1}, unit={2!r})".format(
            self.capacity, self.length, self.unit)


# ---------------------------------------------------------------------------
# Reader-writer lock
# ---------------------------------------------------------------------------
class _RWLock:
    """RW-lock з пріоритетом writer-а (ingestion не голодує під частим render)."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()


class PoolWriter:
    """Write-view на pool; живе лише всередині SeriesPool.write()."""

    def __init__(self, series: List[Series], capacity: int) -> None:
        self._series = series
        self._capacity = capacity

    def __len__(self) -> int:
        return len(self._series)

    def slot(self, index: int) -> Series:
        """Series за індексом; pool росте до index включно."""
        if index < 0:
            raise IndexError("negative series slot %d" % index)
        while len(self._series) <= index:
            self._series.append(Series(self._capacity))
        return self._series[index]

    def grow(self, count: int) -> None:
        if count > 0:
            self.slot(count - 1)

    def push(self, index: int, value: float, unit: Optional[str] = None) -> None:
        series = self.slot(index)
        series.push(value)
        if unit is not None:
            series.unit = unit


class SeriesPool:
    """Впорядкована колекція Series, спільна для ingestion і render."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY, initial: int = 1) -> None:
        if capacity < 1:
            raise ValueError("series capacity must be >= 1, got %r" % (capacity,))
        self.capacity = capacity
        self._series: List[Series] = [Series(capacity) for _ in range(max(0, initial))]
        self._lock = _RWLock()
        self._poisoned = False

    @property
    def poisoned(self) -> bool:
        return self._poisoned

    def _check(self) -> None:
        if self._poisoned:
            raise PoolPoisonedError("series pool poisoned by a failed update")

    @contextlib.contextmanager
    def write(self) -> Iterator[PoolWriter]:
        """Ексклюзивний доступ на одне оновлення."""
        self._lock.acquire_write()
        try:
            self._check()
            try:
                yield PoolWriter(self._series, self.capacity)
            except BaseException:
                self._poisoned = True
                raise
        finally:
            self._lock.release_write()

    @contextlib.contextmanager
    def read(self) -> Iterator[Tuple[Series, ...]]:
        """Спільний доступ; не тримати під час I/O чи рендерингу."""
        self._lock.acquire_read()
        try:
            self._check()
            yield tuple(self._series)
        finally:
            self._lock.release_read()

    def snapshot(self) -> List[SeriesSnapshot]:
        """Консистентний знімок усіх Series за одне read-acquire."""
        with self.read() as series:
            return [s.snapshot() for s in series]

    def __len__(self) -> int:
        with self.read() as series:
            return len(series)
