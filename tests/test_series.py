"""
tests/test_series.py — Series, SeriesSnapshot, SeriesPool (RW-lock + poisoning).
"""
from __future__ import annotations

import math
import random
import threading
import unittest

from ttydash.core.series import Series, SeriesPool, window_stats
from ttydash.errors import PoolPoisonedError


def _naive(values):
    total = 0.0
    for v in values:
        total += v
    return total / len(values), min(values), max(values)


class TestSeries(unittest.TestCase):
    def test_scenario_four_pushes(self) -> None:
        s = Series(capacity=4)
        for v in [5, 3, 8, 1]:
            s.push(v)
        self.assertEqual(s.length, 4)
        self.assertEqual(s.average, 4.25)
        self.assertEqual(s.min, 1)
        self.assertEqual(s.max, 8)

    def test_empty_series_stats(self) -> None:
        s = Series(capacity=3)
        self.assertEqual(s.length, 0)
        self.assertEqual(s.average, 0.0)
        self.assertEqual(s.min, math.inf)
        self.assertEqual(s.max, -math.inf)
        self.assertEqual(s.tail(5), [])

    def test_length_grows_then_saturates(self) -> None:
        cap = 5
        s = Series(capacity=cap)
        prev = 0
        for i in range(12):
            s.push(float(i))
            self.assertEqual(s.length, min(prev + 1, cap))
            prev = s.length

    def test_eviction_drops_oldest(self) -> None:
        s = Series(capacity=3)
        for v in [10, 20, 30, 40]:
            s.push(v)
        self.assertEqual(s.values(), [20, 30, 40])
        self.assertEqual(s.min, 20)
        self.assertEqual(s.max, 40)
        self.assertEqual(s.average, 30)

    def test_stats_match_window_for_random_pushes(self) -> None:
        rng = random.Random(42)
        cap = 7
        s = Series(capacity=cap)
        pushed = []
        for _ in range(50):
            v = rng.uniform(-100, 100)
            s.push(v)
            pushed.append(v)
            window = pushed[-cap:]
            avg, mn, mx = _naive(window)
            self.assertEqual(s.average, avg)
            self.assertEqual(s.min, mn)
            self.assertEqual(s.max, mx)

    def test_tail_and_window_stats(self) -> None:
        s = Series(capacity=10)
        for v in [1, 2, 3, 4, 5]:
            s.push(v)
        self.assertEqual(s.tail(2), [4, 5])
        self.assertEqual(s.tail(100), [1, 2, 3, 4, 5])
        self.assertEqual(s.window_stats(2), (4.5, 4, 5))

    def test_non_finite_is_accepted(self) -> None:
        s = Series(capacity=3)
        s.push(1.0)
        s.push(math.inf)
        self.assertEqual(s.length, 2)
        self.assertEqual(s.max, math.inf)
        self.assertEqual(s.average, math.inf)

    def test_invalid_capacity(self) -> None:
        with self.assertRaises(ValueError):
            Series(capacity=0)

    def test_snapshot_is_detached(self) -> None:
        s = Series(capacity=3, unit="ms")
        s.push(1.0)
        snap = s.snapshot()
        s.push(2.0)
        self.assertEqual(snap.values, (1.0,))
        self.assertEqual(snap.unit, "ms")
        self.assertEqual(snap.length, 1)

    def test_window_stats_empty(self) -> None:
        self.assertEqual(window_stats([]), (0.0, math.inf, -math.inf))


class TestSeriesPool(unittest.TestCase):
    def test_initial_single_series(self) -> None:
        pool = SeriesPool(capacity=10)
        self.assertEqual(len(pool), 1)

    def test_write_grows_to_highest_slot(self) -> None:
        pool = SeriesPool(capacity=10)
        with pool.write() as w:
            w.push(3, 1.5, "ms")
        snaps = pool.snapshot()
        self.assertEqual(len(snaps), 4)
        self.assertEqual(snaps[3].values, (1.5,))
        self.assertEqual(snaps[3].unit, "ms")
        self.assertEqual(snaps[0].length, 0)
        self.assertEqual(snaps[3].capacity, 10)

    def test_pool_never_shrinks(self) -> None:
        pool = SeriesPool(capacity=10)
        with pool.write() as w:
            w.grow(5)
        with pool.write() as w:
            w.grow(2)
        self.assertEqual(len(pool), 5)

    def test_failed_write_poisons_pool(self) -> None:
        pool = SeriesPool(capacity=10)
        with self.assertRaises(RuntimeError):
            with pool.write() as w:
                w.push(0, 1.0)
                raise RuntimeError("boom")
        self.assertTrue(pool.poisoned)
        with self.assertRaises(PoolPoisonedError):
            pool.snapshot()
        with self.assertRaises(PoolPoisonedError):
            with pool.write():
                pass

    def test_concurrent_writers_and_readers(self) -> None:
        pool = SeriesPool(capacity=1000)
        n_writes = 200

        def writer(slot: int) -> None:
            for i in range(n_writes):
                with pool.write() as w:
                    w.push(slot, float(i))

        def reader(out: list) -> None:
            for _ in range(100):
                out.append(len(pool.snapshot()))

        seen: list = []
        threads = [threading.Thread(target=writer, args=(s,)) for s in range(3)]
        threads.append(threading.Thread(target=reader, args=(seen,)))
        for t in threads:
            t.start()
        for t in threads:
            t.join(10)

        snaps = pool.snapshot()
        self.assertEqual(len(snaps), 3)
        for snap in snaps:
            self.assertEqual(snap.length, n_writes)
        self.assertTrue(all(1 <= n <= 3 for n in seen))

    def test_snapshot_never_sees_partial_update(self) -> None:
        pool = SeriesPool(capacity=50)
        with pool.write() as w:
            w.grow(2)
        done = threading.Event()
        torn: list = []

        def writer() -> None:
            for i in range(500):
                with pool.write() as w:
                    w.push(0, float(i))
                    w.push(1, float(i))
            done.set()

        def reader() -> None:
            while not done.is_set():
                snaps = pool.snapshot()
                if snaps[0].values != snaps[1].values:
                    torn.append((snaps[0].values, snaps[1].values))

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(10)

        self.assertEqual(torn, [])
        snaps = pool.snapshot()
        self.assertEqual(snaps[0].values, snaps[1].values)
        self.assertEqual(snaps[0].values[-1], 499.0)
