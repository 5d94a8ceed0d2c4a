"""
tests/test_ingest.py — UnitRouter, ColumnRouter, Ingestor поверх StringIO.
"""
from __future__ import annotations

import io
import unittest

import pytest

from ttydash.core.series import SeriesPool
from ttydash.errors import ConfigError, PoolPoisonedError
from ttydash.ingest import (
    ColumnRouter,
    Ingestor,
    UnitRouter,
    apply_samples,
    make_router,
    open_text_input,
    parse_numbers,
)


class TestUnitRouter:
    def test_unit_value_goes_to_unit_slot(self):
        router = UnitRouter(["ms"])
        assert router.route("Response: 42.5 ms, cpu 10%") == [(0, 42.5, "ms")]

    def test_slot_follows_unit_position(self):
        router = UnitRouter(["MB", "ms"])
        assert router.route("took 12ms") == [(1, 12.0, "ms")]
        assert router.route("rss 300 MB, took 7 ms") == [(0, 300.0, "MB"), (1, 7.0, "ms")]

    def test_case_insensitive(self):
        router = UnitRouter(["ms"])
        assert router.route("latency 12 MS") == [(0, 12.0, "ms")]

    def test_first_match_per_unit(self):
        router = UnitRouter(["ms"])
        assert router.route("1 ms 2 ms 3 ms") == [(0, 1.0, "ms")]

    def test_word_boundary_required(self):
        router = UnitRouter(["ms"])
        assert router.route("12msec") == []
        assert router.route("x12 ms") == []

    def test_no_match_is_noop(self):
        assert UnitRouter(["ms"]).route("hello world") == []

    @pytest.mark.parametrize("units", [[], [""], ["  "], ["("], ["ms", "[a-"]])
    def test_invalid_units_rejected(self, units):
        with pytest.raises(ConfigError):
            UnitRouter(units)


class TestColumnRouter:
    def test_all_values_positional(self):
        router = ColumnRouter()
        assert router.route("1 foo 2.5 -3") == [(0, 1.0, None), (1, 2.5, None), (2, -3.0, None)]

    def test_selected_columns(self):
        router = ColumnRouter([3, 1])
        assert router.route("10 20 30") == [(0, 30.0, None), (1, 10.0, None)]

    def test_columns_count_numeric_tokens_only(self):
        router = ColumnRouter([2])
        assert router.route("cpu 5 mem 7") == [(0, 7.0, None)]

    def test_out_of_range_column_shifts_later_values(self):
        router = ColumnRouter([5, 1])
        assert router.route("10 20") == [(0, 10.0, None)]

    def test_no_numbers(self):
        assert ColumnRouter([1]).route("nothing here") == []
        assert ColumnRouter().route("") == []

    def test_empty_indices_means_all(self):
        assert ColumnRouter([]).indices is None

    def test_zero_index_rejected(self):
        with pytest.raises(ConfigError):
            ColumnRouter([0, 2])

    def test_parse_numbers(self):
        assert parse_numbers("1e3 nan? 4 x") == [1000.0, 4.0]


def test_make_router_prefers_units():
    assert isinstance(make_router(["ms"], [1]), UnitRouter)
    assert isinstance(make_router([], [1]), ColumnRouter)
    assert isinstance(make_router(None, None), ColumnRouter)


class TestIngestor(unittest.TestCase):
    def test_reads_until_eof(self) -> None:
        pool = SeriesPool(capacity=10)
        stream = io.StringIO("1 2\nfoo\n3\n")
        ing = Ingestor(pool, ColumnRouter(), stream, interval_ms=0)
        ing.run()

        self.assertTrue(ing.eof)
        self.assertIsNone(ing.error)
        self.assertEqual(ing.lines_read, 3)
        self.assertEqual(ing.samples_total, 3)
        snaps = pool.snapshot()
        self.assertEqual(snaps[0].values, (1.0, 3.0))
        self.assertEqual(snaps[1].values, (2.0,))

    def test_unit_mode_stores_unit(self) -> None:
        pool = SeriesPool(capacity=10)
        stream = io.StringIO("Response: 42.5 ms, cpu 10%\n")
        Ingestor(pool, UnitRouter(["ms"]), stream, interval_ms=0).run()
        snap = pool.snapshot()[0]
        self.assertEqual(snap.values, (42.5,))
        self.assertEqual(snap.unit, "ms")

    def test_stop_before_run_reads_nothing(self) -> None:
        pool = SeriesPool(capacity=10)
        ing = Ingestor(pool, ColumnRouter(), io.StringIO("1\n2\n"), interval_ms=0)
        ing.stop()
        self.assertTrue(ing.stopped)
        ing.run()
        self.assertEqual(ing.lines_read, 0)
        self.assertFalse(ing.eof)

    def test_thread_start_and_join(self) -> None:
        pool = SeriesPool(capacity=10)
        ing = Ingestor(pool, ColumnRouter(), io.StringIO("5\n6\n"), interval_ms=0)
        ing.start()
        ing.join(5)
        self.assertFalse(ing.is_alive())
        self.assertEqual(pool.snapshot()[0].values, (5.0, 6.0))

    def test_poisoned_pool_stored_as_error(self) -> None:
        pool = SeriesPool(capacity=10)
        with self.assertRaises(RuntimeError):
            with pool.write():
                raise RuntimeError("boom")
        ing = Ingestor(pool, ColumnRouter(), io.StringIO("1\n"), interval_ms=0)
        ing.run()
        self.assertIsInstance(ing.error, PoolPoisonedError)

    def test_invalid_utf8_line_is_skipped(self) -> None:
        pool = SeriesPool(capacity=10)
        source = io.TextIOWrapper(io.BytesIO(b"1\n\xff\xfe 2\n3\n"),
                                  encoding="utf-8", errors="strict")
        ing = Ingestor(pool, ColumnRouter(), open_text_input(source), interval_ms=0)
        ing.run()

        self.assertIsNone(ing.error)
        self.assertTrue(ing.eof)
        self.assertEqual(ing.lines_read, 3)
        # битий токен відкинуто, "2" з того ж рядка лишається
        self.assertEqual(pool.snapshot()[0].values, (1.0, 2.0, 3.0))

    def test_text_stream_without_buffer_kept(self) -> None:
        stream = io.StringIO("1\n")
        self.assertIs(open_text_input(stream), stream)

    def test_apply_samples_empty(self) -> None:
        pool = SeriesPool(capacity=10)
        self.assertEqual(apply_samples(pool, []), 0)
        self.assertEqual(len(pool), 1)
