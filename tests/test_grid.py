"""tests/test_grid.py

Тести для ttydash/core/grid.py: форма сітки, рядок-залишок для простих n,
покриття області без перетинів.
"""
from __future__ import annotations

import pytest

from ttydash.core.buffer import Rect
from ttydash.core.grid import (
    LAYOUT_AUTO,
    LAYOUT_HORIZONTAL,
    LAYOUT_VERTICAL,
    descending_divisor,
    grid_shape,
    is_prime,
    split_extent,
    split_panes,
)

AREA = Rect(0, 0, 120, 40)


class TestGridShape:
    """grid_shape: (remainder, rows, cols)."""

    def test_prime_seven_has_remainder_and_3x2(self):
        assert grid_shape(7, LAYOUT_AUTO) == (1, 3, 2)

    @pytest.mark.parametrize("n,expected", [
        (1, (0, 1, 1)),
        (2, (0, 1, 2)),
        (3, (1, 1, 2)),
        (4, (0, 2, 2)),
        (5, (1, 2, 2)),
        (6, (0, 3, 2)),
        (8, (0, 4, 2)),
        (9, (0, 3, 3)),
        (11, (1, 5, 2)),
        (12, (0, 6, 2)),
        (13, (1, 6, 2)),
    ])
    def test_auto_shapes(self, n, expected):
        assert grid_shape(n, LAYOUT_AUTO) == expected

    def test_horizontal_and_vertical(self):
        assert grid_shape(5, LAYOUT_HORIZONTAL) == (0, 1, 5)
        assert grid_shape(5, LAYOUT_VERTICAL) == (0, 5, 1)

    def test_zero_panes(self):
        assert grid_shape(0, LAYOUT_AUTO) == (0, 0, 0)

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            grid_shape(3, "diagonal")

    def test_descending_divisor_first_hit_wins(self):
        # 12: 11,10,9,8,7 не ділять, 6 перший
        assert descending_divisor(12, 11) == 6
        assert descending_divisor(7, 6) == 1

    def test_is_prime(self):
        assert [n for n in range(20) if is_prime(n)] == [2, 3, 5, 7, 11, 13, 17, 19]


class TestSplitPanes:
    def test_zero_panes_no_cells(self):
        assert split_panes(0, LAYOUT_AUTO, AREA) == []

    def test_single_pane_is_whole_area(self):
        assert split_panes(1, LAYOUT_AUTO, AREA) == [AREA]

    @pytest.mark.parametrize("mode", [LAYOUT_AUTO, LAYOUT_HORIZONTAL, LAYOUT_VERTICAL])
    @pytest.mark.parametrize("n", list(range(1, 26)))
    def test_cells_count_no_overlap_within_area(self, mode, n):
        cells = split_panes(n, mode, AREA)
        assert len(cells) == n
        for c in cells:
            assert c.left >= AREA.left and c.right <= AREA.right
            assert c.top >= AREA.top and c.bottom <= AREA.bottom
        for i, a in enumerate(cells):
            for b in cells[i + 1:]:
                assert not a.intersects(b)

    @pytest.mark.parametrize("n", [2, 4, 6, 8, 9, 12])
    def test_auto_non_prime_covers_area(self, n):
        cells = split_panes(n, LAYOUT_AUTO, AREA)
        assert sum(c.area for c in cells) == AREA.area

    @pytest.mark.parametrize("n", [3, 5, 7, 11, 13, 17])
    def test_prime_remainder_row(self, n):
        cells = split_panes(n, LAYOUT_AUTO, AREA)
        _, rows, cols = grid_shape(n, LAYOUT_AUTO)
        full_width = [c for c in cells if c.width == AREA.width]
        assert len(full_width) == 1
        assert cells[0] is full_width[0]
        assert cells[0].top == AREA.top
        assert rows * cols == n - 1
        assert len(cells[1:]) == n - 1

    def test_seven_panes_layout(self):
        cells = split_panes(7, LAYOUT_AUTO, Rect(0, 0, 100, 40))
        # 4 рядки по 25%: залишок + 3 рядки по 2 колонки
        assert cells[0] == Rect(0, 0, 100, 10)
        assert cells[1] == Rect(0, 10, 50, 10)
        assert cells[2] == Rect(50, 10, 50, 10)
        assert cells[6] == Rect(50, 30, 50, 10)

    def test_horizontal_equal_columns(self):
        cells = split_panes(3, LAYOUT_HORIZONTAL, Rect(0, 0, 100, 10))
        assert [c.width for c in cells] == [33, 33, 34]
        assert all(c.height == 10 for c in cells)

    def test_vertical_equal_rows(self):
        cells = split_panes(4, LAYOUT_VERTICAL, Rect(2, 3, 10, 40))
        assert [c.y for c in cells] == [3, 13, 23, 33]
        assert all(c.x == 2 and c.width == 10 for c in cells)

    def test_tiny_area_degenerate_cells(self):
        cells = split_panes(4, LAYOUT_HORIZONTAL, Rect(0, 0, 2, 1))
        assert len(cells) == 4
        assert sum(c.width for c in cells) == 2


class TestSplitExtent:
    def test_last_segment_absorbs_remainder(self):
        assert split_extent(0, 10, [33, 33, 33]) == [(0, 3), (3, 3), (6, 4)]

    def test_empty(self):
        assert split_extent(0, 10, []) == []
