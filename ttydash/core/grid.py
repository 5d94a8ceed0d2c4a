"""Grid layout — автоматичне розбиття області на панелі.

Інваріанти:
  G0: чиста функція (n, mode, area) → [Rect], NO I/O
  G1: len(cells) == n; клітинки не перетинаються і не виходять за area
  G2: auto + просте n > 2 → рядок-залишок на всю ширину (згори) + сітка rows×cols == n-1
  G3: пошук дільника строго спадний, перший знайдений виграє (фіксує aspect ratio)
  G4: частки — цілі відсотки; останній сегмент забирає залишок округлення
"""
from __future__ import annotations

from typing import List, Sequence, Tuple

from ttydash.core.buffer import Rect

LAYOUT_HORIZONTAL = "horizontal"
LAYOUT_VERTICAL = "vertical"
LAYOUT_AUTO = "auto"
LAYOUT_MODES = (LAYOUT_HORIZONTAL, LAYOUT_VERTICAL, LAYOUT_AUTO)


def is_prime(n: int) -> bool:
    if n < 2:
        return False
    if n < 4:
        return True
    if n % 2 == 0:
        return False
    i = 3
    while i * i <= n:
        if n % i == 0:
            return False
        i += 2
    return True


def descending_divisor(n: int, start: int) -> int:
    """Перший i від start вниз до 2 такий, що n % i == 0; інакше 1."""
    for i in range(start, 1, -1):
        if n % i == 0:
            return i
    return 1


def grid_shape(n: int, mode: str = LAYOUT_AUTO) -> Tuple[int, int, int]:
    """Форма сітки для n панелей: (remainder_rows, rows, columns).

    remainder_rows = 1 лише для auto з простим n > 2.
    """
    if mode not in LAYOUT_MODES:
        raise ValueError("unknown layout mode %r" % (mode,))
    if n <= 0:
        return 0, 0, 0
    if mode == LAYOUT_HORIZONTAL:
        return 0, 1, n
    if mode == LAYOUT_VERTICAL:
        return 0, n, 1

    if n > 2 and is_prime(n):
        sub = n - 1
        if sub == 1:
            rows, cols = 1, 1
        elif sub == 2:
            rows, cols = 1, 2
        else:
            rows = descending_divisor(sub, n - 2)
            cols = sub // rows
        return 1, rows, cols

    rows = descending_divisor(n, n - 1)
    return 0, rows, n // rows


def split_extent(offset: int, total: int, percents: Sequence[int]) -> List[Tuple[int, int]]:
    """Розбити [offset, offset+total) на сегменти за цілими відсотками.

    Повертає [(start, size), ...]; останній сегмент добирає залишок.
    """
    if not percents:
        return []
    total = max(0, total)
    sizes = [total * p // 100 for p in percents[:-1]]
    used = sum(sizes)
    if used > total:
        sizes = [min(s, total) for s in sizes]
        used = min(used, total)
    sizes.append(max(0, total - used))

    out: List[Tuple[int, int]] = []
    pos = offset
    for size in sizes:
        size = min(size, offset + total - pos)
        out.append((pos, size))
        pos += size
    return out


def _equal_percents(count: int) -> List[int]:
    return [100 // count] * count


def split_panes(n: int, mode: str, area: Rect) -> List[Rect]:
    """Клітинки для n панелей у порядку індексів Series.

    Порядок: клітинка рядка-залишку (якщо є), далі сітка row-major.
    """
    remainder, rows, cols = grid_shape(n, mode)
    if n <= 0:
        return []
    if n == 1:
        return [area]

    total_rows = remainder + rows
    row_extents = split_extent(area.y, area.height, _equal_percents(total_rows))
    col_extents = split_extent(area.x, area.width, _equal_percents(cols))

    cells: List[Rect] = []
    if remainder:
        y, h = row_extents[0]
        cells.append(Rect(area.x, y, area.width, h))
    for y, h in row_extents[remainder:]:
        for x, w in col_extents:
            cells.append(Rect(x, y, w, h))
    return cells
