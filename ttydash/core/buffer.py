"""Символьний буфер кадру + прямокутники.

Інваріанти:
  B0: чисті структури, NO I/O
  B1: запис за межами буфера ігнорується (клiпінг), не помилка
  B2: стиль клітинки — rich Style; set_style патчить, а не замінює
"""
from __future__ import annotations

import dataclasses
from typing import Iterable, List, Optional, Tuple

from rich.style import Style
from rich.text import Text

_NULL_STYLE = Style.null()


@dataclasses.dataclass(frozen=True)
class Rect:
    """Прямокутник у клітинках термінала: (x, y, width, height)."""

    x: int
    y: int
    width: int
    height: int

    @property
    def left(self) -> int:
        return self.x

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def top(self) -> int:
        return self.y

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def inner(self, margin: int = 1) -> "Rect":
        """Внутрішній прямокутник з відступом margin з усіх боків."""
        width = max(0, self.width - 2 * margin)
        height = max(0, self.height - 2 * margin)
        return Rect(self.x + margin, self.y + margin, width, height)

    def rows(self) -> Iterable[int]:
        return range(self.top, self.bottom)

    def intersects(self, other: "Rect") -> bool:
        return (self.left < other.right and other.left < self.right
                and self.top < other.bottom and other.top < self.bottom)


def patch_style(base: Optional[Style], over: Optional[Style]) -> Style:
    """Накласти over поверх base (None = нічого не змінювати)."""
    if base is None:
        base = _NULL_STYLE
    if over is None:
        return base
    return base + over


class CharBuffer:
    """Сітка клітинок (symbol, style) розміру area."""

    def __init__(self, area: Rect) -> None:
        self.area = area
        self._symbols: List[List[str]] = [
            [" "] * area.width for _ in range(area.height)]
        self._styles: List[List[Style]] = [
            [_NULL_STYLE] * area.width for _ in range(area.height)]

    def _index(self, x: int, y: int) -> Optional[Tuple[int, int]]:
        col = x - self.area.x
        row = y - self.area.y
        if 0 <= col < self.area.width and 0 <= row < self.area.height:
            return col, row
        return None

    def symbol(self, x: int, y: int) -> str:
        idx = self._index(x, y)
        if idx is None:
            raise IndexError("cell ({0}, {1}) outside buffer".format(x, y))
        return self._symbols[idx[1]][idx[0]]

    def style(self, x: int, y: int) -> Style:
        idx = self._index(x, y)
        if idx is None:
            raise IndexError("cell ({0}, {1}) outside buffer".format(x, y))
        return self._styles[idx[1]][idx[0]]

    def set_symbol(self, x: int, y: int, symbol: str,
                   style: Optional[Style] = None) -> None:
        idx = self._index(x, y)
        if idx is None:
            return
        col, row = idx
        self._symbols[row][col] = symbol
        if style is not None:
            self._styles[row][col] = patch_style(self._styles[row][col], style)

    def set_string(self, x: int, y: int, text: str,
                   style: Optional[Style] = None,
                   max_width: Optional[int] = None) -> int:
        """Записати рядок починаючи з (x, y). Повертає x після останнього символу."""
        if max_width is not None:
            text = text[:max(0, max_width)]
        for ch in text:
            self.set_symbol(x, y, ch, style)
            x += 1
        return x

    def set_style(self, area: Rect, style: Optional[Style]) -> None:
        if style is None:
            return
        for y in area.rows():
            for x in range(area.left, area.right):
                idx = self._index(x, y)
                if idx is not None:
                    col, row = idx
                    self._styles[row][col] = patch_style(self._styles[row][col], style)

    # -- export --------------------------------------------------------

    def lines(self) -> List[str]:
        """Рядки буфера без стилів (для діагностики і тестів)."""
        return ["".join(row) for row in self._symbols]

    def to_text(self) -> Text:
        """Конвертувати буфер у rich Text (сусідні клітинки з однаковим стилем зливаються)."""
        text = Text(no_wrap=True, overflow="crop", end="")
        for row_idx in range(self.area.height):
            if row_idx:
                text.append("\n")
            symbols = self._symbols[row_idx]
            styles = self._styles[row_idx]
            run: List[str] = []
            run_style = None  # type: Optional[Style]
            for sym, st in zip(symbols, styles):
                if run and st != run_style:
                    text.append("".join(run), style=run_style or None)
                    run = []
                run.append(sym)
                run_style = st
            if run:
                text.append("".join(run), style=run_style or None)
        return text
