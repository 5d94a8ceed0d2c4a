"""BarChart — рендер стовпчиків з роздільністю 1/8 клітинки.

Приклад (vertical, bar_width=3, bar_gap=1, group_gap=3):

    │                             ███│
    │                        ▅▅▅  ███│
    │            ▇▇▇         ███  ███│
    │     ▄▄▄    ███ ███     ███  ███│
    │▆10  █20    █50 █40     █60  █90│
    │ B1   B2     B1  B2      B1   B2│
    │ Group1      Group2      Group3 │

Інваріанти:
  C0: чиста функція (groups, options, area) → записи в CharBuffer, NO I/O
  C1: reference_max = max(explicit або найбільше значення, 1)
  C2: 0 ≤ ticks ≤ cells*8; ticks == cells*8 лише коли value ≥ reference_max
  C3: групи пакуються послідовно; група, що не влазить, обрізається, решта відкидається
  C4: порожня area / немає груп / bar_width == 0 → нічого не малюємо (не помилка)
"""
from __future__ import annotations

import dataclasses
from typing import List, Optional, Sequence

from rich.style import Style

from ttydash.core.block import Block
from ttydash.core.buffer import CharBuffer, Rect, patch_style

DIRECTION_HORIZONTAL = "horizontal"
DIRECTION_VERTICAL = "vertical"

TICKS_PER_CELL = 8


@dataclasses.dataclass(frozen=True)
class BarSet:
    """Дев'ять рівнів заповнення клітинки: empty, 1/8 … 7/8, full."""

    empty: str
    one_eighth: str
    one_quarter: str
    three_eighths: str
    half: str
    five_eighths: str
    three_quarters: str
    seven_eighths: str
    full: str

    def level(self, ticks: int) -> str:
        """Гліф для залишку ticks у поточній клітинці (≥ 8 → full)."""
        if ticks <= 0:
            return self.empty
        if ticks >= TICKS_PER_CELL:
            return self.full
        return (self.empty, self.one_eighth, self.one_quarter, self.three_eighths,
                self.half, self.five_eighths, self.three_quarters,
                self.seven_eighths)[ticks]


NINE_LEVELS = BarSet(" ", "▁", "▂", "▃", "▄", "▅", "▆", "▇", "█")
BRAILLE = BarSet(" ", "⢀", "⣀", "⣠", "⣤", "⣴", "⣶", "⣾", "⣿")


@dataclasses.dataclass
class Bar:
    value: float = 0.0
    label: Optional[str] = None
    style: Optional[Style] = None
    value_style: Optional[Style] = None
    # None → друкується value; "" → нічого не друкується
    text_value: Optional[str] = None

    def value_text(self) -> str:
        if self.text_value is not None:
            return self.text_value
        return format_value(self.value)

    def render_value(self, buf: CharBuffer, max_width: int, x: int, y: int,
                     default_style: Optional[Style], ticks: int) -> None:
        if self.value == 0:
            return
        text = self.value_text()
        width = len(text)
        # друкуємо якщо влазить, або впритул при хоча б одній повній клітинці
        if width < max_width or (width == max_width and ticks >= TICKS_PER_CELL):
            buf.set_string(x + max(0, max_width - width) // 2, y, text,
                           patch_style(default_style, self.value_style))

    def render_value_split(self, buf: CharBuffer, area: Rect, bar_length: int,
                           default_value_style: Optional[Style],
                           bar_style: Style) -> None:
        """Горизонтальний бар: value_style поверх бару, bar_style далі."""
        text = self.value_text()
        if not text:
            return
        buf.set_string(area.x, area.y, text,
                       patch_style(default_value_style, self.value_style),
                       max_width=bar_length)
        if len(text) > bar_length:
            buf.set_string(area.x + bar_length, area.y, text[bar_length:],
                           patch_style(bar_style, self.style),
                           max_width=area.width - bar_length)

    def render_label(self, buf: CharBuffer, max_width: int, x: int, y: int,
                     default_style: Optional[Style]) -> None:
        if self.label is None:
            return
        width = min(len(self.label), max_width)
        buf.set_string(x + max(0, max_width - width) // 2, y, self.label,
                       default_style, max_width=max_width)


@dataclasses.dataclass
class BarGroup:
    bars: List[Bar] = dataclasses.field(default_factory=list)
    label: Optional[str] = None
    label_style: Optional[Style] = None

    def max(self) -> float:
        return max((b.value for b in self.bars), default=0.0)

    def render_label(self, buf: CharBuffer, area: Rect,
                     default_style: Optional[Style]) -> None:
        if self.label is None or area.is_empty():
            return
        width = min(len(self.label), area.width)
        x = area.x + (area.width - width) // 2
        buf.set_string(x, area.y, self.label,
                       patch_style(default_style, self.label_style),
                       max_width=area.width)


@dataclasses.dataclass(frozen=True)
class LabelInfo:
    group_label_visible: bool
    bar_label_visible: bool
    height: int


def format_value(value: float) -> str:
    if value != value:  # NaN
        return "nan"
    if float(value).is_integer():
        return str(int(value))
    return "{0:g}".format(value)


def quantize(value: float, available_cells: int, reference_max: float) -> int:
    """Довжина бару в ticks (1/8 клітинки), насичення на available_cells*8."""
    limit = max(0, available_cells) * TICKS_PER_CELL
    if limit == 0 or not value > 0:
        return 0
    if value >= reference_max:
        return limit
    ticks = int(value * limit // reference_max)
    return max(0, min(ticks, limit - 1))


def reference_maximum(groups: Sequence[BarGroup], explicit: Optional[float] = None) -> float:
    if explicit is not None:
        ref = explicit
    else:
        ref = max((g.max() for g in groups), default=0.0)
    return max(ref, 1.0)


def pack_groups(groups: Sequence[BarGroup], available_space: int, bar_width: int,
                bar_gap: int, group_gap: int) -> List[int]:
    """Скільки барів кожної групи влазить уздовж основної осі.

    Результат коротший за groups, якщо пакування зупинилось раніше.
    """
    space = available_space
    counts: List[int] = []
    for group in groups:
        if space <= 0:
            break
        n_bars = len(group.bars)
        group_width = n_bars * bar_width + max(0, n_bars - 1) * bar_gap
        if space > group_width:
            space -= group_width + group_gap + bar_gap
            counts.append(n_bars)
            continue
        max_bars = (space + bar_gap) // (bar_width + bar_gap)
        if max_bars <= 0:
            break
        counts.append(max_bars)
        break
    return counts


@dataclasses.dataclass
class BarChart:
    """Набір груп барів + опції рендеру."""

    data: List[BarGroup] = dataclasses.field(default_factory=list)
    block: Optional[Block] = None
    bar_width: int = 1
    bar_gap: int = 1
    group_gap: int = 0
    bar_set: BarSet = NINE_LEVELS
    bar_style: Style = dataclasses.field(default_factory=Style.null)
    value_style: Optional[Style] = None
    label_style: Optional[Style] = None
    style: Optional[Style] = None
    max: Optional[float] = None
    direction: str = DIRECTION_VERTICAL

    def __post_init__(self) -> None:
        self.data = [g for g in self.data if g.bars]

    def add_group(self, group: BarGroup) -> "BarChart":
        """Додати групу; порожні групи відкидаються."""
        if group.bars:
            self.data.append(group)
        return self

    def maximum_data_value(self) -> float:
        return reference_maximum(self.data, self.max)

    def group_ticks(self, available_space: int, bar_max_length: int) -> List[List[int]]:
        """Ticks видимих барів по групах (клітинка = 8 ticks)."""
        ref = self.maximum_data_value()
        counts = pack_groups(self.data, available_space, self.bar_width,
                             self.bar_gap, self.group_gap)
        return [
            [quantize(bar.value, bar_max_length, ref) for bar in group.bars[:n]]
            for group, n in zip(self.data, counts)
        ]

    def label_info(self, available_height: int) -> LabelInfo:
        """Скільки рядків під підписи: 0, 1 (бари або групи) чи 2."""
        if available_height <= 0:
            return LabelInfo(False, False, 0)
        bar_label_visible = any(
            bar.label is not None for group in self.data for bar in group.bars)
        if available_height == 1 and bar_label_visible:
            return LabelInfo(False, True, 1)
        group_label_visible = any(group.label is not None for group in self.data)
        return LabelInfo(group_label_visible, bar_label_visible,
                         int(group_label_visible) + int(bar_label_visible))

    # -- render --------------------------------------------------------

    def render(self, buf: CharBuffer, area: Rect) -> None:
        buf.set_style(area, self.style)
        if self.block is not None:
            self.block.render(buf, area)
            inner = self.block.inner(area)
        else:
            inner = area
        if inner.is_empty() or not self.data or self.bar_width <= 0:
            return
        if self.direction == DIRECTION_HORIZONTAL:
            self._render_horizontal(buf, inner)
        else:
            self._render_vertical(buf, inner)

    def _render_horizontal(self, buf: CharBuffer, area: Rect) -> None:
        label_size = max((len(bar.label) for group in self.data for bar in group.bars
                          if bar.label is not None), default=0)
        label_size = min(label_size, area.width)
        margin = 1 if label_size else 0
        bars_area = Rect(area.x + label_size + margin, area.y,
                         max(0, area.width - label_size - margin), area.height)

        group_ticks = self.group_ticks(bars_area.height, bars_area.width)
        bar_y = bars_area.top
        for ticks_vec, group in zip(group_ticks, self.data):
            for ticks, bar in zip(ticks_vec, group.bars):
                bar_length = ticks // TICKS_PER_CELL
                bar_style = patch_style(self.bar_style, bar.style)
                for dy in range(self.bar_width):
                    for dx in range(bars_area.width):
                        symbol = self.bar_set.full if dx < bar_length else self.bar_set.empty
                        buf.set_symbol(bars_area.left + dx, bar_y + dy, symbol, bar_style)

                value_area = Rect(bars_area.x, bar_y + (self.bar_width >> 1),
                                  bars_area.width, 1)
                if bar.label is not None:
                    buf.set_string(area.x, value_area.y, bar.label,
                                   self.label_style, max_width=label_size)
                bar.render_value_split(buf, value_area, bar_length,
                                       self.value_style, self.bar_style)
                bar_y += self.bar_gap + self.bar_width

            # group_gap == 0 → немає місця під підпис групи
            label_y = bar_y - self.bar_gap
            if self.group_gap > 0 and label_y < bars_area.bottom:
                group.render_label(buf, Rect(bars_area.x, label_y, bars_area.width, 1),
                                   self.label_style)
                bar_y += self.group_gap

    def _render_vertical(self, buf: CharBuffer, area: Rect) -> None:
        info = self.label_info(area.height - 1)
        bars_area = Rect(area.x, area.y, area.width, area.height - info.height)
        group_ticks = self.group_ticks(bars_area.width, bars_area.height)
        self._render_vertical_bars(buf, bars_area, group_ticks)
        self._render_labels_and_values(buf, area, info, group_ticks)

    def _render_vertical_bars(self, buf: CharBuffer, area: Rect,
                              group_ticks: List[List[int]]) -> None:
        bar_x = area.left
        for ticks_vec, group in zip(group_ticks, self.data):
            for ticks, bar in zip(ticks_vec, group.bars):
                bar_style = patch_style(self.bar_style, bar.style)
                # знизу вгору: повні клітинки, частковий гліф зверху
                for row in range(area.height - 1, -1, -1):
                    symbol = self.bar_set.level(ticks)
                    for dx in range(self.bar_width):
                        buf.set_symbol(bar_x + dx, area.top + row, symbol, bar_style)
                    ticks = max(0, ticks - TICKS_PER_CELL)
                bar_x += self.bar_gap + self.bar_width
            bar_x += self.group_gap

    def _render_labels_and_values(self, buf: CharBuffer, area: Rect, info: LabelInfo,
                                  group_ticks: List[List[int]]) -> None:
        bar_x = area.left
        bar_y = area.bottom - info.height - 1
        for group, ticks_vec in zip(self.data, group_ticks):
            if info.group_label_visible:
                label_width = len(ticks_vec) * (self.bar_width + self.bar_gap) - self.bar_gap
                group.render_label(buf, Rect(bar_x, area.bottom - 1, max(0, label_width), 1),
                                   self.label_style)
            for bar, ticks in zip(group.bars, ticks_vec):
                if info.bar_label_visible:
                    bar.render_label(buf, self.bar_width, bar_x, bar_y + 1, self.label_style)
                bar.render_value(buf, self.bar_width, bar_x, bar_y, self.value_style, ticks)
                bar_x += self.bar_gap + self.bar_width
            bar_x += self.group_gap
