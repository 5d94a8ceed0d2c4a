"""Display — рендер панелей ttydash у CharBuffer.

Панель (одна Series):
  1. Рамка з заголовком справа ("Chart N" або --titles)
  2. Стовпчики: найновіший семпл біля правого краю, 1 клітинка = 1 семпл
  3. Нижня рамка — часові мітки (кожні 30 клітинок, справа наліво)
  4. Верхній рядок — Avg/Min/Max по ВИДИМОМУ вікну з unit

Footer: hotkeys + layout + PAUSED + статус-повідомлення.
"""
from __future__ import annotations

import dataclasses
from typing import List, Optional, Sequence

from rich.style import Style

from ttydash.core.barchart import (
    BRAILLE,
    DIRECTION_VERTICAL,
    Bar,
    BarChart,
    BarGroup,
    BarSet,
)
from ttydash.core.block import ALIGN_LEFT, ALIGN_RIGHT, Block, Span, render_line
from ttydash.core.buffer import CharBuffer, Rect
from ttydash.core.series import SeriesSnapshot

TIME_MARK_INTERVAL = 30
# мітка не ближче ніж 5 клітинок до лівого краю
TIME_MARK_LEFT_MARGIN = 5
SUMMARY_PADDING = 2

_BAR_STYLE = Style(color="green")
_TIME_LABEL_STYLE = Style(color="grey62")
_SUMMARY_STYLE = Style(dim=True)


@dataclasses.dataclass(frozen=True)
class ChartOptions:
    """Спільні для всіх панелей опції рендеру."""

    bar_set: BarSet = BRAILLE
    bar_width: int = 1
    bar_gap: int = 0
    group_gap: int = 0
    max_value: Optional[float] = None
    direction: str = DIRECTION_VERTICAL
    bar_style: Style = _BAR_STYLE
    seconds_per_sample: float = 1.0

    @property
    def seconds_per_cell(self) -> float:
        step = self.bar_width + self.bar_gap
        return self.seconds_per_sample / step if step > 0 else self.seconds_per_sample


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _format_seconds(seconds: float) -> str:
    """30.0 → '30s', 7.5 → '7.5s'."""
    if float(seconds).is_integer():
        return "{0}s".format(int(seconds))
    return "{0:.1f}s".format(seconds)


def _bar_value(value: float) -> float:
    """Семпл → значення бару: від'ємні і NaN малюються як 0."""
    if value != value or value < 0:
        return 0.0
    return value


def visible_bars(inner_width: int, bar_width: int, bar_gap: int) -> int:
    """Скільки барів влазить у inner_width."""
    if inner_width <= 0 or bar_width <= 0:
        return 0
    return (inner_width + bar_gap) // (bar_width + bar_gap)


def time_axis_spans(width: int, interval: int = TIME_MARK_INTERVAL,
                    seconds_per_cell: float = 1.0) -> List[Span]:
    """Spans нижньої рамки: '──…├30s' повторено для 30, 60, … клітинок.

    Генерується зліва направо і розвертається, щоб при вирівнюванні
    праворуч найменша мітка стояла біля правого краю.
    """
    spans: List[Span] = []
    last_label_len = 0
    t = interval
    while t <= width - TIME_MARK_LEFT_MARGIN:
        label = _format_seconds(t * seconds_per_cell)
        spans.append(("─" * max(0, interval - last_label_len), None))
        spans.append(("├", None))
        spans.append((label, _TIME_LABEL_STYLE))
        last_label_len = len(label) + 1
        t += interval
    spans.reverse()
    return spans


def summary_text(average: float, minimum: float, maximum: float, unit: str = "") -> str:
    return "Avg: {0:.2f} {3} Min: {1:.2f} {3} Max: {2:.2f} {3}".format(
        average, minimum, maximum, unit)


# ---------------------------------------------------------------------------
# Pane
# ---------------------------------------------------------------------------
def pane_bars(snapshot: SeriesSnapshot, count: int) -> List[Bar]:
    """count барів: нулі зліва + найновіші семпли справа."""
    values = snapshot.tail(count)
    padded = [0.0] * (count - len(values)) + values
    return [Bar(value=_bar_value(v), text_value="") for v in padded]


def render_pane(buf: CharBuffer, area: Rect, snapshot: SeriesSnapshot, title: str,
                options: ChartOptions = ChartOptions()) -> None:
    """Намалювати одну панель; вироджена area → нічого."""
    if area.is_empty():
        return
    inner = area.inner(1)
    count = visible_bars(inner.width, options.bar_width, options.bar_gap)

    block = Block(
        title=[(title, None)],
        title_bottom=time_axis_spans(area.width - 1, seconds_per_cell=options.seconds_per_cell),
        title_alignment=ALIGN_RIGHT,
    )
    chart = BarChart(
        data=[BarGroup(bars=pane_bars(snapshot, count))] if count else [],
        block=block,
        bar_width=options.bar_width,
        bar_gap=options.bar_gap,
        group_gap=options.group_gap,
        bar_set=options.bar_set,
        bar_style=options.bar_style,
        max=options.max_value,
        direction=options.direction,
    )
    chart.render(buf, area)

    visible = min(snapshot.length, count)
    average, minimum, maximum = snapshot.window_stats(visible)
    summary_area = Rect(area.x + SUMMARY_PADDING, area.y,
                        max(0, area.width - 2 * SUMMARY_PADDING), 1)
    if not summary_area.is_empty():
        render_line(buf, summary_area,
                    [(summary_text(average, minimum, maximum, snapshot.unit), _SUMMARY_STYLE)],
                    ALIGN_LEFT)


# ---------------------------------------------------------------------------
# Footer (hotkeys + status)
# ---------------------------------------------------------------------------
_FOOTER_KEYS = [
    ("[q]", " Quit  "), ("[Space]", " Pause  "), ("[l]", " Layout  "),
    ("[f]", " FPS  "), ("[^S]", " Suspend"),
]


def build_footer(layout: str, status: str = "", paused: bool = False) -> List[Span]:
    """Footer: hotkeys + режим розкладки + PAUSED + статус."""
    spans: List[Span] = [(" ", None)]
    for key, label in _FOOTER_KEYS:
        spans.append((key, Style(bold=True, color="cyan")))
        spans.append((label, Style(dim=True)))
    spans.append(("  layout:", Style(dim=True)))
    spans.append((layout, Style(bold=True)))
    if paused:
        spans.append(("  ", None))
        spans.append((" PAUSED ", Style(bold=True, color="red", bgcolor="white")))
    if status:
        spans.append(("  >>> " + status, Style(bold=True, color="yellow")))
    return spans


def render_footer(buf: CharBuffer, area: Rect, spans: Sequence[Span]) -> None:
    if area.is_empty():
        return
    render_line(buf, Rect(area.x, area.y, area.width, 1), spans, ALIGN_LEFT)
