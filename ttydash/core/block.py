"""Block — рамка панелі з заголовками зверху і знизу."""
from __future__ import annotations

import dataclasses
from typing import List, Optional, Sequence, Tuple

from rich.style import Style

from ttydash.core.buffer import CharBuffer, Rect

Span = Tuple[str, Optional[Style]]

ROUNDED = ("╭", "╮", "╰", "╯", "─", "│")

ALIGN_LEFT = "left"
ALIGN_CENTER = "center"
ALIGN_RIGHT = "right"


@dataclasses.dataclass
class Block:
    """Рамка на всю area; inner() — область без рамки."""

    title: Sequence[Span] = ()
    title_bottom: Sequence[Span] = ()
    title_alignment: str = ALIGN_RIGHT
    border_style: Optional[Style] = None
    border_set: Tuple[str, ...] = ROUNDED

    def inner(self, area: Rect) -> Rect:
        return area.inner(1)

    def render(self, buf: CharBuffer, area: Rect) -> None:
        if area.width < 2 or area.height < 2:
            return
        tl, tr, bl, br, horiz, vert = self.border_set
        st = self.border_style
        top, bottom = area.top, area.bottom - 1
        left, right = area.left, area.right - 1
        for x in range(left + 1, right):
            buf.set_symbol(x, top, horiz, st)
            buf.set_symbol(x, bottom, horiz, st)
        for y in range(top + 1, bottom):
            buf.set_symbol(left, y, vert, st)
            buf.set_symbol(right, y, vert, st)
        buf.set_symbol(left, top, tl, st)
        buf.set_symbol(right, top, tr, st)
        buf.set_symbol(left, bottom, bl, st)
        buf.set_symbol(right, bottom, br, st)

        title_area = Rect(left + 1, top, max(0, area.width - 2), 1)
        self._render_spans(buf, title_area, self.title)
        bottom_area = Rect(left + 1, bottom, max(0, area.width - 2), 1)
        self._render_spans(buf, bottom_area, self.title_bottom)

    def _render_spans(self, buf: CharBuffer, area: Rect, spans: Sequence[Span]) -> None:
        if not spans or area.is_empty():
            return
        render_line(buf, area, spans, self.title_alignment)


def render_line(buf: CharBuffer, area: Rect, spans: Sequence[Span],
                alignment: str = ALIGN_LEFT) -> None:
    """Вивести рядок spans в одну лінію area з вирівнюванням.

    Якщо рядок ширший за area — обрізається з боку, протилежного вирівнюванню.
    """
    chars: List[Tuple[str, Optional[Style]]] = []
    for text, style in spans:
        chars.extend((ch, style) for ch in text)
    overflow = len(chars) - area.width
    if overflow > 0:
        chars = chars[overflow:] if alignment == ALIGN_RIGHT else chars[:area.width]
    free = area.width - len(chars)
    if alignment == ALIGN_RIGHT:
        x = area.left + free
    elif alignment == ALIGN_CENTER:
        x = area.left + free // 2
    else:
        x = area.left
    for ch, style in chars:
        buf.set_symbol(x, area.top, ch, style)
        x += 1
