"""Components — панелі екрана з єдиним інтерфейсом.

Кожен компонент вміє:
  register_action_handler(send) — отримати канал для власних Action
  update(action) → Optional[Action] — реакція на tick/render/клавіші
  draw(buf, area) — намалювати себе у виділеній App області

Варіанти:
  Dash       — сітка графіків (orchestrator: snapshot → grid → render_pane)
  StatusBar  — footer з hotkeys і статусом
  FpsCounter — ticks/s і frames/s поверх footer (toggle [f])
"""
from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from ttydash import actions
from ttydash.actions import Action
from ttydash.config import DashConfig
from ttydash.core.block import ALIGN_RIGHT, render_line
from ttydash.core.buffer import CharBuffer, Rect
from ttydash.core.grid import LAYOUT_MODES, split_panes
from ttydash.core.series import SeriesPool, SeriesSnapshot
from ttydash.display import ChartOptions, build_footer, render_footer, render_pane

_log = logging.getLogger(__name__)

PLACEMENT_BODY = "body"
PLACEMENT_FOOTER = "footer"

_STATUS_TTL = 5.0  # секунд показувати повідомлення


class Component:
    """Базовий компонент; draw() обов'язковий."""

    placement = PLACEMENT_BODY

    def __init__(self) -> None:
        self._send: Optional[Callable[[Action], None]] = None

    def register_action_handler(self, send: Callable[[Action], None]) -> None:
        self._send = send

    def init(self, area: Rect) -> None:
        pass

    def update(self, action: Action) -> Optional[Action]:
        return None

    def draw(self, buf: CharBuffer, area: Rect) -> None:
        raise NotImplementedError


class Dash(Component):
    """Сітка графіків, по одній панелі на Series."""

    def __init__(self, pool: SeriesPool, config: DashConfig,
                 options: Optional[ChartOptions] = None) -> None:
        super().__init__()
        self._pool = pool
        self._config = config
        self.layout = config.layout
        self.options = options or ChartOptions(
            bar_width=config.bar_width,
            bar_gap=config.bar_gap,
            group_gap=config.group_gap,
            max_value=config.max_value,
            seconds_per_sample=config.update_frequency_ms / 1000.0,
        )
        self.paused = False
        self._frozen: Optional[List[SeriesSnapshot]] = None

    def snapshot(self) -> List[SeriesSnapshot]:
        """Під паузою — заморожений знімок, інакше свіжий з pool."""
        if self.paused and self._frozen is not None:
            return self._frozen
        return self._pool.snapshot()

    def update(self, action: Action) -> Optional[Action]:
        if action.kind == actions.PAUSE:
            self.paused = not self.paused
            self._frozen = self._pool.snapshot() if self.paused else None
            _log.info("DASH_PAUSE paused=%s", self.paused)
        elif action.kind == actions.CYCLE_LAYOUT:
            idx = LAYOUT_MODES.index(self.layout)
            self.layout = LAYOUT_MODES[(idx + 1) % len(LAYOUT_MODES)]
            _log.info("DASH_LAYOUT layout=%s", self.layout)
        return None

    def draw(self, buf: CharBuffer, area: Rect) -> None:
        # lock тримається лише на час snapshot, не під час рендеру
        snaps = self.snapshot()
        cells = split_panes(len(snaps), self.layout, area)
        for i, (cell, snap) in enumerate(zip(cells, snaps)):
            render_pane(buf, cell, snap, self._config.title_for(i), self.options)


class StatusBar(Component):
    """Footer: hotkeys + layout + PAUSED + тимчасове повідомлення."""

    placement = PLACEMENT_FOOTER

    def __init__(self, dash: Dash, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self._dash = dash
        self._clock = clock
        self.status = ""
        self.status_expire = 0.0

    def set_status(self, msg: str) -> None:
        self.status = msg
        self.status_expire = self._clock() + _STATUS_TTL

    @property
    def active_status(self) -> str:
        return self.status if self._clock() < self.status_expire else ""

    def update(self, action: Action) -> Optional[Action]:
        if action.kind == actions.ERROR:
            self.set_status(str(action.data))
        elif action.kind == actions.PAUSE:
            self.set_status("PAUSED" if self._dash.paused else "Resumed")
        elif action.kind == actions.CYCLE_LAYOUT:
            self.set_status("Layout: {0}".format(self._dash.layout))
        return None

    def draw(self, buf: CharBuffer, area: Rect) -> None:
        render_footer(buf, area, build_footer(
            self._dash.layout, self.active_status, self._dash.paused))


class FpsCounter(Component):
    """Частота tick і render за останню секунду."""

    placement = PLACEMENT_FOOTER

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 visible: bool = False) -> None:
        super().__init__()
        self._clock = clock
        self.visible = visible
        now = clock()
        self._tick_start = now
        self._tick_count = 0
        self._frame_start = now
        self._frame_count = 0
        self.ticks_per_s = 0.0
        self.frames_per_s = 0.0

    def _app_tick(self) -> None:
        self._tick_count += 1
        now = self._clock()
        elapsed = now - self._tick_start
        if elapsed >= 1.0:
            self.ticks_per_s = self._tick_count / elapsed
            self._tick_start = now
            self._tick_count = 0

    def _render_tick(self) -> None:
        self._frame_count += 1
        now = self._clock()
        elapsed = now - self._frame_start
        if elapsed >= 1.0:
            self.frames_per_s = self._frame_count / elapsed
            self._frame_start = now
            self._frame_count = 0

    def update(self, action: Action) -> Optional[Action]:
        if action.kind == actions.TICK:
            self._app_tick()
        elif action.kind == actions.RENDER:
            self._render_tick()
        elif action.kind == actions.TOGGLE_FPS:
            self.visible = not self.visible
        return None

    def text(self) -> str:
        return "{0:.2f} ticks/s {1:.2f} fps ".format(self.ticks_per_s, self.frames_per_s)

    def draw(self, buf: CharBuffer, area: Rect) -> None:
        if not self.visible or area.is_empty():
            return
        render_line(buf, Rect(area.x, area.y, area.width, 1),
                    [(self.text(), None)], ALIGN_RIGHT)
