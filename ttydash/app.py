"""ttydash — live bar-charts у терміналі з потоку stdin.

Цикл:
  - Ingestor (фоновий потік): stdin → Router → SeriesPool
  - App (головний потік): tick/render за розкладом, клавіші з /dev/tty,
    Action → компоненти → rich Live (alternate screen)

Клавіші: [q]/[Esc] Quit, [Space] Pause, [l] Layout, [f] FPS, [Ctrl+S] Suspend.

Підкоманди: add -n NAME -r REGEX | remove -n NAME | list — іменовані патерни.
"""
from __future__ import annotations

import argparse
import collections
import logging
import os
import signal
import sys
import time
from typing import Callable, Deque, List, Optional, Sequence

from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.text import Text

from ttydash import __version__, actions
from ttydash.actions import Action, KeyBindings, default_keybindings
from ttydash.components import (
    PLACEMENT_FOOTER,
    Component,
    Dash,
    FpsCounter,
    StatusBar,
)
from ttydash.config import (
    DashConfig,
    PatternStore,
    build_config,
    config_dir,
    data_dir,
    load_config_file,
    load_env_profile,
)
from ttydash.core.buffer import CharBuffer, Rect
from ttydash.core.grid import LAYOUT_MODES
from ttydash.core.series import SeriesPool
from ttydash.errors import ConfigError, IngestError, TtydashError
from ttydash.ingest import Ingestor, make_router, open_text_input
from ttydash.logs import setup_logging

_log = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Non-blocking keyboard (Windows msvcrt, Unix /dev/tty + select)
# ---------------------------------------------------------------------------
try:
    import msvcrt
    _HAS_MSVCRT = True
except ImportError:
    _HAS_MSVCRT = False
    import select
    import termios
    import tty


class TtyKeys:
    """Неблокуюче читання клавіш з керуючого термінала.

    stdin зайнятий даними, тому на Unix читаємо /dev/tty у cbreak-режимі
    (IXON вимкнено, щоб Ctrl+S дійшов до нас). Без tty — клавіш немає.
    """

    def __init__(self) -> None:
        self._fd: Optional[int] = None
        self._saved = None

    @property
    def enabled(self) -> bool:
        return _HAS_MSVCRT or self._fd is not None

    def enter(self) -> None:
        if _HAS_MSVCRT or self._fd is not None:
            return
        try:
            fd = os.open("/dev/tty", os.O_RDONLY | os.O_NONBLOCK)
        except OSError as exc:
            _log.warning("KEYS_DISABLED no controlling tty err=%s", exc)
            return
        try:
            self._saved = termios.tcgetattr(fd)
            tty.setcbreak(fd)
            attrs = termios.tcgetattr(fd)
            attrs[0] &= ~termios.IXON
            termios.tcsetattr(fd, termios.TCSANOW, attrs)
        except termios.error as exc:
            _log.warning("KEYS_DISABLED tty setup failed err=%s", exc)
            os.close(fd)
            return
        self._fd = fd

    def exit(self) -> None:
        if self._fd is None:
            return
        try:
            if self._saved is not None:
                termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved)
        finally:
            os.close(self._fd)
            self._fd = None
            self._saved = None

    def poll(self, timeout: float = 0.0) -> str:
        """Усі натиснуті клавіші ('' якщо нічого). Escape-послідовності відкидаються."""
        if _HAS_MSVCRT:
            if not msvcrt.kbhit():
                if timeout > 0:
                    time.sleep(timeout)
                return ""
            ch = msvcrt.getwch()
            if ch in ("\x00", "\xe0"):
                msvcrt.getwch()  # пропустити scan code
                return ""
            return ch
        if self._fd is None:
            if timeout > 0:
                time.sleep(timeout)
            return ""
        ready = select.select([self._fd], [], [], max(0.0, timeout))[0]
        if not ready:
            return ""
        try:
            raw = os.read(self._fd, 64)
        except BlockingIOError:
            return ""
        chars = raw.decode("utf-8", errors="ignore")
        # стрілки/F-клавіші: ESC + ще щось → не Esc
        if chars.startswith(actions.KEY_ESC) and len(chars) > 1:
            return ""
        return chars


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
class App:
    """Диспетчер Action між клавіатурою, компонентами і екраном."""

    def __init__(self, config: DashConfig, pool: SeriesPool,
                 ingestor: Optional[Ingestor] = None,
                 console: Optional[Console] = None,
                 keybindings: Optional[KeyBindings] = None,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.config = config
        self.pool = pool
        self.ingestor = ingestor
        self.console = console or Console()
        self.keybindings = keybindings or default_keybindings()
        self._clock = clock

        dash = Dash(pool, config)
        self.dash = dash
        self.components: List[Component] = [
            dash,
            StatusBar(dash, clock=clock),
            FpsCounter(clock=clock),
        ]
        self._queue: Deque[Action] = collections.deque()
        self.should_quit = False
        self.should_suspend = False
        self.last_tick_keys: List[str] = []
        self._live: Optional[Live] = None
        self._keys = TtyKeys()
        self._size = (0, 0)

        for component in self.components:
            component.register_action_handler(self.send)

    def send(self, action: Action) -> None:
        self._queue.append(action)

    # -- keys ----------------------------------------------------------

    def handle_key(self, key: str) -> None:
        _log.debug("KEY %r", key)
        action = self.keybindings.get([key])
        if action is not None:
            self.send(action)
            return
        # комбінації в межах одного tick
        self.last_tick_keys.append(key)
        action = self.keybindings.get(self.last_tick_keys)
        if action is not None:
            self.send(action)

    # -- actions -------------------------------------------------------

    def handle_actions(self) -> None:
        while self._queue:
            action = self._queue.popleft()
            if action.kind not in actions.QUIET_KINDS:
                _log.debug("ACTION %s", action)
            kind = action.kind
            if kind == actions.TICK:
                self.last_tick_keys.clear()
            elif kind == actions.QUIT:
                self.should_quit = True
            elif kind == actions.SUSPEND:
                self.should_suspend = True
            elif kind == actions.RESUME:
                self.should_suspend = False
            elif kind == actions.RESIZE:
                _log.info("RESIZE size=%s", action.data)
                self._size = tuple(action.data)
                self.render()
            elif kind == actions.CLEAR_SCREEN:
                if self._live is not None:
                    self._live.refresh()
            elif kind == actions.ERROR:
                _log.error("ACTION_ERROR %s", action.data)
            elif kind == actions.RENDER:
                self.render()
            for component in self.components:
                follow_up = component.update(action)
                if follow_up is not None:
                    self.send(follow_up)

    # -- drawing -------------------------------------------------------

    def draw(self, width: int, height: int) -> CharBuffer:
        """Кадр width×height: body + footer (1 рядок)."""
        area = Rect(0, 0, max(0, width), max(0, height))
        buf = CharBuffer(area)
        footer_h = 1 if area.height > 1 else 0
        body = Rect(0, 0, area.width, area.height - footer_h)
        footer = Rect(0, area.height - footer_h, area.width, footer_h)
        for component in self.components:
            target = footer if component.placement == PLACEMENT_FOOTER else body
            try:
                component.draw(buf, target)
            except TtydashError:
                raise
            except Exception as exc:
                _log.exception("DRAW_FAILED component=%s", type(component).__name__)
                self.send(actions.error("Failed to draw: {0}".format(exc)))
        return buf

    def render(self) -> Text:
        width, height = self.console.size
        text = self.draw(width, height).to_text()
        if self._live is not None:
            self._live.update(text, refresh=True)
        return text

    # -- terminal lifecycle --------------------------------------------

    def _enter(self) -> None:
        self._live = Live(console=self.console, screen=True, auto_refresh=False,
                          redirect_stdout=False, redirect_stderr=False)
        self._live.start()
        self._keys.enter()
        self._size = tuple(self.console.size)

    def _exit(self) -> None:
        self._keys.exit()
        if self._live is not None:
            self._live.stop()
            self._live = None

    def _suspend(self) -> None:
        _log.info("SUSPEND")
        self._exit()
        if hasattr(signal, "SIGTSTP"):
            os.kill(os.getpid(), signal.SIGTSTP)
        # SIGCONT → продовжуємо тут
        self._enter()
        self.send(Action(actions.RESUME))
        self.send(Action(actions.CLEAR_SCREEN))

    def _check_ingestor(self) -> None:
        if self.ingestor is None or self.ingestor.error is None:
            return
        error = self.ingestor.error
        if isinstance(error, TtydashError):
            raise error
        # будь-який інший збій потоку → фатальний вихід через main(), не traceback
        raise IngestError("ingestion failed: {0!r}".format(error)) from error

    def run(self) -> None:
        tick_interval = 1.0 / self.config.tick_rate
        frame_interval = 1.0 / self.config.frame_rate
        self._enter()
        for component in self.components:
            component.init(Rect(0, 0, *self._size))
        try:
            next_tick = next_frame = self._clock()
            while not self.should_quit:
                self._check_ingestor()
                now = self._clock()
                if now >= next_tick:
                    self.send(Action(actions.TICK))
                    next_tick = now + tick_interval
                if now >= next_frame:
                    size = tuple(self.console.size)
                    if size != self._size:
                        self.send(actions.resize(*size))
                    self.send(Action(actions.RENDER))
                    next_frame = now + frame_interval

                wait = max(0.0, min(next_tick, next_frame) - self._clock())
                for key in self._keys.poll(timeout=min(wait, 0.05)):
                    self.handle_key(key)
                self.handle_actions()

                if self.should_suspend:
                    self._suspend()
                    self.should_suspend = False
        finally:
            self._exit()


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------
def version_message() -> str:
    return (
        "{0}\n\nConfig directory: {1}\nData directory: {2}".format(
            __version__, config_dir(), data_dir())
    )


def build_parser() -> argparse.ArgumentParser:
    # дефолти None: інакше CLI перекривав би config-файл і ENV
    ap = argparse.ArgumentParser(
        prog="ttydash",
        description="A terminal dashboard for real-time data visualization.")
    ap.add_argument("--version", action="version", version=version_message())
    ap.add_argument("--tick-rate", type=float, default=None, metavar="FLOAT",
                    help="Tick rate, ticks per second (default 4.0)")
    ap.add_argument("-f", "--frame-rate", type=float, default=None, metavar="FLOAT",
                    help="Frame rate, frames per second (default 60.0)")
    ap.add_argument("-t", "--titles", nargs="+", default=None, metavar="STRING",
                    help="Chart titles, shown at the top of each chart")
    ap.add_argument("-u", "--units", nargs="+", default=None,
                    help='Units to extract, one chart per unit (e.g. "ms" "MB")')
    ap.add_argument("-i", "--indices", nargs="+", type=int, default=None, metavar="INT",
                    help="1-based column indices to plot")
    ap.add_argument("--update-frequency", type=int, default=None, metavar="INT",
                    help="Milliseconds between consumed input lines (default 1000)")
    ap.add_argument("-l", "--layout", choices=LAYOUT_MODES, default=None,
                    help="Layout of the charts (default auto)")
    ap.add_argument("--capacity", type=int, default=None, metavar="INT",
                    help="Samples kept per chart (default 200)")
    ap.add_argument("--max", type=float, default=None, metavar="FLOAT",
                    help="Value that fills a bar completely (default: data maximum)")
    ap.add_argument("--bar-width", type=int, default=None, metavar="INT")
    ap.add_argument("--bar-gap", type=int, default=None, metavar="INT")
    ap.add_argument("--group-gap", type=int, default=None, metavar="INT")
    ap.add_argument("-c", "--config", type=str, default=None,
                    help="Path to config.json")
    ap.add_argument("--log-file", type=str, default=None,
                    help="Log file (default <data dir>/ttydash.log)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = ap.add_subparsers(dest="cmd")
    add = sub.add_parser("add", help="Add a new regex to the list of regexes")
    add.add_argument("-n", "--name", required=True, help="Name of the regex")
    add.add_argument("-r", "--regex", required=True, help="The regex to add")
    rm = sub.add_parser("remove", help="Remove a regex from the list of regexes")
    rm.add_argument("-n", "--name", required=True, help="The name of the regex to remove")
    sub.add_parser("list", help="List all regexes")
    return ap


def run_patterns(args: argparse.Namespace, console: Console,
                 store: Optional[PatternStore] = None) -> int:
    """Підкоманди add/remove/list."""
    store = store or PatternStore()
    if args.cmd == "add":
        store.add(args.name, args.regex)
        console.print("Added [bold]{0}[/]".format(args.name))
        return 0
    if args.cmd == "remove":
        if store.remove(args.name):
            console.print("Removed [bold]{0}[/]".format(args.name))
            return 0
        console.print("[yellow]No regex named {0}[/]".format(args.name))
        return 1

    items = store.items()
    if not items:
        console.print("[dim]No regexes stored in {0}[/]".format(store.path))
        return 0
    t = Table(show_edge=False, box=None, header_style="bold white on dark_blue")
    t.add_column("Name", style="bold cyan")
    t.add_column("Regex", overflow="fold")
    for name, regex in items:
        t.add_row(name, regex)
    console.print(t)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entrypoint."""
    args = build_parser().parse_args(argv)
    err_console = Console(stderr=True)
    load_env_profile()

    if args.cmd:
        try:
            return run_patterns(args, Console())
        except ConfigError as exc:
            err_console.print("[bold red]error:[/] {0}".format(exc))
            return 2

    try:
        cfg = build_config(args, load_config_file(args.config))
        router = make_router(cfg.units, cfg.indices or None)
    except ConfigError as exc:
        err_console.print("[bold red]config error:[/] {0}".format(exc))
        return 2

    log_path = setup_logging(cfg.verbose, cfg.log_file)
    _log.info("TTYDASH_START version=%s layout=%s units=%s indices=%s interval_ms=%d log=%s",
              __version__, cfg.layout, list(cfg.units), list(cfg.indices),
              cfg.update_frequency_ms, log_path)
    if sys.stdin.isatty():
        _log.warning("STDIN_IS_TTY waiting for typed input; pipe a command into ttydash")

    pool = SeriesPool(cfg.capacity)
    ingestor = Ingestor(pool, router, open_text_input(sys.stdin), cfg.update_frequency_ms)
    app = App(cfg, pool, ingestor)
    rc = 0
    try:
        ingestor.start()
        app.run()
    except KeyboardInterrupt:
        pass
    except TtydashError as exc:
        # PoolPoisonedError і подібні: стан неконсистентний, тільки вихід
        _log.error("TTYDASH_FATAL err=%s", exc)
        err_console.print("[bold red]fatal:[/] {0}".format(exc))
        rc = 1
    finally:
        # кооперативна зупинка; readline() може ще висіти, потік daemon
        ingestor.stop()
        _log.info("TTYDASH_STOP lines=%d samples=%d",
                  ingestor.lines_read, ingestor.samples_total)
    return rc
