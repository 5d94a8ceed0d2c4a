"""Actions — команди між App і компонентами + key bindings.

Клавіші приходять з /dev/tty (stdin зайнятий даними) як рядки:
'q', ' ', '\\x1b' (Esc), '\\x13' (Ctrl+S) …
Послідовність клавіш у межах одного tick може утворювати комбінацію.
"""
from __future__ import annotations

import dataclasses
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple

TICK = "tick"
RENDER = "render"
QUIT = "quit"
SUSPEND = "suspend"
RESUME = "resume"
RESIZE = "resize"
CLEAR_SCREEN = "clear_screen"
PAUSE = "pause"
CYCLE_LAYOUT = "cycle_layout"
TOGGLE_FPS = "toggle_fps"
ERROR = "error"

# tick/render надто часті для debug-логу
QUIET_KINDS = frozenset({TICK, RENDER})

KEY_ESC = "\x1b"
KEY_CTRL_C = "\x03"
KEY_CTRL_S = "\x13"


@dataclasses.dataclass(frozen=True)
class Action:
    kind: str
    data: Any = None

    def __str__(self) -> str:
        if self.data is None:
            return self.kind
        return "{0}({1})".format(self.kind, self.data)


def resize(width: int, height: int) -> Action:
    return Action(RESIZE, (width, height))


def error(message: str) -> Action:
    return Action(ERROR, message)


class KeyBindings:
    """Послідовність клавіш → Action."""

    def __init__(self) -> None:
        self._bindings: Dict[Tuple[str, ...], Action] = {}

    def bind(self, keys: Sequence[str], action: Action) -> None:
        self._bindings[tuple(keys)] = action

    def bind_keys(self, keys: Iterable[str], action: Action) -> None:
        """Кожна клавіша окремо → та сама дія."""
        for key in keys:
            self.bind([key], action)

    def get(self, keys: Sequence[str]) -> Optional[Action]:
        return self._bindings.get(tuple(keys))

    def __len__(self) -> int:
        return len(self._bindings)


def default_keybindings() -> KeyBindings:
    kb = KeyBindings()
    kb.bind_keys(["q", "Q", KEY_ESC, KEY_CTRL_C], Action(QUIT))
    kb.bind_keys([KEY_CTRL_S], Action(SUSPEND))
    kb.bind_keys([" "], Action(PAUSE))
    kb.bind_keys(["l", "L"], Action(CYCLE_LAYOUT))
    kb.bind_keys(["f", "F"], Action(TOGGLE_FPS))
    return kb
