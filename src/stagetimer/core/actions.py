"""Key presses and the closed set of actions the run loop understands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Action(Enum):
    """What the run loop should do in response to a key press."""

    QUIT = "quit"
    TOGGLE_PAUSE = "toggle_pause"
    IGNORED = "ignored"


@dataclass(frozen=True)
class KeyPress:
    """A decoded key: its name and whether Ctrl was held."""

    key: str
    ctrl: bool = False


_ACTIONS: dict[KeyPress, Action] = {
    KeyPress("escape"): Action.QUIT,
    KeyPress("c", ctrl=True): Action.QUIT,
    KeyPress("space"): Action.TOGGLE_PAUSE,
}


def classify(press: KeyPress) -> Action:
    """Map *press* onto an :class:`Action`; unknown keys are ``IGNORED``."""
    return _ACTIONS.get(press, Action.IGNORED)
