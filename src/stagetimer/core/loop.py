"""Run loop — feeds ticks and key presses into the timer and redraws it."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Protocol

from stagetimer.core.actions import Action, KeyPress, classify
from stagetimer.core.timer import StageTimer

logger = logging.getLogger(__name__)

LOOP_INTERVAL = 0.05
INPUT_TIMEOUT = 0.01


class LoopOutcome(Enum):
    """Why the run loop returned."""

    COMPLETED = "completed"
    QUIT = "quit"


class TickSource(Protocol):
    def poll(self) -> bool: ...

    @property
    def pending(self) -> int: ...


class KeySource(Protocol):
    def poll(self, timeout: float) -> KeyPress | None: ...


class FrameSink(Protocol):
    def draw(self, timer: StageTimer) -> None: ...


def run_loop(
    timer: StageTimer,
    ticker: TickSource,
    keys: KeySource,
    renderer: FrameSink,
    *,
    interval: float = LOOP_INTERVAL,
    input_timeout: float = INPUT_TIMEOUT,
    sleep: Callable[[float], None] = time.sleep,
) -> LoopOutcome:
    """Drive *timer* until every stage has elapsed or the user quits.

    Each iteration applies at most one tick, then at most one key press, so
    a backlog of ticks drains one per iteration.  Errors raised by *keys* or
    *renderer* propagate unchanged.
    """
    renderer.draw(timer)

    while True:
        sleep(interval)

        if ticker.poll():
            running = timer.advance()
            renderer.draw(timer)
            if not running:
                logger.info("All stages complete")
                return LoopOutcome.COMPLETED
            if ticker.pending:
                logger.debug("Catching up, %d tick(s) queued", ticker.pending)

        press = keys.poll(input_timeout)
        if press is None:
            continue
        action = classify(press)
        if action is Action.QUIT:
            logger.info("Quit requested at stage index %d", timer.current_index)
            return LoopOutcome.QUIT
        if action is Action.TOGGLE_PAUSE:
            timer.toggle_pause()
            renderer.draw(timer)
