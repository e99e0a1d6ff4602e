"""Timer core — a pure, tick-driven state machine over an ordered stage list."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from stagetimer.core.errors import ArgumentError, InvalidDuration

logger = logging.getLogger(__name__)

_MIN_DURATION = 1


class TimerState(Enum):
    """Possible states of the stage timer."""

    RUNNING = "running"
    PAUSED = "paused"
    COMPLETE = "complete"


@dataclass
class Stage:
    """One named countdown segment."""

    name: str
    duration_s: int
    elapsed_s: int = 0

    @property
    def remaining(self) -> int:
        return self.duration_s - self.elapsed_s

    @property
    def completion_ratio(self) -> float:
        return self.elapsed_s / self.duration_s


def build_stages(names: Sequence[str], durations: Sequence[int]) -> list[Stage]:
    """Pair *names* with *durations* by position.

    Raises ``ArgumentError`` when the two sequences differ in length.
    """
    if len(names) != len(durations):
        raise ArgumentError(
            f"Cannot match unequal number of timers and names "
            f"({len(names)} names, {len(durations)} times)."
        )
    return [Stage(name, duration) for name, duration in zip(names, durations)]


class StageTimer:
    """A pure state-machine timer that steps through stages one tick at a time.

    Time only passes when :meth:`advance` is called, once per elapsed second.
    Contains no I/O, no threads, and no wall-clock reads -- the caller owns
    the clock.
    """

    def __init__(self, stages: Iterable[Stage]) -> None:
        self._stages: tuple[Stage, ...] = tuple(stages)
        if not self._stages:
            raise ArgumentError("at least one stage is required")
        for stage in self._stages:
            if stage.duration_s < _MIN_DURATION:
                raise InvalidDuration(
                    f"stage {stage.name!r} must last at least {_MIN_DURATION}s, "
                    f"got {stage.duration_s}s"
                )
            if not 0 <= stage.elapsed_s < stage.duration_s:
                raise InvalidDuration(
                    f"stage {stage.name!r} must start with elapsed time in "
                    f"[0, {stage.duration_s}s), got {stage.elapsed_s}s"
                )
        self._current_index: int = 0
        self._paused: bool = False
        logger.info("Timer created with %d stage(s)", len(self._stages))

    # -- public interface ----------------------------------------------------

    def advance(self) -> bool:
        """Apply one tick.

        Returns ``False`` once the sequence is complete, including on the call
        that completes the final stage.  A paused timer consumes the tick
        without progressing and returns ``True``.
        """
        if self.is_complete:
            return False
        if self._paused:
            return True

        stage = self._stages[self._current_index]
        stage.elapsed_s += 1
        logger.debug("Tick: %s at %d/%ds", stage.name, stage.elapsed_s, stage.duration_s)

        if stage.remaining == 0:
            self._current_index += 1
            if self.is_complete:
                logger.info("Stage %r finished, all stages complete", stage.name)
                return False
            logger.info(
                "Stage %r finished, starting %r",
                stage.name,
                self._stages[self._current_index].name,
            )
        return True

    def toggle_pause(self) -> None:
        """Flip the paused flag.  Progress is never touched."""
        self._paused = not self._paused
        logger.info("Timer %s", "paused" if self._paused else "resumed")

    @property
    def stages(self) -> tuple[Stage, ...]:
        return self._stages

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def is_complete(self) -> bool:
        return self._current_index >= len(self._stages)

    @property
    def current_stage(self) -> Stage | None:
        """Return the active stage, or ``None`` once the sequence is complete."""
        if self.is_complete:
            return None
        return self._stages[self._current_index]

    @property
    def state(self) -> TimerState:
        if self.is_complete:
            return TimerState.COMPLETE
        if self._paused:
            return TimerState.PAUSED
        return TimerState.RUNNING
