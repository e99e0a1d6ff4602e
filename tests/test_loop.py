"""Tests for the run loop, driven by scripted ticks and key presses."""

from __future__ import annotations

import logging
from typing import Iterable

import pytest

from stagetimer.core.actions import KeyPress
from stagetimer.core.errors import TerminalIOError
from stagetimer.core import loop
from stagetimer.core.loop import LoopOutcome, run_loop
from stagetimer.core.timer import Stage, StageTimer

SPACE = KeyPress("space")
ESCAPE = KeyPress("escape")
CTRL_C = KeyPress("c", ctrl=True)

# ---------------------------------------------------------------------------
# Scripted collaborators
# ---------------------------------------------------------------------------


class ScriptedTicker:
    """Returns one scripted tick flag per poll, then no ticks."""

    def __init__(self, ticks: Iterable[bool]) -> None:
        self._ticks = list(ticks)

    def poll(self) -> bool:
        return self._ticks.pop(0) if self._ticks else False

    @property
    def pending(self) -> int:
        return sum(self._ticks)


class ScriptedKeys:
    """Returns one scripted key (or ``None``) per poll, then Escape forever."""

    def __init__(self, presses: Iterable[KeyPress | None]) -> None:
        self._presses = list(presses)
        self.timeouts: list[float] = []

    def poll(self, timeout: float) -> KeyPress | None:
        self.timeouts.append(timeout)
        return self._presses.pop(0) if self._presses else ESCAPE


class RecordingRenderer:
    """Records a snapshot of the timer for every frame drawn."""

    def __init__(self, fail_on: int | None = None) -> None:
        self.frames: list[tuple[int, bool, tuple[int, ...]]] = []
        self._fail_on = fail_on

    def draw(self, timer: StageTimer) -> None:
        if self._fail_on is not None and len(self.frames) == self._fail_on:
            raise TerminalIOError("cannot draw frame: broken pipe")
        self.frames.append((timer.current_index, timer.paused, tuple(s.elapsed_s for s in timer.stages)))


def _timer(*specs: tuple) -> StageTimer:
    return StageTimer(Stage(name, seconds) for name, seconds in specs)


def _run(timer: StageTimer, ticks: Iterable[bool], presses: Iterable[KeyPress | None], renderer=None):
    renderer = renderer if renderer is not None else RecordingRenderer()
    sleeps: list[float] = []
    keys = ScriptedKeys(presses)
    outcome = run_loop(
        timer,
        ScriptedTicker(ticks),
        keys,
        renderer,
        interval=0.05,
        input_timeout=0.01,
        sleep=sleeps.append,
    )
    return outcome, renderer, sleeps, keys


# ---------------------------------------------------------------------------
# Natural completion
# ---------------------------------------------------------------------------


class TestLoopCompletion:
    """The loop ends on the tick that completes the final stage."""

    def test_two_stage_scenario_completes(self) -> None:
        timer = _timer(("A", 3), ("B", 2))
        outcome, renderer, sleeps, _ = _run(timer, [True] * 5, [None] * 5)
        assert outcome is LoopOutcome.COMPLETED
        assert timer.current_index == 2
        assert [s.elapsed_s for s in timer.stages] == [3, 2]
        assert len(sleeps) == 5

    def test_index_moves_after_first_stage(self) -> None:
        timer = _timer(("A", 3), ("B", 2))
        _, renderer, _, _ = _run(timer, [True] * 5, [None] * 5)
        # frame 0 is the initial draw, frame 3 follows the third tick
        assert renderer.frames[3][0] == 1
        assert renderer.frames[3][2] == (3, 0)

    def test_final_frame_drawn_on_completion(self) -> None:
        timer = _timer(("A", 1))
        _, renderer, _, _ = _run(timer, [True], [None])
        assert renderer.frames == [(0, False, (0,)), (1, False, (1,))]

    def test_no_mutation_after_completion(self) -> None:
        timer = _timer(("A", 2))
        _run(timer, [True] * 10, [None] * 10)
        assert timer.stages[0].elapsed_s == 2
        assert timer.advance() is False

    def test_iterations_without_ticks_do_not_draw(self) -> None:
        timer = _timer(("A", 1))
        _, renderer, sleeps, _ = _run(timer, [False, False, True], [None, None, None])
        assert len(sleeps) == 3
        assert len(renderer.frames) == 2

    def test_uses_configured_intervals(self) -> None:
        timer = _timer(("A", 5))
        _, _, sleeps, keys = _run(timer, [True], [None])
        assert set(sleeps) == {0.05}
        assert set(keys.timeouts) == {0.01}


# ---------------------------------------------------------------------------
# Quit
# ---------------------------------------------------------------------------


class TestLoopQuit:
    """Quit keys end the loop immediately without a final render."""

    @pytest.mark.parametrize("press", [ESCAPE, CTRL_C])
    def test_quit_keys(self, press: KeyPress) -> None:
        timer = _timer(("A", 10))
        outcome, renderer, _, _ = _run(timer, [], [press])
        assert outcome is LoopOutcome.QUIT
        assert len(renderer.frames) == 1

    def test_quit_after_tick_applies_tick_first(self) -> None:
        timer = _timer(("A", 10))
        outcome, renderer, _, _ = _run(timer, [True], [ESCAPE])
        assert outcome is LoopOutcome.QUIT
        assert timer.stages[0].elapsed_s == 1
        assert len(renderer.frames) == 2

    def test_ignored_keys_have_no_effect(self) -> None:
        timer = _timer(("A", 10))
        outcome, renderer, _, _ = _run(timer, [], [KeyPress("q"), KeyPress("sequence"), ESCAPE])
        assert outcome is LoopOutcome.QUIT
        assert timer.paused is False
        assert len(renderer.frames) == 1


# ---------------------------------------------------------------------------
# Pause
# ---------------------------------------------------------------------------


class TestLoopPause:
    """Space toggles pause and redraws straight away."""

    def test_toggle_redraws(self) -> None:
        timer = _timer(("A", 10))
        _, renderer, _, _ = _run(timer, [], [SPACE, ESCAPE])
        assert renderer.frames[-1] == (0, True, (0,))

    def test_paused_ticks_are_consumed_without_progress(self) -> None:
        timer = _timer(("A", 10))
        presses = [SPACE, None, None, None, None, None, SPACE, None, ESCAPE]
        ticks = [False, True, True, True, True, True, False, True]
        _run(timer, ticks, presses)
        assert timer.stages[0].elapsed_s == 1
        assert timer.paused is False

    def test_tick_and_toggle_in_same_iteration_draw_twice(self) -> None:
        timer = _timer(("A", 10))
        _, renderer, _, _ = _run(timer, [True], [SPACE, ESCAPE])
        assert renderer.frames[1] == (0, False, (1,))
        assert renderer.frames[2] == (0, True, (1,))


# ---------------------------------------------------------------------------
# Catch-up and failures
# ---------------------------------------------------------------------------


class TestLoopBacklogAndErrors:
    """Queued ticks drain one per iteration; I/O errors propagate."""

    def test_backlog_drains_one_tick_per_iteration(self) -> None:
        timer = _timer(("A", 10))
        _, renderer, sleeps, _ = _run(timer, [True, True, True], [None, None, ESCAPE])
        assert len(sleeps) == 3
        assert [frame[2] for frame in renderer.frames] == [(0,), (1,), (2,), (3,)]

    def test_render_error_propagates(self) -> None:
        timer = _timer(("A", 10))
        with pytest.raises(TerminalIOError):
            _run(timer, [True], [None], renderer=RecordingRenderer(fail_on=1))

    def test_input_error_propagates(self) -> None:
        class BrokenKeys:
            def poll(self, timeout: float) -> KeyPress | None:
                raise TerminalIOError("cannot read keyboard input: EIO")

        with pytest.raises(TerminalIOError):
            run_loop(_timer(("A", 10)), ScriptedTicker([]), BrokenKeys(), RecordingRenderer(), sleep=lambda _: None)

    def test_backlog_is_logged_while_catching_up(self, caplog: pytest.LogCaptureFixture) -> None:
        timer = _timer(("A", 10))
        with caplog.at_level(logging.DEBUG, logger="stagetimer.core.loop"):
            _run(timer, [True, True, True], [None, None, ESCAPE])
        backlog = [r.getMessage() for r in caplog.records if "Catching up" in r.getMessage()]
        assert backlog == ["Catching up, 2 tick(s) queued", "Catching up, 1 tick(s) queued"]

    def test_loop_maps_keys_with_core_actions(self) -> None:
        assert loop.classify.__module__ == "stagetimer.core.actions"
        assert loop.KeyPress.__module__ == "stagetimer.core.actions"
