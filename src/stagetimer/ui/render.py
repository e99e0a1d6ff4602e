"""Frame rendering with rich — one stage per row, drawn on the alternate screen."""

from __future__ import annotations

import logging

from rich.console import Console, RenderableType
from rich.live import Live
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.table import Table
from rich.text import Text

from stagetimer.core.duration import format_hms
from stagetimer.core.errors import TerminalIOError
from stagetimer.core.timer import StageTimer

logger = logging.getLogger(__name__)

ACTIVE_STYLE = "bold green"
WARNING_STYLE = "bold red"
INACTIVE_STYLE = "dim"
BAR_BACK_STYLE = "grey23"

PAUSED_LABEL = "Paused"
_TITLE = "stagetimer"
_HINT = "space pause/resume · esc quit"


def stage_style(timer: StageTimer, index: int, warn_threshold: int) -> str:
    """Return the style for the stage at *index*."""
    if index != timer.current_index:
        return INACTIVE_STYLE
    stage = timer.stages[index]
    if warn_threshold > 0 and stage.remaining <= warn_threshold:
        return WARNING_STYLE
    return ACTIVE_STYLE


def stage_label(timer: StageTimer, index: int) -> str:
    if timer.paused:
        return PAUSED_LABEL
    stage = timer.stages[index]
    return f"{format_hms(stage.remaining)} / {format_hms(stage.duration_s)}"


def build_frame(timer: StageTimer, warn_threshold: int = 0) -> RenderableType:
    """Project *timer* onto a single renderable frame.  Keeps no state."""
    grid = Table.grid(padding=(0, 1), expand=True)
    grid.add_column(no_wrap=True)
    grid.add_column(ratio=1)
    grid.add_column(justify="right", no_wrap=True)

    for index, stage in enumerate(timer.stages):
        style = stage_style(timer, index, warn_threshold)
        bar = ProgressBar(
            total=1.0,
            completed=stage.completion_ratio,
            style=BAR_BACK_STYLE,
            complete_style=style,
            finished_style=style,
        )
        grid.add_row(Text(stage.name, style=style), bar, Text(stage_label(timer, index), style=style))

    return Panel(grid, title=_TITLE, subtitle=_HINT, border_style=INACTIVE_STYLE)


class Renderer:
    """Draw frames on the terminal's alternate screen.

    Entering the context switches to the alternate screen; leaving it
    switches back.  :meth:`draw` refreshes the whole frame.
    """

    def __init__(self, warn_threshold: int = 0, console: Console | None = None) -> None:
        self._warn_threshold = warn_threshold
        self._live = Live(
            console=console,
            screen=True,
            auto_refresh=False,
            redirect_stdout=False,
            redirect_stderr=False,
        )

    def __enter__(self) -> Renderer:
        try:
            self._live.start()
        except OSError as exc:
            raise TerminalIOError(f"cannot enter alternate screen: {exc}") from exc
        logger.debug("Alternate screen entered")
        return self

    def __exit__(self, *exc_info: object) -> None:
        try:
            self._live.stop()
        except OSError as exc:
            raise TerminalIOError(f"cannot leave alternate screen: {exc}") from exc
        logger.debug("Alternate screen left")

    def draw(self, timer: StageTimer) -> None:
        try:
            self._live.update(build_frame(timer, self._warn_threshold), refresh=True)
        except OSError as exc:
            raise TerminalIOError(f"cannot draw frame: {exc}") from exc
