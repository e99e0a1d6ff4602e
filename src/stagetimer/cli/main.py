"""CLI entry point for stagetimer.

Uses Click to expose the ``stagetimer`` command, which pairs ``--name`` and
``--time`` options into stages and runs them on the terminal.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, TypeVar

import click

import stagetimer
from stagetimer.core.duration import DURATION, format_hms
from stagetimer.core.errors import StageTimerError
from stagetimer.core.loop import LoopOutcome, run_loop
from stagetimer.core.ticker import Ticker
from stagetimer.core.timer import StageTimer, build_stages
from stagetimer.ui.keys import TerminalKeys
from stagetimer.ui.render import Renderer

T = TypeVar("T")

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _run(action: Callable[[], T]) -> T:
    """Execute *action*, converting ``StageTimerError`` to a CLI error.

    On ``StageTimerError`` the message is printed to stderr and the
    process exits with code 1.
    """
    try:
        return action()
    except StageTimerError as exc:
        logger.exception("Fatal error")
        click.echo(str(exc), err=True)
        sys.exit(1)


def _configure_logging(log_file: Path | None) -> None:
    if log_file is not None:
        logging.basicConfig(filename=log_file, level=logging.DEBUG, format=_LOG_FORMAT)


def _run_stages(timer: StageTimer, warn: int) -> LoopOutcome:
    """Run *timer* with raw keyboard input on the alternate screen.

    The nested ``with`` blocks restore the terminal in reverse order on
    every exit path.
    """
    with TerminalKeys() as keys, Renderer(warn_threshold=warn) as renderer, Ticker() as ticker:
        return run_loop(timer, ticker, keys, renderer)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=stagetimer.__version__, prog_name="stagetimer")
@click.option(
    "-n",
    "--name",
    "names",
    multiple=True,
    required=True,
    metavar="NAME",
    help="Name of a timer stage. Repeat once per stage.",
)
@click.option(
    "-t",
    "--time",
    "times",
    multiple=True,
    required=True,
    type=DURATION,
    metavar="DURATION",
    help="Duration of a timer stage as S, M:S or H:M:S. Repeat once per stage.",
)
@click.option(
    "-w",
    "--warn",
    type=DURATION,
    default=0,
    show_default=True,
    metavar="DURATION",
    help="Highlight the active stage once this little time remains (0 disables).",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write debug logs to this file.",
)
def cli(names: tuple[str, ...], times: tuple[int, ...], warn: int, log_file: Path | None) -> None:
    """Configurable multi-stage timer for film development or workouts."""
    _configure_logging(log_file)

    stages = _run(lambda: build_stages(names, times))
    timer = _run(lambda: StageTimer(stages))
    for stage in timer.stages:
        click.echo(f"Stage '{stage.name}' set for {format_hms(stage.duration_s)}")

    outcome = _run(lambda: _run_stages(timer, warn))
    if outcome is LoopOutcome.COMPLETED:
        click.echo("All stages complete.")
    else:
        current = timer.current_stage
        name = current.name if current is not None else timer.stages[-1].name
        click.echo(f"Stopped during stage '{name}'.")
