"""Duration grammar — ``[[H:]M:]S`` strings to whole seconds and back."""

from __future__ import annotations

import click

from stagetimer.core.errors import ArgumentError

_MAX_FIELDS = 3
_BASE = 60


def parse_duration(text: str) -> int:
    """Parse *text* as a duration in whole seconds.

    Accepts a bare integer (``"90"``) or colon-separated fields read right to
    left as seconds, minutes and hours (``"1:30"``, ``"1:01:01"``).  Fields
    are not range-checked, so ``"0:90"`` is also 90 seconds.
    """
    fields = text.strip().split(":")
    if len(fields) > _MAX_FIELDS:
        raise ArgumentError(f"too many fields in duration {text!r}, expected [[H:]M:]S")

    total = 0
    multiplier = 1
    for field in reversed(fields):
        if not (field.isascii() and field.isdigit()):
            raise ArgumentError(f"invalid duration {text!r}, expected [[H:]M:]S")
        total += int(field) * multiplier
        multiplier *= _BASE
    return total


def format_hms(seconds: int) -> str:
    """Format *seconds* as zero-padded ``HH:MM:SS``."""
    minutes, secs = divmod(seconds, _BASE)
    hours, minutes = divmod(minutes, _BASE)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class DurationType(click.ParamType):
    """Click parameter type accepting the duration grammar."""

    name = "duration"

    def convert(
        self, value: str | int, param: click.Parameter | None, ctx: click.Context | None
    ) -> int:
        if isinstance(value, int):
            return value
        try:
            return parse_duration(value)
        except ArgumentError as exc:
            self.fail(str(exc), param, ctx)


DURATION = DurationType()
