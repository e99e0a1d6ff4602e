"""Keyboard input — raw terminal reads split and decoded into key presses."""

from __future__ import annotations

import logging
import os
import select
import sys
import termios
from collections import deque

from stagetimer.core.actions import KeyPress
from stagetimer.core.errors import TerminalIOError

logger = logging.getLogger(__name__)

_ESCAPE = b"\x1b"
_ESC = 0x1B
_CSI = 0x5B  # "["
_SS3 = 0x4F  # "O"
_READ_SIZE = 32
# lflag bits cleared while the timer owns the keyboard
_RAW_LFLAGS = termios.ICANON | termios.ECHO | termios.ISIG | termios.IEXTEN


def split_keys(data: bytes) -> list[bytes]:
    """Split one read's worth of raw bytes into individual keys.

    ESC followed by a CSI or SS3 sequence stays together as one key; any
    other ESC is the escape key on its own.  Multi-byte UTF-8 characters are
    kept whole, and every other byte is a key of its own.
    """
    keys: list[bytes] = []
    i = 0
    while i < len(data):
        end = i + 1
        lead = data[i]
        if lead == _ESC and end < len(data):
            if data[end] == _CSI:
                end += 1
                while end < len(data) and not 0x40 <= data[end] <= 0x7E:
                    end += 1
                end = min(end + 1, len(data))
            elif data[end] == _SS3 and end + 1 < len(data):
                end += 2
        elif lead >= 0xF0:
            end = min(i + 4, len(data))
        elif lead >= 0xE0:
            end = min(i + 3, len(data))
        elif lead >= 0xC0:
            end = min(i + 2, len(data))
        keys.append(data[i:end])
        i = end
    return keys


def decode_key(data: bytes) -> KeyPress:
    """Turn the raw bytes of a single key into a :class:`KeyPress`.

    A lone ESC byte is the escape key; longer sequences starting with ESC
    (arrows, function keys) are reported as ``"sequence"``.
    """
    if data == _ESCAPE:
        return KeyPress("escape")
    if data.startswith(_ESCAPE):
        return KeyPress("sequence")
    if len(data) == 1:
        code = data[0]
        if code == 0x20:
            return KeyPress("space")
        if 1 <= code <= 26:
            return KeyPress(chr(code + ord("a") - 1), ctrl=True)
    return KeyPress(data.decode("utf-8", errors="replace"))


class TerminalKeys:
    """Read key presses from a terminal file descriptor.

    Used as a context manager, the descriptor is switched to non-canonical,
    no-echo input with signal keys disabled, and the saved attributes are
    restored on exit.  :meth:`poll` works without entering the context too.
    """

    def __init__(self, fd: int | None = None) -> None:
        if fd is None:
            try:
                fd = sys.stdin.fileno()
            except (OSError, ValueError) as exc:
                raise TerminalIOError(f"standard input is not a terminal: {exc}") from exc
        self._fd = fd
        self._saved: list | None = None
        self._pending: deque[bytes] = deque()

    def __enter__(self) -> TerminalKeys:
        try:
            self._saved = termios.tcgetattr(self._fd)
            attrs = termios.tcgetattr(self._fd)
            attrs[3] &= ~_RAW_LFLAGS
            attrs[6][termios.VMIN] = 1
            attrs[6][termios.VTIME] = 0
            termios.tcsetattr(self._fd, termios.TCSAFLUSH, attrs)
        except (OSError, termios.error) as exc:
            raise TerminalIOError(f"cannot enter raw input mode: {exc}") from exc
        logger.debug("Raw input mode enabled on fd %d", self._fd)
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._saved is None:
            return
        saved, self._saved = self._saved, None
        try:
            termios.tcsetattr(self._fd, termios.TCSADRAIN, saved)
        except (OSError, termios.error) as exc:
            raise TerminalIOError(f"cannot restore terminal input mode: {exc}") from exc
        logger.debug("Terminal input mode restored on fd %d", self._fd)

    def poll(self, timeout: float) -> KeyPress | None:
        """Return the next key press, waiting at most *timeout* seconds.

        Keys that arrived together are returned one per call, without
        waiting on the terminal again until they are used up.
        """
        if not self._pending:
            self._fill(timeout)
        if not self._pending:
            return None
        data = self._pending.popleft()
        press = decode_key(data)
        logger.debug("Key %r decoded as %s", data, press)
        return press

    def _fill(self, timeout: float) -> None:
        try:
            ready, _, _ = select.select([self._fd], [], [], timeout)
            if not ready:
                return
            data = os.read(self._fd, _READ_SIZE)
        except OSError as exc:
            raise TerminalIOError(f"cannot read keyboard input: {exc}") from exc
        if not data:
            raise TerminalIOError("keyboard input closed")
        self._pending.extend(split_keys(data))
