"""Background one-second clock feeding tick events to the run loop."""

from __future__ import annotations

import logging
import queue
import threading
import time

logger = logging.getLogger(__name__)

TICK_INTERVAL = 1.0


class Ticker:
    """Emit one tick per *interval* seconds from a daemon thread.

    Ticks are queued without bound and never coalesced, so a slow consumer
    sees every elapsed second.  The period is "wait, then emit": there is no
    drift correction.  The thread stops at the first period boundary after
    :meth:`stop`.
    """

    def __init__(self, interval: float = TICK_INTERVAL) -> None:
        self._interval = interval
        self._ticks: queue.SimpleQueue[float] = queue.SimpleQueue()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> Ticker:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("ticker already started")
        self._thread = threading.Thread(target=self._run, name="stagetimer-ticker", daemon=True)
        self._thread.start()
        logger.debug("Ticker started, interval %.3fs", self._interval)

    def stop(self) -> None:
        self._stop.set()
        logger.debug("Ticker stopped with %d tick(s) undelivered", self.pending)

    def poll(self) -> bool:
        """Consume one queued tick if there is one.  Never blocks."""
        try:
            self._ticks.get_nowait()
        except queue.Empty:
            return False
        return True

    @property
    def pending(self) -> int:
        return self._ticks.qsize()

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self._ticks.put(time.monotonic())
