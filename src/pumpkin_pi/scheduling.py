"""
Thread helpers that feed the position controller.

`Ticker` calls a function on a fixed cadence. `CommandDispatcher` runs
commands one at a time on a worker thread so GPIO interrupt callbacks return
immediately instead of blocking for a whole step sequence.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable, Optional

LOG = logging.getLogger(__name__)

_STOP = object()


class Ticker:
    """Invoke `callback` every `interval_s`, first call after one interval."""

    def __init__(self, interval_s: float, callback: Callable[[], None], *, name: str = "ticker") -> None:
        if interval_s <= 0:
            raise ValueError(f"interval must be positive, got {interval_s}")
        self.interval_s = interval_s
        self.callback = callback
        self.name = name
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        LOG.info("%s every %.1fs", self.name, self.interval_s)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_s):
            try:
                self.callback()
            except Exception:
                LOG.exception("%s callback failed", self.name)


class CommandDispatcher:
    """
    Single-consumer command queue.

    At most one command waits while another runs; anything posted while the
    dispatcher is busy (as reported by `is_busy`) or already has a pending
    command is dropped.
    """

    def __init__(
        self,
        *,
        is_busy: Callable[[], bool] = lambda: False,
        name: str = "dispatcher",
    ) -> None:
        self.name = name
        self._is_busy = is_busy
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=1)
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()

    def post(self, label: str, command: Callable[[], object]) -> bool:
        """Queue `command`; returns False when it was dropped."""
        if self._is_busy():
            LOG.debug("%s: dropping %s, servo is moving", self.name, label)
            return False
        try:
            self._queue.put_nowait((label, command))
        except queue.Full:
            LOG.debug("%s: dropping %s, a command is already pending", self.name, label)
            return False
        return True

    def stop(self, timeout: Optional[float] = None) -> None:
        """Finish the running command, discard pending ones and join the worker."""
        if self._thread is None:
            return
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break
        self._queue.put(_STOP)
        self._thread.join(timeout)
        self._thread = None

    def _loop(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            label, command = item
            try:
                command()
            except Exception:
                LOG.exception("%s: %s failed", self.name, label)
