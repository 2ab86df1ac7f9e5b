"""Automatic reconnection timer."""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class ReconnectPolicy:
    """A single coarse timer that calls ``connect`` after a failure.

    ``interval`` is in milliseconds; 0 disables automatic reconnects.
    ``tries`` counts the automatic attempts since the last explicit
    connect/reconnect or the last time the connection was usable.
    """

    def __init__(self, connect: Callable[[], None], interval: int = 0) -> None:
        self._connect = connect
        self.interval = interval
        self.tries = 0
        self._handle: asyncio.TimerHandle | None = None

    @property
    def is_armed(self) -> bool:
        return self._handle is not None

    def arm(self) -> bool:
        """Start (or restart) the timer; returns False when reconnecting is disabled."""
        if self.interval <= 0:
            return False
        self.stop()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.interval / 1000, self._fire)
        logger.info("Reconnecting in %d ms (attempt %d)", self.interval, self.tries + 1)
        return True

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def reset(self) -> None:
        self.tries = 0

    def _fire(self) -> None:
        self._handle = None
        tries = self.tries
        self._connect()
        self.tries = tries + 1
