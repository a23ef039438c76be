"""Logging handler that turns logged warnings and errors into an async stream.

The orchestrator consumes :meth:`LogAlertHandler.alerts` as one of its
long-lived subscriptions. Records may be emitted from any thread; they are
handed to the consuming event loop with ``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from sdrlink.models.status import LogAlert

# Records from the orchestrator itself would feed back into its own alerts
_IGNORED_PREFIXES = ("sdrlink.core",)


class LogAlertHandler(logging.Handler):
    """Forwards WARNING-and-above records to an asyncio consumer.

    Records emitted before :meth:`alerts` starts iterating are dropped.

    Example:
        handler = LogAlertHandler()
        handler.install()
        orchestrator = ConnectionOrchestrator(..., log_alerts=handler.alerts())
    """

    def __init__(
        self,
        level: int = logging.WARNING,
        ignored_prefixes: tuple[str, ...] = _IGNORED_PREFIXES,
    ) -> None:
        super().__init__(level)
        self._ignored_prefixes = ignored_prefixes
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[LogAlert] | None = None

    def install(self, logger: logging.Logger | None = None) -> None:
        """Attach the handler to a logger (root by default)."""
        (logger or logging.getLogger()).addHandler(self)

    def uninstall(self, logger: logging.Logger | None = None) -> None:
        """Detach the handler from a logger (root by default)."""
        (logger or logging.getLogger()).removeHandler(self)

    def emit(self, record: logging.LogRecord) -> None:
        """Queue the record for the consumer, if one is listening."""
        if record.name.startswith(self._ignored_prefixes):
            return
        loop = self._loop
        queue = self._queue
        if loop is None or queue is None or loop.is_closed():
            return
        alert = LogAlert(severity=record.levelno, message=record.getMessage())
        try:
            loop.call_soon_threadsafe(queue.put_nowait, alert)
        except RuntimeError:
            # Loop closed between the check and the call
            self.handleError(record)

    async def alerts(self) -> AsyncIterator[LogAlert]:
        """Yield LogAlerts forever, on the calling event loop."""
        self._queue = asyncio.Queue()
        self._loop = asyncio.get_running_loop()
        try:
            while True:
                yield await self._queue.get()
        finally:
            self._loop = None
            self._queue = None
