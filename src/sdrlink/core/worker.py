"""QThread worker for running the ConnectionOrchestrator in a Qt application.

Qt widgets must run in the main thread, but the orchestrator uses asyncio.
This worker runs the asyncio event loop in a background thread; the
orchestrator's Qt signals reach main-thread slots through queued delivery,
and every intent is handed to the loop with ``call_soon_threadsafe``.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import suppress
from typing import Any

from PySide6.QtCore import QThread, Signal

from sdrlink.core.orchestrator import ConnectionOrchestrator
from sdrlink.models.target import SessionKind, Target

logger = logging.getLogger(__name__)


class OrchestratorWorker(QThread):
    """Background thread worker for the connection orchestrator.

    Example:
        worker = OrchestratorWorker(orchestrator)
        orchestrator.status_changed.connect(lambda s: print(f"Status: {s}"))
        worker.start()
        worker.connect_disconnect()
    """

    # Orchestrator started and accepting intents
    ready = Signal()

    # Error signal
    error_occurred = Signal(object)  # Exception

    def __init__(self, orchestrator: ConnectionOrchestrator) -> None:
        """Initialize the worker.

        Args:
            orchestrator: The orchestrator to run.
        """
        super().__init__()
        self._orchestrator = orchestrator
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None
        self._should_run = True

    @property
    def orchestrator(self) -> ConnectionOrchestrator:
        """Return the orchestrator this worker runs."""
        return self._orchestrator

    @property
    def is_running(self) -> bool:
        """Return True while the event loop is running."""
        return self._loop is not None and self._loop.is_running()

    def _post(self, method: Callable[..., None], *args: Any) -> None:
        """Schedule an orchestrator intent on the event loop (no-op when idle)."""
        if self._loop and self._loop.is_running():
            self._loop.call_soon_threadsafe(method, *args)
        else:
            logger.debug("Dropping %s: worker not running", getattr(method, "__name__", method))

    def stop(self) -> None:
        """Signal the worker to stop (called from main thread)."""
        self._should_run = False
        if self._loop and self._loop.is_running() and self._stop_event:
            self._loop.call_soon_threadsafe(self._stop_event.set)

    # -- Thread-safe intents -----------------------------------------------------

    def connect_disconnect(self) -> None:
        """Connect or disconnect. Thread-safe call from main thread."""
        self._post(self._orchestrator.connect_disconnect)

    def toggle_local(self) -> None:
        """Flip local discovery. Thread-safe call from main thread."""
        self._post(self._orchestrator.toggle_local)

    def toggle_direct(self) -> None:
        """Flip direct mode. Thread-safe call from main thread."""
        self._post(self._orchestrator.toggle_direct)

    def toggle_smartlink(self) -> None:
        """Flip relay discovery. Thread-safe call from main thread."""
        self._post(self._orchestrator.toggle_smartlink)

    def toggle_login_required(self) -> None:
        """Flip the login-required flag. Thread-safe call from main thread."""
        self._post(self._orchestrator.toggle_login_required)

    def toggle_rx_audio(self) -> None:
        """Flip receive audio. Thread-safe call from main thread."""
        self._post(self._orchestrator.toggle_rx_audio)

    def toggle_tx_audio(self) -> None:
        """Flip transmit audio. Thread-safe call from main thread."""
        self._post(self._orchestrator.toggle_tx_audio)

    def set_session_kind(self, kind: SessionKind) -> None:
        """Choose exclusive or shared sessions. Thread-safe call from main thread."""
        self._post(self._orchestrator.set_session_kind, kind)

    def set_use_default(self, enabled: bool) -> None:
        """Enable or disable auto-connect. Thread-safe call from main thread."""
        self._post(self._orchestrator.set_use_default, enabled)

    def picker_connect(self, target: Target) -> None:
        """Connect to a picked target. Thread-safe call from main thread."""
        self._post(self._orchestrator.picker_connect, target)

    def picker_cancel(self) -> None:
        """Close the picker. Thread-safe call from main thread."""
        self._post(self._orchestrator.picker_cancel)

    def picker_toggle_default(self, target: Target) -> None:
        """Set or clear the default. Thread-safe call from main thread."""
        self._post(self._orchestrator.picker_toggle_default, target)

    def picker_test(self, target: Target) -> None:
        """Run a relay test. Thread-safe call from main thread."""
        self._post(self._orchestrator.picker_test, target)

    def conflict_connect(self, handle: int | None) -> None:
        """Resolve the conflict dialog. Thread-safe call from main thread."""
        self._post(self._orchestrator.conflict_connect, handle)

    def conflict_cancel(self) -> None:
        """Cancel the conflict dialog. Thread-safe call from main thread."""
        self._post(self._orchestrator.conflict_cancel)

    def login_submit(self, user: str, password: str) -> None:
        """Submit relay credentials. Thread-safe call from main thread."""
        self._post(self._orchestrator.login_submit, user, password)

    def login_cancel(self) -> None:
        """Decline the relay login. Thread-safe call from main thread."""
        self._post(self._orchestrator.login_cancel)

    def dismiss_alert(self) -> None:
        """Dismiss the current alert. Thread-safe call from main thread."""
        self._post(self._orchestrator.dismiss_alert)

    # -- Thread body -------------------------------------------------------------

    def run(self) -> None:
        """Run the worker thread (entry point)."""
        # Create new event loop for this thread
        self._loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self._loop)

        try:
            self._loop.run_until_complete(self._main())
        except Exception as e:
            logger.exception("Orchestrator loop crashed")
            self.error_occurred.emit(e)
        finally:
            self._loop.close()
            self._loop = None
            self._stop_event = None

    async def _main(self) -> None:
        """Start the orchestrator and process actions until stopped."""
        self._stop_event = asyncio.Event()
        if not self._should_run:
            return

        self._orchestrator.start()
        runner = asyncio.create_task(self._orchestrator.run(), name="orchestrator")
        stopper = asyncio.create_task(self._stop_event.wait(), name="stop")
        self.ready.emit()
        try:
            done, _ = await asyncio.wait({runner, stopper}, return_when=asyncio.FIRST_COMPLETED)
            if runner in done:
                # run() only returns by raising
                runner.result()
        finally:
            for task in (runner, stopper):
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
            await self._orchestrator.stop()
