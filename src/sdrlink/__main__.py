"""Headless entry point: find a radio, connect to it and keep the session open."""

import argparse
import importlib
import logging
import os
import signal
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from sdrlink.api.interfaces import Backend
from sdrlink.core.config import ConfigManager
from sdrlink.core.defaults import DefaultSelectionStore
from sdrlink.core.log_alerts import LogAlertHandler
from sdrlink.core.orchestrator import DEFAULT_PROGRAM_NAME, ConnectionOrchestrator
from sdrlink.core.worker import OrchestratorWorker
from sdrlink.models.modal import ConflictModal, LoginModal, PickerModal
from sdrlink.models.status import Alert, AlertKind, ConnectionStatus
from sdrlink.models.target import SessionKind, Target

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def load_backend(reference: str) -> Backend:
    """Import ``module:factory`` and call the factory.

    Args:
        reference: Import path of a zero-argument callable returning a Backend.

    Raises:
        ValueError: If the reference is malformed or the factory returns something else.
        ImportError: If the module cannot be imported.
        AttributeError: If the factory does not exist.
    """
    module_name, _, attr = reference.partition(":")
    if not module_name or not attr:
        raise ValueError(f"Backend must look like 'package.module:factory', got {reference!r}")
    factory = getattr(importlib.import_module(module_name), attr)
    backend = factory()
    if not isinstance(backend, Backend):
        raise ValueError(f"{reference} returned {type(backend).__name__}, not Backend")
    return backend


def choose_target(picker: PickerModal, serial: str | None, station: str | None) -> Target | None:
    """Pick the target matching serial and station from an open picker.

    Without a serial the default is preferred, then the first target.
    """
    candidates = list(picker.targets)
    if station:
        candidates = [t for t in candidates if t.station == station]
    if serial:
        candidates = [t for t in candidates if t.serial == serial]
    elif picker.default is not None:
        preferred = [t for t in candidates if picker.is_default(t)]
        candidates = preferred or candidates
    return candidates[0] if candidates else None


def build_parser() -> argparse.ArgumentParser:
    """Return the command line parser."""
    parser = argparse.ArgumentParser(
        prog="sdrlink",
        description="SdrLink - connect to a networked SDR radio",
    )
    parser.add_argument(
        "--backend", required=True, help="service implementations as package.module:factory",
    )
    parser.add_argument("--serial", default=None, help="serial number of the radio to pick")
    parser.add_argument("--station", default=None, help="station to bind to (shared sessions)")
    parser.add_argument(
        "--preempt", default=None, help="station whose session to take over on conflict",
    )
    parser.add_argument("--user", default=None, help="Smartlink user (default: remembered user)")
    parser.add_argument(
        "--password-env",
        default="SDRLINK_PASSWORD",
        help="environment variable holding the Smartlink password",
    )
    kind = parser.add_mutually_exclusive_group()
    kind.add_argument("--exclusive", action="store_true", help="open an exclusive session")
    kind.add_argument("--shared", action="store_true", help="open a shared session")
    parser.add_argument(
        "--use-default", action="store_true", help="connect to the stored default if present",
    )
    parser.add_argument(
        "--program", default=DEFAULT_PROGRAM_NAME, help="program name to register with",
    )
    parser.add_argument(
        "--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main() -> int:  # noqa: PLR0915
    """Run the SdrLink console application.

    Returns:
        Exit code (0 for success).
    """
    QCoreApplication.setApplicationName("SdrLink")
    QCoreApplication.setOrganizationName("SdrLink")
    app = QCoreApplication(sys.argv)

    parsed = build_parser().parse_args(app.arguments()[1:])
    logging.basicConfig(level=getattr(logging, parsed.log_level), format=_LOG_FORMAT)

    try:
        backend = load_backend(parsed.backend)
    except (ImportError, AttributeError, ValueError) as e:
        logger.error("Cannot load backend: %s", e)
        return 2

    config = ConfigManager()
    if parsed.exclusive:
        config.set_session_kind(SessionKind.EXCLUSIVE)
    elif parsed.shared:
        config.set_session_kind(SessionKind.SHARED)
    if parsed.use_default:
        config.set_use_default(True)

    log_handler = LogAlertHandler(ignored_prefixes=("sdrlink.core", logger.name))
    log_handler.install()

    orchestrator = ConnectionOrchestrator(
        backend.gateway,
        backend.login,
        backend.connection,
        backend.audio,
        backend.player_factory,
        config,
        DefaultSelectionStore(config.settings),
        log_alerts=log_handler.alerts(),
        program_name=parsed.program,
    )
    worker = OrchestratorWorker(orchestrator)
    was_connected = False

    def on_status(status: object) -> None:
        nonlocal was_connected
        if not isinstance(status, ConnectionStatus):
            return
        logger.info("Status: %s", status.value)
        if status is ConnectionStatus.CONNECTED:
            was_connected = True
        elif status is ConnectionStatus.DISCONNECTED and was_connected:
            app.quit()

    def on_modal(modal: object) -> None:
        if isinstance(modal, PickerModal):
            if not modal.targets:
                logger.info("Waiting for radios...")
                return
            target = choose_target(modal, parsed.serial, parsed.station)
            if target is None:
                logger.error(
                    "No match for serial=%s station=%s among %s",
                    parsed.serial,
                    parsed.station,
                    [t.display_name for t in modal.targets],
                )
                worker.picker_cancel()
                app.exit(1)
                return
            worker.picker_connect(target)
        elif isinstance(modal, ConflictModal):
            handle = modal.handle_for(parsed.preempt) if parsed.preempt else None
            logger.info("Radio in use by %s, preempting %s", list(modal.stations), parsed.preempt)
            worker.conflict_connect(handle)
        elif isinstance(modal, LoginModal):
            user = parsed.user or modal.user
            password = os.environ.get(parsed.password_env, "")
            if user and password:
                worker.login_submit(user, password)
            else:
                logger.warning("%s: no credentials available", modal.heading)
                worker.login_cancel()

    def on_alert(alert: object) -> None:
        if not isinstance(alert, Alert):
            return
        level = logging.ERROR if alert.kind is AlertKind.ERROR else logging.WARNING
        logger.log(level, "%s %s", alert.title, alert.message)

    def on_error(err: object) -> None:
        logger.error("Error: %s", err)
        app.exit(1)

    orchestrator.status_changed.connect(on_status)
    orchestrator.modal_changed.connect(on_modal)
    orchestrator.alert_raised.connect(on_alert)
    worker.error_occurred.connect(on_error)
    worker.ready.connect(worker.connect_disconnect)

    # Let Python see SIGINT while Qt owns the main loop
    signal.signal(signal.SIGINT, lambda *_: app.quit())
    heartbeat = QTimer()
    heartbeat.timeout.connect(lambda: None)
    heartbeat.start(250)

    worker.start()
    exit_code = app.exec()

    # Cleanup
    heartbeat.stop()
    worker.stop()
    worker.wait()
    log_handler.uninstall()
    config.sync()

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
