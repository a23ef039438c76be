"""Connection orchestrator: one serialized state machine for the radio session.

The orchestrator folds user intents, discovery/client/test/log subscriptions
and the results of service calls into a single asyncio queue and handles
them one at a time. Handlers only mutate state, emit Qt signals and spawn
service calls as independent tasks; each task reports back exactly once by
posting a result action, so a slow connect never delays an unrelated event.

Lifecycle:
    disconnected -> inProcess -> connected -> inProcess -> disconnected

Example:
    orchestrator = ConnectionOrchestrator(gateway, login, connection, audio,
                                          player_factory, config, defaults)
    orchestrator.status_changed.connect(on_status)
    orchestrator.start()
    await orchestrator.run()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterable, Callable, Coroutine
from dataclasses import replace
from typing import Any, TypeVar

from PySide6.QtCore import QObject, Signal

from sdrlink.api.errors import RadioError, RadioErrorKind
from sdrlink.api.interfaces import (
    AudioPlayer,
    AudioService,
    ConnectionService,
    DiscoveryGateway,
    LoginService,
    PlayerFactory,
)
from sdrlink.core.actions import (
    Action,
    AudioDenied,
    AudioGranted,
    ClientChanged,
    ConflictCancel,
    ConflictConnect,
    ConnectDisconnect,
    ConnectFailed,
    ConnectSucceeded,
    DisconnectCompleted,
    DiscoveryChanged,
    DismissAlert,
    LogAlertReceived,
    LoginCancel,
    LoginFinished,
    LoginSubmit,
    ModeApplied,
    PickerCancel,
    PickerConnect,
    PickerTest,
    PickerToggleDefault,
    SetSessionKind,
    SetUseDefault,
    TestResultReceived,
    ToggleAudio,
    ToggleDirect,
    ToggleLocal,
    ToggleLoginRequired,
    ToggleSmartlink,
)
from sdrlink.core.config import ConfigManager
from sdrlink.core.defaults import DefaultSelectionStore
from sdrlink.models.events import ClientAction
from sdrlink.models.modal import ConflictModal, LoginModal, Modal, PickerModal
from sdrlink.models.radio import Radio
from sdrlink.models.status import (
    Alert,
    AlertKind,
    AudioDirection,
    AudioHandle,
    ConnectionStatus,
    LogAlert,
)
from sdrlink.models.target import DefaultSelection, SessionKind, Target

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PROGRAM_NAME = "SdrLink"

# Allowed lifecycle edges. Anything else is a programming error.
_TRANSITIONS: dict[ConnectionStatus, frozenset[ConnectionStatus]] = {
    ConnectionStatus.DISCONNECTED: frozenset({ConnectionStatus.IN_PROCESS}),
    ConnectionStatus.IN_PROCESS: frozenset(
        {ConnectionStatus.CONNECTED, ConnectionStatus.DISCONNECTED}
    ),
    ConnectionStatus.CONNECTED: frozenset({ConnectionStatus.IN_PROCESS}),
}

_NO_MODE_ALERT = Alert(AlertKind.WARNING, "Select a Connection Mode", "(Direct, Local or Smartlink)")


class InvalidTransitionError(RuntimeError):
    """Raised when a status change has no edge in the transition table."""

    def __init__(self, current: ConnectionStatus, requested: ConnectionStatus) -> None:
        super().__init__(f"No transition from {current.value} to {requested.value}")
        self.current = current
        self.requested = requested


class ConnectionOrchestrator(QObject):
    """Owns the connection lifecycle and everything gated on it.

    Signals:
        status_changed: New ConnectionStatus.
        modal_changed: New modal state (PickerModal, ConflictModal, LoginModal or None).
        alert_raised: The Alert that replaces the current one.
        alert_dismissed: The current alert was dismissed.
        active_station_changed: Station a shared session is bound to, or None.
        audio_changed: (AudioDirection, active) when a stream is attached or detached.
    """

    status_changed = Signal(object)
    modal_changed = Signal(object)
    alert_raised = Signal(object)
    alert_dismissed = Signal()
    active_station_changed = Signal(object)
    audio_changed = Signal(object, bool)

    def __init__(
        self,
        gateway: DiscoveryGateway,
        login_service: LoginService,
        connection: ConnectionService,
        audio: AudioService,
        player_factory: PlayerFactory,
        config: ConfigManager,
        defaults: DefaultSelectionStore,
        log_alerts: AsyncIterable[LogAlert] | None = None,
        program_name: str = DEFAULT_PROGRAM_NAME,
        parent: QObject | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            gateway: Discovery gateway (event streams and snapshots).
            login_service: Relay login exchange.
            connection: Radio control protocol client.
            audio: Remote audio stream negotiation.
            player_factory: Builds the local player/capture for a stream direction.
            config: Persistent preferences.
            defaults: Persistent default targets.
            log_alerts: Optional stream of logged warnings/errors.
            program_name: Name this client registers with on the radio.
            parent: Optional Qt parent.
        """
        super().__init__(parent)
        self._gateway = gateway
        self._login_service = login_service
        self._connection = connection
        self._audio = audio
        self._player_factory = player_factory
        self._config = config
        self._defaults = defaults
        self._log_alerts = log_alerts
        self._program_name = program_name

        self._queue: asyncio.Queue[Action] = asyncio.Queue()
        self._subscriptions: list[asyncio.Task[None]] = []
        self._effects: set[asyncio.Task[None]] = set()
        self._started = False

        self._status = ConnectionStatus.DISCONNECTED
        self._session_kind = config.get_session_kind()
        self._modal: Modal | None = None
        self._deferred_login = False
        self._alert: Alert | None = None

        # Station picked for a shared session, and the one currently bound
        self._station: str | None = None
        self._station_serial = ""
        self._active_station: str | None = None
        self._connected_target: Target | None = None
        self._session = 0

        self._handles: dict[AudioDirection, AudioHandle] = {}
        self._players: dict[AudioDirection, AudioPlayer] = {}
        self._audio_requests: set[AudioDirection] = set()

        self._handlers: dict[type[Action], Callable[[Any], None]] = {
            ConnectDisconnect: self._on_connect_disconnect,
            ToggleLocal: self._on_toggle_local,
            ToggleDirect: self._on_toggle_direct,
            ToggleSmartlink: self._on_toggle_smartlink,
            ToggleLoginRequired: self._on_toggle_login_required,
            ToggleAudio: self._on_toggle_audio,
            SetSessionKind: self._on_set_session_kind,
            SetUseDefault: self._on_set_use_default,
            PickerConnect: self._on_picker_connect,
            PickerCancel: self._on_selection_cancel,
            PickerToggleDefault: self._on_picker_toggle_default,
            PickerTest: self._on_picker_test,
            ConflictConnect: self._on_conflict_connect,
            ConflictCancel: self._on_selection_cancel,
            LoginSubmit: self._on_login_submit,
            LoginCancel: self._on_login_cancel,
            DismissAlert: self._on_dismiss_alert,
            DiscoveryChanged: self._on_discovery_changed,
            ClientChanged: self._on_client_changed,
            TestResultReceived: self._on_test_result,
            LogAlertReceived: self._on_log_alert,
            ModeApplied: self._on_mode_applied,
            ConnectSucceeded: self._on_connect_succeeded,
            ConnectFailed: self._on_connect_failed,
            DisconnectCompleted: self._on_disconnect_completed,
            LoginFinished: self._on_login_finished,
            AudioGranted: self._on_audio_granted,
            AudioDenied: self._on_audio_denied,
        }

    # -- Read-only state ---------------------------------------------------------

    @property
    def status(self) -> ConnectionStatus:
        """Return the connection status."""
        return self._status

    @property
    def is_busy(self) -> bool:
        """Return True while a connect or disconnect is outstanding."""
        return self._status is ConnectionStatus.IN_PROCESS

    @property
    def modal(self) -> Modal | None:
        """Return the active modal state, if any."""
        return self._modal

    @property
    def alert(self) -> Alert | None:
        """Return the current alert, if any."""
        return self._alert

    @property
    def session_kind(self) -> SessionKind:
        """Return the session kind used for the next connect."""
        return self._session_kind

    @property
    def station(self) -> str | None:
        """Return the station picked for a shared session."""
        return self._station

    @property
    def active_station(self) -> str | None:
        """Return the station a shared session is currently bound to."""
        return self._active_station

    def audio_handle(self, direction: AudioDirection) -> AudioHandle | None:
        """Return the stream held for a direction, if any."""
        return self._handles.get(direction)

    # -- Intents -----------------------------------------------------------------

    def post(self, action: Action) -> None:
        """Queue an action. Must be called on the orchestrator's event loop."""
        self._queue.put_nowait(action)

    def connect_disconnect(self) -> None:
        """Start a connect, or disconnect the current session."""
        self.post(ConnectDisconnect())

    def toggle_local(self) -> None:
        """Flip local-network discovery."""
        self.post(ToggleLocal())

    def toggle_direct(self) -> None:
        """Flip direct mode."""
        self.post(ToggleDirect())

    def toggle_smartlink(self) -> None:
        """Flip relay discovery."""
        self.post(ToggleSmartlink())

    def toggle_login_required(self) -> None:
        """Flip the login-required flag."""
        self.post(ToggleLoginRequired())

    def toggle_rx_audio(self) -> None:
        """Flip the receive-audio preference."""
        self.post(ToggleAudio(AudioDirection.RECEIVE))

    def toggle_tx_audio(self) -> None:
        """Flip the transmit-audio preference."""
        self.post(ToggleAudio(AudioDirection.TRANSMIT))

    def set_session_kind(self, kind: SessionKind) -> None:
        """Choose exclusive or shared sessions (only while disconnected)."""
        self.post(SetSessionKind(kind))

    def set_use_default(self, enabled: bool) -> None:
        """Enable or disable auto-connect to the stored default."""
        self.post(SetUseDefault(enabled))

    def picker_connect(self, target: Target) -> None:
        """Connect to a target chosen in the picker."""
        self.post(PickerConnect(target))

    def picker_cancel(self) -> None:
        """Close the picker without connecting."""
        self.post(PickerCancel())

    def picker_toggle_default(self, target: Target) -> None:
        """Set the target as default, or clear it if it already is."""
        self.post(PickerToggleDefault(target))

    def picker_test(self, target: Target) -> None:
        """Run a relay reachability test for the target's radio."""
        self.post(PickerTest(target))

    def conflict_connect(self, handle: int | None) -> None:
        """Connect, taking over the session with ``handle`` (None keeps all)."""
        self.post(ConflictConnect(handle))

    def conflict_cancel(self) -> None:
        """Abandon the connect from the conflict dialog."""
        self.post(ConflictCancel())

    def login_submit(self, user: str, password: str) -> None:
        """Submit relay credentials."""
        self.post(LoginSubmit(user, password))

    def login_cancel(self) -> None:
        """Decline the relay login."""
        self.post(LoginCancel())

    def dismiss_alert(self) -> None:
        """Dismiss the current alert."""
        self.post(DismissAlert())

    # -- Processing --------------------------------------------------------------

    def start(self) -> None:
        """Start the subscriptions and apply the discovery mode.

        Must be called from a running event loop. Calling it twice is a no-op.
        """
        if self._started:
            return
        self._started = True
        self._subscribe("discovery", self._gateway.discovery_events(), DiscoveryChanged)
        self._subscribe("clients", self._gateway.client_events(), ClientChanged)
        self._subscribe("tests", self._gateway.test_results(), TestResultReceived)
        if self._log_alerts is not None:
            self._subscribe("log-alerts", self._log_alerts, LogAlertReceived)

        if not self._config.any_mode_enabled():
            self._raise_alert(_NO_MODE_ALERT)
        self._apply_mode()

    async def run(self) -> None:
        """Process queued actions forever."""
        while True:
            action = await self._queue.get()
            self._dispatch(action)

    async def process_pending(self) -> None:
        """Process queued actions until the queue is empty and no call is in flight.

        Steps the machine deterministically instead of running ``run()``.
        The long-lived subscriptions are not waited for.
        """
        while True:
            # Let subscription pumps and finished tasks hand over their actions
            for _ in range(3):
                await asyncio.sleep(0)
            while not self._queue.empty():
                self._dispatch(self._queue.get_nowait())
            pending = {task for task in self._effects if not task.done()}
            if not pending:
                if self._queue.empty():
                    return
                continue
            await asyncio.wait(pending)

    async def stop(self) -> None:
        """Cancel subscriptions and in-flight calls, then close any open session."""
        tasks = [*self._subscriptions, *self._effects]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._subscriptions.clear()
        self._effects.clear()
        self._started = False

        if self._connected_target is None:
            return
        for stream_id in self._detach_all_audio():
            await self._release_stream(stream_id)
        try:
            await self._connection.disconnect()
        except Exception as e:  # noqa: BLE001
            logger.warning("Disconnect during shutdown failed: %s", e)
        self._connected_target = None
        logger.info("Orchestrator stopped")

    def _dispatch(self, action: Action) -> None:
        handler = self._handlers.get(type(action))
        if handler is None:
            logger.error("No handler for action %r", action)
            return
        logger.debug("Action: %r", action)
        try:
            handler(action)
        except InvalidTransitionError:
            raise
        except Exception as e:  # noqa: BLE001
            # Synchronous collaborator calls must not end the loop
            logger.warning("Handling %s failed: %s", type(action).__name__, e)
            error = RadioError.wrap(e, RadioErrorKind.CLIENT_CONNECTION_FAILED)
            self._raise_alert(Alert(AlertKind.ERROR, "An Error occurred", error.message))

    def _subscribe(
        self,
        name: str,
        stream: AsyncIterable[T],
        wrap: Callable[[T], Action],
    ) -> None:
        async def pump() -> None:
            async for item in stream:
                self.post(wrap(item))
            logger.info("Subscription '%s' ended", name)

        task = asyncio.create_task(pump(), name=f"subscription:{name}")
        task.add_done_callback(self._on_task_done)
        self._subscriptions.append(task)

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> None:
        task = asyncio.create_task(coro, name=name)
        self._effects.add(task)
        task.add_done_callback(self._effects.discard)
        task.add_done_callback(self._on_task_done)

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Task %s failed: %r", task.get_name(), error)

    # -- State helpers -----------------------------------------------------------

    def _set_status(self, status: ConnectionStatus) -> None:
        if status not in _TRANSITIONS[self._status]:
            raise InvalidTransitionError(self._status, status)
        logger.info("Connection status: %s -> %s", self._status.value, status.value)
        self._status = status
        self.status_changed.emit(status)
        if status is not ConnectionStatus.IN_PROCESS:
            self._show_deferred_login()

    def _set_modal(self, modal: Modal | None) -> None:
        self._modal = modal
        self.modal_changed.emit(modal)
        if modal is None and self._status is not ConnectionStatus.IN_PROCESS:
            self._show_deferred_login()

    def _raise_alert(self, alert: Alert) -> None:
        logger.info("Alert: %s %s", alert.title, alert.message)
        self._alert = alert
        self.alert_raised.emit(alert)

    def _set_active_station(self, station: str | None) -> None:
        if station == self._active_station:
            return
        self._active_station = station
        self.active_station_changed.emit(station)

    def _pick_station(self, target: Target) -> None:
        self._station = target.station or None
        self._station_serial = target.serial

    def _abandon_selection(self) -> None:
        """Return to disconnected after a picker or conflict dialog goes away."""
        self._station = None
        if self._status is ConnectionStatus.IN_PROCESS:
            self._set_status(ConnectionStatus.DISCONNECTED)

    # -- Connection lifecycle ----------------------------------------------------

    def _on_connect_disconnect(self, _action: ConnectDisconnect) -> None:
        if self._status is ConnectionStatus.IN_PROCESS:
            logger.warning("Ignoring connect/disconnect while a request is in process")
            return

        if self._status is ConnectionStatus.CONNECTED:
            stream_ids = self._detach_all_audio()
            self._set_status(ConnectionStatus.IN_PROCESS)
            self._spawn(self._disconnect(stream_ids), "disconnect")
            return

        if self._modal is not None:
            logger.warning("Ignoring connect while %s is open", type(self._modal).__name__)
            return

        self._set_status(ConnectionStatus.IN_PROCESS)
        if self._config.get_use_default():
            target = self._find_default_target()
            if target is not None:
                logger.info("Using default %s", target.display_name)
                self._pick_station(target)
                self._arbitrate(target)
                return
            logger.info("Default %s session target not available", self._session_kind.value)
        self._show_picker()

    def _find_default_target(self) -> Target | None:
        default = self._defaults.read(self._session_kind)
        if default is None:
            return None
        if self._session_kind.is_exclusive:
            for radio in self._gateway.list_radios():
                if default.matches(radio):
                    return Target.for_radio(radio)
            return None
        for target in self._gateway.list_stations(default.serial):
            if target.station != default.station:
                continue
            if target.radio is None or default.matches(target.radio):
                return target
        return None

    def _live_targets(self) -> tuple[Target, ...]:
        if self._session_kind.is_exclusive:
            return tuple(Target.for_radio(radio) for radio in self._gateway.list_radios())
        return tuple(self._gateway.list_stations())

    def _live_radio(self, serial: str) -> Radio | None:
        for radio in self._gateway.list_radios():
            if radio.serial == serial:
                return radio
        return None

    def _show_picker(self) -> None:
        self._set_modal(
            PickerModal(
                targets=self._live_targets(),
                session_kind=self._session_kind,
                default=self._defaults.read(self._session_kind),
            )
        )

    def _arbitrate(self, target: Target) -> None:
        """Ask which session to take over if an exclusive connect would collide."""
        if self._session_kind.is_exclusive:
            radio = self._live_radio(target.serial) or target.radio
            if radio is not None and radio.has_remote_clients:
                clients = radio.remote_clients
                sessions = [f"{c.station} ({c.display_handle})" for c in clients]
                logger.info("%s already has sessions: %s", radio.display_name, sessions)
                self._set_modal(
                    ConflictModal(
                        target=Target.for_radio(radio, target.station),
                        stations=tuple(c.station for c in clients),
                        handles=tuple(c.handle for c in clients),
                    )
                )
                return
        self._start_connect(target, None)

    def _start_connect(self, target: Target, preempt_handle: int | None) -> None:
        self._spawn(self._connect(target, preempt_handle), f"connect:{target.serial}")

    async def _connect(self, target: Target, preempt_handle: int | None) -> None:
        logger.info(
            "Connecting to %s (%s, preempt=%s)",
            target.display_name,
            self._session_kind.value,
            preempt_handle,
        )
        try:
            await self._connection.connect(
                target, self._session_kind, preempt_handle, self._program_name
            )
        except RadioError as e:
            self.post(ConnectFailed(e))
            return
        except Exception as e:  # noqa: BLE001
            self.post(ConnectFailed(RadioError.wrap(e, RadioErrorKind.CONNECTION_FAILED)))
            return
        self.post(ConnectSucceeded(target))

    async def _disconnect(self, stream_ids: list[int]) -> None:
        for stream_id in stream_ids:
            await self._release_stream(stream_id)
        try:
            await self._connection.disconnect()
        except Exception as e:  # noqa: BLE001
            logger.warning("Disconnect failed: %s", e)
        self.post(DisconnectCompleted())

    def _on_connect_succeeded(self, action: ConnectSucceeded) -> None:
        self._session += 1
        self._connected_target = action.target
        self._set_status(ConnectionStatus.CONNECTED)
        for direction in AudioDirection:
            if self._audio_enabled(direction):
                self._attach_audio(direction)

    def _on_connect_failed(self, action: ConnectFailed) -> None:
        logger.warning("Connect failed: %s", action.error)
        self._raise_alert(Alert(AlertKind.ERROR, "An Error occurred", action.error.message))
        self._station = None
        self._set_status(ConnectionStatus.DISCONNECTED)

    def _on_disconnect_completed(self, _action: DisconnectCompleted) -> None:
        self._connected_target = None
        self._station = None
        self._set_active_station(None)
        self._set_status(ConnectionStatus.DISCONNECTED)

    def _on_set_session_kind(self, action: SetSessionKind) -> None:
        if self._status is not ConnectionStatus.DISCONNECTED:
            logger.warning("Session kind can only change while disconnected")
            return
        self._session_kind = action.kind
        self._config.set_session_kind(action.kind)

    def _on_set_use_default(self, action: SetUseDefault) -> None:
        self._config.set_use_default(action.enabled)

    # -- Picker and conflict dialogs ---------------------------------------------

    def _on_picker_connect(self, action: PickerConnect) -> None:
        if not isinstance(self._modal, PickerModal):
            logger.warning("Picker selection without an open picker")
            return
        self._set_modal(None)
        self._pick_station(action.target)
        self._arbitrate(action.target)

    def _on_selection_cancel(self, action: PickerCancel | ConflictCancel) -> None:
        expected = PickerModal if isinstance(action, PickerCancel) else ConflictModal
        if not isinstance(self._modal, expected):
            logger.warning("Cancel for a %s that is not open", expected.__name__)
            return
        self._set_modal(None)
        self._abandon_selection()

    def _on_picker_toggle_default(self, action: PickerToggleDefault) -> None:
        if not isinstance(self._modal, PickerModal):
            return
        new_value = DefaultSelection.from_target(action.target)
        current = self._defaults.read(self._session_kind)
        value = None if current == new_value else new_value
        self._defaults.write(self._session_kind, value)
        self._set_modal(replace(self._modal, default=value))

    def _on_picker_test(self, action: PickerTest) -> None:
        if not isinstance(self._modal, PickerModal):
            return
        self._set_modal(replace(self._modal, test_result=False))
        self._gateway.send_test(action.target.serial)

    def _on_conflict_connect(self, action: ConflictConnect) -> None:
        modal = self._modal
        if not isinstance(modal, ConflictModal):
            logger.warning("Conflict choice without an open conflict dialog")
            return
        if action.handle is not None and action.handle not in modal.handles:
            logger.warning("Handle 0x%08X is not a session on %s", action.handle, modal.target.serial)
            return
        self._set_modal(None)
        self._start_connect(modal.target, action.handle)

    # -- Discovery modes and login -----------------------------------------------

    def _on_toggle_local(self, _action: ToggleLocal) -> None:
        self._config.set_local_enabled(not self._config.get_local_enabled())
        self._warn_if_no_mode()
        self._apply_mode()

    def _on_toggle_direct(self, _action: ToggleDirect) -> None:
        self._config.set_direct_enabled(not self._config.get_direct_enabled())
        self._warn_if_no_mode()

    def _on_toggle_smartlink(self, _action: ToggleSmartlink) -> None:
        self._config.set_smartlink_enabled(not self._config.get_smartlink_enabled())
        self._warn_if_no_mode()
        self._apply_mode()

    def _warn_if_no_mode(self) -> None:
        if not self._config.any_mode_enabled():
            self._raise_alert(_NO_MODE_ALERT)

    def _apply_mode(self) -> None:
        local = self._config.get_local_enabled()
        smartlink = self._config.get_smartlink_enabled()
        user = self._config.get_smartlink_user()
        self._spawn(self._set_mode(local, smartlink, user), "set-mode")

    async def _set_mode(self, local: bool, smartlink: bool, user: str) -> None:
        logger.info("Discovery mode: local=%s smartlink=%s", local, smartlink)
        try:
            success = await self._gateway.set_mode(local, smartlink, user)
        except Exception as e:  # noqa: BLE001
            logger.warning("Discovery mode change failed: %s", e)
            success = False
        self.post(ModeApplied(success, smartlink))

    def _on_mode_applied(self, action: ModeApplied) -> None:
        if not action.smartlink_enabled:
            if not action.success:
                logger.warning("Local discovery could not be configured")
            return
        if not action.success:
            self._raise_alert(
                Alert(AlertKind.WARNING, "Smartlink unavailable", "The Smartlink listener did not start")
            )
            self._request_login()
        elif self._config.get_login_required():
            self._request_login()

    def _on_toggle_login_required(self, _action: ToggleLoginRequired) -> None:
        required = not self._config.get_login_required()
        self._config.set_login_required(required)
        if required and self._config.get_smartlink_enabled():
            self._request_login()

    def _request_login(self) -> None:
        if self._modal is None:
            self._set_modal(LoginModal(user=self._config.get_smartlink_user()))
        elif not isinstance(self._modal, LoginModal):
            self._deferred_login = True

    def _show_deferred_login(self) -> None:
        if self._deferred_login and self._modal is None:
            self._deferred_login = False
            self._set_modal(LoginModal(user=self._config.get_smartlink_user()))

    def _on_login_submit(self, action: LoginSubmit) -> None:
        if not isinstance(self._modal, LoginModal):
            logger.warning("Login submitted without a login prompt")
            return
        self._set_modal(None)
        self._spawn(self._login(action.user, action.password), "login")

    async def _login(self, user: str, password: str) -> None:
        try:
            success = await self._login_service.login(user, password)
        except Exception as e:  # noqa: BLE001
            logger.warning("Smartlink login for %s raised: %s", user, e)
            success = False
        self.post(LoginFinished(success, user))

    def _on_login_finished(self, action: LoginFinished) -> None:
        if action.success:
            logger.info("Smartlink login succeeded for %s", action.user)
            self._config.set_smartlink_user(action.user)
            self._config.set_login_required(False)
        else:
            self._raise_alert(Alert(AlertKind.WARNING, f"Smartlink login failed for {action.user}"))

    def _on_login_cancel(self, _action: LoginCancel) -> None:
        if not isinstance(self._modal, LoginModal):
            return
        self._config.set_login_required(False)
        self._set_modal(None)

    # -- Subscriptions -----------------------------------------------------------

    def _on_discovery_changed(self, action: DiscoveryChanged) -> None:
        logger.debug(
            "Radio %s %s", action.event.radio.display_name, action.event.action.value
        )
        if isinstance(self._modal, PickerModal):
            self._set_modal(
                replace(
                    self._modal,
                    targets=self._live_targets(),
                    default=self._defaults.read(self._session_kind),
                )
            )

    def _on_client_changed(self, action: ClientChanged) -> None:
        event = action.event
        if event.action is ClientAction.ADDED:
            return
        if self._session_kind.is_exclusive or self._station is None:
            return
        if event.serial != self._station_serial or event.client.station != self._station:
            return

        if event.action is ClientAction.REMOVED:
            logger.info("Station %s went away, unbinding", event.client.station)
            self._set_active_station(None)
            self._connection.bind(None)
        else:
            logger.info("Station %s available, binding", event.client.station)
            self._set_active_station(event.client.station)
            self._connection.bind(event.client)

    def _on_test_result(self, action: TestResultReceived) -> None:
        if isinstance(self._modal, PickerModal):
            self._set_modal(replace(self._modal, test_result=action.result.success))

    def _on_log_alert(self, action: LogAlertReceived) -> None:
        if not self._config.get_alert_on_error():
            return
        # A logged problem closes whatever dialog is open
        self._deferred_login = False
        if self._modal is not None:
            closed = self._modal
            self._set_modal(None)
            if isinstance(closed, PickerModal | ConflictModal):
                self._abandon_selection()
        alert = action.alert
        if alert.is_error:
            self._raise_alert(Alert(AlertKind.ERROR, "An Error was logged:", alert.message))
        else:
            self._raise_alert(Alert(AlertKind.WARNING, "A Warning was logged:", alert.message))

    def _on_dismiss_alert(self, _action: DismissAlert) -> None:
        if self._alert is None:
            return
        self._alert = None
        self.alert_dismissed.emit()

    # -- Audio -------------------------------------------------------------------

    def _audio_enabled(self, direction: AudioDirection) -> bool:
        if direction is AudioDirection.RECEIVE:
            return self._config.get_rx_audio_enabled()
        return self._config.get_tx_audio_enabled()

    def _set_audio_enabled(self, direction: AudioDirection, enabled: bool) -> None:
        if direction is AudioDirection.RECEIVE:
            self._config.set_rx_audio_enabled(enabled)
        else:
            self._config.set_tx_audio_enabled(enabled)

    def _on_toggle_audio(self, action: ToggleAudio) -> None:
        direction = action.direction
        enabled = not self._audio_enabled(direction)
        self._set_audio_enabled(direction, enabled)
        if self._status is not ConnectionStatus.CONNECTED:
            logger.debug("%s audio preference recorded: %s", direction.value, enabled)
            return
        if enabled:
            self._attach_audio(direction)
            return
        stream_id = self._detach_audio(direction)
        if stream_id is not None:
            self._spawn(self._release_stream(stream_id), f"release:{direction.value}")

    def _attach_audio(self, direction: AudioDirection) -> None:
        if direction in self._handles or direction in self._audio_requests:
            return
        self._audio_requests.add(direction)
        self._spawn(self._request_stream(direction, self._session), f"request:{direction.value}")

    async def _request_stream(self, direction: AudioDirection, session: int) -> None:
        if direction is AudioDirection.RECEIVE:
            request = self._audio.request_receive_stream
        else:
            request = self._audio.request_transmit_stream
        try:
            stream_id = await request()
        except RadioError as e:
            self.post(AudioDenied(direction, e, session))
            return
        except Exception as e:  # noqa: BLE001
            error = RadioError.wrap(e, RadioErrorKind.STREAM_REQUEST_FAILED)
            self.post(AudioDenied(direction, error, session))
            return
        self.post(AudioGranted(direction, stream_id, session))

    def _on_audio_granted(self, action: AudioGranted) -> None:
        direction = action.direction
        if action.session != self._session:
            logger.debug("Dropping stream 0x%08X from an earlier session", action.stream_id)
            return
        self._audio_requests.discard(direction)
        if self._status is not ConnectionStatus.CONNECTED or not self._audio_enabled(direction):
            logger.info("Stream 0x%08X no longer wanted, releasing", action.stream_id)
            self._spawn(self._release_stream(action.stream_id), f"release:{direction.value}")
            return
        try:
            player = self._player_factory(direction)
            player.start(action.stream_id)
        except Exception as e:  # noqa: BLE001
            self._spawn(self._release_stream(action.stream_id), f"release:{direction.value}")
            self._audio_failed(direction, RadioError.wrap(e, RadioErrorKind.STREAM_REQUEST_FAILED))
            return
        self._players[direction] = player
        self._handles[direction] = AudioHandle(direction, action.stream_id)
        logger.info("%s audio attached to stream 0x%08X", direction.value, action.stream_id)
        self.audio_changed.emit(direction, True)

    def _on_audio_denied(self, action: AudioDenied) -> None:
        if action.session != self._session:
            return
        self._audio_requests.discard(action.direction)
        self._audio_failed(action.direction, action.error)

    def _audio_failed(self, direction: AudioDirection, error: RadioError) -> None:
        self._set_audio_enabled(direction, False)
        logger.warning("%s audio could not start: %s", direction.value, error)
        label = "Receive" if direction is AudioDirection.RECEIVE else "Transmit"
        self._raise_alert(Alert(AlertKind.WARNING, f"{label} audio unavailable", error.message))

    def _detach_audio(self, direction: AudioDirection) -> int | None:
        """Stop the local player and drop the handle; return the id still to release."""
        player = self._players.pop(direction, None)
        if player is not None:
            try:
                player.stop()
            except Exception as e:  # noqa: BLE001
                logger.warning("Stopping %s audio failed: %s", direction.value, e)
        handle = self._handles.pop(direction, None)
        if handle is None:
            return None
        logger.info("%s audio detached from stream %s", direction.value, handle.display_id)
        self.audio_changed.emit(direction, False)
        return handle.stream_id

    def _detach_all_audio(self) -> list[int]:
        self._audio_requests.clear()
        stream_ids: list[int] = []
        for direction in AudioDirection:
            stream_id = self._detach_audio(direction)
            if stream_id is not None:
                stream_ids.append(stream_id)
        return stream_ids

    async def _release_stream(self, stream_id: int) -> None:
        try:
            await self._audio.release_stream(stream_id)
        except Exception as e:  # noqa: BLE001
            logger.warning("Releasing stream 0x%08X failed: %s", stream_id, e)
