"""Tests for the ConnectionOrchestrator connection lifecycle."""

import pytest
from conftest import FakeGateway, connect_via_picker
from pytestqt.qtbot import QtBot

from sdrlink.api.errors import RadioError, RadioErrorKind
from sdrlink.core.config import ConfigManager
from sdrlink.core.orchestrator import (
    _TRANSITIONS,
    ConnectionOrchestrator,
    InvalidTransitionError,
)
from sdrlink.models.modal import LoginModal, PickerModal
from sdrlink.models.radio import Radio
from sdrlink.models.status import Alert, AlertKind, ConnectionStatus
from sdrlink.models.target import SessionKind, Target


def record_statuses(orchestrator: ConnectionOrchestrator) -> list[ConnectionStatus]:
    statuses: list[ConnectionStatus] = []
    orchestrator.status_changed.connect(statuses.append)
    return statuses


def assert_valid_path(statuses: list[ConnectionStatus]) -> None:
    path = [ConnectionStatus.DISCONNECTED, *statuses]
    for current, following in zip(path, path[1:]):
        assert following in _TRANSITIONS[current], f"{current} -> {following}"


class TestStartup:
    """Test start() behaviour."""

    @pytest.mark.asyncio
    async def test_initial_state(self, orchestrator: ConnectionOrchestrator) -> None:
        """Test a new orchestrator is idle."""
        assert orchestrator.status is ConnectionStatus.DISCONNECTED
        assert not orchestrator.is_busy
        assert orchestrator.modal is None
        assert orchestrator.alert is None
        assert orchestrator.station is None
        assert orchestrator.active_station is None
        assert orchestrator.session_kind is SessionKind.EXCLUSIVE

    @pytest.mark.asyncio
    async def test_start_applies_mode(
        self, started: ConnectionOrchestrator, gateway: FakeGateway
    ) -> None:
        """Test the discovery mode is applied once at startup."""
        assert gateway.mode_calls == [(True, False, "")]
        assert started.alert is None

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(
        self, started: ConnectionOrchestrator, gateway: FakeGateway
    ) -> None:
        """Test a second start() does not resubscribe or reapply the mode."""
        started.start()
        await started.process_pending()
        assert len(gateway.mode_calls) == 1

    @pytest.mark.asyncio
    async def test_no_mode_warns(
        self, orchestrator: ConnectionOrchestrator, config: ConfigManager
    ) -> None:
        """Test startup with every mode off raises a non-fatal warning."""
        config.set_local_enabled(False)
        orchestrator.start()
        await orchestrator.process_pending()
        try:
            assert orchestrator.alert == Alert(
                AlertKind.WARNING, "Select a Connection Mode", "(Direct, Local or Smartlink)"
            )
            # Advisory only: connect still opens the picker
            orchestrator.connect_disconnect()
            await orchestrator.process_pending()
            assert isinstance(orchestrator.modal, PickerModal)
        finally:
            await orchestrator.stop()

    @pytest.mark.asyncio
    async def test_direct_mode_counts_as_mode(
        self, orchestrator: ConnectionOrchestrator, config: ConfigManager
    ) -> None:
        """Test direct mode alone suppresses the warning."""
        config.set_local_enabled(False)
        config.set_direct_enabled(True)
        orchestrator.start()
        await orchestrator.process_pending()
        try:
            assert orchestrator.alert is None
        finally:
            await orchestrator.stop()


class TestConnect:
    """Test connecting through the picker."""

    @pytest.mark.asyncio
    async def test_connect_opens_picker(
        self, started: ConnectionOrchestrator, gateway: FakeGateway, radio: Radio, qtbot: QtBot
    ) -> None:
        """Test connect intent moves to inProcess and lists live radios."""
        gateway.radios = [radio]
        with qtbot.wait_signal(started.modal_changed, timeout=100) as blocker:
            started.connect_disconnect()
            await started.process_pending()

        picker = blocker.args[0]
        assert isinstance(picker, PickerModal)
        assert picker.targets == (Target("1234"),)
        assert picker.session_kind is SessionKind.EXCLUSIVE
        assert picker.default is None
        assert started.status is ConnectionStatus.IN_PROCESS
        assert started.is_busy

    @pytest.mark.asyncio
    async def test_connect_succeeds(
        self, started: ConnectionOrchestrator, gateway: FakeGateway, connection, radio: Radio
    ) -> None:
        """Test a picked idle radio is connected without preemption."""
        gateway.radios = [radio]
        statuses = record_statuses(started)

        await connect_via_picker(started, Target.for_radio(radio))

        connection.connect.assert_awaited_once_with(
            Target("1234"), SessionKind.EXCLUSIVE, None, "SdrLink"
        )
        assert statuses == [ConnectionStatus.IN_PROCESS, ConnectionStatus.CONNECTED]
        assert started.modal is None
        assert not started.is_busy

    @pytest.mark.asyncio
    async def test_typed_error_reverts_with_one_alert(
        self, started: ConnectionOrchestrator, gateway: FakeGateway, connection, radio: Radio
    ) -> None:
        """Test a typed connect error reverts to disconnected with exactly one alert."""
        gateway.radios = [radio]
        connection.connect.side_effect = RadioError(
            RadioErrorKind.TCP_CONNECTION_FAILED, "192.168.1.50"
        )
        alerts: list[Alert] = []
        started.alert_raised.connect(alerts.append)
        statuses = record_statuses(started)

        await connect_via_picker(started, Target.for_radio(radio))

        assert statuses == [ConnectionStatus.IN_PROCESS, ConnectionStatus.DISCONNECTED]
        assert alerts == [
            Alert(AlertKind.ERROR, "An Error occurred", "Tcp connection failed: 192.168.1.50")
        ]
        assert started.station is None

    @pytest.mark.asyncio
    async def test_untyped_error_is_wrapped(
        self, started: ConnectionOrchestrator, gateway: FakeGateway, connection, radio: Radio
    ) -> None:
        """Test an arbitrary exception from connect becomes a connection failure."""
        gateway.radios = [radio]
        connection.connect.side_effect = OSError("connection refused")

        await connect_via_picker(started, Target.for_radio(radio))

        assert started.status is ConnectionStatus.DISCONNECTED
        assert started.alert is not None
        assert started.alert.message == "Connection failed: connection refused"

    @pytest.mark.asyncio
    async def test_new_failure_replaces_alert(
        self, started: ConnectionOrchestrator, gateway: FakeGateway, connection, radio: Radio
    ) -> None:
        """Test alerts are replaced, not queued."""
        gateway.radios = [radio]
        connection.connect.side_effect = [
            RadioError(RadioErrorKind.STATUS_TIMEOUT),
            RadioError(RadioErrorKind.GUI_CLIENT_TIMEOUT),
        ]
        await connect_via_picker(started, Target.for_radio(radio))
        await connect_via_picker(started, Target.for_radio(radio))

        assert started.alert is not None
        assert started.alert.message == "Timeout waiting for GuiClient"


class TestDisconnect:
    """Test disconnecting."""

    @pytest.mark.asyncio
    async def test_disconnect_cycle(
        self, started: ConnectionOrchestrator, gateway: FakeGateway, connection, radio: Radio
    ) -> None:
        """Test connected -> inProcess -> disconnected."""
        gateway.radios = [radio]
        await connect_via_picker(started, Target.for_radio(radio))
        statuses = record_statuses(started)

        started.connect_disconnect()
        await started.process_pending()

        connection.disconnect.assert_awaited_once()
        assert statuses == [ConnectionStatus.IN_PROCESS, ConnectionStatus.DISCONNECTED]

    @pytest.mark.asyncio
    async def test_disconnect_failure_still_completes(
        self, started: ConnectionOrchestrator, gateway: FakeGateway, connection, radio: Radio
    ) -> None:
        """Test a failing disconnect call still ends disconnected."""
        gateway.radios = [radio]
        await connect_via_picker(started, Target.for_radio(radio))
        connection.disconnect.side_effect = RadioError(RadioErrorKind.REPLY_ERROR)

        started.connect_disconnect()
        await started.process_pending()

        assert started.status is ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_stop_disconnects(
        self, orchestrator: ConnectionOrchestrator, gateway: FakeGateway, connection, radio: Radio
    ) -> None:
        """Test stop() closes an open session."""
        gateway.radios = [radio]
        orchestrator.start()
        await orchestrator.process_pending()
        await connect_via_picker(orchestrator, Target.for_radio(radio))

        await orchestrator.stop()

        connection.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stop_when_disconnected(
        self, orchestrator: ConnectionOrchestrator, connection
    ) -> None:
        """Test stop() without a session does not call disconnect."""
        orchestrator.start()
        await orchestrator.process_pending()
        await orchestrator.stop()
        connection.disconnect.assert_not_awaited()


class TestTransitions:
    """Test the transition table is enforced."""

    def test_missing_edge_raises(self, orchestrator: ConnectionOrchestrator) -> None:
        """Test skipping inProcess is a programming error."""
        with pytest.raises(InvalidTransitionError) as excinfo:
            orchestrator._set_status(ConnectionStatus.CONNECTED)
        assert excinfo.value.current is ConnectionStatus.DISCONNECTED
        assert excinfo.value.requested is ConnectionStatus.CONNECTED
        assert orchestrator.status is ConnectionStatus.DISCONNECTED

    def test_no_self_loop_on_in_process(self) -> None:
        """Test the table has no inProcess -> inProcess edge."""
        assert ConnectionStatus.IN_PROCESS not in _TRANSITIONS[ConnectionStatus.IN_PROCESS]

    @pytest.mark.asyncio
    async def test_intent_while_in_process_is_rejected(
        self, started: ConnectionOrchestrator, gateway: FakeGateway, connection, radio: Radio
    ) -> None:
        """Test a connect intent queued behind an outstanding connect is ignored."""
        gateway.radios = [radio]
        statuses = record_statuses(started)
        started.connect_disconnect()
        await started.process_pending()

        started.picker_connect(Target.for_radio(radio))
        started.connect_disconnect()
        await started.process_pending()

        assert statuses == [ConnectionStatus.IN_PROCESS, ConnectionStatus.CONNECTED]
        connection.connect.assert_awaited_once()
        connection.disconnect.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_repeated_intents_never_skip_in_process(
        self, started: ConnectionOrchestrator, gateway: FakeGateway, connection, radio: Radio
    ) -> None:
        """Test many connect/disconnect/cancel/failure cycles follow the table."""
        gateway.radios = [radio]
        connection.connect.side_effect = [None, RadioError(RadioErrorKind.CONNECTION_FAILED), None]
        statuses = record_statuses(started)
        target = Target.for_radio(radio)

        for _ in range(3):
            started.connect_disconnect()
            started.connect_disconnect()
            await started.process_pending()
            started.picker_connect(target)
            started.connect_disconnect()
            await started.process_pending()
            if started.status is ConnectionStatus.CONNECTED:
                started.connect_disconnect()
                started.connect_disconnect()
                await started.process_pending()
        started.connect_disconnect()
        await started.process_pending()
        started.picker_cancel()
        await started.process_pending()

        assert_valid_path(statuses)
        assert statuses[-1] is ConnectionStatus.DISCONNECTED
        assert started.status is ConnectionStatus.DISCONNECTED

    @pytest.mark.asyncio
    async def test_connect_rejected_while_modal_open(
        self, started: ConnectionOrchestrator, config: ConfigManager
    ) -> None:
        """Test a connect intent is ignored while a login prompt is open."""
        config.set_smartlink_enabled(True)
        started.toggle_login_required()
        await started.process_pending()
        assert isinstance(started.modal, LoginModal)

        started.connect_disconnect()
        await started.process_pending()

        assert started.status is ConnectionStatus.DISCONNECTED
        assert isinstance(started.modal, LoginModal)


class TestSessionKind:
    """Test changing the session kind."""

    @pytest.mark.asyncio
    async def test_set_while_disconnected(
        self, started: ConnectionOrchestrator, config: ConfigManager
    ) -> None:
        """Test the session kind is changed and persisted."""
        started.set_session_kind(SessionKind.SHARED)
        await started.process_pending()
        assert started.session_kind is SessionKind.SHARED
        assert config.get_session_kind() is SessionKind.SHARED

    @pytest.mark.asyncio
    async def test_set_while_busy_is_ignored(
        self, started: ConnectionOrchestrator, config: ConfigManager
    ) -> None:
        """Test the session kind is fixed while a connect is in process."""
        started.connect_disconnect()
        await started.process_pending()
        started.set_session_kind(SessionKind.SHARED)
        await started.process_pending()
        assert started.session_kind is SessionKind.EXCLUSIVE
        assert config.get_session_kind() is SessionKind.EXCLUSIVE

    @pytest.mark.asyncio
    async def test_set_use_default(
        self, started: ConnectionOrchestrator, config: ConfigManager
    ) -> None:
        """Test the use-default flag is persisted."""
        started.set_use_default(True)
        await started.process_pending()
        assert config.get_use_default()
