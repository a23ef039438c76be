"""Test fixtures for sdrlink tests."""

import asyncio
import os
from collections.abc import AsyncGenerator, AsyncIterator
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

from sdrlink.api.errors import RadioError, RadioErrorKind
from sdrlink.core.config import ConfigManager
from sdrlink.core.defaults import DefaultSelectionStore
from sdrlink.core.orchestrator import ConnectionOrchestrator
from sdrlink.models.events import ClientEvent, DiscoveryEvent, TestResult
from sdrlink.models.radio import SOURCE_LOCAL, Radio, RemoteClient
from sdrlink.models.status import AudioDirection, LogAlert
from sdrlink.models.target import Target

# Run Qt headless so the qapp fixture works without a display.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

RX_STREAM_ID = 0x04000008


class FakeGateway:
    """In-memory discovery gateway driven by the tests.

    Snapshots are plain lists; the three event streams are queues the
    tests push into.
    """

    def __init__(self) -> None:
        self.radios: list[Radio] = []
        self.stations: list[Target] = []
        self.mode_result = True
        self.mode_calls: list[tuple[bool, bool, str]] = []
        self.tests_sent: list[str] = []
        self._discovery: asyncio.Queue[DiscoveryEvent] = asyncio.Queue()
        self._clients: asyncio.Queue[ClientEvent] = asyncio.Queue()
        self._tests: asyncio.Queue[TestResult] = asyncio.Queue()

    async def _drain(self, queue: asyncio.Queue) -> AsyncIterator:
        while True:
            yield await queue.get()

    def discovery_events(self) -> AsyncIterator[DiscoveryEvent]:
        return self._drain(self._discovery)

    def client_events(self) -> AsyncIterator[ClientEvent]:
        return self._drain(self._clients)

    def test_results(self) -> AsyncIterator[TestResult]:
        return self._drain(self._tests)

    def list_radios(self) -> list[Radio]:
        return list(self.radios)

    def list_stations(self, serial: str | None = None) -> list[Target]:
        return [t for t in self.stations if serial is None or t.serial == serial]

    async def set_mode(self, local_enabled: bool, smartlink_enabled: bool, smartlink_user: str) -> bool:
        self.mode_calls.append((local_enabled, smartlink_enabled, smartlink_user))
        return self.mode_result

    def send_test(self, serial: str) -> None:
        self.tests_sent.append(serial)

    # -- Test helpers --

    def push_discovery(self, event: DiscoveryEvent) -> None:
        self._discovery.put_nowait(event)

    def push_client(self, event: ClientEvent) -> None:
        self._clients.put_nowait(event)

    def push_test_result(self, result: TestResult) -> None:
        self._tests.put_nowait(result)


class FakeLogAlerts:
    """Async iterable of LogAlerts fed by the tests."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[LogAlert] = asyncio.Queue()

    def push(self, alert: LogAlert) -> None:
        self._queue.put_nowait(alert)

    async def __aiter__(self) -> AsyncIterator[LogAlert]:
        while True:
            yield await self._queue.get()


@pytest.fixture
def radio() -> Radio:
    """Return an idle radio found on the local network."""
    return Radio(serial="1234", source=SOURCE_LOCAL, address="192.168.1.50", nickname="Shack 6600")


@pytest.fixture
def busy_radio() -> Radio:
    """Return a radio that already has one exclusive session."""
    return Radio(
        serial="1234",
        source=SOURCE_LOCAL,
        address="192.168.1.50",
        nickname="Shack 6600",
        remote_clients=(RemoteClient(station="Shack", handle=0x2A0B1C3D, client_id="client-1"),),
    )


@pytest.fixture
def gateway() -> FakeGateway:
    """Return a gateway with no radios."""
    return FakeGateway()


@pytest.fixture
def login_service() -> Mock:
    """Return a login service that accepts any credentials."""
    service = Mock()
    service.login = AsyncMock(return_value=True)
    return service


@pytest.fixture
def connection() -> Mock:
    """Return a connection service whose calls succeed."""
    service = Mock()
    service.connect = AsyncMock(return_value=None)
    service.disconnect = AsyncMock(return_value=None)
    service.bind = Mock()
    return service


@pytest.fixture
def audio() -> Mock:
    """Return an audio service granting receive streams; transmit is unsupported."""
    service = Mock()
    service.request_receive_stream = AsyncMock(return_value=RX_STREAM_ID)
    service.request_transmit_stream = AsyncMock(
        side_effect=RadioError(RadioErrorKind.NOT_SUPPORTED, "transmit audio")
    )
    service.release_stream = AsyncMock(return_value=None)
    return service


@pytest.fixture
def players() -> dict[AudioDirection, Mock]:
    """Return the players built so far, by direction."""
    return {}


@pytest.fixture
def player_factory(players: dict[AudioDirection, Mock]) -> Mock:
    """Return a factory that records one Mock player per direction."""

    def build(direction: AudioDirection) -> Mock:
        player = Mock()
        players[direction] = player
        return player

    return Mock(side_effect=build)


@pytest.fixture
def config() -> ConfigManager:
    """Return a fresh ConfigManager with local discovery enabled."""
    # Use unique organization/app to avoid test interference
    config = ConfigManager("SdrLinkTest", "TestOrchestrator")
    config.clear()
    config.set_local_enabled(True)
    return config


@pytest.fixture
def defaults(config: ConfigManager) -> DefaultSelectionStore:
    """Return an empty default store sharing the config's QSettings."""
    store = DefaultSelectionStore(config.settings)
    store.clear()
    return store


@pytest.fixture
def log_alerts() -> FakeLogAlerts:
    """Return an empty log-alert stream."""
    return FakeLogAlerts()


@pytest.fixture
def orchestrator(
    qapp,  # noqa: ANN001
    gateway: FakeGateway,
    login_service: Mock,
    connection: Mock,
    audio: Mock,
    player_factory: Mock,
    config: ConfigManager,
    defaults: DefaultSelectionStore,
    log_alerts: FakeLogAlerts,
) -> ConnectionOrchestrator:
    """Return an orchestrator wired to fakes; not started."""
    return ConnectionOrchestrator(
        gateway,
        login_service,
        connection,
        audio,
        player_factory,
        config,
        defaults,
        log_alerts=log_alerts,
    )


@pytest_asyncio.fixture
async def started(orchestrator: ConnectionOrchestrator) -> AsyncGenerator[ConnectionOrchestrator, None]:
    """Return a started orchestrator with startup actions processed."""
    orchestrator.start()
    await orchestrator.process_pending()
    yield orchestrator
    await orchestrator.stop()


async def connect_via_picker(orchestrator: ConnectionOrchestrator, target: Target) -> None:
    """Open the picker and connect to ``target`` through it."""
    orchestrator.connect_disconnect()
    await orchestrator.process_pending()
    orchestrator.picker_connect(target)
    await orchestrator.process_pending()
