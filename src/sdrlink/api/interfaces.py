"""Contracts of the services the connection orchestrator drives.

The discovery listener, the login exchange, the radio control protocol and
the audio codec live outside this package. Anything that satisfies these
protocols can be handed to :class:`~sdrlink.core.orchestrator.ConnectionOrchestrator`.

All ``async`` methods are awaited from the orchestrator's event loop and may
raise :class:`~sdrlink.api.errors.RadioError`.
"""

from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Protocol

from sdrlink.models.events import ClientEvent, DiscoveryEvent, TestResult
from sdrlink.models.radio import Radio, RemoteClient
from sdrlink.models.status import AudioDirection
from sdrlink.models.target import SessionKind, Target


class DiscoveryGateway(Protocol):
    """Local and relay discovery of radios and their sessions."""

    def discovery_events(self) -> AsyncIterator[DiscoveryEvent]:
        """Return the endless stream of radio added/updated/removed events."""
        ...

    def client_events(self) -> AsyncIterator[ClientEvent]:
        """Return the endless stream of session changes on known radios."""
        ...

    def test_results(self) -> AsyncIterator[TestResult]:
        """Return the endless stream of relay test outcomes."""
        ...

    def list_radios(self) -> list[Radio]:
        """Return a snapshot of the radios available for an exclusive session."""
        ...

    def list_stations(self, serial: str | None = None) -> list[Target]:
        """Return a snapshot of the stations available for a shared session.

        Args:
            serial: Restrict to one radio, or None for all radios.
        """
        ...

    async def set_mode(self, local_enabled: bool, smartlink_enabled: bool, smartlink_user: str) -> bool:
        """Start or stop the local and relay listeners.

        Returns:
            False if the relay listener was requested but could not start.
        """
        ...

    def send_test(self, serial: str) -> None:
        """Ask the relay to test reachability of a radio (result arrives as a TestResult)."""
        ...


class LoginService(Protocol):
    """Credential exchange with the relay service."""

    async def login(self, user: str, password: str) -> bool:
        """Log in to the relay. Returns True on success."""
        ...


class ConnectionService(Protocol):
    """Radio control protocol client."""

    async def connect(
        self,
        target: Target,
        session_kind: SessionKind,
        preempt_handle: int | None,
        program_name: str,
    ) -> None:
        """Open a session on the target radio.

        Args:
            target: Radio (and station, for shared sessions) to connect to.
            session_kind: Exclusive or shared session.
            preempt_handle: Handle of an existing session to close first, if any.
            program_name: Name this client registers with.

        Raises:
            RadioError: If the handshake fails.
        """
        ...

    async def disconnect(self) -> None:
        """Close the current session."""
        ...

    def bind(self, client: RemoteClient | None) -> None:
        """Bind a shared session to an exclusive session, or unbind with None."""
        ...


class AudioService(Protocol):
    """Remote audio stream negotiation."""

    async def request_receive_stream(self) -> int:
        """Request a receive audio stream and return its stream id."""
        ...

    async def request_transmit_stream(self) -> int:
        """Request a transmit audio stream and return its stream id.

        Deployments without transmit support raise
        ``RadioError(RadioErrorKind.NOT_SUPPORTED)``.
        """
        ...

    async def release_stream(self, stream_id: int) -> None:
        """Release a previously granted stream."""
        ...


class AudioPlayer(Protocol):
    """Local playback (receive) or capture (transmit) attached to a stream."""

    def start(self, stream_id: int) -> None:
        """Start playing or capturing for the stream."""
        ...

    def stop(self) -> None:
        """Stop playing or capturing."""
        ...


PlayerFactory = Callable[[AudioDirection], AudioPlayer]


@dataclass(frozen=True, slots=True)
class Backend:
    """The set of service implementations an application runs against."""

    gateway: DiscoveryGateway
    login: LoginService
    connection: ConnectionService
    audio: AudioService
    player_factory: PlayerFactory
