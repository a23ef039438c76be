"""Radio and remote client models as reported by the discovery layer."""

from dataclasses import dataclass, field

# Discovery sources
SOURCE_LOCAL = "local"
SOURCE_SMARTLINK = "smartlink"


@dataclass(frozen=True, slots=True)
class RemoteClient:
    """A session already active on a discovered radio.

    Attributes:
        station: Station name the owning client registered with.
        handle: Session handle assigned by the radio.
        client_id: Identity of the owning client program.
        program: Name of the owning client program, if reported.
    """

    station: str
    handle: int
    client_id: str = ""
    program: str = ""

    @property
    def display_handle(self) -> str:
        """Return the handle formatted the way radios print it."""
        return f"0x{self.handle:08X}"


@dataclass(frozen=True, slots=True)
class Radio:
    """A connectable radio seen by local or relay discovery.

    Attributes:
        serial: Radio serial number (identity across address changes).
        source: Discovery source ("local" or "smartlink").
        address: Network address the radio is reachable at.
        nickname: Operator-assigned name.
        model: Radio model string.
        version: Firmware version string.
        remote_clients: Exclusive sessions currently active on the radio.
    """

    serial: str
    source: str = SOURCE_LOCAL
    address: str = ""
    nickname: str = ""
    model: str = ""
    version: str = ""
    remote_clients: tuple[RemoteClient, ...] = field(default_factory=tuple)

    @property
    def display_name(self) -> str:
        """Return nickname or serial as fallback for display."""
        return self.nickname or self.serial

    @property
    def stations(self) -> list[str]:
        """Return the station names of the active sessions."""
        return [c.station for c in self.remote_clients]

    @property
    def has_remote_clients(self) -> bool:
        """Return True if any session is already active on the radio."""
        return bool(self.remote_clients)
