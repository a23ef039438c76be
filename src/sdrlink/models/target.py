"""Target (pickable endpoint) and persisted default selection models."""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Self

from sdrlink.models.radio import Radio, RemoteClient

logger = logging.getLogger(__name__)


class SessionKind(Enum):
    """Kind of session a client opens on a radio."""

    EXCLUSIVE = "exclusive"  # owning (GUI) session
    SHARED = "shared"  # non-owning session bound to a station

    @property
    def is_exclusive(self) -> bool:
        """Return True for the owning session kind."""
        return self is SessionKind.EXCLUSIVE


@dataclass(frozen=True, slots=True)
class Target:
    """A connectable endpoint: a radio plus an optional station name.

    Targets compare by (serial, station); the radio snapshot they carry
    is informational and does not take part in equality.

    Attributes:
        serial: Serial number of the radio.
        station: Station to bind to (empty for exclusive sessions).
        radio: Snapshot of the radio at the time the target was built.
    """

    serial: str
    station: str = ""
    radio: Radio | None = field(default=None, compare=False, hash=False, repr=False)

    @classmethod
    def for_radio(cls, radio: Radio, station: str = "") -> Self:
        """Build a target from a discovered radio."""
        return cls(serial=radio.serial, station=station, radio=radio)

    @property
    def remote_clients(self) -> tuple[RemoteClient, ...]:
        """Return the active sessions on the target radio."""
        return self.radio.remote_clients if self.radio else ()

    @property
    def display_name(self) -> str:
        """Return a label combining radio and station."""
        name = self.radio.display_name if self.radio else self.serial
        return f"{name} / {self.station}" if self.station else name


@dataclass(frozen=True, slots=True)
class DefaultSelection:
    """Persisted preferred target for one session kind.

    Attributes:
        serial: Serial number of the preferred radio.
        source: Discovery source the radio was picked from.
        station: Station name (shared sessions only).
    """

    serial: str
    source: str = ""
    station: str = ""

    def __post_init__(self) -> None:
        """Reject selections without a radio identity."""
        if not self.serial:
            raise ValueError("DefaultSelection requires a serial number")

    @classmethod
    def from_target(cls, target: Target) -> Self:
        """Build a default selection from a picked target."""
        source = target.radio.source if target.radio else ""
        return cls(serial=target.serial, source=source, station=target.station)

    def matches(self, radio: Radio) -> bool:
        """Return True if a live radio satisfies this selection."""
        if radio.serial != self.serial:
            return False
        return not self.source or radio.source == self.source

    def to_json(self) -> str:
        """Serialize to a JSON string."""
        return json.dumps({"serial": self.serial, "source": self.source, "station": self.station})

    @classmethod
    def from_json(cls, raw: str) -> Self | None:
        """Parse a JSON string, returning None if it is not a valid selection."""
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Ignoring unreadable default selection: %s", e)
            return None
        if not isinstance(data, dict):
            return None
        try:
            return cls(
                serial=str(data.get("serial", "")),
                source=str(data.get("source", "")),
                station=str(data.get("station", "")),
            )
        except ValueError as e:
            logger.warning("Ignoring invalid default selection: %s", e)
            return None
