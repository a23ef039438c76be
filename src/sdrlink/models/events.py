"""Events delivered by the discovery layer."""

from dataclasses import dataclass
from enum import Enum

from sdrlink.models.radio import Radio, RemoteClient


class DiscoveryAction(Enum):
    """Change reported for a discovered radio."""

    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


class ClientAction(Enum):
    """Change reported for a session on a discovered radio."""

    ADDED = "added"
    REMOVED = "removed"
    COMPLETED = "completed"


@dataclass(frozen=True, slots=True)
class DiscoveryEvent:
    """A radio appeared, changed or disappeared."""

    action: DiscoveryAction
    radio: Radio


@dataclass(frozen=True, slots=True)
class ClientEvent:
    """A session on a known radio changed.

    Attributes:
        action: What happened to the session.
        client: The session concerned.
        serial: Serial number of the radio hosting the session.
    """

    action: ClientAction
    client: RemoteClient
    serial: str


@dataclass(frozen=True, slots=True)
class TestResult:
    """Outcome of a relay reachability test for one radio."""

    __test__ = False  # not a pytest test class

    serial: str
    success: bool
