"""Connection status, audio and alert models."""

import logging
from dataclasses import dataclass
from enum import Enum


class ConnectionStatus(Enum):
    """Lifecycle status of the connection to a radio."""

    DISCONNECTED = "disconnected"
    IN_PROCESS = "inProcess"
    CONNECTED = "connected"


class AudioDirection(Enum):
    """Direction of a remote audio stream."""

    RECEIVE = "rx"
    TRANSMIT = "tx"


@dataclass(frozen=True, slots=True)
class AudioHandle:
    """A granted audio stream owned by the orchestrator.

    Attributes:
        direction: Whether the stream carries receive or transmit audio.
        stream_id: Radio-assigned stream identifier, needed to release it.
    """

    direction: AudioDirection
    stream_id: int

    @property
    def display_id(self) -> str:
        """Return the stream id formatted the way radios print it."""
        return f"0x{self.stream_id:08X}"


class AlertKind(Enum):
    """Severity of a user-facing alert."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Alert:
    """A user-facing alert. Only one is current at a time.

    Attributes:
        kind: Alert severity.
        title: Short headline.
        message: Optional detail text.
    """

    kind: AlertKind
    title: str
    message: str = ""


@dataclass(frozen=True, slots=True)
class LogAlert:
    """A warning or error record picked up from the logging system."""

    severity: int
    message: str

    @property
    def is_error(self) -> bool:
        """Return True for ERROR and above."""
        return self.severity >= logging.ERROR
