"""Typed errors raised by the radio collaborators."""

from enum import Enum


class RadioErrorKind(Enum):
    """Failure categories reported by the radio services."""

    CONNECTION_FAILED = "Connection failed"
    CLIENT_CONNECTION_FAILED = "Client connection failed"
    TCP_CONNECTION_FAILED = "Tcp connection failed"
    UDP_BIND_FAILED = "Udp bind failed"
    INSTANTIATION_FAILED = "Radio instantiation failed"
    REPLY_ERROR = "Reply with error"
    STATUS_TIMEOUT = "Timeout waiting for status"
    GUI_CLIENT_TIMEOUT = "Timeout waiting for GuiClient"
    STREAM_REQUEST_FAILED = "Stream request failed"
    LOGIN_FAILED = "Login failed"
    NOT_SUPPORTED = "Not supported"


class RadioError(Exception):
    """Base error raised by the discovery, login, connection and audio services.

    Attributes:
        kind: The failure category.
        detail: Optional extra context appended to the message.
    """

    def __init__(self, kind: RadioErrorKind, detail: str = "") -> None:
        self.kind = kind
        self.detail = detail
        super().__init__(self.message)

    @property
    def message(self) -> str:
        """Return the human-readable message."""
        if self.detail:
            return f"{self.kind.value}: {self.detail}"
        return self.kind.value

    def __str__(self) -> str:
        return self.message

    @classmethod
    def wrap(cls, error: Exception, kind: RadioErrorKind) -> "RadioError":
        """Convert an arbitrary exception into a RadioError of the given kind."""
        if isinstance(error, RadioError):
            return error
        return cls(kind, str(error) or type(error).__name__)


class LoginError(RadioError):
    """Relay login could not be completed."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(RadioErrorKind.LOGIN_FAILED, detail)


class AudioError(RadioError):
    """An audio stream could not be granted or released."""

    def __init__(self, detail: str = "", kind: RadioErrorKind = RadioErrorKind.STREAM_REQUEST_FAILED) -> None:
        super().__init__(kind, detail)
