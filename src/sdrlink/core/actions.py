"""Actions processed by the connection orchestrator.

Every inbound signal becomes one of these frozen records and is put on the
orchestrator's queue: user intents, items from the long-lived subscriptions,
and the single completion report of each spawned service call.
"""

from dataclasses import dataclass, field

from sdrlink.api.errors import RadioError
from sdrlink.models.events import ClientEvent, DiscoveryEvent, TestResult
from sdrlink.models.status import AudioDirection, LogAlert
from sdrlink.models.target import SessionKind, Target


class Action:
    """Base class for queued actions."""

    __slots__ = ()


# -- User intents -------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ConnectDisconnect(Action):
    """Connect when disconnected, disconnect when connected."""


@dataclass(frozen=True, slots=True)
class ToggleLocal(Action):
    """Flip local-network discovery."""


@dataclass(frozen=True, slots=True)
class ToggleDirect(Action):
    """Flip direct mode."""


@dataclass(frozen=True, slots=True)
class ToggleSmartlink(Action):
    """Flip relay discovery."""


@dataclass(frozen=True, slots=True)
class ToggleLoginRequired(Action):
    """Flip the login-required flag."""


@dataclass(frozen=True, slots=True)
class ToggleAudio(Action):
    """Flip the receive or transmit audio preference."""

    direction: AudioDirection


@dataclass(frozen=True, slots=True)
class SetSessionKind(Action):
    kind: SessionKind


@dataclass(frozen=True, slots=True)
class SetUseDefault(Action):
    enabled: bool


@dataclass(frozen=True, slots=True)
class PickerConnect(Action):
    target: Target


@dataclass(frozen=True, slots=True)
class PickerCancel(Action):
    pass


@dataclass(frozen=True, slots=True)
class PickerToggleDefault(Action):
    target: Target


@dataclass(frozen=True, slots=True)
class PickerTest(Action):
    target: Target


@dataclass(frozen=True, slots=True)
class ConflictConnect(Action):
    """Connect from the conflict dialog.

    ``handle`` is the session to take over, or None to connect alongside
    the existing sessions.
    """

    handle: int | None


@dataclass(frozen=True, slots=True)
class ConflictCancel(Action):
    pass


@dataclass(frozen=True, slots=True)
class LoginSubmit(Action):
    user: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class LoginCancel(Action):
    pass


@dataclass(frozen=True, slots=True)
class DismissAlert(Action):
    pass


# -- Subscription items -------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DiscoveryChanged(Action):
    event: DiscoveryEvent


@dataclass(frozen=True, slots=True)
class ClientChanged(Action):
    event: ClientEvent


@dataclass(frozen=True, slots=True)
class TestResultReceived(Action):
    __test__ = False  # not a pytest test class

    result: TestResult


@dataclass(frozen=True, slots=True)
class LogAlertReceived(Action):
    alert: LogAlert


# -- Service call results -----------------------------------------------------


@dataclass(frozen=True, slots=True)
class ModeApplied(Action):
    """Result of reconfiguring the discovery listeners."""

    success: bool
    smartlink_enabled: bool


@dataclass(frozen=True, slots=True)
class ConnectSucceeded(Action):
    target: Target


@dataclass(frozen=True, slots=True)
class ConnectFailed(Action):
    error: RadioError


@dataclass(frozen=True, slots=True)
class DisconnectCompleted(Action):
    pass


@dataclass(frozen=True, slots=True)
class LoginFinished(Action):
    success: bool
    user: str


@dataclass(frozen=True, slots=True)
class AudioGranted(Action):
    """A stream request succeeded.

    ``session`` identifies the connection the request was made on.
    """

    direction: AudioDirection
    stream_id: int
    session: int


@dataclass(frozen=True, slots=True)
class AudioDenied(Action):
    direction: AudioDirection
    error: RadioError
    session: int
