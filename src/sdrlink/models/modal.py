"""Modal dialog states. At most one is active at a time."""

from dataclasses import dataclass, field

from sdrlink.models.target import DefaultSelection, SessionKind, Target

LOGIN_HEADING = "Smartlink Login Required"


@dataclass(frozen=True, slots=True)
class PickerModal:
    """Device picker listing the connectable targets.

    Attributes:
        targets: Live targets for the current session kind.
        session_kind: Session kind the picker was opened for.
        default: Current default selection for that session kind.
        test_result: Outcome of the last relay test, None if none ran.
    """

    targets: tuple[Target, ...] = field(default_factory=tuple)
    session_kind: SessionKind = SessionKind.EXCLUSIVE
    default: DefaultSelection | None = None
    test_result: bool | None = None

    def is_default(self, target: Target) -> bool:
        """Return True if the target is the current default."""
        return self.default is not None and self.default == DefaultSelection.from_target(target)


@dataclass(frozen=True, slots=True)
class ConflictModal:
    """Choice of an existing session to take over before connecting.

    Attributes:
        target: The target the user selected.
        stations: Station names of the sessions already on the radio.
        handles: Session handles, parallel to ``stations``.
    """

    target: Target
    stations: tuple[str, ...]
    handles: tuple[int, ...]

    def handle_for(self, station: str) -> int | None:
        """Return the handle of the session registered under a station."""
        for name, handle in zip(self.stations, self.handles, strict=True):
            if name == station:
                return handle
        return None


@dataclass(frozen=True, slots=True)
class LoginModal:
    """Relay login prompt."""

    heading: str = LOGIN_HEADING
    user: str = ""


Modal = PickerModal | ConflictModal | LoginModal
