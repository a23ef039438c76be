"""Data models for radios, targets, sessions and orchestrator events."""

from sdrlink.models.events import (
    ClientAction,
    ClientEvent,
    DiscoveryAction,
    DiscoveryEvent,
    TestResult,
)
from sdrlink.models.modal import ConflictModal, LoginModal, Modal, PickerModal
from sdrlink.models.radio import Radio, RemoteClient
from sdrlink.models.status import (
    Alert,
    AlertKind,
    AudioDirection,
    AudioHandle,
    ConnectionStatus,
    LogAlert,
)
from sdrlink.models.target import DefaultSelection, SessionKind, Target

__all__ = [
    "Alert",
    "AlertKind",
    "AudioDirection",
    "AudioHandle",
    "ClientAction",
    "ClientEvent",
    "ConflictModal",
    "ConnectionStatus",
    "DefaultSelection",
    "DiscoveryAction",
    "DiscoveryEvent",
    "LogAlert",
    "LoginModal",
    "Modal",
    "PickerModal",
    "Radio",
    "RemoteClient",
    "SessionKind",
    "Target",
    "TestResult",
]
