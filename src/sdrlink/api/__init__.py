"""Contracts and errors of the external radio services."""

from sdrlink.api.errors import AudioError, LoginError, RadioError, RadioErrorKind
from sdrlink.api.interfaces import (
    AudioPlayer,
    AudioService,
    Backend,
    ConnectionService,
    DiscoveryGateway,
    LoginService,
    PlayerFactory,
)

__all__ = [
    "AudioError",
    "AudioPlayer",
    "AudioService",
    "Backend",
    "ConnectionService",
    "DiscoveryGateway",
    "LoginError",
    "LoginService",
    "PlayerFactory",
    "RadioError",
    "RadioErrorKind",
]
