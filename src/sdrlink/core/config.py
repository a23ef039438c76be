"""Configuration manager using QSettings for persistent storage."""

import logging

from PySide6.QtCore import QSettings

from sdrlink.models.target import SessionKind

logger = logging.getLogger(__name__)

# Alerts
_KEY_ALERT_ON_ERROR = "alerts/alert_on_error"

# Session
_KEY_EXCLUSIVE = "session/exclusive"
_KEY_USE_DEFAULT = "session/use_default"

# Discovery modes
_KEY_LOCAL_ENABLED = "discovery/local"
_KEY_DIRECT_ENABLED = "discovery/direct"
_KEY_SMARTLINK_ENABLED = "discovery/smartlink"

# Smartlink login
_KEY_LOGIN_REQUIRED = "login/required"
_KEY_SMARTLINK_USER = "login/user"

# Audio
_KEY_RX_AUDIO = "audio/rx_enabled"
_KEY_TX_AUDIO = "audio/tx_enabled"


class ConfigManager:
    """Wrapper around QSettings for type-safe config access.

    QSettings stores config in platform-specific locations:
    - Windows: HKEY_CURRENT_USER\\Software\\SdrLink\\SdrLink
    - macOS: ~/Library/Preferences/com.SdrLink.SdrLink.plist
    - Linux: ~/.config/SdrLink/SdrLink.conf

    Example:
        config = ConfigManager()
        if config.get_smartlink_enabled():
            user = config.get_smartlink_user()
    """

    def __init__(self, organization: str = "SdrLink", application: str = "SdrLink") -> None:
        """Initialize the config manager.

        Args:
            organization: Organization name for QSettings.
            application: Application name for QSettings.
        """
        self._settings = QSettings(organization, application)

    @property
    def settings(self) -> QSettings:
        """Return the underlying QSettings instance."""
        return self._settings

    def _get_bool(self, key: str, default: bool) -> bool:
        return bool(self._settings.value(key, default, bool))

    # -- Alerts ----------------------------------------------------------------

    def get_alert_on_error(self) -> bool:
        """Return whether logged warnings and errors raise an alert."""
        return self._get_bool(_KEY_ALERT_ON_ERROR, False)

    def set_alert_on_error(self, enabled: bool) -> None:
        """Enable or disable alerts for logged warnings and errors."""
        self._settings.setValue(_KEY_ALERT_ON_ERROR, enabled)

    # -- Session ---------------------------------------------------------------

    def get_session_kind(self) -> SessionKind:
        """Return the session kind to open (default exclusive)."""
        if self._get_bool(_KEY_EXCLUSIVE, True):
            return SessionKind.EXCLUSIVE
        return SessionKind.SHARED

    def set_session_kind(self, kind: SessionKind) -> None:
        """Set the session kind to open.

        Args:
            kind: Exclusive or shared.
        """
        self._settings.setValue(_KEY_EXCLUSIVE, kind.is_exclusive)

    def get_use_default(self) -> bool:
        """Return whether connect should use the stored default."""
        return self._get_bool(_KEY_USE_DEFAULT, False)

    def set_use_default(self, enabled: bool) -> None:
        """Enable or disable auto-connect to the stored default."""
        self._settings.setValue(_KEY_USE_DEFAULT, enabled)

    # -- Discovery modes -------------------------------------------------------

    def get_local_enabled(self) -> bool:
        """Return whether local-network discovery is enabled."""
        return self._get_bool(_KEY_LOCAL_ENABLED, False)

    def set_local_enabled(self, enabled: bool) -> None:
        """Enable or disable local-network discovery."""
        self._settings.setValue(_KEY_LOCAL_ENABLED, enabled)

    def get_direct_enabled(self) -> bool:
        """Return whether direct (by address) mode is enabled."""
        return self._get_bool(_KEY_DIRECT_ENABLED, False)

    def set_direct_enabled(self, enabled: bool) -> None:
        """Enable or disable direct mode."""
        self._settings.setValue(_KEY_DIRECT_ENABLED, enabled)

    def get_smartlink_enabled(self) -> bool:
        """Return whether Smartlink (relay) discovery is enabled."""
        return self._get_bool(_KEY_SMARTLINK_ENABLED, False)

    def set_smartlink_enabled(self, enabled: bool) -> None:
        """Enable or disable Smartlink discovery."""
        self._settings.setValue(_KEY_SMARTLINK_ENABLED, enabled)

    def any_mode_enabled(self) -> bool:
        """Return True if at least one way of finding radios is enabled."""
        return self.get_local_enabled() or self.get_smartlink_enabled() or self.get_direct_enabled()

    # -- Smartlink login -------------------------------------------------------

    def get_login_required(self) -> bool:
        """Return whether a Smartlink login is required."""
        return self._get_bool(_KEY_LOGIN_REQUIRED, False)

    def set_login_required(self, required: bool) -> None:
        """Set whether a Smartlink login is required."""
        self._settings.setValue(_KEY_LOGIN_REQUIRED, required)

    def get_smartlink_user(self) -> str:
        """Return the last successfully logged-in Smartlink user.

        Returns:
            User identity, or empty string if none.
        """
        value = self._settings.value(_KEY_SMARTLINK_USER, "", str)
        return str(value) if value else ""

    def set_smartlink_user(self, user: str) -> None:
        """Remember a Smartlink user.

        Args:
            user: User identity that logged in successfully.
        """
        self._settings.setValue(_KEY_SMARTLINK_USER, user)

    # -- Audio -----------------------------------------------------------------

    def get_rx_audio_enabled(self) -> bool:
        """Return the receive-audio preference."""
        return self._get_bool(_KEY_RX_AUDIO, False)

    def set_rx_audio_enabled(self, enabled: bool) -> None:
        """Set the receive-audio preference."""
        self._settings.setValue(_KEY_RX_AUDIO, enabled)

    def get_tx_audio_enabled(self) -> bool:
        """Return the transmit-audio preference."""
        return self._get_bool(_KEY_TX_AUDIO, False)

    def set_tx_audio_enabled(self, enabled: bool) -> None:
        """Set the transmit-audio preference."""
        self._settings.setValue(_KEY_TX_AUDIO, enabled)

    # -- General settings ------------------------------------------------------

    def clear(self) -> None:
        """Clear all settings (useful for testing or reset)."""
        self._settings.clear()

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()
