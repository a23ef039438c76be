"""Persistent store for the default target of each session kind."""

import logging

from PySide6.QtCore import QSettings

from sdrlink.models.target import DefaultSelection, SessionKind

logger = logging.getLogger(__name__)

_KEY_PREFIX = "defaults"


def _key(slot: SessionKind) -> str:
    return f"{_KEY_PREFIX}/{slot.value}"


class DefaultSelectionStore:
    """Reads and writes one DefaultSelection per session kind.

    Each slot is stored as a single JSON string, so a write either
    replaces the whole record or leaves the old one in place.

    Example:
        store = DefaultSelectionStore(config.settings)
        store.write(SessionKind.EXCLUSIVE, DefaultSelection(serial="1234"))
        selection = store.read(SessionKind.EXCLUSIVE)
    """

    def __init__(self, settings: QSettings) -> None:
        """Initialize the store.

        Args:
            settings: QSettings instance to persist into.
        """
        self._settings = settings

    def read(self, slot: SessionKind) -> DefaultSelection | None:
        """Return the stored default for a session kind, or None.

        Args:
            slot: Session kind whose default to read.
        """
        raw = self._settings.value(_key(slot), "", str)
        if not raw:
            return None
        return DefaultSelection.from_json(str(raw))

    def write(self, slot: SessionKind, value: DefaultSelection | None) -> None:
        """Store or clear the default for a session kind.

        Args:
            slot: Session kind whose default to write.
            value: New default, or None to remove it.
        """
        if value is None:
            self._settings.remove(_key(slot))
            logger.debug("Cleared %s default", slot.value)
            return
        encoded = value.to_json()
        self._settings.setValue(_key(slot), encoded)
        logger.debug("Stored %s default: %s", slot.value, encoded)

    def clear(self) -> None:
        """Remove both defaults."""
        for slot in SessionKind:
            self._settings.remove(_key(slot))

    def sync(self) -> None:
        """Force settings to be written to disk."""
        self._settings.sync()
