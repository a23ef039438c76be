"""Core business logic layer.

This module contains the connection orchestration that bridges the
external radio services with the Qt UI layer.

Classes:
    ConfigManager: QSettings wrapper for configuration.
    DefaultSelectionStore: Persistent default target per session kind.
    ConnectionOrchestrator: Serialized connection lifecycle state machine.
    LogAlertHandler: Logging handler feeding log alerts to the orchestrator.
    OrchestratorWorker: QThread worker running the orchestrator's event loop.
"""

from sdrlink.core.config import ConfigManager
from sdrlink.core.defaults import DefaultSelectionStore
from sdrlink.core.log_alerts import LogAlertHandler
from sdrlink.core.orchestrator import ConnectionOrchestrator, InvalidTransitionError
from sdrlink.core.worker import OrchestratorWorker

__all__ = [
    "ConfigManager",
    "ConnectionOrchestrator",
    "DefaultSelectionStore",
    "InvalidTransitionError",
    "LogAlertHandler",
    "OrchestratorWorker",
]
