# =============================================================================
# csc_core/offline/connection_monitor.py
# Remote connectivity tracking for UI display
# =============================================================================
"""
ConnectionMonitor - tracks whether the remote store is reachable.

The monitor never probes the network itself. The remote adapter reports the
outcome of every call it makes, and the monitor derives a status from those
reports:

- UNCONFIGURED: no remote credentials, pure-local mode
- ONLINE:       the last remote call succeeded
- DEGRADED:     the last remote call failed, local fallback in use
- UNKNOWN:      configured but no call made yet
"""

from __future__ import annotations
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class ConnectionStatus(Enum):
    """Connection status states."""
    ONLINE = "online"
    DEGRADED = "degraded"
    UNCONFIGURED = "unconfigured"
    UNKNOWN = "unknown"


@dataclass
class ConnectionState:
    """Current connection state with metadata."""
    status: ConnectionStatus = ConnectionStatus.UNKNOWN
    last_success: Optional[datetime] = None
    last_failure: Optional[datetime] = None
    consecutive_failures: int = 0
    error_message: Optional[str] = None


class ConnectionMonitor:
    """
    Passive connectivity tracker fed by RemoteStore call outcomes.

    Usage:
        monitor = ConnectionMonitor(configured=True)
        monitor.register_callback(lambda state: print(state.status))
        monitor.record_failure("timeout")
    """

    def __init__(self, configured: bool):
        self._configured = configured
        self._state = ConnectionState(
            status=ConnectionStatus.UNKNOWN if configured else ConnectionStatus.UNCONFIGURED
        )
        self._callbacks: List[Callable[[ConnectionState], None]] = []
        self._lock = threading.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def status(self) -> ConnectionStatus:
        return self._state.status

    @property
    def configured(self) -> bool:
        return self._configured

    @property
    def is_online(self) -> bool:
        return self._state.status == ConnectionStatus.ONLINE

    def record_success(self) -> None:
        """Note a successful remote call."""
        if not self._configured:
            return
        with self._lock:
            old_status = self._state.status
            self._state.status = ConnectionStatus.ONLINE
            self._state.last_success = datetime.now()
            self._state.consecutive_failures = 0
            self._state.error_message = None
        self._on_transition(old_status)

    def record_failure(self, error: Optional[str] = None) -> None:
        """Note a failed remote call."""
        if not self._configured:
            return
        with self._lock:
            old_status = self._state.status
            self._state.status = ConnectionStatus.DEGRADED
            self._state.last_failure = datetime.now()
            self._state.consecutive_failures += 1
            self._state.error_message = error
        self._on_transition(old_status)

    def _on_transition(self, old_status: ConnectionStatus) -> None:
        if old_status != self._state.status:
            logger.info(f"Connection status changed: {old_status.value} -> {self._state.status.value}")
            self._notify_callbacks()

    def register_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        """
        Register a callback for connection status changes.

        Args:
            callback: Function called with ConnectionState when status changes
        """
        if callback not in self._callbacks:
            self._callbacks.append(callback)

    def unregister_callback(self, callback: Callable[[ConnectionState], None]) -> None:
        """Remove a registered callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify_callbacks(self) -> None:
        for callback in list(self._callbacks):
            try:
                callback(self._state)
            except Exception as e:
                logger.error(f"Error in connection callback: {e}")

    def get_status_display(self) -> Dict[str, Any]:
        """Get status information for UI display."""
        return {
            "status": self._state.status.value,
            "cloud_active": self._configured,
            "is_online": self.is_online,
            "last_success": self._state.last_success.isoformat() if self._state.last_success else None,
            "last_failure": self._state.last_failure.isoformat() if self._state.last_failure else None,
            "failures": self._state.consecutive_failures,
            "error": self._state.error_message,
        }
