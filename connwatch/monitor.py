"""
Connectivity monitor.

Subscribes to a path source and keeps two derived fields up to date:
whether connectivity is usable, and which kind of interface carries it.

Usage:
    from connwatch import get_monitor

    monitor = get_monitor()
    monitor.start_monitoring()
    ...
    if monitor.is_connected and monitor.connection_type is ConnectionType.WIFI:
        ...
    monitor.stop_monitoring()
"""

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from . import config
from .logging_config import get_logger
from .path import InterfaceType, NetworkPath, PathStatus
from .sources import PathSource, Subscription, create_path_source

logger = get_logger(__name__)


class ConnectionType(Enum):
    """Kind of connection the current path uses."""

    WIFI = "wifi"
    CELLULAR = "cellular"
    ETHERNET = "ethernet"
    UNKNOWN = "unknown"


# First match wins when a path uses several interface types
CONNECTION_TYPE_PRIORITY = (
    (InterfaceType.WIFI, ConnectionType.WIFI),
    (InterfaceType.CELLULAR, ConnectionType.CELLULAR),
    (InterfaceType.WIRED_ETHERNET, ConnectionType.ETHERNET),
)


def classify_connection_type(path: NetworkPath) -> ConnectionType:
    """Classify a path as Wi-Fi, then cellular, then Ethernet, else unknown."""
    for interface_type, connection_type in CONNECTION_TYPE_PRIORITY:
        if path.uses_interface_type(interface_type):
            return connection_type
    return ConnectionType.UNKNOWN


@dataclass(frozen=True)
class ConnectivityState:
    """Immutable snapshot of the monitor's view of the network.

    Attributes:
        is_connected: False only when the last path was unsatisfied.
        connection_type: Classification of the last path.
        updated_at: time.time() of the last delivered path, None before any.
    """

    is_connected: bool = False
    connection_type: ConnectionType = ConnectionType.UNKNOWN
    updated_at: Optional[float] = None

    @classmethod
    def from_path(cls, path: NetworkPath, updated_at: Optional[float] = None) -> "ConnectivityState":
        return cls(
            is_connected=path.status is not PathStatus.UNSATISFIED,
            connection_type=classify_connection_type(path),
            updated_at=time.time() if updated_at is None else updated_at,
        )


StateListener = Callable[[ConnectivityState], None]


class ConnectivityMonitor:
    """Tracks connectivity and connection type from a path source.

    The state is replaced as a whole under a lock, so a reader of `state`
    always sees is_connected and connection_type from the same path.
    Deliveries are tagged with the subscription that produced them; after
    stop_monitoring() or a restart, late deliveries from an older
    subscription are dropped.

    Listeners added with add_listener() are called with the new state on
    the first delivered path and on every change of is_connected or
    connection_type. They run on the source's delivery thread, one at a
    time and in delivery order, so no transition is skipped.
    """

    def __init__(self, source: Optional[PathSource] = None):
        """
        Args:
            source: Where path updates come from. Defaults to the backend
                selected in the configuration file.
        """
        if source is None:
            settings = config.get_settings()
            source = create_path_source(settings["backend"], settings["poll_interval"])
        self._source = source
        self._state = ConnectivityState()
        self._token: Optional[object] = None
        self._subscription: Optional[Subscription] = None
        self._listeners: List[StateListener] = []
        self._lock = threading.Lock()

    @property
    def source(self) -> PathSource:
        return self._source

    @property
    def state(self) -> ConnectivityState:
        with self._lock:
            return self._state

    @property
    def is_connected(self) -> bool:
        return self.state.is_connected

    @property
    def connection_type(self) -> ConnectionType:
        return self.state.connection_type

    @property
    def is_monitoring(self) -> bool:
        with self._lock:
            return self._token is not None

    def add_listener(self, listener: StateListener) -> None:
        """Call listener(state) on the first path and on every state change."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        """Stop calling listener. Does nothing if it was never added."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def start_monitoring(self) -> None:
        """
        Start receiving path updates.

        Calling this while already monitoring does nothing; there is never
        more than one live subscription.

        Raises:
            SubscriptionError: If the source refuses the subscription.
            BackendUnavailableError: If the source cannot run on this host.
        """
        token = object()
        with self._lock:
            if self._token is not None:
                logger.debug("start_monitoring called while already monitoring, ignoring")
                return
            self._token = token

        # The source may deliver the initial path before subscribe() returns,
        # so the lock must not be held here.
        try:
            subscription = self._source.subscribe(lambda path: self._handle_path(token, path))
        except Exception:
            with self._lock:
                if self._token is token:
                    self._token = None
            raise

        with self._lock:
            if self._token is token:
                self._subscription = subscription
                subscription = None

        if subscription is not None:
            # stop_monitoring() ran while we were subscribing
            subscription.cancel()
            return

        logger.info(f"Connectivity monitoring started ({self._source.name} source)")

    def stop_monitoring(self) -> None:
        """Cancel the subscription. Safe to call when not monitoring."""
        with self._lock:
            if self._token is None:
                logger.debug("stop_monitoring called while not monitoring")
                return
            subscription = self._subscription
            self._token = None
            self._subscription = None

        if subscription is not None:
            subscription.cancel()
        logger.info("Connectivity monitoring stopped")

    def _handle_path(self, token: object, path: NetworkPath) -> None:
        new_state = ConnectivityState.from_path(path)
        with self._lock:
            if self._token is not token:
                logger.debug("Dropping path update from a cancelled subscription")
                return
            old_state = self._state
            self._state = new_state
            listeners = list(self._listeners)

        changed = (old_state.is_connected, old_state.connection_type) != (
            new_state.is_connected,
            new_state.connection_type,
        )
        if changed:
            logger.info(
                f"Connectivity changed: connected={new_state.is_connected}, "
                f"type={new_state.connection_type.value}"
            )
        if not changed and old_state.updated_at is not None:
            return

        for listener in listeners:
            try:
                listener(new_state)
            except Exception as e:
                logger.error(f"Connectivity listener {listener!r} failed: {e}", exc_info=True)


# Process-wide instance, created on first access
_shared_monitor: Optional[ConnectivityMonitor] = None
_shared_lock = threading.Lock()


def get_monitor() -> ConnectivityMonitor:
    """Get or create the process-wide ConnectivityMonitor.

    Prefer passing a ConnectivityMonitor explicitly where you can; this
    accessor exists for code that has no natural place to receive one.
    """
    global _shared_monitor
    with _shared_lock:
        if _shared_monitor is None:
            _shared_monitor = ConnectivityMonitor()
        return _shared_monitor
