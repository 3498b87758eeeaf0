"""
ConnWatch - Network connectivity watcher.

Subscribes to the operating system's network path notifications and keeps
track of whether connectivity is usable and which kind of interface
(Wi-Fi, cellular, Ethernet) carries it.
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Make key components available at package level
from .exceptions import (
    BackendUnavailableError,
    ConfigurationError,
    ConnWatchError,
    SubscriptionError,
)
from .monitor import (
    ConnectionType,
    ConnectivityMonitor,
    ConnectivityState,
    classify_connection_type,
    get_monitor,
)
from .path import InterfaceType, NetworkInterface, NetworkPath, PathStatus
from .sources import (
    ManualPathSource,
    PathSource,
    PsutilPathSource,
    Subscription,
    SystemConfigurationPathSource,
    create_path_source,
)

__all__ = [
    # Monitor
    "ConnectivityMonitor",
    "ConnectivityState",
    "ConnectionType",
    "classify_connection_type",
    "get_monitor",
    # Paths
    "NetworkPath",
    "NetworkInterface",
    "InterfaceType",
    "PathStatus",
    # Sources
    "PathSource",
    "Subscription",
    "ManualPathSource",
    "PsutilPathSource",
    "SystemConfigurationPathSource",
    "create_path_source",
    # Exceptions
    "ConnWatchError",
    "ConfigurationError",
    "BackendUnavailableError",
    "SubscriptionError",
]
