"""
macOS path source built on SystemConfiguration.

Registers an SCDynamicStore notification for the global IPv4/IPv6 state
and per-interface link state, and services it from a CFRunLoop on a
dedicated background thread. Each notification rebuilds the NetworkPath
from the dynamic store.
"""

import threading
from typing import List, Optional

try:
    import SystemConfiguration
    from CoreFoundation import (
        CFRunLoopAddSource,
        CFRunLoopGetCurrent,
        CFRunLoopRunInMode,
        CFRunLoopStop,
        kCFRunLoopDefaultMode,
    )
except ImportError:
    SystemConfiguration = None

from .. import config
from ..exceptions import BackendUnavailableError, SubscriptionError
from ..logging_config import get_logger
from ..path import InterfaceType, NetworkInterface, NetworkPath, PathStatus
from .base import PathSource

logger = get_logger(__name__)

GLOBAL_IPV4_KEY = "State:/Network/Global/IPv4"
GLOBAL_IPV6_KEY = "State:/Network/Global/IPv6"
INTERFACE_LIST_KEY = "State:/Network/Interface"
INTERFACE_LINK_PATTERN = "State:/Network/Interface/.*/Link"

# Seconds per run loop slice; bounds how long a stop request can go unseen
RUN_LOOP_SLICE = 1.0
START_TIMEOUT = 5.0


def _interface_type_map():
    """Map BSD interface names (en0, ...) to InterfaceType via SCNetworkInterface."""
    type_map = {
        SystemConfiguration.kSCNetworkInterfaceTypeIEEE80211: InterfaceType.WIFI,
        SystemConfiguration.kSCNetworkInterfaceTypeEthernet: InterfaceType.WIRED_ETHERNET,
        SystemConfiguration.kSCNetworkInterfaceTypeWWAN: InterfaceType.CELLULAR,
    }
    result = {}
    for interface in SystemConfiguration.SCNetworkInterfaceCopyAll() or []:
        bsd_name = SystemConfiguration.SCNetworkInterfaceGetBSDName(interface)
        sc_type = SystemConfiguration.SCNetworkInterfaceGetInterfaceType(interface)
        if bsd_name:
            result[bsd_name] = type_map.get(sc_type, InterfaceType.OTHER)
    return result


def _classify(name: str, type_map) -> InterfaceType:
    if name.startswith("lo"):
        return InterfaceType.LOOPBACK
    if name.startswith("pdp_ip"):
        return InterfaceType.CELLULAR
    return type_map.get(name, InterfaceType.OTHER)


def _primary_interfaces(store) -> List[str]:
    """Primary interfaces named by the global IPv4/IPv6 state, IPv4 first."""
    primaries = []
    for key in (GLOBAL_IPV4_KEY, GLOBAL_IPV6_KEY):
        value = SystemConfiguration.SCDynamicStoreCopyValue(store, key)
        if value:
            primary = value.get("PrimaryInterface")
            if primary and primary not in primaries:
                primaries.append(primary)
    return primaries


def _active_interfaces(store) -> List[str]:
    """Interfaces whose link is reported active."""
    listing = SystemConfiguration.SCDynamicStoreCopyValue(store, INTERFACE_LIST_KEY)
    if not listing:
        return []
    active = []
    for name in listing.get("Interfaces", []):
        link = SystemConfiguration.SCDynamicStoreCopyValue(
            store, f"State:/Network/Interface/{name}/Link"
        )
        if link and link.get("Active"):
            active.append(name)
    return active


def build_path(store) -> NetworkPath:
    """Build a NetworkPath from the current dynamic store contents."""
    primaries = _primary_interfaces(store)
    names = primaries + [n for n in _active_interfaces(store) if n not in primaries]

    type_map = _interface_type_map()
    interfaces = []
    for name in names:
        interface_type = _classify(name, type_map)
        if interface_type is InterfaceType.LOOPBACK:
            continue
        interfaces.append(NetworkInterface(name=name, type=interface_type))

    status = PathStatus.SATISFIED if primaries else PathStatus.UNSATISFIED
    return NetworkPath(status=status, interfaces=tuple(interfaces))


class SystemConfigurationPathSource(PathSource):
    """SCDynamicStore notifications serviced on a background CFRunLoop."""

    name = "systemconfiguration"

    def __init__(self, store_name: str = config.DYNAMIC_STORE_NAME):
        if SystemConfiguration is None:
            raise BackendUnavailableError(
                "SystemConfiguration framework is not available",
                {"hint": "install pyobjc-framework-SystemConfiguration on macOS"},
            )
        super().__init__()
        self.store_name = store_name
        self._store = None
        self._runloop = None
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    def _start(self) -> None:
        subscription = self._current_subscription()

        def sc_callback(store, changed_keys, info):
            """SystemConfiguration callback for network changes."""
            logger.debug(f"Network change detected: {list(changed_keys or [])}")
            self._deliver_current(store, subscription)

        store = SystemConfiguration.SCDynamicStoreCreate(None, self.store_name, sc_callback, None)
        if not store:
            raise SubscriptionError("Failed to create SCDynamicStore", {"name": self.store_name})

        if not SystemConfiguration.SCDynamicStoreSetNotificationKeys(
            store, [GLOBAL_IPV4_KEY, GLOBAL_IPV6_KEY], [INTERFACE_LINK_PATTERN]
        ):
            raise SubscriptionError("Failed to set SCDynamicStore notification keys")

        source = SystemConfiguration.SCDynamicStoreCreateRunLoopSource(None, store, 0)
        if not source:
            raise SubscriptionError("Failed to create run loop source for SCDynamicStore")

        ready = threading.Event()
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._run,
            args=(store, source, subscription, ready, stop_event),
            name="connwatch-systemconfiguration",
            daemon=True,
        )
        self._store = store
        self._stop_event = stop_event
        self._thread = thread
        thread.start()

        if not ready.wait(START_TIMEOUT):
            self._stop()
            raise SubscriptionError("Timed out waiting for the run loop thread to start")
        logger.info("SystemConfiguration watcher is set up")

    def _stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self._runloop is not None:
            CFRunLoopStop(self._runloop)
        self._store = None
        self._runloop = None
        self._stop_event = None
        self._thread = None
        logger.info("SystemConfiguration watcher stopped")

    def _run(self, store, source, subscription, ready, stop_event) -> None:
        runloop = CFRunLoopGetCurrent()
        CFRunLoopAddSource(runloop, source, kCFRunLoopDefaultMode)
        if stop_event.is_set():
            # _start gave up on this thread before it got here
            return
        self._runloop = runloop
        ready.set()

        # Report the current path before waiting for changes
        self._deliver_current(store, subscription)

        while not stop_event.is_set():
            CFRunLoopRunInMode(kCFRunLoopDefaultMode, RUN_LOOP_SLICE, False)

    def _deliver_current(self, store, subscription) -> None:
        try:
            path = build_path(store)
        except Exception as e:
            logger.error(f"Failed to read network state from SCDynamicStore: {e}", exc_info=True)
            return
        self._deliver(path, subscription)
