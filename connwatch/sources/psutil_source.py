"""
psutil-backed path source for hosts without SystemConfiguration.

A background thread samples interface link state and addresses at a fixed
interval, builds a NetworkPath, and delivers it when it differs from the
previous one. Interface types come from Linux sysfs when it is present and
from interface naming conventions otherwise.
"""

import ipaddress
import socket
import threading
from pathlib import Path
from typing import Optional

import psutil

from .. import config
from ..logging_config import get_logger
from ..path import InterfaceType, NetworkInterface, NetworkPath, PathStatus
from .base import PathSource

logger = get_logger(__name__)

SYSFS_NET = Path("/sys/class/net")

# ARPHRD_ETHER from linux/if_arp.h
ARPHRD_ETHER = "1"

WIFI_PREFIXES = ("wlan", "wl")
CELLULAR_PREFIXES = ("wwan", "ww", "rmnet", "pdp_ip", "ccmni")
ETHERNET_PREFIXES = ("eth", "en")
LOOPBACK_PREFIXES = ("lo",)


def _read_sysfs(path: Path) -> Optional[str]:
    try:
        return path.read_text().strip()
    except OSError:
        return None


def _sysfs_interface_type(name: str, sysfs_root: Path) -> Optional[InterfaceType]:
    """Classify an interface from /sys/class/net, or None if sysfs has no entry."""
    iface_dir = sysfs_root / name
    if not iface_dir.exists():
        return None

    if (iface_dir / "wireless").exists() or (iface_dir / "phy80211").exists():
        return InterfaceType.WIFI

    uevent = _read_sysfs(iface_dir / "uevent") or ""
    if "DEVTYPE=wwan" in uevent or name.startswith(CELLULAR_PREFIXES):
        return InterfaceType.CELLULAR

    arp_type = _read_sysfs(iface_dir / "type")
    if arp_type == "772":  # ARPHRD_LOOPBACK
        return InterfaceType.LOOPBACK
    # Bridges, veth pairs and other virtual links have no backing device
    if arp_type == ARPHRD_ETHER and (iface_dir / "device").exists():
        return InterfaceType.WIRED_ETHERNET

    return InterfaceType.OTHER


def _name_interface_type(name: str) -> InterfaceType:
    """Classify an interface by naming convention alone."""
    if name.startswith(LOOPBACK_PREFIXES):
        return InterfaceType.LOOPBACK
    if name.startswith(CELLULAR_PREFIXES):
        return InterfaceType.CELLULAR
    if name.startswith(WIFI_PREFIXES):
        return InterfaceType.WIFI
    if name.startswith(ETHERNET_PREFIXES):
        return InterfaceType.WIRED_ETHERNET
    return InterfaceType.OTHER


def classify_interface(name: str, sysfs_root: Path = SYSFS_NET) -> InterfaceType:
    """Determine the type of a network interface."""
    interface_type = _sysfs_interface_type(name, sysfs_root)
    if interface_type is None:
        interface_type = _name_interface_type(name)
    return interface_type


def is_usable_address(family, address: str) -> bool:
    """Check if an address gives a route off-host (not loopback or link-local)."""
    if family not in (socket.AF_INET, socket.AF_INET6):
        return False
    # Strip IPv6 zone index, e.g. "fe80::1%eth0"
    address = address.split("%", 1)[0]
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return not (ip.is_loopback or ip.is_link_local or ip.is_unspecified)


def build_path(sysfs_root: Path = SYSFS_NET) -> NetworkPath:
    """Build a NetworkPath from the current psutil interface snapshot."""
    addrs = psutil.net_if_addrs()
    stats = psutil.net_if_stats()

    interfaces = []
    satisfied = False
    for name in sorted(stats):
        if not stats[name].isup:
            continue
        interface_type = classify_interface(name, sysfs_root)
        if interface_type is InterfaceType.LOOPBACK:
            continue
        interfaces.append(NetworkInterface(name=name, type=interface_type))
        if any(is_usable_address(a.family, a.address) for a in addrs.get(name, [])):
            satisfied = True

    status = PathStatus.SATISFIED if satisfied else PathStatus.UNSATISFIED
    return NetworkPath(status=status, interfaces=tuple(interfaces))


class PsutilPathSource(PathSource):
    """Polls psutil on a dedicated thread and reports path changes."""

    name = "psutil"

    def __init__(self, poll_interval: float = config.DEFAULT_POLL_INTERVAL, sysfs_root: Path = SYSFS_NET):
        super().__init__()
        self.poll_interval = poll_interval
        self.sysfs_root = sysfs_root
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    def _start(self) -> None:
        subscription = self._current_subscription()
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(subscription, self._stop_event),
            name="connwatch-psutil",
            daemon=True,
        )
        self._thread.start()
        logger.info(f"psutil path source started (interval={self.poll_interval}s)")

    def _stop(self) -> None:
        # The worker exits on its next wakeup; in-flight deliveries are not waited for
        if self._stop_event is not None:
            self._stop_event.set()
        self._stop_event = None
        self._thread = None
        logger.info("psutil path source stopped")

    def _run(self, subscription, stop_event: threading.Event) -> None:
        last_path = None
        while not stop_event.is_set():
            try:
                path = build_path(self.sysfs_root)
            except Exception as e:
                logger.error(f"Failed to sample network interfaces: {e}", exc_info=True)
            else:
                if path != last_path:
                    logger.debug(
                        f"Path changed: status={path.status.value}, "
                        f"interfaces={list(path.interface_names)}"
                    )
                    last_path = path
                    self._deliver(path, subscription)
            stop_event.wait(self.poll_interval)
