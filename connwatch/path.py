"""
Network path value types.

A path is a snapshot of the host's reachability and the interfaces it can
currently use. Sources build one on every change and hand it to their
subscriber; nothing in here talks to the operating system.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class PathStatus(Enum):
    """Whether the path can currently carry traffic."""

    SATISFIED = "satisfied"
    UNSATISFIED = "unsatisfied"
    REQUIRES_CONNECTION = "requires_connection"


class InterfaceType(Enum):
    """Category of a network link as reported by the host."""

    WIFI = "wifi"
    CELLULAR = "cellular"
    WIRED_ETHERNET = "wired_ethernet"
    LOOPBACK = "loopback"
    OTHER = "other"


@dataclass(frozen=True)
class NetworkInterface:
    """A single interface available to a path."""

    name: str
    type: InterfaceType


@dataclass(frozen=True)
class NetworkPath:
    """Snapshot of reachability plus the interfaces the path may use."""

    status: PathStatus
    interfaces: Tuple[NetworkInterface, ...] = field(default_factory=tuple)

    def uses_interface_type(self, interface_type: InterfaceType) -> bool:
        """Check if any interface on this path is of the given type."""
        return any(iface.type is interface_type for iface in self.interfaces)

    @property
    def interface_names(self) -> Tuple[str, ...]:
        return tuple(iface.name for iface in self.interfaces)
