"""
Unit tests for connwatch/sources/psutil_source.py

psutil is patched at the module seam and interface types come from a fake
sysfs tree, so these tests never touch the host's real interfaces.
"""

import socket
import threading
from collections import namedtuple
from unittest.mock import patch

import pytest

from connwatch.path import InterfaceType, PathStatus

Addr = namedtuple("Addr", ["family", "address", "netmask", "broadcast", "ptp"])
Stat = namedtuple("Stat", ["isup", "duplex", "speed", "mtu", "flags"])


def _addr(address, family=socket.AF_INET):
    return Addr(family, address, None, None, None)


def _stat(isup=True):
    return Stat(isup, 0, 0, 1500, "")


@pytest.mark.unit
class TestClassifyInterface:
    """Tests for interface type detection."""

    def test_wireless_from_sysfs(self, fake_sysfs):
        from connwatch.sources.psutil_source import classify_interface

        fake_sysfs("wlp2s0", wireless=True)
        assert classify_interface("wlp2s0", fake_sysfs.root) is InterfaceType.WIFI

    def test_physical_ethernet_from_sysfs(self, fake_sysfs):
        from connwatch.sources.psutil_source import classify_interface

        fake_sysfs("enp0s31f6")
        assert classify_interface("enp0s31f6", fake_sysfs.root) is InterfaceType.WIRED_ETHERNET

    def test_virtual_ethernet_is_other(self, fake_sysfs):
        from connwatch.sources.psutil_source import classify_interface

        fake_sysfs("docker0", device=False)
        assert classify_interface("docker0", fake_sysfs.root) is InterfaceType.OTHER

    def test_wwan_devtype_is_cellular(self, fake_sysfs):
        from connwatch.sources.psutil_source import classify_interface

        fake_sysfs("mbim0", arp_type="65534", devtype="wwan")
        assert classify_interface("mbim0", fake_sysfs.root) is InterfaceType.CELLULAR

    def test_loopback_from_sysfs(self, fake_sysfs):
        from connwatch.sources.psutil_source import classify_interface

        fake_sysfs("lo", arp_type="772", device=False)
        assert classify_interface("lo", fake_sysfs.root) is InterfaceType.LOOPBACK

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("wlan0", InterfaceType.WIFI),
            ("eth0", InterfaceType.WIRED_ETHERNET),
            ("en0", InterfaceType.WIRED_ETHERNET),
            ("wwan0", InterfaceType.CELLULAR),
            ("rmnet_data0", InterfaceType.CELLULAR),
            ("pdp_ip0", InterfaceType.CELLULAR),
            ("lo0", InterfaceType.LOOPBACK),
            ("tun0", InterfaceType.OTHER),
        ],
    )
    def test_name_fallback_without_sysfs(self, tmp_path, name, expected):
        from connwatch.sources.psutil_source import classify_interface

        assert classify_interface(name, tmp_path / "missing") is expected


@pytest.mark.unit
class TestIsUsableAddress:
    """Tests for address filtering."""

    @pytest.mark.parametrize(
        "family, address, usable",
        [
            (socket.AF_INET, "192.168.1.20", True),
            (socket.AF_INET, "127.0.0.1", False),
            (socket.AF_INET, "169.254.10.1", False),
            (socket.AF_INET6, "2001:db8::1", True),
            (socket.AF_INET6, "fe80::1%eth0", False),
            (socket.AF_INET6, "::1", False),
            (socket.AF_INET, "not-an-ip", False),
            (-1, "00:11:22:33:44:55", False),
        ],
    )
    def test_usable_addresses(self, family, address, usable):
        from connwatch.sources.psutil_source import is_usable_address

        assert is_usable_address(family, address) is usable


@pytest.mark.unit
class TestBuildPath:
    """Tests for building a NetworkPath from psutil data."""

    def test_satisfied_with_wifi_and_ethernet(self, fake_sysfs):
        from connwatch.sources.psutil_source import build_path

        fake_sysfs("wlan0", wireless=True)
        fake_sysfs("eth0")
        stats = {"lo": _stat(), "wlan0": _stat(), "eth0": _stat()}
        addrs = {
            "lo": [_addr("127.0.0.1")],
            "wlan0": [_addr("10.0.0.5")],
            "eth0": [_addr("fe80::2", socket.AF_INET6)],
        }

        with patch("connwatch.sources.psutil_source.psutil") as mock_psutil:
            mock_psutil.net_if_stats.return_value = stats
            mock_psutil.net_if_addrs.return_value = addrs
            path = build_path(fake_sysfs.root)

        assert path.status is PathStatus.SATISFIED
        assert path.interface_names == ("eth0", "wlan0")
        assert path.uses_interface_type(InterfaceType.WIFI)
        assert path.uses_interface_type(InterfaceType.WIRED_ETHERNET)
        assert not path.uses_interface_type(InterfaceType.LOOPBACK)

    def test_link_up_without_address_is_unsatisfied(self, fake_sysfs):
        from connwatch.sources.psutil_source import build_path

        fake_sysfs("eth0")
        with patch("connwatch.sources.psutil_source.psutil") as mock_psutil:
            mock_psutil.net_if_stats.return_value = {"eth0": _stat()}
            mock_psutil.net_if_addrs.return_value = {"eth0": [_addr("169.254.3.3")]}
            path = build_path(fake_sysfs.root)

        assert path.status is PathStatus.UNSATISFIED
        assert path.uses_interface_type(InterfaceType.WIRED_ETHERNET)

    def test_down_interfaces_are_skipped(self, fake_sysfs):
        from connwatch.sources.psutil_source import build_path

        fake_sysfs("wlan0", wireless=True)
        with patch("connwatch.sources.psutil_source.psutil") as mock_psutil:
            mock_psutil.net_if_stats.return_value = {"wlan0": _stat(isup=False)}
            mock_psutil.net_if_addrs.return_value = {"wlan0": [_addr("10.0.0.5")]}
            path = build_path(fake_sysfs.root)

        assert path.status is PathStatus.UNSATISFIED
        assert path.interfaces == ()


@pytest.mark.unit
class TestPsutilPathSource:
    """Tests for the polling thread."""

    def _collect(self, source, count, timeout=5.0):
        received = []
        done = threading.Event()

        def handler(path):
            received.append(path)
            if len(received) >= count:
                done.set()

        subscription = source.subscribe(handler)
        assert done.wait(timeout), f"expected {count} paths, got {len(received)}"
        return subscription, received

    def test_delivers_initial_and_changed_paths_only(self, make_path):
        from connwatch.sources.psutil_source import PsutilPathSource

        up = make_path(PathStatus.SATISFIED, InterfaceType.WIFI)
        down = make_path(PathStatus.UNSATISFIED)
        samples = iter([up, up, up, down, down])

        def next_sample(_root):
            return next(samples, down)

        source = PsutilPathSource(poll_interval=0.01)
        with patch("connwatch.sources.psutil_source.build_path", side_effect=next_sample):
            subscription, received = self._collect(source, 2)
            subscription.cancel()

        assert received[:2] == [up, down]

    def test_sampling_errors_are_logged_and_skipped(self, make_path):
        from connwatch.sources.psutil_source import PsutilPathSource

        up = make_path(PathStatus.SATISFIED, InterfaceType.WIRED_ETHERNET)
        results = iter([RuntimeError("boom"), up])

        def next_sample(_root):
            result = next(results, up)
            if isinstance(result, Exception):
                raise result
            return result

        source = PsutilPathSource(poll_interval=0.01)
        with patch("connwatch.sources.psutil_source.build_path", side_effect=next_sample):
            subscription, received = self._collect(source, 1)
            subscription.cancel()

        assert received[0] == up

    def test_no_delivery_after_cancel(self, make_path):
        from connwatch.sources.psutil_source import PsutilPathSource

        toggle = [make_path(PathStatus.SATISFIED), make_path(PathStatus.UNSATISFIED)]
        counter = {"n": 0}

        def alternating(_root):
            counter["n"] += 1
            return toggle[counter["n"] % 2]

        source = PsutilPathSource(poll_interval=0.01)
        with patch("connwatch.sources.psutil_source.build_path", side_effect=alternating):
            subscription, received = self._collect(source, 1)
            subscription.cancel()
            count_at_cancel = len(received)
            threading.Event().wait(0.1)

        # At most one delivery already in flight when cancel() ran
        assert len(received) <= count_at_cancel + 1
        assert subscription.cancelled

    def test_second_subscribe_is_rejected(self):
        from connwatch.exceptions import SubscriptionError
        from connwatch.sources.psutil_source import PsutilPathSource

        source = PsutilPathSource(poll_interval=10)
        with patch("connwatch.sources.psutil_source.build_path"):
            subscription = source.subscribe(lambda path: None)
            try:
                with pytest.raises(SubscriptionError):
                    source.subscribe(lambda path: None)
            finally:
                subscription.cancel()
