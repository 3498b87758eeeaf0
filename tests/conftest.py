"""
Pytest configuration and shared fixtures for ConnWatch tests.

This module provides reusable fixtures and configuration for all tests.
"""

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no OS network access")


@pytest.fixture
def make_path():
    """Build a NetworkPath from a status and interface types."""
    from connwatch.path import NetworkInterface, NetworkPath, PathStatus

    def _make(status=PathStatus.SATISFIED, *types):
        interfaces = tuple(
            NetworkInterface(name=f"if{i}", type=t) for i, t in enumerate(types)
        )
        return NetworkPath(status=status, interfaces=interfaces)

    return _make


@pytest.fixture
def manual_source():
    """Provide a caller-driven path source."""
    from connwatch.sources import ManualPathSource

    return ManualPathSource()


@pytest.fixture
def monitor(manual_source):
    """Provide a monitor wired to the manual source, stopped after the test."""
    from connwatch.monitor import ConnectivityMonitor

    mon = ConnectivityMonitor(source=manual_source)
    yield mon
    mon.stop_monitoring()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Provide a temporary config directory."""
    config_dir = tmp_path / ".config" / "connwatch"
    config_dir.mkdir(parents=True)
    return config_dir


@pytest.fixture
def fake_sysfs(tmp_path):
    """Build a fake /sys/class/net tree.

    Returns a function add(name, wireless=False, arp_type="1", device=True,
    devtype=None) that creates an interface directory, plus the root path.
    """
    root = tmp_path / "sys" / "class" / "net"
    root.mkdir(parents=True)

    def add(name, wireless=False, arp_type="1", device=True, devtype=None):
        iface = root / name
        iface.mkdir()
        (iface / "type").write_text(f"{arp_type}\n")
        if wireless:
            (iface / "wireless").mkdir()
        if device:
            (iface / "device").mkdir()
        uevent = f"INTERFACE={name}\n"
        if devtype:
            uevent += f"DEVTYPE={devtype}\n"
        (iface / "uevent").write_text(uevent)
        return iface

    add.root = root
    return add


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration between tests."""
    import logging

    from connwatch.logging_config import ConnWatchLogger

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)
    ConnWatchLogger._initialized = False
    yield
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    ConnWatchLogger._initialized = False


@pytest.fixture(autouse=True)
def reset_shared_monitor():
    """Ensure get_monitor() builds a fresh instance in every test."""
    from connwatch import monitor as monitor_module

    monitor_module._shared_monitor = None
    yield
    if monitor_module._shared_monitor is not None:
        monitor_module._shared_monitor.stop_monitoring()
    monitor_module._shared_monitor = None
