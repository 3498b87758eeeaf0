"""
Path sources for ConnWatch.

This package wraps the host's network-path observation facilities behind a
common subscribe/cancel interface:
- SystemConfiguration (macOS SCDynamicStore notifications)
- psutil (interface sampling on any other host)
- manual (caller-driven, for tests and embedding)
"""

from .. import config
from ..exceptions import BackendUnavailableError, ConfigurationError
from ..logging_config import get_logger
from .base import PathHandler, PathSource, Subscription
from .manual import ManualPathSource
from .psutil_source import PsutilPathSource
from .systemconfiguration import SystemConfigurationPathSource

logger = get_logger(__name__)


def create_path_source(backend=config.DEFAULT_BACKEND, poll_interval=config.DEFAULT_POLL_INTERVAL):
    """
    Create the path source for a configured backend.

    Args:
        backend: One of config.VALID_BACKENDS. "auto" prefers
            SystemConfiguration and falls back to psutil when it is unavailable.
        poll_interval: Sampling interval for the psutil backend, in seconds.

    Raises:
        ConfigurationError: If backend is not a known name.
        BackendUnavailableError: If an explicitly requested backend cannot run here.
    """
    if backend == config.BACKEND_SYSTEMCONFIGURATION:
        return SystemConfigurationPathSource()

    if backend == config.BACKEND_PSUTIL:
        return PsutilPathSource(poll_interval=poll_interval)

    if backend == config.BACKEND_AUTO:
        try:
            source = SystemConfigurationPathSource()
        except BackendUnavailableError as e:
            logger.debug(f"{e}; using psutil path source")
            return PsutilPathSource(poll_interval=poll_interval)
        return source

    raise ConfigurationError(
        f"Unknown backend '{backend}'", {"valid": list(config.VALID_BACKENDS)}
    )


__all__ = [
    "PathHandler",
    "PathSource",
    "Subscription",
    "ManualPathSource",
    "PsutilPathSource",
    "SystemConfigurationPathSource",
    "create_path_source",
]
