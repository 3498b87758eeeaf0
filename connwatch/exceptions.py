"""
Exception hierarchy for ConnWatch.

Errors are raised where a caller can act on them: bad configuration, a
backend that does not exist on this host, or an OS facility that refuses
a subscription. Failures inside a running source are logged, not raised.
"""

from typing import Optional


class ConnWatchError(Exception):
    """Base exception for all ConnWatch errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ConfigurationError(ConnWatchError):
    """Invalid or unreadable configuration.

    Examples:
        >>> raise ConfigurationError("Unknown backend 'foo'", {"valid": ["auto"]})
    """

    pass


class BackendUnavailableError(ConnWatchError):
    """The requested path-monitoring facility is not usable on this host.

    Raised when, for example, the SystemConfiguration framework cannot be
    imported because we are not running on macOS.
    """

    pass


class SubscriptionError(ConnWatchError):
    """The path source refused or could not create a subscription."""

    pass
