"""
Hand-driven path source.

Delivers whatever paths the caller pushes, synchronously on the caller's
thread. Useful for tests and for embedders that already learn about
network changes some other way.
"""

import threading
from typing import Optional

from ..exceptions import SubscriptionError
from ..path import NetworkPath
from .base import PathSource


class ManualPathSource(PathSource):
    """A PathSource whose updates come from push()."""

    name = "manual"

    def __init__(self, initial_path: Optional[NetworkPath] = None, fail_with: Optional[Exception] = None):
        """
        Args:
            initial_path: Delivered immediately on subscribe, like an OS
                monitor reporting the current path.
            fail_with: If set, subscribe() raises this instead of starting.
        """
        super().__init__()
        self.initial_path = initial_path
        self.fail_with = fail_with
        self.subscribe_count = 0
        self.cancel_count = 0
        # Serializes push() callers so deliveries never overlap
        self._delivery_lock = threading.Lock()

    @property
    def is_subscribed(self) -> bool:
        return self._current_subscription() is not None

    def push(self, path: NetworkPath) -> bool:
        """
        Deliver a path to the live subscriber.

        Returns:
            True if a subscriber received it, False if it was dropped.
        """
        with self._delivery_lock:
            if not self.is_subscribed:
                return False
            self._deliver(path)
            return True

    def _start(self) -> None:
        if self.fail_with is not None:
            if isinstance(self.fail_with, SubscriptionError):
                raise self.fail_with
            raise SubscriptionError(str(self.fail_with)) from self.fail_with
        self.subscribe_count += 1
        if self.initial_path is not None:
            self.push(self.initial_path)

    def _stop(self) -> None:
        self.cancel_count += 1
