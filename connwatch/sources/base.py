"""
Path source interface.

A source wraps one OS path-observation facility. Subscribing registers a
handler that the source calls, serially and from a context the source owns,
with a NetworkPath on every transition. Cancelling the returned
Subscription stops further deliveries.
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

from ..exceptions import SubscriptionError
from ..logging_config import get_logger
from ..path import NetworkPath

logger = get_logger(__name__)

PathHandler = Callable[[NetworkPath], None]


class Subscription:
    """Handle for a live subscription. cancel() is idempotent."""

    def __init__(self, on_cancel: Callable[[], None]):
        self._on_cancel = on_cancel
        self._cancelled = False
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
        self._on_cancel()


class PathSource(ABC):
    """Base class for path sources.

    Subclasses implement _start() and _stop(). The base class enforces a
    single live subscription per source and routes deliveries through
    _deliver(), which drops paths once the subscription is cancelled.
    """

    name = "base"

    def __init__(self):
        self._handler: Optional[PathHandler] = None
        self._subscription: Optional[Subscription] = None
        self._lock = threading.Lock()

    def subscribe(self, handler: PathHandler) -> Subscription:
        """
        Register a handler for path updates and start delivering.

        Args:
            handler: Called with each NetworkPath, never concurrently with itself.

        Returns:
            Subscription whose cancel() stops deliveries.

        Raises:
            SubscriptionError: If the source already has a live subscription
                or the OS facility refuses the registration.
        """
        with self._lock:
            if self._subscription is not None:
                raise SubscriptionError(
                    f"{self.name} source already has a live subscription"
                )
            subscription = Subscription(lambda: self._cancel(subscription))
            self._handler = handler
            self._subscription = subscription

        try:
            self._start()
        except Exception:
            with self._lock:
                self._handler = None
                self._subscription = None
            raise

        logger.debug(f"Subscribed to {self.name} path source")
        return subscription

    def _cancel(self, subscription: Subscription) -> None:
        with self._lock:
            if self._subscription is not subscription:
                return
            self._handler = None
            self._subscription = None
        self._stop()
        logger.debug(f"Cancelled {self.name} path source subscription")

    def _current_subscription(self) -> Optional[Subscription]:
        with self._lock:
            return self._subscription

    def _deliver(self, path: NetworkPath, subscription: Optional[Subscription] = None) -> None:
        """Hand a path to the current handler, if any.

        When subscription is given, the path is dropped unless that
        subscription is still the live one.
        """
        with self._lock:
            if subscription is not None and subscription is not self._subscription:
                return
            handler = self._handler
        if handler is None:
            return
        handler(path)

    @abstractmethod
    def _start(self) -> None:
        """Begin observing. May raise SubscriptionError."""

    @abstractmethod
    def _stop(self) -> None:
        """Stop observing. Must not block on an in-flight delivery."""
