from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List

log = logging.getLogger(__name__)


class Subscription:
    """Disposable handle returned by EventHook.subscribe()."""

    def __init__(self, hook: "EventHook", callback: Callable[..., Any]):
        self._hook = hook
        self._callback = callback
        self._disposed = False

    @property
    def active(self) -> bool:
        return not self._disposed

    def dispose(self) -> None:
        if not self._disposed:
            self._disposed = True
            self._hook._remove(self._callback)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.dispose()
        return False


class EventHook:
    """
    Explicit observer list. Callbacks are called in subscription order; one
    failing callback is logged and does not stop the others.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._callbacks: List[Callable[..., Any]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[..., Any]) -> Subscription:
        with self._lock:
            self._callbacks.append(callback)
        return Subscription(self, callback)

    def _remove(self, callback) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

    def __len__(self):
        with self._lock:
            return len(self._callbacks)

    def emit(self, *args, **kwargs) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for cb in callbacks:
            try:
                cb(*args, **kwargs)
            except Exception:
                log.exception("Subscriber of '%s' failed", self.name)


class SubscriptionGroup:
    """Collects subscriptions so an owner can drop all of them on teardown."""

    def __init__(self):
        self._subs: List[Subscription] = []

    def add(self, sub: Subscription) -> Subscription:
        self._subs.append(sub)
        return sub

    def dispose(self) -> None:
        while self._subs:
            self._subs.pop().dispose()
