"""
Observer registration for native signals and library events.

Two shapes, both returning a ``Subscription`` that undoes the registration:

    sub = control.playing.connect(on_playing)       # Signal
    sub = player.on("timeupdate", on_timeupdate)    # EventEmitter
    ...
    sub.cancel()

Components keep the subscriptions they make and cancel each one exactly once
on teardown.
"""

import logging
from collections import defaultdict

log = logging.getLogger(__name__)


class Subscription:
    """Handle for one callback registration.  ``cancel()`` is idempotent."""

    def __init__(self, detach):
        self._detach = detach

    @property
    def active(self) -> bool:
        return self._detach is not None

    def cancel(self):
        detach, self._detach = self._detach, None
        if detach is not None:
            detach()


class Signal:
    """A single connect/disconnect/emit channel."""

    def __init__(self, name: str = ""):
        self.name = name
        self._callbacks: list = []

    def connect(self, callback) -> Subscription:
        self._callbacks.append(callback)
        return Subscription(lambda: self.disconnect(callback))

    def disconnect(self, callback):
        try:
            self._callbacks.remove(callback)
        except ValueError:
            log.debug("Signal %s: disconnect of unknown callback", self.name)

    def emit(self, *args):
        for callback in list(self._callbacks):
            callback(*args)

    def __len__(self):
        return len(self._callbacks)


class EventEmitter:
    """Named events, for objects that publish several kinds of event."""

    def __init__(self):
        self._handlers: dict[str, list] = defaultdict(list)

    def on(self, name: str, callback) -> Subscription:
        self._handlers[name].append(callback)
        return Subscription(lambda: self.off(name, callback))

    def off(self, name: str, callback=None):
        """Remove *callback* from *name*, or every handler when omitted."""
        handlers = self._handlers.get(name)
        if not handlers:
            return
        if callback is None:
            handlers.clear()
        elif callback in handlers:
            handlers.remove(callback)

    def trigger(self, name: str, *args):
        for callback in list(self._handlers.get(name, ())):
            callback(*args)

    def listener_count(self, name: str) -> int:
        return len(self._handlers.get(name, ()))
