"""
Volume fade-out ahead of a destructive stop.

Steps volume down by FADE_STEP every FADE_INTERVAL_MS until it reaches 0,
applying each value to the output sink as it goes.  Each step is a
``loop.call_later`` handle; there is never more than one pending, and a new
fade cancels the old handle before scheduling its own.
"""

import asyncio
import logging

from .errors import Cancelled

log = logging.getLogger(__name__)

FADE_STEP = 15
FADE_INTERVAL_MS = 100


class FadeSequencer:
    """Fades one output sink.  *sink(volume)* applies a volume 0..100."""

    def __init__(self, sink, step: int = FADE_STEP,
                 interval_ms: int = FADE_INTERVAL_MS):
        self._sink = sink
        self._step = step
        self._interval = interval_ms / 1000
        self.current_volume: int = 0
        self._pending_step: asyncio.TimerHandle | None = None
        self._done: asyncio.Future | None = None

    @property
    def active(self) -> bool:
        return self._done is not None

    async def fade_out(self, session):
        """Fade *session* (anything with a ``volume``) to 0.

        Raises ``Cancelled`` if cancel() or another fade_out() cuts it short.
        """
        self.cancel()
        loop = asyncio.get_running_loop()
        done = loop.create_future()
        self._done = done
        self.current_volume = int(session.volume)
        log.debug("Fading out from %d", self.current_volume)

        def step():
            self._pending_step = None
            if done.done():
                return
            volume = max(self.current_volume - self._step, 0)
            self.current_volume = volume
            session.volume = volume
            self._sink(volume)
            if self._done is not done:
                return  # cancelled from inside the sink
            if volume <= 0:
                self._done = None
                done.set_result(None)
            else:
                self._pending_step = loop.call_later(self._interval, step)

        if self.current_volume <= 0:
            self._done = None
            done.set_result(None)
        else:
            self._pending_step = loop.call_later(self._interval, step)
        try:
            await done
        except asyncio.CancelledError:
            # the awaiting task was cancelled; the chain must not outlive it
            if self._done is done:
                if self._pending_step is not None:
                    self._pending_step.cancel()
                    self._pending_step = None
                self._done = None
            raise

    def cancel(self):
        """Drop the pending step, if any.  Safe to call at any time."""
        if self._pending_step is not None:
            self._pending_step.cancel()
            self._pending_step = None
        done, self._done = self._done, None
        if done is not None and not done.done():
            log.debug("Fade cancelled at %d", self.current_volume)
            done.set_exception(Cancelled("fade cancelled"))
