# MediaBridge
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later
#
# Attribution required — see LICENSE, Section 7(b).

"""
Single-flight wrappers for cancellable asynchronous work.

Each fetcher instance owns at most one live ``FetchSlot``.  Work is an async
callable taking a ``CancelToken``; it is run as its own task so that it can be
cancelled independently of whoever started it.

Two policies:

    SupersedingFetcher   every run() cancels whatever is in flight, whatever
                         its key.  A cancelled run() raises ``Cancelled``,
                         never the underlying error.  Used for connectivity
                         probes, where the caller awaits the answer.

    DedupFetcher         request() with the in-flight key is a no-op; a new
                         key cancels and replaces the slot.  Results go to an
                         ``on_result`` callback, failures are logged and
                         dropped.  Used for artwork, which is best-effort.

Continuations always check that their slot is still the current one before
touching shared state; a superseded task may finish after it was cancelled.
"""

import asyncio
import logging

from .errors import Cancelled

log = logging.getLogger(__name__)


class CancelToken:
    """Cooperative cancellation flag threaded through fetch work."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        self._cancelled = True

    def raise_if_cancelled(self):
        if self._cancelled:
            raise Cancelled("operation cancelled")


class FetchSlot:
    """The one in-flight operation of a fetcher."""

    def __init__(self, key):
        self.key = key
        self.token = CancelToken()
        self.task: asyncio.Task | None = None

    def cancel(self):
        self.token.cancel()
        if self.task is not None and not self.task.done():
            self.task.cancel()


class SupersedingFetcher:
    """Newest call wins; older callers get ``Cancelled``."""

    def __init__(self, name: str = "fetch"):
        self.name = name
        self._slot: FetchSlot | None = None

    @property
    def pending_key(self):
        return self._slot.key if self._slot else None

    def abort(self):
        """Cancel the in-flight call without starting a replacement."""
        slot, self._slot = self._slot, None
        if slot is not None:
            log.debug("%s: cancelling %s", self.name, slot.key)
            slot.cancel()

    async def run(self, key, work):
        self.abort()
        slot = FetchSlot(key)
        self._slot = slot
        slot.task = asyncio.ensure_future(work(slot.token))
        try:
            result = await slot.task
        except asyncio.CancelledError:
            if slot.token.cancelled:
                raise Cancelled(f"{self.name} superseded: {key}") from None
            raise
        except Exception:
            if slot.token.cancelled or self._slot is not slot:
                raise Cancelled(f"{self.name} superseded: {key}") from None
            raise
        finally:
            if self._slot is slot:
                self._slot = None

        if slot.token.cancelled:
            raise Cancelled(f"{self.name} superseded: {key}")
        return result


class DedupFetcher:
    """Same key in flight → ignore; different key → replace."""

    def __init__(self, on_result, name: str = "fetch"):
        self.name = name
        self._on_result = on_result
        self._slot: FetchSlot | None = None

    @property
    def pending_key(self):
        return self._slot.key if self._slot else None

    def cancel(self):
        slot, self._slot = self._slot, None
        if slot is not None:
            log.debug("%s: cancelling %s", self.name, slot.key)
            slot.cancel()

    def request(self, key, work) -> asyncio.Task | None:
        """Start *work* for *key* unless it is already in flight.

        Returns the task started, or None when the call was a no-op.
        Must be called from within the running event loop.
        """
        if self._slot is not None and self._slot.key == key:
            log.debug("%s: already pending for %s", self.name, key)
            return None

        self.cancel()
        slot = FetchSlot(key)
        self._slot = slot
        slot.task = asyncio.get_running_loop().create_task(self._execute(slot, work))
        return slot.task

    async def _execute(self, slot: FetchSlot, work):
        try:
            result = await work(slot.token)
        except (asyncio.CancelledError, Cancelled):
            log.debug("%s: %s aborted", self.name, slot.key)
            return
        except Exception as e:
            log.warning("%s: %s failed: %s", self.name, slot.key, e)
            return
        finally:
            if self._slot is slot:
                self._slot = None

        if slot.token.cancelled:
            log.debug("%s: discarding late result for %s", self.name, slot.key)
            return
        self._on_result(slot.key, result)
