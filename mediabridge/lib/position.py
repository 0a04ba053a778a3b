# MediaBridge
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later
#
# Attribution required — see LICENSE, Section 7(b).

"""
Local position extrapolation and drift correction.

The UI wants a smoothly advancing position; the native engine only reports
one now and then.  PositionSynchronizer extrapolates from a baseline

    position = start_position_ms + (now - start_wall_clock) * rate

ticks that value to the UI every TICK_INTERVAL_MS while playing, and compares
every authoritative sample against it:

    |drift| <= DRIFT_THRESHOLD_MS   nothing to do
    drift   >  DRIFT_THRESHOLD_MS   ahead (external seek): notify_seek(actual)
    drift   < -DRIFT_THRESHOLD_MS   behind (stall): notify_rate_change(0.0),
                                    then notify_position(actual)

Either correction resets the baseline to (now, actual, reported rate).
"""

import asyncio
import logging
import time
from dataclasses import dataclass

log = logging.getLogger(__name__)

DRIFT_THRESHOLD_MS = 2000
TICK_INTERVAL_MS = 250


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class PositionBaseline:
    start_wall_clock: float
    start_position_ms: float
    rate: float


class PositionSynchronizer:
    """Owns the single position baseline of the current playback session.

    *native* receives corrections, *on_time_update(ms)* receives the local
    ticks, *clock* returns wall-clock milliseconds (monotonic by default).
    """

    def __init__(self, native, on_time_update=None, clock=None):
        self._native = native
        self._on_time_update = on_time_update
        self._clock = clock or _monotonic_ms
        self.baseline: PositionBaseline | None = None
        self.rate: float = 1.0
        self.paused: bool = False
        self._tick_task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self.baseline is not None

    @property
    def ticking(self) -> bool:
        return self._tick_task is not None and not self._tick_task.done()

    # ── Lifecycle ──

    def start(self, position_ms, rate: float = 1.0):
        """Playback (re)started: report the position, new baseline, tick."""
        if isinstance(position_ms, (int, float)) and position_ms >= 0:
            self._native.notify_position(int(position_ms))
        else:
            position_ms = 0
        self.paused = False
        self.reset(position_ms, rate)
        self._start_ticking()

    def resume(self, position_ms, rate: float = 1.0):
        self.paused = False
        self.reset(position_ms, rate)
        self._start_ticking()

    def pause(self, position_ms=None):
        """Stop ticking and freeze the extrapolation where playback paused."""
        if position_ms is None or position_ms < 0:
            position_ms = self.expected_position()
        self.paused = True
        self._stop_ticking()
        if position_ms is not None:
            self.reset(position_ms, self.rate)

    def reset(self, position_ms, rate: float | None = None):
        """Take a new baseline at *position_ms*.  Frozen while paused."""
        if rate is not None:
            self.rate = rate
        self.baseline = PositionBaseline(
            start_wall_clock=self._clock(),
            start_position_ms=float(position_ms),
            rate=0.0 if self.paused else self.rate,
        )

    def stop(self):
        self._stop_ticking()
        self.baseline = None
        self.paused = False

    # ── Extrapolation ──

    def expected_position(self) -> float | None:
        b = self.baseline
        if b is None:
            return None
        elapsed = self._clock() - b.start_wall_clock
        return b.start_position_ms + elapsed * b.rate

    def check_drift(self, actual_ms, rate: float | None = None) -> float | None:
        """Compare an authoritative sample against the extrapolation.

        Returns the drift in ms, or None when there was nothing to compare.
        *rate* is the player's currently reported rate, used for the reset.
        """
        if self.baseline is None:
            return None
        if not isinstance(actual_ms, (int, float)) or actual_ms < 0:
            return None

        expected = self.expected_position()
        drift = actual_ms - expected
        if abs(drift) <= DRIFT_THRESHOLD_MS:
            return drift

        log.info("Position drift detected: expected=%d actual=%d drift=%d",
                 expected, actual_ms, drift)
        if drift > 0:
            self._native.notify_seek(int(actual_ms))
        else:
            self._native.notify_rate_change(0.0)
            self._native.notify_position(int(actual_ms))
        # The reset keeps the player's reported rate even after reporting 0.0
        # for a stall; the player is expected to resume at that rate.
        self.reset(actual_ms, rate)
        return drift

    # ── Ticking ──

    def _start_ticking(self):
        if self.ticking:
            return
        self._tick_task = asyncio.get_running_loop().create_task(self._tick_loop())

    def _stop_ticking(self):
        task, self._tick_task = self._tick_task, None
        if task is not None:
            task.cancel()

    async def _tick_loop(self):
        try:
            while True:
                await asyncio.sleep(TICK_INTERVAL_MS / 1000)
                position = self.expected_position()
                if position is None or self.paused:
                    continue
                if self._on_time_update:
                    self._on_time_update(position)
        except asyncio.CancelledError:
            pass
