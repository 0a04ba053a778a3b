"""Playback session state shared by the bridge and the player adapters."""

from dataclasses import dataclass

TICKS_PER_MS = 10_000


@dataclass
class PlaybackSession:
    """What is playing right now.  Dropped (set to None) on a true stop."""

    current_item_id: str | None = None
    source_url: str | None = None
    duration_ticks: int = 0
    rate: float = 1.0
    paused: bool = False
    volume: int = 100
    muted: bool = False

    @property
    def duration_ms(self) -> float:
        return self.duration_ticks / TICKS_PER_MS
