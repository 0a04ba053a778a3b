"""
Queue navigation capabilities.

During track transitions the playlist and the current index are briefly out
of step.  Rather than flap next/previous on the OS media controls, an
inconsistent snapshot evaluates to ``UNCHANGED`` and the last published
flags stay in place.
"""

from dataclasses import dataclass
from typing import NamedTuple


class QueueCapabilities(NamedTuple):
    can_next: bool
    can_prev: bool


class _Unchanged:
    def __repr__(self):
        return "UNCHANGED"

    def __bool__(self):
        return False


UNCHANGED = _Unchanged()


def evaluate_queue(playlist_length: int, current_index: int | None,
                   is_music: bool):
    """Return ``QueueCapabilities`` or ``UNCHANGED``.

    Audio queues always allow "previous" (it restarts the current track);
    otherwise previous needs an earlier item.
    """
    if playlist_length <= 0:
        return UNCHANGED
    if current_index is None or current_index < 0 or current_index >= playlist_length:
        return UNCHANGED

    can_next = current_index < playlist_length - 1
    can_prev = True if is_music else current_index > 0
    return QueueCapabilities(can_next, can_prev)


@dataclass(frozen=True)
class QueueSnapshot:
    playlist_length: int
    current_index: int | None
    is_music: bool

    @classmethod
    def from_library(cls, playlist, current_index, now_playing: dict | None):
        media_type = (now_playing or {}).get("MediaType")
        length = len(playlist) if isinstance(playlist, (list, tuple)) else 0
        return cls(length, current_index, media_type == "Audio")

    def evaluate(self):
        return evaluate_queue(self.playlist_length, self.current_index, self.is_music)
