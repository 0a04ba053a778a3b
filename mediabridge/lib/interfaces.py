# MediaBridge
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later
#
# Attribution required — see LICENSE, Section 7(b).

"""
Capability interfaces MediaBridge components are constructed with.

Nothing reaches for a global: the native bridge, the native player control,
host input, the playback library and settings are all passed in, so tests
substitute small fakes.

Native side (one-shot calls, callbacks, signals):
  NativeBridge   — media-session notifications + connectivity check
  PlayerControl  — the native player: signals in, direct calls out
  HostInput      — commands from remote controls / media keys

Web side:
  PlaybackManager — the playback library (events + queue/position queries)
  InputManager    — dispatches canonical playback commands
  Settings        — persisted user settings (volume only)
"""

from abc import ABC, abstractmethod

from .signals import EventEmitter, Signal

PLAYING = "Playing"
PAUSED = "Paused"
STOPPED = "Stopped"


class NativeBridge(ABC):
    """Notifications towards the OS media session, plus connectivity checks."""

    def is_ready(self) -> bool:
        """False while the native side has not finished attaching."""
        return True

    @abstractmethod
    def check_connectivity(self, url: str, callback) -> None:
        """Start a check; *callback(url, success, resolved_base_url)* fires later."""

    @abstractmethod
    def notify_metadata(self, json_blob: str) -> None: ...

    @abstractmethod
    def notify_artwork(self, data_uri: str) -> None: ...

    @abstractmethod
    def notify_position(self, ms: int) -> None: ...

    @abstractmethod
    def notify_seek(self, ms: int) -> None: ...

    @abstractmethod
    def notify_rate_change(self, rate: float) -> None: ...

    @abstractmethod
    def notify_playback_state(self, state: str) -> None:
        """*state* is one of "Playing", "Paused", "Stopped"."""

    @abstractmethod
    def notify_queue_change(self, can_next: bool, can_prev: bool) -> None: ...


class PlayerControl(ABC):
    """The native player.

    Signals: playing, position_update(ms), finished, update_duration(ms),
    error(info), paused.
    """

    def __init__(self):
        self.playing = Signal("playing")
        self.position_update = Signal("position_update")
        self.finished = Signal("finished")
        self.update_duration = Signal("update_duration")
        self.error = Signal("error")
        self.paused = Signal("paused")

    @abstractmethod
    def load(self, url: str, options: dict, metadata: dict,
             audio_stream_index: int, subtitle_stream_index: int,
             on_ready) -> None:
        """Load *url*; *options* carries ``start_ms`` and ``autoplay``."""

    @abstractmethod
    def play(self) -> None: ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    @abstractmethod
    def seek_to(self, ms: int) -> None: ...

    @abstractmethod
    def get_position(self, callback) -> None: ...

    @abstractmethod
    def set_volume(self, volume: int) -> None: ...

    @abstractmethod
    def set_muted(self, muted: bool) -> None: ...

    @abstractmethod
    def set_playback_rate(self, rate_times_1000: int) -> None: ...

    # -- Optional: override in controls that support track selection --

    def set_subtitle_stream(self, index: int) -> None:
        pass

    def set_subtitle_delay(self, ms: int) -> None:
        pass

    def set_audio_stream(self, index: int) -> None:
        pass


class HostInput:
    """Commands originating on the native side."""

    def __init__(self):
        self.host_input = Signal("host_input")        # list[str] of action names
        self.position_seek = Signal("position_seek")  # absolute ms
        self.rate_changed = Signal("rate_changed")    # float rate


class PlaybackManager(EventEmitter, ABC):
    """The web playback library.

    Events: playbackstart(player), playbackstop(stop_info),
    playlistitemadd, playlistitemremove, playlistitemchange.
    """

    @abstractmethod
    def current_time(self) -> float | None:
        """Current position in ms."""

    @abstractmethod
    def duration(self) -> int | None:
        """Duration of the current item in ticks (10,000 per ms)."""

    @abstractmethod
    def get_player_state(self) -> dict | None: ...

    @abstractmethod
    def get_playlist(self) -> list | None: ...

    @abstractmethod
    def get_current_playlist_index(self) -> int | None: ...

    @abstractmethod
    def current_player(self): ...

    @abstractmethod
    def seek_percent(self, percent: float, player) -> None: ...


class InputManager(ABC):

    @abstractmethod
    def handle_command(self, name: str, options: dict) -> None: ...


class Settings(ABC):

    @abstractmethod
    def get(self, key: str): ...

    @abstractmethod
    def set(self, key: str, value) -> None: ...
