# MediaBridge
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later
#
# Attribution required — see LICENSE, Section 7(b).

"""
PlaybackStateBridge — canonical playback state between the web playback
library and the native media session.

    Idle → Playing ⇄ Paused → Stopped → Idle

Library and player events flow out to the native side:

  playbackstart         → Playing; metadata + artwork; position ticking;
                          queue capabilities; attach the new player
  player playing        → Playing; position + rate; baseline reset
  player pause          → Paused; position; ticking stops
  player ratechange     → rate + position; baseline reset
  player timeupdate     → drift check
  playbackstop          → with a next-item hint: queue capabilities only;
                          otherwise Stopped, session and metadata cleared
  playlistitem*         → queue capabilities

Host input flows in:

  host_input(actions)   → remapped canonical commands to the input manager
  position_seek(ms)     → seek_percent on the library
  rate_changed(rate)    → set_playback_rate on the attached player
"""

import enum
import json
import logging

from .lib.interfaces import PAUSED, PLAYING, STOPPED
from .lib.position import PositionSynchronizer
from .lib.queue_state import UNCHANGED, QueueSnapshot
from .lib.session import TICKS_PER_MS, PlaybackSession

log = logging.getLogger(__name__)

# Native action name → canonical playback command; anything else passes through
COMMAND_REMAP = {
    "play_pause": "playpause",
    "seek_forward": "fastforward",
    "seek_backward": "rewind",
}

PLAYER_EVENTS = ("playing", "pause", "ratechange", "timeupdate")
LIBRARY_EVENTS = ("playbackstart", "playbackstop",
                  "playlistitemadd", "playlistitemremove", "playlistitemchange")


class PlaybackState(enum.Enum):
    IDLE = "Idle"
    PLAYING = "Playing"
    PAUSED = "Paused"
    STOPPED = "Stopped"


def remap_command(action: str) -> str:
    return COMMAND_REMAP.get(action, action)


class PlaybackStateBridge:
    """Wires one playback library to one native bridge.

    Call start() to subscribe and destroy() to unsubscribe; at most one
    player is attached at any time.
    """

    def __init__(self, playback_manager, native, host_input=None,
                 input_manager=None, artwork=None, on_time_update=None,
                 clock=None):
        self._pm = playback_manager
        self._native = native
        self._host_input = host_input
        self._input_manager = input_manager
        self._artwork = artwork
        self.synchronizer = PositionSynchronizer(
            native, on_time_update=on_time_update, clock=clock)

        self.state = PlaybackState.IDLE
        self.session: PlaybackSession | None = None
        self.now_playing: dict | None = None
        self.queue_capabilities = None
        self.attached_player = None
        self._player_subscriptions: list = []
        self._subscriptions: list = []

    # ── Lifecycle ──

    def start(self):
        if self._subscriptions:
            return
        pm = self._pm
        self._subscriptions = [
            pm.on("playbackstart", self._on_playback_start),
            pm.on("playbackstop", self._on_playback_stop),
            pm.on("playlistitemadd", self._on_playlist_change),
            pm.on("playlistitemremove", self._on_playlist_change),
            pm.on("playlistitemchange", self._on_playlist_change),
        ]
        if self._host_input is not None:
            self._subscriptions += [
                self._host_input.host_input.connect(self._on_host_input),
                self._host_input.position_seek.connect(self._on_position_seek),
                self._host_input.rate_changed.connect(self._on_rate_changed),
            ]
        log.info("Playback state bridge started")

    def destroy(self):
        self.synchronizer.stop()
        if self._artwork is not None:
            self._artwork.cancel()
        self._detach_player()
        subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            sub.cancel()
        self.session = None
        self.now_playing = None
        self.state = PlaybackState.IDLE
        log.info("Playback state bridge destroyed")

    # ── Library events ──

    def _on_playback_start(self, player=None, *_):
        log.info("playbackstart (player: %s)", player)
        state = self._pm.get_player_state() or {}
        item = state.get("NowPlayingItem")
        if item:
            self._notify_metadata(item)

        self.session = self._new_session(item, player)
        self._set_state(PlaybackState.PLAYING)
        self.synchronizer.start(self._pm.current_time(), self._player_rate(player))
        self.update_queue_state()

        if player is not None and player is not self.attached_player:
            self._attach_player(player)

    def _on_playback_stop(self, stop_info=None, *_):
        navigating = bool(stop_info and stop_info.get("nextMediaType"))
        if navigating:
            log.info("Navigating to next item, keeping metadata")
        else:
            log.info("Playback stopped, clearing state")
            self.synchronizer.stop()
            if self._artwork is not None:
                self._artwork.cancel()
            self.session = None
            self.now_playing = None
            self._set_state(PlaybackState.STOPPED)
        self.update_queue_state()

    def _on_playlist_change(self, *_):
        self.update_queue_state()

    # ── Player events ──

    def _attach_player(self, player):
        self._detach_player()
        self.attached_player = player
        self._player_subscriptions = [
            player.on("playing", self._on_player_playing),
            player.on("pause", self._on_player_pause),
            player.on("ratechange", self._on_player_ratechange),
            player.on("timeupdate", self._on_player_timeupdate),
        ]
        log.debug("Attached %s", player)

    def _detach_player(self):
        subs, self._player_subscriptions = self._player_subscriptions, []
        for sub in subs:
            sub.cancel()
        if self.attached_player is not None:
            log.debug("Detached %s", self.attached_player)
        self.attached_player = None

    def release_player(self):
        """Forget the attached player; a stopped bridge returns to Idle."""
        self._detach_player()
        if self.state is PlaybackState.STOPPED:
            self.state = PlaybackState.IDLE

    def _on_player_playing(self, *_):
        rate = self._player_rate(self.attached_player)
        self._set_state(PlaybackState.PLAYING)
        if self.session:
            self.session.paused = False
            self.session.rate = rate
        self.update_queue_state()

        position = self._current_position()
        if position is not None:
            self._native.notify_position(int(position))
        else:
            position = self.synchronizer.expected_position() or 0
        self.synchronizer.resume(position, rate)
        self._native.notify_rate_change(rate)

    def _on_player_pause(self, *_):
        self._set_state(PlaybackState.PAUSED)
        if self.session:
            self.session.paused = True
        position = self._current_position()
        if position is not None:
            self._native.notify_position(int(position))
        self.synchronizer.pause(position)

    def _on_player_ratechange(self, *_):
        rate = self._player_rate(self.attached_player)
        log.debug("Rate change: %s", rate)
        if self.session:
            self.session.rate = rate
        self._native.notify_rate_change(rate)
        position = self._current_position()
        if position is not None:
            self._native.notify_position(int(position))
            self.synchronizer.reset(position, rate)

    def _on_player_timeupdate(self, *_):
        self.synchronizer.check_drift(
            self._pm.current_time(), self._player_rate(self.attached_player))

    # ── Host input ──

    def _on_host_input(self, actions):
        for action in actions or ():
            if not action:
                continue
            command = remap_command(action)
            if self._input_manager is None:
                log.debug("No input manager, dropping %s", command)
                continue
            log.debug("Host input %s → %s", action, command)
            self._input_manager.handle_command(command, {})

    def _on_position_seek(self, position_ms):
        player = self._pm.current_player()
        if player is None:
            log.debug("Seek to %s ms without a player, dropped", position_ms)
            return
        duration = self._pm.duration()
        if not duration or duration <= 0:
            log.debug("Seek to %s ms with unknown duration, dropped", position_ms)
            return
        percent = position_ms * TICKS_PER_MS / duration * 100
        log.info("Seeking to %.2f%% (%s ms of %s ticks)", percent, position_ms, duration)
        self._pm.seek_percent(percent, player)
        self.synchronizer.reset(position_ms, self._player_rate(player))

    def _on_rate_changed(self, rate):
        player = self.attached_player
        set_rate = getattr(player, "set_playback_rate", None)
        if not callable(set_rate):
            log.debug("No rate-capable player attached, dropping rate %s", rate)
            return
        set_rate(rate)

    # ── Queue capabilities ──

    def update_queue_state(self):
        state = self._pm.get_player_state() or {}
        snapshot = QueueSnapshot.from_library(
            self._pm.get_playlist(),
            self._pm.get_current_playlist_index(),
            state.get("NowPlayingItem"),
        )
        result = snapshot.evaluate()
        if result is UNCHANGED:
            log.debug("Queue inconsistent (idx=%s len=%d), keeping last state",
                      snapshot.current_index, snapshot.playlist_length)
            return
        self.queue_capabilities = result
        log.debug("Queue: idx=%s len=%d canNext=%s canPrev=%s",
                  snapshot.current_index, snapshot.playlist_length,
                  result.can_next, result.can_prev)
        self._native.notify_queue_change(result.can_next, result.can_prev)

    # ── Helpers ──

    def _set_state(self, state: PlaybackState):
        if state is not self.state:
            log.info("State %s → %s", self.state.value, state.value)
        self.state = state
        native_state = {
            PlaybackState.PLAYING: PLAYING,
            PlaybackState.PAUSED: PAUSED,
            PlaybackState.STOPPED: STOPPED,
        }.get(state)
        if native_state:
            self._native.notify_playback_state(native_state)

    def _notify_metadata(self, item: dict):
        self.now_playing = item
        log.info("Now playing: %s", item.get("Name", ""))
        self._native.notify_metadata(json.dumps(item))
        if self._artwork is not None:
            self._artwork.fetch_for_item(item)

    def _new_session(self, item, player) -> PlaybackSession:
        item = item or {}
        session = PlaybackSession(
            current_item_id=item.get("Id"),
            duration_ticks=item.get("RunTimeTicks") or self._pm.duration() or 0,
            rate=self._player_rate(player),
        )
        if player is not None:
            if hasattr(player, "current_src"):
                session.source_url = player.current_src()
            if hasattr(player, "get_volume"):
                session.volume = player.get_volume()
            if hasattr(player, "is_muted"):
                session.muted = player.is_muted()
        return session

    def _current_position(self):
        position = self._pm.current_time()
        if isinstance(position, (int, float)) and position >= 0:
            return position
        return None

    @staticmethod
    def _player_rate(player) -> float:
        get_rate = getattr(player, "get_playback_rate", None)
        if callable(get_rate):
            return get_rate() or 1.0
        return 1.0
