# MediaBridge
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later
#
# Attribution required — see LICENSE, Section 7(b).

"""
MPV player adapters.

Drives the native mpv control for the web playback library:

  play(options)   — load options["url"] at playerStartPositionTicks and wait
                    for the native side to report it ready
  stop(destroy)   — stop; a destructive stop fades the volume out first
  pause/unpause, seek (current_time), rate, volume, mute, audio/subtitle tracks

Native signals become library events:

  playing          → [unpause], playing
  paused           → pause
  position_update  → timeupdate (authoritative position)
  update_duration  → (duration stored)
  finished         → stopped (once per item)
  error            → media torn down, then a single error(DecodeFailure)
"""

import asyncio
import logging

from ..lib.errors import Cancelled, DecodeFailure
from ..lib.fade import FadeSequencer
from ..lib.session import TICKS_PER_MS, PlaybackSession
from .base import MediaPlayer

log = logging.getLogger(__name__)

SUPPORTED_RATES = (0.5, 0.75, 1.0, 1.25, 1.5, 1.75, 2.0)
VOLUME_STEP = 2


class MpvVideoPlayer(MediaPlayer):
    """Video playback through the native mpv control."""

    id = "mpvvideoplayer"
    name = "MPV Video Player"
    media_type = "video"
    metadata_type = "video"
    supported_features = ("PlaybackRate", "SetAspectRatio")

    def __init__(self, control, settings=None, fade: FadeSequencer | None = None):
        super().__init__()
        self._control = control
        self._settings = settings
        self._fade = fade or FadeSequencer(control.set_volume)
        self._subscriptions: list = []

        self.session: PlaybackSession | None = None
        self._current_src: str | None = None
        self._current_options: dict | None = None
        self._started = False
        self._time_updated = False
        self._current_time: float | None = 0
        self._duration: float | None = None
        self._paused = False
        self._volume = 100
        self._muted = False
        self._play_rate = 1.0
        self._ended_pending = False

    # ── Native signal wiring ──

    @property
    def connected(self) -> bool:
        return bool(self._subscriptions)

    def _connect(self):
        if self._subscriptions:
            return
        c = self._control
        self._subscriptions = [
            c.playing.connect(self._on_playing),
            c.position_update.connect(self._on_time_update),
            c.finished.connect(self._on_ended),
            c.update_duration.connect(self._on_duration),
            c.error.connect(self._on_error),
            c.paused.connect(self._on_pause),
        ]

    def _disconnect(self):
        subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            sub.cancel()

    # ── Native signal handlers ──

    def _on_playing(self):
        if not self._started:
            self._started = True
            log.info("Playback started: %s", self._current_src)
        if self._paused:
            self._paused = False
            self.trigger("unpause")
        if self.session:
            self.session.paused = False
        self.trigger("playing")

    def _on_pause(self):
        self._paused = True
        if self.session:
            self.session.paused = True
        self.trigger("pause")

    def _on_time_update(self, ms):
        if ms and not self._time_updated:
            self._time_updated = True
        self._current_time = ms
        self.trigger("timeupdate")

    def _on_duration(self, ms):
        self._duration = ms
        if self.session and ms:
            self.session.duration_ticks = int(ms * TICKS_PER_MS)

    def _on_ended(self):
        if self._ended_pending:
            return
        self._ended_pending = True
        src = self._current_src
        self._current_time = None
        self._current_src = None
        self._current_options = None
        self.session = None
        self.trigger("stopped", {"src": src})

    def _on_error(self, info):
        self._remove_media()
        log.error("Media error: %s", info)
        self.trigger("error", DecodeFailure(info))

    def _remove_media(self):
        self._control.stop()

    # ── Playback ──

    async def play(self, options: dict) -> None:
        self._started = False
        self._time_updated = False
        self._current_time = None
        self._ended_pending = False
        self._connect()
        await self._set_current_src(options)

    async def _set_current_src(self, options: dict):
        url = options["url"]
        self._current_src = url
        self._current_options = options
        start_ms = (options.get("playerStartPositionTicks") or 0) / TICKS_PER_MS
        self._current_time = start_ms

        media_source = options.get("mediaSource") or {}
        audio_index = media_source.get("DefaultAudioStreamIndex")
        subtitle_index = media_source.get("DefaultSubtitleStreamIndex")
        item = options.get("item") or {}
        self.session = PlaybackSession(
            current_item_id=item.get("Id"),
            source_url=url,
            duration_ticks=item.get("RunTimeTicks") or 0,
            rate=self._play_rate,
            volume=self._volume,
            muted=self._muted,
        )

        ready = asyncio.get_running_loop().create_future()

        def on_ready(*_):
            if not ready.done():
                ready.set_result(None)

        log.info("Loading %s at %d ms", url, start_ms)
        self._control.load(
            url,
            {"start_ms": start_ms, "autoplay": True},
            {"type": self.metadata_type},
            -1 if audio_index is None else audio_index,
            -1 if subtitle_index is None else subtitle_index,
            on_ready,
        )
        await ready

    async def stop(self, destroy_player: bool = False) -> None:
        faded = False
        if destroy_player and self._audible():
            faded = True
            try:
                await self._fade.fade_out(self.session)
            except Cancelled:
                log.debug("Fade-out interrupted, stopping anyway")
        self._control.stop()
        self._on_ended()
        if faded:
            # back to the user's level for whatever plays next
            self._control.set_volume(self._volume)
        if destroy_player:
            self.destroy()

    def _audible(self) -> bool:
        s = self.session
        return s is not None and not s.paused and not s.muted and s.volume > 0

    def destroy(self):
        self._fade.cancel()
        self._remove_media()
        self._disconnect()

    def current_src(self) -> str | None:
        return self._current_src

    def current_time(self, value=None):
        if value is not None:
            self._control.seek_to(int(value))
            return None
        return self._current_time

    async def current_time_async(self):
        position = asyncio.get_running_loop().create_future()

        def on_position(ms):
            if not position.done():
                position.set_result(ms)

        self._control.get_position(on_position)
        return await position

    def duration(self):
        return self._duration or None

    def seekable(self) -> bool:
        return bool(self._duration)

    def pause(self):
        self._control.pause()

    def resume(self):
        self._paused = False
        self._control.play()

    def unpause(self):
        self._control.play()

    def is_paused(self) -> bool:
        return self._paused

    # ── Rate ──

    def set_playback_rate(self, value):
        self._play_rate = float(value)
        self._control.set_playback_rate(int(round(self._play_rate * 1000)))
        if self.session:
            self.session.rate = self._play_rate
        self.trigger("ratechange")

    def get_playback_rate(self) -> float:
        return self._play_rate or 1.0

    def get_supported_playback_rates(self) -> list:
        return [{"name": f"{rate}x", "id": rate} for rate in SUPPORTED_RATES]

    # ── Volume ──

    def get_saved_volume(self):
        if self._settings is None:
            return 1
        return self._settings.get("volume") or 1

    def save_volume(self, value):
        if value and self._settings is not None:
            self._settings.set("volume", value)

    def set_volume(self, value, save: bool = True):
        try:
            volume = int(max(0, min(100, float(value))))
        except (TypeError, ValueError):
            log.debug("Ignoring volume %r", value)
            return
        self._volume = volume
        if self.session:
            self.session.volume = volume
        if save:
            self.save_volume(volume / 100)
            self.trigger("volumechange")
        self._control.set_volume(volume)

    def get_volume(self) -> int:
        return self._volume

    def volume_up(self):
        self.set_volume(min(self._volume + VOLUME_STEP, 100))

    def volume_down(self):
        self.set_volume(max(self._volume - VOLUME_STEP, 0))

    def set_mute(self, mute: bool, trigger_event: bool = True):
        self._muted = bool(mute)
        if self.session:
            self.session.muted = self._muted
        self._control.set_muted(self._muted)
        if trigger_event:
            self.trigger("volumechange")

    def is_muted(self) -> bool:
        return self._muted

    # ── Tracks ──

    def set_audio_stream_index(self, index: int):
        self._control.set_audio_stream(index)

    def set_subtitle_stream_index(self, index: int):
        self._control.set_subtitle_stream(index)

    def set_subtitle_offset(self, offset: float):
        """*offset* in seconds."""
        self._control.set_subtitle_delay(int(round(offset * 1000)))

    def reset_subtitle_offset(self):
        self._control.set_subtitle_delay(0)


class MpvAudioPlayer(MpvVideoPlayer):
    """Audio-only playback through the same native control."""

    id = "mpvaudioplayer"
    name = "MPV Audio Player"
    media_type = "audio"
    metadata_type = "audio"
    supported_features = ("PlaybackRate",)
