"""
Players — adapters between the web playback library and the native player.

A player does NOT decide what plays next; the playback library does.  It
drives the native player-control surface (load, play, pause, seek, volume,
tracks) and turns the native signals back into the events the library and
the PlaybackStateBridge listen for: playing, unpause, pause, timeupdate,
ratechange, volumechange, stopped, error.

Current players:
  mpv.py  — MpvVideoPlayer / MpvAudioPlayer over the native mpv control
"""

from .base import MediaPlayer
from .mpv import MpvAudioPlayer, MpvVideoPlayer

__all__ = ["MediaPlayer", "MpvAudioPlayer", "MpvVideoPlayer"]
