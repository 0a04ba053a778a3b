"""
MediaBridge — keeps a web playback UI and an out-of-process native media
engine in step.

  bridge.py        — PlaybackStateBridge (canonical state, native notifications)
  artwork.py       — best-effort artwork retrieval for the OS media session
  connectivity.py  — server connectivity probes
  players/         — player adapters over the native player-control surface
  lib/             — shared plumbing (config, signals, fetchers, timing)
"""

__version__ = "0.3.0"
