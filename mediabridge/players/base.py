# MediaBridge
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later
#
# Attribution required — see LICENSE, Section 7(b).

"""
MediaPlayer — shared plumbing for MediaBridge player adapters.

Subclass contract:

    class MyPlayer(MediaPlayer):
        id         = "myplayer"
        name       = "My Player"
        media_type = "video"

        async def play(self, options) -> None: ...
        async def stop(self, destroy_player=False) -> None: ...
        def pause(self) -> None: ...
        def unpause(self) -> None: ...
        def current_time(self, value=None): ...
        def duration(self): ...

Built-in (no override needed):
    can_play_media_type() / can_play_item()  — match on media_type
    supports(feature)                        — checks supported_features
    on/off/trigger                           — event emitter
"""

import logging

from ..lib.signals import EventEmitter

log = logging.getLogger(__name__)


class MediaPlayer(EventEmitter):
    # ── Subclass must set these ──
    id: str = ""
    name: str = ""
    media_type: str = ""
    supported_features: tuple = ()

    type = "mediaplayer"
    is_local_player = True
    priority = -1

    # ── Abstract methods (subclass must implement) ──

    async def play(self, options: dict) -> None:
        """Load and start ``options["url"]``."""
        raise NotImplementedError

    async def stop(self, destroy_player: bool = False) -> None:
        raise NotImplementedError

    def pause(self) -> None:
        raise NotImplementedError

    def unpause(self) -> None:
        raise NotImplementedError

    def current_time(self, value=None):
        raise NotImplementedError

    def duration(self):
        raise NotImplementedError

    # ── Capability queries ──

    def can_play_media_type(self, media_type: str | None) -> bool:
        return (media_type or "").lower() == self.media_type

    def can_play_item(self, item: dict) -> bool:
        return self.can_play_media_type(item.get("MediaType"))

    def supports(self, feature: str) -> bool:
        return feature in self.supported_features

    def __repr__(self):
        return f"<{type(self).__name__} {self.id}>"
