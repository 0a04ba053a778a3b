"""Recording fakes for the capability interfaces."""

import contextlib

import pytest
from aiohttp import web

from mediabridge.lib import config
from mediabridge.lib.interfaces import (
    HostInput,
    InputManager,
    NativeBridge,
    PlaybackManager,
    PlayerControl,
    Settings,
)
from mediabridge.lib.signals import EventEmitter


class FakeNative(NativeBridge):
    def __init__(self):
        self.calls: list[tuple] = []
        self.ready = True
        self.connectivity_requests: list[tuple] = []

    def named(self, name):
        return [call[1:] for call in self.calls if call[0] == name]

    def is_ready(self):
        return self.ready

    def check_connectivity(self, url, callback):
        self.connectivity_requests.append((url, callback))

    def notify_metadata(self, json_blob):
        self.calls.append(("metadata", json_blob))

    def notify_artwork(self, data_uri):
        self.calls.append(("artwork", data_uri))

    def notify_position(self, ms):
        self.calls.append(("position", ms))

    def notify_seek(self, ms):
        self.calls.append(("seek", ms))

    def notify_rate_change(self, rate):
        self.calls.append(("rate", rate))

    def notify_playback_state(self, state):
        self.calls.append(("state", state))

    def notify_queue_change(self, can_next, can_prev):
        self.calls.append(("queue", can_next, can_prev))


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


class FakeControl(PlayerControl):
    def __init__(self, auto_ready=True):
        super().__init__()
        self.auto_ready = auto_ready
        self.calls: list[tuple] = []
        self.loads: list[tuple] = []
        self.pending_ready = None
        self.position = 0

    def named(self, name):
        return [call[1:] for call in self.calls if call[0] == name]

    def load(self, url, options, metadata, audio_stream_index,
             subtitle_stream_index, on_ready):
        self.loads.append((url, options, metadata, audio_stream_index,
                           subtitle_stream_index))
        if self.auto_ready:
            on_ready()
        else:
            self.pending_ready = on_ready

    def play(self):
        self.calls.append(("play",))

    def pause(self):
        self.calls.append(("pause",))

    def stop(self):
        self.calls.append(("stop",))

    def seek_to(self, ms):
        self.calls.append(("seek_to", ms))

    def get_position(self, callback):
        callback(self.position)

    def set_volume(self, volume):
        self.calls.append(("volume", volume))

    def set_muted(self, muted):
        self.calls.append(("muted", muted))

    def set_playback_rate(self, rate_times_1000):
        self.calls.append(("rate", rate_times_1000))

    def set_subtitle_stream(self, index):
        self.calls.append(("subtitle_stream", index))

    def set_subtitle_delay(self, ms):
        self.calls.append(("subtitle_delay", ms))

    def set_audio_stream(self, index):
        self.calls.append(("audio_stream", index))


class FakePlayer(EventEmitter):
    def __init__(self, rate=1.0):
        super().__init__()
        self.rate = rate
        self.rate_requests: list = []

    def get_playback_rate(self):
        return self.rate

    def set_playback_rate(self, rate):
        self.rate_requests.append(rate)
        self.rate = rate


class FakeManager(PlaybackManager):
    def __init__(self):
        super().__init__()
        self.position = 0
        self.duration_ticks = 0
        self.player_state = {"NowPlayingItem": {"Id": "item-1", "Name": "Song",
                                                "MediaType": "Audio",
                                                "RunTimeTicks": 1_800_000_000}}
        self.playlist = [{"Id": "item-1"}, {"Id": "item-2"}, {"Id": "item-3"}]
        self.index = 0
        self.player = None
        self.seeks: list[tuple] = []

    def current_time(self):
        return self.position

    def duration(self):
        return self.duration_ticks

    def get_player_state(self):
        return self.player_state

    def get_playlist(self):
        return self.playlist

    def get_current_playlist_index(self):
        return self.index

    def current_player(self):
        return self.player

    def seek_percent(self, percent, player):
        self.seeks.append((percent, player))


class FakeInputManager(InputManager):
    def __init__(self):
        self.commands: list[tuple] = []

    def handle_command(self, name, options):
        self.commands.append((name, options))


class FakeSettings(Settings):
    def __init__(self):
        self.values: dict = {}

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value):
        self.values[key] = value


@pytest.fixture
def native():
    return FakeNative()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def control():
    return FakeControl()


@pytest.fixture
def manager():
    return FakeManager()


@pytest.fixture
def host_input():
    return HostInput()


@pytest.fixture
def input_manager():
    return FakeInputManager()


@pytest.fixture
def settings():
    return FakeSettings()


@pytest.fixture
def make_player():
    return FakePlayer


@pytest.fixture
def make_control():
    return FakeControl


@contextlib.asynccontextmanager
async def _serve(routes):
    """Run an aiohttp app on 127.0.0.1 and yield its base URL."""
    app = web.Application()
    app.add_routes(routes)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    try:
        yield f"http://{host}:{port}"
    finally:
        await runner.cleanup()


@pytest.fixture
def local_server():
    return _serve


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Every test starts from defaults unless it writes its own config."""
    path = tmp_path / "config.json"
    monkeypatch.setenv("MEDIABRIDGE_CONFIG", str(path))
    monkeypatch.setattr(config, "_config", None)
    return path
