import pytest

from mediabridge.lib.queue_state import (
    UNCHANGED,
    QueueCapabilities,
    QueueSnapshot,
    evaluate_queue,
)


@pytest.mark.parametrize("length, index, is_music, expected", [
    (5, 2, False, QueueCapabilities(True, True)),
    (5, 0, False, QueueCapabilities(True, False)),
    (5, 0, True, QueueCapabilities(True, True)),
    (5, 4, False, QueueCapabilities(False, True)),
    (1, 0, True, QueueCapabilities(False, True)),
    (1, 0, False, QueueCapabilities(False, False)),
])
def test_capabilities(length, index, is_music, expected):
    assert evaluate_queue(length, index, is_music) == expected


@pytest.mark.parametrize("length, index", [(0, 0), (5, 5), (5, 9), (5, -1), (5, None)])
def test_inconsistent_queue_is_unchanged(length, index):
    assert evaluate_queue(length, index, False) is UNCHANGED


def test_snapshot_from_library():
    snap = QueueSnapshot.from_library([1, 2, 3], 1, {"MediaType": "Audio"})
    assert snap == QueueSnapshot(3, 1, True)
    assert snap.evaluate() == QueueCapabilities(True, True)

    assert QueueSnapshot.from_library(None, 0, None).evaluate() is UNCHANGED
    assert not QueueSnapshot.from_library([1], 0, {"MediaType": "Video"}).is_music
