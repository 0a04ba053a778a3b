"""
Error kinds shared across MediaBridge.

  Cancelled         — superseded or explicitly aborted; never a real failure
  TransportFailure  — a network or bridge round-trip failed
  DecodeFailure     — the native engine could not play the stream

An inconsistent playlist/index combination is not an error; the queue
evaluator answers ``UNCHANGED`` for it instead.
"""


class MediaBridgeError(Exception):
    """Base class for MediaBridge errors."""


class Cancelled(MediaBridgeError):
    """The operation was superseded by a newer request or aborted."""


class TransportFailure(MediaBridgeError):
    """A network request or native bridge call failed."""


class DecodeFailure(MediaBridgeError):
    """The native engine reported an unplayable stream."""

    type = "mediadecodeerror"

    def __init__(self, info=None):
        super().__init__(f"media decode error: {info!r}")
        self.info = info
