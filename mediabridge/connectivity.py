# MediaBridge
# Copyright (C) 2024-2026 Markus Kirsten
# SPDX-License-Identifier: GPL-3.0-or-later
#
# Attribution required — see LICENSE, Section 7(b).

"""
Server connectivity probes.

The UI checks a server address before connecting to it.  Only the newest
check matters: starting another one (or calling abort()) cancels the
previous, whose caller then gets ``Cancelled``.  A real failure surfaces as
``TransportFailure``.

    probe = NativeConnectivityProbe(native)
    base_url = await probe.check("media.local:8096")

NativeConnectivityProbe asks the native side (no CORS in the way);
HttpConnectivityProbe queries <url>/System/Info/Public itself.
"""

import asyncio
import logging

import aiohttp

from .lib.config import cfg
from .lib.errors import TransportFailure
from .lib.fetcher import SupersedingFetcher

log = logging.getLogger(__name__)

INFO_PATH = "/System/Info/Public"
CHECK_TIMEOUT = 10              # seconds
BRIDGE_WAIT_ATTEMPTS = 50
BRIDGE_WAIT_INTERVAL = 0.1      # seconds


def normalize_url(url: str) -> str:
    url = url.strip()
    if not url.startswith(("http://", "https://")):
        url = "http://" + url
    return url


class ConnectivityProbe:
    """Base class; subclasses implement ``_probe(url, token) -> base_url``."""

    def __init__(self):
        self._fetcher = SupersedingFetcher(name="connectivity")

    @property
    def pending_url(self) -> str | None:
        return self._fetcher.pending_key

    async def check(self, url: str) -> str:
        url = normalize_url(url)
        log.info("Checking connectivity: %s", url)
        return await self._fetcher.run(url, lambda token: self._probe(url, token))

    def abort(self):
        self._fetcher.abort()

    async def _probe(self, url: str, token) -> str:
        raise NotImplementedError


class NativeConnectivityProbe(ConnectivityProbe):
    """Delegates the HTTP round-trip to ``NativeBridge.check_connectivity``."""

    def __init__(self, native):
        super().__init__()
        self._native = native
        self._wait_attempts = int(cfg("connectivity", "bridge_wait_attempts",
                                      default=BRIDGE_WAIT_ATTEMPTS))
        self._wait_interval = float(cfg("connectivity", "bridge_wait_interval",
                                        default=BRIDGE_WAIT_INTERVAL))

    async def _wait_for_bridge(self, token):
        attempts = 0
        while not self._native.is_ready() and attempts < self._wait_attempts:
            await asyncio.sleep(self._wait_interval)
            token.raise_if_cancelled()
            attempts += 1
        if not self._native.is_ready():
            raise TransportFailure("native connectivity check not available")

    async def _probe(self, url: str, token) -> str:
        await self._wait_for_bridge(token)
        token.raise_if_cancelled()

        result = asyncio.get_running_loop().create_future()

        def on_result(result_url, success, resolved_url):
            log.debug("Connectivity result: %s %s %s", result_url, success, resolved_url)
            if result_url != url or result.done():
                return
            if success:
                result.set_result(resolved_url)
            else:
                result.set_exception(TransportFailure(f"connection failed: {url}"))

        self._native.check_connectivity(url, on_result)
        return await result


class HttpConnectivityProbe(ConnectivityProbe):
    """Queries the server's public info endpoint directly."""

    def __init__(self, session: aiohttp.ClientSession | None = None,
                 timeout: float | None = None):
        super().__init__()
        self._session = session
        self._owns_session = session is None
        self._timeout = timeout or float(cfg("connectivity", "timeout",
                                             default=CHECK_TIMEOUT))

    async def close(self):
        self.abort()
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def _probe(self, url: str, token) -> str:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True

        info_url = url.rstrip("/") + INFO_PATH
        try:
            async with self._session.get(
                info_url, timeout=aiohttp.ClientTimeout(total=self._timeout)
            ) as resp:
                if resp.status >= 400:
                    raise TransportFailure(f"server returned {resp.status}")
                info = await resp.json(content_type=None)
                final_url = resp.url
        except asyncio.TimeoutError as e:
            raise TransportFailure(f"timed out: {info_url}") from e
        except aiohttp.ClientError as e:
            raise TransportFailure(str(e)) from e
        except ValueError as e:
            raise TransportFailure(f"invalid server info: {e}") from e

        token.raise_if_cancelled()
        log.debug("Server info: %s", info)
        return resolve_base_url(str(final_url.origin()), final_url.path)


def resolve_base_url(origin: str, path: str) -> str:
    """Base URL from the (possibly redirected) info URL."""
    if path.endswith(INFO_PATH):
        path = path[: -len(INFO_PATH)]
    return (origin + path).rstrip("/")
