#!/usr/bin/env python3
"""
Check that a media server is reachable and print its resolved base URL.

    python -m mediabridge.probe media.local:8096
    python -m mediabridge.probe https://media.example.org --timeout 5 -v

Exit status 0 on success, 1 when the server cannot be reached.
"""

import argparse
import asyncio
import logging
import sys

import aiohttp

from .connectivity import HttpConnectivityProbe
from .lib.config import cfg
from .lib.errors import TransportFailure

logger = logging.getLogger("mediabridge.probe")


async def probe(url: str, timeout: float | None = None) -> str:
    async with aiohttp.ClientSession() as session:
        checker = HttpConnectivityProbe(session=session, timeout=timeout)
        return await checker.check(url)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Check media server connectivity")
    parser.add_argument("url", help="Server address, with or without scheme")
    parser.add_argument("--timeout", "-t", type=float, default=None,
                        help="Overall timeout in seconds (default: config or 10)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")
    args = parser.parse_args(argv)

    level = "DEBUG" if args.verbose else cfg("logging", "level", default="INFO")
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        base_url = asyncio.run(probe(args.url, args.timeout))
    except TransportFailure as e:
        logger.error("Server unreachable: %s", e)
        return 1
    print(base_url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
