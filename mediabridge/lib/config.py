"""
Shared configuration loader for MediaBridge.

Loads a single JSON config file.  Search order:
  1. $MEDIABRIDGE_CONFIG            (explicit path, if set)
  2. /etc/mediabridge/config.json
  3. config.json                    (CWD — handy for local dev)

Usage:
    from mediabridge.lib.config import cfg

    timeout   = cfg("artwork", "timeout", default=10)
    attempts  = cfg("connectivity", "bridge_wait_attempts", default=50)
    logging   = cfg("logging")  # returns the whole dict
"""

import json
import logging
import os

logger = logging.getLogger(__name__)

_config: dict | None = None

_SEARCH_PATHS = [
    "/etc/mediabridge/config.json",
    "config.json",
]

_KNOWN_SECTIONS = ("artwork", "connectivity", "logging")


def _search_paths() -> list:
    override = os.environ.get("MEDIABRIDGE_CONFIG")
    if override:
        return [override]
    return _SEARCH_PATHS


def _validate(config: dict, path: str) -> None:
    """Warn about unknown sections or suspicious values."""
    for section in config:
        if section not in _KNOWN_SECTIONS:
            logger.warning("Config %s: unknown section '%s'", path, section)
    artwork = config.get("artwork") or {}
    if artwork.get("cache_size", 1) < 1:
        logger.warning("Config %s: artwork.cache_size must be >= 1", path)
    conn = config.get("connectivity") or {}
    if conn.get("bridge_wait_attempts", 1) < 1:
        logger.warning("Config %s: connectivity.bridge_wait_attempts must be >= 1", path)


def load_config() -> dict:
    """Load config from the first JSON file found. Cached after first call."""
    global _config
    if _config is not None:
        return _config

    for path in _search_paths():
        try:
            with open(path) as f:
                _config = json.load(f)
                logger.info("Config loaded from %s", path)
                _validate(_config, path)
                return _config
        except FileNotFoundError:
            continue
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in %s: %s", path, e)
            continue

    logger.debug("No config.json found — using defaults")
    _config = {}
    return _config


def cfg(section: str, key: str | None = None, *, default=None):
    """Read a config value.

    cfg("logging")                      → config["logging"]
    cfg("artwork", "timeout")           → config["artwork"]["timeout"]
    cfg("artwork", "timeout", default=10) → config["artwork"]["timeout"] or 10
    """
    config = load_config()
    val = config.get(section)
    if key is None:
        return val if val is not None else default
    if isinstance(val, dict):
        return val.get(key, default)
    return default


def reload_config():
    """Force re-read from disk (for testing or hot-reload)."""
    global _config
    _config = None
    return load_config()
