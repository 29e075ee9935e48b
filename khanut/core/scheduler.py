"""
khanut/core/scheduler.py
═══════════════════════════════════════════════════════════════════════════════
Background sweep of expired analytics cache entries.

TTLCache only drops an entry when it is read after expiry. In a long-running
server, keys that are never read again would stay forever, so this loop
calls cache.sweep() every SWEEP_INTERVAL_S seconds.

  1. ONE sweeper per cache (guarded by the _running set of cache ids)
  2. A failed sweep is logged; the loop keeps going
═══════════════════════════════════════════════════════════════════════════════
"""

import asyncio
import logging

from khanut.core.cache import TTLCache
from khanut.core.config import SWEEP_INTERVAL_S

log = logging.getLogger("scheduler")

_running: set[int] = set()   # id() of caches with a live sweeper


def sweep_once(cache: TTLCache) -> int:
    removed = cache.sweep()
    if removed:
        log.info(f"Swept {removed} expired cache entries ({len(cache)} left)")
    return removed


async def run_sweeper(cache: TTLCache, interval_s: float = SWEEP_INTERVAL_S) -> None:
    """
    Called once at startup. Runs until cancelled.
    Never starts a second instance for the same cache.
    """
    key = id(cache)
    if key in _running:
        log.warning("Sweeper already running for this cache, ignoring duplicate start")
        return
    _running.add(key)
    log.info(f"Cache sweeper started (every {interval_s}s)")

    try:
        while True:
            await asyncio.sleep(interval_s)
            try:
                sweep_once(cache)
            except Exception as ex:
                log.error(f"Sweep error (continuing): {ex}")
    finally:
        _running.discard(key)
