import asyncio
import logging

from flipbook.services.page_cache import PageCache

logger = logging.getLogger(__name__)


async def run_periodic_sweep(cache: PageCache, interval_seconds: float):
    """Sweep ``cache`` every ``interval_seconds`` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            cache.sweep()
        except Exception:
            logger.exception("Page cache sweep failed")
