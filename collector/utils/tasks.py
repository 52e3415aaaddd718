import asyncio
from datetime import datetime, timezone

from loguru import logger

from collector.core.errors import StorageError
from collector.services.event_store import EventStore
from collector.services.site_resolver import SiteResolver


async def temp_site_sweep_task(store: EventStore, resolver: SiteResolver, interval_seconds: int):
    """In-process stand-in for the external scheduler; runs until cancelled."""
    while True:
        try:
            logger.info("--- Sweeping expired temporary sites ---")
            removed = await store.expire_temp_sites(datetime.now(timezone.utc))
            if removed:
                resolver.invalidate()
                logger.success(f"Removed {removed} expired temporary sites")
        except StorageError as e:
            logger.error(f"!!! Temp site sweep failed: {e.__cause__}")

        await asyncio.sleep(interval_seconds)
