import asyncio
from contextlib import asynccontextmanager, suppress

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter
from loguru import logger

from collector.api.routers import main_router
from collector.core.config import settings
from collector.core.loguru_logger import configure_logging
from collector.db.db_helper import DataBaseHelper
from collector.services.event_store import EventStore
from collector.services.site_resolver import SiteResolver
from collector.utils.tasks import temp_site_sweep_task


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    configure_logging(settings.logging)

    db_helper = DataBaseHelper(settings.db)
    await db_helper.create_tables()

    app.state.db_helper = db_helper
    app.state.site_resolver = SiteResolver(db_helper, settings.sites)
    app.state.event_store = EventStore(db_helper, temp_event_cap=settings.temp.event_cap)

    redis_client = redis.from_url(
        settings.redis.url,
        encoding="utf-8",
        decode_responses=True
    )
    await FastAPILimiter.init(redis_client)

    sweep_task = None
    if settings.maintenance.sweep_interval_seconds > 0:
        sweep_task = asyncio.create_task(
            temp_site_sweep_task(
                app.state.event_store,
                app.state.site_resolver,
                settings.maintenance.sweep_interval_seconds,
            )
        )

    yield

    # shutdown
    if sweep_task is not None:
        sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await sweep_task

    await redis_client.aclose()
    logger.info("dispose db engine")
    await db_helper.dispose()

main_app = FastAPI(title="Event Collector", lifespan=lifespan)
main_app.include_router(
    main_router,
    prefix=settings.api.prefix,
    tags=["api"],
    responses={404: {"description": "Not found"}},
)


if __name__ == "__main__":
    uvicorn.run("main:main_app",
                host=settings.run.host,
                port=settings.run.port,
                reload=True
    )
