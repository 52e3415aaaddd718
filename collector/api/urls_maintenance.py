from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from collector.api.deps import get_event_store, get_site_resolver, verify_internal_token
from collector.services.event_store import EventStore
from collector.services.site_resolver import SiteResolver

maintenance_router = APIRouter(prefix="/maintenance")


# GET as well, for cron services that can only issue GETs
@maintenance_router.api_route(
    "/expire-temp-sites",
    methods=["GET", "POST"],
    dependencies=[Depends(verify_internal_token)],
)
async def expire_temp_sites(
    store: EventStore = Depends(get_event_store),
    resolver: SiteResolver = Depends(get_site_resolver),
):
    try:
        removed = await store.expire_temp_sites(datetime.now(timezone.utc))
        if removed:
            resolver.invalidate()
        return {
            "success": True,
            "message": f"Cleaned up {removed} expired temporary sites",
            "removed": removed,
        }
    except Exception as e:
        logger.exception("Failed to expire temporary sites")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while expiring temporary sites"
        ) from e
