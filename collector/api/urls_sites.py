from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi_limiter.depends import RateLimiter
from loguru import logger

from collector.api.deps import get_event_store, get_site_resolver, verify_internal_token
from collector.core.config import settings
from collector.schemas.sites import RecentEvents
from collector.services.event_store import EventStore
from collector.services.site_resolver import SiteResolver

sites_router = APIRouter(prefix="/sites")

recent_events_limiter = RateLimiter(
    times=settings.internal.recent_events_rate_limit,
    seconds=settings.internal.recent_events_rate_window_seconds,
)


@sites_router.get(
    "/{site_key}/events",
    response_model=RecentEvents,
    dependencies=[Depends(verify_internal_token), Depends(recent_events_limiter)],
)
async def list_recent_events(
    site_key: str,
    limit: int = Query(10, gt=0, le=100, description="Maximum number of events, newest first"),
    resolver: SiteResolver = Depends(get_site_resolver),
    store: EventStore = Depends(get_event_store),
):
    """Latest stored events of a site, for the onboarding live view."""
    try:
        site = await resolver.resolve(site_key)
        if site is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Site not found"
            )

        events = await store.list_recent(site_key, limit=limit)
        return {
            "events": [event.model_dump(mode="json", by_alias=True) for event in events],
            "total": len(events),
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to list recent events for site {site_key}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while fetching events"
        ) from e
