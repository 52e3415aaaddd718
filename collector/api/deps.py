import secrets
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from collector.core.config import settings
from collector.services.event_store import EventStore
from collector.services.site_resolver import SiteResolver

bearer_scheme = HTTPBearer(auto_error=False)

CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or missing internal API token",
    headers={"WWW-Authenticate": "Bearer"},
)


def get_site_resolver(request: Request) -> SiteResolver:
    return request.app.state.site_resolver


def get_event_store(request: Request) -> EventStore:
    return request.app.state.event_store


async def verify_internal_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)]
) -> None:
    """Shared-secret check for callers inside our perimeter (dashboard, scheduler)."""
    if credentials is None or not secrets.compare_digest(
        credentials.credentials.encode("utf-8"),
        settings.internal.api_token.encode("utf-8"),
    ):
        raise CREDENTIALS_EXCEPTION
