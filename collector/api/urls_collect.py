import json
import time
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Request
from loguru import logger
from starlette.responses import JSONResponse, Response

from collector.api.deps import get_event_store, get_site_resolver
from collector.core.errors import ERROR_RESPONSES, ErrorKind, StorageError
from collector.schemas.events import validate_event
from collector.services.domain_guard import is_allowed
from collector.services.enricher import RequestContext, enrich
from collector.services.event_store import EventStore
from collector.services.site_resolver import SiteResolver

collect_router = APIRouter()

# Beacons come from arbitrary pages; these only make responses readable.
# Access control is the domain guard's job.
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def _reject_constant(token: str):
    # NaN and Infinity are not JSON, though the json module accepts them
    raise ValueError(f"Invalid JSON constant {token}")


def error_response(kind: ErrorKind, details: Optional[List[Any]] = None) -> JSONResponse:
    status_code, message = ERROR_RESPONSES[kind]
    content = {"success": False, "error": message}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


@collect_router.options("/collect")
async def collect_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@collect_router.post("/collect")
async def collect_event(
    request: Request,
    resolver: SiteResolver = Depends(get_site_resolver),
    store: EventStore = Depends(get_event_store),
):
    """Accept one analytics event: validate, resolve site, check domain, enrich, store."""
    received_at = int(time.time() * 1000)

    raw = await request.body()
    try:
        body = json.loads(raw, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        logger.info(f"Rejected unparseable payload ({len(raw)} bytes)")
        return error_response(ErrorKind.MALFORMED_PAYLOAD)

    result = validate_event(body)
    if not result.ok:
        details = [error.model_dump() for error in result.errors]
        logger.debug(f"Rejected invalid event: {details}")
        return error_response(ErrorKind.VALIDATION_ERROR, details=details)
    incoming = result.event

    try:
        site = await resolver.resolve(incoming.site)
    except StorageError as e:
        logger.error(f"Site lookup failed for {incoming.site}: {e.__cause__}")
        return error_response(ErrorKind.STORAGE_FAILURE)

    if site is None:
        logger.info(f"Rejected event {incoming.event!r} for unknown site {incoming.site}")
        return error_response(ErrorKind.UNKNOWN_SITE)

    if not is_allowed(
        site,
        origin=request.headers.get("origin"),
        referer=request.headers.get("referer"),
        url=incoming.url,
    ):
        return error_response(ErrorKind.DOMAIN_NOT_ALLOWED)

    context = RequestContext.from_headers(request.headers, received_at=received_at)
    enriched = enrich(incoming, context)

    try:
        await store.save(enriched, site)
    except StorageError as e:
        logger.error(
            f"Event lost, not stored: site={enriched.site} event={enriched.event!r} "
            f"timestamp={enriched.timestamp} url={enriched.url!r}: {e.__cause__}"
        )
        return error_response(ErrorKind.STORAGE_FAILURE)

    return JSONResponse(
        content={"success": True, "type": "temp" if site.is_temp else "permanent"},
        headers=CORS_HEADERS,
    )
