from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlparse

from collector.schemas.events import IncomingEvent, EnrichedEvent
from collector.services.geo import EDGE_GEO_HEADERS, geo_from_headers
from collector.services.user_agent import UNKNOWN, parse_user_agent

# props key -> derived field; a string under one of these keys replaces the derived value
CLIENT_OVERRIDABLE = {
    "deviceType": "device_type",
    "deviceVendor": "device_vendor",
    "deviceModel": "device_model",
    "os": "os",
    "browser": "browser",
    "engine": "engine",
    "country": "country",
    "region": "region",
    "city": "city",
    "referrerDomain": "referrer_domain",
}

_GEO_HEADER_NAMES = {name for group in EDGE_GEO_HEADERS for name in group}


@dataclass(frozen=True)
class RequestContext:
    """What the enricher may know about the HTTP request besides the body."""
    received_at: int  # epoch millis
    user_agent: Optional[str] = None
    geo_headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_headers(cls, headers: Mapping[str, str], received_at: int) -> "RequestContext":
        lowered = {name.lower(): value for name, value in headers.items()}
        return cls(
            received_at=received_at,
            user_agent=lowered.get("user-agent"),
            geo_headers={name: value for name, value in lowered.items() if name in _GEO_HEADER_NAMES},
        )


def referrer_domain(referrer: Optional[str]) -> Optional[str]:
    if not referrer:
        return None
    try:
        host = urlparse(referrer.strip()).hostname
    except ValueError:
        return UNKNOWN
    return host or UNKNOWN


def _prop_str(props: Dict[str, Any], key: str) -> Optional[str]:
    value = props.get(key)
    return value if isinstance(value, str) and value else None


def enrich(event: IncomingEvent, context: RequestContext) -> EnrichedEvent:
    """
    Derive device, referrer and geo facts and flatten everything for storage.
    No I/O; the same event and context always give the same result.
    """
    device = event.device
    page = event.page
    utm = event.utm
    app = event.app
    server = event.server

    user_agent = (
        (device.user_agent if device else None)
        or (server.user_agent if server else None)
        or context.user_agent
    )
    parsed = parse_user_agent(user_agent)
    geo = geo_from_headers(context.geo_headers)

    # native SDKs report the hardware directly
    derived = {
        "device_type": parsed.device_type,
        "device_vendor": (device.brand if device else None) or parsed.device_vendor,
        "device_model": (device.model if device else None) or parsed.device_model,
        "os": parsed.os_label,
        "browser": parsed.browser_label,
        "engine": parsed.engine,
        "cpu": parsed.cpu,
        "country": geo.country,
        "region": geo.region,
        "city": geo.city,
        "referrer_domain": referrer_domain(event.referrer),
    }

    props = event.props or {}
    for prop_key, field_name in CLIENT_OVERRIDABLE.items():
        value = _prop_str(props, prop_key)
        if value:
            derived[field_name] = value

    return EnrichedEvent(
        site=event.site,
        event=event.event,
        timestamp=event.timestamp if event.timestamp is not None else context.received_at,
        url=event.url,
        referrer=event.referrer,
        props=event.props,
        user_agent=user_agent,
        session_id=event.session_id or _prop_str(props, "sessionId"),
        device_id=event.device_id or _prop_str(props, "deviceId"),
        user_id=event.user_id,
        page_title=page.title if page else None,
        pathname=page.pathname if page else None,
        hostname=page.hostname if page else None,
        load_time=page.load_time if page else None,
        utm_source=utm.source if utm else None,
        utm_medium=utm.medium if utm else None,
        utm_campaign=utm.campaign if utm else None,
        utm_term=utm.term if utm else None,
        utm_content=utm.content if utm else None,
        screen_width=device.screen_width if device else None,
        screen_height=device.screen_height if device else None,
        viewport_width=device.viewport_width if device else None,
        viewport_height=device.viewport_height if device else None,
        language=device.language if device else None,
        timezone=device.timezone if device else None,
        connection_type=device.connection_type if device else None,
        platform=device.platform if device else None,
        platform_version=device.platform_version if device else None,
        is_emulator=device.is_emulator if device else None,
        app_version=app.version if app else None,
        app_build_number=app.build_number if app else None,
        bundle_id=app.bundle_id if app else None,
        server_runtime=server.runtime if server else None,
        server_framework=server.framework if server else None,
        server_ip=server.ip if server else None,
        server_origin=server.origin if server else None,
        **derived,
    )
