from collector.schemas.events import validate_event
from collector.services.enricher import RequestContext, enrich, referrer_domain
from collector.services.geo import geo_from_headers

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
DESKTOP_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
RECEIVED_AT = 1_700_000_000_000


def incoming(**fields):
    body = {"site": "abc123", "event": "pageview", **fields}
    result = validate_event(body)
    assert result.ok, result.errors
    return result.event


def context(**headers):
    return RequestContext.from_headers(headers, received_at=RECEIVED_AT)


def test_enrichment_is_deterministic():
    event = incoming(url="https://example.com/", referrer="https://google.com/search?q=x", props={"a": 1})
    ctx = context(**{"User-Agent": IPHONE_UA, "x-vercel-ip-country": "es"})

    assert enrich(event, ctx) == enrich(event, ctx)


def test_user_agent_header_is_classified():
    enriched = enrich(incoming(), context(**{"User-Agent": IPHONE_UA}))

    assert enriched.device_type == "mobile"
    assert enriched.os == "iOS 17.1"
    assert enriched.browser == "Safari 17.1"
    assert enriched.user_agent == IPHONE_UA


def test_payload_user_agent_wins_over_header():
    event = incoming(device={"userAgent": DESKTOP_UA})

    enriched = enrich(event, context(**{"User-Agent": IPHONE_UA}))

    assert enriched.device_type == "desktop"
    assert enriched.browser == "Chrome 120.0"


def test_missing_user_agent_is_unknown():
    enriched = enrich(incoming(), context())

    assert enriched.device_type == "unknown"
    assert enriched.os == "unknown"
    assert enriched.browser == "unknown"
    assert enriched.user_agent is None


def test_timestamp_defaults_to_receipt_time():
    assert enrich(incoming(), context()).timestamp == RECEIVED_AT
    assert enrich(incoming(timestamp=123), context()).timestamp == 123


def test_referrer_domain():
    assert referrer_domain("https://www.Google.com/search?q=1") == "www.google.com"
    assert referrer_domain(None) is None
    assert referrer_domain("") is None
    assert referrer_domain("not a url") == "unknown"
    assert referrer_domain("http://[::1") == "unknown"


def test_unparseable_referrer_is_kept_raw():
    enriched = enrich(incoming(referrer="http://[broken"), context())

    assert enriched.referrer == "http://[broken"
    assert enriched.referrer_domain == "unknown"


def test_geo_from_edge_headers():
    enriched = enrich(incoming(), context(**{
        "X-Vercel-IP-Country": "es",
        "X-Vercel-IP-Country-Region": "MD",
        "X-Vercel-IP-City": "San%20Sebasti%C3%A1n",
    }))

    assert (enriched.country, enriched.region, enriched.city) == ("ES", "MD", "San Sebastián")


def test_geo_absent_or_placeholder():
    assert geo_from_headers({}).country is None
    assert geo_from_headers({"cf-ipcountry": "XX"}).country is None
    assert geo_from_headers({"cf-ipcountry": "T1", "cloudfront-viewer-country": "DE"}).country == "DE"


def test_client_props_take_precedence_over_derived_fields():
    event = incoming(props={"country": "FR", "deviceType": "kiosk", "os": 42})

    enriched = enrich(event, context(**{"User-Agent": IPHONE_UA, "cf-ipcountry": "US"}))

    assert enriched.country == "FR"
    assert enriched.device_type == "kiosk"
    # non-string values do not replace derived ones
    assert enriched.os == "iOS 17.1"
    assert enriched.props == {"country": "FR", "deviceType": "kiosk", "os": 42}


def test_context_blocks_are_flattened():
    event = incoming(
        sessionId="sess_1",
        userId="user_9",
        page={"title": "Home", "pathname": "/", "loadTime": 120},
        utm={"source": "twitter", "medium": "social"},
        device={"screenWidth": 390, "screenHeight": 844, "language": "es-ES"},
    )

    enriched = enrich(event, context())

    assert enriched.session_id == "sess_1"
    assert enriched.user_id == "user_9"
    assert enriched.page_title == "Home"
    assert enriched.load_time == 120
    assert enriched.utm_source == "twitter"
    assert enriched.screen_width == 390
    assert enriched.language == "es-ES"


def test_native_app_fields_are_flattened():
    event = incoming(
        device={"platform": "ios", "platformVersion": "16.0", "brand": "Apple",
                "model": "iPhone 14", "isEmulator": False},
        app={"version": "1.0.0", "buildNumber": "42", "bundleId": "com.example.app"},
    )

    enriched = enrich(event, context(**{"User-Agent": IPHONE_UA}))

    assert enriched.platform == "ios"
    assert enriched.platform_version == "16.0"
    assert enriched.device_vendor == "Apple"
    assert enriched.device_model == "iPhone 14"
    assert enriched.is_emulator is False
    assert enriched.app_version == "1.0.0"
    assert enriched.app_build_number == "42"
    assert enriched.bundle_id == "com.example.app"


def test_device_model_and_cpu_come_from_user_agent():
    enriched = enrich(incoming(), context(**{"User-Agent": DESKTOP_UA}))

    assert enriched.cpu == "amd64"
    assert enriched.device_model is None
    assert enriched.platform is None


def test_server_fields_are_flattened():
    event = incoming(server={
        "userAgent": IPHONE_UA,
        "runtime": "node",
        "framework": "nextjs",
        "ip": "203.0.113.7",
        "origin": "https://example.com",
    })

    enriched = enrich(event, context(**{"User-Agent": "node-fetch/1.0"}))

    assert enriched.server_runtime == "node"
    assert enriched.server_framework == "nextjs"
    assert enriched.server_ip == "203.0.113.7"
    assert enriched.server_origin == "https://example.com"
    # the forwarded end-user agent beats the SDK's own
    assert enriched.user_agent == IPHONE_UA
    assert enriched.device_type == "mobile"


def test_session_and_device_ids_fall_back_to_props():
    enriched = enrich(incoming(props={"sessionId": "sess_p", "deviceId": "dev_p"}), context())

    assert enriched.session_id == "sess_p"
    assert enriched.device_id == "dev_p"

    explicit = enrich(incoming(sessionId="sess_1", props={"sessionId": "sess_p", "deviceId": 7}), context())

    assert explicit.session_id == "sess_1"
    assert explicit.device_id is None
