from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Any, Dict, List, Annotated

from pydantic import (
    AfterValidator,
    AliasGenerator,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    StringConstraints,
    ValidationError,
)
from pydantic.alias_generators import to_camel

# column limits: BIGINT for timestamps, INTEGER for sizes and durations
MAX_BIGINT = 2**63 - 1
MAX_INT = 2**31 - 1


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


RequiredStr = Annotated[str, StringConstraints(strict=True, min_length=1), AfterValidator(_not_blank)]
NonNegativeInt = Annotated[StrictInt, Field(ge=0, le=MAX_INT)]
EpochMillis = Annotated[StrictInt, Field(ge=0, le=MAX_BIGINT)]

WIRE_CONFIG = ConfigDict(alias_generator=to_camel, extra="ignore")


class DeviceInfo(BaseModel):
    model_config = WIRE_CONFIG

    user_agent: Optional[StrictStr] = None
    screen_width: Optional[NonNegativeInt] = None
    screen_height: Optional[NonNegativeInt] = None
    viewport_width: Optional[NonNegativeInt] = None
    viewport_height: Optional[NonNegativeInt] = None
    language: Optional[StrictStr] = None
    timezone: Optional[StrictStr] = None
    connection_type: Optional[StrictStr] = None

    # native SDKs
    platform: Optional[StrictStr] = None
    platform_version: Optional[StrictStr] = None
    brand: Optional[StrictStr] = None
    model: Optional[StrictStr] = None
    is_emulator: Optional[StrictBool] = None


class PageInfo(BaseModel):
    model_config = WIRE_CONFIG

    title: Optional[StrictStr] = None
    pathname: Optional[StrictStr] = None
    hostname: Optional[StrictStr] = None
    load_time: Optional[NonNegativeInt] = None


class UtmParams(BaseModel):
    model_config = WIRE_CONFIG

    source: Optional[StrictStr] = None
    medium: Optional[StrictStr] = None
    campaign: Optional[StrictStr] = None
    term: Optional[StrictStr] = None
    content: Optional[StrictStr] = None


class AppInfo(BaseModel):
    model_config = WIRE_CONFIG

    version: Optional[StrictStr] = None
    build_number: Optional[StrictStr] = None
    bundle_id: Optional[StrictStr] = None


class ServerInfo(BaseModel):
    """Sent by server-side SDKs on behalf of the end user's request."""
    model_config = WIRE_CONFIG

    user_agent: Optional[StrictStr] = None
    ip: Optional[StrictStr] = None
    origin: Optional[StrictStr] = None
    runtime: Optional[StrictStr] = None
    framework: Optional[StrictStr] = None


class IncomingEvent(BaseModel):
    """One event as posted by a client SDK. Unknown keys are ignored."""
    model_config = WIRE_CONFIG

    site: RequiredStr = Field(..., description="Public site key.")
    event: RequiredStr = Field(..., description="Event name, e.g. pageview.")
    timestamp: Optional[EpochMillis] = Field(None, description="Event time in epoch millis.")
    url: Optional[StrictStr] = None
    referrer: Optional[StrictStr] = None
    props: Optional[Dict[str, Any]] = Field(None, description="Free-form event properties (JSON object).")

    session_id: Optional[StrictStr] = None
    device_id: Optional[StrictStr] = None
    user_id: Optional[StrictStr] = None
    device: Optional[DeviceInfo] = None
    page: Optional[PageInfo] = None
    utm: Optional[UtmParams] = None
    app: Optional[AppInfo] = None
    server: Optional[ServerInfo] = None


class FieldError(BaseModel):
    field: str
    message: str


@dataclass(frozen=True)
class ValidationResult:
    event: Optional[IncomingEvent] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.event is not None


def _field_errors(exc: ValidationError) -> List[FieldError]:
    errors = []
    for err in exc.errors(include_url=False):
        path = ".".join(str(part) for part in err["loc"]) or "body"
        errors.append(FieldError(field=path, message=err["msg"]))
    return errors


def validate_event(body: Any) -> ValidationResult:
    """
    Check an already-parsed JSON body against the IncomingEvent shape.
    Never raises: every violation comes back as a FieldError.
    """
    try:
        return ValidationResult(event=IncomingEvent.model_validate(body))
    except ValidationError as exc:
        return ValidationResult(errors=_field_errors(exc))


class EnrichedEvent(BaseModel):
    """IncomingEvent plus the facts derived at ingestion, flattened for storage."""

    site: str
    event: str
    timestamp: int
    url: Optional[str] = None
    referrer: Optional[str] = None
    referrer_domain: Optional[str] = None
    props: Optional[Dict[str, Any]] = None

    user_agent: Optional[str] = None
    device_type: str
    device_vendor: Optional[str] = None
    device_model: Optional[str] = None
    os: str
    browser: str
    engine: Optional[str] = None
    cpu: Optional[str] = None

    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None

    session_id: Optional[str] = None
    device_id: Optional[str] = None
    user_id: Optional[str] = None

    page_title: Optional[str] = None
    pathname: Optional[str] = None
    hostname: Optional[str] = None
    load_time: Optional[int] = None

    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None

    screen_width: Optional[int] = None
    screen_height: Optional[int] = None
    viewport_width: Optional[int] = None
    viewport_height: Optional[int] = None
    language: Optional[str] = None
    timezone: Optional[str] = None
    connection_type: Optional[str] = None

    platform: Optional[str] = None
    platform_version: Optional[str] = None
    is_emulator: Optional[bool] = None
    app_version: Optional[str] = None
    app_build_number: Optional[str] = None
    bundle_id: Optional[str] = None

    server_runtime: Optional[str] = None
    server_framework: Optional[str] = None
    server_ip: Optional[str] = None
    server_origin: Optional[str] = None


class StoredEvent(EnrichedEvent):
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )

    id: str = Field(..., description="Identifier generated at ingestion.")
    created_at: datetime
    is_temp: bool
