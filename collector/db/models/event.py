import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, Index, JSON, Integer, BigInteger, Boolean, Text
from sqlalchemy.orm import declarative_base

BaseORM = declarative_base()

# BIGSERIAL on Postgres, rowid alias on SQLite
SeqType = BigInteger().with_variant(Integer, "sqlite")


def _new_event_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Event(BaseORM):
    __tablename__ = "events"

    seq = Column(SeqType, primary_key=True, autoincrement=True)
    id = Column(String(32), unique=True, nullable=False, default=_new_event_id)
    site = Column(String, nullable=False)
    event = Column(String, nullable=False)
    timestamp = Column(BigInteger, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    url = Column(Text)
    referrer = Column(Text)
    referrer_domain = Column(String)
    props = Column(JSON)
    is_temp = Column(Boolean, nullable=False, default=False)

    # user agent
    user_agent = Column(Text)
    device_type = Column(String, nullable=False)
    device_vendor = Column(String)
    device_model = Column(String)
    os = Column(String, nullable=False)
    browser = Column(String, nullable=False)
    engine = Column(String)
    cpu = Column(String)

    # geo, from edge headers only
    country = Column(String)
    region = Column(String)
    city = Column(String)

    session_id = Column(String)
    device_id = Column(String)
    user_id = Column(String)

    page_title = Column(Text)
    pathname = Column(Text)
    hostname = Column(String)
    load_time = Column(Integer)

    utm_source = Column(String)
    utm_medium = Column(String)
    utm_campaign = Column(String)
    utm_term = Column(String)
    utm_content = Column(String)

    screen_width = Column(Integer)
    screen_height = Column(Integer)
    viewport_width = Column(Integer)
    viewport_height = Column(Integer)
    language = Column(String)
    timezone = Column(String)
    connection_type = Column(String)

    # native apps
    platform = Column(String)
    platform_version = Column(String)
    is_emulator = Column(Boolean)
    app_version = Column(String)
    app_build_number = Column(String)
    bundle_id = Column(String)

    # server-side SDKs
    server_runtime = Column(String)
    server_framework = Column(String)
    server_ip = Column(String)
    server_origin = Column(Text)

    __table_args__ = (
        Index("idx_events_site_seq", "site", "seq"),
        Index("idx_events_site_timestamp", "site", "timestamp"),
    )
