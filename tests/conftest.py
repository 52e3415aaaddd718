import os

# Settings are read at import time
os.environ["APP_CONFIG__DB__URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["APP_CONFIG__INTERNAL__API_TOKEN"] = "test-internal-token"

from datetime import datetime
from typing import List, Optional

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from collector.api.routers import main_router
from collector.api.urls_sites import recent_events_limiter
from collector.core.config import DatabaseConfig, SitesConfig
from collector.db.db_helper import DataBaseHelper
from collector.db.models.site import Site as DBSite
from collector.services.event_store import EventStore
from collector.services.site_resolver import SiteResolver

INTERNAL_TOKEN = "test-internal-token"


@pytest_asyncio.fixture
async def db_helper(tmp_path):
    helper = DataBaseHelper(DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'collector.db'}"))
    await helper.create_tables()
    yield helper
    await helper.dispose()


@pytest.fixture
def resolver(db_helper) -> SiteResolver:
    return SiteResolver(db_helper, SitesConfig())


@pytest.fixture
def store(db_helper) -> EventStore:
    return EventStore(db_helper, temp_event_cap=50)


@pytest.fixture
def add_site(db_helper):
    async def _add_site(
        site_key: str,
        allowed_domains: Optional[List[str]] = None,
        is_temp: bool = False,
        expires_at: Optional[datetime] = None,
    ):
        async with db_helper.session() as session:
            session.add(DBSite(
                name="Demo Site" if is_temp else f"Site {site_key}",
                site_key=site_key,
                organization_id=None if is_temp else "org_1",
                allowed_domains=allowed_domains or [],
                is_temp=is_temp,
                expires_at=expires_at,
            ))
            await session.commit()

    return _add_site


@pytest_asyncio.fixture
async def client(resolver, store):
    app = FastAPI()
    app.include_router(main_router, prefix="/api")
    app.state.site_resolver = resolver
    app.state.event_store = store
    # no Redis in tests
    app.dependency_overrides[recent_events_limiter] = lambda: None

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://collector.test") as http_client:
        yield http_client


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {INTERNAL_TOKEN}"}
