import uuid
from datetime import datetime, timezone
from typing import List

from loguru import logger
from sqlalchemy import select, delete

from collector.core.errors import StorageError
from collector.db.db_helper import DataBaseHelper
from collector.db.models.event import Event as DBEvent
from collector.db.models.site import Site as DBSite
from collector.schemas.events import EnrichedEvent, StoredEvent
from collector.schemas.sites import SiteConfig

DEFAULT_TEMP_EVENT_CAP = 50


class EventStore:
    """
    Append-only event storage. Each public method is one short transaction;
    any failure talking to the database, driver and connection errors included,
    surfaces as StorageError.
    """

    def __init__(self, db_helper: DataBaseHelper, temp_event_cap: int = DEFAULT_TEMP_EVENT_CAP):
        self.db_helper = db_helper
        self.temp_event_cap = temp_event_cap

    async def save(self, event: EnrichedEvent, site: SiteConfig) -> StoredEvent:
        row = DBEvent(
            id=uuid.uuid4().hex,
            created_at=datetime.now(timezone.utc),
            is_temp=site.is_temp,
            **event.model_dump(),
        )
        try:
            async with self.db_helper.session() as session:
                session.add(row)
                await session.commit()
        except Exception as e:
            raise StorageError(f"Failed to store event {event.event!r} for site {event.site}") from e

        stored = StoredEvent.model_validate(row)
        logger.debug(f"Stored event {stored.id} ({stored.event}) for site {stored.site}")

        if site.is_temp:
            # the event is already durable; a failed prune only delays trimming
            try:
                await self.prune_oldest(site.site_key, keep=self.temp_event_cap)
            except StorageError as e:
                logger.warning(f"Could not prune temp events for site {site.site_key}: {e.__cause__}")

        return stored

    async def list_recent(self, site_key: str, limit: int = 10) -> List[StoredEvent]:
        """Newest first, by insertion order."""
        stmt = (
            select(DBEvent)
            .where(DBEvent.site == site_key)
            .order_by(DBEvent.seq.desc())
            .limit(limit)
        )
        try:
            async with self.db_helper.session() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except Exception as e:
            raise StorageError(f"Failed to list events for site {site_key}") from e
        return [StoredEvent.model_validate(row) for row in rows]

    async def prune_oldest(self, site_key: str, keep: int = DEFAULT_TEMP_EVENT_CAP) -> int:
        """
        Delete temp events of a site beyond the newest `keep`.
        Read-then-delete without a lock: concurrent writers can leave the site
        slightly over the cap until the next prune.
        """
        newest_excess = (
            select(DBEvent.seq)
            .where(DBEvent.site == site_key, DBEvent.is_temp.is_(True))
            .order_by(DBEvent.seq.desc())
            .offset(keep)
            .limit(1)
        )
        try:
            async with self.db_helper.session() as session:
                cutoff = (await session.execute(newest_excess)).scalar_one_or_none()
                if cutoff is None:
                    return 0
                result = await session.execute(
                    delete(DBEvent).where(
                        DBEvent.site == site_key,
                        DBEvent.is_temp.is_(True),
                        DBEvent.seq <= cutoff,
                    )
                )
                removed = result.rowcount
                await session.commit()
        except Exception as e:
            raise StorageError(f"Failed to prune events for site {site_key}") from e

        logger.debug(f"Pruned {removed} temp events for site {site_key}")
        return removed

    async def expire_temp_sites(self, now: datetime) -> int:
        """Delete temp sites whose expiry is before `now`, with their events."""
        expired = select(DBSite.site_key).where(
            DBSite.is_temp.is_(True),
            DBSite.expires_at.is_not(None),
            DBSite.expires_at < now,
        )
        try:
            async with self.db_helper.session() as session:
                site_keys = list((await session.execute(expired)).scalars())
                if not site_keys:
                    return 0
                await session.execute(delete(DBEvent).where(DBEvent.site.in_(site_keys)))
                await session.execute(delete(DBSite).where(DBSite.site_key.in_(site_keys)))
                await session.commit()
        except Exception as e:
            raise StorageError("Failed to expire temp sites") from e

        logger.info(f"Expired {len(site_keys)} temp sites: {site_keys}")
        return len(site_keys)
