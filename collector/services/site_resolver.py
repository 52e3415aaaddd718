import time
from datetime import datetime, timezone
from typing import Callable, Dict, Optional, Tuple

from loguru import logger
from sqlalchemy import select

from collector.core.config import SitesConfig
from collector.core.errors import StorageError
from collector.db.db_helper import DataBaseHelper
from collector.db.models.site import Site as DBSite
from collector.schemas.sites import SiteConfig


class SiteResolver:
    """
    Point lookup of site configuration by public key, behind a read-through cache.
    Stores {site_key: (config or None, fetched_at)}; unknown keys are cached too,
    for a shorter time.
    """

    def __init__(
        self,
        db_helper: DataBaseHelper,
        config: SitesConfig,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.db_helper = db_helper
        self.ttl = config.cache_ttl_seconds
        self.negative_ttl = config.negative_cache_ttl_seconds
        self.max_entries = config.cache_max_entries
        self._clock = clock
        self._cache: Dict[str, Tuple[Optional[SiteConfig], float]] = {}

    async def fetch(self, site_key: str) -> Optional[SiteConfig]:
        stmt = select(DBSite).where(DBSite.site_key == site_key)
        try:
            async with self.db_helper.session() as session:
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
        except Exception as e:
            raise StorageError(f"Failed to load site {site_key}") from e
        return SiteConfig.model_validate(row) if row is not None else None

    def _cached(self, site_key: str) -> Tuple[bool, Optional[SiteConfig]]:
        entry = self._cache.get(site_key)
        if entry is None:
            return False, None
        config, fetched_at = entry
        ttl = self.ttl if config is not None else self.negative_ttl
        if self._clock() - fetched_at > ttl:
            del self._cache[site_key]
            return False, None
        return True, config

    def _remember(self, site_key: str, config: Optional[SiteConfig]):
        if site_key not in self._cache and len(self._cache) >= self.max_entries:
            oldest = next(iter(self._cache))
            del self._cache[oldest]
        self._cache[site_key] = (config, self._clock())

    async def resolve(self, site_key: str, now: Optional[datetime] = None) -> Optional[SiteConfig]:
        """
        None means NotFound: the key is unknown, or the site is a temp site past
        its expiry (even if the sweep has not deleted it yet).
        """
        hit, config = self._cached(site_key)
        if not hit:
            config = await self.fetch(site_key)
            self._remember(site_key, config)
            logger.debug(f"Site cache miss for {site_key}: {'found' if config else 'not found'}")

        if config is None:
            return None

        now = now or datetime.now(timezone.utc)
        if config.is_expired(now):
            logger.info(f"Site {site_key} is an expired temp site, treating as not found")
            return None
        return config

    def invalidate(self, site_key: Optional[str] = None):
        if site_key is None:
            self._cache.clear()
        else:
            self._cache.pop(site_key, None)
