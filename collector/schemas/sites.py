from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class SiteConfig(BaseModel):
    """The part of a registered site that ingestion needs."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    site_key: str
    organization_id: Optional[str] = None
    allowed_domains: List[str] = []
    is_temp: bool = False
    expires_at: Optional[datetime] = None

    @field_validator("allowed_domains", mode="before")
    @classmethod
    def _none_means_unrestricted(cls, value):
        return [] if value is None else value

    @field_validator("expires_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # SQLite hands back naive datetimes; everything is stored in UTC
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def is_expired(self, now: datetime) -> bool:
        return self.is_temp and self.expires_at is not None and self.expires_at < now


class RecentEvents(BaseModel):
    """Response of the live events view."""
    events: List[dict]
    total: int
