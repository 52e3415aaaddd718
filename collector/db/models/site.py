import uuid

from sqlalchemy import Column, String, Boolean, DateTime, JSON

from collector.db.models.event import BaseORM, _utcnow


class Site(BaseORM):
    """Read-only here: rows are owned by the site-management module."""
    __tablename__ = "sites"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String, nullable=False)
    site_key = Column(String, unique=True, index=True, nullable=False)
    organization_id = Column(String, index=True)  # null for temp sites
    allowed_domains = Column(JSON, nullable=False, default=list)
    is_temp = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
