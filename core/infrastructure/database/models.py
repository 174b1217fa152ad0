"""
SQLAlchemy ORM Models.

Backs the durable key/value store.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Integer, JSON, String, UniqueConstraint
from sqlalchemy.orm import declarative_base


Base = declarative_base()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# KEY/VALUE MODEL
# =============================================================================

class KeyValueModel(Base):
    """
    Key/value entry database model.

    One row per (area, key). ``value`` holds JSON-compatible data.
    """

    __tablename__ = "kv_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)

    area = Column(String(32), nullable=False, default="local", index=True)
    key = Column(String(255), nullable=False)
    value = Column(JSON, nullable=True)

    updated_at = Column(DateTime(timezone=True), default=_utc_now, onupdate=_utc_now, nullable=False)

    __table_args__ = (
        UniqueConstraint("area", "key", name="uq_kv_entries_area_key"),
    )

    def __repr__(self):
        return f"<KeyValueModel(area={self.area}, key={self.key})>"
