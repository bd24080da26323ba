from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint

from wingshop.db import Base


def _utcnow():
    return datetime.now(timezone.utc)


class StorageEntry(Base):
    __tablename__ = "storage_entries"
    __table_args__ = (UniqueConstraint("namespace", "key", name="uq_storage_ns_key"),)

    id = Column(Integer, primary_key=True, index=True)
    namespace = Column(String(160), nullable=False, index=True)  # "<client id>:<scope>"
    key = Column(String(128), nullable=False)
    value = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )
