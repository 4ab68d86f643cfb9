# community_portal/models/kv_entry.py
from datetime import datetime

from sqlalchemy import String, Text, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from community_portal.db.base import Base


class KeyValueEntry(Base):
    """
    One persisted collection, stored as an opaque JSON blob.
    """

    __tablename__ = "kv_entries"

    key :Mapped[str] = mapped_column(String(64), primary_key=True, comment="Collection name, e.g. users / proposals")

    value :Mapped[str] = mapped_column(Text, nullable=False, comment="JSON array of the collection records")

    updated_at :Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
        comment="Last write timestamp",
    )

    def __repr__(self) -> str:
        return f"<KeyValueEntry key={self.key} size={len(self.value or '')}>"
