from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hcp.database import Base, JSONType


class CollectionHead(Base):
    """
    One row per storage key.

    Distinguishes an empty collection from a missing one, and records whether
    the key holds a list (stored as CollectionRow rows) or a single value.
    """
    __tablename__ = "collection_heads"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    kind: Mapped[str] = mapped_column(String(10), nullable=False)  # "list" or "value"
    value: Mapped[Optional[Any]] = mapped_column(JSONType, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<CollectionHead(key='{self.key}', kind='{self.kind}')>"


class CollectionRow(Base):
    """One element of a list-valued key, kept in its collection order."""
    __tablename__ = "collection_rows"

    key: Mapped[str] = mapped_column(
        String(100),
        ForeignKey("collection_heads.key", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    record_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    data: Mapped[Any] = mapped_column(JSONType, nullable=False)

    def __repr__(self) -> str:
        return f"<CollectionRow(key='{self.key}', position={self.position}, id='{self.record_id}')>"
