"""Audit event table."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from cirrus.db.base import Base


class EventRow(Base):
    __tablename__ = "events"

    guid: Mapped[str] = mapped_column(String(128), primary_key=True)
    type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    actor: Mapped[str] = mapped_column(String(128), nullable=False)
    actor_type: Mapped[str] = mapped_column(String(50), nullable=False, default="user")
    actor_name: Mapped[str | None] = mapped_column(String(320), nullable=True)
    actee: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    actee_type: Mapped[str] = mapped_column(String(50), nullable=False)
    actee_name: Mapped[str] = mapped_column(String(200), nullable=False)
    space_guid: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    organization_guid: Mapped[str | None] = mapped_column(String(128), nullable=True)
    metadata_: Mapped[dict] = mapped_column("metadata", JSON, nullable=False, default=dict)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
