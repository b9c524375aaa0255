"""Job table."""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from cirrus.db.base import Base, TimestampMixin


class JobRow(Base, TimestampMixin):
    __tablename__ = "jobs"

    job_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    job_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    app_guid: Mapped[str | None] = mapped_column(String(128), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    errors: Mapped[list | None] = mapped_column(JSON, nullable=True)
    trace_id: Mapped[str] = mapped_column(String(128), nullable=False)
