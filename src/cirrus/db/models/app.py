"""Application, lifecycle data and package tables."""

from sqlalchemy import Boolean, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cirrus.db.base import Base, TimestampMixin


class AppRow(Base, TimestampMixin):
    __tablename__ = "apps"
    __table_args__ = (UniqueConstraint("space_guid", "name", name="uq_apps_space_name"),)

    guid: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    space_guid: Mapped[str] = mapped_column(String(128), ForeignKey("spaces.guid"), nullable=False, index=True)
    memory: Mapped[int] = mapped_column(Integer, nullable=False)
    disk_quota: Mapped[int] = mapped_column(Integer, nullable=False)
    instances: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    state: Mapped[str] = mapped_column(String(20), nullable=False, default="STOPPED")
    enable_ssh: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    diego: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    ports: Mapped[list | None] = mapped_column(JSON, nullable=True)
    docker_credentials: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    environment_json: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    command: Mapped[str | None] = mapped_column(Text, nullable=True)
    health_check_type: Mapped[str] = mapped_column(String(20), nullable=False, default="port")
    health_check_timeout: Mapped[int | None] = mapped_column(Integer, nullable=True)
    droplet_guid: Mapped[str | None] = mapped_column(String(128), nullable=True)
    package_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    package_state: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    version: Mapped[str] = mapped_column(String(64), nullable=False)


class LifecycleDataRow(Base, TimestampMixin):
    __tablename__ = "lifecycle_data"

    app_guid: Mapped[str] = mapped_column(String(128), ForeignKey("apps.guid"), primary_key=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    buildpack: Mapped[str | None] = mapped_column(String(500), nullable=True)
    stack: Mapped[str | None] = mapped_column(String(100), nullable=True)
    docker_image: Mapped[str | None] = mapped_column(String(500), nullable=True)


class PackageRow(Base, TimestampMixin):
    __tablename__ = "packages"

    guid: Mapped[str] = mapped_column(String(128), primary_key=True)
    app_guid: Mapped[str] = mapped_column(String(128), ForeignKey("apps.guid"), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    state: Mapped[str] = mapped_column(String(20), nullable=False)
    docker_image: Mapped[str | None] = mapped_column(String(500), nullable=True)


class ServiceBindingRow(Base, TimestampMixin):
    __tablename__ = "service_bindings"

    guid: Mapped[str] = mapped_column(String(128), primary_key=True)
    app_guid: Mapped[str] = mapped_column(String(128), ForeignKey("apps.guid"), nullable=False, index=True)
    service_instance_guid: Mapped[str] = mapped_column(String(128), nullable=False)
