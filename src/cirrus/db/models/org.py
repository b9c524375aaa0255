"""Organization, space, quota and stack tables."""

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cirrus.db.base import Base, TimestampMixin

UNLIMITED = -1


class QuotaDefinitionRow(Base, TimestampMixin):
    __tablename__ = "quota_definitions"

    guid: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    memory_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    instance_memory_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=UNLIMITED)
    app_instance_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=UNLIMITED)


class SpaceQuotaDefinitionRow(Base, TimestampMixin):
    __tablename__ = "space_quota_definitions"

    guid: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    organization_guid: Mapped[str] = mapped_column(
        String(128), ForeignKey("organizations.guid"), nullable=False, index=True
    )
    memory_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    instance_memory_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=UNLIMITED)
    app_instance_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=UNLIMITED)


class OrganizationRow(Base, TimestampMixin):
    __tablename__ = "organizations"

    guid: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    quota_definition_guid: Mapped[str] = mapped_column(
        String(128), ForeignKey("quota_definitions.guid"), nullable=False
    )


class SpaceRow(Base, TimestampMixin):
    __tablename__ = "spaces"
    __table_args__ = (UniqueConstraint("organization_guid", "name", name="uq_spaces_org_name"),)

    guid: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    organization_guid: Mapped[str] = mapped_column(
        String(128), ForeignKey("organizations.guid"), nullable=False, index=True
    )
    space_quota_definition_guid: Mapped[str | None] = mapped_column(
        String(128), ForeignKey("space_quota_definitions.guid"), nullable=True
    )
    allow_ssh: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    default_stack_name: Mapped[str | None] = mapped_column(String(100), nullable=True)


class SpaceDeveloperRow(Base, TimestampMixin):
    __tablename__ = "space_developers"

    space_guid: Mapped[str] = mapped_column(String(128), ForeignKey("spaces.guid"), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)


class StackRow(Base, TimestampMixin):
    __tablename__ = "stacks"

    guid: Mapped[str] = mapped_column(String(128), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
