"""Route and route mapping tables."""

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from cirrus.db.base import Base, TimestampMixin


class RouteRow(Base, TimestampMixin):
    __tablename__ = "routes"

    guid: Mapped[str] = mapped_column(String(128), primary_key=True)
    host: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    path: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    port: Mapped[int | None] = mapped_column(Integer, nullable=True)
    space_guid: Mapped[str] = mapped_column(String(128), ForeignKey("spaces.guid"), nullable=False, index=True)
    route_service_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    @property
    def uri(self) -> str:
        if self.port is not None:
            return f"{self.domain}:{self.port}"
        base = f"{self.host}.{self.domain}" if self.host else self.domain
        return f"{base}{self.path}"


class RouteMappingRow(Base, TimestampMixin):
    __tablename__ = "route_mappings"
    __table_args__ = (UniqueConstraint("app_guid", "route_guid", name="uq_route_mappings_app_route"),)

    guid: Mapped[str] = mapped_column(String(128), primary_key=True)
    app_guid: Mapped[str] = mapped_column(String(128), ForeignKey("apps.guid"), nullable=False, index=True)
    route_guid: Mapped[str] = mapped_column(String(128), ForeignKey("routes.guid"), nullable=False, index=True)
    app_port: Mapped[int | None] = mapped_column(Integer, nullable=True)
