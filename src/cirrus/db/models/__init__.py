"""SQLAlchemy ORM models - import all to register with Base.metadata."""

from cirrus.db.models.org import (
    OrganizationRow,
    QuotaDefinitionRow,
    SpaceDeveloperRow,
    SpaceQuotaDefinitionRow,
    SpaceRow,
    StackRow,
)
from cirrus.db.models.app import AppRow, LifecycleDataRow, PackageRow, ServiceBindingRow
from cirrus.db.models.route import RouteMappingRow, RouteRow
from cirrus.db.models.clock_job import ClockJobRow
from cirrus.db.models.event import EventRow
from cirrus.db.models.job import JobRow

__all__ = [
    "OrganizationRow",
    "QuotaDefinitionRow",
    "SpaceDeveloperRow",
    "SpaceQuotaDefinitionRow",
    "SpaceRow",
    "StackRow",
    "AppRow",
    "LifecycleDataRow",
    "PackageRow",
    "ServiceBindingRow",
    "RouteMappingRow",
    "RouteRow",
    "ClockJobRow",
    "EventRow",
    "JobRow",
]
