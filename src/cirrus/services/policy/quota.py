"""Memory and instance quota decisions.

Quota values come from the org and space quota definitions; this module only
decides whether a requested footprint fits. A limit of -1 means unlimited.
"""

from dataclasses import dataclass

from cirrus.db.models.org import UNLIMITED
from cirrus.errors.exceptions import MemoryPolicyViolation


@dataclass(frozen=True)
class QuotaLimits:
    memory_limit: int
    instance_memory_limit: int = UNLIMITED
    app_instance_limit: int = UNLIMITED


@dataclass(frozen=True)
class Usage:
    """Footprint of the other started apps sharing a quota."""

    memory: int = 0
    instances: int = 0


def memory_violations(
    memory: int,
    instances: int,
    space_limits: QuotaLimits | None,
    space_usage: Usage,
    org_limits: QuotaLimits | None,
    org_usage: Usage,
) -> list[str]:
    """Return the memory rule kinds a started app with this footprint would break."""
    kinds: list[str] = []
    requested = memory * max(instances, 0)

    if space_limits is not None:
        if space_limits.instance_memory_limit != UNLIMITED and memory > space_limits.instance_memory_limit:
            kinds.append(MemoryPolicyViolation.SPACE_INSTANCE_MEMORY_LIMIT_EXCEEDED)
        if requested > space_limits.memory_limit - space_usage.memory:
            kinds.append(MemoryPolicyViolation.SPACE_QUOTA_EXCEEDED)

    if org_limits is not None:
        if org_limits.instance_memory_limit != UNLIMITED and memory > org_limits.instance_memory_limit:
            kinds.append(MemoryPolicyViolation.INSTANCE_MEMORY_LIMIT_EXCEEDED)
        if requested > org_limits.memory_limit - org_usage.memory:
            kinds.append(MemoryPolicyViolation.ORG_QUOTA_EXCEEDED)

    return kinds


def instance_limit_violations(
    instances: int,
    space_limits: QuotaLimits | None,
    space_usage: Usage,
    org_limits: QuotaLimits | None,
    org_usage: Usage,
) -> list[str]:
    kinds: list[str] = []
    if space_limits is not None and space_limits.app_instance_limit != UNLIMITED:
        if space_usage.instances + instances > space_limits.app_instance_limit:
            kinds.append("space_app_instance_limit_exceeded")
    if org_limits is not None and org_limits.app_instance_limit != UNLIMITED:
        if org_usage.instances + instances > org_limits.app_instance_limit:
            kinds.append("app_instance_limit_exceeded")
    return kinds
