"""Tests for quota decisions and validation error translation."""

from cirrus.errors.exceptions import (
    AppInvalidError,
    DockerDisabledError,
    InstanceCountInvalidError,
    InstanceQuotaExceededError,
    InvalidStateError,
    MemoryPolicyViolation,
    NameConflictError,
    PortMappingBackendConflictError,
)
from cirrus.services.lifecycle.validation import NAME_IN_SPACE, ValidationErrors, translate_validation_errors
from cirrus.services.policy.quota import QuotaLimits, Usage, instance_limit_violations, memory_violations


def _errors(*pairs) -> ValidationErrors:
    errors = ValidationErrors()
    for field, kind in pairs:
        errors.add(field, kind)
    return errors


# ---------------------------------------------------------------------------
# Translation precedence
# ---------------------------------------------------------------------------

def test_name_conflict_wins_over_everything():
    errors = _errors(
        ("memory", MemoryPolicyViolation.ZERO_OR_LESS),
        ("state", "invalid"),
        (NAME_IN_SPACE, "unique"),
    )
    error = translate_validation_errors(errors, "foo")
    assert isinstance(error, NameConflictError)
    assert "foo" in error.message


def test_memory_kinds_follow_fixed_precedence():
    errors = _errors(
        ("memory", MemoryPolicyViolation.INSTANCE_MEMORY_LIMIT_EXCEEDED),
        ("memory", MemoryPolicyViolation.ZERO_OR_LESS),
        ("memory", MemoryPolicyViolation.ORG_QUOTA_EXCEEDED),
    )
    assert translate_validation_errors(errors, "foo").kind == MemoryPolicyViolation.ORG_QUOTA_EXCEEDED

    errors.add("memory", MemoryPolicyViolation.SPACE_INSTANCE_MEMORY_LIMIT_EXCEEDED)
    assert translate_validation_errors(errors, "foo").kind == MemoryPolicyViolation.SPACE_INSTANCE_MEMORY_LIMIT_EXCEEDED

    errors.add("memory", MemoryPolicyViolation.SPACE_QUOTA_EXCEEDED)
    assert translate_validation_errors(errors, "foo").kind == MemoryPolicyViolation.SPACE_QUOTA_EXCEEDED


def test_zero_memory_wins_over_org_instance_memory():
    errors = _errors(
        ("memory", MemoryPolicyViolation.INSTANCE_MEMORY_LIMIT_EXCEEDED),
        ("memory", MemoryPolicyViolation.ZERO_OR_LESS),
    )
    assert translate_validation_errors(errors, "foo").kind == MemoryPolicyViolation.ZERO_OR_LESS


def test_remaining_kinds_in_order():
    errors = _errors(
        ("diego_to_dea", "multiple_app_ports"),
        ("docker", "docker_disabled"),
        ("state", "invalid"),
        ("app_instance_limit", "app_instance_limit_exceeded"),
        ("instances", "less_than_zero"),
    )
    assert isinstance(translate_validation_errors(errors, "foo"), InstanceCountInvalidError)

    errors = _errors(
        ("diego_to_dea", "multiple_app_ports"),
        ("docker", "docker_disabled"),
        ("state", "invalid"),
        ("app_instance_limit", "app_instance_limit_exceeded"),
        ("app_instance_limit", "space_app_instance_limit_exceeded"),
    )
    error = translate_validation_errors(errors, "foo")
    assert isinstance(error, InstanceQuotaExceededError)
    assert error.scope == "space"

    errors = _errors(("diego_to_dea", "multiple_app_ports"), ("docker", "docker_disabled"), ("state", "invalid"))
    assert isinstance(translate_validation_errors(errors, "foo"), InvalidStateError)

    errors = _errors(("diego_to_dea", "multiple_app_ports"), ("docker", "docker_disabled"))
    assert isinstance(translate_validation_errors(errors, "foo"), DockerDisabledError)

    errors = _errors(("diego_to_dea", "multiple_app_ports"))
    assert isinstance(translate_validation_errors(errors, "foo"), PortMappingBackendConflictError)


def test_unknown_kinds_become_generic_invalid():
    errors = _errors(("disk_quota", "zero_or_less"))
    error = translate_validation_errors(errors, "foo")
    assert isinstance(error, AppInvalidError)
    assert error.code == "APP_INVALID"
    assert error.details == ["disk_quota zero_or_less"]


# ---------------------------------------------------------------------------
# Quota arithmetic
# ---------------------------------------------------------------------------

def test_memory_within_limits():
    limits = QuotaLimits(memory_limit=2048)
    assert memory_violations(512, 2, limits, Usage(1024, 1), limits, Usage(1024, 1)) == []


def test_memory_over_space_and_org_limits():
    space = QuotaLimits(memory_limit=1024, instance_memory_limit=256)
    org = QuotaLimits(memory_limit=1024, instance_memory_limit=256)
    kinds = memory_violations(512, 3, space, Usage(), org, Usage())
    assert set(kinds) == {
        MemoryPolicyViolation.SPACE_INSTANCE_MEMORY_LIMIT_EXCEEDED,
        MemoryPolicyViolation.SPACE_QUOTA_EXCEEDED,
        MemoryPolicyViolation.INSTANCE_MEMORY_LIMIT_EXCEEDED,
        MemoryPolicyViolation.ORG_QUOTA_EXCEEDED,
    }


def test_unlimited_instance_memory_and_missing_space_quota():
    org = QuotaLimits(memory_limit=4096)
    assert memory_violations(4096, 1, None, Usage(), org, Usage()) == []


def test_instance_limits():
    space = QuotaLimits(memory_limit=10240, app_instance_limit=4)
    org = QuotaLimits(memory_limit=10240, app_instance_limit=10)
    assert instance_limit_violations(2, space, Usage(0, 2), org, Usage(0, 2)) == []
    assert instance_limit_violations(3, space, Usage(0, 2), org, Usage(0, 8)) == [
        "space_app_instance_limit_exceeded",
        "app_instance_limit_exceeded",
    ]
