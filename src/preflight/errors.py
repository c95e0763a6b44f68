"""
Exceptions for Preflight role checks.

Every failure raised by a checker derives from PreflightError so callers
can catch the whole family while still telling discovery problems,
decode problems and genuine permission deficits apart.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from preflight.policy.diff import Change


class PreflightError(Exception):
    """Base exception for preflight errors."""

    pass


class ConfigurationError(PreflightError):
    """Raised when the environment configuration is invalid."""

    pass


class UnsupportedCloudError(PreflightError):
    """Raised when the configured cloud provider has no checker."""

    def __init__(self, cloud: str):
        self.cloud = cloud
        super().__init__(f"unsupported cloud type: {cloud}")


# Discovery


class DiscoveryError(PreflightError):
    """Raised when a role, policy or job cannot be located."""

    pass


class RoleNotFoundError(DiscoveryError):
    """Raised when the role to check does not exist."""

    def __init__(self, role_name: str, detail: str = ""):
        self.role_name = role_name
        message = f"role not found: {role_name}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class AmbiguousRoleError(DiscoveryError):
    """Raised when more than one role matches the lookup."""

    def __init__(self, role_name: str, count: int):
        self.role_name = role_name
        self.count = count
        super().__init__(f"expected exactly one role named {role_name}, found {count}")


class PolicyNotFoundError(DiscoveryError):
    """Raised when a managed policy does not exist."""

    def __init__(self, policy_arn: str, detail: str = ""):
        self.policy_arn = policy_arn
        message = f"policy not found: {policy_arn}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class NoDefaultPolicyVersionError(DiscoveryError):
    """Raised when a managed policy has no default version."""

    def __init__(self, policy_arn: str):
        self.policy_arn = policy_arn
        super().__init__(f"no default policy version: {policy_arn}")


# Decoding


class PolicyDecodeError(PreflightError):
    """Raised when a policy document cannot be decoded."""

    def __init__(self, field_path: str, message: str):
        self.field_path = field_path
        self.message = message
        super().__init__(f"{field_path}: {message}" if field_path else message)


# Validation


class PermissionValidationError(PreflightError):
    """Base exception for roles that do not satisfy their baseline."""

    pass


class RoleMissingPermissionsError(PermissionValidationError):
    """
    Raised when a role lacks one or more required permissions.

    Subclasses that carry richer detail pass their own ``message``; the
    ``missing_permissions`` list is always what is reported as missing.
    """

    def __init__(self, missing_permissions: list[str], message: str | None = None):
        self.missing_permissions = list(missing_permissions)
        super().__init__(message or self._format_missing())

    def _format_missing(self) -> str:
        return f"role missing permissions: {', '.join(self.missing_permissions)}"

    def details(self) -> dict[str, Any]:
        """Get the structured payload reported alongside the message."""
        return {"missing_permissions": self.missing_permissions}


class PolicyMismatchError(RoleMissingPermissionsError):
    """
    Raised when a policy document falls short of its baseline.

    Carries the filtered changelog so the caller can print exactly which
    statement fields need remediation.
    """

    def __init__(
        self,
        document_name: str,
        sid: str | None,
        changelog: list[Change],
    ):
        self.document_name = document_name
        self.sid = sid
        self.changelog = list(changelog)
        super().__init__(
            [change.describe() for change in self.changelog], self._format()
        )

    def _format(self) -> str:
        where = self.document_name or "policy document"
        if self.sid is not None:
            where = f"{where}, statement {self.sid!r}"
        changes = "; ".join(change.describe() for change in self.changelog)
        return f"policy document mismatch ({where}): {changes}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "document": self.document_name,
            "sid": self.sid,
            "changelog": [change.to_dict() for change in self.changelog],
        }

    def details(self) -> dict[str, Any]:
        return self.to_dict()


class DuplicatePermissionError(PermissionValidationError):
    """Raised when a role definition lists the same permission twice."""

    def __init__(self, permission: str):
        self.permission = permission
        super().__init__(f"duplicate permission: {permission}")


# Remote collection


class RemoteJobError(PreflightError):
    """Base exception for the remote permission collector."""

    pass


class UnexpectedJobOutputError(RemoteJobError):
    """Raised when the collector pod does not print exactly one line."""

    def __init__(self, lines: list[str]):
        self.lines = list(lines)
        super().__init__(
            f"unexpected output from permission collector: expected 1 line, got {len(self.lines)}"
        )


class RemoteJobFailedError(RemoteJobError):
    """Raised with the collector's own message when its pod fails."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class JobTimeoutError(RemoteJobError):
    """Raised when the collector pod does not finish in time."""

    def __init__(self, pod_name: str, timeout: float):
        self.pod_name = pod_name
        self.timeout = timeout
        super().__init__(f"timed out after {timeout:g}s waiting for pod {pod_name}")


class JobCancelledError(RemoteJobError):
    """Raised when waiting for the collector pod is cancelled."""

    def __init__(self, pod_name: str):
        self.pod_name = pod_name
        super().__init__(f"cancelled while waiting for pod {pod_name}")
