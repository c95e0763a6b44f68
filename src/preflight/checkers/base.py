"""
Base role checker framework for Preflight.

Every cloud has one checker that locates the Crossplane provider role
and validates it against the baseline. ``check()`` raises on the first
problem; ``run()`` wraps it into a ``RoleCheckResult`` for reporting.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from preflight.config import CheckOptions, CloudProvider, EnvConfig
from preflight.errors import PreflightError, RoleMissingPermissionsError
from preflight.observability import get_logger

logger = get_logger(__name__)


@dataclass
class RoleCheckResult:
    """
    Result from running a role checker.

    Attributes:
        cloud: Cloud provider name
        role_name: Role that was checked
        passed: Whether the role satisfies its baseline
        error: Error message when the check did not pass
        error_type: Exception class name when the check did not pass
        details: Structured failure details (missing permissions, changelog)
        started_at: When the check started
        duration_seconds: How long the check took
    """

    cloud: str
    role_name: str
    passed: bool
    error: str | None = None
    error_type: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "cloud": self.cloud,
            "role_name": self.role_name,
            "passed": self.passed,
            "error": self.error,
            "error_type": self.error_type,
            "details": self.details,
            "started_at": self.started_at.isoformat(),
            "duration_seconds": self.duration_seconds,
        }


class BaseRoleChecker(ABC):
    """
    Abstract base class for Crossplane role checkers.

    Subclasses set ``cloud_provider`` and implement ``role_name`` and
    ``check()``. Cloud SDK clients are created lazily so tests can inject
    mocks through the constructor.
    """

    cloud_provider: CloudProvider

    def __init__(self, config: EnvConfig, options: CheckOptions | None = None) -> None:
        self.config = config
        self.options = options or CheckOptions()

    @property
    @abstractmethod
    def role_name(self) -> str:
        """Name of the role being checked."""

    @abstractmethod
    def check(self) -> None:
        """
        Validate the role against its baseline.

        Raises:
            PreflightError: On any discovery, decode or validation failure
        """

    def run(self) -> RoleCheckResult:
        """
        Run the check and capture its outcome.

        Only ``PreflightError`` is captured; anything else propagates.

        Returns:
            RoleCheckResult describing the outcome
        """
        cloud = self.cloud_provider.value
        result = RoleCheckResult(cloud=cloud, role_name=self.role_name, passed=False)
        logger.set_context(cloud=cloud, role_name=self.role_name)
        logger.check_started(cloud, self.role_name)
        start_time = time.time()

        try:
            self.check()
            result.passed = True
        except PreflightError as e:
            result.error = str(e)
            result.error_type = type(e).__name__
            result.details = _error_details(e)
            logger.check_failed(cloud, self.role_name, str(e))
        finally:
            result.duration_seconds = time.time() - start_time
            logger.clear_context()

        if result.passed:
            logger.check_passed(cloud, self.role_name, result.duration_seconds)
        return result


def _error_details(error: PreflightError) -> dict[str, Any]:
    if isinstance(error, RoleMissingPermissionsError):
        return error.details()
    return {}
