"""
Crossplane role checkers for Preflight.

Provides one checker per cloud and ``create_checker`` to select the
right one for an environment configuration.
"""

from __future__ import annotations

from typing import Any

from preflight.checkers.aws_checker import AWSRoleChecker
from preflight.checkers.azure_checker import AzureRoleChecker
from preflight.checkers.base import BaseRoleChecker, RoleCheckResult
from preflight.checkers.gcp_checker import GCPRoleChecker
from preflight.checkers.gcp_collector import RemotePermissionCollector
from preflight.checkers.naming import (
    aws_policy_arn,
    azure_role_name,
    azure_scope,
    crossplane_role_name,
)
from preflight.config import CheckOptions, CloudProvider, EnvConfig
from preflight.errors import UnsupportedCloudError

CHECKERS: dict[CloudProvider, type[BaseRoleChecker]] = {
    CloudProvider.AWS: AWSRoleChecker,
    CloudProvider.AZURE: AzureRoleChecker,
    CloudProvider.GCP: GCPRoleChecker,
}


def create_checker(
    config: EnvConfig,
    options: CheckOptions | None = None,
    **kwargs: Any,
) -> BaseRoleChecker:
    """
    Create the role checker for the configured cloud.

    Args:
        config: Environment configuration
        options: Check options
        **kwargs: Passed to the checker (clients, sessions, collectors)

    Returns:
        Role checker instance

    Raises:
        UnsupportedCloudError: If no checker exists for the provider
    """
    checker_class = CHECKERS.get(config.provider)
    if checker_class is None:
        raise UnsupportedCloudError(str(config.provider.value))
    return checker_class(config, options, **kwargs)


__all__ = [
    "AWSRoleChecker",
    "AzureRoleChecker",
    "BaseRoleChecker",
    "CHECKERS",
    "GCPRoleChecker",
    "RemotePermissionCollector",
    "RoleCheckResult",
    "aws_policy_arn",
    "azure_role_name",
    "azure_scope",
    "create_checker",
    "crossplane_role_name",
]
