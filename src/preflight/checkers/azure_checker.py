"""
Azure Crossplane role checker.
"""

from __future__ import annotations

import logging
from typing import Any

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.identity import DefaultAzureCredential
from azure.mgmt.authorization import AuthorizationManagementClient

from preflight.checkers.base import BaseRoleChecker
from preflight.checkers.naming import azure_role_name, azure_scope
from preflight.config import CheckOptions, CloudProvider, EnvConfig
from preflight.errors import (
    AmbiguousRoleError,
    ConfigurationError,
    DiscoveryError,
    RoleNotFoundError,
)
from preflight.permissions import AZURE_EXPECTED_PERMISSIONS, validate_permissions

logger = logging.getLogger(__name__)


class AzureRoleChecker(BaseRoleChecker):
    """
    Checks the Azure custom role definition of the Crossplane provider.

    The role is looked up by name on the resource group scope; its
    permission actions are validated as a flat set.
    """

    cloud_provider = CloudProvider.AZURE

    def __init__(
        self,
        config: EnvConfig,
        options: CheckOptions | None = None,
        credential: Any | None = None,
        client: Any | None = None,
    ) -> None:
        """
        Initialize the Azure role checker.

        Args:
            config: Environment configuration
            options: Check options
            credential: Optional Azure credential object
            client: Optional AuthorizationManagementClient
        """
        super().__init__(config, options)
        if config.cloud.azure is None:
            raise ConfigurationError("missing required key spec.cloudSpec.azure")
        self._credential = credential
        self._client = client

    @property
    def role_name(self) -> str:
        return azure_role_name(self.config.cluster_name)

    @property
    def scope(self) -> str:
        """Get the scope the role is defined on."""
        azure = self.config.cloud.azure
        return azure_scope(azure.subscription_id, azure.resource_group)

    def _get_authorization_client(self) -> Any:
        """Get or create the Authorization Management client."""
        if self._client is None:
            if self._credential is None:
                self._credential = DefaultAzureCredential()
            self._client = AuthorizationManagementClient(
                credential=self._credential,
                subscription_id=self.config.cloud.azure.subscription_id,
            )
        return self._client

    def get_role_permissions(self) -> list[str]:
        """
        Get the actions granted by the Crossplane role definition.

        Raises:
            RoleNotFoundError: If no role definition has the expected name
            AmbiguousRoleError: If several role definitions have it
            DiscoveryError: If listing role definitions fails for another reason
        """
        client = self._get_authorization_client()
        try:
            definitions = [
                definition
                for definition in client.role_definitions.list(
                    self.scope, filter=f"roleName eq '{self.role_name}'"
                )
                if definition.role_name == self.role_name
            ]
        except HttpResponseError as e:
            detail = e.message or str(e)
            if isinstance(e, ResourceNotFoundError) or e.status_code == 404:
                raise RoleNotFoundError(self.role_name, detail) from e
            raise DiscoveryError(
                f"cannot list role definitions on {self.scope}: {detail}"
            ) from e

        if not definitions:
            raise RoleNotFoundError(self.role_name)
        if len(definitions) > 1:
            raise AmbiguousRoleError(self.role_name, len(definitions))

        definition = definitions[0]
        logger.debug(f"Found role definition {definition.id}")

        actions: list[str] = []
        for permission in definition.permissions or []:
            actions.extend(permission.actions or [])
        return actions

    def check(self) -> None:
        """
        Validate the role's actions against the expected Azure permissions.

        Raises:
            DuplicatePermissionError: If an action is listed twice
            RoleMissingPermissionsError: If required actions are missing
        """
        logger.info(f"Checking role definition {self.role_name} on {self.scope}")
        validate_permissions(AZURE_EXPECTED_PERMISSIONS, self.get_role_permissions())
