"""
GCP Crossplane role checker.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import google.auth
from google.auth.exceptions import DefaultCredentialsError

from preflight.checkers.base import BaseRoleChecker
from preflight.checkers.gcp_collector import RemotePermissionCollector
from preflight.config import CheckOptions, CloudProvider, EnvConfig
from preflight.permissions import GCP_EXPECTED_PERMISSIONS, validate_permissions

logger = logging.getLogger(__name__)

ROLE_PREFIX = "uxp_provider"


class GCPRoleChecker(BaseRoleChecker):
    """
    Checks the GCP custom role bound to the Crossplane provider.

    Permissions are collected remotely by ``RemotePermissionCollector``
    and validated as a flat set.
    """

    cloud_provider = CloudProvider.GCP

    def __init__(
        self,
        config: EnvConfig,
        options: CheckOptions | None = None,
        collector: RemotePermissionCollector | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        super().__init__(config, options)
        self._collector = collector
        self._cancel_event = cancel_event

    @property
    def role_name(self) -> str:
        return f"{ROLE_PREFIX}*"

    @property
    def project_id(self) -> str:
        """
        Get the GCP project ID.

        Taken from configuration, falling back to the project of the
        application default credentials. Empty when neither is known, in
        which case the collector pod uses its own gcloud default.
        """
        if self.config.cloud.gcp and self.config.cloud.gcp.project_id:
            return self.config.cloud.gcp.project_id
        try:
            _, project = google.auth.default()
        except DefaultCredentialsError as e:
            logger.debug(f"No application default credentials: {e}")
            return ""
        return project or ""

    def _get_collector(self) -> Any:
        if self._collector is None:
            self._collector = RemotePermissionCollector(
                options=self.options,
                project_id=self.project_id,
                cancel_event=self._cancel_event,
            )
        return self._collector

    def check(self) -> None:
        """
        Collect the role's permissions and validate them.

        Raises:
            RemoteJobError: If the permissions could not be collected
            DuplicatePermissionError: If a permission is listed twice
            RoleMissingPermissionsError: If required permissions are missing
        """
        permissions = self._get_collector().collect()
        logger.info(f"Collected {len(permissions)} permissions from the {ROLE_PREFIX} role")
        validate_permissions(GCP_EXPECTED_PERMISSIONS, permissions)
