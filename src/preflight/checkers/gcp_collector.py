"""
Remote permission collector for GCP.

The Crossplane provider's GCP identity is only reachable through
workload identity, so its custom role is read from inside the cluster:
a short-lived pod runs under the provider's service account, prints the
role's permissions as one ';'-joined line, and is deleted afterwards.
"""

from __future__ import annotations

import threading
import time
from importlib import resources
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from preflight.config import CheckOptions
from preflight.errors import (
    JobCancelledError,
    JobTimeoutError,
    RemoteJobFailedError,
    UnexpectedJobOutputError,
)
from preflight.observability import get_logger

logger = get_logger(__name__)

POD_NAME = "gcp-crossplane-role-checker"
SCRIPT_NAME = "gcp_role_permissions.sh"
PERMISSION_SEPARATOR = ";"

PHASE_SUCCEEDED = "Succeeded"
PHASE_FAILED = "Failed"


def load_script() -> str:
    """Get the collector shell script shipped with the package."""
    return (
        resources.files("preflight.checkers")
        .joinpath("scripts")
        .joinpath(SCRIPT_NAME)
        .read_text(encoding="utf-8")
    )


def log_lines(logs: str) -> list[str]:
    """Split pod logs into stripped, non-blank lines."""
    return [line.strip() for line in logs.splitlines() if line.strip()]


class RemotePermissionCollector:
    """
    Collects the GCP custom role permissions through a Kubernetes pod.

    The pod name is fixed, so a stale pod left by an interrupted run is
    deleted before a new one is created.
    """

    def __init__(
        self,
        options: CheckOptions | None = None,
        project_id: str = "",
        core_v1: Any | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """
        Initialize the collector.

        Args:
            options: Check options (namespace, service account, image, polling)
            project_id: GCP project passed to the script; empty uses gcloud's default
            core_v1: Optional kubernetes CoreV1Api
            cancel_event: Event that aborts waiting when set
        """
        self.options = options or CheckOptions()
        self.project_id = project_id
        self.cancel_event = cancel_event
        self._core_v1 = core_v1

    @property
    def namespace(self) -> str:
        return self.options.namespace

    def _get_core_v1(self) -> Any:
        """Initialize the Kubernetes client."""
        if self._core_v1 is None:
            if self.options.in_cluster:
                config.load_incluster_config()
            else:
                config.load_kube_config(
                    config_file=self.options.kubeconfig,
                    context=self.options.kube_context,
                )
            self._core_v1 = client.CoreV1Api()
        return self._core_v1

    def build_pod(self) -> client.V1Pod:
        """Build the collector pod manifest."""
        env = []
        if self.project_id:
            env.append(client.V1EnvVar(name="PROJECT_ID", value=self.project_id))

        return client.V1Pod(
            api_version="v1",
            kind="Pod",
            metadata=client.V1ObjectMeta(name=POD_NAME, namespace=self.namespace),
            spec=client.V1PodSpec(
                service_account_name=self.options.gcp_service_account,
                restart_policy="Never",
                containers=[
                    client.V1Container(
                        name=POD_NAME,
                        image=self.options.collector_image,
                        command=["/bin/bash", "-c", load_script()],
                        env=env or None,
                    )
                ],
            ),
        )

    def _sleep(self) -> None:
        """Wait one poll interval, raising if cancelled meanwhile."""
        if self.cancel_event is None:
            time.sleep(self.options.poll_interval_seconds)
        elif self.cancel_event.wait(self.options.poll_interval_seconds):
            raise JobCancelledError(POD_NAME)

    def _check_deadline(self, deadline: float | None) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise JobCancelledError(POD_NAME)
        if deadline is not None and time.monotonic() >= deadline:
            raise JobTimeoutError(POD_NAME, self.options.timeout_seconds)

    def _delete_pod(self) -> bool:
        """Delete the collector pod. Returns False if it did not exist."""
        core_v1 = self._get_core_v1()
        try:
            core_v1.delete_namespaced_pod(name=POD_NAME, namespace=self.namespace)
        except ApiException as e:
            if e.status == 404:
                return False
            raise
        logger.pod_deleted(self.namespace, POD_NAME)
        return True

    def _wait_until_gone(self, deadline: float | None) -> None:
        core_v1 = self._get_core_v1()
        while True:
            try:
                core_v1.read_namespaced_pod(name=POD_NAME, namespace=self.namespace)
            except ApiException as e:
                if e.status == 404:
                    return
                raise
            self._check_deadline(deadline)
            self._sleep()

    def wait_for_completion(self, deadline: float | None = None) -> str:
        """
        Poll the pod phase until it is Succeeded or Failed.

        Args:
            deadline: time.monotonic() value after which waiting stops

        Returns:
            The terminal phase

        Raises:
            JobTimeoutError: If the deadline passes first
            JobCancelledError: If the cancel event is set first
        """
        core_v1 = self._get_core_v1()
        while True:
            pod = core_v1.read_namespaced_pod(name=POD_NAME, namespace=self.namespace)
            phase = pod.status.phase if pod.status else None
            if phase in (PHASE_SUCCEEDED, PHASE_FAILED):
                logger.debug(f"Pod {self.namespace}/{POD_NAME} finished: {phase}")
                return phase
            self._check_deadline(deadline)
            self._sleep()

    def collect(self) -> list[str]:
        """
        Run the collector pod and return the permissions it printed.

        Returns:
            Permission names in the order the role lists them

        Raises:
            UnexpectedJobOutputError: If the pod did not print exactly one line
            RemoteJobFailedError: If the pod failed, carrying its output line
            JobTimeoutError: If the pod did not finish in time
            JobCancelledError: If waiting was cancelled
        """
        core_v1 = self._get_core_v1()
        deadline = None
        if self.options.timeout_seconds is not None:
            deadline = time.monotonic() + self.options.timeout_seconds

        if self._delete_pod():
            self._wait_until_gone(deadline)

        core_v1.create_namespaced_pod(namespace=self.namespace, body=self.build_pod())
        logger.pod_created(self.namespace, POD_NAME)

        succeeded = False
        try:
            phase = self.wait_for_completion(deadline)
            logs = core_v1.read_namespaced_pod_log(name=POD_NAME, namespace=self.namespace)

            lines = log_lines(logs or "")
            if len(lines) != 1:
                raise UnexpectedJobOutputError(lines)

            if phase == PHASE_FAILED:
                raise RemoteJobFailedError(lines[0])

            permissions = [p for p in lines[0].split(PERMISSION_SEPARATOR) if p]
            succeeded = True
            return permissions
        finally:
            try:
                self._delete_pod()
            except ApiException as e:
                # Only surface cleanup failures when nothing else is in flight.
                if succeeded:
                    raise
                logger.warning(f"Failed to delete pod {self.namespace}/{POD_NAME}: {e.reason}")
