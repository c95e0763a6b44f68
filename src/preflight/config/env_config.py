"""
Environment configuration for Preflight.

The installer describes the target environment in an ``EnvConfig``
document, usually one document of a multi-document YAML manifest.
``CheckOptions`` holds the knobs that control how the checks run.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any

import yaml

from preflight.errors import ConfigurationError, UnsupportedCloudError
from preflight.policy.placeholders import PlaceholderContext

ENV_CONFIG_KIND = "EnvConfig"


class CloudProvider(Enum):
    """Supported cloud providers."""

    AWS = "aws"
    AZURE = "azure"
    GCP = "gcp"


def _require(data: dict[str, Any], key: str, where: str) -> Any:
    value = data.get(key)
    if value in (None, ""):
        raise ConfigurationError(f"missing required key {where}.{key}")
    return value


def _strip_scheme(url: str) -> str:
    for scheme in ("https://", "http://"):
        if url.startswith(scheme):
            return url[len(scheme):]
    return url


@dataclass
class AWSSpec:
    """AWS section of cloudSpec."""

    account_id: str
    oidc_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"accountID": self.account_id, "oidcUrl": self.oidc_url}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AWSSpec:
        """Create from dictionary."""
        return cls(
            account_id=str(_require(data, "accountID", "spec.cloudSpec.aws")),
            oidc_url=data.get("oidcUrl", ""),
        )


@dataclass
class AzureSpec:
    """Azure section of cloudSpec."""

    subscription_id: str
    resource_group: str
    client_id: str = ""
    tenant_id: str = ""
    oidc_url: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "subscriptionID": self.subscription_id,
            "resourceGroup": self.resource_group,
            "clientID": self.client_id,
            "tenantID": self.tenant_id,
            "oidcUrl": self.oidc_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AzureSpec:
        """Create from dictionary."""
        return cls(
            subscription_id=_require(data, "subscriptionID", "spec.cloudSpec.azure"),
            resource_group=_require(data, "resourceGroup", "spec.cloudSpec.azure"),
            client_id=data.get("clientID", ""),
            tenant_id=data.get("tenantID", ""),
            oidc_url=data.get("oidcUrl", ""),
        )


@dataclass
class GCPSpec:
    """GCP section of cloudSpec."""

    project_id: str = ""
    project_number: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"projectID": self.project_id, "projectNumber": self.project_number}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GCPSpec:
        """Create from dictionary."""
        return cls(
            project_id=data.get("projectID", ""),
            project_number=str(data.get("projectNumber", "")),
        )


@dataclass
class CloudSpec:
    """Cloud provider settings of the environment (cloudSpec)."""

    provider: CloudProvider
    cloud_zone: str = ""
    aws: AWSSpec | None = None
    azure: AzureSpec | None = None
    gcp: GCPSpec | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {
            "provider": self.provider.value,
            "cloudZone": self.cloud_zone,
        }
        if self.aws:
            data["aws"] = self.aws.to_dict()
        if self.azure:
            data["azure"] = self.azure.to_dict()
        if self.gcp:
            data["gcp"] = self.gcp.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CloudSpec:
        """Create from dictionary."""
        provider_name = _require(data, "provider", "spec.cloudSpec")
        try:
            provider = CloudProvider(provider_name)
        except ValueError as e:
            raise UnsupportedCloudError(provider_name) from e

        spec = cls(provider=provider, cloud_zone=data.get("cloudZone", ""))
        if "aws" in data:
            spec.aws = AWSSpec.from_dict(data["aws"] or {})
        if "azure" in data:
            spec.azure = AzureSpec.from_dict(data["azure"] or {})
        if "gcp" in data:
            spec.gcp = GCPSpec.from_dict(data["gcp"] or {})

        # The section for the selected provider is mandatory.
        if getattr(spec, provider.value) is None:
            if provider == CloudProvider.GCP:
                spec.gcp = GCPSpec()
            else:
                raise ConfigurationError(
                    f"missing required key spec.cloudSpec.{provider.value}"
                )
        return spec


@dataclass
class EnvConfig:
    """
    Environment configuration consumed by the role checkers.

    Attributes:
        cluster_name: Name of the cluster being installed
        cloud: Cloud provider settings
        name: Metadata name of the document
        install_id: Installation identifier
        version: Product version being installed
    """

    cluster_name: str
    cloud: CloudSpec
    name: str = ""
    install_id: str = ""
    version: str = ""

    @property
    def provider(self) -> CloudProvider:
        """Get the configured cloud provider."""
        return self.cloud.provider

    @property
    def oidc_id(self) -> str:
        """OIDC issuer without its URL scheme, as used in IAM ARNs."""
        if self.provider == CloudProvider.AWS and self.cloud.aws:
            return _strip_scheme(self.cloud.aws.oidc_url)
        if self.provider == CloudProvider.AZURE and self.cloud.azure:
            return _strip_scheme(self.cloud.azure.oidc_url)
        return ""

    def placeholder_context(self) -> PlaceholderContext:
        """Build the placeholder context for baseline templates."""
        return PlaceholderContext(
            cluster_name=self.cluster_name,
            account_id=self.cloud.aws.account_id if self.cloud.aws else "",
            oidc_id=self.oidc_id,
            project_id=self.cloud.gcp.project_id if self.cloud.gcp else "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary in manifest shape."""
        return {
            "kind": ENV_CONFIG_KIND,
            "metadata": {"name": self.name},
            "spec": {
                "clusterName": self.cluster_name,
                "installID": self.install_id,
                "version": self.version,
                "cloudSpec": self.cloud.to_dict(),
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnvConfig:
        """Create from a decoded EnvConfig document."""
        spec = data.get("spec")
        if not isinstance(spec, dict):
            raise ConfigurationError("missing required key spec")

        cloud_spec = spec.get("cloudSpec")
        if not isinstance(cloud_spec, dict):
            raise ConfigurationError("missing required key spec.cloudSpec")

        metadata = data.get("metadata") or {}
        return cls(
            cluster_name=_require(spec, "clusterName", "spec"),
            cloud=CloudSpec.from_dict(cloud_spec),
            name=metadata.get("name", data.get("name", "")),
            install_id=spec.get("installID", ""),
            version=str(spec.get("version", "")),
        )

    @classmethod
    def from_yaml(cls, text: str) -> EnvConfig:
        """
        Create from YAML text.

        The text may hold several documents; the first one whose kind is
        EnvConfig is used.
        """
        try:
            documents = list(yaml.safe_load_all(text))
        except yaml.YAMLError as e:
            raise ConfigurationError(f"invalid YAML: {e}") from e

        for document in documents:
            if isinstance(document, dict) and document.get("kind") == ENV_CONFIG_KIND:
                return cls.from_dict(document)

        raise ConfigurationError("no environment configuration kind found in the YAML file")

    @classmethod
    def from_file(cls, path: str) -> EnvConfig:
        """Load configuration from a YAML or JSON file."""
        path = os.path.expanduser(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise ConfigurationError(f"cannot read configuration file {path}: {e}") from e

        if path.endswith(".json"):
            try:
                return cls.from_dict(json.loads(text))
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"invalid JSON: {e}") from e
        return cls.from_yaml(text)


@dataclass
class CheckOptions:
    """
    Options controlling how role checks run.

    Attributes:
        namespace: Namespace of the collector pod
        gcp_service_account: Service account the collector pod runs as
        collector_image: Container image for the collector pod
        poll_interval_seconds: Pod phase polling interval
        timeout_seconds: Maximum wait for the collector pod (None waits forever)
        kubeconfig: Path to kubeconfig file
        kube_context: Kubernetes context to use
        in_cluster: Use in-cluster Kubernetes configuration
        aws_profile: AWS named profile
        aws_region: AWS region for the IAM client
    """

    namespace: str = "crossplane"
    gcp_service_account: str = "gcp-provider-sa"
    collector_image: str = "google/cloud-sdk:latest"
    poll_interval_seconds: float = 1.0
    timeout_seconds: float | None = None
    kubeconfig: str | None = None
    kube_context: str | None = None
    in_cluster: bool = False
    aws_profile: str | None = None
    aws_region: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "namespace": self.namespace,
            "gcp_service_account": self.gcp_service_account,
            "collector_image": self.collector_image,
            "poll_interval_seconds": self.poll_interval_seconds,
            "timeout_seconds": self.timeout_seconds,
            "kubeconfig": self.kubeconfig,
            "kube_context": self.kube_context,
            "in_cluster": self.in_cluster,
            "aws_profile": self.aws_profile,
            "aws_region": self.aws_region,
        }


def _env_float(name: str) -> float | None:
    value = os.getenv(name)
    if not value:
        return None
    try:
        return float(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e


def load_options_from_env() -> CheckOptions:
    """
    Load check options from environment variables.

    Environment variables:
        PREFLIGHT_NAMESPACE: Namespace of the collector pod
        PREFLIGHT_GCP_SERVICE_ACCOUNT: Service account for the collector pod
        PREFLIGHT_COLLECTOR_IMAGE: Collector container image
        PREFLIGHT_POLL_INTERVAL: Pod polling interval in seconds
        PREFLIGHT_TIMEOUT: Collector timeout in seconds
        PREFLIGHT_IN_CLUSTER: Use in-cluster Kubernetes config ("true"/"false")
        KUBECONFIG: Path to kubeconfig file
        AWS_PROFILE: AWS named profile
        AWS_REGION: AWS region

    Returns:
        CheckOptions instance
    """
    options = CheckOptions()

    options.namespace = os.getenv("PREFLIGHT_NAMESPACE", options.namespace)
    options.gcp_service_account = os.getenv(
        "PREFLIGHT_GCP_SERVICE_ACCOUNT", options.gcp_service_account
    )
    options.collector_image = os.getenv(
        "PREFLIGHT_COLLECTOR_IMAGE", options.collector_image
    )

    interval = _env_float("PREFLIGHT_POLL_INTERVAL")
    if interval is not None:
        options.poll_interval_seconds = interval
    options.timeout_seconds = _env_float("PREFLIGHT_TIMEOUT")

    options.in_cluster = os.getenv("PREFLIGHT_IN_CLUSTER", "false").lower() == "true"
    options.kubeconfig = os.getenv("KUBECONFIG") or None
    options.aws_profile = os.getenv("AWS_PROFILE") or None
    options.aws_region = os.getenv("AWS_REGION") or None

    return options
