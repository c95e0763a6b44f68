"""
Unit tests for Preflight configuration.
"""

from __future__ import annotations

import json

import pytest

from preflight.config import (
    CheckOptions,
    CloudProvider,
    EnvConfig,
    load_options_from_env,
)
from preflight.errors import ConfigurationError, UnsupportedCloudError


class TestEnvConfigFromYaml:
    """Tests for EnvConfig.from_yaml."""

    def test_selects_env_config_document(self, env_config_yaml):
        """The EnvConfig document is picked out of a multi-document stream."""
        config = EnvConfig.from_yaml(env_config_yaml)

        assert config.name == "test-env"
        assert config.cluster_name == "test-cluster"
        assert config.install_id == "install-1"
        assert config.version == "1.2.3"
        assert config.provider == CloudProvider.AWS
        assert config.cloud.cloud_zone == "us-east-1"
        assert config.cloud.aws.account_id == "1234567890"

    def test_no_env_config_document(self):
        """A stream without EnvConfig raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            EnvConfig.from_yaml("kind: Namespace\n---\nkind: Secret\n")

    def test_invalid_yaml(self):
        """Unparseable YAML raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            EnvConfig.from_yaml("kind: [unclosed")

    def test_missing_cluster_name(self):
        """A missing clusterName is reported with its key path."""
        text = "kind: EnvConfig\nspec:\n  cloudSpec:\n    provider: gcp\n"

        with pytest.raises(ConfigurationError, match="spec.clusterName"):
            EnvConfig.from_yaml(text)

    def test_unsupported_provider(self):
        """An unknown provider raises UnsupportedCloudError."""
        text = "kind: EnvConfig\nspec:\n  clusterName: c\n  cloudSpec:\n    provider: oci\n"

        with pytest.raises(UnsupportedCloudError):
            EnvConfig.from_yaml(text)

    def test_missing_provider_section(self):
        """The section for the selected provider is required."""
        text = "kind: EnvConfig\nspec:\n  clusterName: c\n  cloudSpec:\n    provider: azure\n"

        with pytest.raises(ConfigurationError, match="spec.cloudSpec.azure"):
            EnvConfig.from_yaml(text)

    def test_gcp_section_optional(self):
        """GCP works without its section; the project comes from elsewhere."""
        text = "kind: EnvConfig\nspec:\n  clusterName: c\n  cloudSpec:\n    provider: gcp\n"

        config = EnvConfig.from_yaml(text)

        assert config.cloud.gcp.project_id == ""


class TestEnvConfig:
    """Tests for EnvConfig helpers."""

    def test_oidc_id_strips_scheme(self, aws_env_config):
        """The OIDC id is the issuer URL without its scheme."""
        assert aws_env_config.oidc_id == "oidc.example.com/id/abc"

    def test_placeholder_context(self, aws_env_config):
        """The placeholder context carries cluster, account and OIDC id."""
        context = aws_env_config.placeholder_context()

        assert context.cluster_name == "test-cluster"
        assert context.account_id == "1234567890"
        assert context.oidc_id == "oidc.example.com/id/abc"

    def test_to_dict_round_trip(self, azure_env_config):
        """to_dict output is accepted by from_dict."""
        restored = EnvConfig.from_dict(azure_env_config.to_dict())

        assert restored.cloud.azure.subscription_id == "sub-123"
        assert restored.cloud.azure.resource_group == "rg-test"

    def test_from_file_yaml(self, tmp_path, env_config_yaml):
        """YAML files are loaded."""
        path = tmp_path / "env.yaml"
        path.write_text(env_config_yaml)

        assert EnvConfig.from_file(str(path)).cluster_name == "test-cluster"

    def test_from_file_json(self, tmp_path, gcp_env_config):
        """JSON files are loaded."""
        path = tmp_path / "env.json"
        path.write_text(json.dumps(gcp_env_config.to_dict()))

        assert EnvConfig.from_file(str(path)).cloud.gcp.project_id == "test-project"

    def test_from_file_missing(self, tmp_path):
        """A missing file raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            EnvConfig.from_file(str(tmp_path / "absent.yaml"))


class TestCheckOptions:
    """Tests for CheckOptions and environment loading."""

    def test_defaults(self):
        """Defaults match the collector pod conventions."""
        options = CheckOptions()

        assert options.namespace == "crossplane"
        assert options.gcp_service_account == "gcp-provider-sa"
        assert options.collector_image == "google/cloud-sdk:latest"
        assert options.poll_interval_seconds == 1.0
        assert options.timeout_seconds is None

    def test_load_from_env(self, monkeypatch):
        """PREFLIGHT_* variables override defaults."""
        monkeypatch.setenv("PREFLIGHT_NAMESPACE", "infra")
        monkeypatch.setenv("PREFLIGHT_TIMEOUT", "30")
        monkeypatch.setenv("PREFLIGHT_POLL_INTERVAL", "0.5")
        monkeypatch.setenv("PREFLIGHT_IN_CLUSTER", "true")
        monkeypatch.setenv("AWS_REGION", "eu-west-1")

        options = load_options_from_env()

        assert options.namespace == "infra"
        assert options.timeout_seconds == 30.0
        assert options.poll_interval_seconds == 0.5
        assert options.in_cluster is True
        assert options.aws_region == "eu-west-1"

    def test_invalid_number(self, monkeypatch):
        """Non-numeric timeouts are rejected."""
        monkeypatch.setenv("PREFLIGHT_TIMEOUT", "soon")

        with pytest.raises(ConfigurationError):
            load_options_from_env()
