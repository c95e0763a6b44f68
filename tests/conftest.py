"""
Pytest configuration and fixtures for Preflight tests.

This module provides common fixtures used across the unit tests.
"""

from __future__ import annotations

from typing import Any

import pytest

from preflight.config import (
    AWSSpec,
    AzureSpec,
    CloudProvider,
    CloudSpec,
    EnvConfig,
    GCPSpec,
)
from preflight.policy import PlaceholderContext


ACCOUNT_ID = "1234567890"
OIDC_ID = "oidc.example.com/id/abc"
CLUSTER_NAME = "test-cluster"


# Placeholder fixtures


@pytest.fixture
def trust_context() -> PlaceholderContext:
    """Return a placeholder context for the OIDC trust scenario."""
    return PlaceholderContext(
        cluster_name=CLUSTER_NAME,
        account_id=ACCOUNT_ID,
        oidc_id=OIDC_ID,
    )


@pytest.fixture
def resolved_trust_policy() -> dict[str, Any]:
    """Return the trust policy a correctly provisioned role carries."""
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {
                    "Federated": f"arn:aws:iam::{ACCOUNT_ID}:oidc-provider/{OIDC_ID}",
                },
                "Action": "sts:AssumeRoleWithWebIdentity",
                "Condition": {
                    "StringLike": {
                        f"{OIDC_ID}:sub": "system:serviceaccount:crossplane:aws-*",
                    },
                },
            },
        ],
    }


# Configuration fixtures


@pytest.fixture
def aws_env_config() -> EnvConfig:
    """Return an EnvConfig for an AWS installation."""
    return EnvConfig(
        cluster_name=CLUSTER_NAME,
        cloud=CloudSpec(
            provider=CloudProvider.AWS,
            aws=AWSSpec(account_id=ACCOUNT_ID, oidc_url=f"https://{OIDC_ID}"),
        ),
    )


@pytest.fixture
def azure_env_config() -> EnvConfig:
    """Return an EnvConfig for an Azure installation."""
    return EnvConfig(
        cluster_name=CLUSTER_NAME,
        cloud=CloudSpec(
            provider=CloudProvider.AZURE,
            azure=AzureSpec(subscription_id="sub-123", resource_group="rg-test"),
        ),
    )


@pytest.fixture
def gcp_env_config() -> EnvConfig:
    """Return an EnvConfig for a GCP installation."""
    return EnvConfig(
        cluster_name=CLUSTER_NAME,
        cloud=CloudSpec(
            provider=CloudProvider.GCP,
            gcp=GCPSpec(project_id="test-project", project_number="42"),
        ),
    )


@pytest.fixture
def env_config_yaml() -> str:
    """Return a multi-document manifest holding an AWS EnvConfig."""
    return f"""\
apiVersion: v1
kind: Namespace
metadata:
  name: crossplane
---
apiVersion: installer/v1
kind: EnvConfig
metadata:
  name: test-env
spec:
  clusterName: {CLUSTER_NAME}
  installID: install-1
  version: "1.2.3"
  cloudSpec:
    provider: aws
    cloudZone: us-east-1
    aws:
      accountID: "{ACCOUNT_ID}"
      oidcUrl: https://{OIDC_ID}
"""
