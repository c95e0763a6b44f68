"""
Names and identifiers of the Crossplane provider role in each cloud.
"""

from __future__ import annotations


def crossplane_role_name(cluster_name: str) -> str:
    """Get the AWS IAM role name for the Crossplane provider."""
    return f"crossplane-provider-{cluster_name}"


def aws_policy_arn(account_id: str, cluster_name: str, suffix: str) -> str:
    """
    Get the ARN of a managed policy attached to the Crossplane role.

    Args:
        account_id: AWS account ID
        cluster_name: Cluster name
        suffix: Policy suffix (boundary, policy, redis)

    Returns:
        Managed policy ARN
    """
    role_name = crossplane_role_name(cluster_name)
    return f"arn:aws:iam::{account_id}:policy/web-identity/{cluster_name}/{role_name}-{suffix}"


def azure_role_name(cluster_name: str) -> str:
    """Get the Azure custom role name for the Crossplane provider."""
    return f"{cluster_name}-crossplane-provider"


def azure_scope(subscription_id: str, resource_group: str) -> str:
    """Get the Azure scope the Crossplane role is defined on."""
    return f"subscriptions/{subscription_id}/resourceGroups/{resource_group}"
