"""
Baseline policy templates for the AWS Crossplane role.

Templates are kept in raw IAM JSON shape and contain ``${...}``
placeholders. Do not hand them out directly; use the accessor functions,
which decode a fresh copy on every call.
"""

from __future__ import annotations

import copy
from typing import Any

from preflight.policy.document import DEFAULT_POLICY_VERSION, PolicyDocument

TRUST_POLICY_NAME = "trust"

ROLE_ARN_TEMPLATE = (
    "arn:aws:iam::${ACCOUNT_ID}:role/web-identity/${CLUSTER_NAME}/crossplane-provider-${CLUSTER_NAME}"
)
BOUNDARY_ARN_TEMPLATE = (
    "arn:aws:iam::${ACCOUNT_ID}:policy/web-identity/${CLUSTER_NAME}/crossplane-provider-${CLUSTER_NAME}-boundary"
)
MANAGED_ROLES_ARN_TEMPLATE = "arn:aws:iam::${ACCOUNT_ID}:role/web-identity/${CLUSTER_NAME}/crossplane/*"
MANAGED_POLICIES_ARN_TEMPLATE = "arn:aws:iam::${ACCOUNT_ID}:policy/web-identity/${CLUSTER_NAME}/crossplane/*"

ASSUME_ROLE_POLICY_TEMPLATE: dict[str, Any] = {
    "Version": DEFAULT_POLICY_VERSION,
    "Statement": [
        {
            "Effect": "Allow",
            "Principal": {
                "Federated": "arn:aws:iam::${ACCOUNT_ID}:oidc-provider/${OIDC_ID}",
            },
            "Action": "sts:AssumeRoleWithWebIdentity",
            "Condition": {
                "StringLike": {
                    "${OIDC_ID}:sub": "system:serviceaccount:crossplane:aws-*",
                },
            },
        },
    ],
}

BOUNDARY_POLICY_TEMPLATE: dict[str, Any] = {
    "Version": DEFAULT_POLICY_VERSION,
    "Statement": [
        {
            "Sid": "AllowAllActionsApartFromListed",
            "Effect": "Allow",
            "NotAction": [
                "support:*",
                "organizations:*",
                "iam:Upload*",
                "iam:Update*",
                "iam:Untag*",
                "iam:Tag*",
                "iam:Set*",
                "iam:Resync*",
                "iam:Reset*",
                "iam:Remove*",
                "iam:Put*",
                "iam:PassRole",
                "iam:ListVirtualMFA*",
                "iam:ListMFA*",
                "iam:GetOrganizationsAccessReport",
                "iam:GetAccountAuthorizationDetails",
                "iam:Generate*",
                "iam:Enable*",
                "iam:Detach*",
                "iam:Delete*",
                "iam:Deactivate*",
                "iam:Create*",
                "iam:Change*",
                "iam:Attach*",
                "iam:Add*",
                "cloudtrail:DeleteTrail",
            ],
            "Resource": "*",
        },
    ],
}

CROSSPLANE_POLICY_TEMPLATE: dict[str, Any] = {
    "Version": DEFAULT_POLICY_VERSION,
    "Statement": [
        {
            "Sid": "DenyAlteringOwnRole",
            "Effect": "Deny",
            "Action": [
                "iam:Update*",
                "iam:Put*",
                "iam:DetachRolePolicy",
                "iam:DeleteRolePolicy",
                "iam:AttachRolePolicy",
            ],
            "Resource": ROLE_ARN_TEMPLATE,
        },
        {
            "Sid": "DenyAlteringPermissionsBoundary",
            "Effect": "Deny",
            "Action": [
                "iam:SetDefaultPolicyVersion",
                "iam:DeletePolicyVersion",
                "iam:DeletePolicy",
                "iam:CreatePolicyVersion",
            ],
            "Resource": BOUNDARY_ARN_TEMPLATE,
        },
        {
            "Sid": "DenyDeletingAnyPermissionsBoundary",
            "Effect": "Deny",
            "Action": "iam:DeleteRolePermissionsBoundary",
            "Resource": "*",
        },
        {
            "Sid": "AllowCallSTSToGetCurrentIdentity",
            "Effect": "Allow",
            "Action": "sts:GetCallerIdentity",
            "Resource": "*",
        },
        {
            "Sid": "EnforcePermissionBoundaryOnSpecificIAMActions",
            "Effect": "Allow",
            "Action": [
                "iam:PutRolePolicy",
                "iam:PutRolePermissionsBoundary",
                "iam:DetachRolePolicy",
                "iam:DeleteRolePolicy",
                "iam:CreateRole",
                "iam:AttachRolePolicy",
            ],
            "Resource": MANAGED_ROLES_ARN_TEMPLATE,
            "Condition": {
                "StringEquals": {
                    "iam:PermissionsBoundary": BOUNDARY_ARN_TEMPLATE,
                },
            },
        },
        {
            "Sid": "AllowReadnListAllIAMRolesAndPolicies",
            "Effect": "Allow",
            "Action": [
                "iam:List*",
                "iam:GetRole*",
                "iam:GetPolicy*",
            ],
            "Resource": "*",
        },
        {
            "Sid": "AllowCertainIAMActionsWithManagedRoles",
            "Effect": "Allow",
            "Action": [
                "iam:UpdateRoleDescription",
                "iam:UpdateRole",
                "iam:UpdateAssumeRolePolicy",
                "iam:UntagRole",
                "iam:TagRole",
                "iam:ListAttachedRolePolicies",
                "iam:DeleteRole",
            ],
            "Resource": MANAGED_ROLES_ARN_TEMPLATE,
        },
        {
            "Sid": "AllowCertainIAMActionsWithManagedPolicies",
            "Effect": "Allow",
            "Action": [
                "iam:UntagPolicy",
                "iam:TagPolicy",
                "iam:DeletePolicy*",
                "iam:CreatePolicy*",
            ],
            "Resource": MANAGED_POLICIES_ARN_TEMPLATE,
        },
        {
            "Sid": "AllowS3BucketCreation",
            "Effect": "Allow",
            "Action": [
                "s3:ReplicateDelete",
                "s3:PutStorageLensConfiguration",
                "s3:PutReplicationConfiguration",
                "s3:PutLifecycleConfiguration",
                "s3:PutIntelligentTieringConfiguration",
                "s3:PutEncryptionConfiguration",
                "s3:PutBucket*",
                "s3:PutAccelerateConfiguration",
                "s3:List*",
                "s3:Get*",
                "s3:DeleteStorageLensConfiguration",
                "s3:CreateBucket",
            ],
            "Resource": "*",
        },
        {
            "Sid": "AllowDynamoDB",
            "Effect": "Allow",
            "Action": [
                "dynamodb:UpdateTimeToLive",
                "dynamodb:UpdateTable",
                "dynamodb:UpdateGlobalTableSettings",
                "dynamodb:UpdateGlobalTable",
                "dynamodb:UpdateContinuousBackups",
                "dynamodb:UntagResource",
                "dynamodb:TagResource",
                "dynamodb:ListTagsOfResource",
                "dynamodb:ListTables",
                "dynamodb:ListStreams",
                "dynamodb:ListImports",
                "dynamodb:ListGlobalTables",
                "dynamodb:ListExports",
                "dynamodb:ListContributorInsights",
                "dynamodb:ListBackups",
                "dynamodb:DescribeTimeToLive",
                "dynamodb:DescribeTable",
                "dynamodb:DescribeContinuousBackups",
                "dynamodb:DeleteTable",
                "dynamodb:CreateTable",
                "dynamodb:CreateGlobalTable",
            ],
            "Resource": "*",
        },
        {
            "Sid": "AllowSNS",
            "Effect": "Allow",
            "Action": [
                "sns:UntagResource",
                "sns:Unsubscribe",
                "sns:TagResource",
                "sns:Subscribe",
                "sns:SetTopicAttributes",
                "sns:SetSubscriptionAttributes",
                "sns:SetEndpointAttributes",
                "sns:ListTopics",
                "sns:ListTagsForResource",
                "sns:ListSubscriptionsByTopic",
                "sns:ListSubscriptions",
                "sns:ListSMSSandboxPhoneNumbers",
                "sns:ListPlatformApplications",
                "sns:ListOriginationNumbers",
                "sns:ListEndpointsByPlatformApplication",
                "sns:GetTopicAttributes",
                "sns:GetSubscriptionAttributes",
                "sns:GetEndpointAttributes",
                "sns:DeleteTopic",
                "sns:DeleteEndpoint",
                "sns:CreateTopic",
                "sns:ConfirmSubscription",
            ],
            "Resource": "*",
        },
        {
            "Sid": "AllowSQS",
            "Effect": "Allow",
            "Action": [
                "sqs:UntagQueue",
                "sqs:TagQueue",
                "sqs:SetQueueAttributes",
                "sqs:ReceiveMessage",
                "sqs:ListQueues",
                "sqs:ListQueueTags",
                "sqs:ListDeadLetterSourceQueues",
                "sqs:GetQueueUrl",
                "sqs:GetQueueAttributes",
                "sqs:DeleteQueue",
                "sqs:CreateQueue",
            ],
            "Resource": "*",
        },
        {
            "Sid": "AllowTagRestrictedDBCreate",
            "Effect": "Allow",
            "Action": "rds:Create*",
            "Resource": "*",
            "Condition": {
                "StringEquals": {
                    "aws:RequestTag/crossplane-managed": "true",
                },
            },
        },
        {
            "Sid": "AllowAllDBRead",
            "Effect": "Allow",
            "Action": "rds:Describe*",
            "Resource": "*",
        },
        {
            "Sid": "AllowTags",
            "Effect": "Allow",
            "Action": [
                "rds:RemoveTagsFromResource",
                "rds:ListTagsForResource",
                "rds:AddTagsToResource",
            ],
            "Resource": "*",
        },
        {
            "Sid": "AllowCrossplaneToModify",
            "Effect": "Allow",
            "Action": "rds:Modify*",
            "Resource": "*",
            "Condition": {
                "StringEquals": {
                    "aws:ResourceTag/crossplane-managed": "true",
                },
            },
        },
    ],
}

REDIS_POLICY_TEMPLATE: dict[str, Any] = {
    "Version": DEFAULT_POLICY_VERSION,
    "Statement": [
        {
            "Sid": "AllowEC2ForRedisInfrastructure",
            "Effect": "Allow",
            "Action": [
                "ec2:DescribeSecurityGroups",
                "ec2:DescribeSecurityGroupRules",
                "ec2:ModifySecurityGroupRules",
                "ec2:CreateSecurityGroup",
                "ec2:DeleteSecurityGroup",
                "ec2:AuthorizeSecurityGroupIngress",
                "ec2:AuthorizeSecurityGroupEgress",
                "ec2:RevokeSecurityGroupIngress",
                "ec2:RevokeSecurityGroupEgress",
                "ec2:CreateTags",
                "ec2:DeleteTags",
                "ec2:DescribeTags",
                "ec2:DescribeVpcs",
                "ec2:DescribeSubnets",
                "ec2:DescribeAvailabilityZones",
                "ec2:DescribeNetworkInterfaces",
                "ec2:DescribeRouteTables",
                "ec2:DescribeVpcEndpoints",
            ],
            "Resource": "*",
        },
        {
            "Sid": "AllowElasticache",
            "Effect": "Allow",
            "Action": [
                "elasticache:CreateUser",
                "elasticache:DescribeReservedCacheNodes",
                "elasticache:DescribeReservedCacheNodesOfferings",
                "elasticache:DescribeEvents",
                "elasticache:IncreaseReplicaCount",
                "elasticache:DescribeCacheParameterGroups",
                "elasticache:DecreaseReplicaCount",
                "elasticache:DescribeEngineDefaultParameters",
                "elasticache:CreateGlobalReplicationGroup",
                "elasticache:ModifyReplicationGroup",
                "elasticache:CreateCacheCluster",
                "elasticache:DeleteCacheSubnetGroup",
                "elasticache:DescribeServiceUpdates",
                "elasticache:DescribeReplicationGroups",
                "elasticache:ModifyUserGroup",
                "elasticache:DeleteUser",
                "elasticache:RemoveTagsFromResource",
                "elasticache:DeleteUserGroup",
                "elasticache:DeleteCacheCluster",
                "elasticache:AddTagsToResource",
                "elasticache:ModifyCacheParameterGroup",
                "elasticache:DescribeGlobalReplicationGroups",
                "elasticache:DescribeUsers",
                "elasticache:DescribeCacheClusters",
                "elasticache:ListTagsForResource",
                "elasticache:CreateReplicationGroup",
                "elasticache:AuthorizeCacheSecurityGroupIngress",
                "elasticache:DeleteCacheSecurityGroup",
                "elasticache:DescribeCacheEngineVersions",
                "elasticache:DescribeCacheSubnetGroups",
                "elasticache:CreateCacheSubnetGroup",
                "elasticache:DescribeSnapshots",
                "elasticache:CreateCacheParameterGroup",
                "elasticache:DeleteCacheParameterGroup",
                "elasticache:DescribeUserGroups",
                "elasticache:DisassociateGlobalReplicationGroup",
                "elasticache:CreateCacheSecurityGroup",
                "elasticache:DescribeCacheParameters",
                "elasticache:CreateUserGroup",
                "elasticache:DescribeUpdateActions",
                "elasticache:ModifyUser",
                "elasticache:DeleteGlobalReplicationGroup",
                "elasticache:ResetCacheParameterGroup",
                "elasticache:DeleteReplicationGroup",
                "elasticache:ListAllowedNodeTypeModifications",
                "elasticache:ModifyCacheCluster",
                "elasticache:ModifyGlobalReplicationGroup",
                "elasticache:DescribeCacheSecurityGroups",
                "elasticache:ModifyReplicationGroupShardConfiguration",
                "elasticache:ModifyCacheSubnetGroup",
            ],
            "Resource": "*",
        },
        {
            "Sid": "AllowIAMForServiceLinkedRoles",
            "Effect": "Allow",
            "Action": "iam:CreateServiceLinkedRole",
            "Resource": "*",
        },
    ],
}

# Managed policies attached to the role, checked in this order.
MANAGED_POLICY_TEMPLATES: dict[str, dict[str, Any]] = {
    "boundary": BOUNDARY_POLICY_TEMPLATE,
    "policy": CROSSPLANE_POLICY_TEMPLATE,
    "redis": REDIS_POLICY_TEMPLATE,
}


def expected_trust_policy() -> PolicyDocument:
    """Get a fresh copy of the expected assume-role (trust) policy."""
    return PolicyDocument.from_dict(copy.deepcopy(ASSUME_ROLE_POLICY_TEMPLATE))


def expected_managed_policy(suffix: str) -> PolicyDocument:
    """
    Get a fresh copy of the expected managed policy with the given suffix.

    Raises:
        KeyError: If no baseline exists for the suffix
    """
    return PolicyDocument.from_dict(copy.deepcopy(MANAGED_POLICY_TEMPLATES[suffix]))


def expected_policy_documents() -> dict[str, PolicyDocument]:
    """Get every AWS baseline keyed by name, trust policy first."""
    documents = {TRUST_POLICY_NAME: expected_trust_policy()}
    for suffix in MANAGED_POLICY_TEMPLATES:
        documents[suffix] = expected_managed_policy(suffix)
    return documents
