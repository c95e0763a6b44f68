"""
AWS Crossplane role checker.

Fetches the trust policy of the Crossplane provider role and the default
version of each managed policy attached under its web-identity path,
then validates every document against its baseline template.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import ClientError

from preflight.checkers.base import BaseRoleChecker
from preflight.checkers.naming import aws_policy_arn, crossplane_role_name
from preflight.config import CheckOptions, CloudProvider, EnvConfig
from preflight.errors import (
    ConfigurationError,
    NoDefaultPolicyVersionError,
    PolicyNotFoundError,
    RoleNotFoundError,
)
from preflight.policy import (
    MANAGED_POLICY_TEMPLATES,
    TRUST_POLICY_NAME,
    PolicyDocument,
    expected_managed_policy,
    expected_trust_policy,
    validate_document,
)

logger = logging.getLogger(__name__)


def _is_no_such_entity(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == "NoSuchEntity"


class AWSRoleChecker(BaseRoleChecker):
    """
    Checks the AWS IAM role assumed by the Crossplane provider.

    Documents are validated in a fixed order (trust policy, then the
    boundary, policy and redis managed policies) and the first failure
    stops the check.
    """

    cloud_provider = CloudProvider.AWS

    def __init__(
        self,
        config: EnvConfig,
        options: CheckOptions | None = None,
        session: Any | None = None,
    ) -> None:
        """
        Initialize the AWS role checker.

        Args:
            config: Environment configuration
            options: Check options (profile and region are used here)
            session: Optional boto3 Session. If None, one is built from options.
        """
        super().__init__(config, options)
        if config.cloud.aws is None:
            raise ConfigurationError("missing required key spec.cloudSpec.aws")
        self._session = session
        self._iam: Any = None

    @property
    def role_name(self) -> str:
        return crossplane_role_name(self.config.cluster_name)

    @property
    def account_id(self) -> str:
        """Get the AWS account ID from configuration."""
        return self.config.cloud.aws.account_id

    def _get_iam_client(self) -> Any:
        """Get or create the IAM client."""
        if self._iam is None:
            if self._session is None:
                self._session = boto3.Session(
                    profile_name=self.options.aws_profile,
                    region_name=self.options.aws_region,
                )
            self._iam = self._session.client("iam")
        return self._iam

    def get_trust_policy(self) -> PolicyDocument:
        """
        Fetch the role's assume-role policy document.

        Raises:
            RoleNotFoundError: If the role does not exist
            PolicyDecodeError: If the document is malformed
        """
        iam = self._get_iam_client()
        try:
            response = iam.get_role(RoleName=self.role_name)
        except ClientError as e:
            if _is_no_such_entity(e):
                raise RoleNotFoundError(self.role_name, str(e)) from e
            raise

        document = response["Role"].get("AssumeRolePolicyDocument")
        if document is None:
            raise RoleNotFoundError(self.role_name, "role has no trust policy")
        return PolicyDocument.load(document)

    def get_managed_policy(self, policy_arn: str) -> PolicyDocument:
        """
        Fetch the default version of a managed policy.

        Raises:
            PolicyNotFoundError: If the policy does not exist
            NoDefaultPolicyVersionError: If no version is marked default
            PolicyDecodeError: If the document is malformed
        """
        iam = self._get_iam_client()
        try:
            versions = iam.list_policy_versions(PolicyArn=policy_arn)["Versions"]
            default = next((v for v in versions if v.get("IsDefaultVersion")), None)
            if default is None:
                raise NoDefaultPolicyVersionError(policy_arn)

            response = iam.get_policy_version(
                PolicyArn=policy_arn, VersionId=default["VersionId"]
            )
        except ClientError as e:
            if _is_no_such_entity(e):
                raise PolicyNotFoundError(policy_arn, str(e)) from e
            raise

        return PolicyDocument.load(response["PolicyVersion"]["Document"])

    def check(self) -> None:
        """
        Validate the trust policy and every managed policy.

        Raises:
            PolicyMismatchError: On the first document falling short of its baseline
            DiscoveryError: If the role or a policy cannot be found
        """
        context = self.config.placeholder_context()

        logger.info(f"Checking trust policy of role {self.role_name}")
        validate_document(
            self.get_trust_policy(), expected_trust_policy(), context, TRUST_POLICY_NAME
        )

        for suffix in MANAGED_POLICY_TEMPLATES:
            policy_arn = aws_policy_arn(self.account_id, self.config.cluster_name, suffix)
            logger.info(f"Checking managed policy {policy_arn}")
            validate_document(
                self.get_managed_policy(policy_arn),
                expected_managed_policy(suffix),
                context,
                suffix,
            )
