"""
AWS IAM policy validation for Preflight.

Provides the policy document model, placeholder resolution for baseline
templates, structural differencing and superset-tolerant validation.
"""

from preflight.policy.document import (
    DEFAULT_POLICY_VERSION,
    Condition,
    PolicyDocument,
    Principal,
    Statement,
    decode_action_list,
    encode_action_list,
)
from preflight.policy.placeholders import (
    PlaceholderContext,
    resolve_document,
    resolve_map,
    resolve_statement,
    resolve_string,
)
from preflight.policy.diff import (
    Change,
    ChangeKind,
    Changelog,
    diff_statements,
    diff_versions,
)
from preflight.policy.superset import filter_superset, is_superset_change
from preflight.policy.validation import validate_document, validate_statement
from preflight.policy.baselines import (
    MANAGED_POLICY_TEMPLATES,
    TRUST_POLICY_NAME,
    expected_managed_policy,
    expected_policy_documents,
    expected_trust_policy,
)

__all__ = [
    # Document model
    "DEFAULT_POLICY_VERSION",
    "Condition",
    "PolicyDocument",
    "Principal",
    "Statement",
    "decode_action_list",
    "encode_action_list",
    # Placeholders
    "PlaceholderContext",
    "resolve_document",
    "resolve_map",
    "resolve_statement",
    "resolve_string",
    # Differencing
    "Change",
    "ChangeKind",
    "Changelog",
    "diff_statements",
    "diff_versions",
    "filter_superset",
    "is_superset_change",
    "validate_document",
    "validate_statement",
    # Baselines
    "MANAGED_POLICY_TEMPLATES",
    "TRUST_POLICY_NAME",
    "expected_managed_policy",
    "expected_policy_documents",
    "expected_trust_policy",
]
