"""
Unit tests for superset filtering and policy document validation.

Tests cover:
- Which changes the superset filter tolerates
- Statement validation with SID and path in the error
- Document validation: version, missing SIDs, shared SIDs, fail-fast
- The OIDC trust policy scenario end to end
- Whole managed policies widened in every statement
- Unrelated statements using shapes the model does not compare
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from preflight.errors import PolicyMismatchError, RoleMissingPermissionsError
from preflight.policy import (
    MANAGED_POLICY_TEMPLATES,
    Change,
    ChangeKind,
    PlaceholderContext,
    PolicyDocument,
    Statement,
    expected_managed_policy,
    expected_trust_policy,
    filter_superset,
    is_superset_change,
    resolve_document,
    validate_document,
    validate_statement,
)


class TestIsSupersetChange:
    """Tests for is_superset_change."""

    def test_extra_action_tolerated(self):
        """An extra action is tolerated."""
        assert is_superset_change(Change(("Action", "s3:*"), ChangeKind.CREATE, None, "s3:*"))

    def test_extra_not_action_tolerated(self):
        """An extra NotAction element is tolerated."""
        assert is_superset_change(Change(("NotAction", "x"), ChangeKind.CREATE, None, "x"))

    def test_extra_condition_key_tolerated(self):
        """An extra StringEquals or StringLike key is tolerated."""
        for operator in ("StringEquals", "StringLike"):
            change = Change(("Condition", operator, "k"), ChangeKind.CREATE, None, "v")
            assert is_superset_change(change)

    def test_missing_action_not_tolerated(self):
        """A missing action is never tolerated."""
        assert not is_superset_change(Change(("Action", "a"), ChangeKind.DELETE, "a", None))

    def test_updated_condition_not_tolerated(self):
        """A changed condition value is not tolerated."""
        change = Change(("Condition", "StringLike", "k"), ChangeKind.UPDATE, "a", "b")
        assert not is_superset_change(change)

    def test_extra_resource_not_tolerated(self):
        """An extra scalar field is not tolerated."""
        assert not is_superset_change(Change(("Resource",), ChangeKind.CREATE, None, "*"))

    def test_extra_sid_not_tolerated(self):
        """An extra Sid is not tolerated."""
        assert not is_superset_change(Change(("Sid",), ChangeKind.CREATE, None, "X"))

    def test_other_condition_operator_not_tolerated(self):
        """Only StringEquals and StringLike keys are tolerated."""
        change = Change(("Condition", "ArnLike", "k"), ChangeKind.CREATE, None, "v")
        assert not is_superset_change(change)

    def test_prefixed_path(self):
        """The collection is found by name, not position."""
        change = Change(("Statement", "A", "Action", "x"), ChangeKind.CREATE, None, "x")
        assert is_superset_change(change)

    def test_filter_keeps_deficits(self):
        """filter_superset drops only tolerated entries."""
        deficit = Change(("Action", "a"), ChangeKind.DELETE, "a", None)
        extra = Change(("Action", "b"), ChangeKind.CREATE, None, "b")

        assert filter_superset([deficit, extra]) == [deficit]


class TestValidateStatement:
    """Tests for validate_statement."""

    def test_superset_accepted(self):
        """Extra actions and condition keys are accepted."""
        expected = Statement.from_dict(
            {"Sid": "S", "Effect": "Allow", "Action": ["a", "b"], "Resource": "*",
             "Condition": {"StringEquals": {"k": "v"}}}
        )
        actual = Statement.from_dict(
            {"Sid": "S", "Effect": "Allow", "Action": ["b", "a", "c"], "Resource": "*",
             "Condition": {"StringEquals": {"k": "v", "extra": "1"}}}
        )

        validate_statement(expected, actual)

    def test_missing_action_rejected(self):
        """A missing action raises with the SID and the action path."""
        expected = Statement(sid="S", effect="Allow", action=("a", "b"))
        actual = Statement(sid="S", effect="Allow", action=("a",))

        with pytest.raises(PolicyMismatchError) as exc_info:
            validate_statement(expected, actual, "policy")

        error = exc_info.value
        assert error.sid == "S"
        assert error.document_name == "policy"
        assert error.changelog == [Change(("Action", "b"), ChangeKind.DELETE, "b", None)]

    def test_mismatch_is_missing_permissions(self):
        """PolicyMismatchError is a RoleMissingPermissionsError."""
        with pytest.raises(RoleMissingPermissionsError) as exc_info:
            validate_statement(Statement(effect="Allow"), Statement(effect="Deny"))

        assert exc_info.value.missing_permissions

    def test_deny_superset_also_accepted(self):
        """Extra actions are accepted regardless of Effect."""
        validate_statement(
            Statement(effect="Deny", action=("a",)),
            Statement(effect="Deny", action=("a", "b")),
        )


class TestValidateDocument:
    """Tests for validate_document."""

    def test_missing_sid(self, trust_context):
        """An expected SID absent from the actual document is a DELETE at Statement."""
        expected = PolicyDocument.from_dict(
            {"Version": "2012-10-17", "Statement": [{"Sid": "Need", "Action": "a"}]}
        )
        actual = PolicyDocument.from_dict(
            {"Version": "2012-10-17", "Statement": [{"Sid": "Other", "Action": "a"}]}
        )

        with pytest.raises(PolicyMismatchError) as exc_info:
            validate_document(actual, expected, trust_context, "doc")

        change = exc_info.value.changelog[0]
        assert exc_info.value.sid == "Need"
        assert change.path == ("Statement",)
        assert change.kind == ChangeKind.DELETE

    def test_version_mismatch(self, trust_context):
        """A different Version fails without a SID."""
        expected = PolicyDocument.from_dict({"Version": "2012-10-17", "Statement": []})
        actual = PolicyDocument.from_dict({"Version": "2008-10-17", "Statement": []})

        with pytest.raises(PolicyMismatchError) as exc_info:
            validate_document(actual, expected, trust_context)

        assert exc_info.value.sid is None
        assert exc_info.value.changelog[0].path == ("Version",)

    def test_fail_fast(self, trust_context):
        """The first failing statement is reported."""
        expected = PolicyDocument.from_dict(
            {"Statement": [{"Sid": "A", "Action": "a"}, {"Sid": "B", "Action": "b"}]}
        )
        actual = PolicyDocument.from_dict({"Statement": []})

        with pytest.raises(PolicyMismatchError) as exc_info:
            validate_document(actual, expected, trust_context)

        assert exc_info.value.sid == "A"

    def test_shared_sid_any_candidate(self, trust_context):
        """With several SID-less statements, one satisfying match is enough."""
        expected = PolicyDocument.from_dict({"Statement": [{"Effect": "Allow", "Action": "x"}]})
        actual = PolicyDocument.from_dict(
            {"Statement": [
                {"Effect": "Allow", "Action": "unrelated"},
                {"Effect": "Allow", "Action": ["x", "y"]},
            ]}
        )

        validate_document(actual, expected, trust_context)

    def test_shared_sid_reports_first_candidate(self, trust_context):
        """When no candidate matches, the first candidate's changelog is reported."""
        expected = PolicyDocument.from_dict({"Statement": [{"Effect": "Allow", "Action": "x"}]})
        actual = PolicyDocument.from_dict(
            {"Statement": [
                {"Effect": "Allow", "Action": "first"},
                {"Effect": "Deny", "Action": "x"},
            ]}
        )

        with pytest.raises(PolicyMismatchError) as exc_info:
            validate_document(actual, expected, trust_context)

        assert exc_info.value.changelog == [
            Change(("Action", "x"), ChangeKind.DELETE, "x", None)
        ]

    def test_managed_policy_identical(self, trust_context):
        """A managed policy equal to its resolved baseline passes."""
        template = expected_managed_policy("redis")
        actual = resolve_document(template, trust_context)

        validate_document(actual, template, trust_context, "redis")


class TestTrustPolicyScenario:
    """The OIDC trust policy scenario."""

    def test_correct_trust_policy(self, trust_context, resolved_trust_policy):
        """The correctly provisioned trust policy passes."""
        actual = PolicyDocument.from_dict(resolved_trust_policy)

        validate_document(actual, expected_trust_policy(), trust_context, "trust")

    def test_wrong_account(self, trust_context, resolved_trust_policy):
        """A federated principal in another account is an UPDATE."""
        altered = copy.deepcopy(resolved_trust_policy)
        altered["Statement"][0]["Principal"]["Federated"] = (
            "arn:aws:iam::999999999:oidc-provider/oidc.example.com/id/abc"
        )

        with pytest.raises(PolicyMismatchError) as exc_info:
            validate_document(
                PolicyDocument.from_dict(altered), expected_trust_policy(), trust_context, "trust"
            )

        change = exc_info.value.changelog[0]
        assert change.path == ("Principal", "Federated")
        assert change.kind == ChangeKind.UPDATE

    def test_extra_condition_key(self, trust_context, resolved_trust_policy):
        """An additional StringLike key is tolerated."""
        extended = copy.deepcopy(resolved_trust_policy)
        extended["Statement"][0]["Condition"]["StringLike"]["extra:aud"] = "sts.amazonaws.com"

        validate_document(
            PolicyDocument.from_dict(extended), expected_trust_policy(), trust_context
        )

    def test_empty_document_rejected(self, trust_context):
        """A document without statements fails."""
        empty = PolicyDocument.from_dict({"Version": "2012-10-17", "Statement": []})

        with pytest.raises(PolicyMismatchError):
            validate_document(empty, expected_trust_policy(), trust_context)

    def test_other_oidc_provider(self, resolved_trust_policy):
        """Resolving for a different OIDC id makes the same document fail."""
        context = PlaceholderContext(account_id="1234567890", oidc_id="oidc.other/id/zzz")

        with pytest.raises(PolicyMismatchError):
            validate_document(
                PolicyDocument.from_dict(resolved_trust_policy), expected_trust_policy(), context
            )


def _widen_statement(statement: dict[str, Any]) -> None:
    """Add one extra action, NotAction element and condition key in place."""
    for key in ("Action", "NotAction"):
        if key in statement:
            values = statement[key]
            if isinstance(values, str):
                values = [values]
            statement[key] = values + [f"extra:{key}"]
    condition = statement.setdefault("Condition", {})
    condition.setdefault("StringEquals", {})["extra:Key"] = "extra"


class TestManagedPolicySuperset:
    """Whole managed policies granting more than their baseline."""

    @pytest.mark.parametrize("suffix", sorted(MANAGED_POLICY_TEMPLATES))
    def test_every_statement_widened(self, trust_context, suffix):
        """Extra actions and condition keys in every statement are accepted."""
        template = expected_managed_policy(suffix)
        widened = resolve_document(template, trust_context).to_dict()
        for statement in widened["Statement"]:
            _widen_statement(statement)

        validate_document(PolicyDocument.from_dict(widened), template, trust_context, suffix)

    @pytest.mark.parametrize("suffix", sorted(MANAGED_POLICY_TEMPLATES))
    def test_widened_but_missing_one_action(self, trust_context, suffix):
        """Widening does not hide a missing action elsewhere in the statement."""
        template = expected_managed_policy(suffix)
        widened = resolve_document(template, trust_context).to_dict()
        for statement in widened["Statement"]:
            _widen_statement(statement)
        first = widened["Statement"][0]
        key = "Action" if "Action" in first else "NotAction"
        removed = first[key].pop(0)

        with pytest.raises(PolicyMismatchError) as exc_info:
            validate_document(PolicyDocument.from_dict(widened), template, trust_context, suffix)

        assert Change((key, removed), ChangeKind.DELETE, removed, None) in exc_info.value.changelog


class TestUnmatchedStatements:
    """Statements whose SID is not in the baseline are decoded and ignored."""

    @pytest.mark.parametrize(
        "extra",
        [
            {"Sid": "Unrelated", "Action": "s3:GetObject",
             "Resource": ["arn:aws:s3:::a/*", "arn:aws:s3:::b/*"]},
            {"Sid": "Unrelated", "Effect": "Allow", "Action": "ec2:*", "Resource": "*",
             "Condition": {"StringEquals": {"aws:RequestedRegion": ["us-east-1", "eu-west-1"]}}},
            {"Sid": "Unrelated", "Effect": "Allow", "Principal": "*", "Action": "s3:GetObject"},
            {"Sid": "Unrelated", "Effect": "Allow",
             "Principal": {"Service": "ec2.amazonaws.com"}, "Action": "sts:AssumeRole"},
        ],
        ids=["resource-array", "condition-list", "wildcard-principal", "service-principal"],
    )
    def test_redis_policy_with_extra_statement(self, trust_context, extra):
        """The redis baseline still passes with an unrelated statement added."""
        template = expected_managed_policy("redis")
        actual = resolve_document(template, trust_context).to_dict()
        actual["Statement"].append(extra)

        validate_document(PolicyDocument.from_dict(actual), template, trust_context, "redis")

    def test_resource_array_compared_as_a_whole(self, trust_context):
        """A matched statement whose Resource became an array is an UPDATE."""
        template = expected_managed_policy("redis")
        actual = resolve_document(template, trust_context).to_dict()
        statement = actual["Statement"][0]
        statement["Resource"] = [statement["Resource"], "arn:aws:s3:::other"]

        with pytest.raises(PolicyMismatchError) as exc_info:
            validate_document(PolicyDocument.from_dict(actual), template, trust_context, "redis")

        assert exc_info.value.changelog[0].path == ("Resource",)
        assert exc_info.value.changelog[0].kind == ChangeKind.UPDATE

    def test_trust_policy_with_service_statement(self, trust_context, resolved_trust_policy):
        """A trust policy that also trusts a service principal still passes."""
        extended = copy.deepcopy(resolved_trust_policy)
        extended["Statement"].append(
            {"Effect": "Allow", "Principal": {"Service": "ec2.amazonaws.com"},
             "Action": "sts:AssumeRole"}
        )

        validate_document(
            PolicyDocument.from_dict(extended), expected_trust_policy(), trust_context
        )
