"""
Structural differencing of IAM policy statements.

Produces a changelog describing how an actual statement differs from the
expected one. Paths are statement-relative field identifiers, for example
``("Principal", "Federated")`` or ``("Action", "s3:GetObject")``. Action
list elements are identified by value and condition entries by key.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from preflight.policy.document import Condition, PolicyDocument, Statement

ACTION = "Action"
NOT_ACTION = "NotAction"
CONDITION = "Condition"
STRING_EQUALS = "StringEquals"
STRING_LIKE = "StringLike"


class ChangeKind(Enum):
    """Types of statement changes."""

    CREATE = "create"  # Present in actual only
    DELETE = "delete"  # Present in expected only
    UPDATE = "update"  # Present in both with different values


@dataclass(frozen=True)
class Change:
    """
    Single difference between an expected and an actual statement.

    Attributes:
        path: Field identifiers from the statement root
        kind: Type of change
        old_value: Expected value
        new_value: Actual value
    """

    path: tuple[str, ...]
    kind: ChangeKind
    old_value: Any = None
    new_value: Any = None

    @property
    def path_str(self) -> str:
        """Dot-separated path."""
        return ".".join(self.path)

    def describe(self) -> str:
        """Human-readable one-line description."""
        if self.kind == ChangeKind.DELETE:
            return f"{self.path_str}: missing (expected {self.old_value!r})"
        if self.kind == ChangeKind.CREATE:
            return f"{self.path_str}: unexpected {self.new_value!r}"
        return f"{self.path_str}: expected {self.old_value!r}, got {self.new_value!r}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "path": list(self.path),
            "kind": self.kind.value,
            "old_value": self.old_value,
            "new_value": self.new_value,
        }


Changelog = list[Change]


def _diff_scalar(
    path: tuple[str, ...], expected: Any, actual: Any
) -> Changelog:
    if expected == actual:
        return []
    if expected is None:
        return [Change(path, ChangeKind.CREATE, None, actual)]
    if actual is None:
        return [Change(path, ChangeKind.DELETE, expected, None)]
    return [Change(path, ChangeKind.UPDATE, expected, actual)]


def _diff_actions(
    path: tuple[str, ...],
    expected: tuple[str, ...] | None,
    actual: tuple[str, ...] | None,
) -> Changelog:
    expected_items = list(dict.fromkeys(expected or ()))
    actual_items = list(dict.fromkeys(actual or ()))
    expected_set = set(expected_items)
    actual_set = set(actual_items)

    changes = [
        Change(path + (item,), ChangeKind.DELETE, item, None)
        for item in expected_items
        if item not in actual_set
    ]
    changes.extend(
        Change(path + (item,), ChangeKind.CREATE, None, item)
        for item in actual_items
        if item not in expected_set
    )
    return changes


def _diff_string_map(
    path: tuple[str, ...],
    expected: dict[str, Any] | None,
    actual: dict[str, Any] | None,
) -> Changelog:
    expected = expected or {}
    actual = actual or {}
    changes: Changelog = []

    for key, value in expected.items():
        if key not in actual:
            changes.append(Change(path + (key,), ChangeKind.DELETE, value, None))
        elif actual[key] != value:
            changes.append(Change(path + (key,), ChangeKind.UPDATE, value, actual[key]))

    for key, value in actual.items():
        if key not in expected:
            changes.append(Change(path + (key,), ChangeKind.CREATE, None, value))

    return changes


def _diff_condition(expected: Condition | None, actual: Condition | None) -> Changelog:
    expected = expected or Condition()
    actual = actual or Condition()
    return _diff_string_map(
        (CONDITION, STRING_EQUALS), expected.string_equals, actual.string_equals
    ) + _diff_string_map(
        (CONDITION, STRING_LIKE), expected.string_like, actual.string_like
    )


def diff_statements(expected: Statement, actual: Statement) -> Changelog:
    """
    Compare an expected statement against an actual one.

    Args:
        expected: Resolved baseline statement
        actual: Statement fetched from the cloud

    Returns:
        Ordered list of changes (empty when the statements are identical)
    """
    changes: Changelog = []

    changes.extend(_diff_scalar(("Sid",), expected.sid or None, actual.sid or None))
    changes.extend(_diff_scalar(("Effect",), expected.effect, actual.effect))

    expected_federated = expected.principal.federated if expected.principal else None
    actual_federated = actual.principal.federated if actual.principal else None
    changes.extend(
        _diff_scalar(("Principal", "Federated"), expected_federated, actual_federated)
    )

    changes.extend(_diff_actions((ACTION,), expected.action, actual.action))
    changes.extend(_diff_actions((NOT_ACTION,), expected.not_action, actual.not_action))
    changes.extend(_diff_scalar(("Resource",), expected.resource, actual.resource))
    changes.extend(_diff_condition(expected.condition, actual.condition))

    return changes


def diff_versions(expected: PolicyDocument, actual: PolicyDocument) -> Changelog:
    """Compare the Version field of two documents."""
    return _diff_scalar(("Version",), expected.version, actual.version)
