"""
Validation of actual policy documents against baseline templates.
"""

from __future__ import annotations

import logging

from preflight.errors import PolicyMismatchError
from preflight.policy.diff import Change, ChangeKind, diff_statements, diff_versions
from preflight.policy.document import PolicyDocument, Statement
from preflight.policy.placeholders import PlaceholderContext, resolve_document
from preflight.policy.superset import filter_superset

logger = logging.getLogger(__name__)


def validate_statement(
    expected: Statement,
    actual: Statement,
    document_name: str = "",
) -> None:
    """
    Validate one actual statement against its resolved expected statement.

    Raises:
        PolicyMismatchError: If any change survives superset filtering
    """
    changelog = filter_superset(diff_statements(expected, actual))
    if changelog:
        raise PolicyMismatchError(document_name, expected.sid, changelog)


def _validate_expected_statement(
    expected: Statement,
    actual: PolicyDocument,
    document_name: str,
) -> None:
    candidates = actual.statements_by_sid(expected.sid)
    if not candidates:
        raise PolicyMismatchError(
            document_name,
            expected.sid,
            [Change(("Statement",), ChangeKind.DELETE, expected.to_dict(), None)],
        )

    # SID-less trust policies may hold several statements with the same
    # (empty) SID; any one of them satisfying the baseline is enough.
    changelogs = []
    for candidate in candidates:
        changelog = filter_superset(diff_statements(expected, candidate))
        if not changelog:
            return
        changelogs.append(changelog)

    raise PolicyMismatchError(document_name, expected.sid, changelogs[0])


def validate_document(
    actual: PolicyDocument,
    expected: PolicyDocument,
    context: PlaceholderContext,
    document_name: str = "",
) -> None:
    """
    Validate an actual policy document against a baseline template.

    The template is resolved against ``context`` first; the template
    object itself is never modified. Statements are checked in template
    order and the first failure is raised.

    Args:
        actual: Document fetched from the cloud
        expected: Unresolved baseline template
        context: Placeholder values
        document_name: Name used in error messages

    Raises:
        PolicyMismatchError: On the first statement that is not satisfied
    """
    resolved = resolve_document(expected, context)

    version_changes = diff_versions(resolved, actual)
    if version_changes:
        raise PolicyMismatchError(document_name, None, version_changes)

    for statement in resolved.statements:
        _validate_expected_statement(statement, actual, document_name)
        logger.debug(f"Statement satisfied: document={document_name}, sid={statement.sid!r}")
