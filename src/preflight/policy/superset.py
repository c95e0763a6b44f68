"""
Superset filtering for statement changelogs.

A role may grant more than its baseline. Extra action list entries and
extra condition keys are therefore dropped from a changelog; anything
missing or altered is kept.
"""

from __future__ import annotations

from preflight.policy.diff import (
    ACTION,
    CONDITION,
    NOT_ACTION,
    STRING_EQUALS,
    STRING_LIKE,
    Change,
    ChangeKind,
    Changelog,
)

SUPERSET_COLLECTIONS = frozenset({ACTION, NOT_ACTION})
SUPERSET_CONDITION_OPERATORS = frozenset({STRING_EQUALS, STRING_LIKE})


def is_superset_change(change: Change) -> bool:
    """
    Check if a change only adds an element to a tolerated collection.

    The check looks for the collection's field name in the path rather
    than at a fixed index, so paths with a leading document prefix
    (``("Statement", sid, "Action", ...)``) are matched as well.
    """
    if change.kind != ChangeKind.CREATE:
        return False

    path = change.path
    for index, segment in enumerate(path):
        if segment in SUPERSET_COLLECTIONS:
            # An element under the collection, not the collection itself.
            return len(path) > index + 1
        if segment == CONDITION:
            return (
                len(path) > index + 2
                and path[index + 1] in SUPERSET_CONDITION_OPERATORS
            )
    return False


def filter_superset(changelog: Changelog) -> Changelog:
    """Drop tolerated additions, keeping genuine deficits and mismatches."""
    return [change for change in changelog if not is_superset_change(change)]
