"""
Flat permission set validation for Azure and GCP roles.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from preflight.errors import DuplicatePermissionError, RoleMissingPermissionsError


def find_duplicate(observed: Iterable[str]) -> str | None:
    """Get the first permission that occurs twice, or None."""
    seen: set[str] = set()
    for permission in observed:
        if permission in seen:
            return permission
        seen.add(permission)
    return None


def missing_permissions(expected: Iterable[str], observed: Iterable[str]) -> list[str]:
    """Get the expected permissions absent from ``observed``, sorted."""
    return sorted(set(expected) - set(observed))


def validate_permissions(expected: Iterable[str], observed: Sequence[str]) -> None:
    """
    Validate an observed permission list against an expected set.

    Duplicates are checked before missing permissions are computed.
    Extra permissions are always accepted.

    Args:
        expected: Required permission names
        observed: Permission names granted by the role

    Raises:
        DuplicatePermissionError: If any observed permission repeats
        RoleMissingPermissionsError: Listing every missing permission
    """
    duplicate = find_duplicate(observed)
    if duplicate is not None:
        raise DuplicatePermissionError(duplicate)

    missing = missing_permissions(expected, observed)
    if missing:
        raise RoleMissingPermissionsError(missing)
