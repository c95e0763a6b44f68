"""
Flat permission set validation for Preflight.

Azure role definitions and GCP custom roles expose a plain list of
permission names; they are validated with a set difference plus a
duplicate guard rather than structural differencing.
"""

from preflight.permissions.flat import (
    find_duplicate,
    missing_permissions,
    validate_permissions,
)
from preflight.permissions.baselines import (
    AZURE_EXPECTED_PERMISSIONS,
    GCP_EXPECTED_PERMISSIONS,
)

__all__ = [
    "find_duplicate",
    "missing_permissions",
    "validate_permissions",
    "AZURE_EXPECTED_PERMISSIONS",
    "GCP_EXPECTED_PERMISSIONS",
]
