"""
Preflight - Crossplane role permission validation

Checks, before an installation proceeds, that the cloud role granted to
the Crossplane provider carries every permission the installation needs.

Supported clouds:
- AWS: trust policy and managed policy documents, compared structurally
  against baseline templates with superset tolerance
- Azure: role definition permission list
- GCP: custom role permissions, collected by a pod running under the
  provider's workload identity

Quick Start:
    >>> from preflight.config import EnvConfig
    >>> from preflight.checkers import create_checker
    >>>
    >>> config = EnvConfig.from_file("env.yaml")
    >>> result = create_checker(config).run()
    >>> print(result.passed)
"""

from __future__ import annotations

__version__ = "0.1.0"
__author__ = "Preflight"
