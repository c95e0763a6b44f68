"""
Configuration for Preflight.

Provides the environment configuration document and the options that
control how role checks run.
"""

from preflight.config.env_config import (
    ENV_CONFIG_KIND,
    AWSSpec,
    AzureSpec,
    CheckOptions,
    CloudProvider,
    CloudSpec,
    EnvConfig,
    GCPSpec,
    load_options_from_env,
)

__all__ = [
    "ENV_CONFIG_KIND",
    "AWSSpec",
    "AzureSpec",
    "CheckOptions",
    "CloudProvider",
    "CloudSpec",
    "EnvConfig",
    "GCPSpec",
    "load_options_from_env",
]
