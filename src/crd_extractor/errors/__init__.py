"""
Error handling module for the CRD extractor.

This module provides the error hierarchy used to separate per-resource
failures from run-level failures and to map the latter onto exit codes.
"""

from .extractor_errors import (
    ClusterAuthError,
    ClusterUnreachableError,
    ConfigurationError,
    ExtractorError,
    KubernetesAPIError,
    OrganizerError,
    PreconditionError,
    ResourceNotFoundError,
)

__all__ = [
    "ExtractorError",
    "ConfigurationError",
    "PreconditionError",
    "ClusterUnreachableError",
    "ClusterAuthError",
    "KubernetesAPIError",
    "ResourceNotFoundError",
    "OrganizerError",
]
