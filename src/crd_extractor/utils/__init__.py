"""
Utils package - Utility modules for CRD extractor functionality.

Contains helper modules for:
- Kubernetes API queries
- Startup capability checks
"""

from crd_extractor.utils.kubernetes import (
    fetch_openapi_v2,
    get_kubernetes_client,
    list_crd_names,
    read_crd_document,
)
from crd_extractor.utils.preflight import MissingCapability, check_capabilities

__all__ = [
    "get_kubernetes_client",
    "list_crd_names",
    "read_crd_document",
    "fetch_openapi_v2",
    "MissingCapability",
    "check_capabilities",
]
