"""
Constants used throughout the CRD extractor.

This module defines all constant values used by the extractor including:
- Default configuration values
- Output layout names consumed by downstream validators
- Converter invocation details
- Process exit codes
"""

from pathlib import Path

# Default configuration values
DEFAULT_CONCURRENCY_LIMIT = 10
DEFAULT_FILENAME_TEMPLATE = "{fullgroup}_{kind}_{version}"
DEFAULT_DATA_DIR = Path.home() / ".datree"
DEFAULT_SCHEMAS_ROOT = DEFAULT_DATA_DIR / "crdSchemas"
DEFAULT_STAGING_DIR = DEFAULT_DATA_DIR / "crds"
DEFAULT_FETCH_RETRIES = 0
DEFAULT_FETCH_RETRY_DELAY = 1.0  # seconds, multiplied by the attempt number
DEFAULT_CONVERTER_TIMEOUT = 300  # seconds

# Placeholders understood by the converter's FILENAME_FORMAT
FILENAME_PLACEHOLDERS = frozenset({"fullgroup", "group", "kind", "version"})

# Converter
CONVERTER_URL = (
    "https://raw.githubusercontent.com/yannh/kubeconform/master/"
    "scripts/openapi2jsonschema.py"
)
CONVERTER_SCRIPT_NAME = "openapi2jsonschema.py"
CONVERTER_FILENAME_ENV = "FILENAME_FORMAT"
CONVERTER_DOWNLOAD_TIMEOUT = 30.0  # seconds

# Cluster endpoints and staged file names
OPENAPI_V2_PATH = "/openapi/v2"
OPENAPI_SNAPSHOT_NAME = "openapi_v2.yaml"
STAGED_DOCUMENT_SUFFIX = ".yaml"

# Output layout
SCHEMA_SUFFIX = ".json"
GROUP_SEPARATOR = "_"
FLAT_DIR_NAME = "master-standalone"
FLAT_MARKER = "-stable-"
META_SCHEMA_GROUP = "apiextensions.k8s.io"
META_SCHEMA_FILENAME = "customresourcedefinition_v1.json"

# Fetch error types recorded on FetchResult
FETCH_ERROR_UNREACHABLE = "unreachable"
FETCH_ERROR_UNAUTHORIZED = "unauthorized"
FETCH_ERROR_NOT_FOUND = "not_found"
FETCH_ERROR_API = "api"
FETCH_ERROR_UNEXPECTED = "unexpected"

# Process exit codes
EXIT_SUCCESS = 0
EXIT_UNEXPECTED = 1
EXIT_CLUSTER_ERROR = 2
EXIT_CONVERSION_FAILED = 3
EXIT_PRECONDITION_FAILED = 4
EXIT_ORGANIZER_FAILED = 5
EXIT_INTERRUPTED = 130
