"""Centralized extractor settings using pydantic-settings.

This module provides a single source of truth for all extractor configuration
loaded from environment variables. Command-line options are passed in as
keyword overrides. Uses pydantic for automatic validation, type coercion,
and documentation.
"""

import string
import sys
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from crd_extractor.constants import (
    CONVERTER_URL,
    DEFAULT_CONCURRENCY_LIMIT,
    DEFAULT_CONVERTER_TIMEOUT,
    DEFAULT_FETCH_RETRIES,
    DEFAULT_FETCH_RETRY_DELAY,
    DEFAULT_FILENAME_TEMPLATE,
    DEFAULT_SCHEMAS_ROOT,
    DEFAULT_STAGING_DIR,
    FILENAME_PLACEHOLDERS,
)


class Settings(BaseSettings):
    """Extractor configuration loaded from environment variables.

    All settings have sensible defaults for interactive use. Override via
    environment variables as documented per field, or via the CLI.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Fetching
    concurrency_limit: int = Field(
        default=DEFAULT_CONCURRENCY_LIMIT,
        ge=1,
        validation_alias="CRD_EXTRACTOR_CONCURRENCY",
        description="Maximum number of CRD fetches in flight at once",
    )
    fetch_retries: int = Field(
        default=DEFAULT_FETCH_RETRIES,
        ge=0,
        validation_alias="CRD_EXTRACTOR_FETCH_RETRIES",
        description="Extra attempts for a CRD fetch that failed with a retryable error",
    )
    fetch_retry_delay_seconds: float = Field(
        default=DEFAULT_FETCH_RETRY_DELAY,
        ge=0,
        validation_alias="CRD_EXTRACTOR_FETCH_RETRY_DELAY",
        description="Base delay between fetch attempts (multiplied by attempt number)",
    )

    # Cluster access
    kubeconfig: Path | None = Field(
        default=None,
        validation_alias="CRD_EXTRACTOR_KUBECONFIG",
        description="Path to the kubeconfig file (default: $KUBECONFIG or ~/.kube/config)",
    )
    kube_context: str | None = Field(
        default=None,
        validation_alias="CRD_EXTRACTOR_CONTEXT",
        description="Kubeconfig context to use (default: current context)",
    )

    # Output layout
    filename_template: str = Field(
        default=DEFAULT_FILENAME_TEMPLATE,
        validation_alias="CRD_EXTRACTOR_FILENAME_TEMPLATE",
        description="Converter FILENAME_FORMAT for produced schema files",
    )
    schemas_root: Path = Field(
        default=DEFAULT_SCHEMAS_ROOT,
        validation_alias="CRD_EXTRACTOR_SCHEMAS_ROOT",
        description="Directory receiving the converted and organized schemas",
    )
    staging_dir: Path = Field(
        default=DEFAULT_STAGING_DIR,
        validation_alias="CRD_EXTRACTOR_STAGING_DIR",
        description="Disposable directory for fetched CRD documents",
    )
    keep_staging: bool = Field(
        default=False,
        validation_alias="CRD_EXTRACTOR_KEEP_STAGING",
        description="Keep the staging directory after the run for debugging",
    )

    # Converter
    converter_python: str = Field(
        default=sys.executable,
        validation_alias="CRD_EXTRACTOR_CONVERTER_PYTHON",
        description="Python interpreter used to run the converter script",
    )
    converter_script: Path | None = Field(
        default=None,
        validation_alias="CRD_EXTRACTOR_CONVERTER_SCRIPT",
        description="Local openapi2jsonschema.py (skips the download)",
    )
    converter_url: str = Field(
        default=CONVERTER_URL,
        validation_alias="CRD_EXTRACTOR_CONVERTER_URL",
        description="Where to download openapi2jsonschema.py from",
    )
    converter_timeout_seconds: int = Field(
        default=DEFAULT_CONVERTER_TIMEOUT,
        ge=1,
        validation_alias="CRD_EXTRACTOR_CONVERTER_TIMEOUT",
        description="Maximum runtime of the converter process",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=False,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Tag every log line with the run's correlation ID",
    )

    # Metrics
    metrics_textfile: Path | None = Field(
        default=None,
        validation_alias="CRD_EXTRACTOR_METRICS_FILE",
        description="Write Prometheus metrics to this file after each run",
    )

    @field_validator("filename_template")
    @classmethod
    def validate_filename_template(cls, value: str) -> str:
        """Reject templates the converter would fail to format."""
        fields = {
            name for _, name, _, _ in string.Formatter().parse(value) if name is not None
        }
        unknown = fields - FILENAME_PLACEHOLDERS
        if unknown:
            raise ValueError(
                f"Unknown placeholder(s) {sorted(unknown)} in filename template; "
                f"supported: {sorted(FILENAME_PLACEHOLDERS)}"
            )
        if not fields:
            raise ValueError("Filename template must contain at least one placeholder")
        return value

    @field_validator("schemas_root", "staging_dir", "converter_script", "kubeconfig")
    @classmethod
    def expand_user(cls, value: Path | None) -> Path | None:
        """Expand ~ in configured paths."""
        return value.expanduser() if value is not None else None

    @model_validator(mode="after")
    def validate_separate_directories(self) -> "Settings":
        """Keep the disposable staging directory apart from the output."""
        staging = self.staging_dir.resolve()
        schemas = self.schemas_root.resolve()
        if staging.is_relative_to(schemas) or schemas.is_relative_to(staging):
            raise ValueError(
                f"staging_dir ({self.staging_dir}) and schemas_root "
                f"({self.schemas_root}) must be separate, non-nested directories"
            )
        return self
