"""
Pipeline data models.

This module defines the records passed between the pipeline stages:
fetch results, the converted schema file key, and the organized layout
derived from a set of converted files.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from crd_extractor.constants import (
    FLAT_DIR_NAME,
    FLAT_MARKER,
    GROUP_SEPARATOR,
    META_SCHEMA_FILENAME,
    META_SCHEMA_GROUP,
    SCHEMA_SUFFIX,
)


class FetchResult(BaseModel):
    """Outcome of fetching one CRD document.

    Exactly one result exists per name submitted to the fetcher. A failed
    fetch carries ``error`` and no content.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="CRD name as reported by the cluster")
    content: bytes | None = Field(None, description="Fetched document (YAML)")
    path: Path | None = Field(None, description="Staged copy of the document")
    error: str | None = Field(None, description="Failure detail")
    error_type: str | None = Field(
        None, description="unreachable, unauthorized, not_found, api or unexpected"
    )
    attempts: int = Field(1, ge=1, description="Number of fetch attempts made")

    @property
    def ok(self) -> bool:
        return self.content is not None and self.error is None


class ConvertedSchemaFile(BaseModel):
    """
    One converted schema, keyed by its API group and the rest of its name.

    The converter encodes the key into the filename as
    ``{group}_{remainder}.json``. The group is everything before the first
    separator; the remainder is normally ``{kind}_{version}`` but is kept
    whole, so templates such as ``{fullgroup}_{kind}`` organize the same way.
    """

    model_config = ConfigDict(frozen=True)

    group: str
    remainder: str

    @classmethod
    def from_filename(cls, filename: str) -> "ConvertedSchemaFile":
        """
        Parse a converter filename.

        Args:
            filename: Base name such as ``apps_deployment_v1.json``

        Returns:
            The parsed key

        Raises:
            ValueError: If the name has no group separator or an empty side
        """
        stem = filename.removesuffix(SCHEMA_SUFFIX)
        group, sep, remainder = stem.partition(GROUP_SEPARATOR)
        if not (sep and group and remainder):
            raise ValueError(
                f"Schema filename '{filename}' is not of the form "
                f"group{GROUP_SEPARATOR}name{SCHEMA_SUFFIX}"
            )
        return cls(group=group, remainder=remainder)

    @property
    def kind(self) -> str:
        kind, _, version = self.remainder.rpartition(GROUP_SEPARATOR)
        return kind if kind and version else self.remainder

    @property
    def version(self) -> str | None:
        kind, _, version = self.remainder.rpartition(GROUP_SEPARATOR)
        return version if kind and version else None

    @property
    def filename(self) -> str:
        return f"{self.group}{GROUP_SEPARATOR}{self.remainder}{SCHEMA_SUFFIX}"

    @property
    def grouped_path(self) -> Path:
        return Path(self.group) / f"{self.remainder}{SCHEMA_SUFFIX}"

    @property
    def flat_filename(self) -> str:
        """``<kind>-stable-<version>.json``, or the remainder when it has no version."""
        if self.version is None:
            return f"{self.remainder}{SCHEMA_SUFFIX}"
        return f"{self.kind}{FLAT_MARKER}{self.version}{SCHEMA_SUFFIX}"

    @property
    def is_meta_schema(self) -> bool:
        """Whether this is the schema of the CustomResourceDefinition type itself."""
        return (
            self.group == META_SCHEMA_GROUP
            and f"{self.remainder}{SCHEMA_SUFFIX}" == META_SCHEMA_FILENAME
        )


class OrganizedLayout(BaseModel):
    """Grouped and flat views derived from a set of converted files."""

    root: Path
    flat_dir_name: str = FLAT_DIR_NAME
    files: list[ConvertedSchemaFile] = Field(default_factory=list)
    skipped: list[str] = Field(
        default_factory=list, description="Produced files that could not be parsed"
    )

    @property
    def flat_dir(self) -> Path:
        return self.root / self.flat_dir_name

    @property
    def meta_schema_present(self) -> bool:
        return any(f.is_meta_schema for f in self.files)

    def grouped_paths(self, include_meta: bool = True) -> list[Path]:
        """Grouped-view paths relative to the root, sorted."""
        return sorted(
            f.grouped_path for f in self.files if include_meta or not f.is_meta_schema
        )

    def flat_paths(self) -> list[Path]:
        """Flat-view paths relative to the root, sorted and de-duplicated."""
        names = {f.flat_filename for f in self.files}
        return [Path(self.flat_dir_name) / name for name in sorted(names)]


class ConversionResult(BaseModel):
    """Outcome of one converter invocation."""

    exit_status: int
    produced_files: list[Path] = Field(default_factory=list)
    output: str = Field("", description="Tail of the converter's output")

    @property
    def produced_count(self) -> int:
        return len(self.produced_files)

    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0
