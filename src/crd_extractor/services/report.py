"""
Run report.

Builds the human-readable summary printed at the end of a run: outcome,
produced schema files and example commands for the downstream validators.
Purely presentational.
"""

from collections.abc import Iterable
from pathlib import Path

from crd_extractor.constants import META_SCHEMA_FILENAME, META_SCHEMA_GROUP
from crd_extractor.models import OrganizedLayout


def validator_commands(schemas_root: Path) -> list[tuple[str, str]]:
    """Example invocations for datree, kubeconform and kubeval."""
    kubeconform_location = (
        f"{schemas_root}/{{{{.Group}}}}/{{{{.ResourceKind}}}}_{{{{.ResourceAPIVersion}}}}.json"
    )
    return [
        ("datree", "datree test /path/to/file"),
        (
            "kubeconform",
            "kubeconform -summary -output json -schema-location default "
            f"-schema-location '{kubeconform_location}' /path/to/file",
        ),
        (
            "kubeval",
            f'kubeval --additional-schema-locations file:"{schemas_root}" /path/to/file',
        ),
    ]


def build_report(
    fetch_count: int,
    produced_count: int,
    layout: OrganizedLayout | None,
    converter_status: int,
    schemas_root: Path,
    failed: Iterable[str] = (),
) -> str:
    """
    Summarize a run.

    Args:
        fetch_count: Number of CRDs fetched successfully
        produced_count: Number of schema files the converter produced
        layout: Organized output, None when the organizer did not run
        converter_status: Converter exit status
        schemas_root: Root of the organized output
        failed: Names of CRDs that could not be fetched

    Returns:
        Report text
    """
    lines: list[str] = []
    failed = sorted(failed)

    if converter_status != 0:
        lines.append(
            f"Failed to convert {fetch_count} CRDs to JSON schema "
            f"(converter exited with status {converter_status})"
        )
        if failed:
            lines.append(f"Could not fetch {len(failed)} CRDs: {', '.join(failed)}")
        return "\n".join(lines) + "\n"

    lines.append(
        f"Successfully converted {fetch_count} CRDs to JSON schema "
        f"({produced_count} schema files)"
    )
    if failed:
        lines.append(f"Could not fetch {len(failed)} CRDs: {', '.join(failed)}")
    lines.append("")

    if layout is not None:
        if layout.meta_schema_present:
            lines.append(
                "CRD validation schema written to "
                f"{META_SCHEMA_GROUP}/{META_SCHEMA_FILENAME}"
            )
            lines.append("")

        for path in layout.grouped_paths(include_meta=False):
            lines.append(f"JSON schema written to {path.as_posix()}")

    lines.append("")
    lines.append("To validate a CR using various tools, run the relevant command:")
    for tool, command in validator_commands(schemas_root):
        lines.append("")
        lines.append(f"- {tool}:")
        lines.append(f"$ {command}")

    return "\n".join(lines) + "\n"
