"""
Output organizer.

Derives the two layouts downstream validators expect from the converter's
flat output directory:

- a flat copy in ``master-standalone/`` named ``<kind>-stable-<version>.json``
  (kubeval)
- one subdirectory per API group holding the rest of the name, normally
  ``<kind>_<version>.json`` (kubeconform, datree)

Both views are rebuilt from the produced files on every run and are
processed in sorted order, so identical input yields identical trees.
"""

import logging
import shutil
from pathlib import Path

from crd_extractor.constants import FLAT_DIR_NAME
from crd_extractor.errors import OrganizerError
from crd_extractor.models import ConvertedSchemaFile, OrganizedLayout
from crd_extractor.services.converter import list_produced_files

logger = logging.getLogger(__name__)


def collect_converted_files(
    staging_dir: Path,
) -> tuple[list[tuple[Path, ConvertedSchemaFile]], list[str]]:
    """
    Parse the produced files at the top level of the staging directory.

    Returns:
        Sorted (path, key) pairs, and the names that could not be parsed
    """
    parsed: list[tuple[Path, ConvertedSchemaFile]] = []
    skipped: list[str] = []
    for path in list_produced_files(staging_dir):
        try:
            parsed.append((path, ConvertedSchemaFile.from_filename(path.name)))
        except ValueError as e:
            logger.warning(f"Leaving {path.name} in place: {e}", extra={"path": path})
            skipped.append(path.name)
    return parsed, skipped


def flatten_and_rename(
    files: list[tuple[Path, ConvertedSchemaFile]], flat_dir: Path
) -> None:
    """
    Copy every produced file into a single directory under its flat name.

    The directory is recreated so it only reflects the current file set.
    """
    try:
        if flat_dir.exists():
            shutil.rmtree(flat_dir)
        flat_dir.mkdir(parents=True)
    except OSError as e:
        raise OrganizerError("Failed to reset flat schema directory", str(flat_dir), e) from e

    written: dict[str, str] = {}
    for source, schema in files:
        target = flat_dir / schema.flat_filename
        if schema.flat_filename in written:
            logger.warning(
                f"{schema.filename} replaces {written[schema.flat_filename]} "
                f"as {FLAT_DIR_NAME}/{schema.flat_filename}",
                extra={"path": target},
            )
        try:
            shutil.copyfile(source, target)
        except OSError as e:
            raise OrganizerError("Failed to copy schema", str(target), e) from e
        written[schema.flat_filename] = schema.filename


def group_and_partition(
    files: list[tuple[Path, ConvertedSchemaFile]], root: Path
) -> None:
    """Move every produced file into its group directory, dropping the group prefix."""
    for source, schema in files:
        target = root / schema.grouped_path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            source.replace(target)
        except OSError as e:
            raise OrganizerError("Failed to move schema", str(target), e) from e


def organize(staging_dir: Path, flat_dir_name: str = FLAT_DIR_NAME) -> OrganizedLayout:
    """
    Build the flat and grouped views of the converted schemas.

    Args:
        staging_dir: Directory holding the converter's output
        flat_dir_name: Name of the flat view directory

    Returns:
        The resulting layout

    Raises:
        OrganizerError: If a filesystem operation fails
    """
    files, skipped = collect_converted_files(staging_dir)
    layout = OrganizedLayout(
        root=staging_dir,
        flat_dir_name=flat_dir_name,
        files=[schema for _, schema in files],
        skipped=skipped,
    )

    if not files:
        logger.info("No schemas to organize", extra={"path": staging_dir})
        return layout

    flatten_and_rename(files, layout.flat_dir)
    group_and_partition(files, staging_dir)

    logger.info(
        f"Organized {len(files)} schemas into "
        f"{len({schema.group for _, schema in files})} groups",
        extra={"operation": "organize", "path": staging_dir},
    )
    return layout
