"""
Schema converter adapter.

Wraps kubeconform's ``openapi2jsonschema.py``, an external and versioned
program that turns CRD documents into one JSON Schema file per
(group, kind, version). This module only stages its inputs, runs it and
interprets its exit status; the OpenAPI to JSON Schema mapping rules are the
converter's own.

The converter writes into its working directory and names files after the
``FILENAME_FORMAT`` environment variable.
"""

import logging
import os
import subprocess
from collections.abc import Sequence
from pathlib import Path

import httpx

from crd_extractor.constants import (
    CONVERTER_DOWNLOAD_TIMEOUT,
    CONVERTER_FILENAME_ENV,
    CONVERTER_SCRIPT_NAME,
    CONVERTER_URL,
    DEFAULT_CONVERTER_TIMEOUT,
    SCHEMA_SUFFIX,
)
from crd_extractor.errors import PreconditionError
from crd_extractor.models import ConversionResult

logger = logging.getLogger(__name__)

# Converter output kept for diagnostics
OUTPUT_TAIL_CHARS = 4000
TIMEOUT_EXIT_STATUS = -1


def list_produced_files(output_dir: Path) -> list[Path]:
    """Top-level schema files in the converter's output directory, sorted."""
    if not output_dir.is_dir():
        return []
    return sorted(p for p in output_dir.glob(f"*{SCHEMA_SUFFIX}") if p.is_file())


class SchemaConverter:
    """Runs the external OpenAPI to JSON Schema converter."""

    def __init__(
        self,
        python_executable: str,
        script_path: Path | None = None,
        script_url: str = CONVERTER_URL,
        timeout: int = DEFAULT_CONVERTER_TIMEOUT,
    ):
        """
        Initialize the converter adapter.

        Args:
            python_executable: Interpreter used to run the converter script
            script_path: Local converter script; downloaded when None
            script_url: Download location of the converter script
            timeout: Maximum converter runtime in seconds
        """
        self.python_executable = python_executable
        self.script_path = script_path
        self.script_url = script_url
        self.timeout = timeout

    def ensure_script(self, workdir: Path) -> Path:
        """
        Make the converter script available.

        Args:
            workdir: Directory the script is downloaded into

        Returns:
            Path of the converter script

        Raises:
            PreconditionError: If the script is missing and cannot be downloaded
        """
        if self.script_path is not None:
            if not self.script_path.is_file():
                raise PreconditionError(
                    f"Converter script {self.script_path} does not exist"
                )
            return self.script_path

        target = workdir / CONVERTER_SCRIPT_NAME
        logger.info(f"Downloading converter from {self.script_url}")
        try:
            response = httpx.get(
                self.script_url,
                timeout=CONVERTER_DOWNLOAD_TIMEOUT,
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise PreconditionError(
                f"Failed to download converter from {self.script_url}: {e}",
                user_action="Check network access or set CRD_EXTRACTOR_CONVERTER_SCRIPT "
                "to a local copy of openapi2jsonschema.py",
                cause=e,
            ) from e

        workdir.mkdir(parents=True, exist_ok=True)
        target.write_bytes(response.content)
        logger.debug(f"Converter saved to {target}", extra={"path": target})
        self.script_path = target
        return target

    def convert(
        self,
        documents: Sequence[Path],
        output_dir: Path,
        filename_template: str,
    ) -> ConversionResult:
        """
        Convert the staged documents into JSON Schema files.

        Top-level schema files left in ``output_dir`` by an earlier failed run
        are removed first, so every file reported afterwards was produced by
        this invocation.

        Args:
            documents: Input documents, CRDs followed by the OpenAPI snapshot
            output_dir: Directory receiving the converted files
            filename_template: Converter FILENAME_FORMAT

        Returns:
            Exit status and produced files; non-zero status means failure

        Raises:
            PreconditionError: If the converter cannot be started
        """
        if self.script_path is None:
            raise PreconditionError("Converter script has not been prepared")

        output_dir.mkdir(parents=True, exist_ok=True)
        for stale in list_produced_files(output_dir):
            logger.debug(f"Removing stale schema {stale.name}", extra={"path": stale})
            stale.unlink()

        command = [
            self.python_executable,
            str(self.script_path.resolve()),
            *(str(p.resolve()) for p in documents),
        ]
        env = {**os.environ, CONVERTER_FILENAME_ENV: filename_template}

        logger.info(
            f"Converting {len(documents)} documents to JSON schema",
            extra={"operation": "convert", "path": output_dir},
        )
        try:
            completed = subprocess.run(
                command,
                cwd=output_dir,
                env=env,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise PreconditionError(
                f"Converter interpreter '{self.python_executable}' not found",
                cause=e,
            ) from e
        except subprocess.TimeoutExpired:
            logger.error(
                f"Converter did not finish within {self.timeout}s",
                extra={"exit_status": TIMEOUT_EXIT_STATUS},
            )
            return ConversionResult(
                exit_status=TIMEOUT_EXIT_STATUS,
                produced_files=list_produced_files(output_dir),
                output=f"timed out after {self.timeout}s",
            )

        output = ((completed.stdout or "") + (completed.stderr or ""))[-OUTPUT_TAIL_CHARS:]
        result = ConversionResult(
            exit_status=completed.returncode,
            produced_files=list_produced_files(output_dir),
            output=output,
        )

        if result.succeeded:
            logger.info(
                f"Converter produced {result.produced_count} schema files",
                extra={"exit_status": result.exit_status},
            )
            logger.debug(f"Converter output:\n{output}")
        else:
            logger.error(
                f"Converter exited with status {result.exit_status}:\n{output}",
                extra={"exit_status": result.exit_status},
            )
        return result
