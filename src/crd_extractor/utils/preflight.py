"""
Startup capability checks.

Checks for the external tooling and credentials the pipeline relies on and
reports every missing capability at once instead of failing on the first.
Nothing here prompts or installs; the CLI decides how to surface the result.
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from crd_extractor.settings import Settings

logger = logging.getLogger(__name__)

CHECK_TIMEOUT = 30  # seconds


@dataclass(frozen=True)
class MissingCapability:
    """One missing external dependency and how to provide it."""

    name: str
    detail: str
    remedy: str

    def __str__(self) -> str:
        return f"{self.name}: {self.detail} ({self.remedy})"


def _resolve_executable(executable: str) -> str | None:
    if os.path.sep in executable:
        return executable if os.access(executable, os.X_OK) else None
    return shutil.which(executable)


def _interpreter_has_yaml(executable: str) -> bool:
    """Whether the converter interpreter can import PyYAML."""
    try:
        result = subprocess.run(
            [executable, "-c", "import yaml"],
            capture_output=True,
            timeout=CHECK_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"PyYAML check failed for {executable}: {e}")
        return False
    return result.returncode == 0


def _has_cluster_credentials(kubeconfig: Path | None) -> bool:
    if os.environ.get("KUBERNETES_SERVICE_HOST"):
        return True
    if kubeconfig is not None:
        return kubeconfig.is_file()
    env_paths = os.environ.get("KUBECONFIG", "")
    candidates = [Path(p).expanduser() for p in env_paths.split(os.pathsep) if p]
    if not candidates:
        candidates = [Path("~/.kube/config").expanduser()]
    return any(p.is_file() for p in candidates)


def check_capabilities(settings: Settings) -> list[MissingCapability]:
    """
    Check every external capability the pipeline needs.

    Args:
        settings: Extractor settings

    Returns:
        Missing capabilities, empty when the pipeline can run
    """
    missing: list[MissingCapability] = []

    interpreter = _resolve_executable(settings.converter_python)
    if interpreter is None:
        missing.append(
            MissingCapability(
                name="python",
                detail=f"converter interpreter '{settings.converter_python}' not found",
                remedy="install Python 3 from https://www.python.org/downloads/ "
                "or set CRD_EXTRACTOR_CONVERTER_PYTHON",
            )
        )
    elif not _interpreter_has_yaml(interpreter):
        missing.append(
            MissingCapability(
                name="pyyaml",
                detail=f"'{interpreter}' cannot import the yaml module",
                remedy=f"run '{interpreter} -m pip install pyyaml'",
            )
        )

    if settings.converter_script is not None:
        if not settings.converter_script.is_file():
            missing.append(
                MissingCapability(
                    name="converter",
                    detail=f"converter script {settings.converter_script} does not exist",
                    remedy="fix CRD_EXTRACTOR_CONVERTER_SCRIPT or unset it to download",
                )
            )
    elif not settings.converter_url:
        missing.append(
            MissingCapability(
                name="converter",
                detail="no converter script or download URL configured",
                remedy="set CRD_EXTRACTOR_CONVERTER_SCRIPT or CRD_EXTRACTOR_CONVERTER_URL",
            )
        )

    if not _has_cluster_credentials(settings.kubeconfig):
        missing.append(
            MissingCapability(
                name="kubeconfig",
                detail="no kubeconfig file and not running inside a cluster",
                remedy="see https://kubernetes.io/docs/tasks/tools/#kubectl "
                "to configure cluster access",
            )
        )

    for capability in missing:
        logger.debug(f"Missing capability: {capability}")
    return missing
