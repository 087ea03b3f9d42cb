"""Unit tests for startup capability checks."""

import subprocess
from unittest.mock import patch

import pytest

from crd_extractor.settings import Settings
from crd_extractor.utils.preflight import MissingCapability, check_capabilities


@pytest.fixture
def kubeconfig(tmp_path):
    path = tmp_path / "kubeconfig"
    path.write_text("apiVersion: v1\nkind: Config\n")
    return path


@pytest.fixture
def yaml_available():
    with patch(
        "crd_extractor.utils.preflight.subprocess.run",
        return_value=subprocess.CompletedProcess(args=[], returncode=0),
    ) as mock_run:
        yield mock_run


class TestCheckCapabilities:
    """Test detection of missing external capabilities."""

    def test_everything_available(self, kubeconfig, yaml_available):
        settings = Settings(converter_python="python3", kubeconfig=kubeconfig)

        with patch(
            "crd_extractor.utils.preflight.shutil.which", return_value="/usr/bin/python3"
        ):
            assert check_capabilities(settings) == []

        assert yaml_available.call_args[0][0] == ["/usr/bin/python3", "-c", "import yaml"]

    def test_missing_interpreter(self, kubeconfig, yaml_available):
        settings = Settings(converter_python="python-missing", kubeconfig=kubeconfig)

        with patch("crd_extractor.utils.preflight.shutil.which", return_value=None):
            missing = check_capabilities(settings)

        assert [m.name for m in missing] == ["python"]
        yaml_available.assert_not_called()

    def test_missing_pyyaml(self, kubeconfig):
        settings = Settings(converter_python="python3", kubeconfig=kubeconfig)

        with patch(
            "crd_extractor.utils.preflight.shutil.which", return_value="/usr/bin/python3"
        ), patch(
            "crd_extractor.utils.preflight.subprocess.run",
            return_value=subprocess.CompletedProcess(args=[], returncode=1),
        ):
            missing = check_capabilities(settings)

        assert [m.name for m in missing] == ["pyyaml"]
        assert "pip install pyyaml" in missing[0].remedy

    def test_missing_converter_script(self, tmp_path, kubeconfig, yaml_available):
        settings = Settings(
            converter_python="python3",
            converter_script=tmp_path / "missing.py",
            kubeconfig=kubeconfig,
        )

        with patch(
            "crd_extractor.utils.preflight.shutil.which", return_value="/usr/bin/python3"
        ):
            missing = check_capabilities(settings)

        assert [m.name for m in missing] == ["converter"]

    def test_missing_cluster_credentials(self, tmp_path, monkeypatch, yaml_available):
        monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
        monkeypatch.setenv("KUBECONFIG", str(tmp_path / "absent"))
        settings = Settings(converter_python="python3")

        with patch(
            "crd_extractor.utils.preflight.shutil.which", return_value="/usr/bin/python3"
        ):
            missing = check_capabilities(settings)

        assert [m.name for m in missing] == ["kubeconfig"]

    def test_in_cluster_credentials(self, tmp_path, monkeypatch, yaml_available):
        monkeypatch.setenv("KUBERNETES_SERVICE_HOST", "10.0.0.1")
        monkeypatch.setenv("KUBECONFIG", str(tmp_path / "absent"))
        settings = Settings(converter_python="python3")

        with patch(
            "crd_extractor.utils.preflight.shutil.which", return_value="/usr/bin/python3"
        ):
            assert check_capabilities(settings) == []

    def test_reports_all_missing_at_once(self, tmp_path, monkeypatch):
        monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
        monkeypatch.setenv("KUBECONFIG", str(tmp_path / "absent"))
        settings = Settings(
            converter_python="python-missing",
            converter_script=tmp_path / "missing.py",
        )

        with patch("crd_extractor.utils.preflight.shutil.which", return_value=None):
            missing = check_capabilities(settings)

        assert [m.name for m in missing] == ["python", "converter", "kubeconfig"]


def test_missing_capability_str():
    capability = MissingCapability(
        name="pyyaml", detail="cannot import yaml", remedy="pip install pyyaml"
    )

    assert str(capability) == "pyyaml: cannot import yaml (pip install pyyaml)"
