"""Unit tests for the extractor error hierarchy."""

import pytest

from crd_extractor.errors import (
    ClusterAuthError,
    ClusterUnreachableError,
    ConfigurationError,
    ExtractorError,
    KubernetesAPIError,
    OrganizerError,
    PreconditionError,
    ResourceNotFoundError,
)


class TestExitCodes:
    """Each failure class maps onto its process exit code."""

    @pytest.mark.parametrize(
        "error,exit_code",
        [
            (ConfigurationError("bad"), 4),
            (PreconditionError("missing python"), 4),
            (ClusterUnreachableError("down"), 2),
            (ClusterAuthError("denied", status=401), 2),
            (KubernetesAPIError("boom", status=500), 2),
            (OrganizerError("Failed to move schema", "/tmp/x.json"), 5),
            (ExtractorError("unknown", category="other"), 1),
        ],
    )
    def test_exit_code(self, error, exit_code):
        assert error.exit_code == exit_code


class TestMessages:
    """Test error messages and user guidance."""

    def test_user_action_appended(self):
        error = PreconditionError("Converter script missing")

        assert str(error).startswith("Converter script missing\nAction required: ")
        assert "crd-extractor --check" in str(error)

    def test_no_user_action(self):
        assert str(ExtractorError("plain", category="other")) == "plain"

    def test_auth_error_includes_status(self):
        error = ClusterAuthError("Listing CRDs was rejected", status=403)

        assert error.args[0] == "HTTP 403: Listing CRDs was rejected"
        assert not error.retryable

    def test_organizer_error_keeps_path(self):
        cause = OSError("disk full")
        error = OrganizerError("Failed to copy schema", "/data/x.json", cause)

        assert error.path == "/data/x.json"
        assert error.cause is cause
        assert error.args[0] == "Failed to copy schema: /data/x.json"


class TestRetryable:
    """Test retry hints."""

    def test_unreachable_is_retryable(self):
        assert ClusterUnreachableError("down").retryable

    @pytest.mark.parametrize("status,retryable", [(400, False), (429, True), (500, True)])
    def test_api_error_retryable_by_status(self, status, retryable):
        assert KubernetesAPIError("x", status=status).retryable is retryable

    def test_not_found(self):
        error = ResourceNotFoundError("widgets.example.com")

        assert isinstance(error, KubernetesAPIError)
        assert error.status == 404
        assert not error.retryable
        assert "CustomResourceDefinition widgets.example.com not found" in str(error)
