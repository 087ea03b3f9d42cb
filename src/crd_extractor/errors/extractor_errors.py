"""
Extractor error hierarchy with categorization and exit codes.

This module defines the error types used throughout the CRD extractor,
providing clear categorization, retry hints for the fetcher and the process
exit code the CLI reports for each failure class.
"""

from crd_extractor.constants import (
    EXIT_CLUSTER_ERROR,
    EXIT_ORGANIZER_FAILED,
    EXIT_PRECONDITION_FAILED,
    EXIT_UNEXPECTED,
)


class ExtractorError(Exception):
    """
    Base error class for all extractor-related exceptions.

    Provides categorization, retry behavior, and user guidance for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        retryable: bool = False,
        exit_code: int = EXIT_UNEXPECTED,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize extractor error.

        Args:
            message: Human-readable error description
            category: Error category (configuration, precondition, cluster, ...)
            retryable: Whether a fetch failing with this error may be retried
            exit_code: Process exit code reported by the CLI
            user_action: What user should do to resolve the issue
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.exit_code = exit_code
        self.user_action = user_action
        self.cause = cause

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class ConfigurationError(ExtractorError):
    """Error in extractor configuration."""

    def __init__(self, message: str, user_action: str | None = None):
        super().__init__(
            message=message,
            category="configuration",
            exit_code=EXIT_PRECONDITION_FAILED,
            user_action=user_action or "Review and correct configuration",
        )


class PreconditionError(ExtractorError):
    """A required external capability is missing."""

    def __init__(
        self,
        message: str,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category="precondition",
            exit_code=EXIT_PRECONDITION_FAILED,
            user_action=user_action
            or "Run 'crd-extractor --check' to list missing dependencies",
            cause=cause,
        )


class ClusterUnreachableError(ExtractorError):
    """The Kubernetes API server could not be reached."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(
            message=message,
            category="cluster",
            retryable=True,
            exit_code=EXIT_CLUSTER_ERROR,
            user_action="Check cluster connectivity and the current kubeconfig context",
            cause=cause,
        )


class ClusterAuthError(ExtractorError):
    """The cluster rejected our credentials or permissions."""

    def __init__(self, message: str, status: int | None = None):
        if status:
            message = f"HTTP {status}: {message}"
        super().__init__(
            message=message,
            category="authorization",
            exit_code=EXIT_CLUSTER_ERROR,
            user_action="Check credentials and RBAC permissions to read CRDs",
        )
        self.status = status


class KubernetesAPIError(ExtractorError):
    """Error communicating with Kubernetes API."""

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        status: int | None = None,
        retryable: bool = True,
    ):
        if reason:
            message = f"{message} (reason: {reason})"

        # Client errors are not retryable, except throttling
        if status and 400 <= status < 500 and status != 429:
            retryable = False

        super().__init__(
            message=message,
            category="api",
            retryable=retryable,
            exit_code=EXIT_CLUSTER_ERROR,
            user_action="Check RBAC permissions and cluster connectivity",
        )
        self.reason = reason
        self.status = status


class ResourceNotFoundError(KubernetesAPIError):
    """A named CRD disappeared between listing and fetching."""

    def __init__(self, name: str):
        super().__init__(
            message=f"CustomResourceDefinition {name} not found",
            reason="NotFound",
            status=404,
        )
        self.name = name


class OrganizerError(ExtractorError):
    """A filesystem operation failed while organizing the output."""

    def __init__(self, message: str, path: str, cause: Exception | None = None):
        super().__init__(
            message=f"{message}: {path}",
            category="filesystem",
            exit_code=EXIT_ORGANIZER_FAILED,
            user_action="Check permissions on the schemas directory and re-run",
            cause=cause,
        )
        self.path = path
