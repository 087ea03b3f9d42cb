"""
Bounded parallel CRD fetcher.

Fetches the full document of every named CRD with at most
``concurrency_limit`` requests in flight, staging each document in its own
file. A failure for one CRD is recorded on its FetchResult and never affects
the others; the batch completes only when every name has a result.

The Kubernetes client is synchronous, so each fetch runs in a worker thread
while scheduling and bookkeeping stay on the event loop.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from crd_extractor.constants import (
    DEFAULT_CONCURRENCY_LIMIT,
    DEFAULT_FETCH_RETRY_DELAY,
    FETCH_ERROR_API,
    FETCH_ERROR_NOT_FOUND,
    FETCH_ERROR_UNAUTHORIZED,
    FETCH_ERROR_UNEXPECTED,
    FETCH_ERROR_UNREACHABLE,
    STAGED_DOCUMENT_SUFFIX,
)
from crd_extractor.errors import (
    ClusterAuthError,
    ClusterUnreachableError,
    ConfigurationError,
    ExtractorError,
    ResourceNotFoundError,
)
from crd_extractor.models import FetchResult
from crd_extractor.observability.metrics import MetricsCollector

logger = logging.getLogger(__name__)

FetchDocument = Callable[[str], bytes]
ProgressCallback = Callable[[int, int, FetchResult], None]


def classify_error(error: Exception) -> str:
    """Map a fetch failure onto a FetchResult error type."""
    if isinstance(error, ClusterUnreachableError):
        return FETCH_ERROR_UNREACHABLE
    if isinstance(error, ClusterAuthError):
        return FETCH_ERROR_UNAUTHORIZED
    if isinstance(error, ResourceNotFoundError):
        return FETCH_ERROR_NOT_FOUND
    if isinstance(error, ExtractorError):
        return FETCH_ERROR_API
    return FETCH_ERROR_UNEXPECTED


def describe_error(error: Exception) -> str:
    """Short failure detail without the user guidance suffix."""
    if error.args:
        return str(error.args[0])
    return type(error).__name__


def all_unreachable(results: Sequence[FetchResult]) -> bool:
    """Whether every fetch failed because the cluster could not be reached."""
    return bool(results) and all(
        r.error_type == FETCH_ERROR_UNREACHABLE for r in results
    )


class BoundedFetcher:
    """
    Fetch CRD documents with bounded concurrency.

    Example:
        fetcher = BoundedFetcher(
            fetch_document=lambda name: read_crd_document(api_client, name),
            staging_dir=Path("/tmp/crds"),
            concurrency_limit=10,
        )
        results = await fetcher.fetch_all(names)
    """

    def __init__(
        self,
        fetch_document: FetchDocument,
        staging_dir: Path,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        retries: int = 0,
        retry_delay: float = DEFAULT_FETCH_RETRY_DELAY,
        progress: ProgressCallback | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the fetcher.

        Args:
            fetch_document: Blocking callable returning the document for a name
            staging_dir: Directory receiving one file per fetched document
            concurrency_limit: Default maximum number of fetches in flight
            retries: Extra attempts for retryable failures (0 = no retry)
            retry_delay: Base backoff in seconds, multiplied by the attempt number
            progress: Called on the event loop as (completed, total, result)
            metrics: Metrics collector, defaults to the global registry
        """
        _validate_limit(concurrency_limit)
        self.fetch_document = fetch_document
        self.staging_dir = staging_dir
        self.concurrency_limit = concurrency_limit
        self.retries = retries
        self.retry_delay = retry_delay
        self.progress = progress
        self.metrics = metrics or MetricsCollector()
        self.max_in_flight = 0
        self._in_flight = 0

    async def fetch_all(
        self, names: Sequence[str], concurrency_limit: int | None = None
    ) -> list[FetchResult]:
        """
        Fetch every named CRD.

        Args:
            names: CRD names to fetch
            concurrency_limit: Overrides the instance default for this batch

        Returns:
            Exactly one FetchResult per submitted name, in submission order
        """
        limit = concurrency_limit if concurrency_limit is not None else self.concurrency_limit
        _validate_limit(limit)

        semaphore = asyncio.Semaphore(limit)
        total = len(names)
        completed = 0
        self.max_in_flight = 0

        async def run(name: str) -> FetchResult:
            nonlocal completed
            result = await self._fetch_one(name, semaphore)
            completed += 1
            logger.info(
                f"Fetched CRD {completed}/{total}",
                extra={"crd_name": name, "completed": completed, "total": total},
            )
            if self.progress is not None:
                self.progress(completed, total, result)
            return result

        results = await asyncio.gather(*(run(name) for name in names))

        failed = sum(1 for r in results if not r.ok)
        logger.debug(
            f"Fetch batch finished: {total - failed} succeeded, {failed} failed, "
            f"peak concurrency {self.max_in_flight}/{limit}"
        )
        return list(results)

    async def _fetch_one(self, name: str, semaphore: asyncio.Semaphore) -> FetchResult:
        attempt = 0
        while True:
            attempt += 1
            try:
                # The slot is held per attempt and released during backoff
                async with semaphore:
                    path, content = await self._attempt(name)
            except Exception as e:
                # Per-resource failures are recorded, never raised
                error = e
            else:
                return FetchResult(
                    name=name, content=content, path=path, attempts=attempt
                )

            retryable = getattr(error, "retryable", False)
            if retryable and attempt <= self.retries:
                delay = self.retry_delay * attempt
                logger.warning(
                    f"Fetching CRD {name} failed, retrying in {delay:.1f}s: "
                    f"{describe_error(error)}",
                    extra={"crd_name": name, "attempt": attempt},
                )
                await asyncio.sleep(delay)
                continue

            error_type = classify_error(error)
            logger.warning(
                f"Failed to fetch CRD {name}: {describe_error(error)}",
                extra={"crd_name": name, "error_type": error_type, "attempt": attempt},
            )
            return FetchResult(
                name=name,
                error=describe_error(error),
                error_type=error_type,
                attempts=attempt,
            )

    async def _attempt(self, name: str) -> tuple[Path, bytes]:
        self._in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self._in_flight)
        self.metrics.fetch_started()
        start_time = time.monotonic()
        result = FETCH_ERROR_UNEXPECTED

        try:
            staged = await asyncio.to_thread(self._fetch_and_stage, name)
            result = "success"
            return staged
        except Exception as e:
            result = classify_error(e)
            raise
        finally:
            self._in_flight -= 1
            self.metrics.fetch_finished(result, time.monotonic() - start_time)

    def _fetch_and_stage(self, name: str) -> tuple[Path, bytes]:
        """Fetch one document and write it to its own staging file (worker thread)."""
        if Path(name).name != name or name.startswith("."):
            raise ValueError(f"Refusing to stage CRD with unsafe name '{name}'")

        content = self.fetch_document(name)
        path = self.staging_dir / f"{name}{STAGED_DOCUMENT_SUFFIX}"
        path.write_bytes(content)
        return path, content


def _validate_limit(limit: int) -> None:
    if limit < 1:
        raise ConfigurationError(
            f"Concurrency limit must be a positive integer, got {limit}"
        )
