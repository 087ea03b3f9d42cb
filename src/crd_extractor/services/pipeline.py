"""
Extraction pipeline.

Runs the stages in order with a barrier between fetching and conversion:

    list CRDs -> fetch (bounded parallel) -> OpenAPI snapshot
      -> convert -> organize -> report

Per-CRD fetch failures only show up in the report. Cluster, conversion and
filesystem failures end the run with a non-zero exit code. The staging
directory is disposable and is removed when the run ends, including on
interrupt.
"""

import asyncio
import logging
import shutil
import time
from dataclasses import dataclass, field

from kubernetes import client

from crd_extractor.constants import (
    EXIT_CONVERSION_FAILED,
    EXIT_SUCCESS,
    OPENAPI_SNAPSHOT_NAME,
)
from crd_extractor.errors import ClusterUnreachableError, ExtractorError
from crd_extractor.models import ConversionResult, FetchResult, OrganizedLayout
from crd_extractor.observability.logging import (
    generate_correlation_id,
    set_correlation_id,
)
from crd_extractor.observability.metrics import MetricsCollector
from crd_extractor.services.converter import SchemaConverter
from crd_extractor.services.fetcher import BoundedFetcher, all_unreachable
from crd_extractor.services.organizer import organize
from crd_extractor.services.report import build_report
from crd_extractor.settings import Settings
from crd_extractor.utils.kubernetes import (
    fetch_openapi_v2,
    get_kubernetes_client,
    list_crd_names,
    read_crd_document,
)

logger = logging.getLogger(__name__)

NO_CRDS_MESSAGE = "No CRDs found in the cluster, exiting..."


@dataclass
class PipelineOutcome:
    """Result of one extraction run."""

    exit_code: int
    report: str
    fetch_results: list[FetchResult] = field(default_factory=list)
    conversion: ConversionResult | None = None
    layout: OrganizedLayout | None = None


class ExtractionPipeline:
    """Extracts all cluster CRDs as organized JSON schema files."""

    def __init__(
        self,
        settings: Settings,
        api_client: client.ApiClient | None = None,
        converter: SchemaConverter | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            settings: Extractor settings
            api_client: Kubernetes client, created from settings when None
            converter: Converter adapter, created from settings when None
            metrics: Metrics collector, defaults to the global registry
        """
        self.settings = settings
        self._api_client = api_client
        self.converter = converter or SchemaConverter(
            python_executable=settings.converter_python,
            script_path=settings.converter_script,
            script_url=settings.converter_url,
            timeout=settings.converter_timeout_seconds,
        )
        self.metrics = metrics or MetricsCollector()

    @property
    def api_client(self) -> client.ApiClient:
        if self._api_client is None:
            self._api_client = get_kubernetes_client(
                kubeconfig=self.settings.kubeconfig,
                context=self.settings.kube_context,
                pool_size=self.settings.concurrency_limit,
            )
        return self._api_client

    async def run(self) -> PipelineOutcome:
        """
        Run one extraction.

        Returns:
            Exit code and report

        Raises:
            ExtractorError: For cluster, precondition and filesystem failures
        """
        set_correlation_id(generate_correlation_id())
        start_time = time.monotonic()
        result = "error"

        try:
            outcome = await self._run()
            result = "success" if outcome.exit_code == EXIT_SUCCESS else "failed"
            return outcome
        except ExtractorError as e:
            result = e.category
            raise
        finally:
            self.metrics.record_run(result, time.monotonic() - start_time)
            if self.settings.metrics_textfile is not None:
                self.metrics.write(self.settings.metrics_textfile)

    async def _run(self) -> PipelineOutcome:
        settings = self.settings

        logger.info("Fetching list of CRDs...")
        names = await asyncio.to_thread(list_crd_names, self.api_client)
        if not names:
            logger.info(NO_CRDS_MESSAGE)
            return PipelineOutcome(exit_code=EXIT_SUCCESS, report=NO_CRDS_MESSAGE + "\n")

        staging_dir = settings.staging_dir
        if staging_dir.exists():
            shutil.rmtree(staging_dir)
        staging_dir.mkdir(parents=True)

        try:
            return await self._extract(names)
        finally:
            if settings.keep_staging:
                logger.info(f"Keeping staging directory {staging_dir}")
            else:
                shutil.rmtree(staging_dir, ignore_errors=True)

    async def _extract(self, names: list[str]) -> PipelineOutcome:
        settings = self.settings
        staging_dir = settings.staging_dir
        schemas_root = settings.schemas_root
        api_client = self.api_client

        fetcher = BoundedFetcher(
            fetch_document=lambda name: read_crd_document(api_client, name),
            staging_dir=staging_dir,
            concurrency_limit=settings.concurrency_limit,
            retries=settings.fetch_retries,
            retry_delay=settings.fetch_retry_delay_seconds,
            metrics=self.metrics,
        )
        results = await fetcher.fetch_all(names)
        if all_unreachable(results):
            raise ClusterUnreachableError(
                f"Could not reach the cluster to fetch any of {len(results)} CRDs"
            )

        fetched = sorted((r for r in results if r.ok), key=lambda r: r.name)
        failed = [r.name for r in results if not r.ok]
        if failed:
            logger.warning(f"{len(failed)} of {len(results)} CRDs could not be fetched")

        snapshot = staging_dir / OPENAPI_SNAPSHOT_NAME
        snapshot.write_bytes(await asyncio.to_thread(fetch_openapi_v2, api_client))

        self.converter.ensure_script(staging_dir)
        documents = [r.path for r in fetched if r.path is not None] + [snapshot]
        conversion = await asyncio.to_thread(
            self.converter.convert, documents, schemas_root, settings.filename_template
        )
        self.metrics.record_conversion(conversion.exit_status, conversion.produced_count)

        if not conversion.succeeded:
            # Converter output is not trusted, the organizer does not run
            report = build_report(
                fetch_count=len(fetched),
                produced_count=conversion.produced_count,
                layout=None,
                converter_status=conversion.exit_status,
                schemas_root=schemas_root,
                failed=failed,
            )
            return PipelineOutcome(
                exit_code=EXIT_CONVERSION_FAILED,
                report=report,
                fetch_results=results,
                conversion=conversion,
            )

        layout = organize(schemas_root)
        report = build_report(
            fetch_count=len(fetched),
            produced_count=conversion.produced_count,
            layout=layout,
            converter_status=conversion.exit_status,
            schemas_root=schemas_root,
            failed=failed,
        )
        return PipelineOutcome(
            exit_code=EXIT_SUCCESS,
            report=report,
            fetch_results=results,
            conversion=conversion,
            layout=layout,
        )
