"""
Command-line entry point for the CRD extractor.

Fetches every CRD in the current cluster, converts them to JSON schema and
writes them where datree, kubeconform and kubeval can find them.

Usage:
    crd-extractor
    crd-extractor --concurrency 20 --schemas-root ./schemas
    crd-extractor --check

Environment Variables:
    CRD_EXTRACTOR_CONCURRENCY: Maximum CRD fetches in flight (default 10)
    CRD_EXTRACTOR_SCHEMAS_ROOT: Output directory (default ~/.datree/crdSchemas)
    CRD_EXTRACTOR_CONVERTER_SCRIPT: Local openapi2jsonschema.py to use
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from crd_extractor import __version__
from crd_extractor.constants import (
    EXIT_INTERRUPTED,
    EXIT_PRECONDITION_FAILED,
    EXIT_SUCCESS,
    EXIT_UNEXPECTED,
)
from crd_extractor.errors import ExtractorError
from crd_extractor.observability.logging import setup_structured_logging
from crd_extractor.services.pipeline import ExtractionPipeline
from crd_extractor.settings import Settings
from crd_extractor.utils.preflight import check_capabilities

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crd-extractor",
        description="Export the cluster's CRDs as JSON schemas for manifest validators",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--concurrency",
        dest="concurrency_limit",
        type=int,
        help="Maximum number of CRD fetches in flight",
    )
    parser.add_argument(
        "--retries",
        dest="fetch_retries",
        type=int,
        help="Extra attempts for CRD fetches that fail with a retryable error",
    )
    parser.add_argument(
        "--filename-template",
        help="Converter filename template, e.g. '{fullgroup}_{kind}_{version}'",
    )
    parser.add_argument("--schemas-root", type=Path, help="Output directory")
    parser.add_argument(
        "--staging-dir", type=Path, help="Disposable directory for fetched CRDs"
    )
    parser.add_argument(
        "--keep-staging",
        action="store_true",
        default=None,
        help="Keep the staging directory after the run",
    )
    parser.add_argument("--kubeconfig", type=Path, help="Kubeconfig file to use")
    parser.add_argument("--context", dest="kube_context", help="Kubeconfig context")
    parser.add_argument(
        "--converter-script", type=Path, help="Local openapi2jsonschema.py"
    )
    parser.add_argument("--converter-url", help="Converter download location")
    parser.add_argument(
        "--metrics-file",
        dest="metrics_textfile",
        type=Path,
        help="Write Prometheus metrics to this file",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--json-logs",
        action="store_true",
        default=None,
        help="Emit logs as JSON lines",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only check for missing dependencies and exit",
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Environment settings with command-line values layered on top."""
    overrides: dict[str, Any] = {
        key: value
        for key, value in vars(args).items()
        if key != "check" and value is not None
    }
    return Settings(**overrides)


def report_missing(settings: Settings) -> bool:
    """Print missing capabilities to stderr; True when everything is present."""
    missing = check_capabilities(settings)
    for capability in missing:
        print(f"missing {capability}", file=sys.stderr)
    return not missing


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = settings_from_args(args)
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return EXIT_PRECONDITION_FAILED

    setup_structured_logging(
        log_level=settings.log_level,
        enable_json_formatting=settings.json_logs,
        correlation_id_enabled=settings.correlation_ids,
    )

    if args.check:
        if report_missing(settings):
            print("All dependencies are available")
            return EXIT_SUCCESS
        return EXIT_PRECONDITION_FAILED

    if not report_missing(settings):
        return EXIT_PRECONDITION_FAILED

    try:
        outcome = asyncio.run(ExtractionPipeline(settings).run())
    except ExtractorError as e:
        logger.error(str(e), extra={"error_type": type(e).__name__})
        return e.exit_code
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return EXIT_INTERRUPTED
    except Exception:
        logger.exception("Unexpected error during extraction")
        return EXIT_UNEXPECTED

    print(outcome.report, end="")
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
