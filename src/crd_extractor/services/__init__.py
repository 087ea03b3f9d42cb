"""
Service layer for the CRD extractor.

Contains the pipeline stages (fetcher, converter, organizer, report) and
the pipeline that runs them in order.
"""

from .converter import SchemaConverter
from .fetcher import BoundedFetcher
from .organizer import organize
from .pipeline import ExtractionPipeline, PipelineOutcome
from .report import build_report

__all__ = [
    "BoundedFetcher",
    "SchemaConverter",
    "organize",
    "build_report",
    "ExtractionPipeline",
    "PipelineOutcome",
]
