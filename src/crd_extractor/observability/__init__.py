"""
Observability utilities for the CRD extractor.

This module provides metrics and structured logging capabilities.
"""

from .logging import setup_structured_logging
from .metrics import MetricsCollector, get_metrics_registry

__all__ = [
    "MetricsCollector",
    "get_metrics_registry",
    "setup_structured_logging",
]
