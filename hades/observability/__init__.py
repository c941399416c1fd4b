"""
Observability Module - structured logging and Prometheus metrics.

1. Plain or JSON log lines (python-json-logger) for log aggregation
2. Prometheus collectors for analysis volume, latency and lookup failures
3. /metrics endpoint via prometheus-flask-exporter

Usage:
    from hades.observability import setup_logging, get_metrics, setup_prometheus_endpoint
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Dict, List, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_flask_exporter import PrometheusMetrics
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "hades-url-analyzer"

# Extra record attributes copied into JSON log lines when present
CONTEXT_FIELDS = ('url', 'final_score', 'latency_ms', 'batch_size')

# ============================================================================
# STRUCTURED LOGGING
# ============================================================================


class StructuredJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for structured logging.
    Compatible with ELK Stack, Splunk, CloudWatch, etc.
    """

    def add_fields(self, log_record: Dict, record: logging.LogRecord, message_dict: Dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['service'] = SERVICE_NAME
        log_record['level'] = record.levelname
        log_record['logger'] = record.name

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                log_record[name] = getattr(record, name)


def setup_logging(
    level: int = logging.INFO,
    json_format: bool = False,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure root logging for the service.

    Args:
        level: Logging level (default: INFO)
        json_format: Emit JSON lines instead of plain text
        log_file: Optional file path for file logging

    Returns:
        Configured root logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    if json_format:
        formatter = StructuredJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
    else:
        formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger


# ============================================================================
# PROMETHEUS METRICS
# ============================================================================

class AnalysisMetrics:
    """
    Prometheus collectors for URL analysis.

    Exposes:
    - Analyses by risk band
    - Per-URL analysis latency
    - WHOIS / HTML lookup failures
    - Batch sizes

    Collectors are created unregistered; setup_prometheus_endpoint() adds
    them to the registry of each Flask app it instruments.
    """

    def __init__(self):
        self.analyses_total = Counter(
            'hades_analyses_total',
            'Total number of analyzed URLs',
            ['risk_level'],
            registry=None
        )

        self.analysis_latency = Histogram(
            'hades_analysis_latency_seconds',
            'Per-URL analysis latency in seconds',
            buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0],
            registry=None
        )

        self.lookup_failures = Counter(
            'hades_lookup_failures_total',
            'Number of failed external lookups',
            ['failure_type'],
            registry=None
        )

        self.batch_size = Histogram(
            'hades_batch_size',
            'Number of URLs per analyze request',
            buckets=[0, 1, 5, 10, 25, 50, 100, 250, 500],
            registry=None
        )

    def collectors(self) -> List:
        return [self.analyses_total, self.analysis_latency, self.lookup_failures, self.batch_size]

    def record_analysis(self, risk_level: str, latency_seconds: float) -> None:
        """Record a completed URL analysis."""
        self.analyses_total.labels(risk_level=risk_level).inc()
        self.analysis_latency.observe(latency_seconds)

    def record_lookup_failure(self, failure_type: str) -> None:
        """Record a WHOIS or HTML lookup failure."""
        self.lookup_failures.labels(failure_type=failure_type).inc()

    def record_batch(self, size: int) -> None:
        self.batch_size.observe(size)


# Singleton metrics instance
_metrics: Optional[AnalysisMetrics] = None


def get_metrics() -> AnalysisMetrics:
    """Get or create the metrics singleton."""
    global _metrics
    if _metrics is None:
        _metrics = AnalysisMetrics()
    return _metrics


# ============================================================================
# PROMETHEUS ENDPOINT SETUP
# ============================================================================

def setup_prometheus_endpoint(app, version: str = "1.0") -> PrometheusMetrics:
    """
    Add a /metrics endpoint for Prometheus scraping.

    Each app gets its own registry holding the HTTP metrics of the exporter
    and the shared analysis collectors.

    Args:
        app: Flask application instance
        version: Reported in the app info metric
    """
    registry = CollectorRegistry(auto_describe=True)
    for collector in get_metrics().collectors():
        registry.register(collector)

    metrics = PrometheusMetrics(app, registry=registry)
    metrics.info('hades_app_info', 'Application info', version=version)

    return metrics
