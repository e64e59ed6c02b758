"""
Monitoring and metrics collection for the site crawler.
"""

import logging
import time
from typing import Any, Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server


class MetricsCollector:
    """Holds the crawler's Prometheus metrics in a private registry."""

    def __init__(self, prometheus_port: int = 8000,
                 registry: Optional[CollectorRegistry] = None):
        self.logger = logging.getLogger(__name__)
        self.prometheus_port = prometheus_port
        self.registry = registry or CollectorRegistry()

        self.pages_fetched = Counter(
            'crawler_pages_fetched_total',
            'Total number of fetch attempts completed',
            registry=self.registry
        )
        self.responses = Counter(
            'crawler_http_responses_total',
            'HTTP responses by status code',
            ['status_code'],
            registry=self.registry
        )
        self.errors = Counter(
            'crawler_errors_total',
            'Total number of crawl errors',
            ['error_type'],
            registry=self.registry
        )
        self.response_time = Histogram(
            'crawler_response_time_seconds',
            'Response time for HTTP requests',
            registry=self.registry
        )
        self.queue_size = Gauge(
            'crawler_queue_size',
            'Number of URLs in the frontier',
            registry=self.registry
        )
        self.active_workers = Gauge(
            'crawler_active_workers',
            'Number of fetches in flight',
            registry=self.registry
        )

    def start_prometheus_server(self):
        """Expose the registry over HTTP."""
        start_http_server(self.prometheus_port, registry=self.registry)
        self.logger.info(f"Prometheus metrics server started on port {self.prometheus_port}")

    def get_sample(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Current value of a sample, 0.0 if it was never recorded."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0


class CrawlerMonitor:
    """High-level monitoring interface for the crawler."""

    def __init__(self, metrics_collector: MetricsCollector):
        self.metrics = metrics_collector
        self.start_time = time.time()

    def record_page(self, url: str, status_code: int, response_time: float):
        """Record a completed fetch attempt."""
        self.metrics.pages_fetched.inc()
        if status_code:
            self.metrics.responses.labels(status_code=str(status_code)).inc()
            self.metrics.response_time.observe(response_time)

    def record_error(self, error_type: str):
        self.metrics.errors.labels(error_type=error_type).inc()

    def update_queue_size(self, size: int):
        self.metrics.queue_size.set(size)

    def update_active_workers(self, count: int):
        self.metrics.active_workers.set(count)

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of the main counters."""
        runtime = time.time() - self.start_time
        fetched = self.metrics.get_sample('crawler_pages_fetched_total')

        return {
            'runtime_seconds': runtime,
            'pages_fetched': fetched,
            'queue_size': self.metrics.get_sample('crawler_queue_size'),
            'active_workers': self.metrics.get_sample('crawler_active_workers'),
            'pages_per_second': fetched / runtime if runtime > 0 else 0
        }


def initialize_monitoring(enabled: bool = False, prometheus_port: int = 8000) -> CrawlerMonitor:
    """Create a monitor, starting the metrics endpoint when enabled."""
    monitor = CrawlerMonitor(MetricsCollector(prometheus_port))
    if enabled:
        monitor.metrics.start_prometheus_server()
    return monitor
