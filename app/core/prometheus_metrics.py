from prometheus_client import Counter, Histogram, Info, generate_latest
from prometheus_client.core import CollectorRegistry
import logging

logger = logging.getLogger(__name__)

# Prometheus Registry
REGISTRY = CollectorRegistry()

# Operation Metrics
operation_requests_total = Counter(
    'inspection_operation_requests_total',
    'Total registry, inspection and export operations',
    ['status', 'service', 'method'],
    registry=REGISTRY
)

operation_duration_seconds = Histogram(
    'inspection_operation_duration_seconds',
    'Operation duration in seconds',
    ['service', 'method'],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
    registry=REGISTRY
)

# Business Metrics
inspections_saved_total = Counter(
    'inspection_records_saved_total',
    'Inspection records persisted',
    ['storage_mode'],
    registry=REGISTRY
)

documents_exported_total = Counter(
    'inspection_documents_exported_total',
    'Inspection documents exported',
    ['outcome'],
    registry=REGISTRY
)

system_info = Info(
    'inspection_capture_info',
    'System information',
    registry=REGISTRY
)


class PrometheusMetricsCollector:
    """Thin facade over the module level Prometheus instruments"""

    def __init__(self):
        # Initialize system info
        system_info.info({
            'version': '1.0.0',
            'service': 'vehicle-inspection'
        })

    def record_operation(
        self,
        service_name: str,
        method_name: str,
        duration_seconds: float,
        success: bool,
    ):
        """Record call count and latency of a tracked operation"""

        status = 'success' if success else 'error'

        operation_requests_total.labels(
            status=status,
            service=service_name,
            method=method_name
        ).inc()

        operation_duration_seconds.labels(
            service=service_name,
            method=method_name
        ).observe(duration_seconds)

    def record_inspection_saved(self, storage_mode: str):
        inspections_saved_total.labels(storage_mode=storage_mode).inc()

    def record_export(self, outcome: str):
        documents_exported_total.labels(outcome=outcome).inc()

    def get_prometheus_metrics(self) -> bytes:
        """Get Prometheus metrics in text format"""
        return generate_latest(REGISTRY)

# Global instance
prometheus_collector = PrometheusMetricsCollector()
