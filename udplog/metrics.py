"""Centralized Prometheus metric definitions for udp-logger.

All metric objects are defined here and imported by other modules. The
daemon runs ingestion and HTTP in one process, so the default registry is
exposed directly at /metrics.
"""

from prometheus_client import Counter, Gauge, Histogram

VERSION = '0.1.0'

# ---- Counters ----

RECORDS_RECEIVED_TOTAL = Counter(
    'udplog_records_received_total',
    'Total records received from the UDP transport',
)

RECEIVE_ERRORS_TOTAL = Counter(
    'udplog_receive_errors_total',
    'Total transient errors while reading from the UDP transport',
)

QUERIES_TOTAL = Counter(
    'udplog_queries_total',
    'Total store queries by kind',
    ['kind'],
)

# ---- Histograms ----

HTTP_REQUEST_DURATION = Histogram(
    'udplog_http_request_duration_seconds',
    'Duration of query HTTP requests',
    ['method', 'endpoint', 'status_code'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

# ---- Gauges ----

RETAINED_RECORDS = Gauge(
    'udplog_retained_records',
    'Number of records currently retained in memory',
)

BUILD_INFO = Gauge(
    'udplog_build_info',
    'udp-logger build information (value is always 1)',
    ['version'],
)
BUILD_INFO.labels(version=VERSION).set(1)
