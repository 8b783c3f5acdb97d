"""Prometheus metrics definitions for the Docker Engine API client.

Counters and histograms are updated by the transport layer for every
completed exchange with the daemon; the gauge tracks connections that are
currently upgraded to raw duplex streams (attach / interactive exec).
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNT = Counter(
    "docker_engine_api_requests_total",
    "Total requests sent to the Docker daemon",
    ["method", "transport", "status_code"],
)

REQUEST_DURATION = Histogram(
    "docker_engine_api_request_duration_seconds",
    "Time until the daemon answered with a status line, in seconds",
    ["method", "transport"],
    buckets=(
        0.005, 0.01, 0.025, 0.05, 0.1,
        0.25, 0.5, 1.0, 2.5, 5.0, 10.0,
    ),
)

UPGRADED_STREAMS = Gauge(
    "docker_engine_api_upgraded_streams",
    "Connections currently upgraded to raw duplex streams",
    ["transport"],
)
