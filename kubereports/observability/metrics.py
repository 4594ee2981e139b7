"""Prometheus metrics for the collection pipeline.

Failures never raise past the orchestrator, so these counters (together with
the logs) are how an operator sees a degraded collector.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

cycles_total = Counter(
    "kubereports_cycles_total",
    "Collection cycles completed (including partial and cancelled cycles).",
)

cycle_duration_seconds = Histogram(
    "kubereports_cycle_duration_seconds",
    "Wall-clock duration of one collection cycle.",
    buckets=(1, 5, 15, 30, 60, 120, 300, 600, 1800),
)

last_cycle_timestamp_seconds = Gauge(
    "kubereports_last_cycle_timestamp_seconds",
    "Unix time at which the last cycle finished.",
)

resource_items = Gauge(
    "kubereports_resource_items",
    "Items written for a resource type in its last successful collection.",
    ["resource"],
)

resource_failures_total = Counter(
    "kubereports_resource_failures_total",
    "Failed collections per resource type.",
    ["resource"],
)

items_skipped_total = Counter(
    "kubereports_items_skipped_total",
    "Report items dropped because they could not be encoded.",
    ["resource"],
)

list_requests_total = Counter(
    "kubereports_list_requests_total",
    "Paged list calls issued against the control plane.",
    ["resource"],
)

sink_failures_total = Counter(
    "kubereports_sink_failures_total",
    "Failed writes per sink.",
    ["sink"],
)
