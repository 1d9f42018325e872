"""Prometheus exporter helpers."""

from __future__ import annotations

from prometheus_client import Counter, Gauge


sweep_runs_total = Counter(
    "retention_sweep_runs_total",
    "Total number of retention sweeps by collection and outcome.",
    ["collection", "outcome"],
)

swept_items_total = Counter(
    "retention_swept_items_total",
    "Items fully removed from blob store and metadata index.",
    ["collection"],
)

sweep_failures_total = Counter(
    "retention_sweep_failures_total",
    "Items whose deletion failed, by failing step.",
    ["collection", "step"],
)

last_sweep_timestamp = Gauge(
    "retention_last_sweep_timestamp_seconds",
    "Unix time the last sweep of a collection finished.",
    ["collection"],
)
