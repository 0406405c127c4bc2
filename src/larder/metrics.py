"""Prometheus metrics definitions for Larder."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "larder_http_requests_total",
    "Total number of HTTP requests processed by the Larder API",
    ["method", "path", "status"],
)

REQUEST_LATENCY = Histogram(
    "larder_http_request_duration_seconds",
    "Latency of HTTP requests processed by the Larder API",
    ["method", "path"],
)

LIST_GENERATIONS = Counter(
    "larder_list_generations_total",
    "Grocery list regenerations by outcome (changed/unchanged)",
    ["outcome"],
)

RECONCILED_ENTRIES = Counter(
    "larder_reconciled_entries_total",
    "List entries touched by reconciliation, by action",
    ["action"],
)

ORPHANS_REMOVED = Counter(
    "larder_orphaned_entries_removed_total",
    "Derived list entries removed by the orphan cleanup pass",
)

UNRECONCILED_UNITS = Counter(
    "larder_unreconciled_unit_contributions_total",
    "Recipe contributions left out of a demand because their unit could not be converted",
)

GROUP_MUTATIONS = Counter(
    "larder_group_mutations_total",
    "Entries changed by cross-period group operations",
    ["operation"],
)

__all__ = [
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "LIST_GENERATIONS",
    "RECONCILED_ENTRIES",
    "ORPHANS_REMOVED",
    "UNRECONCILED_UNITS",
    "GROUP_MUTATIONS",
]
