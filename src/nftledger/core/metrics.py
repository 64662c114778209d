"""
Token ledger instrumentation.

Provides Prometheus metrics for ledger operations: outcome counters per
operation and a total-supply gauge per collection. A custom registry can
be injected so several ledgers or test runs do not collide on metric
names in the global registry.
"""

from __future__ import annotations

import threading
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, generate_latest


class LedgerMetrics:
    """
    Prometheus metrics for one or more ledgers sharing a registry.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or REGISTRY
        self._lock = threading.Lock()

        self.operations_total = Counter(
            "nftledger_operations_total",
            "Ledger operations by operation name and outcome",
            ["collection", "operation", "outcome"],
            registry=self.registry,
        )

        self.total_supply = Gauge(
            "nftledger_total_supply",
            "Number of tokens currently in existence",
            ["collection"],
            registry=self.registry,
        )

        self.sink_failures_total = Counter(
            "nftledger_event_sink_failures_total",
            "Event sink deliveries that raised",
            ["collection"],
            registry=self.registry,
        )

    def record_operation(self, collection: str, operation: str, outcome: str) -> None:
        """Count an operation; outcome is 'success' or the error code."""
        with self._lock:
            self.operations_total.labels(
                collection=collection, operation=operation, outcome=outcome
            ).inc()

    def set_total_supply(self, collection: str, supply: int) -> None:
        with self._lock:
            self.total_supply.labels(collection=collection).set(supply)

    def record_sink_failure(self, collection: str) -> None:
        with self._lock:
            self.sink_failures_total.labels(collection=collection).inc()

    def export(self) -> bytes:
        """Render the registry in the Prometheus text format."""
        return generate_latest(self.registry)
