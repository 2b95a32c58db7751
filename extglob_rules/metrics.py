from __future__ import annotations

import threading
from typing import Any, Dict

from prometheus_client import Counter, Histogram

_lock = threading.Lock()
# Collectors register globally in prometheus_client, so they are created once
# per process and shared by every namespace through labels.
_collectors: Dict[str, Any] = {}


def _get_collectors() -> Dict[str, Any]:
    with _lock:
        if not _collectors:
            _collectors.update(
                hits=Counter(
                    "extglob_cache_hits_total",
                    "Pattern lookups served from cache",
                    ["namespace", "tier"],
                ),
                misses=Counter(
                    "extglob_cache_misses_total",
                    "Pattern lookups that required translation",
                    ["namespace"],
                ),
                compiles=Counter(
                    "extglob_compiles_total",
                    "Patterns translated and compiled",
                    ["namespace"],
                ),
                errors=Counter(
                    "extglob_errors_total",
                    "Pattern and backend errors",
                    ["namespace", "type"],
                ),
                latency=Histogram(
                    "extglob_translate_seconds",
                    "Time spent translating and compiling a pattern",
                    ["namespace"],
                ),
            )
        return _collectors


class CompilerMetrics:
    """Prometheus metrics for pattern compilation."""

    def __init__(self, namespace: str = "default"):
        self.namespace = namespace
        collectors = _get_collectors()
        self.hits = collectors["hits"]
        self.misses = collectors["misses"]
        self.compiles = collectors["compiles"]
        self.errors = collectors["errors"]
        self.latency = collectors["latency"]

    def record_hit(self, tier: str) -> None:
        self.hits.labels(namespace=self.namespace, tier=tier).inc()

    def record_miss(self) -> None:
        self.misses.labels(namespace=self.namespace).inc()

    def record_compile(self, seconds: float) -> None:
        self.compiles.labels(namespace=self.namespace).inc()
        self.latency.labels(namespace=self.namespace).observe(seconds)

    def record_error(self, error_type: str) -> None:
        self.errors.labels(namespace=self.namespace, type=error_type).inc()
