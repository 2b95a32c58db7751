from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field


@dataclass
class CompileStats:
    """Thread-safe pattern cache statistics."""

    hits: int = 0
    misses: int = 0
    compiles: int = 0
    errors: int = 0
    backend_errors: int = 0
    start_time: float = field(default_factory=time.time)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def increment_hit(self) -> None:
        with self._lock:
            self.hits += 1

    def increment_miss(self) -> None:
        with self._lock:
            self.misses += 1

    def increment_compile(self) -> None:
        """Count a pattern translated from scratch."""
        with self._lock:
            self.compiles += 1

    def increment_error(self) -> None:
        """Count a pattern rejected by the compiler."""
        with self._lock:
            self.errors += 1

    def increment_backend_error(self) -> None:
        """Count a corrupt or unreadable backend entry."""
        with self._lock:
            self.backend_errors += 1

    @property
    def lookups(self) -> int:
        with self._lock:
            return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        with self._lock:
            total = self.hits + self.misses
            return self.hits / total if total > 0 else 0.0

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self.start_time

    def reset(self) -> None:
        with self._lock:
            self.hits = 0
            self.misses = 0
            self.compiles = 0
            self.errors = 0
            self.backend_errors = 0
            self.start_time = time.time()

    def to_dict(self) -> dict:
        """Export statistics as dictionary."""
        with self._lock:
            hits, misses = self.hits, self.misses
            data = {
                "hits": hits,
                "misses": misses,
                "compiles": self.compiles,
                "errors": self.errors,
                "backend_errors": self.backend_errors,
            }
        total = hits + misses
        data["hit_rate"] = hits / total if total > 0 else 0.0
        data["uptime_seconds"] = self.uptime_seconds
        return data
