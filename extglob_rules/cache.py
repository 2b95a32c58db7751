from __future__ import annotations

import logging
import os
import re
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from .backends.base import TranslationBackend
from .compiler import GlobCompiler
from .errors import ExtGlobError
from .matcher import Matcher
from .metrics import CompilerMetrics
from .serializers import deserialize_translation, serialize_translation
from .stats import CompileStats

logger = logging.getLogger(__name__)


@dataclass
class CacheConfig:
    namespace: str = os.environ.get("EXTGLOB_NAMESPACE", "default")
    ttl_seconds: int = int(os.environ.get("EXTGLOB_TTL", "86400"))
    max_entries: int = int(os.environ.get("EXTGLOB_MAX_ENTRIES", "1024"))
    enable_logging: bool = os.environ.get("EXTGLOB_LOGGING", "false").lower() == "true"

    # Bump to ignore translations written by an older compiler
    cache_version: str = "v1"
    key_builder: Optional[Callable[[str, "CacheConfig"], str]] = None

    def __post_init__(self) -> None:
        if not self.namespace:
            raise ValueError("namespace must not be empty")

        if self.ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0, got {self.ttl_seconds}")

        if self.max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {self.max_entries}")


def _build_key(pattern: str, cfg: CacheConfig) -> str:
    return "|".join([f"ver:{cfg.cache_version}", f"ns:{cfg.namespace}", f"p:{pattern}"])


class PatternCache:
    """Compile each extglob once.

    Compiled matchers are kept in a bounded in-process LRU. When a backend is
    configured, translated regex source is also shared through it so other
    processes skip translation; the backend never holds compiled objects.
    Patterns that fail to compile are never cached and the error propagates.
    """

    def __init__(
        self,
        backend: Optional[TranslationBackend] = None,
        config: Optional[CacheConfig] = None,
        compiler: Optional[GlobCompiler] = None,
    ) -> None:
        self.backend = backend
        self.config = config or CacheConfig()
        self.compiler = compiler or GlobCompiler()
        self.stats = CompileStats()
        self.metrics = CompilerMetrics(namespace=self.config.namespace)
        self._matchers: OrderedDict[str, Matcher] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, pattern: str) -> Matcher:
        """Return the compiled matcher for ``pattern``.

        Raises:
            ExtGlobError: if the pattern cannot be compiled
        """
        start_time = time.time()
        with self._lock:
            matcher = self._matchers.get(pattern)
            if matcher is not None:
                self._matchers.move_to_end(pattern)
        if matcher is not None:
            self._record_hit(pattern, "memory")
            return matcher

        key = self._key(pattern)
        matcher = self._read_backend(key, pattern)
        if matcher is not None:
            self._record_hit(pattern, "backend")
        else:
            self.stats.increment_miss()
            self.metrics.record_miss()
            try:
                matcher = self.compiler.compile(pattern)
            except ExtGlobError as e:
                self.stats.increment_error()
                self.metrics.record_error(type(e).__name__)
                if self.config.enable_logging:
                    logger.warning(f"Cannot compile extglob {pattern!r}: {e}")
                raise
            self.stats.increment_compile()
            self.metrics.record_compile(time.time() - start_time)
            if self.config.enable_logging:
                logger.debug(
                    "pattern_compiled",
                    extra={
                        "event": "pattern_compiled",
                        "pattern": pattern,
                        "source": matcher.source,
                        "namespace": self.config.namespace,
                    },
                )
            self._write_backend(key, pattern, matcher.source)

        self._remember(pattern, matcher)
        return matcher

    __getitem__ = get

    def matches(self, pattern: str, candidate: str) -> bool:
        return self.get(pattern).matches(candidate)

    def get_stats(self) -> CompileStats:
        return self.stats

    def clear(self) -> None:
        """Forget every compiled matcher, in process and in the backend."""
        with self._lock:
            self._matchers.clear()
        if self.backend is not None and hasattr(self.backend, "clear"):
            self.backend.clear()  # type: ignore[attr-defined]

    def __contains__(self, pattern: object) -> bool:
        with self._lock:
            return pattern in self._matchers

    def __len__(self) -> int:
        with self._lock:
            return len(self._matchers)

    def _key(self, pattern: str) -> str:
        if self.config.key_builder:
            return self.config.key_builder(pattern, self.config)
        return _build_key(pattern, self.config)

    def _remember(self, pattern: str, matcher: Matcher) -> None:
        with self._lock:
            self._matchers[pattern] = matcher
            self._matchers.move_to_end(pattern)
            while len(self._matchers) > self.config.max_entries:
                self._matchers.popitem(last=False)

    def _record_hit(self, pattern: str, tier: str) -> None:
        self.stats.increment_hit()
        self.metrics.record_hit(tier)
        if self.config.enable_logging:
            logger.debug(
                "pattern_cache_hit",
                extra={
                    "event": "pattern_cache_hit",
                    "pattern": pattern,
                    "tier": tier,
                    "namespace": self.config.namespace,
                },
            )

    def _read_backend(self, key: str, pattern: str) -> Optional[Matcher]:
        if self.backend is None:
            return None
        blob = self.backend.get(key)
        if not blob:
            return None
        try:
            source, _ = deserialize_translation(blob, pattern, self.config.cache_version)
            regex = re.compile(source, self.compiler.flags)
        except Exception as e:
            # Corrupt or foreign entry, drop it and translate again
            self.stats.increment_backend_error()
            self.metrics.record_error("corruption")
            logger.warning(f"Discarding unreadable translation for {pattern!r}: {e}")
            self.backend.delete(key)
            return None
        return Matcher(pattern=pattern, source=source, regex=regex)

    def _write_backend(self, key: str, pattern: str, source: str) -> None:
        if self.backend is None:
            return
        try:
            blob = serialize_translation(pattern, source, self.config.cache_version)
            self.backend.set(key, blob, self.config.ttl_seconds)
        except Exception as e:
            self.stats.increment_backend_error()
            self.metrics.record_error("write_failed")
            logger.error(f"Failed to store translation for {pattern!r}: {e}")
