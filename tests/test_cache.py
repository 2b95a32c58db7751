from __future__ import annotations

import threading
from unittest.mock import MagicMock, patch

import pytest

from extglob_rules import (
    CacheConfig,
    MemoryTranslationBackend,
    MissingParen,
    PatternCache,
)
from extglob_rules.cache import _build_key
from extglob_rules.serializers import deserialize_translation


@pytest.fixture
def backend() -> MemoryTranslationBackend:
    return MemoryTranslationBackend()


def test_pattern_compiled_once(backend: MemoryTranslationBackend) -> None:
    cache = PatternCache(backend, CacheConfig(namespace="t"))

    m1 = cache.get("**/*.js")
    m2 = cache.get("**/*.js")

    assert m1 is m2
    assert m1.matches("a/b.js")
    stats = cache.get_stats()
    assert stats.compiles == 1
    assert stats.misses == 1
    assert stats.hits == 1
    assert stats.hit_rate == 0.5


def test_translation_shared_through_backend(backend: MemoryTranslationBackend) -> None:
    """A second cache reuses the translated source instead of translating."""
    config = CacheConfig(namespace="t")
    first = PatternCache(backend, config)
    first.get("/api/**")

    second = PatternCache(backend, config)
    with patch.object(second.compiler, "compile") as compile_mock:
        matcher = second.get("/api/**")

    compile_mock.assert_not_called()
    assert matcher.matches("/api/users/1")
    assert second.get_stats().hits == 1
    assert second.get_stats().compiles == 0


def test_backend_entry_contents(backend: MemoryTranslationBackend) -> None:
    config = CacheConfig(namespace="t")
    cache = PatternCache(backend, config)
    cache.get("*.txt")

    blob = backend.get(_build_key("*.txt", config))
    assert blob is not None
    source, cached_at = deserialize_translation(blob, "*.txt", "v1")
    assert source == r"^[^/]*\.txt$"
    assert cached_at > 0


def test_invalid_pattern_not_cached(backend: MemoryTranslationBackend) -> None:
    cache = PatternCache(backend, CacheConfig(namespace="t"))

    with pytest.raises(MissingParen):
        cache.get("*(abc")
    with pytest.raises(MissingParen):
        cache.get("*(abc")

    assert "*(abc" not in cache
    assert len(backend) == 0
    assert cache.get_stats().errors == 2


def test_corrupt_backend_entry_is_replaced(backend: MemoryTranslationBackend) -> None:
    config = CacheConfig(namespace="t")
    key = _build_key("*.css", config)
    backend.set(key, b"\xc1garbage", 60)

    cache = PatternCache(backend, config)
    matcher = cache.get("*.css")

    assert matcher.matches("site.css")
    assert cache.get_stats().backend_errors == 1
    assert cache.get_stats().compiles == 1
    source, _ = deserialize_translation(backend.get(key), "*.css", "v1")
    assert source == matcher.source


def test_foreign_entry_under_same_key_is_ignored(backend: MemoryTranslationBackend) -> None:
    """A key builder that collides must not hand out the wrong regex."""
    config = CacheConfig(namespace="t", key_builder=lambda pattern, cfg: "same-key")

    PatternCache(backend, config).get("*.js")
    cache = PatternCache(backend, config)
    matcher = cache.get("*.css")

    assert matcher.matches("a.css")
    assert not matcher.matches("a.js")
    assert cache.get_stats().backend_errors == 1


def test_cache_versioning(backend: MemoryTranslationBackend) -> None:
    PatternCache(backend, CacheConfig(namespace="t", cache_version="v1")).get("*.js")

    cache_v2 = PatternCache(backend, CacheConfig(namespace="t", cache_version="v2"))
    cache_v2.get("*.js")

    assert cache_v2.get_stats().misses == 1
    assert cache_v2.get_stats().compiles == 1


def test_in_process_entries_are_bounded() -> None:
    cache = PatternCache(config=CacheConfig(namespace="t", max_entries=2))

    cache.get("a")
    cache.get("b")
    cache.get("a")
    cache.get("c")

    assert len(cache) == 2
    assert "a" in cache
    assert "b" not in cache


def test_cache_without_backend() -> None:
    cache = PatternCache(config=CacheConfig(namespace="t"))
    assert cache.matches("asdf/*.@(jpg|jpeg)", "asdf/x.jpeg")
    assert not cache.matches("asdf/*.@(jpg|jpeg)", "asdf/x.png")
    assert cache.get_stats().compiles == 1


def test_item_lookup_compiles_through_cache() -> None:
    cache = PatternCache(config=CacheConfig(namespace="t"))

    assert cache["*.js"] is cache.get("*.js")
    assert cache.get_stats().compiles == 1


def test_clear(backend: MemoryTranslationBackend) -> None:
    cache = PatternCache(backend, CacheConfig(namespace="t"))
    cache.get("*.js")

    cache.clear()

    assert len(cache) == 0
    assert len(backend) == 0


def test_metrics_calls(backend: MemoryTranslationBackend) -> None:
    cache = PatternCache(backend, CacheConfig(namespace="t"))
    cache.metrics = MagicMock()

    cache.get("*.js")
    cache.metrics.record_miss.assert_called_once()
    cache.metrics.record_compile.assert_called_once()

    cache.get("*.js")
    cache.metrics.record_hit.assert_called_once_with("memory")

    with pytest.raises(MissingParen):
        cache.get("@(x")
    cache.metrics.record_error.assert_called_once_with("MissingParen")


def test_concurrent_lookups(backend: MemoryTranslationBackend) -> None:
    cache = PatternCache(backend, CacheConfig(namespace="t"))
    sources = []
    errors = []

    def lookup() -> None:
        try:
            sources.append(cache.get("/static/**/*.@(js|css)").source)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=lookup) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=2)

    assert errors == []
    assert len(sources) == 8
    assert len(set(sources)) == 1


@pytest.mark.parametrize(
    "kwargs",
    [
        {"ttl_seconds": -1},
        {"max_entries": 0},
        {"namespace": ""},
    ],
)
def test_config_validation(kwargs: dict) -> None:
    with pytest.raises(ValueError):
        CacheConfig(**kwargs)


def test_stats_export(backend: MemoryTranslationBackend) -> None:
    cache = PatternCache(backend, CacheConfig(namespace="t"))
    cache.get("*")
    cache.get("*")

    data = cache.get_stats().to_dict()
    assert data["hits"] == 1
    assert data["misses"] == 1
    assert data["compiles"] == 1
    assert data["hit_rate"] == 0.5

    cache.get_stats().reset()
    assert cache.get_stats().lookups == 0
