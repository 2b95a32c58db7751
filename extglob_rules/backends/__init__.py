"""Translation store backends."""
from .base import TranslationBackend
from .memory import MemoryTranslationBackend
from .redis import RedisTranslationBackend

__all__ = [
    "TranslationBackend",
    "MemoryTranslationBackend",
    "RedisTranslationBackend",
]
