from .backends.base import TranslationBackend
from .backends.memory import MemoryTranslationBackend
from .backends.redis import RedisTranslationBackend
from .cache import CacheConfig, PatternCache
from .compiler import CompilationContext, GlobCompiler, compile_extglob, translate
from .errors import (
    ExtGlobError,
    ManifestError,
    MissingBracket,
    MissingParen,
    PatternRejected,
    TrailingBackslash,
)
from .matcher import Matcher
from .metrics import CompilerMetrics
from .patterns import PathMatcher
from .rules import (
    HeaderRule,
    HostingManifest,
    RedirectRule,
    RewriteRule,
    RuleEngine,
    RuleOutcome,
)
from .stats import CompileStats

__all__ = [
    "TranslationBackend",
    "MemoryTranslationBackend",
    "RedisTranslationBackend",
    "CacheConfig",
    "PatternCache",
    "CompilationContext",
    "GlobCompiler",
    "compile_extglob",
    "translate",
    "ExtGlobError",
    "ManifestError",
    "MissingBracket",
    "MissingParen",
    "PatternRejected",
    "TrailingBackslash",
    "Matcher",
    "CompilerMetrics",
    "PathMatcher",
    "HeaderRule",
    "HostingManifest",
    "RedirectRule",
    "RewriteRule",
    "RuleEngine",
    "RuleOutcome",
    "CompileStats",
]

__version__ = "1.0.0"
