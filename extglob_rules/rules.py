from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar, Union

import httpx

from .cache import PatternCache
from .errors import ExtGlobError, ManifestError
from .matcher import Matcher

logger = logging.getLogger(__name__)

DEFAULT_REDIRECT_STATUS = 301

RuleT = TypeVar("RuleT")


def normalize_source(source: str) -> str:
    """Rule sources are always matched against absolute request paths."""
    return "/" + (source[1:] if source.startswith("/") else source)


@dataclass(frozen=True)
class RedirectRule:
    source: str
    destination: str
    status: int = DEFAULT_REDIRECT_STATUS


@dataclass(frozen=True)
class RewriteRule:
    source: str
    destination: str


@dataclass(frozen=True)
class HeaderRule:
    source: str
    headers: Tuple[Tuple[str, str], ...] = ()


def _require_str(entry: Dict[str, Any], name: str, section: str) -> str:
    value = entry.get(name)
    if not isinstance(value, str):
        raise ManifestError(f"{section} entry needs a string '{name}', got {value!r}")
    return value


def _entries(data: Dict[str, Any], section: str) -> List[Dict[str, Any]]:
    entries = data.get(section) or []
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise ManifestError(f"'{section}' must be a list of objects")
    return entries


@dataclass
class HostingManifest:
    """Redirect, rewrite and header rules of a ``firebase.json`` style file.

    A manifest may nest a ``hosting`` manifest of the same shape, whose
    rules are consulted after the outer ones.
    """

    public: str = ""
    redirects: List[RedirectRule] = field(default_factory=list)
    rewrites: List[RewriteRule] = field(default_factory=list)
    headers: List[HeaderRule] = field(default_factory=list)
    hosting: Optional["HostingManifest"] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HostingManifest":
        if not isinstance(data, dict):
            raise ManifestError(f"manifest must be an object, got {type(data).__name__}")

        redirects = []
        for entry in _entries(data, "redirects"):
            status = entry.get("type") or DEFAULT_REDIRECT_STATUS
            if not isinstance(status, int) or not 300 <= status < 400:
                raise ManifestError(f"redirect type must be a 3xx status code, got {status!r}")
            redirects.append(
                RedirectRule(
                    source=_require_str(entry, "source", "redirects"),
                    destination=_require_str(entry, "destination", "redirects"),
                    status=status,
                )
            )

        rewrites = [
            RewriteRule(
                source=_require_str(entry, "source", "rewrites"),
                destination=_require_str(entry, "destination", "rewrites"),
            )
            for entry in _entries(data, "rewrites")
        ]

        headers = []
        for entry in _entries(data, "headers"):
            pairs = tuple(
                (_require_str(h, "key", "headers"), _require_str(h, "value", "headers"))
                for h in _entries(entry, "headers")
            )
            headers.append(HeaderRule(source=_require_str(entry, "source", "headers"), headers=pairs))

        nested = data.get("hosting", data.get("Hosting"))
        public = data.get("public") or ""
        if not isinstance(public, str):
            raise ManifestError(f"'public' must be a string, got {public!r}")

        return cls(
            public=public,
            redirects=redirects,
            rewrites=rewrites,
            headers=headers,
            hosting=cls.from_dict(nested) if nested is not None else None,
        )

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike]) -> "HostingManifest":
        with open(path, encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ManifestError(f"{os.fspath(path)} is not valid JSON: {e}") from e
        return cls.from_dict(data)


@dataclass(frozen=True)
class CompiledRule(Generic[RuleT]):
    matcher: Matcher
    rule: RuleT


@dataclass
class RuleOutcome:
    """What the rules decided for one request."""

    public_dir: str
    path: str
    response: Optional[httpx.Response] = None
    headers: httpx.Headers = field(default_factory=httpx.Headers)

    @property
    def redirected(self) -> bool:
        return self.response is not None


def _file_exists(public_dir: str, path: str) -> bool:
    return os.path.exists(os.path.join(public_dir, path.lstrip("/")))


class RuleEngine:
    """Evaluates a hosting manifest against request paths.

    Every rule source is compiled once up front. A rule whose extglob does
    not compile is rejected: it is logged, recorded in ``errors`` and left
    out, while the remaining rules stay active.
    """

    def __init__(self, manifest: HostingManifest, cache: Optional[PatternCache] = None) -> None:
        self.manifest = manifest
        self.cache = cache if cache is not None else PatternCache()
        self.errors: List[ExtGlobError] = []

        self.redirects = self._compile(manifest.redirects, "redirect")
        self.rewrites = self._compile(manifest.rewrites, "rewrite")
        self.headers = self._compile(manifest.headers, "header")

        self.nested: Optional[RuleEngine] = None
        if manifest.hosting is not None:
            self.nested = RuleEngine(manifest.hosting, self.cache)
            self.errors.extend(self.nested.errors)

    @classmethod
    def from_file(cls, path: Union[str, os.PathLike], cache: Optional[PatternCache] = None) -> "RuleEngine":
        return cls(HostingManifest.from_file(path), cache)

    def _compile(self, rules: List[RuleT], kind: str) -> List[CompiledRule[RuleT]]:
        compiled = []
        for rule in rules:
            source = rule.source  # type: ignore[attr-defined]
            try:
                matcher = self.cache.get(normalize_source(source))
            except ExtGlobError as e:
                logger.warning(f"Ignoring {kind} rule with invalid extglob {source!r}: {e}")
                self.errors.append(e)
                continue
            compiled.append(CompiledRule(matcher=matcher, rule=rule))
        return compiled

    @property
    def public_dir(self) -> str:
        if self.manifest.hosting is not None and self.manifest.hosting.public:
            return self.manifest.hosting.public
        return self.manifest.public or "."

    def find_redirect(self, path: str) -> Optional[RedirectRule]:
        """First redirect whose source matches ``path``, in declaration order."""
        for compiled in self.redirects:
            if compiled.matcher.matches(path):
                return compiled.rule
        if self.nested is not None:
            return self.nested.find_redirect(path)
        return None

    def find_rewrite(self, path: str) -> Optional[str]:
        """Destination of the first matching rewrite, minus a trailing ``index.html``."""
        for compiled in self.rewrites:
            if compiled.matcher.matches(path):
                destination = compiled.rule.destination
                if destination.endswith("index.html"):
                    destination = destination[: -len("index.html")]
                return destination
        if self.nested is not None:
            return self.nested.find_rewrite(path)
        return None

    def collect_headers(self, path: str) -> httpx.Headers:
        """Headers of every matching rule; later rules override earlier ones."""
        headers = httpx.Headers()
        self._apply_headers(path, headers)
        return headers

    def _apply_headers(self, path: str, headers: httpx.Headers) -> None:
        for compiled in self.headers:
            if compiled.matcher.matches(path):
                for key, value in compiled.rule.headers:
                    headers[key] = value
        if self.nested is not None:
            self.nested._apply_headers(path, headers)

    def process(
        self,
        request: httpx.Request,
        file_exists: Optional[Callable[[str, str], bool]] = None,
    ) -> RuleOutcome:
        """
        Resolve redirects, rewrites and headers for a request.

        Args:
            request: Incoming request; only its URL path is inspected.
            file_exists: ``(public_dir, path) -> bool``. Rewrites only apply
                when the requested file does not exist. Defaults to a
                filesystem check below ``public_dir``.

        Returns:
            RuleOutcome with a redirect response, or the (possibly rewritten)
            path and the headers to add.
        """
        path = request.url.path
        public_dir = self.public_dir

        redirect = self.find_redirect(path)
        if redirect is not None:
            logger.debug(f"Redirecting {path} to {redirect.destination} ({redirect.status})")
            response = httpx.Response(
                redirect.status,
                headers={"Location": redirect.destination},
                request=request,
            )
            return RuleOutcome(public_dir=public_dir, path=path, response=response)

        exists = file_exists or _file_exists
        if not exists(public_dir, path):
            rewritten = self.find_rewrite(path)
            if rewritten is not None:
                logger.debug(f"Rewriting {path} to {rewritten}")
                path = rewritten

        return RuleOutcome(public_dir=public_dir, path=path, headers=self.collect_headers(path))
