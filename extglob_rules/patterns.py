from __future__ import annotations

from typing import List, Optional

import httpx

from .cache import PatternCache
from .matcher import Matcher


def request_path(target: str) -> str:
    """Return the path to match for ``target``.

    Absolute URLs contribute only their path; anything else is used as is.
    """
    if "://" in target:
        return httpx.URL(target).path
    return target


class PathMatcher:
    """Request path matcher built from include/exclude extglobs."""

    def __init__(
        self,
        include_patterns: Optional[List[str]] = None,
        exclude_patterns: Optional[List[str]] = None,
        cache: Optional[PatternCache] = None,
    ):
        """
        Compile include/exclude patterns.

        Patterns use extglob syntax, for example:
        - "/api/**" matches everything below /api
        - "/**/*.@(jpg|png)" matches images at any depth
        - "/admin/!(login)" matches admin pages except the login page

        Args:
            include_patterns: Patterns a path must match. Empty = include all.
            exclude_patterns: Patterns that reject a path. Takes precedence.
            cache: Pattern cache to compile through. A private one is used
                when omitted.

        Raises:
            ExtGlobError: if any pattern is invalid
        """
        self.cache = cache if cache is not None else PatternCache()
        self.include_patterns = list(include_patterns or [])
        self.exclude_patterns = list(exclude_patterns or [])

        self.include_matchers: List[Matcher] = [self.cache.get(p) for p in self.include_patterns]
        self.exclude_matchers: List[Matcher] = [self.cache.get(p) for p in self.exclude_patterns]

    def should_match(self, target: str) -> bool:
        """
        Decide whether a path or URL is selected.

        Logic:
        1. If the path matches any exclude pattern -> False
        2. If no include patterns are configured -> True
        3. Otherwise -> whether any include pattern matches

        Args:
            target: Request path ("/a/b.js") or absolute URL

        Returns:
            True if the target is selected
        """
        path = request_path(target)

        if any(m.matches(path) for m in self.exclude_matchers):
            return False

        if not self.include_matchers:
            return True

        return any(m.matches(path) for m in self.include_matchers)

    __call__ = should_match
