from __future__ import annotations

from typing import Optional


class ExtGlobError(ValueError):
    """Base class for patterns that cannot be compiled."""

    reason = "invalid extglob"

    def __init__(self, pattern: str, position: Optional[int] = None, detail: Optional[str] = None):
        self.pattern = pattern
        self.position = position
        self.detail = detail
        msg = f"{self.reason} in pattern {pattern!r}"
        if position is not None:
            msg += f" at offset {position}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class TrailingBackslash(ExtGlobError):
    """Raised when the pattern ends with an unescaped backslash."""
    reason = "trailing backslash"


class MissingBracket(ExtGlobError):
    """Raised when a character class is never closed."""
    reason = "missing closing ']'"


class MissingParen(ExtGlobError):
    """Raised when an extglob group is never closed."""
    reason = "missing closing ')'"


class PatternRejected(ExtGlobError):
    """Raised when the translated source is refused by the regex engine."""
    reason = "rejected by regex engine"


class ManifestError(ValueError):
    """Raised when a hosting manifest is structurally invalid."""
