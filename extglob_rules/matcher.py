from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Matcher:
    """A compiled extglob.

    ``source`` is the anchored regular expression the pattern translated to.
    Matching always covers the whole candidate string.
    """

    pattern: str
    source: str
    regex: re.Pattern = field(repr=False, compare=False)

    def matches(self, candidate: str) -> bool:
        return self.regex.fullmatch(candidate) is not None

    __call__ = matches
