from __future__ import annotations

import logging
import re
from typing import List, Optional

from .errors import MissingBracket, MissingParen, PatternRejected, TrailingBackslash
from .matcher import Matcher

logger = logging.getLogger(__name__)

# Leading "**" covering the whole pattern: anything, across separators, or nothing.
GLOBSTAR_ALL = r"(?:[^/]+(?:/[^/]*)*)?"
# Leading "**/": an optional directory prefix of any depth.
GLOBSTAR_PREFIX = r"(?:[^/]+(?:/[^/]*)*/)?"
# "/**" followed by "/" or the end of the pattern: zero or more "/segment" pairs.
GLOBSTAR_SEGMENTS = r"(?:/[^/]*)*"
# Any other run of two or more stars.
GLOBSTAR_ANY = r".*"
STAR = r"[^/]*"
QMARK = r"[^/]"
NEGATED_SPAN = r"[^/]*?"

EXTGLOB_OPERATORS = "*?+@!"

_GROUP_QUANTIFIERS = {"*": "*", "?": "?", "+": "+", "@": ""}

# Python's re has no [:name:] syntax, so POSIX classes expand to ASCII sets.
POSIX_CLASSES = {
    "alnum": "a-zA-Z0-9",
    "alpha": "a-zA-Z",
    "ascii": r"\x00-\x7f",
    "blank": r" \t",
    "cntrl": r"\x00-\x1f\x7f",
    "digit": "0-9",
    "graph": r"\x21-\x7e",
    "lower": "a-z",
    "print": r"\x20-\x7e",
    "punct": r"!-/:-@\[-`{-~",
    "space": r" \t\r\n\v\f",
    "upper": "A-Z",
    "word": "a-zA-Z0-9_",
    "xdigit": "0-9A-Fa-f",
}

_POSIX_TOKEN = re.compile(r"\[:([A-Za-z]+):\]")

# Inside a class these would start nested sets or set operations in re.
_CLASS_SPECIALS = "[&~|"


class CompilationContext:
    """Cursor state owned by a single translation.

    ``position`` only moves forward, ``depth`` counts the extglob groups
    currently open and ``output`` is only ever appended to.
    """

    __slots__ = ("source", "position", "depth", "output")

    def __init__(self, source: str) -> None:
        self.source = source
        self.position = 0
        self.depth = 0
        self.output: List[str] = []

    def at_end(self) -> bool:
        return self.position >= len(self.source)

    def peek(self, offset: int = 0) -> Optional[str]:
        index = self.position + offset
        if index < len(self.source):
            return self.source[index]
        return None

    def startswith(self, token: str, offset: int = 0) -> bool:
        return self.source.startswith(token, self.position + offset)

    def emit(self, fragment: str) -> None:
        self.output.append(fragment)

    def mark(self) -> int:
        return len(self.output)

    def since(self, mark: int) -> str:
        return "".join(self.output[mark:])


class GlobCompiler:
    """Translate extglob patterns into anchored regular expressions.

    Supported syntax:
      *          any run of characters except "/"
      ?          exactly one character except "/"
      **         any run of characters, "/" included
      **/ (lead) zero or more leading directories
      /**/       zero or more intervening directories
      [...]      character classes, "!" or "^" negates, [:name:] POSIX classes
      *(a|b)     zero or more of the alternatives
      ?(a|b)     zero or one
      +(a|b)     one or more
      @(a|b)     exactly one
      !(a|b)     anything except the alternatives
      \\x        the literal character x

    ``)`` and ``|`` are only structural inside a group; at the top level
    they are literal characters.
    """

    flags = re.DOTALL

    def translate(self, pattern: str) -> str:
        """Return the anchored regex source for ``pattern``.

        Raises:
            TrailingBackslash, MissingBracket, MissingParen, PatternRejected
        """
        ctx = CompilationContext(pattern)
        if pattern == "**":
            ctx.emit(GLOBSTAR_ALL)
            ctx.position = len(pattern)
        else:
            while ctx.startswith("**/"):
                ctx.emit(GLOBSTAR_PREFIX)
                ctx.position += 3
            self._parse_sequence(ctx)
        return "^" + "".join(ctx.output) + "$"

    def compile(self, pattern: str) -> Matcher:
        """Translate ``pattern`` and compile it with :mod:`re`."""
        source = self.translate(pattern)
        try:
            regex = re.compile(source, self.flags)
        except re.error as e:
            raise PatternRejected(pattern, detail=str(e)) from e
        logger.debug(f"Compiled extglob {pattern!r} as {source!r}")
        return Matcher(pattern=pattern, source=source, regex=regex)

    def _parse_sequence(self, ctx: CompilationContext) -> None:
        # Runs to the end of input, or up to the ")" or "|" ending the
        # current alternative when inside a group. Neither is consumed.
        source = ctx.source
        while not ctx.at_end():
            c = source[ctx.position]
            if c in EXTGLOB_OPERATORS and ctx.peek(1) == "(":
                if c == "!":
                    self._parse_negated_group(ctx)
                    return
                self._parse_group(ctx, c)
            elif c in ")|" and ctx.depth > 0:
                return
            elif c == "*":
                self._parse_star(ctx)
            elif c == "?":
                ctx.emit(QMARK)
                ctx.position += 1
            elif c == "\\":
                ctx.emit(self._parse_escape(ctx))
            elif c == "/":
                self._parse_separator(ctx)
            elif c == "[":
                self._parse_class(ctx)
            else:
                ctx.emit(re.escape(c))
                ctx.position += 1

    def _parse_star(self, ctx: CompilationContext) -> None:
        run = 1
        while ctx.peek(run) == "*":
            run += 1
        if ctx.peek(run) == "(":
            # the last star belongs to the group that follows
            run -= 1
        ctx.emit(STAR if run == 1 else GLOBSTAR_ANY)
        ctx.position += run

    def _parse_separator(self, ctx: CompilationContext) -> None:
        if ctx.depth == 0 and (ctx.startswith("**/", 1) or ctx.source[ctx.position + 1:] == "**"):
            ctx.emit(GLOBSTAR_SEGMENTS)
            ctx.position += 3
        else:
            ctx.emit("/")
            ctx.position += 1

    def _parse_escape(self, ctx: CompilationContext) -> str:
        char = ctx.peek(1)
        if char is None:
            raise TrailingBackslash(ctx.source, ctx.position)
        ctx.position += 2
        return re.escape(char)

    def _parse_alternatives(self, ctx: CompilationContext) -> None:
        """Consume ``op(`` through the matching ``)``, joining alternatives with ``|``."""
        start = ctx.position
        ctx.position += 2
        ctx.depth += 1
        while True:
            self._parse_sequence(ctx)
            c = ctx.peek()
            if c is None:
                raise MissingParen(ctx.source, start)
            ctx.position += 1
            if c == ")":
                break
            ctx.emit("|")
        ctx.depth -= 1

    def _parse_group(self, ctx: CompilationContext, operator: str) -> None:
        ctx.emit("(?:")
        self._parse_alternatives(ctx)
        ctx.emit(")" + _GROUP_QUANTIFIERS[operator])

    def _parse_negated_group(self, ctx: CompilationContext) -> None:
        # re has no variable-width lookbehind, so the rest of the current
        # alternative goes inside the lookahead and is emitted again after
        # it: !(X)REST -> (?:(?!(?:X)REST$)[^/]*?)REST
        ctx.emit("(?:(?!(?:")
        self._parse_alternatives(ctx)
        ctx.emit(")")
        mark = ctx.mark()
        self._parse_sequence(ctx)
        rest = ctx.since(mark)
        anchor = "$" if ctx.depth == 0 else ""
        ctx.emit(anchor + ")" + NEGATED_SPAN + ")")
        ctx.emit(rest)

    def _parse_class(self, ctx: CompilationContext) -> None:
        source = ctx.source
        start = ctx.position
        ctx.position += 1
        parts = ["["]

        c = ctx.peek()
        if c in ("!", "^"):
            parts.append("^")
            ctx.position += 1
            if ctx.peek() == "]":
                parts.append(r"\]")
                ctx.position += 1
        elif c in ("]", "-"):
            parts.append(re.escape(c))
            ctx.position += 1

        while True:
            c = ctx.peek()
            if c is None:
                raise MissingBracket(source, start)
            if c == "]":
                parts.append("]")
                ctx.position += 1
                break
            m = _POSIX_TOKEN.match(source, ctx.position)
            if m:
                parts.append(self._posix_class(ctx, m.group(1)))
                ctx.position = m.end()
            elif c == "\\":
                parts.append(self._parse_escape(ctx))
            elif c in _CLASS_SPECIALS:
                parts.append("\\" + c)
                ctx.position += 1
            else:
                parts.append(c)
                ctx.position += 1

        ctx.emit("".join(parts))

    def _posix_class(self, ctx: CompilationContext, name: str) -> str:
        try:
            return POSIX_CLASSES[name]
        except KeyError:
            raise PatternRejected(
                ctx.source, ctx.position, f"unknown POSIX class [:{name}:]"
            ) from None


_default_compiler = GlobCompiler()


def translate(pattern: str) -> str:
    """Translate ``pattern`` with the default compiler."""
    return _default_compiler.translate(pattern)


def compile_extglob(pattern: str) -> Matcher:
    """Compile ``pattern`` with the default compiler."""
    return _default_compiler.compile(pattern)
