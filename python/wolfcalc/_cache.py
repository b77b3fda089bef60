"""AstCache: parsed expressions memoized by their literal text."""

from __future__ import annotations

import fnmatch
import logging
import re
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Union

from wolfcalc._errors import InvalidArgumentError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Process-wide caching switch
# ---------------------------------------------------------------------------

_cache_ast = True


def cache_ast_enabled() -> bool:
    return _cache_ast


def set_cache_ast(enabled: bool) -> None:
    """Turn AST caching on or off for every calculator in the process."""
    global _cache_ast
    _cache_ast = bool(enabled)


# ---------------------------------------------------------------------------
# Invalidation patterns: ALL | Exact(text) | Matching(matcher)
# ---------------------------------------------------------------------------


class _All:
    __slots__ = ()

    def __repr__(self) -> str:
        return "ALL"


ALL = _All()


class Exact:
    """Removes the one entry whose text equals ``text``."""

    __slots__ = ("text",)

    def __init__(self, text: str) -> None:
        self.text = text

    def __repr__(self) -> str:
        return f"Exact({self.text!r})"


class Matching:
    """Removes every entry whose text the matcher accepts."""

    __slots__ = ("matcher", "description")

    def __init__(self, matcher: Callable[[str], bool], description: str = "") -> None:
        self.matcher = matcher
        self.description = description

    @classmethod
    def regex(cls, pattern: str | re.Pattern[str]) -> Matching:
        compiled = re.compile(pattern)
        return cls(lambda text: compiled.search(text) is not None, compiled.pattern)

    @classmethod
    def glob(cls, pattern: str) -> Matching:
        return cls(lambda text: fnmatch.fnmatchcase(text, pattern), pattern)

    def __repr__(self) -> str:
        return f"Matching({self.description!r})"


CachePattern = Union[_All, Exact, Matching]


def coerce_pattern(pattern: Any) -> CachePattern:
    """Map a caller-facing pattern onto the closed set of variants.

    ``str`` means exact text and ``re.Pattern`` means a regex search.
    """
    if isinstance(pattern, (_All, Exact, Matching)):
        return pattern
    if isinstance(pattern, str):
        return Exact(pattern)
    if isinstance(pattern, re.Pattern):
        return Matching.regex(pattern)
    raise InvalidArgumentError(f"unsupported cache invalidation pattern: {pattern!r}")


# ---------------------------------------------------------------------------
# AstCache
# ---------------------------------------------------------------------------


class AstCache:
    """Literal expression text -> AST node.

    Usage::

        cache = AstCache({"1 + 1": node})
        cache.get("1 + 1")          # node
        with cache.disabled():
            cache.put("2 + 2", other)  # ignored while disabled
        cache.invalidate(Matching.glob("total*"))
    """

    def __init__(self, seed: Mapping[str, Any] | None = None) -> None:
        self._entries: dict[str, Any] = dict(seed or {})
        self._disabled = False

    @property
    def enabled(self) -> bool:
        """True when new parses are being stored."""
        return cache_ast_enabled() and not self._disabled

    @contextmanager
    def disabled(self) -> Iterator[AstCache]:
        """Stop storing new entries for the duration of the block."""
        previous = self._disabled
        self._disabled = True
        logger.debug("AST cache disabled")
        try:
            yield self
        finally:
            self._disabled = previous

    def get(self, text: str) -> Any | None:
        return self._entries.get(text)

    def put(self, text: str, node: Any) -> bool:
        """Store *node* if caching is enabled; return whether it was stored."""
        if not self.enabled:
            return False
        self._entries[text] = node
        return True

    def invalidate(self, pattern: Any = ALL) -> int:
        """Drop entries selected by *pattern*; return how many were removed."""
        pattern = coerce_pattern(pattern)
        before = len(self._entries)
        if isinstance(pattern, _All):
            self._entries = {}
        elif isinstance(pattern, Exact):
            self._entries.pop(pattern.text, None)
        else:
            self._entries = {
                k: v for k, v in self._entries.items() if not pattern.matcher(k)
            }
        removed = before - len(self._entries)
        logger.debug("Invalidated %d AST cache entries (%r)", removed, pattern)
        return removed

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, text: object) -> bool:
        return text in self._entries

    def __len__(self) -> int:
        return len(self._entries)
