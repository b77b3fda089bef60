"""Tests for wolfcalc AstCache and cache invalidation patterns."""

from __future__ import annotations

import re

import pytest

from wolfcalc._cache import ALL, AstCache, Exact, Matching, coerce_pattern, set_cache_ast
from wolfcalc._errors import InvalidArgumentError


def _filled() -> AstCache:
    return AstCache({"a + 1": "n1", "a + 2": "n2", "total * 2": "n3"})


class TestStorage:
    def test_seeded(self) -> None:
        cache = _filled()
        assert len(cache) == 3
        assert cache.get("a + 1") == "n1"
        assert "total * 2" in cache

    def test_miss(self) -> None:
        assert AstCache().get("x") is None

    def test_put(self) -> None:
        cache = AstCache()
        assert cache.put("x", "node")
        assert cache.get("x") == "node"

    def test_put_ignored_when_globally_disabled(self) -> None:
        cache = AstCache()
        set_cache_ast(False)
        assert not cache.enabled
        assert not cache.put("x", "node")
        assert len(cache) == 0


class TestDisabled:
    def test_put_ignored_inside(self) -> None:
        cache = AstCache()
        with cache.disabled() as c:
            assert c is cache
            assert not cache.enabled
            cache.put("x", "node")
        assert cache.enabled
        assert "x" not in cache

    def test_restored_after_failure(self) -> None:
        cache = AstCache()
        with pytest.raises(RuntimeError):
            with cache.disabled():
                raise RuntimeError("boom")
        assert cache.enabled

    def test_nested_keeps_outer_state(self) -> None:
        cache = AstCache()
        with cache.disabled():
            with cache.disabled():
                pass
            assert not cache.enabled
        assert cache.enabled


class TestInvalidate:
    def test_all(self) -> None:
        cache = _filled()
        assert cache.invalidate(ALL) == 3
        assert len(cache) == 0

    def test_default_is_all(self) -> None:
        cache = _filled()
        cache.invalidate()
        assert len(cache) == 0

    def test_exact_text(self) -> None:
        cache = _filled()
        assert cache.invalidate("a + 1") == 1
        assert cache.keys() == ["a + 2", "total * 2"]

    def test_exact_missing_is_noop(self) -> None:
        cache = _filled()
        assert cache.invalidate(Exact("nope")) == 0
        assert len(cache) == 3

    def test_regex(self) -> None:
        cache = _filled()
        assert cache.invalidate(re.compile(r"^a \+")) == 2
        assert cache.keys() == ["total * 2"]

    def test_glob(self) -> None:
        cache = _filled()
        cache.invalidate(Matching.glob("total*"))
        assert cache.keys() == ["a + 1", "a + 2"]

    def test_custom_matcher(self) -> None:
        cache = _filled()
        cache.invalidate(Matching(lambda text: text.endswith("2")))
        assert cache.keys() == ["a + 1"]

    def test_unsupported_pattern_rejected(self) -> None:
        cache = _filled()
        with pytest.raises(InvalidArgumentError, match="unsupported"):
            cache.invalidate(42)
        assert len(cache) == 3


class TestCoercePattern:
    def test_variants_pass_through(self) -> None:
        exact = Exact("x")
        assert coerce_pattern(exact) is exact
        assert coerce_pattern(ALL) is ALL

    def test_string_is_exact(self) -> None:
        pattern = coerce_pattern("x")
        assert isinstance(pattern, Exact)
        assert pattern.text == "x"

    def test_regex_is_matching(self) -> None:
        pattern = coerce_pattern(re.compile("x"))
        assert isinstance(pattern, Matching)
        assert pattern.matcher("axb")

    def test_invalid_argument_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            coerce_pattern(None)
