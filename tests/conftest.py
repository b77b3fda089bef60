"""Shared fixtures: restore process-wide calculator defaults after each test."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from wolfcalc import _cache, _functions


@pytest.fixture(autouse=True)
def _restore_process_defaults() -> Iterator[None]:
    cache_ast = _cache.cache_ast_enabled()
    aliases = dict(_functions.default_aliases())
    registered = dict(_functions.default_registry()._functions)
    yield
    _cache.set_cache_ast(cache_ast)
    _functions.set_default_aliases(aliases)
    _functions.default_registry()._functions = registered
