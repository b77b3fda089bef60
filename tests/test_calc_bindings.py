"""Tests for wolfcalc BindingStore."""

from __future__ import annotations

import pytest

from wolfcalc._bindings import BindingStore
from wolfcalc._flat import Symbol


class TestStore:
    def test_bulk_mode_flattens(self) -> None:
        store = BindingStore()
        store.store({"loan": {"amount": 100}, "rate": 0.1})
        assert store.memory == {"loan.amount": 100, "rate": 0.1}

    def test_single_mode(self) -> None:
        store = BindingStore()
        store.store("Rate", 0.1)
        assert store.memory == {"rate": 0.1}

    def test_single_mode_binds_none(self) -> None:
        store = BindingStore()
        store.store("x", None)
        assert "x" in store
        assert store.memory["x"] is None

    def test_returns_self_for_chaining(self) -> None:
        store = BindingStore()
        assert store.store("a", 1).store("b", 2) is store
        assert store.memory == {"a": 1, "b": 2}

    def test_overwrites(self) -> None:
        store = BindingStore()
        store.store({"X": 1})
        store.store({"x": 2})
        assert store.memory == {"x": 2}

    def test_case_sensitive(self) -> None:
        store = BindingStore(case_sensitive=True)
        store.store({"X": 1, "x": 2})
        assert store.memory == {"X": 1, "x": 2}

    def test_symbol_keys_normalized_to_text(self) -> None:
        store = BindingStore()
        store.store({Symbol("Loan"): {"Amount": 5}})
        assert store.memory == {"loan.amount": 5}

    def test_ignore_nested(self) -> None:
        store = BindingStore(ignore_nested=True)
        store.store({"a": 1})
        assert store.memory == {"a": 1}

    def test_non_mapping_without_value_rejected(self) -> None:
        store = BindingStore()
        with pytest.raises(TypeError, match="mapping"):
            store.store("x")

    def test_lookup_is_case_folded(self) -> None:
        store = BindingStore()
        store.store("x", 1)
        assert "X" in store
        assert store.get("X") == 1


class TestScope:
    def test_bindings_visible_inside(self) -> None:
        store = BindingStore()
        with store.scope({"x": 1}) as s:
            assert s is store
            assert store.memory == {"x": 1}

    def test_restored_after(self) -> None:
        store = BindingStore()
        store.store("a", 1)
        with store.scope({"a": 2, "b": 3}):
            assert store.memory == {"a": 2, "b": 3}
        assert store.memory == {"a": 1}

    def test_restored_after_failure(self) -> None:
        store = BindingStore()
        store.store("a", 1)
        with pytest.raises(RuntimeError, match="boom"):
            with store.scope("b", 2):
                raise RuntimeError("boom")
        assert store.memory == {"a": 1}

    def test_permanent_store_inside_scope_rolled_back(self) -> None:
        store = BindingStore()
        with store.scope("a", 1):
            store.store("b", 2)
        assert store.is_empty()

    def test_nested_scopes(self) -> None:
        store = BindingStore()
        with store.scope("outer", 1):
            with store.scope("inner", 2):
                assert store.memory == {"outer": 1, "inner": 2}
            assert store.memory == {"outer": 1}
        assert store.is_empty()

    def test_outer_mapping_untouched_by_inner_scope(self) -> None:
        store = BindingStore()
        with store.scope("outer", 1):
            outer_view = store.memory
            with store.scope("inner", 2):
                pass
            assert outer_view == {"outer": 1}

    def test_within_callable(self) -> None:
        store = BindingStore()
        result = store.store({"x": 4}, within=lambda: store.memory["x"] * 2)
        assert result == 8
        assert store.is_empty()

    def test_within_callable_failure(self) -> None:
        store = BindingStore()
        store.store("keep", True)

        def body() -> None:
            raise ValueError("bad")

        with pytest.raises(ValueError, match="bad"):
            store.store("x", 1, within=body)
        assert store.memory == {"keep": True}


class TestClear:
    def test_clear_and_empty(self) -> None:
        store = BindingStore()
        assert store.is_empty()
        store.store("x", 1)
        assert not store.is_empty()
        assert len(store) == 1
        store.clear()
        assert store.is_empty()
