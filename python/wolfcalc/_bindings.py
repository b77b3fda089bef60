"""BindingStore: name -> value bindings with case folding and scoped rollback."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from wolfcalc._flat import flatten


# Marks "no value given" so that ``store("x", None)`` still binds None.
_MISSING: Any = object()


def standardize_case(name: str) -> str:
    """Fold *name* for case-insensitive lookup."""
    return name.lower()


class BindingStore:
    """Mutable variable bindings visible to expression evaluation.

    Usage::

        store = BindingStore()
        store.store({"rate": 0.05, "loan": {"amount": 1000}})
        store.memory  # {"rate": 0.05, "loan.amount": 1000}

        with store.scope("x", 2):
            ...  # x is bound here
        # x is gone again
    """

    def __init__(self, case_sensitive: bool = False, ignore_nested: bool = False) -> None:
        self.case_sensitive = case_sensitive
        self.ignore_nested = ignore_nested
        self._memory: dict[str, Any] = {}
        self.clear()

    @property
    def memory(self) -> dict[str, Any]:
        return self._memory

    def normalize(self, name: Hashable) -> str:
        text = str(name)
        if self.case_sensitive:
            return text
        return standardize_case(text)

    def store(
        self,
        key_or_data: Hashable | Mapping[Hashable, Any],
        value: Any = _MISSING,
        *,
        within: Callable[[], Any] | None = None,
    ) -> Any:
        """Bind a mapping of values, or one name to *value*.

        Without *within* the bindings are permanent and the store is returned
        for chaining.  With *within* they only last while it runs, and its
        return value is passed back.
        """
        if within is not None:
            with self.scope(key_or_data, value):
                return within()
        self._apply(key_or_data, value)
        return self

    @contextmanager
    def scope(
        self,
        key_or_data: Hashable | Mapping[Hashable, Any],
        value: Any = _MISSING,
    ) -> Iterator[BindingStore]:
        """Bind temporarily; the previous bindings come back on every exit path."""
        # The snapshot dict is never mutated; the scope works on a copy.
        snapshot = self._memory
        self._memory = dict(snapshot)
        try:
            self._apply(key_or_data, value)
            yield self
        finally:
            self._memory = snapshot

    def _apply(self, key_or_data: Any, value: Any) -> None:
        if value is _MISSING:
            if not isinstance(key_or_data, Mapping):
                raise TypeError(
                    f"store() needs a mapping or a name and a value, got {key_or_data!r}"
                )
            for key, val in flatten(key_or_data, self.ignore_nested).items():
                self._memory[self.normalize(key)] = val
        else:
            self._memory[self.normalize(key_or_data)] = value

    def clear(self) -> None:
        self._memory = {}

    def is_empty(self) -> bool:
        return not self._memory

    def get(self, name: Hashable, default: Any = None) -> Any:
        return self._memory.get(self.normalize(name), default)

    def names(self) -> list[str]:
        return list(self._memory)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, Hashable):
            return False
        return self.normalize(name) in self._memory

    def __len__(self) -> int:
        return len(self._memory)

    def __repr__(self) -> str:
        return f"BindingStore({self._memory!r})"
