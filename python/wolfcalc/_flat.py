"""Lossless transform between nested mappings and flat dotted-path mappings.

``{"person": {"age": 30}}`` flattens to ``{"person.age": 30}`` and expands
back again.  Keys whose first segment is a :class:`Symbol` keep that
representation on the joined key, so ``{Symbol("a"): {"b": 1}}`` flattens to
``{Symbol("a.b"): 1}``.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence
from typing import Any

SEPARATOR = "."


class Symbol:
    """Symbolic key: carries a name but never compares equal to a plain string.

    Used where callers need to tell ``Symbol("rate")`` apart from ``"rate"``
    in the same mapping and get the same kind of key back after a
    flatten/expand round trip.
    """

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"Symbol({self.name!r})"

    def __str__(self) -> str:
        return self.name

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Symbol):
            return self.name == other.name
        return NotImplemented

    def __hash__(self) -> int:
        return hash((Symbol, self.name))


def flatten_key(segments: Sequence[Hashable]) -> Hashable:
    """Join a key path into one flat key.

    Single-segment paths are returned unmodified so non-text keys survive.
    """
    if len(segments) == 1:
        return segments[0]
    joined = SEPARATOR.join(str(s) for s in segments)
    if isinstance(segments[0], Symbol):
        return Symbol(joined)
    return joined


def _flatten_nested(value: Any, path: list[Hashable], acc: dict[Hashable, Any]) -> None:
    if not isinstance(value, Mapping):
        acc[flatten_key(path)] = value
        return
    for k, v in value.items():
        _flatten_nested(v, path + [k], acc)


def flatten(nested: Mapping[Hashable, Any], ignore_nested: bool = False) -> Mapping[Hashable, Any]:
    """Return a flat copy of *nested* with dotted-path keys.

    With *ignore_nested* the caller promises that no value is itself a
    mapping and *nested* is returned as-is.
    """
    if ignore_nested:
        return nested

    flat: dict[Hashable, Any] = {}
    for key, value in nested.items():
        if isinstance(value, Mapping):
            _flatten_nested(value, [key], flat)
        else:
            flat[key] = value
    return flat


def expand(flat: Mapping[Hashable, Any]) -> dict[Hashable, Any]:
    """Inverse of :func:`flatten`: rebuild nested dicts from dotted-path keys.

    Later keys win when two assignments collide.
    """
    result: dict[Hashable, Any] = {}
    for key, value in flat.items():
        if isinstance(key, (str, Symbol)):
            levels: list[Hashable] = str(key).split(SEPARATOR)
            if isinstance(key, Symbol):
                levels = [Symbol(str(level)) for level in levels]
        else:
            levels = [key]

        node = result
        for level in levels[:-1]:
            child = node.get(level)
            if not isinstance(child, dict):
                child = {}
                node[level] = child
            node = child
        node[levels[-1]] = value
    return result
