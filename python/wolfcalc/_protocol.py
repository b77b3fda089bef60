"""AstNode protocol, parse options and the solver's UNDEFINED marker."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from wolfcalc._functions import FunctionRegistry


@runtime_checkable
class AstNode(Protocol):
    """Protocol for parsed expressions."""

    def value(self, bindings: Mapping[str, Any]) -> Any:
        """Compute the node's value against *bindings*."""
        ...

    def free_variables(self, bindings: Mapping[str, Any] | None = None) -> list[str]:
        """Names the node reads, in first-use order, without duplicates.

        When *bindings* is given, names already bound to plain values are
        left out and names bound to other nodes are replaced by that node's
        own free variables.
        """
        ...


@dataclass(frozen=True)
class ParseOptions:
    """Settings shared by the tokenizer and parser for one parse."""

    case_sensitive: bool = False
    function_registry: FunctionRegistry | None = None
    aliases: Mapping[str, str] = field(default_factory=dict)


class _Undefined:
    """Result placeholder for expressions the bulk solver could not compute."""

    __slots__ = ()
    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()
