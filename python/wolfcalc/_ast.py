"""AST node classes produced by the parser."""

from __future__ import annotations

import operator
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from wolfcalc._errors import UnboundVariableError
from wolfcalc._functions import FunctionSpec
from wolfcalc._protocol import AstNode


def _unique(names: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            out.append(name)
    return out


class Node:
    """Base class for parsed expressions."""

    __slots__ = ()

    def value(self, bindings: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    def children(self) -> tuple[Node, ...]:
        return ()

    def free_variables(self, bindings: Mapping[str, Any] | None = None) -> list[str]:
        return _unique(
            name for child in self.children() for name in child.free_variables(bindings)
        )


class Literal(Node):
    __slots__ = ("literal",)

    def __init__(self, literal: Any) -> None:
        self.literal = literal

    def value(self, bindings: Mapping[str, Any]) -> Any:
        return self.literal

    def __repr__(self) -> str:
        return f"Literal({self.literal!r})"


class Identifier(Node):
    """A variable reference, resolved against the bindings at evaluation time."""

    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    def value(self, bindings: Mapping[str, Any]) -> Any:
        if self.name not in bindings:
            raise UnboundVariableError([self.name])
        bound = bindings[self.name]
        # Stored formulas are bound as nodes and evaluated on use
        if isinstance(bound, AstNode):
            return bound.value(bindings)
        return bound

    def free_variables(self, bindings: Mapping[str, Any] | None = None) -> list[str]:
        if bindings is None or self.name not in bindings:
            return [self.name]
        bound = bindings[self.name]
        if isinstance(bound, AstNode):
            return bound.free_variables(bindings)
        return []

    def __repr__(self) -> str:
        return f"Identifier({self.name!r})"


class Negation(Node):
    __slots__ = ("operand",)

    def __init__(self, operand: Node) -> None:
        self.operand = operand

    def children(self) -> tuple[Node, ...]:
        return (self.operand,)

    def value(self, bindings: Mapping[str, Any]) -> Any:
        return -self.operand.value(bindings)

    def __repr__(self) -> str:
        return f"Negation({self.operand!r})"


def _concat(left: Any, right: Any) -> str:
    return str(left if left is not None else "") + str(right if right is not None else "")


_BINARY_OPS: dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "%": operator.mod,
    "^": operator.pow,
    "&": _concat,
    "=": operator.eq,
    "<>": operator.ne,
    "<": operator.lt,
    ">": operator.gt,
    "<=": operator.le,
    ">=": operator.ge,
}


class BinaryOperation(Node):
    """Arithmetic, comparison or concatenation of two operands.

    Errors raised by the Python operators (ZeroDivisionError, TypeError)
    propagate unchanged.
    """

    __slots__ = ("op", "left", "right")

    def __init__(self, op: str, left: Node, right: Node) -> None:
        if op not in _BINARY_OPS:
            raise ValueError(f"Unknown operator: {op!r}")
        self.op = op
        self.left = left
        self.right = right

    def children(self) -> tuple[Node, ...]:
        return (self.left, self.right)

    def value(self, bindings: Mapping[str, Any]) -> Any:
        return _BINARY_OPS[self.op](self.left.value(bindings), self.right.value(bindings))

    def __repr__(self) -> str:
        return f"BinaryOperation({self.op!r}, {self.left!r}, {self.right!r})"


class FunctionCall(Node):
    __slots__ = ("function", "args")

    def __init__(self, function: FunctionSpec, args: list[Node]) -> None:
        self.function = function
        self.args = args

    def children(self) -> tuple[Node, ...]:
        return tuple(self.args)

    def value(self, bindings: Mapping[str, Any]) -> Any:
        return self.function(*(arg.value(bindings) for arg in self.args))

    def __repr__(self) -> str:
        return f"FunctionCall({self.function.name!r}, {self.args!r})"


class If(Node):
    """``IF(condition, then, else)``: only the chosen branch is evaluated."""

    __slots__ = ("condition", "then", "otherwise")

    def __init__(self, condition: Node, then: Node, otherwise: Node) -> None:
        self.condition = condition
        self.then = then
        self.otherwise = otherwise

    def children(self) -> tuple[Node, ...]:
        return (self.condition, self.then, self.otherwise)

    def value(self, bindings: Mapping[str, Any]) -> Any:
        if self.condition.value(bindings):
            return self.then.value(bindings)
        return self.otherwise.value(bindings)

    def __repr__(self) -> str:
        return f"If({self.condition!r}, {self.then!r}, {self.otherwise!r})"
