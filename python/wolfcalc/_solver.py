"""BulkSolver: evaluate a set of named, interdependent expressions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Mapping
from typing import TYPE_CHECKING, Any

from wolfcalc._errors import InvalidArgumentError, UnboundVariableError
from wolfcalc._flat import expand, flatten
from wolfcalc._graph import DependencyGraph
from wolfcalc._protocol import UNDEFINED, AstNode

if TYPE_CHECKING:
    from wolfcalc._calculator import Calculator

logger = logging.getLogger(__name__)

# Failures that only spoil the one expression they come from
RECOVERABLE_ERRORS = (UnboundVariableError, InvalidArgumentError, ZeroDivisionError)

ErrorHandler = Callable[[Exception], Any]


def _raise(error: Exception) -> Any:
    raise error


def _undefined(error: Exception) -> Any:
    return UNDEFINED


class BulkSolver:
    """Solves ``{name: expression}`` in dependency order.

    Usage::

        solver = BulkSolver({"total": "price * qty", "price": 10, "qty": 3}, calc)
        solver.solve()  # {"total": 30, "price": 10, "qty": 3}

    Each solved value is visible to later expressions under its name.  The
    calculator's own bindings are left as they were.
    """

    def __init__(self, expressions: Mapping[Hashable, Any], calculator: Calculator) -> None:
        self.expressions = flatten(expressions, calculator.ignore_nested_structures)
        self.calculator = calculator
        # normalized name -> caller's flat key
        self._keys: dict[str, Hashable] = {}
        for key in self.expressions:
            name = calculator.bindings.normalize(key)
            if name in self._keys:
                raise InvalidArgumentError(
                    f"expression names {self._keys[name]!r} and {key!r} collide as {name!r}"
                )
            self._keys[name] = key

    def solve_strict(self) -> dict[Hashable, Any]:
        """Solve everything, propagating the first failure."""
        return self.solve(_raise)

    def solve(self, handler: ErrorHandler | None = None) -> dict[Hashable, Any]:
        """Solve everything; failed expressions get ``handler(error)``.

        Without a handler failed expressions map to :data:`UNDEFINED`.
        Nested expression mappings are solved under their dotted names and
        returned nested again.
        Circular references always raise.
        """
        handler = handler or _undefined
        results = self._load_results(handler)
        normalize = self.calculator.bindings.normalize
        return expand({key: results[normalize(key)] for key in self.expressions})

    def _expression(self, name: str) -> Any:
        return self.expressions[self._keys[name]]

    def _resolve_order(self) -> list[str]:
        graph = DependencyGraph()
        for name in self._keys:
            expression = self._expression(name)
            if isinstance(expression, (str, AstNode)):
                deps = [d for d in self.calculator.dependencies(expression) if d in self._keys]
            else:
                deps = []
            graph.add_node(name, deps)
        return graph.topological_order()

    def _load_results(self, handler: ErrorHandler) -> dict[str, Any]:
        memory = self.calculator.memory
        solved: dict[str, Any] = {}
        results: dict[str, Any] = {}

        for name in self._resolve_order():
            bound = memory.get(name, UNDEFINED)
            if bound is not UNDEFINED and not isinstance(bound, AstNode):
                results[name] = solved[name] = bound
                continue
            try:
                value = self.calculator.evaluate_strict(self._expression(name), solved)
            except RECOVERABLE_ERRORS as e:
                e.recipient_variable = name  # type: ignore[union-attr]
                logger.debug("Could not solve %s: %s", name, e)
                results[name] = handler(e)
                continue
            results[name] = solved[name] = value

        return results
