"""Calculator: binds input data, resolves cached ASTs and evaluates them.

``evaluate_strict`` opens a binding scope over the caller's data, resolves
the expression to an AST (cache first, parse on miss), checks that every
free variable is bound and then lets the node compute its value.  The
bindings in effect before the call are restored on every exit path.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from wolfcalc._ast import Literal
from wolfcalc._bindings import _MISSING, BindingStore
from wolfcalc._cache import ALL, AstCache
from wolfcalc._errors import InvalidArgumentError, UnboundVariableError
from wolfcalc._functions import FunctionRegistry, default_aliases, default_registry
from wolfcalc._parser import Parser
from wolfcalc._protocol import AstNode, ParseOptions
from wolfcalc._solver import BulkSolver, ErrorHandler
from wolfcalc._tokenizer import Tokenizer

logger = logging.getLogger(__name__)

EvaluationHandler = Callable[[Any, Exception], Any]


def _is_sequence(expression: Any) -> bool:
    return isinstance(expression, (list, tuple))


class Calculator:
    """Evaluates formula expressions against bound variables.

    Usage::

        calc = Calculator()
        calc.evaluate("1 + 2")                          # 3
        calc.evaluate("loan.amount * rate", {"loan": {"amount": 100}, "rate": 0.1})
        calc.store({"x": 1}).evaluate("x + y")          # None (y unbound)
        calc.evaluate_strict("x + y")                   # raises UnboundVariableError
    """

    def __init__(
        self,
        case_sensitive: bool = False,
        aliases: Mapping[str, str] | None = None,
        ignore_nested_structures: bool = False,
        function_registry: FunctionRegistry | None = None,
        ast_cache: Mapping[str, AstNode] | None = None,
    ) -> None:
        self.case_sensitive = case_sensitive
        self.aliases: dict[str, str] = {
            k.upper(): v.upper()
            for k, v in (default_aliases() if aliases is None else aliases).items()
        }
        self.ignore_nested_structures = ignore_nested_structures
        self.tokenizer = Tokenizer()
        self.bindings = BindingStore(case_sensitive, ignore_nested_structures)
        self._functions = (
            function_registry
            if function_registry is not None
            else FunctionRegistry(parent=default_registry())
        )
        self._ast_cache = AstCache(ast_cache)

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    @property
    def function_registry(self) -> FunctionRegistry:
        return self._functions

    @staticmethod
    def add_default_function(name: str, return_type: str, body: Callable[..., Any]) -> None:
        """Register a function for every calculator in the process."""
        default_registry().register(name, return_type, body)

    def add_function(self, name: str, return_type: str, body: Callable[..., Any]) -> Calculator:
        self._functions.register(name, return_type, body)
        return self

    def add_functions(
        self, functions: Iterable[tuple[str, str, Callable[..., Any]]]
    ) -> Calculator:
        for name, return_type, body in functions:
            self.add_function(name, return_type, body)
        return self

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(
        self,
        expression: Any,
        data: Mapping[Hashable, Any] | None = None,
        handler: EvaluationHandler | None = None,
    ) -> Any:
        """Like :meth:`evaluate_strict`, but unbound variables and invalid
        arguments do not raise.

        With a *handler*, ``handler(expression, error)`` supplies the result;
        without one the result is None.
        """
        if _is_sequence(expression):
            return [self.evaluate(e, data, handler) for e in expression]
        try:
            return self.evaluate_strict(expression, data)
        except (UnboundVariableError, InvalidArgumentError) as e:
            if handler is not None:
                return handler(expression, e)
            logger.debug("Discarding failed evaluation of %r: %s", expression, e)
            return None

    def evaluate_strict(self, expression: Any, data: Mapping[Hashable, Any] | None = None) -> Any:
        """Evaluate *expression* (or each of a list of them) with *data* bound.

        Raises UnboundVariableError naming every free variable that has no
        binding; every other failure propagates unchanged.
        """
        if _is_sequence(expression):
            return [self.evaluate_strict(e, data) for e in expression]

        with self.bindings.scope(data or {}) as bindings:
            node = self.resolve(expression)
            memory = bindings.memory
            unbound = [name for name in node.free_variables() if name not in memory]
            if unbound:
                raise UnboundVariableError(unbound)
            return node.value(memory)

    def dependencies(self, expression: Any, data: Mapping[Hashable, Any] | None = None) -> list[str]:
        """Free variables of *expression* that have no binding yet.

        For a list, the per-expression results are concatenated in order.
        """
        if _is_sequence(expression):
            return [name for e in expression for name in self.dependencies(e, data)]
        with self.bindings.scope(data or {}) as bindings:
            return self.resolve(expression).free_variables(bindings.memory)

    def solve(
        self,
        expressions: Mapping[Hashable, Any],
        handler: ErrorHandler | None = None,
    ) -> dict[Hashable, Any]:
        return BulkSolver(expressions, self).solve(handler)

    def solve_strict(self, expressions: Mapping[Hashable, Any]) -> dict[Hashable, Any]:
        return BulkSolver(expressions, self).solve_strict()

    # ------------------------------------------------------------------
    # AST resolution and cache
    # ------------------------------------------------------------------

    def resolve(self, expression: Any) -> AstNode:
        """Return the AST for *expression*, parsing only on a cache miss.

        Nodes are returned unchanged and non-text values become literals.
        """
        if isinstance(expression, AstNode):
            return expression
        if not isinstance(expression, str):
            return Literal(expression)

        node = self._ast_cache.get(expression)
        if node is not None:
            return node

        options = ParseOptions(
            case_sensitive=self.case_sensitive,
            function_registry=self._functions,
            aliases=self.aliases,
        )
        tokens = self.tokenizer.tokenize(expression, options)
        node = Parser(tokens, options).parse()
        if self._ast_cache.put(expression, node):
            logger.debug("Cached AST for %r", expression)
        return node

    ast = resolve

    @property
    def ast_cache(self) -> AstCache:
        return self._ast_cache

    def clear_cache(self, pattern: Any = ALL) -> Calculator:
        """Invalidate cached ASTs: ALL, exact text, a regex or a Matching."""
        self._ast_cache.invalidate(pattern)
        return self

    @contextmanager
    def cache_disabled(self) -> Iterator[Calculator]:
        """Parse without caching for the duration of the block."""
        with self._ast_cache.disabled():
            yield self

    # ------------------------------------------------------------------
    # Bindings
    # ------------------------------------------------------------------

    @property
    def memory(self) -> dict[str, Any]:
        return self.bindings.memory

    def store(
        self,
        key_or_data: Hashable | Mapping[Hashable, Any],
        value: Any = _MISSING,
        *,
        within: Callable[[], Any] | None = None,
    ) -> Any:
        """Bind data permanently (returns self), or only while *within* runs."""
        if within is not None:
            return self.bindings.store(key_or_data, value, within=within)
        self.bindings.store(key_or_data, value)
        return self

    bind = store

    def scope(
        self,
        key_or_data: Hashable | Mapping[Hashable, Any],
        value: Any = _MISSING,
    ) -> Any:
        """Context manager binding data until the block exits."""
        return self.bindings.scope(key_or_data, value)

    def store_formula(self, name: Hashable, formula: str) -> Calculator:
        """Bind *name* to the parsed *formula* itself, not to its value."""
        return self.store(name, self.resolve(formula))

    def clear(self) -> Calculator:
        self.bindings.clear()
        return self

    def is_empty(self) -> bool:
        return self.bindings.is_empty()
