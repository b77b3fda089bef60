"""wolfcalc - formula calculator with scoped variable bindings and AST caching.

Usage::

    from wolfcalc import Calculator

    calc = Calculator()
    calc.evaluate("1 + 2")                               # 3
    calc.evaluate("loan.amount * rate", {"loan": {"amount": 100}, "rate": 0.1})
    calc.solve({"total": "price * qty", "price": 10, "qty": 3})
"""

from wolfcalc._ast import Node
from wolfcalc._bindings import BindingStore
from wolfcalc._cache import ALL, AstCache, Exact, Matching, cache_ast_enabled, set_cache_ast
from wolfcalc._calculator import Calculator
from wolfcalc._errors import (
    CalculatorError,
    CircularReferenceError,
    InvalidArgumentError,
    ParseError,
    TokenizerError,
    UnboundVariableError,
)
from wolfcalc._flat import Symbol, expand, flatten
from wolfcalc._functions import (
    FunctionRegistry,
    FunctionSpec,
    default_aliases,
    default_registry,
    set_default_aliases,
)
from wolfcalc._graph import DependencyGraph
from wolfcalc._parser import Parser
from wolfcalc._protocol import UNDEFINED, AstNode, ParseOptions
from wolfcalc._solver import BulkSolver
from wolfcalc._tokenizer import Token, Tokenizer

__version__ = "0.1.0"

__all__ = [
    "ALL",
    "AstCache",
    "AstNode",
    "BindingStore",
    "BulkSolver",
    "Calculator",
    "CalculatorError",
    "CircularReferenceError",
    "DependencyGraph",
    "Exact",
    "FunctionRegistry",
    "FunctionSpec",
    "InvalidArgumentError",
    "Matching",
    "Node",
    "ParseError",
    "ParseOptions",
    "Parser",
    "Symbol",
    "Token",
    "Tokenizer",
    "TokenizerError",
    "UNDEFINED",
    "UnboundVariableError",
    "__version__",
    "cache_ast_enabled",
    "default_aliases",
    "default_registry",
    "expand",
    "flatten",
    "set_cache_ast",
    "set_default_aliases",
]
