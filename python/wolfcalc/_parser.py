"""Recursive descent parser: tokens -> AST nodes.

Precedence (lowest to highest)::

    1. comparison      (=, <>, <, >, <=, >=)
    2. additive        (+, -, &)
    3. multiplicative  (*, /, %)
    4. power           (^, right associative)
    5. unary           (-, +)
    6. primary         literal, identifier, FUNC(args), (expr)
"""

from __future__ import annotations

from wolfcalc._ast import BinaryOperation, FunctionCall, Identifier, If, Literal, Negation, Node
from wolfcalc._errors import ParseError
from wolfcalc._functions import default_registry, formulas_function
from wolfcalc._protocol import ParseOptions
from wolfcalc._tokenizer import (
    BOOLEAN,
    COMMA,
    COMPARATOR,
    FUNCTION,
    IDENTIFIER,
    LPAREN,
    NUMBER,
    OPERATOR,
    RPAREN,
    STRING,
    Token,
)


class Parser:
    """Builds one AST from a token list.

    Usage::

        tokens = Tokenizer().tokenize("rate * 12", options)
        node = Parser(tokens, options).parse()
    """

    def __init__(self, tokens: list[Token], options: ParseOptions | None = None) -> None:
        self.tokens = tokens
        self.options = options or ParseOptions()
        self.registry = self.options.function_registry
        if self.registry is None:
            self.registry = default_registry()
        self._pos = 0

    def parse(self) -> Node:
        if not self.tokens:
            raise ParseError("empty expression")
        node = self._comparison()
        if self._pos < len(self.tokens):
            tok = self.tokens[self._pos]
            raise ParseError(f"unexpected {tok.value!r} at position {tok.position}")
        return node

    # ------------------------------------------------------------------
    # Token cursor
    # ------------------------------------------------------------------

    def _peek(self) -> Token | None:
        if self._pos < len(self.tokens):
            return self.tokens[self._pos]
        return None

    def _next(self) -> Token:
        tok = self._peek()
        if tok is None:
            raise ParseError("unexpected end of expression")
        self._pos += 1
        return tok

    def _accept(self, kind: str, *values: str) -> Token | None:
        tok = self._peek()
        if tok is not None and tok.kind == kind and (not values or tok.value in values):
            self._pos += 1
            return tok
        return None

    def _expect(self, kind: str, what: str) -> Token:
        tok = self._accept(kind)
        if tok is None:
            found = self._peek()
            where = "end of expression" if found is None else repr(found.value)
            raise ParseError(f"expected {what}, found {where}")
        return tok

    # ------------------------------------------------------------------
    # Grammar
    # ------------------------------------------------------------------

    def _comparison(self) -> Node:
        left = self._additive()
        tok = self._accept(COMPARATOR)
        if tok is not None:
            return BinaryOperation(tok.value, left, self._additive())
        return left

    def _additive(self) -> Node:
        node = self._multiplicative()
        while True:
            tok = self._accept(OPERATOR, "+", "-", "&")
            if tok is None:
                return node
            node = BinaryOperation(tok.value, node, self._multiplicative())

    def _multiplicative(self) -> Node:
        node = self._power()
        while True:
            tok = self._accept(OPERATOR, "*", "/", "%")
            if tok is None:
                return node
            node = BinaryOperation(tok.value, node, self._power())

    def _power(self) -> Node:
        base = self._unary()
        if self._accept(OPERATOR, "^") is not None:
            return BinaryOperation("^", base, self._power())
        return base

    def _unary(self) -> Node:
        if self._accept(OPERATOR, "-") is not None:
            operand = self._unary()
            # Fold negative literals so "-3" stays a constant
            if isinstance(operand, Literal) and isinstance(operand.literal, (int, float)):
                return Literal(-operand.literal)
            return Negation(operand)
        if self._accept(OPERATOR, "+") is not None:
            return self._unary()
        return self._primary()

    def _primary(self) -> Node:
        tok = self._next()
        if tok.kind in (NUMBER, STRING, BOOLEAN):
            return Literal(tok.value)
        if tok.kind == IDENTIFIER:
            return Identifier(tok.value)
        if tok.kind == FUNCTION:
            return self._function_call(tok.value)
        if tok.kind == LPAREN:
            node = self._comparison()
            self._expect(RPAREN, "')'")
            return node
        raise ParseError(f"unexpected {tok.value!r} at position {tok.position}")

    def _arguments(self) -> list[Node]:
        self._expect(LPAREN, "'('")
        args: list[Node] = []
        if self._accept(RPAREN) is not None:
            return args
        while True:
            args.append(self._comparison())
            if self._accept(COMMA) is None:
                break
        self._expect(RPAREN, "')'")
        return args

    def _function_call(self, name: str) -> Node:
        args = self._arguments()

        if name == "IF":
            if len(args) not in (2, 3):
                raise ParseError(f"IF requires 2 or 3 arguments, got {len(args)}")
            otherwise = args[2] if len(args) == 3 else Literal(False)
            return If(args[0], args[1], otherwise)

        function = self.registry.get(name)
        if function is None:
            function = formulas_function(name)
        if function is None:
            raise ParseError(f"undefined function {name}")
        if not function.accepts(len(args)):
            raise ParseError(
                f"wrong number of arguments for {name}: got {len(args)}"
            )
        return FunctionCall(function, args)
