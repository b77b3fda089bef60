"""Exception hierarchy for the calculator."""

from __future__ import annotations

from collections.abc import Iterable


class CalculatorError(Exception):
    """Base class for every error raised by wolfcalc."""


class UnboundVariableError(CalculatorError):
    """One or more free variables had no binding at evaluation time.

    ``unbound_variables`` holds the missing names in the order they were
    found.  ``recipient_variable`` is filled in by the bulk solver with the
    name of the expression that failed.
    """

    def __init__(self, unbound_variables: Iterable[str], message: str | None = None) -> None:
        self.unbound_variables: list[str] = list(unbound_variables)
        self.recipient_variable: str | None = None
        if message is None:
            message = "no value provided for variables: " + ", ".join(
                sorted(self.unbound_variables)
            )
        super().__init__(message)


class InvalidArgumentError(CalculatorError, ValueError):
    """An operation received an argument it cannot act on."""

    recipient_variable: str | None = None


class ParseError(CalculatorError):
    """The expression text could not be turned into an AST."""


class TokenizerError(ParseError):
    """The expression text contains characters that form no token."""


class CircularReferenceError(CalculatorError, ValueError):
    """Expressions passed to the bulk solver depend on each other in a cycle."""
