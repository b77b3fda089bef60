"""Regex tokenizer for calculator expressions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from wolfcalc._errors import TokenizerError
from wolfcalc._protocol import ParseOptions

# ---------------------------------------------------------------------------
# Token kinds
# ---------------------------------------------------------------------------

NUMBER = "number"
STRING = "string"
BOOLEAN = "boolean"
IDENTIFIER = "identifier"
FUNCTION = "function"
OPERATOR = "operator"
COMPARATOR = "comparator"
LPAREN = "lparen"
RPAREN = "rparen"
COMMA = "comma"


@dataclass(frozen=True)
class Token:
    kind: str
    value: Any
    position: int = 0


# ---------------------------------------------------------------------------
# Regex patterns, tried in order at each position
# ---------------------------------------------------------------------------

_WHITESPACE_RE = re.compile(r"\s+")
_NUMBER_RE = re.compile(r"(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?")
_STRING_RE = re.compile(r'"((?:[^"\\]|\\.)*)"|\'((?:[^\'\\]|\\.)*)\'')
# Dotted names such as ``loan.amount`` refer to flattened bindings
_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z0-9_]+)*")
_FUNCTION_OPEN_RE = re.compile(r"\s*\(")
_COMPARATOR_RE = re.compile(r"<=|>=|<>|!=|==|=|<|>")
_OPERATOR_RE = re.compile(r"[-+*/%^&]")
_ESCAPE_RE = re.compile(r"\\(.)")


class Tokenizer:
    """Splits expression text into :class:`Token` objects.

    Identifiers are case-folded unless ``options.case_sensitive`` is set.
    Function names are upper-cased and passed through ``options.aliases``.
    """

    def tokenize(self, text: str, options: ParseOptions | None = None) -> list[Token]:
        options = options or ParseOptions()
        tokens: list[Token] = []
        pos = 0
        length = len(text)

        while pos < length:
            m = _WHITESPACE_RE.match(text, pos)
            if m:
                pos = m.end()
                continue

            ch = text[pos]
            if ch == "(":
                tokens.append(Token(LPAREN, ch, pos))
                pos += 1
                continue
            if ch == ")":
                tokens.append(Token(RPAREN, ch, pos))
                pos += 1
                continue
            if ch == ",":
                tokens.append(Token(COMMA, ch, pos))
                pos += 1
                continue

            m = _NUMBER_RE.match(text, pos)
            if m:
                raw = m.group(0)
                # Preserve int for plain integer literals
                if re.fullmatch(r"\d+", raw):
                    tokens.append(Token(NUMBER, int(raw), pos))
                else:
                    tokens.append(Token(NUMBER, float(raw), pos))
                pos = m.end()
                continue

            m = _STRING_RE.match(text, pos)
            if m:
                body = m.group(1) if m.group(1) is not None else m.group(2)
                tokens.append(Token(STRING, _ESCAPE_RE.sub(r"\1", body), pos))
                pos = m.end()
                continue

            m = _NAME_RE.match(text, pos)
            if m:
                tokens.append(self._name_token(m.group(0), text, m.end(), pos, options))
                pos = m.end()
                continue

            m = _COMPARATOR_RE.match(text, pos)
            if m:
                op = m.group(0)
                tokens.append(Token(COMPARATOR, {"==": "=", "!=": "<>"}.get(op, op), pos))
                pos = m.end()
                continue

            m = _OPERATOR_RE.match(text, pos)
            if m:
                tokens.append(Token(OPERATOR, m.group(0), pos))
                pos = m.end()
                continue

            raise TokenizerError(f"unexpected character {ch!r} at position {pos} in {text!r}")

        return tokens

    @staticmethod
    def _name_token(name: str, text: str, end: int, pos: int, options: ParseOptions) -> Token:
        if _FUNCTION_OPEN_RE.match(text, end):
            upper = name.upper()
            return Token(FUNCTION, options.aliases.get(upper, upper), pos)
        lowered = name.lower()
        if lowered in ("true", "false"):
            return Token(BOOLEAN, lowered == "true", pos)
        if options.case_sensitive:
            return Token(IDENTIFIER, name, pos)
        return Token(IDENTIFIER, lowered, pos)
