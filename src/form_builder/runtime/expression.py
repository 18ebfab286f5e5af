"""
Arithmetic expression evaluation for derived-field formulas.

Formulas are evaluated by a small tokenizer and recursive-descent parser
restricted to numbers, ``+ - * /`` and parentheses. Nothing is compiled or
executed; text outside the whitelist is rejected before parsing.

Grammar:
    expr   := term (('+' | '-') term)*
    term   := factor (('*' | '/') factor)*
    factor := ('+' | '-') factor | NUMBER | '(' expr ')'

Division follows IEEE-754: ``x / 0`` is ``±inf`` and ``0 / 0`` is ``nan``.
"""

import math
import re
from dataclasses import dataclass
from typing import List

# Only digits, + - * / ( ) . and whitespace may appear in an expression
ALLOWED_EXPRESSION_PATTERN = re.compile(r"^[0-9+\-*/().\s]+$")

_NUMBER_PATTERN = re.compile(r"\d+\.?\d*|\.\d+")
_OPERATORS = "+-*/()"


class UnsafeExpressionError(ValueError):
    """Raised when an expression contains characters outside the whitelist."""


class ExpressionSyntaxError(ValueError):
    """Raised when an expression cannot be parsed."""


@dataclass(slots=True, frozen=True)
class Token:
    """A lexical token: kind is "number", an operator character, or "end"."""

    kind: str
    text: str
    position: int


def is_safe_expression(text: str) -> bool:
    """Whether the text uses only whitelisted characters (and is non-empty)."""
    return ALLOWED_EXPRESSION_PATTERN.match(text) is not None


def tokenize(text: str) -> List[Token]:
    """
    Split an expression into tokens.

    Raises:
        UnsafeExpressionError: If the text is empty or not whitelisted
        ExpressionSyntaxError: If a number is malformed (e.g. "1.2.3")
    """
    if not is_safe_expression(text):
        raise UnsafeExpressionError(f"Expression contains disallowed characters: {text!r}")

    tokens: List[Token] = []
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch.isspace():
            pos += 1
            continue
        if ch in _OPERATORS:
            tokens.append(Token(kind=ch, text=ch, position=pos))
            pos += 1
            continue

        m = _NUMBER_PATTERN.match(text, pos)
        if not m:
            raise ExpressionSyntaxError(f"Unexpected character {ch!r} at position {pos}")
        end = m.end()
        if end < len(text) and text[end] == ".":
            raise ExpressionSyntaxError(f"Malformed number at position {pos}")
        tokens.append(Token(kind="number", text=m.group(0), position=pos))
        pos = end

    tokens.append(Token(kind="end", text="", position=len(text)))
    return tokens


def _divide(numerator: float, denominator: float) -> float:
    if denominator != 0:
        return numerator / denominator
    if numerator == 0 or math.isnan(numerator):
        return math.nan
    # Signed zero decides the direction of the infinity
    sign = math.copysign(1.0, numerator) * math.copysign(1.0, denominator)
    return math.copysign(math.inf, sign)


class _Parser:
    """Recursive-descent evaluator over a token list."""

    def __init__(self, tokens: List[Token]):
        self._tokens = tokens
        self._index = 0

    def _peek(self) -> Token:
        return self._tokens[self._index]

    def _advance(self) -> Token:
        token = self._tokens[self._index]
        self._index += 1
        return token

    def parse(self) -> float:
        if self._peek().kind == "end":
            raise ExpressionSyntaxError("Empty expression")
        value = self._expr()
        token = self._peek()
        if token.kind != "end":
            raise ExpressionSyntaxError(
                f"Unexpected {token.text!r} at position {token.position}"
            )
        return value

    def _expr(self) -> float:
        value = self._term()
        while self._peek().kind in ("+", "-"):
            op = self._advance().kind
            right = self._term()
            value = value + right if op == "+" else value - right
        return value

    def _term(self) -> float:
        value = self._factor()
        while self._peek().kind in ("*", "/"):
            op = self._advance().kind
            right = self._factor()
            value = value * right if op == "*" else _divide(value, right)
        return value

    def _factor(self) -> float:
        token = self._advance()
        if token.kind == "+":
            return self._factor()
        if token.kind == "-":
            return -self._factor()
        if token.kind == "number":
            return float(token.text)
        if token.kind == "(":
            value = self._expr()
            closing = self._advance()
            if closing.kind != ")":
                raise ExpressionSyntaxError(f"Expected ')' at position {closing.position}")
            return value
        if token.kind == "end":
            raise ExpressionSyntaxError("Unexpected end of expression")
        raise ExpressionSyntaxError(f"Unexpected {token.text!r} at position {token.position}")


def evaluate_expression(text: str) -> float:
    """
    Evaluate an arithmetic expression.

    Args:
        text: Expression using numbers, + - * / and parentheses

    Returns:
        Result as a float (may be inf or nan after division by zero)

    Raises:
        UnsafeExpressionError: If the text contains disallowed characters
        ExpressionSyntaxError: If the expression is malformed
    """
    parser = _Parser(tokenize(text))
    try:
        return parser.parse()
    except RecursionError:
        raise ExpressionSyntaxError("Expression is nested too deeply")
