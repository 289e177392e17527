"""Evaluator for the OData filter subset used against table rows.

Supports comparisons (``eq ne gt ge lt le``) between a property and a
literal, ``and``/``or``/``not``, and parentheses. Literals: strings,
integers (optional ``L`` suffix), floats, ``true``/``false``,
``datetime'...'``, ``guid'...'`` and ``X'...'``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

Predicate = Callable[[Mapping[str, Any]], bool]

_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<lparen>\()
      | (?P<rparen>\))
      | (?P<typed>(?:datetime|guid|X|binary)'(?:[^']|'')*')
      | (?P<string>'(?:[^']|'')*')
      | (?P<number>-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?[LlDd]?)
      | (?P<word>[A-Za-z_][A-Za-z0-9_]*)
    )""",
    re.VERBOSE,
)

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": lambda a, b: a == b,
    "ne": lambda a, b: a != b,
    "gt": lambda a, b: a > b,
    "ge": lambda a, b: a >= b,
    "lt": lambda a, b: a < b,
    "le": lambda a, b: a <= b,
}


class ODataFilterError(ValueError):
    """Filter expression could not be parsed."""

    pass


def _unquote(body: str) -> str:
    return body[1:-1].replace("''", "'")


def _parse_datetime(text: str) -> datetime:
    value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def _tokenize(expression: str) -> list[tuple[str, Any]]:
    tokens: list[tuple[str, Any]] = []
    position = 0
    expression = expression.rstrip()
    while position < len(expression):
        match = _TOKEN_RE.match(expression, position)
        if match is None or match.end() == position:
            raise ODataFilterError(f"unexpected input at {position}: {expression[position:]!r}")
        position = match.end()
        kind = match.lastgroup
        text = match.group(kind)
        if kind == "typed":
            prefix, _, body = text.partition("'")
            body = _unquote("'" + body)
            if prefix == "datetime":
                tokens.append(("literal", _parse_datetime(body)))
            elif prefix == "guid":
                tokens.append(("literal", UUID(body)))
            else:
                tokens.append(("literal", bytes.fromhex(body)))
        elif kind == "string":
            tokens.append(("literal", _unquote(text)))
        elif kind == "number":
            stripped = text.rstrip("LlDd")
            if any(ch in stripped for ch in ".eE") or text[-1] in "Dd":
                tokens.append(("literal", float(stripped)))
            else:
                tokens.append(("literal", int(stripped)))
        elif kind == "word":
            lowered = text.lower()
            if lowered in ("true", "false"):
                tokens.append(("literal", lowered == "true"))
            elif lowered in _COMPARATORS or lowered in ("and", "or", "not"):
                tokens.append(("op", lowered))
            else:
                tokens.append(("ident", text))
        else:
            tokens.append((kind, text))
    return tokens


def _coerce(actual: Any, expected: Any) -> Any:
    """Bring a stored value to the literal's type where the wire lost it."""
    if isinstance(expected, datetime) and isinstance(actual, str):
        return _parse_datetime(actual)
    if isinstance(expected, UUID) and isinstance(actual, str):
        return UUID(actual)
    return actual


class _Parser:
    def __init__(self, tokens: list[tuple[str, Any]]) -> None:
        self._tokens = tokens
        self._pos = 0

    def parse(self) -> Predicate:
        predicate = self._or()
        if self._pos != len(self._tokens):
            raise ODataFilterError(f"unexpected token {self._tokens[self._pos][1]!r}")
        return predicate

    def _peek(self) -> tuple[str, Any] | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> tuple[str, Any]:
        token = self._peek()
        if token is None:
            raise ODataFilterError("unexpected end of filter")
        self._pos += 1
        return token

    def _or(self) -> Predicate:
        left = self._and()
        while self._peek() == ("op", "or"):
            self._pos += 1
            right = self._and()
            left = (lambda a, b: lambda row: a(row) or b(row))(left, right)
        return left

    def _and(self) -> Predicate:
        left = self._unary()
        while self._peek() == ("op", "and"):
            self._pos += 1
            right = self._unary()
            left = (lambda a, b: lambda row: a(row) and b(row))(left, right)
        return left

    def _unary(self) -> Predicate:
        if self._peek() == ("op", "not"):
            self._pos += 1
            inner = self._unary()
            return lambda row: not inner(row)
        if self._peek() == ("lparen", "("):
            self._pos += 1
            inner = self._or()
            if self._next() != ("rparen", ")"):
                raise ODataFilterError("missing closing parenthesis")
            return inner
        return self._comparison()

    def _comparison(self) -> Predicate:
        kind, name = self._next()
        if kind != "ident":
            raise ODataFilterError(f"expected property name, got {name!r}")
        kind, op = self._next()
        if kind != "op" or op not in _COMPARATORS:
            raise ODataFilterError(f"expected comparison operator, got {op!r}")
        kind, literal = self._next()
        if kind != "literal":
            raise ODataFilterError(f"expected literal, got {literal!r}")
        compare = _COMPARATORS[op]

        def predicate(row: Mapping[str, Any]) -> bool:
            if name not in row:
                return False
            try:
                return compare(_coerce(row[name], literal), literal)
            except (TypeError, ValueError):
                return False

        return predicate


def compile_filter(expression: str | None) -> Predicate:
    """Compile a filter expression into a row predicate.

    Args:
        expression: OData filter (None or blank matches every row)

    Returns:
        Callable returning True for matching rows

    Raises:
        ODataFilterError: If the expression is not in the supported subset
    """
    if expression is None or not expression.strip():
        return lambda row: True
    return _Parser(_tokenize(expression)).parse()
