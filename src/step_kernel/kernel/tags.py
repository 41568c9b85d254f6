from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

# Tag filters are opaque predicates over a scenario's tag set.
TagFilter = Callable[[frozenset[str]], bool]


class TagExpressionError(ValueError):
    pass


def normalize_tags(tags: Iterable[str]) -> frozenset[str]:
    # Tags are compared with their leading "@"; callers may omit it.
    normalized: set[str] = set()
    for tag in tags:
        tag = tag.strip()
        if not tag:
            continue
        normalized.add(tag if tag.startswith("@") else f"@{tag}")
    return frozenset(normalized)


@dataclass(frozen=True, slots=True)
class _Tag:
    name: str

    def __call__(self, tags: frozenset[str]) -> bool:
        return self.name in tags


@dataclass(frozen=True, slots=True)
class _Not:
    operand: TagFilter

    def __call__(self, tags: frozenset[str]) -> bool:
        return not self.operand(tags)


@dataclass(frozen=True, slots=True)
class _And:
    left: TagFilter
    right: TagFilter

    def __call__(self, tags: frozenset[str]) -> bool:
        return self.left(tags) and self.right(tags)


@dataclass(frozen=True, slots=True)
class _Or:
    left: TagFilter
    right: TagFilter

    def __call__(self, tags: frozenset[str]) -> bool:
        return self.left(tags) or self.right(tags)


@dataclass(frozen=True, slots=True)
class TagExpression:
    # Compiled boolean expression; keeps its source for diagnostics.
    source: str
    predicate: TagFilter

    def __call__(self, tags: frozenset[str]) -> bool:
        return self.predicate(tags)

    def __str__(self) -> str:
        return self.source


def parse_tag_expression(source: str) -> TagExpression:
    # Grammar: or_expr := and_expr ("or" and_expr)*; and_expr := not_expr ("and" not_expr)*;
    # not_expr := "not" not_expr | "(" expr ")" | @tag
    tokens = _tokenize(source)
    if not tokens:
        raise TagExpressionError("Tag expression is empty")
    parser = _Parser(source, tokens)
    predicate = parser.parse_or()
    if parser.pos != len(tokens):
        raise TagExpressionError(f"Unexpected token {tokens[parser.pos]!r} in tag expression {source!r}")
    return TagExpression(source=source, predicate=predicate)


def as_tag_filter(value: str | TagFilter | None) -> TagFilter | None:
    if value is None:
        return None
    if isinstance(value, str):
        return parse_tag_expression(value)
    if not callable(value):
        raise TagExpressionError("Tag filter must be an expression string or a predicate")
    return value


def _tokenize(source: str) -> list[str]:
    return source.replace("(", " ( ").replace(")", " ) ").split()


class _Parser:
    def __init__(self, source: str, tokens: list[str]) -> None:
        self.source = source
        self.tokens = tokens
        self.pos = 0

    def parse_or(self) -> TagFilter:
        left = self.parse_and()
        while self._peek() == "or":
            self.pos += 1
            left = _Or(left, self.parse_and())
        return left

    def parse_and(self) -> TagFilter:
        left = self.parse_not()
        while self._peek() == "and":
            self.pos += 1
            left = _And(left, self.parse_not())
        return left

    def parse_not(self) -> TagFilter:
        token = self._peek()
        if token is None:
            raise TagExpressionError(f"Unexpected end of tag expression {self.source!r}")
        self.pos += 1
        if token == "not":
            return _Not(self.parse_not())
        if token == "(":
            inner = self.parse_or()
            if self._peek() != ")":
                raise TagExpressionError(f"Missing ')' in tag expression {self.source!r}")
            self.pos += 1
            return inner
        if token.startswith("@") and len(token) > 1:
            return _Tag(token)
        raise TagExpressionError(f"Unexpected token {token!r} in tag expression {self.source!r}")

    def _peek(self) -> str | None:
        if self.pos < len(self.tokens):
            return self.tokens[self.pos]
        return None
