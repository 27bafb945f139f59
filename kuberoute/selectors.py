"""Kubernetes label-selector parsing and matching.

Supports the full string grammar accepted by ``kubectl -l``::

    env=prod,tier!=cache         equality / inequality
    env in (prod,staging)        set membership
    env notin (dev)              set exclusion
    release                      key exists
    !release                     key absent
    replicas>2, replicas<10      integer comparison

Selectors are parsed fresh per call and are immutable.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum

from kuberoute.errors import InvalidSelector

_NAME_MAX = 63
_PREFIX_MAX = 253
_NAME_RE = re.compile(r"^([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9]$")
_DNS_SUBDOMAIN_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")
_INT_RE = re.compile(r"^-?[0-9]+$")

_SPECIAL = "!=(),<>"


class Operator(StrEnum):
    EQUALS = "="
    DOUBLE_EQUALS = "=="
    NOT_EQUALS = "!="
    IN = "in"
    NOT_IN = "notin"
    EXISTS = "exists"
    DOES_NOT_EXIST = "!"
    GREATER_THAN = ">"
    LESS_THAN = "<"


@dataclass(frozen=True)
class Requirement:
    """A single ``key <op> values`` clause."""

    key: str
    operator: Operator
    values: frozenset[str] = field(default_factory=frozenset)

    def matches(self, labels: Mapping[str, str]) -> bool:
        op = self.operator
        if op in (Operator.EQUALS, Operator.DOUBLE_EQUALS, Operator.IN):
            return self.key in labels and labels[self.key] in self.values
        if op in (Operator.NOT_EQUALS, Operator.NOT_IN):
            return self.key not in labels or labels[self.key] not in self.values
        if op is Operator.EXISTS:
            return self.key in labels
        if op is Operator.DOES_NOT_EXIST:
            return self.key not in labels
        # Gt / Lt
        if self.key not in labels or not _INT_RE.match(labels[self.key]):
            return False
        actual = int(labels[self.key])
        (bound,) = self.values
        if op is Operator.GREATER_THAN:
            return actual > int(bound)
        return actual < int(bound)

    def __str__(self) -> str:
        op = self.operator
        if op is Operator.EXISTS:
            return self.key
        if op is Operator.DOES_NOT_EXIST:
            return f"!{self.key}"
        if op in (Operator.IN, Operator.NOT_IN):
            return f"{self.key} {op.value} ({','.join(sorted(self.values))})"
        (value,) = self.values
        return f"{self.key}{op.value}{value}"


@dataclass(frozen=True)
class Selector:
    """Conjunction of requirements; the empty selector matches everything."""

    requirements: tuple[Requirement, ...] = ()

    def matches(self, labels: Mapping[str, str] | None) -> bool:
        labels = labels or {}
        return all(req.matches(labels) for req in self.requirements)

    def empty(self) -> bool:
        return not self.requirements

    def __str__(self) -> str:
        return ",".join(str(req) for req in self.requirements)


EVERYTHING = Selector()


# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------


def _tokenize(text: str) -> Iterator[str]:
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        if ch in _SPECIAL:
            # two-character operators
            if text.startswith(("==", "!="), i):
                yield text[i : i + 2]
                i += 2
            else:
                yield ch
                i += 1
            continue
        start = i
        while i < n and not text[i].isspace() and text[i] not in _SPECIAL:
            i += 1
        yield text[start:i]


def _is_identifier(token: str | None) -> bool:
    return token is not None and token[0] not in _SPECIAL


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class _Parser:
    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens = list(_tokenize(text))
        self._pos = 0

    def _peek(self) -> str | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> str | None:
        token = self._peek()
        self._pos += 1
        return token

    def _fail(self, reason: str) -> InvalidSelector:
        return InvalidSelector(self._text, reason)

    def parse(self) -> Selector:
        if not self._tokens:
            return EVERYTHING
        requirements: list[Requirement] = []
        while True:
            requirements.append(self._requirement())
            token = self._next()
            if token is None:
                break
            if token != ",":
                raise self._fail(f"found '{token}', expected ','")
            if self._peek() is None:
                raise self._fail("found end of string, expected requirement")
        return Selector(tuple(requirements))

    def _requirement(self) -> Requirement:
        token = self._next()
        if token == "!":
            key = self._next()
            if not _is_identifier(key):
                raise self._fail(f"found '{key or ''}', expected identifier after '!'")
            assert key is not None
            _validate_key(self._text, key)
            return Requirement(key, Operator.DOES_NOT_EXIST)
        if not _is_identifier(token):
            raise self._fail(f"found '{token or ''}', expected: !, identifier, or end of string")
        assert token is not None
        key = token
        _validate_key(self._text, key)

        op_token = self._peek()
        if op_token is None or op_token == ",":
            return Requirement(key, Operator.EXISTS)
        self._pos += 1
        if op_token in ("=", "==", "!="):
            value = self._exact_value()
            _validate_value(self._text, value)
            return Requirement(key, Operator(op_token), frozenset({value}))
        if op_token in (">", "<"):
            value = self._exact_value()
            if not _INT_RE.match(value):
                raise self._fail(f"for '{op_token}' operator, the value must be an integer, got '{value}'")
            return Requirement(key, Operator(op_token), frozenset({value}))
        if op_token in ("in", "notin"):
            values = self._value_set()
            for value in values:
                _validate_value(self._text, value)
            return Requirement(key, Operator(op_token), frozenset(values))
        raise self._fail(f"found '{op_token}', expected: in, notin, =, ==, !=, gt, lt")

    def _exact_value(self) -> str:
        token = self._peek()
        if token is None or token == ",":
            return ""
        if not _is_identifier(token):
            raise self._fail(f"found '{token}', expected identifier")
        self._pos += 1
        return token

    def _value_set(self) -> set[str]:
        if self._next() != "(":
            raise self._fail("expected '(' after set operator")
        values: set[str] = set()
        expect_value = True
        while True:
            token = self._next()
            if token is None:
                raise self._fail("found end of string, expected ')'")
            if token == ")":
                if expect_value:
                    values.add("")
                return values
            if token == ",":
                if expect_value:
                    values.add("")
                expect_value = True
                continue
            if not _is_identifier(token) or not expect_value:
                raise self._fail(f"found '{token}', expected ',' or ')'")
            values.add(token)
            expect_value = False


def _validate_key(text: str, key: str) -> None:
    prefix, _, name = key.rpartition("/")
    if "/" in key and not prefix:
        raise InvalidSelector(text, f"key '{key}' has an empty prefix")
    if prefix and (len(prefix) > _PREFIX_MAX or not _DNS_SUBDOMAIN_RE.match(prefix)):
        raise InvalidSelector(text, f"key prefix '{prefix}' must be a DNS subdomain")
    if len(name) > _NAME_MAX or not _NAME_RE.match(name):
        raise InvalidSelector(text, f"key name '{name}' is not a valid label name")


def _validate_value(text: str, value: str) -> None:
    if value and (len(value) > _NAME_MAX or not _NAME_RE.match(value)):
        raise InvalidSelector(text, f"value '{value}' is not a valid label value")


def parse_selector(text: str) -> Selector:
    """Parse *text* into a Selector.

    Raises:
        InvalidSelector: the string does not follow the selector grammar or
            contains an invalid key or value.
    """
    return _Parser(text).parse()


def selector_from_labels(labels: Mapping[str, str]) -> Selector:
    """Equality selector matching exactly the given labels."""
    return Selector(
        tuple(Requirement(key, Operator.EQUALS, frozenset({value})) for key, value in sorted(labels.items()))
    )


class LabelSelectorParser:
    """SelectorParser implementation over ``parse_selector``."""

    def parse(self, text: str) -> Selector:
        return parse_selector(text)
