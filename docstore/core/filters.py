"""Predicate filtering over schemaless records.

A filter is a list of clauses ``(field, operator, expected)``. A record
matches when every clause holds. Operators form a closed set; an operator
string outside it parses to ``None`` and the clause never matches.

Equality is strict: values must be of the same JSON kind (``1`` and
``1.0`` are both numbers, ``True`` is never a number) and equal. A field
missing from the record equals nothing.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from docstore.core.errors import ValidationFailure


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


MISSING: Any = _Missing()


class Operator(str, Enum):
    INDEX_OF = "indexOf"
    EQ = "=="
    NE = "!="

    @classmethod
    def parse(cls, value: str) -> "Operator | None":
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class Predicate:
    field: str
    operator: Operator | None
    expected: Any = None

    @classmethod
    def build(cls, field: str, operator: str, expected: Any = None) -> "Predicate":
        return cls(field=field, operator=Operator.parse(operator), expected=expected)


def json_kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def strict_equals(left: Any, right: Any) -> bool:
    if left is MISSING or right is MISSING:
        return left is right

    kind = json_kind(left)
    if kind != json_kind(right):
        return False

    if kind == "array":
        return len(left) == len(right) and all(
            strict_equals(a, b) for a, b in zip(left, right)
        )
    if kind == "object":
        return left.keys() == right.keys() and all(
            strict_equals(left[key], right[key]) for key in left
        )
    return left == right


def as_text(value: Any) -> str:
    """Render a JSON value as text: integral floats lose their fraction, arrays join with commas."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if item is None else as_text(item) for item in value)
    if isinstance(value, Mapping):
        return "[object Object]"
    return str(value)


def _contains(predicate: Predicate, value: Any) -> bool:
    if isinstance(value, str):
        return as_text(predicate.expected) in value

    if isinstance(value, (list, tuple)):
        return any(strict_equals(item, predicate.expected) for item in value)

    if value is MISSING:
        reason = f"field '{predicate.field}' is missing"
    else:
        reason = f"field '{predicate.field}' holds a {json_kind(value)}, not a string or array"
    raise ValidationFailure("Invalid filter", detail=reason)


def evaluate(predicate: Predicate, record: Mapping[str, Any], strict: bool = True) -> bool:
    """Evaluate one clause against one record.

    With ``strict`` an ``indexOf`` on a missing or non-containable field
    raises ``ValidationFailure``; otherwise the clause is simply false.
    """
    value = record.get(predicate.field, MISSING)
    operator = predicate.operator

    if operator is Operator.INDEX_OF:
        try:
            return _contains(predicate, value)
        except ValidationFailure:
            if strict:
                raise
            return False
    if operator is Operator.EQ:
        return strict_equals(value, predicate.expected)
    if operator is Operator.NE:
        return not strict_equals(value, predicate.expected)
    return False


def matches(record: Mapping[str, Any], predicates: Sequence[Predicate], strict: bool = True) -> bool:
    return all(evaluate(predicate, record, strict=strict) for predicate in predicates)


def apply_filters(
    records: Iterable[Mapping[str, Any]],
    predicates: Sequence[Predicate],
    strict: bool = True,
) -> list[Any]:
    return [record for record in records if matches(record, predicates, strict=strict)]
