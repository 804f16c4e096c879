"""Static type representation for Slang.

Slang has exactly three value types. Function signatures are kept apart from
values as prototypes, so a call can be type-checked before (or without) the
callee's body being available.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from SlangComponents.Token import TokenType


class SlangType(Enum):
    NUMERIC = "NUMERIC"
    BOOL = "BOOLEAN"
    STRING = "STRING"


_KEYWORD_TO_TYPE: dict[TokenType, SlangType] = {
    TokenType.VAR_NUMERIC: SlangType.NUMERIC,
    TokenType.VAR_BOOLEAN: SlangType.BOOL,
    TokenType.VAR_STRING: SlangType.STRING,
}


@dataclass(frozen=True, slots=True)
class FunctionPrototype:
    """Signature of a Slang function: name, return type, ordered formal types."""

    name: str
    return_type: SlangType
    formal_types: tuple[SlangType, ...]

    def arity(self) -> int:
        return len(self.formal_types)

    def __str__(self) -> str:
        params = ", ".join(type_to_string(t) for t in self.formal_types)
        return f"FUNCTION {type_to_string(self.return_type)} {self.name}({params})"


def type_from_keyword(token_type: TokenType) -> SlangType:
    """Map a NUMERIC/STRING/BOOLEAN keyword token to its SlangType."""
    return _KEYWORD_TO_TYPE[token_type]


def type_to_string(t: SlangType | None) -> str:
    if t is None:
        return "NONE"
    return t.value


def is_numeric(t: SlangType) -> bool:
    return t == SlangType.NUMERIC


def is_stringy(t: SlangType) -> bool:
    return t == SlangType.STRING


def is_boolean(t: SlangType) -> bool:
    return t == SlangType.BOOL


def supports_ordering(t: SlangType) -> bool:
    """Only NUMERIC operands may use < <= > >=."""
    return is_numeric(t)


def is_assignable(dst: SlangType, src: SlangType) -> bool:
    """Slang has no implicit conversions: assignment needs an exact match."""
    return dst == src
