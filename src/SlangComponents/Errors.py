"""Error kinds for the two phases of interpretation.

Compilation and execution never share an error class: a `CompileError` can
only come out of `compile()`, a `SlangRuntimeError` only out of `execute()`.
"""

from __future__ import annotations

from enum import Enum


class CompileErrorKind(Enum):
    LEXICAL = "LEXICAL"
    SYNTAX = "SYNTAX"
    UNDECLARED_SYMBOL = "UNDECLARED_SYMBOL"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    DUPLICATE_FUNCTION = "DUPLICATE_FUNCTION"


class RuntimeErrorKind(Enum):
    STACK_EXHAUSTED = "STACK_EXHAUSTED"
    UNASSIGNED_VARIABLE = "UNASSIGNED_VARIABLE"
    MISSING_RETURN_VALUE = "MISSING_RETURN_VALUE"


class CompileError(Exception):
    """Fatal error raised while compiling a Slang program.

    Attributes:
        kind (CompileErrorKind): Category of the failure.
        position (int | None): 0-based character offset of the offending token.
        symbol (str | None): Offending identifier, for undeclared-symbol errors.
    """

    def __init__(
        self,
        message: str,
        kind: CompileErrorKind = CompileErrorKind.SYNTAX,
        position: int | None = None,
        symbol: str | None = None,
    ):
        self.message = message
        self.kind = kind
        self.position = position
        self.symbol = symbol
        super().__init__(self.__str__())

    def __str__(self) -> str:
        where = f"Position {self.position}: " if self.position is not None else ""
        return f"{where}{self.kind.value.replace('_', ' ').capitalize()} error: {self.message}"


class SlangRuntimeError(Exception):
    """Fatal error raised while executing a compiled module."""

    def __init__(self, message: str, kind: RuntimeErrorKind = RuntimeErrorKind.STACK_EXHAUSTED):
        self.message = message
        self.kind = kind
        super().__init__(f"Runtime error ({kind.value}): {message}")
