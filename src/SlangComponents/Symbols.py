from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Iterator

from SlangComponents.Errors import CompileError, CompileErrorKind
from SlangComponents.Token import format_number
from SlangComponents.TypeSystem import SlangType, type_to_string

if TYPE_CHECKING:
    from SlangComponents.Module import Module


class SemanticError(CompileError):
    """Compile error for undeclared symbols and type mismatches."""

    def __init__(
        self,
        message: str,
        kind: CompileErrorKind = CompileErrorKind.TYPE_MISMATCH,
        position: int | None = None,
        symbol: str | None = None,
    ):
        super().__init__(message, kind, position, symbol)


@dataclass(frozen=True, slots=True)
class SymbolInfo:
    """One binding: `(name, type, value)`.

    Compile-time tables store `value=None`. Expression results are SymbolInfos
    with `name=None`.
    """

    name: str | None
    type: SlangType
    value: float | bool | str | None = None

    def renamed(self, name: str) -> SymbolInfo:
        return replace(self, name=name)

    def display_value(self) -> str:
        if self.value is None:
            return "NULL"
        if self.type == SlangType.NUMERIC:
            return format_number(self.value)  # type: ignore[arg-type]
        if self.type == SlangType.BOOL:
            return "TRUE" if self.value else "FALSE"
        return str(self.value)

    def __str__(self) -> str:
        return f"""Name: {self.name}
Type: {type_to_string(self.type)}
Value: {self.display_value()}"""


class SymbolTable:
    """Flat name -> SymbolInfo mapping. Last write wins; there is no scope chain."""

    def __init__(self):
        self.symbols: dict[str, SymbolInfo] = {}

    def add(self, info: SymbolInfo) -> bool:
        self.symbols[info.name] = info  # type: ignore[index]
        return True

    def get(self, name: str) -> SymbolInfo | None:
        return self.symbols.get(name)

    def assign_to_table(self, target_name: str, info: SymbolInfo) -> None:
        """Store `info`'s value under `target_name`, keeping the target's name."""
        self.symbols[target_name] = info.renamed(target_name)

    def __contains__(self, name: str) -> bool:
        return name in self.symbols

    def __iter__(self) -> Iterator[SymbolInfo]:
        return iter(self.symbols.values())

    def __len__(self) -> int:
        return len(self.symbols)

    def __str__(self) -> str:
        result = "Symbol Table:\n"
        for sym in self.symbols.values():
            result += f"{sym}\n"
        return result


class CompilationContext:
    """Compile-time view of one procedure: declared names and their types."""

    def __init__(self):
        self.table = SymbolTable()


class RuntimeContext:
    """Activation record of one procedure call.

    Every call gets a fresh context, so recursive activations never share
    bindings. The module reference lets a call resolve its callee by name.
    """

    def __init__(self, module: Module | None = None, procedure_name: str | None = None, depth: int = 0):
        self.table = SymbolTable()
        self.module = module
        self.procedure_name = procedure_name
        self.depth = depth
