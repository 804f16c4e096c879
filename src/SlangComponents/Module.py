"""Procedures and modules: the executable units produced by the parser.

Builders collect a procedure's pieces while it is being parsed and are turned
into immutable Procedure/Module objects once parsing succeeds.
"""

from __future__ import annotations

from collections.abc import Generator

from SlangComponents.AST import ASTNode, Statements
from SlangComponents.Errors import RuntimeErrorKind, SlangRuntimeError
from SlangComponents.ProgressReport import ExecutionReport, ExecutionResult
from SlangComponents.Symbols import CompilationContext, RuntimeContext, SymbolInfo
from SlangComponents.TypeSystem import FunctionPrototype, SlangType, type_to_string

ENTRY_POINT = "MAIN"


class ProcedureBuilder:
    """Mutable state of one procedure while its body is being parsed."""

    def __init__(self, prototype: FunctionPrototype, position: int):
        self.prototype = prototype
        self.position = position
        self.formals: list[SymbolInfo] = []
        self.statements: list = []
        self.context = CompilationContext()

    @property
    def name(self) -> str:
        return self.prototype.name

    @property
    def return_type(self) -> SlangType:
        return self.prototype.return_type

    def add_formal(self, info: SymbolInfo) -> None:
        self.formals.append(info)
        self.context.table.add(info)

    def add_local(self, info: SymbolInfo) -> None:
        self.context.table.add(info)

    def add_statement(self, statement) -> None:
        self.statements.append(statement)

    def get_procedure(self) -> Procedure:
        body = Statements(self.statements, self.position, "Body")
        return Procedure(self.prototype, list(self.formals), body, self.position)


class Procedure(ASTNode):
    """A compiled Slang function.

    Attributes:
        prototype (FunctionPrototype): Name, return type and formal types.
        formals (list[SymbolInfo]): Formal parameters in declaration order.
        body (Statements): The statements of the function body.
    """

    def __init__(
        self,
        prototype: FunctionPrototype,
        formals: list[SymbolInfo],
        body: Statements,
        position: int,
    ):
        super().__init__(position)
        self.prototype = prototype
        self.formals = formals
        self.body = body
        self.static_type = prototype.return_type
        self.edges = [body]

    @property
    def name(self) -> str:
        return self.prototype.name

    @property
    def return_type(self) -> SlangType:
        return self.prototype.return_type

    def unindented_representation(self) -> str:
        params = ", ".join(
            f"{type_to_string(f.type)} {f.name}" for f in self.formals
        )
        return f"FUNCTION {type_to_string(self.return_type)} {self.name}({params})"

    def execute(
        self, runtime_context: RuntimeContext, actuals: list[SymbolInfo] | None = None
    ) -> Generator[ExecutionReport, None, SymbolInfo | None]:
        """Bind the actuals to the formals in a fresh table and run the body.

        Returns:
            The RETURNed value, or None when the body finished without a
            value (no RETURN, or a bare RETURN).
        """
        actuals = actuals or []
        for formal, actual in zip(self.formals, actuals):
            runtime_context.table.assign_to_table(formal.name, actual)  # type: ignore[arg-type]

        report = self._report(
            runtime_context, f"Entering {self.name} at depth {runtime_context.depth}."
        )
        yield report

        result = yield from self.body.execute(runtime_context)
        if result is None or result.value is None:
            return None
        return result


class ModuleBuilder:
    def __init__(self):
        self.prototypes: dict[str, FunctionPrototype] = {}
        self.procedures: list[Procedure] = []

    def register_prototype(self, prototype: FunctionPrototype) -> None:
        self.prototypes[prototype.name] = prototype

    def lookup_prototype(self, name: str) -> FunctionPrototype | None:
        return self.prototypes.get(name)

    def add_procedure(self, procedure: Procedure) -> None:
        self.procedures.append(procedure)

    def get_module(self) -> Module:
        return Module(self.procedures, dict(self.prototypes))


class Module(ASTNode):
    """A compiled program: every procedure, indexed by name."""

    def __init__(self, procedures: list[Procedure], prototypes: dict[str, FunctionPrototype]):
        super().__init__(0)
        self.procedures: dict[str, Procedure] = {p.name: p for p in procedures}
        self.prototypes = prototypes
        self.edges = list(procedures)

    def unindented_representation(self) -> str:
        return "Module"

    def find(self, name: str) -> Procedure | None:
        return self.procedures.get(name)

    def get_execution_reporter(
        self,
        runtime_context: RuntimeContext | None = None,
        actuals: list[SymbolInfo] | None = None,
    ) -> Generator[ExecutionReport, None, SymbolInfo | None]:
        """Run MAIN, yielding one report per executed step.

        A module without MAIN does nothing: no reports and a None result.

        Raises:
            SlangRuntimeError: STACK_EXHAUSTED when recursion outgrows the host stack,
                or the error raised by the failing statement.
        """
        main = self.find(ENTRY_POINT)
        if main is None:
            return None
        if runtime_context is None:
            runtime_context = RuntimeContext(self, ENTRY_POINT, 1)
        try:
            return (yield from main.execute(runtime_context, actuals or []))
        except RecursionError:
            raise SlangRuntimeError(
                "Call stack exhausted: the recursion is too deep.",
                RuntimeErrorKind.STACK_EXHAUSTED,
            ) from None

    def execute(
        self,
        runtime_context: RuntimeContext | None = None,
        actuals: list[SymbolInfo] | None = None,
    ) -> ExecutionResult:
        """Run MAIN to completion and collect its PRINT trace."""
        result = ExecutionResult([])
        reporter = self.get_execution_reporter(runtime_context, actuals)
        while True:
            try:
                report = next(reporter)
            except StopIteration as e:
                result.value = e.value
                return result
            if report.print_event is not None:
                result.print_events.append(report.print_event)

    def __contains__(self, name: str) -> bool:
        return name in self.procedures

    def __len__(self) -> int:
        return len(self.procedures)

    def __repr__(self):
        return f"Module({list(self.procedures)})"
