from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path

import SlangComponents.Parser as parser
from SlangComponents.Errors import CompileError, SlangRuntimeError
from SlangComponents.Lexer import get_prototype_collector, get_tokenizer, normalize_source
from SlangComponents.Module import Module
from SlangComponents.ProgressReport import (
    ExecutionReport,
    ParsingReport,
    PrintEvent,
    PrototypeReport,
    TokenizationReport,
)
from SlangComponents.Symbols import SymbolInfo
from SlangComponents.Token import Token
from SlangComponents.TypeSystem import FunctionPrototype


class PipelineSession:
    """Shared interpreter pipeline state.

    This is a UI-agnostic orchestrator that both the Textual UI and the CLI can
    drive. It keeps the phase generators + the produced artifacts in one place,
    so stage sequencing and data flow can't drift between entrypoints.
    """

    def __init__(self) -> None:
        self.reset_all()

    def reset_all(self) -> None:
        self.file_name: str = ""
        self.source_code: str = ""
        self.source_normalized: str = ""

        self.tokens: list[Token] = []
        self.prototypes: list[FunctionPrototype] = []
        self.module: Module | None = None

        self.print_events: list[PrintEvent] = []
        self.result: SymbolInfo | None = None

        self._tokenization_generator = None
        self._prototype_generator = None
        self._parsing_generator = None
        self._execution_generator = None

    # ----- Tokenization -----

    def begin_tokenization(self, source_code: str, file_name: str = "") -> None:
        self.file_name = file_name
        self.source_code = source_code
        self.source_normalized = normalize_source(source_code)
        self.tokens.clear()
        self._tokenization_generator = get_tokenizer(self.source_normalized)

    def tick_tokenization(self) -> tuple[bool, TokenizationReport | None]:
        if self._tokenization_generator is None:
            raise RuntimeError("Tokenization generator not initialized.")
        try:
            report: TokenizationReport = next(self._tokenization_generator)
            if report.new_token is not None:
                self.tokens.append(report.new_token)
            return False, report
        except StopIteration:
            return True, None

    def finish_tokenization(self) -> None:
        """Consume remaining tokenization reports until completion."""
        if self._tokenization_generator is None:
            return
        for report in self._tokenization_generator:
            if report.new_token is not None:
                self.tokens.append(report.new_token)

    # ----- Prototypes -----

    def begin_prototypes(self) -> None:
        self.prototypes = []
        self._prototype_generator = get_prototype_collector(self.tokens)

    def tick_prototypes(self) -> tuple[bool, PrototypeReport | None]:
        if self._prototype_generator is None:
            raise RuntimeError("Prototype generator not initialized.")
        try:
            report: PrototypeReport = next(self._prototype_generator)
            if report.new_prototype is not None:
                self.prototypes.append(report.new_prototype)
            return False, report
        except StopIteration:
            return True, None

    # ----- Parsing -----

    def begin_parsing(self) -> None:
        self.module = None
        self._parsing_generator = parser.get_parsing_reporter(self.tokens, self.prototypes)

    def tick_parsing(self) -> tuple[bool, ParsingReport | None]:
        if self._parsing_generator is None:
            raise RuntimeError("Parsing generator not initialized.")
        try:
            report: ParsingReport = next(self._parsing_generator)
            return False, report
        except StopIteration as done:
            self.module = done.value
            return True, None

    # ----- Execution -----

    def begin_execution(self) -> None:
        if self.module is None:
            raise RuntimeError("No module available for execution.")
        self.print_events = []
        self.result = None
        self._execution_generator = self.module.get_execution_reporter()

    def tick_execution(self) -> tuple[bool, ExecutionReport | None]:
        if self._execution_generator is None:
            raise RuntimeError("Execution generator not initialized.")
        try:
            report: ExecutionReport = next(self._execution_generator)
            if report.print_event is not None:
                self.print_events.append(report.print_event)
            return False, report
        except StopIteration as done:
            self.result = done.value
            return True, None


@dataclass
class RunOutcome:
    """Result value of one end-to-end run: either a trace or the error that stopped it."""

    ok: bool
    print_events: list[PrintEvent] = field(default_factory=list)
    value: SymbolInfo | None = None
    error: CompileError | SlangRuntimeError | None = None
    module: Module | None = None

    def printed_lines(self) -> list[str]:
        return [str(event) for event in self.print_events]


def read_text_file(path: str | Path) -> str:
    return Path(path).read_text(encoding="utf-8")


def _drain(tick) -> None:
    while True:
        done, _ = tick()
        if done:
            return


def compile_source(
    source_code: str, session: PipelineSession | None = None
) -> tuple[bool, Module | None, CompileError | None]:
    """Compile Slang source using the same reporters as the UI.

    Returns: (ok, module, error)
    """
    session = session or PipelineSession()
    session.begin_tokenization(source_code)
    try:
        _drain(session.tick_tokenization)
        session.begin_prototypes()
        _drain(session.tick_prototypes)
        session.begin_parsing()
        _drain(session.tick_parsing)
    except CompileError as e:
        return False, None, e
    return True, session.module, None


def run_source(source_code: str, recursion_limit: int | None = None) -> RunOutcome:
    """Compile and execute Slang source end-to-end.

    Args:
        recursion_limit: Host recursion limit to run with; deeper Slang recursion
            is reported as STACK_EXHAUSTED. None keeps the interpreter's limit.
    """
    session = PipelineSession()
    ok, module, compile_error = compile_source(source_code, session)
    if not ok:
        return RunOutcome(False, error=compile_error)

    previous_limit = sys.getrecursionlimit()
    if recursion_limit is not None:
        sys.setrecursionlimit(recursion_limit)
    try:
        session.begin_execution()
        _drain(session.tick_execution)
    except SlangRuntimeError as e:
        return RunOutcome(False, list(session.print_events), None, e, module)
    finally:
        sys.setrecursionlimit(previous_limit)
    return RunOutcome(True, list(session.print_events), session.result, None, module)


def run_file(path: str | Path, recursion_limit: int | None = None) -> RunOutcome:
    """Read a UTF-8 .slang file and run it."""
    return run_source(read_text_file(path), recursion_limit=recursion_limit)
