from pathlib import Path
import argparse
import sys

_SRC_DIR = Path(__file__).resolve().parent / "src"
if _SRC_DIR.exists():
    src_str = str(_SRC_DIR)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

from SlangComponents.Errors import CompileError, SlangRuntimeError
from SlangComponents.Lexer import position_to_line_column

from run_pipeline import PipelineSession, read_text_file

TEST_FILENAME = "./examples/correct_examples/01_print__hello.slang"


def _describe_error(source_code: str, error: CompileError | SlangRuntimeError) -> str:
    if isinstance(error, CompileError) and error.position is not None:
        line, column = position_to_line_column(source_code, error.position)
        return f"Line {line}, column {column}: {error}"
    return str(error)


def _run_phase(begin, tick, trace: bool) -> None:
    begin()
    while True:
        done, report = tick()
        if done:
            return
        if trace and report is not None and report.action_bar_message:
            print(f"[{report.current_phase_number}] {report.action_bar_message}", file=sys.stderr)


def run_source_file(
    filename: str = TEST_FILENAME,
    trace: bool = False,
    show_symbols: bool = False,
    recursion_limit: int | None = None,
) -> int:
    source_code = read_text_file(filename)
    session = PipelineSession()

    try:
        _run_phase(lambda: session.begin_tokenization(source_code, Path(filename).stem),
                   session.tick_tokenization, trace)
        _run_phase(session.begin_prototypes, session.tick_prototypes, trace)
        _run_phase(session.begin_parsing, session.tick_parsing, trace)
    except CompileError as e:
        print(f"Compilation failed. {_describe_error(source_code, e)}")
        return 1

    if show_symbols:
        for prototype in session.prototypes:
            print(prototype)
        assert session.module is not None
        for procedure in session.module.procedures.values():
            print(f"\n{procedure.name}:")
            print(procedure.tree_representation())

    previous_limit = sys.getrecursionlimit()
    if recursion_limit is not None:
        sys.setrecursionlimit(recursion_limit)

    try:
        session.begin_execution()
        while True:
            done, report = session.tick_execution()
            if done:
                break
            if report is None:
                continue
            if report.print_event is not None:
                print(report.print_event)
            elif trace:
                print(f"[4] {report.action_bar_message}", file=sys.stderr)
    except SlangRuntimeError as e:
        print(f"Execution failed. {e}")
        return 2
    finally:
        sys.setrecursionlimit(previous_limit)

    if session.result is not None:
        print(f"MAIN returned {session.result.display_value()}", file=sys.stderr)
    return 0


def main(argv: list[str]) -> int:
    parser = argparse.ArgumentParser(
        description="Compile and run a Slang program, printing each PRINT value on its own line."
    )
    parser.add_argument("file", nargs="?", default=TEST_FILENAME, help="Slang source file.")
    parser.add_argument(
        "--trace", action="store_true", help="Print every phase progress report to stderr."
    )
    parser.add_argument(
        "--symbols",
        action="store_true",
        help="Print the function prototypes and the AST of each procedure before running.",
    )
    parser.add_argument(
        "--recursion-limit",
        type=int,
        default=None,
        help="Host recursion limit; deeper Slang recursion fails with a stack exhaustion error.",
    )
    args = parser.parse_args(argv[1:])
    return run_source_file(args.file, args.trace, args.symbols, args.recursion_limit)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
