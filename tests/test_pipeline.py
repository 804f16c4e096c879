import json
import sys
import unittest
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC_DIR = _REPO_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from SlangComponents.Errors import (  # noqa: E402
    CompileError,
    CompileErrorKind,
    RuntimeErrorKind,
    SlangRuntimeError,
)
from SlangComponents.Token import TokenType  # noqa: E402
from run_pipeline import PipelineSession, compile_source, run_file, run_source  # noqa: E402

_CORRECT_DIR = _REPO_ROOT / "examples" / "correct_examples"
_INCORRECT_DIR = _REPO_ROOT / "examples" / "incorrect_examples"


def _load_cases(path):
    return json.loads(path.read_text(encoding="utf-8"))["cases"]


def _drain(tick):
    reports = []
    while True:
        done, report = tick()
        if done:
            return reports
        reports.append(report)


class ExampleProgramsTestCase(unittest.TestCase):

    def test_correct_examples(self):
        cases = _load_cases(_CORRECT_DIR / "expected_outputs.json")
        files = sorted(_CORRECT_DIR.glob("*.slang"))
        self.assertTrue(files)
        for path in files:
            key = path.relative_to(_REPO_ROOT).as_posix()
            with self.subTest(example=key):
                outcome = run_file(path)
                self.assertTrue(outcome.ok, outcome.error)
                self.assertEqual(outcome.printed_lines(), cases[key]["stdout"])

    def test_incorrect_examples(self):
        cases = _load_cases(_INCORRECT_DIR / "expected_errors.json")
        files = sorted(_INCORRECT_DIR.glob("*.slang"))
        self.assertEqual(len(files), len(cases))
        for path in files:
            key = path.relative_to(_REPO_ROOT).as_posix()
            with self.subTest(example=key):
                outcome = run_file(path)
                self.assertFalse(outcome.ok)
                self.assertIsInstance(outcome.error, CompileError)
                self.assertEqual(outcome.error.kind.value, cases[key]["kind"])
                self.assertEqual(str(outcome.error), cases[key]["message"])


class CompileSourceTestCase(unittest.TestCase):

    def test_success(self):
        ok, module, error = compile_source("PRINT 1;")
        self.assertTrue(ok)
        self.assertIn("MAIN", module)
        self.assertIsNone(error)

    def test_failure_returns_no_module(self):
        ok, module, error = compile_source("PRINT 1")
        self.assertFalse(ok)
        self.assertIsNone(module)
        self.assertEqual(error.kind, CompileErrorKind.SYNTAX)


class RunSourceTestCase(unittest.TestCase):

    def test_value_and_output(self):
        outcome = run_source("PRINT \"x\"; RETURN 3;")
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.printed_lines(), ["x"])
        self.assertEqual(outcome.value.value, 3.0)
        self.assertIsNotNone(outcome.module)

    def test_runtime_error_keeps_partial_output(self):
        outcome = run_source("NUMERIC a; PRINT 1; PRINT a;")
        self.assertFalse(outcome.ok)
        self.assertIsInstance(outcome.error, SlangRuntimeError)
        self.assertEqual(outcome.error.kind, RuntimeErrorKind.UNASSIGNED_VARIABLE)
        self.assertEqual(outcome.printed_lines(), ["1"])

    def test_overlong_expression_is_reported(self):
        source = "PRINT " + "+".join(["1"] * 1500) + ";"
        ok, module, error = compile_source(source)
        self.assertFalse(ok)
        self.assertIsNone(module)
        self.assertEqual(error.kind, CompileErrorKind.SYNTAX)

        outcome = run_source(source)
        self.assertFalse(outcome.ok)
        self.assertIsInstance(outcome.error, CompileError)
        self.assertEqual(outcome.printed_lines(), [])

    def test_recursion_limit_is_restored(self):
        before = sys.getrecursionlimit()
        outcome = run_source(
            "FUNCTION NUMERIC f(NUMERIC n) RETURN f(n + 1); END "
            "FUNCTION NUMERIC MAIN() PRINT f(0); END",
            recursion_limit=before + 100,
        )
        self.assertEqual(outcome.error.kind, RuntimeErrorKind.STACK_EXHAUSTED)
        self.assertEqual(sys.getrecursionlimit(), before)


class PipelineSessionTestCase(unittest.TestCase):

    def test_phases_in_order(self):
        session = PipelineSession()
        session.begin_tokenization("FUNCTION NUMERIC MAIN() PRINT 2 * 3; END", "demo")
        token_reports = _drain(session.tick_tokenization)
        self.assertEqual(session.file_name, "demo")
        self.assertEqual(len(token_reports), len(session.tokens))
        self.assertEqual(session.tokens[-1].type, TokenType.END_OF_INPUT)

        session.begin_prototypes()
        _drain(session.tick_prototypes)
        self.assertEqual([p.name for p in session.prototypes], ["MAIN"])

        session.begin_parsing()
        parsing_reports = _drain(session.tick_parsing)
        self.assertTrue(parsing_reports)
        self.assertIn("MAIN", session.module)

        session.begin_execution()
        _drain(session.tick_execution)
        self.assertEqual([str(e) for e in session.print_events], ["6"])
        self.assertIsNone(session.result)

    def test_source_is_normalized(self):
        session = PipelineSession()
        session.begin_tokenization("PRINT 1;\nPRINT 2;\n")
        session.finish_tokenization()
        self.assertEqual(session.source_code, "PRINT 1;\nPRINT 2;\n")
        self.assertNotIn("\n", session.source_normalized)
        self.assertEqual(session.tokens[3].position, 9)

    def test_lexical_error_surfaces_from_tick(self):
        session = PipelineSession()
        session.begin_tokenization("PRINT $;")
        session.tick_tokenization()
        with self.assertRaises(CompileError):
            session.tick_tokenization()

    def test_ticking_before_begin(self):
        session = PipelineSession()
        self.assertRaises(RuntimeError, session.tick_parsing)
        self.assertRaises(RuntimeError, session.begin_execution)

    def test_reset(self):
        session = PipelineSession()
        compile_source("PRINT 1;", session)
        self.assertIsNotNone(session.module)
        session.reset_all()
        self.assertIsNone(session.module)
        self.assertEqual(session.tokens, [])


if __name__ == '__main__':
    unittest.main()
