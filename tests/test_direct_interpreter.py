import io
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
for _path in (_REPO_ROOT / "src", _REPO_ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from DirectInterpreter import main  # noqa: E402

_HELLO = _REPO_ROOT / "examples" / "correct_examples" / "01_print__hello.slang"


def _invoke(*args):
    stdout, stderr = io.StringIO(), io.StringIO()
    with redirect_stdout(stdout), redirect_stderr(stderr):
        code = main(["DirectInterpreter.py", *args])
    return code, stdout.getvalue()


class DirectInterpreterTestCase(unittest.TestCase):

    def _write(self, source):
        handle = tempfile.NamedTemporaryFile(
            "w", suffix=".slang", delete=False, encoding="utf-8"
        )
        with handle:
            handle.write(source)
        self.addCleanup(Path(handle.name).unlink)
        return handle.name

    def test_prints_program_output(self):
        code, output = _invoke(str(_HELLO))
        self.assertEqual(code, 0)
        self.assertEqual(output.splitlines(), ["Hello World"])

    def test_recursion_limit_is_restored_after_success(self):
        before = sys.getrecursionlimit()
        code, _ = _invoke(str(_HELLO), "--recursion-limit", str(before + 50))
        self.assertEqual(code, 0)
        self.assertEqual(sys.getrecursionlimit(), before)

    def test_recursion_limit_is_restored_after_stack_exhaustion(self):
        path = self._write(
            "FUNCTION NUMERIC f(NUMERIC n) RETURN f(n + 1); END "
            "FUNCTION NUMERIC MAIN() PRINT f(0); END"
        )
        before = sys.getrecursionlimit()
        code, output = _invoke(path, "--recursion-limit", str(before + 50))
        self.assertEqual(code, 2)
        self.assertIn("STACK_EXHAUSTED", output)
        self.assertEqual(sys.getrecursionlimit(), before)

    def test_compile_error_exit_code(self):
        code, output = _invoke(self._write("PRINT 1"))
        self.assertEqual(code, 1)
        self.assertTrue(output.startswith("Compilation failed. Line 1, column"))


if __name__ == '__main__':
    unittest.main()
