"""Regression harness for correct examples with output validation.

Runs all correct examples and validates both that they compile and execute
cleanly AND that their PRINT lines match expected_outputs.json.
"""

from __future__ import annotations

import json
import sys
from difflib import unified_diff
from pathlib import Path

# Make `src/` importable (matches DirectInterpreter / UI entrypoints).
_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC_DIR = _REPO_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from run_pipeline import run_file  # noqa: E402


def _collect_correct_examples() -> list[Path]:
    correct_dir = _REPO_ROOT / "examples" / "correct_examples"
    return sorted(correct_dir.glob("*.slang"))


def validate_output(key: str, actual: list[str], expected_cases: dict) -> tuple[bool, str | None]:
    """Compare printed lines against the recorded ones.

    Returns: (success, error_message_or_None)
    """
    if key not in expected_cases:
        return True, None  # No validation needed for this example

    expected = expected_cases[key].get("stdout", [])
    if actual == expected:
        return True, None

    diff = unified_diff(expected, actual, fromfile="expected", tofile="actual", lineterm="")
    diff_lines = list(diff)
    diff_str = "\n  ".join(diff_lines[:20])
    if len(diff_lines) > 20:
        diff_str += "\n  ... (more lines)"
    return False, f"Output mismatch:\n  {diff_str}"


def main(argv: list[str]) -> int:
    expected_file = _REPO_ROOT / "examples" / "correct_examples" / "expected_outputs.json"

    expected_cases: dict = {}
    if expected_file.exists():
        expected_cases = json.loads(expected_file.read_text(encoding="utf-8")).get("cases", {})
    else:
        print(f"Warning: {expected_file.relative_to(_REPO_ROOT)} not found; skipping output validation.\n")

    files = _collect_correct_examples()
    if not files:
        print("No files found under examples/correct_examples/*.slang")
        return 2

    run_failures: list[tuple[Path, str]] = []
    output_failures: list[tuple[Path, str]] = []

    for path in files:
        rel_in = path.relative_to(_REPO_ROOT)
        outcome = run_file(path)

        if not outcome.ok:
            print(f"FAIL {rel_in}: {outcome.error}")
            run_failures.append((path, str(outcome.error)))
            continue

        output_ok, output_error = validate_output(
            rel_in.as_posix(), outcome.printed_lines(), expected_cases
        )
        if output_ok:
            print(f"OK   {rel_in}")
        else:
            print(f"FAIL {rel_in}")
            print(f"      Output error: {output_error}")
            output_failures.append((path, output_error or "Unknown error"))

    total = len(files)
    print(f"\nTOTAL {total}  RUN_FAILED {len(run_failures)}  OUTPUT_FAILED {len(output_failures)}")

    if run_failures or output_failures:
        if run_failures:
            print("\nRun failures:")
            for path, msg in run_failures:
                print(f"- {path.relative_to(_REPO_ROOT)}: {msg}")
        if output_failures:
            print("\nOutput validation failures:")
            for path, msg in output_failures:
                print(f"- {path.relative_to(_REPO_ROOT)}: {msg}")
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
