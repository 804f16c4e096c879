"""Capture expected outputs from the correct examples.

This script runs all correct examples through the interpreter and captures
their PRINT lines, storing the results in expected_outputs.json for the
regression harness.

Run this after modifying examples to update the ground truth.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC_DIR = _REPO_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from run_pipeline import run_file  # noqa: E402

EXAMPLES_DIR = _REPO_ROOT / "examples" / "correct_examples"
EXPECTED_FILE = EXAMPLES_DIR / "expected_outputs.json"


def main(argv: list[str]) -> int:
    examples = sorted(EXAMPLES_DIR.glob("*.slang"))
    print(f"Capturing expected outputs from {len(examples)} examples...\n")

    cases: dict[str, dict[str, list[str]]] = {}
    failed = 0

    for example_path in examples:
        key = example_path.relative_to(_REPO_ROOT).as_posix()
        outcome = run_file(example_path)
        if not outcome.ok:
            print(f"[FAIL] {example_path.stem}: {outcome.error}")
            failed += 1
            continue
        cases[key] = {"stdout": outcome.printed_lines()}
        print(f"[OK] {example_path.stem}")

    payload = {"schema_version": 1, "cases": cases}
    EXPECTED_FILE.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")

    print(f"\n[DONE] Captured {len(cases)} expected outputs")
    print(f"[FAIL] Failed {failed} examples")
    print(f"[FILE] Outputs saved to: {EXPECTED_FILE.relative_to(_REPO_ROOT)}")
    return 1 if failed else 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
