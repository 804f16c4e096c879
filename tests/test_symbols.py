import sys
import unittest
from pathlib import Path

_SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from SlangComponents.Symbols import RuntimeContext, SymbolInfo, SymbolTable  # noqa: E402
from SlangComponents.Token import TokenType  # noqa: E402
from SlangComponents.TypeSystem import (  # noqa: E402
    SlangType,
    is_assignable,
    supports_ordering,
    type_from_keyword,
    type_to_string,
)


class SymbolTableTestCase(unittest.TestCase):

    def test_add_and_get(self):
        table = SymbolTable()
        table.add(SymbolInfo("a", SlangType.NUMERIC))
        self.assertIn("a", table)
        self.assertNotIn("b", table)
        self.assertEqual(table.get("a"), SymbolInfo("a", SlangType.NUMERIC, None))
        self.assertIsNone(table.get("b"))

    def test_last_write_wins(self):
        table = SymbolTable()
        table.add(SymbolInfo("a", SlangType.NUMERIC))
        table.add(SymbolInfo("a", SlangType.STRING))
        self.assertEqual(len(table), 1)
        self.assertEqual(table.get("a").type, SlangType.STRING)

    def test_assign_keeps_target_name(self):
        table = SymbolTable()
        table.assign_to_table("x", SymbolInfo(None, SlangType.NUMERIC, 4.0))
        self.assertEqual(table.get("x"), SymbolInfo("x", SlangType.NUMERIC, 4.0))
        self.assertEqual([info.name for info in table], ["x"])

    def test_activations_do_not_share_tables(self):
        outer, inner = RuntimeContext(depth=1), RuntimeContext(depth=2)
        outer.table.assign_to_table("n", SymbolInfo(None, SlangType.NUMERIC, 1.0))
        self.assertNotIn("n", inner.table)


class SymbolInfoTestCase(unittest.TestCase):

    def test_display_value(self):
        cases = [
            (SymbolInfo(None, SlangType.NUMERIC, 5.0), "5"),
            (SymbolInfo(None, SlangType.NUMERIC, 2.5), "2.5"),
            (SymbolInfo(None, SlangType.BOOL, True), "TRUE"),
            (SymbolInfo(None, SlangType.BOOL, False), "FALSE"),
            (SymbolInfo(None, SlangType.STRING, "hi"), "hi"),
            (SymbolInfo("a", SlangType.STRING), "NULL"),
        ]
        for info, expected in cases:
            self.assertEqual(info.display_value(), expected)

    def test_renamed_is_a_copy(self):
        info = SymbolInfo(None, SlangType.NUMERIC, 1.0)
        self.assertEqual(info.renamed("a").name, "a")
        self.assertIsNone(info.name)


class TypeSystemTestCase(unittest.TestCase):

    def test_keywords(self):
        self.assertEqual(type_from_keyword(TokenType.VAR_BOOLEAN), SlangType.BOOL)
        self.assertEqual(type_to_string(SlangType.BOOL), "BOOLEAN")
        self.assertEqual(type_to_string(None), "NONE")

    def test_rules(self):
        self.assertTrue(is_assignable(SlangType.STRING, SlangType.STRING))
        self.assertFalse(is_assignable(SlangType.NUMERIC, SlangType.BOOL))
        self.assertTrue(supports_ordering(SlangType.NUMERIC))
        self.assertFalse(supports_ordering(SlangType.STRING))


if __name__ == '__main__':
    unittest.main()
