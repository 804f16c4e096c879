import sys
import unittest
from pathlib import Path

_SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from SlangComponents.AST import (  # noqa: E402
    BinaryExpression,
    CallExpression,
    IfStatement,
    LogicalExpression,
    NumericConstant,
    PrintStatement,
    RelationalExpression,
    UnaryExpression,
    Variable,
)
from SlangComponents.Errors import CompileError, CompileErrorKind  # noqa: E402
from SlangComponents.Lexer import tokenize  # noqa: E402
from SlangComponents.Parser import ParsingError, compile, get_parsing_reporter  # noqa: E402
from SlangComponents.Symbols import SemanticError  # noqa: E402
from SlangComponents.Token import TokenType  # noqa: E402
from SlangComponents.TypeSystem import SlangType  # noqa: E402


def _main_statements(source):
    return compile(source).find("MAIN").body.statements


class ExpressionShapeTestCase(unittest.TestCase):

    def test_equal_precedence_groups_right(self):
        expr = _main_statements("PRINT 10-3-2;")[0].expression
        self.assertIsInstance(expr, BinaryExpression)
        self.assertEqual(expr.operator, TokenType.MINUS)
        self.assertIsInstance(expr.left, NumericConstant)
        self.assertEqual(expr.left.value, 10.0)
        self.assertIsInstance(expr.right, BinaryExpression)
        self.assertEqual(expr.right.left.value, 3.0)
        self.assertEqual(expr.right.right.value, 2.0)

    def test_multiplication_binds_tighter(self):
        expr = _main_statements("PRINT 1+2*3;")[0].expression
        self.assertEqual(expr.operator, TokenType.PLUS)
        self.assertEqual(expr.right.operator, TokenType.MULTIPLY)

    def test_parentheses_override_precedence(self):
        expr = _main_statements("PRINT (1+2)*3;")[0].expression
        self.assertEqual(expr.operator, TokenType.MULTIPLY)
        self.assertEqual(expr.left.operator, TokenType.PLUS)

    def test_logical_over_relational(self):
        expr = _main_statements("PRINT 1 < 2 && 3 == 3;")[0].expression
        self.assertIsInstance(expr, LogicalExpression)
        self.assertIsInstance(expr.left, RelationalExpression)
        self.assertIsInstance(expr.right, RelationalExpression)
        self.assertEqual(expr.static_type, SlangType.BOOL)

    def test_unary_minus_applies_to_factor(self):
        expr = _main_statements("PRINT -2*3;")[0].expression
        self.assertIsInstance(expr, BinaryExpression)
        self.assertIsInstance(expr.left, UnaryExpression)

    def test_variable_type_is_recorded(self):
        statements = _main_statements("STRING s; s = \"a\"; PRINT s;")
        variable = statements[2].expression
        self.assertIsInstance(variable, Variable)
        self.assertEqual(variable.get_type(), SlangType.STRING)

    def test_call_resolves_later_function(self):
        module = compile(
            "FUNCTION NUMERIC MAIN() PRINT twice(2); RETURN 0; END "
            "FUNCTION NUMERIC twice(NUMERIC n) RETURN n * 2; END"
        )
        call = module.find("MAIN").body.statements[0].expression
        self.assertIsInstance(call, CallExpression)
        self.assertEqual(call.name, "twice")
        self.assertEqual(call.get_type(), SlangType.NUMERIC)


class ProgramFormTestCase(unittest.TestCase):

    def test_script_becomes_main(self):
        module = compile("PRINT 1; PRINT 2;")
        self.assertEqual(len(module), 1)
        main = module.find("MAIN")
        self.assertEqual(main.return_type, SlangType.NUMERIC)
        self.assertEqual(main.formals, [])
        self.assertEqual(len(main.body), 2)
        self.assertIsInstance(main.body.statements[0], PrintStatement)

    def test_empty_program_is_empty_main(self):
        module = compile("")
        self.assertIn("MAIN", module)
        self.assertEqual(len(module.find("MAIN").body), 0)

    def test_function_form_without_main(self):
        module = compile("FUNCTION NUMERIC f() RETURN 1; END")
        self.assertNotIn("MAIN", module)
        self.assertIn("f", module)

    def test_formals_are_in_scope(self):
        module = compile("FUNCTION STRING greet(STRING who, NUMERIC n) RETURN who; END")
        procedure = module.find("greet")
        self.assertEqual([f.name for f in procedure.formals], ["who", "n"])
        self.assertEqual(procedure.unindented_representation(),
                         "FUNCTION STRING greet(STRING who, NUMERIC n)")

    def test_if_else_branches(self):
        statement = _main_statements("IF TRUE THEN PRINT 1; ELSE PRINT 2; PRINT 3; ENDIF")[0]
        self.assertIsInstance(statement, IfStatement)
        self.assertEqual(len(statement.then_statements), 1)
        self.assertEqual(len(statement.else_statements), 2)

    def test_tree_representation(self):
        module = compile("PRINT 1;")
        self.assertEqual(
            module.find("MAIN").tree_representation(),
            "└── FUNCTION NUMERIC MAIN()\n"
            "    └── Body\n"
            "        └── Print Statement\n"
            "            └── NUMBER : 1",
        )


class CompileErrorTestCase(unittest.TestCase):

    def assertCompileError(self, source, kind, position, message):
        with self.assertRaises(CompileError) as ctx:
            compile(source)
        self.assertEqual(ctx.exception.kind, kind, source)
        self.assertEqual(ctx.exception.position, position, source)
        self.assertEqual(ctx.exception.message, message, source)
        return ctx.exception

    def test_missing_semicolon(self):
        error = self.assertCompileError(
            "PRINT 1 PRINT 2;", CompileErrorKind.SYNTAX, 8, "Expected ';', got 'PRINT'."
        )
        self.assertIsInstance(error, ParsingError)

    def test_missing_endif(self):
        self.assertCompileError(
            "IF TRUE THEN PRINT 1;",
            CompileErrorKind.SYNTAX,
            21,
            "Expected 'ELSE' or 'ENDIF', got '<end of input>'.",
        )

    def test_missing_wend(self):
        self.assertCompileError(
            "WHILE FALSE PRINT 1;",
            CompileErrorKind.SYNTAX,
            20,
            "Expected 'WEND', got '<end of input>'.",
        )

    def test_missing_end(self):
        self.assertCompileError(
            "FUNCTION NUMERIC f() RETURN 1;",
            CompileErrorKind.SYNTAX,
            30,
            "Expected 'END', got '<end of input>'.",
        )

    def test_bad_statement_start(self):
        self.assertCompileError(
            "1;", CompileErrorKind.SYNTAX, 0, "Unexpected '1' at the start of a statement."
        )

    def test_bad_factor(self):
        self.assertCompileError(
            "PRINT ;", CompileErrorKind.SYNTAX, 6, "Unexpected ';' in expression."
        )

    def test_mixed_forms(self):
        self.assertCompileError(
            "PRINT 1; FUNCTION NUMERIC f() RETURN 1; END",
            CompileErrorKind.SYNTAX,
            9,
            "FUNCTION declarations are only allowed at the top level of a program made of functions.",
        )

    def test_statement_after_functions(self):
        self.assertCompileError(
            "FUNCTION NUMERIC f() RETURN 1; END PRINT 1;",
            CompileErrorKind.SYNTAX,
            35,
            "Expected 'FUNCTION' or end of input, got 'PRINT'.",
        )

    def test_undeclared_variable(self):
        error = self.assertCompileError(
            "PRINT y;", CompileErrorKind.UNDECLARED_SYMBOL, 6, "'y' - undefined symbol."
        )
        self.assertIsInstance(error, SemanticError)
        self.assertEqual(error.symbol, "y")

    def test_undeclared_assignment_target(self):
        self.assertCompileError(
            "x = 1;", CompileErrorKind.UNDECLARED_SYMBOL, 0, "'x' - undefined symbol."
        )

    def test_undeclared_function(self):
        self.assertCompileError(
            "PRINT nope();", CompileErrorKind.UNDECLARED_SYMBOL, 6, "'nope' - undefined function."
        )

    def test_locals_do_not_leak_between_functions(self):
        self.assertCompileError(
            "FUNCTION NUMERIC f() NUMERIC a; a = 1; RETURN a; END "
            "FUNCTION NUMERIC MAIN() PRINT a; END",
            CompileErrorKind.UNDECLARED_SYMBOL,
            83,
            "'a' - undefined symbol.",
        )

    def test_assignment_type_mismatch(self):
        self.assertCompileError(
            "BOOLEAN b; b = 1;",
            CompileErrorKind.TYPE_MISMATCH,
            13,
            "cannot assign NUMERIC to BOOLEAN variable 'b'.",
        )

    def test_operand_mismatches(self):
        cases = {
            "PRINT 1 + \"a\";": (8, "operands of '+' have different types: NUMERIC and STRING."),
            "PRINT TRUE + FALSE;": (11, "'+' expects NUMERIC or STRING operands, got BOOLEAN."),
            "PRINT \"a\" * \"b\";": (10, "'*' expects NUMERIC operands, got STRING."),
            "PRINT \"a\" < \"b\";": (10, "only == and <> are supported for STRING operands."),
            "PRINT 1 == TRUE;": (8, "cannot compare NUMERIC with BOOLEAN using '=='."),
            "PRINT 1 && TRUE;": (8, "'&&' expects BOOLEAN operands, got NUMERIC and BOOLEAN."),
            "PRINT !1;": (6, "'!' expects a BOOLEAN operand, got NUMERIC."),
            "PRINT -\"a\";": (6, "unary '-' expects a NUMERIC operand, got STRING."),
        }
        for source, (position, message) in cases.items():
            self.assertCompileError(source, CompileErrorKind.TYPE_MISMATCH, position, message)

    def test_if_condition_must_be_boolean(self):
        self.assertCompileError(
            "IF 1 THEN PRINT 1; ENDIF",
            CompileErrorKind.TYPE_MISMATCH,
            3,
            "IF condition must be BOOLEAN, got NUMERIC.",
        )

    def test_arity(self):
        self.assertCompileError(
            "FUNCTION NUMERIC f(NUMERIC x) RETURN x; END FUNCTION NUMERIC MAIN() PRINT f(); END",
            CompileErrorKind.TYPE_MISMATCH,
            74,
            "function 'f' expects 1 argument(s), got 0.",
        )

    def test_argument_type(self):
        self.assertCompileError(
            "FUNCTION NUMERIC f(NUMERIC x) RETURN x; END FUNCTION NUMERIC MAIN() PRINT f(\"a\"); END",
            CompileErrorKind.TYPE_MISMATCH,
            76,
            "argument 1 of 'f' must be NUMERIC, got STRING.",
        )

    def test_return_type(self):
        self.assertCompileError(
            "FUNCTION BOOLEAN f() RETURN 1; END",
            CompileErrorKind.TYPE_MISMATCH,
            21,
            "function 'f' must return BOOLEAN, got NUMERIC.",
        )

    def test_script_returns_numeric(self):
        self.assertCompileError(
            "RETURN \"done\";",
            CompileErrorKind.TYPE_MISMATCH,
            0,
            "function 'MAIN' must return NUMERIC, got STRING.",
        )

    def test_malformed_header(self):
        self.assertCompileError(
            "FUNCTION NUMERIC f(NUMERIC) RETURN 1; END",
            CompileErrorKind.SYNTAX,
            26,
            "Expected identifier, got ')'.",
        )

    def test_long_sum_is_a_compile_error(self):
        source = "PRINT " + "+".join(["1"] * 3000) + ";"
        with self.assertRaises(ParsingError) as ctx:
            compile(source)
        self.assertEqual(ctx.exception.kind, CompileErrorKind.SYNTAX)
        self.assertEqual(ctx.exception.message, "Expression nested too deeply.")
        self.assertIsNotNone(ctx.exception.position)

    def test_deep_parentheses_are_a_compile_error(self):
        source = "PRINT " + "(" * 2000 + "1" + ")" * 2000 + ";"
        with self.assertRaises(CompileError) as ctx:
            compile(source)
        self.assertEqual(ctx.exception.message, "Expression nested too deeply.")

    def test_short_sum_still_compiles(self):
        source = "PRINT " + "+".join(["1"] * 50) + ";"
        self.assertIn("MAIN", compile(source))


class TreeRepresentationTestCase(unittest.TestCase):

    def test_siblings_use_branch_connectors(self):
        expr = _main_statements("PRINT 1+2;")[0].expression
        self.assertEqual(
            expr.tree_representation(),
            "└── Binary operator : +\n"
            "    ├── NUMBER : 1\n"
            "    └── NUMBER : 2",
        )


class ParsingReportTestCase(unittest.TestCase):

    def _reports(self, source):
        tokens = tokenize(source)
        generator = get_parsing_reporter(tokens, [])
        reports = []
        while True:
            try:
                reports.append(next(generator))
            except StopIteration as done:
                return reports, done.value

    def test_reports_track_tokens_and_tree(self):
        reports, module = self._reports("PRINT 1;")
        self.assertIn("MAIN", module)
        self.assertTrue(all(r.current_phase_number == "3" for r in reports))

        added = [r for r in reports if r.ast_event == "add"]
        ids = [r.ast_node_id for r in added]
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual(added[0].ast_parent_id, 0)
        self.assertEqual(added[0].ast_node_label, "FUNCTION NUMERIC MAIN()")
        self.assertEqual(added[-1].ast_node_label, "NUMBER : 1")

    def test_nodes_carry_tree_ids(self):
        _, module = self._reports("PRINT 1;")
        main = module.find("MAIN")
        statement = main.body.statements[0]
        self.assertIsNotNone(main.unique_id)
        self.assertIsNotNone(statement.unique_id)
        self.assertIsNotNone(statement.expression.unique_id)


if __name__ == '__main__':
    unittest.main()
