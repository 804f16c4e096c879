import math
import sys
import unittest
from pathlib import Path

_SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from SlangComponents.Errors import CompileError, CompileErrorKind  # noqa: E402
from SlangComponents.Lexer import (  # noqa: E402
    FunctionAlreadyDeclaredError,
    Lexer,
    LexingError,
    get_prototype_collector,
    get_tokenizer,
    normalize_source,
    position_to_line_column,
    scan_token,
    tokenize,
)
from SlangComponents.Token import Token, TokenType, format_number  # noqa: E402
from SlangComponents.TypeSystem import FunctionPrototype, SlangType  # noqa: E402


def _types(source):
    return [token.type for token in tokenize(source)]


def _prototypes(source):
    prototypes = []
    for report in get_prototype_collector(tokenize(normalize_source(source))):
        if report.new_prototype is not None:
            prototypes.append(report.new_prototype)
    return prototypes


class TokenizeTestCase(unittest.TestCase):

    def test_simple_statement(self):
        tokens = tokenize("PRINT 1;")
        self.assertEqual(
            [t.type for t in tokens],
            [TokenType.PRINT, TokenType.NUMBER, TokenType.SEMICOLON, TokenType.END_OF_INPUT],
        )
        self.assertEqual([t.position for t in tokens], [0, 6, 7, 8])
        self.assertEqual(tokens[1].value, 1.0)

    def test_two_character_operators_win(self):
        cases = {
            "==": TokenType.EQ,
            "<>": TokenType.NEQ,
            "<=": TokenType.LTE,
            ">=": TokenType.GTE,
            "&&": TokenType.AND,
            "||": TokenType.OR,
            "=": TokenType.ASSIGN,
            "<": TokenType.LT,
            ">": TokenType.GT,
            "!": TokenType.NOT,
        }
        for source, expected in cases.items():
            self.assertEqual(_types(source), [expected, TokenType.END_OF_INPUT], source)

    def test_adjacent_operators(self):
        self.assertEqual(
            _types("a<=-b"),
            [TokenType.IDENTIFIER, TokenType.LTE, TokenType.MINUS, TokenType.IDENTIFIER,
             TokenType.END_OF_INPUT],
        )

    def test_numbers(self):
        tokens = tokenize("3.25 42 0.5")
        self.assertEqual([t.value for t in tokens[:-1]], [3.25, 42.0, 0.5])

    def test_string_literal_keeps_inner_text(self):
        tokens = tokenize('PRINT "hi  there";')
        self.assertEqual(tokens[1].type, TokenType.STRING_LITERAL)
        self.assertEqual(tokens[1].value, "hi  there")
        self.assertEqual(tokens[1].position, 6)
        self.assertEqual(tokens[2].position, 17)

    def test_keywords_are_case_sensitive(self):
        tokens = tokenize("PRINT print PRINTX WEND wend")
        self.assertEqual(
            [t.type for t in tokens[:-1]],
            [TokenType.PRINT, TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.WEND,
             TokenType.IDENTIFIER],
        )

    def test_identifier_with_digits_and_underscores(self):
        tokens = tokenize("is_even2")
        self.assertEqual(tokens[0], Token(TokenType.IDENTIFIER, "is_even2", 0))

    def test_type_keywords(self):
        self.assertEqual(
            _types("NUMERIC STRING BOOLEAN"),
            [TokenType.VAR_NUMERIC, TokenType.VAR_STRING, TokenType.VAR_BOOLEAN,
             TokenType.END_OF_INPUT],
        )

    def test_empty_source(self):
        self.assertEqual(tokenize(""), [Token(TokenType.END_OF_INPUT, None, 0)])
        self.assertEqual(tokenize("   \t "), [Token(TokenType.END_OF_INPUT, None, 5)])

    def test_tokenizer_reports_offsets(self):
        reports = list(get_tokenizer("PRINT 12;"))
        self.assertEqual(len(reports), 4)
        self.assertEqual(reports[1].currently_looked_at, (6, 8))
        self.assertEqual(reports[0].current_phase_number, "1")
        self.assertEqual(reports[-1].new_token.type, TokenType.END_OF_INPUT)


class LexicalErrorTestCase(unittest.TestCase):

    def test_errors(self):
        cases = {
            "PRINT #;": (6, "Unexpected character '#'"),
            'PRINT "abc;': (6, "Unterminated string literal"),
            "a & b": (2, "Unknown operator '&'"),
            "a | b": (2, "Unknown operator '|'"),
            "a &": (2, "Unknown operator '&'"),
            "1.": (1, "Unexpected character '.'"),
        }
        for source, (position, message) in cases.items():
            with self.assertRaises(LexingError, msg=source) as ctx:
                tokenize(source)
            self.assertEqual(ctx.exception.kind, CompileErrorKind.LEXICAL)
            self.assertEqual(ctx.exception.position, position, source)
            self.assertEqual(ctx.exception.message, message, source)

    def test_lexing_error_is_a_compile_error(self):
        self.assertRaises(CompileError, tokenize, "@")

    def test_error_string(self):
        with self.assertRaises(LexingError) as ctx:
            tokenize("PRINT #")
        self.assertEqual(str(ctx.exception), "Position 6: Lexical error: Unexpected character '#'")

    def test_non_ascii_letters_are_rejected(self):
        self.assertRaises(LexingError, tokenize, "café")


class ScanTokenTestCase(unittest.TestCase):

    def test_is_pure(self):
        first = scan_token("PRINT 1;", 5)
        second = scan_token("PRINT 1;", 5)
        self.assertEqual(first, second)
        self.assertEqual(first, (7, Token(TokenType.NUMBER, 1.0, 6)))

    def test_end_of_input_does_not_advance(self):
        position, token = scan_token("ab", 2)
        self.assertEqual(position, 2)
        self.assertEqual(token.type, TokenType.END_OF_INPUT)
        self.assertEqual(scan_token("ab", position), (2, token))

    def test_lexer_wrapper(self):
        lexer = Lexer("a = 1;")
        seen = []
        while True:
            token = lexer.next_token()
            seen.append(token.type)
            if token.type == TokenType.END_OF_INPUT:
                break
        self.assertEqual(
            seen,
            [TokenType.IDENTIFIER, TokenType.ASSIGN, TokenType.NUMBER, TokenType.SEMICOLON,
             TokenType.END_OF_INPUT],
        )


class SourcePositionTestCase(unittest.TestCase):

    def test_normalize_keeps_offsets(self):
        source = "PRINT 1;\r\nPRINT 2;\n"
        normalized = normalize_source(source)
        self.assertEqual(len(normalized), len(source))
        self.assertNotIn("\n", normalized)
        self.assertNotIn("\r", normalized)
        self.assertEqual(tokenize(normalized)[3].position, 10)

    def test_line_column(self):
        self.assertEqual(position_to_line_column("ab\ncd", 0), (1, 1))
        self.assertEqual(position_to_line_column("ab\ncd", 4), (2, 2))
        self.assertEqual(position_to_line_column("ab\ncd", 3), (2, 1))


class PrototypeCollectionTestCase(unittest.TestCase):

    def test_collects_signatures(self):
        prototypes = _prototypes(
            "FUNCTION NUMERIC f(NUMERIC a, STRING b) RETURN a; END "
            "FUNCTION BOOLEAN g() RETURN TRUE; END"
        )
        self.assertEqual(
            prototypes,
            [
                FunctionPrototype("f", SlangType.NUMERIC, (SlangType.NUMERIC, SlangType.STRING)),
                FunctionPrototype("g", SlangType.BOOL, ()),
            ],
        )
        self.assertEqual(str(prototypes[0]), "FUNCTION NUMERIC f(NUMERIC, STRING)")
        self.assertEqual(prototypes[1].arity(), 0)

    def test_script_has_no_prototypes(self):
        self.assertEqual(_prototypes("PRINT 1;"), [])

    def test_one_report_per_token(self):
        tokens = tokenize("FUNCTION NUMERIC f() RETURN 1; END")
        reports = list(get_prototype_collector(tokens))
        self.assertEqual(len(reports), len(tokens))
        self.assertEqual([r.looked_up_token_number for r in reports], list(range(len(tokens))))

    def test_malformed_header_is_left_for_the_parser(self):
        self.assertEqual(_prototypes("FUNCTION f() END"), [])

    def test_duplicate_function(self):
        with self.assertRaises(FunctionAlreadyDeclaredError) as ctx:
            _prototypes("FUNCTION NUMERIC f() RETURN 1; END FUNCTION STRING f() RETURN \"a\"; END")
        self.assertEqual(ctx.exception.kind, CompileErrorKind.DUPLICATE_FUNCTION)
        self.assertEqual(ctx.exception.symbol, "f")
        self.assertEqual(ctx.exception.position, 51)


class FormatNumberTestCase(unittest.TestCase):

    def test_format(self):
        cases = {
            3.0: "3",
            -2.0: "-2",
            3.5: "3.5",
            0.1: "0.1",
            math.inf: "Infinity",
            -math.inf: "-Infinity",
            math.nan: "NaN",
        }
        for value, expected in cases.items():
            self.assertEqual(format_number(value), expected)


if __name__ == '__main__':
    unittest.main()
