from collections.abc import Generator
import re

from SlangComponents.Errors import CompileError, CompileErrorKind
from SlangComponents.ProgressReport import PrototypeReport, TokenizationReport
from SlangComponents.Token import Token, TokenType, VARIABLE_TYPE_TOKENS
from SlangComponents.TypeSystem import FunctionPrototype, type_from_keyword

### Step 1: Source normalisation ###


def normalize_source(source_code: str) -> str:
    """
    Replace every line break character with a space.

    Slang only treats spaces and tabs as whitespace, so programs read from a
    file are flattened before lexing. Each CR and LF is replaced by exactly one
    space, which keeps every character offset identical to the original text.
    """
    return re.sub(r"[\r\n]", " ", source_code)


def position_to_line_column(source_code: str, position: int) -> tuple[int, int]:
    """Returns the 1-based (line, column) of a character offset in the original text."""
    before = source_code[:position]
    line = before.count("\n") + 1
    column = position - (before.rfind("\n") + 1) + 1
    return line, column


### Step 2: Tokens ###

keywords_types = {
    "PRINT": TokenType.PRINT,
    "IF": TokenType.IF,
    "THEN": TokenType.THEN,
    "ELSE": TokenType.ELSE,
    "ENDIF": TokenType.ENDIF,
    "WHILE": TokenType.WHILE,
    "WEND": TokenType.WEND,
    "NUMERIC": TokenType.VAR_NUMERIC,
    "STRING": TokenType.VAR_STRING,
    "BOOLEAN": TokenType.VAR_BOOLEAN,
    "TRUE": TokenType.TRUE,
    "FALSE": TokenType.FALSE,
    "FUNCTION": TokenType.FUNCTION,
    "END": TokenType.END,
    "RETURN": TokenType.RETURN,
}

special_characters = [
    "+",
    "-",
    "*",
    "/",
    "(",
    ")",
    ";",
    ",",
    "=",
    "<",
    ">",
    "!",
    "&",
    "|",
]

symbols = {
    "==": TokenType.EQ,
    "<>": TokenType.NEQ,
    ">=": TokenType.GTE,
    "<=": TokenType.LTE,
    "&&": TokenType.AND,
    "||": TokenType.OR,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULTIPLY,
    "/": TokenType.DIVIDE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ";": TokenType.SEMICOLON,
    ",": TokenType.COMMA,
    "=": TokenType.ASSIGN,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "!": TokenType.NOT,
}


class LexingError(CompileError):
    """Custom exception for lexical analysis errors."""

    def __init__(self, message: str, position: int | None = None):
        super().__init__(message, CompileErrorKind.LEXICAL, position)


class FunctionAlreadyDeclaredError(CompileError):
    """Raised when two FUNCTION headers declare the same name."""

    def __init__(self, message: str, position: int | None = None, symbol: str | None = None):
        super().__init__(message, CompileErrorKind.DUPLICATE_FUNCTION, position, symbol)


def _skip_whitespace(content: str, i: int) -> int:
    while i < len(content) and content[i] in (" ", "\t"):
        i += 1
    return i


def _scan_identifier_or_keyword(content: str, start: int) -> tuple[Token, int]:
    i = start
    while i < len(content) and (
        (content[i].isascii() and content[i].isalnum()) or content[i] == "_"
    ):
        i += 1
    word = content[start:i]
    if word in keywords_types:
        return Token(keywords_types[word], word, start), i
    return Token(TokenType.IDENTIFIER, word, start), i


def _scan_number(content: str, start: int) -> tuple[Token, int]:
    i = start
    while i < len(content) and content[i] in "0123456789":
        i += 1
    if i + 1 < len(content) and content[i] == "." and content[i + 1] in "0123456789":
        i += 1
        while i < len(content) and content[i] in "0123456789":
            i += 1
    number_str = content[start:i]
    return Token(TokenType.NUMBER, float(number_str), start), i


def _scan_string_literal(content: str, start: int) -> tuple[Token, int]:
    i = start
    i += 1  # consume opening "
    string_start = i
    while i < len(content) and content[i] != '"':
        i += 1
    if i < len(content) and content[i] == '"':
        string_value = content[string_start:i]
        i += 1
        return Token(TokenType.STRING_LITERAL, string_value, start), i
    raise LexingError("Unterminated string literal", start)


def _scan_symbol(content: str, start: int) -> tuple[Token, int]:
    i = start
    if i + 1 < len(content):
        two_char_op = content[i : i + 2]
        if two_char_op in symbols:
            return Token(symbols[two_char_op], two_char_op, start), i + 2

    single_char_op = content[i]
    if single_char_op in symbols:
        return Token(symbols[single_char_op], single_char_op, start), i + 1

    raise LexingError(f"Unknown operator '{content[i]}'", start)


def scan_token(content: str, position: int) -> tuple[int, Token]:
    """Scan exactly one token at or after `position`.

    Pure: the caller threads the returned position into the next call.

    Returns:
        (next_position, token). At the end of input the token is END_OF_INPUT
        and the position no longer advances.
    """
    i = _skip_whitespace(content, position)
    if i >= len(content):
        return i, Token(TokenType.END_OF_INPUT, None, i)

    ch = content[i]

    if ch.isascii() and ch.isalpha():
        token, next_i = _scan_identifier_or_keyword(content, i)
    elif ch in "0123456789":
        token, next_i = _scan_number(content, i)
    elif ch == '"':
        token, next_i = _scan_string_literal(content, i)
    elif ch in special_characters:
        token, next_i = _scan_symbol(content, i)
    else:
        raise LexingError(f"Unexpected character '{ch}'", i)
    return next_i, token


class Lexer:
    """Convenience wrapper keeping one cursor over `scan_token`."""

    def __init__(self, source_code: str):
        self.source_code = source_code
        self.position = 0

    def next_token(self) -> Token:
        self.position, token = scan_token(self.source_code, self.position)
        return token


def tokenize(source_code: str) -> list[Token]:
    """Returns every token of the source, END_OF_INPUT included."""
    tokens = []
    for report in get_tokenizer(source_code):
        if report.new_token is not None:
            tokens.append(report.new_token)
    return tokens


def get_tokenizer(source_code: str) -> Generator[TokenizationReport, None, None]:
    """
    Tokenizes a normalised Slang source string.

    Args:
        source_code (str): Source text with line breaks already flattened.

    Yields:
        TokenizationReport: One report per token, the last one carrying END_OF_INPUT.
    """
    position = 0
    while True:
        next_position, token = scan_token(source_code, position)

        report = TokenizationReport()
        report.new_token = token
        report.currently_looked_at = (token.position, next_position)
        if token.type == TokenType.END_OF_INPUT:
            report.action_bar_message = "Reached end of input."
        elif token.type == TokenType.IDENTIFIER:
            report.action_bar_message = f"Found identifier: {token.value}."
        elif token.type == TokenType.NUMBER:
            report.action_bar_message = f"Found numeric literal: {token.lexeme()}."
        elif token.type == TokenType.STRING_LITERAL:
            report.action_bar_message = "Found string literal."
        elif token.value in keywords_types:
            report.action_bar_message = f"Found keyword: {token.value}."
        else:
            report.action_bar_message = f"Found symbol: {token.value}."
        yield report

        if token.type == TokenType.END_OF_INPUT:
            return
        position = next_position


### Step 3: Function prototypes ###


def _read_function_header(tokens: list[Token], i: int) -> FunctionPrototype | None:
    """Read `FUNCTION <type> <name> ( [<type> <ident> {, <type> <ident>}] )` at tokens[i].

    Returns None for a malformed header; the parser reports the exact syntax error.
    """

    def at(k: int) -> Token | None:
        return tokens[k] if k < len(tokens) else None

    type_token, name_token, open_paren = at(i + 1), at(i + 2), at(i + 3)
    if (
        type_token is None
        or type_token.type not in VARIABLE_TYPE_TOKENS
        or name_token is None
        or name_token.type != TokenType.IDENTIFIER
        or open_paren is None
        or open_paren.type != TokenType.LPAREN
    ):
        return None

    formal_types = []
    k = i + 4
    token = at(k)
    while token is not None and token.type in VARIABLE_TYPE_TOKENS:
        ident = at(k + 1)
        if ident is None or ident.type != TokenType.IDENTIFIER:
            return None
        formal_types.append(type_from_keyword(token.type))
        k += 2
        separator = at(k)
        if separator is None or separator.type != TokenType.COMMA:
            break
        k += 1
        token = at(k)

    close_paren = at(k)
    if close_paren is None or close_paren.type != TokenType.RPAREN:
        return None
    return FunctionPrototype(
        str(name_token.value), type_from_keyword(type_token.type), tuple(formal_types)
    )


def get_prototype_collector(
    tokens: list[Token],
) -> Generator[PrototypeReport, None, None]:
    """Registers every function signature before any body is parsed.

    This is what lets a call refer to a function declared later in the file,
    to itself, or to a function that calls it back.

    Yields:
        PrototypeReport: One report per token; `new_prototype` is set on FUNCTION headers.

    Raises:
        FunctionAlreadyDeclaredError: A function name is declared twice.
    """
    declared: dict[str, FunctionPrototype] = {}

    for i, token in enumerate(tokens):
        report = PrototypeReport()
        report.looked_up_token_number = i

        if token.type == TokenType.FUNCTION:
            prototype = _read_function_header(tokens, i)
            if prototype is None:
                report.action_bar_message = "Malformed function header, left for the parser."
            elif prototype.name in declared:
                raise FunctionAlreadyDeclaredError(
                    f"Function '{prototype.name}' is already declared.",
                    tokens[i + 2].position,
                    prototype.name,
                )
            else:
                declared[prototype.name] = prototype
                report.new_prototype = prototype
                report.action_bar_message = f"Registered prototype: {prototype}."
        else:
            report.action_bar_message = f"Irrelevant token: {token.lexeme()}."
        yield report
