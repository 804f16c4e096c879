from enum import Enum


class TokenType(Enum):
    PLUS = "+"
    MINUS = "-"
    MULTIPLY = "*"
    DIVIDE = "/"
    ASSIGN = "="
    EQ = "=="
    NEQ = "<>"
    GT = ">"
    GTE = ">="
    LT = "<"
    LTE = "<="
    AND = "&&"
    OR = "||"
    NOT = "!"
    SEMICOLON = ";"
    COMMA = ","
    LPAREN = "("
    RPAREN = ")"
    NUMBER = "NUMBER"
    STRING_LITERAL = "STRING_LITERAL"
    PRINT = "PRINT"
    IF = "IF"
    THEN = "THEN"
    ELSE = "ELSE"
    ENDIF = "ENDIF"
    WHILE = "WHILE"
    WEND = "WEND"
    VAR_NUMERIC = "NUMERIC"
    VAR_STRING = "STRING"
    VAR_BOOLEAN = "BOOLEAN"
    TRUE = "TRUE"
    FALSE = "FALSE"
    FUNCTION = "FUNCTION"
    END = "END"
    RETURN = "RETURN"
    IDENTIFIER = "IDENTIFIER"
    END_OF_INPUT = "END_OF_INPUT"
    # Never produced: an illegal character raises LexingError instead.
    ILLEGAL = "ILLEGAL"


VARIABLE_TYPE_TOKENS = {
    TokenType.VAR_NUMERIC,
    TokenType.VAR_STRING,
    TokenType.VAR_BOOLEAN,
}

RELATIONAL_TOKENS = {
    TokenType.EQ,
    TokenType.NEQ,
    TokenType.GT,
    TokenType.GTE,
    TokenType.LT,
    TokenType.LTE,
}


class Token:
    """
    Class representing a token.

    Attributes:
        type (TokenType): The kind of the token (e.g. NUMBER, IDENTIFIER, PLUS).
        value (float | str | None): Payload: the number for NUMBER, the text between
            the quotes for STRING_LITERAL, the spelling for everything else.
        position (int): 0-based offset of the first character in the source.
    """

    def __init__(self, type: TokenType, value: float | str | None, position: int):
        """
        Initialize the Token instance.
        Args:
            type (TokenType): The kind of the token.
            value (float | str | None): The payload of the token.
            position (int): The offset of the token in the source text.
        """
        self.type = type
        self.value = value
        self.position = position

    def lexeme(self) -> str:
        """Spelling of the token, as it would be written in source."""
        if self.type == TokenType.STRING_LITERAL:
            return f'"{self.value}"'
        if self.type == TokenType.NUMBER:
            return format_number(self.value)  # type: ignore[arg-type]
        if self.type == TokenType.END_OF_INPUT:
            return "<end of input>"
        return str(self.value)

    def __eq__(self, other) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.position == other.position
        )

    def __repr__(self) -> str:
        return f"Token({str(self.type).replace('TokenType.', '')}, {self.value!r}, pos {self.position})"


def format_number(value: float) -> str:
    """Render a NUMERIC value without a trailing `.0` for whole numbers."""
    if value != value:
        return "NaN"
    if value in (float("inf"), float("-inf")):
        return "Infinity" if value > 0 else "-Infinity"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
