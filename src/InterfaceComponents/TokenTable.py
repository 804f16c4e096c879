from textual.widgets import DataTable
from SlangComponents.ProgressReport import (
    TokenizationReport,
    PrototypeReport,
    ParsingReport,
)
from SlangComponents.Token import Token


class TokenTable(DataTable):
    """Custom widget for displaying a table of tokens."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.cursor_type = "row"
        self.add_columns("pos", "Type", "Value")

    def add_token(self, token: Token):
        """Adds a token to the token table.

        Args:
            token (Token): The token to add.
        """
        self.add_row(
            str(token.position),
            str(token.type).replace("TokenType.", ""),
            token.lexeme(),
        )

    def fill_table(self, tokens: list[Token]):
        self.clear()
        for token in tokens:
            self.add_token(token)

    def apply_progress_report(
        self,
        token_report: TokenizationReport | None = None,
        prototype_report: PrototypeReport | None = None,
        parsing_report: ParsingReport | None = None,
    ):
        """Moves the cursor to the token a report refers to (adding it first for tokenization)."""
        if token_report:
            token = token_report.new_token
            if token:
                self.add_token(token)
                self.move_cursor(row=self.row_count - 1, scroll=True)

        if prototype_report:
            looked_up_token_number = prototype_report.looked_up_token_number
            if looked_up_token_number is not None:
                self.move_cursor(row=looked_up_token_number, scroll=True)

        if parsing_report:
            looked_up_token_number = parsing_report.looked_up_token_number
            if looked_up_token_number is not None:
                self.move_cursor(row=looked_up_token_number, scroll=True)
