from typing import Any

from textual.widgets import TextArea
from SlangComponents.ProgressReport import TokenizationReport
from textual.widgets.text_area import Selection

class SourceCodeEditor(TextArea):
    """Custom widget for a source code editor with specific configurations. Defaults to:
    - Tab behavior: indent
    - Show line numbers: True
    - Read only: False

    Methods:
    - apply_progress_report(TokenizationReport): Highlights the characters of the token just scanned.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.tab_behavior = "indent"
        self.show_line_numbers = True
        self.read_only = False

    def apply_progress_report(self, report: TokenizationReport):
        """Applies a TokenizationReport to the editor, highlighting the token.

        Line breaks are flattened to single spaces before lexing, so report
        offsets index the editor text directly.
        """
        start, end = report.currently_looked_at
        if start == end:
            return
        document: Any = self.document
        self.selection = Selection(
            start=document.get_location_from_index(start),
            end=document.get_location_from_index(end),
        )
        self.scroll_cursor_visible(center=True)
