from typing import Any

from textual.widgets import TextArea
from SlangComponents.ProgressReport import ExecutionReport
from textual.widgets.text_area import Selection

class OutputDisplay(TextArea):
    """Read-only display of the lines printed by the running program."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.read_only = True
        self.show_line_numbers = True

    def apply_progress_report(self, execution_report: ExecutionReport | None = None):
        """Appends the value printed by a PRINT step and selects it."""
        if execution_report and execution_report.print_event is not None:
            start_index = len(self.text)
            self.text += f"{execution_report.print_event}\n"

            document: Any = self.document
            start_location = document.get_location_from_index(start_index)
            end_location = document.get_location_from_index(len(self.text) - 1)
            self.selection = Selection(start=start_location, end=end_location)
            self.scroll_cursor_visible(center=True)
