from textual.widgets import DataTable
from SlangComponents.ProgressReport import PrototypeReport
from SlangComponents.TypeSystem import FunctionPrototype, type_to_string


class PrototypeTable(DataTable):
    """UI widget listing the function prototypes registered before parsing."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.add_columns(
            ("NAME", "NAME_col"),
            ("RETURNS", "RETURNS_col"),
            ("PARAMS", "PARAMS_col"),
        )
        self.fixed_columns = 1

    def add_prototype(self, prototype: FunctionPrototype):
        params = (
            "\n".join(type_to_string(t) for t in prototype.formal_types)
            if prototype.formal_types
            else "none"
        )
        self.add_row(
            prototype.name,
            type_to_string(prototype.return_type),
            params,
            height=None,
            key=prototype.name,
        )

    def apply_progress_report(self, prototype_report: PrototypeReport | None = None):
        if prototype_report and prototype_report.new_prototype:
            self.add_prototype(prototype_report.new_prototype)
            self.move_cursor(row=self.row_count - 1, scroll=True)
