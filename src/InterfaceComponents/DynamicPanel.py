from textual.app import ComposeResult
from textual.containers import Container
from textual.widgets import (
    Tree,
    ContentSwitcher,
)
from textual.reactive import reactive
from InterfaceComponents.SourceCodeEditor import SourceCodeEditor
from InterfaceComponents.TokenTable import TokenTable
from InterfaceComponents.PrototypeTable import PrototypeTable
from InterfaceComponents.ASTTree import ASTTree
from InterfaceComponents.OutputDisplay import OutputDisplay
from enum import StrEnum

class DynamicPanelContentType(StrEnum):
    DIRECTORY_TREE = "directory-tree"
    SOURCE_CODE_EDITOR = "source-code-editor"
    TOKEN_TABLE = "token-table"
    PROTOTYPE_TABLE = "prototype-table"
    AST_TREE = "ast-tree"
    OUTPUT_DISPLAY = "output-display"
    HIDDEN = "hidden"

class DynamicPanel(Container):
    """Custom widget for a dynamic panel that adapts to different content types."""

    content_type = reactive(DynamicPanelContentType.HIDDEN)
    title = reactive("")
    source_editable = reactive(False)

    def __init__(self, title: str, **kwargs):
        super().__init__(**kwargs)
        self.title = title

        # creates the widgets to display the different types of contents
        self.directory_tree = Tree("Root", id="directory-tree")
        self.source_editor = SourceCodeEditor(id="source-code-editor")
        self.token_table = TokenTable(id="token-table")
        self.prototype_table = PrototypeTable(id="prototype-table")
        self.ast_tree = ASTTree("Root", id="ast-tree")
        self.output_display = OutputDisplay(id="output-display")

    def watch_content_type(self, content_type: DynamicPanelContentType):
        if content_type == "":
            return
        if content_type == DynamicPanelContentType.HIDDEN:
            self.add_class("hidden")
            return
        if content_type not in DynamicPanelContentType.__members__.values():
            raise ValueError(
                f"Unsupported content type: {content_type} for DynamicPanel."
            )
        self.remove_class("hidden")
        # Content type values double as the ids of the switched widgets.
        self.query_one("#content-switcher", ContentSwitcher).current = str(content_type)

    def compose(self) -> ComposeResult:
        with ContentSwitcher(id="content-switcher", initial="source-code-editor"):
            yield self.directory_tree
            yield self.source_editor
            yield self.token_table
            yield self.prototype_table
            yield self.ast_tree
            yield self.output_display

    def watch_title(self, new_title: str):
        self.border_title = new_title

    def watch_source_editable(self, editable: bool):
        self.source_editor.read_only = not editable
