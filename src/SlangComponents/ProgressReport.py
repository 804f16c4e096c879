from __future__ import annotations

from dataclasses import dataclass

from SlangComponents.Symbols import SymbolInfo
from SlangComponents.Token import Token
from SlangComponents.TypeSystem import FunctionPrototype, SlangType, type_to_string
from SlangComponents.Types import ASTNodeId


@dataclass(frozen=True, slots=True)
class PrintEvent:
    """Side effect of one executed PRINT statement."""

    type: SlangType
    value: float | bool | str | None

    def __str__(self) -> str:
        return SymbolInfo(None, self.type, self.value).display_value()


@dataclass(slots=True)
class ExecutionResult:
    """Everything a run produces: the print trace and MAIN's terminal value."""

    print_events: list[PrintEvent]
    value: SymbolInfo | None = None

    def printed_lines(self) -> list[str]:
        return [str(event) for event in self.print_events]


class ProgressReport:
    def __init__(self):
        self.current_phase_number = ""
        self.action_bar_message = ""


class TokenizationReport(ProgressReport):
    """
    Progress report for the tokenization phase.
    Attributes:
        current_phase_number (str): The current phase number, automatically set to "1".
        currently_looked_at (tuple): first (inclusive) and last (exclusive) offsets of the token.
        new_token (Token | None): The token produced by this step.
    """
    def __init__(self):
        super().__init__()
        self.current_phase_number = "1"
        self.currently_looked_at: tuple[int, int] = (0, 0)
        self.new_token: Token | None = None


class PrototypeReport(ProgressReport):
    """
    Progress report for the prototype collection phase.
    Attributes:
        current_phase_number (str): The current phase number, automatically set to "2".
        new_prototype (FunctionPrototype | None): The prototype registered by this step, if any.
        looked_up_token_number (int | None): The token number that was looked up, if any.
    """
    def __init__(self):
        super().__init__()
        self.current_phase_number = "2"
        self.new_prototype: FunctionPrototype | None = None
        self.looked_up_token_number: int | None = None


class ParsingReport(ProgressReport):
    """Progress report for the parsing (AST generation + type checking) phase.

    Attributes:
        current_phase_number (str): The current phase number, automatically set to "3".
        looked_up_token_number (int | None): Index of the currently looked-at token.
        looked_at_token (Token | None): The currently looked-at token.
        ast_parent_id (int | None): Parent node id for an AST tree update event.
        ast_node_id (int | None): Node id for an AST tree update event.
        ast_node_label (str | None): Label to display for the AST node in the tree.
        ast_event (str | None): "add", "update" or "complete"; None for token-only reports.
        ast_node_complete (bool | None): Whether the node is finished.
    """

    def __init__(self):
        super().__init__()
        self.current_phase_number = "3"

        self.looked_up_token_number: int | None = None
        self.looked_at_token: Token | None = None

        self.ast_parent_id: int | None = None
        self.ast_node_id: int | None = None
        self.ast_node_label: str | None = None
        self.ast_event: str | None = None
        self.ast_node_complete: bool | None = None


class ExecutionReport(ProgressReport):
    """
    Progress report for the execution phase.
    Attributes:
        current_phase_number (str): The current phase number, automatically set to "4".
        procedure_name (str | None): Procedure whose statement is being executed.
        call_depth (int): Number of active Slang activations.
        looked_at_tree_node_id (ASTNodeId | None): Statement node being executed.
        print_event (PrintEvent | None): Set when the step executed a PRINT.
    """
    def __init__(self):
        super().__init__()
        self.current_phase_number = "4"
        self.procedure_name: str | None = None
        self.call_depth: int = 0
        self.looked_at_tree_node_id: ASTNodeId | None = None
        self.print_event: PrintEvent | None = None

    def describe_print(self) -> str:
        if self.print_event is None:
            return ""
        return f"{type_to_string(self.print_event.type)} {self.print_event}"
