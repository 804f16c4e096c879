from dataclasses import dataclass
from InterfaceComponents.DynamicPanel import DynamicPanelContentType

@dataclass
class Phase:
    name: str
    step_number: str
    description: str
    left_panel_type: str
    left_panel_title: str
    right_panel_type: str
    right_panel_title: str
    action_bar_message: str = ""  # Optional message for the action bar

# Define the phases of the interpreter
PHASES = [
    Phase(
        name="Source Code Input",
        step_number="0",
        description="Source code should be provided in Slang.",
        left_panel_type=DynamicPanelContentType.SOURCE_CODE_EDITOR,
        left_panel_title="Source code in Slang",
        right_panel_type=DynamicPanelContentType.HIDDEN,
        right_panel_title="File Browser",
        action_bar_message="Please load (ctrl+L), paste (ctrl+V) or write source code to begin."
    ),
    Phase(
        name="Lexical Analysis: tokenization",
        step_number="1",
        description="Convert source code into tokens.",
        left_panel_type=DynamicPanelContentType.SOURCE_CODE_EDITOR,
        left_panel_title="Source code in Slang",
        right_panel_type=DynamicPanelContentType.TOKEN_TABLE,
        right_panel_title="List of tokens"
    ),
    Phase(
        name="Lexical Analysis: prototype collection",
        step_number="2",
        description="Register every function signature before bodies are parsed.",
        left_panel_type=DynamicPanelContentType.TOKEN_TABLE,
        left_panel_title="List of tokens",
        right_panel_type=DynamicPanelContentType.PROTOTYPE_TABLE,
        right_panel_title="Function prototypes"
    ),
    Phase(
        name="Parsing: AST generation and type checking",
        step_number="3",
        description="Generate the Abstract Syntax Tree (AST) and type check each expression.",
        left_panel_type=DynamicPanelContentType.TOKEN_TABLE,
        left_panel_title="List of tokens",
        right_panel_type=DynamicPanelContentType.AST_TREE,
        right_panel_title="Abstract Syntax Tree (AST)"
    ),
    Phase(
        name="Execution",
        step_number="4",
        description="Run MAIN, one statement per tick.",
        left_panel_type=DynamicPanelContentType.AST_TREE,
        left_panel_title="Abstract Syntax Tree (AST)",
        right_panel_type=DynamicPanelContentType.OUTPUT_DISPLAY,
        right_panel_title="Program output"
    ),
]
