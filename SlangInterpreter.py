from pathlib import Path
import sys

_SRC_DIR = Path(__file__).resolve().parent / "src"
if _SRC_DIR.exists():
    src_str = str(_SRC_DIR)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import (
    Header,
    Footer,
    Static,
    Label,
    TextArea,
    Tree,
)
from textual.binding import Binding
from textual.reactive import reactive

from SlangComponents.Errors import CompileError, SlangRuntimeError
from SlangComponents.Lexer import position_to_line_column

from InterfaceComponents.CompilerPhase import Phase, PHASES

from InterfaceComponents.DynamicPanel import DynamicPanel, DynamicPanelContentType

from run_pipeline import PipelineSession

EXAMPLE_PATH = Path("examples/correct_examples/10_functions__factorial.slang")


class SlangInterpreter(App):
    """Educational step-through interface for the Slang interpreter."""

    CSS_PATH = "src/InterfaceComponents/styles.tcss"

    BINDINGS = [
        Binding("ctrl+l", "load_file", "Load File"),
        Binding("ctrl+r", "toggle_auto_progress", "Pause/Unpause"),
        Binding("+", "increase_speed", "Increase Speed"),
        Binding("-", "decrease_speed", "Decrease Speed"),
        Binding("ctrl+n", "complete_step", "Complete Step/next Step"),
        Binding("ctrl+s", "start_lexing", "Start Lexing"),
        Binding("t", "manual_tick", "Progress 1 Tick"),
        Binding("ctrl+e", "load_example", "Load Example Code"),
    ]

    running = reactive(False)

    def watch_running(self, is_running: bool):
        self.ticker.pause() if not is_running else self.ticker.resume()

    subtitle = reactive("")

    def watch_subtitle(self, new_subtitle: str):
        self.query_one("#title-bar", Label).update(new_subtitle)

    tick_interval = reactive(1.0)

    def watch_tick_interval(self, new_interval: float):
        self.ticker.stop()
        self.ticker = self.set_interval(
            new_interval, self.progress_tick, pause=not self.running
        )

    phase_completed = reactive(False)

    def watch_phase_completed(self, completed: bool):
        if completed:
            self.running = False
            message = f"{self.current_phase} "
            if self.phase_failed:
                message += "failed. "
                if self.error_message:
                    message += f"{self.error_message}"
                message += " Press ctrl+n to return to source code."
                status = "error"
            else:
                message += "completed successfully."
                if self.current_phase != PHASES[-1].name:
                    message += " Press ctrl+n to proceed."
                status = "success"
            self.post_to_action_bar(message, status)
            self.refresh_bindings()

    def __init__(self):
        super().__init__()
        self.pipeline = PipelineSession()
        self.current_phase = ""
        self.phase_failed = False
        self.error_message = ""

        self.source_code = ""
        self.file_name = ""

        self._phase_subtitle_base: str = ""
        self._programmatic_source_set: bool = False

        self._project_root: Path = Path(__file__).resolve().parent

    def compose(self) -> ComposeResult:
        """Create the layout of the application."""
        yield Header()
        yield Footer()

        with Container():
            yield Label("Initializing...", id="title-bar")

            with Horizontal():
                self.left_panel = DynamicPanel(
                    "Left Panel",
                    id="left-panel",
                    classes="dynamic-panel",
                )
                yield self.left_panel
                self.right_panel = DynamicPanel(
                    "Right Panel",
                    id="right-panel",
                    classes="dynamic-panel",
                )
                yield self.right_panel
            yield Static(
                "Type or copy your Slang program in left panel, or press Ctrl+L to load a file.",
                id="action-bar",
            )

    def on_mount(self):
        """Initialize the application."""
        self.ticker = self.set_interval(0.5, self.progress_tick, pause=True)

        self.set_phase(PHASES[0])

    def set_phase(self, phase: Phase):
        """Set the current phase of the interpreter."""
        self.current_phase = phase.name
        self._phase_subtitle_base = (
            f"Step {phase.step_number}: {phase.name} - {phase.description}"
        )
        self._refresh_title_bar()

        self.left_panel.title = phase.left_panel_title
        self.left_panel.content_type = phase.left_panel_type  # type: ignore
        self.left_panel.source_editable = phase == PHASES[0]

        self.right_panel.title = phase.right_panel_title
        self.right_panel.content_type = phase.right_panel_type  # type: ignore

        self.post_to_action_bar(
            phase.action_bar_message or f"{phase.name} started",
            "info",
        )

        entering_method = entering_methods.get(phase.name)
        if entering_method:
            entering_method(self)
        self.phase_completed = False
        self.phase_failed = False
        self.running = False
        self.error_message = ""
        self.refresh_bindings()

    def _refresh_title_bar(self) -> None:
        program_label = self.file_name if self.file_name else "(none)"
        self.subtitle = f"{self._phase_subtitle_base} | Program: {program_label}"

    def _set_source_code_programmatically(self, code: str, *, program_name: str | None = None) -> None:
        self._programmatic_source_set = True
        try:
            self.left_panel.source_editor.text = code
        finally:
            self._programmatic_source_set = False

        if program_name is not None:
            self.file_name = program_name
        self._refresh_title_bar()

    def _is_hidden_dir(self, p: Path) -> bool:
        hidden = {
            "src",
            "tests",
            "scripts",
            "__pycache__",
            ".vscode",
            ".idea",
            ".git",
            ".github",
            ".venv",
            ".mypy_cache",
            ".pytest_cache",
            ".ruff_cache",
        }
        return p.name in hidden

    def _should_show_file(self, p: Path) -> bool:
        return p.is_file() and p.suffix.lower() == ".slang"

    def _populate_directory_tree(self) -> None:
        tree = self.right_panel.directory_tree
        tree.clear()

        tree.root.label = str(self._project_root)
        tree.root.data = self._project_root
        tree.root.expand()

        def add_dir(parent_node, directory: Path) -> None:
            try:
                entries = sorted(directory.iterdir(), key=lambda x: (not x.is_dir(), x.name.lower()))
            except (PermissionError, FileNotFoundError):
                return

            for entry in entries:
                if entry.is_dir():
                    if self._is_hidden_dir(entry):
                        continue
                    child = parent_node.add(entry.name, data=entry)
                    add_dir(child, entry)
                elif self._should_show_file(entry):
                    parent_node.add(entry.name, data=entry)

        add_dir(tree.root, self._project_root)

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        # Only handle selections when we're using the right-panel file browser.
        if self.current_phase != PHASES[0].name:
            return
        if self.right_panel.content_type != DynamicPanelContentType.DIRECTORY_TREE:
            return

        node = event.node
        data = getattr(node, "data", None)
        if not isinstance(data, Path):
            return

        if data.is_dir():
            node.toggle()
            return

        if not self._should_show_file(data):
            return

        try:
            code = data.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.post_to_action_bar(f"Error loading file: {e}", "error")
            return

        self._set_source_code_programmatically(code, program_name=data.stem)
        self.right_panel.content_type = DynamicPanelContentType.HIDDEN
        self.post_to_action_bar(f"Loaded {data.name}.", "success")

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if getattr(event.text_area, "id", None) != "source-code-editor":
            return
        if self._programmatic_source_set:
            return
        if self.file_name:
            self.file_name = ""
            self._refresh_title_bar()

            if self.right_panel.content_type == DynamicPanelContentType.DIRECTORY_TREE:
                self.right_panel.content_type = DynamicPanelContentType.HIDDEN

    def progress_tick(self):
        """Progress one tick in the current stage."""
        ticking_method = ticking_methods.get(self.current_phase)
        if ticking_method:
            self.phase_completed = ticking_method(self)

    def post_to_action_bar(self, message: str, style_class: str = "info"):
        """Post a message to the action bar with a specific style."""
        action_bar = self.query_one("#action-bar", Static)
        action_bar.update(message)
        action_bar.remove_class("info", "error", "success")
        action_bar.add_class(style_class)

    def _fail(self, error: CompileError | SlangRuntimeError) -> bool:
        """Record a phase failure; returns True so the ticking method ends the phase."""
        message = str(error)
        if isinstance(error, CompileError) and error.position is not None:
            line, column = position_to_line_column(self.source_code, error.position)
            message = f"Line {line}, column {column}: {message}"
        self.error_message = message
        self.running = False
        self.phase_failed = True
        return True

    def action_load_file(self):
        """Toggle the file-browser tree (phase 0 only)."""
        if self.current_phase != PHASES[0].name:
            return

        if self.right_panel.content_type == DynamicPanelContentType.DIRECTORY_TREE:
            self.right_panel.content_type = DynamicPanelContentType.HIDDEN
            return

        self.right_panel.content_type = DynamicPanelContentType.DIRECTORY_TREE
        self._populate_directory_tree()
        self.right_panel.directory_tree.focus()
        self.post_to_action_bar("Select a .slang file to load.", "info")

    def action_start_lexing(self):
        """Start the lexing process."""
        self.set_phase(PHASES[1])

    def action_toggle_auto_progress(self):
        """Toggle automatic progress."""
        self.running = not self.running
        self.refresh_bindings()

    def action_increase_speed(self):
        """Increase the speed of auto progress."""
        self.tick_interval = max(0.1, self.tick_interval - 0.1)

    def action_decrease_speed(self):
        """Decrease the speed of auto progress."""
        self.tick_interval = self.tick_interval + 0.1

    def action_manual_tick(self):
        """Progress one tick manually."""
        if not self.running:
            self.progress_tick()

    def action_complete_step(self):
        """Complete the current step if not completed, move to next step if completed."""
        if self.phase_completed and not self.phase_failed:
            current_index = next(
                (
                    i
                    for i, phase in enumerate(PHASES)
                    if phase.name == self.current_phase
                ),
                None,
            )
            if current_index is not None and current_index + 1 < len(PHASES):
                self.set_phase(PHASES[current_index + 1])
            else:
                self.set_phase(PHASES[0])
        elif self.phase_failed:
            self.set_phase(PHASES[0])
        else:
            self.running = False
            while not self.phase_completed and not self.phase_failed:
                self.progress_tick()

    def action_load_example(self):
        """Load an example program into the source editor."""
        example_code_path = self._project_root / EXAMPLE_PATH
        try:
            code = example_code_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            self.post_to_action_bar("Example code file not found.", "error")
            return
        self._set_source_code_programmatically(code, program_name=example_code_path.stem)
        self.post_to_action_bar("Example code loaded successfully.", "success")

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Check if an action may run."""
        if action in ("load_file", "start_lexing", "load_example"):
            return self.current_phase == PHASES[0].name
        elif action == "toggle_auto_progress":
            return self.current_phase != PHASES[0].name and not self.phase_completed
        if action in ["increase_speed", "decrease_speed"]:
            return self.current_phase != PHASES[0].name and self.running
        elif action == "manual_tick":
            return (
                self.current_phase != PHASES[0].name
                and not self.running
                and not self.phase_completed
            )
        elif action == "complete_step":
            return self.current_phase != PHASES[0].name
        return True

    def entering_tokenization(self):
        """Prepare for tokenization phase."""
        self.source_code = self.left_panel.source_editor.text
        self.right_panel.token_table.clear()
        self.pipeline.reset_all()
        self.pipeline.begin_tokenization(self.source_code, file_name=self.file_name)

    def compute_tokenization_tick(self) -> bool:
        """
        Compute one tick of the tokenization phase.
        Returns:
            bool: True if tokenization is complete, False otherwise.
        """
        try:
            done, report = self.pipeline.tick_tokenization()
        except CompileError as e:
            return self._fail(e)
        if done:
            return True
        if report is None:
            return False
        self.right_panel.token_table.apply_progress_report(token_report=report)
        self.left_panel.source_editor.apply_progress_report(report)
        self.post_to_action_bar(report.action_bar_message, "info")
        return False

    def entering_prototype_collection(self):
        """Prepare for the prototype collection phase."""
        self.left_panel.token_table.fill_table(self.pipeline.tokens)
        self.right_panel.prototype_table.clear()
        self.pipeline.begin_prototypes()

    def compute_prototype_tick(self) -> bool:
        """
        Compute one tick of the prototype collection phase.
        Returns:
            bool: True if every prototype is registered, False otherwise.
        """
        try:
            done, report = self.pipeline.tick_prototypes()
        except CompileError as e:
            return self._fail(e)
        if done:
            return True
        if report is None:
            return False
        self.left_panel.token_table.apply_progress_report(prototype_report=report)
        self.right_panel.prototype_table.apply_progress_report(prototype_report=report)
        self.post_to_action_bar(report.action_bar_message, "info")
        return False

    def entering_parsing(self):
        """Prepare for parsing phase."""
        self.left_panel.token_table.fill_table(self.pipeline.tokens)
        self.left_panel.token_table.move_cursor(row=0, scroll=True)
        self.right_panel.ast_tree.reset_tree("Module")
        self.pipeline.begin_parsing()

    def compute_parsing_tick(self) -> bool:
        """
        Compute one tick of the parsing phase.
        Returns:
            bool: True if parsing is complete, False otherwise.
        """
        try:
            done, report = self.pipeline.tick_parsing()
        except CompileError as e:
            return self._fail(e)
        if done:
            self.post_to_action_bar("Parsing completed.", "success")
            return True
        if report is None:
            return False

        # Token cursor tracking
        self.left_panel.token_table.apply_progress_report(parsing_report=report)

        # Incremental AST tree building (supports incomplete nodes)
        self.right_panel.ast_tree.apply_progress_report(parsing_report=report)

        if report.action_bar_message:
            self.post_to_action_bar(report.action_bar_message, "info")
        return False

    def entering_execution(self):
        """Prepare for execution."""
        if self.pipeline.module is None:
            self.post_to_action_bar("No module available. Run parsing first.", "error")
            self.running = False
            return
        self.left_panel.ast_tree.build_from_ast_root(self.pipeline.module)
        self.right_panel.output_display.text = ""
        self.pipeline.begin_execution()

    def compute_execution_tick(self) -> bool:
        """
        Compute one tick of the execution phase.
        Returns:
            bool: True if MAIN has finished, False otherwise.
        """
        if self.phase_failed:
            return True
        try:
            done, report = self.pipeline.tick_execution()
        except SlangRuntimeError as e:
            return self._fail(e)
        if done:
            result = self.pipeline.result
            returned = result.display_value() if result is not None else "nothing"
            self.post_to_action_bar(f"MAIN returned {returned}.", "success")
            return True
        if report is None:
            return False

        self.left_panel.ast_tree.apply_progress_report(execution_report=report)
        self.right_panel.output_display.apply_progress_report(execution_report=report)

        if report.action_bar_message:
            self.post_to_action_bar(report.action_bar_message, "info")
        return False


ticking_methods = {
    "Lexical Analysis: tokenization": SlangInterpreter.compute_tokenization_tick,
    "Lexical Analysis: prototype collection": SlangInterpreter.compute_prototype_tick,
    "Parsing: AST generation and type checking": SlangInterpreter.compute_parsing_tick,
    "Execution": SlangInterpreter.compute_execution_tick,
}

entering_methods = {
    "Lexical Analysis: tokenization": SlangInterpreter.entering_tokenization,
    "Lexical Analysis: prototype collection": SlangInterpreter.entering_prototype_collection,
    "Parsing: AST generation and type checking": SlangInterpreter.entering_parsing,
    "Execution": SlangInterpreter.entering_execution,
}


if __name__ == "__main__":
    SlangInterpreter().run()
