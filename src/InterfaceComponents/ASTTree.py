from __future__ import annotations

from rich.text import Text
from textual.widgets import Tree
from textual.widgets.tree import TreeNode

from SlangComponents.ProgressReport import ParsingReport, ExecutionReport
from SlangComponents.AST import ASTNode


class ASTTree(Tree):
    """Tree widget specialized for incremental AST visualization.

    The parser streams `ParsingReport` events with stable node ids. This widget
    owns the id->TreeNode mapping and the styling rules for incomplete/complete
    nodes. During execution the tree is rebuilt from the finished Module and
    the cursor follows the executed statement.
    """

    def __init__(self, label: str = "Root", **kwargs):
        super().__init__(label, **kwargs)
        self._nodes_by_id: dict[int, TreeNode] = {0: self.root}

    def reset_tree(self, root_label: str = "Module") -> None:
        self.clear()
        self.root.label = root_label
        self.root.expand()
        self._nodes_by_id = {0: self.root}

    def apply_progress_report(
        self,
        parsing_report: ParsingReport | None = None,
        execution_report: ExecutionReport | None = None,
    ) -> None:
        if parsing_report:
            self.apply_parsing_report(parsing_report)
        elif execution_report:
            self.apply_execution_report(execution_report)

    def apply_parsing_report(self, report: ParsingReport) -> None:
        # Update an existing node label.
        if (
            report.ast_event == "update"
            and report.ast_node_id is not None
            and report.ast_node_label is not None
        ):
            existing = self._nodes_by_id.get(report.ast_node_id)
            if existing is not None:
                style = "red" if report.ast_node_complete is False else "white"
                existing.set_label(Text(report.ast_node_label, style=style))
            self.action_scroll_end()
            return

        # Mark an existing node complete (flip red->white).
        if report.ast_event == "complete" and report.ast_node_id is not None:
            existing = self._nodes_by_id.get(report.ast_node_id)
            if existing is not None:
                plain = (
                    existing.label.plain
                    if isinstance(existing.label, Text)
                    else str(existing.label)
                )
                existing.set_label(Text(plain, style="white"))
            self.action_scroll_end()
            return

        if report.ast_node_id is None or report.ast_node_label is None:
            return

        parent_id = report.ast_parent_id if report.ast_parent_id is not None else 0
        parent_node = self._nodes_by_id.get(parent_id, self.root)
        style = "red" if report.ast_node_complete is False else "white"
        child_node = parent_node.add(Text(report.ast_node_label, style=style))
        parent_node.expand()
        self._nodes_by_id[report.ast_node_id] = child_node
        self.action_scroll_end()

    def apply_execution_report(self, report: ExecutionReport) -> None:
        if report.looked_at_tree_node_id is None:
            return
        node = self.get_node_by_id(report.looked_at_tree_node_id)
        if node:
            self.move_cursor(node)
            self.scroll_to_node(node)

    def build_from_ast_root(self, ast_root: ASTNode) -> None:
        """Builds the entire tree from a given AST root node.

        Every AST node's `unique_id` is replaced by the id of its TreeNode, so
        ExecutionReports can point back into this tree.
        """
        self.reset_tree(root_label=ast_root.unindented_representation())
        ast_root.unique_id = self.root.id
        self._build_subtree(ast_root, self.root)
        self.root.expand()
        self.action_scroll_home()

    def _build_subtree(self, ast_node: ASTNode, tree_node: TreeNode) -> None:
        for child in ast_node.edges:
            child_label = child.unindented_representation()
            child_tree_node = tree_node.add(Text(child_label, style="white"))
            child.unique_id = child_tree_node.id
            child_tree_node.expand()
            self._build_subtree(child, child_tree_node)
