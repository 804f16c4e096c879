### Define AST nodes for the Slang language. ###

from __future__ import annotations

import math
from collections.abc import Generator

from SlangComponents.Errors import CompileErrorKind, RuntimeErrorKind, SlangRuntimeError
from SlangComponents.ProgressReport import ExecutionReport, PrintEvent
from SlangComponents.Symbols import (
    CompilationContext,
    RuntimeContext,
    SemanticError,
    SymbolInfo,
)
from SlangComponents.Token import TokenType, format_number
from SlangComponents.TypeSystem import (
    FunctionPrototype,
    SlangType,
    is_boolean,
    is_numeric,
    is_stringy,
    supports_ordering,
    type_to_string,
)
from SlangComponents.Types import ASTNodeId

# Expression evaluation and statement execution are generators: they yield
# ExecutionReports (one per executed statement, one per PRINT) and return
# their result through StopIteration, so the viewer can step through a run.
Execution = Generator[ExecutionReport, None, SymbolInfo | None]
Evaluation = Generator[ExecutionReport, None, SymbolInfo]


operators_map = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.MULTIPLY: "*",
    TokenType.DIVIDE: "/",
    TokenType.EQ: "==",
    TokenType.NEQ: "<>",
    TokenType.GT: ">",
    TokenType.GTE: ">=",
    TokenType.LT: "<",
    TokenType.LTE: "<=",
    TokenType.AND: "&&",
    TokenType.OR: "||",
    TokenType.NOT: "!",
}


def _divide(left: float, right: float) -> float:
    """Floating point division with IEEE results for a zero divisor."""
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _type_mismatch(message: str, position: int) -> SemanticError:
    return SemanticError(message, CompileErrorKind.TYPE_MISMATCH, position)


class ASTNode:
    """Base class for all AST nodes.

    ```BNF:
        <ast_node> ::= <expression> | <statement> | <statements> | <procedure> | <module>
```
    Attributes:
        position (int): 0-based source offset where this node originates.
        edges (list[ASTNode]): Child nodes used for AST display and UI tree projection.
        unique_id (ASTNodeId | None): UI tree node id assigned when the tree is built.
        static_type (SlangType | None): Type recorded by `type_check()`.
    """

    def __init__(self, position: int):
        self.position: int = position
        self.edges: list[ASTNode] = []
        self.unique_id: ASTNodeId | None = None
        self.static_type: SlangType | None = None

    def tree_representation(self, prefix="", is_last=True) -> str:
        """Return a string representation of the node with indentation.

        Args:
            prefix (str): Prefix string to render before this node (used recursively).
            is_last (bool): Whether this node is rendered as the last child.

        Returns:
            str: The indented string representation of the node.
        """
        connector = "└── " if is_last else "├── "
        extension = "    " if is_last else "│   "
        unindented_rep = self.unindented_representation()
        result = f"{prefix}{connector}{unindented_rep}" if unindented_rep else ""
        if self.edges and unindented_rep:
            result += "\n"
        for i, edge in enumerate(self.edges):
            is_last_edge = i == len(self.edges) - 1
            result += edge.tree_representation(f"{prefix}{extension}", is_last_edge)
            if i < len(self.edges) - 1:
                result += "\n"
        return result

    def unindented_representation(self) -> str:
        """Return the one-line label for this node."""
        raise NotImplementedError(
            "Subclasses must implement unindented_representation method"
        )

    def _report(
        self,
        runtime_context: RuntimeContext,
        message: str,
        print_event: PrintEvent | None = None,
    ) -> ExecutionReport:
        """Factory helper for the ExecutionReports yielded while running this node."""
        report = ExecutionReport()
        report.action_bar_message = message
        report.procedure_name = runtime_context.procedure_name
        report.call_depth = runtime_context.depth
        report.looked_at_tree_node_id = self.unique_id
        report.print_event = print_event
        return report


class Expression(ASTNode):
    """Base class for expression nodes.

    Expressions work in two modes: `type_check()` against a compile-time
    table (types only) and `evaluate()` against a run-time table.
    """

    def type_check(self, compilation_context: CompilationContext) -> SlangType:
        raise NotImplementedError("Subclasses must implement type_check method")

    def get_type(self) -> SlangType | None:
        return self.static_type

    def evaluate(self, runtime_context: RuntimeContext) -> Evaluation:
        raise NotImplementedError("Subclasses must implement evaluate method")


class Statement(ASTNode):
    """Base class for statement nodes.

    ```BNF:
        <statement> ::= <variable_decl> | <print_stmt> | <assignment>
                      | <if_stmt> | <while_stmt> | <return_stmt>
```
    `execute()` returns the value to propagate out of the enclosing procedure
    (only RETURN produces one) or None.
    """

    def execute(self, runtime_context: RuntimeContext) -> Execution:
        raise NotImplementedError("Subclasses must implement execute method")


### Literals ###


class NumericConstant(Expression):
    def __init__(self, value: float, position: int):
        super().__init__(position)
        self.value = float(value)
        self.static_type = SlangType.NUMERIC

    def unindented_representation(self) -> str:
        return f"NUMBER : {format_number(self.value)}"

    def type_check(self, compilation_context: CompilationContext) -> SlangType:
        return SlangType.NUMERIC

    def evaluate(self, runtime_context: RuntimeContext) -> Evaluation:
        return SymbolInfo(None, SlangType.NUMERIC, self.value)
        yield  # pragma: no cover

    def __repr__(self):
        return f"NumericConstant({self.value})"


class BooleanConstant(Expression):
    def __init__(self, value: bool, position: int):
        super().__init__(position)
        self.value = value
        self.static_type = SlangType.BOOL

    def unindented_representation(self) -> str:
        return f"BOOLEAN : {'TRUE' if self.value else 'FALSE'}"

    def type_check(self, compilation_context: CompilationContext) -> SlangType:
        return SlangType.BOOL

    def evaluate(self, runtime_context: RuntimeContext) -> Evaluation:
        return SymbolInfo(None, SlangType.BOOL, self.value)
        yield  # pragma: no cover

    def __repr__(self):
        return f"BooleanConstant({self.value})"


class StringLiteral(Expression):
    def __init__(self, value: str, position: int):
        super().__init__(position)
        self.value = value
        self.static_type = SlangType.STRING

    def unindented_representation(self) -> str:
        return f'STRING : "{self.value}"'

    def type_check(self, compilation_context: CompilationContext) -> SlangType:
        return SlangType.STRING

    def evaluate(self, runtime_context: RuntimeContext) -> Evaluation:
        return SymbolInfo(None, SlangType.STRING, self.value)
        yield  # pragma: no cover

    def __repr__(self):
        return f"StringLiteral({self.value!r})"


### Names ###


class Variable(Expression):
    """Reference to a declared variable or formal parameter, looked up by name."""

    def __init__(self, name: str, position: int):
        super().__init__(position)
        self.name = name

    def unindented_representation(self) -> str:
        return f"Variable : {self.name} : {type_to_string(self.static_type)}"

    def type_check(self, compilation_context: CompilationContext) -> SlangType:
        info = compilation_context.table.get(self.name)
        if info is None:
            raise SemanticError(
                f"'{self.name}' - undefined symbol.",
                CompileErrorKind.UNDECLARED_SYMBOL,
                self.position,
                self.name,
            )
        self.static_type = info.type
        return info.type

    def evaluate(self, runtime_context: RuntimeContext) -> Evaluation:
        info = runtime_context.table.get(self.name)
        if info is None or info.value is None:
            raise SlangRuntimeError(
                f"Variable '{self.name}' is read before a value was assigned to it.",
                RuntimeErrorKind.UNASSIGNED_VARIABLE,
            )
        return info
        yield  # pragma: no cover

    def __repr__(self):
        return f"Variable({self.name})"


### Operators ###


class BinaryExpression(Expression):
    """Arithmetic: + - * /. `+` also concatenates two STRINGs."""

    def __init__(self, left: Expression, operator: TokenType, right: Expression, position: int):
        super().__init__(position)
        self.left = left
        self.operator = operator
        self.right = right
        self.edges = [left, right]

    def unindented_representation(self) -> str:
        return f"Binary operator : {operators_map[self.operator]}"

    def type_check(self, compilation_context: CompilationContext) -> SlangType:
        left_type = self.left.type_check(compilation_context)
        right_type = self.right.type_check(compilation_context)
        symbol = operators_map[self.operator]
        if left_type != right_type:
            raise _type_mismatch(
                f"operands of '{symbol}' have different types: "
                f"{type_to_string(left_type)} and {type_to_string(right_type)}.",
                self.position,
            )
        if self.operator == TokenType.PLUS:
            if not (is_numeric(left_type) or is_stringy(left_type)):
                raise _type_mismatch(
                    f"'+' expects NUMERIC or STRING operands, got {type_to_string(left_type)}.",
                    self.position,
                )
        elif not is_numeric(left_type):
            raise _type_mismatch(
                f"'{symbol}' expects NUMERIC operands, got {type_to_string(left_type)}.",
                self.position,
            )
        self.static_type = left_type
        return left_type

    def evaluate(self, runtime_context: RuntimeContext) -> Evaluation:
        left = yield from self.left.evaluate(runtime_context)
        right = yield from self.right.evaluate(runtime_context)
        if self.operator == TokenType.PLUS:
            result = left.value + right.value  # type: ignore[operator]
        elif self.operator == TokenType.MINUS:
            result = left.value - right.value  # type: ignore[operator]
        elif self.operator == TokenType.MULTIPLY:
            result = left.value * right.value  # type: ignore[operator]
        else:
            result = _divide(left.value, right.value)  # type: ignore[arg-type]
        return SymbolInfo(None, left.type, result)

    def __repr__(self):
        return f"BinaryExpression({self.left!r} {operators_map[self.operator]} {self.right!r})"


class RelationalExpression(Expression):
    """Comparison: == <> for any matching types, < <= > >= for NUMERIC only."""

    def __init__(self, left: Expression, operator: TokenType, right: Expression, position: int):
        super().__init__(position)
        self.left = left
        self.operator = operator
        self.right = right
        self.edges = [left, right]

    def unindented_representation(self) -> str:
        return f"Relational operator : {operators_map[self.operator]}"

    def type_check(self, compilation_context: CompilationContext) -> SlangType:
        left_type = self.left.type_check(compilation_context)
        right_type = self.right.type_check(compilation_context)
        symbol = operators_map[self.operator]
        if left_type != right_type:
            raise _type_mismatch(
                f"cannot compare {type_to_string(left_type)} with {type_to_string(right_type)} using '{symbol}'.",
                self.position,
            )
        if self.operator not in (TokenType.EQ, TokenType.NEQ) and not supports_ordering(left_type):
            raise _type_mismatch(
                f"only == and <> are supported for {type_to_string(left_type)} operands.",
                self.position,
            )
        self.static_type = SlangType.BOOL
        return SlangType.BOOL

    def evaluate(self, runtime_context: RuntimeContext) -> Evaluation:
        left = yield from self.left.evaluate(runtime_context)
        right = yield from self.right.evaluate(runtime_context)
        a, b = left.value, right.value
        if self.operator == TokenType.EQ:
            result = a == b
        elif self.operator == TokenType.NEQ:
            result = a != b
        elif self.operator == TokenType.GT:
            result = a > b  # type: ignore[operator]
        elif self.operator == TokenType.GTE:
            result = a >= b  # type: ignore[operator]
        elif self.operator == TokenType.LT:
            result = a < b  # type: ignore[operator]
        else:
            result = a <= b  # type: ignore[operator]
        return SymbolInfo(None, SlangType.BOOL, result)

    def __repr__(self):
        return f"RelationalExpression({self.left!r} {operators_map[self.operator]} {self.right!r})"


class LogicalExpression(Expression):
    """&& and ||. Both operands are always evaluated, left first."""

    def __init__(self, left: Expression, operator: TokenType, right: Expression, position: int):
        super().__init__(position)
        self.left = left
        self.operator = operator
        self.right = right
        self.edges = [left, right]

    def unindented_representation(self) -> str:
        return f"Logical operator : {operators_map[self.operator]}"

    def type_check(self, compilation_context: CompilationContext) -> SlangType:
        left_type = self.left.type_check(compilation_context)
        right_type = self.right.type_check(compilation_context)
        if not (is_boolean(left_type) and is_boolean(right_type)):
            raise _type_mismatch(
                f"'{operators_map[self.operator]}' expects BOOLEAN operands, got "
                f"{type_to_string(left_type)} and {type_to_string(right_type)}.",
                self.position,
            )
        self.static_type = SlangType.BOOL
        return SlangType.BOOL

    def evaluate(self, runtime_context: RuntimeContext) -> Evaluation:
        left = yield from self.left.evaluate(runtime_context)
        right = yield from self.right.evaluate(runtime_context)
        if self.operator == TokenType.AND:
            result = bool(left.value) and bool(right.value)
        else:
            result = bool(left.value) or bool(right.value)
        return SymbolInfo(None, SlangType.BOOL, result)

    def __repr__(self):
        return f"LogicalExpression({self.left!r} {operators_map[self.operator]} {self.right!r})"


class LogicalNot(Expression):
    def __init__(self, operand: Expression, position: int):
        super().__init__(position)
        self.operand = operand
        self.edges = [operand]

    def unindented_representation(self) -> str:
        return "Logical operator : !"

    def type_check(self, compilation_context: CompilationContext) -> SlangType:
        operand_type = self.operand.type_check(compilation_context)
        if not is_boolean(operand_type):
            raise _type_mismatch(
                f"'!' expects a BOOLEAN operand, got {type_to_string(operand_type)}.",
                self.position,
            )
        self.static_type = SlangType.BOOL
        return SlangType.BOOL

    def evaluate(self, runtime_context: RuntimeContext) -> Evaluation:
        operand = yield from self.operand.evaluate(runtime_context)
        return SymbolInfo(None, SlangType.BOOL, not operand.value)

    def __repr__(self):
        return f"LogicalNot({self.operand!r})"


class UnaryExpression(Expression):
    """Unary + and - on a NUMERIC operand."""

    def __init__(self, operator: TokenType, operand: Expression, position: int):
        super().__init__(position)
        self.operator = operator
        self.operand = operand
        self.edges = [operand]

    def unindented_representation(self) -> str:
        return f"Unary operator : {operators_map[self.operator]}"

    def type_check(self, compilation_context: CompilationContext) -> SlangType:
        operand_type = self.operand.type_check(compilation_context)
        if not is_numeric(operand_type):
            raise _type_mismatch(
                f"unary '{operators_map[self.operator]}' expects a NUMERIC operand, "
                f"got {type_to_string(operand_type)}.",
                self.position,
            )
        self.static_type = SlangType.NUMERIC
        return SlangType.NUMERIC

    def evaluate(self, runtime_context: RuntimeContext) -> Evaluation:
        operand = yield from self.operand.evaluate(runtime_context)
        value = operand.value if self.operator == TokenType.PLUS else -operand.value  # type: ignore[operator]
        return SymbolInfo(None, SlangType.NUMERIC, value)

    def __repr__(self):
        return f"UnaryExpression({operators_map[self.operator]}{self.operand!r})"


class CallExpression(Expression):
    """Call of a user function.

    Only the callee's name is stored. The procedure is looked up in the
    running module when the call executes, which is what makes forward,
    self and mutual recursion work.
    """

    def __init__(
        self,
        name: str,
        arguments: list[Expression],
        prototype: FunctionPrototype,
        position: int,
    ):
        super().__init__(position)
        self.name = name
        self.arguments = arguments
        self.prototype = prototype
        self.edges = list(arguments)

    def unindented_representation(self) -> str:
        return f"Call : {self.name} : {type_to_string(self.prototype.return_type)}"

    def type_check(self, compilation_context: CompilationContext) -> SlangType:
        expected = self.prototype.formal_types
        if len(self.arguments) != len(expected):
            raise _type_mismatch(
                f"function '{self.name}' expects {len(expected)} argument(s), "
                f"got {len(self.arguments)}.",
                self.position,
            )
        for index, (argument, formal_type) in enumerate(zip(self.arguments, expected), start=1):
            actual_type = argument.type_check(compilation_context)
            if actual_type != formal_type:
                raise _type_mismatch(
                    f"argument {index} of '{self.name}' must be {type_to_string(formal_type)}, "
                    f"got {type_to_string(actual_type)}.",
                    argument.position,
                )
        self.static_type = self.prototype.return_type
        return self.prototype.return_type

    def evaluate(self, runtime_context: RuntimeContext) -> Evaluation:
        actuals: list[SymbolInfo] = []
        for argument in self.arguments:
            actuals.append((yield from argument.evaluate(runtime_context)))

        module = runtime_context.module
        procedure = module.find(self.name)  # type: ignore[union-attr]
        callee_context = RuntimeContext(module, self.name, runtime_context.depth + 1)
        result = yield from procedure.execute(callee_context, actuals)
        if result is None:
            raise SlangRuntimeError(
                f"Function '{self.name}' finished without returning a value.",
                RuntimeErrorKind.MISSING_RETURN_VALUE,
            )
        return result

    def __repr__(self):
        return f"CallExpression({self.name}, {self.arguments!r})"


### Statements ###


class Statements(ASTNode):
    """Ordered statement list (procedure body, branch or loop body)."""

    def __init__(self, statements: list[Statement], position: int, title: str = "Statements"):
        super().__init__(position)
        self.statements = statements
        self.title = title
        self.edges = list(statements)

    def unindented_representation(self) -> str:
        return self.title

    def execute(self, runtime_context: RuntimeContext) -> Execution:
        """Run the statements in order; stop at the first propagated value."""
        for statement in self.statements:
            result = yield from statement.execute(runtime_context)
            if result is not None:
                return result
        return None

    def __iter__(self):
        return iter(self.statements)

    def __len__(self):
        return len(self.statements)

    def __repr__(self):
        return f"Statements({self.title}, {self.statements!r})"


class PrintStatement(Statement):
    def __init__(self, expression: Expression, position: int):
        super().__init__(position)
        self.expression = expression
        self.edges = [expression]

    def unindented_representation(self) -> str:
        return "Print Statement"

    def execute(self, runtime_context: RuntimeContext) -> Execution:
        value = yield from self.expression.evaluate(runtime_context)
        event = PrintEvent(value.type, value.value)
        yield self._report(runtime_context, f"PRINT >> {event}", print_event=event)
        return None

    def __repr__(self):
        return f"PrintStatement({self.expression!r})"


class VariableDeclaration(Statement):
    def __init__(self, info: SymbolInfo, position: int):
        super().__init__(position)
        self.info = info

    def unindented_representation(self) -> str:
        return f"Declaration : {self.info.name} : {type_to_string(self.info.type)}"

    def execute(self, runtime_context: RuntimeContext) -> Execution:
        yield self._report(
            runtime_context,
            f"Declaring {type_to_string(self.info.type)} {self.info.name}.",
        )
        runtime_context.table.add(self.info)
        return None

    def __repr__(self):
        return f"VariableDeclaration({self.info.name}: {type_to_string(self.info.type)})"


class AssignmentStatement(Statement):
    def __init__(self, variable: Variable, expression: Expression, position: int):
        super().__init__(position)
        self.variable = variable
        self.expression = expression
        self.edges = [variable, expression]

    def unindented_representation(self) -> str:
        return "Assignment"

    def execute(self, runtime_context: RuntimeContext) -> Execution:
        yield self._report(runtime_context, f"Assigning to {self.variable.name}.")
        value = yield from self.expression.evaluate(runtime_context)
        runtime_context.table.assign_to_table(self.variable.name, value)
        return None

    def __repr__(self):
        return f"AssignmentStatement({self.variable.name} = {self.expression!r})"


class IfStatement(Statement):
    def __init__(
        self,
        condition: Expression,
        then_statements: Statements,
        position: int,
        else_statements: Statements | None = None,
    ):
        super().__init__(position)
        self.condition = condition
        self.then_statements = then_statements
        self.else_statements = else_statements
        self.edges = [condition, then_statements]
        if else_statements is not None:
            self.edges.append(else_statements)

    def unindented_representation(self) -> str:
        return "If Statement"

    def execute(self, runtime_context: RuntimeContext) -> Execution:
        yield self._report(runtime_context, "Evaluating IF condition.")
        condition = yield from self.condition.evaluate(runtime_context)
        if condition.value:
            return (yield from self.then_statements.execute(runtime_context))
        if self.else_statements is not None:
            return (yield from self.else_statements.execute(runtime_context))
        return None

    def __repr__(self):
        return f"IfStatement({self.condition!r})"


class WhileStatement(Statement):
    def __init__(self, condition: Expression, body: Statements, position: int):
        super().__init__(position)
        self.condition = condition
        self.body = body
        self.edges = [condition, body]

    def unindented_representation(self) -> str:
        return "While Statement"

    def execute(self, runtime_context: RuntimeContext) -> Execution:
        while True:
            yield self._report(runtime_context, "Evaluating WHILE condition.")
            condition = yield from self.condition.evaluate(runtime_context)
            if not condition.value:
                return None
            result = yield from self.body.execute(runtime_context)
            if result is not None:
                return result

    def __repr__(self):
        return f"WhileStatement({self.condition!r})"


class ReturnStatement(Statement):
    """RETURN [expr];

    A bare RETURN still stops the procedure: it propagates a SymbolInfo with
    no value, which the procedure turns into a null result.
    """

    def __init__(self, expression: Expression | None, return_type: SlangType, position: int):
        super().__init__(position)
        self.expression = expression
        self.return_type = return_type
        self.edges = [expression] if expression is not None else []

    def unindented_representation(self) -> str:
        return "Return Statement"

    def execute(self, runtime_context: RuntimeContext) -> Execution:
        yield self._report(runtime_context, "Returning.")
        if self.expression is None:
            return SymbolInfo(None, self.return_type, None)
        return (yield from self.expression.evaluate(runtime_context))

    def __repr__(self):
        return f"ReturnStatement({self.expression!r})"
