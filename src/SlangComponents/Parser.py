from __future__ import annotations

from collections.abc import Generator, Iterable

from SlangComponents.AST import (
    ASTNode,
    AssignmentStatement,
    BinaryExpression,
    BooleanConstant,
    CallExpression,
    Expression,
    IfStatement,
    LogicalExpression,
    LogicalNot,
    NumericConstant,
    PrintStatement,
    RelationalExpression,
    ReturnStatement,
    Statement,
    Statements,
    StringLiteral,
    UnaryExpression,
    Variable,
    VariableDeclaration,
    WhileStatement,
)
from SlangComponents.Errors import CompileError, CompileErrorKind
from SlangComponents.Lexer import get_prototype_collector, normalize_source, tokenize
from SlangComponents.Module import ENTRY_POINT, Module, ModuleBuilder, ProcedureBuilder
from SlangComponents.ProgressReport import ParsingReport
from SlangComponents.Symbols import SemanticError, SymbolInfo
from SlangComponents.Token import RELATIONAL_TOKENS, VARIABLE_TYPE_TOKENS, Token, TokenType
from SlangComponents.TypeSystem import (
    FunctionPrototype,
    SlangType,
    is_assignable,
    is_boolean,
    type_from_keyword,
    type_to_string,
)


class ParsingError(CompileError):
    """Custom exception for parsing errors."""

    def __init__(self, message: str, position: int | None = None):
        super().__init__(message, CompileErrorKind.SYNTAX, position)


# Tokens that close a statement list. END_OF_INPUT is included so that a
# missing terminator is reported by the enclosing construct's expect.
_BLOCK_TERMINATORS = {
    TokenType.ELSE,
    TokenType.ENDIF,
    TokenType.WEND,
    TokenType.END,
    TokenType.END_OF_INPUT,
}


_TYPE_KEYWORDS = [TokenType.VAR_NUMERIC, TokenType.VAR_STRING, TokenType.VAR_BOOLEAN]


class _ParserState:
    def __init__(self, tokens: list[Token], prototypes: Iterable[FunctionPrototype]):
        # Tokens are never consumed from the list; the cursor indexes the list
        # the UI token table displays.
        self.tokens = tokens
        self.cursor = 0

        self.module_builder = ModuleBuilder()
        for prototype in prototypes:
            self.module_builder.register_prototype(prototype)
        self.procedure: ProcedureBuilder | None = None

        # AST tree event ids (UI-side). 0 is reserved for the Tree root.
        self.next_ast_node_id = 1
        self.visual_parent_stack: list[int] = [0]


def _new_report(
    state: _ParserState,
    message: str = "",
    *,
    ast_parent_id: int | None = None,
    ast_node_id: int | None = None,
    ast_node_label: str | None = None,
    ast_event: str | None = None,
    ast_node_complete: bool | None = None,
) -> ParsingReport:
    report = ParsingReport()
    report.looked_up_token_number = state.cursor
    report.looked_at_token = state.tokens[state.cursor]
    report.ast_parent_id = ast_parent_id
    report.ast_node_id = ast_node_id
    report.ast_node_label = ast_node_label
    report.ast_event = ast_event
    report.ast_node_complete = ast_node_complete
    report.action_bar_message = message
    return report


def _current(state: _ParserState) -> Token:
    return state.tokens[state.cursor]


def _advance_token(
    state: _ParserState, message: str = ""
) -> Generator[ParsingReport, None, Token]:
    token = _current(state)
    yield _new_report(state, message or f"Consuming {token.lexeme()}")
    # END_OF_INPUT is sticky: the cursor never moves past it.
    if token.type != TokenType.END_OF_INPUT:
        state.cursor += 1
    return token


def _match_token(
    state: _ParserState, expected: Iterable[TokenType]
) -> Generator[ParsingReport, None, Token | None]:
    token = _current(state)
    if token.type in expected:
        return (yield from _advance_token(state, f"Matched {token.lexeme()}"))
    return None


def _describe(expected: Iterable[TokenType]) -> str:
    names = []
    for token_type in expected:
        if token_type == TokenType.END_OF_INPUT:
            names.append("end of input")
        elif token_type in (TokenType.IDENTIFIER, TokenType.NUMBER):
            names.append(token_type.value.lower())
        else:
            names.append(f"'{token_type.value}'")
    return " or ".join(names)


def _expect_token(
    state: _ParserState, expected: list[TokenType]
) -> Generator[ParsingReport, None, Token]:
    token = _current(state)
    if token.type not in expected:
        message = f"Expected {_describe(expected)}, got '{token.lexeme()}'."
        yield _new_report(state, message)
        raise ParsingError(message, token.position)
    return (yield from _advance_token(state, f"Consumed {token.lexeme()}"))


### Visual AST events ###


def _emit_ast_node(
    state: _ParserState,
    parent_id: int,
    label: str,
    complete: bool = False,
) -> Generator[ParsingReport, None, int]:
    node_id = state.next_ast_node_id
    state.next_ast_node_id += 1
    yield _new_report(
        state,
        f"AST: added {label}",
        ast_parent_id=parent_id,
        ast_node_id=node_id,
        ast_node_label=label,
        ast_event="add",
        ast_node_complete=complete,
    )
    return node_id


def _emit_ast_update(
    state: _ParserState, node_id: int, label: str
) -> Generator[ParsingReport, None, None]:
    """Update the label of an existing visual AST node."""
    yield _new_report(
        state,
        f"AST: updated {label}",
        ast_node_id=node_id,
        ast_node_label=label,
        ast_event="update",
        ast_node_complete=False,
    )


def _visual_begin(state: _ParserState, label: str) -> Generator[ParsingReport, None, int]:
    parent_id = state.visual_parent_stack[-1]
    node_id = yield from _emit_ast_node(state, parent_id, label)
    state.visual_parent_stack.append(node_id)
    return node_id


def _visual_end(state: _ParserState, node_id: int) -> Generator[ParsingReport, None, None]:
    if state.visual_parent_stack[-1] == node_id:
        state.visual_parent_stack.pop()
    elif node_id in state.visual_parent_stack:
        state.visual_parent_stack.remove(node_id)
    yield _new_report(
        state,
        "AST: completed node",
        ast_node_id=node_id,
        ast_event="complete",
        ast_node_complete=True,
    )


def _emit_ast_subtree(
    state: _ParserState, node: ASTNode, parent_id: int
) -> Generator[ParsingReport, None, None]:
    """Emit tree events for an already built node and record the ids on it.

    Projection: label is `node.unindented_representation()`, children are `node.edges`.
    """
    label = node.unindented_representation()
    if not node.edges:
        node.unique_id = yield from _emit_ast_node(state, parent_id, label, complete=True)  # type: ignore[assignment]
        return

    node_id = yield from _emit_ast_node(state, parent_id, label)
    node.unique_id = node_id  # type: ignore[assignment]
    for child in node.edges:
        yield from _emit_ast_subtree(state, child, node_id)
    yield _new_report(
        state,
        f"AST: completed {label}",
        ast_node_id=node_id,
        ast_event="complete",
        ast_node_complete=True,
    )


### Parsing expressions ###


def _active_procedure(state: _ParserState) -> ProcedureBuilder:
    assert state.procedure is not None, "statements are only parsed inside a procedure"
    return state.procedure


def parse_factor(state: _ParserState) -> Generator[ParsingReport, None, Expression]:
    """Parse a factor, the highest precedence level.

    <factor> ::= NUMBER | STRING | TRUE | FALSE | '(' <bexpr> ')'
               | ('+' | '-') <factor> | '!' <factor>
               | IDENTIFIER [ '(' [ <bexpr> { ',' <bexpr> } ] ')' ]
    """
    token = _current(state)

    if token.type == TokenType.NUMBER:
        yield from _advance_token(state, f"Numeric literal {token.lexeme()}")
        return NumericConstant(token.value, token.position)  # type: ignore[arg-type]
    if token.type == TokenType.STRING_LITERAL:
        yield from _advance_token(state, "String literal")
        return StringLiteral(str(token.value), token.position)
    if token.type in (TokenType.TRUE, TokenType.FALSE):
        yield from _advance_token(state, f"Boolean literal {token.value}")
        return BooleanConstant(token.type == TokenType.TRUE, token.position)

    if token.type == TokenType.LPAREN:
        yield from _advance_token(state, "Opening parenthesis")
        expression = yield from parse_bexpr(state)
        yield from _expect_token(state, [TokenType.RPAREN])
        return expression

    if token.type in (TokenType.PLUS, TokenType.MINUS):
        yield from _advance_token(state, f"Unary {token.value}")
        operand = yield from parse_factor(state)
        return UnaryExpression(token.type, operand, token.position)
    if token.type == TokenType.NOT:
        yield from _advance_token(state, "Logical not")
        operand = yield from parse_factor(state)
        return LogicalNot(operand, token.position)

    if token.type == TokenType.IDENTIFIER:
        return (yield from parse_identifier(state))

    message = f"Unexpected '{token.lexeme()}' in expression."
    yield _new_report(state, message)
    raise ParsingError(message, token.position)


def parse_identifier(state: _ParserState) -> Generator[ParsingReport, None, Expression]:
    """Parse a variable reference or a function call.

    Function prototypes are checked before variables, so a call can name a
    function whose body comes later in the file.
    """
    token = yield from _expect_token(state, [TokenType.IDENTIFIER])
    name = str(token.value)
    prototype = state.module_builder.lookup_prototype(name)

    if prototype is None:
        if _current(state).type == TokenType.LPAREN:
            raise SemanticError(
                f"'{name}' - undefined function.",
                CompileErrorKind.UNDECLARED_SYMBOL,
                token.position,
                name,
            )
        return Variable(name, token.position)

    yield from _expect_token(state, [TokenType.LPAREN])
    arguments: list[Expression] = []
    if not (yield from _match_token(state, [TokenType.RPAREN])):
        while True:
            arguments.append((yield from parse_bexpr(state)))
            if (yield from _match_token(state, [TokenType.COMMA])):
                continue
            yield from _expect_token(state, [TokenType.RPAREN])
            break
    return CallExpression(name, arguments, prototype, token.position)


def parse_term(state: _ParserState) -> Generator[ParsingReport, None, Expression]:
    """Parse a multiplicative expression.
    <term> ::= <factor> (('*' | '/') <term>)?
    """
    left = yield from parse_factor(state)
    operator = yield from _match_token(state, [TokenType.MULTIPLY, TokenType.DIVIDE])
    if operator:
        right = yield from parse_term(state)
        return BinaryExpression(left, operator.type, right, operator.position)
    return left


def parse_rexpr(state: _ParserState) -> Generator[ParsingReport, None, Expression]:
    """Parse an additive expression.
    <rexpr> ::= <term> (('+' | '-') <rexpr>)?
    """
    left = yield from parse_term(state)
    operator = yield from _match_token(state, [TokenType.PLUS, TokenType.MINUS])
    if operator:
        right = yield from parse_rexpr(state)
        return BinaryExpression(left, operator.type, right, operator.position)
    return left


def parse_lexpr(state: _ParserState) -> Generator[ParsingReport, None, Expression]:
    """Parse a comparison.
    <lexpr> ::= <rexpr> (('==' | '<>' | '<' | '<=' | '>' | '>=') <lexpr>)?
    """
    left = yield from parse_rexpr(state)
    operator = yield from _match_token(state, RELATIONAL_TOKENS)
    if operator:
        right = yield from parse_lexpr(state)
        return RelationalExpression(left, operator.type, right, operator.position)
    return left


def parse_bexpr(state: _ParserState) -> Generator[ParsingReport, None, Expression]:
    """Parse a logical expression.
    <bexpr> ::= <lexpr> (('&&' | '||') <bexpr>)?

    Every binary level recurses into itself, so operators of equal precedence
    group to the right: `10-3-2` is `10-(3-2)`.
    """
    left = yield from parse_lexpr(state)
    operator = yield from _match_token(state, [TokenType.AND, TokenType.OR])
    if operator:
        right = yield from parse_bexpr(state)
        return LogicalExpression(left, operator.type, right, operator.position)
    return left


def parse_expression(state: _ParserState) -> Generator[ParsingReport, None, Expression]:
    """Parse and type check a full expression, then emit its subtree."""
    expression = yield from parse_bexpr(state)
    expression.type_check(_active_procedure(state).context)
    yield from _emit_ast_subtree(state, expression, state.visual_parent_stack[-1])
    return expression


def _parse_condition(
    state: _ParserState, keyword: str
) -> Generator[ParsingReport, None, Expression]:
    cond_id = yield from _visual_begin(state, "Condition")
    start = _current(state).position
    condition = yield from parse_expression(state)
    if not is_boolean(condition.get_type()):  # type: ignore[arg-type]
        raise SemanticError(
            f"{keyword} condition must be BOOLEAN, got {type_to_string(condition.get_type())}.",
            CompileErrorKind.TYPE_MISMATCH,
            start,
        )
    yield from _visual_end(state, cond_id)
    return condition


### Parsing statements ###


def parse_block(
    state: _ParserState, title: str
) -> Generator[ParsingReport, None, Statements]:
    """Parse statements up to (not including) the next block terminator."""
    block_id = yield from _visual_begin(state, title)
    position = _current(state).position
    statements = []
    while _current(state).type not in _BLOCK_TERMINATORS:
        statements.append((yield from parse_statement(state)))
    yield from _visual_end(state, block_id)
    block = Statements(statements, position, title)
    block.unique_id = block_id  # type: ignore[assignment]
    return block


def parse_variable_declaration(state: _ParserState) -> Generator[ParsingReport, None, Statement]:
    """<variable_decl> ::= ('NUMERIC' | 'STRING' | 'BOOLEAN') IDENTIFIER ';'"""
    node_id = yield from _visual_begin(state, "Declaration")
    type_token = yield from _advance_token(state, "Variable type")
    name_token = yield from _expect_token(state, [TokenType.IDENTIFIER])
    yield from _expect_token(state, [TokenType.SEMICOLON])

    info = SymbolInfo(str(name_token.value), type_from_keyword(type_token.type), None)
    _active_procedure(state).add_local(info)
    statement = VariableDeclaration(info, type_token.position)
    yield from _emit_ast_update(state, node_id, statement.unindented_representation())
    yield from _visual_end(state, node_id)
    statement.unique_id = node_id  # type: ignore[assignment]
    return statement


def parse_print_statement(state: _ParserState) -> Generator[ParsingReport, None, Statement]:
    """<print_stmt> ::= 'PRINT' <bexpr> ';'"""
    node_id = yield from _visual_begin(state, "Print Statement")
    print_token = yield from _expect_token(state, [TokenType.PRINT])
    expression = yield from parse_expression(state)
    yield from _expect_token(state, [TokenType.SEMICOLON])
    yield from _visual_end(state, node_id)
    statement = PrintStatement(expression, print_token.position)
    statement.unique_id = node_id  # type: ignore[assignment]
    return statement


def parse_assignment(state: _ParserState) -> Generator[ParsingReport, None, Statement]:
    """<assignment> ::= IDENTIFIER '=' <bexpr> ';'"""
    node_id = yield from _visual_begin(state, "Assignment")
    name_token = yield from _expect_token(state, [TokenType.IDENTIFIER])
    name = str(name_token.value)
    target = _active_procedure(state).context.table.get(name)
    if target is None:
        raise SemanticError(
            f"'{name}' - undefined symbol.",
            CompileErrorKind.UNDECLARED_SYMBOL,
            name_token.position,
            name,
        )
    variable = Variable(name, name_token.position)
    variable.static_type = target.type
    yield from _emit_ast_subtree(state, variable, node_id)

    assign_token = yield from _expect_token(state, [TokenType.ASSIGN])
    expression = yield from parse_expression(state)
    if not is_assignable(target.type, expression.get_type()):  # type: ignore[arg-type]
        raise SemanticError(
            f"cannot assign {type_to_string(expression.get_type())} "
            f"to {type_to_string(target.type)} variable '{name}'.",
            CompileErrorKind.TYPE_MISMATCH,
            assign_token.position,
            name,
        )
    yield from _expect_token(state, [TokenType.SEMICOLON])
    yield from _visual_end(state, node_id)
    statement = AssignmentStatement(variable, expression, name_token.position)
    statement.unique_id = node_id  # type: ignore[assignment]
    return statement


def parse_if_statement(state: _ParserState) -> Generator[ParsingReport, None, Statement]:
    """<if_stmt> ::= 'IF' <bexpr> 'THEN' <statements> ['ELSE' <statements>] 'ENDIF'"""
    node_id = yield from _visual_begin(state, "If Statement")
    if_token = yield from _expect_token(state, [TokenType.IF])
    condition = yield from _parse_condition(state, "IF")
    yield from _expect_token(state, [TokenType.THEN])

    then_statements = yield from parse_block(state, "Then Branch")
    else_statements = None
    if (yield from _match_token(state, [TokenType.ELSE])):
        else_statements = yield from parse_block(state, "Else Branch")
        yield from _expect_token(state, [TokenType.ENDIF])
    else:
        yield from _expect_token(state, [TokenType.ELSE, TokenType.ENDIF])

    yield from _visual_end(state, node_id)
    statement = IfStatement(condition, then_statements, if_token.position, else_statements)
    statement.unique_id = node_id  # type: ignore[assignment]
    return statement


def parse_while_statement(state: _ParserState) -> Generator[ParsingReport, None, Statement]:
    """<while_stmt> ::= 'WHILE' <bexpr> <statements> 'WEND'"""
    node_id = yield from _visual_begin(state, "While Statement")
    while_token = yield from _expect_token(state, [TokenType.WHILE])
    condition = yield from _parse_condition(state, "WHILE")
    body = yield from parse_block(state, "Body")
    yield from _expect_token(state, [TokenType.WEND])
    yield from _visual_end(state, node_id)
    statement = WhileStatement(condition, body, while_token.position)
    statement.unique_id = node_id  # type: ignore[assignment]
    return statement


def parse_return_statement(state: _ParserState) -> Generator[ParsingReport, None, Statement]:
    """<return_stmt> ::= 'RETURN' [<bexpr>] ';'"""
    node_id = yield from _visual_begin(state, "Return Statement")
    return_token = yield from _expect_token(state, [TokenType.RETURN])
    procedure = _active_procedure(state)

    expression = None
    if _current(state).type != TokenType.SEMICOLON:
        expression = yield from parse_expression(state)
        if expression.get_type() != procedure.return_type:
            raise SemanticError(
                f"function '{procedure.name}' must return {type_to_string(procedure.return_type)}, "
                f"got {type_to_string(expression.get_type())}.",
                CompileErrorKind.TYPE_MISMATCH,
                return_token.position,
            )
    yield from _expect_token(state, [TokenType.SEMICOLON])
    yield from _visual_end(state, node_id)
    statement = ReturnStatement(expression, procedure.return_type, return_token.position)
    statement.unique_id = node_id  # type: ignore[assignment]
    return statement


def parse_statement(state: _ParserState) -> Generator[ParsingReport, None, Statement]:
    """Parse a single statement. Statements include:
    - Variable declaration,
    - Print,
    - Assignment,
    - IF statement,
    - WHILE statement,
    - RETURN statement.
    """
    token = _current(state)

    if token.type in VARIABLE_TYPE_TOKENS:
        return (yield from parse_variable_declaration(state))
    if token.type == TokenType.PRINT:
        return (yield from parse_print_statement(state))
    if token.type == TokenType.IDENTIFIER:
        return (yield from parse_assignment(state))
    if token.type == TokenType.IF:
        return (yield from parse_if_statement(state))
    if token.type == TokenType.WHILE:
        return (yield from parse_while_statement(state))
    if token.type == TokenType.RETURN:
        return (yield from parse_return_statement(state))
    if token.type == TokenType.FUNCTION:
        message = "FUNCTION declarations are only allowed at the top level of a program made of functions."
    else:
        message = f"Unexpected '{token.lexeme()}' at the start of a statement."
    yield _new_report(state, message)
    raise ParsingError(message, token.position)


### Parsing procedures ###


def parse_function_declaration(state: _ParserState) -> Generator[ParsingReport, None, None]:
    """<function_decl> ::= 'FUNCTION' <type> IDENTIFIER '(' [<formal> {',' <formal>}] ')' <statements> 'END'

    <formal> ::= ('NUMERIC' | 'STRING' | 'BOOLEAN') IDENTIFIER
    """
    function_token = yield from _expect_token(state, [TokenType.FUNCTION])
    yield from _expect_token(state, _TYPE_KEYWORDS)
    name_token = yield from _expect_token(state, [TokenType.IDENTIFIER])
    prototype = state.module_builder.lookup_prototype(str(name_token.value))
    fn_node_id = yield from _visual_begin(state, f"FUNCTION {name_token.value}")

    yield from _expect_token(state, [TokenType.LPAREN])
    formals = []
    if _current(state).type != TokenType.RPAREN:
        while True:
            type_token = yield from _expect_token(state, _TYPE_KEYWORDS)
            formal_token = yield from _expect_token(state, [TokenType.IDENTIFIER])
            formals.append(SymbolInfo(str(formal_token.value), type_from_keyword(type_token.type)))
            if not (yield from _match_token(state, [TokenType.COMMA])):
                break
    yield from _expect_token(state, [TokenType.RPAREN])
    if prototype is None:
        # The prototype pass registers every well-formed header.
        raise ParsingError(
            f"Malformed header for function '{name_token.value}'.", function_token.position
        )

    builder = ProcedureBuilder(prototype, function_token.position)
    for formal in formals:
        builder.add_formal(formal)
        yield from _emit_ast_node(
            state, fn_node_id, f"Formal : {formal.name} : {type_to_string(formal.type)}", complete=True
        )
    state.procedure = builder

    body = yield from parse_block(state, "Body")
    yield from _expect_token(state, [TokenType.END])

    builder.statements = body.statements
    procedure = builder.get_procedure()
    procedure.body.unique_id = body.unique_id
    procedure.unique_id = fn_node_id  # type: ignore[assignment]
    yield from _emit_ast_update(state, fn_node_id, procedure.unindented_representation())
    yield from _visual_end(state, fn_node_id)
    state.module_builder.add_procedure(procedure)
    state.procedure = None


def parse_script(state: _ParserState) -> Generator[ParsingReport, None, None]:
    """Compile a bare statement list into an implicit `NUMERIC MAIN()`."""
    prototype = FunctionPrototype(ENTRY_POINT, SlangType.NUMERIC, ())
    state.module_builder.register_prototype(prototype)
    fn_node_id = yield from _visual_begin(state, str(prototype))
    builder = ProcedureBuilder(prototype, 0)
    state.procedure = builder

    body = yield from parse_block(state, "Body")
    yield from _expect_token(state, [TokenType.END_OF_INPUT])

    builder.statements = body.statements
    procedure = builder.get_procedure()
    procedure.body.unique_id = body.unique_id
    procedure.unique_id = fn_node_id  # type: ignore[assignment]
    yield from _visual_end(state, fn_node_id)
    state.module_builder.add_procedure(procedure)
    state.procedure = None


def parse_program(state: _ParserState) -> Generator[ParsingReport, None, Module]:
    """<program> ::= <function_decl> {<function_decl>} | <statements>"""
    if _current(state).type == TokenType.FUNCTION:
        while _current(state).type == TokenType.FUNCTION:
            yield from parse_function_declaration(state)
        yield from _expect_token(state, [TokenType.FUNCTION, TokenType.END_OF_INPUT])
    else:
        yield from parse_script(state)
    return state.module_builder.get_module()


def get_parsing_reporter(
    tokens: list[Token], prototypes: Iterable[FunctionPrototype]
) -> Generator[ParsingReport, None, Module]:
    """Parse tokens incrementally, yielding ParsingReport events.

    Expressions are type checked as soon as they are parsed, so the first
    type error aborts parsing like a syntax error would.

    The finished Module is the generator's return value (StopIteration.value).

    Raises:
        ParsingError: Syntax errors.
        SemanticError: Undeclared symbols and type mismatches.
        ParsingError: An expression or block nested deeper than the host stack allows.
    """
    state = _ParserState(tokens, prototypes)
    try:
        return (yield from parse_program(state))
    except RecursionError:
        raise ParsingError(
            "Expression nested too deeply.", _current(state).position
        ) from None


def parse(tokens: list[Token], prototypes: Iterable[FunctionPrototype]) -> Module:
    """Parse a list of tokens into a Module."""
    gen = get_parsing_reporter(tokens, prototypes)
    while True:
        try:
            next(gen)
        except StopIteration as done:
            return done.value


def compile(source_code: str) -> Module:
    """Compile Slang source text into an executable Module.

    Raises:
        CompileError: The first lexical, syntax, scope or type error. No
            partial Module is ever returned.
    """
    tokens = tokenize(normalize_source(source_code))
    prototypes = []
    for report in get_prototype_collector(tokens):
        if report.new_prototype is not None:
            prototypes.append(report.new_prototype)
    return parse(tokens, prototypes)
