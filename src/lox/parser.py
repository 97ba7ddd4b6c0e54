"""
Recursive descent parser for Lox.

Converts a token stream into a list of statement nodes. Errors are collected
and the parser re-synchronizes at the next statement boundary, so one pass
reports every syntax error in the input.
"""

from typing import List, Optional

from loguru import logger

from .tokens import Token, TokenType
from .ast import (
    # Expressions
    Expr, Literal, Grouping, Unary, Binary, Logical, Variable, Assign,
    Call, Get, Set, This, Super,
    # Statements
    Stmt, ExpressionStatement, PrintStatement, VarDecl, Block,
    IfStatement, WhileStatement, FunctionDecl, ReturnStatement, ClassDecl,
)
from .errors import (
    ParserError,
    DiagnosticCollector,
    error_unexpected_token,
    error_unexpected_eof,
    error_invalid_assignment_target,
    error_too_many,
)


MAX_ARGUMENTS = 255

# Tokens that start a new statement, used when recovering from an error
STATEMENT_STARTS = {
    TokenType.CLASS, TokenType.FUN, TokenType.VAR, TokenType.FOR,
    TokenType.IF, TokenType.WHILE, TokenType.PRINT, TokenType.RETURN,
}


class Parser:
    """
    Recursive descent parser for Lox.

    Usage:
        parser = Parser(tokens)
        statements = parser.parse_program()

    Precedence, lowest to highest:
        assignment (right-associative)
        or
        and
        == !=
        < > <= >=
        + -
        * /
        unary (! -)
        call, property access
    """

    def __init__(self, tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None):
        self.tokens = tokens
        self.filename = filename
        self.source = source
        self.pos = 0
        self.diagnostics = DiagnosticCollector()
        self._lines = source.splitlines() if source else []

    # =========================================================================
    # Token Navigation
    # =========================================================================

    def _current(self) -> Token:
        """Get current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def _is_at_end(self) -> bool:
        """Check if at end of tokens."""
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        """Check if current token is of given type."""
        return self._current().type == token_type

    def _advance(self) -> Token:
        """Consume and return current token."""
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *token_types: TokenType) -> Optional[Token]:
        """Consume token if it matches any of the given types."""
        if self._current().type in token_types:
            return self._advance()
        return None

    def _consume(self, token_type: TokenType, expected: str) -> Token:
        """Consume token of expected type, or raise error."""
        if self._check(token_type):
            return self._advance()
        raise self._error(expected)

    def _source_line(self, line: int) -> Optional[str]:
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return None

    def _error(self, expected: str) -> ParserError:
        """Build a parser error at the current token."""
        token = self._current()
        if token.type == TokenType.EOF:
            return error_unexpected_eof(expected, token.span)
        return error_unexpected_token(
            expected, token.lexeme, token.span, self._source_line(token.line)
        )

    def _report(self, error: ParserError) -> None:
        """Record an error that does not need to unwind the parse."""
        logger.debug("lox.parser.error code={} line={}", error.code, error.line)
        self.diagnostics.add_error(error)

    def _synchronize(self) -> None:
        """Discard tokens until a likely statement boundary."""
        self._advance()
        while not self._is_at_end():
            if self._previous().type == TokenType.SEMICOLON:
                return
            if self._current().type in STATEMENT_STARTS:
                return
            self._advance()

    # =========================================================================
    # Declarations
    # =========================================================================

    def _parse_declaration(self) -> Optional[Stmt]:
        try:
            if self._match(TokenType.CLASS):
                return self._parse_class_decl()
            if self._match(TokenType.FUN):
                return self._parse_function("function")
            if self._match(TokenType.VAR):
                return self._parse_var_decl()
            return self._parse_statement()
        except ParserError as e:
            self._report(e)
            self._synchronize()
            return None

    def _parse_class_decl(self) -> ClassDecl:
        name = self._consume(TokenType.IDENTIFIER, "class name")

        superclass = None
        if self._match(TokenType.LESS):
            superclass = Variable(self._consume(TokenType.IDENTIFIER, "superclass name"))

        self._consume(TokenType.LEFT_BRACE, "'{' before class body")

        methods = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            methods.append(self._parse_function("method"))

        self._consume(TokenType.RIGHT_BRACE, "'}' after class body")
        return ClassDecl(name=name, superclass=superclass, methods=tuple(methods))

    def _parse_function(self, kind: str) -> FunctionDecl:
        name = self._consume(TokenType.IDENTIFIER, f"{kind} name")
        self._consume(TokenType.LEFT_PAREN, f"'(' after {kind} name")

        params = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(params) >= MAX_ARGUMENTS:
                    token = self._current()
                    self._report(error_too_many(
                        "parameters", MAX_ARGUMENTS, token.span, self._source_line(token.line)
                    ))
                params.append(self._consume(TokenType.IDENTIFIER, "parameter name"))
                if not self._match(TokenType.COMMA):
                    break

        self._consume(TokenType.RIGHT_PAREN, "')' after parameters")
        self._consume(TokenType.LEFT_BRACE, f"'{{' before {kind} body")
        body = self._parse_block_statements()
        return FunctionDecl(name=name, params=tuple(params), body=tuple(body))

    def _parse_var_decl(self) -> VarDecl:
        name = self._consume(TokenType.IDENTIFIER, "variable name")

        initializer = None
        if self._match(TokenType.EQUAL):
            initializer = self._parse_expression()

        self._consume(TokenType.SEMICOLON, "';' after variable declaration")
        return VarDecl(name=name, initializer=initializer)

    # =========================================================================
    # Statements
    # =========================================================================

    def _parse_statement(self) -> Stmt:
        if self._match(TokenType.FOR):
            return self._parse_for_statement()
        if self._match(TokenType.IF):
            return self._parse_if_statement()
        if self._match(TokenType.PRINT):
            return self._parse_print_statement()
        if self._match(TokenType.RETURN):
            return self._parse_return_statement()
        if self._match(TokenType.WHILE):
            return self._parse_while_statement()
        if self._match(TokenType.LEFT_BRACE):
            return Block(statements=tuple(self._parse_block_statements()))
        return self._parse_expression_statement()

    def _parse_for_statement(self) -> Stmt:
        """Parse a C-style for loop, desugared into a while loop."""
        self._consume(TokenType.LEFT_PAREN, "'(' after 'for'")

        if self._match(TokenType.SEMICOLON):
            initializer = None
        elif self._match(TokenType.VAR):
            initializer = self._parse_var_decl()
        else:
            initializer = self._parse_expression_statement()

        condition = None
        if not self._check(TokenType.SEMICOLON):
            condition = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after loop condition")

        increment = None
        if not self._check(TokenType.RIGHT_PAREN):
            increment = self._parse_expression()
        self._consume(TokenType.RIGHT_PAREN, "')' after for clauses")

        body = self._parse_statement()

        if increment is not None:
            body = Block(statements=(body, ExpressionStatement(increment)))
        if condition is None:
            condition = Literal(True)
        body = WhileStatement(condition=condition, body=body)
        if initializer is not None:
            body = Block(statements=(initializer, body))
        return body

    def _parse_if_statement(self) -> IfStatement:
        self._consume(TokenType.LEFT_PAREN, "'(' after 'if'")
        condition = self._parse_expression()
        self._consume(TokenType.RIGHT_PAREN, "')' after if condition")

        then_branch = self._parse_statement()
        else_branch = None
        if self._match(TokenType.ELSE):
            else_branch = self._parse_statement()

        return IfStatement(condition=condition, then_branch=then_branch, else_branch=else_branch)

    def _parse_print_statement(self) -> PrintStatement:
        value = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after value")
        return PrintStatement(value)

    def _parse_return_statement(self) -> ReturnStatement:
        keyword = self._previous()
        value = None
        if not self._check(TokenType.SEMICOLON):
            value = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after return value")
        return ReturnStatement(keyword=keyword, value=value)

    def _parse_while_statement(self) -> WhileStatement:
        self._consume(TokenType.LEFT_PAREN, "'(' after 'while'")
        condition = self._parse_expression()
        self._consume(TokenType.RIGHT_PAREN, "')' after condition")
        body = self._parse_statement()
        return WhileStatement(condition=condition, body=body)

    def _parse_block_statements(self) -> List[Stmt]:
        """Parse statements up to the closing brace ('{' already consumed)."""
        statements = []
        while not self._check(TokenType.RIGHT_BRACE) and not self._is_at_end():
            stmt = self._parse_declaration()
            if stmt is not None:
                statements.append(stmt)

        self._consume(TokenType.RIGHT_BRACE, "'}' after block")
        return statements

    def _parse_expression_statement(self) -> ExpressionStatement:
        expr = self._parse_expression()
        self._consume(TokenType.SEMICOLON, "';' after expression")
        return ExpressionStatement(expr)

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_expression(self) -> Expr:
        return self._parse_assignment()

    def _parse_assignment(self) -> Expr:
        expr = self._parse_or()

        if self._match(TokenType.EQUAL):
            equals = self._previous()
            value = self._parse_assignment()

            if isinstance(expr, Variable):
                return Assign(name=expr.name, value=value)
            if isinstance(expr, Get):
                return Set(object=expr.object, name=expr.name, value=value)

            # Report without unwinding; the right-hand side parsed fine
            self._report(error_invalid_assignment_target(
                equals.span, self._source_line(equals.line)
            ))

        return expr

    def _parse_or(self) -> Expr:
        expr = self._parse_and()
        while self._match(TokenType.OR):
            operator = self._previous()
            right = self._parse_and()
            expr = Logical(left=expr, operator=operator, right=right)
        return expr

    def _parse_and(self) -> Expr:
        expr = self._parse_equality()
        while self._match(TokenType.AND):
            operator = self._previous()
            right = self._parse_equality()
            expr = Logical(left=expr, operator=operator, right=right)
        return expr

    def _parse_binary(self, operand, *operators: TokenType) -> Expr:
        """Parse a left-associative chain of one precedence level."""
        expr = operand()
        while self._match(*operators):
            operator = self._previous()
            right = operand()
            expr = Binary(left=expr, operator=operator, right=right)
        return expr

    def _parse_equality(self) -> Expr:
        return self._parse_binary(self._parse_comparison,
                                  TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def _parse_comparison(self) -> Expr:
        return self._parse_binary(self._parse_term,
                                  TokenType.GREATER, TokenType.GREATER_EQUAL,
                                  TokenType.LESS, TokenType.LESS_EQUAL)

    def _parse_term(self) -> Expr:
        return self._parse_binary(self._parse_factor, TokenType.MINUS, TokenType.PLUS)

    def _parse_factor(self) -> Expr:
        return self._parse_binary(self._parse_unary, TokenType.SLASH, TokenType.STAR)

    def _parse_unary(self) -> Expr:
        if self._match(TokenType.BANG, TokenType.MINUS):
            operator = self._previous()
            right = self._parse_unary()
            return Unary(operator=operator, right=right)
        return self._parse_call()

    def _parse_call(self) -> Expr:
        """Parse postfix call and property-access chains."""
        expr = self._parse_primary()

        while True:
            if self._match(TokenType.LEFT_PAREN):
                expr = self._finish_call(expr)
            elif self._match(TokenType.DOT):
                name = self._consume(TokenType.IDENTIFIER, "property name after '.'")
                expr = Get(object=expr, name=name)
            else:
                break

        return expr

    def _finish_call(self, callee: Expr) -> Call:
        arguments = []
        if not self._check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= MAX_ARGUMENTS:
                    token = self._current()
                    self._report(error_too_many(
                        "arguments", MAX_ARGUMENTS, token.span, self._source_line(token.line)
                    ))
                arguments.append(self._parse_expression())
                if not self._match(TokenType.COMMA):
                    break

        paren = self._consume(TokenType.RIGHT_PAREN, "')' after arguments")
        return Call(callee=callee, paren=paren, arguments=tuple(arguments))

    def _parse_primary(self) -> Expr:
        """Parse literals, names, this/super and parenthesized expressions."""
        if self._match(TokenType.FALSE):
            return Literal(False)
        if self._match(TokenType.TRUE):
            return Literal(True)
        if self._match(TokenType.NIL):
            return Literal(None)

        if self._match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self._previous().literal)

        if self._match(TokenType.SUPER):
            keyword = self._previous()
            self._consume(TokenType.DOT, "'.' after 'super'")
            method = self._consume(TokenType.IDENTIFIER, "superclass method name")
            return Super(keyword=keyword, method=method)

        if self._match(TokenType.THIS):
            return This(self._previous())

        if self._match(TokenType.IDENTIFIER):
            return Variable(self._previous())

        if self._match(TokenType.LEFT_PAREN):
            expr = self._parse_expression()
            self._consume(TokenType.RIGHT_PAREN, "')' after expression")
            return Grouping(expr)

        raise self._error("expression")

    # =========================================================================
    # Entry Points
    # =========================================================================

    def parse_program(self) -> List[Stmt]:
        """Parse a complete program; errors are left in ``self.diagnostics``.

        Parsing gives up once ``diagnostics.max_errors`` errors have been
        recorded.
        """
        statements = []
        while not self._is_at_end():
            if self.diagnostics.should_stop:
                logger.debug("lox.parser.gave_up errors={}", self.diagnostics.error_count)
                break
            stmt = self._parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        return statements

    def parse_expression(self) -> Expr:
        """Parse a single expression (used by tooling such as the RPN printer)."""
        return self._parse_expression()


def parse(tokens: List[Token], filename: Optional[str] = None, source: Optional[str] = None) -> List[Stmt]:
    """
    Convenience function to parse tokens into a list of statements.

    Args:
        tokens: List of tokens from the lexer
        filename: Optional filename for error messages
        source: Optional original source code for error excerpts

    Returns:
        The program's top-level statements

    Raises:
        ParserError: If any syntax error was recorded
    """
    parser = Parser(tokens, filename, source)
    statements = parser.parse_program()
    parser.diagnostics.raise_if_errors(ParserError)
    return statements
