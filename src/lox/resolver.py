"""
Static resolver for Lox.

Walks the AST once before execution and records, for every local variable
reference, how many scopes lie between the use and the declaration. The
interpreter consumes that table; any reference missing from it is global.

The resolver opens a scope wherever the interpreter creates an Environment:
each block, each function body (parameters and body share one scope), the
``super`` frame of a subclass and the ``this`` frame of every class body.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional

from loguru import logger

from .tokens import Token
from .ast import (
    AstVisitor,
    Expr, Literal, Grouping, Unary, Binary, Logical, Variable, Assign,
    Call, Get, Set, This, Super,
    Stmt, ExpressionStatement, PrintStatement, VarDecl, Block,
    IfStatement, WhileStatement, FunctionDecl, ReturnStatement, ClassDecl,
)
from .errors import (
    Diagnostic, DiagnosticCollector, ResolveError,
    error_already_declared,
    error_read_in_initializer,
    error_top_level_return,
    error_return_from_initializer,
    error_this_outside_class,
    error_super_outside_class,
    error_super_without_superclass,
    error_inherit_from_self,
    warning_unused_local,
)


class FunctionType(Enum):
    NONE = auto()
    FUNCTION = auto()
    INITIALIZER = auto()
    METHOD = auto()


class ClassType(Enum):
    NONE = auto()
    CLASS = auto()
    SUBCLASS = auto()


@dataclass
class _Local:
    """Resolver-side record of one local binding."""
    token: Optional[Token]
    defined: bool = False
    used: bool = False
    warn_unused: bool = False


@dataclass
class ResolveResult:
    """Result of resolving a program."""
    locals: Dict[Expr, int]
    diagnostics: List[Diagnostic] = field(default_factory=list)
    has_errors: bool = False
    has_warnings: bool = False


class Resolver(AstVisitor):
    """
    Computes scope depths for local variable references.

    Also rejects programs that are syntactically valid but meaningless:
    redeclared locals, self-referencing initializers, stray return, this or
    super outside a class, and a class inheriting from itself.
    """

    def __init__(self, source: Optional[str] = None):
        self.locals: Dict[Expr, int] = {}
        self.diagnostics = DiagnosticCollector()
        self._scopes: List[Dict[str, _Local]] = []
        self._current_function = FunctionType.NONE
        self._current_class = ClassType.NONE
        self._lines = source.splitlines() if source else []

    def resolve(self, statements: List[Stmt]) -> ResolveResult:
        """Resolve a complete program."""
        self._resolve_statements(statements)
        logger.debug("lox.resolver.done locals={} errors={}",
                     len(self.locals), self.diagnostics.error_count)
        return ResolveResult(
            locals=self.locals,
            diagnostics=self.diagnostics.diagnostics,
            has_errors=self.diagnostics.has_errors,
            has_warnings=self.diagnostics.has_warnings,
        )

    # =========================================================================
    # Scope Handling
    # =========================================================================

    def _source_line(self, token: Token) -> Optional[str]:
        line = token.line
        if 1 <= line <= len(self._lines):
            return self._lines[line - 1]
        return None

    def _begin_scope(self) -> Dict[str, _Local]:
        scope: Dict[str, _Local] = {}
        self._scopes.append(scope)
        return scope

    def _end_scope(self) -> None:
        scope = self._scopes.pop()
        for name, local in scope.items():
            if local.warn_unused and not local.used:
                self.diagnostics.add(warning_unused_local(
                    name, local.token.span, self._source_line(local.token)
                ))

    def _declare(self, name: Token, warn_unused: bool = False) -> None:
        if not self._scopes:
            return
        scope = self._scopes[-1]
        if name.lexeme in scope:
            self.diagnostics.add_error(error_already_declared(
                name.lexeme, name.span, self._source_line(name)
            ))
        scope[name.lexeme] = _Local(name, warn_unused=warn_unused)

    def _define(self, name: Token) -> None:
        if not self._scopes:
            return
        self._scopes[-1][name.lexeme].defined = True

    def _resolve_local(self, expr: Expr, name: str) -> None:
        """Record the hop count to the innermost scope declaring name."""
        for depth, scope in enumerate(reversed(self._scopes)):
            if name in scope:
                scope[name].used = True
                self.locals[expr] = depth
                return
        # Not found: global

    def _resolve_statements(self, statements) -> None:
        for stmt in statements:
            stmt.accept(self)

    def _resolve_function(self, function: FunctionDecl, function_type: FunctionType) -> None:
        enclosing = self._current_function
        self._current_function = function_type

        self._begin_scope()
        for param in function.params:
            self._declare(param)
            self._define(param)
        self._resolve_statements(function.body)
        self._end_scope()

        self._current_function = enclosing

    # =========================================================================
    # Statements
    # =========================================================================

    def visit_Block(self, stmt: Block) -> None:
        self._begin_scope()
        self._resolve_statements(stmt.statements)
        self._end_scope()

    def visit_ClassDecl(self, stmt: ClassDecl) -> None:
        enclosing = self._current_class
        self._current_class = ClassType.CLASS

        self._declare(stmt.name)
        self._define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.diagnostics.add_error(error_inherit_from_self(
                    stmt.name.lexeme, stmt.superclass.name.span,
                    self._source_line(stmt.superclass.name)
                ))
            self._current_class = ClassType.SUBCLASS
            stmt.superclass.accept(self)

            self._begin_scope()["super"] = _Local(None, defined=True)

        self._begin_scope()["this"] = _Local(None, defined=True)

        for method in stmt.methods:
            function_type = FunctionType.METHOD
            if method.name.lexeme == "init":
                function_type = FunctionType.INITIALIZER
            self._resolve_function(method, function_type)

        self._end_scope()
        if stmt.superclass is not None:
            self._end_scope()

        self._current_class = enclosing

    def visit_ExpressionStatement(self, stmt: ExpressionStatement) -> None:
        stmt.expression.accept(self)

    def visit_FunctionDecl(self, stmt: FunctionDecl) -> None:
        # Defined before the body so the function can refer to itself
        self._declare(stmt.name)
        self._define(stmt.name)
        self._resolve_function(stmt, FunctionType.FUNCTION)

    def visit_IfStatement(self, stmt: IfStatement) -> None:
        stmt.condition.accept(self)
        stmt.then_branch.accept(self)
        if stmt.else_branch is not None:
            stmt.else_branch.accept(self)

    def visit_PrintStatement(self, stmt: PrintStatement) -> None:
        stmt.expression.accept(self)

    def visit_ReturnStatement(self, stmt: ReturnStatement) -> None:
        if self._current_function == FunctionType.NONE:
            self.diagnostics.add_error(error_top_level_return(
                stmt.keyword.span, self._source_line(stmt.keyword)
            ))

        if stmt.value is not None:
            if self._current_function == FunctionType.INITIALIZER:
                self.diagnostics.add_error(error_return_from_initializer(
                    stmt.keyword.span, self._source_line(stmt.keyword)
                ))
            stmt.value.accept(self)

    def visit_VarDecl(self, stmt: VarDecl) -> None:
        self._declare(stmt.name, warn_unused=True)
        if stmt.initializer is not None:
            stmt.initializer.accept(self)
        self._define(stmt.name)

    def visit_WhileStatement(self, stmt: WhileStatement) -> None:
        stmt.condition.accept(self)
        stmt.body.accept(self)

    # =========================================================================
    # Expressions
    # =========================================================================

    def visit_Assign(self, expr: Assign) -> None:
        expr.value.accept(self)
        self._resolve_local(expr, expr.name.lexeme)

    def visit_Binary(self, expr: Binary) -> None:
        expr.left.accept(self)
        expr.right.accept(self)

    def visit_Call(self, expr: Call) -> None:
        expr.callee.accept(self)
        for argument in expr.arguments:
            argument.accept(self)

    def visit_Get(self, expr: Get) -> None:
        expr.object.accept(self)

    def visit_Grouping(self, expr: Grouping) -> None:
        expr.expression.accept(self)

    def visit_Literal(self, expr: Literal) -> None:
        pass

    def visit_Logical(self, expr: Logical) -> None:
        expr.left.accept(self)
        expr.right.accept(self)

    def visit_Set(self, expr: Set) -> None:
        expr.value.accept(self)
        expr.object.accept(self)

    def visit_Super(self, expr: Super) -> None:
        if self._current_class == ClassType.NONE:
            self.diagnostics.add_error(error_super_outside_class(
                expr.keyword.span, self._source_line(expr.keyword)
            ))
        elif self._current_class != ClassType.SUBCLASS:
            self.diagnostics.add_error(error_super_without_superclass(
                expr.keyword.span, self._source_line(expr.keyword)
            ))
        self._resolve_local(expr, "super")

    def visit_This(self, expr: This) -> None:
        if self._current_class == ClassType.NONE:
            self.diagnostics.add_error(error_this_outside_class(
                expr.keyword.span, self._source_line(expr.keyword)
            ))
            return
        self._resolve_local(expr, "this")

    def visit_Unary(self, expr: Unary) -> None:
        expr.right.accept(self)

    def visit_Variable(self, expr: Variable) -> None:
        if self._scopes:
            local = self._scopes[-1].get(expr.name.lexeme)
            if local is not None and not local.defined:
                self.diagnostics.add_error(error_read_in_initializer(
                    expr.name.lexeme, expr.name.span, self._source_line(expr.name)
                ))
        self._resolve_local(expr, expr.name.lexeme)


def resolve(statements: List[Stmt], source: Optional[str] = None) -> Dict[Expr, int]:
    """
    Convenience function to resolve a parsed program.

    Args:
        statements: The program's top-level statements
        source: Optional original source code for error excerpts

    Returns:
        Mapping from expression node to scope depth

    Raises:
        ResolveError: If any resolution error was recorded
    """
    resolver = Resolver(source)
    result = resolver.resolve(statements)
    resolver.diagnostics.raise_if_errors(ResolveError)
    return result.locals
