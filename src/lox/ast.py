"""
Abstract Syntax Tree (AST) node definitions for Lox.

Nodes are immutable and compare/hash by identity (``eq=False``), so a node can
key the resolver's depth table for the lifetime of one resolve+run pass.
"""

from dataclasses import dataclass, fields
from typing import Optional, Tuple, Any
from abc import ABC
from .tokens import Token


# =============================================================================
# Base Classes
# =============================================================================

@dataclass(frozen=True, eq=False)
class AstNode(ABC):
    """Base class for all AST nodes."""

    def accept(self, visitor: "AstVisitor") -> Any:
        """Accept a visitor for traversal."""
        method_name = f"visit_{self.__class__.__name__}"
        method = getattr(visitor, method_name, visitor.generic_visit)
        return method(self)


class AstVisitor(ABC):
    """Base class for AST visitors."""

    def generic_visit(self, node: AstNode) -> Any:
        """Default visit method."""
        raise NotImplementedError(f"No visitor for {node.__class__.__name__}")


# =============================================================================
# Expression Nodes
# =============================================================================

@dataclass(frozen=True, eq=False)
class Expr(AstNode):
    """Base class for all expressions."""
    pass


@dataclass(frozen=True, eq=False)
class Literal(Expr):
    """A literal value: number, string, true, false or nil."""
    value: Any


@dataclass(frozen=True, eq=False)
class Grouping(Expr):
    """A parenthesized expression."""
    expression: Expr


@dataclass(frozen=True, eq=False)
class Unary(Expr):
    """A prefix operation (!x, -n)."""
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Binary(Expr):
    """An arithmetic, comparison or equality operation."""
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Logical(Expr):
    """A short-circuiting 'and' / 'or'."""
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True, eq=False)
class Variable(Expr):
    """A variable reference."""
    name: Token


@dataclass(frozen=True, eq=False)
class Assign(Expr):
    """Assignment to a variable."""
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class Call(Expr):
    """A call; ``paren`` is the closing parenthesis, used for error locations."""
    callee: Expr
    paren: Token
    arguments: Tuple[Expr, ...]


@dataclass(frozen=True, eq=False)
class Get(Expr):
    """Property access (obj.name)."""
    object: Expr
    name: Token


@dataclass(frozen=True, eq=False)
class Set(Expr):
    """Field assignment (obj.name = value)."""
    object: Expr
    name: Token
    value: Expr


@dataclass(frozen=True, eq=False)
class This(Expr):
    keyword: Token


@dataclass(frozen=True, eq=False)
class Super(Expr):
    """A superclass method reference (super.method)."""
    keyword: Token
    method: Token


# =============================================================================
# Statement Nodes
# =============================================================================

@dataclass(frozen=True, eq=False)
class Stmt(AstNode):
    """Base class for all statements."""
    pass


@dataclass(frozen=True, eq=False)
class ExpressionStatement(Stmt):
    """An expression evaluated for its side effects."""
    expression: Expr


@dataclass(frozen=True, eq=False)
class PrintStatement(Stmt):
    expression: Expr


@dataclass(frozen=True, eq=False)
class VarDecl(Stmt):
    """Variable declaration; a missing initializer means nil."""
    name: Token
    initializer: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class Block(Stmt):
    """A braced sequence of statements with its own scope."""
    statements: Tuple[Stmt, ...]


@dataclass(frozen=True, eq=False)
class IfStatement(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt] = None


@dataclass(frozen=True, eq=False)
class WhileStatement(Stmt):
    """A while loop. 'for' loops are desugared into this by the parser."""
    condition: Expr
    body: Stmt


@dataclass(frozen=True, eq=False)
class FunctionDecl(Stmt):
    """A named function, or a method inside a class body."""
    name: Token
    params: Tuple[Token, ...]
    body: Tuple[Stmt, ...]


@dataclass(frozen=True, eq=False)
class ReturnStatement(Stmt):
    keyword: Token
    value: Optional[Expr] = None


@dataclass(frozen=True, eq=False)
class ClassDecl(Stmt):
    """A class with an optional superclass and its methods."""
    name: Token
    superclass: Optional[Variable]
    methods: Tuple[FunctionDecl, ...]


# =============================================================================
# Visitor Helpers
# =============================================================================

class AstPrinter(AstVisitor):
    """Renders expressions in parenthesized prefix form, e.g. (* (- 1) 2)."""

    def print(self, expr: Expr) -> str:
        return expr.accept(self)

    def _parenthesize(self, name: str, *exprs: Expr) -> str:
        inner = " ".join(e.accept(self) for e in exprs)
        return f"({name} {inner})" if inner else f"({name})"

    def visit_Literal(self, expr: Literal) -> str:
        return _literal_text(expr.value)

    def visit_Grouping(self, expr: Grouping) -> str:
        return self._parenthesize("group", expr.expression)

    def visit_Unary(self, expr: Unary) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.right)

    def visit_Binary(self, expr: Binary) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def visit_Logical(self, expr: Logical) -> str:
        return self._parenthesize(expr.operator.lexeme, expr.left, expr.right)

    def visit_Variable(self, expr: Variable) -> str:
        return expr.name.lexeme

    def visit_Assign(self, expr: Assign) -> str:
        return self._parenthesize(f"= {expr.name.lexeme}", expr.value)

    def visit_Call(self, expr: Call) -> str:
        return self._parenthesize("call", expr.callee, *expr.arguments)

    def visit_Get(self, expr: Get) -> str:
        return self._parenthesize(f". {expr.name.lexeme}", expr.object)

    def visit_Set(self, expr: Set) -> str:
        return self._parenthesize(f"= .{expr.name.lexeme}", expr.object, expr.value)

    def visit_This(self, expr: This) -> str:
        return "this"

    def visit_Super(self, expr: Super) -> str:
        return f"(super {expr.method.lexeme})"


class RpnPrinter(AstVisitor):
    """Renders arithmetic expressions in reverse Polish notation.

    (1 + 2) * (4 - 3) prints as ``1 2 + 4 3 - *``. Groupings vanish since
    operand order already encodes precedence.
    """

    def print(self, expr: Expr) -> str:
        return expr.accept(self)

    def visit_Literal(self, expr: Literal) -> str:
        return _literal_text(expr.value)

    def visit_Grouping(self, expr: Grouping) -> str:
        return expr.expression.accept(self)

    def visit_Unary(self, expr: Unary) -> str:
        return f"{expr.right.accept(self)} {expr.operator.lexeme}"

    def visit_Binary(self, expr: Binary) -> str:
        return f"{expr.left.accept(self)} {expr.right.accept(self)} {expr.operator.lexeme}"

    def visit_Logical(self, expr: Logical) -> str:
        return f"{expr.left.accept(self)} {expr.right.accept(self)} {expr.operator.lexeme}"

    def visit_Variable(self, expr: Variable) -> str:
        return expr.name.lexeme


def _literal_text(value: Any) -> str:
    if value is None:
        return "nil"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class PrintVisitor(AstVisitor):
    """Debug visitor that prints the AST structure."""

    def __init__(self, indent: int = 0, out=print):
        self.indent = indent
        self.out = out

    def _print(self, text: str) -> None:
        self.out("  " * self.indent + text)

    def generic_visit(self, node: AstNode) -> None:
        self._print(f"{node.__class__.__name__}")
        for f in fields(node):
            value = getattr(node, f.name)
            if isinstance(value, AstNode):
                self._print(f"  {f.name}:")
                PrintVisitor(self.indent + 2, self.out).generic_visit(value)
            elif isinstance(value, tuple):
                self._print(f"  {f.name}: [")
                for item in value:
                    if isinstance(item, AstNode):
                        PrintVisitor(self.indent + 2, self.out).generic_visit(item)
                    elif isinstance(item, Token):
                        self._print(f"    {item.lexeme}")
                    else:
                        self._print(f"    {item!r}")
                self._print("  ]")
            elif isinstance(value, Token):
                self._print(f"  {f.name}: {value.lexeme}")
            else:
                self._print(f"  {f.name}: {value!r}")


def print_ast(node: AstNode, out=print) -> None:
    """Print an AST node for debugging."""
    PrintVisitor(out=out).generic_visit(node)
