"""
Tree-walking interpreter for Lox.

Evaluates AST nodes against a chain of Environments, using the resolver's
depth table to address local variables directly.
"""

import math
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from loguru import logger

from ..tokens import Token, TokenType
from ..ast import (
    AstVisitor,
    Expr, Literal, Grouping, Unary, Binary, Logical, Variable, Assign,
    Call, Get, Set, This, Super,
    Stmt, ExpressionStatement, PrintStatement, VarDecl, Block,
    IfStatement, WhileStatement, FunctionDecl, ReturnStatement, ClassDecl,
)
from ..errors import (
    Diagnostic, LoxError, LoxRuntimeError,
    error_operand_must_be_number,
    error_operands_must_be_numbers,
    error_operands_must_be_numbers_or_strings,
    error_not_callable,
    error_arity_mismatch,
    error_only_instances_have_properties,
    error_only_instances_have_fields,
    error_superclass_must_be_class,
    error_undefined_property,
    error_stack_overflow,
)
from .environment import Environment
from .callables import LoxCallable, LoxFunction, ReturnSignal
from .objects import LoxClass, LoxInstance
from .builtins import BuiltinRegistry, get_builtin_registry
from .values import is_number, is_string, is_truthy, is_equal, stringify


MAX_CALL_DEPTH = 1500

# Upper bound on Python frames one Lox call can use in ordinary code
FRAMES_PER_CALL = 16


def _write_stdout(line: str) -> None:
    sys.stdout.write(line + "\n")


def _ensure_recursion_limit(limit: int) -> None:
    """Raise the host recursion limit to at least limit; never lower it."""
    if sys.getrecursionlimit() < limit:
        sys.setrecursionlimit(limit)
        logger.debug("lox.interpreter.recursion_limit limit={}", limit)


@dataclass
class ExecutionResult:
    """Result of running a program."""
    success: bool
    output: List[str] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    error: Optional[LoxError] = None

    @property
    def error_message(self) -> Optional[str]:
        if self.error is None:
            return None
        return str(self.error)

    @property
    def is_runtime_error(self) -> bool:
        return isinstance(self.error, LoxRuntimeError)


class Interpreter(AstVisitor):
    """
    Tree-walking interpreter for Lox.

    One interpreter owns one global environment, so a REPL can feed it
    successive programs that share state.
    """

    def __init__(self, output: Optional[Callable[[str], None]] = None,
                 registry: Optional[BuiltinRegistry] = None,
                 max_call_depth: int = MAX_CALL_DEPTH):
        """
        Initialize the interpreter.

        Args:
            output: Receives each printed line (default: write to stdout)
            registry: Natives to seed into the global environment
            max_call_depth: Nested Lox calls allowed before a stack overflow error
        """
        self.output = output or _write_stdout
        self.globals = Environment()
        self.environment = self.globals
        self.locals: Dict[Expr, int] = {}
        self._source_lines: List[str] = []
        self.max_call_depth = max_call_depth
        self._call_depth = 0

        _ensure_recursion_limit(max_call_depth * FRAMES_PER_CALL)

        (registry or get_builtin_registry()).install(self.globals)

    # =========================================================================
    # Entry Points
    # =========================================================================

    def resolve(self, expr: Expr, depth: int) -> None:
        """Record the scope depth of a local variable reference."""
        self.locals[expr] = depth

    def load_locals(self, locals_map: Dict[Expr, int]) -> None:
        """Merge a resolver depth table into this interpreter's."""
        self.locals.update(locals_map)

    def interpret(self, statements: Iterable[Stmt],
                  source: Optional[str] = None) -> Optional[LoxRuntimeError]:
        """
        Execute a program's top-level statements in order.

        Returns the runtime error that stopped execution, or None. The error
        is surfaced to the caller rather than raised.
        """
        self._source_lines = source.splitlines() if source else []
        try:
            for stmt in statements:
                self.execute(stmt)
        except LoxRuntimeError as e:
            self._attach_source_line(e.diagnostic)
            logger.debug("lox.interpreter.runtime_error code={} line={}", e.code, e.line)
            return e
        return None

    def _attach_source_line(self, diagnostic: Diagnostic) -> None:
        line = diagnostic.line
        if diagnostic.source_line is None and 1 <= line <= len(self._source_lines):
            diagnostic.source_line = self._source_lines[line - 1]

    # =========================================================================
    # Statement Execution
    # =========================================================================

    def execute(self, stmt: Stmt) -> None:
        stmt.accept(self)

    @contextmanager
    def _scope(self, environment: Environment):
        """Make environment current for the duration of the with-block."""
        previous = self.environment
        self.environment = environment
        try:
            yield environment
        finally:
            self.environment = previous

    def execute_block(self, statements: Iterable[Stmt], environment: Environment) -> None:
        """Run statements in environment, restoring the previous one on any exit."""
        with self._scope(environment):
            for stmt in statements:
                self.execute(stmt)

    def visit_Block(self, stmt: Block) -> None:
        self.execute_block(stmt.statements, Environment(self.environment))

    def visit_ClassDecl(self, stmt: ClassDecl) -> None:
        superclass = None
        if stmt.superclass is not None:
            superclass = self.evaluate(stmt.superclass)
            if not isinstance(superclass, LoxClass):
                raise error_superclass_must_be_class(stmt.superclass.name)

        # Bound first so methods can refer to the class by name
        self.environment.define(stmt.name.lexeme, None)

        method_env = self.environment
        if superclass is not None:
            method_env = Environment(self.environment)
            method_env.define("super", superclass)

        methods = {
            method.name.lexeme: LoxFunction(method, method_env, method.name.lexeme == "init")
            for method in stmt.methods
        }
        klass = LoxClass(stmt.name.lexeme, superclass, methods)

        self.environment.assign(stmt.name, klass)
        logger.debug("lox.interpreter.class_defined name={} superclass={} methods={}",
                     klass.name, superclass.name if superclass else None, len(methods))

    def visit_ExpressionStatement(self, stmt: ExpressionStatement) -> None:
        self.evaluate(stmt.expression)

    def visit_FunctionDecl(self, stmt: FunctionDecl) -> None:
        function = LoxFunction(stmt, self.environment)
        self.environment.define(stmt.name.lexeme, function)

    def visit_IfStatement(self, stmt: IfStatement) -> None:
        if is_truthy(self.evaluate(stmt.condition)):
            self.execute(stmt.then_branch)
        elif stmt.else_branch is not None:
            self.execute(stmt.else_branch)

    def visit_PrintStatement(self, stmt: PrintStatement) -> None:
        value = self.evaluate(stmt.expression)
        self.output(stringify(value))

    def visit_ReturnStatement(self, stmt: ReturnStatement) -> None:
        value = None
        if stmt.value is not None:
            value = self.evaluate(stmt.value)
        raise ReturnSignal(value)

    def visit_VarDecl(self, stmt: VarDecl) -> None:
        value = None
        if stmt.initializer is not None:
            value = self.evaluate(stmt.initializer)
        self.environment.define(stmt.name.lexeme, value)

    def visit_WhileStatement(self, stmt: WhileStatement) -> None:
        while is_truthy(self.evaluate(stmt.condition)):
            self.execute(stmt.body)

    # =========================================================================
    # Expression Evaluation
    # =========================================================================

    def evaluate(self, expr: Expr) -> Any:
        """Evaluate an expression to produce a value."""
        return expr.accept(self)

    def visit_Literal(self, expr: Literal) -> Any:
        return expr.value

    def visit_Grouping(self, expr: Grouping) -> Any:
        return self.evaluate(expr.expression)

    def visit_Unary(self, expr: Unary) -> Any:
        right = self.evaluate(expr.right)

        if expr.operator.type == TokenType.BANG:
            return not is_truthy(right)
        if expr.operator.type == TokenType.MINUS:
            if not is_number(right):
                raise error_operand_must_be_number(expr.operator)
            return -right

        raise RuntimeError(f"Unknown unary operator: {expr.operator.type}")

    def visit_Binary(self, expr: Binary) -> Any:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        op = expr.operator.type

        if op == TokenType.EQUAL_EQUAL:
            return is_equal(left, right)
        if op == TokenType.BANG_EQUAL:
            return not is_equal(left, right)

        if op == TokenType.PLUS:
            if is_number(left) and is_number(right):
                return left + right
            if is_string(left) and is_string(right):
                return left + right
            raise error_operands_must_be_numbers_or_strings(expr.operator)

        self._check_number_operands(expr.operator, left, right)

        if op == TokenType.MINUS:
            return left - right
        if op == TokenType.STAR:
            return left * right
        if op == TokenType.SLASH:
            return _divide(left, right)
        if op == TokenType.GREATER:
            return left > right
        if op == TokenType.GREATER_EQUAL:
            return left >= right
        if op == TokenType.LESS:
            return left < right
        if op == TokenType.LESS_EQUAL:
            return left <= right

        raise RuntimeError(f"Unknown binary operator: {op}")

    def visit_Logical(self, expr: Logical) -> Any:
        left = self.evaluate(expr.left)

        if expr.operator.type == TokenType.OR:
            if is_truthy(left):
                return left
        elif not is_truthy(left):
            return left

        return self.evaluate(expr.right)

    def visit_Variable(self, expr: Variable) -> Any:
        return self._look_up_variable(expr.name, expr)

    def visit_Assign(self, expr: Assign) -> Any:
        value = self.evaluate(expr.value)

        depth = self.locals.get(expr)
        if depth is not None:
            self.environment.assign_at(depth, expr.name.lexeme, value)
        else:
            self.globals.assign(expr.name, value)

        return value

    def visit_Call(self, expr: Call) -> Any:
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(argument) for argument in expr.arguments]

        if not isinstance(callee, LoxCallable):
            raise error_not_callable(expr.paren)
        if len(arguments) != callee.arity():
            raise error_arity_mismatch(callee.arity(), len(arguments), expr.paren)

        if self._call_depth >= self.max_call_depth:
            raise error_stack_overflow(self.max_call_depth, expr.paren)

        self._call_depth += 1
        try:
            return callee.call(self, arguments)
        except RecursionError:
            # Deeply nested blocks can exhaust the host stack before the depth limit
            raise error_stack_overflow(self.max_call_depth, expr.paren) from None
        finally:
            self._call_depth -= 1

    def visit_Get(self, expr: Get) -> Any:
        obj = self.evaluate(expr.object)
        if isinstance(obj, LoxInstance):
            return obj.get(expr.name)
        raise error_only_instances_have_properties(expr.name)

    def visit_Set(self, expr: Set) -> Any:
        obj = self.evaluate(expr.object)
        if not isinstance(obj, LoxInstance):
            raise error_only_instances_have_fields(expr.name)

        value = self.evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    def visit_This(self, expr: This) -> Any:
        return self._look_up_variable(expr.keyword, expr)

    def visit_Super(self, expr: Super) -> Any:
        depth = self.locals[expr]
        superclass = self.environment.get_at(depth, "super")
        # The 'this' frame is always the immediate child of the 'super' frame
        instance = self.environment.get_at(depth - 1, "this")

        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise error_undefined_property(expr.method)
        return method.bind(instance)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _look_up_variable(self, name: Token, expr: Expr) -> Any:
        depth = self.locals.get(expr)
        if depth is not None:
            return self.environment.get_at(depth, name.lexeme)
        return self.globals.get(name)

    @staticmethod
    def _check_number_operands(operator: Token, left: Any, right: Any) -> None:
        if is_number(left) and is_number(right):
            return
        raise error_operands_must_be_numbers(operator)


def _divide(left: float, right: float) -> float:
    """IEEE-754 division: x/0 is +-inf and 0/0 is nan instead of an exception."""
    try:
        return left / right
    except ZeroDivisionError:
        if left == 0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)


def run_source(
    source: str,
    filename: Optional[str] = None,
    output: Optional[Callable[[str], None]] = None,
    interpreter: Optional[Interpreter] = None,
) -> ExecutionResult:
    """
    High-level API to scan, parse, resolve and run Lox source in one call.

        from lox import run_source

        result = run_source('print "hello";')
        if result.success:
            print(result.output)        # ['hello']
        else:
            print(result.error_message)

    Args:
        source: Lox source code
        filename: Optional filename for diagnostics
        output: Also receives each printed line as it is produced
        interpreter: Reuse an existing interpreter (its globals persist)

    Returns:
        ExecutionResult with printed lines, diagnostics and any error
    """
    from ..lexer import Lexer
    from ..parser import Parser
    from ..resolver import Resolver
    from ..errors import DiagnosticCollector, LexerError, ParserError, ResolveError

    printed: List[str] = []

    def collect(line: str) -> None:
        printed.append(line)
        if output is not None:
            output(line)

    diagnostics = DiagnosticCollector()

    lexer = Lexer(source, filename)
    tokens = lexer.tokenize()
    diagnostics.extend(lexer.diagnostics)

    parser = Parser(tokens, filename, source)
    statements = parser.parse_program()
    diagnostics.extend(parser.diagnostics)

    if diagnostics.has_errors:
        error_class = LexerError if lexer.diagnostics.has_errors else ParserError
        return ExecutionResult(
            success=False,
            diagnostics=diagnostics.diagnostics,
            error=error_class(diagnostics.errors[0]),
        )

    resolver = Resolver(source)
    resolved = resolver.resolve(statements)
    diagnostics.extend(resolver.diagnostics)
    if resolved.has_errors:
        return ExecutionResult(
            success=False,
            diagnostics=diagnostics.diagnostics,
            error=ResolveError(diagnostics.errors[0]),
        )

    if interpreter is None:
        interpreter = Interpreter(output=collect)
        previous_output = None
    else:
        previous_output = interpreter.output

        def tee(line: str) -> None:
            printed.append(line)
            previous_output(line)

        interpreter.output = tee

    try:
        interpreter.load_locals(resolved.locals)
        error = interpreter.interpret(statements, source)
    finally:
        if previous_output is not None:
            interpreter.output = previous_output

    if error is not None:
        diagnostics.add_error(error)
        return ExecutionResult(
            success=False,
            output=printed,
            diagnostics=diagnostics.diagnostics,
            error=error,
        )

    return ExecutionResult(success=True, output=printed, diagnostics=diagnostics.diagnostics)
