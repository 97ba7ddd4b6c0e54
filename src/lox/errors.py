"""
Lox exceptions and diagnostics.

Error code ranges:
- E0xx: Lexer errors
- E1xx: Parser errors
- E3xx: Resolver errors
- E4xx: Runtime errors
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List
from .tokens import SourceSpan, Token


class ErrorSeverity(Enum):
    """Severity levels for diagnostics."""
    ERROR = "error"
    WARNING = "warning"


@dataclass
class Diagnostic:
    """A single diagnostic message (error, warning, etc.)."""
    code: str                       # E001, E101, etc.
    message: str                    # Human-readable message
    severity: ErrorSeverity
    span: SourceSpan
    source_line: Optional[str] = None   # The actual line of source code
    hints: List[str] = field(default_factory=list)
    related: List["Diagnostic"] = field(default_factory=list)

    @property
    def line(self) -> int:
        return self.span.start.line

    def format(self, show_source: bool = True) -> str:
        """Format the diagnostic for display."""
        parts = []

        # Header: location: severity[code]: message
        loc = f"{self.span.start}"
        parts.append(f"{loc}: {self.severity.value}[{self.code}]: {self.message}")

        # Source line with caret
        if show_source and self.source_line is not None:
            parts.append("  |")
            line_num = str(self.span.start.line)
            parts.append(f"{line_num:>3} | {self.source_line}")

            col = self.span.start.column
            end_col = self.span.end.column if self.span.start.line == self.span.end.line else len(self.source_line) + 1
            underline_len = max(1, end_col - col)
            parts.append(f"    | {' ' * (col - 1)}{'^' * underline_len}")

        for hint in self.hints:
            parts.append(f"    = hint: {hint}")

        for related in self.related:
            parts.append(f"    --> {related.span.start}: {related.message}")

        return "\n".join(parts)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict for tooling integration."""
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "range": {
                "start": {
                    "line": self.span.start.line,
                    "column": self.span.start.column,
                    "offset": self.span.start.offset,
                },
                "end": {
                    "line": self.span.end.line,
                    "column": self.span.end.column,
                    "offset": self.span.end.offset,
                },
            },
            "hints": self.hints,
            "related": [r.to_json() for r in self.related],
        }


class LoxError(Exception):
    """Base exception for Lox errors."""

    def __init__(self, diagnostic: Diagnostic):
        self.diagnostic = diagnostic
        super().__init__(diagnostic.message)

    @property
    def code(self) -> str:
        return self.diagnostic.code

    @property
    def line(self) -> int:
        return self.diagnostic.line

    def __str__(self) -> str:
        return self.diagnostic.format()


class LexerError(LoxError):
    """Error during lexical analysis (E0xx)."""
    pass


class ParserError(LoxError):
    """Error during parsing (E1xx)."""
    pass


class ResolveError(LoxError):
    """Error during static resolution (E3xx)."""
    pass


class LoxRuntimeError(LoxError):
    """Error while evaluating a program (E4xx)."""

    def __init__(self, diagnostic: Diagnostic, token: Token):
        self.token = token
        super().__init__(diagnostic)


# --- Lexer error codes ---

def error_unexpected_character(char: str, span: SourceSpan, source_line: str = None) -> LexerError:
    """E001: Unexpected character."""
    diag = Diagnostic(
        code="E001",
        message=f"unexpected character '{char}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


def error_unterminated_string(span: SourceSpan, source_line: str = None) -> LexerError:
    """E002: Unterminated string literal."""
    diag = Diagnostic(
        code="E002",
        message="unterminated string",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
        hints=["string literals must be closed with a matching '\"'"],
    )
    return LexerError(diag)


def error_unterminated_comment(span: SourceSpan, source_line: str = None) -> LexerError:
    """E004: Unterminated block comment."""
    diag = Diagnostic(
        code="E004",
        message="unterminated block comment (expected closing */)",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return LexerError(diag)


# --- Parser error codes ---

def error_unexpected_token(expected: str, found: str, span: SourceSpan,
                           source_line: str = None) -> ParserError:
    """E101: Unexpected token."""
    diag = Diagnostic(
        code="E101",
        message=f"expected {expected}, found '{found}'",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_unexpected_eof(expected: str, span: SourceSpan) -> ParserError:
    """E102: Unexpected end of file."""
    diag = Diagnostic(
        code="E102",
        message=f"unexpected end of file, expected {expected}",
        severity=ErrorSeverity.ERROR,
        span=span,
    )
    return ParserError(diag)


def error_invalid_assignment_target(span: SourceSpan, source_line: str = None) -> ParserError:
    """E103: Invalid assignment target."""
    diag = Diagnostic(
        code="E103",
        message="invalid assignment target",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


def error_too_many(what: str, limit: int, span: SourceSpan,
                   source_line: str = None) -> ParserError:
    """E104: Too many parameters or arguments."""
    diag = Diagnostic(
        code="E104",
        message=f"can't have more than {limit} {what}",
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ParserError(diag)


# --- Resolver error codes ---

def _resolve_error(code: str, message: str, span: SourceSpan,
                   source_line: str = None) -> ResolveError:
    diag = Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=span,
        source_line=source_line,
    )
    return ResolveError(diag)


def error_already_declared(name: str, span: SourceSpan, source_line: str = None) -> ResolveError:
    """E301: Redeclaration of a local in the same scope."""
    return _resolve_error("E301", f"already a variable named '{name}' in this scope", span, source_line)


def error_read_in_initializer(name: str, span: SourceSpan, source_line: str = None) -> ResolveError:
    """E302: Local variable read in its own initializer."""
    return _resolve_error("E302", f"can't read local variable '{name}' in its own initializer", span, source_line)


def error_top_level_return(span: SourceSpan, source_line: str = None) -> ResolveError:
    """E303: Return outside of any function."""
    return _resolve_error("E303", "can't return from top-level code", span, source_line)


def error_return_from_initializer(span: SourceSpan, source_line: str = None) -> ResolveError:
    """E304: Return with a value inside init()."""
    return _resolve_error("E304", "can't return a value from an initializer", span, source_line)


def error_this_outside_class(span: SourceSpan, source_line: str = None) -> ResolveError:
    """E305: 'this' outside of a class body."""
    return _resolve_error("E305", "can't use 'this' outside of a class", span, source_line)


def error_super_outside_class(span: SourceSpan, source_line: str = None) -> ResolveError:
    """E306: 'super' outside of a class body."""
    return _resolve_error("E306", "can't use 'super' outside of a class", span, source_line)


def error_super_without_superclass(span: SourceSpan, source_line: str = None) -> ResolveError:
    """E307: 'super' in a class that has no superclass."""
    return _resolve_error("E307", "can't use 'super' in a class with no superclass", span, source_line)


def error_inherit_from_self(name: str, span: SourceSpan, source_line: str = None) -> ResolveError:
    """E308: Class inheriting from itself."""
    return _resolve_error("E308", f"class '{name}' can't inherit from itself", span, source_line)


# --- Runtime error codes ---

def _runtime_error(code: str, message: str, token: Token,
                   source_line: str = None) -> LoxRuntimeError:
    diag = Diagnostic(
        code=code,
        message=message,
        severity=ErrorSeverity.ERROR,
        span=token.span,
        source_line=source_line,
    )
    return LoxRuntimeError(diag, token)


def error_undefined_variable(token: Token) -> LoxRuntimeError:
    """E401: Undefined variable."""
    return _runtime_error("E401", f"undefined variable '{token.lexeme}'", token)


def error_undefined_property(token: Token) -> LoxRuntimeError:
    """E402: Undefined property."""
    return _runtime_error("E402", f"undefined property '{token.lexeme}'", token)


def error_operand_must_be_number(token: Token) -> LoxRuntimeError:
    """E403: Unary operand type mismatch."""
    return _runtime_error("E403", f"operand of '{token.lexeme}' must be a number", token)


def error_operands_must_be_numbers(token: Token) -> LoxRuntimeError:
    """E403: Binary operand type mismatch."""
    return _runtime_error("E403", f"operands of '{token.lexeme}' must be numbers", token)


def error_operands_must_be_numbers_or_strings(token: Token) -> LoxRuntimeError:
    """E403: Operand type mismatch for '+'."""
    return _runtime_error(
        "E403",
        f"operands of '{token.lexeme}' must be two numbers or two strings",
        token,
    )


def error_not_callable(token: Token) -> LoxRuntimeError:
    """E404: Callee is not a function or class."""
    return _runtime_error("E404", "can only call functions and classes", token)


def error_arity_mismatch(expected: int, got: int, token: Token) -> LoxRuntimeError:
    """E405: Wrong number of arguments."""
    return _runtime_error("E405", f"expected {expected} arguments but got {got}", token)


def error_only_instances_have_properties(token: Token) -> LoxRuntimeError:
    """E406: Property access on a non-instance."""
    return _runtime_error("E406", "only instances have properties", token)


def error_only_instances_have_fields(token: Token) -> LoxRuntimeError:
    """E407: Field assignment on a non-instance."""
    return _runtime_error("E407", "only instances have fields", token)


def error_superclass_must_be_class(token: Token) -> LoxRuntimeError:
    """E408: Superclass expression is not a class."""
    return _runtime_error("E408", "superclass must be a class", token)


def error_stack_overflow(limit: int, token: Token) -> LoxRuntimeError:
    """E409: Call nesting exceeded the interpreter's depth limit."""
    return _runtime_error("E409", f"stack overflow (more than {limit} nested calls)", token)


# --- Warnings ---

def warning_unused_local(name: str, span: SourceSpan, source_line: str = None) -> Diagnostic:
    """W301: Local variable declared but never read."""
    return Diagnostic(
        code="W301",
        message=f"local variable '{name}' is never read",
        severity=ErrorSeverity.WARNING,
        span=span,
        source_line=source_line,
    )


class DiagnosticCollector:
    """Collects diagnostics during a compilation phase."""

    def __init__(self, max_errors: int = 20):
        self.diagnostics: List[Diagnostic] = []
        self.max_errors = max_errors
        self._error_count = 0

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)
        if diagnostic.severity == ErrorSeverity.ERROR:
            self._error_count += 1

    def add_error(self, error: LoxError) -> None:
        """Add an error exception as a diagnostic."""
        self.add(error.diagnostic)

    def extend(self, other: "DiagnosticCollector") -> None:
        for diag in other.diagnostics:
            self.add(diag)

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == ErrorSeverity.ERROR]

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == ErrorSeverity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self._error_count > 0

    @property
    def has_warnings(self) -> bool:
        return self.warning_count > 0

    @property
    def should_stop(self) -> bool:
        """Check if we've hit the max error limit."""
        return self._error_count >= self.max_errors

    def raise_if_errors(self, error_class: type) -> None:
        """Raise the first error, with the remaining ones attached as related."""
        errors = self.errors
        if not errors:
            return
        first = errors[0]
        if len(errors) > 1:
            first = Diagnostic(
                code=first.code,
                message=first.message,
                severity=first.severity,
                span=first.span,
                source_line=first.source_line,
                hints=list(first.hints),
                related=errors[1:],
            )
        raise error_class(first)

    def format_all(self, show_source: bool = True) -> str:
        """Format all diagnostics for display."""
        parts = [d.format(show_source) for d in self.diagnostics]
        if self._error_count > 0:
            parts.append(f"\n{self._error_count} error(s), {self.warning_count} warning(s)")
        elif self.warning_count > 0:
            parts.append(f"\n{self.warning_count} warning(s)")
        return "\n\n".join(parts)

    def to_json(self) -> dict:
        """Convert all diagnostics to JSON format."""
        return {
            "diagnostics": [d.to_json() for d in self.diagnostics],
            "error_count": self._error_count,
            "warning_count": self.warning_count,
        }
