"""
Lox: a tree-walking interpreter for the Lox scripting language.

This module provides:
- Lexer: Tokenizes Lox source code
- Parser: Builds the statement tree from tokens
- Resolver: Binds local variable references to scope depths
- Interpreter: Executes the resolved program

Usage:
    from lox import run_source

    result = run_source('''
    class Greeter {
        init(name) { this.name = name; }
        greet() { print "hello, " + this.name; }
    }
    Greeter("world").greet();
    ''')
    if not result.success:
        print(result.error_message)

Or stage by stage:
    from lox import tokenize, parse, resolve, Interpreter

    source = 'var a = 1; { var b = a + 1; print b; }'
    statements = parse(tokenize(source), source=source)
    interpreter = Interpreter()
    interpreter.load_locals(resolve(statements, source))
    error = interpreter.interpret(statements, source)
"""

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Parser,
    parse,
)

from .resolver import (
    Resolver,
    ResolveResult,
    resolve,
)

from .ast import (
    # Base
    AstNode,
    AstVisitor,
    # Expressions
    Expr,
    Literal,
    Grouping,
    Unary,
    Binary,
    Logical,
    Variable,
    Assign,
    Call,
    Get,
    Set,
    This,
    Super,
    # Statements
    Stmt,
    ExpressionStatement,
    PrintStatement,
    VarDecl,
    Block,
    IfStatement,
    WhileStatement,
    FunctionDecl,
    ReturnStatement,
    ClassDecl,
    # Printers
    AstPrinter,
    RpnPrinter,
    print_ast,
)

from .errors import (
    ErrorSeverity,
    Diagnostic,
    DiagnosticCollector,
    LoxError,
    LexerError,
    ParserError,
    ResolveError,
    LoxRuntimeError,
)

from .runtime import (
    Interpreter,
    ExecutionResult,
    Environment,
    run_source,
)

__all__ = [
    # Tokens
    'Token',
    'TokenType',
    'SourceLocation',
    'SourceSpan',
    'KEYWORDS',

    # Lexer
    'Lexer',
    'tokenize',

    # Parser
    'Parser',
    'parse',

    # Resolver
    'Resolver',
    'ResolveResult',
    'resolve',

    # AST
    'AstNode',
    'AstVisitor',
    'Expr',
    'Literal',
    'Grouping',
    'Unary',
    'Binary',
    'Logical',
    'Variable',
    'Assign',
    'Call',
    'Get',
    'Set',
    'This',
    'Super',
    'Stmt',
    'ExpressionStatement',
    'PrintStatement',
    'VarDecl',
    'Block',
    'IfStatement',
    'WhileStatement',
    'FunctionDecl',
    'ReturnStatement',
    'ClassDecl',
    'AstPrinter',
    'RpnPrinter',
    'print_ast',

    # Errors
    'ErrorSeverity',
    'Diagnostic',
    'DiagnosticCollector',
    'LoxError',
    'LexerError',
    'ParserError',
    'ResolveError',
    'LoxRuntimeError',

    # Runtime
    'Interpreter',
    'ExecutionResult',
    'Environment',
    'run_source',
]
