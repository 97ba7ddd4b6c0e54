#!/usr/bin/env python3
"""
CLI for the Lox interpreter.

Usage:
    python -m lox run FILE.lox
    python -m lox repl
    python -m lox tokens FILE.lox
    python -m lox ast FILE.lox [--rpn]
    python -m lox check FILE.lox

Exit codes:
    0   success
    1   usage problem (missing file)
    65  lexical, syntax or resolution error
    70  runtime error

Examples:
    # Run a script
    python -m lox run examples/fib.lox

    # Report diagnostics as JSON for editor integration
    python -m lox --json check examples/fib.lox

    # Show debug events from every phase
    python -m lox --log-level debug run examples/fib.lox
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .logging_utils import configure_logging

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_DATA_ERROR = 65
EXIT_SOFTWARE_ERROR = 70


def _read_source(path_str: str) -> Optional[str]:
    source_path = Path(path_str)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        return None
    return source_path.read_text()


def _report(collector, as_json: bool) -> None:
    """Print diagnostics to stderr, either formatted or as JSON."""
    if as_json:
        print(json.dumps(collector.to_json(), indent=2), file=sys.stderr)
    elif collector.diagnostics:
        print(collector.format_all(), file=sys.stderr)


def _front_end(source: str, filename: str):
    """Lex, parse and resolve; returns (statements, resolve_result, collector)."""
    from .lexer import Lexer
    from .parser import Parser
    from .resolver import Resolver
    from .errors import DiagnosticCollector

    collector = DiagnosticCollector()

    lexer = Lexer(source, filename)
    tokens = lexer.tokenize()
    collector.extend(lexer.diagnostics)

    parser = Parser(tokens, filename, source)
    statements = parser.parse_program()
    collector.extend(parser.diagnostics)

    if collector.has_errors:
        return statements, None, collector

    resolver = Resolver(source)
    result = resolver.resolve(statements)
    collector.extend(resolver.diagnostics)
    return statements, result, collector


def cmd_run(args) -> int:
    """Run a Lox script."""
    from .runtime import run_source
    from .errors import DiagnosticCollector

    source = _read_source(args.file)
    if source is None:
        return EXIT_USAGE

    result = run_source(source, filename=args.file, output=print)

    collector = DiagnosticCollector()
    for diag in result.diagnostics:
        collector.add(diag)
    _report(collector, args.json)

    if result.success:
        return EXIT_OK
    if result.is_runtime_error:
        return EXIT_SOFTWARE_ERROR
    return EXIT_DATA_ERROR


def cmd_repl(args) -> int:
    """Interactive prompt sharing one interpreter across lines."""
    from .runtime import Interpreter, run_source

    interpreter = Interpreter(output=print)
    logger.debug("lox.repl.started")

    while True:
        try:
            line = input("> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print()
            continue

        if not line.strip():
            continue

        result = run_source(line, filename="<repl>", interpreter=interpreter)
        for diag in result.diagnostics:
            print(diag.format(), file=sys.stderr)

    return EXIT_OK


def cmd_tokens(args) -> int:
    """Print the token stream of a file."""
    from .lexer import Lexer

    source = _read_source(args.file)
    if source is None:
        return EXIT_USAGE

    lexer = Lexer(source, args.file)
    for token in lexer:
        print(f"{token.line:>4}  {token}")

    _report(lexer.diagnostics, args.json)
    return EXIT_DATA_ERROR if lexer.diagnostics.has_errors else EXIT_OK


def cmd_ast(args) -> int:
    """Print the tree of every top-level statement."""
    from .ast import ExpressionStatement, RpnPrinter, print_ast
    from .lexer import Lexer
    from .parser import Parser
    from .errors import DiagnosticCollector

    source = _read_source(args.file)
    if source is None:
        return EXIT_USAGE

    collector = DiagnosticCollector()
    lexer = Lexer(source, args.file)
    tokens = lexer.tokenize()
    collector.extend(lexer.diagnostics)
    parser = Parser(tokens, args.file, source)
    statements = parser.parse_program()
    collector.extend(parser.diagnostics)

    if collector.has_errors:
        _report(collector, args.json)
        return EXIT_DATA_ERROR

    rpn = RpnPrinter()
    for stmt in statements:
        if not args.rpn:
            print_ast(stmt)
            continue
        if not isinstance(stmt, ExpressionStatement):
            print(f"; {stmt.__class__.__name__} has no RPN form")
            continue
        try:
            print(rpn.print(stmt.expression))
        except NotImplementedError as e:
            print(f"; {e}")

    return EXIT_OK


def cmd_check(args) -> int:
    """Lex, parse and resolve a file without running it."""
    source = _read_source(args.file)
    if source is None:
        return EXIT_USAGE

    statements, _, collector = _front_end(source, args.file)
    _report(collector, args.json)

    if collector.has_errors:
        return EXIT_DATA_ERROR

    if not args.json:
        print(f"OK: {Path(args.file).name} - {len(statements)} statement(s), no errors")
        if collector.has_warnings:
            print(f"  {collector.warning_count} warning(s)")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='lox',
        description='Lox tree-walking interpreter',
    )
    parser.add_argument('--log-level', metavar='LEVEL',
                        help='Log level (default: $LOX_LOG_LEVEL or WARNING)')
    parser.add_argument('--json', action='store_true',
                        help='Emit diagnostics as JSON')

    subparsers = parser.add_subparsers(dest='action', required=True)

    run_parser = subparsers.add_parser('run', help='Run a Lox script')
    run_parser.add_argument('file', help='Lox source file')

    subparsers.add_parser('repl', help='Start an interactive prompt')

    tokens_parser = subparsers.add_parser('tokens', help='Print the token stream')
    tokens_parser.add_argument('file', help='Lox source file')

    ast_parser = subparsers.add_parser('ast', help='Print the syntax tree')
    ast_parser.add_argument('file', help='Lox source file')
    ast_parser.add_argument('--rpn', action='store_true',
                            help='Print expression statements in reverse Polish notation')

    check_parser = subparsers.add_parser('check', help='Check a file for errors')
    check_parser.add_argument('file', help='Lox source file')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    if args.action == 'run':
        return cmd_run(args)
    elif args.action == 'repl':
        return cmd_repl(args)
    elif args.action == 'tokens':
        return cmd_tokens(args)
    elif args.action == 'ast':
        return cmd_ast(args)
    elif args.action == 'check':
        return cmd_check(args)
    else:
        parser.print_help()
        return EXIT_USAGE


if __name__ == '__main__':
    sys.exit(main())
