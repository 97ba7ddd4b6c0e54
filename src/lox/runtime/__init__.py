"""
Lox Runtime - Tree-walking interpreter for Lox programs.

This module provides:
- Interpreter: Executes resolved statements
- Environment: Chained variable frames
- LoxFunction, LoxClass, LoxInstance: User-level callables and objects
- BuiltinRegistry: Native functions seeded into the global environment
"""

from .values import (
    is_truthy,
    is_equal,
    stringify,
    type_name,
)

from .environment import (
    Environment,
)

from .callables import (
    LoxCallable,
    NativeFunction,
    LoxFunction,
    ReturnSignal,
)

from .objects import (
    LoxClass,
    LoxInstance,
)

from .builtins import (
    BuiltinRegistry,
    get_builtin_registry,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    run_source,
)

__all__ = [
    # Values
    'is_truthy',
    'is_equal',
    'stringify',
    'type_name',

    # Environment
    'Environment',

    # Callables
    'LoxCallable',
    'NativeFunction',
    'LoxFunction',
    'ReturnSignal',
    'LoxClass',
    'LoxInstance',

    # Builtins
    'BuiltinRegistry',
    'get_builtin_registry',

    # Interpreter
    'Interpreter',
    'ExecutionResult',
    'run_source',
]
