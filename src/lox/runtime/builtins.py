"""
Built-in function registry for the Lox interpreter.

Natives are registered by name and seeded into the global environment when
an interpreter starts.
"""

import time
from typing import Callable, Dict, Iterator

from .callables import NativeFunction
from .environment import Environment


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and installed into an environment.
    """

    def __init__(self):
        self._functions: Dict[str, NativeFunction] = {}
        self._register_all()

    def register(self, name: str, arity: int, implementation: Callable,
                 doc: str = "") -> NativeFunction:
        """Add (or replace) a native function."""
        native = NativeFunction(name, arity, implementation, doc)
        self._functions[name] = native
        return native

    def install(self, environment: Environment) -> None:
        """Define every registered native in the given environment."""
        for name, native in self._functions.items():
            environment.define(name, native)

    def __iter__(self) -> Iterator[NativeFunction]:
        return iter(self._functions.values())

    def __contains__(self, name: str) -> bool:
        return name in self._functions

    def _register_all(self) -> None:
        self._register_time_functions()

    def _register_time_functions(self) -> None:
        """Register timing functions."""

        def _clock() -> float:
            return time.time()

        self.register("clock", 0, _clock, "Seconds since the epoch, as a number.")


def get_builtin_registry() -> BuiltinRegistry:
    """Create a registry holding the default natives."""
    return BuiltinRegistry()
