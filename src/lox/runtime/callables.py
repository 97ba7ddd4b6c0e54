"""
Callable values: anything that can appear before an argument list.

Three kinds implement ``LoxCallable``: host-provided natives, user functions
(closures), and classes (constructors, in ``objects.py``).
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, TYPE_CHECKING

from ..ast import FunctionDecl
from .environment import Environment

if TYPE_CHECKING:
    from .interpreter import Interpreter
    from .objects import LoxInstance


class ReturnSignal(Exception):
    """
    Non-local exit carrying a function's return value.

    Raised by a return statement and caught only at the nearest function
    call boundary. It is not a LoxError and is never reported to the user.
    """

    def __init__(self, value: Any):
        super().__init__()
        self.value = value


class LoxCallable(ABC):
    """Capability shared by natives, functions and classes."""

    @abstractmethod
    def arity(self) -> int:
        """Number of arguments the callable expects."""

    @abstractmethod
    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        """Invoke with already-evaluated, arity-checked arguments."""


@dataclass(eq=False)
class NativeFunction(LoxCallable):
    """
    A built-in function implemented in Python.

    ``implementation`` receives the evaluated arguments positionally.
    """
    name: str
    param_count: int
    implementation: Callable[..., Any]
    doc: str = ""

    def arity(self) -> int:
        return self.param_count

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        return self.implementation(*arguments)

    def __str__(self) -> str:
        return "<native fn>"


class LoxFunction(LoxCallable):
    """A user-defined function or method closing over its declaring scope."""

    def __init__(self, declaration: FunctionDecl, closure: Environment,
                 is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> str:
        return self.declaration.name.lexeme

    def arity(self) -> int:
        return len(self.declaration.params)

    def bind(self, instance: "LoxInstance") -> "LoxFunction":
        """Return a copy whose closure additionally defines 'this'.

        Every call produces a fresh function and frame; nothing is cached.
        """
        environment = Environment(self.closure)
        environment.define("this", instance)
        return LoxFunction(self.declaration, environment, self.is_initializer)

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        environment = Environment(self.closure)
        for param, argument in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, argument)

        try:
            interpreter.execute_block(self.declaration.body, environment)
        except ReturnSignal as signal:
            if self.is_initializer:
                return self.closure.get_at(0, "this")
            return signal.value

        if self.is_initializer:
            return self.closure.get_at(0, "this")
        return None

    def __str__(self) -> str:
        return f"<fn {self.name}>"

    def __repr__(self) -> str:
        return f"LoxFunction({self.name!r}, arity={self.arity()})"
