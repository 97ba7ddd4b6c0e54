"""
Object model: classes and their instances.

Fields live on the instance, methods on the class. Property lookup checks
fields first, then the class chain, binding any method it finds to the
instance on every access.
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING

from ..tokens import Token
from ..errors import error_undefined_property
from .callables import LoxCallable, LoxFunction

if TYPE_CHECKING:
    from .interpreter import Interpreter


class LoxClass(LoxCallable):
    """A class; calling it constructs an instance."""

    def __init__(self, name: str, superclass: Optional["LoxClass"],
                 methods: Dict[str, LoxFunction]):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def find_method(self, name: str) -> Optional[LoxFunction]:
        """Look up a method here, then up the superclass chain."""
        klass = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def call(self, interpreter: "Interpreter", arguments: List[Any]) -> Any:
        instance = LoxInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).call(interpreter, arguments)
        return instance

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"LoxClass({self.name!r})"


class LoxInstance:
    """An object with its own fields."""

    def __init__(self, klass: LoxClass):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def get(self, name: Token) -> Any:
        # Fields shadow methods
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]

        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)

        raise error_undefined_property(name)

    def set(self, name: Token, value: Any) -> None:
        self.fields[name.lexeme] = value

    def __str__(self) -> str:
        return f"{self.klass.name} instance"

    def __repr__(self) -> str:
        return f"LoxInstance({self.klass.name!r}, fields={sorted(self.fields)})"
