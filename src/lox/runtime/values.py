"""
Runtime value helpers for the Lox interpreter.

Lox values are plain Python objects drawn from a closed set:

    nil      -> None
    boolean  -> bool
    number   -> float
    string   -> str
    callable -> LoxCallable (natives, functions, classes)
    instance -> LoxInstance

These helpers implement the language's view of them: truthiness, equality
without implicit conversion, and display text.
"""

from typing import Any


def is_number(value: Any) -> bool:
    """True for Lox numbers. bool is excluded even though it subclasses int."""
    return isinstance(value, float)


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_truthy(value: Any) -> bool:
    """nil and false are falsey; everything else, including 0 and "", is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(left: Any, right: Any) -> bool:
    """
    Lox equality.

    nil equals only nil. Values of different kinds are never equal, so
    ``true == 1`` is false even though Python says otherwise. Callables and
    instances compare by identity.
    """
    if left is None and right is None:
        return True
    if left is None or right is None:
        return False
    if type(left) is not type(right):
        return False
    if isinstance(left, (bool, float, str)):
        return left == right
    return left is right


def stringify(value: Any) -> str:
    """Display text used by print."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        text = repr(value)
        if text.endswith(".0"):
            text = text[:-2]
        return text
    return str(value)


def type_name(value: Any) -> str:
    """Name of a value's runtime kind, for diagnostics and debugging."""
    from .callables import LoxCallable
    from .objects import LoxClass, LoxInstance

    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, LoxClass):
        return "class"
    if isinstance(value, LoxCallable):
        return "function"
    if isinstance(value, LoxInstance):
        return "instance"
    return type(value).__name__
