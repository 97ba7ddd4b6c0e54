"""
Scope chain for the Lox interpreter.

An Environment is one lexical frame: a name -> value mapping plus an optional
parent. Frames only ever point at their parent, and a frame's parent never
changes after creation; only the value mapping is mutated. Closures keep
their captured frame alive simply by holding a reference to it.
"""

from typing import Any, Dict, Optional

from ..tokens import Token
from ..errors import error_undefined_variable


class Environment:
    """
    A single scope containing variable bindings.

    ``get``/``assign`` search outward through parents; ``get_at``/``assign_at``
    jump straight to the frame the resolver computed.
    """

    __slots__ = ("values", "parent")

    def __init__(self, parent: Optional["Environment"] = None):
        self.values: Dict[str, Any] = {}
        self.parent = parent

    def define(self, name: str, value: Any) -> None:
        """Bind name in this frame, replacing any existing binding here."""
        self.values[name] = value

    def get(self, name: Token) -> Any:
        """Look up a variable in this scope or parent scopes."""
        env = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.parent
        raise error_undefined_variable(name)

    def assign(self, name: Token, value: Any) -> None:
        """
        Update an existing variable (mutable assignment).

        Searches up the scope chain to find where the variable is defined.
        Assignment never creates a binding.
        """
        env = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.parent
        raise error_undefined_variable(name)

    def ancestor(self, depth: int) -> "Environment":
        """Walk exactly depth parent links."""
        env = self
        for _ in range(depth):
            env = env.parent
        return env

    def get_at(self, depth: int, name: str) -> Any:
        """Read name from the frame depth hops up; the resolver guarantees it exists."""
        return self.ancestor(depth).values[name]

    def assign_at(self, depth: int, name: str, value: Any) -> None:
        self.ancestor(depth).values[name] = value

    def contains(self, name: str) -> bool:
        """Check if a variable exists in this scope or parents."""
        env = self
        while env is not None:
            if name in env.values:
                return True
            env = env.parent
        return False

    def depth(self) -> int:
        """Number of parent links above this frame."""
        count = 0
        env = self.parent
        while env is not None:
            count += 1
            env = env.parent
        return count

    def __repr__(self) -> str:
        names = ", ".join(sorted(self.values))
        return f"Environment({{{names}}}, depth={self.depth()})"
