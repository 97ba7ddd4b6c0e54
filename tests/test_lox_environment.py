"""
Tests for the runtime scope chain and value helpers.
"""

import math

import pytest

from lox import LoxRuntimeError, TokenType
from lox.tokens import synthetic_token
from lox.runtime import Environment, is_truthy, is_equal, stringify, type_name


def name(text):
    return synthetic_token(TokenType.IDENTIFIER, text)


class TestEnvironment:
    """Test define, lookup and assignment."""

    def test_define_and_get(self):
        """Test basic binding."""
        env = Environment()
        env.define("a", 1.0)
        assert env.get(name("a")) == 1.0

    def test_get_is_repeatable(self):
        """Reading twice without a write gives the same value."""
        env = Environment()
        marker = object()
        env.define("a", marker)
        assert env.get(name("a")) is env.get(name("a"))

    def test_redefine_replaces(self):
        """define in the same frame overwrites."""
        env = Environment()
        env.define("a", 1.0)
        env.define("a", 2.0)
        assert env.get(name("a")) == 2.0

    def test_get_searches_parents(self):
        """Lookup walks outward."""
        outer = Environment()
        outer.define("a", "outer")
        inner = Environment(outer)
        assert inner.get(name("a")) == "outer"

    def test_inner_shadows_outer(self):
        """The nearest frame wins."""
        outer = Environment()
        outer.define("a", "outer")
        inner = Environment(outer)
        inner.define("a", "inner")
        assert inner.get(name("a")) == "inner"
        assert outer.get(name("a")) == "outer"

    def test_assign_updates_defining_frame(self):
        """Assignment writes where the name lives."""
        outer = Environment()
        outer.define("a", 1.0)
        inner = Environment(outer)
        inner.assign(name("a"), 2.0)
        assert outer.values["a"] == 2.0
        assert "a" not in inner.values

    def test_get_undefined(self):
        """Reading an unknown name is E401."""
        with pytest.raises(LoxRuntimeError) as exc_info:
            Environment().get(name("missing"))
        assert exc_info.value.code == "E401"
        assert "missing" in exc_info.value.diagnostic.message

    def test_assign_never_creates(self):
        """Assigning an unknown name fails instead of defining it."""
        env = Environment()
        with pytest.raises(LoxRuntimeError):
            env.assign(name("missing"), 1.0)
        assert not env.contains("missing")

    def test_get_at_and_assign_at(self):
        """Addressed access skips the search."""
        root = Environment()
        root.define("a", "root")
        middle = Environment(root)
        middle.define("a", "middle")
        leaf = Environment(middle)
        assert leaf.get_at(2, "a") == "root"
        assert leaf.get_at(1, "a") == "middle"
        leaf.assign_at(2, "a", "changed")
        assert root.values["a"] == "changed"
        assert middle.values["a"] == "middle"

    def test_ancestor_and_depth(self):
        """Test parent walking helpers."""
        root = Environment()
        leaf = Environment(Environment(root))
        assert leaf.ancestor(2) is root
        assert leaf.ancestor(0) is leaf
        assert leaf.depth() == 2


class TestValues:
    """Test truthiness, equality and display text."""

    def test_truthiness(self):
        """Only nil and false are falsey."""
        assert not is_truthy(None)
        assert not is_truthy(False)
        assert is_truthy(True)
        assert is_truthy(0.0)
        assert is_truthy("")

    def test_equality_without_conversion(self):
        """Different kinds are never equal."""
        assert is_equal(None, None)
        assert not is_equal(None, False)
        assert not is_equal(True, 1.0)
        assert not is_equal("1", 1.0)
        assert is_equal(1.0, 1.0)
        assert is_equal("a", "a")

    def test_nan_is_not_equal_to_itself(self):
        """Number equality follows IEEE-754."""
        assert not is_equal(math.nan, math.nan)

    def test_identity_for_objects(self):
        """Objects compare by identity."""
        a, b = object(), object()
        assert is_equal(a, a)
        assert not is_equal(a, b)

    def test_stringify_numbers(self):
        """Integral numbers print without a fractional part."""
        assert stringify(3.0) == "3"
        assert stringify(2.5) == "2.5"
        assert stringify(-0.0) == "-0"
        assert stringify(math.inf) == "inf"

    def test_stringify_other(self):
        """Test nil, booleans and strings."""
        assert stringify(None) == "nil"
        assert stringify(True) == "true"
        assert stringify(False) == "false"
        assert stringify("raw") == "raw"

    def test_type_name(self):
        """Test runtime kind names."""
        assert type_name(None) == "nil"
        assert type_name(1.0) == "number"
        assert type_name(True) == "boolean"
        assert type_name("s") == "string"
