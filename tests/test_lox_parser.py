"""
Tests for the Lox parser and tree printers.
"""

import pytest

from lox import (
    tokenize, parse, Parser, ParserError,
    AstPrinter, RpnPrinter, print_ast,
    Block, ClassDecl, ExpressionStatement, FunctionDecl, Literal,
    PrintStatement, VarDecl, WhileStatement,
)


def expr_text(source):
    return AstPrinter().print(Parser(tokenize(source)).parse_expression())


def rpn_text(source):
    return RpnPrinter().print(Parser(tokenize(source)).parse_expression())


def parse_error(source):
    with pytest.raises(ParserError) as exc_info:
        parse(tokenize(source), source=source)
    return exc_info.value


class TestExpressions:
    """Test expression parsing and precedence."""

    def test_classic_example(self):
        """Unary, binary and grouping render in prefix form."""
        assert expr_text("-123 * (45.67)") == "(* (- 123) (group 45.67))"

    def test_factor_binds_tighter_than_term(self):
        """Test multiplication precedence."""
        assert expr_text("1 + 2 * 3") == "(+ 1 (* 2 3))"

    def test_left_associative(self):
        """Binary operators associate to the left."""
        assert expr_text("1 - 2 - 3") == "(- (- 1 2) 3)"

    def test_comparison_and_equality(self):
        """Comparison binds tighter than equality."""
        assert expr_text("1 < 2 == true") == "(== (< 1 2) true)"

    def test_assignment_right_associative(self):
        """Chained assignment nests to the right."""
        assert expr_text("a = b = c") == "(= a (= b c))"

    def test_and_binds_tighter_than_or(self):
        """Test logical operator precedence."""
        assert expr_text("a or b and c") == "(or a (and b c))"

    def test_nested_unary(self):
        """Unary operators nest."""
        assert expr_text("!!true") == "(! (! true))"

    def test_call_and_property(self):
        """Calls and property accesses chain left to right."""
        assert expr_text("a.b(1, 2)") == "(call (. b a) 1 2)"

    def test_property_assignment(self):
        """An assignment to a Get becomes a Set."""
        assert expr_text("a.b = 3") == "(= .b a 3)"

    def test_super_and_this(self):
        """Test super and this expressions."""
        assert expr_text("super.m") == "(super m)"
        assert expr_text("this") == "this"

    def test_literals(self):
        """Test literal rendering."""
        assert expr_text("nil") == "nil"
        assert expr_text('"text"') == "text"


class TestRpnPrinter:
    """Test reverse Polish notation output."""

    def test_grouped_arithmetic(self):
        """Groupings disappear; operators follow their operands."""
        assert rpn_text("(1 + 2) * (4 - 3)") == "1 2 + 4 3 - *"

    def test_unary(self):
        """Test unary operator placement."""
        assert rpn_text("-a + 1") == "a - 1 +"


class TestStatements:
    """Test statement parsing."""

    def test_print_and_var(self):
        """Test simple statements."""
        statements = parse(tokenize("var a = 1; print a;"))
        assert isinstance(statements[0], VarDecl)
        assert statements[0].name.lexeme == "a"
        assert isinstance(statements[1], PrintStatement)

    def test_var_without_initializer(self):
        """The initializer is optional."""
        stmt = parse(tokenize("var a;"))[0]
        assert stmt.initializer is None

    def test_for_desugars_to_while(self):
        """A full for loop becomes a block holding the initializer and a while."""
        stmt = parse(tokenize("for (var i = 0; i < 3; i = i + 1) print i;"))[0]
        assert isinstance(stmt, Block)
        initializer, loop = stmt.statements
        assert isinstance(initializer, VarDecl)
        assert isinstance(loop, WhileStatement)
        body, increment = loop.body.statements
        assert isinstance(body, PrintStatement)
        assert isinstance(increment, ExpressionStatement)

    def test_for_without_clauses(self):
        """An empty condition loops forever; no block wrapper is needed."""
        stmt = parse(tokenize("for (;;) print 1;"))[0]
        assert isinstance(stmt, WhileStatement)
        assert isinstance(stmt.condition, Literal)
        assert stmt.condition.value is True

    def test_function_declaration(self):
        """Test function parameters and body."""
        stmt = parse(tokenize("fun add(a, b) { return a + b; }"))[0]
        assert isinstance(stmt, FunctionDecl)
        assert [p.lexeme for p in stmt.params] == ["a", "b"]
        assert len(stmt.body) == 1

    def test_class_declaration(self):
        """Test a subclass with methods."""
        stmt = parse(tokenize("class B < A { init(x) { this.x = x; } m() {} }"))[0]
        assert isinstance(stmt, ClassDecl)
        assert stmt.superclass.name.lexeme == "A"
        assert [m.name.lexeme for m in stmt.methods] == ["init", "m"]

    def test_if_else(self):
        """The else branch binds to the nearest if."""
        stmt = parse(tokenize("if (a) if (b) print 1; else print 2;"))[0]
        assert stmt.else_branch is None
        assert stmt.then_branch.else_branch is not None

    def test_print_ast(self):
        """The debug printer writes one line per node or field."""
        lines = []
        print_ast(parse(tokenize("print 1 + 2;"))[0], out=lines.append)
        assert lines[0] == "PrintStatement"
        assert any("Binary" in line for line in lines)


class TestParserErrors:
    """Test syntax errors and recovery."""

    def test_missing_semicolon_at_eof(self):
        """Running out of input is E102."""
        assert parse_error("print 1").code == "E102"

    def test_unexpected_token(self):
        """A wrong token is E101 and names what was found."""
        error = parse_error("var 1 = 2;")
        assert error.code == "E101"
        assert "1" in error.diagnostic.message

    def test_invalid_assignment_target(self):
        """Assigning to a non-variable is E103."""
        assert parse_error("1 = 2;").code == "E103"

    def test_too_many_arguments(self):
        """More than 255 arguments is E104."""
        args = ", ".join(["1"] * 256)
        assert parse_error(f"f({args});").code == "E104"

    def test_recovery_continues_parsing(self):
        """After an error the parser synchronizes and keeps parsing."""
        parser = Parser(tokenize("var = 1; print 2; var x 3; print 4;"))
        statements = parser.parse_program()
        assert parser.diagnostics.error_count == 2
        assert [type(s) for s in statements] == [PrintStatement, PrintStatement]

    def test_gives_up_after_max_errors(self):
        """Parsing stops once the error limit is reached."""
        parser = Parser(tokenize("var = 1;\n" * 30))
        parser.parse_program()
        assert parser.diagnostics.error_count == parser.diagnostics.max_errors

    def test_error_line(self):
        """Errors carry the line of the offending token."""
        error = parse_error("print 1;\nprint (2;")
        assert error.line == 2
