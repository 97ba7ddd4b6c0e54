"""
Tests for the Lox lexer.
"""

import pytest

from lox import tokenize, Lexer, TokenType, LexerError


def types(source):
    return [t.type for t in tokenize(source)]


class TestLexerBasics:
    """Test basic lexer functionality."""

    def test_empty_source(self):
        """Empty input produces only EOF."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF
        assert tokens[0].lexeme == ""

    def test_whitespace_only(self):
        """Whitespace produces only EOF."""
        assert types("   \t\r\n  ") == [TokenType.EOF]

    def test_single_char_tokens(self):
        """Test punctuation and single-character operators."""
        assert types("(){},.-+;*/") == [
            TokenType.LEFT_PAREN, TokenType.RIGHT_PAREN,
            TokenType.LEFT_BRACE, TokenType.RIGHT_BRACE,
            TokenType.COMMA, TokenType.DOT, TokenType.MINUS, TokenType.PLUS,
            TokenType.SEMICOLON, TokenType.STAR, TokenType.SLASH,
            TokenType.EOF,
        ]

    def test_one_or_two_char_operators(self):
        """Two-character operators are preferred when '=' follows."""
        assert types("! != = == < <= > >=") == [
            TokenType.BANG, TokenType.BANG_EQUAL,
            TokenType.EQUAL, TokenType.EQUAL_EQUAL,
            TokenType.LESS, TokenType.LESS_EQUAL,
            TokenType.GREATER, TokenType.GREATER_EQUAL,
            TokenType.EOF,
        ]

    def test_var_statement(self):
        """Test a simple declaration."""
        tokens = tokenize("var answer = 42;")
        assert [t.type for t in tokens] == [
            TokenType.VAR, TokenType.IDENTIFIER, TokenType.EQUAL,
            TokenType.NUMBER, TokenType.SEMICOLON, TokenType.EOF,
        ]
        assert tokens[1].lexeme == "answer"
        assert tokens[3].literal == 42.0

    def test_position_tracking(self):
        """Test column tracking on a single line."""
        tokens = tokenize("var x")
        assert tokens[0].span.start.column == 1
        assert tokens[1].span.start.column == 5

    def test_eof_line(self):
        """EOF carries the line where input ended."""
        tokens = tokenize("a\nb\n")
        assert tokens[-1].line == 3


class TestKeywords:
    """Test reserved words and identifiers."""

    def test_all_keywords(self):
        """Every reserved word maps to its own token type."""
        source = ("and class else false for fun if nil or print "
                  "return super this true var while")
        assert types(source)[:-1] == [
            TokenType.AND, TokenType.CLASS, TokenType.ELSE, TokenType.FALSE,
            TokenType.FOR, TokenType.FUN, TokenType.IF, TokenType.NIL,
            TokenType.OR, TokenType.PRINT, TokenType.RETURN, TokenType.SUPER,
            TokenType.THIS, TokenType.TRUE, TokenType.VAR, TokenType.WHILE,
        ]

    def test_keyword_prefix_is_identifier(self):
        """Maximal munch: 'orchid' is not 'or' followed by 'chid'."""
        tokens = tokenize("orchid _under score9")
        assert [t.type for t in tokens[:-1]] == [TokenType.IDENTIFIER] * 3
        assert tokens[0].lexeme == "orchid"


class TestLiterals:
    """Test string and number literals."""

    def test_string(self):
        """The literal excludes the quotes; the lexeme keeps them."""
        token = tokenize('"hello"')[0]
        assert token.type == TokenType.STRING
        assert token.literal == "hello"
        assert token.lexeme == '"hello"'

    def test_string_has_no_escapes(self):
        """Backslashes are kept verbatim."""
        token = tokenize(r'"a\nb"')[0]
        assert token.literal == "a\\nb"

    def test_multiline_string_advances_line(self):
        """A newline inside a string counts toward later tokens' lines."""
        tokens = tokenize('"one\ntwo" after')
        assert tokens[0].literal == "one\ntwo"
        assert tokens[1].lexeme == "after"
        assert tokens[1].line == 2

    def test_integer(self):
        """Numbers are always floats."""
        token = tokenize("123")[0]
        assert token.literal == 123.0
        assert isinstance(token.literal, float)

    def test_decimal(self):
        """Test number with a fractional part."""
        assert tokenize("123.45")[0].literal == 123.45

    def test_trailing_dot_is_separate(self):
        """A dot without a digit after it is not part of the number."""
        tokens = tokenize("123.")
        assert tokens[0].literal == 123.0
        assert tokens[1].type == TokenType.DOT

    def test_leading_dot_is_separate(self):
        """'.5' is a DOT followed by the number 5."""
        assert types(".5")[:2] == [TokenType.DOT, TokenType.NUMBER]

    def test_method_call_on_number(self):
        """'1.abs' scans as NUMBER DOT IDENTIFIER."""
        assert types("1.abs")[:3] == [TokenType.NUMBER, TokenType.DOT, TokenType.IDENTIFIER]


class TestComments:
    """Test comment handling."""

    def test_line_comment(self):
        """Line comments run to end of line."""
        tokens = tokenize("// nothing here\n1")
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].line == 2

    def test_line_comment_at_end(self):
        """A comment with no trailing newline."""
        assert types("1 // trailing") == [TokenType.NUMBER, TokenType.EOF]

    def test_block_comment_spans_lines(self):
        """Block comments may span lines, and lines are counted."""
        tokens = tokenize("/* one\ntwo\n*/ x")
        assert tokens[0].lexeme == "x"
        assert tokens[0].line == 3

    def test_block_comment_does_not_nest(self):
        """The first '*/' closes the comment."""
        assert types("/* /* */ x */") == [
            TokenType.IDENTIFIER, TokenType.STAR, TokenType.SLASH, TokenType.EOF,
        ]


class TestLexerErrors:
    """Test error reporting and recovery."""

    def test_unexpected_character(self):
        """Unknown characters raise E001 through the convenience function."""
        with pytest.raises(LexerError) as exc_info:
            tokenize("var @ = 1;")
        assert exc_info.value.code == "E001"

    def test_scanning_continues_after_error(self):
        """The lexer records the error and keeps going."""
        lexer = Lexer("1 @ 2")
        tokens = lexer.tokenize()
        assert [t.type for t in tokens] == [TokenType.NUMBER, TokenType.NUMBER, TokenType.EOF]
        assert lexer.diagnostics.error_count == 1

    def test_unterminated_string(self):
        """An unclosed string is reported at its opening line."""
        with pytest.raises(LexerError) as exc_info:
            tokenize('print 1;\n"never closed')
        assert exc_info.value.code == "E002"
        assert exc_info.value.line == 2

    def test_unterminated_block_comment(self):
        """An unclosed block comment is E004."""
        with pytest.raises(LexerError) as exc_info:
            tokenize("/* forever")
        assert exc_info.value.code == "E004"

    def test_multiple_errors_are_related(self):
        """The first error is raised with the others attached."""
        with pytest.raises(LexerError) as exc_info:
            tokenize("@ #")
        assert len(exc_info.value.diagnostic.related) == 1

    def test_error_message_shows_source(self):
        """Formatted errors include the offending line and a caret."""
        with pytest.raises(LexerError) as exc_info:
            tokenize("var x = 1 $ 2;")
        text = str(exc_info.value)
        assert "var x = 1 $ 2;" in text
        assert "^" in text
