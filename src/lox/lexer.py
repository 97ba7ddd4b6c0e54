"""
Lexer for Lox.

Converts source text into a stream of tokens for the parser.
Supports:
- Single and two-character operators (!=, ==, <=, >=)
- Line comments (//) and block comments (/* */, spanning lines)
- String literals (may span lines, no escape processing)
- Number literals (digits with an optional fractional part)
- Identifiers and the reserved-word table

Errors do not stop the scan: each one is recorded in ``Lexer.diagnostics``
and scanning resumes with the next character.
"""

from typing import List, Optional, Iterator

from loguru import logger

from .tokens import Token, TokenType, SourceLocation, SourceSpan, KEYWORDS
from .errors import (
    DiagnosticCollector,
    LexerError,
    error_unexpected_character,
    error_unterminated_string,
    error_unterminated_comment,
)


SINGLE_CHAR_TOKENS = {
    '(': TokenType.LEFT_PAREN,
    ')': TokenType.RIGHT_PAREN,
    '{': TokenType.LEFT_BRACE,
    '}': TokenType.RIGHT_BRACE,
    ',': TokenType.COMMA,
    '.': TokenType.DOT,
    '-': TokenType.MINUS,
    '+': TokenType.PLUS,
    ';': TokenType.SEMICOLON,
    '*': TokenType.STAR,
}

# first char -> (token if followed by '=', token otherwise)
TWO_CHAR_TOKENS = {
    '!': (TokenType.BANG_EQUAL, TokenType.BANG),
    '=': (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
    '<': (TokenType.LESS_EQUAL, TokenType.LESS),
    '>': (TokenType.GREATER_EQUAL, TokenType.GREATER),
}


def _is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


def _is_alpha(ch: str) -> bool:
    return ('a' <= ch <= 'z') or ('A' <= ch <= 'Z') or ch == '_'


def _is_alphanumeric(ch: str) -> bool:
    return _is_alpha(ch) or _is_digit(ch)


class Lexer:
    """
    Single-pass tokenizer for Lox.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()
        if lexer.diagnostics.has_errors:
            ...

    Or for streaming:
        lexer = Lexer(source_code)
        for token in lexer:
            process(token)
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)
        self._lines: Optional[List[str]] = None  # Cached line list
        self.diagnostics = DiagnosticCollector()

    @property
    def lines(self) -> List[str]:
        """Lazy-load line list for error reporting."""
        if self._lines is None:
            self._lines = self.source.splitlines()
        return self._lines

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a specific line of source (1-indexed)."""
        if 1 <= line_num <= len(self.lines):
            return self.lines[line_num - 1]
        return None

    def _location(self) -> SourceLocation:
        """Get current source location."""
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Create a span from start to current position."""
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _match(self, expected: str) -> bool:
        """Consume character if it matches expected."""
        if self._is_at_end() or self._peek() != expected:
            return False
        self._advance()
        return True

    def _is_at_end(self) -> bool:
        """Check if we've reached end of source."""
        return self.pos >= len(self.source)

    def _report(self, error: LexerError) -> None:
        logger.debug("lox.lexer.error code={} line={}", error.code, error.line)
        self.diagnostics.add_error(error)

    def _make_token(self, token_type: TokenType, start: SourceLocation,
                    literal=None) -> Token:
        """Create a token whose lexeme runs from start to the current position."""
        lexeme = self.source[start.offset:self.pos]
        return Token(token_type, lexeme, literal, self._span(start))

    def _skip_line_comment(self) -> None:
        """Skip to end of line; the newline itself is left for the main loop."""
        while self._peek() != '\n' and not self._is_at_end():
            self._advance()

    def _skip_block_comment(self, start: SourceLocation) -> None:
        """Skip the body of a /* ... */ comment (opener already consumed)."""
        while not (self._peek() == '*' and self._peek(1) == '/') and not self._is_at_end():
            self._advance()

        if self._is_at_end():
            self._report(error_unterminated_comment(
                self._span(start), self.get_source_line(start.line)
            ))
            return

        self._advance()  # consume '*'
        self._advance()  # consume '/'

    def _scan_string(self, start: SourceLocation) -> Optional[Token]:
        """Scan a string literal (opening quote already consumed)."""
        while self._peek() != '"' and not self._is_at_end():
            self._advance()

        if self._is_at_end():
            self._report(error_unterminated_string(
                self._span(start), self.get_source_line(start.line)
            ))
            return None

        self._advance()  # closing quote

        value = self.source[start.offset + 1:self.pos - 1]
        return self._make_token(TokenType.STRING, start, value)

    def _scan_number(self, start: SourceLocation) -> Token:
        """Scan a number literal (first digit already consumed)."""
        while _is_digit(self._peek()):
            self._advance()

        # A fractional part needs at least one digit after the dot
        if self._peek() == '.' and _is_digit(self._peek(1)):
            self._advance()  # consume '.'
            while _is_digit(self._peek()):
                self._advance()

        text = self.source[start.offset:self.pos]
        return self._make_token(TokenType.NUMBER, start, float(text))

    def _scan_identifier_or_keyword(self, start: SourceLocation) -> Token:
        """Scan an identifier or keyword (first char already consumed)."""
        while _is_alphanumeric(self._peek()):
            self._advance()

        text = self.source[start.offset:self.pos]
        token_type = KEYWORDS.get(text, TokenType.IDENTIFIER)
        return self._make_token(token_type, start)

    def _scan_token(self) -> Optional[Token]:
        """Scan one lexeme. Returns None for whitespace, comments and errors."""
        start = self._location()
        ch = self._advance()

        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch], start)

        if ch in TWO_CHAR_TOKENS:
            paired, single = TWO_CHAR_TOKENS[ch]
            return self._make_token(paired if self._match('=') else single, start)

        if ch == '/':
            if self._match('/'):
                self._skip_line_comment()
                return None
            if self._match('*'):
                self._skip_block_comment(start)
                return None
            return self._make_token(TokenType.SLASH, start)

        if ch in ' \r\t\n':
            return None

        if ch == '"':
            return self._scan_string(start)

        if _is_digit(ch):
            return self._scan_number(start)

        if _is_alpha(ch):
            return self._scan_identifier_or_keyword(start)

        self._report(error_unexpected_character(
            ch, self._span(start), self.get_source_line(start.line)
        ))
        return None

    def _eof_token(self) -> Token:
        loc = self._location()
        return Token(TokenType.EOF, "", None, SourceSpan(loc, loc))

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens ending in EOF."""
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens."""
        while not self._is_at_end():
            token = self._scan_token()
            if token is not None:
                yield token
        yield self._eof_token()


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for error messages

    Returns:
        List of tokens

    Raises:
        LexerError: If any lexical error was recorded; the first error is
            raised and the rest are attached as related diagnostics.
    """
    lexer = Lexer(source, filename)
    tokens = lexer.tokenize()
    lexer.diagnostics.raise_if_errors(LexerError)
    return tokens
