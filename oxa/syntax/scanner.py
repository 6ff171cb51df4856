"""Lexical analysis for the oxa language: converts raw source text into a finite list of Tokens terminated by EOF.

Lexical grammar:

```
<token>      ::= <operator> | <identifier> | <keyword> | <string> | <number>
<operator>   ::= "(" | ")" | "{" | "}" | "," | "." | "-" | "+" | ";" | "/" | "*"
               | "!" | "!=" | "=" | "==" | ">" | ">=" | "<" | "<="
<identifier> ::= (<alpha> | "_") (<alpha> | <digit> | "_")*     ; keywords are matched after maximal munch
<string>     ::= '"' <char>* '"' | "'" <char>* "'"               ; may span lines, no escapes
<number>     ::= <digit>+ ("." <digit>+)?                         ; "1." scans as NUMBER DOT
<comment>    ::= "//" <char>* "\n" | "/*" <char>* "*/"            ; block comments do not nest
```

Errors do not stop the scan: they are accumulated in Scanner.errors and the rest of the token stream is still
produced, so the parser can report cascading diagnostics in the same pass.
"""

import logging

from oxa.lang.error import ScanError
from oxa.syntax.tokens import KEYWORDS, Token, TokenType


logger = logging.getLogger(__name__)


def _is_digit(char):
    return "0" <= char <= "9"


def _is_alpha(char):
    return char.isascii() and (char.isalpha() or char == "_")


class Scanner:
    """Single left-to-right pass over source with one character of lookahead (two after a number's digits)."""
    SINGLE = {
        "(": TokenType.LEFT_PAREN,
        ")": TokenType.RIGHT_PAREN,
        "{": TokenType.LEFT_BRACE,
        "}": TokenType.RIGHT_BRACE,
        ",": TokenType.COMMA,
        ".": TokenType.DOT,
        "-": TokenType.MINUS,
        "+": TokenType.PLUS,
        ";": TokenType.SEMICOLON,
        "*": TokenType.STAR,
    }
    DOUBLE = {  # char: (type if followed by "=", type otherwise)
        "!": (TokenType.BANG_EQUAL, TokenType.BANG),
        "=": (TokenType.EQUAL_EQUAL, TokenType.EQUAL),
        "<": (TokenType.LESS_EQUAL, TokenType.LESS),
        ">": (TokenType.GREATER_EQUAL, TokenType.GREATER),
    }
    WHITESPACE = " \r\t"

    def __init__(self, source, line=1):
        self.source = source
        self.tokens = []
        self.errors = []

        self.start = 0
        self.current = 0
        self.line = line

    def scan_tokens(self):
        """Scans the whole source. Returns the token list, which always ends with an EOF token."""
        while not self._is_at_end():
            self.start = self.current
            self._scan_token()

        self.tokens.append(Token(TokenType.EOF, "", None, self.line))
        logger.debug("scanned %d token(s), %d error(s)", len(self.tokens), len(self.errors))
        return self.tokens

    def _scan_token(self):
        char = self._advance()

        if char in Scanner.SINGLE:
            self._add_token(Scanner.SINGLE[char])
        elif char in Scanner.DOUBLE:
            matched, single = Scanner.DOUBLE[char]
            self._add_token(matched if self._match("=") else single)
        elif char == "/":
            if self._match("/"):
                while self._peek() != "\n" and not self._is_at_end():
                    self._advance()
            elif self._match("*"):
                self._block_comment()
            else:
                self._add_token(TokenType.SLASH)
        elif char in Scanner.WHITESPACE:
            pass
        elif char == "\n":
            self.line += 1
        elif char in "\"'":
            self._string(char)
        elif _is_digit(char):
            self._number()
        elif _is_alpha(char):
            self._identifier()
        else:
            self._error("Unexpected character.")

    def _block_comment(self):
        start_line = self.line
        while not (self._peek() == "*" and self._peek_next() == "/"):
            if self._is_at_end():
                self.errors.append(ScanError("Unterminated block comment.", start_line))
                return
            if self._advance() == "\n":
                self.line += 1

        self.current += 2  # closing */

    def _string(self, quote):
        start_line = self.line
        while self._peek() != quote and not self._is_at_end():
            if self._peek() == "\n":
                self.line += 1
            self._advance()

        if self._is_at_end():
            self.errors.append(ScanError("Unterminated string.", start_line))
            return

        self._advance()  # closing quote
        self._add_token(TokenType.STRING, self.source[self.start + 1:self.current - 1])

    def _number(self):
        while _is_digit(self._peek()):
            self._advance()

        # a trailing "." is only part of the number if a digit follows it
        if self._peek() == "." and _is_digit(self._peek_next()):
            self._advance()
            while _is_digit(self._peek()):
                self._advance()

        self._add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def _identifier(self):
        while _is_alpha(self._peek()) or _is_digit(self._peek()):
            self._advance()

        text = self.source[self.start:self.current]
        self._add_token(KEYWORDS.get(text, TokenType.IDENTIFIER))

    def _error(self, msg):
        self.errors.append(ScanError(msg, self.line))

    def _add_token(self, token_type, literal=None):
        lexeme = self.source[self.start:self.current]
        self.tokens.append(Token(token_type, lexeme, literal, self.line))

    def _match(self, expected):
        if self._is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def _advance(self):
        char = self.source[self.current]
        self.current += 1
        return char

    def _peek(self):
        if self._is_at_end():
            return "\0"
        return self.source[self.current]

    def _peek_next(self):
        if self.current + 1 >= len(self.source):
            return "\0"
        return self.source[self.current + 1]

    def _is_at_end(self):
        return self.current >= len(self.source)
