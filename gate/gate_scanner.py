"""
The Gate scanner: turns source text into a lazy stream of tokens.

A Scanner is an iterator. Each call to next() does exactly the work needed to
produce one Token, or raises one TokenError. Errors do not end the stream:
the scanner has already moved past the offending input, so the caller may
keep pulling tokens after an error.
"""
from typing import Optional, Union

from gate.gate_datatypes import (
    Token, TokenKind, KEYWORDS,
    TokenError, UnexpectedChar, IncompleteString, InvalidEscape,
)

_SPACE = " \t\n\r"

_SINGLE = {
    "(": TokenKind.OPEN_PAREN,
    ")": TokenKind.CLOSE_PAREN,
    "{": TokenKind.OPEN_CURLY,
    "}": TokenKind.CLOSE_CURLY,
    ",": TokenKind.COMMA,
    "*": TokenKind.TIMES,
    "/": TokenKind.DIVIDE,
    "%": TokenKind.PERCENT,
}

# One-character operators that become two-character ones when followed by '='.
_WITH_EQ = {
    "=": (TokenKind.EQ, TokenKind.DOUBLE_EQ),
    "<": (TokenKind.LT, TokenKind.LT_EQ),
    ">": (TokenKind.GT, TokenKind.GT_EQ),
}

_SIGNS = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
}


def is_alpha(c: str) -> bool:
    return c == "_" or ("a" <= c <= "z") or ("A" <= c <= "Z")


def is_digit(c: str) -> bool:
    return "0" <= c <= "9"


class Scanner:
    """Lazy, resumable token cursor over a piece of source text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0
        # One scanned-ahead item for peek(): a Token or a TokenError.
        self._pending: Optional[Union[Token, TokenError]] = None
        self._has_pending = False

    def __iter__(self):
        return self

    def __next__(self) -> Token:
        if self._has_pending:
            item = self._pending
            self._has_pending = False
            self._pending = None
        else:
            item = self._scan()
        if item is None:
            raise StopIteration
        if isinstance(item, TokenError):
            raise item
        return item

    def peek(self) -> Optional[Token]:
        """Returns the next token without consuming it (None at end of input).

        A pending scan error is raised here as well, and stays pending until
        next() consumes it.
        """
        if not self._has_pending:
            self._pending = self._scan()
            self._has_pending = True
        if isinstance(self._pending, TokenError):
            raise self._pending
        return self._pending

    # --- character cursor ---

    def _peek_char(self, offset: int = 0) -> Optional[str]:
        i = self.pos + offset
        return self.text[i] if i < len(self.text) else None

    def _advance(self) -> str:
        c = self.text[self.pos]
        self.pos += 1
        return c

    # --- scanning ---

    def _scan(self) -> Optional[Union[Token, TokenError]]:
        """Scans one item. Errors are returned, not raised, so peek() can hold them."""
        while (c := self._peek_char()) is not None and c in _SPACE:
            self.pos += 1

        c = self._peek_char()
        if c is None:
            return None

        if c in _SINGLE:
            self._advance()
            return Token(_SINGLE[c])

        if c in _WITH_EQ:
            self._advance()
            single, double = _WITH_EQ[c]
            if self._peek_char() == "=":
                self._advance()
                return Token(double)
            return Token(single)

        if c in _SIGNS:
            nxt = self._peek_char(1)
            if nxt is not None and is_digit(nxt):
                return self._read_number()
            self._advance()
            return Token(_SIGNS[c])

        if is_digit(c):
            return self._read_number()

        if is_alpha(c):
            return self._read_word()

        if c == '"':
            return self._read_string()

        self._advance()
        return UnexpectedChar(c)

    def _read_word(self) -> Token:
        start = self.pos
        while (c := self._peek_char()) is not None and (is_alpha(c) or is_digit(c)):
            self.pos += 1
        word = self.text[start:self.pos]
        if word in KEYWORDS:
            kind, value = KEYWORDS[word]
            return Token(kind, value)
        return Token(TokenKind.IDENTIFIER, word)

    def _read_number(self) -> Token:
        start = self.pos
        if self._peek_char() in _SIGNS:
            self.pos += 1
        while (c := self._peek_char()) is not None and is_digit(c):
            self.pos += 1
        if self._peek_char() == ".":
            # A bare trailing '.' is accepted: "5." reads as 5.0
            self.pos += 1
            while (c := self._peek_char()) is not None and is_digit(c):
                self.pos += 1
        return Token(TokenKind.NUMBER, float(self.text[start:self.pos]))

    def _read_string(self) -> Union[Token, TokenError]:
        self._advance()  # opening quote
        chars = []
        bad_escape = False
        while True:
            c = self._peek_char()
            if c is None:
                return IncompleteString()
            self._advance()
            if c == '"':
                break
            if c == "\\":
                esc = self._peek_char()
                if esc is None:
                    return IncompleteString()
                self._advance()
                if esc in ('"', "\\"):
                    chars.append(esc)
                else:
                    # Keep going to the closing quote so scanning resumes after the literal.
                    bad_escape = True
                continue
            chars.append(c)
        if bad_escape:
            return InvalidEscape()
        return Token(TokenKind.STRING, "".join(chars))


def tokenize(text: str) -> list:
    """Scans a whole text eagerly, raising the first TokenError."""
    return list(Scanner(text))
