"""
The Gate parser: a recursive-descent parser over the scanner's token stream.

A Parser is an iterator of top-level expressions. Each call to next() parses
exactly one unit (an expression, possibly followed by a binary operator or
an assignment) and returns it, or raises a ParseError. StopIteration marks
the end of the tokens.

Binary operators are parsed right-recursively and then reconciled by
rotating the tree whenever the outer operator binds tighter than the one
at the top of its right-hand side.
"""
from typing import List, Optional, Union

from gate.gate_datatypes import (
    Token, TokenKind, BinaryOp,
    Expression, NilLiteral, BooleanLiteral, NumberLiteral, StrLiteral,
    Variable, ParenExpr, Block, Assignment, FunctionCall, BinaryExpr,
    IfExpr, WhileLoop,
    TokenError, ScanError, Unexpected, UnexpectedEOF,
)
from gate.gate_scanner import Scanner


class Parser:
    """Lazy iterator of top-level expressions parsed from source text."""

    def __init__(self, source: Union[str, Scanner]):
        self.scanner = source if isinstance(source, Scanner) else Scanner(source)

    def __iter__(self):
        return self

    def __next__(self) -> Expression:
        token = self._next_token()
        if token is None:
            raise StopIteration
        return self._parse_from(token)

    # --- token helpers ---

    def _next_token(self) -> Optional[Token]:
        """Consumes one token; None at end of input."""
        try:
            return next(self.scanner)
        except StopIteration:
            return None
        except TokenError as e:
            raise ScanError(e) from e

    def _peek_token(self) -> Optional[Token]:
        """Looks at the next token; None at end of input or before a scan error.

        A scan error stays pending in the scanner and is reported by whichever
        call consumes it.
        """
        try:
            return self.scanner.peek()
        except TokenError:
            return None

    def _expect_token(self) -> Token:
        token = self._next_token()
        if token is None:
            raise UnexpectedEOF()
        return token

    def _parse_unit(self) -> Expression:
        """Parses one full unit where one is required."""
        return self._parse_from(self._expect_token())

    # --- grammar ---

    def _parse_from(self, token: Token) -> Expression:
        match token.kind:
            case TokenKind.NIL:
                lhs = NilLiteral()
            case TokenKind.BOOLEAN:
                lhs = BooleanLiteral(token.value)
            case TokenKind.NUMBER:
                lhs = NumberLiteral(token.value)
            case TokenKind.STRING:
                lhs = StrLiteral(token.value)
            case TokenKind.OPEN_PAREN:
                lhs = self._parse_paren_expr()
            case TokenKind.OPEN_CURLY:
                lhs = self._parse_block()
            case TokenKind.IDENTIFIER:
                lhs = self._parse_identifier(token.value)
            case TokenKind.IF:
                lhs = self._parse_if()
            case TokenKind.WHILE:
                lhs = self._parse_while()
            case _:
                raise Unexpected(token)

        # We might be the left side of a larger expression.
        nxt = self._peek_token()
        if nxt is None:
            return lhs

        op = nxt.to_binary_op()
        if op is not None:
            self._next_token()
            rhs = self._parse_unit()
            return self._apply_precedence(lhs, op, rhs)

        if nxt.kind is TokenKind.EQ and isinstance(lhs, Variable):
            self._next_token()
            rhs = self._parse_unit()
            return Assignment(lhs.name, rhs)

        return lhs

    def _parse_paren_expr(self) -> ParenExpr:
        # Assuming we've read an open paren.
        inner = self._parse_unit()
        token = self._expect_token()
        if token.kind is not TokenKind.CLOSE_PAREN:
            raise Unexpected(token)
        return ParenExpr(inner)

    def _parse_block(self) -> Block:
        # Assuming we've read an open curly.
        body: List[Expression] = []
        while True:
            nxt = self._peek_token()
            if nxt is not None and nxt.kind is TokenKind.CLOSE_CURLY:
                self._next_token()
                return Block(body)
            # At end of input (or a pending scan error) this raises.
            body.append(self._parse_unit())

    def _parse_identifier(self, name: str) -> Expression:
        nxt = self._peek_token()
        if nxt is None or nxt.kind is not TokenKind.OPEN_PAREN:
            return Variable(name)
        self._next_token()
        return FunctionCall(name, self._parse_expr_list(TokenKind.CLOSE_PAREN))

    def _parse_expr_list(self, until: TokenKind) -> List[Expression]:
        """Parses a comma-separated list of units up to the `until` token."""
        expressions: List[Expression] = []
        nxt = self._peek_token()
        if nxt is not None and nxt.kind is until:
            self._next_token()
            return expressions

        while True:
            expressions.append(self._parse_unit())
            token = self._expect_token()
            if token.kind is TokenKind.COMMA:
                continue
            if token.kind is until:
                return expressions
            raise Unexpected(token)

    def _parse_if(self) -> IfExpr:
        cond = self._parse_unit()
        body = self._parse_unit()
        else_branch = None
        nxt = self._peek_token()
        if nxt is not None and nxt.kind is TokenKind.ELSE:
            self._next_token()
            else_branch = self._parse_unit()
        return IfExpr(cond, body, else_branch)

    def _parse_while(self) -> WhileLoop:
        cond = self._parse_unit()
        body = self._parse_unit()
        return WhileLoop(cond, body)

    def _apply_precedence(self, lhs: Expression, op: BinaryOp, rhs: Expression) -> BinaryExpr:
        """Builds `lhs op rhs`, rotating when `op` binds tighter than rhs's operator.

        `a * (b + c)` as parsed right-recursively becomes `(a * b) + c`; the
        check repeats against the rotated node's right side so a deeper chain
        such as `a * b + c < d` settles as `((a * b) + c) < d`.
        """
        if isinstance(rhs, BinaryExpr) and rhs.op.precedence < op.precedence:
            return BinaryExpr(self._apply_precedence(lhs, op, rhs.left), rhs.op, rhs.right)
        return BinaryExpr(lhs, op, rhs)


def parse(source: str) -> List[Expression]:
    """Parses a whole text eagerly, raising the first ParseError."""
    return list(Parser(source))


def parse_one(source: str) -> Expression:
    """Parses text holding exactly one top-level expression."""
    parser = Parser(source)
    expr = parser._parse_unit()
    extra = parser._next_token()
    if extra is not None:
        raise Unexpected(extra)
    return expr
