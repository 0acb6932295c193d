"""
Defines the core data types for the Gate language runtime.

This module provides the runtime values, the tokens produced by the
scanner, the binary operators, the expression tree built by the parser and
the three error taxonomies (scan, parse, execute) shared by every stage.

Runtime values are plain Python objects:

    nil      -> None
    boolean  -> bool
    number   -> float
    string   -> str
"""

import math
from abc import ABC
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Tuple

# =================================================================
# Values
# =================================================================

def type_name(value: Any) -> str:
    """Returns the Gate type name of a runtime value."""
    # bool is a subclass of int, so check it before anything numeric
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    raise TypeError(f"not a Gate value: {value!r}")


def values_equal(left: Any, right: Any) -> bool:
    """Structural equality that never crosses value types (true != 1)."""
    if type_name(left) != type_name(right):
        return False
    return left == right


def to_bool(value: Any) -> bool:
    """Generic truthiness: only nil and false are falsy."""
    return not (value is None or value is False)


def format_number(n: float) -> str:
    if math.isnan(n):
        return "NaN"
    if math.isinf(n):
        return "inf" if n > 0 else "-inf"
    if n.is_integer():
        if n == 0 and math.copysign(1.0, n) < 0:
            return "-0"
        return str(int(n))
    # Plain positional notation, shortest digits that round-trip.
    return format(Decimal(repr(n)), 'f')


def display(value: Any) -> str:
    """The display form of a value, as written by println."""
    match type_name(value):
        case "nil":
            return "nil"
        case "boolean":
            return "true" if value else "false"
        case "number":
            return format_number(value)
        case _:
            return value


# =================================================================
# Binary operators
# =================================================================

class BinaryOp(Enum):
    """The closed set of infix operators, each with a precedence rank."""
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    EQ = "=="
    LT = "<"
    LT_EQ = "<="
    GT = ">"
    GT_EQ = ">="

    @property
    def symbol(self) -> str:
        return self.value

    @property
    def precedence(self) -> int:
        """Higher binds tighter."""
        return _PRECEDENCE[self]

    def apply(self, left: Any, right: Any) -> Any:
        """Applies the operator to two evaluated operands.

        Equality accepts any pair of values. Everything else is defined for
        numbers only and raises InvalidOperation for any other operands.
        """
        if self is BinaryOp.EQ:
            return values_equal(left, right)
        if type_name(left) != "number" or type_name(right) != "number":
            raise InvalidOperation(type_name(left), self, type_name(right))
        match self:
            case BinaryOp.ADD:
                return left + right
            case BinaryOp.SUB:
                return left - right
            case BinaryOp.MUL:
                return left * right
            case BinaryOp.DIV:
                return _ieee_div(left, right)
            case BinaryOp.MOD:
                return _ieee_mod(left, right)
            case BinaryOp.LT:
                return left < right
            case BinaryOp.LT_EQ:
                return left <= right
            case BinaryOp.GT:
                return left > right
            case BinaryOp.GT_EQ:
                return left >= right
        raise AssertionError(f"unhandled operator {self!r}")

    def __repr__(self) -> str:
        return f"BinaryOp.{self.name}"


_PRECEDENCE = {
    BinaryOp.EQ: 0,
    BinaryOp.LT: 1,
    BinaryOp.LT_EQ: 1,
    BinaryOp.GT: 1,
    BinaryOp.GT_EQ: 1,
    BinaryOp.MOD: 2,
    BinaryOp.ADD: 3,
    BinaryOp.SUB: 3,
    BinaryOp.MUL: 4,
    BinaryOp.DIV: 4,
}


def _ieee_div(left: float, right: float) -> float:
    # Python raises on float division by zero; IEEE gives inf or nan.
    if right == 0.0:
        if left == 0.0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def _ieee_mod(left: float, right: float) -> float:
    # Truncated remainder (sign follows the dividend), nan where fmod is undefined.
    if right == 0.0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
        return math.nan
    return math.fmod(left, right)


# =================================================================
# Tokens
# =================================================================

class TokenKind(Enum):
    OPEN_PAREN = "("
    CLOSE_PAREN = ")"
    OPEN_CURLY = "{"
    CLOSE_CURLY = "}"
    COMMA = ","
    EQ = "="
    DOUBLE_EQ = "=="
    LT = "<"
    LT_EQ = "<="
    GT = ">"
    GT_EQ = ">="
    PLUS = "+"
    MINUS = "-"
    TIMES = "*"
    DIVIDE = "/"
    PERCENT = "%"
    NIL = "nil"
    BOOLEAN = "boolean"
    IF = "if"
    ELSE = "else"
    WHILE = "while"
    IDENTIFIER = "identifier"
    NUMBER = "number"
    STRING = "string"


_TOKEN_OPS = {
    TokenKind.DOUBLE_EQ: BinaryOp.EQ,
    TokenKind.LT: BinaryOp.LT,
    TokenKind.LT_EQ: BinaryOp.LT_EQ,
    TokenKind.GT: BinaryOp.GT,
    TokenKind.GT_EQ: BinaryOp.GT_EQ,
    TokenKind.PLUS: BinaryOp.ADD,
    TokenKind.MINUS: BinaryOp.SUB,
    TokenKind.TIMES: BinaryOp.MUL,
    TokenKind.DIVIDE: BinaryOp.DIV,
    TokenKind.PERCENT: BinaryOp.MOD,
}

KEYWORDS = {
    "nil": (TokenKind.NIL, None),
    "true": (TokenKind.BOOLEAN, True),
    "false": (TokenKind.BOOLEAN, False),
    "if": (TokenKind.IF, None),
    "else": (TokenKind.ELSE, None),
    "while": (TokenKind.WHILE, None),
}


class Token:
    """A lexical token: a kind plus the literal payload, if any."""
    __slots__ = ("kind", "value")

    def __init__(self, kind: TokenKind, value: Any = None):
        self.kind = kind
        self.value = value

    def to_binary_op(self) -> Optional[BinaryOp]:
        return _TOKEN_OPS.get(self.kind)

    def source(self) -> str:
        """Renders the token back as Gate source text."""
        match self.kind:
            case TokenKind.BOOLEAN:
                return "true" if self.value else "false"
            case TokenKind.IDENTIFIER:
                return self.value
            case TokenKind.NUMBER:
                return format_number(self.value)
            case TokenKind.STRING:
                escaped = self.value.replace("\\", "\\\\").replace('"', '\\"')
                return f'"{escaped}"'
            case _:
                return self.kind.value

    def __eq__(self, other):
        if not isinstance(other, Token):
            return NotImplemented
        return self.kind is other.kind and self.value == other.value

    def __hash__(self):
        return hash((self.kind, self.value))

    def __repr__(self) -> str:
        if self.value is None:
            return f"Token({self.kind.name})"
        return f"Token({self.kind.name}, {self.value!r})"


# =================================================================
# Expression tree
# =================================================================

class Expression(ABC):
    """Base class for expression tree nodes.

    Every node owns its children exclusively. Subclasses list their child
    fields in `_fields`; equality, hashing and repr are structural.
    """
    _fields: Tuple[str, ...] = ()

    def _values(self):
        return tuple(getattr(self, f) for f in self._fields)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._values() == other._values()

    def __hash__(self):
        return hash((type(self).__name__,) + self._values())

    def __repr__(self) -> str:
        args = ", ".join(repr(v) for v in self._values())
        return f"{type(self).__name__}({args})"


class NilLiteral(Expression):
    pass


class BooleanLiteral(Expression):
    _fields = ("value",)

    def __init__(self, value: bool):
        self.value = value


class NumberLiteral(Expression):
    _fields = ("value",)

    def __init__(self, value: float):
        self.value = float(value)


class StrLiteral(Expression):
    _fields = ("value",)

    def __init__(self, value: str):
        self.value = value


class Variable(Expression):
    """A reference to a variable by name."""
    _fields = ("name",)

    def __init__(self, name: str):
        self.name = name


class ParenExpr(Expression):
    """A parenthesized expression.

    Kept as its own node rather than flattened: the parser relies on it to
    stop precedence rotation and assignment rewriting at the parentheses.
    """
    _fields = ("inner",)

    def __init__(self, inner: Expression):
        self.inner = inner


class Block(Expression):
    """`{ ... }`: a sequence evaluated in its own scope frame."""
    _fields = ("body",)

    def __init__(self, body):
        self.body = tuple(body)


class Assignment(Expression):
    _fields = ("left", "right")

    def __init__(self, left: str, right: Expression):
        self.left = left
        self.right = right


class FunctionCall(Expression):
    _fields = ("name", "args")

    def __init__(self, name: str, args):
        self.name = name
        self.args = tuple(args)


class BinaryExpr(Expression):
    _fields = ("left", "op", "right")

    def __init__(self, left: Expression, op: BinaryOp, right: Expression):
        self.left = left
        self.op = op
        self.right = right


class IfExpr(Expression):
    _fields = ("cond", "body", "else_branch")

    def __init__(self, cond: Expression, body: Expression, else_branch: Optional[Expression] = None):
        self.cond = cond
        self.body = body
        self.else_branch = else_branch


class WhileLoop(Expression):
    _fields = ("cond", "body")

    def __init__(self, cond: Expression, body: Expression):
        self.cond = cond
        self.body = body


# =================================================================
# Errors
# =================================================================

class GateError(Exception):
    """Base class for every error raised by the Gate pipeline.

    Errors compare equal by class and payload so callers (and tests) can
    match on them the same way they match on tokens or nodes.
    """
    def _payload(self) -> tuple:
        return ()

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self._payload() == other._payload()

    def __hash__(self):
        return hash((type(self).__name__,) + self._payload())

    def __repr__(self) -> str:
        args = ", ".join(repr(v) for v in self._payload())
        return f"{type(self).__name__}({args})"


# --- Scanning ---

class TokenError(GateError):
    """A lexical error. The scanner can always be resumed after one."""


class UnexpectedChar(TokenError):
    def __init__(self, char: str):
        super().__init__(f"unexpected character {char!r}")
        self.char = char

    def _payload(self):
        return (self.char,)


class IncompleteString(TokenError):
    """Input ended inside a string literal; more input may complete it."""
    def __init__(self):
        super().__init__("incomplete string")


class InvalidEscape(TokenError):
    def __init__(self):
        super().__init__("invalid escape sequence")


# --- Parsing ---

class ParseError(GateError):
    pass


class ScanError(ParseError):
    """Wraps a TokenError met while parsing."""
    def __init__(self, error: TokenError):
        super().__init__(str(error))
        self.error = error

    def _payload(self):
        return (self.error,)


class Unexpected(ParseError):
    """A token appeared where the grammar does not allow it."""
    def __init__(self, token: Token):
        super().__init__(f"unexpected token '{token.source()}'")
        self.token = token

    def _payload(self):
        return (self.token,)


class UnexpectedEOF(ParseError):
    def __init__(self):
        super().__init__("unexpected end of input")


def needs_more_input(error: Exception) -> bool:
    """True when an error only means the input stopped too early."""
    if isinstance(error, ScanError):
        error = error.error
    return isinstance(error, (UnexpectedEOF, IncompleteString))


# --- Execution ---

class ExecuteError(GateError):
    pass


class UndefinedVar(ExecuteError):
    def __init__(self, name: str):
        super().__init__(f'undefined variable "{name}"')
        self.name = name

    def _payload(self):
        return (self.name,)


class UndefinedFunc(ExecuteError):
    def __init__(self, name: str):
        super().__init__(f'undefined function "{name}"')
        self.name = name

    def _payload(self):
        return (self.name,)


class InvalidOperation(ExecuteError):
    def __init__(self, left: str, op: BinaryOp, right: str):
        super().__init__(f"invalid operation ({left} {op.symbol} {right})")
        self.left = left
        self.op = op
        self.right = right

    def _payload(self):
        return (self.left, self.op, self.right)
