import pytest

from gate.gate_parser import Parser, parse, parse_one
from gate.gate_scanner import Scanner
from gate.gate_datatypes import (
    BinaryOp, Token, TokenKind,
    NilLiteral, BooleanLiteral, NumberLiteral as Num, StrLiteral,
    Variable as Var, ParenExpr, Block, Assignment, FunctionCall, BinaryExpr,
    IfExpr, WhileLoop,
    ScanError, Unexpected, UnexpectedEOF,
    UnexpectedChar, IncompleteString, InvalidEscape,
    needs_more_input,
)

ADD, SUB, MUL, DIV, MOD = BinaryOp.ADD, BinaryOp.SUB, BinaryOp.MUL, BinaryOp.DIV, BinaryOp.MOD
EQ, LT = BinaryOp.EQ, BinaryOp.LT

def B(left, op, right):
    return BinaryExpr(left, op, right)

# --- Literals and grouping ---

def test_literal():
    parser = Parser('nil true false 1 "foo"')
    assert next(parser) == NilLiteral()
    assert next(parser) == BooleanLiteral(True)
    assert next(parser) == BooleanLiteral(False)
    assert next(parser) == Num(1.0)
    assert next(parser) == StrLiteral("foo")
    with pytest.raises(StopIteration):
        next(parser)

def test_parenthesis():
    assert parse("(nil)(((true)))") == [
        ParenExpr(NilLiteral()),
        ParenExpr(ParenExpr(ParenExpr(BooleanLiteral(True)))),
    ]

def test_parser_accepts_a_scanner():
    assert list(Parser(Scanner("1 2"))) == [Num(1), Num(2)]

def test_empty_input_yields_nothing():
    assert parse("") == []
    assert parse("   \n ") == []

# --- Identifiers and calls ---

def test_identifier_and_function_call():
    foo = Var("foo")
    assert parse("foo foo() foo(foo) foo(foo, foo)") == [
        foo,
        FunctionCall("foo", []),
        FunctionCall("foo", [foo]),
        FunctionCall("foo", [foo, foo]),
    ]

def test_call_arguments_are_full_units():
    assert parse_one("println(1 + 2, x = 3)") == FunctionCall("println", [
        B(Num(1), ADD, Num(2)),
        Assignment("x", Num(3)),
    ])

def test_trailing_comma_in_call_is_unexpected():
    with pytest.raises(Unexpected) as exc:
        parse("f(1,)")
    assert exc.value.token == Token(TokenKind.CLOSE_PAREN)

def test_call_missing_separator_is_unexpected():
    with pytest.raises(Unexpected) as exc:
        parse("f(1 2)")
    assert exc.value.token == Token(TokenKind.NUMBER, 2.0)

def test_unclosed_call_needs_more_input():
    with pytest.raises(UnexpectedEOF):
        parse("f(1,")

# --- Binary expressions and precedence ---

@pytest.mark.parametrize("symbol, op", [
    ("+", ADD), ("-", SUB), ("*", MUL), ("/", DIV), ("%", MOD),
    ("==", EQ), ("<", LT), ("<=", BinaryOp.LT_EQ),
    (">", BinaryOp.GT), (">=", BinaryOp.GT_EQ),
])
def test_binary_op(symbol, op):
    assert parse(f"1 {symbol} 2") == [B(Num(1), op, Num(2))]

def test_binary_expr_same_precedence_groups_right():
    assert parse("1 + 2 - 3 * 4 / 5") == [
        B(Num(1), ADD, B(Num(2), SUB, B(Num(3), MUL, B(Num(4), DIV, Num(5))))),
    ]

def test_precedence():
    assert parse("1 + 2 * 3  1 * 2 + 3") == [
        B(Num(1), ADD, B(Num(2), MUL, Num(3))),
        B(B(Num(1), MUL, Num(2)), ADD, Num(3)),
    ]

def test_precedence_rotation_recurses_through_a_chain():
    a, b, c, d = Var("a"), Var("b"), Var("c"), Var("d")
    assert parse_one("a * b + c < d") == B(B(B(a, MUL, b), ADD, c), LT, d)
    assert parse_one("a == b % c + d") == B(a, EQ, B(b, MOD, B(c, ADD, d)))
    assert parse_one("a + b == c * d") == B(B(a, ADD, b), EQ, B(c, MUL, d))

def test_parentheses_block_rotation():
    assert parse_one("2 * (3 + 4)") == B(Num(2), MUL, ParenExpr(B(Num(3), ADD, Num(4))))

def test_signed_literal_is_not_an_operator():
    # "1 -2" scans as two numbers, so it is two separate statements.
    assert parse("1 -2") == [Num(1), Num(-2)]
    assert parse("1 - -2") == [B(Num(1), SUB, Num(-2))]

def test_missing_right_operand_needs_more_input():
    with pytest.raises(UnexpectedEOF):
        parse("1 +")

# --- Blocks ---

def test_block():
    assert parse("{1{}2}") == [Block([Num(1), Block([]), Num(2)])]

def test_unclosed_block_needs_more_input():
    with pytest.raises(UnexpectedEOF) as exc:
        parse("{ x = 1")
    assert needs_more_input(exc.value)

def test_stray_close_curly_is_unexpected():
    with pytest.raises(Unexpected) as exc:
        parse("}")
    assert exc.value.token == Token(TokenKind.CLOSE_CURLY)

# --- Assignment ---

def test_assignment():
    assert parse("x = y = z") == [Assignment("x", Assignment("y", Var("z")))]

def test_assignment_takes_a_whole_binary_expression():
    assert parse_one("x = 1 + 2 * 3") == Assignment("x", B(Num(1), ADD, B(Num(2), MUL, Num(3))))

def test_assignment_only_to_a_bare_variable():
    parser = Parser("(x) = 1")
    assert next(parser) == ParenExpr(Var("x"))
    with pytest.raises(Unexpected) as exc:
        next(parser)
    assert exc.value.token == Token(TokenKind.EQ)
    assert next(parser) == Num(1)

def test_assignment_then_next_statement():
    assert parse("x = 1 x") == [Assignment("x", Num(1)), Var("x")]

# --- Control flow ---

def test_if_expr():
    assert parse("if true {} else if false {}") == [
        IfExpr(BooleanLiteral(True), Block([]), IfExpr(BooleanLiteral(False), Block([]), None)),
    ]

def test_if_without_else():
    assert parse("if x { 1 } 2") == [IfExpr(Var("x"), Block([Num(1)])), Num(2)]

def test_if_parts_are_single_units():
    assert parse_one("if x < 1 y = 2 else y = 3") == IfExpr(
        B(Var("x"), LT, Num(1)),
        Assignment("y", Num(2)),
        Assignment("y", Num(3)),
    )

def test_if_missing_body_needs_more_input():
    with pytest.raises(UnexpectedEOF):
        parse("if true")
    with pytest.raises(UnexpectedEOF):
        parse("if true {} else")

def test_while_loop():
    assert parse("while true {}") == [WhileLoop(BooleanLiteral(True), Block([]))]

def test_while_counter():
    assert parse_one("while x < 5 { x = x + 1 }") == WhileLoop(
        B(Var("x"), LT, Num(5)),
        Block([Assignment("x", B(Var("x"), ADD, Num(1)))]),
    )

def test_stray_else_is_unexpected():
    with pytest.raises(Unexpected) as exc:
        parse("else 1")
    assert exc.value.token == Token(TokenKind.ELSE)

# --- Errors ---

def test_scan_errors_are_wrapped():
    with pytest.raises(ScanError) as exc:
        parse("1 + $")
    assert exc.value.error == UnexpectedChar("$")

def test_incomplete_string_needs_more_input():
    with pytest.raises(ScanError) as exc:
        parse('println("abc')
    assert exc.value.error == IncompleteString()
    assert needs_more_input(exc.value)

def test_invalid_escape_is_terminal():
    with pytest.raises(ScanError) as exc:
        parse(r'"\n"')
    assert exc.value.error == InvalidEscape()
    assert not needs_more_input(exc.value)

def test_unclosed_paren_is_eof_wrong_closer_is_unexpected():
    with pytest.raises(UnexpectedEOF):
        parse("(1")
    with pytest.raises(Unexpected) as exc:
        parse("(1}")
    assert exc.value.token == Token(TokenKind.CLOSE_CURLY)

def test_parser_continues_after_an_error():
    parser = Parser("1 ) 2")
    assert next(parser) == Num(1)
    with pytest.raises(Unexpected):
        next(parser)
    assert next(parser) == Num(2)

def test_scan_error_after_a_complete_unit_surfaces_on_the_next_pull():
    parser = Parser("x $")
    assert next(parser) == Var("x")
    with pytest.raises(ScanError):
        next(parser)
    with pytest.raises(StopIteration):
        next(parser)

def test_parse_one_rejects_trailing_input():
    with pytest.raises(Unexpected):
        parse_one("1 2")
