"""
A pretty-printer for Gate values and expression trees.
"""
from gate.gate_datatypes import (
    format_number,
    NilLiteral, BooleanLiteral, NumberLiteral, StrLiteral,
    Variable, ParenExpr, Block, Assignment, FunctionCall, BinaryExpr,
    IfExpr, WhileLoop,
)


class Printer:
    """Formats Gate values and expressions into readable, valid Gate source."""

    def __init__(self, indent_width=2):
        self._indent_char = " " * indent_width
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, list):
            return self._pformat_program
        # Default to Python's repr for unknown types
        return lambda o, l: repr(o)

    def _create_handlers(self):
        return {
            # Values
            str: self._pformat_str,
            float: self._pformat_number,
            bool: self._pformat_bool,
            type(None): self._pformat_nil,
            # Expressions
            NilLiteral: lambda o, l: "nil",
            BooleanLiteral: lambda o, l: self._pformat_bool(o.value, l),
            NumberLiteral: lambda o, l: self._pformat_number(o.value, l),
            StrLiteral: lambda o, l: self._pformat_str(o.value, l),
            Variable: lambda o, l: o.name,
            ParenExpr: self._pformat_paren,
            Block: self._pformat_block,
            Assignment: self._pformat_assignment,
            FunctionCall: self._pformat_call,
            BinaryExpr: self._pformat_binary,
            IfExpr: self._pformat_if,
            WhileLoop: self._pformat_while,
        }

    # --- values ---

    def _pformat_str(self, obj, level):
        escaped = obj.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'

    def _pformat_number(self, obj, level):
        return format_number(obj)

    def _pformat_bool(self, obj, level):
        return 'true' if obj else 'false'

    def _pformat_nil(self, obj, level):
        return 'nil'

    # --- expressions ---

    def _pformat_program(self, obj, level):
        return "\n".join(self.pformat(expr, level) for expr in obj)

    def _pformat_paren(self, obj: ParenExpr, level):
        return f"({self.pformat(obj.inner, level)})"

    def _pformat_block(self, obj: Block, level):
        if not obj.body:
            return "{}"

        outer_indent = self._indent_char * level
        inner_level = level + 1
        inner_indent = self._indent_char * inner_level

        lines = []
        for node in obj.body:
            # Nested lines are already indented by the recursive call.
            lines.append(inner_indent + self.pformat(node, inner_level))
        return "{\n" + "\n".join(lines) + f"\n{outer_indent}}}"

    def _pformat_assignment(self, obj: Assignment, level):
        return f"{obj.left} = {self.pformat(obj.right, level)}"

    def _pformat_call(self, obj: FunctionCall, level):
        args = ", ".join(self.pformat(a, level) for a in obj.args)
        return f"{obj.name}({args})"

    def _pformat_binary(self, obj: BinaryExpr, level):
        return f"{self.pformat(obj.left, level)} {obj.op.symbol} {self.pformat(obj.right, level)}"

    def _pformat_if(self, obj: IfExpr, level):
        out = f"if {self.pformat(obj.cond, level)} {self.pformat(obj.body, level)}"
        if obj.else_branch is not None:
            out += f" else {self.pformat(obj.else_branch, level)}"
        return out

    def _pformat_while(self, obj: WhileLoop, level):
        return f"while {self.pformat(obj.cond, level)} {self.pformat(obj.body, level)}"


def pformat(obj) -> str:
    return Printer().pformat(obj)


__all__ = ["Printer", "pformat"]
