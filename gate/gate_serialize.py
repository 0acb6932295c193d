from __future__ import annotations

import json
from typing import Any, Optional

import yaml

from gate.gate_datatypes import (
    BinaryOp,
    Expression, NilLiteral, BooleanLiteral, NumberLiteral, StrLiteral,
    Variable, ParenExpr, Block, Assignment, FunctionCall, BinaryExpr,
    IfExpr, WhileLoop,
)


# --------------------------
# Helpers
# --------------------------

_OPS_BY_SYMBOL = {op.symbol: op for op in BinaryOp}


def to_builtin(node: Any) -> Any:
    """Converts an expression tree (or a list of them) to tagged plain dicts."""
    if isinstance(node, list):
        return [to_builtin(n) for n in node]
    match node:
        case NilLiteral():
            return {'tag': 'nil'}
        case BooleanLiteral(value=v):
            return {'tag': 'boolean', 'value': v}
        case NumberLiteral(value=v):
            return {'tag': 'number', 'value': v}
        case StrLiteral(value=v):
            return {'tag': 'string', 'value': v}
        case Variable(name=name):
            return {'tag': 'variable', 'name': name}
        case ParenExpr(inner=inner):
            return {'tag': 'paren', 'inner': to_builtin(inner)}
        case Block(body=body):
            return {'tag': 'block', 'body': [to_builtin(n) for n in body]}
        case Assignment(left=left, right=right):
            return {'tag': 'assign', 'name': left, 'value': to_builtin(right)}
        case FunctionCall(name=name, args=args):
            return {'tag': 'call', 'name': name, 'args': [to_builtin(a) for a in args]}
        case BinaryExpr(left=left, op=op, right=right):
            return {'tag': 'binary', 'op': op.symbol, 'left': to_builtin(left), 'right': to_builtin(right)}
        case IfExpr(cond=cond, body=body, else_branch=else_branch):
            out = {'tag': 'if', 'cond': to_builtin(cond), 'body': to_builtin(body)}
            if else_branch is not None:
                out['else'] = to_builtin(else_branch)
            return out
        case WhileLoop(cond=cond, body=body):
            return {'tag': 'while', 'cond': to_builtin(cond), 'body': to_builtin(body)}
    raise TypeError(f"cannot serialize {type(node).__name__}")


def from_builtin(data: Any) -> Any:
    """Rebuilds an expression tree (or a list of them) from tagged plain dicts."""
    if isinstance(data, list):
        return [from_builtin(d) for d in data]
    if not isinstance(data, dict) or 'tag' not in data:
        raise ValueError(f"not an expression document: {data!r}")
    match data['tag']:
        case 'nil':
            return NilLiteral()
        case 'boolean':
            if not isinstance(data['value'], bool):
                raise ValueError(f"boolean value must be true or false: {data['value']!r}")
            return BooleanLiteral(data['value'])
        case 'number':
            return NumberLiteral(float(data['value']))
        case 'string':
            return StrLiteral(str(data['value']))
        case 'variable':
            return Variable(data['name'])
        case 'paren':
            return ParenExpr(from_builtin(data['inner']))
        case 'block':
            return Block(from_builtin(n) for n in data.get('body') or [])
        case 'assign':
            return Assignment(data['name'], from_builtin(data['value']))
        case 'call':
            return FunctionCall(data['name'], (from_builtin(a) for a in data.get('args') or []))
        case 'binary':
            op = _OPS_BY_SYMBOL.get(data['op'])
            if op is None:
                raise ValueError(f"unknown operator: {data['op']!r}")
            return BinaryExpr(from_builtin(data['left']), op, from_builtin(data['right']))
        case 'if':
            else_data = data.get('else')
            else_branch = from_builtin(else_data) if else_data is not None else None
            return IfExpr(from_builtin(data['cond']), from_builtin(data['body']), else_branch)
        case 'while':
            return WhileLoop(from_builtin(data['cond']), from_builtin(data['body']))
    raise ValueError(f"unknown expression tag: {data['tag']!r}")


def detect_format(data_hint: Optional[str] = None) -> str:
    """
    Returns 'json' when the text looks like a JSON document, else 'yaml'.
    YAML is a superset of JSON, so it is the safe fallback.
    """
    if data_hint is not None:
        s = data_hint.lstrip()
        if s.startswith('{') or s.startswith('['):
            return 'json'
    return 'yaml'


# --------------------------
# Public API
# --------------------------

def serialize(value: Expression | list, *, fmt: str, pretty: bool = True) -> str:
    """
    Convert an expression tree (or a list of them) into a text document.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    built = to_builtin(value)
    if f == 'json':
        return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        return yaml.safe_dump(built, sort_keys=False, allow_unicode=True)
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


def deserialize(data: bytes | bytearray | str, *, fmt: Optional[str] = None) -> Any:
    """
    Convert a JSON or YAML document back into an expression tree.
    If fmt is None, the format is sniffed from the text.
    """
    text = data.decode('utf-8') if isinstance(data, (bytes, bytearray)) else data
    f = (fmt or detect_format(text)).lower()
    if f == 'json':
        return from_builtin(json.loads(text))
    if f == 'yaml':
        return from_builtin(yaml.safe_load(text))
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "to_builtin",
    "from_builtin",
    "deserialize",
    "serialize",
    "detect_format",
]
