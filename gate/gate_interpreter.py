"""
The core Gate interpreter, containing the ScopeChain and the Evaluator.
"""
import os
import sys
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional, TextIO

from gate.gate_datatypes import (
    Expression, NilLiteral, BooleanLiteral, NumberLiteral, StrLiteral,
    Variable, ParenExpr, Block, Assignment, FunctionCall, BinaryExpr,
    IfExpr, WhileLoop,
    UndefinedVar, UndefinedFunc,
)

_MISSING = object()


class ScopeChain:
    """The stack of variable frames a program runs against.

    The first frame is the global one and is never removed. Blocks push a
    frame on entry and pop it on exit, so frames always leave in reverse
    order of creation.
    """
    def __init__(self):
        self.frames: List[Dict[str, Any]] = [{}]

    @property
    def depth(self) -> int:
        return len(self.frames)

    def lookup(self, name: str) -> Any:
        """Returns the nearest binding of `name`; KeyError when unbound."""
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]
        raise KeyError(name)

    def get(self, name: str, default: Any = None) -> Any:
        try:
            return self.lookup(name)
        except KeyError:
            return default

    def __contains__(self, name: str) -> bool:
        return any(name in frame for frame in self.frames)

    def assign(self, name: str, value: Any):
        """Overwrites the nearest existing binding, else binds in the innermost frame."""
        for frame in reversed(self.frames):
            if name in frame:
                frame[name] = value
                return
        self.frames[-1][name] = value

    def push_frame(self):
        self.frames.append({})

    def pop_frame(self):
        if len(self.frames) == 1:
            raise IndexError("cannot pop the global frame")
        self.frames.pop()

    @contextmanager
    def frame(self):
        """Pushes a frame for the duration of a with-block, popping it even on error."""
        self.push_frame()
        try:
            yield self
        finally:
            self.pop_frame()

    def __repr__(self) -> str:
        names = [', '.join(f.keys()) for f in self.frames]
        return f"<ScopeChain frames={names!r}>"


class Evaluator:
    """The Gate execution engine: a recursive walk over the expression tree."""

    def __init__(self, stdout: Optional[TextIO] = None):
        # Where println writes; None means the process stdout at write time.
        self.stdout = stdout
        self.functions: Dict[str, Callable[..., Any]] = {}
        self.call_stack: List[Dict[str, Any]] = []
        self.current_node: Optional[Expression] = None

        from gate.gate_runtime import StdLib  # local import to avoid a cycle
        StdLib(self).install()

    @property
    def out(self) -> TextIO:
        return self.stdout if self.stdout is not None else sys.stdout

    def _dbg(self, *parts):
        if os.environ.get("GATE_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def _push_frame(self, name, args, call_site_node):
        self.call_stack.append({
            'name': name,
            'args': args,
            'call_site': call_site_node,
        })

    def _pop_frame(self):
        if self.call_stack:
            self.call_stack.pop()

    def eval(self, node: Expression, scope: ScopeChain) -> Any:
        """Evaluates a node, returning its value or raising an ExecuteError."""
        self.current_node = node
        match node:
            case NilLiteral():
                return None

            case BooleanLiteral() | NumberLiteral() | StrLiteral():
                return node.value

            case Variable(name=name):
                value = scope.get(name, _MISSING)
                if value is _MISSING:
                    raise UndefinedVar(name)
                return value

            case ParenExpr(inner=inner):
                return self.eval(inner, scope)

            case Block(body=body):
                result = None
                with scope.frame():
                    self._dbg("BLOCK enter", "depth", scope.depth, "items", len(body))
                    for expr in body:
                        result = self.eval(expr, scope)
                return result

            case Assignment(left=name, right=right):
                value = self.eval(right, scope)
                scope.assign(name, value)
                self._dbg("SET", name, "=", repr(value))
                return value

            case FunctionCall(name=name, args=arg_nodes):
                return self._call(node, name, arg_nodes, scope)

            case BinaryExpr(left=left, op=op, right=right):
                lval = self.eval(left, scope)
                rval = self.eval(right, scope)
                result = op.apply(lval, rval)
                self._dbg("BINOP", repr(lval), op.symbol, repr(rval), "->", repr(result))
                return result

            case IfExpr(cond=cond, body=body, else_branch=else_branch):
                # Only an exact `false` takes the else path; nil and 0 do not.
                if self.eval(cond, scope) is not False:
                    return self.eval(body, scope)
                if else_branch is not None:
                    return self.eval(else_branch, scope)
                return None

            case WhileLoop(cond=cond, body=body):
                last = None
                iterations = 0
                while self.eval(cond, scope) is not False:
                    last = self.eval(body, scope)
                    iterations += 1
                self._dbg("WHILE done", "iterations", iterations)
                return last

        raise TypeError(f"cannot evaluate {node!r}")

    def _call(self, node: FunctionCall, name: str, arg_nodes, scope: ScopeChain) -> Any:
        func = self.functions.get(name)
        if func is None:
            raise UndefinedFunc(name)
        # The frame stays on the stack when anything below it fails, so the
        # runner can report where the error happened.
        self._push_frame(name, [], node)
        args = self.call_stack[-1]['args']
        for a in arg_nodes:
            args.append(self.eval(a, scope))
        self._dbg("CALL", name, "argc", len(args))
        result = func(*args)
        self._pop_frame()
        return result
