# gate_runtime.py

import inspect
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, TextIO

from gate.gate_datatypes import (
    display, needs_more_input,
    Expression, TokenError, ParseError, ScanError, ExecuteError,
)
from gate.gate_parser import Parser
from gate.gate_interpreter import Evaluator, ScopeChain
from gate.gate_printer import Printer


# ===================================================================
# 1. The Standard Library
# ===================================================================

class StdLib:
    """Contains Python implementations for all Gate built-ins.

    Every method named `_<name>` is installed as the built-in `<name>`.
    """
    def __init__(self, evaluator: Evaluator):
        self.evaluator = evaluator

    def install(self):
        for name, member in inspect.getmembers(self):
            if name.startswith('_') and not name.startswith('__') and callable(member):
                self.evaluator.functions[name[1:]] = member

    def _println(self, *args):
        # One write per call keeps the arguments and the newline contiguous.
        self.evaluator.out.write("".join(display(a) for a in args) + "\n")
        return None


# ===================================================================
# 2. Script Execution
# ===================================================================

@dataclass
class ExecutionResult:
    """The structured result of a script execution."""
    status: Literal['success', 'error', 'incomplete']
    value: Any = None
    error_message: Optional[str] = None
    error: Optional[Exception] = None
    # Built-in calls that were in progress when a runtime error was raised.
    call_stack: List[Dict[str, Any]] = field(default_factory=list)

    def format_error(self) -> str:
        """Formats an error message prefixed with the kind of failure."""
        if self.status == 'success':
            return ""
        msg = str(self.error_message or "Unknown error")
        match self.error:
            case ScanError() | TokenError():
                msg = f"ScanError: {msg}"
            case ParseError():
                msg = f"ParseError: {msg}"
            case ExecuteError():
                msg = f"RuntimeError: {msg}"
            case RecursionError():
                msg = f"RecursionError: {msg}"
        st = self._format_stacktrace()
        if st:
            msg += "\n" + st
        return msg

    def _format_stacktrace(self) -> str:
        if not self.call_stack:
            return ""
        pf = Printer().pformat
        return "Gate stacktrace: " + " -> ".join(pf(frame['call_site']) for frame in self.call_stack)


class ScriptRunner:
    """Parses and executes Gate code against a persistent scope chain."""

    def __init__(self, stdout: Optional[TextIO] = None):
        self.evaluator = Evaluator(stdout=stdout)
        self.scope = ScopeChain()

    def parse(self, source_code: str) -> List[Expression]:
        """Drains a parser over the whole source, raising the first ParseError."""
        return list(Parser(source_code))

    def handle_script(self, source_code: str) -> ExecutionResult:
        """The main entry point to execute a script.

        Nothing runs unless the whole source parses. Statements then run in
        order; a runtime error stops the run but keeps the effects of the
        statements before it.
        """
        self.evaluator.call_stack.clear()

        # 1. Parse
        try:
            program = self.parse(source_code)
        except ParseError as e:
            if needs_more_input(e):
                return ExecutionResult(status='incomplete', error_message=str(e), error=e)
            return ExecutionResult(status='error', error_message=str(e), error=e)
        except RecursionError as e:
            return ExecutionResult(status='error', error_message="expression nests too deeply to parse", error=e)

        # 2. Evaluate
        result = None
        for expr in program:
            try:
                result = self.evaluator.eval(expr, self.scope)
            except ExecuteError as e:
                self.evaluator._dbg("ERROR", repr(e), "at", repr(self.evaluator.current_node))
                return ExecutionResult(status='error', error_message=str(e), error=e,
                                       call_stack=list(self.evaluator.call_stack))
            except RecursionError as e:
                self.evaluator._dbg("ERROR", "recursion limit", "call depth", len(self.evaluator.call_stack))
                return ExecutionResult(status='error', error_message="expression nests too deeply to evaluate", error=e)

        return ExecutionResult(status='success', value=result)
