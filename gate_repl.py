import sys
from pathlib import Path

from gate.gate_runtime import ScriptRunner
from gate.gate_printer import Printer
from gate.gate_parser import Parser
from gate.gate_datatypes import ParseError
from gate.gate_serialize import serialize

# A basic input prompt; returns "" at end of input.
def read_line(prompt: str) -> str:
    sys.stdout.write(prompt)
    sys.stdout.flush()
    return sys.stdin.readline()

def run_source(source: str) -> int:
    """Run a whole Gate program non-interactively; returns the exit status."""
    runner = ScriptRunner()
    result = runner.handle_script(source)
    if result.status != 'success':
        print(result.format_error(), file=sys.stderr)
        return 1
    return 0

def run_script_file(file_path: str) -> int:
    """Run a Gate script file non-interactively."""
    p = Path(file_path)
    try:
        source = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        return 1
    return run_source(source)

def dump_ast(file_path: str, fmt: str = "yaml") -> int:
    """Print the parsed expression tree of a script as a JSON or YAML document."""
    source = sys.stdin.read() if file_path == "-" else Path(file_path).read_text(encoding="utf-8")
    try:
        program = list(Parser(source))
    except ParseError as e:
        print(f"ParseError: {e}", file=sys.stderr)
        return 1
    print(serialize(program, fmt=fmt), end="")
    return 0

def repl() -> int:
    """Interactive loop; keeps reading lines while the input is incomplete."""
    print("Gate REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    runner = ScriptRunner()
    printer = Printer()
    buffer = ""

    while True:
        raw = read_line(".. " if buffer else ">> ")
        if raw == "":
            print("\nExiting.")
            return 0
        if not buffer and raw.strip() == "exit":
            return 0
        if not buffer and not raw.strip():
            continue

        buffer += raw
        try:
            result = runner.handle_script(buffer)

            if result.status == 'incomplete':
                continue
            buffer = ""

            if result.status == 'error':
                print(result.format_error(), file=sys.stderr)
                continue

            if result.value is not None:
                print(printer.pformat(result.value))
        except Exception as e:
            # Keep the session alive; drop the input that failed
            buffer = ""
            print(f"Error: {e}", file=sys.stderr)

def main(argv=None) -> int:
    """Run a script file when provided, otherwise stdin or the interactive REPL."""
    args = list(sys.argv[1:] if argv is None else argv)

    if args and args[0] == "--ast":
        rest = args[1:]
        fmt = "yaml"
        if "--format" in rest:
            i = rest.index("--format")
            fmt = rest[i + 1] if i + 1 < len(rest) else fmt
            del rest[i:i + 2]
        return dump_ast(rest[0] if rest else "-", fmt)

    if args:
        if args[0] == "-":
            return run_source(sys.stdin.read())
        return run_script_file(args[0])

    if not sys.stdin.isatty():
        return run_source(sys.stdin.read())
    return repl()

if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        print("\nExiting.")
