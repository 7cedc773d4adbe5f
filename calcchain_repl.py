import sys
from pathlib import Path

from calcchain.calc_runtime import ChainRunner
from calcchain.calc_printer import Printer
from calcchain.calc_serialize import serialize, deserialize, detect_format


def read_line(prompt: str) -> str:
    return input(prompt)


def print_result(result, printer: Printer, fmt=None):
    """Print side effects, then the outcome or the error."""
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        return
    if fmt:
        print(serialize(result.outcome, fmt=fmt))
        return
    for effect in result.side_effects:
        topics = effect.get('topics')
        if topics == ['stdout']:
            print(effect.get('message', ''))
        elif topics == ['stderr']:
            print(effect.get('message', ''), file=sys.stderr)
    for diag in result.outcome.diagnostics:
        if not diag.ok:
            print(printer.pformat(diag), file=sys.stderr)
    print(printer.pformat(result.value))


def load_expressions(file_path: str) -> list:
    """Read expressions from a text file (one per line) or a YAML/JSON list."""
    p = Path(file_path)
    source = p.read_text(encoding="utf-8")
    fmt = detect_format(str(p))
    if fmt:
        data = deserialize(source, fmt=fmt)
        if not isinstance(data, list):
            raise ValueError(f"{file_path}: expected a list of expressions")
        return [str(item) for item in data]
    lines = (line.strip() for line in source.splitlines())
    return [line for line in lines if line and not line.startswith("#")]


def run_script_file(file_path: str, fmt=None, strict: bool = False):
    """Evaluate every expression in a file and exit with status 1 on a parse failure."""
    runner = ChainRunner(strict=strict)
    printer = Printer()
    try:
        expressions = load_expressions(file_path)
    except FileNotFoundError:
        print(f"Error: file not found: {file_path}", file=sys.stderr)
        raise SystemExit(1)
    failed = False
    for source in expressions:
        result = runner.handle_expression(source)
        print_result(result, printer, fmt)
        failed = failed or result.status == 'error'
    if failed:
        raise SystemExit(1)


def main(argv=None):
    """Run an expression file when provided, otherwise start the interactive REPL."""
    args = list(sys.argv[1:] if argv is None else argv)
    fmt = None
    if "--json" in args:
        fmt = "json"
    if "--yaml" in args:
        fmt = "yaml"
    strict = "--strict" in args
    paths = [a for a in args if not a.startswith("-")]
    if paths:
        run_script_file(paths[0], fmt=fmt, strict=strict)
        return

    print("calcchain REPL v0.1")
    print("Type 'exit' or press Ctrl+D to quit.")

    runner = ChainRunner(strict=strict)
    printer = Printer()

    while True:
        try:
            line = read_line(">> ").strip()
            if not line:
                continue
            if line == "exit":
                break
            print_result(runner.handle_expression(line), printer, fmt)
        except EOFError:
            print("\nExiting.")
            break


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nExiting.")
