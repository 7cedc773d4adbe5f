"""
A pretty-printer for calcchain data structures.
"""
import math

from calcchain.calc_datatypes import (
    CallDescriptor, ParsedExpression, CallDiagnostic, EvaluationOutcome, ParseError
)


def format_number(x) -> str:
    """Render a number the way the calculator logs it: 15 rather than 15.0."""
    if isinstance(x, bool):
        return str(x)
    if isinstance(x, float):
        if math.isfinite(x) and x.is_integer():
            return str(int(x))
        return repr(x)
    return str(x)


class Printer:
    """Formats expressions back to source and outcomes into readable text."""

    def __init__(self, indent_width=2):
        self._indent_char = " " * indent_width
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, (list, tuple)):
            return self._pformat_sequence
        return lambda o, l: repr(o)

    def _create_handlers(self):
        return {
            int: self._pformat_number,
            float: self._pformat_number,
            bool: self._pformat_primitive,
            str: self._pformat_primitive,
            type(None): self._pformat_none,
            CallDescriptor: self._pformat_call,
            ParsedExpression: self._pformat_expression,
            CallDiagnostic: self._pformat_diagnostic,
            EvaluationOutcome: self._pformat_outcome,
            ParseError: self._pformat_parse_error,
        }

    def _pformat_primitive(self, obj, level):
        return str(obj)

    def _pformat_number(self, obj, level):
        return format_number(obj)

    def _pformat_none(self, obj, level):
        return 'none'

    def _pformat_sequence(self, obj, level):
        indent = self._indent_char * level
        return "\n".join(f"{indent}{self.pformat(item, level)}" for item in obj)

    def _pformat_call(self, obj, level):
        return f"{obj.name}({obj.raw_argument or ''})"

    def _pformat_expression(self, obj, level):
        head = f"{obj.constructor}({format_number(obj.seed)})"
        return head + "".join(f".{self._pformat_call(c, level)}" for c in obj.calls)

    def _pformat_diagnostic(self, obj, level):
        line = f"[{obj.call_index}] {obj.name}: {obj.status}"
        if obj.message:
            line += f" - {obj.message}"
        return line

    def _pformat_outcome(self, obj, level):
        indent = self._indent_char * level
        lines = [f"{indent}{self._pformat_diagnostic(d, level)}" for d in obj.diagnostics]
        lines.append(f"{indent}result: {format_number(obj.final_value)}")
        return "\n".join(lines)

    def _pformat_parse_error(self, obj, level):
        where = f" (col {obj.col})" if obj.col is not None else ""
        return f"ParseError[{obj.kind}]: {obj.message}{where}"
