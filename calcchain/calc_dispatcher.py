"""
Dispatches the calls of a ParsedExpression against an operation registry.

The registry supplies, by duck typing:
  - get(name) -> descriptor with `parameter_count` and `invoke(acc, *args)`
  - create(seed, side_effects) -> a fresh accumulator
  - is_accumulator(obj) -> bool
  - value_of(acc) -> float

Failures inside a call become that call's diagnostic. An exception from
create() belongs to no call and propagates to the caller.
"""

import copy
from typing import Any, Optional

from calcchain.calc_datatypes import (
    ParsedExpression, CallDescriptor, CallDiagnostic, EvaluationOutcome,
    OK, UNKNOWN_OPERATION, BAD_ARGUMENT, INVOCATION_FAILED,
)
from calcchain.calc_parser import parse_number
from calcchain.calc_printer import format_number


class Dispatcher:
    """Threads one accumulator through a chain of named calls."""

    def __init__(self, operations):
        self.operations = operations

    def evaluate(self, expr: ParsedExpression) -> EvaluationOutcome:
        outcome = EvaluationOutcome()
        acc = self.operations.create(expr.seed, outcome.side_effects)
        for index, call in enumerate(expr.calls):
            acc, diag = self._dispatch(index, call, acc)
            outcome.diagnostics.append(diag)
        outcome.final_value = self.operations.value_of(acc)
        return outcome

    def _dispatch(self, index: int, call: CallDescriptor, acc):
        def diag(status, message=""):
            return CallDiagnostic(index, call.name, status, message, self.operations.value_of(acc))

        # 1. Resolve
        op = self.operations.get(call.name)
        if op is None:
            return acc, diag(UNKNOWN_OPERATION, f"UnknownOperation: {call.name}")

        # 2. Bind
        args = ()
        note = ""
        if op.parameter_count == 1:
            if call.raw_argument is None:
                return acc, diag(BAD_ARGUMENT, f"BadArgument: {call.name} expects a numeric argument")
            try:
                args = (parse_number(call.raw_argument),)
            except ValueError:
                return acc, diag(BAD_ARGUMENT, f"BadArgument: {call.raw_argument!r} is not a number")
        elif call.raw_argument is not None:
            note = f"ignored argument {call.raw_argument!r}"

        # 3. Invoke on a working copy so a failing call leaves `acc` untouched
        try:
            working = copy.copy(acc)
            returned = op.invoke(working, *args)
        except Exception as e:
            return acc, diag(INVOCATION_FAILED, f"InvocationFailed: {type(e).__name__}: {e}")

        # 4. Thread
        if self.operations.is_accumulator(returned):
            acc = returned
        else:
            acc = working
            note = self._join(note, f"returned {self._render(returned)}")
        return acc, diag(OK, note)

    @staticmethod
    def _render(value: Any) -> str:
        if isinstance(value, (int, float)):
            return format_number(value)
        return repr(value)

    @staticmethod
    def _join(a: str, b: Optional[str]) -> str:
        return f"{a}; {b}" if a and b else (a or b or "")


def evaluate(expr: ParsedExpression, operations) -> EvaluationOutcome:
    return Dispatcher(operations).evaluate(expr)
