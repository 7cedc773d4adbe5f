# calc_runtime.py

import inspect
import math
import collections.abc
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Type

from calcchain.calc_datatypes import ParseError, EvaluationOutcome
from calcchain.calc_parser import ExpressionParser
from calcchain.calc_dispatcher import Dispatcher
from calcchain.calc_printer import format_number

# ===================================================================
# 1. Host objects
# ===================================================================


def calc_api_method(func):
    """A decorator to explicitly mark methods as callable from expressions."""
    func._is_calc_api = True
    return func


class AccumulatorHost(ABC):
    """The required base class for any accumulator exposed to expressions."""
    def __init__(self, side_effects: Optional[List[Dict]] = None):
        self.side_effects: List[Dict] = side_effects if side_effects is not None else []

    @property
    @abstractmethod
    def value(self) -> float: raise NotImplementedError

    def emit(self, topic: str, message: str):
        self.side_effects.append({'topics': [topic], 'message': message})


class Calculator(AccumulatorHost):
    """A numeric accumulator whose operations return itself for chaining."""
    def __init__(self, initial_value: float = 0, side_effects: Optional[List[Dict]] = None):
        super().__init__(side_effects)
        self._value = float(initial_value)

    @property
    def value(self) -> float:
        return self._value

    def _log(self, text: str):
        self.emit('stdout', f"{text}, current value: {format_number(self._value)}")

    @calc_api_method
    def add(self, number: float):
        self._value += number
        self._log(f"Added {format_number(number)}")
        return self

    @calc_api_method
    def subtract(self, number: float):
        self._value -= number
        self._log(f"Subtracted {format_number(number)}")
        return self

    @calc_api_method
    def multiply(self, number: float):
        self._value *= number
        self._log(f"Multiplied by {format_number(number)}")
        return self

    @calc_api_method
    def divide(self, number: float):
        if number == 0:
            self.emit('stderr', "Error: Cannot divide by zero!")
            return self
        self._value /= number
        self._log(f"Divided by {format_number(number)}")
        return self

    @calc_api_method
    def square(self):
        self._value = self._value * self._value
        self._log("Squared")
        return self

    @calc_api_method
    def square_root(self):
        if self._value < 0:
            self.emit('stderr', "Error: Cannot take square root of negative number!")
            return self
        self._value = math.sqrt(self._value)
        self._log("Square root taken")
        return self

    @calc_api_method
    def clear(self):
        self._value = 0.0
        self.emit('stdout', "Calculator cleared, current value: 0")
        return self

    @calc_api_method
    def get_result(self) -> float:
        return self._value

    @calc_api_method
    def display_result(self):
        self.emit('stdout', f"Final result: {format_number(self._value)}")
        return self


# ===================================================================
# 2. Operation registry
# ===================================================================


def expression_name(py_name: str) -> str:
    """square_root -> SquareRoot"""
    return "".join(part[:1].upper() + part[1:] for part in py_name.split("_") if part)


@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    parameter_count: int
    func: Callable

    def invoke(self, accumulator, *args):
        return self.func(accumulator, *args)


class OperationRegistry(collections.abc.Mapping):
    """Read-only name -> OperationDescriptor table built once from a host class."""

    def __init__(self, host_class: Type[AccumulatorHost] = Calculator):
        self.host_class = host_class
        self._ops: Dict[str, OperationDescriptor] = {}
        for py_name, member in inspect.getmembers(host_class, inspect.isfunction):
            if not getattr(member, "_is_calc_api", False):
                continue
            params = list(inspect.signature(member).parameters.values())[1:]
            if len(params) > 1:
                raise TypeError(
                    f"{host_class.__name__}.{py_name} takes {len(params)} parameters; "
                    "expression operations take at most one"
                )
            name = expression_name(py_name)
            self._ops[name] = OperationDescriptor(name, len(params), member)

    def __getitem__(self, name: str) -> OperationDescriptor:
        return self._ops[name]

    def __iter__(self):
        return iter(self._ops)

    def __len__(self) -> int:
        return len(self._ops)

    def create(self, seed: float, side_effects: Optional[List[Dict]] = None) -> AccumulatorHost:
        return self.host_class(seed, side_effects=side_effects)

    def is_accumulator(self, obj) -> bool:
        return isinstance(obj, AccumulatorHost)

    def value_of(self, accumulator: AccumulatorHost) -> float:
        return accumulator.value


# ===================================================================
# 3. Expression execution
# ===================================================================

Token = Dict[str, Any]


@dataclass
class ExecutionResult:
    """The structured result of running one expression."""
    status: Literal['success', 'error']
    value: Any = None
    outcome: Optional[EvaluationOutcome] = None
    error_message: Optional[str] = None
    error_token: Optional[Token] = None
    side_effects: List[Dict] = field(default_factory=list)
    source: Optional[str] = None

    def format_error(self) -> str:
        """Formats an error message with a source excerpt when a column is known."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        col = (self.error_token or {}).get('col')
        if col is not None and self.source is not None:
            line = self.source.splitlines()[0] if self.source else ""
            caret = " " * max(col - 1, 0)
            return f"{msg} (col {col})\n  {line}\n  {caret}^"
        return msg


class ChainRunner:
    """Parses and evaluates fluent calculator expressions."""

    _registries: Dict[type, OperationRegistry] = {}

    def __init__(self, host_class: Type[AccumulatorHost] = Calculator, strict: bool = False):
        self.host_class = host_class
        self.parser = ExpressionParser(strict=strict)
        # Registries are read-only, so one per host class is shared across runners
        if host_class not in ChainRunner._registries:
            ChainRunner._registries[host_class] = OperationRegistry(host_class)
        self.operations = ChainRunner._registries[host_class]
        self.dispatcher = Dispatcher(self.operations)

    def handle_expression(self, source: str) -> ExecutionResult:
        """The main entry point to evaluate an expression."""
        try:
            expr = self.parser.parse(source)
        except ParseError as e:
            msg = f"ParseError: {e.message}"
            return ExecutionResult(
                status='error',
                error_message=msg,
                error_token={'kind': e.kind, 'col': e.col},
                side_effects=[{'topics': ['stderr'], 'message': msg}],
                source=source,
            )

        outcome = self.dispatcher.evaluate(expr)
        return ExecutionResult(
            status='success',
            value=outcome.final_value,
            outcome=outcome,
            side_effects=outcome.side_effects,
            source=source,
        )
