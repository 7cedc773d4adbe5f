import collections.abc

import pytest

from calcchain.calc_runtime import (
    AccumulatorHost, Calculator, OperationRegistry, ChainRunner, ExecutionResult,
    calc_api_method, expression_name,
)
from calcchain.calc_datatypes import OK, UNKNOWN_OPERATION


def assert_ok(res, expected=None):
    assert res.status == "success", f"expected success, got {res}"
    if expected is not None:
        assert res.value == expected, f"expected {expected!r}, got {res.value!r}"


# --- Host objects ---

def test_accumulator_host_is_abstract():
    with pytest.raises(TypeError):
        AccumulatorHost()


def test_calculator_chains_directly():
    calc = Calculator(10).add(5).subtract(3).multiply(2).divide(4).display_result()
    assert calc.get_result() == 6.0
    assert calc.side_effects[-1] == {'topics': ['stdout'], 'message': "Final result: 6"}


def test_calculator_default_seed_is_zero():
    assert Calculator().value == 0.0


def test_emit_appends_to_shared_side_effects():
    effects = []
    calc = Calculator(1, side_effects=effects)
    calc.emit('stderr', "careful")
    assert effects == [{'topics': ['stderr'], 'message': "careful"}]


# --- Registry ---

@pytest.mark.parametrize(
    "py_name,name",
    [("add", "Add"), ("square_root", "SquareRoot"), ("display_result", "DisplayResult"), ("get_result", "GetResult")],
)
def test_expression_names_are_pascal_case(py_name, name):
    assert expression_name(py_name) == name


def test_registry_exposes_only_marked_methods():
    ops = OperationRegistry(Calculator)
    assert isinstance(ops, collections.abc.Mapping)
    assert set(ops) == {
        "Add", "Subtract", "Multiply", "Divide", "Square", "SquareRoot",
        "Clear", "GetResult", "DisplayResult",
    }
    assert "Emit" not in ops
    assert ops.get("Value") is None


def test_registry_records_parameter_counts():
    ops = OperationRegistry(Calculator)
    assert ops["Add"].parameter_count == 1
    assert ops["Divide"].parameter_count == 1
    assert ops["Square"].parameter_count == 0
    assert ops["DisplayResult"].parameter_count == 0


def test_descriptor_invoke_calls_the_method():
    ops = OperationRegistry(Calculator)
    calc = Calculator(2)
    assert ops["Multiply"].invoke(calc, 4.0) is calc
    assert calc.value == 8.0


def test_registry_rejects_multi_parameter_operations():
    class TwoArgs(Calculator):
        @calc_api_method
        def add_both(self, a, b):
            return self

    with pytest.raises(TypeError, match="AddBoth|add_both"):
        OperationRegistry(TwoArgs)


def test_registry_creates_accumulators_from_seed():
    ops = OperationRegistry(Calculator)
    effects = []
    acc = ops.create(7.5, effects)
    assert isinstance(acc, Calculator)
    assert ops.value_of(acc) == 7.5
    assert acc.side_effects is effects
    assert ops.is_accumulator(acc)
    assert not ops.is_accumulator(7.5)


# --- ChainRunner ---

def test_runner_success_carries_outcome():
    runner = ChainRunner()
    res = runner.handle_expression("Calculator(100).Foo(1).Add(5)")
    assert_ok(res, 105.0)
    assert res.outcome.statuses() == [UNKNOWN_OPERATION, OK]
    assert res.side_effects is res.outcome.side_effects
    assert res.format_error() == ""


def test_runner_parse_error_is_fatal():
    runner = ChainRunner()
    res = runner.handle_expression("NotACtor().Add(5)")
    assert res.status == "error"
    assert res.outcome is None
    assert res.value is None
    assert res.error_message.startswith("ParseError:")
    assert res.error_token == {'kind': 'missing-or-invalid-seed', 'col': 10}
    assert res.side_effects == [{'topics': ['stderr'], 'message': res.error_message}]


def test_format_error_points_at_column():
    res = ChainRunner().handle_expression("NotACtor().Add(5)")
    text = res.format_error()
    lines = text.splitlines()
    assert lines[0].endswith("(col 10)")
    assert lines[1] == "  NotACtor().Add(5)"
    assert lines[2] == "  " + " " * 9 + "^"


def test_format_error_without_token():
    res = ExecutionResult(status='error', error_message="boom")
    assert res.format_error() == "boom"


def test_strict_runner_rejects_stray_text():
    assert ChainRunner().handle_expression("Calculator(1) x .Add(1)").value == 2.0
    res = ChainRunner(strict=True).handle_expression("Calculator(1) x .Add(1)")
    assert res.status == "error"
    assert res.error_token['kind'] == 'unexpected-text'


def test_runners_share_one_registry_per_host_class():
    assert ChainRunner().operations is ChainRunner(strict=True).operations


def test_runner_with_custom_host():
    class Doubler(Calculator):
        @calc_api_method
        def double(self):
            self._value *= 2
            return self

    res = ChainRunner(host_class=Doubler).handle_expression("Doubler(3).Double().Add(1)")
    assert_ok(res, 7.0)


def test_runs_do_not_share_state():
    runner = ChainRunner()
    first = runner.handle_expression("Calculator(1).Add(1)")
    second = runner.handle_expression("Calculator(1).Add(1)")
    assert first.value == second.value == 2.0
    assert len(second.side_effects) == 1
