import pytest

from calcchain.calc_printer import Printer, format_number
from calcchain.calc_parser import parse
from calcchain.calc_runtime import ChainRunner
from calcchain.calc_datatypes import CallDescriptor, CallDiagnostic, ParseError


@pytest.fixture
def printer():
    return Printer()


@pytest.mark.parametrize(
    "value,text",
    [(15.0, "15"), (-5.0, "-5"), (4.5, "4.5"), (0.1, "0.1"), (3, "3"), (float("inf"), "inf")],
)
def test_format_number(value, text):
    assert format_number(value) == text


def test_expression_is_printed_canonically(printer):
    expr = parse("  Calculator( 10 ) .Add( 5 ) junk .Square()")
    assert printer.pformat(expr) == "Calculator(10).Add(5).Square()"


def test_call_descriptor(printer):
    assert printer.pformat(CallDescriptor("Divide", "0")) == "Divide(0)"
    assert printer.pformat(CallDescriptor("Clear")) == "Clear()"


def test_diagnostic_line(printer):
    diag = CallDiagnostic(0, "Foo", "unknown-operation", "UnknownOperation: Foo", 100.0)
    assert printer.pformat(diag) == "[0] Foo: unknown-operation - UnknownOperation: Foo"
    assert printer.pformat(CallDiagnostic(1, "Add", "ok")) == "[1] Add: ok"


def test_outcome_lists_diagnostics_then_result(printer):
    outcome = ChainRunner().handle_expression("Calculator(100).Foo(1).Add(5)").outcome
    assert printer.pformat(outcome).splitlines() == [
        "[0] Foo: unknown-operation - UnknownOperation: Foo",
        "[1] Add: ok",
        "result: 105",
    ]


def test_parse_error(printer):
    err = ParseError("missing-or-invalid-seed", "bad seed", col=3)
    assert printer.pformat(err) == "ParseError[missing-or-invalid-seed]: bad seed (col 3)"


def test_primitives_and_fallback(printer):
    assert printer.pformat(None) == "none"
    assert printer.pformat("text") == "text"
    assert printer.pformat([1.0, 2.5]) == "1\n2.5"
    assert printer.pformat({"a": 1}) == repr({"a": 1})
