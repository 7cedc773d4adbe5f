from calcchain.calc_datatypes import (
    CallDescriptor, ParsedExpression, CallDiagnostic, EvaluationOutcome, ParseError,
)
from calcchain.calc_parser import ExpressionParser, parse, parse_number
from calcchain.calc_dispatcher import Dispatcher, evaluate
from calcchain.calc_runtime import (
    calc_api_method, AccumulatorHost, Calculator, OperationRegistry,
    ExecutionResult, ChainRunner,
)
