from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Tuple

# Per-call statuses recorded by the dispatcher.
OK = 'ok'
UNKNOWN_OPERATION = 'unknown-operation'
BAD_ARGUMENT = 'bad-argument'
INVOCATION_FAILED = 'invocation-failed'

Status = Literal['ok', 'unknown-operation', 'bad-argument', 'invocation-failed']

# ParseError kinds
MISSING_OR_INVALID_SEED = 'missing-or-invalid-seed'
UNEXPECTED_TEXT = 'unexpected-text'


class ParseError(Exception):
    """Raised when an expression cannot be turned into a ParsedExpression."""
    def __init__(self, kind: str, message: str, col: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.col = col

    def __repr__(self):
        return f"ParseError({self.kind!r}, {self.message!r}, col={self.col!r})"


@dataclass(frozen=True)
class CallDescriptor:
    """One `.Name(arg)` call recovered from an expression."""
    name: str
    raw_argument: Optional[str] = None
    # 1-based column of the leading '.'; not part of equality
    col: Optional[int] = field(default=None, compare=False)


@dataclass(frozen=True)
class ParsedExpression:
    seed: float
    calls: Tuple[CallDescriptor, ...] = ()
    constructor: str = "Calculator"


@dataclass
class CallDiagnostic:
    call_index: int
    name: str
    status: Status
    message: str = ""
    value: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.status == OK


@dataclass
class EvaluationOutcome:
    """The structured result of dispatching one ParsedExpression."""
    final_value: Optional[float] = None
    diagnostics: List[CallDiagnostic] = field(default_factory=list)
    side_effects: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(d.ok for d in self.diagnostics)

    def statuses(self) -> List[str]:
        return [d.status for d in self.diagnostics]
