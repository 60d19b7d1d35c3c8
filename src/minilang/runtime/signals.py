"""
Control-flow outcomes of statement execution.

Executing a statement yields either None (completed normally) or a Signal
describing why the enclosing constructs must stop: a `return` with its
value, `break`, `continue`, or a `throw` with the thrown value. Each
construct inspects the signal and either consumes it (a loop consumes
break/continue, a function consumes return, try/catch consumes throw) or
hands it to its own caller unchanged.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from .values import Value, NIL
from ..tokens import SourceSpan


class SignalKind(Enum):
    """Kinds of non-local control transfer."""
    RETURN = auto()
    BREAK = auto()
    CONTINUE = auto()
    THROW = auto()

    @property
    def keyword(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Signal:
    """An abrupt completion travelling up the statement tree."""
    kind: SignalKind
    value: Value = NIL
    span: Optional[SourceSpan] = None


class ThrownValue(Exception):
    """
    Carries a THROW signal out of a function body that was called from
    inside an expression.

    Expressions produce values, not signals, so a throw escaping a call
    travels as this exception until the nearest enclosing statement turns
    it back into a THROW signal.
    """

    def __init__(self, signal: Signal):
        self.signal = signal
        super().__init__("uncaught script throw")

    @property
    def value(self) -> Value:
        return self.signal.value
