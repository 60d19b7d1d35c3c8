"""
The callable protocol.

Every invocable runtime value is one of exactly four kinds, all sharing
`arity()` and `invoke(args)`:

- Function: a user-defined function closing over the scope it was defined in
- BoundMethod: a Function whose closure has `this` bound to an instance
- NativeFunction: a host-provided Python callable
- ClassValue: a class; invoking it constructs an instance (see objects.py)
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional, TYPE_CHECKING

from .values import Value, NIL, type_name
from .context import Scope
from .types import resolve_type_name
from ..errors import error_arity_mismatch, error_argument_mismatch

if TYPE_CHECKING:
    from ..ast import Parameter, Block
    from .interpreter import Interpreter


VARIADIC = -1


class ScriptCallable(ABC):
    """Base class for everything a script can call."""

    name: Optional[str] = None
    type_name = "function"

    @abstractmethod
    def arity(self) -> int:
        """Number of parameters, or VARIADIC."""
        pass

    def invoke(self, args: List[Value]) -> Value:
        """Check the argument count and call."""
        expected = self.arity()
        if expected != VARIADIC and len(args) != expected:
            raise error_arity_mismatch(expected, len(args))
        return self._call(args)

    @abstractmethod
    def _call(self, args: List[Value]) -> Value:
        pass


class Function(ScriptCallable):
    """
    A user-defined function or method.

    The closure is the live scope the function was defined in, not a copy,
    so later changes to captured variables are visible in both directions.
    """

    def __init__(self, interpreter: "Interpreter", name: Optional[str],
                 parameters: List["Parameter"], body: "Block", closure: Scope,
                 is_initializer: bool = False):
        self.interpreter = interpreter
        self.name = name
        self.parameters = parameters
        self.body = body
        self.closure = closure
        self.is_initializer = is_initializer

    def arity(self) -> int:
        return len(self.parameters)

    def bind(self, instance: Value) -> "BoundMethod":
        """Return a new callable with `this` bound; self is not modified."""
        scope = Scope(parent=self.closure, name=f"this:{self.name}")
        scope.define("this", instance)
        return BoundMethod(self, instance, scope)

    def _call(self, args: List[Value]) -> Value:
        scope = Scope(parent=self.closure, name=self.name or "<anonymous>")
        for param, arg in zip(self.parameters, args):
            declared = None
            if param.type_annotation is not None:
                declared = resolve_type_name(param.type_annotation.name)
                if not declared.accepts(arg):
                    raise error_argument_mismatch(
                        param.name, str(declared), type_name(arg), param.span
                    )
            scope.define(param.name, arg, declared)

        result = self.interpreter.execute_function_body(self, scope)

        # Initializers always hand back the instance
        if self.is_initializer:
            receiver = self.closure.lookup("this")
            if receiver is not None:
                return receiver.value
        return result

    def __str__(self) -> str:
        if self.name:
            return f"<function {self.name}>"
        return "<function>"

    def __repr__(self) -> str:
        return f"Function({self.name!r}, arity={self.arity()})"


class BoundMethod(Function):
    """A method bound to a receiver; produced by Function.bind()."""

    def __init__(self, function: Function, receiver: Value, closure: Scope):
        super().__init__(
            function.interpreter, function.name, function.parameters,
            function.body, closure, function.is_initializer,
        )
        self.function = function
        self.receiver = receiver

    def bind(self, instance: Value) -> "BoundMethod":
        return self.function.bind(instance)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BoundMethod):
            return NotImplemented
        return self.function is other.function and self.receiver.data is other.receiver.data

    def __hash__(self) -> int:
        return hash((id(self.function), id(self.receiver.data)))


class NativeFunction(ScriptCallable):
    """
    A host function exposed to scripts.

    The implementation takes the argument list and returns a Value (None is
    read as nil). It reports failures by raising HostError.
    """

    def __init__(self, name: str, arity: int,
                 implementation: Callable[[List[Value]], Optional[Value]],
                 doc: str = ""):
        self.name = name
        self._arity = arity
        self.implementation = implementation
        self.doc = doc

    def arity(self) -> int:
        return self._arity

    def _call(self, args: List[Value]) -> Value:
        result = self.implementation(args)
        return NIL if result is None else result

    def __str__(self) -> str:
        return f"<native function: {self.name}>"

    def __repr__(self) -> str:
        return f"NativeFunction({self.name!r}, arity={self._arity})"
