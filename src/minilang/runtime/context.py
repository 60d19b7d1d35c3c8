"""
Execution context for the MiniLang interpreter.

Manages the lexical scope chain, the call depth, and source lines used to
decorate runtime diagnostics.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from contextlib import contextmanager

from .values import Value, type_name
from .types import DeclaredType
from ..errors import (
    DiagnosticCollector,
    error_undefined_variable,
    error_initializer_mismatch,
    error_assignment_mismatch,
)


@dataclass
class Slot:
    """A variable binding: its value and the declared type, if any."""
    value: Value
    declared_type: Optional[DeclaredType] = None


@dataclass
class Scope:
    """
    A single scope containing variable bindings.

    Scopes form a chain via the `parent` field for lexical scoping.
    Closures hold a reference to the scope they were created in.
    """
    variables: Dict[str, Slot] = field(default_factory=dict)
    parent: Optional["Scope"] = None
    name: str = "anonymous"  # For debugging

    def define(self, name: str, value: Value,
               declared_type: Optional[DeclaredType] = None) -> None:
        """
        Bind a name in this scope, shadowing any outer binding.

        Raises:
            DeclaredTypeError: if the value does not fit the declared type
        """
        if declared_type is not None:
            if not declared_type.accepts(value):
                raise error_initializer_mismatch(name, str(declared_type), type_name(value))
            value = declared_type.coerce(value)
        self.variables[name] = Slot(value, declared_type)

    def lookup(self, name: str) -> Optional[Slot]:
        """Find the slot for a name in this scope or its parents."""
        scope = self
        while scope is not None:
            slot = scope.variables.get(name)
            if slot is not None:
                return slot
            scope = scope.parent
        return None

    def get(self, name: str) -> Value:
        """Look up a variable's value, raising if it is not bound."""
        slot = self.lookup(name)
        if slot is None:
            raise error_undefined_variable(name)
        return slot.value

    def assign(self, name: str, value: Value) -> bool:
        """
        Update an existing variable (mutable assignment).

        Searches up the scope chain to find where the variable is defined.
        Returns True if found and updated, False if not found.

        Raises:
            DeclaredTypeError: if the slot has a declared type the value does not fit
        """
        slot = self.lookup(name)
        if slot is None:
            return False
        if slot.declared_type is not None:
            if not slot.declared_type.accepts(value):
                raise error_assignment_mismatch(
                    name, str(slot.declared_type), type_name(value)
                )
            value = slot.declared_type.coerce(value)
        slot.value = value
        return True

    def contains(self, name: str) -> bool:
        """Check if a variable exists in this scope or parents."""
        return self.lookup(name) is not None


DEFAULT_MAX_CALL_DEPTH = 512
MAX_DEPTH_ENV = "MINILANG_MAX_DEPTH"


def max_call_depth_from_env() -> int:
    """Call depth limit from $MINILANG_MAX_DEPTH, else the default."""
    raw = os.environ.get(MAX_DEPTH_ENV)
    if not raw:
        return DEFAULT_MAX_CALL_DEPTH
    try:
        depth = int(raw)
    except ValueError:
        raise ValueError(f"{MAX_DEPTH_ENV} must be a positive integer, got {raw!r}")
    if depth < 1:
        raise ValueError(f"{MAX_DEPTH_ENV} must be a positive integer, got {raw!r}")
    return depth


@dataclass
class ExecutionContext:
    """
    The mutable state of one interpreter.

    Tracks:
    - The global scope and the scope currently executing
    - Call depth against the configured limit
    - Source lines for diagnostics
    """
    globals: Scope = field(default_factory=lambda: Scope(name="global"))
    current_scope: Optional[Scope] = None

    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
    call_depth: int = 0

    diagnostics: DiagnosticCollector = field(default_factory=DiagnosticCollector)
    source_lines: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.current_scope is None:
            self.current_scope = self.globals

    @contextmanager
    def new_scope(self, name: str = "block"):
        """
        Context manager to create a new nested scope.

        Usage:
            with ctx.new_scope("for-loop"):
                # variables defined here are local to this scope
                ctx.current_scope.define("i", int_val(0))
        """
        with self.enter_scope(Scope(parent=self.current_scope, name=name)) as scope:
            yield scope

    @contextmanager
    def enter_scope(self, scope: Scope):
        """Make an existing scope current (e.g. a function call frame)."""
        old_scope = self.current_scope
        self.current_scope = scope
        try:
            yield scope
        finally:
            self.current_scope = old_scope

    def get_source_line(self, line_num: int) -> Optional[str]:
        """Get a source line for error messages."""
        if 1 <= line_num <= len(self.source_lines):
            return self.source_lines[line_num - 1]
        return None

    def reset(self) -> None:
        """Return to the global scope after an aborted run."""
        self.current_scope = self.globals
        self.call_depth = 0
