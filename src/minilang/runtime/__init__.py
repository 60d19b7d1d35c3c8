"""
MiniLang runtime - tree-walking interpreter.

This module provides:
- Interpreter: Executes parsed programs
- Value: Runtime value wrapper tagged with its kind
- Scope / ExecutionContext: Lexical scope chain and call depth
- Function, BoundMethod, NativeFunction, ClassValue: the callable kinds
- BuiltinRegistry: Native function library
- deep_copy: Cycle-safe deep clone
"""

from .values import (
    Value,
    ValueKind,
    NIL,
    nil_val,
    int_val,
    float_val,
    bool_val,
    string_val,
    array_val,
    dict_val,
    callable_val,
    object_val,
    type_name,
    class_of,
    is_truthy,
    values_equal,
    to_display_string,
)

from .types import (
    DeclaredType,
    resolve_type_name,
)

from .context import (
    Scope,
    ExecutionContext,
    DEFAULT_MAX_CALL_DEPTH,
)

from .signals import (
    Signal,
    SignalKind,
    ThrownValue,
)

from .callables import (
    ScriptCallable,
    Function,
    BoundMethod,
    NativeFunction,
    VARIADIC,
)

from .objects import (
    ProtoObject,
    ClassValue,
)

from .copying import deep_copy

from .builtins import (
    BuiltinFunction,
    BuiltinRegistry,
    get_builtin_registry,
)

from .interpreter import (
    Interpreter,
    ExecutionResult,
    execute,
    compile_and_run,
)

__all__ = [
    # Values
    "Value",
    "ValueKind",
    "NIL",
    "nil_val",
    "int_val",
    "float_val",
    "bool_val",
    "string_val",
    "array_val",
    "dict_val",
    "callable_val",
    "object_val",
    "type_name",
    "class_of",
    "is_truthy",
    "values_equal",
    "to_display_string",
    # Declared types
    "DeclaredType",
    "resolve_type_name",
    # Context
    "Scope",
    "ExecutionContext",
    "DEFAULT_MAX_CALL_DEPTH",
    # Signals
    "Signal",
    "SignalKind",
    "ThrownValue",
    # Callables
    "ScriptCallable",
    "Function",
    "BoundMethod",
    "NativeFunction",
    "VARIADIC",
    "ProtoObject",
    "ClassValue",
    # Copying
    "deep_copy",
    # Builtins
    "BuiltinFunction",
    "BuiltinRegistry",
    "get_builtin_registry",
    # Interpreter
    "Interpreter",
    "ExecutionResult",
    "execute",
    "compile_and_run",
]
