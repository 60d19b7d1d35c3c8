"""
Built-in function registry for the MiniLang interpreter.

Each builtin is a plain Python function taking the running interpreter and
the argument list. `BuiltinRegistry.install()` binds them to an interpreter
and defines them in its global scope as native functions.
"""

from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Optional, TYPE_CHECKING
import math
import time

from .values import (
    Value, ValueKind, NIL,
    int_val, float_val, bool_val, string_val, array_val, dict_val, object_val,
    is_truthy, type_name, to_display_string, format_float,
)
from .callables import VARIADIC, ScriptCallable, NativeFunction
from .objects import ProtoObject
from .copying import deep_copy
from ..errors import HostError

if TYPE_CHECKING:
    from .interpreter import Interpreter


@dataclass
class BuiltinFunction:
    """
    A built-in function with its implementation and arity.
    """
    name: str
    arity: int
    implementation: Callable[["Interpreter", List[Value]], Optional[Value]]
    doc: str = ""


def _expect_args(name: str, args: List[Value], low: int, high: int) -> None:
    if not low <= len(args) <= high:
        if low == high:
            raise HostError(f"{name}() takes exactly {low} argument{'s' if low != 1 else ''}.")
        raise HostError(f"{name}() takes {low} to {high} arguments.")


def _expect_int(value: Value, what: str) -> int:
    if value.kind is not ValueKind.INT:
        raise HostError(f"{what} must be an integer.")
    return value.data


def _expect_string(value: Value, what: str) -> str:
    if value.kind is not ValueKind.STRING:
        raise HostError(f"{what} must be a string.")
    return value.data


def _expect_unary_callable(value: Value, name: str) -> ScriptCallable:
    if value.kind is not ValueKind.CALLABLE:
        raise HostError(f"First argument to {name} must be a function.")
    fn = value.data
    if fn.arity() not in (1, VARIADIC):
        raise HostError(f"Function for {name} must take exactly one argument.")
    return fn


class BuiltinRegistry:
    """
    Registry of all built-in functions.

    Functions are registered by name and installed into interpreters.
    """

    def __init__(self):
        self._functions: Dict[str, BuiltinFunction] = {}
        self._register_all()

    def get_function(self, name: str) -> Optional[BuiltinFunction]:
        """Look up a function by name."""
        return self._functions.get(name)

    def register(self, func: BuiltinFunction) -> None:
        """Register a function."""
        self._functions[func.name] = func

    def names(self) -> List[str]:
        return sorted(self._functions)

    def install(self, interpreter: "Interpreter") -> None:
        """Define every builtin in the interpreter's global scope."""
        for func in self._functions.values():
            interpreter.define_native(
                func.name, func.arity, partial(func.implementation, interpreter), func.doc
            )

    def _register_all(self) -> None:
        """Register all built-in functions."""
        self._register_io_functions()
        self._register_conversion_functions()
        self._register_collection_functions()
        self._register_object_functions()
        self._register_utility_functions()

    # --- I/O Functions ---

    def _register_io_functions(self) -> None:
        """Register console and file functions."""

        def _print(interp, args):
            out = interp.output
            out.write(" ".join(to_display_string(arg) for arg in args) + "\n")
            out.flush()

        def _input(interp, args):
            _expect_args("input", args, 0, 1)
            if args:
                interp.output.write(to_display_string(args[0]))
                interp.output.flush()
            line = interp.input.readline()
            if not line:
                return NIL
            return string_val(line.rstrip("\r\n"))

        def _read_file(interp, args):
            path = _expect_string(args[0], "Argument to read_file")
            try:
                with open(path, "r", encoding="utf-8") as f:
                    return string_val(f.read())
            except OSError:
                raise HostError(f"Could not open file: {path}")

        def _write_file(interp, args):
            path = _expect_string(args[0], "Path for write_file")
            content = _expect_string(args[1], "Content for write_file")
            try:
                with open(path, "w", encoding="utf-8") as f:
                    f.write(content)
            except OSError:
                raise HostError(f"Could not open file for writing: {path}")

        self.register(BuiltinFunction("print", VARIADIC, _print,
                                      "Print values separated by spaces"))
        self.register(BuiltinFunction("input", VARIADIC, _input,
                                      "Read a line, with an optional prompt"))
        self.register(BuiltinFunction("read_file", 1, _read_file, "Read a text file"))
        self.register(BuiltinFunction("write_file", 2, _write_file, "Write a text file"))

    # --- Conversion Functions ---

    def _register_conversion_functions(self) -> None:
        """Register type inspection and conversion functions."""

        def _type(interp, args):
            value = args[0]
            if (value.kind is ValueKind.CALLABLE and isinstance(value.data, NativeFunction)
                    and value.data.name == "Object"):
                return string_val("object_constructor")
            return string_val(type_name(value))

        def _str(interp, args):
            return string_val(to_display_string(args[0]))

        def _int(interp, args):
            value = args[0]
            if value.kind is ValueKind.INT:
                return value
            if value.kind is ValueKind.FLOAT:
                if not math.isfinite(value.data):
                    raise HostError(f"Cannot convert float {format_float(value.data)} to int.")
                return int_val(int(value.data))
            if value.kind is ValueKind.BOOL:
                return int_val(int(value.data))
            if value.kind is ValueKind.STRING:
                try:
                    return int_val(int(value.data.strip()))
                except ValueError:
                    raise HostError(f"Cannot convert string '{value.data}' to int.")
            raise HostError(f"Cannot convert {type_name(value)} to int.")

        def _float(interp, args):
            value = args[0]
            if value.kind in (ValueKind.INT, ValueKind.FLOAT, ValueKind.BOOL):
                return float_val(float(value.data))
            if value.kind is ValueKind.STRING:
                try:
                    return float_val(float(value.data.strip()))
                except ValueError:
                    raise HostError(f"Cannot convert string '{value.data}' to float.")
            raise HostError(f"Cannot convert {type_name(value)} to float.")

        def _bool(interp, args):
            return bool_val(is_truthy(args[0]))

        self.register(BuiltinFunction("type", 1, _type, "Type name of a value"))
        self.register(BuiltinFunction("str", 1, _str, "Display string of a value"))
        self.register(BuiltinFunction("int", 1, _int, "Convert to int"))
        self.register(BuiltinFunction("float", 1, _float, "Convert to float"))
        self.register(BuiltinFunction("bool", 1, _bool, "Truthiness of a value"))

    # --- Collection Functions ---

    def _register_collection_functions(self) -> None:
        """Register array, string and dict functions."""

        def _len(interp, args):
            value = args[0]
            if value.kind in (ValueKind.STRING, ValueKind.ARRAY, ValueKind.DICT):
                return int_val(len(value.data))
            if value.kind is ValueKind.OBJECT:
                return int_val(len(value.data.fields))
            raise HostError(f"Value of type {type_name(value)} has no length.")

        def _append(interp, args):
            container, element = args
            if container.kind is ValueKind.ARRAY:
                container.data.append(element)
                return container
            if container.kind is ValueKind.STRING:
                if element.kind is not ValueKind.STRING:
                    raise HostError("Can only append a string to a string.")
                return string_val(container.data + element.data)
            raise HostError("First argument to append must be an array or a string.")

        def _pop(interp, args):
            _expect_args("pop", args, 1, 2)
            if args[0].kind is not ValueKind.ARRAY:
                raise HostError("First argument to pop must be an array.")
            items = args[0].data
            if not items:
                raise HostError("pop from empty array.")
            if len(args) == 1:
                return items.pop()
            index = _expect_int(args[1], "Index for pop")
            if not 0 <= index < len(items):
                raise HostError("pop index out of range.")
            return items.pop(index)

        def _slice(interp, args):
            _expect_args("slice", args, 2, 3)
            source = args[0]
            if source.kind not in (ValueKind.ARRAY, ValueKind.STRING):
                raise HostError("First argument to slice must be an array or a string.")
            start = _expect_int(args[1], "Slice start index")
            end = len(source.data)
            if len(args) == 3:
                end = _expect_int(args[2], "Slice end index")
            if start < 0 or end > len(source.data) or start > end:
                raise HostError("Slice indices are out of bounds.")
            if source.kind is ValueKind.STRING:
                return string_val(source.data[start:end])
            return array_val(source.data[start:end])

        def _range(interp, args):
            _expect_args("range", args, 1, 3)
            if len(args) == 1:
                start, end, step = 0, _expect_int(args[0], "range() argument"), 1
            else:
                start = _expect_int(args[0], "range() start")
                end = _expect_int(args[1], "range() end")
                step = _expect_int(args[2], "range() step") if len(args) == 3 else 1
                if step == 0:
                    raise HostError("range() step cannot be zero.")
            return array_val([int_val(i) for i in range(start, end, step)])

        def _dict(interp, args):
            return dict_val()

        def _keys(interp, args):
            value = args[0]
            if value.kind is ValueKind.DICT:
                return array_val([string_val(k) for k in value.data])
            if value.kind is ValueKind.OBJECT:
                return array_val([string_val(k) for k in value.data.fields])
            raise HostError("Argument to keys() must be a dict or object.")

        def _map(interp, args):
            fn = _expect_unary_callable(args[0], "map")
            if args[1].kind is not ValueKind.ARRAY:
                raise HostError("Second argument to map must be an array.")
            return array_val([fn.invoke([item]) for item in list(args[1].data)])

        def _filter(interp, args):
            fn = _expect_unary_callable(args[0], "filter")
            if args[1].kind is not ValueKind.ARRAY:
                raise HostError("Second argument to filter must be an array.")
            return array_val([
                item for item in list(args[1].data) if is_truthy(fn.invoke([item]))
            ])

        self.register(BuiltinFunction("len", 1, _len, "Length of a string, array or dict"))
        self.register(BuiltinFunction("append", 2, _append, "Append to an array or string"))
        self.register(BuiltinFunction("pop", VARIADIC, _pop, "Remove and return an element"))
        self.register(BuiltinFunction("slice", VARIADIC, _slice, "Sub-array or substring"))
        self.register(BuiltinFunction("range", VARIADIC, _range, "Array of ints"))
        self.register(BuiltinFunction("dict", 0, _dict, "New empty dict"))
        self.register(BuiltinFunction("keys", 1, _keys, "Keys of a dict"))
        self.register(BuiltinFunction("map", 2, _map, "Apply a function to each element"))
        self.register(BuiltinFunction("filter", 2, _filter, "Keep elements passing a test"))

    # --- Object Functions ---

    def _register_object_functions(self) -> None:
        """Register prototype object functions."""

        def _object(interp, args):
            _expect_args("Object", args, 0, 1)
            if not args:
                return object_val(ProtoObject())
            if args[0].kind is not ValueKind.OBJECT:
                raise HostError(
                    "Argument to Object() constructor must be another object "
                    "to act as a prototype."
                )
            return object_val(ProtoObject(parent=args[0].data))

        def _has(interp, args):
            key = _expect_string(args[1], "Second argument to has()")
            container = args[0]
            if container.kind is ValueKind.DICT:
                return bool_val(key in container.data)
            if container.kind is ValueKind.OBJECT:
                return bool_val(container.data.has(key))
            raise HostError("First argument to has() must be a dict or object.")

        def _del(interp, args):
            key = _expect_string(args[1], "Second argument to del()")
            container = args[0]
            if container.kind is ValueKind.DICT:
                container.data.pop(key, None)
            elif container.kind is ValueKind.OBJECT:
                container.data.delete(key)
            else:
                raise HostError("First argument to del() must be a dict or object.")

        def _dir(interp, args):
            value = args[0]
            if value.kind is ValueKind.DICT:
                names = sorted(value.data)
            elif value.kind is ValueKind.OBJECT:
                names = value.data.visible_keys()
            else:
                raise HostError("Argument to dir() must be a dict, class instance, or object.")
            return array_val([string_val(n) for n in names])

        def _deepcopy(interp, args):
            return deep_copy(args[0])

        self.register(BuiltinFunction("Object", VARIADIC, _object,
                                      "New object with an optional prototype"))
        self.register(BuiltinFunction("has", 2, _has, "Key or field membership"))
        self.register(BuiltinFunction("del", 2, _del, "Remove a key or own field"))
        self.register(BuiltinFunction("dir", 1, _dir, "Visible field names"))
        self.register(BuiltinFunction("deepcopy", 1, _deepcopy, "Cycle-safe deep clone"))

    # --- Utility Functions ---

    def _register_utility_functions(self) -> None:
        """Register utility functions."""

        def _assert(interp, args):
            _expect_args("assert", args, 1, 2)
            if not is_truthy(args[0]):
                message = "Assertion failed."
                if len(args) == 2:
                    message += " " + to_display_string(args[1])
                raise HostError(message)

        def _clock(interp, args):
            return int_val(int((time.perf_counter() - _START_TIME) * 1000))

        self.register(BuiltinFunction("assert", VARIADIC, _assert,
                                      "Fail unless the condition is truthy"))
        self.register(BuiltinFunction("clock", 0, _clock,
                                      "Milliseconds since the interpreter module loaded"))


_START_TIME = time.perf_counter()

# Global registry instance
_registry: Optional[BuiltinRegistry] = None


def get_builtin_registry() -> BuiltinRegistry:
    """Get the global built-in function registry."""
    global _registry
    if _registry is None:
        _registry = BuiltinRegistry()
    return _registry
