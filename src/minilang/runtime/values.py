"""
Runtime value wrappers for the MiniLang interpreter.

Every runtime datum is a `Value`: the Python payload in `data` plus a
`ValueKind` tag. Payloads by kind:

    NIL       None
    INT       int, kept within signed 64-bit range
    FLOAT     float
    BOOL      bool
    STRING    str (immutable, so aliases can never observe a write)
    ARRAY     list of Value, shared by reference
    DICT      dict of str -> Value, shared by reference
    CALLABLE  a ScriptCallable (function, bound method, native, class)
    OBJECT    a ProtoObject, shared by reference
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple


class ValueKind(Enum):
    """Tags for the runtime value variants."""
    NIL = "nil"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"
    ARRAY = "array"
    DICT = "dict"
    CALLABLE = "callable"
    OBJECT = "object"


@dataclass(eq=False)
class Value:
    """
    A runtime value with its kind tag.

    Values compare with `values_equal`, not `==`, because container
    equality is structural and must tolerate cycles.
    """
    data: Any
    kind: ValueKind

    def __repr__(self) -> str:
        if self.kind in (ValueKind.ARRAY, ValueKind.DICT, ValueKind.OBJECT):
            return f"Value(<{self.kind.value} at {id(self.data):#x}>)"
        return f"Value({self.data!r}, {self.kind.value})"

    @property
    def is_nil(self) -> bool:
        return self.kind is ValueKind.NIL

    @property
    def is_number(self) -> bool:
        return self.kind in (ValueKind.INT, ValueKind.FLOAT)

    def is_truthy(self) -> bool:
        """Check if this value is truthy in boolean context."""
        return is_truthy(self)


# Convenience constructors

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def wrap_int(n: int) -> int:
    """Wrap an integer into signed 64-bit range (two's complement)."""
    if INT64_MIN <= n <= INT64_MAX:
        return n
    return ((n - INT64_MIN) % (2 ** 64)) + INT64_MIN


NIL = Value(None, ValueKind.NIL)


def nil_val() -> Value:
    """The nil value."""
    return NIL


def int_val(n: int) -> Value:
    """Create an integer value."""
    return Value(wrap_int(int(n)), ValueKind.INT)


def float_val(x: float) -> Value:
    """Create a float value."""
    return Value(float(x), ValueKind.FLOAT)


def bool_val(b: bool) -> Value:
    """Create a boolean value."""
    return Value(bool(b), ValueKind.BOOL)


def string_val(s: str) -> Value:
    """Create a string value."""
    return Value(str(s), ValueKind.STRING)


def array_val(items: Optional[List[Value]] = None) -> Value:
    """Create an array value; the list is shared, not copied."""
    return Value(items if items is not None else [], ValueKind.ARRAY)


def dict_val(entries: Optional[Dict[str, Value]] = None) -> Value:
    """Create a dictionary value; the mapping is shared, not copied."""
    return Value(entries if entries is not None else {}, ValueKind.DICT)


def callable_val(fn: Any) -> Value:
    """Wrap a ScriptCallable."""
    return Value(fn, ValueKind.CALLABLE)


def object_val(obj: Any) -> Value:
    """Wrap a ProtoObject."""
    return Value(obj, ValueKind.OBJECT)


# Introspection

def type_name(value: Value) -> str:
    """
    The dynamic type name of a value, as reported by `type()`.

    Callables report "function" or "class"; class instances report their
    class name and bare objects report "object".
    """
    if value.kind is ValueKind.CALLABLE:
        return value.data.type_name
    if value.kind is ValueKind.OBJECT:
        return value.data.type_name
    return value.kind.value


def class_of(value: Value) -> Optional[Any]:
    """The ClassValue an object was constructed from, if any."""
    if value.kind is ValueKind.OBJECT:
        return value.data.klass
    return None


def is_truthy(value: Value) -> bool:
    """
    Truthiness: nil, 0, 0.0, false, "", [] and {} are falsy.

    Callables are always truthy. An object is truthy when it has own fields
    or a parent (so every class instance is truthy).
    """
    kind = value.kind
    if kind is ValueKind.NIL:
        return False
    if kind in (ValueKind.INT, ValueKind.FLOAT, ValueKind.BOOL):
        return bool(value.data)
    if kind in (ValueKind.STRING, ValueKind.ARRAY, ValueKind.DICT):
        return len(value.data) > 0
    if kind is ValueKind.OBJECT:
        return bool(value.data.fields) or value.data.parent is not None
    return True


def values_equal(a: Value, b: Value,
                 _seen: Optional[Set[Tuple[int, int]]] = None) -> bool:
    """
    Structural equality.

    Numbers compare by promoted value; arrays, dicts and objects compare
    element by element; callables compare by identity. Pairs of containers
    already under comparison are assumed equal, so cyclic graphs terminate.
    """
    if a.is_number and b.is_number:
        return a.data == b.data
    if a.kind is not b.kind:
        return False

    kind = a.kind
    if kind is ValueKind.NIL:
        return True
    if kind in (ValueKind.BOOL, ValueKind.STRING):
        return a.data == b.data
    if kind is ValueKind.CALLABLE:
        return a.data == b.data

    if a.data is b.data:
        return True
    if _seen is None:
        _seen = set()
    pair = (id(a.data), id(b.data))
    if pair in _seen:
        return True
    _seen.add(pair)

    if kind is ValueKind.ARRAY:
        if len(a.data) != len(b.data):
            return False
        return all(values_equal(x, y, _seen) for x, y in zip(a.data, b.data))

    if kind is ValueKind.DICT:
        return _mappings_equal(a.data, b.data, _seen)

    # Objects: same class, equal own fields, equal parent chains
    left, right = a.data, b.data
    if left.klass is not right.klass:
        return False
    if not _mappings_equal(left.fields, right.fields, _seen):
        return False
    if left.parent is None or right.parent is None:
        return left.parent is right.parent
    return values_equal(object_val(left.parent), object_val(right.parent), _seen)


def _mappings_equal(left: Dict[str, Value], right: Dict[str, Value],
                    seen: Set[Tuple[int, int]]) -> bool:
    if left.keys() != right.keys():
        return False
    return all(values_equal(left[key], right[key], seen) for key in left)


# String conversion

def format_float(x: float) -> str:
    """Format a float the way printf's %g does (6 significant digits)."""
    if math.isnan(x):
        return "nan"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    return format(x, "g")


def to_display_string(value: Value, _active: Optional[Set[int]] = None,
                      use_to_string: bool = True) -> str:
    """
    Convert a value to the string `print` and `str()` produce.

    An instance whose class chain defines a zero-argument `toString` method
    is converted by calling it. Containers that contain themselves print
    as `[...]`, `{...}` or `<object>{...}` at the point of recursion.
    With `use_to_string` false no script code runs.
    """
    kind = value.kind
    if kind is ValueKind.NIL:
        return "nil"
    if kind is ValueKind.BOOL:
        return "true" if value.data else "false"
    if kind is ValueKind.INT:
        return str(value.data)
    if kind is ValueKind.FLOAT:
        return format_float(value.data)
    if kind is ValueKind.STRING:
        return value.data
    if kind is ValueKind.CALLABLE:
        return str(value.data)

    if kind is ValueKind.OBJECT:
        if use_to_string:
            custom = _call_to_string(value)
            if custom is not None:
                return custom
        obj = value.data
        if obj.klass is not None:
            return f"<{obj.klass.name} instance>"

    if _active is None:
        _active = set()
    marker = id(value.data)
    if marker in _active:
        return {ValueKind.ARRAY: "[...]", ValueKind.DICT: "{...}"}.get(kind, "<object>{...}")
    _active.add(marker)
    try:
        if kind is ValueKind.ARRAY:
            return "[" + ", ".join(to_display_string(v, _active, use_to_string) for v in value.data) + "]"
        if kind is ValueKind.DICT:
            return _format_entries(value.data, _active, use_to_string)
        return "<object>" + _format_entries(value.data.fields, _active, use_to_string)
    finally:
        _active.discard(marker)


def _format_entries(entries: Dict[str, Value], active: Set[int],
                    use_to_string: bool = True) -> str:
    parts = [f'"{key}": {to_display_string(item, active, use_to_string)}' for key, item in entries.items()]
    return "{" + ", ".join(parts) + "}"


def _call_to_string(value: Value) -> Optional[str]:
    """Invoke a class-defined toString() if there is one."""
    obj = value.data
    if obj.klass is None:
        return None
    method = obj.get("toString")
    if method is None or method.kind is not ValueKind.CALLABLE:
        return None
    fn = method.data
    if not hasattr(fn, "bind") or fn.arity() != 0:
        return None
    result = fn.bind(value).invoke([])
    return to_display_string(result)
