"""
Declared type annotations for variables and parameters.

A declaration written with a type keyword (`int x = 1;`, `func f(float y)`)
pins the slot to that type: every later assignment is checked. `var`
declarations carry no declared type and accept anything.
"""

from enum import Enum
from typing import Optional

from .values import (
    Value, ValueKind,
    int_val, float_val, bool_val, string_val, array_val, dict_val, object_val,
)


class DeclaredType(Enum):
    """The type keywords usable in annotations."""
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    STRING = "string"
    ARRAY = "array"
    DICT = "dict"
    OBJECT = "object"

    def accepts(self, value: Value) -> bool:
        """Check if a value may be stored in a slot of this type."""
        if self is DeclaredType.FLOAT:
            # int widens to float
            return value.kind in (ValueKind.FLOAT, ValueKind.INT)
        if self is DeclaredType.OBJECT:
            return value.kind in (ValueKind.OBJECT, ValueKind.NIL)
        return value.kind is _KIND_FOR[self]

    def coerce(self, value: Value) -> Value:
        """Apply implicit widening; assumes `accepts(value)`."""
        if self is DeclaredType.FLOAT and value.kind is ValueKind.INT:
            return float_val(value.data)
        return value

    def default_value(self) -> Value:
        """The value of a typed declaration without an initializer."""
        if self is DeclaredType.INT:
            return int_val(0)
        if self is DeclaredType.FLOAT:
            return float_val(0.0)
        if self is DeclaredType.BOOL:
            return bool_val(False)
        if self is DeclaredType.STRING:
            return string_val("")
        if self is DeclaredType.ARRAY:
            return array_val([])
        if self is DeclaredType.DICT:
            return dict_val({})
        from .objects import ProtoObject
        return object_val(ProtoObject())

    def __str__(self) -> str:
        return self.value


_KIND_FOR = {
    DeclaredType.INT: ValueKind.INT,
    DeclaredType.FLOAT: ValueKind.FLOAT,
    DeclaredType.BOOL: ValueKind.BOOL,
    DeclaredType.STRING: ValueKind.STRING,
    DeclaredType.ARRAY: ValueKind.ARRAY,
    DeclaredType.DICT: ValueKind.DICT,
    DeclaredType.OBJECT: ValueKind.OBJECT,
}


def resolve_type_name(name: Optional[str]) -> Optional[DeclaredType]:
    """Resolve a type keyword to a DeclaredType; None means untyped."""
    if name is None or name == "var":
        return None
    try:
        return DeclaredType(name)
    except ValueError:
        raise ValueError(f"Unknown type: {name}") from None
