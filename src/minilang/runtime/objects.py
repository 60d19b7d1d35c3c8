"""
Prototype-based objects and classes.

An object is a mutable field map plus an optional parent it delegates
missed lookups to. A class owns a prototype object holding its methods;
the prototype's parent is the superclass's prototype, so method lookup on
an instance walks instance -> class prototype -> superclass prototype.
"""

from typing import Dict, Iterator, List, Optional

from .values import Value, ValueKind, object_val
from .callables import ScriptCallable, Function
from ..errors import error_class_definition


class ProtoObject:
    """
    A mutable record with prototype delegation.

    Attributes:
        fields: own fields
        parent: object that lookups fall back to, if any
        klass: the class that constructed this object, if any
        owner: set when this object is a class's method table
    """

    def __init__(self, parent: Optional["ProtoObject"] = None,
                 klass: Optional["ClassValue"] = None,
                 fields: Optional[Dict[str, Value]] = None,
                 owner: Optional["ClassValue"] = None):
        self.fields: Dict[str, Value] = fields if fields is not None else {}
        self.parent = parent
        self.klass = klass
        self.owner = owner

    @property
    def type_name(self) -> str:
        return self.klass.name if self.klass is not None else "object"

    def chain(self) -> Iterator["ProtoObject"]:
        """Yield this object and then each ancestor."""
        current = self
        while current is not None:
            yield current
            current = current.parent

    def get(self, name: str) -> Optional[Value]:
        """Look up a field here, then along the parent chain."""
        for obj in self.chain():
            if name in obj.fields:
                return obj.fields[name]
        return None

    def set(self, name: str, value: Value) -> None:
        """Write an own field; never touches the parent."""
        self.fields[name] = value

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def delete(self, name: str) -> bool:
        """Remove an own field; returns whether it existed."""
        return self.fields.pop(name, None) is not None

    def visible_keys(self) -> List[str]:
        """Own and inherited field names, sorted."""
        keys = set()
        for obj in self.chain():
            keys.update(obj.fields)
        return sorted(keys)

    def __repr__(self) -> str:
        return f"ProtoObject({self.type_name}, fields={list(self.fields)})"


class ClassValue(ScriptCallable):
    """A class: calling it constructs and initializes an instance."""

    type_name = "class"

    def __init__(self, name: str, superclass: Optional["ClassValue"] = None):
        self.name = name
        self.superclass = superclass
        parent = superclass.prototype if superclass is not None else None
        self.prototype = ProtoObject(parent=parent, owner=self)

    def find_method(self, name: str) -> Optional[Function]:
        """Find a method on this class or an ancestor."""
        value = self.prototype.get(name)
        if value is None or value.kind is not ValueKind.CALLABLE:
            return None
        if not isinstance(value.data, Function):
            return None
        return value.data

    def define_method(self, function: Function) -> None:
        self.prototype.set(function.name, Value(function, ValueKind.CALLABLE))

    @property
    def initializer(self) -> Optional[Function]:
        return self.find_method("init")

    def arity(self) -> int:
        init = self.initializer
        return init.arity() if init is not None else 0

    def invoke(self, args: List[Value]) -> Value:
        if self.initializer is None and args:
            raise error_class_definition(
                f"Class '{self.name}' has no 'init' method and cannot be called with arguments."
            )
        return super().invoke(args)

    def _call(self, args: List[Value]) -> Value:
        instance = object_val(ProtoObject(parent=self.prototype, klass=self))
        init = self.initializer
        if init is not None:
            init.bind(instance).invoke(args)
        return instance

    def __str__(self) -> str:
        return f"<class {self.name}>"

    def __repr__(self) -> str:
        return f"ClassValue({self.name!r})"
