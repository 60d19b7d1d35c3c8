"""
Cycle-safe deep copy of runtime values.
"""

from typing import Dict, Optional

from .values import Value, ValueKind, array_val, dict_val, object_val
from .objects import ProtoObject


def deep_copy(value: Value, memo: Optional[Dict[int, Value]] = None) -> Value:
    """
    Clone arrays, dictionaries and objects recursively.

    `memo` maps id() of each original container to its clone, so a
    container reachable along several paths (or through a cycle) is cloned
    once and every reference to it is relinked to that clone. Scalars,
    strings and callables are shared. An object keeps its class; its parent
    is cloned too, except a class's method table, which stays shared.
    """
    if value.kind not in (ValueKind.ARRAY, ValueKind.DICT, ValueKind.OBJECT):
        return value
    if memo is None:
        memo = {}

    key = id(value.data)
    if key in memo:
        return memo[key]

    if value.kind is ValueKind.ARRAY:
        clone = array_val([])
        memo[key] = clone
        clone.data.extend(deep_copy(item, memo) for item in value.data)
        return clone

    if value.kind is ValueKind.DICT:
        clone = dict_val({})
        memo[key] = clone
        for name, item in value.data.items():
            clone.data[name] = deep_copy(item, memo)
        return clone

    original: ProtoObject = value.data
    copied = ProtoObject(klass=original.klass)
    clone = object_val(copied)
    memo[key] = clone
    for name, item in original.fields.items():
        copied.fields[name] = deep_copy(item, memo)
    if original.parent is not None:
        if original.parent.owner is not None:
            copied.parent = original.parent
        else:
            copied.parent = deep_copy(object_val(original.parent), memo).data
    return clone
