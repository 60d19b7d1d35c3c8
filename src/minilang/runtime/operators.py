"""
Binary and unary operator semantics.

Numeric rules: int op int stays int, except `/` which always produces a
float; any int/float mix promotes to float. Division or modulo by zero is
an error for both ints and floats. Integer `%` truncates toward zero, so
the result takes the sign of the dividend.
"""

import math

from .values import (
    Value, ValueKind,
    int_val, float_val, bool_val, string_val, array_val,
    is_truthy, values_equal, type_name,
)
from ..tokens import TokenType
from ..errors import error_division_by_zero, error_modulo_by_zero, error_invalid_operands


OPERATOR_SYMBOLS = {
    TokenType.PLUS: "+",
    TokenType.MINUS: "-",
    TokenType.STAR: "*",
    TokenType.SLASH: "/",
    TokenType.PERCENT: "%",
    TokenType.EQ: "==",
    TokenType.NE: "!=",
    TokenType.LT: "<",
    TokenType.LE: "<=",
    TokenType.GT: ">",
    TokenType.GE: ">=",
    TokenType.AND: "&&",
    TokenType.OR: "||",
    TokenType.NOT: "!",
}

COMPARISONS = {
    TokenType.LT: lambda a, b: a < b,
    TokenType.LE: lambda a, b: a <= b,
    TokenType.GT: lambda a, b: a > b,
    TokenType.GE: lambda a, b: a >= b,
}


def _invalid(operator: TokenType, left: Value, right: Value):
    return error_invalid_operands(
        OPERATOR_SYMBOLS.get(operator, operator.name), type_name(left), type_name(right)
    )


def _int_arith(operator: TokenType, a: int, b: int) -> Value:
    if operator == TokenType.PLUS:
        return int_val(a + b)
    if operator == TokenType.MINUS:
        return int_val(a - b)
    if operator == TokenType.STAR:
        return int_val(a * b)
    # PERCENT
    if b == 0:
        raise error_modulo_by_zero()
    remainder = abs(a) % abs(b)
    return int_val(remainder if a >= 0 else -remainder)


def _float_arith(operator: TokenType, a: float, b: float) -> Value:
    if operator == TokenType.PLUS:
        return float_val(a + b)
    if operator == TokenType.MINUS:
        return float_val(a - b)
    if operator == TokenType.STAR:
        return float_val(a * b)
    if operator == TokenType.SLASH:
        if b == 0:
            raise error_division_by_zero()
        return float_val(a / b)
    # PERCENT
    if b == 0:
        raise error_modulo_by_zero()
    return float_val(math.fmod(a, b))


def binary_op(operator: TokenType, left: Value, right: Value) -> Value:
    """
    Apply a non-short-circuit binary operator.

    Raises:
        ScriptError: for undefined operand combinations and zero divisors
    """
    if operator == TokenType.EQ:
        return bool_val(values_equal(left, right))
    if operator == TokenType.NE:
        return bool_val(not values_equal(left, right))

    if left.is_number and right.is_number:
        if operator in COMPARISONS:
            return bool_val(COMPARISONS[operator](left.data, right.data))
        both_int = left.kind is ValueKind.INT and right.kind is ValueKind.INT
        if both_int and operator != TokenType.SLASH:
            return _int_arith(operator, left.data, right.data)
        return _float_arith(operator, float(left.data), float(right.data))

    if left.kind is ValueKind.STRING and right.kind is ValueKind.STRING:
        if operator == TokenType.PLUS:
            return string_val(left.data + right.data)
        if operator in COMPARISONS:
            return bool_val(COMPARISONS[operator](left.data, right.data))

    if operator == TokenType.PLUS and left.kind is ValueKind.ARRAY \
            and right.kind is ValueKind.ARRAY:
        # New list; the operands keep their own storage
        return array_val(left.data + right.data)

    raise _invalid(operator, left, right)


def unary_op(operator: TokenType, operand: Value) -> Value:
    """Apply unary `-` or `!`."""
    if operator == TokenType.NOT:
        return bool_val(not is_truthy(operand))
    if operand.kind is ValueKind.INT:
        return int_val(-operand.data)
    if operand.kind is ValueKind.FLOAT:
        return float_val(-operand.data)
    raise error_invalid_operands(OPERATOR_SYMBOLS[operator], type_name(operand))
