from __future__ import annotations

from ..token_types import TT, operator_symbol
from ..tree import BinaryExpression, ParenthesizedExpression, UnaryExpression
from ..types import BrBool, BrInt, BrValue, BriskDivisionError, BriskRuntimeError, BriskTypeError, Scope, type_name
from .helpers import EvalFunc, attach_location, int_value, require_bool, require_int, require_node, require_value

_WORD_BITS = 64

def eval_binary(node: BinaryExpression, frame: Scope, eval_func: EvalFunc) -> BrValue:
    """Evaluate a left-deep operator chain (a + b - c ...) in one loop.

    Each link still runs its left side, then its right side, then the
    operator. No short-circuit: both sides always run, even for && and ||.
    """
    spine = [node]
    while isinstance(spine[-1].left, BinaryExpression):
        spine.append(spine[-1].left)

    current = spine[-1]
    try:
        acc = eval_func(require_node(current.left), frame)
        for current in reversed(spine):
            symbol = operator_symbol(current.op)
            lhs = require_value(acc, f"left operand of {symbol}")
            rhs = require_value(eval_func(require_node(current.right), frame), f"right operand of {symbol}")
            acc = apply_binary_operator(current.op, lhs, rhs)
    except BriskRuntimeError as e:
        attach_location(e, current)
        raise

    return acc

def eval_unary(node: UnaryExpression, frame: Scope, eval_func: EvalFunc) -> BrValue:
    symbol = operator_symbol(node.op)
    operand = eval_func(require_node(node.operand), frame)

    match node.op:
        case TT.PLUS:
            return BrInt(require_int(operand, f"operator unary {symbol}"))
        case TT.MINUS:
            return int_value(-require_int(operand, f"operator unary {symbol}"))
        case TT.NOT:
            return BrBool(not require_bool(operand, f"operator {symbol}"))

    raise BriskRuntimeError(f"unknown unary operator {symbol}")

def eval_parenthesized(node: ParenthesizedExpression, frame: Scope, eval_func: EvalFunc) -> BrValue:
    inner = eval_func(require_node(node.inner), frame)
    return require_value(inner, "parenthesized expression")

def apply_binary_operator(op: TT, lhs: BrValue, rhs: BrValue) -> BrValue:
    match op:
        case TT.EQ:
            return BrBool(lhs == rhs)
        case TT.NEQ:
            return BrBool(lhs != rhs)
        case TT.AND | TT.AMP | TT.OR | TT.PIPE:
            return _logical_or_bitwise(op, lhs, rhs)

    a, b = _int_operands(op, lhs, rhs)

    match op:
        case TT.PLUS:
            return int_value(a + b)
        case TT.MINUS:
            return int_value(a - b)
        case TT.STAR:
            return int_value(a * b)
        case TT.SLASH:
            return int_value(_trunc_div(a, b))
        case TT.MOD:
            return int_value(a - b * _trunc_div(a, b))
        case TT.CARET:
            return int_value(a ^ b)
        case TT.LSHIFT:
            return int_value(a << _shift_count(b))
        case TT.RSHIFT:
            return int_value(a >> _shift_count(b))
        case TT.LT:
            return BrBool(a < b)
        case TT.LTE:
            return BrBool(a <= b)
        case TT.GT:
            return BrBool(a > b)
        case TT.GTE:
            return BrBool(a >= b)

    raise BriskRuntimeError(f"unknown binary operator {operator_symbol(op)}")

def _logical_or_bitwise(op: TT, lhs: BrValue, rhs: BrValue) -> BrValue:
    is_and = op in (TT.AND, TT.AMP)

    match (lhs, rhs):
        case (BrBool(value=a), BrBool(value=b)):
            return BrBool(a and b) if is_and else BrBool(a or b)
        case (BrInt(value=a), BrInt(value=b)):
            return int_value(a & b) if is_and else int_value(a | b)

    raise BriskTypeError(
        f"operator {operator_symbol(op)} expects two bools or two ints, "
        f"got {type_name(lhs)} and {type_name(rhs)}"
    )

def _int_operands(op: TT, lhs: BrValue, rhs: BrValue) -> tuple[int, int]:
    if isinstance(lhs, BrInt) and isinstance(rhs, BrInt):
        return lhs.value, rhs.value

    raise BriskTypeError(
        f"operator {operator_symbol(op)} expects int operands, "
        f"got {type_name(lhs)} and {type_name(rhs)}"
    )

def _trunc_div(a: int, b: int) -> int:
    """Integer quotient rounded toward zero."""
    if b == 0:
        raise BriskDivisionError("integer division by zero")

    q = abs(a) // abs(b)
    return -q if (a < 0) != (b < 0) else q

def _shift_count(n: int) -> int:
    if n < 0:
        raise BriskRuntimeError(f"negative shift count {n}")

    # Everything at or past the word size behaves the same after wrapping.
    return min(n, _WORD_BITS)
