from __future__ import annotations

from typing import Mapping, Optional

from types import MappingProxyType

from ..token_types import TT, Tok, operator_symbol
from ..tree import AssignmentExpression, IdentifierReference, VariableDeclaration
from ..types import (
    BrBool,
    BrInt,
    BrValue,
    BriskNameError,
    BriskRedeclarationError,
    BriskRuntimeError,
    BriskTypeError,
    Scope,
)
from .expr import apply_binary_operator
from .helpers import EvalFunc, require_node, require_value

__all__ = [
    "COMPOUND_OPERATORS",
    "check_annotation",
    "eval_assignment",
    "eval_compound_assign",
    "eval_declaration",
    "eval_identifier",
]

# `x OP= e` is `x = x OP e` with the binary operator below.
COMPOUND_OPERATORS: Mapping[TT, TT] = MappingProxyType({
    TT.PLUSEQ: TT.PLUS,
    TT.MINUSEQ: TT.MINUS,
    TT.STAREQ: TT.STAR,
    TT.SLASHEQ: TT.SLASH,
    TT.MODEQ: TT.MOD,
})

def eval_identifier(node: IdentifierReference, frame: Scope) -> BrValue:
    val = frame.resolve(node.name)

    if val is None:
        raise BriskNameError(f"undefined variable {node.name}", node.name)

    return val

def eval_assignment(node: AssignmentExpression, frame: Scope, eval_func: EvalFunc) -> BrValue:
    if node.op is not TT.ASSIGN:
        return eval_compound_assign(node, frame, eval_func)

    # Plain `=` binds unconditionally; no prior declaration needed.
    val = require_value(eval_func(require_node(node.right), frame), f"assignment to {node.name}")
    check_annotation(node.type_token, node.name, val)
    frame.define(node.name, val)

    return val

def eval_compound_assign(node: AssignmentExpression, frame: Scope, eval_func: EvalFunc) -> BrValue:
    binary_op = COMPOUND_OPERATORS.get(node.op)
    if binary_op is None:
        raise BriskRuntimeError(f"unknown assignment operator {operator_symbol(node.op)}")

    current = frame.resolve(node.name)
    if current is None:
        raise BriskNameError(f"variable {node.name} not defined", node.name)

    # The binding is read before the right side runs but checked after it.
    rhs = require_value(eval_func(require_node(node.right), frame), f"assignment to {node.name}")

    if not isinstance(current, BrInt):
        raise BriskTypeError(f"variable {node.name} is not an integer")

    result = apply_binary_operator(binary_op, current, rhs)
    frame.define(node.name, result)

    return result

def eval_declaration(node: VariableDeclaration, frame: Scope, eval_func: EvalFunc) -> BrValue:
    val = require_value(eval_func(require_node(node.initializer), frame), f"declaration of {node.name}")

    # Only the current scope counts; outer bindings are shadowed.
    if frame.resolve_local(node.name) is not None:
        raise BriskRedeclarationError(node.name)

    check_annotation(node.type_token, node.name, val)
    frame.define(node.name, val)

    return val

def check_annotation(type_token: Optional[Tok], name: str, val: BrValue) -> None:
    if type_token is None:
        return

    match type_token.type:
        case TT.INT:
            if not isinstance(val, BrInt):
                raise BriskTypeError(f"variable {name} is not an integer")
        case TT.BOOL:
            if not isinstance(val, BrBool):
                raise BriskTypeError(f"variable {name} is not a boolean")
        case _:
            raise BriskTypeError(f"unknown type annotation {type_token.value!r}")
