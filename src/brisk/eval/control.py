from __future__ import annotations

from typing import Optional

from ..tree import ElseClause, IfStatement
from ..types import BrBool, BrValue, BriskRuntimeError, BriskTypeError, Scope, type_name
from .helpers import EvalFunc, attach_location, require_node

def eval_if_stmt(node: IfStatement, frame: Scope, eval_func: EvalFunc) -> Optional[BrValue]:
    # else-if links are followed in this loop rather than one call per link
    current = node

    while True:
        try:
            cond = eval_func(require_node(current.condition), frame)
            if not isinstance(cond, BrBool):
                raise BriskTypeError(f"if condition must be bool, got {type_name(cond)}")
        except BriskRuntimeError as e:
            attach_location(e, current)
            raise

        if cond.value:
            return eval_func(require_node(current.body), frame)

        else_clause = current.else_clause
        if else_clause is None:
            return None

        if not isinstance(else_clause.body, IfStatement):
            return eval_func(else_clause, frame)

        current = else_clause.body

def eval_else_clause(node: ElseClause, frame: Scope, eval_func: EvalFunc) -> Optional[BrValue]:
    return eval_func(require_node(node.body), frame)
