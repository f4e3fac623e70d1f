from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator, Optional

from ..tree import BlockStatement, Node
from ..types import BrValue, Scope
from .helpers import EvalFunc

def eval_program(statements: Iterable[Node], frame: Scope, eval_func: EvalFunc) -> Optional[BrValue]:
    """Run statements in order in `frame`, returning the last value."""
    result: Optional[BrValue] = None

    for stmt in statements:
        result = eval_func(stmt, frame)

    return result

def eval_block(node: BlockStatement, frame: Scope, eval_func: EvalFunc) -> Optional[BrValue]:
    with child_scope(frame) as inner:
        return eval_program(node.statements, inner, eval_func)

@contextmanager
def child_scope(frame: Scope) -> Iterator[Scope]:
    """Fresh scope for the duration of a block; dropped on exit, error or not."""
    inner = Scope(parent=frame)

    try:
        yield inner
    finally:
        inner.vars.clear()
