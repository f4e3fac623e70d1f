from __future__ import annotations

from types import SimpleNamespace
from typing import Callable, Optional

from ..tree import Node
from ..types import INT64_MAX, INT64_MIN, BrBool, BrInt, BrValue, BriskRuntimeError, BriskTypeError, Scope, type_name

EvalFunc = Callable[[Optional[Node], Scope], Optional[BrValue]]

_UINT64 = 1 << 64

def wrap_int64(n: int) -> int:
    """Two's-complement wraparound into the signed 64-bit range."""
    if INT64_MIN <= n <= INT64_MAX:
        return n

    n &= _UINT64 - 1
    return n - _UINT64 if n > INT64_MAX else n

def require_value(val: Optional[BrValue], what: str) -> BrValue:
    if val is None:
        raise BriskTypeError(f"{what} produced no value")
    return val

def require_int(val: Optional[BrValue], what: str) -> int:
    match val:
        case BrInt(value=n):
            return n
    raise BriskTypeError(f"{what} expects int, got {type_name(val)}")

def require_bool(val: Optional[BrValue], what: str) -> bool:
    match val:
        case BrBool(value=b):
            return b
    raise BriskTypeError(f"{what} expects bool, got {type_name(val)}")

def require_node(node: Optional[Node]) -> Node:
    """Parser recovery leaves None holes; those never evaluate."""
    if node is None:
        raise BriskRuntimeError("cannot evaluate incomplete expression")
    return node

def int_value(n: int) -> BrInt:
    return BrInt(wrap_int64(n))

def attach_location(exc: BriskRuntimeError, node: Node) -> None:
    # Innermost node wins; outer frames see br_meta already set.
    if exc.br_meta is not None:
        return

    tree = node.tree
    if tree is None:
        return

    source = tree.source
    start = node.pos
    line = source.count("\n", 0, start) + 1
    last_nl = source.rfind("\n", 0, start)
    col = start + 1 if last_nl == -1 else start - last_nl
    exc.br_meta = SimpleNamespace(line=line, column=col, filename=tree.filename)
