from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .tree import Node, NodeKind, SyntaxTree
from .types import BrBool, BrInt, BrValue, BriskRuntimeError, Scope

from .eval.bind import eval_assignment, eval_declaration, eval_identifier
from .eval.blocks import eval_block, eval_program
from .eval.control import eval_else_clause, eval_if_stmt
from .eval.expr import eval_binary, eval_parenthesized, eval_unary
from .eval.helpers import attach_location, require_node

logger = logging.getLogger(__name__)

# ---------------- Public API ----------------

class Evaluator:
    """Walks a SyntaxTree against a scope chain."""

    def __init__(self, tree: Optional[SyntaxTree], scope: Optional[Scope]=None):
        self.tree = tree
        self.scope = scope if scope is not None else Scope()

    def evaluate(self) -> Optional[BrValue]:
        """Evaluate every top-level statement in order; the last value wins.

        A missing tree or an empty one yields None. Runtime errors propagate
        to the caller unchanged except for the attached source location.
        """
        if self.tree is None or self.tree.root is None:
            return None

        try:
            return eval_program(self.tree.statements, self.scope, eval_node)
        except BriskRuntimeError as e:
            logger.debug("evaluation of %s failed: %s", self.tree.filename, e)
            raise


def evaluate(tree: Optional[SyntaxTree], scope: Optional[Scope]=None) -> Optional[BrValue]:
    return Evaluator(tree, scope).evaluate()

# ---------------- Core evaluator ----------------

def eval_node(n: Optional[Node], frame: Scope) -> Optional[BrValue]:
    node = require_node(n)

    try:
        handler = _NODE_DISPATCH.get(node.kind)
        if handler is None:
            raise BriskRuntimeError(f"Unknown node: {node.kind.name}")
        return handler(node, frame)
    except BriskRuntimeError as e:
        attach_location(e, node)
        raise

# ---------------- Dispatch ----------------

_NODE_DISPATCH: dict[NodeKind, Callable[[Any, Scope], Optional[BrValue]]] = {
    NodeKind.NUMBER_LITERAL: lambda n, frame: BrInt(n.value),
    NodeKind.BOOLEAN_LITERAL: lambda n, frame: BrBool(n.value),
    NodeKind.BINARY_EXPRESSION: lambda n, frame: eval_binary(n, frame, eval_node),
    NodeKind.UNARY_EXPRESSION: lambda n, frame: eval_unary(n, frame, eval_node),
    NodeKind.PARENTHESIZED_EXPRESSION: lambda n, frame: eval_parenthesized(n, frame, eval_node),
    NodeKind.ASSIGNMENT_EXPRESSION: lambda n, frame: eval_assignment(n, frame, eval_node),
    NodeKind.VARIABLE_DECLARATION: lambda n, frame: eval_declaration(n, frame, eval_node),
    NodeKind.IDENTIFIER_REFERENCE: lambda n, frame: eval_identifier(n, frame),
    NodeKind.IF_STATEMENT: lambda n, frame: eval_if_stmt(n, frame, eval_node),
    NodeKind.ELSE_CLAUSE: lambda n, frame: eval_else_clause(n, frame, eval_node),
    NodeKind.BLOCK_STATEMENT: lambda n, frame: eval_block(n, frame, eval_node),
}
