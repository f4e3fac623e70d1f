"""
Reference grammar for Brisk, driven by lark.

The interpreter runs on the hand-written parser in parser_rd. This module
parses the same language with lark's LALR parser so the two can be checked
against each other for grouping, and it backs `brisk --tree`.

Only the shape matters here: the reference parser raises on the first syntax
error and has no recovery.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, List, Tuple, Union

from lark import Lark, Token, Transformer, Tree

from .token_types import Tok
from .tree import (
    BlockStatement,
    ElseClause,
    IfStatement,
    Node,
    ParenthesizedExpression,
    SyntaxTree,
    VariableDeclaration,
)

GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")

Shape = Union[str, tuple]


def build_reference_parser(parser_kind: str = "lalr") -> Lark:
    grammar_text = GRAMMAR_PATH.read_text(encoding="utf-8")
    return Lark(
        grammar_text,
        parser=parser_kind,
        lexer="basic",
        start="start",
        maybe_placeholders=False,
        propagate_positions=True,
    )


@lru_cache(maxsize=None)
def _default_parser() -> Lark:
    return build_reference_parser()


class Canonicalize(Transformer):
    """Collapse the operator and type-name wrapper rules to their token."""

    def _single(self, c):
        return c[0]

    or_op = _single
    and_op = _single
    compare_op = _single
    add_op = _single
    mul_op = _single
    unary_op = _single
    assign_op = _single
    type_name = _single


def parse_reference(source: str) -> Tree:
    """Parse with the lark grammar; raises lark.UnexpectedInput on bad input."""
    return Canonicalize().transform(_default_parser().parse(source))


# ---------- AST -> lark.Tree ----------

def _lark_parts(node: Node) -> List[Any]:
    # Keyword and punctuation tokens the grammar filters out are left out here too.
    match node:
        case VariableDeclaration():
            return [node.type_token, node.identifier, node.initializer]
        case IfStatement():
            return [node.condition, node.body, node.else_clause]
        case ElseClause():
            return [node.body]
        case BlockStatement():
            return list(node.statements)
        case ParenthesizedExpression():
            return [node.inner]
        case _:
            return node.parts()


def to_lark_tree(obj: Union[SyntaxTree, Node]) -> Tree:
    """Mirror a hand-parsed AST as a lark Tree labelled like grammar.lark.

    None holes left by error recovery are dropped, so only trees from
    diagnostic-free parses are meaningful to compare.
    """
    if isinstance(obj, SyntaxTree):
        return Tree("start", [to_lark_tree(stmt) for stmt in obj.statements])

    # Built top-down off a work stack; long operator chains are too deep to recurse.
    root = Tree(obj.kind.name.lower(), [])
    pending: List[Tuple[Node, Tree]] = [(obj, root)]

    while pending:
        node, out = pending.pop()
        for part in _lark_parts(node):
            if isinstance(part, Node):
                child = Tree(part.kind.name.lower(), [])
                out.children.append(child)
                pending.append((part, child))
            elif isinstance(part, Tok):
                out.children.append(Token(part.type.name, part.value))

    return root


def tree_shape(t: Any) -> Shape:
    """Nested tuples of rule labels and token text, ignoring token types."""
    if isinstance(t, (SyntaxTree, Node)):
        t = to_lark_tree(t)

    if isinstance(t, Tree):
        return (str(t.data), *(tree_shape(c) for c in t.children))

    if isinstance(t, Token):
        return str(t)

    raise TypeError(f"cannot take the shape of {type(t).__name__}")


def pretty_inline(t: Any, indent: str = "") -> List[str]:
    lines: List[str] = []
    stack: List[Tuple[Any, str]] = [(t, indent)]

    while stack:
        cur, pad = stack.pop()
        if not isinstance(cur, Tree):
            lines.append(f"{pad}{str(getattr(cur, 'type', '')).lower()}  {cur}")
            continue

        children = cur.children
        # Leaves with a single token print on one line: `number_literal 5`
        if len(children) == 1 and isinstance(children[0], Token):
            lines.append(f"{pad}{cur.data} {children[0]}")
            continue

        lines.append(f"{pad}{cur.data}")
        stack.extend((c, pad + "  ") for c in reversed(children))

    return lines


def dump_tree(obj: Union[SyntaxTree, Node]) -> str:
    """Indented outline of a hand-parsed tree, as printed by `brisk --tree`."""
    return "\n".join(pretty_inline(to_lark_tree(obj)))
