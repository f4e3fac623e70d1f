"""AST node classes for Brisk plus helpers for walking them.

The node set is closed: one dataclass per syntactic construct, tagged with a
NodeKind so the evaluator can dispatch on a table. Nodes are passive records;
the parser stamps each one with its owning SyntaxTree and start offset.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import ClassVar, Iterator, List, Optional, Union

from typing_extensions import TypeAlias

from .token_types import TT, Tok


class NodeKind(Enum):
    NUMBER_LITERAL = auto()
    BOOLEAN_LITERAL = auto()
    BINARY_EXPRESSION = auto()
    UNARY_EXPRESSION = auto()
    PARENTHESIZED_EXPRESSION = auto()
    ASSIGNMENT_EXPRESSION = auto()
    VARIABLE_DECLARATION = auto()
    IDENTIFIER_REFERENCE = auto()
    IF_STATEMENT = auto()
    ELSE_CLAUSE = auto()
    BLOCK_STATEMENT = auto()


Part: TypeAlias = Union["Node", Tok, None]


def _is_word_char(ch: str) -> bool:
    return ch.isalnum()


def join_text(parts: List[str]) -> str:
    """Concatenate pieces, spacing adjacent word characters apart.

    `int` + `x` must not fuse into `intx`, and `x` + `5` must not become one
    token either way, so a single space goes between two word characters.
    """
    out: List[str] = []
    for piece in parts:
        if not piece:
            continue
        if out and _is_word_char(out[-1][-1]) and _is_word_char(piece[0]):
            out.append(" ")
        out.append(piece)
    return "".join(out)


@dataclass(eq=False)
class Node:
    kind: ClassVar[NodeKind]

    pos: int = field(default=0, kw_only=True, compare=False)
    tree: Optional["SyntaxTree"] = field(default=None, kw_only=True, repr=False, compare=False)

    @property
    def position(self) -> int:
        return self.pos

    def parts(self) -> List[Part]:
        """Tokens and child nodes in source order."""
        raise NotImplementedError

    def children(self) -> List[Node]:
        return [p for p in self.parts() if isinstance(p, Node)]

    def write_to(self, out: List[str]) -> None:
        # Explicit stack: operator chains nest deeper than the recursion limit.
        stack: List[Part] = [self]
        while stack:
            part = stack.pop()
            if isinstance(part, Node):
                stack.extend(reversed(part.parts()))
            elif isinstance(part, Tok):
                out.append(part.value)

    def text(self) -> str:
        """Reconstruct the source text of this node (debug/display only)."""
        out: List[str] = []
        self.write_to(out)
        return join_text(out)

    def __str__(self) -> str:
        return self.text()


@dataclass(eq=True)
class NumberLiteral(Node):
    kind: ClassVar[NodeKind] = NodeKind.NUMBER_LITERAL

    token: Tok = field(compare=False)
    value: int

    def parts(self) -> List[Part]:
        return [self.token]


@dataclass(eq=True)
class BooleanLiteral(Node):
    kind: ClassVar[NodeKind] = NodeKind.BOOLEAN_LITERAL

    token: Tok = field(compare=False)
    value: bool

    def parts(self) -> List[Part]:
        return [self.token]


@dataclass(eq=False)
class BinaryExpression(Node):
    kind: ClassVar[NodeKind] = NodeKind.BINARY_EXPRESSION

    left: Optional[Node]
    operator: Tok = field(compare=False)
    right: Optional[Node]

    @property
    def op(self) -> TT:
        return self.operator.type

    def parts(self) -> List[Part]:
        return [self.left, self.operator, self.right]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BinaryExpression):
            return NotImplemented
        return (self.op, self.left, self.right) == (other.op, other.left, other.right)


@dataclass(eq=False)
class UnaryExpression(Node):
    kind: ClassVar[NodeKind] = NodeKind.UNARY_EXPRESSION

    operator: Tok
    operand: Optional[Node]

    @property
    def op(self) -> TT:
        return self.operator.type

    def parts(self) -> List[Part]:
        return [self.operator, self.operand]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UnaryExpression):
            return NotImplemented
        return (self.op, self.operand) == (other.op, other.operand)


@dataclass(eq=True)
class ParenthesizedExpression(Node):
    kind: ClassVar[NodeKind] = NodeKind.PARENTHESIZED_EXPRESSION

    lparen: Tok = field(compare=False)
    inner: Optional[Node]
    rparen: Tok = field(compare=False)

    def parts(self) -> List[Part]:
        return [self.lparen, self.inner, self.rparen]


@dataclass(eq=False)
class AssignmentExpression(Node):
    kind: ClassVar[NodeKind] = NodeKind.ASSIGNMENT_EXPRESSION

    identifier: Tok
    operator: Tok
    right: Optional[Node]
    # Annotated assignment; the evaluator checks the value against it.
    type_token: Optional[Tok] = None

    @property
    def name(self) -> str:
        return self.identifier.value

    @property
    def op(self) -> TT:
        return self.operator.type

    def parts(self) -> List[Part]:
        return [self.type_token, self.identifier, self.operator, self.right]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AssignmentExpression):
            return NotImplemented
        return (
            self.name == other.name
            and self.op == other.op
            and _tok_type(self.type_token) == _tok_type(other.type_token)
            and self.right == other.right
        )


@dataclass(eq=False)
class VariableDeclaration(Node):
    kind: ClassVar[NodeKind] = NodeKind.VARIABLE_DECLARATION

    type_token: Optional[Tok]
    identifier: Tok
    operator: Tok  # `:=` for untyped, `=` for typed
    initializer: Optional[Node]

    @property
    def name(self) -> str:
        return self.identifier.value

    def parts(self) -> List[Part]:
        return [self.type_token, self.identifier, self.operator, self.initializer]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VariableDeclaration):
            return NotImplemented
        return (
            self.name == other.name
            and _tok_type(self.type_token) == _tok_type(other.type_token)
            and self.initializer == other.initializer
        )


@dataclass(eq=False)
class IdentifierReference(Node):
    kind: ClassVar[NodeKind] = NodeKind.IDENTIFIER_REFERENCE

    identifier: Tok

    @property
    def name(self) -> str:
        return self.identifier.value

    def parts(self) -> List[Part]:
        return [self.identifier]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IdentifierReference):
            return NotImplemented
        return self.name == other.name


@dataclass(eq=True)
class ElseClause(Node):
    kind: ClassVar[NodeKind] = NodeKind.ELSE_CLAUSE

    else_token: Tok = field(compare=False)
    body: Optional[Node]

    def parts(self) -> List[Part]:
        return [self.else_token, self.body]


@dataclass(eq=True)
class IfStatement(Node):
    kind: ClassVar[NodeKind] = NodeKind.IF_STATEMENT

    if_token: Tok = field(compare=False)
    condition: Optional[Node]
    body: Optional[Node]
    else_clause: Optional[ElseClause] = None

    def parts(self) -> List[Part]:
        return [self.if_token, self.condition, self.body, self.else_clause]


@dataclass(eq=True)
class BlockStatement(Node):
    kind: ClassVar[NodeKind] = NodeKind.BLOCK_STATEMENT

    lbrace: Tok = field(compare=False)
    statements: List[Node]
    rbrace: Tok = field(compare=False)

    def parts(self) -> List[Part]:
        return [self.lbrace, *self.statements, self.rbrace]


def _tok_type(tok: Optional[Tok]) -> Optional[TT]:
    return tok.type if tok is not None else None


class SyntaxTree:
    """Sole owner of the nodes produced by one parse."""

    def __init__(self, filename: str = "<input>", source: str = ""):
        self.filename = filename
        self.source = source
        self.statements: List[Node] = []

    @property
    def root(self) -> Optional[Node]:
        return self.statements[0] if self.statements else None

    def text(self) -> str:
        out: List[str] = []
        for stmt in self.statements:
            stmt.write_to(out)
        return join_text(out)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.statements)

    def __len__(self) -> int:
        return len(self.statements)

    def __repr__(self) -> str:
        return f"SyntaxTree({self.filename!r}, {self.statements!r})"


def walk(node: Optional[Node]) -> Iterator[Node]:
    """Yield node and all of its descendants, pre-order."""
    if node is None:
        return
    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children()))


def walk_tree(tree: SyntaxTree) -> Iterator[Node]:
    for stmt in tree.statements:
        yield from walk(stmt)
