"""
Recursive Descent Parser for Brisk

Structure:
- Lexer: token stream pulled on demand (optionally from a producer thread)
- Parser: recursive descent for statements, precedence climbing for
  expressions
- AST: the closed node set from tree.py, owned by one SyntaxTree

The parser never raises on malformed input. Every violation becomes a
diagnostic and parsing continues with a placeholder token, so callers always
get a tree back (possibly with None children).
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Optional, Tuple

from .diagnostics import DiagnosticBag
from .lexer_rd import Lexer, ThreadedTokenSource, TokenSource
from .token_types import (
    ASSIGNMENT_OPS,
    TT,
    Tok,
    TokenLocation,
    TYPE_KEYWORDS,
    binary_precedence,
    unary_precedence,
)
from .tree import (
    AssignmentExpression,
    BinaryExpression,
    BlockStatement,
    BooleanLiteral,
    ElseClause,
    IdentifierReference,
    IfStatement,
    Node,
    NumberLiteral,
    ParenthesizedExpression,
    SyntaxTree,
    UnaryExpression,
    VariableDeclaration,
)
from .types import INT64_MAX
from .utils import threaded_lexer_enabled

logger = logging.getLogger(__name__)

# Tokens a failed primary leaves in place so an enclosing rule can close on them.
_CLOSERS = frozenset({TT.EOF, TT.RBRACE, TT.RPAREN})

# Statement and expression rules nested deeper than this are reported and skipped;
# the parser and evaluator both recurse per level.
MAX_NESTING_DEPTH = 100

# ============================================================================
# Parser
# ============================================================================

class Parser:
    """
    Recursive descent parser for Brisk.

    Expression precedence (lowest to highest):
    1. ||, |, ^
    2. &&, &
    3. compare (==, !=, <, >, <=, >=)
    4. add (+, -)
    5. mul (*, /, %, <<, >>)
    6. unary (+, -, !)
    7. primary (literals, identifiers, parens, assignment)
    """

    def __init__(self, name: str, source: str, threaded: Optional[bool] = None, queue_size: int = 1):
        self.name = name
        self.source = source
        self.diagnostics = DiagnosticBag()
        self.tree = SyntaxTree(name, source)

        if threaded is None:
            threaded = threaded_lexer_enabled()

        lexer = Lexer(source, name)
        self._tokens: TokenSource
        if threaded:
            self._tokens = ThreadedTokenSource(lexer, self.diagnostics, maxsize=queue_size)
        else:
            lexer.on_error = self.diagnostics.add
            self._tokens = lexer

        self._buffer: Deque[Tok] = deque()
        self._parsed = False
        self._depth = 0
        # Where the last over-deep skip stopped; a second check there stays quiet.
        self._deep_stop: Optional[Tok] = None

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token without consuming it"""
        while len(self._buffer) <= offset:
            self._buffer.append(self._tokens.next_token())
        return self._buffer[offset]

    @property
    def current(self) -> Tok:
        return self.peek(0)

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        tok = self.peek(0)
        if tok.type is not TT.EOF:
            self._buffer.popleft()
        return tok

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type, or report and return a placeholder"""
        if self.check(token_type):
            return self.advance()

        tok = self.current
        msg = message or f"expected {token_type.name}, got {tok.type.name}"
        self.diagnostics.error(tok.location, msg)
        logger.debug("recovering at %s: %s", tok.location.start, msg)
        return Tok(TT.UNEXPECTED, "", TokenLocation.at(tok.location.start))

    def _skip(self) -> None:
        tok = self.advance()
        logger.debug("skipping %r to make progress", tok)

    def _nesting_exceeded(self) -> bool:
        """Report a too-deep construct and skip it up to the enclosing closer."""
        if self._depth < MAX_NESTING_DEPTH:
            return False

        tok = self.current
        if tok is self._deep_stop:
            return True
        self.diagnostics.error(tok.location, f"nesting too deep (more than {MAX_NESTING_DEPTH} levels)")

        balance = 0
        while not self.check(TT.EOF):
            if self.check(TT.LPAREN, TT.LBRACE):
                balance += 1
            elif self.check(TT.RPAREN, TT.RBRACE):
                if balance == 0:
                    break
                balance -= 1
            self.advance()

        self._deep_stop = self.current
        logger.debug("skipped over-deep region from %s to %s", tok.location.start, self.current.location.start)
        return True

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse(self) -> SyntaxTree:
        """Parse entire input. Safe to call more than once."""
        if self._parsed:
            return self.tree

        try:
            while not self.check(TT.EOF):
                start = self.current
                stmt = self.parse_statement()

                if stmt is not None:
                    self.tree.statements.append(stmt)

                if self.current is start:
                    self._skip()
        finally:
            self.close()

        self._parsed = True
        logger.debug(
            "parsed %s: %d statement(s), %d diagnostic(s)",
            self.name, len(self.tree.statements), len(self.diagnostics),
        )
        return self.tree

    def close(self) -> None:
        """Stop the token source. parse() calls this itself; safe to repeat."""
        self._tokens.close()

    def __enter__(self) -> Parser:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Optional[Node]:
        """
        Parse a single statement.

        - if EXPR STATEMENT [else (if ... | STATEMENT)]
        - { STATEMENT* }
        - IDENT := EXPR
        - (int | bool) IDENT = EXPR
        - EXPR
        """
        if self._nesting_exceeded():
            return None

        self._depth += 1
        try:
            if self.check(TT.IF):
                return self.parse_if_statement()
            if self.check(TT.LBRACE):
                return self.parse_block_statement()
            if self.check(*TYPE_KEYWORDS):
                return self.parse_typed_declaration()
            if self.check(TT.IDENT) and self.peek(1).type is TT.DECLARE:
                return self.parse_declaration()

            return self.parse_expression()
        finally:
            self._depth -= 1

    def parse_if_statement(self) -> IfStatement:
        # Links of an else-if chain are collected in a loop, then wired up back to front.
        links: List[Tuple[Tok, Optional[Node], Optional[Node], Optional[Tok]]] = []
        else_clause: Optional[ElseClause] = None

        while True:
            if_tok = self.expect(TT.IF)
            cond = self.parse_expression()
            body = self.parse_statement()

            if not self.check(TT.ELSE):
                links.append((if_tok, cond, body, None))
                break

            else_tok = self.advance()
            links.append((if_tok, cond, body, else_tok))

            if not self.check(TT.IF):
                else_body = self.parse_statement()
                else_clause = ElseClause(else_tok, else_body, pos=else_tok.offset, tree=self.tree)
                break

        stmt: Optional[IfStatement] = None
        for if_tok, cond, body, else_tok in reversed(links):
            if stmt is not None and else_tok is not None:
                else_clause = ElseClause(else_tok, stmt, pos=else_tok.offset, tree=self.tree)
            stmt = IfStatement(if_tok, cond, body, else_clause, pos=if_tok.offset, tree=self.tree)

        assert stmt is not None
        return stmt

    def parse_block_statement(self) -> BlockStatement:
        lbrace = self.expect(TT.LBRACE)
        stmts = []

        while not self.check(TT.RBRACE, TT.EOF):
            start = self.current
            stmt = self.parse_statement()

            if stmt is not None:
                stmts.append(stmt)

            if self.current is start:
                self._skip()

        rbrace = self.expect(TT.RBRACE)
        return BlockStatement(lbrace, stmts, rbrace, pos=lbrace.offset, tree=self.tree)

    def parse_declaration(self) -> VariableDeclaration:
        """IDENT := EXPR"""
        ident = self.expect(TT.IDENT)
        op = self.expect(TT.DECLARE)
        init = self.parse_expression()
        return VariableDeclaration(None, ident, op, init, pos=ident.offset, tree=self.tree)

    def parse_typed_declaration(self) -> VariableDeclaration:
        """(int | bool) IDENT = EXPR"""
        type_tok = self.advance()
        ident = self.expect(TT.IDENT)
        op = self.expect(TT.ASSIGN)
        init = self.parse_expression()
        return VariableDeclaration(type_tok, ident, op, init, pos=type_tok.offset, tree=self.tree)

    # ========================================================================
    # Expressions
    # ========================================================================

    def parse_expression(self, parent_precedence: int = 0) -> Optional[Node]:
        """Precedence climbing; binary operators associate to the left."""
        if self._nesting_exceeded():
            return None

        self._depth += 1
        try:
            left: Optional[Node]
            unary_prec = unary_precedence(self.current.type)

            if unary_prec and unary_prec >= parent_precedence:
                op = self.advance()
                operand = self.parse_expression(unary_prec)
                left = UnaryExpression(op, operand, pos=op.offset, tree=self.tree)
            else:
                left = self.parse_primary()

            while True:
                prec = binary_precedence(self.current.type)
                if prec == 0 or prec <= parent_precedence:
                    break

                op = self.advance()
                right = self.parse_expression(prec)
                pos = left.pos if left is not None else op.offset
                left = BinaryExpression(left, op, right, pos=pos, tree=self.tree)

            return left
        finally:
            self._depth -= 1

    def parse_primary(self) -> Optional[Node]:
        # BADTOKENs were already reported by the lexer.
        skipped_bad = False
        while self.check(TT.BADTOKEN):
            self.advance()
            skipped_bad = True

        match self.current.type:
            case TT.NUMBER:
                return self.parse_number_literal()
            case TT.TRUE | TT.FALSE:
                return self.parse_boolean_literal()
            case TT.LPAREN:
                return self.parse_parenthesized_expression()
            case TT.IDENT:
                if self.peek(1).type in ASSIGNMENT_OPS:
                    return self.parse_assignment_expression()
                return self.parse_identifier_reference()

        tok = self.current
        if not skipped_bad:
            self.diagnostics.error(tok.location, f"expected expression, got {tok.type.name}")
        if tok.type not in _CLOSERS:
            self.advance()
        return None

    def parse_number_literal(self) -> NumberLiteral:
        tok = self.advance()
        value = int(tok.value)

        if value > INT64_MAX:
            self.diagnostics.error(tok.location, f"integer literal out of range: {tok.value}")
            value = INT64_MAX

        return NumberLiteral(tok, value, pos=tok.offset, tree=self.tree)

    def parse_boolean_literal(self) -> BooleanLiteral:
        tok = self.advance()
        return BooleanLiteral(tok, tok.type is TT.TRUE, pos=tok.offset, tree=self.tree)

    def parse_parenthesized_expression(self) -> ParenthesizedExpression:
        lparen = self.advance()
        inner = self.parse_expression()
        rparen = self.expect(TT.RPAREN)
        return ParenthesizedExpression(lparen, inner, rparen, pos=lparen.offset, tree=self.tree)

    def parse_identifier_reference(self) -> IdentifierReference:
        tok = self.advance()
        return IdentifierReference(tok, pos=tok.offset, tree=self.tree)

    def parse_assignment_expression(self) -> AssignmentExpression:
        """IDENT (= | += | -= | *= | /= | %=) EXPR"""
        ident = self.advance()
        op = self.advance()
        right = self.parse_expression()
        return AssignmentExpression(ident, op, right, pos=ident.offset, tree=self.tree)


def parse_source(source: str, name: str = "<input>", threaded: Optional[bool] = None) -> Tuple[SyntaxTree, DiagnosticBag]:
    """Parse source and return the tree together with its diagnostics."""
    parser = Parser(name, source, threaded=threaded)
    tree = parser.parse()
    return tree, parser.diagnostics
