from __future__ import annotations

from typing import List

import pytest

from brisk.lexer_rd import tokenize
from brisk.parser_rd import MAX_NESTING_DEPTH
from brisk.token_types import TT
from brisk.tree import IfStatement, NodeKind, ParenthesizedExpression, VariableDeclaration, walk, walk_tree
from tests.support.harness import (
    diagnostic_messages,
    parse_ok,
    parse_with_diagnostics,
    sexpr,
    token_pairs,
)

RECOVERY_CASES = [
    pytest.param(
        "(1+",
        ["expected expression, got EOF", "expected RPAREN, got EOF"],
        ["(group (+ 1 <missing>))"],
        id="unterminated-group",
    ),
    pytest.param(
        "1 +",
        ["expected expression, got EOF"],
        ["(+ 1 <missing>)"],
        id="dangling-operator",
    ),
    pytest.param(
        "int = 5",
        ["expected IDENT, got ASSIGN"],
        ["(int  5)"],
        id="typed-declaration-missing-name",
    ),
    pytest.param(
        "bool b 5",
        ["expected ASSIGN, got NUMBER"],
        ["(bool b 5)"],
        id="typed-declaration-missing-assign",
    ),
    pytest.param(
        "{ 1",
        ["expected RBRACE, got EOF"],
        ["{1}"],
        id="unterminated-block",
    ),
    pytest.param(
        ")",
        ["expected expression, got RPAREN"],
        [],
        id="stray-rparen",
    ),
    pytest.param(
        "}\n1",
        ["expected expression, got RBRACE"],
        ["1"],
        id="stray-rbrace",
    ),
    pytest.param(
        "* 3",
        ["expected expression, got STAR"],
        ["3"],
        id="leading-binary-operator",
    ),
    pytest.param(
        "else 1",
        ["expected expression, got ELSE"],
        ["1"],
        id="stray-else",
    ),
    pytest.param(
        "{ ) 2 }",
        ["expected expression, got RPAREN"],
        ["{2}"],
        id="stray-rparen-in-block",
    ),
    pytest.param(
        "x := 99999999999999999999",
        ["integer literal out of range: 99999999999999999999"],
        ["(:= x 9223372036854775807)"],
        id="int-literal-out-of-range",
    ),
    pytest.param(
        "1 $ 2",
        ["unrecognized character in input: '$'"],
        ["1", "2"],
        id="bad-char-between-statements",
    ),
    pytest.param(
        "1 + $ 2",
        ["unrecognized character in input: '$'"],
        ["(+ 1 2)"],
        id="bad-char-inside-expression",
    ),
]


@pytest.mark.parametrize("source, messages, statements", RECOVERY_CASES)
def test_recovery(source: str, messages: List[str], statements: List[str]) -> None:
    tree, diagnostics = parse_with_diagnostics(source)

    assert diagnostic_messages(diagnostics) == messages
    assert diagnostics.has_errors()
    assert [sexpr(s) for s in tree] == statements


def test_placeholder_token_is_zero_width_at_failure_point() -> None:
    tree, _ = parse_with_diagnostics("(1+")
    group = tree.root
    assert isinstance(group, ParenthesizedExpression)

    placeholder = group.rparen
    assert placeholder.type is TT.UNEXPECTED
    assert placeholder.value == ""
    assert placeholder.location.start == placeholder.location.end
    assert placeholder.offset == 3


def test_missing_name_placeholder_keeps_declaration() -> None:
    tree, _ = parse_with_diagnostics("int = 5")
    decl = tree.root
    assert isinstance(decl, VariableDeclaration)
    assert decl.identifier.type is TT.UNEXPECTED
    assert decl.name == ""


def test_diagnostic_location_points_at_offending_token() -> None:
    _, diagnostics = parse_with_diagnostics("x := (1 +\n  2")
    (diag,) = list(diagnostics)
    assert diag.message == "expected RPAREN, got EOF"
    assert (diag.line, diag.column) == (2, 4)


@pytest.mark.parametrize(
    "source",
    [
        pytest.param(")))", id="closers"),
        pytest.param("}}}", id="braces"),
        pytest.param("{ ) ) ) }", id="closers-in-block"),
        pytest.param("if if if", id="if-chain"),
        pytest.param("= = =", id="assigns"),
        pytest.param("int int int", id="type-keywords"),
        pytest.param(":= :=", id="declares"),
    ],
)
def test_garbage_always_terminates(source: str) -> None:
    tree, diagnostics = parse_with_diagnostics(source)
    assert diagnostics.has_errors()
    assert tree is not None


# ---------------- Structural invariants ----------------

VALID_PROGRAMS = [
    pytest.param("1 + 2 * 3 - -4", id="arith"),
    pytest.param("x := 5\nint y = x << 2\nbool z = !(x > y) && true", id="declarations"),
    pytest.param("if a == 1 { b := 2 } else if c { d = 3 } else { e += 4 }", id="if-chain"),
    pytest.param("{ a := 1 { b := a { c := b } } }", id="nested-blocks"),
    pytest.param("x = y = z = 1 | 2 ^ 3 & 4", id="assign-chain"),
    pytest.param("a != !b\nc < -d\ne * +f", id="adjacent-operators"),
    pytest.param("x := 1 2 3", id="juxtaposed-literals"),
    pytest.param("if true{1}else{2}", id="no-spaces"),
]


@pytest.mark.parametrize("source", VALID_PROGRAMS)
def test_positions_non_decreasing_in_preorder(source: str) -> None:
    tree = parse_ok(source)
    positions = [node.pos for node in walk_tree(tree)]

    assert positions == sorted(positions)
    for node in walk_tree(tree):
        assert not source[node.pos].isspace()


@pytest.mark.parametrize("source", VALID_PROGRAMS)
def test_text_round_trips_through_lexer(source: str) -> None:
    tree = parse_ok(source)
    assert token_pairs(tree.text()) == token_pairs(source)

    for stmt in tree:
        for node in walk(stmt):
            if node.kind is NodeKind.ELSE_CLAUSE:
                continue
            reparsed = parse_ok(node.text())
            assert reparsed.text() == node.text()


@pytest.mark.parametrize("source", VALID_PROGRAMS)
def test_every_node_owned_by_tree(source: str) -> None:
    tree = parse_ok(source)
    assert all(node.tree is tree for node in walk_tree(tree))


@pytest.mark.parametrize("source", VALID_PROGRAMS)
def test_valid_programs_have_no_holes(source: str) -> None:
    tree = parse_ok(source)
    for node in walk_tree(tree):
        for part in node.parts():
            if part is None:
                # Only optional slots may be empty.
                assert node.kind in (
                    NodeKind.IF_STATEMENT,
                    NodeKind.VARIABLE_DECLARATION,
                    NodeKind.ASSIGNMENT_EXPRESSION,
                )


def test_first_token_of_node_starts_at_pos() -> None:
    source = "  if x { y := 1 }"
    tree = parse_ok(source)
    starts = {tok.offset for tok in tokenize(source)}
    assert {node.pos for node in walk_tree(tree)} <= starts


TOO_DEEP = f"nesting too deep (more than {MAX_NESTING_DEPTH} levels)"

DEEP_SOURCES = [
    pytest.param("(" * 400 + "1" + ")" * 400, id="parens"),
    pytest.param("{" * 400 + "}" * 400, id="blocks"),
    pytest.param("-" * 400 + "1", id="unary"),
    pytest.param("x = " * 400 + "1", id="assignments"),
    pytest.param("if true " * 400 + "1", id="if-bodies"),
    pytest.param("if true { " * 400 + "}" * 400, id="if-blocks"),
    pytest.param("-(" * 300 + "1" + ")" * 300, id="unary-parens"),
]


@pytest.mark.parametrize("source", DEEP_SOURCES)
def test_deep_nesting_is_a_diagnostic(source: str) -> None:
    tree, bag = parse_with_diagnostics(source)

    assert diagnostic_messages(bag) == [TOO_DEEP]
    assert len(tree) == 1


def test_parsing_resumes_after_deep_region() -> None:
    source = "(" * 200 + "1" + ")" * 200 + "\nx := 2"
    tree, bag = parse_with_diagnostics(source)

    assert diagnostic_messages(bag) == [TOO_DEEP]
    assert isinstance(tree.statements[0], ParenthesizedExpression)
    assert isinstance(tree.statements[-1], VariableDeclaration)


def test_nesting_below_limit_is_clean() -> None:
    depth = MAX_NESTING_DEPTH - 10
    parse_ok("(" * depth + "1" + ")" * depth)
    parse_ok("{" * depth + "1" + "}" * depth)


def test_long_flat_constructs_are_not_nesting() -> None:
    tree = parse_ok(" + ".join(["1"] * 5000))
    assert tree.root is not None and tree.root.kind is NodeKind.BINARY_EXPRESSION

    chain = " else ".join(f"if x == {i} {i}" for i in range(2000)) + " else 0"
    root = parse_ok(chain).root
    assert isinstance(root, IfStatement)

    links = 0
    node = root
    while isinstance(node, IfStatement):
        links += 1
        assert node.else_clause is not None
        node = node.else_clause.body
    assert links == 2000
    assert sexpr(node) == "0"
