from __future__ import annotations

from textwrap import dedent

import pytest

from brisk.grammar import parse_reference, to_lark_tree, tree_shape
from brisk.tree import NodeKind
from tests.support.harness import parse_ok, sexpr

GROUPING_CASES = [
    pytest.param("1+2*3", "(+ 1 (* 2 3))", id="mul-over-add"),
    pytest.param("(1+2)*3", "(* (group (+ 1 2)) 3)", id="parens-group"),
    pytest.param("1-2-3", "(- (- 1 2) 3)", id="sub-left-assoc"),
    pytest.param("8/4/2", "(/ (/ 8 4) 2)", id="div-left-assoc"),
    pytest.param("2<<1+1", "(+ (<< 2 1) 1)", id="shift-over-add"),
    pytest.param("1+2<<3", "(+ 1 (<< 2 3))", id="shift-binds-right-operand"),
    pytest.param("a % b * c", "(* (% a b) c)", id="mul-level-left-assoc"),
    pytest.param("a == b < c", "(< (== a b) c)", id="compare-left-assoc"),
    pytest.param("a < b + 1", "(< a (+ b 1))", id="add-over-compare"),
    pytest.param("a || b && c", "(|| a (&& b c))", id="and-over-or"),
    pytest.param("a & b | c ^ d", "(^ (| (& a b) c) d)", id="bitwise-levels"),
    pytest.param("a && b == c", "(&& a (== b c))", id="compare-over-and"),
    pytest.param("-1*2", "(* (- 1) 2)", id="unary-over-mul"),
    pytest.param("2*-3", "(* 2 (- 3))", id="unary-right-operand"),
    pytest.param("- -1", "(- (- 1))", id="unary-nested"),
    pytest.param("!true == false", "(== (! true) false)", id="not-over-eq"),
    pytest.param("+x", "(+ x)", id="unary-plus"),
    pytest.param("x -1", "(- x 1)", id="minus-after-ident-is-binary"),
]

STATEMENT_CASES = [
    pytest.param("x := 1 + 2", "(:= x (+ 1 2))", id="untyped-declaration"),
    pytest.param("int x = 5", "(int x 5)", id="typed-int-declaration"),
    pytest.param("bool b = !false", "(bool b (! false))", id="typed-bool-declaration"),
    pytest.param("x = 3", "(= x 3)", id="assign"),
    pytest.param("x = y = 3", "(= x (= y 3))", id="assign-right-assoc"),
    pytest.param("x += 1 * 2", "(+= x (* 1 2))", id="compound-assign"),
    pytest.param("x %= 2", "(%= x 2)", id="compound-mod-assign"),
    pytest.param("1 + x = 2", "(+ 1 (= x 2))", id="assign-as-operand"),
    pytest.param("(y = 2)", "(group (= y 2))", id="assign-in-parens"),
    pytest.param("if a { 1 } else { 2 }", "(if a {1} else {2})", id="if-else-blocks"),
    pytest.param("if a 1", "(if a 1)", id="if-bare-statement"),
    pytest.param("if a 1 else if b 2 else 3", "(if a 1 else (if b 2 else 3))", id="else-if-chain"),
    pytest.param("if a if b 1 else 2", "(if a (if b 1 else 2))", id="dangling-else-binds-inner"),
    pytest.param("{ x := 1 { y := x } }", "{(:= x 1) {(:= y x)}}", id="nested-blocks"),
    pytest.param("{}", "{}", id="empty-block"),
    pytest.param("if x == 1 { x += 1 }", "(if (== x 1) {(+= x 1)})", id="if-condition-expression"),
]


@pytest.mark.parametrize("source, expected", GROUPING_CASES + STATEMENT_CASES)
def test_parse_shape(source: str, expected: str) -> None:
    tree = parse_ok(source)
    assert len(tree) == 1
    assert sexpr(tree.root) == expected


def test_statements_separate_on_token_boundaries() -> None:
    tree = parse_ok("x := 1\nx + 1\ny := x 2")
    assert [sexpr(s) for s in tree] == ["(:= x 1)", "(+ x 1)", "(:= y x)", "2"]


def test_blocks_hold_statement_lists() -> None:
    source = dedent(
        """\
        {
            a := 1
            b := a * 2
            a + b
        }
        """
    )
    block = parse_ok(source).root
    assert block is not None
    assert block.kind is NodeKind.BLOCK_STATEMENT
    assert [s.kind for s in block.children()] == [
        NodeKind.VARIABLE_DECLARATION,
        NodeKind.VARIABLE_DECLARATION,
        NodeKind.BINARY_EXPRESSION,
    ]


def test_literal_values() -> None:
    tree = parse_ok("9223372036854775807\ntrue\nfalse")
    values = [node.value for node in tree]
    assert values == [9223372036854775807, True, False]


def test_parse_is_idempotent() -> None:
    from brisk.parser_rd import Parser

    parser = Parser("<input>", "1 + 2")
    first = parser.parse()
    second = parser.parse()

    assert first is second
    assert len(first) == 1


# ---------------- Reference grammar conformance ----------------

CONFORMANCE_SOURCES = [
    pytest.param("1+2*3", id="arith"),
    pytest.param("(1+2)*3", id="parens"),
    pytest.param("1-2-3", id="left-assoc"),
    pytest.param("-x*2", id="unary-first"),
    pytest.param("!a == b", id="not-eq"),
    pytest.param("a || b && c | d ^ e", id="logic-mix"),
    pytest.param("a < b == true", id="compare-chain"),
    pytest.param("5 & 3 | 1", id="bitwise"),
    pytest.param("x << 2 >> 1 % 3", id="shift-level"),
    pytest.param("x := 5", id="declare"),
    pytest.param("int x = 5", id="typed-int"),
    pytest.param("bool flag = !false", id="typed-bool"),
    pytest.param("x = y = 3", id="assign-chain"),
    pytest.param("x += 2 * 3", id="compound"),
    pytest.param("if a { 1 } else { 2 }", id="if-else"),
    pytest.param("if a 1 else if b 2 else 3", id="else-if"),
    pytest.param("if a if b 1 else 2", id="dangling-else"),
    pytest.param("{ x := 1 { y := x } }", id="nested-blocks"),
    pytest.param("{}", id="empty-block"),
    pytest.param("x := 1\ny := x << 2 >> 1\nx % y", id="multi-statement"),
    pytest.param("if (a) { b := !(c || d) } else { b := false }", id="mixed-program"),
    pytest.param("", id="empty-program"),
]


@pytest.mark.parametrize("source", CONFORMANCE_SOURCES)
def test_hand_parser_matches_reference_grammar(source: str) -> None:
    hand = tree_shape(to_lark_tree(parse_ok(source)))
    reference = tree_shape(parse_reference(source))
    assert hand == reference


def test_reference_grammar_rejects_bad_input() -> None:
    from lark.exceptions import UnexpectedInput

    with pytest.raises(UnexpectedInput):
        parse_reference("(1 +")


def test_reference_shape_labels() -> None:
    shape = tree_shape(parse_reference("int x = -1"))
    assert shape == (
        "start",
        ("variable_declaration", "int", "x", ("unary_expression", "-", ("number_literal", "1"))),
    )
