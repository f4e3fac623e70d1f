from __future__ import annotations

import re
from textwrap import dedent

import pytest

from brisk.runner import run
from brisk.types import BrBool, BrInt, Scope, new_scope
from tests.support.harness import (
    BriskNameError,
    BriskRedeclarationError,
    BriskTypeError,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param("x := 3", ("int", 3), None, id="declaration-yields-value"),
    pytest.param("x := 1\nx + 1", ("int", 2), None, id="declare-then-read"),
    pytest.param("x := 1\nx := 2", None, BriskRedeclarationError, id="redeclare-same-scope"),
    pytest.param(
        "x := 1\nint x = 2", None, BriskRedeclarationError, id="redeclare-typed-same-scope"
    ),
    pytest.param(
        dedent(
            """\
            x := 1
            {
                x := 2
                x
            }
        """
        ),
        ("int", 2),
        None,
        id="shadow-inside-block",
    ),
    pytest.param("x := 1\n{ x := 2 }\nx", ("int", 1), None, id="shadow-does-not-leak"),
    pytest.param("x := 1\n{ x := x + 1\n x }", ("int", 2), None, id="initializer-sees-outer"),
    pytest.param("{ y := 1 }\ny", None, BriskNameError, id="block-binding-gone"),
    pytest.param("{ { z := 1 } z }", None, BriskNameError, id="nested-block-binding-gone"),
    pytest.param("q", None, BriskNameError, id="undefined-read"),
    pytest.param("int x = 5\nx", ("int", 5), None, id="typed-int"),
    pytest.param("bool b = 1 < 2\nb", ("bool", True), None, id="typed-bool"),
    pytest.param("int x = true", None, BriskTypeError, id="typed-int-mismatch"),
    pytest.param("bool b = 1", None, BriskTypeError, id="typed-bool-mismatch"),
    pytest.param("z = 4\nz", ("int", 4), None, id="assign-without-declaration"),
    pytest.param("x := 1\nx = 7", ("int", 7), None, id="assign-yields-value"),
    pytest.param("x := 1\nx = true\nx", ("bool", True), None, id="assign-changes-type"),
    pytest.param("a = b = 2\na + b", ("int", 4), None, id="assign-chain"),
    pytest.param("x := 5\nx += 3\nx", ("int", 8), None, id="plus-assign"),
    pytest.param("x := 5\nx -= 8", ("int", -3), None, id="minus-assign"),
    pytest.param("x := 5\nx *= 3", ("int", 15), None, id="star-assign"),
    pytest.param("x := -7\nx /= 2", ("int", -3), None, id="slash-assign-truncates"),
    pytest.param("x := 7\nx %= 3", ("int", 1), None, id="mod-assign"),
    pytest.param("y += 1", None, BriskNameError, id="compound-undefined"),
    pytest.param("b := true\nb += 1", None, BriskTypeError, id="compound-on-bool"),
    pytest.param("x := 5\nx += true", None, BriskTypeError, id="compound-bool-operand"),
    pytest.param("x := 5\n{ x = 9 }\nx", ("int", 5), None, id="block-assign-binds-locally"),
    pytest.param("x := 5\n{ x += 1 }\nx", ("int", 5), None, id="block-compound-binds-locally"),
    pytest.param("x := 5\n{ x += 1\n x }", ("int", 6), None, id="block-compound-reads-outer"),
    pytest.param("x := 5\n{ x += 1\n x := 0 }", None, BriskRedeclarationError, id="compound-then-declare"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_scoping(source, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


MESSAGES = [
    pytest.param("x := 1\nx := 2", "variable x already defined", id="redeclare"),
    pytest.param("q + 1", "undefined variable q", id="undefined"),
    pytest.param("n -= 1", "variable n not defined", id="compound-undefined"),
    pytest.param("f := false\nf *= 2", "variable f is not an integer", id="compound-bool"),
    pytest.param("int i = false", "variable i is not an integer", id="typed-int"),
    pytest.param("bool k = 0", "variable k is not a boolean", id="typed-bool"),
]


@pytest.mark.parametrize("source, message", MESSAGES)
def test_binding_messages(source: str, message: str) -> None:
    with pytest.raises((BriskNameError, BriskRedeclarationError, BriskTypeError), match=re.escape(message)):
        run(source)


def test_name_errors_carry_name() -> None:
    with pytest.raises(BriskNameError) as info:
        run("missing * 2")
    assert info.value.name == "missing"


def test_redeclaration_checked_after_initializer(scope: Scope) -> None:
    with pytest.raises(BriskRedeclarationError) as info:
        run("x := 1\nx := (y = 2)", scope)

    assert info.value.name == "x"
    assert scope.resolve("y") == BrInt(2)
    assert scope.resolve("x") == BrInt(1)


def test_compound_type_checked_after_right_side(scope: Scope) -> None:
    with pytest.raises(BriskTypeError, match="variable b is not an integer"):
        run("b := true\nb += (c = 1)", scope)

    assert scope.resolve("c") == BrInt(1)
    assert scope.resolve("b") == BrBool(True)


def test_compound_reads_binding_before_right_side(scope: Scope) -> None:
    assert run("x := 1\nx += (x = 5)", scope) == BrInt(6)
    assert scope.resolve("x") == BrInt(6)


def test_failed_typed_declaration_binds_nothing(scope: Scope) -> None:
    with pytest.raises(BriskTypeError):
        run("int x = true", scope)
    assert "x" not in scope


def test_scope_persists_across_runs(scope: Scope) -> None:
    run("a := 2", scope)
    run("b := a * 21", scope)

    assert run("b", scope) == BrInt(42)
    assert scope.names() == ["a", "b"]

    with pytest.raises(BriskRedeclarationError):
        run("a := 0", scope)


def test_scope_api() -> None:
    outer = new_scope()
    inner = new_scope(outer)

    outer.define("x", BrInt(1))
    inner.define("y", BrBool(True))

    assert inner.resolve("x") == BrInt(1)
    assert inner.resolve_local("x") is None
    assert inner.resolve_local("y") == BrBool(True)
    assert outer.resolve("y") is None

    assert "x" in inner
    assert "y" not in outer
    assert 3 not in inner

    assert outer.depth() == 0
    assert inner.depth() == 1
    assert list(inner) == ["y"]
    assert repr(inner) == "Scope(depth=1, vars={'y': true})"


def test_define_overwrites_in_place() -> None:
    scope = new_scope()
    scope.define("x", BrInt(1))
    scope.define("x", BrInt(2))
    assert scope.names() == ["x"]
    assert scope.resolve("x") == BrInt(2)
