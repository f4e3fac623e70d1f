"""Brisk: a small integer/boolean expression language with block scoping."""

from .diagnostics import Diagnostic, DiagnosticBag, DiagnosticKind
from .evaluator import Evaluator, evaluate
from .lexer_rd import Lexer, ThreadedTokenSource, tokenize
from .parser_rd import Parser, parse_source
from .runner import repl_eval, run
from .token_types import TT, Location, Tok, TokenLocation
from .tree import SyntaxTree
from .types import (
    BrBool,
    BrInt,
    BrValue,
    BriskDivisionError,
    BriskNameError,
    BriskRedeclarationError,
    BriskRuntimeError,
    BriskSyntaxError,
    BriskTypeError,
    Scope,
    new_scope,
)

__all__ = [
    "BrBool",
    "BrInt",
    "BrValue",
    "BriskDivisionError",
    "BriskNameError",
    "BriskRedeclarationError",
    "BriskRuntimeError",
    "BriskSyntaxError",
    "BriskTypeError",
    "Diagnostic",
    "DiagnosticBag",
    "DiagnosticKind",
    "Evaluator",
    "Lexer",
    "Location",
    "Parser",
    "Scope",
    "SyntaxTree",
    "TT",
    "ThreadedTokenSource",
    "Tok",
    "TokenLocation",
    "evaluate",
    "new_scope",
    "parse_source",
    "repl_eval",
    "run",
    "tokenize",
]
