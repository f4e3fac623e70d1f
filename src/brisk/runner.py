from __future__ import annotations

import argparse
import logging
import sys
import traceback
from pathlib import Path
from typing import Optional, Sequence, Tuple

from .diagnostics import DiagnosticBag
from .evaluator import Evaluator
from .grammar import dump_tree
from .lexer_rd import Lexer
from .parser_rd import Parser, parse_source
from .types import BrValue, BriskRuntimeError, BriskSyntaxError, Scope, new_scope
from .utils import debug_py_trace_enabled

logger = logging.getLogger(__name__)

def run(source: str, scope: Optional[Scope]=None, name: str="<input>", threaded: Optional[bool]=None) -> Optional[BrValue]:
    """Parse and evaluate `source`.

    Raises BriskSyntaxError when parsing reported errors (nothing is
    evaluated then) and lets runtime errors propagate.
    """
    parser = Parser(name, source, threaded=threaded)
    tree = parser.parse()

    if parser.diagnostics.has_errors():
        raise BriskSyntaxError(parser.diagnostics)

    return Evaluator(tree, scope if scope is not None else new_scope()).evaluate()

def repl_eval(text: str, scope: Scope) -> Tuple[Optional[BrValue], DiagnosticBag]:
    """Evaluate one REPL entry against a persistent scope.

    Parse errors come back in the bag and skip evaluation; runtime errors
    are raised, leaving whatever `scope` held before the failing statement.
    """
    tree, diagnostics = parse_source(text, "<repl>")

    if diagnostics.has_errors():
        return None, diagnostics

    return Evaluator(tree, scope).evaluate(), diagnostics

def format_value(val: Optional[BrValue]) -> str:
    return "" if val is None else repr(val)

def _load_source(arg: Optional[str]) -> Tuple[str, str]:
    """
    Resolve CLI input into (source text, display name).
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        return sys.stdin.read(), "<stdin>"

    candidate = Path(arg)
    try:
        is_file = candidate.is_file()
    except OSError:
        # Long literal programs can exceed the OS name limit.
        is_file = False

    if is_file:
        return candidate.read_text(encoding="utf-8"), str(candidate)

    return arg, "<input>"

def _build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="brisk", description="Run Brisk programs.")
    ap.add_argument("source", nargs="?", help="Path to a source file, literal source, or - for stdin")
    ap.add_argument("--tree", action="store_true", help="Print the parse tree instead of evaluating")
    ap.add_argument("--tokens", action="store_true", help="Print the token stream instead of evaluating")
    ap.add_argument("--threaded-lexer", action="store_true", help="Run the lexer on a producer thread")
    ap.add_argument("--debug", action="store_true", help="Enable debug logging on stderr")
    return ap

def _print_tokens(source: str, name: str) -> int:
    lexer = Lexer(source, name)

    for tok in lexer:
        print(repr(tok))

    for diag in lexer.errors:
        print(diag.format(), file=sys.stderr)

    return 1 if lexer.errors else 0

def main(argv: Optional[Sequence[str]]=None) -> int:
    args = _build_arg_parser().parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.source is None and sys.stdin.isatty():
        from .repl import repl

        repl()
        return 0

    source, name = _load_source(args.source)
    logger.debug("loaded %s (%d chars)", name, len(source))

    if args.tokens:
        return _print_tokens(source, name)

    # Without the flag the BRISK_THREADED_LEXER environment toggle decides.
    parser = Parser(name, source, threaded=True if args.threaded_lexer else None)
    tree = parser.parse()

    if parser.diagnostics:
        parser.diagnostics.print()

    if parser.diagnostics.has_errors():
        return 1

    if args.tree:
        print(dump_tree(tree))
        return 0

    try:
        val = Evaluator(tree, new_scope()).evaluate()
    except BriskRuntimeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if debug_py_trace_enabled():
            traceback.print_exc()
        return 1

    if val is not None:
        print(format_value(val))

    return 0

if __name__ == "__main__":
    sys.exit(main())
