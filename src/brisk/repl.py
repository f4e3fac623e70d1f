"""Interactive Brisk prompt built on prompt_toolkit.

Entries are evaluated against one scope that survives failed evaluations.
Lines starting with `/` are REPL commands rather than Brisk source.
"""

from __future__ import annotations

import re
import sys
import traceback
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .grammar import dump_tree
from .lexer_rd import tokenize
from .parser_rd import parse_source
from .repl_highlight import BriskHighlighter
from .runner import format_value, repl_eval
from .token_types import TT
from .types import BriskRuntimeError, Scope, new_scope
from .utils import DEBUG_PY_TRACE_ENV, debug_py_trace_enabled, set_env_flag

# Pasted from rich text; the lexer would reject every one of them.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

_OPENERS = frozenset({TT.LPAREN, TT.LBRACE})
_CLOSERS = frozenset({TT.RPAREN, TT.RBRACE})

_ON_WORDS = ("on", "1", "true", "yes")
_OFF_WORDS = ("off", "0", "false", "no")


@dataclass
class ReplState:
    """Everything a slash command may change between entries."""

    scope: Scope = field(default_factory=new_scope)
    show_tree: bool = False


def open_depth(text: str) -> int:
    """Unclosed ( and { in *text*; stray closers never go below zero."""
    depth = 0

    for tok in tokenize(text):
        if tok.type in _OPENERS:
            depth += 1
        elif tok.type in _CLOSERS and depth:
            depth -= 1

    return depth


def continuation_indent(text: str) -> str:
    return "    " * open_depth(text)


def _normalize(text: str) -> str:
    return _INVISIBLE_RE.sub("", text)


# ---------------- Slash commands ----------------

SlashHandler = Callable[[ReplState, str], None]


def _parse_toggle(arg: str, current: bool) -> Optional[bool]:
    """on/off word, a flip of `current` when empty, None when unreadable."""
    word = arg.lower()

    if word in _ON_WORDS:
        return True
    if word in _OFF_WORDS:
        return False
    if not word:
        return not current

    return None


def _cmd_clear(state: ReplState, arg: str) -> None:
    clear()


def _cmd_reset(state: ReplState, arg: str) -> None:
    state.scope = new_scope()
    print("Environment reset.")


def _cmd_scope(state: ReplState, arg: str) -> None:
    names = state.scope.names()

    if not names:
        print("(no bindings)")
        return

    for name in names:
        print(f"{name} = {format_value(state.scope.resolve(name))}")


def _cmd_tree(state: ReplState, arg: str) -> None:
    enabled = _parse_toggle(arg, state.show_tree)
    if enabled is None:
        print("Usage: /tree [on|off]", file=sys.stderr)
        return

    state.show_tree = enabled
    print(f"Parse tree: {'on' if enabled else 'off'}")


def _cmd_py_traceback(state: ReplState, arg: str) -> None:
    enabled = _parse_toggle(arg, debug_py_trace_enabled())
    if enabled is None:
        print("Usage: /py-traceback [on|off]", file=sys.stderr)
        return

    set_env_flag(DEBUG_PY_TRACE_ENV, enabled)
    print(f"Python traceback: {'on' if enabled else 'off'}")


# name => (description, argument hint, handler)
SLASH_COMMANDS: Dict[str, Tuple[str, str, SlashHandler]] = {
    "/clear": ("Clear the screen", "", _cmd_clear),
    "/py-traceback": ("Show Python tracebacks for runtime errors", "[on|off]", _cmd_py_traceback),
    "/reset": ("Forget every binding", "", _cmd_reset),
    "/scope": ("List the current bindings", "", _cmd_scope),
    "/tree": ("Print the parse tree of each entry", "[on|off]", _cmd_tree),
}


def handle_slash(line: str, state: ReplState) -> bool:
    """Run a slash command. False means *line* is Brisk source instead."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    name, _, arg = stripped.partition(" ")
    entry = SLASH_COMMANDS.get(name)

    if entry is None:
        print(f"Unknown command: {name}", file=sys.stderr)
        return True

    entry[2](state, arg.strip())
    return True


class _SlashCompleter(Completer):
    """Offer command names while the entry is still a bare `/word`."""

    def get_completions(self, document, complete_event):
        typed = document.text_before_cursor
        if not typed.startswith("/") or " " in typed:
            return

        for name, (description, hint, _) in SLASH_COMMANDS.items():
            if name.startswith(typed):
                yield Completion(
                    name,
                    start_position=-len(typed),
                    display=f"{name} {hint}".rstrip(),
                    display_meta=description,
                )


# ---------------- Evaluation ----------------

def eval_entry(text: str, state: ReplState) -> None:
    """Evaluate one entry, printing its value, diagnostics or runtime error."""
    if state.show_tree:
        tree, _ = parse_source(text, "<repl>")
        print(dump_tree(tree))

    try:
        value, diagnostics = repl_eval(text, state.scope)
    except BriskRuntimeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if debug_py_trace_enabled():
            traceback.print_exception(exc, file=sys.stderr)
        return

    diagnostics.print()

    if value is not None:
        print(format_value(value))


def _key_bindings() -> KeyBindings:
    kb = KeyBindings()

    @kb.add("enter")
    def _submit_or_continue(event):
        buf = event.app.current_buffer

        if buf.text.startswith("/") or open_depth(buf.text) == 0:
            buf.validate_and_handle()
        else:
            buf.insert_text("\n" + continuation_indent(buf.text))

    @kb.add("backspace")
    def _erase(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)

        if buf.text.startswith("/"):
            buf.start_completion()

    return kb


def repl() -> None:
    state = ReplState()
    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=BriskHighlighter(),
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=_key_bindings(),
        multiline=True,
        prompt_continuation="... ",
    )

    print("brisk repl - Ctrl-D to exit, / for commands")

    while True:
        try:
            entry = session.prompt(">>> ")
        except KeyboardInterrupt:
            continue
        except EOFError:
            print()
            return

        entry = _normalize(entry)
        if not entry.strip() or handle_slash(entry, state):
            continue

        eval_entry(entry, state)
