"""
Lexer for Brisk - state machine scanner

Tokenizes Brisk source code into a stream of tokens.

Features:
- Each state function consumes zero or more characters and returns the
  next state (None once EOF has been emitted)
- Pull-based: tokens are produced one at a time as the parser asks for them
- Position tracking (offset, line, column), restored on backup
- Unrecognized characters become BADTOKEN plus a diagnostic; scanning goes on
- Optional ThreadedTokenSource runs the same scanner on a producer thread
"""

from __future__ import annotations

import logging
import queue
import threading
from collections import deque
from typing import Callable, Deque, Iterator, List, Optional

from typing_extensions import Protocol

from .diagnostics import Diagnostic, DiagnosticBag, DiagnosticKind
from .token_types import (
    DOUBLE_OPERATORS,
    KEYWORDS,
    OPERATOR_CHARS,
    SINGLE_OPERATORS,
    TT,
    Location,
    Tok,
    TokenLocation,
)

logger = logging.getLogger(__name__)

WHITESPACE = " \t\r\n"
DIGITS = "0123456789"

# next() returns this at end of input; never a member of any character set.
END = ""

StateFn = Callable[["Lexer"], Optional["StateFn"]]
ErrorSink = Callable[[Diagnostic], None]


class TokenSource(Protocol):
    """What the parser pulls tokens from."""

    def next_token(self) -> Tok: ...

    def close(self) -> None: ...

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    Brisk lexer.

    The scanner keeps a start marker (where the token being built begins)
    and a cursor. emit() cuts the text between them into a token and moves
    the start marker up to the cursor.
    """

    def __init__(self, source: str, filename: str = "<input>", on_error: Optional[ErrorSink] = None):
        self.source = source
        self.filename = filename
        self.on_error = on_error
        self.errors: List[Diagnostic] = []

        # Start of the token under construction
        self.start = 0
        self.start_line = 1
        self.start_column = 1

        # Cursor
        self.pos = 0
        self.line = 1
        self.column = 1

        # One-step undo for backup()
        self._width = 0
        self._prev_line = 1
        self._prev_column = 1

        self._pending: Deque[Tok] = deque()
        self._state: Optional[StateFn] = lex_text
        self._eof: Optional[Tok] = None

    # ========================================================================
    # Token stream
    # ========================================================================

    def next_token(self) -> Tok:
        """Run states until a token is available. EOF repeats once reached."""
        while not self._pending:
            if self._state is None:
                assert self._eof is not None
                return self._eof
            self._state = self._state(self)
        return self._pending.popleft()

    def close(self) -> None:
        """Nothing runs in the background for the pull scanner."""

    def __iter__(self) -> Iterator[Tok]:
        while True:
            tok = self.next_token()
            yield tok
            if tok.type is TT.EOF:
                return

    # ========================================================================
    # Scanner primitives
    # ========================================================================

    def next(self) -> str:
        """Consume and return the next character, or END."""
        if self.pos >= len(self.source):
            self._width = 0
            return END

        ch = self.source[self.pos]
        self._width = 1
        self._prev_line = self.line
        self._prev_column = self.column
        self.pos += 1

        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def backup(self) -> None:
        """Step back over the character returned by the last next()."""
        if self._width == 0:
            return
        self.pos -= self._width
        self.line = self._prev_line
        self.column = self._prev_column
        self._width = 0

    def peek(self) -> str:
        ch = self.next()
        self.backup()
        return ch

    def accept(self, valid: str) -> bool:
        ch = self.next()
        if ch != END and ch in valid:
            return True
        self.backup()
        return False

    def accept_run(self, valid: str) -> None:
        self.accept_run_func(lambda ch: ch in valid)

    def accept_run_func(self, pred: Callable[[str], bool]) -> None:
        while True:
            ch = self.next()
            if ch == END or not pred(ch):
                break
        self.backup()

    def ignore(self) -> None:
        """Drop the pending text (whitespace) by moving the start marker."""
        self.start = self.pos
        self.start_line = self.line
        self.start_column = self.column

    def location(self) -> TokenLocation:
        return TokenLocation(
            start=Location(self.start, self.start_line, self.start_column, self.filename),
            end=Location(self.pos, self.line, self.column, self.filename),
        )

    def emit(self, kind: TT) -> Tok:
        tok = Tok(kind, self.source[self.start:self.pos], self.location())
        self._pending.append(tok)
        if kind is TT.EOF:
            self._eof = tok
        self.ignore()
        return tok

    def errorf(self, kind: TT, message: str) -> StateFn:
        """Consume the offending character, emit it as `kind` and report it."""
        self.next()
        loc = self.location()
        self.emit(kind)
        diag = Diagnostic(kind=DiagnosticKind.ERROR, location=loc, message=message, file=self.filename)
        logger.debug("lexer error at %s: %s", loc.start, message)
        self.errors.append(diag)
        if self.on_error is not None:
            self.on_error(diag)
        return lex_text


# ============================================================================
# State functions
# ============================================================================

def lex_text(lx: Lexer) -> Optional[StateFn]:
    ch = lx.peek()

    if ch == END:
        lx.emit(TT.EOF)
        return None
    if ch in WHITESPACE:
        return lex_whitespace
    if ch == '(':
        return lex_left_paren
    if ch == ')':
        return lex_right_paren
    if ch == '{':
        return lex_left_brace
    if ch == '}':
        return lex_right_brace
    if ch in OPERATOR_CHARS:
        return lex_operator
    if ch in DIGITS:
        return lex_number
    if ch.isalpha():
        return lex_identifier_or_keyword

    return lx.errorf(TT.BADTOKEN, f"unrecognized character in input: {ch!r}")


def lex_whitespace(lx: Lexer) -> StateFn:
    lx.accept_run(WHITESPACE)
    lx.ignore()
    return lex_text


def lex_left_paren(lx: Lexer) -> StateFn:
    lx.accept("(")
    lx.emit(TT.LPAREN)
    return lex_text


def lex_right_paren(lx: Lexer) -> StateFn:
    lx.accept(")")
    lx.emit(TT.RPAREN)
    return lex_text


def lex_left_brace(lx: Lexer) -> StateFn:
    lx.accept("{")
    lx.emit(TT.LBRACE)
    return lex_text


def lex_right_brace(lx: Lexer) -> StateFn:
    lx.accept("}")
    lx.emit(TT.RBRACE)
    return lex_text


def lex_number(lx: Lexer) -> StateFn:
    lx.accept_run(DIGITS)
    lx.emit(TT.NUMBER)
    return lex_text


def lex_identifier_or_keyword(lx: Lexer) -> StateFn:
    lx.accept_run_func(str.isalpha)
    word = lx.source[lx.start:lx.pos]
    lx.emit(KEYWORDS.get(word, TT.IDENT))
    return lex_text


def lex_operator(lx: Lexer) -> StateFn:
    first = lx.next()

    # Longest match: try the two-character form, otherwise undo the peek.
    seconds = DOUBLE_OPERATORS.get(first)
    if seconds is not None:
        second = lx.next()
        kind = seconds.get(second) if second != END else None
        if kind is not None:
            lx.emit(kind)
            return lex_text
        lx.backup()

    lx.emit(SINGLE_OPERATORS[first])
    return lex_text


# ============================================================================
# Threaded token source
# ============================================================================

class ThreadedTokenSource:
    """
    Runs a Lexer on a producer thread.

    Tokens cross a bounded queue so the scanner works at most `maxsize`
    tokens ahead of the parser. Lexer diagnostics travel on a second queue
    drained into the DiagnosticBag by a forwarding thread. The threads start
    with the first token request, finish on their own once EOF is produced,
    and are joined when the consumer receives EOF. A source closed before
    any request never starts them.
    """

    def __init__(self, lexer: Lexer, diagnostics: DiagnosticBag, maxsize: int = 1):
        self._lexer = lexer
        self._diagnostics = diagnostics
        self._tokens: queue.Queue[Optional[Tok]] = queue.Queue(maxsize=max(1, maxsize))
        self._errors: queue.Queue[Optional[Diagnostic]] = queue.Queue()
        self._eof: Optional[Tok] = None
        self._failure: Optional[BaseException] = None

        lexer.on_error = self._errors.put

        self._forwarder = threading.Thread(target=self._forward, name="brisk-lexer-diagnostics", daemon=True)
        self._producer = threading.Thread(target=self._produce, name="brisk-lexer", daemon=True)
        self._started = False
        self._closed = False
        self._failed = False

    def _start(self) -> None:
        self._started = True
        self._forwarder.start()
        self._producer.start()

    def _produce(self) -> None:
        try:
            while True:
                tok = self._lexer.next_token()
                self._tokens.put(tok)
                if tok.type is TT.EOF:
                    return
        except BaseException as exc:
            self._failure = exc
            self._tokens.put(None)
        finally:
            self._errors.put(None)

    def _forward(self) -> None:
        while True:
            diag = self._errors.get()
            if diag is None:
                return
            self._diagnostics.add(diag)

    def _join(self) -> None:
        self._producer.join()
        self._forwarder.join()

    def next_token(self) -> Tok:
        if self._eof is not None:
            return self._eof
        if self._closed:
            raise RuntimeError("token source is closed")
        if not self._started:
            self._start()

        if self._failed:
            raise RuntimeError("lexer thread failed") from self._failure

        tok = self._tokens.get()
        if tok is None:
            self._failed = True
            self._join()
            raise RuntimeError("lexer thread failed") from self._failure

        if tok.type is TT.EOF:
            self._eof = tok
            self._join()
        return tok

    def close(self) -> None:
        """Drain the producer so neither thread outlives the parse."""
        if not self._started:
            self._closed = True
            return

        # A failed producer has already exited and been joined.
        while self._eof is None and not self._failed:
            self.next_token()

    @property
    def started(self) -> bool:
        return self._started

    @property
    def finished(self) -> bool:
        return not self._producer.is_alive() and not self._forwarder.is_alive()


def tokenize(source: str, filename: str = "<input>") -> List[Tok]:
    """Convenience function to tokenize source (EOF included)."""
    return list(Lexer(source, filename))
