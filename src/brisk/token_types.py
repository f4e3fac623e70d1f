"""
Token Types for the Brisk front-end

Shared between lexer, parser and REPL highlighting to avoid circular
dependencies. All tables here are read-only after import.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType
from typing import Mapping


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Special
    EOF = auto()
    BADTOKEN = auto()
    UNEXPECTED = auto()  # placeholder inserted by parser recovery

    # Literals
    IDENT = auto()
    NUMBER = auto()
    TRUE = auto()
    FALSE = auto()

    # Keywords
    IF = auto()
    ELSE = auto()
    INT = auto()
    BOOL = auto()

    # Punctuation
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    COLON = auto()

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    MOD = auto()
    LSHIFT = auto()  # <<
    RSHIFT = auto()  # >>

    # Bitwise / logical
    AMP = auto()  # &
    PIPE = auto()  # |
    CARET = auto()  # ^
    AND = auto()  # &&
    OR = auto()  # ||
    NOT = auto()  # !

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()

    # Assignment
    ASSIGN = auto()  # =
    DECLARE = auto()  # :=
    PLUSEQ = auto()
    MINUSEQ = auto()
    STAREQ = auto()
    SLASHEQ = auto()
    MODEQ = auto()


@dataclass(frozen=True)
class Location:
    """A point in the source. offset is 0-based, line and column are 1-based."""

    offset: int
    line: int
    column: int
    filename: str = "<input>"

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


@dataclass(frozen=True)
class TokenLocation:
    start: Location
    end: Location

    @classmethod
    def at(cls, loc: Location) -> TokenLocation:
        """Zero-width span, used for placeholders and EOF."""
        return cls(loc, loc)


@dataclass(frozen=True)
class Tok:
    """Token with position info"""

    type: TT
    value: str
    location: TokenLocation

    @property
    def line(self) -> int:
        return self.location.start.line

    @property
    def column(self) -> int:
        return self.location.start.column

    @property
    def offset(self) -> int:
        return self.location.start.offset

    def __repr__(self) -> str:
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"


KEYWORDS: Mapping[str, TT] = MappingProxyType({
    'true': TT.TRUE,
    'false': TT.FALSE,
    'if': TT.IF,
    'else': TT.ELSE,
    'int': TT.INT,
    'bool': TT.BOOL,
})

# Two-character operators, keyed by their first character. The lexer tries
# these before falling back to SINGLE_OPERATORS.
DOUBLE_OPERATORS: Mapping[str, Mapping[str, TT]] = MappingProxyType({
    '>': MappingProxyType({'=': TT.GTE, '>': TT.RSHIFT}),
    '<': MappingProxyType({'=': TT.LTE, '<': TT.LSHIFT}),
    ':': MappingProxyType({'=': TT.DECLARE}),
    '!': MappingProxyType({'=': TT.NEQ}),
    '&': MappingProxyType({'&': TT.AND}),
    '|': MappingProxyType({'|': TT.OR}),
    '=': MappingProxyType({'=': TT.EQ}),
    '+': MappingProxyType({'=': TT.PLUSEQ}),
    '-': MappingProxyType({'=': TT.MINUSEQ}),
    '*': MappingProxyType({'=': TT.STAREQ}),
    '/': MappingProxyType({'=': TT.SLASHEQ}),
    '%': MappingProxyType({'=': TT.MODEQ}),
})

SINGLE_OPERATORS: Mapping[str, TT] = MappingProxyType({
    '>': TT.GT,
    '<': TT.LT,
    ':': TT.COLON,
    '!': TT.NOT,
    '&': TT.AMP,
    '|': TT.PIPE,
    '^': TT.CARET,
    '=': TT.ASSIGN,
    '+': TT.PLUS,
    '-': TT.MINUS,
    '*': TT.STAR,
    '/': TT.SLASH,
    '%': TT.MOD,
})

OPERATOR_CHARS = frozenset(SINGLE_OPERATORS)

BINARY_PRECEDENCE: Mapping[TT, int] = MappingProxyType({
    TT.STAR: 5,
    TT.SLASH: 5,
    TT.MOD: 5,
    TT.LSHIFT: 5,
    TT.RSHIFT: 5,
    TT.PLUS: 4,
    TT.MINUS: 4,
    TT.GT: 3,
    TT.LT: 3,
    TT.GTE: 3,
    TT.LTE: 3,
    TT.NEQ: 3,
    TT.EQ: 3,
    TT.AND: 2,
    TT.AMP: 2,
    TT.OR: 1,
    TT.PIPE: 1,
    TT.CARET: 1,
})

UNARY_PRECEDENCE: Mapping[TT, int] = MappingProxyType({
    TT.PLUS: 6,
    TT.MINUS: 6,
    TT.NOT: 6,
})

ASSIGNMENT_OPS = frozenset({
    TT.ASSIGN,
    TT.PLUSEQ,
    TT.MINUSEQ,
    TT.STAREQ,
    TT.SLASHEQ,
    TT.MODEQ,
})

TYPE_KEYWORDS = frozenset({TT.INT, TT.BOOL})


def binary_precedence(kind: TT) -> int:
    return BINARY_PRECEDENCE.get(kind, 0)


def unary_precedence(kind: TT) -> int:
    return UNARY_PRECEDENCE.get(kind, 0)


def _operator_symbols() -> Mapping[TT, str]:
    symbols = {kind: ch for ch, kind in SINGLE_OPERATORS.items()}
    for first, seconds in DOUBLE_OPERATORS.items():
        for second, kind in seconds.items():
            symbols[kind] = first + second
    return MappingProxyType(symbols)


# Source spelling of every operator token, for messages.
OPERATOR_SYMBOLS: Mapping[TT, str] = _operator_symbols()


def operator_symbol(kind: TT) -> str:
    return OPERATOR_SYMBOLS.get(kind, kind.name)
