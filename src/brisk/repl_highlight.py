"""Colour REPL input with the Brisk lexer."""

from __future__ import annotations

from typing import Callable, List

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as BriskLexer
from .token_types import OPERATOR_SYMBOLS, TT

# prompt_toolkit style string per highlight group; unknown groups render plain.
STYLES = {
    "keyword": "bold ansicyan",
    "type": "bold ansiblue",
    "boolean": "ansicyan",
    "number": "ansimagenta",
    "error": "bold ansired",
}


def highlight_group(kind: TT) -> str:
    match kind:
        case TT.IF | TT.ELSE:
            return "keyword"
        case TT.INT | TT.BOOL:
            return "type"
        case TT.TRUE | TT.FALSE:
            return "boolean"
        case TT.NUMBER:
            return "number"
        case TT.BADTOKEN:
            return "error"
        case TT.IDENT:
            return "identifier"
        case TT.LPAREN | TT.RPAREN | TT.LBRACE | TT.RBRACE | TT.COLON:
            return "punctuation"

    return "operator" if kind in OPERATOR_SYMBOLS else "plain"


def token_style(kind: TT) -> str:
    return STYLES.get(highlight_group(kind), "")


def style_line(text: str) -> StyleAndTextTuples:
    """Split one line into (style, text) fragments that concatenate back to it."""
    fragments: StyleAndTextTuples = []
    cursor = 0

    # Bad characters come back as BADTOKEN, so this never raises.
    for tok in BriskLexer(text):
        if tok.type is TT.EOF:
            break

        start, end = tok.offset, tok.location.end.offset
        if start > cursor:
            fragments.append(("", text[cursor:start]))

        fragments.append((token_style(tok.type), text[start:end]))
        cursor = end

    if cursor < len(text) or not fragments:
        fragments.append(("", text[cursor:]))

    return fragments


class BriskHighlighter(Lexer):
    """prompt_toolkit lexer; Brisk tokens never span lines, so lines style independently."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        styled: List[StyleAndTextTuples] = [style_line(line) for line in document.lines]

        def get_line(lineno: int) -> StyleAndTextTuples:
            return styled[lineno] if 0 <= lineno < len(styled) else [("", "")]

        return get_line
