"""Compiler diagnostics collected while lexing and parsing.

The bag is the one container shared between the lexer (possibly running on
its own thread) and the parser, so every write goes through a single lock.
Readers are expected to look at it only after parsing has finished.
"""

from __future__ import annotations

import sys
import threading
from dataclasses import dataclass
from enum import Enum
from typing import IO, Iterator, List, Optional

from .token_types import TokenLocation


class DiagnosticKind(Enum):
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    location: TokenLocation
    message: str
    file: str

    @property
    def line(self) -> int:
        return self.location.start.line

    @property
    def column(self) -> int:
        return self.location.start.column

    def is_error(self) -> bool:
        return self.kind is DiagnosticKind.ERROR

    def format(self) -> str:
        return f"{self.file}:{self.line}:{self.column}: {self.kind}: {self.message}"

    def __str__(self) -> str:
        return self.format()


class DiagnosticBag:
    """Append-only, insertion-ordered diagnostic list."""

    def __init__(self) -> None:
        self._items: List[Diagnostic] = []
        self._lock = threading.Lock()

    def add(self, diagnostic: Diagnostic) -> None:
        with self._lock:
            self._items.append(diagnostic)

    def report(self, kind: DiagnosticKind, location: TokenLocation, message: str) -> Diagnostic:
        diag = Diagnostic(kind=kind, location=location, message=message, file=location.start.filename)
        self.add(diag)
        return diag

    def error(self, location: TokenLocation, message: str) -> Diagnostic:
        return self.report(DiagnosticKind.ERROR, location, message)

    def warning(self, location: TokenLocation, message: str) -> Diagnostic:
        return self.report(DiagnosticKind.WARNING, location, message)

    def note(self, location: TokenLocation, message: str) -> Diagnostic:
        return self.report(DiagnosticKind.NOTE, location, message)

    def _has(self, kind: DiagnosticKind) -> bool:
        return any(d.kind is kind for d in self._items)

    def has_errors(self) -> bool:
        return self._has(DiagnosticKind.ERROR)

    def has_warnings(self) -> bool:
        return self._has(DiagnosticKind.WARNING)

    def has_notes(self) -> bool:
        return self._has(DiagnosticKind.NOTE)

    def errors(self) -> List[Diagnostic]:
        return [d for d in self._items if d.is_error()]

    def format_all(self) -> List[str]:
        return [d.format() for d in self._items]

    def print(self, file: Optional[IO[str]] = None) -> None:
        out = file if file is not None else sys.stderr
        for line in self.format_all():
            print(line, file=out)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"DiagnosticBag({len(self._items)} items)"
