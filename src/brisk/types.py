from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Tuple

from typing_extensions import TypeAlias, TypeGuard

from .diagnostics import DiagnosticBag

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

# ---------- Value Model ----------

@dataclass(frozen=True)
class BrInt:
    value: int

    def __repr__(self) -> str:
        return str(self.value)

@dataclass(frozen=True)
class BrBool:
    value: bool

    def __repr__(self) -> str:
        return "true" if self.value else "false"

BrValue: TypeAlias = BrInt | BrBool

_BR_VALUE_TYPES: Tuple[type, ...] = (BrInt, BrBool)

def is_br_value(value: object) -> TypeGuard[BrValue]:
    return isinstance(value, _BR_VALUE_TYPES)

def type_name(value: Optional[BrValue]) -> str:
    match value:
        case BrInt():
            return "int"
        case BrBool():
            return "bool"
        case None:
            return "nothing"
    raise TypeError(f"not a Brisk value: {value!r}")

# ---------- Scope ----------

class Scope:
    """One level of name bindings. Only ever looks upward, never at children."""

    def __init__(self, parent: Optional['Scope']=None):
        self.parent = parent
        self.vars: Dict[str, BrValue] = {}

    def define(self, name: str, val: BrValue) -> None:
        self.vars[name] = val

    def resolve_local(self, name: str) -> Optional[BrValue]:
        return self.vars.get(name)

    def resolve(self, name: str) -> Optional[BrValue]:
        scope: Optional[Scope] = self

        while scope is not None:
            if name in scope.vars:
                return scope.vars[name]
            scope = scope.parent

        return None

    def depth(self) -> int:
        n = 0
        scope = self.parent

        while scope is not None:
            n += 1
            scope = scope.parent

        return n

    def names(self) -> List[str]:
        return list(self.vars)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.resolve(name) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self.vars)

    def __repr__(self) -> str:
        return f"Scope(depth={self.depth()}, vars={self.vars!r})"

def new_scope(parent: Optional[Scope]=None) -> Scope:
    return Scope(parent)

# ---------- Exceptions ----------

class BriskRuntimeError(Exception):
    br_meta: Optional[object]

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        self.br_meta = None

    @property
    def line(self) -> Optional[int]:
        return getattr(self.br_meta, "line", None)

    @property
    def column(self) -> Optional[int]:
        return getattr(self.br_meta, "column", None)

    def __str__(self) -> str:
        msg = super().__str__()

        line = self.line
        col = self.column

        if line is None:
            return msg

        if col is None:
            return f"{msg} (line {line})"

        return f"{msg} (line {line}, col {col})"

class BriskTypeError(BriskRuntimeError):
    pass

class BriskNameError(BriskRuntimeError):
    def __init__(self, message: str, name: str):
        super().__init__(message)
        self.name = name

class BriskRedeclarationError(BriskRuntimeError):
    def __init__(self, name: str):
        super().__init__(f"variable {name} already defined")
        self.name = name

class BriskDivisionError(BriskRuntimeError):
    pass

class BriskSyntaxError(Exception):
    """Raised by the runner when parsing reported errors; carries the bag."""

    def __init__(self, diagnostics: DiagnosticBag):
        lines = diagnostics.format_all()
        super().__init__("\n".join(lines) if lines else "syntax error")
        self.diagnostics = diagnostics
