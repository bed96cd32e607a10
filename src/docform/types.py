from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple
from typing_extensions import TypeAlias

if TYPE_CHECKING:
    from .runtime import Environment

# ---------- Value Model ----------

class Symbol:
    """Interned Lisp symbol. Two symbols with the same name are the same object."""
    __slots__ = ("name",)

    _obarray: Dict[str, "Symbol"] = {}

    def __new__(cls, name: str) -> "Symbol":
        sym = cls._obarray.get(name)

        if sym is None:
            sym = super().__new__(cls)
            sym.name = name
            cls._obarray[name] = sym

        return sym

    @classmethod
    def uninterned(cls, name: str) -> "Symbol":
        sym = object.__new__(cls)
        sym.name = name
        return sym

    @property
    def is_keyword(self) -> bool:
        return self.name.startswith(":") and len(self.name) > 1

    def __repr__(self) -> str:
        return f"Symbol({self.name!r})"

intern = Symbol

NIL = Symbol("nil")
T = Symbol("t")

QUOTE = Symbol("quote")
FUNCTION = Symbol("function")
LAMBDA = Symbol("lambda")
BACKQUOTE = Symbol("`")
COMMA = Symbol(",")
COMMA_AT = Symbol(",@")

@dataclass(eq=False)
class Cons:
    car: Any
    cdr: Any

    def __repr__(self) -> str:
        from .printer import prin1
        return prin1(self)

@dataclass(frozen=True)
class ArgSpec:
    required: Tuple[Symbol, ...]
    optional: Tuple[Symbol, ...]
    rest: Optional[Symbol]

    @property
    def max_args(self) -> Optional[int]:
        if self.rest is not None:
            return None

        return len(self.required) + len(self.optional)

@dataclass(eq=False)
class Closure:
    arglist: Any          # the lambda list as read
    spec: ArgSpec
    body: Any             # Lisp list of body forms (docstring included)
    env: "Environment"    # defining environment
    name: Optional[Symbol] = None

@dataclass(eq=False)
class Macro:
    fn: Closure

BuiltinFn = Callable[["Environment", List[Any]], Any]

@dataclass(frozen=True, eq=False)
class Builtin:
    name: str
    fn: BuiltinFn
    min_args: int = 0
    max_args: Optional[int] = None  # None means &rest

LispValue: TypeAlias = Any

# ---------- List helpers ----------

def make_list(items: Iterable[Any], tail: Any = NIL) -> Any:
    result = tail

    for item in reversed(list(items)):
        result = Cons(item, result)

    return result

def iter_list(obj: Any) -> Iterator[Any]:
    """Iterate the elements of a proper list; signal on dotted or non-list input."""
    cur = obj

    while isinstance(cur, Cons):
        yield cur.car
        cur = cur.cdr

    if cur is not NIL:
        raise LispSignal(Symbol("wrong-type-argument"), make_list([Symbol("listp"), obj]))

def list_items(obj: Any) -> List[Any]:
    return list(iter_list(obj))

def is_list(obj: Any) -> bool:
    return obj is NIL or isinstance(obj, Cons)

def truthy(obj: Any) -> bool:
    return obj is not NIL

def lisp_bool(flag: bool) -> Any:
    return T if flag else NIL

# ---------- Exceptions ----------

class LispSignal(Exception):
    """A signalled Lisp condition: an error symbol plus a data list."""

    def __init__(self, symbol: Symbol, data: Any = NIL):
        self.symbol = symbol
        self.data = data
        super().__init__(symbol.name)

    @property
    def condition(self) -> Cons:
        return Cons(self.symbol, self.data)

    def __str__(self) -> str:
        from .printer import prin1
        return prin1(self.condition)

class ReadError(LispSignal):
    """Raised by the reader for `invalid-read-syntax` and `end-of-file`."""

class ThrowSignal(Exception):
    """Non-local exit for `throw`; only raised when a matching `catch` is active."""

    def __init__(self, tag: Any, value: Any):
        super().__init__("throw")
        self.tag = tag
        self.value = value

class DocformError(Exception):
    pass

class StructuralError(DocformError):
    """No valid input/output boundaries were found for a candidate test block."""

    def __init__(self, message: str, location: Optional[int] = None):
        super().__init__(message)
        self.location = location

class SourceSyntaxError(DocformError):
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.column = column

class LoadError(DocformError):
    def __init__(self, message: str, source_name: str = "<string>"):
        super().__init__(message)
        self.source_name = source_name
