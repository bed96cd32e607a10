"""Printed representations of Lisp values.

``prin1`` is the canonical machine-readable form: reading it back yields an
equivalent value for every readable type. ``princ`` is the human form used by
``message`` and ``format``'s ``%s``.
"""

from __future__ import annotations

import math
import re
from typing import Any, List, Optional, Set

from .types import (
    BACKQUOTE,
    COMMA,
    COMMA_AT,
    FUNCTION,
    NIL,
    QUOTE,
    Builtin,
    Closure,
    Cons,
    Macro,
    Symbol,
)

# Prefix shorthands printed for two-element lists headed by these symbols.
READER_SHORTHANDS = {
    QUOTE: "'",
    FUNCTION: "#'",
    BACKQUOTE: "`",
    COMMA: ",",
    COMMA_AT: ",@",
}

_SYMBOL_SPECIALS = set(" \t\n\f\r()[]\";'`,\\")
_NUMBER_LIKE_RE = re.compile(r"[+-]?(?:\d+\.?\d*(?:e[+-]?\d+)?|\.\d+(?:e[+-]?\d+)?)", re.I)

def format_float(value: float) -> str:
    if math.isnan(value):
        return "-0.0e+NaN" if math.copysign(1.0, value) < 0 else "0.0e+NaN"

    if math.isinf(value):
        return "1.0e+INF" if value > 0 else "-1.0e+INF"

    return repr(value)

def format_symbol(sym: Symbol) -> str:
    name = sym.name
    if not name:
        return "##"

    out: List[str] = []
    if _NUMBER_LIKE_RE.fullmatch(name) or name[0] in "?#" or name == ".":
        out.append("\\")

    for ch in name:
        if ch in _SYMBOL_SPECIALS:
            out.append("\\")
        out.append(ch)

    return "".join(out)

def format_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'

def _shorthand(obj: Cons) -> str | None:
    prefix = READER_SHORTHANDS.get(obj.car) if isinstance(obj.car, Symbol) else None
    if prefix is None:
        return None

    rest = obj.cdr
    if isinstance(rest, Cons) and rest.cdr is NIL:
        return prefix

    return None

def _render(obj: Any, escape: bool, stack: Optional[List[int]] = None) -> str:
    if obj is NIL:
        return "nil"

    if stack is None:
        stack = []

    if isinstance(obj, (Cons, list)) and id(obj) in stack:
        # object already being printed further up: print a back-reference
        return f"#{stack.index(id(obj))}"

    match obj:
        case bool():
            # Python booleans never belong in Lisp data; print them as Lisp would
            return "t" if obj else "nil"
        case int():
            return str(obj)
        case float():
            return format_float(obj)
        case str():
            return format_string(obj) if escape else obj
        case Symbol():
            return format_symbol(obj) if escape else obj.name
        case Cons():
            return _render_list(obj, escape, stack)
        case list():
            stack.append(id(obj))
            try:
                return "[" + " ".join(_render(item, escape, stack) for item in obj) + "]"
            finally:
                stack.pop()
        case Closure():
            args = _render(obj.arglist, escape, stack)
            body = _render_body(obj.body, escape, stack)
            return f"(closure (t) {args}{body})"
        case Macro():
            return f"(macro . {_render(obj.fn, escape, stack)})"
        case Builtin():
            return f"#<subr {obj.name}>"
        case _:
            return f"#<python {type(obj).__name__}>"

def _render_body(body: Any, escape: bool, stack: List[int]) -> str:
    parts: List[str] = []
    cur = body
    visited: Set[int] = set()

    while isinstance(cur, Cons) and id(cur) not in visited:
        visited.add(id(cur))
        parts.append(" " + _render(cur.car, escape, stack))
        cur = cur.cdr

    return "".join(parts)

def _render_list(obj: Cons, escape: bool, stack: List[int]) -> str:
    """Print a list; every cons of its spine counts as being printed, so a
    tail that loops back prints as ``. #N``."""
    base = len(stack)
    prefix = _shorthand(obj)

    try:
        if prefix is not None:
            stack.append(id(obj))
            return prefix + _render(obj.cdr.car, escape, stack)

        parts: List[str] = []
        cur: Any = obj

        while isinstance(cur, Cons) and id(cur) not in stack:
            stack.append(id(cur))
            parts.append(_render(cur.car, escape, stack))
            cur = cur.cdr

        if cur is not NIL:
            parts.append(".")
            parts.append(_render(cur, escape, stack))

        return "(" + " ".join(parts) + ")"
    finally:
        del stack[base:]

# ---------------- Public API ----------------

def prin1(obj: Any) -> str:
    return _render(obj, escape=True)

def princ(obj: Any) -> str:
    return _render(obj, escape=False)
