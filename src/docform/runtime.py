from __future__ import annotations

import importlib
import logging
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from .types import (
    LAMBDA,
    NIL,
    T,
    ArgSpec,
    Builtin,
    BuiltinFn,
    Closure,
    Cons,
    LispSignal,
    Macro,
    Symbol,
    iter_list,
    make_list,
)

log = logging.getLogger(__name__)

DEFAULT_MAX_EVAL_DEPTH = 1600

OPTIONAL = Symbol("&optional")
REST = Symbol("&rest")
ERROR = Symbol("error")

_STDLIB_INITIALIZED = False

# ---------- Builtin registry ----------

class Builtins:
    functions: Dict[str, Builtin] = {}

def register_builtin(name: str, min_args: int = 0, max_args: Optional[int] = None):
    def dec(fn: BuiltinFn):
        Builtins.functions[name] = Builtin(name=name, fn=fn, min_args=min_args, max_args=max_args)
        return fn

    return dec

def init_stdlib() -> None:
    """Load stdlib modules (idempotent) so register_builtin hooks run."""
    global _STDLIB_INITIALIZED

    if _STDLIB_INITIALIZED:
        return

    importlib.import_module("docform.stdlib")
    _STDLIB_INITIALIZED = True

# ---------- Conditions ----------

# condition -> (parent, message)
_CONDITIONS: Dict[Symbol, Tuple[Optional[Symbol], str]] = {
    ERROR: (None, "error"),
}

def define_condition(name: Symbol, message: str, parent: Symbol = ERROR) -> None:
    _CONDITIONS[name] = (parent, message)

for _name, _message in (
    ("quit", "Quit"),
    ("user-error", ""),
    ("args-out-of-range", "Args out of range"),
    ("arith-error", "Arithmetic error"),
    ("overflow-error", "Arithmetic overflow error"),
    ("void-function", "Symbol's function definition is void"),
    ("void-variable", "Symbol's value as variable is void"),
    ("wrong-type-argument", "Wrong type argument"),
    ("wrong-number-of-arguments", "Wrong number of arguments"),
    ("invalid-function", "Invalid function"),
    ("setting-constant", "Attempt to set a constant symbol"),
    ("no-catch", "No catch for tag"),
    ("invalid-read-syntax", "Invalid read syntax"),
    ("invalid-regexp", "Invalid regexp"),
    ("end-of-file", "End of file during parsing"),
    ("excessive-lisp-nesting", "Lisp nesting exceeds 'max-lisp-eval-depth'"),
):
    define_condition(Symbol(_name), _message)

def condition_chain(sym: Symbol) -> List[Symbol]:
    """The condition and all of its parents, most specific first."""
    chain: List[Symbol] = []
    cur: Optional[Symbol] = sym

    while cur is not None and cur not in chain:
        chain.append(cur)
        parent, _ = _CONDITIONS.get(cur, (ERROR, ""))
        cur = parent

    return chain

def condition_matches(signal_symbol: Symbol, handler: Any) -> bool:
    if handler is T:
        return True

    if isinstance(handler, Symbol):
        return handler in condition_chain(signal_symbol)

    return any(condition_matches(signal_symbol, h) for h in iter_list(handler))

def condition_message(sym: Symbol) -> str:
    _, message = _CONDITIONS.get(sym, (ERROR, "peculiar error"))
    return message

def signal(name: str, *data: Any) -> LispSignal:
    """Build a LispSignal for condition *name*; callers raise it."""
    return LispSignal(Symbol(name), make_list(data))

# ---------- Environments ----------

class Environment:
    """A lexical frame. The root frame holds global value cells and the function table."""

    def __init__(self, parent: Optional["Environment"] = None):
        self.parent = parent
        self.vars: Dict[Symbol, Any] = {}

        if parent is None:
            self.root: Environment = self
            self.functions: Dict[Symbol, Any] = {}
            self.specials: Set[Symbol] = set()
            self.catch_tags: List[Any] = []
            self.depth = 0
            self.max_depth = DEFAULT_MAX_EVAL_DEPTH

            for name, builtin in Builtins.functions.items():
                self.functions[Symbol(name)] = builtin
        else:
            self.root = parent.root

    def child(self) -> "Environment":
        return Environment(parent=self)

    def define(self, sym: Symbol, val: Any) -> None:
        self.vars[sym] = val

    def lookup(self, sym: Symbol) -> Any:
        env: Optional[Environment] = self

        while env is not None:
            if sym in env.vars:
                return env.vars[sym]
            env = env.parent

        raise signal("void-variable", sym)

    def is_bound(self, sym: Symbol) -> bool:
        env: Optional[Environment] = self

        while env is not None:
            if sym in env.vars:
                return True
            env = env.parent

        return False

    def set(self, sym: Symbol, val: Any) -> None:
        if sym is NIL or sym is T or sym.is_keyword:
            raise signal("setting-constant", sym)

        env: Optional[Environment] = self

        while env is not None:
            if sym in env.vars:
                env.vars[sym] = val
                return
            env = env.parent

        self.root.vars[sym] = val

    def get_function(self, sym: Symbol) -> Any:
        fn = self.root.functions.get(sym)
        if fn is None:
            raise signal("void-function", sym)

        return fn

    def set_function(self, sym: Symbol, fn: Any) -> None:
        self.root.functions[sym] = fn

    def has_function(self, sym: Symbol) -> bool:
        return sym in self.root.functions

def make_global_env(max_depth: Optional[int] = None) -> Environment:
    init_stdlib()
    env = Environment()

    if max_depth is not None:
        env.max_depth = max_depth

    log.debug("global environment ready: %d builtin function(s)", len(env.functions))

    return env

# ---------- Functions ----------

def parse_arglist(arglist: Any) -> ArgSpec:
    required: List[Symbol] = []
    optional: List[Symbol] = []
    rest: Optional[Symbol] = None
    mode = "required"

    for item in iter_list(arglist):
        if not isinstance(item, Symbol):
            raise signal("invalid-function", arglist)

        if item is OPTIONAL:
            mode = "optional"
            continue

        if item is REST:
            mode = "rest"
            continue

        match mode:
            case "required":
                required.append(item)
            case "optional":
                optional.append(item)
            case "rest":
                if rest is not None:
                    raise signal("invalid-function", arglist)
                rest = item

    return ArgSpec(required=tuple(required), optional=tuple(optional), rest=rest)

def make_closure(arglist: Any, body: Any, env: Environment, name: Optional[Symbol] = None) -> Closure:
    return Closure(arglist=arglist, spec=parse_arglist(arglist), body=body, env=env, name=name)

def _arity_error(fn: Any, count: int) -> LispSignal:
    label = fn
    if isinstance(fn, Closure) and fn.name is not None:
        label = fn.name
    elif isinstance(fn, Builtin):
        label = Symbol(fn.name)

    return signal("wrong-number-of-arguments", label, count)

def bind_arguments(fn: Closure, args: List[Any]) -> Environment:
    spec = fn.spec
    count = len(args)

    if count < len(spec.required):
        raise _arity_error(fn, count)

    if spec.max_args is not None and count > spec.max_args:
        raise _arity_error(fn, count)

    callee = Environment(parent=fn.env)
    rest_args = list(args)

    for name in spec.required:
        callee.define(name, rest_args.pop(0))

    for name in spec.optional:
        callee.define(name, rest_args.pop(0) if rest_args else NIL)

    if spec.rest is not None:
        callee.define(spec.rest, make_list(rest_args))

    return callee

def resolve_function(fn: Any, env: Environment) -> Any:
    """Turn a function designator (symbol, lambda list, function object) into a callable value."""
    seen = 0

    while isinstance(fn, Symbol) and fn is not NIL:
        fn = env.get_function(fn)
        seen += 1

        if seen > 100:
            raise signal("invalid-function", fn)

    if isinstance(fn, Cons) and fn.car is LAMBDA:
        rest = fn.cdr
        arglist = rest.car if isinstance(rest, Cons) else NIL
        body = rest.cdr if isinstance(rest, Cons) else NIL
        return make_closure(arglist, body, env.root)

    return fn

def call_function(fn: Any, args: List[Any], env: Environment) -> Any:
    target = resolve_function(fn, env)

    if isinstance(target, Builtin):
        count = len(args)
        if count < target.min_args or (target.max_args is not None and count > target.max_args):
            raise _arity_error(target, count)

        try:
            return target.fn(env, args)
        except ZeroDivisionError as exc:
            raise signal("arith-error") from exc
        except OverflowError as exc:
            raise signal("overflow-error") from exc
        except re.error as exc:
            raise signal("invalid-regexp", str(exc)) from exc
        except (ValueError, TypeError, IndexError, KeyError) as exc:
            raise signal("error", f"{target.name}: {exc}") from exc

    if isinstance(target, Closure):
        from .evaluator import eval_body  # local import to avoid cycle

        callee = bind_arguments(target, args)
        return eval_body(target.body, callee)

    raise signal("invalid-function", fn)

def expand_macro(macro: Macro, args: List[Any]) -> Any:
    from .evaluator import eval_body  # local import to avoid cycle

    callee = bind_arguments(macro.fn, args)
    return eval_body(macro.fn.body, callee)

def is_function(obj: Any, env: Environment) -> bool:
    if isinstance(obj, (Builtin, Closure)):
        return True

    if isinstance(obj, Cons):
        return obj.car is LAMBDA

    if isinstance(obj, Symbol) and obj is not NIL:
        fn = env.root.functions.get(obj)
        return fn is not None and not isinstance(fn, Macro)

    return False
