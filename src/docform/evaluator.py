from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from .runtime import (
    Environment,
    call_function,
    condition_matches,
    expand_macro,
    init_stdlib,
    make_closure,
    signal,
)
from .types import (
    BACKQUOTE,
    COMMA,
    COMMA_AT,
    FUNCTION,
    LAMBDA,
    NIL,
    QUOTE,
    T,
    Cons,
    LispSignal,
    Macro,
    Symbol,
    ThrowSignal,
    is_list,
    iter_list,
    list_items,
    make_list,
    truthy,
)

SpecialForm = Callable[[Any, Environment], Any]

# ---------------- Public API ----------------

def eval_toplevel(form: Any, env: Optional[Environment] = None) -> Any:
    """Evaluate one form; Python stack exhaustion surfaces as a Lisp condition."""
    init_stdlib()

    if env is None:
        env = Environment()

    try:
        return eval_form(form, env)
    except RecursionError as exc:
        raise signal("excessive-lisp-nesting", env.root.max_depth) from exc

# ---------------- Core evaluator ----------------

def eval_form(form: Any, env: Environment) -> Any:
    root = env.root
    root.depth += 1

    try:
        if root.depth > root.max_depth:
            raise signal("excessive-lisp-nesting", root.max_depth)

        return _eval_inner(form, env)
    finally:
        root.depth -= 1

def _eval_inner(form: Any, env: Environment) -> Any:
    if isinstance(form, Symbol):
        if form is NIL or form is T or form.is_keyword:
            return form

        return env.lookup(form)

    if not isinstance(form, Cons):
        # numbers, strings, vectors evaluate to themselves
        return form

    head = form.car

    if isinstance(head, Symbol):
        special = _SPECIAL_FORMS.get(head)
        if special is not None:
            return special(form.cdr, env)

        fn = env.get_function(head)

        if isinstance(fn, Macro):
            expansion = expand_macro(fn, list_items(form.cdr))
            return eval_form(expansion, env)

        args = [eval_form(arg, env) for arg in iter_list(form.cdr)]
        return call_function(fn, args, env)

    if isinstance(head, Cons) and head.car is LAMBDA:
        fn = _eval_lambda(head.cdr, env)
        args = [eval_form(arg, env) for arg in iter_list(form.cdr)]
        return call_function(fn, args, env)

    raise signal("invalid-function", head)

def eval_body(body: Any, env: Environment) -> Any:
    result: Any = NIL

    for form in iter_list(body):
        result = eval_form(form, env)

    return result

# ---------------- Helpers ----------------

def _nth(args: Any, index: int, default: Any = NIL) -> Any:
    cur = args

    for _ in range(index):
        if not isinstance(cur, Cons):
            return default
        cur = cur.cdr

    return cur.car if isinstance(cur, Cons) else default

def _nthcdr(args: Any, index: int) -> Any:
    cur = args

    for _ in range(index):
        if not isinstance(cur, Cons):
            return NIL
        cur = cur.cdr

    return cur

def _require_symbol(obj: Any) -> Symbol:
    if not isinstance(obj, Symbol):
        raise signal("wrong-type-argument", Symbol("symbolp"), obj)

    return obj

def _split_docstring(body: Any) -> Any:
    """Drop a leading docstring from a definition body when more forms follow."""
    if isinstance(body, Cons) and isinstance(body.car, str) and body.cdr is not NIL:
        return body.cdr

    return body

# ---------------- Special forms ----------------

def _eval_quote(args: Any, env: Environment) -> Any:
    return _nth(args, 0)

def _eval_function(args: Any, env: Environment) -> Any:
    arg = _nth(args, 0)

    if isinstance(arg, Cons) and arg.car is LAMBDA:
        return _eval_lambda(arg.cdr, env)

    return arg

def _eval_lambda(args: Any, env: Environment) -> Any:
    return make_closure(_nth(args, 0), _split_docstring(_nthcdr(args, 1)), env)

def _eval_if(args: Any, env: Environment) -> Any:
    if truthy(eval_form(_nth(args, 0), env)):
        return eval_form(_nth(args, 1), env)

    return eval_body(_nthcdr(args, 2), env)

def _eval_cond(args: Any, env: Environment) -> Any:
    for clause in iter_list(args):
        if not isinstance(clause, Cons):
            raise signal("wrong-type-argument", Symbol("listp"), clause)

        test = eval_form(clause.car, env)
        if truthy(test):
            if clause.cdr is NIL:
                return test
            return eval_body(clause.cdr, env)

    return NIL

def _eval_and(args: Any, env: Environment) -> Any:
    result: Any = T

    for form in iter_list(args):
        result = eval_form(form, env)
        if not truthy(result):
            return NIL

    return result

def _eval_or(args: Any, env: Environment) -> Any:
    for form in iter_list(args):
        result = eval_form(form, env)
        if truthy(result):
            return result

    return NIL

def _eval_when(args: Any, env: Environment) -> Any:
    if truthy(eval_form(_nth(args, 0), env)):
        return eval_body(_nthcdr(args, 1), env)

    return NIL

def _eval_unless(args: Any, env: Environment) -> Any:
    if truthy(eval_form(_nth(args, 0), env)):
        return NIL

    return eval_body(_nthcdr(args, 1), env)

def _eval_progn(args: Any, env: Environment) -> Any:
    return eval_body(args, env)

def _eval_prog1(args: Any, env: Environment) -> Any:
    first = eval_form(_nth(args, 0), env)
    eval_body(_nthcdr(args, 1), env)
    return first

def _binding_parts(binding: Any) -> tuple[Symbol, Any]:
    if isinstance(binding, Symbol):
        return binding, NIL

    if isinstance(binding, Cons):
        return _require_symbol(binding.car), _nth(binding, 1)

    raise signal("wrong-type-argument", Symbol("listp"), binding)

def _run_with_bindings(pairs: List[tuple[Symbol, Any]], body: Any, env: Environment, inner: Environment) -> Any:
    """Evaluate *body* in *inner*; bindings of special variables are made dynamically."""
    root = env.root
    saved: Dict[Symbol, Any] = {}
    unbound: List[Symbol] = []

    for name, value in pairs:
        if name in root.specials:
            if name in root.vars:
                saved.setdefault(name, root.vars[name])
            elif name not in unbound:
                unbound.append(name)
            root.vars[name] = value
        else:
            inner.define(name, value)

    try:
        return eval_body(body, inner)
    finally:
        for name, value in saved.items():
            root.vars[name] = value
        for name in unbound:
            root.vars.pop(name, None)

def _eval_let(args: Any, env: Environment) -> Any:
    pairs = []

    for binding in iter_list(_nth(args, 0)):
        name, init = _binding_parts(binding)
        pairs.append((name, eval_form(init, env)))

    return _run_with_bindings(pairs, _nthcdr(args, 1), env, env.child())

def _eval_let_star(args: Any, env: Environment) -> Any:
    inner = env.child()
    root = env.root
    saved: Dict[Symbol, Any] = {}
    unbound: List[Symbol] = []

    try:
        for binding in iter_list(_nth(args, 0)):
            name, init = _binding_parts(binding)
            value = eval_form(init, inner)

            if name in root.specials:
                if name in root.vars:
                    saved.setdefault(name, root.vars[name])
                elif name not in unbound:
                    unbound.append(name)
                root.vars[name] = value
            else:
                inner = inner.child()
                inner.define(name, value)

        return eval_body(_nthcdr(args, 1), inner)
    finally:
        for name, value in saved.items():
            root.vars[name] = value
        for name in unbound:
            root.vars.pop(name, None)

def _eval_setq(args: Any, env: Environment) -> Any:
    items = list_items(args)
    if len(items) % 2:
        raise signal("wrong-number-of-arguments", Symbol("setq"), len(items))

    result: Any = NIL
    for i in range(0, len(items), 2):
        name = _require_symbol(items[i])
        result = eval_form(items[i + 1], env)
        env.set(name, result)

    return result

def _eval_defun(args: Any, env: Environment) -> Any:
    name = _require_symbol(_nth(args, 0))
    fn = make_closure(_nth(args, 1), _split_docstring(_nthcdr(args, 2)), env, name=name)
    env.set_function(name, fn)
    return name

def _eval_defmacro(args: Any, env: Environment) -> Any:
    name = _require_symbol(_nth(args, 0))
    fn = make_closure(_nth(args, 1), _split_docstring(_nthcdr(args, 2)), env, name=name)
    env.set_function(name, Macro(fn))
    return name

def _eval_defvar(args: Any, env: Environment) -> Any:
    name = _require_symbol(_nth(args, 0))
    root = env.root

    if isinstance(_nthcdr(args, 1), Cons):
        root.specials.add(name)
        if name not in root.vars:
            root.vars[name] = eval_form(_nth(args, 1), env)

    return name

def _eval_defconst(args: Any, env: Environment) -> Any:
    name = _require_symbol(_nth(args, 0))
    root = env.root
    root.specials.add(name)
    root.vars[name] = eval_form(_nth(args, 1), env)
    return name

def _eval_while(args: Any, env: Environment) -> Any:
    test = _nth(args, 0)
    body = _nthcdr(args, 1)

    while truthy(eval_form(test, env)):
        eval_body(body, env)

    return NIL

def _eval_dolist(args: Any, env: Environment) -> Any:
    spec = _nth(args, 0)
    var = _require_symbol(_nth(spec, 0))
    seq = eval_form(_nth(spec, 1), env)
    inner = env.child()

    for item in iter_list(seq):
        inner.define(var, item)
        eval_body(_nthcdr(args, 1), inner)

    inner.define(var, NIL)
    return eval_form(_nth(spec, 2), inner)

def _eval_dotimes(args: Any, env: Environment) -> Any:
    spec = _nth(args, 0)
    var = _require_symbol(_nth(spec, 0))
    count = eval_form(_nth(spec, 1), env)

    if not isinstance(count, int) or isinstance(count, bool):
        raise signal("wrong-type-argument", Symbol("integerp"), count)

    inner = env.child()
    for i in range(count):
        inner.define(var, i)
        eval_body(_nthcdr(args, 1), inner)

    inner.define(var, count)
    return eval_form(_nth(spec, 2), inner)

def _eval_condition_case(args: Any, env: Environment) -> Any:
    var = _nth(args, 0)
    bodyform = _nth(args, 1)
    handlers = list_items(_nthcdr(args, 2))

    try:
        return eval_form(bodyform, env)
    except LispSignal as exc:
        for handler in handlers:
            if not isinstance(handler, Cons):
                continue

            if condition_matches(exc.symbol, handler.car):
                inner = env.child()
                if isinstance(var, Symbol) and var is not NIL:
                    inner.define(var, exc.condition)
                return eval_body(handler.cdr, inner)

        raise

def _eval_ignore_errors(args: Any, env: Environment) -> Any:
    try:
        return eval_body(args, env)
    except LispSignal as exc:
        if condition_matches(exc.symbol, Symbol("error")):
            return NIL
        raise

def _eval_unwind_protect(args: Any, env: Environment) -> Any:
    try:
        return eval_form(_nth(args, 0), env)
    finally:
        eval_body(_nthcdr(args, 1), env)

def _eval_catch(args: Any, env: Environment) -> Any:
    tag = eval_form(_nth(args, 0), env)
    tags = env.root.catch_tags
    tags.append(tag)

    try:
        return eval_body(_nthcdr(args, 1), env)
    except ThrowSignal as exc:
        if exc.tag is tag:
            return exc.value
        raise
    finally:
        tags.pop()

def _eval_push(args: Any, env: Environment) -> Any:
    value = eval_form(_nth(args, 0), env)
    place = _require_symbol(_nth(args, 1))
    result = Cons(value, env.lookup(place))
    env.set(place, result)
    return result

def _eval_pop(args: Any, env: Environment) -> Any:
    place = _require_symbol(_nth(args, 0))
    current = env.lookup(place)

    if current is NIL:
        return NIL

    if not isinstance(current, Cons):
        raise signal("wrong-type-argument", Symbol("listp"), current)

    env.set(place, current.cdr)
    return current.car

def _eval_backquote(args: Any, env: Environment) -> Any:
    return _quasi(_nth(args, 0), env)

def _quasi(form: Any, env: Environment) -> Any:
    if isinstance(form, list):
        return list_items(_quasi(make_list(form), env))

    if not isinstance(form, Cons):
        return form

    if form.car is COMMA:
        return eval_form(_nth(form, 1), env)

    if form.car is BACKQUOTE:
        return form

    items: List[Any] = []
    tail: Any = form

    while isinstance(tail, Cons):
        # `(a . ,b) reads as (a \, b)
        if tail.car is COMMA:
            return make_list(items, eval_form(_nth(tail, 1), env))

        elem = tail.car
        if isinstance(elem, Cons) and elem.car is COMMA_AT:
            spliced = eval_form(_nth(elem, 1), env)
            if not is_list(spliced):
                raise signal("wrong-type-argument", Symbol("listp"), spliced)
            items.extend(iter_list(spliced))
        else:
            items.append(_quasi(elem, env))

        tail = tail.cdr

    return make_list(items, tail)

_SPECIAL_FORMS: Dict[Symbol, SpecialForm] = {
    QUOTE: _eval_quote,
    FUNCTION: _eval_function,
    LAMBDA: _eval_lambda,
    BACKQUOTE: _eval_backquote,
    Symbol("if"): _eval_if,
    Symbol("cond"): _eval_cond,
    Symbol("and"): _eval_and,
    Symbol("or"): _eval_or,
    Symbol("when"): _eval_when,
    Symbol("unless"): _eval_unless,
    Symbol("progn"): _eval_progn,
    Symbol("prog1"): _eval_prog1,
    Symbol("let"): _eval_let,
    Symbol("let*"): _eval_let_star,
    Symbol("setq"): _eval_setq,
    Symbol("defun"): _eval_defun,
    Symbol("defsubst"): _eval_defun,
    Symbol("defmacro"): _eval_defmacro,
    Symbol("defvar"): _eval_defvar,
    Symbol("defcustom"): _eval_defvar,
    Symbol("defconst"): _eval_defconst,
    Symbol("while"): _eval_while,
    Symbol("dolist"): _eval_dolist,
    Symbol("dotimes"): _eval_dotimes,
    Symbol("condition-case"): _eval_condition_case,
    Symbol("ignore-errors"): _eval_ignore_errors,
    Symbol("unwind-protect"): _eval_unwind_protect,
    Symbol("catch"): _eval_catch,
    Symbol("push"): _eval_push,
    Symbol("pop"): _eval_pop,
}

def is_special_form(sym: Any) -> bool:
    return isinstance(sym, Symbol) and sym in _SPECIAL_FORMS
