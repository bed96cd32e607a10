"""Built-in functions registered via docform.runtime.register_builtin."""

from __future__ import annotations

import math
import re
import sys
from functools import reduce
from typing import Any, Callable, List

from .evaluator import eval_form
from .printer import format_float, prin1, princ
from .runtime import (
    ERROR,
    Environment,
    call_function,
    condition_chain,
    condition_message,
    define_condition,
    is_function,
    register_builtin,
    signal,
)
from .types import (
    NIL,
    T,
    Cons,
    LispSignal,
    Symbol,
    ThrowSignal,
    is_list,
    iter_list,
    list_items,
    lisp_bool,
    make_list,
    truthy,
)

_FORMAT_RE = re.compile(r"%(-?)(\d*)(?:\.(\d+))?([sSdfcx%])")
_WHITESPACE_SEPARATORS = "[ \f\t\n\r\v]+"
_TRIM_DEFAULT = "[ \t\n\r]+"
_NUMBER_PREFIX_RE = re.compile(r"\s*([+-]?(?:\d+(?:\.\d*)?(?:e[+-]?\d+)?|\.\d+(?:e[+-]?\d+)?))", re.I)

# ---------- Type checks ----------

def _wrong_type(predicate: str, obj: Any) -> LispSignal:
    return signal("wrong-type-argument", Symbol(predicate), obj)

def _is_number(obj: Any) -> bool:
    return isinstance(obj, (int, float)) and not isinstance(obj, bool)

def _is_integer(obj: Any) -> bool:
    return isinstance(obj, int) and not isinstance(obj, bool)

def _num(obj: Any) -> Any:
    if not _is_number(obj):
        raise _wrong_type("numberp", obj)

    return obj

def _int(obj: Any) -> int:
    if not _is_integer(obj):
        raise _wrong_type("integerp", obj)

    return obj

def _char(obj: Any) -> str:
    if not _is_integer(obj) or not 0 <= obj <= sys.maxunicode:
        raise _wrong_type("characterp", obj)

    return chr(obj)

def _regexp(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise signal("invalid-regexp", str(exc)) from exc

def _str(obj: Any) -> str:
    if not isinstance(obj, str):
        raise _wrong_type("stringp", obj)

    return obj

def _sym(obj: Any) -> Symbol:
    if not isinstance(obj, Symbol):
        raise _wrong_type("symbolp", obj)

    return obj

def _string_designator(obj: Any) -> str:
    if isinstance(obj, Symbol):
        return obj.name

    return _str(obj)

def _sequence_items(obj: Any) -> List[Any]:
    """Elements of a list, vector or string (characters as integers)."""
    if isinstance(obj, str):
        return [ord(ch) for ch in obj]

    if isinstance(obj, list):
        return list(obj)

    if not is_list(obj):
        raise _wrong_type("sequencep", obj)

    return list_items(obj)

def _optional(args: List[Any], index: int, default: Any = NIL) -> Any:
    if index < len(args) and args[index] is not NIL:
        return args[index]

    return default

# ========================================================================
# Arithmetic
# ========================================================================

def _contagion(values: List[Any], result: Any) -> Any:
    if any(isinstance(v, float) for v in values):
        return float(result)

    return result

def _divide(a: Any, b: Any) -> Any:
    if isinstance(a, float) or isinstance(b, float):
        if b == 0:
            if a == 0 or math.isnan(a):
                return math.nan
            return math.copysign(math.inf, a) * math.copysign(1.0, b)
        return a / b

    if b == 0:
        raise signal("arith-error")

    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient

@register_builtin("+")
def std_add(_env: Environment, args: List[Any]) -> Any:
    return sum((_num(a) for a in args), 0)

@register_builtin("-")
def std_sub(_env: Environment, args: List[Any]) -> Any:
    nums = [_num(a) for a in args]
    if not nums:
        return 0

    if len(nums) == 1:
        return -nums[0]

    return reduce(lambda acc, n: acc - n, nums[1:], nums[0])

@register_builtin("*")
def std_mul(_env: Environment, args: List[Any]) -> Any:
    return reduce(lambda acc, n: acc * n, (_num(a) for a in args), 1)

@register_builtin("/", min_args=1)
def std_div(_env: Environment, args: List[Any]) -> Any:
    nums = [_num(a) for a in args]
    if len(nums) == 1:
        return _divide(1, nums[0])

    # float contagion applies to the whole call, not just the pair
    if any(isinstance(n, float) for n in nums):
        nums = [float(n) for n in nums]

    return reduce(_divide, nums[1:], nums[0])

@register_builtin("%", min_args=2, max_args=2)
def std_rem(_env: Environment, args: List[Any]) -> int:
    a, b = _int(args[0]), _int(args[1])
    if b == 0:
        raise signal("arith-error")

    r = abs(a) % abs(b)
    return -r if a < 0 else r

@register_builtin("mod", min_args=2, max_args=2)
def std_mod(_env: Environment, args: List[Any]) -> Any:
    a, b = _num(args[0]), _num(args[1])
    if b == 0 and not isinstance(a, float) and not isinstance(b, float):
        raise signal("arith-error")

    if b == 0:
        return math.nan

    return a % b

@register_builtin("1+", min_args=1, max_args=1)
def std_inc(_env: Environment, args: List[Any]) -> Any:
    return _num(args[0]) + 1

@register_builtin("1-", min_args=1, max_args=1)
def std_dec(_env: Environment, args: List[Any]) -> Any:
    return _num(args[0]) - 1

@register_builtin("abs", min_args=1, max_args=1)
def std_abs(_env: Environment, args: List[Any]) -> Any:
    return abs(_num(args[0]))

@register_builtin("max", min_args=1)
def std_max(_env: Environment, args: List[Any]) -> Any:
    nums = [_num(a) for a in args]
    return _contagion(nums, max(nums))

@register_builtin("min", min_args=1)
def std_min(_env: Environment, args: List[Any]) -> Any:
    nums = [_num(a) for a in args]
    return _contagion(nums, min(nums))

@register_builtin("float", min_args=1, max_args=1)
def std_float(_env: Environment, args: List[Any]) -> float:
    return float(_num(args[0]))

@register_builtin("truncate", min_args=1, max_args=2)
def std_truncate(_env: Environment, args: List[Any]) -> int:
    value = _num(args[0])
    if len(args) > 1 and args[1] is not NIL:
        value = _divide(value, _num(args[1]))

    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        raise signal("overflow-error", Symbol("truncate"), value)

    return int(value)

# ---------- Comparison ----------

def _chain(args: List[Any], op: Callable[[Any, Any], bool]) -> Any:
    nums = [_num(a) for a in args]
    return lisp_bool(all(op(a, b) for a, b in zip(nums, nums[1:])))

@register_builtin("=", min_args=1)
def std_num_eq(_env: Environment, args: List[Any]) -> Any:
    return _chain(args, lambda a, b: a == b)

@register_builtin("/=", min_args=2, max_args=2)
def std_num_ne(_env: Environment, args: List[Any]) -> Any:
    return lisp_bool(_num(args[0]) != _num(args[1]))

@register_builtin("<", min_args=1)
def std_lt(_env: Environment, args: List[Any]) -> Any:
    return _chain(args, lambda a, b: a < b)

@register_builtin(">", min_args=1)
def std_gt(_env: Environment, args: List[Any]) -> Any:
    return _chain(args, lambda a, b: a > b)

@register_builtin("<=", min_args=1)
def std_le(_env: Environment, args: List[Any]) -> Any:
    return _chain(args, lambda a, b: a <= b)

@register_builtin(">=", min_args=1)
def std_ge(_env: Environment, args: List[Any]) -> Any:
    return _chain(args, lambda a, b: a >= b)

# ========================================================================
# Predicates and equality
# ========================================================================

def _predicate(name: str, test: Callable[[Any], bool]) -> None:
    @register_builtin(name, min_args=1, max_args=1)
    def std_predicate(_env: Environment, args: List[Any]) -> Any:
        return lisp_bool(test(args[0]))

_predicate("null", lambda x: x is NIL)
_predicate("not", lambda x: x is NIL)
_predicate("consp", lambda x: isinstance(x, Cons))
_predicate("listp", is_list)
_predicate("atom", lambda x: not isinstance(x, Cons))
_predicate("symbolp", lambda x: isinstance(x, Symbol))
_predicate("keywordp", lambda x: isinstance(x, Symbol) and x.is_keyword)
_predicate("stringp", lambda x: isinstance(x, str))
_predicate("numberp", _is_number)
_predicate("integerp", _is_integer)
_predicate("floatp", lambda x: isinstance(x, float))
_predicate("vectorp", lambda x: isinstance(x, list))

@register_builtin("zerop", min_args=1, max_args=1)
def std_zerop(_env: Environment, args: List[Any]) -> Any:
    return lisp_bool(_num(args[0]) == 0)

@register_builtin("functionp", min_args=1, max_args=1)
def std_functionp(env: Environment, args: List[Any]) -> Any:
    return lisp_bool(is_function(args[0], env))

def lisp_eq(a: Any, b: Any) -> bool:
    if a is b:
        return True

    # fixnums are immediate values
    return _is_integer(a) and _is_integer(b) and a == b

def lisp_eql(a: Any, b: Any) -> bool:
    if lisp_eq(a, b):
        return True

    if isinstance(a, float) and isinstance(b, float):
        return format_float(a) == format_float(b)

    return False

def lisp_equal(a: Any, b: Any) -> bool:
    while isinstance(a, Cons) and isinstance(b, Cons):
        if not lisp_equal(a.car, b.car):
            return False
        a, b = a.cdr, b.cdr

    if isinstance(a, str) and isinstance(b, str):
        return a == b

    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(lisp_equal(x, y) for x, y in zip(a, b))

    return lisp_eql(a, b)

@register_builtin("eq", min_args=2, max_args=2)
def std_eq(_env: Environment, args: List[Any]) -> Any:
    return lisp_bool(lisp_eq(args[0], args[1]))

@register_builtin("eql", min_args=2, max_args=2)
def std_eql(_env: Environment, args: List[Any]) -> Any:
    return lisp_bool(lisp_eql(args[0], args[1]))

@register_builtin("equal", min_args=2, max_args=2)
def std_equal(_env: Environment, args: List[Any]) -> Any:
    return lisp_bool(lisp_equal(args[0], args[1]))

# ========================================================================
# Lists
# ========================================================================

def _car(obj: Any) -> Any:
    if obj is NIL:
        return NIL

    if not isinstance(obj, Cons):
        raise _wrong_type("listp", obj)

    return obj.car

def _cdr(obj: Any) -> Any:
    if obj is NIL:
        return NIL

    if not isinstance(obj, Cons):
        raise _wrong_type("listp", obj)

    return obj.cdr

def _nthcdr(n: int, lst: Any) -> Any:
    for _ in range(n):
        if lst is NIL:
            break
        lst = _cdr(lst)

    return lst

@register_builtin("cons", min_args=2, max_args=2)
def std_cons(_env: Environment, args: List[Any]) -> Cons:
    return Cons(args[0], args[1])

@register_builtin("car", min_args=1, max_args=1)
def std_car(_env: Environment, args: List[Any]) -> Any:
    return _car(args[0])

@register_builtin("cdr", min_args=1, max_args=1)
def std_cdr(_env: Environment, args: List[Any]) -> Any:
    return _cdr(args[0])

@register_builtin("car-safe", min_args=1, max_args=1)
def std_car_safe(_env: Environment, args: List[Any]) -> Any:
    return args[0].car if isinstance(args[0], Cons) else NIL

@register_builtin("cdr-safe", min_args=1, max_args=1)
def std_cdr_safe(_env: Environment, args: List[Any]) -> Any:
    return args[0].cdr if isinstance(args[0], Cons) else NIL

@register_builtin("setcar", min_args=2, max_args=2)
def std_setcar(_env: Environment, args: List[Any]) -> Any:
    cell, value = args
    if not isinstance(cell, Cons):
        raise _wrong_type("consp", cell)

    cell.car = value
    return value

@register_builtin("setcdr", min_args=2, max_args=2)
def std_setcdr(_env: Environment, args: List[Any]) -> Any:
    cell, value = args
    if not isinstance(cell, Cons):
        raise _wrong_type("consp", cell)

    cell.cdr = value
    return value

@register_builtin("list")
def std_list(_env: Environment, args: List[Any]) -> Any:
    return make_list(args)

@register_builtin("length", min_args=1, max_args=1)
def std_length(_env: Environment, args: List[Any]) -> int:
    seq = args[0]
    if isinstance(seq, (str, list)):
        return len(seq)

    if not is_list(seq):
        raise _wrong_type("sequencep", seq)

    return len(list_items(seq))

@register_builtin("nth", min_args=2, max_args=2)
def std_nth(_env: Environment, args: List[Any]) -> Any:
    return _car(_nthcdr(_int(args[0]), args[1]))

@register_builtin("nthcdr", min_args=2, max_args=2)
def std_nthcdr(_env: Environment, args: List[Any]) -> Any:
    return _nthcdr(_int(args[0]), args[1])

@register_builtin("append")
def std_append(_env: Environment, args: List[Any]) -> Any:
    if not args:
        return NIL

    items: List[Any] = []
    for seq in args[:-1]:
        items.extend(_sequence_items(seq))

    return make_list(items, args[-1])

@register_builtin("reverse", min_args=1, max_args=1)
def std_reverse(_env: Environment, args: List[Any]) -> Any:
    seq = args[0]
    if isinstance(seq, str):
        return seq[::-1]

    if isinstance(seq, list):
        return seq[::-1]

    return make_list(reversed(_sequence_items(seq)))

@register_builtin("last", min_args=1, max_args=1)
def std_last(_env: Environment, args: List[Any]) -> Any:
    cur = args[0]
    if cur is NIL:
        return NIL

    if not isinstance(cur, Cons):
        raise _wrong_type("listp", cur)

    while isinstance(cur.cdr, Cons):
        cur = cur.cdr

    return cur

def _member(elt: Any, lst: Any, test: Callable[[Any, Any], bool]) -> Any:
    cur = lst

    while isinstance(cur, Cons):
        if test(elt, cur.car):
            return cur
        cur = cur.cdr

    if cur is not NIL:
        raise _wrong_type("listp", lst)

    return NIL

def _assoc(key: Any, alist: Any, test: Callable[[Any, Any], bool]) -> Any:
    for entry in iter_list(alist):
        if isinstance(entry, Cons) and test(key, entry.car):
            return entry

    return NIL

@register_builtin("member", min_args=2, max_args=2)
def std_member(_env: Environment, args: List[Any]) -> Any:
    return _member(args[0], args[1], lisp_equal)

@register_builtin("memq", min_args=2, max_args=2)
def std_memq(_env: Environment, args: List[Any]) -> Any:
    return _member(args[0], args[1], lisp_eq)

@register_builtin("assoc", min_args=2, max_args=2)
def std_assoc(_env: Environment, args: List[Any]) -> Any:
    return _assoc(args[0], args[1], lisp_equal)

@register_builtin("assq", min_args=2, max_args=2)
def std_assq(_env: Environment, args: List[Any]) -> Any:
    return _assoc(args[0], args[1], lisp_eq)

@register_builtin("plist-get", min_args=2, max_args=2)
def std_plist_get(_env: Environment, args: List[Any]) -> Any:
    plist, prop = args
    cur = plist

    while isinstance(cur, Cons) and isinstance(cur.cdr, Cons):
        if lisp_eq(cur.car, prop):
            return cur.cdr.car
        cur = cur.cdr.cdr

    return NIL

@register_builtin("mapcar", min_args=2, max_args=2)
def std_mapcar(env: Environment, args: List[Any]) -> Any:
    fn, seq = args
    return make_list([call_function(fn, [item], env) for item in _sequence_items(seq)])

@register_builtin("mapc", min_args=2, max_args=2)
def std_mapc(env: Environment, args: List[Any]) -> Any:
    fn, seq = args
    for item in _sequence_items(seq):
        call_function(fn, [item], env)

    return seq

@register_builtin("number-sequence", min_args=1, max_args=3)
def std_number_sequence(_env: Environment, args: List[Any]) -> Any:
    start = _num(args[0])
    end = _optional(args, 1, None)
    if end is None:
        return make_list([start])

    end = _num(end)
    step = _num(_optional(args, 2, 1))
    if step == 0:
        raise signal("args-out-of-range", step)

    items: List[Any] = []
    n = start
    while (n <= end) if step > 0 else (n >= end):
        items.append(n)
        n += step

    return make_list(items)

# ---------- Higher order ----------

@register_builtin("funcall", min_args=1)
def std_funcall(env: Environment, args: List[Any]) -> Any:
    return call_function(args[0], args[1:], env)

@register_builtin("apply", min_args=1)
def std_apply(env: Environment, args: List[Any]) -> Any:
    fn, *rest = args
    if not rest:
        return call_function(fn, [], env)

    spread = list(rest[:-1]) + _sequence_items(rest[-1])
    return call_function(fn, spread, env)

@register_builtin("identity", min_args=1, max_args=1)
def std_identity(_env: Environment, args: List[Any]) -> Any:
    return args[0]

@register_builtin("ignore")
def std_ignore(_env: Environment, args: List[Any]) -> Any:
    return NIL

# ========================================================================
# Symbols and evaluation
# ========================================================================

@register_builtin("symbol-name", min_args=1, max_args=1)
def std_symbol_name(_env: Environment, args: List[Any]) -> str:
    return _sym(args[0]).name

@register_builtin("intern", min_args=1, max_args=1)
def std_intern(_env: Environment, args: List[Any]) -> Symbol:
    return Symbol(_str(args[0]))

@register_builtin("make-symbol", min_args=1, max_args=1)
def std_make_symbol(_env: Environment, args: List[Any]) -> Symbol:
    return Symbol.uninterned(_str(args[0]))

@register_builtin("boundp", min_args=1, max_args=1)
def std_boundp(env: Environment, args: List[Any]) -> Any:
    sym = _sym(args[0])
    return lisp_bool(sym is NIL or sym is T or sym.is_keyword or sym in env.root.vars)

@register_builtin("fboundp", min_args=1, max_args=1)
def std_fboundp(env: Environment, args: List[Any]) -> Any:
    return lisp_bool(env.has_function(_sym(args[0])))

@register_builtin("symbol-value", min_args=1, max_args=1)
def std_symbol_value(env: Environment, args: List[Any]) -> Any:
    sym = _sym(args[0])
    if sym is NIL or sym is T or sym.is_keyword:
        return sym

    return env.root.lookup(sym)

@register_builtin("symbol-function", min_args=1, max_args=1)
def std_symbol_function(env: Environment, args: List[Any]) -> Any:
    return env.root.functions.get(_sym(args[0]), NIL)

@register_builtin("set", min_args=2, max_args=2)
def std_set(env: Environment, args: List[Any]) -> Any:
    env.root.set(_sym(args[0]), args[1])
    return args[1]

@register_builtin("fset", min_args=2, max_args=2)
def std_fset(env: Environment, args: List[Any]) -> Any:
    env.set_function(_sym(args[0]), args[1])
    return args[1]

@register_builtin("eval", min_args=1, max_args=2)
def std_eval(env: Environment, args: List[Any]) -> Any:
    return eval_form(args[0], env.root)

# ========================================================================
# Strings
# ========================================================================

def _format_directive(flag: str, width: str, precision: str | None, kind: str, arg: Any) -> str:
    match kind:
        case "s":
            text = princ(arg)
        case "S":
            text = prin1(arg)
        case "d":
            text = str(int(_num(arg)))
        case "f":
            digits = 6 if precision is None else int(precision)
            text = f"{float(_num(arg)):.{digits}f}"
        case "c":
            text = _char(arg)
        case "x":
            text = format(int(_num(arg)), "x")
        case _:
            text = ""

    if precision is not None and kind in "sS":
        text = text[: int(precision)]

    if width:
        text = text.ljust(int(width)) if flag == "-" else text.rjust(int(width))

    return text

def format_string(fmt: str, args: List[Any]) -> str:
    pending = list(args)
    out: List[str] = []
    pos = 0

    for m in _FORMAT_RE.finditer(fmt):
        out.append(fmt[pos : m.start()])
        pos = m.end()
        flag, width, precision, kind = m.groups()

        if kind == "%":
            out.append("%")
            continue

        if not pending:
            raise signal("error", "Not enough arguments for format string")

        out.append(_format_directive(flag, width, precision, kind, pending.pop(0)))

    out.append(fmt[pos:])

    return "".join(out)

def _concat_part(obj: Any) -> str:
    if isinstance(obj, str):
        return obj

    return "".join(_char(c) for c in _sequence_items(obj))

@register_builtin("concat")
def std_concat(_env: Environment, args: List[Any]) -> str:
    return "".join(_concat_part(a) for a in args)

@register_builtin("substring", min_args=1, max_args=3)
def std_substring(_env: Environment, args: List[Any]) -> str:
    text = _str(args[0])
    size = len(text)
    start = _int(_optional(args, 1, 0))
    end = _int(_optional(args, 2, size))

    lo = start + size if start < 0 else start
    hi = end + size if end < 0 else end
    if not (0 <= lo <= hi <= size):
        raise signal("args-out-of-range", text, *args[1:])

    return text[lo:hi]

@register_builtin("upcase", min_args=1, max_args=1)
def std_upcase(_env: Environment, args: List[Any]) -> Any:
    obj = args[0]
    if _is_integer(obj):
        return ord(_char(obj).upper()[0])

    return _str(obj).upper()

@register_builtin("downcase", min_args=1, max_args=1)
def std_downcase(_env: Environment, args: List[Any]) -> Any:
    obj = args[0]
    if _is_integer(obj):
        return ord(_char(obj).lower()[0])

    return _str(obj).lower()

@register_builtin("string=", min_args=2, max_args=2)
def std_string_eq(_env: Environment, args: List[Any]) -> Any:
    return lisp_bool(_string_designator(args[0]) == _string_designator(args[1]))

@register_builtin("string<", min_args=2, max_args=2)
def std_string_lt(_env: Environment, args: List[Any]) -> Any:
    return lisp_bool(_string_designator(args[0]) < _string_designator(args[1]))

@register_builtin("string-to-number", min_args=1, max_args=2)
def std_string_to_number(_env: Environment, args: List[Any]) -> Any:
    text = _str(args[0])
    base = _int(_optional(args, 1, 10))

    if base != 10:
        m = re.match(r"\s*([+-]?[0-9a-zA-Z]+)", text)
        try:
            return int(m.group(1), base) if m else 0
        except ValueError:
            return 0

    m = _NUMBER_PREFIX_RE.match(text)
    if m is None:
        return 0

    raw = m.group(1)
    if re.fullmatch(r"[+-]?\d+\.?", raw):
        return int(raw.rstrip("."))

    return float(raw)

@register_builtin("number-to-string", min_args=1, max_args=1)
def std_number_to_string(_env: Environment, args: List[Any]) -> str:
    return prin1(_num(args[0]))

@register_builtin("format", min_args=1)
def std_format(_env: Environment, args: List[Any]) -> str:
    return format_string(_str(args[0]), args[1:])

@register_builtin("message", min_args=1)
def std_message(_env: Environment, args: List[Any]) -> Any:
    if args[0] is NIL:
        return NIL

    text = format_string(_str(args[0]), args[1:])
    print(text, file=sys.stderr)
    return text

@register_builtin("prin1-to-string", min_args=1, max_args=2)
def std_prin1_to_string(_env: Environment, args: List[Any]) -> str:
    if len(args) > 1 and truthy(args[1]):
        return princ(args[0])

    return prin1(args[0])

@register_builtin("split-string", min_args=1, max_args=3)
def std_split_string(_env: Environment, args: List[Any]) -> Any:
    text = _str(args[0])
    separators = _optional(args, 1, None)
    omit_nulls = truthy(_optional(args, 2)) if separators is not None else True
    pattern = _str(separators) if separators is not None else _WHITESPACE_SEPARATORS

    parts = _regexp(pattern).split(text)
    if omit_nulls:
        parts = [p for p in parts if p]

    return make_list(parts)

@register_builtin("string-join", min_args=1, max_args=2)
def std_string_join(_env: Environment, args: List[Any]) -> str:
    sep = _str(_optional(args, 1, ""))
    return sep.join(_str(s) for s in _sequence_items(args[0]))

@register_builtin("string-prefix-p", min_args=2, max_args=3)
def std_string_prefix_p(_env: Environment, args: List[Any]) -> Any:
    prefix = _string_designator(args[0])
    text = _string_designator(args[1])
    if truthy(_optional(args, 2)):
        prefix, text = prefix.lower(), text.lower()

    return lisp_bool(text.startswith(prefix))

@register_builtin("string-trim", min_args=1, max_args=3)
def std_string_trim(_env: Environment, args: List[Any]) -> str:
    text = _str(args[0])
    left = _str(_optional(args, 1, _TRIM_DEFAULT))
    right = _str(_optional(args, 2, _TRIM_DEFAULT))

    text = _regexp(f"\\A(?:{left})").sub("", text)
    return _regexp(f"(?:{right})\\Z").sub("", text)

# ---------- Vectors ----------

@register_builtin("vector")
def std_vector(_env: Environment, args: List[Any]) -> List[Any]:
    return list(args)

@register_builtin("aref", min_args=2, max_args=2)
def std_aref(_env: Environment, args: List[Any]) -> Any:
    seq, index = args
    if not isinstance(seq, (list, str)):
        raise _wrong_type("arrayp", seq)

    idx = _int(index)
    if not 0 <= idx < len(seq):
        raise signal("args-out-of-range", seq, index)

    item = seq[idx]
    return ord(item) if isinstance(seq, str) else item

# ========================================================================
# Errors and non-local exits
# ========================================================================

@register_builtin("error", min_args=1)
def std_error(_env: Environment, args: List[Any]) -> Any:
    raise signal("error", format_string(_str(args[0]), args[1:]))

@register_builtin("user-error", min_args=1)
def std_user_error(_env: Environment, args: List[Any]) -> Any:
    raise signal("user-error", format_string(_str(args[0]), args[1:]))

@register_builtin("signal", min_args=2, max_args=2)
def std_signal(_env: Environment, args: List[Any]) -> Any:
    raise LispSignal(_sym(args[0]), args[1])

@register_builtin("throw", min_args=2, max_args=2)
def std_throw(env: Environment, args: List[Any]) -> Any:
    tag, value = args
    if any(active is tag for active in env.root.catch_tags):
        raise ThrowSignal(tag, value)

    raise signal("no-catch", tag, value)

@register_builtin("define-error", min_args=2, max_args=3)
def std_define_error(_env: Environment, args: List[Any]) -> Any:
    name = _sym(args[0])
    parent = _optional(args, 2, ERROR)
    if isinstance(parent, Cons):
        parent = parent.car

    define_condition(name, _str(args[1]), _sym(parent))
    return NIL

def error_message_string(condition: Any) -> str:
    """Render a condition the way the top level reports it."""
    if not isinstance(condition, Cons) or not isinstance(condition.car, Symbol):
        return f"peculiar error: {prin1(condition)}"

    sym, data = condition.car, condition.cdr
    items = list_items(data) if is_list(data) else [data]
    chain = condition_chain(sym)

    if (sym is ERROR or Symbol("user-error") in chain) and items and isinstance(items[0], str):
        message, rest = items[0], items[1:]
    else:
        message, rest = condition_message(sym), items

    if not rest:
        return message

    return f"{message}: " + ", ".join(prin1(item) for item in rest)

@register_builtin("error-message-string", min_args=1, max_args=1)
def std_error_message_string(_env: Environment, args: List[Any]) -> str:
    return error_message_string(args[0])

# ---------- Output ----------

@register_builtin("print", min_args=1, max_args=2)
def std_print(_env: Environment, args: List[Any]) -> Any:
    print(f"\n{prin1(args[0])}")
    return args[0]

@register_builtin("prin1", min_args=1, max_args=2)
def std_prin1(_env: Environment, args: List[Any]) -> Any:
    print(prin1(args[0]), end="")
    return args[0]

@register_builtin("princ", min_args=1, max_args=2)
def std_princ(_env: Environment, args: List[Any]) -> Any:
    print(princ(args[0]), end="")
    return args[0]
