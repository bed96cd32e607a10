from __future__ import annotations

import math

import pytest

from tests.support.harness import NIL, T, Cons, Symbol, printed, read_from_string
from docform.printer import format_float, prin1, princ
from docform.types import make_list

VALUES = [
    pytest.param(42, "42", id="integer"),
    pytest.param(-3, "-3", id="negative"),
    pytest.param(1.0, "1.0", id="float-whole"),
    pytest.param(0.5, "0.5", id="float-fraction"),
    pytest.param(1e20, "1e+20", id="float-exponent"),
    pytest.param(math.inf, "1.0e+INF", id="inf"),
    pytest.param(-math.inf, "-1.0e+INF", id="negative-inf"),
    pytest.param(math.nan, "0.0e+NaN", id="nan"),
    pytest.param("plain", '"plain"', id="string"),
    pytest.param('say "hi"', '"say \\"hi\\""', id="string-quotes"),
    pytest.param("back\\slash", '"back\\\\slash"', id="string-backslash"),
    pytest.param(NIL, "nil", id="nil"),
    pytest.param(T, "t", id="t"),
    pytest.param(Symbol("a b"), "a\\ b", id="symbol-space"),
    pytest.param(Symbol("1"), "\\1", id="symbol-looks-numeric"),
    pytest.param(Symbol("?x"), "\\?x", id="symbol-question"),
    pytest.param(Symbol(":key"), ":key", id="keyword"),
    pytest.param([1, Symbol("a")], "[1 a]", id="vector"),
    pytest.param(Cons(1, 2), "(1 . 2)", id="dotted"),
    pytest.param(make_list([1, 2], 3), "(1 2 . 3)", id="dotted-longer"),
]


@pytest.mark.parametrize("value, text", VALUES)
def test_prin1(value: object, text: str) -> None:
    assert prin1(value) == text


def test_princ_prints_strings_raw() -> None:
    assert princ('say "hi"') == 'say "hi"'
    assert princ(make_list(["a", Symbol("b c")])) == "(a b c)"


@pytest.mark.parametrize(
    "source, text",
    [
        pytest.param("'(quote x)", "'x", id="quote-shorthand"),
        pytest.param("'(function car)", "#'car", id="function-shorthand"),
        pytest.param("'(quote x y)", "(quote x y)", id="long-quote-list"),
        pytest.param("(symbol-function 'car)", "#<subr car>", id="builtin"),
        pytest.param("(lambda (x) (* x x))", "(closure (t) (x) (* x x))", id="closure"),
        pytest.param(
            "(cons (list 6 'quoted :symbol 12345 \"A string\") (+ 0 8310247))",
            '((6 quoted :symbol 12345 "A string") . 8310247)',
            id="compound-round-trip",
        ),
    ],
)
def test_printed_values(source: str, text: str) -> None:
    assert printed(source) == text


@pytest.mark.parametrize(
    "text",
    [
        pytest.param("(a (b . c) [1 2.5] \"s\\\"q\")", id="nested"),
        pytest.param("(\\1 a\\ b :k ?x)", id="escaped-symbols"),
    ],
)
def test_prin1_reads_back(text: str) -> None:
    first = prin1(read_from_string(text))
    assert prin1(read_from_string(first)) == first


def test_format_float_keeps_negative_nan_sign() -> None:
    assert format_float(-math.nan) == "-0.0e+NaN"


@pytest.mark.parametrize(
    "source, text",
    [
        pytest.param("(let ((x (list 1 2))) (setcdr x x) x)", "(1 . #0)", id="cdr-to-head"),
        pytest.param("(let ((x (list 1 2))) (setcdr (cdr x) x) x)", "(1 2 . #0)", id="cdr-loop-two"),
        pytest.param("(let ((x (list 1 2 3))) (setcdr (nthcdr 2 x) (cdr x)) x)", "(1 2 3 . #1)", id="cdr-loop-middle"),
        pytest.param("(let ((x (list 1))) (setcar x x) x)", "(#0)", id="car-to-self"),
        pytest.param("(let ((x (list 1 2))) (list x x))", "((1 2) (1 2))", id="shared-not-circular"),
    ],
)
def test_circular_structures_print_back_references(source: str, text: str) -> None:
    assert printed(source) == text
