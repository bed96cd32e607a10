from __future__ import annotations

from textwrap import dedent

import pytest

from docform.syntax import (
    DOC_SLOTS,
    doc_spans,
    enclosing_doc_span,
    in_doc_string,
    line_number,
)
from docform.types import SourceSyntaxError

SOURCE = dedent(
    '''\
    (defun f (x)
      "Doc for f."
      (message "not a doc %s" x))

    (defvar v 1 "Doc for v.")
    (defvar w "value only")

    (mapcar (lambda (y) "Doc for lambda." y) nil)
    '''
)


def _docs(text: str) -> list:
    return [text[span.start : span.end] for span in doc_spans(text)]


def test_doc_spans_cover_definition_docstrings() -> None:
    assert _docs(SOURCE) == ["Doc for f.", "Doc for v.", "Doc for lambda."]


def test_doc_span_owner_is_definition_head() -> None:
    assert [span.owner for span in doc_spans(SOURCE)] == ["defun", "defvar", "lambda"]


def test_doc_span_end_is_closing_quote() -> None:
    span = doc_spans(SOURCE)[0]
    assert SOURCE[span.start - 1] == '"'
    assert SOURCE[span.end] == '"'


@pytest.mark.parametrize(
    "head",
    [
        pytest.param("defmacro", id="defmacro"),
        pytest.param("defsubst", id="defsubst"),
        pytest.param("cl-defun", id="cl-defun"),
        pytest.param("defcustom", id="defcustom"),
        pytest.param("defface", id="defface"),
        pytest.param("defgroup", id="defgroup"),
        pytest.param("defconst", id="defconst"),
    ],
)
def test_doc_slot_heads(head: str) -> None:
    text = f'({head} name arg "The doc.")'
    assert DOC_SLOTS[head] == 3
    assert _docs(text) == ["The doc."]


def test_nested_definitions_are_found() -> None:
    text = '(progn (when t (defun inner () "Inner doc." 1)))'
    assert _docs(text) == ["Inner doc."]


def test_body_strings_are_not_docs() -> None:
    text = '(defun g () (concat "a" "b"))'
    assert doc_spans(text) == ()


def test_enclosing_doc_span() -> None:
    pos = SOURCE.index("Doc for v")
    span = enclosing_doc_span(SOURCE, pos + 3)
    assert span is not None
    assert SOURCE[span.start : span.end] == "Doc for v."

    assert enclosing_doc_span(SOURCE, SOURCE.index("not a doc")) is None
    assert not in_doc_string(SOURCE, 0)
    assert in_doc_string(SOURCE, SOURCE.index("Doc for f"))


def test_line_number() -> None:
    assert line_number(SOURCE, 0) == 1
    assert line_number(SOURCE, SOURCE.index("(defvar v")) == 5


@pytest.mark.parametrize(
    "text",
    [
        pytest.param("(defun f ()", id="unclosed"),
        pytest.param("(defun f ()))", id="extra-close"),
        pytest.param('(defun f () "open', id="unterminated-string"),
    ],
)
def test_malformed_source_raises(text: str) -> None:
    with pytest.raises(SourceSyntaxError):
        doc_spans(text)
