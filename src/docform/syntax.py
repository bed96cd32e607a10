"""Source structure for docform Lisp files.

Builds the documentation-string index used by the doc-test locator: which
character ranges of a source file are the documentation slot of a definition
form such as ``defun`` or ``defvar``. The index comes from a lark parse tree
of the whole file.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from lark import Lark, Token, Tree, UnexpectedInput

from .types import SourceSyntaxError

GRAMMAR_PATH = Path(__file__).resolve().parent / "grammar.lark"

# Definition head -> index of its documentation slot within the form.
DOC_SLOTS: Dict[str, int] = {
    "defun": 3,
    "defmacro": 3,
    "defsubst": 3,
    "cl-defun": 3,
    "cl-defmacro": 3,
    "defvar": 3,
    "defconst": 3,
    "defcustom": 3,
    "defface": 3,
    "defgroup": 3,
    "lambda": 2,
}

@dataclass(frozen=True)
class DocSpan:
    """Interior of one documentation string: ``start`` is the first character
    after the opening quote, ``end`` is the offset of the closing quote."""

    start: int
    end: int
    owner: str

    def contains(self, pos: int) -> bool:
        return self.start <= pos < self.end

def read_grammar() -> str:
    return GRAMMAR_PATH.read_text(encoding="utf-8")

@lru_cache(maxsize=1)
def make_parser() -> Lark:
    return Lark(read_grammar(), parser="lalr", lexer="basic", propagate_positions=True)

def parse_source(text: str) -> Tree:
    try:
        return make_parser().parse(text)
    except UnexpectedInput as exc:
        line = getattr(exc, "line", None)
        column = getattr(exc, "column", None)
        raise SourceSyntaxError(f"malformed source at line {line}, col {column}", line, column) from exc

def _data_children(node: Tree) -> List[Tree]:
    return [ch for ch in node.children if isinstance(ch, Tree) and ch.data != "dotted_tail"]

def _atom_token(node: Tree, kind: str) -> Optional[Token]:
    if node.data != "atom" or not node.children:
        return None

    tok = node.children[0]
    if isinstance(tok, Token) and tok.type == kind:
        return tok

    return None

@lru_cache(maxsize=32)
def doc_spans(text: str) -> Tuple[DocSpan, ...]:
    """Return every documentation-string span in *text*, ordered by position."""
    tree = parse_source(text)
    spans: List[DocSpan] = []

    for node in tree.iter_subtrees():
        if node.data != "form_list":
            continue

        items = _data_children(node)
        if not items:
            continue

        head = _atom_token(items[0], "SYMBOL")
        if head is None:
            continue

        slot = DOC_SLOTS.get(str(head))
        if slot is None or slot >= len(items):
            continue

        doc = _atom_token(items[slot], "STRING")
        if doc is None:
            continue

        spans.append(DocSpan(start=doc.start_pos + 1, end=doc.end_pos - 1, owner=str(head)))

    spans.sort(key=lambda span: span.start)

    return tuple(spans)

def enclosing_doc_span(text: str, pos: int) -> Optional[DocSpan]:
    """The documentation string containing offset *pos*, if any."""
    spans = doc_spans(text)
    starts = [span.start for span in spans]
    idx = bisect.bisect_right(starts, pos) - 1

    if idx < 0:
        return None

    span = spans[idx]
    return span if span.contains(pos) else None

def in_doc_string(text: str, pos: int) -> bool:
    return enclosing_doc_span(text, pos) is not None

def line_number(text: str, pos: int) -> int:
    return text.count("\n", 0, pos) + 1
