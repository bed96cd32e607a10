"""
Cut one test block out of a documentation string.

The input expression runs from the first ``(`` after the input marker up to
the newline before the output-marker line. Where the expected value ends is
decided by an ordered chain of boundary rules; the first rule that matches
wins. Every rule is bounded by the end of the enclosing documentation string.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, List, Optional, Tuple

from ..syntax import enclosing_doc_span
from ..types import StructuralError
from .locator import INPUT_LINE_RE, OUTPUT_LINE_RE, next_line_start
from .model import TestBlock
from .unescape import unescape

log = logging.getLogger(__name__)

# (text, value_start, bound) -> end offset of the expected value, or None
BoundaryRule = Callable[[str, int, int], Optional[int]]

_QUOTED_FORM_OPEN_RE = re.compile(r'\\?"\(')
_QUOTED_FORM_CLOSE_RE = re.compile(r'\)\\?"')
_QUOTE_NEWLINE_INDENT_RE = re.compile(r'(?<!\\)"\n ')
_UNESCAPED_QUOTE_RE = re.compile(r'(?<!\\)"')

# ---------- Boundary rules ----------

def quoted_form_end(text: str, start: int, bound: int) -> Optional[int]:
    """A quoted printed structure, ``"(...)"``: ends just past the first ``)"``."""
    if _QUOTED_FORM_OPEN_RE.match(text, start) is None:
        return None

    m = _QUOTED_FORM_CLOSE_RE.search(text, start)
    if m is None or m.end() > bound:
        return None

    return m.end()

def next_block_end(text: str, start: int, bound: int) -> Optional[int]:
    m = INPUT_LINE_RE.search(text, start, bound)
    return None if m is None else m.start()

def blank_line_end(text: str, start: int, bound: int) -> Optional[int]:
    idx = text.find("\n\n", start, bound)
    return None if idx < 0 else idx

def quote_newline_indent_end(text: str, start: int, bound: int) -> Optional[int]:
    """The documentation string closing, followed by indented code."""
    # the lookahead reaches past the string, so search unbounded and check the quote
    m = _QUOTE_NEWLINE_INDENT_RE.search(text, start)
    if m is None or m.start() >= bound:
        return None

    return m.start()

def closing_quote_end(text: str, start: int, bound: int) -> Optional[int]:
    m = _UNESCAPED_QUOTE_RE.search(text, start, bound)
    return None if m is None else m.start()

OUTPUT_RULES: List[Tuple[str, BoundaryRule]] = [
    ("quoted-form", quoted_form_end),
    ("next-block", next_block_end),
    ("blank-line", blank_line_end),
    ("quote-newline-indent", quote_newline_indent_end),
    ("closing-quote", closing_quote_end),
]

def find_output_end(text: str, start: int, bound: int) -> Tuple[str, int]:
    """Run the rule chain; return the winning rule's name and end offset."""
    for name, rule in OUTPUT_RULES:
        end = rule(text, start, bound)
        if end is not None:
            return name, end

    raise StructuralError("no boundary found for expected value", start)

# ---------------- Public API ----------------

def extract(text: str, position: int) -> TestBlock:
    """Delimit the block whose input-marker line starts at *position*.

    Raises StructuralError when the input or expected region cannot be found.
    """
    marker = INPUT_LINE_RE.match(text, position)
    if marker is None:
        raise StructuralError("no input marker here", position)

    span = enclosing_doc_span(text, marker.end() - 1)
    if span is None:
        raise StructuralError("input marker outside a documentation string", position)

    # include the closing quote so quote-based rules can see it
    bound = min(span.end + 1, len(text))

    output = OUTPUT_LINE_RE.search(text, next_line_start(text, marker.end()), span.end)
    if output is None:
        raise StructuralError("no output line follows the input", position)

    input_end = output.start() - 1
    paren = text.find("(", marker.end(), input_end)
    if paren < 0:
        raise StructuralError("input expression does not start with '('", position)

    raw_input = text[paren:input_end].strip()

    value_start = output.end()
    rule, value_end = find_output_end(text, value_start, bound)
    raw_expected = text[value_start:value_end].strip()

    if not raw_expected:
        raise StructuralError("empty expected value", position)

    log.debug("block at %d: expected value delimited by %s", position, rule)

    return TestBlock(
        location=position,
        raw_input=unescape(raw_input),
        raw_expected=unescape(raw_expected),
        end=value_end,
        rule=rule,
    )
