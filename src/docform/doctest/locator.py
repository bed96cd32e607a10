from __future__ import annotations

import re
from typing import Optional

from ..syntax import enclosing_doc_span

INPUT_MARKER = ">> "
OUTPUT_MARKER = "=> "

INPUT_LINE_RE = re.compile(r"^[ \t]*>> ", re.M)
OUTPUT_LINE_RE = re.compile(r"^[ \t]*=> ", re.M)

def next_line_start(text: str, pos: int) -> int:
    """Offset of the line after the one holding *pos* (``len(text)`` on the last line)."""
    idx = text.find("\n", pos)
    return len(text) if idx < 0 else idx + 1

def find_next(text: str, start: int) -> Optional[int]:
    """Offset of the next valid input-marker line at or after *start*, or None.

    A candidate is valid when its marker sits inside a documentation string,
    the following line starts inside that same string, and an output-marker
    line appears before the string closes.
    """
    pos = start

    while pos < len(text):
        m = INPUT_LINE_RE.search(text, pos)
        if m is None:
            return None

        marker = m.end() - len(INPUT_MARKER)
        following = next_line_start(text, m.end())
        span = enclosing_doc_span(text, marker)

        if (
            span is not None
            and span.contains(following)
            and OUTPUT_LINE_RE.search(text, following, span.end) is not None
        ):
            return m.start()

        pos = following

    return None
