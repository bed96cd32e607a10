from __future__ import annotations

import re

_ESCAPE_RE = re.compile(r"\\(.)", re.S)

def unescape(raw: str) -> str:
    r"""Replace each backslash and the character after it with that character.

    Context free: ``\\`` collapses to ``\`` and ``\"`` to ``"``, and a
    backslash before a newline leaves just the newline.
    """
    return _ESCAPE_RE.sub(r"\1", raw)
