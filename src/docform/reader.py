"""
Reader for docform Lisp.

Tokens come from the lark lexer built from grammar.lark; datums are assembled
by a small recursive-descent reader so that reading can stop after the first
complete datum and report where it ended.
"""

from __future__ import annotations

import re
from typing import Any, Iterator, List, Optional, Tuple

from lark import Token, UnexpectedCharacters

from .syntax import make_parser
from .types import (
    BACKQUOTE,
    COMMA,
    COMMA_AT,
    FUNCTION,
    NIL,
    QUOTE,
    ReadError,
    Symbol,
    make_list,
)

INVALID_READ_SYNTAX = Symbol("invalid-read-syntax")
END_OF_FILE = Symbol("end-of-file")

QUOTE_PREFIXES = {
    "'": QUOTE,
    "#'": FUNCTION,
    "`": BACKQUOTE,
    ",": COMMA,
    ",@": COMMA_AT,
}

# Single-character escapes shared by strings and character literals.
ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "f": "\f",
    "e": "\x1b",
    "s": " ",
    "a": "\a",
    "b": "\b",
    "d": "\x7f",
}

_INTEGER_RE = re.compile(r"[+-]?\d+\.?")
_SYMBOL_ESCAPE_RE = re.compile(r"\\(.)", re.S)

def _read_error(message: str, pos: Optional[int] = None) -> ReadError:
    data = [message] if pos is None else [message, pos]
    return ReadError(INVALID_READ_SYNTAX, make_list(data))

def _eof_error() -> ReadError:
    return ReadError(END_OF_FILE, NIL)

def parse_string_literal(raw: str) -> str:
    """Decode the body of a string token (quotes included)."""
    body = raw[1:-1]
    out: List[str] = []
    i = 0

    while i < len(body):
        ch = body[i]
        if ch != "\\":
            out.append(ch)
            i += 1
            continue

        if i + 1 >= len(body):
            break

        nxt = body[i + 1]
        i += 2

        # backslash-newline and backslash-space are ignored
        if nxt in ("\n", " "):
            continue

        out.append(ESCAPES.get(nxt, nxt))

    return "".join(out)

def parse_char_literal(raw: str) -> int:
    body = raw[1:]

    if body.startswith("\\"):
        ch = body[1]
        return ord(ESCAPES.get(ch, ch))

    return ord(body)

def parse_number(raw: str) -> Any:
    if _INTEGER_RE.fullmatch(raw):
        return int(raw.rstrip("."))

    return float(raw)

def parse_symbol(raw: str) -> Symbol:
    name = _SYMBOL_ESCAPE_RE.sub(r"\1", raw)
    return Symbol(name)

class Reader:
    """Reads datums from a token stream, one at a time."""

    def __init__(self, text: str):
        self.text = text
        self._tokens = self._lex(text)
        self._peeked: Optional[Token] = None
        self.end = 0

    def _lex(self, text: str) -> Iterator[Token]:
        try:
            yield from make_parser().lex(text)
        except UnexpectedCharacters as exc:
            if text[exc.pos_in_stream] == '"':
                raise _eof_error() from exc
            raise _read_error(text[exc.pos_in_stream], exc.pos_in_stream) from exc

    def peek(self) -> Optional[Token]:
        if self._peeked is None:
            self._peeked = next(self._tokens, None)

        return self._peeked

    def advance(self) -> Token:
        tok = self.peek()
        if tok is None:
            raise _eof_error()

        self._peeked = None
        self.end = tok.end_pos
        return tok

    def at_end(self) -> bool:
        return self.peek() is None

    # ========================================================================
    # Datums
    # ========================================================================

    def read(self) -> Any:
        tok = self.advance()

        match tok.type:
            case "_LPAR":
                return self.read_list_tail()
            case "_LSQB":
                return self.read_vector_tail()
            case "QUOTE":
                return make_list([QUOTE_PREFIXES[tok.value], self.read()])
            case "STRING":
                return parse_string_literal(tok.value)
            case "CHAR":
                return parse_char_literal(tok.value)
            case "NUMBER":
                return parse_number(tok.value)
            case "SYMBOL":
                return parse_symbol(tok.value)
            case _:
                raise _read_error(tok.value, tok.start_pos)

    def read_list_tail(self) -> Any:
        items: List[Any] = []
        tail: Any = NIL

        while True:
            tok = self.peek()
            if tok is None:
                raise _eof_error()

            if tok.type == "_RPAR":
                self.advance()
                break

            if tok.type == "DOT":
                self.advance()
                if not items:
                    raise _read_error(".", tok.start_pos)

                tail = self.read()
                closing = self.advance()
                if closing.type != "_RPAR":
                    raise _read_error(closing.value, closing.start_pos)
                break

            items.append(self.read())

        return make_list(items, tail)

    def read_vector_tail(self) -> List[Any]:
        items: List[Any] = []

        while True:
            tok = self.peek()
            if tok is None:
                raise _eof_error()

            if tok.type == "_RSQB":
                self.advance()
                return items

            items.append(self.read())

# ---------------- Public API ----------------

def read_first(text: str) -> Tuple[Any, int]:
    """Read exactly one datum from *text*; return it with the offset where it ended.

    Anything after the datum is left unread, so trailing prose is harmless.
    """
    reader = Reader(text)
    datum = reader.read()

    return datum, reader.end

def read_all(text: str) -> List[Any]:
    reader = Reader(text)
    forms: List[Any] = []

    while not reader.at_end():
        forms.append(reader.read())

    return forms

def read_from_string(text: str) -> Any:
    datum, _ = read_first(text)
    return datum

def is_complete(text: str) -> bool:
    """True when *text* holds only complete datums (used for REPL continuation)."""
    try:
        read_all(text)
    except ReadError as exc:
        return exc.symbol is not END_OF_FILE

    return True

__all__ = ["Reader", "read_all", "read_first", "read_from_string", "is_complete"]
