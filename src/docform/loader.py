"""Load hook: evaluate every top-level form of a source unit before its tests run."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Union

from .evaluator import eval_toplevel
from .reader import read_all
from .runtime import Environment
from .types import LispSignal, LoadError

log = logging.getLogger(__name__)

def load_source(text: str, env: Environment, *, source_name: str = "<string>") -> List[Any]:
    """Evaluate each form of *text* in *env*, in order; return the values."""
    try:
        forms = read_all(text)
    except LispSignal as exc:
        raise LoadError(f"{source_name}: read error {exc}", source_name) from exc

    results: List[Any] = []
    for form in forms:
        try:
            results.append(eval_toplevel(form, env))
        except LispSignal as exc:
            raise LoadError(f"{source_name}: {exc}", source_name) from exc

    log.info("Loaded %d form(s) from %s", len(forms), source_name)

    return results

def load_file(path: Union[str, Path], env: Environment) -> str:
    """Read and load *path*; return its text for the doc-test scan."""
    p = Path(path)

    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise LoadError(f"{p}: cannot read file ({exc.strerror or exc})", str(p)) from exc
    except UnicodeDecodeError as exc:
        raise LoadError(f"{p}: not valid UTF-8 (byte {exc.start})", str(p)) from exc

    load_source(text, env, source_name=p.name)

    return text
