from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from ..config import Verbosity
from ..loader import load_file
from ..runtime import Environment, make_global_env
from ..syntax import line_number
from ..types import StructuralError
from .check import Evaluate, check
from .extractor import extract
from .locator import find_next, next_line_start
from .session import Hooks, Summary, finish_session, record, start_session

log = logging.getLogger(__name__)

def run_tests(
    text: str,
    env: Environment,
    *,
    source_name: str = "<string>",
    level: Verbosity = Verbosity.INFO,
    hooks: Optional[Hooks] = None,
    evaluate: Optional[Evaluate] = None,
) -> Summary:
    """Run every embedded test in *text* against *env*, in document order."""
    state = start_session(source_name, level)
    pos = 0

    while True:
        location = find_next(text, pos)
        if location is None:
            break

        line = line_number(text, location)

        try:
            block = extract(text, location)
        except StructuralError as exc:
            log.debug("%s#%d: no test here (%s)", source_name, line, exc)
            pos = next_line_start(text, location)
            continue

        outcome = check(
            block.raw_input,
            block.raw_expected,
            env,
            location=location,
            line=line,
            evaluate=evaluate,
        )
        record(state, outcome, hooks)

        pos = max(block.end, next_line_start(text, location))

    summary = finish_session(state, hooks)
    log.info("%s: %d passed, %d failed", source_name, summary.pass_count, summary.fail_count)

    return summary

def test_file(
    path: Union[str, Path],
    env: Optional[Environment] = None,
    *,
    level: Verbosity = Verbosity.INFO,
    hooks: Optional[Hooks] = None,
    max_eval_depth: Optional[int] = None,
) -> Summary:
    """Load *path* into *env* (a fresh global environment by default), then run its tests."""
    if env is None:
        env = make_global_env(max_eval_depth)

    p = Path(path)
    text = load_file(p, env)

    return run_tests(text, env, source_name=p.name, level=level, hooks=hooks)

test_file.__test__ = False  # type: ignore[attr-defined]
