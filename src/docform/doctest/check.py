"""Evaluate one test expression and compare canonical printed forms."""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Tuple

from ..evaluator import eval_toplevel
from ..printer import prin1
from ..reader import read_first
from ..runtime import Environment
from ..types import LispSignal
from .model import Status, TestOutcome

log = logging.getLogger(__name__)

Evaluate = Callable[[Any, Environment], Any]

def canonical(value: Any) -> str:
    return prin1(value).strip()

def normalize_expected(expected_text: str) -> str:
    """Re-read and re-print the expected value; unreadable text is compared as written."""
    try:
        datum, _ = read_first(expected_text)
    except LispSignal:
        return expected_text.strip()

    return canonical(datum)

def _evaluate(input_text: str, env: Environment, evaluate: Evaluate) -> Tuple[str, str, Status]:
    try:
        form, _ = read_first(input_text)
    except LispSignal as exc:
        return input_text.strip(), canonical(exc.condition), Status.EVAL_ERROR

    expression = canonical(form)

    try:
        value = evaluate(form, env)
    except LispSignal as exc:
        return expression, canonical(exc.condition), Status.EVAL_ERROR

    return expression, canonical(value), Status.PASS

def check(
    input_text: str,
    expected_text: str,
    env: Environment,
    *,
    location: int = 0,
    line: int = 0,
    evaluate: Optional[Evaluate] = None,
) -> TestOutcome:
    expression, actual, status = _evaluate(input_text, env, evaluate or eval_toplevel)
    expected = normalize_expected(expected_text)

    if status is Status.PASS and actual != expected:
        status = Status.FAILURE

    log.debug("line %d: %s => %s (%s)", line, expression, actual, status.value)

    return TestOutcome(
        expression_text=expression,
        expected_text=expected,
        actual_text=actual,
        status=status,
        location=location,
        line=line,
    )
