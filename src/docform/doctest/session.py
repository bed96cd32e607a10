from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from typing_extensions import Protocol

from ..config import Verbosity
from .model import TestOutcome

class OutcomeHook(Protocol):
    def __call__(self, record: Dict[str, Any]) -> None: ...

class FinishHook(Protocol):
    def __call__(self, state: "SessionState") -> None: ...

@dataclass
class Hooks:
    after_each: List[OutcomeHook] = field(default_factory=list)
    after_all: List[FinishHook] = field(default_factory=list)

@dataclass
class SessionState:
    source_name: str
    level: Verbosity = Verbosity.INFO
    pass_count: int = 0
    fail_count: int = 0
    first_failure: Optional[int] = None
    first_failure_line: Optional[int] = None
    report: List[str] = field(default_factory=list)
    outcomes: List[TestOutcome] = field(default_factory=list)

    @property
    def report_text(self) -> str:
        return "\n".join(self.report)

@dataclass(frozen=True)
class Summary:
    source_name: str
    pass_count: int
    fail_count: int
    report_text: str
    first_failure_location: Optional[int] = None
    first_failure_line: Optional[int] = None
    outcomes: Tuple[TestOutcome, ...] = ()

    @property
    def total(self) -> int:
        return self.pass_count + self.fail_count

    @property
    def ok(self) -> bool:
        return self.fail_count == 0

def start_session(source_name: str, level: Verbosity = Verbosity.INFO) -> SessionState:
    return SessionState(source_name=source_name, level=level)

def report_line(state: SessionState, outcome: TestOutcome) -> Optional[str]:
    prefix = f"{state.source_name}#{outcome.line}: {outcome.expression_text} => {outcome.expected_text}"

    if not outcome.passed:
        return f"{prefix} but got {outcome.actual_text}"

    if state.level is Verbosity.VERBOSE:
        return f"{prefix} passed"

    return None

def record(state: SessionState, outcome: TestOutcome, hooks: Optional[Hooks] = None) -> SessionState:
    """Fold one outcome into *state*, then notify the post-test hooks."""
    if outcome.passed:
        state.pass_count += 1
    else:
        state.fail_count += 1
        if state.first_failure is None:
            state.first_failure = outcome.location
            state.first_failure_line = outcome.line

    state.outcomes.append(outcome)

    line = report_line(state, outcome)
    if line is not None:
        state.report.append(line)

    if hooks is not None:
        rec = outcome.as_record()
        for hook in hooks.after_each:
            hook(rec)

    return state

def finish_session(state: SessionState, hooks: Optional[Hooks] = None) -> Summary:
    if hooks is not None:
        for hook in hooks.after_all:
            hook(state)

    return Summary(
        source_name=state.source_name,
        pass_count=state.pass_count,
        fail_count=state.fail_count,
        report_text=state.report_text,
        first_failure_location=state.first_failure,
        first_failure_line=state.first_failure_line,
        outcomes=tuple(state.outcomes),
    )
