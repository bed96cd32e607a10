from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict

class Status(enum.Enum):
    PASS = "pass"
    FAILURE = "failure"
    EVAL_ERROR = "eval-error"

@dataclass(frozen=True)
class TestBlock:
    """One input/expected pair cut out of a documentation string.

    ``location`` is the offset of the input-marker line and ``end`` the offset
    where scanning resumes. Both texts are already unescaped.
    """

    __test__ = False  # keep pytest from collecting this class

    location: int
    raw_input: str
    raw_expected: str
    end: int
    rule: str = ""

@dataclass(frozen=True)
class TestOutcome:
    __test__ = False

    expression_text: str
    expected_text: str
    actual_text: str
    status: Status
    location: int = 0
    line: int = 0

    @property
    def passed(self) -> bool:
        return self.status is Status.PASS

    def as_record(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "expected": self.expected_text,
            "actual": self.actual_text,
            "expression": self.expression_text,
            "line": self.line,
        }
