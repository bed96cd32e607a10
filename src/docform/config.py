from __future__ import annotations

import enum
import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .runtime import DEFAULT_MAX_EVAL_DEPTH

LEVEL_ENV = "DOCFORM_LEVEL"
LOG_LEVEL_ENV = "DOCFORM_LOG_LEVEL"
DEBUG_PY_TRACE_ENV = "DOCFORM_DEBUG_PY_TRACE"
MAX_EVAL_DEPTH_ENV = "DOCFORM_MAX_EVAL_DEPTH"

_TRUTHY = {"1", "true", "yes", "on"}

class Verbosity(enum.Enum):
    SILENT = "silent"
    INFO = "info"
    VERBOSE = "verbose"

    @classmethod
    def parse(cls, raw: str) -> "Verbosity":
        try:
            return cls(raw.strip().lower())
        except ValueError:
            names = ", ".join(v.value for v in cls)
            raise ValueError(f"unknown verbosity {raw!r} (expected one of: {names})") from None

def debug_py_trace_enabled() -> bool:
    return os.environ.get(DEBUG_PY_TRACE_ENV, "").strip().lower() in _TRUTHY

@dataclass(frozen=True)
class Settings:
    level: Verbosity = Verbosity.INFO
    log_level: str = "WARNING"
    debug_py_trace: bool = False
    max_eval_depth: int = DEFAULT_MAX_EVAL_DEPTH

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        settings = cls()

        raw_level = env.get(LEVEL_ENV)
        if raw_level:
            settings = replace(settings, level=Verbosity.parse(raw_level))

        raw_log = env.get(LOG_LEVEL_ENV)
        if raw_log:
            settings = replace(settings, log_level=_check_log_level(raw_log))

        if env.get(DEBUG_PY_TRACE_ENV, "").strip().lower() in _TRUTHY:
            settings = replace(settings, debug_py_trace=True)

        raw_depth = env.get(MAX_EVAL_DEPTH_ENV)
        if raw_depth:
            settings = replace(settings, max_eval_depth=_check_depth(raw_depth))

        return settings

    def with_overrides(
        self,
        level: Optional[str] = None,
        log_level: Optional[str] = None,
        max_eval_depth: Optional[int] = None,
    ) -> "Settings":
        """Apply CLI flags on top of environment-derived settings."""
        settings = self

        if level is not None:
            settings = replace(settings, level=Verbosity.parse(level))
        if log_level is not None:
            settings = replace(settings, log_level=_check_log_level(log_level))
        if max_eval_depth is not None:
            settings = replace(settings, max_eval_depth=_check_depth(str(max_eval_depth)))

        return settings

def _check_log_level(raw: str) -> str:
    name = raw.strip().upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ValueError(f"unknown log level {raw!r}")

    return name

def _check_depth(raw: str) -> int:
    try:
        depth = int(raw)
    except ValueError:
        raise ValueError(f"max eval depth must be an integer, got {raw!r}") from None

    if depth < 1:
        raise ValueError(f"max eval depth must be positive, got {depth}")

    return depth
