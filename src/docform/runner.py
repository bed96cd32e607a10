from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .config import Settings, Verbosity
from .doctest.engine import test_file
from .doctest.session import Summary
from .types import DocformError

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_LOAD_ERROR = 2

def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="docform",
        description="Run the tests embedded in documentation strings of Lisp source files.",
    )
    ap.add_argument("files", nargs="+", metavar="FILE", help="Lisp source file(s) to load and test")
    ap.add_argument("--level", choices=[v.value for v in Verbosity], help="Report verbosity (default: info)")
    ap.add_argument("--log-level", help="Logging level, e.g. DEBUG or INFO (default: WARNING)")
    ap.add_argument("--format", choices=["text", "json"], default="text", help="Output format")
    ap.add_argument("--max-eval-depth", type=int, help="Maximum Lisp evaluation depth")

    return ap

def render_text(summary: Summary, level: Verbosity) -> List[str]:
    lines: List[str] = []

    if summary.report_text:
        lines.append(summary.report_text)

    if level is not Verbosity.SILENT:
        lines.append(f"{summary.source_name}: {summary.pass_count} passed, {summary.fail_count} failed")

        if summary.first_failure_line is not None:
            lines.append(f"{summary.source_name}: first failure at line {summary.first_failure_line}")

    return lines

def summary_record(summary: Summary) -> Dict[str, Any]:
    return {
        "source": summary.source_name,
        "passed": summary.pass_count,
        "failed": summary.fail_count,
        "first_failure_line": summary.first_failure_line,
        "outcomes": [outcome.as_record() for outcome in summary.outcomes],
    }

def run_files(paths: Sequence[str], settings: Settings, output_format: str = "text") -> int:
    summaries: List[Summary] = []
    status = EXIT_OK

    for path in paths:
        try:
            # a fresh environment per file: nothing leaks between units
            summary = test_file(Path(path), level=settings.level, max_eval_depth=settings.max_eval_depth)
        except DocformError as exc:
            if settings.debug_py_trace:
                traceback.print_exc()
            print(f"error: {exc}", file=sys.stderr)
            status = EXIT_LOAD_ERROR
            continue

        summaries.append(summary)

        if not summary.ok and status == EXIT_OK:
            status = EXIT_FAILURES

        if output_format == "text":
            for line in render_text(summary, settings.level):
                print(line)

    if output_format == "json":
        print(json.dumps([summary_record(s) for s in summaries], indent=2))

    return status

def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    try:
        settings = Settings.from_env().with_overrides(
            level=args.level,
            log_level=args.log_level,
            max_eval_depth=args.max_eval_depth,
        )
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_LOAD_ERROR

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    log.debug("settings: %s", settings)

    return run_files(args.files, settings, args.format)

if __name__ == "__main__":
    sys.exit(main())
