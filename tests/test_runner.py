from __future__ import annotations

import json
from pathlib import Path

import pytest

from tests.support.harness import FIXTURES_DIR, doc_source
from docform.runner import (
    EXIT_FAILURES,
    EXIT_LOAD_ERROR,
    EXIT_OK,
    build_arg_parser,
    main,
)

SAMPLE = str(FIXTURES_DIR / "sample.el")


def _write(tmp_path: Path, name: str, text: str) -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_passing_file_exits_ok(clean_docform_env, capsys: pytest.CaptureFixture[str]) -> None:
    assert main([SAMPLE]) == EXIT_OK

    out = capsys.readouterr().out
    assert out.splitlines() == ["sample.el: 7 passed, 0 failed"]


def test_failing_file_reports_and_exits_one(
    clean_docform_env, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = _write(tmp_path, "bad.el", doc_source(("(+ 1 1)", "2"), ("(+ 1 1)", "3")))

    assert main([path]) == EXIT_FAILURES

    assert capsys.readouterr().out.splitlines() == [
        "bad.el#5: (+ 1 1) => 3 but got 2",
        "bad.el: 1 passed, 1 failed",
        "bad.el: first failure at line 5",
    ]


def test_silent_level_prints_failures_only(
    clean_docform_env, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = _write(tmp_path, "bad.el", doc_source(("(+ 1 1)", "3")))

    assert main(["--level", "silent", SAMPLE, path]) == EXIT_FAILURES
    assert capsys.readouterr().out.splitlines() == ["bad.el#3: (+ 1 1) => 3 but got 2"]


def test_verbose_level_lists_passes(clean_docform_env, capsys: pytest.CaptureFixture[str]) -> None:
    main(["--level", "verbose", SAMPLE])

    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 8
    assert all(line.endswith(" passed") for line in lines[:7])


def test_level_from_environment(clean_docform_env, capsys: pytest.CaptureFixture[str]) -> None:
    clean_docform_env.setenv("DOCFORM_LEVEL", "silent")

    assert main([SAMPLE]) == EXIT_OK
    assert capsys.readouterr().out == ""


def test_load_error_exits_two_and_continues(
    clean_docform_env, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    broken = _write(tmp_path, "broken.el", "(defun broken (\n")

    assert main([broken, SAMPLE]) == EXIT_LOAD_ERROR

    captured = capsys.readouterr()
    assert captured.err.startswith("error: broken.el: read error")
    assert "sample.el: 7 passed, 0 failed" in captured.out


def test_missing_file_exits_two(clean_docform_env, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main([str(tmp_path / "absent.el")]) == EXIT_LOAD_ERROR
    assert "cannot read file" in capsys.readouterr().err


def test_undecodable_file_exits_two(
    clean_docform_env, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    path = tmp_path / "latin.el"
    path.write_bytes(b"(defvar x \"caf\xff\")\n")

    assert main([str(path), SAMPLE]) == EXIT_LOAD_ERROR

    captured = capsys.readouterr()
    assert "latin.el: not valid UTF-8 (byte 14)" in captured.err
    assert "sample.el: 7 passed, 0 failed" in captured.out


def test_json_output(clean_docform_env, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = _write(tmp_path, "bad.el", doc_source(("(+ 1 1)", "3")))

    assert main(["--format", "json", path]) == EXIT_FAILURES

    records = json.loads(capsys.readouterr().out)
    assert records == [
        {
            "source": "bad.el",
            "passed": 0,
            "failed": 1,
            "first_failure_line": 3,
            "outcomes": [
                {
                    "status": "failure",
                    "expected": "3",
                    "actual": "2",
                    "expression": "(+ 1 1)",
                    "line": 3,
                }
            ],
        }
    ]


def test_bad_environment_setting_exits_two(clean_docform_env, capsys: pytest.CaptureFixture[str]) -> None:
    clean_docform_env.setenv("DOCFORM_MAX_EVAL_DEPTH", "lots")

    assert main([SAMPLE]) == EXIT_LOAD_ERROR
    assert capsys.readouterr().err.startswith("error: max eval depth must be an integer")


def test_depth_limit_surfaces_as_eval_error(
    clean_docform_env, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    source = doc_source(("(demo-loop)", "nil"), name="demo-loop", body="(demo-loop)")
    path = _write(tmp_path, "deep.el", source)

    assert main(["--max-eval-depth", "100", path]) == EXIT_FAILURES
    assert "but got (excessive-lisp-nesting" in capsys.readouterr().out


def test_arg_parser_requires_files() -> None:
    with pytest.raises(SystemExit):
        build_arg_parser().parse_args([])


def test_arg_parser_rejects_unknown_level() -> None:
    with pytest.raises(SystemExit):
        build_arg_parser().parse_args(["--level", "loud", "x.el"])
