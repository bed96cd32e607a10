from __future__ import annotations

from typing import Any, Dict, List

import pytest

from tests.support.harness import (
    FIXTURES_DIR,
    Environment,
    Hooks,
    LoadError,
    Symbol,
    Verbosity,
    doc_source,
    run_doc_tests,
)
from docform.doctest.engine import run_tests, test_file
from docform.doctest.model import Status
from docform.types import Builtin

SAMPLE = FIXTURES_DIR / "sample.el"


def test_sample_fixture_passes() -> None:
    summary = test_file(SAMPLE)

    assert summary.source_name == "sample.el"
    assert (summary.pass_count, summary.fail_count) == (7, 0)
    assert summary.report_text == ""


def test_sample_fixture_lines_in_order() -> None:
    summary = test_file(SAMPLE)
    assert [o.line for o in summary.outcomes] == [5, 11, 17, 19, 23, 29, 36]


def test_sample_fixture_verbose_report() -> None:
    summary = test_file(SAMPLE, level=Verbosity.VERBOSE)
    lines = summary.report_text.splitlines()

    assert len(lines) == 7
    assert lines[0] == 'sample.el#5: (progn sample-greeting) => "Hello" passed'
    assert lines[-1] == "sample.el#36: (sample-describe '(1 2)) => \"(1 2)\" passed"


def test_single_failure_report() -> None:
    summary = run_doc_tests(doc_source(("(+ 1 1)", "3")))

    assert (summary.pass_count, summary.fail_count) == (0, 1)
    assert summary.report_text == "demo.el#3: (+ 1 1) => 3 but got 2"
    assert summary.first_failure_line == 3


def test_mixed_results_keep_document_order() -> None:
    source = doc_source(("(+ 1 1)", "2"), ("(* 2 3)", "7"), ("(foo)", "nil"))
    summary = run_doc_tests(source)

    assert [o.status for o in summary.outcomes] == [Status.PASS, Status.FAILURE, Status.EVAL_ERROR]
    assert summary.first_failure_line == 5
    assert summary.report_text.splitlines() == [
        "demo.el#5: (* 2 3) => 7 but got 6",
        "demo.el#7: (foo) => nil but got (void-function foo)",
    ]


def test_tests_share_one_environment() -> None:
    source = doc_source(("(setq demo-x 41)", "41"), ("(1+ demo-x)", "42"))
    assert run_doc_tests(source).pass_count == 2


def test_tests_see_loaded_definitions() -> None:
    source = doc_source(("(demo 2)", "4"), body="(* 2 n)").replace("(defun demo ()", "(defun demo (n)")
    assert run_doc_tests(source).pass_count == 1


def test_without_load_definitions_are_missing() -> None:
    source = doc_source(("(demo)", "nil"))
    summary = run_doc_tests(source, load=False)

    assert summary.outcomes[0].status is Status.EVAL_ERROR


def test_marker_text_outside_docstrings_is_ignored() -> None:
    source = """\
    ;; >> (+ 1 1)
    ;; => 3
    (defconst demo-note "Not documentation:
    >> (+ 1 1)
    => 3")
    """
    summary = run_doc_tests(source)

    assert summary.total == 0


def test_structural_skip_continues_scan() -> None:
    source = (
        '(defun a ()\n  "Doc.\n>> no-paren\n=> 1"\n  nil)\n'
        + doc_source(("(+ 2 2)", "4"), name="b")
    )
    summary = run_doc_tests(source)

    assert (summary.pass_count, summary.fail_count) == (1, 0)


def test_no_tests_is_empty_summary(env: Environment) -> None:
    summary = run_tests("(defun f () \"Plain doc.\" nil)\n", env)

    assert summary.total == 0
    assert summary.ok


def test_hooks_receive_records() -> None:
    records: List[Dict[str, Any]] = []
    finished: List[Any] = []
    hooks = Hooks(after_each=[records.append], after_all=[finished.append])

    run_doc_tests(doc_source(("(+ 1 1)", "2"), ("(+ 1 1)", "3")), hooks=hooks)

    assert [r["status"] for r in records] == ["pass", "failure"]
    assert [r["line"] for r in records] == [3, 5]
    assert len(finished) == 1


def test_custom_evaluate(env: Environment) -> None:
    text = doc_source(("(anything)", "42"))
    summary = run_tests(text, env, evaluate=lambda form, _env: 42)

    assert summary.pass_count == 1


def test_missing_file_is_load_error(tmp_path) -> None:
    with pytest.raises(LoadError):
        test_file(tmp_path / "missing.el")


def test_load_failure_is_load_error(tmp_path) -> None:
    path = tmp_path / "broken.el"
    path.write_text("(defun ok () 1)\n(undefined-function-call)\n", encoding="utf-8")

    with pytest.raises(LoadError):
        test_file(path)


def test_each_file_gets_fresh_environment(tmp_path) -> None:
    first = tmp_path / "first.el"
    first.write_text("(defvar leak-me 1)\n", encoding="utf-8")
    second = tmp_path / "second.el"
    second.write_text(
        doc_source(("(boundp 'leak-me)", "nil")),
        encoding="utf-8",
    )

    test_file(first)
    assert test_file(second).pass_count == 1


def test_counts_reset_between_runs(env: Environment) -> None:
    text = doc_source(("(+ 1 1)", "2"), ("(+ 1 1)", "3"))

    first = run_tests(text, env)
    second = run_tests(text, env)

    assert (first.pass_count, first.fail_count) == (1, 1)
    assert (second.pass_count, second.fail_count) == (1, 1)
    assert second.report_text == first.report_text


@pytest.mark.parametrize(
    "expr, condition",
    [
        pytest.param('(split-string \\"a,b\\" \\"[\\")', "invalid-regexp", id="split-string-regexp"),
        pytest.param('(string-trim \\"a\\" \\"[\\")', "invalid-regexp", id="string-trim-regexp"),
        pytest.param('(format \\"%c\\" -1)', "wrong-type-argument", id="format-bad-char"),
    ],
)
def test_builtin_errors_stay_inside_one_test(expr: str, condition: str) -> None:
    summary = run_doc_tests(doc_source((expr, "nil"), ("(+ 1 1)", "2")))

    assert summary.total == 2
    assert summary.outcomes[0].status is Status.EVAL_ERROR
    assert summary.outcomes[0].actual_text.startswith(f"({condition} ")
    assert summary.outcomes[1].passed


def test_python_error_in_builtin_becomes_lisp_error(env: Environment) -> None:
    def explode(_env: Environment, args: List[Any]) -> Any:
        raise ValueError("bad input")

    env.set_function(Symbol("explode"), Builtin(name="explode", fn=explode))
    summary = run_tests(doc_source(("(explode)", "nil"), ("(+ 1 1)", "2")), env)

    assert summary.total == 2
    assert summary.outcomes[0].actual_text == '(error "explode: bad input")'
    assert summary.outcomes[1].passed
