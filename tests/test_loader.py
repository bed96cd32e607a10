from __future__ import annotations

import logging

import pytest

from tests.support.harness import FIXTURES_DIR, Environment, LoadError, Symbol, printed
from docform.loader import load_file, load_source


def test_load_source_evaluates_in_order(env: Environment) -> None:
    values = load_source("(defvar x 1)\n(setq x (+ x 1))\n(* x 10)\n", env)

    assert values == [Symbol("x"), 2, 20]
    assert env.lookup(Symbol("x")) == 2


def test_load_source_defines_functions(env: Environment) -> None:
    load_source("(defun add2 (n) \"Add two.\" (+ n 2))", env)
    assert printed("(add2 40)", env) == "42"


def test_load_source_read_error(env: Environment) -> None:
    with pytest.raises(LoadError) as exc_info:
        load_source("(defun broken (", env, source_name="broken.el")

    assert exc_info.value.source_name == "broken.el"
    assert "read error" in str(exc_info.value)


def test_load_source_eval_error_names_condition(env: Environment) -> None:
    with pytest.raises(LoadError) as exc_info:
        load_source("(car 5)", env, source_name="bad.el")

    assert str(exc_info.value) == "bad.el: (wrong-type-argument listp 5)"


def test_forms_before_an_error_stay_loaded(env: Environment) -> None:
    with pytest.raises(LoadError):
        load_source("(defvar kept 7)\n(no-such-function)\n", env)

    assert env.lookup(Symbol("kept")) == 7


def test_load_source_logs_form_count(env: Environment, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="docform.loader"):
        load_source("(defvar a 1)\n(defvar b 2)\n", env, source_name="two.el")

    assert "Loaded 2 form(s) from two.el" in caplog.text


def test_load_file_returns_text(env: Environment) -> None:
    path = FIXTURES_DIR / "sample.el"
    text = load_file(path, env)

    assert text == path.read_text(encoding="utf-8")
    assert env.has_function(Symbol("sample-square"))


def test_load_file_missing(env: Environment, tmp_path) -> None:
    with pytest.raises(LoadError) as exc_info:
        load_file(tmp_path / "nope.el", env)

    assert "cannot read file" in str(exc_info.value)


def test_load_file_not_utf8(env: Environment, tmp_path) -> None:
    path = tmp_path / "bytes.el"
    path.write_bytes(b"\xff\xfe")

    with pytest.raises(LoadError) as exc_info:
        load_file(path, env)

    assert "not valid UTF-8" in str(exc_info.value)
