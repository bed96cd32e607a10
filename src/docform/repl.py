"""Interactive REPL for docform Lisp, powered by prompt_toolkit."""

from __future__ import annotations

import os
import re
import sys
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .config import DEBUG_PY_TRACE_ENV, Settings, Verbosity, debug_py_trace_enabled
from .doctest.engine import run_tests
from .evaluator import eval_toplevel
from .loader import load_file
from .printer import prin1
from .reader import is_complete, read_all
from .runner import render_text
from .runtime import Environment, make_global_env
from .types import NIL, DocformError, LispSignal

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/level": ("Show or set report verbosity", "[silent|info|verbose]"),
    "/load": ("Load a Lisp source file into the environment", "FILE"),
    "/py-traceback": ("Toggle Python traceback on errors", "[on|off]"),
    "/reset": ("Reset the REPL environment", ""),
    "/test": ("Load a file and run its embedded tests", "FILE"),
}

@dataclass
class ReplState:
    env: Environment
    level: Verbosity = Verbosity.INFO
    max_eval_depth: Optional[int] = None

    def reset(self) -> None:
        self.env = make_global_env(self.max_eval_depth)

class _SlashCompleter(Completer):
    """Autocomplete slash commands on the primary prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )

def _print_error(exc: BaseException) -> None:
    print(f"Error: {exc}", file=sys.stderr)

    if debug_py_trace_enabled() and exc.__traceback__ is not None:
        print("\nPython traceback:", file=sys.stderr)
        print("".join(traceback.format_tb(exc.__traceback__)), file=sys.stderr, end="")

def _set_py_traceback(arg: str) -> bool:
    if arg.lower() in ("on", "1", "true", "yes"):
        os.environ[DEBUG_PY_TRACE_ENV] = "1"
    elif arg.lower() in ("off", "0", "false", "no"):
        os.environ.pop(DEBUG_PY_TRACE_ENV, None)
    elif arg == "":
        # Toggle.
        if debug_py_trace_enabled():
            os.environ.pop(DEBUG_PY_TRACE_ENV, None)
        else:
            os.environ[DEBUG_PY_TRACE_ENV] = "1"
    else:
        return False

    return True

def _handle_slash(line: str, state: ReplState) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1].strip() if len(parts) > 1 else ""

    match cmd:
        case "/clear":
            clear()
        case "/py-traceback":
            if not _set_py_traceback(arg):
                print("Usage: /py-traceback [on|off]", file=sys.stderr)
                return True
            print(f"Python traceback: {'on' if debug_py_trace_enabled() else 'off'}")
        case "/reset":
            state.reset()
            print("Environment reset.")
        case "/level":
            if arg:
                try:
                    state.level = Verbosity.parse(arg)
                except ValueError as exc:
                    print(f"Error: {exc}", file=sys.stderr)
                    return True
            print(f"Verbosity: {state.level.value}")
        case "/load":
            if not arg:
                print("Usage: /load FILE", file=sys.stderr)
                return True
            try:
                load_file(arg, state.env)
            except DocformError as exc:
                _print_error(exc)
                return True
            print(f"Loaded {arg}")
        case "/test":
            if not arg:
                print("Usage: /test FILE", file=sys.stderr)
                return True
            _run_file_tests(arg, state)
        case _:
            print(f"Unknown command: {cmd}", file=sys.stderr)

    return True

def _run_file_tests(path: str, state: ReplState) -> None:
    p = Path(path)
    try:
        text = load_file(p, state.env)
    except DocformError as exc:
        _print_error(exc)
        return

    summary = run_tests(text, state.env, source_name=p.name, level=state.level)
    for line in render_text(summary, state.level):
        print(line)

def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)

def repl_eval(text: str, env: Environment) -> Tuple[Any, int]:
    """Evaluate every form in *text*; return the last value and the form count."""
    forms = read_all(text)
    result: Any = NIL

    for form in forms:
        result = eval_toplevel(form, env)

    return result, len(forms)

def repl() -> None:
    """Interactive read-eval-print loop with prompt_toolkit."""
    settings = Settings.from_env()
    state = ReplState(env=make_global_env(settings.max_eval_depth), level=settings.level,
                      max_eval_depth=settings.max_eval_depth)

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer
        text = buf.text

        # slash commands and balanced input submit; open forms keep reading
        if text.lstrip().startswith("/") or is_complete(text):
            buf.validate_and_handle()
            return

        buf.insert_text("\n  ")

    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print("docform repl: Ctrl-D to exit, / for commands")

    while True:
        try:
            text = session.prompt("ELISP> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        if _handle_slash(text, state):
            continue

        try:
            result, count = repl_eval(text, state.env)
        except LispSignal as exc:
            _print_error(exc)
            continue

        if count:
            print(prin1(result))

def main() -> None:
    repl()

if __name__ == "__main__":
    main()
