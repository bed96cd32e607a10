from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))


@pytest.fixture
def env():
    """A fresh global environment per test; nothing leaks between tests."""
    from docform.runtime import make_global_env

    return make_global_env()


@pytest.fixture
def clean_docform_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove DOCFORM_* variables so settings resolve to their defaults."""
    for name in (
        "DOCFORM_LEVEL",
        "DOCFORM_LOG_LEVEL",
        "DOCFORM_DEBUG_PY_TRACE",
        "DOCFORM_MAX_EVAL_DEPTH",
    ):
        monkeypatch.delenv(name, raising=False)

    return monkeypatch


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Fail fast if pytest ever generates duplicate node IDs."""
    del session
    del config

    seen: Dict[str, int] = {}
    duplicates: List[str] = []
    for item in items:
        nodeid = item.nodeid
        if nodeid in seen:
            duplicates.append(nodeid)
            continue
        seen[nodeid] = 1

    if not duplicates:
        return

    lines = "\n".join(f"- {nodeid}" for nodeid in sorted(set(duplicates)))
    raise pytest.UsageError(
        "Duplicate pytest nodeids detected during collection:\n" f"{lines}"
    )
