from __future__ import annotations

import sys
from collections import Counter
from pathlib import Path
from typing import List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from brisk.types import Scope, new_scope
from brisk.utils import DEBUG_PY_TRACE_ENV, THREADED_LEXER_ENV


@pytest.fixture(autouse=True)
def _clean_brisk_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Tests start with every BRISK_* toggle unset."""
    monkeypatch.delenv(DEBUG_PY_TRACE_ENV, raising=False)
    monkeypatch.delenv(THREADED_LEXER_ENV, raising=False)


@pytest.fixture
def scope() -> Scope:
    return new_scope()


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Parametrized tables share ids by hand; refuse to run if two collide."""
    del session, config

    counts = Counter(item.nodeid for item in items)
    clashes = sorted(nodeid for nodeid, n in counts.items() if n > 1)

    if clashes:
        listing = "\n".join(f"- {nodeid}" for nodeid in clashes)
        raise pytest.UsageError(f"duplicate test ids:\n{listing}")
