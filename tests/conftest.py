from __future__ import annotations

from pathlib import Path

import pytest

from weaver.context import Context, ScriptNames
from weaver.ui.console import Console, set_console


@pytest.fixture(autouse=True)
def console():
    console = Console()
    set_console(console)
    return console


@pytest.fixture
def context(tmp_path: Path) -> Context:
    return Context(current_dir=tmp_path, scripts=ScriptNames())

