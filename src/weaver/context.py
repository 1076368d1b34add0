# context.py
from __future__ import annotations

import itertools
import re
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from . import settings
from .model import Document, TextVariable


@dataclass
class MissingVariableError(Exception):
    """A variable is referenced by the runbook but has no value."""
    name: str

    def __str__(self) -> str:
        return f"Variable '{self.name}' has no default value and cannot be resolved"


class ScriptNames:
    """
    Unique file names for ephemeral shell scripts.

    The start time is taken once, when the generator is created, and combined
    with a counter that is only ever advanced under a lock, so two scripts
    never share a name within a process and two runs started at different
    milliseconds never collide on a shared directory.
    """

    def __init__(self, prefix: str | None = None, start_ms: int | None = None):
        self.prefix = prefix or settings.SCRIPT_PREFIX
        self.start_ms = start_ms if start_ms is not None else time.time_ns() // 1_000_000
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next_name(self) -> str:
        with self._lock:
            index = next(self._counter)
        return f"{self.prefix}-{self.start_ms}-{index}.sh"

    def next_path(self, directory: Path) -> Path:
        return directory / self.next_name()


# ${NAME} where NAME is a shell-style identifier
_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def resolve_variables(variables: Iterable[TextVariable]) -> Dict[str, str]:
    resolved: Dict[str, str] = {}
    for variable in variables:
        if variable.default is None:
            raise MissingVariableError(variable.name)
        resolved[variable.name] = variable.default
    return resolved


def substitute(text: str, values: Dict[str, str]) -> str:
    """
    Replace ${NAME} placeholders whose NAME is a known variable.

    Unknown names are left as written, so ordinary shell parameter
    expansion such as "${i}" reaches the shell untouched.
    """
    if not values:
        return text

    def replace(match: re.Match[str]) -> str:
        return values.get(match.group(1), match.group(0))

    return _PLACEHOLDER.sub(replace, text)


@dataclass
class Context:
    """Mutable state threaded through one document pass."""
    current_dir: Path
    variables: Dict[str, str] = field(default_factory=dict)
    scripts: ScriptNames = field(default_factory=ScriptNames)

    @classmethod
    def for_document(
        cls,
        document: Document,
        current_dir: Path | None = None,
        scripts: ScriptNames | None = None,
    ) -> Context:
        return cls(
            current_dir=Path(current_dir) if current_dir is not None else Path.cwd(),
            variables=resolve_variables(document.variables),
            scripts=scripts or ScriptNames(),
        )

    def substitute(self, text: str) -> str:
        return substitute(text, self.variables)

    def substitute_all(self, lines: Optional[Tuple[str, ...]]) -> Optional[Tuple[str, ...]]:
        if lines is None:
            return None
        return tuple(self.substitute(line) for line in lines)

    def resolve_dir(self, working_dir: str | None) -> Path:
        """Join `working_dir` onto the current dir; absolute paths win."""
        if working_dir is None:
            return self.current_dir
        return self.current_dir / working_dir
