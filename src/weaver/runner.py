# runner.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import click

from .context import Context, ScriptNames
from .model import Breakpoint, Command, Document, Entry, Todo, entry_type
from .render import EntryFailure, render_entry, run_finally_commands
from .schema import parse_document
from .ui.console import get_console


# ----------------------------------------------------------------------
# Runbook loading (local file)
# ----------------------------------------------------------------------

def load_runbook(path: str | Path) -> Document:
    """
    Load a runbook from a JSON file.

    Raises:
        FileNotFoundError: the file does not exist
        RunbookParseError: the file is not a valid runbook
    """
    runbook_path = Path(path).expanduser().resolve()
    if not runbook_path.is_file():
        raise FileNotFoundError(f"Runbook file not found: {runbook_path}")

    return parse_document(runbook_path.read_text(encoding="utf-8"))


def create_context(document: Document, runbook_path: str | Path, scripts: ScriptNames | None = None) -> Context:
    """A context whose current dir is the directory holding the runbook."""
    return Context.for_document(
        document,
        current_dir=Path(runbook_path).expanduser().resolve().parent,
        scripts=scripts,
    )


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass
class BreakpointAborted(Exception):
    comment: Optional[str]

    def __str__(self) -> str:
        where = f" ({self.comment})" if self.comment else ""
        return f"Breakpoint{where}: no input available, stopping the run"


# ----------------------------------------------------------------------
# Document pass
# ----------------------------------------------------------------------

@dataclass
class RunResult:
    """Outcome of one document pass."""
    total: int
    fragments: List[str] = field(default_factory=list)
    processed: int = 0
    failure: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def markdown(self) -> str:
        return "\n".join(self.fragments)


def _read_stdin_line() -> str:
    return click.get_text_stream("stdin").readline()


def wait_at_breakpoint(entry: Breakpoint, read_line: Callable[[], str] = _read_stdin_line) -> None:
    """Block until the operator enters a line. End of input stops the run."""
    get_console().print_breakpoint(entry.comment)
    try:
        line = read_line()
    except OSError as e:
        raise BreakpointAborted(entry.comment) from e
    if not line:
        raise BreakpointAborted(entry.comment)


def run_document(
    document: Document,
    context: Context,
    *,
    wait_for_breakpoints: bool = True,
    read_line: Callable[[], str] = _read_stdin_line,
) -> RunResult:
    """
    Render the entries of `document` one at a time, in order.

    The pass stops at the first entry that fails; its fragment is kept so the
    document shows what went wrong. Finally commands of every processed
    command entry then run, last entry first.
    """
    console = get_console()
    result = RunResult(total=len(document))
    processed: List[Entry] = []

    try:
        for index, entry in enumerate(document.entries()):
            console.print_entry(index, entry_type(entry))
            processed.append(entry)
            result.processed = len(processed)

            if isinstance(entry, Breakpoint):
                if wait_for_breakpoints:
                    wait_at_breakpoint(entry, read_line)
                else:
                    console.print_breakpoint(entry.comment, wait=False)
                continue

            if isinstance(entry, Todo):
                console.print_todo(render_entry(entry, context))
                continue

            try:
                fragment = render_entry(entry, context)
            except EntryFailure as e:
                result.fragments.append(e.markdown)
                result.failure = e
                console.print_failure(
                    f"#{index + 1} {entry_type(entry)}",
                    e.markdown,
                    exit_code=e.exit_code,
                )
                break

            if fragment:
                result.fragments.append(fragment)
    except BreakpointAborted as e:
        result.failure = e
    finally:
        for entry in reversed(processed):
            if isinstance(entry, Command):
                run_finally_commands(entry, context)

    return result


def render_runbook(
    runbook: str | Path,
    output: str | Path | None = None,
    *,
    wait_for_breakpoints: bool = True,
) -> RunResult:
    """Load a runbook, run it and write the markdown (even a partial one) to `output`."""
    document = load_runbook(runbook)
    context = create_context(document, runbook)
    result = run_document(document, context, wait_for_breakpoints=wait_for_breakpoints)

    if output is not None:
        Path(output).write_text(result.markdown, encoding="utf-8")

    return result
