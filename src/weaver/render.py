# render.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import List, Optional, Sequence

from .context import Context
from .model import (
    Breakpoint,
    Command,
    DisplayFile,
    Entry,
    Heading,
    Markdown,
    Todo,
    entry_type,
)
from .shell import ScriptSpawnError, run_cleanup_commands, run_commands
from .text import indent_by
from .ui.console import get_console


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------

@dataclass
class EntryFailure(Exception):
    """
    An entry could not be rendered.

    `markdown` is what the entry still contributes to the document (the
    command block with its error output, or a plain message for files).
    """
    entry: str
    markdown: str
    exit_code: Optional[int] = None

    def __str__(self) -> str:
        return self.markdown


# ----------------------------------------------------------------------
# Plain entries
# ----------------------------------------------------------------------

def render_heading(entry: Heading) -> str:
    return "#" * entry.level.depth + " " + entry.title + "\n"


def render_markdown(entry: Markdown) -> str:
    return "\n".join(entry.contents) + "\n"


def render_todo(entry: Todo) -> str:
    lines = ["TODO\n"]
    for comment in entry.comments or ():
        lines.append(f" {comment}\n")
    return "".join(lines)


# ----------------------------------------------------------------------
# DisplayFile
# ----------------------------------------------------------------------

def expand_home(path: str) -> Path:
    """Expand a leading '~' alias to the user's home directory."""
    if path == "~":
        return Path.home()
    if path.startswith("~/"):
        return Path.home() / path[2:]
    return Path(path)


def file_content_type(entry: DisplayFile) -> str:
    if entry.content_type is not None:
        return entry.content_type
    _, dot, extension = PurePath(entry.path).name.rpartition(".")
    return extension if dot else ""


def _split_lines(content: str) -> List[str]:
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def excerpt(content: str, from_line: Optional[int], number_of_lines: Optional[int]) -> str:
    """Slice `content` to a 1-based line range, terminating every kept line."""
    if from_line is None and number_of_lines is None:
        return content

    lines = _split_lines(content)
    if from_line is not None:
        lines = lines[max(from_line - 1, 0):]
    if number_of_lines is not None:
        lines = lines[:number_of_lines]
    return "".join(f"{line}\n" for line in lines)


def render_display_file(entry: DisplayFile, context: Context) -> str:
    path = expand_home(entry.path)
    if not path.is_absolute():
        path = context.current_dir / path

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        get_console().print_debug(f"reading {path} failed: {e}")
        raise EntryFailure(entry=entry_type(entry), markdown=f"Failed to read the file {entry.path}") from e

    content = excerpt(content, entry.from_line, entry.number_of_lines)

    # the closing fence must land on its own line
    if not content.endswith("\n"):
        content += "\n"

    return indent_by(f"```{file_content_type(entry)}\n{content}```\n", entry.indent)


# ----------------------------------------------------------------------
# Command
# ----------------------------------------------------------------------

def format_commands(commands: Sequence[str], working_dir: Optional[str]) -> str:
    lines = ["```shell"]
    if working_dir is not None:
        lines.append(f"# Running command from within the {working_dir} directory")
        lines.append(f"(cd '{working_dir}'")
    lines.extend(commands)
    if working_dir is not None:
        lines.append(")")
    lines.append("```")
    return "\n".join(lines) + "\n"


def _fenced(caption: str, content_type: str, text: str) -> str:
    if not text.endswith("\n"):
        text += "\n"
    return f"\n{caption}\n\n```{content_type}\n{text}```\n"


def format_output(caption: str, content_type: str, stdout: str, stderr: str) -> str:
    markdown = ""
    if stdout:
        markdown += _fenced(caption, content_type, stdout)
    if stderr:
        markdown += _fenced("_stderr_", "", stderr)
    return markdown


def format_error(stdout: str, stderr: str) -> str:
    captured = stdout
    if captured and stderr and not captured.endswith("\n"):
        captured += "\n"
    captured += stderr
    return _fenced("Error", "", captured) if captured else ""


def render_command(entry: Command, context: Context) -> str:
    """
    Render a command block and, unless tagged 'skip', run it.

    Returns the markdown on success. Raises EntryFailure carrying the
    markdown (with the captured error output) when the outcome does not
    match `should_fail`, or when the shell could not be started.
    """
    console = get_console()
    commands = context.substitute_all(entry.commands) or ()
    on_failure = context.substitute_all(entry.on_failure_commands)
    working_dir = context.substitute(entry.working_dir) if entry.working_dir is not None else None

    markdown = format_commands(commands, working_dir)

    if entry.skipped:
        console.print_command_skipped(commands)
        return indent_by(markdown, entry.indent)

    directory = context.resolve_dir(working_dir)
    console.print_command(commands, working_dir, entry.comments)

    try:
        result = run_commands(directory, commands, context.scripts)
    except ScriptSpawnError as e:
        if on_failure:
            run_cleanup_commands(directory, on_failure, context.scripts)
        raise EntryFailure(entry=entry_type(entry), markdown=str(e)) from e

    console.print_command_output(result.stdout, result.stderr)

    if not result.ok and on_failure:
        run_cleanup_commands(directory, on_failure, context.scripts)

    if entry.should_fail != result.ok:
        if entry.output is not None and entry.output.show:
            markdown += format_output(entry.output.caption, entry.output.content_type, result.stdout, result.stderr)
        return indent_by(markdown, entry.indent)

    markdown += format_error(result.stdout, result.stderr)
    raise EntryFailure(
        entry=entry_type(entry),
        markdown=indent_by(markdown, entry.indent),
        exit_code=result.returncode,
    )


def run_finally_commands(entry: Command, context: Context) -> None:
    """Run an entry's `finally_commands`, if any, ignoring their outcome."""
    commands = context.substitute_all(entry.finally_commands)
    if not commands or entry.skipped:
        return
    working_dir = context.substitute(entry.working_dir) if entry.working_dir is not None else None
    get_console().print_command(commands, working_dir)
    run_cleanup_commands(context.resolve_dir(working_dir), commands, context.scripts)


# ----------------------------------------------------------------------
# Dispatch
# ----------------------------------------------------------------------

def render_entry(entry: Entry, context: Context) -> str:
    """Render one entry to markdown. Raises EntryFailure on failure."""
    if isinstance(entry, Heading):
        return render_heading(entry)
    if isinstance(entry, Markdown):
        return render_markdown(entry)
    if isinstance(entry, Command):
        return render_command(entry, context)
    if isinstance(entry, DisplayFile):
        return render_display_file(entry, context)
    if isinstance(entry, Todo):
        return render_todo(entry)
    if isinstance(entry, Breakpoint):
        return ""
    raise TypeError(f"Unsupported entry type: {type(entry).__name__}")
