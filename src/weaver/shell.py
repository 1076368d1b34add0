# shell.py
from __future__ import annotations

import shlex
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from .context import ScriptNames
from .ui.console import get_console

SCRIPT_HEADER = """#!/bin/sh

# Generated by weaver
# This file is automatically deleted once the execution completes

set -e

"""

CLEANUP_SCRIPT_HEADER = """#!/bin/sh

# Generated by weaver
# This file is automatically deleted once the execution completes
# Every command runs even when a previous one fails, this script only cleans up

"""


@dataclass
class ScriptResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass
class ScriptSpawnError(Exception):
    """The shell could not be started for a script."""
    script: Path
    cause: OSError

    def __str__(self) -> str:
        return f"Failed to run the shell script {self.script}: {self.cause}"


def format_script(commands: Sequence[str], *, stop_on_error: bool = True) -> str:
    header = SCRIPT_HEADER if stop_on_error else CLEANUP_SCRIPT_HEADER
    return header + "\n".join(commands)


@contextmanager
def ephemeral_script(directory: Path, body: str, names: ScriptNames) -> Iterator[Path]:
    """
    Write `body` to a freshly named executable script inside `directory`.

    The script is removed when the block exits, however it exits. Failing to
    create or chmod the script raises OSError; failing to remove it only
    prints a warning.
    """
    path = names.next_path(Path(directory).resolve())
    path.write_text(body, encoding="utf-8")
    try:
        path.chmod(0o755)
        yield path
    finally:
        try:
            path.unlink()
        except OSError as e:
            get_console().print_warning(f"Failed to delete the shell script {path}: {e}")


def run_script(path: Path) -> ScriptResult:
    """
    Run a script with /bin/sh from within its own directory.

    Output is captured as bytes and decoded as UTF-8; anything else is not
    something we can put in a markdown document, so UnicodeDecodeError is
    left to propagate.
    """
    try:
        proc = subprocess.run(
            ["/bin/sh", "-c", shlex.quote(str(path))],
            cwd=str(path.parent),
            capture_output=True,
        )
    except OSError as e:
        raise ScriptSpawnError(script=path, cause=e) from e

    return ScriptResult(
        returncode=proc.returncode,
        stdout=proc.stdout.decode("utf-8"),
        stderr=proc.stderr.decode("utf-8"),
    )


def run_commands(
    directory: Path,
    commands: Sequence[str],
    names: ScriptNames,
    *,
    stop_on_error: bool = True,
) -> ScriptResult:
    """Run `commands` as one ephemeral script in `directory`."""
    with ephemeral_script(directory, format_script(commands, stop_on_error=stop_on_error), names) as path:
        return run_script(path)


def run_cleanup_commands(directory: Path, commands: Sequence[str], names: ScriptNames) -> None:
    """Best effort: run clean-up commands and ignore how they end."""
    console = get_console()
    try:
        result = run_commands(directory, commands, names, stop_on_error=False)
    except ScriptSpawnError as e:
        console.print_warning(str(e))
        return
    except OSError as e:
        console.print_warning(f"Failed to run clean-up commands in {directory}: {e}")
        return
    console.print_debug(f"clean-up commands exited with {result.returncode}")
    console.print_command_output(result.stdout, result.stderr)
