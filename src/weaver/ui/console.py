"""Console output formatting utilities for weaver."""

from __future__ import annotations

import sys
from typing import Optional, Sequence


class Console:
    """Centralized console output formatting."""

    def __init__(self, debug: bool = False, show_output: bool = True):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            show_output: If False, captured command output is not echoed
        """
        self.debug = debug
        self.show_output = show_output

    def print_header(self, title: str) -> None:
        """Print a section header."""
        print(f"\n{title}")
        print("-" * len(title))

    def print_run_started(
        self,
        runbook: str,
        output: str,
        entry_count: int,
    ) -> None:
        """Print run start information."""
        print("\nRUN STARTED")
        print(f"Runbook: {runbook}")
        print(f"Output: {output}")
        print(f"Entries: {entry_count}")
        print()

    def print_entry(self, index: int, kind: str) -> None:
        """Print entry start message."""
        self.print_debug(f"entry #{index + 1}: {kind}")

    def print_command(
        self,
        commands: Sequence[str],
        working_dir: Optional[str] = None,
        comments: Optional[Sequence[str]] = None,
    ) -> None:
        """Print the commands about to run, preceded by the entry's comments."""
        for comment in comments or ():
            print(f"# {comment}")
        if working_dir:
            print(f"$ (cd '{working_dir}')")
        for command in commands:
            print(f"$ {command}")

    def print_command_skipped(self, commands: Sequence[str]) -> None:
        """Print commands that are rendered but not executed."""
        for command in commands:
            print(f"$ {command}")
        print("STATUS: skipped (tagged 'skip')")

    def print_command_output(self, stdout: str, stderr: str) -> None:
        """Echo captured command output."""
        if not self.show_output:
            return
        if stdout:
            print(stdout, end="" if stdout.endswith("\n") else "\n")
        if stderr:
            print(stderr, end="" if stderr.endswith("\n") else "\n", file=sys.stderr)

    def print_failure(
        self,
        name: str,
        reason: str,
        exit_code: Optional[int] = None,
        hint: Optional[str] = None,
    ) -> None:
        """
        Print failure message.

        Args:
            name: Entry description
            reason: Failure reason/error message
            exit_code: Optional exit code
            hint: Optional hint for user
        """
        print(f"ENTRY FAILED: {name}")
        if exit_code is not None:
            print(f"Exit code: {exit_code}")
        if hint:
            print(f"Hint: {hint}")
        if self.debug:
            print(f"Error details: {reason}")
        else:
            # Show first line of error for non-debug mode
            error_line = reason.split('\n')[0] if reason else "Unknown error"
            if error_line and error_line != str(reason):
                print(f"Error: {error_line}")

    def print_todo(self, text: str) -> None:
        """Print a to-do left in the runbook."""
        print(text, end="" if text.endswith("\n") else "\n")

    def print_breakpoint(self, comment: Optional[str], wait: bool = True) -> None:
        """Print breakpoint banner."""
        print("\nBREAKPOINT" + (f" ({comment})" if comment else ""))
        if wait:
            print("Press enter to continue...", flush=True)

    def print_results(self, processed: int, total: int, failed: bool) -> None:
        """Print final results summary."""
        print("\n" + "=" * 40)
        print("RESULTS")
        print("=" * 40)
        print(f"  Entries: {processed}/{total}")
        print(f"  Status: {'FAILED' if failed else 'SUCCESS'}")

    def print_warning(self, message: str) -> None:
        """Print a non-fatal warning."""
        print(f"WARNING: {message}", file=sys.stderr)

    def print_error(
        self,
        title: str,
        message: str,
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        print(f"\nERROR: {title}", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        if details:
            for detail in details:
                print(f"  {detail}", file=sys.stderr)
        if suggestion:
            print(f"\n{suggestion}", file=sys.stderr)

    def print_exception(self, exc: Exception) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            import traceback
            traceback.print_exception(type(exc), exc, exc.__traceback__)
        else:
            print(f"Error: {exc}", file=sys.stderr)

    def print_info(self, message: str) -> None:
        """Print informational message."""
        print(message)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
