# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from weaver import settings
from weaver.context import MissingVariableError
from weaver.model import entry_type
from weaver.runner import create_context, load_runbook, run_document
from weaver.schema import RunbookParseError
from weaver.ui.console import Console, set_console, get_console


def discover_runbook(runbook_arg: str | None) -> Path:
    """
    Resolve the runbook file from argument or default.

    Args:
        runbook_arg: Optional runbook argument from CLI

    Returns:
        Path to runbook file

    Raises:
        SystemExit: If the runbook cannot be found
    """
    console = get_console()

    runbook_path = Path(runbook_arg or settings.RUNBOOK_FILE)
    if not runbook_path.exists() and runbook_path.suffix != ".json":
        runbook_path = Path(str(runbook_path) + ".json")
    if not runbook_path.exists():
        console.print_error(
            "Runbook file not found",
            f"Could not find runbook file: {runbook_arg or settings.RUNBOOK_FILE}",
            suggestion="Create a runbook file or specify a different path:\n  weaver run --runbook my-runbook.json",
        )
        sys.exit(1)
    return runbook_path


def _load(runbook_path: Path):
    console = get_console()
    try:
        return load_runbook(runbook_path)
    except RunbookParseError as e:
        console.print_error(
            "Invalid runbook",
            f"Could not parse runbook {runbook_path}",
            details=e.details,
        )
        sys.exit(1)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """weaver: render executable runbooks into markdown."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command()
@click.option(
    "--runbook",
    "-f",
    default=None,
    help=f"Runbook file path (defaults to {settings.RUNBOOK_FILE})",
)
@click.option(
    "--output",
    "-o",
    default=None,
    help=f"Markdown output file (defaults to {settings.OUTPUT_FILE})",
)
@click.option("--breakpoints/--no-breakpoints", default=True, show_default=True, help="Pause at breakpoint entries")
@click.option("--print-output/--no-print-output", default=True, show_default=True, help="Echo command output to the console")
@click.pass_context
def run(ctx, runbook, output, breakpoints, print_output):
    """Run a runbook and write the rendered markdown."""
    console = get_console()
    console.show_output = print_output

    runbook_path = discover_runbook(runbook)
    output_path = Path(output or settings.OUTPUT_FILE)

    try:
        document = _load(runbook_path)
        context = create_context(document, runbook_path)

        console.print_run_started(
            runbook=runbook_path.name,
            output=str(output_path),
            entry_count=len(document),
        )

        result = run_document(document, context, wait_for_breakpoints=breakpoints)
        output_path.write_text(result.markdown, encoding="utf-8")

        console.print_results(result.processed, result.total, failed=not result.ok)

        if not result.ok:
            console.print_error("Run failed", str(result.failure).split("\n")[0])
            sys.exit(1)

    except MissingVariableError as e:
        console.print_error(
            "Unresolved variable",
            str(e),
            suggestion="Give the variable a default value in the runbook's 'variables' section.",
        )
        sys.exit(1)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        console.print_exception(e)
        sys.exit(1)


@cli.command()
@click.option(
    "--runbook",
    "-f",
    default=None,
    help=f"Runbook file path (defaults to {settings.RUNBOOK_FILE})",
)
@click.pass_context
def check(ctx, runbook):
    """Validate a runbook without running it."""
    console = get_console()
    runbook_path = discover_runbook(runbook)
    document = _load(runbook_path)

    console.print_header(f"{runbook_path.name}: {len(document)} entries")
    for index, entry in enumerate(document.entries(), start=1):
        console.print_info(f"  {index}. {entry_type(entry)}")
    for variable in document.variables:
        default = variable.default if variable.default is not None else "<no default>"
        console.print_info(f"  ${{{variable.name}}} = {default}")


if __name__ == "__main__":
    cli()
