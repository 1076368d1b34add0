from .model import Document, Heading, Markdown, Command, CommandOutput, DisplayFile, Breakpoint, Todo, TextVariable
from .context import Context, ScriptNames
from .render import render_entry, EntryFailure
from .runner import load_runbook, run_document, render_runbook
from .schema import parse_document, RunbookParseError

__all__ = [
    "Document", "Heading", "Markdown", "Command", "CommandOutput", "DisplayFile", "Breakpoint", "Todo",
    "TextVariable", "Context", "ScriptNames", "render_entry", "EntryFailure", "load_runbook", "run_document",
    "render_runbook", "parse_document", "RunbookParseError",
]
