# model.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple, Union


class HeadingLevel(str, Enum):
    H1 = "H1"
    H2 = "H2"
    H3 = "H3"
    H4 = "H4"
    H5 = "H5"

    @property
    def depth(self) -> int:
        return int(self.value[1:])


@dataclass(frozen=True)
class Heading:
    level: HeadingLevel
    title: str


@dataclass(frozen=True)
class Markdown:
    contents: Tuple[str, ...]
    tags: Optional[FrozenSet[str]] = None


@dataclass(frozen=True)
class CommandOutput:
    """How the captured stdout of a command is shown in the document."""
    show: bool = True
    caption: str = "_stdout_"
    content_type: str = ""


@dataclass(frozen=True)
class Command:
    """
    One or more shell command lines executed as a single script.

    `on_failure_commands` run only when the command is classified as failed,
    `finally_commands` run once the whole document pass is over.
    """
    commands: Tuple[str, ...]
    should_fail: bool = False
    on_failure_commands: Optional[Tuple[str, ...]] = None
    finally_commands: Optional[Tuple[str, ...]] = None
    working_dir: Optional[str] = None
    output: Optional[CommandOutput] = None
    tags: Optional[FrozenSet[str]] = None
    indent: Optional[int] = None
    comments: Optional[Tuple[str, ...]] = None  # console only, never rendered

    @property
    def skipped(self) -> bool:
        return bool(self.tags) and "skip" in self.tags


@dataclass(frozen=True)
class DisplayFile:
    path: str
    content_type: Optional[str] = None
    from_line: Optional[int] = None          # 1-based
    number_of_lines: Optional[int] = None
    tags: Optional[FrozenSet[str]] = None
    indent: Optional[int] = None


@dataclass(frozen=True)
class Breakpoint:
    comment: Optional[str] = None


@dataclass(frozen=True)
class Todo:
    comments: Optional[Tuple[str, ...]] = None


Entry = Union[Heading, Markdown, Command, DisplayFile, Breakpoint, Todo]


@dataclass(frozen=True)
class TextVariable:
    """A document level variable, referenced from commands as ${NAME}."""
    name: str
    default: Optional[str] = None


@dataclass(frozen=True)
class Document:
    """An ordered, immutable runbook."""
    _entries: Tuple[Entry, ...]
    variables: Tuple[TextVariable, ...] = field(default_factory=tuple)

    def entries(self) -> Tuple[Entry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)


def entry_type(entry: Entry) -> str:
    """Wire name of an entry (matches the `type` discriminator)."""
    return type(entry).__name__
