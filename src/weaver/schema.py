# schema.py
from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .model import (
    Breakpoint,
    Command,
    CommandOutput,
    DisplayFile,
    Document,
    Entry,
    Heading,
    HeadingLevel,
    Markdown,
    TextVariable,
    Todo,
)


class RunbookParseError(ValueError):
    """The runbook JSON is malformed or does not match the schema."""

    def __init__(self, message: str, details: Optional[list[str]] = None):
        self.message = message
        self.details = details or []
        super().__init__(message)

    def __str__(self) -> str:
        return "\n".join([self.message, *self.details])


# -------------------- Schemas --------------------

class _Schema(BaseModel):
    # a misspelt key must not silently fall back to its default
    model_config = ConfigDict(extra="forbid")


class HeadingSchema(_Schema):
    type: Literal["Heading"]
    level: HeadingLevel
    title: str


class MarkdownSchema(_Schema):
    type: Literal["Markdown"]
    contents: List[str]
    tags: Optional[List[str]] = None


class CommandOutputSchema(_Schema):
    show: bool = True
    caption: Union[str, List[str]] = "_stdout_"
    content_type: str = ""


class CommandSchema(_Schema):
    type: Literal["Command"]
    commands: List[str] = Field(min_length=1)
    should_fail: bool = False
    on_failure_commands: Optional[List[str]] = None
    finally_commands: Optional[List[str]] = None
    working_dir: Optional[str] = None
    output: Optional[CommandOutputSchema] = None
    tags: Optional[List[str]] = None
    comments: Optional[List[str]] = None
    indent: Optional[int] = Field(default=None, ge=0)


class DisplayFileSchema(_Schema):
    type: Literal["DisplayFile"]
    path: str
    content_type: Optional[str] = None
    from_line: Optional[int] = Field(default=None, ge=1)
    number_of_lines: Optional[int] = Field(default=None, ge=0)
    tags: Optional[List[str]] = None
    indent: Optional[int] = Field(default=None, ge=0)


class BreakpointSchema(_Schema):
    type: Literal["Breakpoint"]
    comment: Optional[str] = None


class TodoSchema(_Schema):
    type: Literal["Todo"]
    comments: Optional[List[str]] = None


EntrySchema = Annotated[
    Union[
        HeadingSchema,
        MarkdownSchema,
        CommandSchema,
        DisplayFileSchema,
        BreakpointSchema,
        TodoSchema,
    ],
    Field(discriminator="type"),
]


class TextVariableSchema(_Schema):
    type: Literal["text"] = "text"
    name: str
    default: Optional[str] = None


class DocumentSchema(_Schema):
    variables: List[TextVariableSchema] = Field(default_factory=list)
    entries: List[EntrySchema]


# -------------------- Conversion --------------------

def _tuple(values: Optional[List[str]]) -> Optional[tuple[str, ...]]:
    return tuple(values) if values is not None else None


def _tags(values: Optional[List[str]]) -> Optional[frozenset[str]]:
    return frozenset(values) if values is not None else None


def _to_output(schema: Optional[CommandOutputSchema]) -> Optional[CommandOutput]:
    if schema is None:
        return None
    caption = schema.caption if isinstance(schema.caption, str) else "\n".join(schema.caption)
    return CommandOutput(show=schema.show, caption=caption, content_type=schema.content_type)


def _to_entry(schema: EntrySchema) -> Entry:
    if isinstance(schema, HeadingSchema):
        return Heading(level=schema.level, title=schema.title)
    if isinstance(schema, MarkdownSchema):
        return Markdown(contents=tuple(schema.contents), tags=_tags(schema.tags))
    if isinstance(schema, CommandSchema):
        return Command(
            commands=tuple(schema.commands),
            should_fail=schema.should_fail,
            on_failure_commands=_tuple(schema.on_failure_commands),
            finally_commands=_tuple(schema.finally_commands),
            working_dir=schema.working_dir,
            output=_to_output(schema.output),
            tags=_tags(schema.tags),
            indent=schema.indent,
            comments=_tuple(schema.comments),
        )
    if isinstance(schema, DisplayFileSchema):
        return DisplayFile(
            path=schema.path,
            content_type=schema.content_type,
            from_line=schema.from_line,
            number_of_lines=schema.number_of_lines,
            tags=_tags(schema.tags),
            indent=schema.indent,
        )
    if isinstance(schema, BreakpointSchema):
        return Breakpoint(comment=schema.comment)
    if isinstance(schema, TodoSchema):
        return Todo(comments=_tuple(schema.comments))
    raise TypeError(f"Unsupported entry schema: {type(schema).__name__}")


def to_document(schema: DocumentSchema) -> Document:
    return Document(
        tuple(_to_entry(entry) for entry in schema.entries),
        tuple(TextVariable(name=v.name, default=v.default) for v in schema.variables),
    )


def parse_document(json_text: str | bytes) -> Document:
    """
    Parse a runbook JSON payload into a Document.

    Raises:
        RunbookParseError: malformed JSON, unknown entry type or invalid field
    """
    try:
        schema = DocumentSchema.model_validate_json(json_text)
    except ValidationError as e:
        details = []
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            details.append(f"{location}: {error['msg']}" if location else error["msg"])
        raise RunbookParseError("Failed to parse the runbook", details) from e

    return to_document(schema)
