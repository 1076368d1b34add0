# text.py
from __future__ import annotations

from typing import Optional


def indent_by(text: str, amount: Optional[int]) -> str:
    """
    Indent every non-blank line of `text` by `amount` spaces.

    Blank lines are left empty and the newlines are kept exactly where they
    were, so a trailing newline in the input stays a trailing newline.
    """
    if amount is None:
        return text

    padding = " " * amount
    return "\n".join(padding + line if line else line for line in text.split("\n"))
