"""Text-level extraction of workflow blocks from configuration source.

Some checks and every config fix work on the raw text of ``config.py`` rather
than on the loaded value, so edits keep the author's formatting. A block
starts at a ``workflowTemplateId`` entry and runs to the next one (or the end
of the file). Lists inside a block are located with a bracket-balanced scan
that skips string literals and comments.

A list key is classified as:

- "absent": no such key in the block, or its brackets do not balance
- "empty": the key is bound to ``[]`` (whitespace only)
- "present": the list has content
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal

ListState = Literal["absent", "empty", "present"]

ANCHOR_PATTERN = re.compile(
    r"""(?P<kq>["']?)workflowTemplateId(?P=kq)\s*(?P<sep>[:=])\s*"""
    r"""(?P<vq>["'])(?P<id>[^"']+)(?P=vq)"""
)
_QUOTED_PATTERN = re.compile(r"""(["'])((?:(?!\1).)*)\1""")
_OPENERS = "[({"
_CLOSERS = "])}"


@dataclass(frozen=True)
class ListSpan:
    """Location of a list literal bound to a key.

    Attributes:
        state: "absent", "empty" or "present".
        key_start: Offset of the key (-1 when absent).
        open_index: Offset of the opening bracket (-1 when absent).
        close_index: Offset of the closing bracket (-1 when absent).
        items: String literals found inside the list.
    """

    state: ListState
    key_start: int = -1
    open_index: int = -1
    close_index: int = -1
    items: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class WorkflowBlock:
    """One ``workflowTemplateId`` block of the configuration source.

    Attributes:
        template_id: Declared template id.
        start: Offset of the anchor.
        end: Offset of the next anchor, or the source length.
        key_quote: Quote used around keys ("" for keyword arguments).
        separator: ":" for dict literals, "=" for keyword arguments.
        value_quote: Quote used around the template id value.
    """

    template_id: str
    start: int
    end: int
    key_quote: str = '"'
    separator: str = ":"
    value_quote: str = '"'

    def find_list(self, source: str, key: str) -> ListSpan:
        return find_list(source, key, self.start, self.end)

    def format_entry(self, key: str, values: list[str]) -> str:
        """Render ``key: [values]`` in the block's own style."""
        rendered = ", ".join(f"{self.value_quote}{value}{self.value_quote}" for value in values)
        if self.separator == "=":
            return f"{key}=[{rendered}]"
        return f"{self.key_quote}{key}{self.key_quote}: [{rendered}]"


def extract_blocks(source: str) -> list[WorkflowBlock]:
    """Split configuration source into workflow blocks, in source order."""
    matches = list(ANCHOR_PATTERN.finditer(source))
    blocks: list[WorkflowBlock] = []
    for index, match in enumerate(matches):
        end = matches[index + 1].start() if index + 1 < len(matches) else len(source)
        blocks.append(
            WorkflowBlock(
                template_id=match.group("id"),
                start=match.start(),
                end=end,
                key_quote=match.group("kq"),
                separator=match.group("sep"),
                value_quote=match.group("vq"),
            )
        )
    return blocks


def find_block(source: str, template_id: str) -> WorkflowBlock | None:
    for block in extract_blocks(source):
        if block.template_id == template_id:
            return block
    return None


def key_pattern(key: str) -> re.Pattern[str]:
    """Pattern for ``key:`` / ``"key":`` / ``key=`` bindings."""
    return re.compile(rf"""(["']?)\b{re.escape(key)}\1\s*[:=]\s*""")


def _find_closing(source: str, open_index: int, limit: int) -> int | None:
    """Find the bracket closing the one at ``open_index``, or None if unbalanced."""
    depth = 0
    quote: str | None = None
    index = open_index
    while index < limit:
        char = source[index]
        if quote is not None:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in "'\"":
            quote = char
        elif char == "#":
            newline = source.find("\n", index, limit)
            if newline == -1:
                return None
            index = newline
        elif char in _OPENERS:
            depth += 1
        elif char in _CLOSERS:
            depth -= 1
            if depth == 0:
                return index if char == "]" else None
            if depth < 0:
                return None
        index += 1
    return None


def quoted_strings(text: str) -> list[str]:
    return [match.group(2) for match in _QUOTED_PATTERN.finditer(text)]


def find_list(source: str, key: str, start: int = 0, end: int | None = None) -> ListSpan:
    """Locate the first list literal bound to ``key`` within ``source[start:end]``."""
    end = len(source) if end is None else end
    for match in key_pattern(key).finditer(source, start, end):
        open_index = match.end()
        if open_index >= end or source[open_index] != "[":
            continue
        close_index = _find_closing(source, open_index, end)
        if close_index is None:
            return ListSpan(state="absent")
        body = source[open_index + 1 : close_index]
        return ListSpan(
            state="present" if body.strip() else "empty",
            key_start=match.start(),
            open_index=open_index,
            close_index=close_index,
            items=quoted_strings(body),
        )
    return ListSpan(state="absent")


# ----------------------------------------------------------------------------
# Edits
# ----------------------------------------------------------------------------


def _line_indent(source: str, index: int) -> str:
    line_start = source.rfind("\n", 0, index) + 1
    line = source[line_start:index]
    return line[: len(line) - len(line.lstrip(" \t"))]


def append_list_items(source: str, span: ListSpan, values: list[str], quote: str = '"') -> str:
    """Append string items to an existing list literal.

    Raises:
        ValueError: If the list is absent.
    """
    if span.state == "absent":
        raise ValueError("Cannot append to an absent list")

    rendered = ", ".join(f"{quote}{value}{quote}" for value in values)
    if span.state == "empty":
        return source[: span.open_index + 1] + rendered + source[span.close_index :]

    insert_at = span.close_index
    while insert_at > span.open_index + 1 and source[insert_at - 1] in " \t\r\n,":
        insert_at -= 1
    return source[:insert_at] + ", " + rendered + source[insert_at:]


def insert_entry_after(source: str, position: int, anchor: int, entry: str) -> str:
    """Insert ``entry`` as a new item of the enclosing literal after ``position``.

    Args:
        source: Configuration source.
        position: Offset just past the value the entry follows.
        anchor: Offset on the line whose indentation the entry copies.
        entry: Rendered ``key: value`` text.
    """
    indent = _line_indent(source, anchor)
    comma = re.compile(r"[ \t]*,").match(source, position)
    if comma is not None:
        return source[: comma.end()] + f"\n{indent}{entry}," + source[comma.end() :]
    return source[:position] + f",\n{indent}{entry}" + source[position:]
