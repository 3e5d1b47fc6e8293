"""Content-to-blocks renderer for the markdown subset the strategist writes.

Supported: ``#``/``##``/``###`` headings, paragraphs, ``- `` / ``• `` bullet
items, pipe tables, ``---`` rules and ``**bold**`` spans.  Anything else is
treated as paragraph text.
"""

from __future__ import annotations

import re

from hroas.schemas.blocks import (
    BulletList,
    DisplayBlock,
    Heading,
    Paragraph,
    Rule,
    Span,
    Table,
)

_HEADING_PREFIXES = (("# ", 1), ("## ", 2), ("### ", 3))
_BULLET_PREFIXES = ("- ", "• ")
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_SEPARATOR_CELL_RE = re.compile(r"^[-:]+$")


def split_bold(text: str) -> list[Span]:
    """Split ``text`` on ``**bold**`` markers into plain and bold spans.

    Even split indices are plain text, odd ones are bold.  Text with an odd
    number of ``**`` markers is returned as a single plain span.
    """
    if text.count("**") % 2:
        return [Span(text=text)]
    spans = [
        Span(text=part, bold=i % 2 == 1)
        for i, part in enumerate(_BOLD_RE.split(text))
        if part
    ]
    return spans or [Span(text=text)]


def _heading(line: str) -> Heading | None:
    for prefix, level in _HEADING_PREFIXES:
        if line.startswith(prefix):
            return Heading(level=level, text=line[len(prefix):].strip())
    return None


def _is_table_row(line: str) -> bool:
    return "|" in line and len(line.split("|")) > 2


class _BlockBuilder:
    """Line-by-line state machine behind ``render_blocks``."""

    def __init__(self) -> None:
        self.blocks: list[DisplayBlock] = []
        self.paragraph: list[str] = []
        self.list_items: list[list[Span]] = []
        self.in_table = False
        self.table_headers: list[str] = []
        self.table_rows: list[list[str]] = []

    # -- flushes ------------------------------------------------------

    def flush_paragraph(self) -> None:
        if self.paragraph:
            self.blocks.append(Paragraph(spans=split_bold(" ".join(self.paragraph))))
            self.paragraph = []

    def flush_table(self) -> None:
        # A header without data rows is dropped.
        if self.in_table and self.table_headers and self.table_rows:
            self.blocks.append(Table(headers=self.table_headers, rows=self.table_rows))
        self.in_table = False
        self.table_headers = []
        self.table_rows = []

    def flush_list(self) -> None:
        if self.list_items:
            self.blocks.append(BulletList(items=self.list_items))
            self.list_items = []

    def flush_all(self) -> None:
        self.flush_paragraph()
        self.flush_table()
        self.flush_list()

    # -- dispatch -----------------------------------------------------

    def feed(self, line: str) -> None:
        stripped = line.strip()

        heading = _heading(line)
        if heading is not None:
            self.flush_all()
            self.blocks.append(heading)
            return

        if stripped == "---":
            self.flush_all()
            self.blocks.append(Rule())
            return

        if _is_table_row(line):
            # The table itself stays open so consecutive rows accumulate.
            self.flush_paragraph()
            self.flush_list()
            cells = [cell.strip() for cell in line.split("|") if cell.strip()]
            if not self.in_table:
                self.in_table = True
                self.table_headers = cells
                self.table_rows = []
            elif all(_SEPARATOR_CELL_RE.match(cell) for cell in cells):
                pass
            else:
                self.table_rows.append(cells)
            return

        if stripped.startswith(_BULLET_PREFIXES):
            self.flush_paragraph()
            self.flush_table()
            self.list_items.append(split_bold(stripped[2:].strip()))
            return

        if stripped:
            self.flush_table()
            self.flush_list()
            self.paragraph.append(stripped)
            return

        self.flush_all()


def render_blocks(content: str) -> list[DisplayBlock]:
    """Convert markdown-subset ``content`` into display blocks."""
    builder = _BlockBuilder()
    for line in content.split("\n"):
        builder.feed(line.rstrip("\r"))
    builder.flush_all()
    return builder.blocks
