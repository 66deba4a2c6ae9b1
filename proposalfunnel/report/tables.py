from __future__ import annotations

from dataclasses import dataclass, field

from .inline import InlineSegment, format_inline
from .lines import split_lines


_MIN_TABLE_LINES = 3


@dataclass(frozen=True)
class TableModel:
    headers: list[str]
    rows: list[list[str]] = field(default_factory=list)

    @property
    def column_count(self) -> int:
        widths = [len(self.headers), *(len(row) for row in self.rows)]
        return max(widths) if widths else 0

    def formatted_headers(self) -> list[tuple[InlineSegment, ...]]:
        return [format_inline(cell) for cell in self.headers]

    def formatted_rows(self) -> list[list[tuple[InlineSegment, ...]]]:
        return [[format_inline(cell) for cell in row] for row in self.rows]


def _parse_row(line: str) -> list[str]:
    return [cell.strip() for cell in line.split('|')[1:-1]]


def try_parse_table(text: str | None) -> TableModel | None:
    """Parse a pipe table out of ``text``, or return None when it is not one.

    The second pipe row is always treated as the ``|---|`` separator and dropped,
    whatever it contains.
    """
    lines = [line for line in split_lines(text) if line.strip()]
    table_lines = [line for line in lines if line.strip().startswith('|')]
    if len(table_lines) < _MIN_TABLE_LINES:
        return None

    headers = _parse_row(table_lines[0])
    rows = [_parse_row(line) for line in table_lines[2:]]
    return TableModel(headers=headers, rows=rows)
