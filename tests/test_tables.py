"""Tests for pipe-table detection and parsing."""

from __future__ import annotations

from proposalfunnel.report.inline import InlineSegment
from proposalfunnel.report.tables import TableModel, try_parse_table


TIMELINE = (
    '| Week | Phase / Activity | Description of Work |\n'
    '|------|------------------|---------------------|\n'
    '| 1-2 | Discovery | Requirement workshops |\n'
    '| 3-5 | Design | **Wireframes** and UI kit |'
)


class TestTryParseTable:
    def test_standard_table(self):
        table = try_parse_table(TIMELINE)
        assert table == TableModel(
            headers=['Week', 'Phase / Activity', 'Description of Work'],
            rows=[
                ['1-2', 'Discovery', 'Requirement workshops'],
                ['3-5', 'Design', '**Wireframes** and UI kit'],
            ],
        )

    def test_fewer_than_three_pipe_lines(self):
        assert try_parse_table('| A | B |\n|---|---|') is None
        assert try_parse_table('| A | B |') is None

    def test_not_a_table(self):
        assert try_parse_table('Total Duration: 12 Weeks\n- Discovery: 2 Weeks') is None
        assert try_parse_table('') is None
        assert try_parse_table(None) is None

    def test_second_row_is_skipped_unconditionally(self):
        table = try_parse_table('| A | B |\n| x | y |\n| 1 | 2 |')
        assert table is not None
        assert table.headers == ['A', 'B']
        assert table.rows == [['1', '2']]

    def test_blank_and_prose_lines_are_ignored(self):
        table = try_parse_table('Estimated cost below\n\n| Item | Cost |\n\n|---|---|\n| Design | $3,000 |')
        assert table is not None
        assert table.headers == ['Item', 'Cost']
        assert table.rows == [['Design', '$3,000']]

    def test_escaped_newlines(self):
        table = try_parse_table('| A |\\n|---|\\n| 1 |')
        assert table is not None
        assert table.rows == [['1']]

    def test_ragged_rows_are_kept(self):
        table = try_parse_table('| A | B | C |\n|---|---|---|\n| 1 |\n| 1 | 2 | 3 | 4 |')
        assert table is not None
        assert table.rows == [['1'], ['1', '2', '3', '4']]
        assert table.column_count == 4

    def test_cells_are_formatted(self):
        table = try_parse_table(TIMELINE)
        assert table is not None
        assert table.formatted_rows()[1][2] == (
            InlineSegment('Wireframes', emphasized=True),
            InlineSegment(' and UI kit'),
        )
        assert table.formatted_headers()[0] == (InlineSegment('Week'),)
