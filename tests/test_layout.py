"""Tests for drawing virtual pages with reportlab."""

from __future__ import annotations

import pytest

from proposalfunnel.report.composer import compose_report
from proposalfunnel.report.layout import (
    PAGE_HEIGHT,
    PAGE_WIDTH,
    _build_styles,
    _resolve_report_fonts,
    render_page,
    table_flowable,
)
from proposalfunnel.report.sample import sample_report_input
from proposalfunnel.report.tables import try_parse_table


class TestRenderPage:
    def test_every_page_kind_renders(self, settings):
        report_input = sample_report_input()
        pages = compose_report(report_input.client, report_input.analysis, settings=settings)
        for page in pages:
            rendered = render_page(page, settings=settings)
            assert rendered.page_id == page.page_id
            assert (rendered.width, rendered.height) == (PAGE_WIDTH, PAGE_HEIGHT)
            assert rendered.pdf_bytes.startswith(b'%PDF')

    def test_long_scope_renders_every_page(self, settings):
        analysis = {'projectName': 'Long', 'scopeOfWork': '\n'.join(f'- item {n}' for n in range(70))}
        pages = compose_report(None, analysis, settings=settings)
        assert all(render_page(page, settings=settings).pdf_bytes for page in pages)


class TestTableFlowable:
    def test_ragged_rows_are_padded(self):
        table = try_parse_table('| A | B | C |\n|---|---|---|\n| 1 |\n| 1 | 2 | 3 |')
        styles = _build_styles(_resolve_report_fonts())
        flowable = table_flowable(table, styles, width=600)
        assert [len(row) for row in flowable._cellvalues] == [3, 3, 3]
        assert table.rows[0] == ['1']


class TestOverflow:
    def test_long_table_keeps_the_rows_that_fit(self, settings):
        fitz = pytest.importorskip('pymupdf')
        rows = '\n'.join(f'| Milestone {n} | Week {n} |' for n in range(1, 61))
        analysis = {
            'projectName': 'Long Timeline',
            'timeline': f'| Milestone | Due |\n|---|---|\n{rows}',
            'technologies': '- React',
        }
        pages = compose_report(None, analysis, settings=settings)
        plan = next(page for page in pages if page.heading.endswith('Plan & Technology'))

        rendered = render_page(plan, settings=settings)
        document = fitz.open(stream=rendered.pdf_bytes, filetype='pdf')
        try:
            text = document[0].get_text()
        finally:
            document.close()

        assert 'Milestone 1\n' in text
        assert 'Milestone 2\n' in text
        assert 'Milestone 60' not in text
