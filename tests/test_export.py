"""Tests for the capture-and-assemble export pipeline."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest

from proposalfunnel.report.composer import compose_report
from proposalfunnel.report.export import (
    EXPORT_FAILURE_MESSAGE,
    ExportError,
    ReportExporter,
    RasterImage,
    export_filename,
)
from proposalfunnel.report.layout import RenderedPage, RenderedReport, render_report
from proposalfunnel.report.sample import sample_report_input


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _report(count: int) -> RenderedReport:
    return RenderedReport(
        pages=tuple(
            RenderedPage(page_id=f'pdf-page-{number}', number=number, width=794, height=1123, pdf_bytes=b'')
            for number in range(1, count + 1)
        )
    )


class RecordingCapture:
    def __init__(self, fail_on: int | None = None):
        self.fail_on = fail_on
        self.captured: list[str] = []

    def capture(self, page: RenderedPage) -> RasterImage:
        self.captured.append(page.page_id)
        if page.number == self.fail_on:
            raise RuntimeError(f'capture failed on {page.page_id}')
        return RasterImage(png=b'png', width=1588, height=2246)


class GatedCapture(RecordingCapture):
    def __init__(self, gate: threading.Event):
        super().__init__()
        self.gate = gate

    def capture(self, page: RenderedPage) -> RasterImage:
        self.gate.wait(timeout=5)
        return super().capture(page)


class FakeAssembler:
    def __init__(self):
        self.calls: list[int] = []

    def assemble(self, images):
        self.calls.append(len(images))
        return b'%PDF-fake'


# ---------------------------------------------------------------------------
# export_filename
# ---------------------------------------------------------------------------

class TestExportFilename:
    def test_whitespace_runs_collapse(self):
        assert export_filename('Alex   Morgan', 'Talentronaut') == 'Talentronaut_Project_Analysis_Alex_Morgan.pdf'

    def test_surrounding_whitespace_is_trimmed(self):
        assert export_filename('  Jane\tDoe ', 'Acme') == 'Acme_Project_Analysis_Jane_Doe.pdf'

    def test_brand_from_settings(self, settings):
        assert export_filename('Alex Morgan') == f'{settings.brand_name}_Project_Analysis_Alex_Morgan.pdf'


# ---------------------------------------------------------------------------
# ReportExporter
# ---------------------------------------------------------------------------

class TestReportExporter:
    def test_captures_in_order_then_assembles(self, settings):
        capture = RecordingCapture()
        assembler = FakeAssembler()
        exporter = ReportExporter(capture=capture, assembler=assembler)

        result = asyncio.run(exporter.export(_report(7), 'Alex Morgan'))

        assert result is not None
        assert result.pdf_bytes == b'%PDF-fake'
        assert result.page_count == 7
        assert result.filename.endswith('_Project_Analysis_Alex_Morgan.pdf')
        assert capture.captured == [f'pdf-page-{number}' for number in range(1, 8)]
        assert assembler.calls == [7]
        assert exporter.exporting is False

    def test_failure_aborts_whole_export(self, settings):
        capture = RecordingCapture(fail_on=3)
        assembler = FakeAssembler()
        exporter = ReportExporter(capture=capture, assembler=assembler)

        with pytest.raises(ExportError) as excinfo:
            asyncio.run(exporter.export(_report(7), 'Alex Morgan'))

        assert str(excinfo.value) == EXPORT_FAILURE_MESSAGE
        assert capture.captured == ['pdf-page-1', 'pdf-page-2', 'pdf-page-3']
        assert assembler.calls == []
        assert exporter.exporting is False

    def test_exporter_is_reusable_after_failure(self, settings):
        capture = RecordingCapture(fail_on=1)
        exporter = ReportExporter(capture=capture, assembler=FakeAssembler())
        with pytest.raises(ExportError):
            asyncio.run(exporter.export(_report(2), 'Alex'))

        capture.fail_on = None
        assert asyncio.run(exporter.export(_report(2), 'Alex')) is not None

    def test_request_while_exporting_is_ignored(self, settings):
        capture = RecordingCapture()
        exporter = ReportExporter(capture=capture, assembler=FakeAssembler())
        exporter._gate.acquire()
        try:
            assert asyncio.run(exporter.export(_report(3), 'Alex')) is None
            assert capture.captured == []
            assert exporter.exporting is True
        finally:
            exporter._gate.release()
        assert exporter.exporting is False

    def test_request_from_another_thread_is_ignored(self, settings):
        gate = threading.Event()
        capture = GatedCapture(gate)
        exporter = ReportExporter(capture=capture, assembler=FakeAssembler())
        results: list = []

        worker = threading.Thread(target=lambda: results.append(asyncio.run(exporter.export(_report(2), 'Alex'))))
        worker.start()
        for _ in range(500):
            if exporter.exporting:
                break
            time.sleep(0.01)

        second = asyncio.run(exporter.export(_report(2), 'Alex'))
        gate.set()
        worker.join(timeout=5)

        assert second is None
        assert results and results[0] is not None
        assert capture.captured == ['pdf-page-1', 'pdf-page-2']

    def test_concurrent_request_is_ignored(self, settings):
        gate = threading.Event()
        capture = GatedCapture(gate)
        exporter = ReportExporter(capture=capture, assembler=FakeAssembler())

        async def scenario():
            first = asyncio.create_task(exporter.export(_report(2), 'Alex'))
            while not exporter.exporting:
                await asyncio.sleep(0.01)
            second = await exporter.export(_report(2), 'Alex')
            gate.set()
            return await first, second

        first, second = asyncio.run(scenario())
        assert first is not None
        assert second is None
        assert capture.captured == ['pdf-page-1', 'pdf-page-2']


# ---------------------------------------------------------------------------
# End to end with reportlab + PyMuPDF
# ---------------------------------------------------------------------------

class TestRealPipeline:
    def test_sample_report_to_a4_pdf(self, settings):
        fitz = pytest.importorskip('pymupdf')
        report_input = sample_report_input()
        pages = compose_report(report_input.client, report_input.analysis, settings=settings)
        rendered = render_report(pages, settings=settings)
        assert all(page.pdf_bytes.startswith(b'%PDF') for page in rendered.pages)

        exporter = ReportExporter()
        exporter.capture.pixel_ratio = 1.0
        result = asyncio.run(exporter.export(rendered, report_input.client.name))

        assert result is not None
        assert result.filename == f'{settings.brand_name}_Project_Analysis_Alex_Morgan.pdf'
        document = fitz.open(stream=result.pdf_bytes, filetype='pdf')
        try:
            assert document.page_count == len(pages)
            assert round(document[0].rect.width) == 595
            assert round(document[0].rect.height) == 842
        finally:
            document.close()
