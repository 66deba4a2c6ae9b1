from __future__ import annotations

import asyncio
import io
import logging
import re
import threading
from dataclasses import dataclass
from typing import Protocol, Sequence

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas as pdf_canvas

from ..config import get_settings
from .layout import RenderedPage, RenderedReport


logger = logging.getLogger(__name__)

EXPORT_FAILURE_MESSAGE = 'Failed to export PDF. Please try again.'


class ExportError(RuntimeError):
    pass


@dataclass(frozen=True)
class RasterImage:
    png: bytes
    width: int
    height: int


@dataclass(frozen=True)
class ExportResult:
    filename: str
    pdf_bytes: bytes
    page_count: int


class PageCapture(Protocol):
    def capture(self, page: RenderedPage) -> RasterImage: ...


class PdfPageRasterizer:
    """Rasterize a rendered page at ``pixel_ratio`` times its virtual size."""

    def __init__(self, pixel_ratio: float | None = None):
        self.pixel_ratio = pixel_ratio

    def capture(self, page: RenderedPage) -> RasterImage:
        import pymupdf as fitz

        ratio = self.pixel_ratio or get_settings().export_pixel_ratio

        document = fitz.open(stream=page.pdf_bytes, filetype='pdf')
        try:
            if document.page_count < 1:
                raise ExportError(f'Page {page.page_id} rendered no content')
            pixmap = document[0].get_pixmap(
                matrix=fitz.Matrix(ratio, ratio),
                alpha=False,
            )
            return RasterImage(png=pixmap.tobytes('png'), width=pixmap.width, height=pixmap.height)
        finally:
            document.close()


class PdfAssembler:
    """Place captured images on A4 pages, full width, top aligned."""

    def __init__(self, pagesize: tuple[float, float] = A4):
        self.pagesize = pagesize

    def assemble(self, images: Sequence[RasterImage]) -> bytes:
        page_width, page_height = self.pagesize
        buffer = io.BytesIO()
        canvas = pdf_canvas.Canvas(buffer, pagesize=self.pagesize)
        for index, image in enumerate(images):
            if index:
                canvas.showPage()
            ratio = page_width / image.width
            render_height = image.height * ratio
            canvas.drawImage(
                ImageReader(io.BytesIO(image.png)),
                0,
                page_height - render_height,
                width=page_width,
                height=render_height,
            )
        canvas.showPage()
        canvas.save()
        return buffer.getvalue()


def export_filename(client_name: str, brand_name: str | None = None) -> str:
    brand = brand_name or get_settings().brand_name
    safe_name = re.sub(r'\s+', '_', str(client_name or '').strip())
    return f'{brand}_Project_Analysis_{safe_name}.pdf'


class ReportExporter:
    """Captures rendered pages one after another and stitches them into one PDF.

    Only one export may run at a time per exporter; a second request while one
    is in flight, from any thread, is ignored.
    """

    def __init__(self, capture: PageCapture | None = None, assembler: PdfAssembler | None = None):
        self.capture = capture or PdfPageRasterizer()
        self.assembler = assembler or PdfAssembler()
        self._gate = threading.Lock()

    @property
    def exporting(self) -> bool:
        return self._gate.locked()

    async def export(self, report: RenderedReport, client_name: str) -> ExportResult | None:
        if not self._gate.acquire(blocking=False):
            logger.info('Export already in progress; ignoring request for %s', client_name)
            return None

        try:
            images: list[RasterImage] = []
            for page in report.pages:
                images.append(await asyncio.to_thread(self.capture.capture, page))
            pdf_bytes = await asyncio.to_thread(self.assembler.assemble, images)
        except Exception as exc:
            logger.exception('PDF export failed: %s', exc)
            raise ExportError(EXPORT_FAILURE_MESSAGE) from exc
        finally:
            self._gate.release()

        filename = export_filename(client_name)
        logger.info('Exported %s pages to %s', len(images), filename)
        return ExportResult(filename=filename, pdf_bytes=pdf_bytes, page_count=len(images))
