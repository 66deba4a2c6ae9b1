from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.styles import ParagraphStyle, StyleSheet1, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas as pdf_canvas
from reportlab.platypus import Frame, HRFlowable, Paragraph, Spacer, Table, TableStyle

from ..config import Settings, get_settings
from .composer import PageDescriptor, PageKind, PageSection, PaymentCard
from .inline import segments_to_markup
from .lines import LineKind
from .sections import RenderedBlock
from .tables import TableModel


logger = logging.getLogger(__name__)

# Virtual page in CSS pixels at 96 dpi, drawn 1px = 1pt.
PAGE_WIDTH = 794
PAGE_HEIGHT = 1123
PAGE_MARGIN = 22 * mm

FONT_BODY_NAME = 'PF-DejaVuSans'
FONT_BOLD_NAME = 'PF-DejaVuSans-Bold'
FONT_BODY_CANDIDATES = (
    Path('assets/fonts/DejaVuSans.ttf'),
    Path('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf'),
    Path('/usr/share/fonts/dejavu/DejaVuSans.ttf'),
)
FONT_BOLD_CANDIDATES = (
    Path('assets/fonts/DejaVuSans-Bold.ttf'),
    Path('/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf'),
    Path('/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf'),
)

INK = colors.HexColor('#111827')
MUTED = colors.HexColor('#6B7280')
RULE = colors.HexColor('#D1D5DB')
ACCENT = colors.HexColor('#1D4ED8')
ACCENT_SOFT = colors.HexColor('#EFF6FF')
COVER_BACKGROUND = colors.HexColor('#0F172A')


@dataclass(frozen=True)
class ReportFonts:
    body: str
    bold: str


@dataclass(frozen=True)
class RenderedPage:
    page_id: str
    number: int
    width: int
    height: int
    pdf_bytes: bytes


@dataclass(frozen=True)
class RenderedReport:
    pages: tuple[RenderedPage, ...]


_FONTS_CACHE: ReportFonts | None = None


def _safe_file(path: Path) -> Path | None:
    try:
        return path if path.is_file() else None
    except OSError:
        return None


def _register_ttf_font(font_name: str, candidates: Iterable[Path]) -> bool:
    if font_name in pdfmetrics.getRegisteredFontNames():
        return True

    for candidate in candidates:
        font_path = _safe_file(candidate)
        if font_path is None:
            continue
        try:
            pdfmetrics.registerFont(TTFont(font_name, str(font_path)))
            return True
        except Exception as exc:
            logger.warning('Failed to register PDF font %s from %s: %s', font_name, font_path, exc)
    return False


def _resolve_report_fonts() -> ReportFonts:
    global _FONTS_CACHE
    if _FONTS_CACHE is not None:
        return _FONTS_CACHE

    fonts = ReportFonts(body='Helvetica', bold='Helvetica-Bold')
    if _register_ttf_font(FONT_BODY_NAME, FONT_BODY_CANDIDATES) and _register_ttf_font(
        FONT_BOLD_NAME, FONT_BOLD_CANDIDATES
    ):
        pdfmetrics.registerFontFamily(
            FONT_BODY_NAME,
            normal=FONT_BODY_NAME,
            bold=FONT_BOLD_NAME,
            italic=FONT_BODY_NAME,
            boldItalic=FONT_BOLD_NAME,
        )
        fonts = ReportFonts(body=FONT_BODY_NAME, bold=FONT_BOLD_NAME)
    else:
        logger.info('DejaVu fonts not found, using built-in Helvetica for proposal pages')

    _FONTS_CACHE = fonts
    return _FONTS_CACHE


def _build_styles(fonts: ReportFonts) -> StyleSheet1:
    styles = getSampleStyleSheet()

    styles.add(
        ParagraphStyle(
            name='CoverBrand',
            parent=styles['Normal'],
            fontName=fonts.bold,
            fontSize=16,
            leading=20,
            textColor=colors.white,
            spaceAfter=4,
        )
    )
    styles.add(
        ParagraphStyle(
            name='CoverTitle',
            parent=styles['Normal'],
            fontName=fonts.bold,
            fontSize=34,
            leading=42,
            textColor=colors.white,
            spaceAfter=10,
        )
    )
    styles.add(
        ParagraphStyle(
            name='CoverSubtitle',
            parent=styles['Normal'],
            fontName=fonts.body,
            fontSize=15,
            leading=20,
            textColor=colors.HexColor('#BFDBFE'),
            spaceAfter=30,
        )
    )
    styles.add(
        ParagraphStyle(
            name='CoverMeta',
            parent=styles['Normal'],
            fontName=fonts.body,
            fontSize=11,
            leading=17,
            textColor=colors.HexColor('#E5E7EB'),
        )
    )
    styles.add(
        ParagraphStyle(
            name='PageHeading',
            parent=styles['Heading1'],
            fontName=fonts.bold,
            fontSize=24,
            leading=30,
            textColor=INK,
            spaceAfter=12,
        )
    )
    styles.add(
        ParagraphStyle(
            name='SectionTitle',
            parent=styles['Heading2'],
            fontName=fonts.bold,
            fontSize=15,
            leading=20,
            textColor=ACCENT,
            spaceBefore=6,
            spaceAfter=6,
        )
    )
    styles.add(
        ParagraphStyle(
            name='SectionTitleDimmed',
            parent=styles['SectionTitle'],
            textColor=MUTED,
        )
    )
    styles.add(
        ParagraphStyle(
            name='BlockHeader',
            parent=styles['Normal'],
            fontName=fonts.bold,
            fontSize=12.5,
            leading=17,
            textColor=INK,
            spaceBefore=6,
            spaceAfter=3,
        )
    )
    styles.add(
        ParagraphStyle(
            name='BodyTextProposal',
            parent=styles['Normal'],
            fontName=fonts.body,
            fontSize=11,
            leading=16.5,
            textColor=INK,
            spaceAfter=4,
        )
    )
    styles.add(
        ParagraphStyle(
            name='KeyValueText',
            parent=styles['BodyTextProposal'],
            spaceAfter=2,
        )
    )
    styles.add(
        ParagraphStyle(
            name='ListItem',
            parent=styles['BodyTextProposal'],
            leftIndent=18,
            bulletIndent=4,
            bulletFontName=fonts.bold,
            spaceAfter=3,
        )
    )
    styles.add(
        ParagraphStyle(
            name='TableHeader',
            parent=styles['Normal'],
            fontName=fonts.bold,
            fontSize=10,
            leading=13,
            textColor=colors.white,
        )
    )
    styles.add(
        ParagraphStyle(
            name='TableCell',
            parent=styles['Normal'],
            fontName=fonts.body,
            fontSize=10,
            leading=14,
            textColor=INK,
        )
    )
    styles.add(
        ParagraphStyle(
            name='CardBadge',
            parent=styles['Normal'],
            fontName=fonts.bold,
            fontSize=20,
            leading=24,
            textColor=ACCENT,
            spaceAfter=4,
        )
    )
    styles.add(
        ParagraphStyle(
            name='CardTitle',
            parent=styles['Normal'],
            fontName=fonts.bold,
            fontSize=13,
            leading=17,
            textColor=INK,
            spaceAfter=4,
        )
    )
    styles.add(
        ParagraphStyle(
            name='CardBody',
            parent=styles['Normal'],
            fontName=fonts.body,
            fontSize=10,
            leading=14,
            textColor=MUTED,
        )
    )
    styles.add(
        ParagraphStyle(
            name='StatValue',
            parent=styles['Normal'],
            fontName=fonts.bold,
            fontSize=26,
            leading=30,
            textColor=ACCENT,
            alignment=1,
        )
    )
    styles.add(
        ParagraphStyle(
            name='StatLabel',
            parent=styles['Normal'],
            fontName=fonts.body,
            fontSize=10,
            leading=13,
            textColor=MUTED,
            alignment=1,
        )
    )
    return styles


def _escape(value: Any) -> str:
    return escape(str(value or ''))


def block_flowables(blocks: Sequence[RenderedBlock], styles: StyleSheet1) -> list[Any]:
    story: list[Any] = []
    for block in blocks:
        if block.kind == LineKind.blank:
            story.append(Spacer(1, 6))
            continue
        markup = segments_to_markup(block.segments)
        if block.kind == LineKind.header:
            story.append(Paragraph(markup, styles['BlockHeader']))
        elif block.kind == LineKind.key_value:
            story.append(Paragraph(markup, styles['KeyValueText']))
        elif block.kind in (LineKind.bullet_item, LineKind.numbered_item):
            story.append(Paragraph(markup or '&nbsp;', styles['ListItem'], bulletText=block.display_marker))
        else:
            story.append(Paragraph(markup, styles['BodyTextProposal']))
    return story


def table_flowable(table: TableModel, styles: StyleSheet1, *, width: float, highlight: bool = False) -> Table:
    column_count = max(1, table.column_count)
    rows: list[list[Any]] = []

    header_cells = [
        Paragraph(segments_to_markup(cell) or '&nbsp;', styles['TableHeader']) for cell in table.formatted_headers()
    ]
    header_cells += [Paragraph('&nbsp;', styles['TableHeader'])] * (column_count - len(header_cells))
    rows.append(header_cells)
    for formatted in table.formatted_rows():
        cells = [Paragraph(segments_to_markup(cell) or '&nbsp;', styles['TableCell']) for cell in formatted]
        cells += [Paragraph('&nbsp;', styles['TableCell'])] * (column_count - len(cells))
        rows.append(cells)

    flowable = Table(rows, colWidths=[width / column_count] * column_count, hAlign='LEFT', repeatRows=1)
    style = [
        ('BOX', (0, 0), (-1, -1), 0.6, RULE),
        ('INNERGRID', (0, 0), (-1, -1), 0.45, colors.HexColor('#E5E7EB')),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LEFTPADDING', (0, 0), (-1, -1), 6),
        ('RIGHTPADDING', (0, 0), (-1, -1), 6),
        ('TOPPADDING', (0, 0), (-1, -1), 5),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
        ('BACKGROUND', (0, 0), (-1, 0), ACCENT),
    ]
    if highlight and len(rows) > 1:
        style.append(('BACKGROUND', (0, 1), (-1, -1), ACCENT_SOFT))
    flowable.setStyle(TableStyle(style))
    return flowable


def payment_cards_flowable(cards: Sequence[PaymentCard], styles: StyleSheet1, *, width: float) -> Table:
    cells = [
        [
            Paragraph(_escape(card.badge), styles['CardBadge']),
            Paragraph(_escape(card.title), styles['CardTitle']),
            Paragraph(_escape(card.body), styles['CardBody']),
        ]
        for card in cards
    ]
    count = max(1, len(cells))
    flowable = Table([cells], colWidths=[width / count] * count, hAlign='LEFT')
    style = [
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('BOX', (0, 0), (-1, -1), 0.6, RULE),
        ('INNERGRID', (0, 0), (-1, -1), 0.6, RULE),
        ('LEFTPADDING', (0, 0), (-1, -1), 12),
        ('RIGHTPADDING', (0, 0), (-1, -1), 12),
        ('TOPPADDING', (0, 0), (-1, -1), 12),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 12),
    ]
    for column, card in enumerate(cards):
        if card.accent:
            style.append(('BACKGROUND', (column, 0), (column, 0), ACCENT_SOFT))
    flowable.setStyle(TableStyle(style))
    return flowable


def section_flowables(section: PageSection, styles: StyleSheet1, *, width: float) -> list[Any]:
    title_style = styles['SectionTitleDimmed' if section.dimmed else 'SectionTitle']
    story: list[Any] = [Paragraph(_escape(section.title), title_style)]

    blocks: list[RenderedBlock] = []
    cards: list[PaymentCard] = []

    def _flush_blocks() -> None:
        if blocks:
            story.extend(block_flowables(blocks, styles))
            blocks.clear()

    for item in section.content:
        if isinstance(item, RenderedBlock):
            blocks.append(item)
        elif isinstance(item, TableModel):
            _flush_blocks()
            story.append(table_flowable(item, styles, width=width, highlight=section.variant == 'highlight'))
        elif isinstance(item, PaymentCard):
            cards.append(item)
    _flush_blocks()
    if cards:
        story.append(payment_cards_flowable(cards, styles, width=width))
    return story


def _divider() -> HRFlowable:
    return HRFlowable(width='100%', thickness=0.6, color=RULE, lineCap='round', spaceBefore=8, spaceAfter=8)


def _content_story(page: PageDescriptor, styles: StyleSheet1, *, width: float) -> list[Any]:
    story: list[Any] = [Paragraph(_escape(page.heading), styles['PageHeading'])]
    for index, section in enumerate(page.sections):
        if index:
            story.append(_divider())
        story.extend(section_flowables(section, styles, width=width))
    return story


def _profile_story(page: PageDescriptor, styles: StyleSheet1, *, width: float) -> list[Any]:
    payload = page.payload
    story: list[Any] = [
        Paragraph(_escape(page.heading), styles['PageHeading']),
        Paragraph(
            f'<b>{_escape(payload.get("legal_name"))}</b> builds web, mobile and cloud software for '
            'startups and enterprises, from first workshop to production support.',
            styles['BodyTextProposal'],
        ),
        Paragraph('Our Process', styles['SectionTitle']),
    ]
    for number, (title, body) in enumerate(payload.get('process_steps') or (), start=1):
        story.append(
            Paragraph(f'<b>{_escape(title)}</b>: {_escape(body)}', styles['ListItem'], bulletText=f'{number}.')
        )
    story.append(_divider())
    story.append(Paragraph('Our Mission', styles['SectionTitle']))
    story.append(Paragraph(_escape(payload.get('mission')), styles['BodyTextProposal']))
    return story


def _global_presence_story(page: PageDescriptor, styles: StyleSheet1, *, width: float) -> list[Any]:
    payload = page.payload
    story: list[Any] = [Paragraph('Global Presence', styles['PageHeading'])]

    story.append(Paragraph('Headquarters', styles['SectionTitle']))
    for office in payload.get('headquarters') or ():
        story.append(Paragraph(_escape(office), styles['ListItem'], bulletText='•'))

    story.append(Paragraph('Clients Across', styles['SectionTitle']))
    story.append(Paragraph(_escape(' · '.join(payload.get('client_regions') or ())), styles['BodyTextProposal']))

    stats = list(payload.get('stats') or ())
    if stats:
        cells = [
            [Paragraph(_escape(value), styles['StatValue']), Paragraph(_escape(label), styles['StatLabel'])]
            for value, label in stats
        ]
        stats_table = Table([cells], colWidths=[width / len(cells)] * len(cells))
        stats_table.setStyle(
            TableStyle(
                [
                    ('BOX', (0, 0), (-1, -1), 0.6, RULE),
                    ('INNERGRID', (0, 0), (-1, -1), 0.6, RULE),
                    ('TOPPADDING', (0, 0), (-1, -1), 14),
                    ('BOTTOMPADDING', (0, 0), (-1, -1), 14),
                ]
            )
        )
        story.append(Spacer(1, 10))
        story.append(stats_table)

    names = list(payload.get('client_names') or ())
    if names:
        story.append(Paragraph('Trusted By', styles['SectionTitle']))
        per_row = 4
        grid = [
            [Paragraph(_escape(name), styles['TableCell']) for name in names[start:start + per_row]]
            for start in range(0, len(names), per_row)
        ]
        for row in grid:
            row += [''] * (per_row - len(row))
        grid_table = Table(grid, colWidths=[width / per_row] * per_row)
        grid_table.setStyle(
            TableStyle(
                [
                    ('INNERGRID', (0, 0), (-1, -1), 0.45, RULE),
                    ('BOX', (0, 0), (-1, -1), 0.6, RULE),
                    ('TOPPADDING', (0, 0), (-1, -1), 10),
                    ('BOTTOMPADDING', (0, 0), (-1, -1), 10),
                ]
            )
        )
        story.append(grid_table)
    return story


def _contact_story(page: PageDescriptor, styles: StyleSheet1, *, width: float) -> list[Any]:
    payload = page.payload
    story: list[Any] = [
        Paragraph(_escape(page.heading), styles['PageHeading']),
        Paragraph(_escape(payload.get('brand_legal_name')), styles['SectionTitle']),
    ]
    for label, key in (('Email', 'brand_email'), ('Phone', 'brand_phone'), ('Website', 'website')):
        story.append(Paragraph(f'<b>{label}:</b> {_escape(payload.get(key))}', styles['KeyValueText']))

    story.append(_divider())
    story.append(Paragraph('Prepared For', styles['SectionTitle']))
    for label, key in (
        ('Name', 'client_name'),
        ('Email', 'client_email'),
        ('Contact', 'client_contact'),
        ('Country', 'client_country'),
    ):
        story.append(Paragraph(f'<b>{label}:</b> {_escape(payload.get(key))}', styles['KeyValueText']))

    story.append(Spacer(1, 24))
    story.append(Paragraph('Thank you for considering us.', styles['BlockHeader']))
    story.append(
        Paragraph(
            'Reply to this proposal or reach out on any channel above to schedule a walkthrough.',
            styles['BodyTextProposal'],
        )
    )
    return story


def _draw_cover(canvas, page: PageDescriptor, styles: StyleSheet1) -> None:
    payload = page.payload
    canvas.saveState()
    canvas.setFillColor(COVER_BACKGROUND)
    canvas.rect(0, 0, PAGE_WIDTH, PAGE_HEIGHT, stroke=0, fill=1)
    canvas.setFillColor(ACCENT)
    canvas.rect(0, PAGE_HEIGHT - 8, PAGE_WIDTH, 8, stroke=0, fill=1)
    canvas.restoreState()

    story: list[Any] = [
        Paragraph(_escape(payload.get('brand_name')), styles['CoverBrand']),
        Spacer(1, 180),
        Paragraph(_escape(payload.get('project_name')), styles['CoverTitle']),
        Paragraph(_escape(payload.get('subtitle')), styles['CoverSubtitle']),
        Paragraph(f'<b>Prepared for:</b> {_escape(payload.get("client_name"))}', styles['CoverMeta']),
        Paragraph(f'<b>Country:</b> {_escape(payload.get("client_country"))}', styles['CoverMeta']),
        Paragraph(f'<b>Date:</b> {_escape(payload.get("statement_date"))}', styles['CoverMeta']),
        Paragraph(f'<b>Reference:</b> {_escape(payload.get("reference"))}', styles['CoverMeta']),
        Spacer(1, 40),
        Paragraph(_escape(payload.get('website')), styles['CoverMeta']),
    ]
    _fill_frame(canvas, page, story)


def _draw_header_footer(canvas, page: PageDescriptor, *, fonts: ReportFonts, brand_name: str, website: str) -> None:
    canvas.saveState()

    top_line_y = PAGE_HEIGHT - 14 * mm
    bottom_line_y = 13.5 * mm

    canvas.setStrokeColor(RULE)
    canvas.setLineWidth(0.7)
    canvas.line(PAGE_MARGIN, top_line_y, PAGE_WIDTH - PAGE_MARGIN, top_line_y)
    canvas.line(PAGE_MARGIN, bottom_line_y, PAGE_WIDTH - PAGE_MARGIN, bottom_line_y)

    canvas.setFillColor(ACCENT)
    canvas.setFont(fonts.bold, 10)
    canvas.drawString(PAGE_MARGIN, top_line_y + 2.2 * mm, brand_name)

    canvas.setFillColor(MUTED)
    canvas.setFont(fonts.body, 9)
    canvas.drawRightString(PAGE_WIDTH - PAGE_MARGIN, top_line_y + 2.2 * mm, 'Project Proposal')
    canvas.drawString(PAGE_MARGIN, 8.5 * mm, website)
    canvas.drawRightString(PAGE_WIDTH - PAGE_MARGIN, 8.5 * mm, f'{page.number:02d}')

    canvas.restoreState()


def _fill_frame(canvas, page: PageDescriptor, story: list[Any]) -> None:
    frame = Frame(
        PAGE_MARGIN,
        18 * mm,
        PAGE_WIDTH - 2 * PAGE_MARGIN,
        PAGE_HEIGHT - 36 * mm,
        leftPadding=0,
        rightPadding=0,
        topPadding=0,
        bottomPadding=0,
        showBoundary=0,
    )
    pending = list(story)
    while pending:
        if frame.add(pending[0], canvas, trySplit=1):
            pending.pop(0)
            continue
        # Draw whatever part of the first overflowing flowable fits; the rest of the page is clipped.
        head = pending.pop(0)
        parts = frame.split(head, canvas)
        if parts and frame.add(parts[0], canvas, trySplit=1):
            pending[:0] = parts[1:]
        else:
            pending.insert(0, head)
        break

    if pending:
        logger.warning(
            'Page %s (%s) overflowed its frame; %s flowable(s) were clipped',
            page.number,
            page.kind.value,
            len(pending),
        )


_STORY_BUILDERS = {
    PageKind.profile: _profile_story,
    PageKind.content: _content_story,
    PageKind.continuation_content: _content_story,
    PageKind.commercials: _content_story,
    PageKind.deliverables: _content_story,
    PageKind.global_presence: _global_presence_story,
    PageKind.contact: _contact_story,
}


def render_page(page: PageDescriptor, *, settings: Settings | None = None) -> RenderedPage:
    """Draw one virtual page into a single-page PDF."""
    settings = settings or get_settings()
    fonts = _resolve_report_fonts()
    styles = _build_styles(fonts)

    buffer = io.BytesIO()
    canvas = pdf_canvas.Canvas(buffer, pagesize=(PAGE_WIDTH, PAGE_HEIGHT))
    canvas.setTitle(f'{settings.brand_name} proposal page {page.number}')

    if page.kind == PageKind.cover:
        _draw_cover(canvas, page, styles)
    else:
        _draw_header_footer(canvas, page, fonts=fonts, brand_name=settings.brand_name, website=settings.brand_website)
        builder = _STORY_BUILDERS.get(page.kind, _content_story)
        _fill_frame(canvas, page, builder(page, styles, width=PAGE_WIDTH - 2 * PAGE_MARGIN))

    canvas.showPage()
    canvas.save()
    return RenderedPage(
        page_id=page.page_id,
        number=page.number,
        width=PAGE_WIDTH,
        height=PAGE_HEIGHT,
        pdf_bytes=buffer.getvalue(),
    )


def render_report(pages: Sequence[PageDescriptor], *, settings: Settings | None = None) -> RenderedReport:
    settings = settings or get_settings()
    return RenderedReport(pages=tuple(render_page(page, settings=settings) for page in pages))
