from __future__ import annotations

import logging
import re
import zlib
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Union

from ..config import Settings, get_settings
from ..types import ClientRecord
from .analysis import AnalysisDocument, FlatAnalysis, StructuredAnalysis, resolve_analysis
from .lines import split_lines
from .pagination import paginate
from .sections import RenderedBlock, bullet_list, render_field, render_lettered_field
from .tables import TableModel, try_parse_table


logger = logging.getLogger(__name__)


class PageKind(str, Enum):
    cover = 'cover'
    profile = 'profile'
    content = 'content'
    continuation_content = 'continuation_content'
    commercials = 'commercials'
    deliverables = 'deliverables'
    global_presence = 'global_presence'
    contact = 'contact'


@dataclass(frozen=True)
class PaymentCard:
    badge: str
    title: str
    body: str
    accent: bool = False


SectionContent = Union[RenderedBlock, TableModel, PaymentCard]


@dataclass(frozen=True)
class PageSection:
    title: str
    content: tuple[SectionContent, ...] = ()
    dimmed: bool = False
    variant: str = 'plain'


@dataclass(frozen=True)
class PageDescriptor:
    page_id: str
    kind: PageKind
    number: int
    heading: str = ''
    sections: tuple[PageSection, ...] = ()
    payload: dict[str, Any] = field(default_factory=dict)


PAYMENT_CARDS: tuple[PaymentCard, ...] = (
    PaymentCard(
        badge='01',
        title='50% Advance to Initiate',
        body=(
            'Required to mobilize the development team, set up the infrastructure, '
            'and kickstart the design phase.'
        ),
    ),
    PaymentCard(
        badge='02',
        title='50% Title Transfer',
        body=(
            'Payable upon successful User Acceptance Testing (UAT) sign-off and before '
            'the final source code handover.'
        ),
        accent=True,
    ),
)

PROCESS_STEPS: tuple[tuple[str, str], ...] = (
    ('Discover & Define', 'Ideation workshops, requirement mapping & stakeholder alignment.'),
    ('Design', 'Prototyping, UI/UX creation, system architecture blueprints.'),
    ('Develop', 'Agile-based development cycles with regular releases.'),
    ('Test & Deploy', 'QA, performance audits, secure deployment.'),
)

MISSION_STATEMENT = (
    'To engineer powerful software experiences that drive business growth, '
    'user engagement, and operational efficiency.'
)

HEADQUARTERS: tuple[str, ...] = ('Chennai, TN', 'Pune, MH', 'Aurangabad, MH')
CLIENT_REGIONS: tuple[str, ...] = ('USA', 'UAE', 'UK', 'Australia', 'Singapore', 'Germany')
PRESENCE_STATS: tuple[tuple[str, str], ...] = (('4+', 'Years'), ('250', 'Clients'), ('450+', 'Projects'))
CLIENT_NAMES: tuple[str, ...] = (
    'Spazorlab',
    'Yugandhara',
    'LinksUs',
    'SM Consultancy',
    'EnviFuture',
    'Mask Prod.',
    'SportzDen',
    'Immortals',
)


def format_statement_date(value: date) -> str:
    return f'{value:%B} {value.day}, {value.year}'


def _display_project_name(raw: str, brand: str) -> str:
    name = str(raw or '').strip()
    if brand:
        name = re.sub(rf'^{re.escape(brand)}[:\s]*', '', name, flags=re.IGNORECASE).strip()
    return name or 'Project Proposal'


def _reference_code(client: ClientRecord, project_name: str, today: date) -> str:
    seed = f'{client.email}|{project_name}'.encode('utf-8')
    return f'PROJ-{today.year}-{zlib.crc32(seed) % 10000:04d}'


def _table_or_blocks(text: str) -> tuple[SectionContent, ...]:
    table = try_parse_table(text)
    if table is not None:
        return (table,)
    return render_field(text)


class _PageSequence:
    """Numbers pages in display order and section headings by topic."""

    def __init__(self) -> None:
        self.pages: list[PageDescriptor] = []
        self._section_ordinal = 1

    def next_ordinal(self) -> int:
        self._section_ordinal += 1
        return self._section_ordinal

    def add(
        self,
        kind: PageKind,
        *,
        heading: str = '',
        sections: tuple[PageSection, ...] = (),
        payload: dict[str, Any] | None = None,
    ) -> PageDescriptor:
        number = len(self.pages) + 1
        page = PageDescriptor(
            page_id=f'pdf-page-{number}',
            kind=kind,
            number=number,
            heading=heading,
            sections=sections,
            payload=dict(payload or {}),
        )
        self.pages.append(page)
        return page


def _heading(ordinal: int, title: str) -> str:
    return f'{ordinal:02d} • {title}'


def _add_prologue(
    sequence: _PageSequence,
    *,
    client: ClientRecord,
    project_name: str,
    today: date,
    settings: Settings,
) -> None:
    display_name = _display_project_name(project_name, settings.brand_name)
    sequence.add(
        PageKind.cover,
        payload={
            'brand_name': settings.brand_name,
            'project_name': display_name,
            'subtitle': 'Project Proposal & Execution Plan',
            'client_name': client.name,
            'client_country': client.country,
            'statement_date': format_statement_date(today),
            'reference': _reference_code(client, display_name, today),
            'website': settings.brand_website,
        },
    )
    sequence.add(
        PageKind.profile,
        heading=_heading(sequence.next_ordinal(), 'Company Profile'),
        payload={
            'legal_name': settings.brand_legal_name,
            'process_steps': PROCESS_STEPS,
            'mission': MISSION_STATEMENT,
            'website': settings.brand_website,
        },
    )


def _add_epilogue(sequence: _PageSequence, *, client: ClientRecord, settings: Settings) -> None:
    sequence.add(
        PageKind.global_presence,
        payload={
            'headquarters': HEADQUARTERS,
            'client_regions': CLIENT_REGIONS,
            'stats': PRESENCE_STATS,
            'client_names': CLIENT_NAMES,
            'website': settings.brand_website,
        },
    )
    sequence.add(
        PageKind.contact,
        heading=_heading(sequence.next_ordinal(), 'Contact'),
        payload={
            'brand_legal_name': settings.brand_legal_name,
            'brand_email': settings.brand_email,
            'brand_phone': settings.brand_phone,
            'website': settings.brand_website,
            'client_name': client.name,
            'client_email': client.email,
            'client_contact': client.contact_number,
            'client_country': client.country,
        },
    )


def _add_flat_pages(sequence: _PageSequence, analysis: FlatAnalysis, settings: Settings) -> None:
    scope_lines = [line for line in split_lines(analysis.scope_of_work) if line.strip()]
    pagination = paginate(
        scope_lines,
        settings.scope_first_page_capacity,
        settings.scope_continuation_capacity,
    )

    details_ordinal = sequence.next_ordinal()
    sequence.add(
        PageKind.content,
        heading=_heading(details_ordinal, 'Project Details'),
        sections=(
            PageSection('Project Overview', render_field(analysis.project_overview)),
            PageSection('Scope of Work', render_lettered_field(pagination.first_chunk)),
        ),
    )
    for chunk in pagination.continuation_chunks:
        sequence.add(
            PageKind.continuation_content,
            heading=_heading(details_ordinal, 'Project Details (Cont.)'),
            sections=(PageSection('Scope of Work (Continued)', render_lettered_field(chunk), dimmed=True),),
        )
    if pagination.continuation_chunks:
        logger.info(
            'Scope of work spilled onto %s continuation page(s) (%s lines)',
            len(pagination.continuation_chunks),
            pagination.line_count,
        )

    sequence.add(
        PageKind.content,
        heading=_heading(sequence.next_ordinal(), 'Plan & Technology'),
        sections=(
            PageSection('Project Timeline', _table_or_blocks(analysis.timeline)),
            PageSection('Technologies & Frameworks', _table_or_blocks(analysis.technologies)),
        ),
    )
    sequence.add(
        PageKind.commercials,
        heading=_heading(sequence.next_ordinal(), 'Commercials'),
        sections=(
            PageSection('Approximate Investment', _table_or_blocks(analysis.investment), variant='highlight'),
            PageSection('Payment Terms', PAYMENT_CARDS, variant='cards'),
        ),
    )
    sequence.add(
        PageKind.deliverables,
        heading=_heading(sequence.next_ordinal(), 'Deliverables'),
        sections=(
            PageSection('List of Deliverables', render_lettered_field(split_lines(analysis.deliverables))),
        ),
    )


def _phase_section(index: int, phase) -> PageSection:
    lines = [f'- {activity}' for activity in phase.activities]
    if phase.deliverables:
        lines.append('#### Deliverables')
        lines.extend(f'- {item}' for item in phase.deliverables)
    return PageSection(phase.phase_name.strip() or f'Phase {index}', render_lettered_field(lines))


def _feature_section(index: int, feature) -> PageSection:
    blocks = render_field(feature.implementation_details)
    if feature.dependencies:
        blocks = blocks + render_field('Dependencies:') + bullet_list(feature.dependencies)
    return PageSection(feature.feature_name.strip() or f'Feature {index}', blocks)


def _estimation_lines(analysis: StructuredAnalysis) -> str:
    estimation = analysis.high_level_estimation
    lines: list[str] = []
    if estimation.complexity.strip():
        lines.append(f'Complexity: {estimation.complexity.strip()}')
    if estimation.estimated_timeline.strip():
        lines.append(f'Estimated Timeline: {estimation.estimated_timeline.strip()}')
    if estimation.estimation_notes.strip():
        lines.append(estimation.estimation_notes.strip())
    return '\n'.join(lines)


def _add_structured_pages(sequence: _PageSequence, analysis: StructuredAnalysis) -> None:
    understanding = analysis.project_understanding
    sequence.add(
        PageKind.content,
        heading=_heading(sequence.next_ordinal(), 'Project Understanding'),
        sections=(
            PageSection('Summary', render_field(understanding.summary)),
            PageSection('Business Objectives', bullet_list(understanding.business_objectives)),
            PageSection('Target Users', bullet_list(understanding.target_users)),
            PageSection('Key Challenges', bullet_list(understanding.key_challenges)),
        ),
    )

    approach = analysis.execution_approach
    sequence.add(
        PageKind.content,
        heading=_heading(sequence.next_ordinal(), 'Execution Strategy'),
        sections=(
            PageSection('Methodology', render_field(approach.methodology)),
            PageSection('Approach', render_field(approach.overview)),
            PageSection('Key Principles', bullet_list(approach.key_principles)),
            PageSection('Quality Assurance', bullet_list(approach.quality_assurance)),
        ),
    )

    sequence.add(
        PageKind.content,
        heading=_heading(sequence.next_ordinal(), 'Project Phases'),
        sections=tuple(
            _phase_section(index, phase) for index, phase in enumerate(analysis.project_phases, start=1)
        ),
    )

    architecture = analysis.technical_architecture
    sequence.add(
        PageKind.content,
        heading=_heading(sequence.next_ordinal(), 'Technical Architecture'),
        sections=(
            PageSection('Overview', render_field(architecture.overview)),
            PageSection('Frontend', bullet_list(architecture.frontend)),
            PageSection('Backend', bullet_list(architecture.backend)),
            PageSection('Database', bullet_list(architecture.database)),
            PageSection('Infrastructure', bullet_list(architecture.infrastructure)),
            PageSection('Integrations', bullet_list(architecture.integrations)),
            PageSection('Security Considerations', bullet_list(architecture.security_considerations)),
        ),
    )

    sequence.add(
        PageKind.content,
        heading=_heading(sequence.next_ordinal(), 'Feature Execution Plan'),
        sections=tuple(
            _feature_section(index, feature)
            for index, feature in enumerate(analysis.feature_execution_plan, start=1)
        ),
    )

    flexibility = analysis.assumptions_and_flexibility
    sequence.add(
        PageKind.content,
        heading=_heading(sequence.next_ordinal(), 'Summary & Estimation'),
        sections=(
            PageSection('Assumptions', bullet_list(flexibility.assumptions)),
            PageSection('Out of Scope', bullet_list(flexibility.out_of_scope)),
            PageSection('Flexibility', render_field(flexibility.flexibility_notes)),
            PageSection('High-Level Estimation', render_field(_estimation_lines(analysis)), variant='highlight'),
        ),
    )


def compose_report(
    client: ClientRecord | None,
    analysis: AnalysisDocument | dict[str, Any] | None,
    *,
    today: date | None = None,
    settings: Settings | None = None,
) -> list[PageDescriptor]:
    """Lay out the proposal as an ordered list of virtual pages.

    Returns an empty list when there is no analysis to render.
    """
    document = resolve_analysis(analysis)
    if document is None:
        return []

    settings = settings or get_settings()
    client = client or ClientRecord()
    today = today or date.today()

    sequence = _PageSequence()
    _add_prologue(
        sequence,
        client=client,
        project_name=document.project_name,
        today=today,
        settings=settings,
    )
    if isinstance(document, StructuredAnalysis):
        _add_structured_pages(sequence, document)
    else:
        _add_flat_pages(sequence, document, settings)
    _add_epilogue(sequence, client=client, settings=settings)

    logger.info('Composed %s report pages (%s variant)', len(sequence.pages), document.variant)
    return sequence.pages
