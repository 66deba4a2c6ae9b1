from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO

from pypdf import PdfReader

from ..config import Settings, get_settings


logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = 'application/pdf'
ACCEPTED_CONTENT_TYPES = frozenset(
    {
        PDF_CONTENT_TYPE,
        'application/msword',
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
        'text/plain',
    }
)


class AttachmentError(ValueError):
    pass


@dataclass
class Attachment:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def validate_attachment(attachment: Attachment, *, settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    if attachment.size > settings.max_attachment_bytes:
        raise AttachmentError(f'Max file size is {settings.max_attachment_bytes // (1024 * 1024)}MB.')
    if attachment.content_type not in ACCEPTED_CONTENT_TYPES:
        raise AttachmentError('Only .pdf, .doc, .docx, and .txt formats are supported.')


def validate_project_submission(
    description: str | None,
    country: str | None,
    attachment: Attachment | None = None,
    *,
    settings: Settings | None = None,
) -> None:
    """Reject a submission before it costs a model call."""
    settings = settings or get_settings()
    text = str(description or '')
    if len(text) < settings.min_description_chars:
        raise ValueError(f'Description must be at least {settings.min_description_chars} characters.')
    if len(text.split()) < settings.min_description_words:
        raise ValueError(f'Description must be at least {settings.min_description_words} words.')
    if not str(country or '').strip():
        raise ValueError('Country is required.')
    if attachment is not None:
        validate_attachment(attachment, settings=settings)


def _pdf_text(data: bytes) -> str:
    reader = PdfReader(BytesIO(data))
    pages = [(page.extract_text() or '').strip() for page in reader.pages]
    return '\n'.join(page for page in pages if page)


def extract_attachment_text(attachment: Attachment | None, *, settings: Settings | None = None) -> str:
    if attachment is None:
        return ''
    settings = settings or get_settings()

    logger.info('Processing file: %s (%s)', attachment.filename, attachment.content_type)
    if attachment.content_type == PDF_CONTENT_TYPE:
        try:
            text = _pdf_text(attachment.data)
        except Exception as exc:
            logger.error('PDF parse failed for %s: %s', attachment.filename, exc)
            raise AttachmentError('Failed to read PDF file') from exc
        logger.info('PDF parsed successfully, length: %s', len(text))
    else:
        # doc/docx are read as plain bytes; binary noise is replaced, not rejected
        text = attachment.data.decode('utf-8', errors='replace')

    return text[: settings.max_attachment_chars]
