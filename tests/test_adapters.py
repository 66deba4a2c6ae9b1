"""Tests for attachment handling and analysis generation."""

from __future__ import annotations

import asyncio
import io
from types import SimpleNamespace

import pytest
from reportlab.pdfgen import canvas as pdf_canvas

from proposalfunnel.adapters.analysis import AnalysisError, AnalysisGenerator, parse_analysis_payload
from proposalfunnel.adapters.attachments import (
    Attachment,
    AttachmentError,
    extract_attachment_text,
    validate_attachment,
    validate_project_submission,
)
from proposalfunnel.adapters.llm import BasicLLMConfig
from proposalfunnel.prompts.analysis_prompt import build_analysis_user_prompt


DESCRIPTION = ' '.join(['Build a marketplace for local artisans with secure checkout.'] * 12)


def _pdf_bytes(text: str) -> bytes:
    buffer = io.BytesIO()
    canvas = pdf_canvas.Canvas(buffer)
    canvas.drawString(72, 720, text)
    canvas.showPage()
    canvas.save()
    return buffer.getvalue()


# ---------------------------------------------------------------------------
# Submission validation
# ---------------------------------------------------------------------------

class TestValidateSubmission:
    def test_valid(self, settings):
        validate_project_submission(DESCRIPTION, 'India')

    def test_too_few_characters(self, settings):
        with pytest.raises(ValueError, match='500 characters'):
            validate_project_submission('short', 'India')

    def test_too_few_words(self, settings):
        with pytest.raises(ValueError, match='50 words'):
            validate_project_submission('x' * 600, 'India')

    def test_country_required(self, settings):
        with pytest.raises(ValueError, match='Country'):
            validate_project_submission(DESCRIPTION, '  ')

    def test_oversized_attachment(self, settings):
        attachment = Attachment('big.pdf', 'application/pdf', b'0' * (settings.max_attachment_bytes + 1))
        with pytest.raises(AttachmentError, match='Max file size'):
            validate_attachment(attachment)

    def test_unsupported_type(self, settings):
        with pytest.raises(AttachmentError):
            validate_project_submission(DESCRIPTION, 'India', Attachment('a.png', 'image/png', b'x'))


# ---------------------------------------------------------------------------
# Attachment text
# ---------------------------------------------------------------------------

class TestExtractAttachmentText:
    def test_none(self, settings):
        assert extract_attachment_text(None) == ''

    def test_plain_text_is_truncated(self, settings):
        attachment = Attachment('brief.txt', 'text/plain', b'a' * (settings.max_attachment_chars + 50))
        assert len(extract_attachment_text(attachment)) == settings.max_attachment_chars

    def test_pdf_text(self, settings):
        attachment = Attachment('brief.pdf', 'application/pdf', _pdf_bytes('Artisan marketplace brief'))
        assert 'Artisan marketplace brief' in extract_attachment_text(attachment)

    def test_broken_pdf(self, settings):
        with pytest.raises(AttachmentError, match='Failed to read PDF file'):
            extract_attachment_text(Attachment('broken.pdf', 'application/pdf', b'not a pdf'))


# ---------------------------------------------------------------------------
# Prompt + generation
# ---------------------------------------------------------------------------

class FakeCompletions:
    def __init__(self, content):
        self.content = content
        self.requests: list[dict] = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)], usage=None)


class FakeLLM:
    def __init__(self, content, *, configured: bool = True):
        self.cfg = BasicLLMConfig(base_url=None, api_key='sk-test', model='gpt-4o', temperature=0.4, timeout_seconds=60)
        self.configured = configured
        self.completions = FakeCompletions(content)

    def client(self):
        return SimpleNamespace(chat=SimpleNamespace(completions=self.completions))


class TestAnalysisGenerator:
    def test_user_prompt(self):
        prompt = build_analysis_user_prompt('Desc', category='Automation', country='India', document_text='Doc')
        assert prompt == 'Project Description:\nDesc\nService Category: Automation\nClient Country: India\n\nProject Document Content:\nDoc'

    def test_user_prompt_skips_missing_parts(self):
        assert build_analysis_user_prompt('Desc') == 'Project Description:\nDesc\n'

    def test_generate(self, settings):
        llm = FakeLLM('{"projectName": "Artisan Market"}')
        generator = AnalysisGenerator(llm, settings=settings)

        result = asyncio.run(generator.generate(DESCRIPTION, category='Automation', country='India'))

        assert result == {'projectName': 'Artisan Market'}
        request = llm.completions.requests[0]
        assert request['model'] == 'gpt-4o'
        assert request['response_format'] == {'type': 'json_object'}
        assert request['messages'][0]['role'] == 'system'
        assert 'Client Country: India' in request['messages'][1]['content']

    def test_unconfigured_client(self, settings):
        generator = AnalysisGenerator(FakeLLM('{}', configured=False), settings=settings)
        with pytest.raises(AnalysisError):
            asyncio.run(generator.generate(DESCRIPTION))

    @pytest.mark.parametrize('content', [None, '', '   ', '{broken', '[1, 2]', '"text"'])
    def test_bad_responses(self, settings, content):
        generator = AnalysisGenerator(FakeLLM(content), settings=settings)
        with pytest.raises(AnalysisError):
            asyncio.run(generator.generate(DESCRIPTION))

    def test_parse_payload(self):
        assert parse_analysis_payload('{"a": 1}') == {'a': 1}
