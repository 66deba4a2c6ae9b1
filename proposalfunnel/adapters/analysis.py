from __future__ import annotations

import json
import logging
from typing import Any

from ..config import Settings, get_settings
from ..prompts.analysis_prompt import build_analysis_system_prompt, build_analysis_user_prompt
from .attachments import Attachment, extract_attachment_text
from .llm import BasicLLMClient, BasicLLMConfig


logger = logging.getLogger(__name__)


class AnalysisError(RuntimeError):
    pass


def parse_analysis_payload(content: str | None) -> dict[str, Any]:
    if not content or not content.strip():
        raise AnalysisError('Empty response from AI')
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise AnalysisError(f'AI response is not valid JSON: {exc}') from exc
    if not isinstance(payload, dict):
        raise AnalysisError(f'AI response must be a JSON object, got {type(payload).__name__}')
    return payload


class AnalysisGenerator:
    """Turns a project description into the analysis document via chat completions."""

    def __init__(self, llm: BasicLLMClient | None = None, *, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.llm = llm or BasicLLMClient(BasicLLMConfig.from_settings(self.settings))

    async def generate(
        self,
        description: str,
        *,
        category: str | None = None,
        country: str | None = None,
        attachment: Attachment | None = None,
    ) -> dict[str, Any]:
        if not self.llm.configured:
            raise AnalysisError('OPENAI_API_KEY is not configured')

        document_text = extract_attachment_text(attachment, settings=self.settings)
        messages = [
            {
                'role': 'system',
                'content': build_analysis_system_prompt(brand_legal_name=self.settings.brand_legal_name),
            },
            {
                'role': 'user',
                'content': build_analysis_user_prompt(
                    description,
                    category=category,
                    country=country,
                    document_text=document_text,
                ),
            },
        ]

        logger.info('Sending prompt to %s (%s chars)', self.llm.cfg.model, len(messages[1]['content']))
        try:
            completion = await self.llm.client().chat.completions.create(
                model=self.llm.cfg.model,
                messages=messages,
                temperature=self.llm.cfg.temperature,
                response_format={'type': 'json_object'},
            )
        except Exception as exc:
            raise AnalysisError(f'{type(exc).__name__}: {exc}') from exc

        choices = getattr(completion, 'choices', None) or []
        content = choices[0].message.content if choices else None
        payload = parse_analysis_payload(content)

        usage = getattr(completion, 'usage', None)
        if usage is not None:
            logger.info(
                'Analysis tokens: input=%s output=%s',
                getattr(usage, 'prompt_tokens', 0),
                getattr(usage, 'completion_tokens', 0),
            )
        return payload

