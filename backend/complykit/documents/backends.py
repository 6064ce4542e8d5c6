from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.utils import timezone
from django.utils.module_loading import import_string
from openai import APITimeoutError, OpenAI, OpenAIError

from complykit.exceptions import GenerationFailed, GenerationTimeout

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    'You are an expert legal and business document writer. Generate professional, '
    'comprehensive documents ready for immediate use. Output ONLY the document content '
    'with proper formatting using Markdown.'
)


class GenerationBackend:
    name = ''

    def generate(self, prompt: str, context: dict[str, Any]) -> str:
        raise NotImplementedError


class OpenAIGenerationBackend(GenerationBackend):
    name = 'openai'

    def __init__(
        self,
        api_key: str,
        model: str = 'gpt-4o-mini',
        base_url: str | None = None,
        timeout: float = 90.0,
        max_retries: int = 1,
    ):
        self.model = model
        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url or None,
            timeout=timeout,
            max_retries=max_retries,
        )

    def generate(self, prompt: str, context: dict[str, Any]) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {'role': 'system', 'content': SYSTEM_PROMPT},
                    {'role': 'user', 'content': prompt},
                ],
                temperature=0.3,
                max_tokens=4000,
            )
        except APITimeoutError as exc:
            raise GenerationTimeout('The document generator timed out. Please try again.') from exc
        except OpenAIError as exc:
            logger.error('OpenAI document generation failed: %s', exc)
            raise GenerationFailed('Failed to generate document. Please try again.') from exc

        choices = response.choices or []
        content = (choices[0].message.content or '').strip() if choices else ''
        if not content:
            raise GenerationFailed('The document generator returned an empty document.')
        return content


class DemoGenerationBackend(GenerationBackend):
    """Deterministic placeholder content used when no model is configured."""

    name = 'demo'

    def generate(self, prompt: str, context: dict[str, Any]) -> str:
        label = context.get('document_label') or 'Document'
        business_name = context.get('business_name') or 'Your business'
        effective_date = context.get('date') or timezone.now().date().isoformat()
        return (
            f'# {label}\n\n'
            f'**{business_name}**\n\n'
            f'*Effective Date: {effective_date}*\n\n'
            '---\n\n'
            '> DEMO MODE: This is a sample document. Configure OPENAI_API_KEY to generate '
            'real, customized documents.\n\n'
            '## 1. Introduction\n\n'
            f'This {label.lower()} ("Document") governs the relationship between {business_name} '
            '("Company", "we", "us") and you ("User", "you").\n\n'
            '## 2. Sample Section\n\n'
            'This is a demonstration of the document format. The generated document will be fully '
            'customized to your business, jurisdiction, and specific requirements.\n\n'
            '## 3. Your Rights\n\n'
            f'This section will detail user rights under {context.get("jurisdiction_label") or "applicable law"}.\n\n'
            '## 4. Contact\n\n'
            f'For questions about this document, contact {business_name}.\n\n'
            '---\n\n'
            '*Generated by ComplyKit (demo mode)*\n'
        )


def default_backend() -> GenerationBackend:
    api_key = getattr(settings, 'OPENAI_API_KEY', '')
    if not api_key:
        return DemoGenerationBackend()
    return OpenAIGenerationBackend(
        api_key=api_key,
        model=getattr(settings, 'OPENAI_MODEL', 'gpt-4o-mini'),
        base_url=getattr(settings, 'OPENAI_BASE_URL', None),
        timeout=float(getattr(settings, 'DOCUMENT_GENERATION_TIMEOUT_SECONDS', 90.0)),
        max_retries=int(getattr(settings, 'DOCUMENT_GENERATION_MAX_RETRIES', 1)),
    )


def load_backend() -> GenerationBackend:
    factory = import_string(getattr(
        settings,
        'DOCUMENT_GENERATION_BACKEND',
        'complykit.documents.backends.default_backend',
    ))
    return factory()
