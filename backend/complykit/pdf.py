from __future__ import annotations

import logging

from django.conf import settings
import requests

from complykit.exceptions import PdfRenderingUnavailable
from complykit.models import GeneratedDocument

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = 'application/pdf'


def render_document_pdf(document: GeneratedDocument) -> bytes:
    """Render a document's Markdown to PDF through the configured renderer service."""
    render_url = getattr(settings, 'PDF_RENDER_URL', '')
    if not render_url:
        raise PdfRenderingUnavailable('PDF export is not configured.')

    try:
        response = requests.post(
            render_url,
            json={
                'title': document.title,
                'markdown': document.content,
                'language': document.language,
            },
            headers={'Accept': PDF_CONTENT_TYPE},
            timeout=float(getattr(settings, 'PDF_RENDER_TIMEOUT_SECONDS', 20.0)),
        )
    except requests.RequestException as exc:
        logger.warning('PDF renderer request failed for document %s: %s', document.pk, exc)
        raise PdfRenderingUnavailable('PDF renderer is unavailable. Please try again.') from exc

    content_type = str(response.headers.get('Content-Type') or '').lower()
    if response.status_code >= 400 or not content_type.startswith(PDF_CONTENT_TYPE):
        logger.warning(
            'PDF renderer returned HTTP %s (%s) for document %s',
            response.status_code,
            content_type,
            document.pk,
        )
        raise PdfRenderingUnavailable('PDF renderer returned an invalid response.')
    return response.content


def pdf_filename(document: GeneratedDocument) -> str:
    safe = ''.join(char if char.isalnum() else '-' for char in document.title.lower())
    return '-'.join(part for part in safe.split('-') if part)[:80] + '.pdf'
