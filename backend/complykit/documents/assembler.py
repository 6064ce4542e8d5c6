from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from dataclasses import dataclass
import logging
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from complykit.documents.backends import GenerationBackend, load_backend
from complykit.documents.templates import DEFAULT_LANGUAGE, TemplateCatalog
from complykit.exceptions import ComplianceError, GenerationFailed, GenerationTimeout, InvalidInput
from complykit.ledger import AuthorizationToken, authorize, refund
from complykit.models import Account, DocumentType, GeneratedDocument, Jurisdiction, ScanResult

logger = logging.getLogger(__name__)


@dataclass
class DocumentRequest:
    document_type: str
    business_name: str
    business_type: str = ''
    website_url: str = ''
    jurisdiction: str = Jurisdiction.GLOBAL
    language: str = DEFAULT_LANGUAGE
    scan_id: Any = None
    additional_info: str = ''


def document_type_choices() -> list[dict[str, str]]:
    return [{'value': value, 'label': label} for value, label in DocumentType.choices]


def _validate(request: DocumentRequest) -> None:
    if request.document_type not in DocumentType.values:
        raise InvalidInput(f'Unknown document type: {request.document_type}')
    if request.jurisdiction not in Jurisdiction.values:
        raise InvalidInput(f'Unknown jurisdiction: {request.jurisdiction}')
    if not (request.business_name or '').strip():
        raise InvalidInput('Business name is required.')
    if not (request.language or '').strip():
        raise InvalidInput('Language is required.')


def _load_scan(scan_id: Any) -> ScanResult | None:
    if not scan_id:
        return None
    try:
        return ScanResult.objects.get(pk=scan_id)
    except (ScanResult.DoesNotExist, ValidationError, ValueError) as exc:
        raise InvalidInput(f'Unknown scan: {scan_id}') from exc


def build_context(request: DocumentRequest, scan: ScanResult | None) -> dict[str, Any]:
    failing_issues = []
    if scan is not None:
        failing_issues = [
            {'code': item.get('code'), 'title': item.get('title'), 'description': item.get('description')}
            for item in scan.issues or []
            if not item.get('passed')
        ]
    return {
        'document_type': request.document_type,
        'document_label': DocumentType(request.document_type).label,
        'business_name': request.business_name.strip(),
        'business_type': (request.business_type or '').strip(),
        'website_url': (request.website_url or (scan.url if scan else '')).strip(),
        'jurisdiction': request.jurisdiction,
        'jurisdiction_label': Jurisdiction(request.jurisdiction).label,
        'language': request.language.strip(),
        'additional_info': (request.additional_info or '').strip(),
        'date': timezone.now().date().isoformat(),
        'failing_issues': failing_issues,
    }


def _generate_with_timeout(backend: GenerationBackend, prompt: str, context: dict[str, Any]) -> str:
    timeout = float(getattr(settings, 'DOCUMENT_GENERATION_TIMEOUT_SECONDS', 90.0))
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(backend.generate, prompt, context)
    try:
        return future.result(timeout=timeout)
    except FuturesTimeout as exc:
        raise GenerationTimeout(f'Document generation exceeded {timeout:g} seconds.') from exc
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


def generate_document(
    account: Account,
    request: DocumentRequest,
    backend: GenerationBackend | None = None,
    catalog: TemplateCatalog | None = None,
) -> GeneratedDocument:
    _validate(request)
    scan = _load_scan(request.scan_id)
    catalog = catalog or TemplateCatalog(template_dir=getattr(settings, 'DOCUMENT_TEMPLATE_DIR', ''))
    template_key = catalog.resolve(request.document_type, request.jurisdiction, request.language)

    token = authorize(account.pk, cost=1, reference=f'document:{request.document_type}')
    try:
        return _assemble(account, request, scan, token, template_key, catalog, backend)
    except ComplianceError:
        refund(token)
        raise
    except Exception as exc:
        refund(token)
        logger.exception('Document generation failed for account %s', account.pk)
        raise GenerationFailed('Failed to generate document. Please try again.') from exc


def _assemble(
    account: Account,
    request: DocumentRequest,
    scan: ScanResult | None,
    token: AuthorizationToken,
    template_key,
    catalog: TemplateCatalog,
    backend: GenerationBackend | None,
) -> GeneratedDocument:
    context = build_context(request, scan)
    prompt = catalog.render(template_key, context)
    backend = backend or load_backend()
    content = _generate_with_timeout(backend, prompt, context)

    with transaction.atomic():
        document = GeneratedDocument.objects.create(
            account=account,
            document_type=request.document_type,
            title=f'{context["document_label"]} - {context["business_name"]}',
            content=content,
            business_name=context['business_name'],
            business_type=context['business_type'],
            website_url=context['website_url'],
            jurisdiction=request.jurisdiction,
            language=context['language'],
            template_key=str(template_key),
            scan=scan,
        )

    logger.info(
        'Generated %s document %s for account %s via %s (debit %s)',
        request.document_type,
        document.pk,
        account.pk,
        backend.name or backend.__class__.__name__,
        token.transaction_id,
    )
    return document


def list_documents(account: Account) -> QuerySet[GeneratedDocument]:
    return GeneratedDocument.objects.filter(account=account).order_by('-created_at', '-id')


def get_document(account: Account, document_id: int) -> GeneratedDocument | None:
    return GeneratedDocument.objects.filter(account=account, pk=document_id).first()
