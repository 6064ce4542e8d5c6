from __future__ import annotations

from datetime import timedelta
import logging
from typing import Any

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from complykit.domain_utils import normalize_url
from complykit.models import Account, ScanResult
from complykit.scan_engine.engine import Scanner
from complykit.scan_engine.rules import RULE_CATALOG_VERSION, SITE_UNREACHABLE
from complykit.scan_engine.types import ScanOutcome

logger = logging.getLogger(__name__)


def _cache_ttl() -> timedelta | None:
    hours = int(getattr(settings, 'SCAN_CACHE_TTL_HOURS', 24))
    if hours <= 0:
        return None
    return timedelta(hours=hours)


def _is_unreachable(scan: ScanResult) -> bool:
    return any(item.get('code') == SITE_UNREACHABLE.code for item in scan.issues or [])


def find_cached_scan(url: str) -> ScanResult | None:
    ttl = _cache_ttl()
    if ttl is None:
        return None

    latest = (
        ScanResult.objects.filter(
            url=url,
            created_at__gte=timezone.now() - ttl,
            rule_catalog_version=RULE_CATALOG_VERSION,
        )
        .order_by('-created_at')
        .first()
    )
    if latest is None or _is_unreachable(latest):
        return None
    return latest


def persist_outcome(outcome: ScanOutcome, account: Account | None = None) -> ScanResult:
    with transaction.atomic():
        scan = ScanResult.objects.create(
            url=outcome.url,
            score=outcome.score,
            risk_level=outcome.risk_level,
            jurisdiction=outcome.jurisdiction,
            jurisdiction_confidence=max(0.0, min(1.0, outcome.jurisdiction_confidence)),
            issues=[issue.as_dict() for issue in outcome.issues],
            recommendations=list(outcome.recommendations),
            signals=outcome.signals,
            rule_catalog_version=RULE_CATALOG_VERSION,
            account=account,
        )
    return scan


def run_and_persist_scan(
    raw_url: str,
    account: Account | None = None,
    use_cache: bool = True,
    scanner: Scanner | None = None,
) -> tuple[ScanResult, bool]:
    """Scan ``raw_url`` and store the result.

    Returns ``(scan, from_cache)``. A recent successful scan of the same
    normalized URL is reused instead of fetching the site again.
    """
    url = normalize_url(raw_url)
    if use_cache:
        cached = find_cached_scan(url)
        if cached is not None:
            logger.debug('Reusing cached scan %s for %s', cached.pk, url)
            return cached, True

    outcome = (scanner or Scanner()).scan(url)
    scan = persist_outcome(outcome, account=account)
    logger.info(
        'Scanned %s: score=%s risk=%s jurisdiction=%s',
        url,
        scan.score,
        scan.risk_level,
        scan.jurisdiction,
    )
    return scan, False


def build_scan_response(scan: ScanResult, from_cache: bool = False) -> dict[str, Any]:
    return {
        'id': str(scan.id),
        'url': scan.url,
        'score': scan.score,
        'riskLevel': scan.risk_level,
        'jurisdiction': scan.jurisdiction,
        'jurisdictionConfidence': scan.jurisdiction_confidence,
        'issues': list(scan.issues or []),
        'recommendations': list(scan.recommendations or []),
        'ruleCatalogVersion': scan.rule_catalog_version,
        'createdAt': scan.created_at.isoformat() if scan.created_at else None,
        'fromCache': from_cache,
    }
