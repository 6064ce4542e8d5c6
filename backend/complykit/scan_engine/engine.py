from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
import logging
from typing import Any, Callable

from django.conf import settings
from django.utils.module_loading import import_string

from complykit.domain_utils import normalize_url
from complykit.exceptions import ComplianceError, UpstreamUnavailable
from complykit.scan_engine.fetcher import fetch_page, probe_link
from complykit.scan_engine.rules import DEFAULT_RULES, SITE_UNREACHABLE, applicable_rules
from complykit.scan_engine.rules.base import BaseComplianceRule
from complykit.scan_engine.scoring import (
    GLOBAL,
    build_recommendations,
    resolve_jurisdiction,
    score_and_risk,
)
from complykit.scan_engine.signals import extract_signals
from complykit.scan_engine.types import Issue, ScanOutcome, Verdict

logger = logging.getLogger(__name__)

Classifier = Callable[[str, dict[str, Any]], tuple[str | None, float, dict[str, Any]]]
PROBED_LINKS = ('privacy', 'terms')


def load_classifier() -> Classifier:
    return import_string(getattr(
        settings,
        'SCAN_JURISDICTION_CLASSIFIER',
        'complykit.scan_engine.jurisdiction.infer_jurisdiction',
    ))


def _classify(classifier: Classifier, url: str, signals: dict[str, Any]) -> tuple[str | None, float, dict[str, Any]]:
    try:
        return classifier(url, signals)
    except Exception as exc:
        logger.warning('Jurisdiction classifier failed for %s: %s', url, exc)
        return None, 0.0, {}


@dataclass
class Scanner:
    rules: list[type[BaseComplianceRule]] | None = None
    classifier: Classifier | None = None
    probe_linked_pages: bool | None = None

    def scan(self, raw_url: str) -> ScanOutcome:
        url = normalize_url(raw_url)
        classifier = self.classifier or load_classifier()

        try:
            page = fetch_page(url)
        except UpstreamUnavailable as exc:
            logger.warning('Scan of %s failed to fetch the site: %s', url, exc.message)
            return self._unreachable(url, exc.message, classifier)

        try:
            signals = extract_signals(page.html, page.final_url)
        except Exception as exc:
            logger.warning('Scan of %s failed to parse the page: %s', url, exc)
            return self._unreachable(url, f'Could not parse page: {exc}', classifier)

        signals['fetch'] = {
            'status_code': page.status_code,
            'final_url': page.final_url,
            'truncated': page.truncated,
        }
        if self._should_probe():
            self._probe_links(signals)

        hint, confidence, evidence = _classify(classifier, page.final_url, signals)
        signals['jurisdiction_evidence'] = evidence
        jurisdiction = resolve_jurisdiction(hint, confidence)
        applicability = {GLOBAL, jurisdiction}

        rule_classes = applicable_rules(applicability, self.rules)
        verdicts: list[Verdict] = []
        issues: list[Issue] = []
        for rule_class in rule_classes:
            rule = rule_class()
            verdict = rule.evaluate(signals)
            verdicts.append(verdict)
            issues.append(_issue_for(rule_class, verdict.passed))

        score, risk_level = score_and_risk(issues)
        recommendation_by_code = {rule.code: rule.recommendation for rule in rule_classes}
        signals['verdict_evidence'] = {verdict.code: verdict.evidence for verdict in verdicts}

        return ScanOutcome(
            url=url,
            verdicts=verdicts,
            issues=issues,
            score=score,
            risk_level=risk_level,
            jurisdiction=jurisdiction,
            jurisdiction_confidence=float(confidence),
            recommendations=build_recommendations(issues, recommendation_by_code.get),
            signals=signals,
        )

    def _should_probe(self) -> bool:
        if self.probe_linked_pages is not None:
            return self.probe_linked_pages
        return bool(getattr(settings, 'SCAN_PROBE_LINKED_PAGES', True))

    def _probe_links(self, signals: dict[str, Any]) -> None:
        links = signals.get('links') or {}
        statuses = signals.setdefault('link_status', {})
        probed: dict[str, int] = {}
        for name in PROBED_LINKS:
            target = links.get(name)
            if not target:
                continue
            if target not in probed:
                probed[target] = probe_link(target)
            statuses[name] = probed[target]

    def _unreachable(self, url: str, reason: str, classifier: Classifier) -> ScanOutcome:
        hint, confidence, evidence = _classify(classifier, url, {})
        verdict = Verdict(code=SITE_UNREACHABLE.code, passed=False, evidence={'reason': reason})
        issue = Issue(
            code=SITE_UNREACHABLE.code,
            title=SITE_UNREACHABLE.title,
            description=SITE_UNREACHABLE.description,
            severity=SITE_UNREACHABLE.severity,
            passed=False,
        )
        score, risk_level = score_and_risk([issue])
        return ScanOutcome(
            url=url,
            verdicts=[verdict],
            issues=[issue],
            score=score,
            risk_level=risk_level,
            jurisdiction=resolve_jurisdiction(hint, confidence),
            jurisdiction_confidence=float(confidence),
            recommendations=[SITE_UNREACHABLE.recommendation],
            signals={'error': reason, 'jurisdiction_evidence': evidence},
            reachable=False,
        )


def _issue_for(rule_class: type[BaseComplianceRule], passed: bool) -> Issue:
    return Issue(
        code=rule_class.code,
        title=rule_class.title,
        description=rule_class.description,
        severity=rule_class.severity,
        passed=passed,
    )


def scan_many(
    urls: list[str],
    scanner: Scanner | None = None,
    max_workers: int | None = None,
) -> list[ScanOutcome | ComplianceError]:
    """Scan independent URLs concurrently, returning outcomes in input order.

    Invalid URLs come back as their ``InvalidInput`` error instead of aborting
    the batch.
    """
    if not urls:
        return []

    scanner = scanner or Scanner(rules=list(DEFAULT_RULES))
    workers = max_workers or int(getattr(settings, 'SCAN_MAX_CONCURRENCY', 4))
    workers = max(1, min(workers, len(urls)))

    def _run(url: str) -> ScanOutcome | ComplianceError:
        try:
            return scanner.scan(url)
        except ComplianceError as exc:
            return exc

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(_run, urls))
