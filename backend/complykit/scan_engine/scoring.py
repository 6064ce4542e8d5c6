from __future__ import annotations

from typing import Any, Iterable

from django.conf import settings

from complykit.scan_engine.types import Issue

MAX_SCORE = 100
LOW_RISK_MIN_SCORE = 80
MEDIUM_RISK_MIN_SCORE = 50
GLOBAL = 'GLOBAL'


def _severity(issue: Issue | dict[str, Any]) -> int:
    if isinstance(issue, dict):
        return int(issue.get('severity') or 0)
    return int(issue.severity)


def _passed(issue: Issue | dict[str, Any]) -> bool:
    if isinstance(issue, dict):
        return bool(issue.get('passed'))
    return bool(issue.passed)


def score_issues(issues: Iterable[Issue | dict[str, Any]]) -> int:
    deductions = sum(_severity(issue) for issue in issues if not _passed(issue))
    return max(0, min(MAX_SCORE, MAX_SCORE - deductions))


def risk_level_from_score(score: int) -> str:
    if score >= LOW_RISK_MIN_SCORE:
        return 'LOW'
    if score >= MEDIUM_RISK_MIN_SCORE:
        return 'MEDIUM'
    return 'HIGH'


def score_and_risk(issues: Iterable[Issue | dict[str, Any]]) -> tuple[int, str]:
    score = score_issues(issues)
    return score, risk_level_from_score(score)


def min_confidence() -> float:
    return float(getattr(settings, 'SCAN_JURISDICTION_MIN_CONFIDENCE', 0.5))


def resolve_jurisdiction(hint: str | None, confidence: float) -> str:
    if hint and confidence >= min_confidence():
        return hint
    return GLOBAL


def build_recommendations(issues: Iterable[Issue | dict[str, Any]], recommendation_for) -> list[str]:
    """Recommendation text for each failing issue, in issue order.

    ``recommendation_for`` maps a rule code to its recommendation text; unknown
    codes fall back to a generic "Address: <title>" line.
    """
    recommendations: list[str] = []
    for issue in issues:
        if _passed(issue):
            continue
        if isinstance(issue, dict):
            code, title = issue.get('code', ''), issue.get('title', '')
        else:
            code, title = issue.code, issue.title
        text = recommendation_for(code) or f'Address: {title}'
        if text not in recommendations:
            recommendations.append(text)
    return recommendations
