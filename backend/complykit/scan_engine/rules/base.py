from __future__ import annotations

from typing import Any

from complykit.scan_engine.types import ALL_JURISDICTIONS, RuleDefinition, Verdict


class BaseComplianceRule:
    code = ''
    title = ''
    description = ''
    severity = 0
    jurisdictions: frozenset[str] | str = ALL_JURISDICTIONS
    recommendation = ''

    @classmethod
    def definition(cls) -> RuleDefinition:
        return RuleDefinition(
            code=cls.code,
            title=cls.title,
            description=cls.description,
            severity=cls.severity,
            jurisdictions=cls.jurisdictions,
            recommendation=cls.recommendation,
        )

    def evaluate(self, signals: dict[str, Any]) -> Verdict:
        raise NotImplementedError

    def verdict(self, *, passed: bool, evidence: dict[str, Any] | None = None) -> Verdict:
        return Verdict(code=self.code, passed=bool(passed), evidence=evidence or {})


def link_is_broken(status: Any) -> bool:
    """A probed link is broken when the probe failed (status 0) or returned an HTTP error."""
    if status is None:
        return False
    try:
        return int(status) == 0 or int(status) >= 400
    except (TypeError, ValueError):
        return True
