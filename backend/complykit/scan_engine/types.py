from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

ALL_JURISDICTIONS = 'ALL'


@dataclass(frozen=True)
class RuleDefinition:
    code: str
    title: str
    description: str
    severity: int
    jurisdictions: frozenset[str] | str = ALL_JURISDICTIONS
    recommendation: str = ''

    def applies_to(self, applicability: set[str] | frozenset[str]) -> bool:
        if self.jurisdictions == ALL_JURISDICTIONS:
            return True
        return bool(set(self.jurisdictions) & set(applicability))


@dataclass(frozen=True)
class Verdict:
    code: str
    passed: bool
    evidence: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Issue:
    code: str
    title: str
    description: str
    severity: int
    passed: bool

    def as_dict(self) -> dict[str, Any]:
        return {
            'code': self.code,
            'title': self.title,
            'description': self.description,
            'severity': self.severity,
            'passed': self.passed,
        }


@dataclass
class ScanOutcome:
    url: str
    verdicts: list[Verdict]
    issues: list[Issue]
    score: int
    risk_level: str
    jurisdiction: str
    jurisdiction_confidence: float
    recommendations: list[str]
    signals: dict[str, Any] = field(default_factory=dict)
    reachable: bool = True
