from __future__ import annotations

from complykit.scan_engine.rules.accessibility import AccessibilityBasicsRule
from complykit.scan_engine.rules.base import BaseComplianceRule
from complykit.scan_engine.rules.contact import ContactInformationRule
from complykit.scan_engine.rules.cookies import (
    CookieConsentRule,
    CookieRejectOptionRule,
    ThirdPartyTrackingRule,
)
from complykit.scan_engine.rules.data_collection import (
    DataCollectionDisclosureRule,
    DoNotSellLinkRule,
    OptOutRule,
)
from complykit.scan_engine.rules.policies import (
    BrokenPrivacyLinkRule,
    BrokenTermsLinkRule,
    CookiePolicyRule,
    PrivacyPolicyRule,
    TermsOfServiceRule,
)
from complykit.scan_engine.rules.transport import HttpsRule
from complykit.scan_engine.types import RuleDefinition

# Bump whenever a rule is added, removed or reweighted.
RULE_CATALOG_VERSION = 2

DEFAULT_RULES: list[type[BaseComplianceRule]] = [
    PrivacyPolicyRule,
    TermsOfServiceRule,
    CookieConsentRule,
    ContactInformationRule,
    ThirdPartyTrackingRule,
    HttpsRule,
    BrokenPrivacyLinkRule,
    BrokenTermsLinkRule,
    CookiePolicyRule,
    DataCollectionDisclosureRule,
    OptOutRule,
    AccessibilityBasicsRule,
    DoNotSellLinkRule,
    CookieRejectOptionRule,
]

SITE_UNREACHABLE = RuleDefinition(
    code='SITE_UNREACHABLE',
    title='Website Unreachable',
    description='The website could not be fetched, so none of the compliance checks could run.',
    severity=50,
    recommendation='Make sure your website is online and publicly reachable, then scan again',
)

CATALOG: tuple[RuleDefinition, ...] = tuple(rule.definition() for rule in DEFAULT_RULES)
_BY_CODE: dict[str, RuleDefinition] = {item.code: item for item in (*CATALOG, SITE_UNREACHABLE)}

if len(_BY_CODE) != len(CATALOG) + 1:
    raise RuntimeError('Compliance rule codes must be unique.')


def get_rule(code: str) -> RuleDefinition | None:
    return _BY_CODE.get(code)


def applicable_rules(
    jurisdictions: set[str] | frozenset[str],
    rules: list[type[BaseComplianceRule]] | None = None,
) -> list[type[BaseComplianceRule]]:
    """Rules to evaluate for the given applicability set, in catalog order."""
    candidates = DEFAULT_RULES if rules is None else rules
    return [rule for rule in candidates if rule.definition().applies_to(jurisdictions)]
