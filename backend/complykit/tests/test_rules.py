from django.test import SimpleTestCase

from complykit.scan_engine.rules import (
    CATALOG,
    SITE_UNREACHABLE,
    applicable_rules,
    get_rule,
)
from complykit.scan_engine.rules.accessibility import AccessibilityBasicsRule
from complykit.scan_engine.rules.cookies import CookieRejectOptionRule, ThirdPartyTrackingRule
from complykit.scan_engine.rules.policies import BrokenPrivacyLinkRule, CookiePolicyRule, PrivacyPolicyRule

BASELINE_CODES = [
    'MISSING_PRIVACY_POLICY',
    'MISSING_TERMS',
    'MISSING_COOKIE_CONSENT',
    'NO_CONTACT_INFO',
    'THIRD_PARTY_COOKIES',
    'NO_HTTPS',
    'BROKEN_PRIVACY_LINK',
    'BROKEN_TERMS_LINK',
    'MISSING_COOKIE_POLICY',
    'NO_DATA_COLLECTION_DISCLOSURE',
    'NO_OPT_OUT',
    'NO_ACCESSIBILITY_BASICS',
]


class RuleCatalogTests(SimpleTestCase):
    def test_catalog_codes_are_unique_and_ordered(self):
        codes = [rule.code for rule in CATALOG]

        self.assertEqual(len(codes), len(set(codes)))
        self.assertEqual(codes[:12], BASELINE_CODES)

    def test_baseline_severities(self):
        severities = {rule.code: rule.severity for rule in CATALOG}

        self.assertEqual(severities['MISSING_PRIVACY_POLICY'], 15)
        self.assertEqual(severities['MISSING_COOKIE_CONSENT'], 15)
        self.assertEqual(severities['THIRD_PARTY_COOKIES'], 12)
        self.assertEqual(severities['NO_ACCESSIBILITY_BASICS'], 5)
        self.assertEqual(sum(severities[code] for code in BASELINE_CODES), 118)

    def test_get_rule_includes_the_unreachable_definition(self):
        self.assertEqual(get_rule('NO_HTTPS').severity, 10)
        self.assertIs(get_rule('SITE_UNREACHABLE'), SITE_UNREACHABLE)
        self.assertEqual(SITE_UNREACHABLE.severity, 50)
        self.assertIsNone(get_rule('NOT_A_RULE'))

    def test_scoped_rules_only_apply_to_their_jurisdictions(self):
        global_codes = [rule.code for rule in applicable_rules({'GLOBAL'})]
        us_codes = [rule.code for rule in applicable_rules({'GLOBAL', 'US_CCPA'})]
        uk_codes = [rule.code for rule in applicable_rules({'GLOBAL', 'UK_DPA'})]

        self.assertEqual(global_codes, BASELINE_CODES)
        self.assertEqual(us_codes, BASELINE_CODES + ['NO_DO_NOT_SELL_LINK'])
        self.assertEqual(uk_codes, BASELINE_CODES + ['NO_COOKIE_REJECT_OPTION'])


class RuleEvaluationTests(SimpleTestCase):
    def test_privacy_policy_rule(self):
        self.assertTrue(PrivacyPolicyRule().evaluate({'links': {'privacy': 'https://example.com/privacy'}}).passed)
        self.assertFalse(PrivacyPolicyRule().evaluate({'links': {'privacy': None}}).passed)
        self.assertFalse(PrivacyPolicyRule().evaluate({}).passed)

    def test_undisclosed_trackers_fail(self):
        rule = ThirdPartyTrackingRule()

        self.assertFalse(rule.evaluate({'trackers': ['hotjar'], 'links': {}}).passed)
        self.assertTrue(rule.evaluate({'trackers': ['hotjar'], 'links': {'privacy': '/privacy'}}).passed)
        self.assertTrue(rule.evaluate({'trackers': ['hotjar'], 'cookie_consent': {'detected': True}}).passed)
        self.assertTrue(rule.evaluate({'trackers': []}).passed)

    def test_cookie_policy_only_required_with_trackers(self):
        rule = CookiePolicyRule()

        self.assertTrue(rule.evaluate({'trackers': [], 'links': {}}).passed)
        self.assertFalse(rule.evaluate({'trackers': ['facebook_pixel'], 'links': {}}).passed)

    def test_broken_link_statuses(self):
        rule = BrokenPrivacyLinkRule()

        self.assertTrue(rule.evaluate({'link_status': {'privacy': None}}).passed)
        self.assertTrue(rule.evaluate({'link_status': {'privacy': 200}}).passed)
        self.assertFalse(rule.evaluate({'link_status': {'privacy': 404}}).passed)
        self.assertFalse(rule.evaluate({'link_status': {'privacy': 0}}).passed)

    def test_accessibility_requires_majority_alt_text(self):
        rule = AccessibilityBasicsRule()

        self.assertTrue(rule.evaluate({'images': {'total': 0, 'with_alt': 0}}).passed)
        self.assertFalse(rule.evaluate({'images': {'total': 2, 'with_alt': 1}}).passed)
        self.assertTrue(rule.evaluate({'images': {'total': 3, 'with_alt': 2}}).passed)

    def test_reject_option_needed_once_site_asks_for_consent(self):
        rule = CookieRejectOptionRule()

        self.assertFalse(rule.evaluate({'cookie_consent': {'detected': True}, 'cookie_reject_option': False}).passed)
        self.assertTrue(rule.evaluate({'cookie_consent': {'detected': True}, 'cookie_reject_option': True}).passed)
        self.assertTrue(rule.evaluate({'cookie_consent': {'detected': False}, 'trackers': []}).passed)
