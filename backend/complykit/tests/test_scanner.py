from datetime import timedelta
from unittest.mock import patch

from django.test import SimpleTestCase, TestCase, override_settings

from complykit.exceptions import InvalidInput, UpstreamUnavailable
from complykit.models import ScanResult
from complykit.scan_engine.engine import Scanner, scan_many
from complykit.scan_engine.fetcher import FetchedPage
from complykit.scan_engine.rules.base import BaseComplianceRule
from complykit.services import find_cached_scan, run_and_persist_scan

COMPLIANT_HTML = """
<html lang="en">
<body>
  <div class="cookie-consent"><button>Accept</button><button>Reject all</button></div>
  <a href="/privacy-policy">Privacy Policy</a>
  <a href="/terms">Terms of Service</a>
  <a href="/contact">Contact us</a>
</body>
</html>
"""

GERMAN_TRACKING_HTML = """
<html lang="de">
<head><script src="https://www.google-analytics.com/analytics.js"></script></head>
<body>
  <div id="cookie-notice">Wir verwenden Cookies. <button>OK</button></div>
  <a href="/datenschutz">Datenschutz</a>
  <a href="/impressum">Impressum</a>
</body>
</html>
"""


def _page(url, html):
    return FetchedPage(requested_url=url, final_url=f'{url}/', status_code=200, html=html)


def _no_jurisdiction(url, signals):
    return None, 0.0, {}


class AlwaysFailsRule(BaseComplianceRule):
    code = 'RULE_A'
    title = 'Rule A'
    severity = 30

    def evaluate(self, signals):
        return self.verdict(passed=False)


class AlwaysPassesRule(BaseComplianceRule):
    code = 'RULE_B'
    title = 'Rule B'
    severity = 20
    jurisdictions = frozenset({'GLOBAL'})

    def evaluate(self, signals):
        return self.verdict(passed=True)


class ScannerTests(SimpleTestCase):
    @patch('complykit.scan_engine.engine.probe_link', return_value=200)
    @patch('complykit.scan_engine.engine.fetch_page')
    def test_compliant_site_scores_full_marks(self, fetch_mock, probe_mock):
        fetch_mock.return_value = _page('https://example.com', COMPLIANT_HTML)

        outcome = Scanner().scan('example.com')

        self.assertEqual(outcome.url, 'https://example.com')
        self.assertEqual(outcome.score, 100)
        self.assertEqual(outcome.risk_level, 'LOW')
        self.assertEqual(outcome.jurisdiction, 'GLOBAL')
        self.assertEqual(len(outcome.issues), 12)
        self.assertTrue(all(issue.passed for issue in outcome.issues))
        self.assertEqual(outcome.recommendations, [])
        self.assertEqual(probe_mock.call_count, 2)

    @patch('complykit.scan_engine.engine.fetch_page', side_effect=UpstreamUnavailable('connection refused'))
    def test_unreachable_site_yields_single_issue(self, fetch_mock):
        with self.assertLogs('complykit.scan_engine.engine', level='WARNING'):
            outcome = Scanner(classifier=_no_jurisdiction).scan('https://down.example.com')

        self.assertFalse(outcome.reachable)
        self.assertEqual([issue.code for issue in outcome.issues], ['SITE_UNREACHABLE'])
        self.assertEqual(outcome.score, 50)
        self.assertEqual(outcome.risk_level, 'MEDIUM')
        self.assertEqual(outcome.signals['error'], 'connection refused')

    @patch('complykit.scan_engine.engine.probe_link')
    @patch('complykit.scan_engine.engine.fetch_page')
    def test_broken_privacy_link_only_fails_its_own_rule(self, fetch_mock, probe_mock):
        fetch_mock.return_value = _page('https://example.com', COMPLIANT_HTML)
        probe_mock.side_effect = lambda url: 404 if 'privacy' in url else 200

        outcome = Scanner().scan('https://example.com')

        failing = [issue.code for issue in outcome.issues if not issue.passed]
        self.assertEqual(failing, ['BROKEN_PRIVACY_LINK'])
        self.assertEqual(outcome.score, 90)
        self.assertEqual(outcome.signals['link_status']['privacy'], 404)

    @patch('complykit.scan_engine.engine.probe_link')
    @patch('complykit.scan_engine.engine.fetch_page')
    def test_probing_can_be_disabled(self, fetch_mock, probe_mock):
        fetch_mock.return_value = _page('https://example.com', COMPLIANT_HTML)

        outcome = Scanner(probe_linked_pages=False).scan('https://example.com')

        probe_mock.assert_not_called()
        self.assertEqual(outcome.score, 100)

    @patch('complykit.scan_engine.engine.probe_link', return_value=200)
    @patch('complykit.scan_engine.engine.fetch_page')
    def test_jurisdiction_scoped_rules_follow_confident_hint(self, fetch_mock, probe_mock):
        fetch_mock.return_value = _page('https://shop.example.de', GERMAN_TRACKING_HTML)

        outcome = Scanner().scan('https://shop.example.de')

        codes = {issue.code: issue.passed for issue in outcome.issues}
        self.assertEqual(outcome.jurisdiction, 'EU_GDPR')
        self.assertEqual(outcome.jurisdiction_confidence, 1.0)
        self.assertIs(codes['NO_COOKIE_REJECT_OPTION'], False)
        self.assertNotIn('NO_DO_NOT_SELL_LINK', codes)
        self.assertIs(codes['MISSING_TERMS'], False)

    @patch('complykit.scan_engine.engine.probe_link', return_value=200)
    @patch('complykit.scan_engine.engine.fetch_page')
    def test_inconclusive_hint_skips_scoped_rules(self, fetch_mock, probe_mock):
        fetch_mock.return_value = _page('https://shop.example.de', GERMAN_TRACKING_HTML)

        outcome = Scanner(classifier=lambda url, signals: ('EU_GDPR', 0.3, {})).scan('https://shop.example.de')

        self.assertEqual(outcome.jurisdiction, 'GLOBAL')
        self.assertNotIn('NO_COOKIE_REJECT_OPTION', [issue.code for issue in outcome.issues])

    @patch('complykit.scan_engine.engine.probe_link', return_value=200)
    @patch('complykit.scan_engine.engine.fetch_page')
    def test_broken_classifier_falls_back_to_global(self, fetch_mock, probe_mock):
        fetch_mock.return_value = _page('https://shop.example.de', GERMAN_TRACKING_HTML)

        def _broken_classifier(url, signals):
            raise RuntimeError('geo service down')

        with self.assertLogs('complykit.scan_engine.engine', level='WARNING') as logs:
            outcome = Scanner(classifier=_broken_classifier).scan('https://shop.example.de')

        self.assertEqual(outcome.jurisdiction, 'GLOBAL')
        self.assertEqual(outcome.jurisdiction_confidence, 0.0)
        self.assertEqual(outcome.signals['jurisdiction_evidence'], {})
        self.assertNotIn('NO_COOKIE_REJECT_OPTION', [issue.code for issue in outcome.issues])
        self.assertIn('geo service down', logs.output[0])

    @patch('complykit.scan_engine.engine.fetch_page', side_effect=UpstreamUnavailable('connection refused'))
    def test_broken_classifier_on_unreachable_site(self, fetch_mock):
        def _broken_classifier(url, signals):
            raise ValueError('bad evidence')

        with self.assertLogs('complykit.scan_engine.engine', level='WARNING'):
            outcome = Scanner(classifier=_broken_classifier).scan('https://down.example.com')

        self.assertEqual(outcome.jurisdiction, 'GLOBAL')
        self.assertEqual(outcome.score, 50)

    @patch('complykit.scan_engine.engine.fetch_page')
    def test_custom_catalog_deducts_only_failing_rules(self, fetch_mock):
        fetch_mock.return_value = _page('https://example.com', '<html></html>')

        outcome = Scanner(
            rules=[AlwaysFailsRule, AlwaysPassesRule],
            classifier=_no_jurisdiction,
        ).scan('https://example.com')

        self.assertEqual([issue.code for issue in outcome.issues], ['RULE_A', 'RULE_B'])
        self.assertEqual(outcome.score, 70)
        self.assertEqual(outcome.risk_level, 'MEDIUM')
        self.assertEqual(outcome.recommendations, ['Address: Rule A'])

    def test_invalid_url_is_rejected_before_fetching(self):
        with patch('complykit.scan_engine.engine.fetch_page') as fetch_mock:
            with self.assertRaises(InvalidInput):
                Scanner().scan('ftp://example.com')
        fetch_mock.assert_not_called()

    @patch('complykit.scan_engine.engine.probe_link', return_value=200)
    @patch('complykit.scan_engine.engine.fetch_page')
    def test_scan_many_keeps_input_order(self, fetch_mock, probe_mock):
        fetch_mock.side_effect = lambda url: _page(url, COMPLIANT_HTML)

        results = scan_many(
            ['https://a.example.com', 'http://localhost', 'https://b.example.com'],
            scanner=Scanner(classifier=_no_jurisdiction),
            max_workers=3,
        )

        self.assertEqual(results[0].url, 'https://a.example.com')
        self.assertIsInstance(results[1], InvalidInput)
        self.assertEqual(results[2].url, 'https://b.example.com')


@override_settings(SCAN_CACHE_TTL_HOURS=24)
class ScanCacheTests(TestCase):
    @patch('complykit.scan_engine.engine.probe_link', return_value=200)
    @patch('complykit.scan_engine.engine.fetch_page')
    def test_recent_scan_is_reused(self, fetch_mock, probe_mock):
        fetch_mock.return_value = _page('https://example.com', COMPLIANT_HTML)

        first, first_cached = run_and_persist_scan('example.com')
        second, second_cached = run_and_persist_scan('https://EXAMPLE.com/')

        self.assertFalse(first_cached)
        self.assertTrue(second_cached)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(fetch_mock.call_count, 1)

    @patch('complykit.scan_engine.engine.fetch_page', side_effect=UpstreamUnavailable('timed out'))
    def test_unreachable_results_are_not_cached(self, fetch_mock):
        with self.assertLogs('complykit.scan_engine.engine', level='WARNING'):
            run_and_persist_scan('https://down.example.com')
            scan, from_cache = run_and_persist_scan('https://down.example.com')

        self.assertFalse(from_cache)
        self.assertEqual(fetch_mock.call_count, 2)
        self.assertEqual(ScanResult.objects.filter(url='https://down.example.com').count(), 2)
        self.assertEqual(scan.issues[0]['code'], 'SITE_UNREACHABLE')

    def test_expired_or_outdated_scans_are_ignored(self):
        scan = ScanResult.objects.create(
            url='https://example.com',
            score=100,
            risk_level='LOW',
            rule_catalog_version=1,
        )
        self.assertIsNone(find_cached_scan('https://example.com'))

        ScanResult.objects.filter(pk=scan.pk).update(rule_catalog_version=2)
        self.assertIsNotNone(find_cached_scan('https://example.com'))

        ScanResult.objects.filter(pk=scan.pk).update(created_at=scan.created_at - timedelta(hours=25))
        self.assertIsNone(find_cached_scan('https://example.com'))
