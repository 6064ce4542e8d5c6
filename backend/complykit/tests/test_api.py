import json
import time
import uuid
from types import SimpleNamespace
from unittest.mock import patch

from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from complykit.auth_service import issue_access_token
from complykit.documents.backends import GenerationBackend
from complykit.exceptions import GenerationFailed
from complykit.models import Account, GeneratedDocument, ScanResult
from complykit.payments import compute_signature
from complykit.scan_engine.fetcher import FetchedPage

SCANNED_HTML = """
<html lang="en">
<body>
  <a href="/privacy">Privacy Policy</a>
  <a href="/contact">Contact</a>
  <form action="/signup"><input name="email"></form>
</body>
</html>
"""


class BrokenBackend(GenerationBackend):
    name = 'broken'

    def generate(self, prompt, context):
        raise GenerationFailed('The model is overloaded.')


def broken_backend():
    return BrokenBackend()


def _fetched(url):
    return FetchedPage(requested_url=url, final_url=f'{url}/', status_code=200, html=SCANNED_HTML)


class ScanApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    @patch('complykit.scan_engine.engine.probe_link', return_value=200)
    @patch('complykit.scan_engine.engine.fetch_page', side_effect=_fetched)
    def test_scan_endpoint_returns_score_payload(self, fetch_mock, probe_mock):
        response = self.client.post('/api/scan', {'url': 'www.example.com'}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['url'], 'https://www.example.com')
        self.assertEqual(response.data['jurisdiction'], 'GLOBAL')
        self.assertFalse(response.data['fromCache'])
        failing = [issue['code'] for issue in response.data['issues'] if not issue['passed']]
        self.assertEqual(failing, ['MISSING_TERMS', 'MISSING_COOKIE_CONSENT', 'NO_OPT_OUT'])
        self.assertEqual(response.data['score'], 100 - 10 - 15 - 7)
        self.assertEqual(response.data['riskLevel'], 'MEDIUM')
        self.assertEqual(len(response.data['recommendations']), 3)

    @patch('complykit.scan_engine.engine.probe_link', return_value=200)
    @patch('complykit.scan_engine.engine.fetch_page', side_effect=_fetched)
    def test_repeat_scan_is_served_from_cache(self, fetch_mock, probe_mock):
        first = self.client.post('/api/scan', {'url': 'https://www.example.com/'}, format='json')
        second = self.client.post('/api/scan', {'url': 'www.example.com'}, format='json')

        self.assertEqual(second.status_code, 200)
        self.assertTrue(second.data['fromCache'])
        self.assertEqual(first.data['id'], second.data['id'])
        self.assertEqual(fetch_mock.call_count, 1)

    @patch('complykit.scan_engine.engine.probe_link', return_value=200)
    @patch('complykit.scan_engine.engine.fetch_page', side_effect=_fetched)
    def test_scan_is_linked_to_authenticated_account(self, fetch_mock, probe_mock):
        account = Account.objects.create(email='owner@example.com', password='unused')
        issued = issue_access_token(account)

        response = self.client.post(
            '/api/scan',
            {'url': 'example.org'},
            format='json',
            HTTP_AUTHORIZATION=f'Bearer {issued.access_token}',
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(ScanResult.objects.get(pk=response.data['id']).account_id, account.pk)

    def test_invalid_token_is_rejected_even_for_optional_auth(self):
        response = self.client.post(
            '/api/scan',
            {'url': 'example.org'},
            format='json',
            HTTP_AUTHORIZATION='Bearer not-a-token',
        )

        self.assertEqual(response.status_code, 403)

    def test_non_public_url_is_rejected(self):
        for url in ('http://localhost:8000', 'ftp://example.com', 'http://192.168.0.1'):
            with self.subTest(url=url):
                response = self.client.post('/api/scan', {'url': url}, format='json')
                self.assertEqual(response.status_code, 400)
                self.assertIn('url', response.data)

    def test_scan_detail(self):
        scan = ScanResult.objects.create(url='https://example.com', score=62, risk_level='MEDIUM', rule_catalog_version=2)

        response = self.client.get(f'/api/scan/{scan.pk}')
        missing = self.client.get(f'/api/scan/{uuid.uuid4()}')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['score'], 62)
        self.assertEqual(response.data['ruleCatalogVersion'], 2)
        self.assertEqual(missing.status_code, 404)


class DocumentApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.account = Account.objects.create(email='owner@example.com', password='unused', credits=1)
        self.token = issue_access_token(self.account).access_token

    def _auth(self, token=None):
        return {'HTTP_AUTHORIZATION': f'Bearer {token or self.token}'}

    def _payload(self, **overrides):
        payload = {
            'documentType': 'PRIVACY_POLICY',
            'businessName': 'Acme Widgets',
            'businessType': 'E-commerce',
            'websiteUrl': 'https://acme.example.com',
            'jurisdiction': 'EU_GDPR',
            'language': 'English',
        }
        payload.update(overrides)
        return payload

    def test_document_catalog_endpoints_are_public(self):
        types_response = self.client.get('/api/documents/types')
        languages_response = self.client.get('/api/documents/languages')

        self.assertEqual(types_response.status_code, 200)
        self.assertEqual(len(types_response.data), 15)
        self.assertEqual(types_response.data[0], {'value': 'PRIVACY_POLICY', 'label': 'Privacy Policy'})
        self.assertIn('German', languages_response.data)

    def test_generate_requires_token(self):
        response = self.client.post('/api/documents/generate', self._payload(), format='json')

        self.assertEqual(response.status_code, 403)

    def test_generate_returns_document_and_spends_credit(self):
        response = self.client.post('/api/documents/generate', self._payload(), format='json', **self._auth())

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.data['documentType'], 'PRIVACY_POLICY')
        self.assertEqual(response.data['title'], 'Privacy Policy - Acme Widgets')
        self.assertIn('DEMO MODE', response.data['content'])
        self.assertIsNone(response.data['scanId'])
        self.account.refresh_from_db()
        self.assertEqual(self.account.credits, 0)

    def test_generate_without_credits_returns_payment_required(self):
        self.account.credits = 0
        self.account.save(update_fields=['credits'])

        response = self.client.post('/api/documents/generate', self._payload(), format='json', **self._auth())

        self.assertEqual(response.status_code, 402)
        self.assertEqual(response.data['error'], 'insufficient_credits')
        self.assertEqual(response.data['available'], 0)
        self.assertEqual(
            [plan['planType'] for plan in response.data['plans']],
            ['QUICK_FIX', 'FULL_COMPLIANCE', 'ANNUAL_GUARD', 'PRO'],
        )
        self.assertFalse(GeneratedDocument.objects.exists())

    @override_settings(DOCUMENT_GENERATION_BACKEND='complykit.tests.test_api.broken_backend')
    def test_backend_failure_keeps_credit(self):
        response = self.client.post('/api/documents/generate', self._payload(), format='json', **self._auth())

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data['error'], 'generation_failed')
        self.account.refresh_from_db()
        self.assertEqual(self.account.credits, 1)

    def test_generate_validates_payload(self):
        response = self.client.post(
            '/api/documents/generate',
            self._payload(documentType='HAIKU', businessName=''),
            format='json',
            **self._auth(),
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn('documentType', response.data)
        self.assertIn('businessName', response.data)

    def test_generate_with_unknown_scan(self):
        response = self.client.post(
            '/api/documents/generate',
            self._payload(scanId=str(uuid.uuid4())),
            format='json',
            **self._auth(),
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data['error'], 'invalid_input')

    def test_documents_are_private_to_their_owner(self):
        document = GeneratedDocument.objects.create(
            account=self.account,
            document_type='NDA',
            title='Non-Disclosure Agreement - Acme Widgets',
            content='# NDA',
            business_name='Acme Widgets',
        )
        other = Account.objects.create(email='other@example.com', password='unused')
        other_token = issue_access_token(other).access_token

        listing = self.client.get('/api/documents', **self._auth())
        detail = self.client.get(f'/api/documents/{document.pk}', **self._auth())
        foreign = self.client.get(f'/api/documents/{document.pk}', **self._auth(other_token))
        foreign_listing = self.client.get('/api/documents', **self._auth(other_token))

        self.assertEqual(listing.status_code, 200)
        self.assertEqual([item['id'] for item in listing.data], [document.pk])
        self.assertNotIn('content', listing.data[0])
        self.assertEqual(detail.data['content'], '# NDA')
        self.assertEqual(foreign.status_code, 404)
        self.assertEqual(foreign_listing.data, [])

    def test_pdf_export_unavailable_without_renderer(self):
        document = GeneratedDocument.objects.create(
            account=self.account,
            document_type='NDA',
            title='NDA',
            content='# NDA',
            business_name='Acme Widgets',
        )

        response = self.client.get(f'/api/documents/{document.pk}/pdf', **self._auth())

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data['error'], 'pdf_unavailable')

    @override_settings(PDF_RENDER_URL='https://pdf.example.test/render')
    @patch('complykit.pdf.requests.post')
    def test_pdf_export_streams_rendered_file(self, post_mock):
        post_mock.return_value = SimpleNamespace(
            status_code=200,
            headers={'Content-Type': 'application/pdf'},
            content=b'%PDF-1.7 test',
        )
        document = GeneratedDocument.objects.create(
            account=self.account,
            document_type='PRIVACY_POLICY',
            title='Privacy Policy - Acme Widgets',
            content='# Privacy Policy',
            business_name='Acme Widgets',
        )

        response = self.client.get(f'/api/documents/{document.pk}/pdf', **self._auth())

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertEqual(response.content, b'%PDF-1.7 test')
        self.assertIn('privacy-policy-acme-widgets.pdf', response['Content-Disposition'])
        self.assertEqual(post_mock.call_args.kwargs['json']['markdown'], '# Privacy Policy')


class AccountAndPaymentApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.account = Account.objects.create(email='owner@example.com', name='Owner', password='unused', credits=3)
        self.token = issue_access_token(self.account).access_token

    def test_user_me(self):
        response = self.client.get('/api/user/me', HTTP_X_API_TOKEN=self.token)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['email'], 'owner@example.com')
        self.assertEqual(response.data['plan'], 'FREE')
        self.assertEqual(response.data['credits'], 3)
        self.assertIsNone(response.data['planExpiresAt'])

    def test_checkout_unconfigured(self):
        response = self.client.post(
            '/api/payments/checkout',
            {'planType': 'QUICK_FIX'},
            format='json',
            HTTP_AUTHORIZATION=f'Bearer {self.token}',
        )

        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.data['error'], 'payment_provider_error')

    def test_checkout_rejects_unknown_plan(self):
        response = self.client.post(
            '/api/payments/checkout',
            {'planType': 'AGENCY'},
            format='json',
            HTTP_AUTHORIZATION=f'Bearer {self.token}',
        )

        self.assertEqual(response.status_code, 400)
        self.assertIn('planType', response.data)

    @override_settings(STRIPE_WEBHOOK_SECRET='whsec_test_secret')
    def test_webhook_applies_signed_purchase(self):
        payload = json.dumps({
            'type': 'checkout.session.completed',
            'data': {'object': {
                'id': 'cs_test_api',
                'payment_status': 'paid',
                'client_reference_id': str(self.account.pk),
                'metadata': {'account_id': str(self.account.pk), 'plan_type': 'FULL_COMPLIANCE'},
            }},
        }).encode('utf-8')
        timestamp = int(time.time())
        signature = compute_signature('whsec_test_secret', timestamp, payload)

        response = self.client.post(
            '/api/payments/webhook',
            payload,
            content_type='application/json',
            HTTP_STRIPE_SIGNATURE=f't={timestamp},v1={signature}',
        )
        rejected = self.client.post(
            '/api/payments/webhook',
            payload,
            content_type='application/json',
            HTTP_STRIPE_SIGNATURE=f't={timestamp},v1={"0" * 64}',
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data, {'received': True, 'applied': True})
        self.assertEqual(rejected.status_code, 400)
        self.assertEqual(rejected.data['error'], 'invalid_signature')
        self.account.refresh_from_db()
        self.assertEqual(self.account.credits, 18)
        self.assertEqual(self.account.plan, 'FULL_COMPLIANCE')

    def test_health(self):
        response = self.client.get('/api/health')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], 'ok')
        self.assertIn('version', response.data)
