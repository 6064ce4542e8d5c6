import json
import time
from types import SimpleNamespace
from unittest.mock import patch

from django.test import TestCase, override_settings
import requests

from complykit.exceptions import InvalidInput, PaymentProviderError, WebhookVerificationError
from complykit.models import Account, Payment, PaymentStatus, PlanType
from complykit.payments import compute_signature, create_checkout_session, handle_webhook

WEBHOOK_SECRET = 'whsec_test_secret'


def signed_header(payload, secret=WEBHOOK_SECRET, timestamp=None):
    timestamp = int(time.time()) if timestamp is None else timestamp
    return f't={timestamp},v1={compute_signature(secret, timestamp, payload)}'


def checkout_event(session_id, account_id=None, plan_type=None, payment_status='paid', event_type='checkout.session.completed'):
    session = {'id': session_id, 'metadata': {}}
    if payment_status is not None:
        session['payment_status'] = payment_status
    if account_id is not None:
        session['client_reference_id'] = str(account_id)
        session['metadata'] = {'account_id': str(account_id), 'plan_type': plan_type}
    return json.dumps({'id': 'evt_1', 'type': event_type, 'data': {'object': session}}).encode('utf-8')


class CheckoutSessionTests(TestCase):
    def setUp(self):
        self.account = Account.objects.create(email='buyer@example.com', password='unused')

    @override_settings(STRIPE_SECRET_KEY='')
    def test_unconfigured_provider(self):
        with self.assertRaises(PaymentProviderError) as ctx:
            create_checkout_session(self.account, PlanType.QUICK_FIX)

        self.assertEqual(ctx.exception.http_status, 503)

    @override_settings(STRIPE_SECRET_KEY='sk_test_123', STRIPE_API_BASE='https://stripe.test/v1')
    @patch('complykit.payments.requests.post')
    def test_one_time_checkout_creates_pending_payment(self, post_mock):
        post_mock.return_value = SimpleNamespace(
            status_code=200,
            text='',
            json=lambda: {'id': 'cs_test_abc', 'url': 'https://checkout.stripe.test/pay/cs_test_abc'},
        )

        url = create_checkout_session(self.account, 'quick_fix', success_url='https://app.example.com/ok')

        self.assertEqual(url, 'https://checkout.stripe.test/pay/cs_test_abc')
        args, kwargs = post_mock.call_args
        self.assertEqual(args[0], 'https://stripe.test/v1/checkout/sessions')
        self.assertEqual(kwargs['auth'], ('sk_test_123', ''))
        self.assertEqual(kwargs['data']['mode'], 'payment')
        self.assertEqual(kwargs['data']['line_items[0][price_data][unit_amount]'], 499)
        payment = Payment.objects.get(provider_session_id='cs_test_abc')
        self.assertEqual(payment.status, PaymentStatus.PENDING)
        self.assertEqual(payment.success_url, 'https://app.example.com/ok')

    @override_settings(STRIPE_SECRET_KEY='sk_test_123')
    @patch('complykit.payments.requests.post')
    def test_pro_plan_uses_subscription_mode(self, post_mock):
        post_mock.return_value = SimpleNamespace(
            status_code=200,
            text='',
            json=lambda: {'id': 'cs_test_pro', 'url': 'https://checkout.stripe.test/pay/cs_test_pro'},
        )

        create_checkout_session(self.account, PlanType.PRO)

        data = post_mock.call_args.kwargs['data']
        self.assertEqual(data['mode'], 'subscription')
        self.assertEqual(data['line_items[0][price_data][recurring][interval]'], 'month')

    @override_settings(STRIPE_SECRET_KEY='sk_test_123')
    @patch('complykit.payments.requests.post')
    def test_provider_failures(self, post_mock):
        post_mock.return_value = SimpleNamespace(status_code=400, text='bad request', json=lambda: {})
        with self.assertLogs('complykit.payments', level='ERROR'):
            with self.assertRaises(PaymentProviderError) as ctx:
                create_checkout_session(self.account, PlanType.QUICK_FIX)
        self.assertEqual(ctx.exception.http_status, 502)

        post_mock.side_effect = requests.ConnectionError('down')
        with self.assertLogs('complykit.payments', level='ERROR'):
            with self.assertRaises(PaymentProviderError):
                create_checkout_session(self.account, PlanType.QUICK_FIX)

        self.assertFalse(Payment.objects.exists())

    def test_unknown_plan(self):
        with self.assertRaises(InvalidInput):
            create_checkout_session(self.account, 'AGENCY')


@override_settings(STRIPE_WEBHOOK_SECRET=WEBHOOK_SECRET)
class WebhookTests(TestCase):
    def setUp(self):
        self.account = Account.objects.create(email='buyer@example.com', password='unused')

    def test_completed_checkout_is_applied_once(self):
        payload = checkout_event('cs_test_1', self.account.pk, PlanType.QUICK_FIX)

        first = handle_webhook(payload, signed_header(payload))
        replay = handle_webhook(payload, signed_header(payload))

        self.assertEqual(first, {'received': True, 'applied': True})
        self.assertEqual(replay, {'received': True, 'applied': False})
        self.account.refresh_from_db()
        self.assertEqual(self.account.credits, 1)

    def test_pending_payment_row_decides_account_and_plan(self):
        Payment.objects.create(
            account=self.account,
            plan_type=PlanType.FULL_COMPLIANCE,
            provider_session_id='cs_test_2',
            amount_cents=2999,
        )
        payload = checkout_event('cs_test_2')

        handle_webhook(payload, signed_header(payload))

        self.account.refresh_from_db()
        self.assertEqual(self.account.plan, PlanType.FULL_COMPLIANCE)
        self.assertEqual(self.account.credits, 15)

    def test_bad_signature_is_rejected(self):
        payload = checkout_event('cs_test_3', self.account.pk, PlanType.QUICK_FIX)

        with self.assertLogs('complykit.payments', level='WARNING'):
            with self.assertRaises(WebhookVerificationError):
                handle_webhook(payload, signed_header(payload, secret='whsec_wrong'))

        self.account.refresh_from_db()
        self.assertEqual(self.account.credits, 0)

    def test_stale_timestamp_is_rejected(self):
        payload = checkout_event('cs_test_4', self.account.pk, PlanType.QUICK_FIX)

        with self.assertLogs('complykit.payments', level='WARNING'):
            with self.assertRaises(WebhookVerificationError):
                handle_webhook(payload, signed_header(payload, timestamp=int(time.time()) - 3600))

    def test_malformed_header_is_rejected(self):
        payload = checkout_event('cs_test_5', self.account.pk, PlanType.QUICK_FIX)

        with self.assertRaises(WebhookVerificationError):
            handle_webhook(payload, 'garbage')

    @override_settings(STRIPE_WEBHOOK_SECRET='')
    def test_unconfigured_secret_rejects_everything(self):
        payload = checkout_event('cs_test_6', self.account.pk, PlanType.QUICK_FIX)

        with self.assertLogs('complykit.payments', level='WARNING'):
            with self.assertRaises(WebhookVerificationError):
                handle_webhook(payload, signed_header(payload))

    def test_other_events_are_acknowledged_without_changes(self):
        payload = checkout_event('cs_test_7', self.account.pk, PlanType.QUICK_FIX, event_type='invoice.created')

        self.assertEqual(handle_webhook(payload, signed_header(payload)), {'received': True, 'applied': False})
        self.assertFalse(Payment.objects.exists())

    def test_unpaid_session_is_not_applied(self):
        payload = checkout_event('cs_test_8', self.account.pk, PlanType.QUICK_FIX, payment_status='unpaid')

        self.assertEqual(handle_webhook(payload, signed_header(payload)), {'received': True, 'applied': False})
        self.account.refresh_from_db()
        self.assertEqual(self.account.credits, 0)

    def test_session_without_payment_status_is_not_applied(self):
        payload = checkout_event('cs_test_10', self.account.pk, PlanType.QUICK_FIX, payment_status=None)

        self.assertEqual(handle_webhook(payload, signed_header(payload)), {'received': True, 'applied': False})
        self.account.refresh_from_db()
        self.assertEqual(self.account.credits, 0)
        self.assertFalse(Payment.objects.filter(provider_session_id='cs_test_10').exists())

    def test_missing_metadata_is_invalid(self):
        payload = checkout_event('cs_test_9')

        with self.assertLogs('complykit.payments', level='WARNING'):
            with self.assertRaises(InvalidInput):
                handle_webhook(payload, signed_header(payload))
