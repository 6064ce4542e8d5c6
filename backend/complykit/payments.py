from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from typing import Any

from django.conf import settings
import requests

from complykit.exceptions import InvalidInput, PaymentProviderError, WebhookVerificationError
from complykit.ledger import credit_purchase
from complykit.models import Account, Payment, PaymentStatus
from complykit.plans import PlanOffer, get_offer

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED_EVENT = 'checkout.session.completed'
PAID_STATUSES = {'paid', 'no_payment_required'}


def _secret_key() -> str:
    secret_key = getattr(settings, 'STRIPE_SECRET_KEY', '')
    if not secret_key:
        raise PaymentProviderError('Payments are not configured.', http_status=503)
    return secret_key


def _checkout_form(account: Account, offer: PlanOffer, success_url: str, cancel_url: str) -> dict[str, Any]:
    form: dict[str, Any] = {
        'mode': 'subscription' if offer.recurring_interval else 'payment',
        'success_url': success_url,
        'cancel_url': cancel_url,
        'client_reference_id': str(account.pk),
        'customer_email': account.email,
        'metadata[account_id]': str(account.pk),
        'metadata[plan_type]': offer.plan_type,
        'line_items[0][quantity]': 1,
        'line_items[0][price_data][currency]': offer.currency,
        'line_items[0][price_data][unit_amount]': offer.amount_cents,
        'line_items[0][price_data][product_data][name]': offer.name,
    }
    if offer.recurring_interval:
        form['line_items[0][price_data][recurring][interval]'] = offer.recurring_interval
    return form


def create_checkout_session(account: Account, plan_type: str, success_url: str = '', cancel_url: str = '') -> str:
    offer = get_offer(plan_type)
    if offer is None:
        raise InvalidInput(f'Invalid plan type: {plan_type}')

    secret_key = _secret_key()
    success_url = success_url or getattr(settings, 'CHECKOUT_DEFAULT_SUCCESS_URL', '')
    cancel_url = cancel_url or getattr(settings, 'CHECKOUT_DEFAULT_CANCEL_URL', '')
    api_base = str(getattr(settings, 'STRIPE_API_BASE', 'https://api.stripe.com/v1')).rstrip('/')

    try:
        response = requests.post(
            f'{api_base}/checkout/sessions',
            data=_checkout_form(account, offer, success_url, cancel_url),
            auth=(secret_key, ''),
            timeout=float(getattr(settings, 'STRIPE_TIMEOUT_SECONDS', 10.0)),
        )
    except requests.RequestException as exc:
        logger.error('Checkout session request failed: %s', exc)
        raise PaymentProviderError('Payment provider is unavailable. Please try again.') from exc

    if response.status_code >= 400:
        logger.error('Checkout session rejected with HTTP %s: %s', response.status_code, response.text[:500])
        raise PaymentProviderError('Payment provider rejected the checkout request.')

    try:
        payload = response.json()
        session_id = str(payload['id'])
        checkout_url = str(payload['url'])
    except (ValueError, KeyError, TypeError) as exc:
        raise PaymentProviderError('Payment provider returned an unexpected response.') from exc

    Payment.objects.create(
        account=account,
        plan_type=offer.plan_type,
        provider_session_id=session_id,
        amount_cents=offer.amount_cents,
        currency=offer.currency.upper(),
        status=PaymentStatus.PENDING,
        success_url=success_url,
        cancel_url=cancel_url,
    )
    logger.info('Created %s checkout session %s for account %s', offer.plan_type, session_id, account.pk)
    return checkout_url


def _parse_signature_header(header: str) -> tuple[int, list[str]]:
    timestamp = None
    signatures: list[str] = []
    for item in (header or '').split(','):
        key, _, value = item.strip().partition('=')
        if key == 't':
            try:
                timestamp = int(value)
            except ValueError:
                timestamp = None
        elif key == 'v1' and value:
            signatures.append(value)
    if timestamp is None or not signatures:
        raise WebhookVerificationError('Malformed signature header.')
    return timestamp, signatures


def compute_signature(secret: str, timestamp: int, payload: bytes) -> str:
    signed_payload = f'{timestamp}.'.encode('utf-8') + payload
    return hmac.new(secret.encode('utf-8'), signed_payload, hashlib.sha256).hexdigest()


def verify_webhook(payload: bytes, signature_header: str, now: float | None = None) -> dict[str, Any]:
    secret = getattr(settings, 'STRIPE_WEBHOOK_SECRET', '')
    if not secret:
        logger.warning('Rejected payment webhook: no webhook secret configured')
        raise WebhookVerificationError('Webhook verification is not configured.')

    timestamp, signatures = _parse_signature_header(signature_header)
    tolerance = int(getattr(settings, 'STRIPE_WEBHOOK_TOLERANCE_SECONDS', 300))
    current = time.time() if now is None else now
    if tolerance > 0 and abs(current - timestamp) > tolerance:
        logger.warning('Rejected payment webhook: timestamp %s outside tolerance', timestamp)
        raise WebhookVerificationError('Webhook timestamp is outside the allowed tolerance.')

    expected = compute_signature(secret, timestamp, payload)
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        logger.warning('Rejected payment webhook: signature mismatch')
        raise WebhookVerificationError('Invalid webhook signature.')

    try:
        event = json.loads(payload.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as exc:
        raise WebhookVerificationError('Webhook payload is not valid JSON.') from exc
    if not isinstance(event, dict):
        raise WebhookVerificationError('Webhook payload is not an event object.')
    return event


def handle_webhook(payload: bytes, signature_header: str) -> dict[str, Any]:
    event = verify_webhook(payload, signature_header)
    event_type = str(event.get('type') or '')
    if event_type != CHECKOUT_COMPLETED_EVENT:
        logger.debug('Ignoring payment webhook event %s', event_type)
        return {'received': True, 'applied': False}

    session = (event.get('data') or {}).get('object') or {}
    session_id = str(session.get('id') or '')
    if str(session.get('payment_status') or '') not in PAID_STATUSES:
        logger.info('Checkout session %s completed without payment; waiting for settlement', session_id)
        return {'received': True, 'applied': False}

    metadata = session.get('metadata') or {}
    payment = Payment.objects.filter(provider_session_id=session_id).first()
    if payment is not None:
        account_id = payment.account_id
        plan_type = payment.plan_type
    else:
        account_id = metadata.get('account_id') or session.get('client_reference_id')
        plan_type = metadata.get('plan_type')

    if not session_id or not account_id or not plan_type:
        logger.warning('Checkout session %s is missing account or plan metadata', session_id)
        raise InvalidInput('Checkout session is missing account or plan metadata.')

    try:
        account_pk = int(account_id)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f'Invalid account reference: {account_id}') from exc

    applied = credit_purchase(account_pk, plan_type, session_id)
    return {'received': True, 'applied': applied}
