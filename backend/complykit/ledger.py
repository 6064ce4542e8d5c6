from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
import time
from typing import Callable, TypeVar

from django.conf import settings
from django.db import OperationalError, transaction
from django.db.models import F
from django.utils import timezone

from complykit.exceptions import InsufficientCredits, InvalidInput, LedgerBusy
from complykit.models import (
    Account,
    CreditTransaction,
    DocumentType,
    Payment,
    PaymentStatus,
    PlanType,
    TransactionKind,
    UNLIMITED_PLANS,
)
from complykit.plans import get_offer

logger = logging.getLogger(__name__)

T = TypeVar('T')
_LOCK_BACKOFF_SECONDS = 0.02


@dataclass(frozen=True)
class AuthorizationToken:
    account_id: int
    transaction_id: int
    cost: int
    unlimited: bool = False


@dataclass(frozen=True)
class Balance:
    plan: str
    credits: int
    plan_expires_at: datetime | None = None


def full_compliance_grant() -> int:
    return int(getattr(settings, 'FULL_COMPLIANCE_CREDIT_GRANT', len(DocumentType.choices)))


def _plan_duration(plan_type: str) -> timedelta:
    if plan_type == PlanType.ANNUAL_GUARD:
        return timedelta(days=int(getattr(settings, 'ANNUAL_GUARD_DURATION_DAYS', 365)))
    return timedelta(days=int(getattr(settings, 'PRO_PLAN_DURATION_DAYS', 31)))


def _lock_account(account_id: int) -> Account:
    try:
        return Account.objects.select_for_update().get(pk=account_id)
    except Account.DoesNotExist as exc:
        raise InvalidInput(f'Unknown account {account_id}.') from exc


def _retry_on_lock(operation: Callable[[], T], account_id: int) -> T:
    """Run ``operation`` in its own transaction, retrying while the account row is locked."""
    attempts = max(1, int(getattr(settings, 'LEDGER_LOCK_RETRIES', 5)))
    attempt = 0
    while True:
        attempt += 1
        try:
            with transaction.atomic():
                return operation()
        except OperationalError as exc:
            # Never retry inside a caller's transaction; it is already marked for rollback.
            if transaction.get_connection().in_atomic_block or attempt >= attempts:
                logger.warning('Ledger is busy for account %s after %s attempt(s): %s', account_id, attempt, exc)
                raise LedgerBusy('The account is busy. Please try again.') from exc
            time.sleep(_LOCK_BACKOFF_SECONDS * attempt)


def authorize(account_id: int, cost: int = 1, reference: str = '') -> AuthorizationToken:
    """Reserve ``cost`` credits for one credit-consuming operation.

    Metered accounts are debited immediately with a conditional update, so
    concurrent callers can never spend more than the balance. Accounts on an
    active unlimited plan are checked but not debited. Lock contention that
    outlasts ``LEDGER_LOCK_RETRIES`` attempts surfaces as ``LedgerBusy``.
    """
    if cost < 1:
        raise InvalidInput('Cost must be a positive number of credits.')

    def _debit() -> AuthorizationToken:
        account = _lock_account(account_id)
        now = timezone.now()

        if account.has_unlimited_plan(now):
            entry = CreditTransaction.objects.create(
                account=account,
                kind=TransactionKind.DEBIT,
                delta=0,
                reference=reference,
            )
            return AuthorizationToken(account_id=account.pk, transaction_id=entry.pk, cost=cost, unlimited=True)

        updated = Account.objects.filter(pk=account.pk, credits__gte=cost).update(
            credits=F('credits') - cost,
            updated_at=now,
        )
        if not updated:
            logger.info('Account %s has insufficient credits (%s < %s)', account.pk, account.credits, cost)
            raise InsufficientCredits(required=cost, available=account.credits)

        entry = CreditTransaction.objects.create(
            account=account,
            kind=TransactionKind.DEBIT,
            delta=-cost,
            reference=reference,
        )
        return AuthorizationToken(account_id=account.pk, transaction_id=entry.pk, cost=cost)

    return _retry_on_lock(_debit, account_id)


def refund(token: AuthorizationToken) -> bool:
    """Reverse the debit behind ``token``. Only the first call has an effect."""
    if token.unlimited:
        return False

    def _credit_back() -> bool:
        account = _lock_account(token.account_id)
        now = timezone.now()
        claimed = CreditTransaction.objects.filter(
            pk=token.transaction_id,
            account=account,
            kind=TransactionKind.DEBIT,
            refunded_at__isnull=True,
        ).update(refunded_at=now)
        if not claimed:
            return False

        Account.objects.filter(pk=account.pk).update(credits=F('credits') + token.cost, updated_at=now)
        CreditTransaction.objects.create(
            account=account,
            kind=TransactionKind.REFUND,
            delta=token.cost,
            reference=f'refund:{token.transaction_id}',
        )
        return True

    refunded = _retry_on_lock(_credit_back, token.account_id)
    if refunded:
        logger.info('Refunded %s credit(s) to account %s', token.cost, token.account_id)
    return refunded


def credit_purchase(account_id: int, plan_type: str, provider_session_id: str) -> bool:
    """Apply a confirmed purchase once per provider session.

    Returns ``True`` when this call changed the account, ``False`` when the
    session had already been applied.
    """
    offer = get_offer(plan_type)
    if offer is None:
        raise InvalidInput(f'Unknown plan type: {plan_type}')
    if not provider_session_id:
        raise InvalidInput('A provider session id is required.')

    with transaction.atomic():
        account = _lock_account(account_id)
        payment, _ = Payment.objects.select_for_update().get_or_create(
            provider_session_id=provider_session_id,
            defaults={
                'account': account,
                'plan_type': offer.plan_type,
                'amount_cents': offer.amount_cents,
                'currency': offer.currency.upper(),
            },
        )
        if payment.status == PaymentStatus.COMPLETED:
            logger.info('Payment session %s was already applied', provider_session_id)
            return False
        if payment.account_id != account.pk:
            raise InvalidInput('Payment session belongs to a different account.')

        now = timezone.now()
        unlimited_active = account.has_unlimited_plan(now)
        updates: dict = {'updated_at': now}
        granted = 0

        if offer.plan_type in UNLIMITED_PLANS:
            start = account.plan_expires_at if unlimited_active and account.plan_expires_at else now
            updates['plan'] = offer.plan_type
            updates['plan_expires_at'] = start + _plan_duration(offer.plan_type)
        else:
            granted = 1 if offer.plan_type == PlanType.QUICK_FIX else full_compliance_grant()
            updates['credits'] = F('credits') + granted
            if not unlimited_active:
                updates['plan'] = offer.plan_type
                updates['plan_expires_at'] = None

        Account.objects.filter(pk=account.pk).update(**updates)
        payment.status = PaymentStatus.COMPLETED
        payment.completed_at = now
        payment.plan_type = offer.plan_type
        payment.save(update_fields=['status', 'completed_at', 'plan_type'])
        CreditTransaction.objects.create(
            account=account,
            kind=TransactionKind.PURCHASE,
            delta=granted,
            reference=provider_session_id,
        )

    logger.info('Applied %s purchase %s to account %s', offer.plan_type, provider_session_id, account_id)
    return True


def balance(account_id: int) -> Balance:
    account = Account.objects.get(pk=account_id)
    now = timezone.now()
    return Balance(
        plan=account.effective_plan(now),
        credits=account.credits,
        plan_expires_at=account.plan_expires_at if account.has_unlimited_plan(now) else None,
    )
