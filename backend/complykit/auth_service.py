from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import hashlib
from http import HTTPStatus
import secrets

from django.conf import settings
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from complykit.exceptions import ComplianceError
from complykit.models import AccessToken, Account


@dataclass(frozen=True)
class IssuedToken:
    access_token: str
    expires_at: datetime
    record: AccessToken


class AuthServiceError(ComplianceError):
    def __init__(self, code: str, message: str, http_status: int = HTTPStatus.BAD_REQUEST):
        super().__init__(message, code=code, http_status=http_status)


def hash_secret(value: str) -> str:
    return hashlib.sha256(value.encode('utf-8')).hexdigest()


def normalize_email(value: str) -> str:
    return (value or '').strip().lower()


def _access_token_expiry_delta() -> timedelta:
    seconds = max(int(getattr(settings, 'API_ACCESS_TOKEN_EXPIRES_SECONDS', 86400)), 120)
    return timedelta(seconds=seconds)


def issue_access_token(account: Account) -> IssuedToken:
    expires_at = timezone.now() + _access_token_expiry_delta()
    raw_access_token = secrets.token_urlsafe(48)
    record = AccessToken.objects.create(
        token_hash=hash_secret(raw_access_token),
        account=account,
        expires_at=expires_at,
    )
    return IssuedToken(access_token=raw_access_token, expires_at=expires_at, record=record)


def register(*, email: str, password: str, name: str = '') -> tuple[Account, IssuedToken]:
    normalized_email = normalize_email(email)
    try:
        validate_email(normalized_email)
    except ValidationError as exc:
        raise AuthServiceError('invalid_email', 'Enter a valid email address.') from exc

    try:
        validate_password(password or '')
    except ValidationError as exc:
        raise AuthServiceError('weak_password', ' '.join(exc.messages)) from exc

    account = Account(email=normalized_email, name=(name or '').strip())
    account.set_password(password)
    try:
        with transaction.atomic():
            account.save()
    except IntegrityError as exc:
        raise AuthServiceError('email_taken', 'An account with this email already exists.', HTTPStatus.CONFLICT) from exc

    return account, issue_access_token(account)


def login(*, email: str, password: str) -> tuple[Account, IssuedToken]:
    account = Account.objects.filter(email=normalize_email(email)).first()
    if account is None or not account.check_password(password or ''):
        raise AuthServiceError('invalid_credentials', 'Email or password is incorrect.', HTTPStatus.UNAUTHORIZED)
    if not account.is_active:
        raise AuthServiceError('account_disabled', 'This account has been disabled.', HTTPStatus.UNAUTHORIZED)

    return account, issue_access_token(account)


def get_valid_access_token(raw_access_token: str) -> AccessToken | None:
    if not raw_access_token:
        return None

    now = timezone.now()
    token_hash = hash_secret(raw_access_token)
    return (
        AccessToken.objects.select_related('account')
        .filter(
            token_hash=token_hash,
            revoked_at__isnull=True,
            expires_at__gt=now,
            account__is_active=True,
        )
        .filter(
            Q(account__sessions_revoked_at__isnull=True)
            | Q(created_at__gt=F('account__sessions_revoked_at')),
        )
        .first()
    )


def mark_access_token_used(access_token: AccessToken) -> None:
    AccessToken.objects.filter(pk=access_token.pk).update(last_used_at=timezone.now())


@transaction.atomic
def revoke_account_sessions(*, account_id: int) -> int:
    now = timezone.now()
    Account.objects.filter(pk=account_id).update(sessions_revoked_at=now)
    return AccessToken.objects.filter(
        account_id=account_id,
        revoked_at__isnull=True,
    ).update(revoked_at=now)
