import uuid

from django.contrib.auth.hashers import check_password, make_password
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone


class Jurisdiction(models.TextChoices):
    GLOBAL = 'GLOBAL', 'Global / Multi-jurisdictional'
    EU_GDPR = 'EU_GDPR', 'European Union - GDPR'
    US_CCPA = 'US_CCPA', 'United States - CCPA'
    UK_DPA = 'UK_DPA', 'United Kingdom - UK DPA'
    BR_LGPD = 'BR_LGPD', 'Brazil - LGPD'
    CA_PIPEDA = 'CA_PIPEDA', 'Canada - PIPEDA'
    AU_PRIVACY = 'AU_PRIVACY', 'Australia - Privacy Act'


class RiskLevel(models.TextChoices):
    LOW = 'LOW', 'Low'
    MEDIUM = 'MEDIUM', 'Medium'
    HIGH = 'HIGH', 'High'


class PlanType(models.TextChoices):
    FREE = 'FREE', 'Free'
    QUICK_FIX = 'QUICK_FIX', 'Quick Fix'
    FULL_COMPLIANCE = 'FULL_COMPLIANCE', 'Full Compliance'
    ANNUAL_GUARD = 'ANNUAL_GUARD', 'Annual Guard'
    PRO = 'PRO', 'Pro Monthly'


UNLIMITED_PLANS = frozenset({PlanType.PRO, PlanType.ANNUAL_GUARD})


class DocumentType(models.TextChoices):
    PRIVACY_POLICY = 'PRIVACY_POLICY', 'Privacy Policy'
    TERMS_OF_SERVICE = 'TERMS_OF_SERVICE', 'Terms of Service'
    COOKIE_POLICY = 'COOKIE_POLICY', 'Cookie Policy'
    REFUND_POLICY = 'REFUND_POLICY', 'Refund & Return Policy'
    DMCA_NOTICE = 'DMCA_NOTICE', 'DMCA / Copyright Notice'
    ACCEPTABLE_USE = 'ACCEPTABLE_USE', 'Acceptable Use Policy'
    DISCLAIMER = 'DISCLAIMER', 'Disclaimer'
    NDA = 'NDA', 'Non-Disclosure Agreement'
    FREELANCE_AGREEMENT = 'FREELANCE_AGREEMENT', 'Freelance Service Agreement'
    SAAS_LICENSE = 'SAAS_LICENSE', 'SaaS License Agreement'
    CONSULTING_AGREEMENT = 'CONSULTING_AGREEMENT', 'Consulting Agreement'
    BUSINESS_PLAN = 'BUSINESS_PLAN', 'Business Plan Executive Summary'
    PROPOSAL = 'PROPOSAL', 'Professional Proposal'
    JOB_DESCRIPTION = 'JOB_DESCRIPTION', 'Job Description'
    SOP = 'SOP', 'Standard Operating Procedure'


class PaymentStatus(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    COMPLETED = 'COMPLETED', 'Completed'


class TransactionKind(models.TextChoices):
    DEBIT = 'DEBIT', 'Debit'
    REFUND = 'REFUND', 'Refund'
    PURCHASE = 'PURCHASE', 'Purchase'


class Account(models.Model):
    email = models.EmailField(max_length=254, unique=True)
    name = models.CharField(max_length=255, blank=True, default='')
    password = models.CharField(max_length=128)
    plan = models.CharField(max_length=32, choices=PlanType.choices, default=PlanType.FREE)
    plan_expires_at = models.DateTimeField(null=True, blank=True)
    credits = models.PositiveIntegerField(default=0)
    is_active = models.BooleanField(default=True)
    sessions_revoked_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['email']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(credits__gte=0),
                name='account_credits_non_negative',
            ),
        ]

    def __str__(self) -> str:
        return self.email

    def set_password(self, raw_password: str) -> None:
        self.password = make_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return check_password(raw_password, self.password)

    def has_unlimited_plan(self, now=None) -> bool:
        if self.plan not in UNLIMITED_PLANS:
            return False
        if self.plan_expires_at is None:
            return True
        return self.plan_expires_at > (now or timezone.now())

    def effective_plan(self, now=None) -> str:
        if self.plan in UNLIMITED_PLANS and not self.has_unlimited_plan(now):
            return PlanType.FREE
        return self.plan


class AccessToken(models.Model):
    token_hash = models.CharField(max_length=64, unique=True)
    account = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='access_tokens')
    created_at = models.DateTimeField(auto_now_add=True)
    expires_at = models.DateTimeField(db_index=True)
    last_used_at = models.DateTimeField(null=True, blank=True)
    revoked_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=['account', 'revoked_at'], name='accesstoken_account_revoked'),
        ]

    def __str__(self) -> str:
        return f'token for {self.account_id} (expires {self.expires_at.isoformat()})'


class ScanResult(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    url = models.URLField(max_length=2048, db_index=True)
    score = models.IntegerField(
        validators=[MinValueValidator(0), MaxValueValidator(100)],
    )
    risk_level = models.CharField(max_length=16, choices=RiskLevel.choices)
    jurisdiction = models.CharField(max_length=16, choices=Jurisdiction.choices, default=Jurisdiction.GLOBAL)
    jurisdiction_confidence = models.FloatField(
        default=0.0,
        validators=[MinValueValidator(0.0), MaxValueValidator(1.0)],
    )
    issues = models.JSONField(default=list)
    recommendations = models.JSONField(default=list)
    signals = models.JSONField(default=dict)
    rule_catalog_version = models.PositiveIntegerField(default=1)
    account = models.ForeignKey(
        Account,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='scans',
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f'{self.url} @ {self.created_at.isoformat()} ({self.score})'


class GeneratedDocument(models.Model):
    account = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='documents')
    document_type = models.CharField(max_length=32, choices=DocumentType.choices)
    title = models.CharField(max_length=512)
    content = models.TextField()
    business_name = models.CharField(max_length=255)
    business_type = models.CharField(max_length=255, blank=True, default='')
    website_url = models.CharField(max_length=2048, blank=True, default='')
    jurisdiction = models.CharField(max_length=16, choices=Jurisdiction.choices, default=Jurisdiction.GLOBAL)
    language = models.CharField(max_length=64, default='English')
    template_key = models.CharField(max_length=128, blank=True, default='')
    scan = models.ForeignKey(
        ScanResult,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='documents',
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return self.title


class Payment(models.Model):
    account = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='payments')
    plan_type = models.CharField(max_length=32, choices=PlanType.choices)
    provider_session_id = models.CharField(max_length=255, unique=True)
    amount_cents = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=8, default='EUR')
    status = models.CharField(max_length=16, choices=PaymentStatus.choices, default=PaymentStatus.PENDING)
    success_url = models.CharField(max_length=2048, blank=True, default='')
    cancel_url = models.CharField(max_length=2048, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self) -> str:
        return f'{self.plan_type} for {self.account_id} ({self.status})'


class CreditTransaction(models.Model):
    account = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='credit_transactions')
    kind = models.CharField(max_length=16, choices=TransactionKind.choices)
    delta = models.IntegerField()
    reference = models.CharField(max_length=255, blank=True, default='')
    refunded_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['account', 'kind'], name='credittx_account_kind'),
        ]

    def __str__(self) -> str:
        return f'{self.kind} {self.delta:+d} for {self.account_id}'
