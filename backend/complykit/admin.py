from django.contrib import admin, messages

from complykit.auth_service import revoke_account_sessions
from complykit.models import (
    AccessToken,
    Account,
    CreditTransaction,
    GeneratedDocument,
    Payment,
    ScanResult,
)


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'plan', 'plan_expires_at', 'credits', 'is_active', 'created_at')
    list_filter = ('plan', 'is_active')
    search_fields = ('email', 'name')
    readonly_fields = ('password', 'credits', 'plan', 'plan_expires_at', 'sessions_revoked_at', 'created_at', 'updated_at')
    actions = ['revoke_sessions']

    @admin.action(description='Sign out everywhere (revoke all access tokens)')
    def revoke_sessions(self, request, queryset):
        revoked = 0
        for account in queryset:
            revoked += revoke_account_sessions(account_id=account.pk)
        self.message_user(request, f'Revoked {revoked} access token(s).', level=messages.SUCCESS)


@admin.register(ScanResult)
class ScanResultAdmin(admin.ModelAdmin):
    list_display = ('url', 'score', 'risk_level', 'jurisdiction', 'rule_catalog_version', 'account', 'created_at')
    list_filter = ('risk_level', 'jurisdiction')
    search_fields = ('url',)
    readonly_fields = (
        'id',
        'url',
        'score',
        'risk_level',
        'jurisdiction',
        'jurisdiction_confidence',
        'issues',
        'recommendations',
        'signals',
        'rule_catalog_version',
        'account',
        'created_at',
    )


@admin.register(GeneratedDocument)
class GeneratedDocumentAdmin(admin.ModelAdmin):
    list_display = ('title', 'document_type', 'jurisdiction', 'language', 'account', 'created_at')
    list_filter = ('document_type', 'jurisdiction')
    search_fields = ('title', 'business_name', 'account__email')
    readonly_fields = ('account', 'scan', 'template_key', 'created_at')


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('provider_session_id', 'account', 'plan_type', 'amount_cents', 'currency', 'status', 'created_at', 'completed_at')
    list_filter = ('status', 'plan_type')
    search_fields = ('provider_session_id', 'account__email')
    readonly_fields = ('provider_session_id', 'account', 'plan_type', 'amount_cents', 'currency', 'status', 'created_at', 'completed_at')


@admin.register(CreditTransaction)
class CreditTransactionAdmin(admin.ModelAdmin):
    list_display = ('account', 'kind', 'delta', 'reference', 'refunded_at', 'created_at')
    list_filter = ('kind',)
    search_fields = ('account__email', 'reference')
    readonly_fields = ('account', 'kind', 'delta', 'reference', 'refunded_at', 'created_at')


@admin.register(AccessToken)
class AccessTokenAdmin(admin.ModelAdmin):
    list_display = ('account', 'created_at', 'expires_at', 'revoked_at', 'last_used_at')
    list_filter = ('revoked_at',)
    search_fields = ('account__email',)
    readonly_fields = ('token_hash', 'account', 'created_at', 'expires_at', 'revoked_at', 'last_used_at')
