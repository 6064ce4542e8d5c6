import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Account',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('name', models.CharField(blank=True, default='', max_length=255)),
                ('password', models.CharField(max_length=128)),
                ('plan', models.CharField(choices=[('FREE', 'Free'), ('QUICK_FIX', 'Quick Fix'), ('FULL_COMPLIANCE', 'Full Compliance'), ('ANNUAL_GUARD', 'Annual Guard'), ('PRO', 'Pro Monthly')], default='FREE', max_length=32)),
                ('plan_expires_at', models.DateTimeField(blank=True, null=True)),
                ('credits', models.PositiveIntegerField(default=0)),
                ('is_active', models.BooleanField(default=True)),
                ('sessions_revoked_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['email'],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('credits__gte', 0)), name='account_credits_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AccessToken',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('token_hash', models.CharField(max_length=64, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('expires_at', models.DateTimeField(db_index=True)),
                ('last_used_at', models.DateTimeField(blank=True, null=True)),
                ('revoked_at', models.DateTimeField(blank=True, null=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='access_tokens', to='complykit.account')),
            ],
            options={
                'indexes': [
                    models.Index(fields=['account', 'revoked_at'], name='accesstoken_account_revoked'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ScanResult',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('url', models.URLField(db_index=True, max_length=2048)),
                ('score', models.IntegerField(validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('risk_level', models.CharField(choices=[('LOW', 'Low'), ('MEDIUM', 'Medium'), ('HIGH', 'High')], max_length=16)),
                ('jurisdiction', models.CharField(choices=[('GLOBAL', 'Global / Multi-jurisdictional'), ('EU_GDPR', 'European Union - GDPR'), ('US_CCPA', 'United States - CCPA'), ('UK_DPA', 'United Kingdom - UK DPA'), ('BR_LGPD', 'Brazil - LGPD'), ('CA_PIPEDA', 'Canada - PIPEDA'), ('AU_PRIVACY', 'Australia - Privacy Act')], default='GLOBAL', max_length=16)),
                ('jurisdiction_confidence', models.FloatField(default=0.0, validators=[django.core.validators.MinValueValidator(0.0), django.core.validators.MaxValueValidator(1.0)])),
                ('issues', models.JSONField(default=list)),
                ('recommendations', models.JSONField(default=list)),
                ('signals', models.JSONField(default=dict)),
                ('rule_catalog_version', models.PositiveIntegerField(default=1)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('account', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='scans', to='complykit.account')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='GeneratedDocument',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('document_type', models.CharField(choices=[('PRIVACY_POLICY', 'Privacy Policy'), ('TERMS_OF_SERVICE', 'Terms of Service'), ('COOKIE_POLICY', 'Cookie Policy'), ('REFUND_POLICY', 'Refund & Return Policy'), ('DMCA_NOTICE', 'DMCA / Copyright Notice'), ('ACCEPTABLE_USE', 'Acceptable Use Policy'), ('DISCLAIMER', 'Disclaimer'), ('NDA', 'Non-Disclosure Agreement'), ('FREELANCE_AGREEMENT', 'Freelance Service Agreement'), ('SAAS_LICENSE', 'SaaS License Agreement'), ('CONSULTING_AGREEMENT', 'Consulting Agreement'), ('BUSINESS_PLAN', 'Business Plan Executive Summary'), ('PROPOSAL', 'Professional Proposal'), ('JOB_DESCRIPTION', 'Job Description'), ('SOP', 'Standard Operating Procedure')], max_length=32)),
                ('title', models.CharField(max_length=512)),
                ('content', models.TextField()),
                ('business_name', models.CharField(max_length=255)),
                ('business_type', models.CharField(blank=True, default='', max_length=255)),
                ('website_url', models.CharField(blank=True, default='', max_length=2048)),
                ('jurisdiction', models.CharField(choices=[('GLOBAL', 'Global / Multi-jurisdictional'), ('EU_GDPR', 'European Union - GDPR'), ('US_CCPA', 'United States - CCPA'), ('UK_DPA', 'United Kingdom - UK DPA'), ('BR_LGPD', 'Brazil - LGPD'), ('CA_PIPEDA', 'Canada - PIPEDA'), ('AU_PRIVACY', 'Australia - Privacy Act')], default='GLOBAL', max_length=16)),
                ('language', models.CharField(default='English', max_length=64)),
                ('template_key', models.CharField(blank=True, default='', max_length=128)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='documents', to='complykit.account')),
                ('scan', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='documents', to='complykit.scanresult')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('plan_type', models.CharField(choices=[('FREE', 'Free'), ('QUICK_FIX', 'Quick Fix'), ('FULL_COMPLIANCE', 'Full Compliance'), ('ANNUAL_GUARD', 'Annual Guard'), ('PRO', 'Pro Monthly')], max_length=32)),
                ('provider_session_id', models.CharField(max_length=255, unique=True)),
                ('amount_cents', models.PositiveIntegerField(default=0)),
                ('currency', models.CharField(default='EUR', max_length=8)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('COMPLETED', 'Completed')], default='PENDING', max_length=16)),
                ('success_url', models.CharField(blank=True, default='', max_length=2048)),
                ('cancel_url', models.CharField(blank=True, default='', max_length=2048)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payments', to='complykit.account')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='CreditTransaction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('kind', models.CharField(choices=[('DEBIT', 'Debit'), ('REFUND', 'Refund'), ('PURCHASE', 'Purchase')], max_length=16)),
                ('delta', models.IntegerField()),
                ('reference', models.CharField(blank=True, default='', max_length=255)),
                ('refunded_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('account', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='credit_transactions', to='complykit.account')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['account', 'kind'], name='credittx_account_kind'),
                ],
            },
        ),
    ]
