from __future__ import annotations

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db.models import Max
from django.utils import timezone

from complykit.exceptions import ComplianceError
from complykit.models import ScanResult
from complykit.scan_engine.engine import scan_many
from complykit.services import persist_outcome


class Command(BaseCommand):
    help = 'Re-scan websites whose latest scan is stale.'

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=7, help='Re-scan URLs last scanned more than N days ago.')
        parser.add_argument('--limit', type=int, default=200, help='Maximum number of URLs to process.')
        parser.add_argument('--url', type=str, default='', help='Only process one specific URL.')
        parser.add_argument('--workers', type=int, default=0, help='Concurrent scans (defaults to SCAN_MAX_CONCURRENCY).')
        parser.add_argument('--dry-run', action='store_true', help='Print URLs that would be scanned.')

    def handle(self, *args, **options):
        days = max(options['days'], 1)
        limit = max(options['limit'], 1)
        target_url = (options['url'] or '').strip()
        dry_run = bool(options['dry_run'])

        cutoff = timezone.now() - timedelta(days=days)
        queryset = ScanResult.objects.values('url').annotate(last_scanned_at=Max('created_at'))
        if target_url:
            queryset = queryset.filter(url=target_url)
        stale = list(
            queryset.filter(last_scanned_at__lt=cutoff)
            .order_by('last_scanned_at', 'url')
            .values_list('url', flat=True)[:limit],
        )

        if not stale:
            self.stdout.write(self.style.SUCCESS('No stale URLs found.'))
            return

        if dry_run:
            for url in stale:
                self.stdout.write(f'[DRY RUN] Would scan: {url}')
            self.stdout.write(self.style.SUCCESS(f'Dry run complete. {len(stale)} URL(s) matched.'))
            return

        results = scan_many(stale, max_workers=options['workers'] or None)
        scanned = 0
        for url, outcome in zip(stale, results):
            if isinstance(outcome, ComplianceError):
                self.stderr.write(f'Skipped {url}: {outcome.message}')
                continue
            scan = persist_outcome(outcome)
            scanned += 1
            self.stdout.write(f'Scanned: {url} (score {scan.score}, {scan.risk_level})')

        self.stdout.write(self.style.SUCCESS(f'Rescan complete. Scanned {scanned} URL(s).'))
