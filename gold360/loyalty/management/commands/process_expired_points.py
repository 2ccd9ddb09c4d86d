"""
Django management command to expire loyalty points past their expiry date
"""
from django.core.management.base import BaseCommand
from gold360.loyalty.services import process_expired_points


class Command(BaseCommand):
    help = 'Create expire transactions for earned loyalty points past their expiry date'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report what would expire without changing any balances',
        )

    def handle(self, *args, **options):
        dry_run = options.get('dry_run', False)
        if dry_run:
            self.stdout.write(self.style.WARNING("DRY RUN MODE - No changes will be made"))

        result = process_expired_points(dry_run=dry_run)
        self.stdout.write(self.style.SUCCESS(
            f"{result['processed_count']} transactions, {result['total_points_expired']} points, "
            f"{result['affected_customers']} customers"
        ))
