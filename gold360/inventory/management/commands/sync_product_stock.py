"""
Django management command to compare Product.stock_quantity with the sum of its inventory rows
"""
from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Sum
from gold360.catalog.models import Product
from gold360.inventory.models import Inventory


class Command(BaseCommand):
    help = 'Report products whose stock_quantity differs from their inventory rows, optionally fixing them'

    def add_arguments(self, parser):
        parser.add_argument(
            '--fix',
            action='store_true',
            help='Overwrite stock_quantity with the inventory total',
        )

    def handle(self, *args, **options):
        fix = options['fix']
        totals = dict(
            Inventory.objects.values('product_id').annotate(total=Sum('quantity')).values_list('product_id', 'total')
        )

        mismatches = []
        for product in Product.objects.all().order_by('id'):
            expected = totals.get(product.id) or 0
            if product.stock_quantity != expected:
                mismatches.append((product, expected))
                self.stdout.write(self.style.WARNING(
                    f"  {product.sku}: catalog says {product.stock_quantity}, inventory holds {expected}"
                ))

        if not mismatches:
            self.stdout.write(self.style.SUCCESS("All products are in sync."))
            return

        if fix:
            with transaction.atomic():
                for product, expected in mismatches:
                    Product.objects.filter(pk=product.pk).update(stock_quantity=expected)
            self.stdout.write(self.style.SUCCESS(f"Fixed {len(mismatches)} products."))
        else:
            self.stdout.write(f"{len(mismatches)} products out of sync. Re-run with --fix to repair.")
