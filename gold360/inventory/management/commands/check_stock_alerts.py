"""
Django management command to sweep inventory rows and raise or resolve stock alerts
"""
from django.core.management.base import BaseCommand, CommandError
from gold360.inventory.services import check_and_create_alerts
from gold360.locations.models import Warehouse


class Command(BaseCommand):
    help = 'Create, update or resolve stock alerts for every active inventory row'

    def add_arguments(self, parser):
        parser.add_argument(
            '--warehouse',
            type=int,
            help='Limit the sweep to one warehouse ID',
        )

    def handle(self, *args, **options):
        warehouse = None
        warehouse_id = options.get('warehouse')
        if warehouse_id:
            try:
                warehouse = Warehouse.objects.get(pk=warehouse_id)
            except Warehouse.DoesNotExist:
                raise CommandError(f"Warehouse {warehouse_id} does not exist")
            self.stdout.write(f"Checking stock alerts for {warehouse.name}...")
        else:
            self.stdout.write("Checking stock alerts for all warehouses...")

        counts = check_and_create_alerts(warehouse=warehouse)
        self.stdout.write(self.style.SUCCESS(
            f"Done: {counts['created']} created, {counts['updated']} updated, {counts['resolved']} resolved"
        ))
