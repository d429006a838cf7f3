"""
Management command to create the default delivery zones
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from storefront.orders.models import DeliveryCharge
from storefront.orders.utils import quick_setup_delivery_charges


class Command(BaseCommand):
    help = "Creates the default Lahore, Punjab and rest-of-Pakistan delivery zones"

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset',
            action='store_true',
            help='Delete every delivery zone before creating the defaults',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("SETTING UP DELIVERY CHARGES"))
        self.stdout.write(self.style.SUCCESS("=" * 80))

        if options['reset']:
            deleted, _ = DeliveryCharge.objects.all().delete()
            self.stdout.write(self.style.WARNING(f"Deleted {deleted} existing delivery zone(s)"))

        created, skipped = quick_setup_delivery_charges()
        for name in created:
            self.stdout.write(f"  ✓ Created: {name}")
        for name in skipped:
            self.stdout.write(f"  ⊘ Skipped (already exists): {name}")

        self.stdout.write(self.style.SUCCESS("\n" + "=" * 80))
        self.stdout.write(self.style.SUCCESS(f"Created: {len(created)}, Skipped: {len(skipped)}"))
        self.stdout.write(self.style.SUCCESS("=" * 80))
