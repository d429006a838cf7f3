"""
Management command to add a starter set of brands and categories
"""
from django.core.management.base import BaseCommand
from django.db import transaction

from storefront.catalog.models import Brand, Category
from storefront.core.validation import slugify

BRANDS = [
    # (name, country, industry, sub-brands)
    ('Khaadi', 'Pakistan', 'Fashion', ['Khaadi Kids', 'Khaadi Home']),
    ('Gul Ahmed', 'Pakistan', 'Textiles', ['Ideas']),
    ('Sapphire', 'Pakistan', 'Fashion', []),
    ('Bata', 'Switzerland', 'Footwear', []),
    ('Nike', 'United States', 'Sportswear', ['Jordan']),
]

CATEGORIES = {
    'Women': ['Unstitched', 'Ready to Wear', 'Accessories'],
    'Men': ['Kurta', 'Shalwar Kameez', 'Footwear'],
    'Kids': ['Girls', 'Boys'],
    'Home': ['Bedding', 'Towels'],
}


class Command(BaseCommand):
    help = "Adds a starter set of brands and categories"

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete all brands and categories before seeding',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("SEEDING CATALOG"))
        self.stdout.write(self.style.SUCCESS("=" * 80))

        if options['clear']:
            self.stdout.write(self.style.WARNING("Clearing all existing brands and categories..."))
            Brand.objects.all().delete()
            Category.objects.all().delete()

        brand_count = 0
        for sort_order, (name, country, industry, sub_brands) in enumerate(BRANDS):
            brand, created = Brand.objects.get_or_create(
                slug=slugify(name),
                defaults={'name': name, 'country': country, 'industry': industry, 'sort_order': sort_order},
            )
            brand_count += int(created)
            self._report(name, created)
            for sub_name in sub_brands:
                _, created = Brand.objects.get_or_create(
                    slug=slugify(sub_name),
                    defaults={'name': sub_name, 'level': 'sub', 'parent': brand, 'country': country, 'industry': industry},
                )
                brand_count += int(created)
                self._report(f"{name} > {sub_name}", created)

        category_count = 0
        for sort_order, (name, children) in enumerate(CATEGORIES.items()):
            parent, created = Category.objects.get_or_create(
                slug=slugify(name), defaults={'name': name, 'sort_order': sort_order},
            )
            category_count += int(created)
            self._report(name, created)
            for child_order, child_name in enumerate(children):
                _, created = Category.objects.get_or_create(
                    slug=slugify(f"{name} {child_name}"),
                    defaults={'name': child_name, 'parent': parent, 'sort_order': child_order},
                )
                category_count += int(created)
                self._report(f"{name} > {child_name}", created)

        self.stdout.write(self.style.SUCCESS("\n" + "=" * 80))
        self.stdout.write(f"Brands Created: {brand_count} (total {Brand.objects.count()})")
        self.stdout.write(f"Categories Created: {category_count} (total {Category.objects.count()})")
        self.stdout.write(self.style.SUCCESS("=" * 80))

    def _report(self, label, created):
        if created:
            self.stdout.write(self.style.SUCCESS(f"  ✓ Created: {label}"))
        else:
            self.stdout.write(self.style.WARNING(f"  ⊘ Skipped (already exists): {label}"))
