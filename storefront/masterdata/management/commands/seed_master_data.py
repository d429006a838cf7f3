"""
Management command to add the default master data values
"""
from django.core.management.base import BaseCommand
from storefront.core.validation import slugify
from storefront.masterdata.models import MasterDataItem

DEFAULT_ITEMS = {
    'age-groups': ['Infant', 'Toddler', 'Kids', 'Teens', 'Adults'],
    'fits': ['Slim Fit', 'Regular Fit', 'Relaxed Fit', 'Oversized'],
    'lengths': ['Cropped', 'Regular', 'Long', 'Maxi'],
    'necklines': ['Round Neck', 'V-Neck', 'Collar', 'Boat Neck'],
    'colors': [
        ('Black', {'hex_code': '#000000', 'image_url': 'https://placehold.co/64/000000/000000.png'}),
        ('White', {'hex_code': '#FFFFFF', 'image_url': 'https://placehold.co/64/FFFFFF/FFFFFF.png'}),
        ('Navy', {'hex_code': '#1F2A44', 'image_url': 'https://placehold.co/64/1F2A44/1F2A44.png'}),
        ('Maroon', {'hex_code': '#800000', 'image_url': 'https://placehold.co/64/800000/800000.png'}),
    ],
    'color-families': ['Neutrals', 'Blues', 'Reds', 'Greens', 'Pastels'],
    'materials': ['Cotton', 'Linen', 'Silk', 'Polyester', 'Wool'],
    'occasions': ['Casual', 'Formal', 'Party', 'Wedding', 'Eid'],
    'patterns': ['Solid', 'Striped', 'Checked', 'Floral', 'Printed'],
    'seasons': ['Summer', 'Winter', 'Spring', 'Autumn', 'All Season'],
    'sizes': [
        ('XS', {'size_type': 'alphabetic'}),
        ('S', {'size_type': 'alphabetic'}),
        ('M', {'size_type': 'alphabetic'}),
        ('L', {'size_type': 'alphabetic'}),
        ('XL', {'size_type': 'alphabetic'}),
    ],
    'sleeve-lengths': ['Sleeveless', 'Short Sleeve', 'Three Quarter', 'Full Sleeve'],
    'care-instructions': ['Machine Wash', 'Hand Wash', 'Dry Clean Only', 'Do Not Bleach'],
    'coupon-types': ['Percentage', 'Fixed Amount', 'Free Shipping'],
    'features': ['Pockets', 'Lined', 'Stretchable', 'Wrinkle Free'],
    'product-statuses': ['New Arrival', 'Best Seller', 'Limited Edition', 'Clearance'],
    'styles': ['Classic', 'Modern', 'Bohemian', 'Streetwear'],
}


class Command(BaseCommand):
    help = "Adds default master data values (sizes, colors, materials, ...)"

    def add_arguments(self, parser):
        parser.add_argument(
            '--kind',
            choices=MasterDataItem.KINDS,
            help='Only seed one master data type',
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete existing items of the seeded types first',
        )

    def handle(self, *args, **options):
        kinds = [options['kind']] if options['kind'] else list(DEFAULT_ITEMS)

        self.stdout.write(self.style.SUCCESS("=" * 80))
        self.stdout.write(self.style.SUCCESS("SEEDING MASTER DATA"))
        self.stdout.write(self.style.SUCCESS("=" * 80))

        if options['clear']:
            deleted, _ = MasterDataItem.objects.filter(kind__in=kinds).delete()
            self.stdout.write(self.style.WARNING(f"Cleared {deleted} existing item(s)."))

        created_count = 0
        skipped_count = 0

        for kind in kinds:
            self.stdout.write(f"\n{kind}:")
            for sort_order, entry in enumerate(DEFAULT_ITEMS[kind]):
                name, extra = entry if isinstance(entry, tuple) else (entry, {})
                _, created = MasterDataItem.objects.get_or_create(
                    kind=kind,
                    slug=slugify(name),
                    defaults={'name': name, 'extra': extra, 'sort_order': sort_order},
                )
                if created:
                    created_count += 1
                    self.stdout.write(self.style.SUCCESS(f"  ✓ Created: {name}"))
                else:
                    skipped_count += 1
                    self.stdout.write(self.style.WARNING(f"  ⊘ Skipped (already exists): {name}"))

        self.stdout.write(self.style.SUCCESS("\n" + "=" * 80))
        self.stdout.write(f"Items Created: {created_count}")
        self.stdout.write(f"Items Skipped (already exist): {skipped_count}")
        self.stdout.write(f"Total Items in Database: {MasterDataItem.objects.count()}")
        self.stdout.write(self.style.SUCCESS("=" * 80))
