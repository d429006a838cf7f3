from django.core.management.base import BaseCommand

from storefront.core.models import AdminRole

ALL = AdminRole.AVAILABLE_PERMISSIONS


def _read_only():
    return [permission for permission in ALL if permission.endswith('.read')]


class Command(BaseCommand):
    help = 'Create the default back-office roles: Administrator, Catalog Manager, Order Manager, Support, Viewer'

    def add_arguments(self, parser):
        parser.add_argument(
            '--reset-permissions',
            action='store_true',
            help='Overwrite the permissions of roles that already exist',
        )

    def handle(self, *args, **options):
        roles_config = [
            {
                'name': 'Administrator',
                'description': 'Full access to every back-office module',
                'permissions': list(ALL),
            },
            {
                'name': 'Catalog Manager',
                'description': 'Maintains products, brands and categories',
                'permissions': [p for p in ALL if p.split('.')[0] in ('products', 'categories', 'brands')],
            },
            {
                'name': 'Order Manager',
                'description': 'Processes and ships orders',
                'permissions': ['orders.read', 'orders.update', 'customers.read', 'products.read'],
            },
            {
                'name': 'Support',
                'description': 'Looks up customers and their orders',
                'permissions': ['customers.read', 'customers.update', 'orders.read'],
            },
            {
                'name': 'Viewer',
                'description': 'Read-only access',
                'permissions': _read_only(),
            },
        ]

        created_count = 0
        updated_count = 0

        for role_config in roles_config:
            role, created = AdminRole.objects.get_or_create(
                name=role_config['name'],
                defaults={
                    'description': role_config['description'],
                    'permissions': role_config['permissions'],
                },
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f'✓ Created role: {role.name}'))
                created_count += 1
            elif options['reset_permissions']:
                role.permissions = role_config['permissions']
                role.save(update_fields=['permissions', 'updated_at'])
                self.stdout.write(f'  Reset permissions: {role.name}')
                updated_count += 1
            else:
                self.stdout.write(f'  Role already exists: {role.name}')

        self.stdout.write(self.style.SUCCESS(
            f'\nDone. Created {created_count} role(s), updated {updated_count} role(s).'
        ))
