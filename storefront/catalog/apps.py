from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'storefront.catalog'
    label = 'catalog'

    def ready(self):
        """Import signals when app is ready"""
        import storefront.catalog.signals  # noqa: F401
