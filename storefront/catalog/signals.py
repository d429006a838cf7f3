"""
Cache invalidation signals
Drop cached shop listings whenever catalog rows change
"""
from django.db.models.signals import post_save, post_delete, m2m_changed
from django.dispatch import receiver

from storefront.core.cache_utils import bump_namespace
from .models import Brand, Category, Product


@receiver([post_save, post_delete], sender=Product)
def invalidate_product_cache(sender, instance, **kwargs):
    bump_namespace('shop_products')


@receiver(m2m_changed, sender=Product.master_data.through)
def invalidate_product_tags_cache(sender, instance, **kwargs):
    bump_namespace('shop_products')


@receiver([post_save, post_delete], sender=Brand)
@receiver([post_save, post_delete], sender=Category)
def invalidate_taxonomy_cache(sender, instance, **kwargs):
    # Product cards embed brand and category names
    bump_namespace('shop_taxonomy')
    bump_namespace('shop_products')
