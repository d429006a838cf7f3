from django.urls import path
from .views import (
    brand_list_create, brand_detail,
    category_list_create, category_detail,
    attribute_list_create, attribute_detail,
    product_list_create, product_detail,
    shop_products, shop_product_detail, shop_categories, shop_brands,
)

urlpatterns = [
    # Brand endpoints
    path('brands/', brand_list_create, name='brand-list-create'),
    path('brands/<int:pk>/', brand_detail, name='brand-detail'),

    # Category endpoints
    path('categories/', category_list_create, name='category-list-create'),
    path('categories/<int:pk>/', category_detail, name='category-detail'),

    # Attribute endpoints
    path('attributes/', attribute_list_create, name='attribute-list-create'),
    path('attributes/<int:pk>/', attribute_detail, name='attribute-detail'),

    # Product endpoints
    path('products/', product_list_create, name='product-list-create'),
    path('products/<int:pk>/', product_detail, name='product-detail'),

    # Storefront endpoints
    path('shop/products/', shop_products, name='shop-products'),
    path('shop/products/<slug:slug>/', shop_product_detail, name='shop-product-detail'),
    path('shop/categories/', shop_categories, name='shop-categories'),
    path('shop/brands/', shop_brands, name='shop-brands'),
]
