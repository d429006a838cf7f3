import logging

from django.core.cache import cache
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny

from storefront.core.cache_utils import cached_query, make_cache_key, SHOP_PRODUCTS_CACHE_TTL, SHOP_TAXONOMY_CACHE_TTL
from storefront.core.permissions import IsAdminOrReadOnly, resource_permission
from storefront.core.responses import api_response, validation_failed
from storefront.core.utils import audit_instance, diff_fields
from .filters import ProductFilter, with_effective_price
from .models import Brand, Category, Attribute, Product
from .serializers import (
    BrandSerializer, CategorySerializer, AttributeSerializer, ProductSerializer,
    ShopProductSerializer, ShopTaxonomySerializer,
)

logger = logging.getLogger(__name__)


def _apply_common_filters(request, queryset, search_fields):
    search = request.query_params.get('search', '').strip()
    if search:
        query = Q()
        for field_name in search_fields:
            query |= Q(**{f'{field_name}__icontains': search})
        queryset = queryset.filter(query)
    is_active = request.query_params.get('is_active')
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active.lower() == 'true')
    return queryset


def _create(request, serializer_class):
    serializer = serializer_class(data=request.data)
    if not serializer.is_valid():
        return validation_failed(serializer)
    instance = serializer.save()
    audit_instance(request, 'create', instance)
    return api_response(serializer.data, status_code=status.HTTP_201_CREATED)


def _detail(request, instance, serializer_class):
    if request.method == 'GET':
        return api_response(serializer_class(instance).data)
    elif request.method in ('PUT', 'PATCH'):
        before = serializer_class(instance).data
        serializer = serializer_class(instance, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return validation_failed(serializer)
        serializer.save()
        audit_instance(request, 'update', instance, diff_fields(before, serializer.data))
        return api_response(serializer.data)
    else:  # DELETE
        audit_instance(request, 'delete', instance)
        instance.delete()
        return api_response(message=f'{instance.__class__.__name__} deleted')


# Brand views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly, resource_permission('brands')])
def brand_list_create(request):
    """List all brands or create a new brand"""
    if request.method == 'GET':
        brands = Brand.objects.select_related('parent').all()
        brands = _apply_common_filters(request, brands, ['name', 'slug', 'description', 'industry'])
        level = request.query_params.get('level')
        if level:
            brands = brands.filter(level=level)
        parent = request.query_params.get('parent')
        if parent:
            brands = brands.filter(parent_id=parent)
        return api_response(BrandSerializer(brands, many=True).data)
    return _create(request, BrandSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly, resource_permission('brands')])
def brand_detail(request, pk):
    """Retrieve, update or delete a brand"""
    return _detail(request, get_object_or_404(Brand, pk=pk), BrandSerializer)


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly, resource_permission('categories')])
def category_list_create(request):
    """List all categories or create a new category"""
    if request.method == 'GET':
        categories = Category.objects.select_related('parent').all()
        categories = _apply_common_filters(request, categories, ['name', 'slug', 'description'])
        parent = request.query_params.get('parent')
        if parent == 'root':
            categories = categories.filter(parent__isnull=True)
        elif parent:
            categories = categories.filter(parent_id=parent)
        return api_response(CategorySerializer(categories, many=True).data)
    return _create(request, CategorySerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly, resource_permission('categories')])
def category_detail(request, pk):
    """Retrieve, update or delete a category"""
    return _detail(request, get_object_or_404(Category, pk=pk), CategorySerializer)


# Attribute views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly, resource_permission('products')])
def attribute_list_create(request):
    if request.method == 'GET':
        attributes = _apply_common_filters(request, Attribute.objects.all(), ['name', 'slug'])
        attribute_type = request.query_params.get('attribute_type')
        if attribute_type:
            attributes = attributes.filter(attribute_type=attribute_type)
        return api_response(AttributeSerializer(attributes, many=True).data)
    return _create(request, AttributeSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly, resource_permission('products')])
def attribute_detail(request, pk):
    return _detail(request, get_object_or_404(Attribute, pk=pk), AttributeSerializer)


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly, resource_permission('products')])
def product_list_create(request):
    """List all products or create a new product"""
    if request.method == 'GET':
        queryset = with_effective_price(
            Product.objects.select_related('brand', 'category').prefetch_related('master_data')
        )
        filterset = ProductFilter(request.query_params, queryset=queryset)
        return api_response(ProductSerializer(filterset.qs, many=True).data)
    return _create(request, ProductSerializer)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly, resource_permission('products')])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product.objects.select_related('brand', 'category'), pk=pk)
    return _detail(request, product, ProductSerializer)


# Storefront views
SHOP_FILTER_PARAMS = ['search', 'category', 'brand', 'min_price', 'max_price', 'in_stock', 'on_sale', 'featured', 'sort']


@api_view(['GET'])
@permission_classes([AllowAny])
def shop_products(request):
    """Published, active products for the storefront, cached per query"""
    params = {key: request.query_params.get(key) for key in SHOP_FILTER_PARAMS if request.query_params.get(key)}
    cache_key = make_cache_key('shop_products', **params)
    data = cache.get(cache_key)
    if data is None:
        queryset = with_effective_price(
            Product.objects.select_related('brand', 'category').filter(
                status='published', is_active=True,
            )
        )
        filterset = ProductFilter(params, queryset=queryset)
        queryset = filterset.qs
        if 'sort' not in params:
            queryset = queryset.order_by('-created_at')
        data = ShopProductSerializer(queryset, many=True).data
        cache.set(cache_key, data, SHOP_PRODUCTS_CACHE_TTL)
    else:
        logger.debug(f"Shop products served from cache: {cache_key}")
    return api_response(data)


@api_view(['GET'])
@permission_classes([AllowAny])
def shop_product_detail(request, slug):
    product = get_object_or_404(
        Product.objects.select_related('brand', 'category'),
        slug=slug, status='published', is_active=True,
    )
    return api_response(ShopProductSerializer(product).data)


@cached_query(cache_ttl=SHOP_TAXONOMY_CACHE_TTL, key_prefix='shop_taxonomy')
def _active_taxonomy(kind):
    model = Category if kind == 'categories' else Brand
    return ShopTaxonomySerializer(model.objects.filter(is_active=True), many=True).data


@api_view(['GET'])
@permission_classes([AllowAny])
def shop_categories(request):
    return api_response(_active_taxonomy('categories'))


@api_view(['GET'])
@permission_classes([AllowAny])
def shop_brands(request):
    return api_response(_active_taxonomy('brands'))
