import django_filters
from django.db.models import Case, DecimalField, F, Q, When

from .models import Product

SORT_ORDERS = {
    'newest': ['-created_at'],
    'price_asc': ['effective_price', 'name'],
    'price_desc': ['-effective_price', 'name'],
    'name': ['name'],
}


def _truthy(value):
    return str(value).lower() in ('true', '1', 'yes')


def with_effective_price(queryset):
    """Annotate the price a customer pays (sale price only when it undercuts the base price)"""
    return queryset.annotate(
        effective_price=Case(
            When(sale_price__gt=0, sale_price__lt=F('base_price'), then=F('sale_price')),
            default=F('base_price'),
            output_field=DecimalField(max_digits=10, decimal_places=2),
        )
    )


class ProductFilter(django_filters.FilterSet):
    """Filter for the admin product list and the shop listing"""

    search = django_filters.CharFilter(method='filter_search', label='Search')
    category = django_filters.CharFilter(method='filter_category', label='Category id or slug')
    brand = django_filters.CharFilter(method='filter_brand', label='Brand id or slug')
    status = django_filters.CharFilter(field_name='status', lookup_expr='exact')
    is_active = django_filters.CharFilter(method='filter_is_active', label='Active')
    min_price = django_filters.NumberFilter(field_name='effective_price', lookup_expr='gte')
    max_price = django_filters.NumberFilter(field_name='effective_price', lookup_expr='lte')
    in_stock = django_filters.CharFilter(method='filter_in_stock', label='In Stock')
    low_stock = django_filters.CharFilter(method='filter_low_stock', label='Low Stock')
    on_sale = django_filters.CharFilter(method='filter_on_sale', label='On Sale')
    featured = django_filters.CharFilter(method='filter_featured', label='Featured')
    master_data = django_filters.NumberFilter(field_name='master_data__id', lookup_expr='exact', distinct=True)
    sort = django_filters.CharFilter(method='filter_sort', label='Sort')

    class Meta:
        model = Product
        fields = ['search', 'category', 'brand', 'status', 'is_active', 'min_price', 'max_price',
                  'in_stock', 'low_stock', 'on_sale', 'featured', 'master_data', 'sort']

    def filter_search(self, queryset, name, value):
        """All words must appear in the name, SKU, description, brand or category"""
        words = value.split()
        for word in words:
            queryset = queryset.filter(
                Q(name__icontains=word) |
                Q(sku__icontains=word) |
                Q(description__icontains=word) |
                Q(brand__name__icontains=word) |
                Q(category__name__icontains=word)
            )
        return queryset

    def filter_category(self, queryset, name, value):
        value = value.strip()
        if value.isdigit():
            return queryset.filter(Q(category_id=int(value)) | Q(category__parent_id=int(value)))
        return queryset.filter(Q(category__slug=value) | Q(category__parent__slug=value))

    def filter_brand(self, queryset, name, value):
        value = value.strip()
        if value.isdigit():
            return queryset.filter(brand_id=int(value))
        return queryset.filter(brand__slug=value)

    def filter_is_active(self, queryset, name, value):
        return queryset.filter(is_active=_truthy(value))

    def filter_in_stock(self, queryset, name, value):
        in_stock = Q(track_inventory=False) | Q(stock_quantity__gt=0)
        return queryset.filter(in_stock) if _truthy(value) else queryset.exclude(in_stock)

    def filter_low_stock(self, queryset, name, value):
        if not _truthy(value):
            return queryset
        return queryset.filter(track_inventory=True, stock_quantity__lte=F('low_stock_threshold'))

    def filter_on_sale(self, queryset, name, value):
        on_sale = Q(sale_price__gt=0, sale_price__lt=F('base_price'))
        return queryset.filter(on_sale) if _truthy(value) else queryset.exclude(on_sale)

    def filter_featured(self, queryset, name, value):
        return queryset.filter(is_featured=_truthy(value))

    def filter_sort(self, queryset, name, value):
        return queryset.order_by(*SORT_ORDERS.get(value, SORT_ORDERS['newest']))
