"""
Tests for the catalog module
Tests: brands, categories, attributes, products and the public shop listing
"""
from decimal import Decimal
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status

from storefront.catalog.models import Brand, Category, Product
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class BrandAPITests(TestCase):
    """Test brand CRUD and the sub-brand rules"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.staff = TestDataFactory.create_staff_user()
        self.client.authenticate_user(self.staff)

    def test_create_brand_generates_slug(self):
        response = self.client.post('/api/v1/brands/', {'name': 'Khaadi Studio'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['slug'], 'khaadi-studio')
        self.assertEqual(response.data['data']['level'], 'main')
        self.assertTrue(AuditLog.objects.filter(action='create', model_name='Brand').exists())

    def test_short_name_rejected(self):
        response = self.client.post('/api/v1/brands/', {'name': 'K'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['errors']['name'], 'name must be at least 2 characters')

    def test_body_must_be_an_object(self):
        response = self.client.post('/api/v1/brands/', [1, 2], format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['non_field_errors'], 'Invalid data. Expected a dictionary, but got list.')

    def test_switching_to_sub_brand_needs_parent(self):
        brand = TestDataFactory.create_brand()
        response = self.client.patch(f'/api/v1/brands/{brand.id}/', {'level': 'sub'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['parent'], 'Parent brand is required for sub-brands')

    def test_sub_brand_requires_parent(self):
        response = self.client.post('/api/v1/brands/', {'name': 'Khaadi Kids', 'level': 'sub'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['parent'], 'Parent brand is required for sub-brands')

    def test_sub_brand_with_parent(self):
        parent = TestDataFactory.create_brand(name='Khaadi')
        response = self.client.post('/api/v1/brands/', {
            'name': 'Khaadi Kids', 'level': 'sub', 'parent': parent.id,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['parent_name'], 'Khaadi')
        self.assertEqual(parent.sub_brands.count(), 1)

    def test_main_brand_drops_parent(self):
        parent = TestDataFactory.create_brand()
        response = self.client.post('/api/v1/brands/', {
            'name': 'Standalone', 'level': 'main', 'parent': parent.id,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['data']['parent'])

    def test_founded_year_range(self):
        response = self.client.post('/api/v1/brands/', {'name': 'Old Brand', 'founded_year': 1700}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Year must be between 1800 and', response.data['errors']['founded_year'])

    def test_brand_cannot_be_own_parent(self):
        brand = TestDataFactory.create_brand()
        response = self.client.patch(f'/api/v1/brands/{brand.id}/', {'parent': brand.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('parent', response.data['errors'])

    def test_delete_brand(self):
        brand = TestDataFactory.create_brand()
        response = self.client.delete(f'/api/v1/brands/{brand.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Brand deleted')
        self.assertFalse(Brand.objects.filter(pk=brand.id).exists())

    def test_regular_user_cannot_write(self):
        self.client.authenticate_user(TestDataFactory.create_user())

        self.assertEqual(self.client.get('/api/v1/brands/').status_code, status.HTTP_200_OK)
        response = self.client.post('/api/v1/brands/', {'name': 'Nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_cannot_list(self):
        self.client.logout()
        response = self.client.get('/api/v1/brands/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class CategoryAPITests(TestCase):
    """Test category CRUD"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff_user())

    def test_create_child_category(self):
        parent = TestDataFactory.create_category(name='Women')
        response = self.client.post('/api/v1/categories/', {'name': 'Kurtas', 'parent': parent.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['slug'], 'kurtas')
        self.assertEqual(response.data['data']['parent_name'], 'Women')

    def test_list_root_categories(self):
        root = TestDataFactory.create_category(name='Men')
        TestDataFactory.create_category(name='Shirts', parent=root)

        response = self.client.get('/api/v1/categories/', {'parent': 'root'})

        names = [item['name'] for item in response.data['data']]
        self.assertEqual(names, ['Men'])

    def test_invalid_slug(self):
        response = self.client.post('/api/v1/categories/', {'name': 'Bags', 'slug': 'Bad Slug'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['slug'], 'slug format is invalid')

    def test_category_cannot_be_own_parent(self):
        category = TestDataFactory.create_category()
        response = self.client.patch(f'/api/v1/categories/{category.id}/', {'parent': category.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['parent'], 'A category cannot be its own parent.')


class ProductAPITests(TestCase):
    """Test the admin product endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff_user())
        self.category = TestDataFactory.create_category()
        self.brand = TestDataFactory.create_brand()

    def _payload(self, **overrides):
        payload = {
            'name': 'Lawn Kurta',
            'sku': 'LK-001',
            'category': self.category.id,
            'brand': self.brand.id,
            'base_price': 2500,
            'stock_quantity': 20,
        }
        payload.update(overrides)
        return payload

    def test_create_product(self):
        response = self.client.post('/api/v1/products/', self._payload(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['slug'], 'lawn-kurta-lk-001')
        self.assertEqual(data['status'], 'draft')
        self.assertEqual(data['brand_name'], self.brand.name)

    def test_sale_price_must_undercut_base_price(self):
        response = self.client.post('/api/v1/products/', self._payload(sale_price=3000), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['sale_price'], 'sale_price must be less than base_price')

    def test_sale_price_discount(self):
        response = self.client.post('/api/v1/products/', self._payload(sale_price=2000), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['price'], '2000.00')
        self.assertEqual(response.data['data']['discount_percentage'], 20.0)

    def test_base_price_must_be_positive(self):
        response = self.client.post('/api/v1/products/', self._payload(base_price=-10), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('base_price', response.data['errors'])

    def test_duplicate_slug_rejected(self):
        TestDataFactory.create_product(sku='DUP-1')
        response = self.client.post('/api/v1/products/', self._payload(slug='dup-1'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('slug', response.data['errors'])

    def test_unknown_attribute_rejected(self):
        response = self.client.post(
            '/api/v1/products/', self._payload(attributes={'fabric': 'lawn'}), format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Unknown attribute: fabric', str(response.data['errors']['attributes']))

    def test_select_attribute_options(self):
        self.client.post('/api/v1/attributes/', {
            'name': 'Fabric', 'attribute_type': 'select', 'options': ['lawn', 'cotton'],
        }, format='json')

        bad = self.client.post('/api/v1/products/', self._payload(attributes={'fabric': 'silk'}), format='json')
        good = self.client.post('/api/v1/products/', self._payload(attributes={'fabric': 'lawn'}), format='json')

        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(good.status_code, status.HTTP_201_CREATED)

    def test_select_attribute_needs_options(self):
        response = self.client.post('/api/v1/attributes/', {'name': 'Fabric', 'attribute_type': 'select'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['options'], 'options is required')

    def test_lowering_base_price_rechecks_sale_price(self):
        product = TestDataFactory.create_product(base_price=Decimal('100.00'), sale_price=Decimal('80.00'))

        response = self.client.patch(f'/api/v1/products/{product.id}/', {'base_price': 50}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['sale_price'], 'sale_price must be less than base_price')
        product.refresh_from_db()
        self.assertEqual(product.base_price, Decimal('100.00'))

        response = self.client.patch(f'/api/v1/products/{product.id}/', {'base_price': 90}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_sale_price_must_be_a_finite_number(self):
        response = self.client.post('/api/v1/products/', self._payload(sale_price='nan'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['sale_price'], 'sale_price must be a number')

    def test_switching_to_select_needs_options(self):
        response = self.client.post('/api/v1/attributes/', {'name': 'Fabric'}, format='json')
        attribute_id = response.data['data']['id']

        response = self.client.patch(f'/api/v1/attributes/{attribute_id}/', {'attribute_type': 'select'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['options'], 'options must have at least 1 item(s)')

    def test_filter_low_stock(self):
        TestDataFactory.create_product(sku='LOW-1', stock_quantity=1)
        TestDataFactory.create_product(sku='FULL-1', stock_quantity=50)

        response = self.client.get('/api/v1/products/', {'low_stock': 'true'})

        skus = [item['sku'] for item in response.data['data']]
        self.assertEqual(skus, ['LOW-1'])

    def test_update_product_records_changes(self):
        product = TestDataFactory.create_product()
        response = self.client.patch(f'/api/v1/products/{product.id}/', {'stock_quantity': 3}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        log = AuditLog.objects.get(action='update', model_name='Product')
        self.assertEqual(log.changes['stock_quantity'], {'old': 10, 'new': 3})


class ShopAPITests(TestCase):
    """Test the public storefront listing"""

    def setUp(self):
        cache.clear()
        self.client = AuthenticatedAPIClient()
        self.category = TestDataFactory.create_category(name='Women')
        self.brand = TestDataFactory.create_brand(name='Gul Ahmed')

    def _shop_skus(self, **params):
        response = self.client.get('/api/v1/shop/products/', params)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        return [item['sku'] for item in response.data['data']]

    def test_only_published_active_products_listed(self):
        TestDataFactory.create_product(sku='PUB-1')
        TestDataFactory.create_product(sku='DRAFT-1', status='draft')
        TestDataFactory.create_product(sku='OFF-1', is_active=False)

        self.assertEqual(self._shop_skus(), ['PUB-1'])

    def test_filter_by_category_slug_and_price(self):
        TestDataFactory.create_product(sku='CHEAP-1', category=self.category, base_price=Decimal('500.00'))
        TestDataFactory.create_product(sku='DEAR-1', category=self.category, base_price=Decimal('9000.00'))
        TestDataFactory.create_product(sku='OTHER-1', base_price=Decimal('600.00'))

        self.assertEqual(self._shop_skus(category=self.category.slug, max_price=1000), ['CHEAP-1'])

    def test_sale_price_used_for_sorting(self):
        TestDataFactory.create_product(sku='A-1', base_price=Decimal('3000.00'), sale_price=Decimal('800.00'))
        TestDataFactory.create_product(sku='B-1', base_price=Decimal('1000.00'))

        self.assertEqual(self._shop_skus(sort='price_asc'), ['A-1', 'B-1'])
        self.assertEqual(self._shop_skus(on_sale='true'), ['A-1'])

    def test_listing_reflects_product_changes(self):
        product = TestDataFactory.create_product(sku='LIVE-1')
        self.assertEqual(self._shop_skus(), ['LIVE-1'])

        product.status = 'archived'
        product.save()

        self.assertEqual(self._shop_skus(), [])

    def test_product_detail_by_slug(self):
        product = TestDataFactory.create_product(sku='SLUG-1', brand=self.brand)
        response = self.client.get(f'/api/v1/shop/products/{product.slug}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['brand']['name'], 'Gul Ahmed')
        self.assertTrue(response.data['data']['in_stock'])

    def test_draft_product_detail_not_found(self):
        product = TestDataFactory.create_product(sku='HIDDEN-1', status='draft')
        response = self.client.get(f'/api/v1/shop/products/{product.slug}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_taxonomy_lists_active_only(self):
        TestDataFactory.create_category(name='Hidden', is_active=False)

        response = self.client.get('/api/v1/shop/categories/')

        names = [item['name'] for item in response.data['data']]
        self.assertEqual(names, ['Women'])

    def test_taxonomy_refreshes_after_brand_change(self):
        first = [item['name'] for item in self.client.get('/api/v1/shop/brands/').data['data']]
        TestDataFactory.create_brand(name='Sapphire')
        second = [item['name'] for item in self.client.get('/api/v1/shop/brands/').data['data']]

        self.assertEqual(first, ['Gul Ahmed'])
        self.assertEqual(sorted(second), ['Gul Ahmed', 'Sapphire'])


class ProductModelTests(TestCase):

    def test_price_and_stock_flags(self):
        product = TestDataFactory.create_product(base_price=Decimal('1000.00'), sale_price=Decimal('750.00'), stock_quantity=2)

        self.assertEqual(product.price, Decimal('750.00'))
        self.assertTrue(product.is_on_sale)
        self.assertTrue(product.in_stock)
        self.assertTrue(product.is_low_stock)
        self.assertEqual(Product.objects.count(), 1)
        self.assertEqual(Category.objects.count(), 1)


class SeedCatalogCommandTests(TestCase):
    """Test the seed_catalog management command"""

    def test_seed_is_idempotent(self):
        call_command('seed_catalog', stdout=StringIO())
        brands = Brand.objects.count()
        categories = Category.objects.count()

        out = StringIO()
        call_command('seed_catalog', stdout=out)

        self.assertEqual(Brand.objects.count(), brands)
        self.assertEqual(Category.objects.count(), categories)
        self.assertIn('Brands Created: 0', out.getvalue())

    def test_sub_brands_point_at_their_parent(self):
        call_command('seed_catalog', stdout=StringIO())

        jordan = Brand.objects.get(slug='jordan')
        self.assertEqual(jordan.level, 'sub')
        self.assertEqual(jordan.parent.slug, 'nike')
        self.assertEqual(Category.objects.get(slug='men-kurta').parent.slug, 'men')

    def test_clear_removes_existing_rows(self):
        TestDataFactory.create_brand(name='Old Brand')

        call_command('seed_catalog', clear=True, stdout=StringIO())

        self.assertFalse(Brand.objects.filter(name='Old Brand').exists())
