"""
Test utilities and factories for creating test data
"""
import random
import string
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from storefront.catalog.models import Brand, Category, Product
from storefront.masterdata.models import MasterDataItem
from storefront.orders.models import Cart, CartItem, DeliveryCharge
from storefront.parties.models import Customer, Address

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username.lower()}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_staff_user(**kwargs):
        return TestDataFactory.create_user(is_staff=True, **kwargs)

    @staticmethod
    def create_category(name=None, parent=None, is_active=True):
        """Create a test category"""
        if not name:
            name = f'Category {TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            slug=f'category-{TestDataFactory.random_string(8).lower()}',
            parent=parent,
            is_active=is_active
        )

    @staticmethod
    def create_brand(name=None, parent=None, is_active=True):
        """Create a test brand"""
        if not name:
            name = f'Brand {TestDataFactory.random_string(6)}'
        return Brand.objects.create(
            name=name,
            slug=f'brand-{TestDataFactory.random_string(8).lower()}',
            parent=parent,
            level='sub' if parent else 'main',
            is_active=is_active
        )

    @staticmethod
    def create_product(name=None, sku=None, category=None, brand=None, base_price=None, sale_price=None,
                       stock_quantity=10, status='published', track_inventory=True, is_active=True):
        """Create a test product"""
        if not name:
            name = f'Product {TestDataFactory.random_string(6)}'
        if not sku:
            sku = f'SKU-{TestDataFactory.random_string(8).upper()}'
        if not category:
            category = TestDataFactory.create_category()
        if not brand:
            brand = TestDataFactory.create_brand()
        return Product.objects.create(
            name=name,
            slug=sku.lower(),
            sku=sku,
            category=category,
            brand=brand,
            base_price=base_price if base_price is not None else Decimal('1000.00'),
            sale_price=sale_price,
            stock_quantity=stock_quantity,
            status=status,
            track_inventory=track_inventory,
            is_active=is_active,
            low_stock_threshold=2
        )

    @staticmethod
    def create_master_data_item(kind='fits', name=None, **extra):
        if not name:
            name = f'Item {TestDataFactory.random_string(6)}'
        return MasterDataItem.objects.create(
            kind=kind,
            name=name,
            slug=f'item-{TestDataFactory.random_string(8).lower()}',
            extra=extra
        )

    @staticmethod
    def create_customer(first_name='Ayesha', last_name='Khan', email=None, user=None):
        """Create a test customer"""
        if not email:
            email = f'customer_{TestDataFactory.random_string(6).lower()}@test.com'
        return Customer.objects.create(
            first_name=first_name,
            last_name=last_name,
            email=email,
            user=user
        )

    @staticmethod
    def create_address(customer, address_type='shipping', is_default=False, city='Lahore'):
        return Address.objects.create(
            customer=customer,
            address_type=address_type,
            first_name=customer.first_name,
            last_name=customer.last_name,
            address_line1='12 Mall Road',
            city=city,
            state='Punjab',
            postal_code='54000',
            country='PK',
            is_default=is_default
        )

    @staticmethod
    def create_cart(user=None, session_key=''):
        """Create a test cart"""
        return Cart.objects.create(user=user, session_key=session_key)

    @staticmethod
    def add_cart_item(cart, product, quantity=1):
        return CartItem.objects.create(cart=cart, product=product, quantity=quantity, unit_price=product.price)

    @staticmethod
    def create_delivery_charge(location_name='Lahore', location_type='city', priority=100, **fields):
        defaults = {
            'country': 'PK',
            'state': 'Punjab',
            'city': 'Lahore' if location_type == 'city' else '',
            'base_charge': Decimal('150.00'),
        }
        defaults.update(fields)
        return DeliveryCharge.objects.create(
            location_name=location_name,
            location_type=location_type,
            priority=priority,
            **defaults
        )

    @staticmethod
    def checkout_address(**overrides):
        address = {
            'first_name': 'Ayesha',
            'last_name': 'Khan',
            'address_line1': '12 Mall Road',
            'city': 'Lahore',
            'state': 'Punjab',
            'postal_code': '54000',
            'country': 'PK',
        }
        address.update(overrides)
        return address


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user, session_key=None):
        """Authenticate the client with a user, optionally keeping a guest cart session"""
        refresh = RefreshToken.for_user(user)
        credentials = {'HTTP_AUTHORIZATION': f'Bearer {refresh.access_token}'}
        if session_key:
            credentials['HTTP_X_SESSION_ID'] = session_key
        self.credentials(**credentials)
        return self

    def use_session(self, session_key):
        """Act as an anonymous shopper identified by session_key"""
        self.credentials(HTTP_X_SESSION_ID=session_key)
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
