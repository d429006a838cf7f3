"""
Tests for the parties module
Tests: customers, optional login accounts and addresses
"""
from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework import status

from storefront.core.models import ApiKey
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.parties.models import Address, Customer

User = get_user_model()


class CustomerAPITests(TestCase):
    """Test customer endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff_user())

    def test_create_customer_without_account(self):
        response = self.client.post('/api/v1/customers/', {
            'first_name': 'Bilal',
            'last_name': 'Ahmed',
            'email': 'Bilal@Example.com',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['email'], 'bilal@example.com')
        self.assertFalse(response.data['data']['has_account'])
        self.assertNotIn('password', response.data['data'])

    def test_create_customer_with_account(self):
        response = self.client.post('/api/v1/customers/', {
            'first_name': 'Bilal',
            'last_name': 'Ahmed',
            'email': 'bilal@example.com',
            'create_account': True,
            'password': 'secret123',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['data']['has_account'])
        user = User.objects.get(email='bilal@example.com')
        self.assertTrue(user.check_password('secret123'))
        self.assertEqual(Customer.objects.get(email='bilal@example.com').user, user)

    def test_account_requires_password(self):
        response = self.client.post('/api/v1/customers/', {
            'first_name': 'Bilal',
            'last_name': 'Ahmed',
            'email': 'bilal@example.com',
            'create_account': True,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['password'], 'password is required')
        self.assertFalse(User.objects.filter(email='bilal@example.com').exists())

    def test_account_email_must_be_free(self):
        TestDataFactory.create_user(email='taken@example.com')
        response = self.client.post('/api/v1/customers/', {
            'first_name': 'Bilal',
            'last_name': 'Ahmed',
            'email': 'taken@example.com',
            'create_account': True,
            'password': 'secret123',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['email'], 'A user with this email already exists.')

    def test_invalid_email_and_phone(self):
        response = self.client.post('/api/v1/customers/', {
            'first_name': 'Bilal',
            'last_name': 'Ahmed',
            'email': 'not-an-email',
            'phone': 'abc',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['email'], 'email must be a valid email address')
        self.assertIn('phone', response.data['errors'])

    def test_search_customers(self):
        TestDataFactory.create_customer(first_name='Zara', email='zara@example.com')
        TestDataFactory.create_customer(first_name='Omar', email='omar@example.com')

        response = self.client.get('/api/v1/customers/', {'search': 'zara'})

        self.assertEqual([c['first_name'] for c in response.data['data']], ['Zara'])

    def test_deactivating_customer_deactivates_user(self):
        user = TestDataFactory.create_user()
        customer = TestDataFactory.create_customer(user=user, email=user.email)

        response = self.client.patch(f'/api/v1/customers/{customer.id}/', {'is_active': False}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        user.refresh_from_db()
        self.assertFalse(user.is_active)

    def test_regular_user_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/customers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_api_key_needs_customer_scope(self):
        staff = TestDataFactory.create_staff_user()
        raw_key = ApiKey.generate_key()
        api_key = ApiKey(name='Reports', created_by=staff, permissions=['products.read'])
        api_key.set_key(raw_key)
        api_key.save()
        client = AuthenticatedAPIClient()
        client.credentials(HTTP_X_API_KEY=raw_key)

        response = client.get('/api/v1/customers/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AddressAPITests(TestCase):
    """Test customer addresses"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff_user())
        self.customer = TestDataFactory.create_customer()
        self.url = f'/api/v1/customers/{self.customer.id}/addresses/'

    def _address(self, **overrides):
        address = TestDataFactory.checkout_address(address_type='shipping')
        address.update(overrides)
        return address

    def test_create_address(self):
        response = self.client.post(self.url, self._address(), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['customer'], self.customer.id)

    def test_missing_city(self):
        response = self.client.post(self.url, self._address(city=''), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['city'], 'city is required')

    def test_postal_code_format(self):
        response = self.client.post(self.url, self._address(postal_code='54'), format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['postal_code'], 'postal_code must be at least 4 characters')

    def test_single_default_per_type(self):
        first = TestDataFactory.create_address(self.customer, is_default=True)
        billing = TestDataFactory.create_address(self.customer, address_type='billing', is_default=True)

        response = self.client.post(self.url, self._address(is_default=True), format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        first.refresh_from_db()
        billing.refresh_from_db()
        self.assertFalse(first.is_default)
        self.assertTrue(billing.is_default)
        self.assertEqual(Address.objects.filter(customer=self.customer, is_default=True).count(), 2)

    def test_address_of_other_customer_not_found(self):
        other = TestDataFactory.create_customer()
        address = TestDataFactory.create_address(other)

        response = self.client.get(f'{self.url}{address.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_filter_by_type(self):
        TestDataFactory.create_address(self.customer, address_type='billing')
        TestDataFactory.create_address(self.customer, address_type='shipping')

        response = self.client.get(self.url, {'address_type': 'billing'})

        self.assertEqual([a['address_type'] for a in response.data['data']], ['billing'])
