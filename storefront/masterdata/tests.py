"""
Tests for the master data module
"""
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from rest_framework import status

from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.masterdata.models import MasterDataItem


class MasterDataAPITests(TestCase):
    """Test the per-kind master data endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff_user())

    def test_kinds_with_counts(self):
        TestDataFactory.create_master_data_item(kind='fits')
        TestDataFactory.create_master_data_item(kind='fits')

        response = self.client.get('/api/v1/master-data/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        counts = {row['kind']: row['count'] for row in response.data['data']}
        self.assertEqual(len(counts), len(MasterDataItem.KINDS))
        self.assertEqual(counts['fits'], 2)
        self.assertEqual(counts['sizes'], 0)

    def test_create_item_generates_slug(self):
        response = self.client.post('/api/v1/master-data/occasions/', {'name': 'Eid Special'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['kind'], 'occasions')
        self.assertEqual(response.data['data']['slug'], 'eid-special')

    def test_unknown_kind_not_found(self):
        response = self.client.get('/api/v1/master-data/flavours/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.data['success'])

    def test_slug_unique_within_kind(self):
        self.client.post('/api/v1/master-data/fits/', {'name': 'Slim Fit'}, format='json')

        duplicate = self.client.post('/api/v1/master-data/fits/', {'name': 'Slim Fit'}, format='json')
        other_kind = self.client.post('/api/v1/master-data/styles/', {'name': 'Slim Fit'}, format='json')

        self.assertEqual(duplicate.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(duplicate.data['errors']['slug'], 'An item with this slug already exists.')
        self.assertEqual(other_kind.status_code, status.HTTP_201_CREATED)

    def test_extra_must_be_an_object(self):
        color = self.client.post('/api/v1/master-data/colors/', {'name': 'Red', 'extra': 'oops'}, format='json')
        size = self.client.post('/api/v1/master-data/sizes/', {'name': 'Large', 'extra': ['L']}, format='json')
        fit = self.client.post('/api/v1/master-data/fits/', {'name': 'Relaxed', 'extra': 'loose'}, format='json')

        for response in (color, size, fit):
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['errors']['extra'], 'Extra must be an object')

    def test_color_requires_image(self):
        response = self.client.post('/api/v1/master-data/colors/', {
            'name': 'Teal', 'extra': {'hex_code': '#008080'},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['extra'], 'Color image is required')

    def test_color_with_image(self):
        response = self.client.post('/api/v1/master-data/colors/', {
            'name': 'Teal', 'extra': {'hex_code': '#008080', 'image_url': 'https://cdn.example.com/teal.png'},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_size_type_checked(self):
        response = self.client.post('/api/v1/master-data/sizes/', {
            'name': '42', 'extra': {'size_type': 'metric'},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Size type must be one of', response.data['errors']['extra'])

    def test_item_from_other_kind_not_found(self):
        item = TestDataFactory.create_master_data_item(kind='fits')
        response = self.client.get(f'/api/v1/master-data/styles/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_and_delete(self):
        item = TestDataFactory.create_master_data_item(kind='materials', name='Cotton')

        response = self.client.patch(f'/api/v1/master-data/materials/{item.id}/', {'sort_order': 4}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['sort_order'], 4)

        response = self.client.delete(f'/api/v1/master-data/materials/{item.id}/')
        self.assertEqual(response.data['message'], 'Materials item deleted')
        self.assertFalse(MasterDataItem.objects.filter(pk=item.id).exists())

    def test_regular_user_read_only(self):
        self.client.authenticate_user(TestDataFactory.create_user())

        self.assertEqual(self.client.get('/api/v1/master-data/fits/').status_code, status.HTTP_200_OK)
        response = self.client.post('/api/v1/master-data/fits/', {'name': 'Loose'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class SeedMasterDataCommandTests(TestCase):

    def test_seed_is_idempotent(self):
        call_command('seed_master_data', stdout=StringIO())
        first = MasterDataItem.objects.count()
        call_command('seed_master_data', stdout=StringIO())

        self.assertGreater(first, 0)
        self.assertEqual(MasterDataItem.objects.count(), first)
        self.assertEqual(set(MasterDataItem.objects.values_list('kind', flat=True)), set(MasterDataItem.KINDS))

    def test_seed_single_kind(self):
        out = StringIO()
        call_command('seed_master_data', kind='sizes', stdout=out)

        self.assertEqual(set(MasterDataItem.objects.values_list('kind', flat=True)), {'sizes'})
        self.assertIn('✓ Created: XS', out.getvalue())
