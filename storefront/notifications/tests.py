"""
Tests for the notifications module
"""
from django.test import TestCase
from rest_framework import status

from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.notifications.models import Alert, NotificationTemplate


class AlertAPITests(TestCase):
    """Test alert configuration"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff_user())

    def test_create_stock_alert(self):
        response = self.client.post('/api/v1/alerts/', {
            'name': 'Low stock',
            'alert_type': 'stock',
            'threshold': 5,
            'direction': 'decrease',
            'severity': 'warning',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        # direction only applies to price alerts
        self.assertEqual(response.data['data']['direction'], '')
        self.assertEqual(response.data['data']['alert_type_display'], 'Stock')

    def test_price_alert_needs_direction(self):
        response = self.client.post('/api/v1/alerts/', {
            'name': 'Price drop', 'alert_type': 'price', 'threshold': 10,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['direction'], 'direction is required')

    def test_price_alert_direction_value(self):
        response = self.client.post('/api/v1/alerts/', {
            'name': 'Price drop', 'alert_type': 'price', 'threshold': 10, 'direction': 'sideways',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['direction'], 'Direction must be increase or decrease')

    def test_price_threshold_is_a_percentage(self):
        response = self.client.post('/api/v1/alerts/', {
            'name': 'Price jump', 'alert_type': 'price', 'threshold': 150, 'direction': 'increase',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['threshold'], 'Threshold must be no more than 100')

    def test_negative_threshold(self):
        response = self.client.post('/api/v1/alerts/', {
            'name': 'Big orders', 'alert_type': 'order', 'threshold': -1,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['threshold'], 'Threshold must be 0 or greater')

    def test_unknown_alert_type(self):
        response = self.client.post('/api/v1/alerts/', {'name': 'Weather', 'alert_type': 'weather'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['alert_type'], 'Please select a valid alert type')

    def test_switching_to_price_alert_needs_direction(self):
        alert = Alert.objects.create(name='Stock', alert_type='stock', threshold=3)

        response = self.client.patch(f'/api/v1/alerts/{alert.id}/', {'alert_type': 'price'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['direction'], 'direction is required')

    def test_threshold_must_be_a_finite_number(self):
        response = self.client.post('/api/v1/alerts/', {
            'name': 'Orders', 'alert_type': 'order', 'threshold': 'nan',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['threshold'], 'Threshold must be a number')

    def test_filter_and_delete(self):
        stock = Alert.objects.create(name='Stock', alert_type='stock', threshold=3)
        Alert.objects.create(name='Orders', alert_type='order', threshold=10, severity='critical')

        response = self.client.get('/api/v1/alerts/', {'alert_type': 'stock'})
        self.assertEqual([a['name'] for a in response.data['data']], ['Stock'])

        response = self.client.delete(f'/api/v1/alerts/{stock.id}/')
        self.assertEqual(response.data['message'], 'Alert deleted')
        self.assertEqual(Alert.objects.count(), 1)

    def test_regular_user_forbidden(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/alerts/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class NotificationTemplateAPITests(TestCase):
    """Test per-channel template rules"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff_user())

    def _create(self, **payload):
        return self.client.post('/api/v1/templates/', payload, format='json')

    def test_email_template(self):
        response = self._create(
            name='Order confirmation', channel='email', event_type='order-confirmation',
            subject='Your order {{ order_number }}', body='Thanks for shopping with us.',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['channel_display'], 'Email')

    def test_email_needs_subject(self):
        response = self._create(name='Welcome', channel='email', body='Hello')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['subject'], 'subject is required')

    def test_email_event_type(self):
        response = self._create(name='Welcome', channel='email', subject='Hi', body='Hello', event_type='birthday')

        self.assertEqual(response.data['errors']['event_type'], 'Please select a valid email type')

    def test_sms_length(self):
        response = self._create(name='Shipped', channel='sms', body='x' * 161)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['body'], 'body must be no more than 160 characters')

        response = self._create(name='Shipped', channel='sms', body='x' * 160)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_push_needs_title(self):
        response = self._create(name='Sale', channel='push', body='Everything 20% off')

        self.assertEqual(response.data['errors']['title'], 'title is required')

    def test_webhook_rules(self):
        response = self._create(name='ERP', channel='webhook', url='erp.local/hook', method='PATCH')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['url'], 'url must be a valid URL')
        self.assertEqual(response.data['errors']['method'], 'Method must be GET, POST, PUT or DELETE')

    def test_webhook_headers_must_be_object(self):
        response = self._create(
            name='ERP', channel='webhook', url='https://erp.example.com/hook', method='POST', headers=['x'],
        )

        self.assertEqual(response.data['errors']['headers'], 'Headers must be an object')

    def test_valid_webhook(self):
        response = self._create(
            name='ERP', channel='webhook', url='https://erp.example.com/hook', method='POST',
            headers={'Authorization': 'Token abc'},
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(NotificationTemplate.objects.get().headers, {'Authorization': 'Token abc'})

    def test_filter_by_channel(self):
        NotificationTemplate.objects.create(name='Email one', channel='email', subject='S', body='B')
        NotificationTemplate.objects.create(name='SMS one', channel='sms', body='B')

        response = self.client.get('/api/v1/templates/', {'channel': 'sms'})

        self.assertEqual([t['name'] for t in response.data['data']], ['SMS one'])

    def test_switching_to_sms_checks_stored_body(self):
        template = NotificationTemplate.objects.create(name='Newsletter', channel='email', subject='News', body='x' * 500)

        response = self.client.patch(f'/api/v1/templates/{template.id}/', {'channel': 'sms'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['body'], 'body must be no more than 160 characters')
        template.refresh_from_db()
        self.assertEqual(template.channel, 'email')

    def test_rename_leaves_other_rules_alone(self):
        template = NotificationTemplate.objects.create(name='Newsletter', channel='email', subject='News', body='x' * 500)

        response = self.client.patch(f'/api/v1/templates/{template.id}/', {'name': 'Weekly news'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
