"""
Tests for the orders module
Tests: carts, checkout, order workflow and delivery charges
"""
from decimal import Decimal
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.shortcuts import get_object_or_404
from django.test import TestCase
from rest_framework import status

from storefront.catalog.models import Product
from storefront.core.models import AuditLog
from storefront.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from storefront.orders.models import Cart, CartItem, DeliveryCharge, Order
from storefront.orders.utils import (
    CartError, add_to_cart, calculate_delivery_fee, charge_matches_address, find_delivery_charge,
    quick_setup_delivery_charges,
)


class CartAPITests(TestCase):
    """Test the session and user carts"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product(stock_quantity=5)

    def test_cart_needs_user_or_session(self):
        response = self.client.get('/api/v1/cart/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Sign in or send an X-Session-Id header to use the cart')

    def test_guest_adds_item(self):
        self.client.use_session('guest-session-1')

        response = self.client.post('/api/v1/cart/items/', {'product_id': self.product.id, 'quantity': 2}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['item_count'], 2)
        self.assertEqual(data['total_amount'], '2000.00')
        self.assertTrue(data['cart_number'].startswith('CART-'))
        self.assertTrue(AuditLog.objects.filter(action='cart_add').exists())

    def test_adding_same_product_merges_lines(self):
        self.client.use_session('guest-session-1')
        self.client.post('/api/v1/cart/items/', {'product_id': self.product.id}, format='json')
        response = self.client.post('/api/v1/cart/items/', {'product_id': self.product.id, 'quantity': 2}, format='json')

        items = response.data['data']['items']
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]['quantity'], 3)

    def test_cannot_add_more_than_stock(self):
        self.client.use_session('guest-session-1')
        response = self.client.post('/api/v1/cart/items/', {'product_id': self.product.id, 'quantity': 6}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], f'Only 5 item(s) of {self.product.name} in stock')

    def test_cannot_add_draft_product(self):
        draft = TestDataFactory.create_product(status='draft')
        self.client.use_session('guest-session-1')
        response = self.client.post('/api/v1/cart/items/', {'product_id': draft.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], f'{draft.name} is not available')

    def test_zero_quantity_rejected_on_add(self):
        self.client.use_session('guest-session-1')
        response = self.client.post('/api/v1/cart/items/', {'product_id': self.product.id, 'quantity': -1}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['quantity'], 'Quantity must be at least 1')

    def test_update_and_remove_line(self):
        cart = TestDataFactory.create_cart(session_key='guest-session-1')
        item = TestDataFactory.add_cart_item(cart, self.product, quantity=1)
        self.client.use_session('guest-session-1')

        response = self.client.patch(f'/api/v1/cart/items/{item.id}/', {'quantity': 4}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['item_count'], 4)

        response = self.client.patch(f'/api/v1/cart/items/{item.id}/', {'quantity': 0}, format='json')
        self.assertEqual(response.data['data']['items'], [])
        self.assertFalse(CartItem.objects.filter(pk=item.id).exists())

    def test_cannot_touch_another_sessions_line(self):
        cart = TestDataFactory.create_cart(session_key='someone-else')
        item = TestDataFactory.add_cart_item(cart, self.product)
        self.client.use_session('guest-session-1')

        response = self.client.delete(f'/api/v1/cart/items/{item.id}/')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertTrue(CartItem.objects.filter(pk=item.id).exists())

    def test_clear_cart(self):
        cart = TestDataFactory.create_cart(session_key='guest-session-1')
        TestDataFactory.add_cart_item(cart, self.product, quantity=2)
        self.client.use_session('guest-session-1')

        response = self.client.delete('/api/v1/cart/')

        self.assertEqual(response.data['message'], 'Cart cleared')
        self.assertEqual(cart.items.count(), 0)

    def test_guest_cart_merges_on_sign_in(self):
        user = TestDataFactory.create_user()
        other = TestDataFactory.create_product(stock_quantity=5)
        user_cart = TestDataFactory.create_cart(user=user)
        TestDataFactory.add_cart_item(user_cart, self.product, quantity=1)
        guest_cart = TestDataFactory.create_cart(session_key='guest-session-1')
        TestDataFactory.add_cart_item(guest_cart, self.product, quantity=2)
        TestDataFactory.add_cart_item(guest_cart, other, quantity=1)

        self.client.authenticate_user(user, session_key='guest-session-1')
        response = self.client.get('/api/v1/cart/')

        self.assertEqual(response.data['data']['id'], user_cart.id)
        quantities = {item['product_id']: item['quantity'] for item in response.data['data']['items']}
        self.assertEqual(quantities, {self.product.id: 3, other.id: 1})
        self.assertFalse(Cart.objects.filter(pk=guest_cart.id).exists())

    def test_guest_cart_adopted_when_user_has_none(self):
        user = TestDataFactory.create_user()
        guest_cart = TestDataFactory.create_cart(session_key='guest-session-1')
        TestDataFactory.add_cart_item(guest_cart, self.product)

        self.client.authenticate_user(user, session_key='guest-session-1')
        response = self.client.get('/api/v1/cart/')

        self.assertEqual(response.data['data']['id'], guest_cart.id)
        guest_cart.refresh_from_db()
        self.assertEqual(guest_cart.user, user)


class CheckoutAPITests(TestCase):
    """Test placing orders"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.product = TestDataFactory.create_product(base_price=Decimal('1000.00'), stock_quantity=5)
        TestDataFactory.create_delivery_charge(
            'Lahore', 'city', priority=100, estimated_delivery_days=2,
            free_shipping_threshold=Decimal('5000.00'),
        )
        TestDataFactory.create_delivery_charge('Pakistan', 'country', priority=0, state='', base_charge=Decimal('350.00'))
        self.cart = TestDataFactory.create_cart(session_key='guest-session-1')
        TestDataFactory.add_cart_item(self.cart, self.product, quantity=2)
        self.client.use_session('guest-session-1')

    def _checkout(self, **overrides):
        payload = {
            'billing_address': TestDataFactory.checkout_address(),
            'payment_method': 'cash_on_delivery',
            'email': 'Guest@Example.com',
        }
        payload.update(overrides)
        return self.client.post('/api/v1/orders/', payload, format='json')

    def test_guest_checkout_from_cart(self):
        response = self._checkout()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Order placed successfully')
        order = response.data['data']
        self.assertTrue(order['order_number'].startswith('ORD-'))
        self.assertEqual(order['subtotal'], '2000.00')
        self.assertEqual(order['shipping_total'], '150.00')
        self.assertEqual(order['total'], '2150.00')
        self.assertEqual(order['delivery_location'], 'Lahore')
        self.assertEqual(order['estimated_delivery_days'], 2)
        self.assertEqual(order['email'], 'guest@example.com')
        self.assertEqual(order['shipping_address']['city'], 'Lahore')
        self.assertEqual(order['currency'], 'PKR')

        self.product.refresh_from_db()
        self.cart.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 3)
        self.assertEqual(self.cart.status, 'converted')
        self.assertTrue(AuditLog.objects.filter(action='order_create').exists())

    def test_free_shipping_over_threshold(self):
        CartItem.objects.filter(cart=self.cart).update(quantity=5)

        response = self._checkout()

        self.assertEqual(response.data['data']['shipping_total'], '0.00')
        self.assertEqual(response.data['data']['total'], '5000.00')

    def test_other_city_uses_country_zone(self):
        response = self._checkout(billing_address=TestDataFactory.checkout_address(city='Karachi', state='Sindh'))

        self.assertEqual(response.data['data']['shipping_total'], '350.00')
        self.assertEqual(response.data['data']['delivery_location'], 'Pakistan')

    def test_separate_shipping_address(self):
        response = self._checkout(
            same_as_billing=False,
            shipping_address=TestDataFactory.checkout_address(city='Karachi', state='Sindh'),
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['billing_address']['city'], 'Lahore')
        self.assertEqual(response.data['data']['shipping_address']['city'], 'Karachi')

    def test_missing_shipping_address_when_not_same_as_billing(self):
        response = self._checkout(same_as_billing=False)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['shipping_address'], 'shipping_address is required')

    def test_billing_field_required(self):
        response = self._checkout(billing_address=TestDataFactory.checkout_address(city=''))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['billing_address'], 'Billing city is required')

    def test_invalid_payment_method(self):
        response = self._checkout(payment_method='barter')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['payment_method'], 'Please select a valid payment method')

    def test_guest_needs_email(self):
        response = self._checkout(email='')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['email'], 'email is required')

    def test_empty_cart(self):
        self.cart.items.all().delete()

        response = self._checkout()

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Your cart is empty')

    def test_stock_checked_at_checkout(self):
        Product.objects.filter(pk=self.product.pk).update(stock_quantity=1)

        response = self._checkout()

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('in stock', response.data['message'])
        self.assertEqual(Order.objects.count(), 0)

    def test_signed_in_checkout_with_explicit_items(self):
        user = TestDataFactory.create_user()
        customer = TestDataFactory.create_customer(user=user, email=user.email)
        self.client.authenticate_user(user)

        response = self._checkout(email='', items=[{'product_id': self.product.id, 'quantity': 1}])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        order = Order.objects.get(pk=response.data['data']['id'])
        self.assertEqual(order.user, user)
        self.assertEqual(order.customer, customer)
        self.assertEqual(order.email, user.email)
        self.assertEqual(order.items.get().quantity, 1)

    def test_no_matching_zone_means_no_fee(self):
        DeliveryCharge.objects.all().delete()

        response = self._checkout()

        self.assertEqual(response.data['data']['shipping_total'], '0.00')
        self.assertIsNone(response.data['data']['delivery_location'])


class OrderAPITests(TestCase):
    """Test order visibility, cancellation and status updates"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user()
        self.staff = TestDataFactory.create_staff_user()
        self.product = TestDataFactory.create_product(stock_quantity=5)
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/orders/', {
            'billing_address': TestDataFactory.checkout_address(),
            'payment_method': 'credit_card',
            'items': [{'product_id': self.product.id, 'quantity': 2}],
        }, format='json')
        self.order = Order.objects.get(pk=response.data['data']['id'])

    def test_list_own_orders(self):
        other = TestDataFactory.create_user()
        self.client.authenticate_user(other)
        self.assertEqual(self.client.get('/api/v1/orders/').data['data'], [])

        self.client.authenticate_user(self.user)
        orders = self.client.get('/api/v1/orders/').data['data']
        self.assertEqual([o['id'] for o in orders], [self.order.id])

    def test_anonymous_cannot_list(self):
        self.client.logout()
        response = self.client.get('/api/v1/orders/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_other_user_cannot_view(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/orders/{self.order.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cancel_restocks(self):
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 3)

        response = self.client.post(f'/api/v1/orders/{self.order.id}/cancel/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'cancelled')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 5)
        self.assertTrue(AuditLog.objects.filter(action='order_cancel').exists())

    def test_cancel_paid_order_refunds(self):
        Order.objects.filter(pk=self.order.pk).update(payment_status='paid')

        response = self.client.post(f'/api/v1/orders/{self.order.id}/cancel/')

        self.assertEqual(response.data['data']['payment_status'], 'refunded')

    def test_second_cancel_does_not_restock_again(self):
        self.client.post(f'/api/v1/orders/{self.order.id}/cancel/')

        response = self.client.post(f'/api/v1/orders/{self.order.id}/cancel/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Orders that are cancelled cannot be cancelled')
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 5)

    def _locked_fetches(self, send):
        locked = []

        def fetch(queryset, **kwargs):
            locked.append(queryset.query.select_for_update)
            return get_object_or_404(queryset, **kwargs)

        with mock.patch('storefront.orders.views.get_object_or_404', side_effect=fetch):
            response = send()
        return response, locked

    def test_cancel_checks_a_locked_row(self):
        response, locked = self._locked_fetches(
            lambda: self.client.post(f'/api/v1/orders/{self.order.id}/cancel/')
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(locked, [True])

    def test_status_update_checks_a_locked_row(self):
        self.client.authenticate_user(self.staff)
        response, locked = self._locked_fetches(
            lambda: self.client.patch(f'/api/v1/orders/{self.order.id}/status/', {'status': 'cancelled'}, format='json')
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(locked, [True])
        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 5)

    def test_shipped_order_cannot_be_cancelled(self):
        Order.objects.filter(pk=self.order.pk).update(status='shipped')

        response = self.client.post(f'/api/v1/orders/{self.order.id}/cancel/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Orders that are shipped cannot be cancelled')

    def test_staff_moves_order_forward(self):
        self.client.authenticate_user(self.staff)
        url = f'/api/v1/orders/{self.order.id}/status/'

        response = self.client.patch(url, {'status': 'processing'}, format='json')
        self.assertEqual(response.data['data']['status'], 'processing')

        response = self.client.patch(url, {'status': 'shipped', 'tracking_number': 'TCS-123'}, format='json')
        self.assertEqual(response.data['data']['tracking_number'], 'TCS-123')
        self.assertFalse(response.data['data']['is_cancellable'])

        changes = [log.changes.get('status') for log in AuditLog.objects.filter(action='order_status')]
        self.assertIn({'old': 'processing', 'new': 'shipped'}, changes)

    def test_invalid_transition(self):
        self.client.authenticate_user(self.staff)
        response = self.client.patch(f'/api/v1/orders/{self.order.id}/status/', {'status': 'delivered'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['status'], 'Cannot change status from pending to delivered')

    def test_empty_status_update(self):
        self.client.authenticate_user(self.staff)
        response = self.client.patch(f'/api/v1/orders/{self.order.id}/status/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_cannot_update_status(self):
        response = self.client.patch(f'/api/v1/orders/{self.order.id}/status/', {'status': 'processing'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_guest_sees_order_by_session(self):
        guest = AuthenticatedAPIClient().use_session('guest-42')
        cart = TestDataFactory.create_cart(session_key='guest-42')
        TestDataFactory.add_cart_item(cart, self.product)
        response = guest.post('/api/v1/orders/', {
            'billing_address': TestDataFactory.checkout_address(),
            'payment_method': 'paypal',
            'email': 'guest@example.com',
        }, format='json')
        order_id = response.data['data']['id']

        self.assertEqual(guest.get(f'/api/v1/orders/{order_id}/').status_code, status.HTTP_200_OK)
        stranger = AuthenticatedAPIClient().use_session('guest-43')
        self.assertEqual(stranger.get(f'/api/v1/orders/{order_id}/').status_code, status.HTTP_404_NOT_FOUND)


class DeliveryChargeAPITests(TestCase):
    """Test delivery zone management and quotes"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_staff_user())

    def test_create_city_zone(self):
        response = self.client.post('/api/v1/delivery-charges/', {
            'location_name': 'Islamabad',
            'location_type': 'city',
            'country': 'PK',
            'city': 'Islamabad',
            'base_charge': 200,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['base_charge'], '200.00')

    def test_location_field_matches_type(self):
        response = self.client.post('/api/v1/delivery-charges/', {
            'location_name': 'Sindh',
            'location_type': 'state',
            'country': 'PK',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['state'], 'state is required')

    def test_negative_charge_rejected(self):
        response = self.client.post('/api/v1/delivery-charges/', {
            'location_name': 'Lahore', 'location_type': 'city', 'city': 'Lahore', 'base_charge': -5,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['errors']['base_charge'], 'Base charge must be 0 or greater')

    def test_maximum_above_minimum(self):
        response = self.client.post('/api/v1/delivery-charges/', {
            'location_name': 'Lahore', 'location_type': 'city', 'city': 'Lahore',
            'minimum_order_amount': 5000, 'maximum_order_amount': 1000,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            response.data['errors']['maximum_order_amount'],
            'Maximum order amount must be greater than minimum order amount',
        )

    def test_quick_setup_is_idempotent(self):
        first = self.client.post('/api/v1/delivery-charges/quick-setup/')
        second = self.client.post('/api/v1/delivery-charges/quick-setup/')

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(first.data['data']['created']), 3)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(second.data['data']['created'], [])
        self.assertEqual(len(second.data['data']['skipped']), 3)
        self.assertEqual(DeliveryCharge.objects.count(), 3)

    def test_quote(self):
        quick_setup_delivery_charges()
        self.client.logout()

        lahore = self.client.post('/api/v1/delivery-charges/quote/', {
            'country': 'Pakistan', 'state': 'Punjab', 'city': 'lahore', 'subtotal': '1200',
        }, format='json')
        multan = self.client.post('/api/v1/delivery-charges/quote/', {
            'country': 'PK', 'state': 'Punjab', 'city': 'Multan', 'subtotal': '1200',
        }, format='json')
        karachi = self.client.post('/api/v1/delivery-charges/quote/', {
            'country': 'PK', 'state': 'Sindh', 'city': 'Karachi', 'subtotal': '1200',
        }, format='json')

        self.assertEqual(lahore.data['data']['shipping_total'], '150.00')
        self.assertEqual(lahore.data['data']['estimated_delivery_days'], 2)
        self.assertEqual(multan.data['data']['shipping_total'], '250.00')
        self.assertEqual(karachi.data['data']['shipping_total'], '350.00')

    def test_quote_outside_zones(self):
        quick_setup_delivery_charges()
        response = self.client.post('/api/v1/delivery-charges/quote/', {
            'country': 'AE', 'city': 'Dubai', 'subtotal': '1200',
        }, format='json')

        self.assertFalse(response.data['data']['available'])

    def test_regular_user_cannot_manage_zones(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/delivery-charges/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class DeliveryPricingTests(TestCase):
    """Test zone matching and fee arithmetic"""

    def test_fee_components(self):
        charge = TestDataFactory.create_delivery_charge(
            base_charge=Decimal('100.00'), charge_per_item=Decimal('10.00'), charge_per_kg=Decimal('25.00'),
        )
        fee = calculate_delivery_fee(charge, Decimal('900.00'), item_count=3, weight_kg=Decimal('1.5'))
        self.assertEqual(fee, Decimal('167.50'))

    def test_no_charge_no_fee(self):
        self.assertEqual(calculate_delivery_fee(None, Decimal('100.00')), Decimal('0.00'))

    def test_threshold_is_inclusive(self):
        charge = TestDataFactory.create_delivery_charge(free_shipping_threshold=Decimal('3000.00'))
        self.assertEqual(calculate_delivery_fee(charge, Decimal('3000.00')), Decimal('0.00'))
        self.assertEqual(calculate_delivery_fee(charge, Decimal('2999.99')), Decimal('150.00'))

    def test_matching_ignores_case_and_spacing(self):
        charge = TestDataFactory.create_delivery_charge(
            'Gulberg', 'postal_code', postal_code='54660', city='', state='',
        )
        self.assertTrue(charge_matches_address(charge, {'country': 'pakistan', 'postal_code': '54 660'}))
        self.assertFalse(charge_matches_address(charge, {'country': 'PK', 'postal_code': '54000'}))

    def test_order_amount_limits(self):
        TestDataFactory.create_delivery_charge('Lahore Bulk', 'city', priority=200, minimum_order_amount=Decimal('10000.00'))
        regular = TestDataFactory.create_delivery_charge('Lahore', 'city', priority=100)
        address = {'country': 'PK', 'state': 'Punjab', 'city': 'Lahore'}

        self.assertEqual(find_delivery_charge(address, Decimal('500.00')), regular)
        self.assertEqual(find_delivery_charge(address, Decimal('20000.00')).location_name, 'Lahore Bulk')

    def test_disabled_zone_skipped(self):
        TestDataFactory.create_delivery_charge(enabled=False)
        self.assertIsNone(find_delivery_charge({'country': 'PK', 'state': 'Punjab', 'city': 'Lahore'}, Decimal('1.00')))


class CartHelperTests(TestCase):

    def test_add_to_cart_rejects_zero(self):
        cart = TestDataFactory.create_cart(session_key='abc')
        with self.assertRaises(CartError):
            add_to_cart(cart, TestDataFactory.create_product(), 0)

    def test_untracked_inventory_has_no_limit(self):
        cart = TestDataFactory.create_cart(session_key='abc')
        product = TestDataFactory.create_product(stock_quantity=0, track_inventory=False)
        item = add_to_cart(cart, product, 50)
        self.assertEqual(item.quantity, 50)


class SetupDeliveryChargesCommandTests(TestCase):

    def test_command_creates_then_skips(self):
        out = StringIO()
        call_command('setup_delivery_charges', stdout=out)
        call_command('setup_delivery_charges', stdout=out)

        self.assertEqual(DeliveryCharge.objects.count(), 3)
        self.assertIn('✓ Created: Lahore', out.getvalue())
        self.assertIn('⊘ Skipped (already exists): Lahore', out.getvalue())

    def test_reset(self):
        TestDataFactory.create_delivery_charge('Custom Zone', 'city')
        call_command('setup_delivery_charges', reset=True, stdout=StringIO())

        self.assertFalse(DeliveryCharge.objects.filter(location_name='Custom Zone').exists())
        self.assertEqual(DeliveryCharge.objects.count(), 3)
