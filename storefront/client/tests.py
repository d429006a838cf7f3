"""
Tests for the API client package
Tests: request/retry handling, session lifecycle, token refresh and the cart mirror
"""
import json
import tempfile
import threading
from decimal import Decimal
from pathlib import Path
from unittest import mock

import requests
from django.test import SimpleTestCase

from storefront.client import (
    ANONYMOUS, AUTHENTICATED, ApiClient, AuthenticationError, CartSession, ClientConfig,
    FileTokenStore, MemoryTokenStore, NetworkError, ServiceResponse, SessionManager, StorefrontServices, TokenStore,
)
from storefront.client import routes
from storefront.client.storage import CART_SESSION_KEY, REFRESH_TOKEN_KEY, TOKEN_KEY

USER = {'id': 7, 'username': 'ayesha', 'email': 'ayesha@example.com'}


def fake_response(status_code=200, body=None):
    response = mock.Mock()
    response.status_code = status_code
    if body is None:
        response.json.side_effect = ValueError('no json')
        response.text = ''
    else:
        response.json.return_value = body
        response.text = json.dumps(body)
    return response


def envelope(data=None, message=None, success=True, errors=None):
    body = {'success': success}
    if data is not None:
        body['data'] = data
    if message:
        body['message'] = message
    if errors:
        body['errors'] = errors
    return body


class ClientTestMixin:

    def make_api(self, store=None):
        self.http = mock.MagicMock()
        return ApiClient(ClientConfig(base_url='http://shop.test/api/v1/', timeout=5), store or MemoryTokenStore(), self.http)

    def sent_headers(self, call_index=-1):
        return self.http.request.call_args_list[call_index].kwargs['headers']


class ApiClientTests(ClientTestMixin, SimpleTestCase):

    def test_success_envelope(self):
        api = self.make_api(MemoryTokenStore({TOKEN_KEY: 'access-1'}))
        self.http.request.return_value = fake_response(200, envelope({'id': 1}, message='ok'))

        response = api.get('products/1/')

        self.assertTrue(response)
        self.assertEqual(response.data, {'id': 1})
        self.assertEqual(response.message, 'ok')
        args, kwargs = self.http.request.call_args
        self.assertEqual(args, ('GET', 'http://shop.test/api/v1/products/1/'))
        self.assertEqual(kwargs['headers']['Authorization'], 'Bearer access-1')
        self.assertEqual(kwargs['timeout'], 5)

    def test_error_envelope(self):
        api = self.make_api()
        self.http.request.return_value = fake_response(400, envelope(
            success=False, message='Validation failed', errors={'name': 'name is required'},
        ))

        response = api.post('brands/', json={})

        self.assertFalse(response)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.errors, {'name': 'name is required'})

    def test_non_json_error(self):
        api = self.make_api()
        self.http.request.return_value = fake_response(502)

        response = api.get('products/')

        self.assertFalse(response.success)
        self.assertEqual(response.message, 'Request failed with status 502')

    def test_unauthenticated_call_sends_no_token(self):
        api = self.make_api(MemoryTokenStore({TOKEN_KEY: 'access-1'}))
        self.http.request.return_value = fake_response(200, envelope([]))

        api.get('shop/products/', authenticate=False)

        self.assertNotIn('Authorization', self.sent_headers())

    def test_session_header(self):
        api = self.make_api()
        api.session_id = 'abc123'
        self.http.request.return_value = fake_response(200, envelope({}))

        api.get('cart/')

        self.assertEqual(self.sent_headers()['X-Session-Id'], 'abc123')

    def test_transport_failure_raises_network_error(self):
        api = self.make_api()
        self.http.request.side_effect = requests.ConnectionError('refused')

        with self.assertRaises(NetworkError):
            api.get('products/')

    def test_401_retried_once_after_refresh(self):
        store = MemoryTokenStore({TOKEN_KEY: 'expired'})
        api = self.make_api(store)
        self.http.request.side_effect = [
            fake_response(401, {'success': False, 'message': 'Token expired'}),
            fake_response(200, envelope({'id': 1})),
        ]

        def refresher():
            store.set(TOKEN_KEY, 'fresh')
            return True

        api.set_refresher(refresher)
        response = api.get('orders/1/')

        self.assertTrue(response.success)
        self.assertEqual(self.http.request.call_count, 2)
        self.assertEqual(self.sent_headers(0)['Authorization'], 'Bearer expired')
        self.assertEqual(self.sent_headers(1)['Authorization'], 'Bearer fresh')

    def test_401_not_retried_when_refresh_fails(self):
        api = self.make_api(MemoryTokenStore({TOKEN_KEY: 'expired'}))
        self.http.request.return_value = fake_response(401, {'success': False, 'message': 'Token expired'})
        refresher = mock.Mock(return_value=False)
        api.set_refresher(refresher)

        response = api.get('orders/1/')

        self.assertEqual(response.status_code, 401)
        self.assertEqual(self.http.request.call_count, 1)
        refresher.assert_called_once_with()

    def test_second_401_is_returned(self):
        api = self.make_api(MemoryTokenStore({TOKEN_KEY: 'expired'}))
        self.http.request.return_value = fake_response(401, {'success': False, 'message': 'Token expired'})
        api.set_refresher(mock.Mock(return_value=True))

        response = api.get('orders/1/')

        self.assertEqual(response.status_code, 401)
        self.assertEqual(self.http.request.call_count, 2)

    def test_no_retry_when_disabled(self):
        api = self.make_api(MemoryTokenStore({TOKEN_KEY: 'expired'}))
        self.http.request.return_value = fake_response(401, {'success': False})
        refresher = mock.Mock(return_value=True)
        api.set_refresher(refresher)

        api.get('auth/profile/', retry=False)

        refresher.assert_not_called()


class ServiceTests(ClientTestMixin, SimpleTestCase):

    def setUp(self):
        self.services = StorefrontServices(self.make_api())
        self.http.request.return_value = fake_response(200, envelope({}))

    def test_login_with_email_or_username(self):
        self.services.auth.login('ayesha@example.com', 'secret123')
        self.assertEqual(self.http.request.call_args.kwargs['json'], {'email': 'ayesha@example.com', 'password': 'secret123'})

        self.services.auth.login('ayesha', 'secret123')
        self.assertEqual(self.http.request.call_args.kwargs['json'], {'username': 'ayesha', 'password': 'secret123'})

    def test_resource_paths(self):
        self.services.customers.update_customer(3, {'phone': '03001234567'})
        self.assertEqual(self.http.request.call_args.args, ('PATCH', 'http://shop.test/api/v1/customers/3/'))

        self.services.customers.addresses(3).get_all()
        self.assertEqual(self.http.request.call_args.args, ('GET', 'http://shop.test/api/v1/customers/3/addresses/'))

        self.services.master_data('age-groups').create({'name': 'Teens'})
        self.assertEqual(self.http.request.call_args.args, ('POST', 'http://shop.test/api/v1/master-data/age-groups/'))

        self.services.orders.cancel_order(12)
        self.assertEqual(self.http.request.call_args.args, ('POST', 'http://shop.test/api/v1/orders/12/cancel/'))

    def test_delivery_quote_payload(self):
        self.services.delivery_charges.quote({'city': 'Lahore', 'country': 'PK'}, Decimal('1200.00'), item_count=2)

        payload = self.http.request.call_args.kwargs['json']
        self.assertEqual(payload['city'], 'Lahore')
        self.assertEqual(payload['state'], '')
        self.assertEqual(payload['subtotal'], '1200.00')
        self.assertEqual(payload['item_count'], 2)


class SessionManagerTests(ClientTestMixin, SimpleTestCase):

    def setUp(self):
        self.store = MemoryTokenStore()
        self.api = self.make_api(self.store)
        self.services = StorefrontServices(self.api)
        self.navigated = []
        self.session = SessionManager(self.services, on_logout=self.navigated.append)

    def remember(self, access='access-1', refresh='refresh-1'):
        self.store.set(TOKEN_KEY, access)
        if refresh:
            self.store.set(REFRESH_TOKEN_KEY, refresh)
        self.store.set_user(USER)

    def test_start_without_credentials(self):
        self.assertEqual(self.session.start(), ANONYMOUS)
        self.http.request.assert_not_called()

    def test_start_with_valid_token(self):
        self.remember()
        self.http.request.return_value = fake_response(200, envelope({'user': USER}))

        self.assertEqual(self.session.start(), AUTHENTICATED)
        self.assertEqual(self.session.user, USER)

    def test_start_refreshes_expired_token_once(self):
        self.remember()
        self.http.request.side_effect = [
            fake_response(401, {'success': False, 'message': 'Token expired'}),
            fake_response(200, envelope({'access_token': 'access-2', 'refresh_token': 'refresh-2'})),
            fake_response(200, envelope({'user': USER})),
        ]

        self.assertEqual(self.session.start(), AUTHENTICATED)
        self.assertEqual(self.store.get(TOKEN_KEY), 'access-2')
        self.assertEqual(self.store.get(REFRESH_TOKEN_KEY), 'refresh-2')
        self.assertEqual(self.http.request.call_count, 3)

    def test_start_clears_credentials_when_refresh_fails(self):
        self.remember()
        self.http.request.side_effect = [
            fake_response(401, {'success': False}),
            fake_response(401, {'success': False, 'message': 'Token is blacklisted'}),
        ]

        self.assertEqual(self.session.start(), ANONYMOUS)
        self.assertIsNone(self.store.get(TOKEN_KEY))
        self.assertIsNone(self.store.get_user())

    def test_start_without_refresh_token(self):
        self.remember(refresh=None)
        self.http.request.return_value = fake_response(401, {'success': False})

        self.assertEqual(self.session.start(), ANONYMOUS)
        self.assertEqual(self.http.request.call_count, 1)

    def test_start_network_failure(self):
        self.remember()
        self.http.request.side_effect = requests.Timeout('slow')

        self.assertEqual(self.session.start(), ANONYMOUS)
        self.assertIsNone(self.store.get(TOKEN_KEY))

    def test_login_stores_tokens(self):
        self.http.request.return_value = fake_response(200, envelope({
            'user': USER, 'access_token': 'access-1', 'refresh_token': 'refresh-1',
        }))

        user = self.session.login('ayesha@example.com', 'secret123')

        self.assertEqual(user, USER)
        self.assertTrue(self.session.is_authenticated)
        self.assertEqual(self.store.get(TOKEN_KEY), 'access-1')
        self.assertEqual(self.store.get_user(), USER)

    def test_login_rejected(self):
        self.http.request.return_value = fake_response(401, envelope(success=False, message='Invalid credentials'))

        with self.assertRaises(AuthenticationError) as ctx:
            self.session.login('ayesha', 'wrong')

        self.assertEqual(ctx.exception.message, 'Invalid credentials')
        self.assertEqual(self.session.error, 'Invalid credentials')
        self.assertEqual(self.session.state, ANONYMOUS)

    def test_login_without_token(self):
        self.http.request.return_value = fake_response(200, envelope({'user': USER}))

        with self.assertRaises(AuthenticationError) as ctx:
            self.session.login('ayesha', 'secret123')

        self.assertEqual(ctx.exception.message, 'No token received from server')

    def test_logout(self):
        self.remember()
        self.http.request.return_value = fake_response(200, envelope(message='Logout successful'))

        self.session.logout()

        self.assertEqual(self.http.request.call_args.kwargs['json'], {'refresh_token': 'refresh-1'})
        self.assertIsNone(self.store.get(TOKEN_KEY))
        self.assertEqual(self.navigated, [routes.LOGIN])

    def test_logout_when_server_unreachable(self):
        self.remember()
        self.http.request.side_effect = requests.ConnectionError('down')

        self.session.logout()

        self.assertIsNone(self.store.get(REFRESH_TOKEN_KEY))
        self.assertEqual(self.session.state, ANONYMOUS)
        self.assertEqual(self.navigated, [routes.LOGIN])

    def test_context_manager_registers_refresher(self):
        with self.session as session:
            self.assertIsNotNone(session.api._refresher)
        self.assertIsNone(self.api._refresher)

    def test_concurrent_refresh_shares_one_request(self):
        self.remember()
        started = threading.Event()
        release = threading.Event()

        def slow_refresh(refresh_token):
            started.set()
            release.wait(5)
            self.store.set(TOKEN_KEY, 'access-2')
            return ServiceResponse(success=True, data={'access_token': 'access-2'})

        results = []
        with mock.patch.object(self.services.auth, 'refresh_token', side_effect=slow_refresh) as refresh_call:
            owner = threading.Thread(target=lambda: results.append(self.session.refresh()))
            owner.start()
            self.assertTrue(started.wait(5))

            waiters = [threading.Thread(target=lambda: results.append(self.session.refresh())) for _ in range(3)]
            for waiter in waiters:
                waiter.start()
            waiters[0].join(0.2)
            self.assertEqual(refresh_call.call_count, 1)

            release.set()
            for thread in [owner] + waiters:
                thread.join(5)

        self.assertEqual(results, [True, True, True, True])
        self.assertEqual(refresh_call.call_count, 1)
        self.assertIsNone(self.session._pending_refresh)

    def test_refresh_failure_drops_credentials(self):
        self.remember()
        self.session.state = AUTHENTICATED
        self.http.request.return_value = fake_response(401, {'success': False})

        self.assertFalse(self.session.refresh())
        self.assertIsNone(self.store.get(TOKEN_KEY))
        self.assertEqual(self.session.state, ANONYMOUS)


class CartSessionTests(ClientTestMixin, SimpleTestCase):

    def setUp(self):
        self.store = MemoryTokenStore()
        self.services = StorefrontServices(self.make_api(self.store))

    def test_session_id_is_persisted(self):
        first = CartSession(self.services)
        second = CartSession(StorefrontServices(self.make_api(self.store)))

        self.assertEqual(first.session_id, self.store.get(CART_SESSION_KEY))
        self.assertEqual(second.session_id, first.session_id)

    def test_add_item_updates_local_cart(self):
        cart = CartSession(self.services)
        self.http.request.return_value = fake_response(201, envelope({
            'id': 1,
            'items': [{'id': 5, 'product_id': 9, 'quantity': 2, 'unit_price': '1250.00'}],
        }))

        response = cart.add_item(9, 2)

        self.assertTrue(response)
        self.assertEqual(cart.item_count, 2)
        self.assertEqual(cart.total_amount, Decimal('2500.00'))
        self.assertEqual(cart.find_item(9)['id'], 5)
        self.assertIsNone(cart.find_item(10))
        self.assertEqual(self.sent_headers()['X-Session-Id'], cart.session_id)

    def test_failed_change_keeps_cart(self):
        cart = CartSession(self.services)
        cart.cart = {'items': [{'id': 5, 'product_id': 9, 'quantity': 1, 'unit_price': '100.00'}]}
        self.http.request.return_value = fake_response(400, envelope(success=False, message='Only 1 item(s) in stock'))

        cart.update_quantity(5, 4)

        self.assertEqual(cart.item_count, 1)
        self.assertEqual(cart.error, 'Only 1 item(s) in stock')

    def test_checkout_empties_cart(self):
        cart = CartSession(self.services)
        cart.cart = {'items': [{'id': 5, 'product_id': 9, 'quantity': 1, 'unit_price': '100.00'}]}
        self.http.request.return_value = fake_response(201, envelope({'id': 44, 'order_number': 'ORD-1'}))

        response = cart.checkout({'payment_method': 'cash_on_delivery'})

        self.assertTrue(response)
        self.assertEqual(cart.last_order['id'], 44)
        self.assertEqual(cart.items, [])
        self.assertEqual(routes.order_confirmation(cart.last_order['id']), '/order-confirmation/44')


class StorageTests(SimpleTestCase):

    def test_file_store_round_trip(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'session.json'
            store = FileTokenStore(path)
            store.set(TOKEN_KEY, 'access-1')
            store.set_user(USER)

            reopened = FileTokenStore(path)
            self.assertEqual(reopened.get(TOKEN_KEY), 'access-1')
            self.assertEqual(reopened.get_user(), USER)

            reopened.clear_credentials()
            self.assertIsNone(store.get(TOKEN_KEY))

    def test_store_must_implement_remove(self):
        class ReadOnlyStore(TokenStore):
            def get(self, key):
                return None

            def set(self, key, value):
                pass

        with self.assertRaises(TypeError):
            ReadOnlyStore()

    def test_corrupt_user_is_ignored(self):
        store = MemoryTokenStore({'user': '{not json'})
        self.assertIsNone(store.get_user())

    def test_config_strips_trailing_slash(self):
        config = ClientConfig(base_url='http://shop.test/api/v1/')
        self.assertEqual(config.url('/cart/'), 'http://shop.test/api/v1/cart/')
        self.assertEqual(routes.dashboard('orders'), '/dashboard/orders')
