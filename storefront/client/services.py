"""
Service objects wrapping the REST endpoints.

Each method returns a ServiceResponse; callers branch on ``success`` and
show ``message`` on failure.
"""
from typing import Optional

from .api import ApiClient, ServiceResponse


class ResourceService:
    """List/create/detail/update/delete for one collection path"""

    def __init__(self, api: ApiClient, path: str):
        self.api = api
        self.path = path.strip('/')

    def _item(self, pk) -> str:
        return f'{self.path}/{pk}/'

    def get_all(self, **params) -> ServiceResponse:
        return self.api.get(f'{self.path}/', params=params or None)

    def get(self, pk) -> ServiceResponse:
        return self.api.get(self._item(pk))

    def create(self, data: dict) -> ServiceResponse:
        return self.api.post(f'{self.path}/', json=data)

    def update(self, pk, data: dict, partial: bool = True) -> ServiceResponse:
        if partial:
            return self.api.patch(self._item(pk), json=data)
        return self.api.put(self._item(pk), json=data)

    def delete(self, pk) -> ServiceResponse:
        return self.api.delete(self._item(pk))


class AuthService:
    def __init__(self, api: ApiClient):
        self.api = api

    def login(self, identifier: str, password: str) -> ServiceResponse:
        key = 'email' if '@' in identifier else 'username'
        return self.api.post('auth/login/', json={key: identifier, 'password': password},
                             authenticate=False, retry=False)

    def register(self, user_data: dict) -> ServiceResponse:
        return self.api.post('auth/register/', json=user_data, authenticate=False, retry=False)

    def get_current_user(self, retry: bool = True) -> ServiceResponse:
        return self.api.get('auth/profile/', retry=retry)

    def refresh_token(self, refresh_token: str) -> ServiceResponse:
        return self.api.post('auth/refresh/', json={'refresh_token': refresh_token},
                             authenticate=False, retry=False)

    def logout(self, refresh_token: Optional[str] = None) -> ServiceResponse:
        return self.api.post('auth/logout/', json={'refresh_token': refresh_token}, retry=False)

    def change_password(self, current_password: str, new_password: str) -> ServiceResponse:
        return self.api.post('auth/change-password/', json={
            'current_password': current_password,
            'new_password': new_password,
        })


class CustomerService(ResourceService):
    def __init__(self, api):
        super().__init__(api, 'customers')

    def get_customers(self, **params):
        return self.get_all(**params)

    def get_customer(self, pk):
        return self.get(pk)

    def create_customer(self, data):
        return self.create(data)

    def update_customer(self, pk, data):
        return self.update(pk, data)

    def delete_customer(self, pk):
        return self.delete(pk)

    def addresses(self, customer_pk) -> ResourceService:
        return ResourceService(self.api, f'customers/{customer_pk}/addresses')


class BrandService(ResourceService):
    def __init__(self, api):
        super().__init__(api, 'brands')

    def get_brands(self, **params):
        return self.get_all(**params)


class CategoryService(ResourceService):
    def __init__(self, api):
        super().__init__(api, 'categories')

    def get_categories(self, **params):
        return self.get_all(**params)


class ProductService(ResourceService):
    def __init__(self, api):
        super().__init__(api, 'products')

    def get_products(self, **params):
        return self.get_all(**params)

    def get_shop_products(self, **params):
        return self.api.get('shop/products/', params=params or None, authenticate=False)

    def get_shop_product(self, slug):
        return self.api.get(f'shop/products/{slug}/', authenticate=False)

    def get_shop_categories(self):
        return self.api.get('shop/categories/', authenticate=False)

    def get_shop_brands(self):
        return self.api.get('shop/brands/', authenticate=False)


class OrderService(ResourceService):
    def __init__(self, api):
        super().__init__(api, 'orders')

    def create_order(self, checkout_data):
        return self.create(checkout_data)

    def get_order(self, order_id):
        return self.get(order_id)

    def get_orders(self, **params):
        return self.get_all(**params)

    def cancel_order(self, order_id):
        return self.api.post(f'orders/{order_id}/cancel/')

    def update_status(self, order_id, **changes):
        return self.api.patch(f'orders/{order_id}/status/', json=changes)


class CartService:
    def __init__(self, api: ApiClient):
        self.api = api

    def get_cart(self):
        return self.api.get('cart/')

    def add_item(self, product_id, quantity=1):
        return self.api.post('cart/items/', json={'product_id': product_id, 'quantity': quantity})

    def update_item(self, item_id, quantity):
        return self.api.patch(f'cart/items/{item_id}/', json={'quantity': quantity})

    def remove_item(self, item_id):
        return self.api.delete(f'cart/items/{item_id}/')

    def clear(self):
        return self.api.delete('cart/')


class DeliveryChargeService(ResourceService):
    def __init__(self, api):
        super().__init__(api, 'delivery-charges')

    def quick_setup(self):
        return self.api.post('delivery-charges/quick-setup/')

    def quote(self, address: dict, subtotal, item_count=0, weight_kg=0):
        payload = {key: address.get(key, '') for key in ('country', 'state', 'city', 'postal_code')}
        payload.update({'subtotal': str(subtotal), 'item_count': item_count, 'weight_kg': str(weight_kg)})
        return self.api.post('delivery-charges/quote/', json=payload, authenticate=False)


class MasterDataService(ResourceService):
    """One master data kind, e.g. ``MasterDataService(api, 'age-groups')``"""

    def __init__(self, api, kind):
        super().__init__(api, f'master-data/{kind}')
        self.kind = kind


class StorefrontServices:
    """All services sharing one ApiClient"""

    def __init__(self, api: ApiClient):
        self.api = api
        self.auth = AuthService(api)
        self.customers = CustomerService(api)
        self.brands = BrandService(api)
        self.categories = CategoryService(api)
        self.products = ProductService(api)
        self.orders = OrderService(api)
        self.carts = CartService(api)
        self.delivery_charges = DeliveryChargeService(api)
        self.attributes = ResourceService(api, 'attributes')
        self.alerts = ResourceService(api, 'alerts')
        self.templates = ResourceService(api, 'templates')
        self.admin_roles = ResourceService(api, 'admin-roles')
        self.api_keys = ResourceService(api, 'api-keys')
        self.settings = ResourceService(api, 'settings')
        self.users = ResourceService(api, 'users')

    def master_data(self, kind: str) -> MasterDataService:
        return MasterDataService(self.api, kind)
