"""
Shopping cart mirror for storefront clients.

Anonymous shoppers are identified by a generated session id sent in the
X-Session-Id header; the server merges that cart into the user's cart once
they sign in.
"""
import logging
import uuid
from decimal import Decimal
from typing import List, Optional

from .api import ServiceResponse
from .exceptions import ApiError
from .services import StorefrontServices
from .storage import CART_SESSION_KEY

logger = logging.getLogger(__name__)


class CartSession:
    def __init__(self, services: StorefrontServices):
        self.services = services
        self.api = services.api
        self.cart: Optional[dict] = None
        self.last_order: Optional[dict] = None
        self.error: Optional[str] = None

        session_id = self.api.store.get(CART_SESSION_KEY)
        if not session_id:
            session_id = uuid.uuid4().hex
            self.api.store.set(CART_SESSION_KEY, session_id)
        self.api.session_id = session_id

    @property
    def session_id(self) -> str:
        return self.api.session_id

    @property
    def items(self) -> List[dict]:
        return (self.cart or {}).get('items', [])

    @property
    def item_count(self) -> int:
        return sum(item['quantity'] for item in self.items)

    @property
    def total_amount(self) -> Decimal:
        return sum((Decimal(str(item['unit_price'])) * item['quantity'] for item in self.items), Decimal('0.00'))

    def _apply(self, response: ServiceResponse) -> ServiceResponse:
        if response.success:
            self.cart = response.data
            self.error = None
        else:
            self.error = response.message
            logger.info(f"Cart request failed: {response.message}")
        return response

    def load(self):
        return self._apply(self.services.carts.get_cart())

    def add_item(self, product_id, quantity=1):
        return self._apply(self.services.carts.add_item(product_id, quantity))

    def update_quantity(self, item_id, quantity):
        return self._apply(self.services.carts.update_item(item_id, quantity))

    def remove_item(self, item_id):
        return self._apply(self.services.carts.remove_item(item_id))

    def clear(self):
        return self._apply(self.services.carts.clear())

    def find_item(self, product_id) -> Optional[dict]:
        for item in self.items:
            if item['product_id'] == product_id:
                return item
        return None

    def checkout(self, checkout_data: dict) -> ServiceResponse:
        """Place an order from the cart. The local cart is emptied on success."""
        try:
            response = self.services.orders.create_order(checkout_data)
        except ApiError as e:
            self.error = e.message
            raise
        if response.success:
            self.last_order = response.data
            self.cart = None
            self.error = None
        else:
            self.error = response.message
        return response
