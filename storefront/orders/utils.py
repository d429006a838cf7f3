"""
Cart resolution and delivery pricing helpers shared by the cart, checkout
and delivery charge views
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from .models import Cart, CartItem, DeliveryCharge

logger = logging.getLogger(__name__)

SESSION_HEADER = 'HTTP_X_SESSION_ID'

COUNTRY_CODES = {
    'pakistan': 'PK',
}

CENT = Decimal('0.01')


class CartError(Exception):
    """A cart change that cannot be applied (stock, unavailable product, ...)"""


def get_session_key(request):
    return request.META.get(SESSION_HEADER, '').strip()


def get_current_cart(request, create=True):
    """Active cart of the signed-in user or of the anonymous session.

    A guest cart is merged into the user's cart the first time the user is
    seen with the guest's session key.
    """
    session_key = get_session_key(request)
    user = request.user if request.user and request.user.is_authenticated else None

    if user is None and not session_key:
        return None

    guest_cart = None
    if session_key:
        guest_cart = Cart.objects.filter(session_key=session_key, user__isnull=True, status='active').first()

    if user is None:
        if guest_cart is None and create:
            guest_cart = Cart.objects.create(session_key=session_key)
        return guest_cart

    cart = Cart.objects.filter(user=user, status='active').first()
    if cart is None and guest_cart is not None:
        guest_cart.user = user
        guest_cart.save(update_fields=['user', 'updated_at'])
        return guest_cart
    if cart is not None and guest_cart is not None:
        merge_carts(cart, guest_cart)
    if cart is None and create:
        cart = Cart.objects.create(user=user, session_key=session_key)
    return cart


def merge_carts(target, source):
    for item in source.items.select_related('product'):
        try:
            add_to_cart(target, item.product, item.quantity)
        except CartError as e:
            logger.info(f"Dropped line while merging cart {source.cart_number} into {target.cart_number}: {e}")
    source.delete()


def _check_available(product, quantity):
    if not product.is_active or product.status != 'published':
        raise CartError(f"{product.name} is not available")
    if product.track_inventory and quantity > product.stock_quantity:
        raise CartError(f"Only {product.stock_quantity} item(s) of {product.name} in stock")


def add_to_cart(cart, product, quantity=1):
    """Add a product, merging with an existing line for the same product"""
    if quantity < 1:
        raise CartError("Quantity must be at least 1")

    item = cart.items.filter(product=product).first()
    new_quantity = quantity + (item.quantity if item else 0)
    _check_available(product, new_quantity)

    if item is None:
        item = CartItem.objects.create(cart=cart, product=product, quantity=new_quantity, unit_price=product.price)
    else:
        item.quantity = new_quantity
        item.unit_price = product.price
        item.save(update_fields=['quantity', 'unit_price'])
    cart.save(update_fields=['updated_at'])
    return item


def set_item_quantity(item, quantity):
    """Change a line's quantity. Zero removes the line."""
    if quantity < 0:
        raise CartError("Quantity cannot be negative")
    if quantity == 0:
        item.delete()
        item.cart.save(update_fields=['updated_at'])
        return None
    _check_available(item.product, quantity)
    item.quantity = quantity
    item.unit_price = item.product.price
    item.save(update_fields=['quantity', 'unit_price'])
    item.cart.save(update_fields=['updated_at'])
    return item


def _normalize_place(field_name, value):
    value = (value or '').strip()
    if field_name == 'country':
        return COUNTRY_CODES.get(value.lower(), value).upper()
    if field_name == 'postal_code':
        return value.replace(' ', '').upper()
    return value.lower()


def charge_matches_address(charge, address):
    """Every location field set on the charge must match the address"""
    for field_name in ('country', 'state', 'city', 'postal_code'):
        expected = getattr(charge, field_name)
        if expected and _normalize_place(field_name, expected) != _normalize_place(field_name, address.get(field_name)):
            return False
    return True


def charge_applies_to_amount(charge, subtotal):
    if charge.minimum_order_amount is not None and subtotal < charge.minimum_order_amount:
        return False
    if charge.maximum_order_amount is not None and subtotal > charge.maximum_order_amount:
        return False
    return True


def find_delivery_charge(address, subtotal):
    """Highest priority enabled zone matching the address, or None"""
    for charge in DeliveryCharge.objects.filter(enabled=True).order_by('-priority', 'id'):
        if charge_matches_address(charge, address) and charge_applies_to_amount(charge, subtotal):
            return charge
    return None


def calculate_delivery_fee(charge, subtotal, item_count=0, weight_kg=Decimal('0')):
    if charge is None:
        return Decimal('0.00')
    if charge.free_shipping_threshold is not None and subtotal >= charge.free_shipping_threshold:
        return Decimal('0.00')
    fee = (
        charge.base_charge
        + charge.charge_per_item * item_count
        + charge.charge_per_kg * Decimal(str(weight_kg))
    )
    return fee.quantize(CENT, rounding=ROUND_HALF_UP)


# Default Pakistani delivery zones
QUICK_SETUP_ZONES = [
    {
        'location_name': 'Lahore',
        'location_type': 'city',
        'country': 'PK',
        'state': 'Punjab',
        'city': 'Lahore',
        'base_charge': Decimal('150.00'),
        'priority': 100,
        'estimated_delivery_days': 2,
    },
    {
        'location_name': 'Punjab (Other Cities)',
        'location_type': 'state',
        'country': 'PK',
        'state': 'Punjab',
        'base_charge': Decimal('250.00'),
        'priority': 50,
        'estimated_delivery_days': 3,
    },
    {
        'location_name': 'Outside Punjab',
        'location_type': 'country',
        'country': 'PK',
        'base_charge': Decimal('350.00'),
        'priority': 0,
        'estimated_delivery_days': 5,
    },
]


def quick_setup_delivery_charges():
    """Create the default zones that do not exist yet. Returns (created, skipped) names."""
    created, skipped = [], []
    for zone in QUICK_SETUP_ZONES:
        _, was_created = DeliveryCharge.objects.get_or_create(
            location_name=zone['location_name'],
            location_type=zone['location_type'],
            defaults={key: value for key, value in zone.items() if key not in ('location_name', 'location_type')},
        )
        (created if was_created else skipped).append(zone['location_name'])
    return created, skipped
