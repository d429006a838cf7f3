"""Navigation targets of the storefront and back-office UI"""

LOGIN = '/login'
SHOP = '/shop'
CART = '/cart'
CHECKOUT = '/checkout'
DASHBOARD = '/dashboard'


def dashboard(section: str = '') -> str:
    return f"{DASHBOARD}/{section.strip('/')}" if section else DASHBOARD


def order_confirmation(order_id) -> str:
    return f'/order-confirmation/{order_id}'
