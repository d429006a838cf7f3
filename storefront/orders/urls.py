from django.urls import path
from .views import (
    cart_detail, cart_add_item, cart_item_detail,
    order_list_create, order_detail, order_cancel, order_status_update,
    delivery_charge_list_create, delivery_charge_detail,
    delivery_charge_quick_setup, delivery_quote,
)

urlpatterns = [
    # Cart endpoints
    path('cart/', cart_detail, name='cart-detail'),
    path('cart/items/', cart_add_item, name='cart-add-item'),
    path('cart/items/<int:item_id>/', cart_item_detail, name='cart-item-detail'),

    # Order endpoints
    path('orders/', order_list_create, name='order-list-create'),
    path('orders/<int:pk>/', order_detail, name='order-detail'),
    path('orders/<int:pk>/cancel/', order_cancel, name='order-cancel'),
    path('orders/<int:pk>/status/', order_status_update, name='order-status-update'),

    # Delivery charge endpoints
    path('delivery-charges/', delivery_charge_list_create, name='delivery-charge-list-create'),
    path('delivery-charges/quick-setup/', delivery_charge_quick_setup, name='delivery-charge-quick-setup'),
    path('delivery-charges/quote/', delivery_quote, name='delivery-quote'),
    path('delivery-charges/<int:pk>/', delivery_charge_detail, name='delivery-charge-detail'),
]
