from django.contrib import admin
from .models import DeliveryCharge, Cart, CartItem, Order, OrderItem


@admin.register(DeliveryCharge)
class DeliveryChargeAdmin(admin.ModelAdmin):
    list_display = ['location_name', 'location_type', 'country', 'state', 'city', 'base_charge', 'priority', 'enabled']
    list_filter = ['location_type', 'enabled', 'country']
    search_fields = ['location_name', 'city', 'state', 'postal_code']
    ordering = ['-priority', 'location_name']


class CartItemInline(admin.TabularInline):
    model = CartItem
    extra = 0
    readonly_fields = ['added_at']


@admin.register(Cart)
class CartAdmin(admin.ModelAdmin):
    list_display = ['cart_number', 'user', 'session_key', 'status', 'updated_at']
    list_filter = ['status', 'created_at']
    search_fields = ['cart_number', 'user__username', 'user__email', 'session_key']
    readonly_fields = ['cart_number', 'created_at', 'updated_at']
    inlines = [CartItemInline]


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ['product', 'name', 'sku', 'quantity', 'price', 'total']


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ['order_number', 'email', 'status', 'payment_status', 'payment_method', 'total', 'created_at']
    list_filter = ['status', 'payment_status', 'payment_method', 'created_at']
    search_fields = ['order_number', 'email', 'tracking_number']
    readonly_fields = ['order_number', 'subtotal', 'shipping_total', 'total', 'created_at', 'updated_at']
    date_hierarchy = 'created_at'
    inlines = [OrderItemInline]
