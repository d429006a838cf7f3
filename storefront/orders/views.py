import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated, IsAdminUser

from storefront.catalog.models import Product
from storefront.core.cache_utils import bump_namespace
from storefront.core.permissions import resource_permission
from storefront.core.responses import api_response, api_error, validation_failed
from storefront.core.utils import audit_instance, create_audit_log, diff_fields
from storefront.parties.models import Customer
from .models import DeliveryCharge, CartItem, Order, OrderItem
from .serializers import (
    CartSerializer, CartItemInputSerializer, CartItemUpdateSerializer,
    CheckoutSerializer, OrderSerializer, OrderStatusSerializer,
    DeliveryChargeSerializer, DeliveryQuoteSerializer,
)
from .utils import (
    CartError, get_current_cart, get_session_key, add_to_cart, set_item_quantity,
    find_delivery_charge, calculate_delivery_fee, quick_setup_delivery_charges,
)

logger = logging.getLogger(__name__)

OrdersPermission = resource_permission('orders')

MISSING_SESSION_MESSAGE = 'Sign in or send an X-Session-Id header to use the cart'


class CheckoutError(Exception):
    pass


# ==================== CART ====================

@api_view(['GET', 'DELETE'])
@permission_classes([AllowAny])
def cart_detail(request):
    """Current cart. DELETE empties it."""
    cart = get_current_cart(request)
    if cart is None:
        return api_error(MISSING_SESSION_MESSAGE)

    if request.method == 'DELETE':
        removed = cart.items.count()
        cart.items.all().delete()
        cart.save(update_fields=['updated_at'])
        create_audit_log(request=request, action='cart_remove', model_name='Cart',
                         object_id=cart.pk, object_name=cart.cart_number, changes={'cleared_items': removed})
        return api_response(CartSerializer(cart).data, message='Cart cleared')
    return api_response(CartSerializer(cart).data)


@api_view(['POST'])
@permission_classes([AllowAny])
def cart_add_item(request):
    cart = get_current_cart(request)
    if cart is None:
        return api_error(MISSING_SESSION_MESSAGE)

    serializer = CartItemInputSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_failed(serializer)

    product = get_object_or_404(Product, pk=serializer.validated_data['product_id'])
    quantity = serializer.validated_data['quantity']
    try:
        item = add_to_cart(cart, product, quantity)
    except CartError as e:
        return api_error(str(e))

    create_audit_log(request=request, action='cart_add', model_name='Cart', object_id=cart.pk,
                     object_name=cart.cart_number,
                     changes={'product': product.sku, 'quantity': quantity, 'line_quantity': item.quantity})
    return api_response(CartSerializer(cart).data, message=f'{product.name} added to cart',
                        status_code=status.HTTP_201_CREATED)


@api_view(['PATCH', 'DELETE'])
@permission_classes([AllowAny])
def cart_item_detail(request, item_id):
    """Change the quantity of a cart line or remove it"""
    cart = get_current_cart(request, create=False)
    if cart is None:
        if not get_session_key(request) and not request.user.is_authenticated:
            return api_error(MISSING_SESSION_MESSAGE)
        return api_error('Cart item not found', status_code=status.HTTP_404_NOT_FOUND)

    item = get_object_or_404(CartItem.objects.select_related('product', 'cart'), pk=item_id, cart=cart)

    if request.method == 'PATCH':
        serializer = CartItemUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)
        old_quantity = item.quantity
        new_quantity = serializer.validated_data['quantity']
        try:
            set_item_quantity(item, new_quantity)
        except CartError as e:
            return api_error(str(e))
        action = 'cart_remove' if new_quantity == 0 else 'cart_update'
        create_audit_log(request=request, action=action, model_name='Cart', object_id=cart.pk,
                         object_name=cart.cart_number,
                         changes={'product': item.product.sku, 'quantity': {'old': old_quantity, 'new': new_quantity}})
    else:  # DELETE
        sku = item.product.sku
        set_item_quantity(item, 0)
        create_audit_log(request=request, action='cart_remove', model_name='Cart', object_id=cart.pk,
                         object_name=cart.cart_number, changes={'product': sku})

    return api_response(CartSerializer(cart).data)


# ==================== ORDERS ====================

def _restock(order):
    for item in order.items.filter(product__isnull=False):
        Product.objects.filter(pk=item.product_id, track_inventory=True).update(
            stock_quantity=F('stock_quantity') + item.quantity
        )
    bump_namespace('shop_products')


def _checkout_lines(data, cart):
    if data.get('items'):
        lines = {}
        for line in data['items']:
            lines[line['product_id']] = lines.get(line['product_id'], 0) + line['quantity']
        return list(lines.items())
    if cart is None:
        return []
    return [(item.product_id, item.quantity) for item in cart.items.all()]


def _resolve_customer(user, email):
    if user is not None:
        customer = Customer.objects.filter(user=user).first()
        if customer:
            return customer
    if email:
        return Customer.objects.filter(email__iexact=email).first()
    return None


@transaction.atomic
def _place_order(request, data, cart):
    """Create the order, decrement stock and close the cart. Raises CheckoutError."""
    lines = _checkout_lines(data, cart)
    if not lines:
        raise CheckoutError('Your cart is empty')

    products = Product.objects.select_for_update().in_bulk([product_id for product_id, _ in lines])

    subtotal = Decimal('0.00')
    weight = Decimal('0')
    item_count = 0
    priced_lines = []
    for product_id, quantity in lines:
        product = products.get(product_id)
        if product is None or not product.is_active or product.status != 'published':
            raise CheckoutError(f'Product {product_id} is not available')
        if product.track_inventory and quantity > product.stock_quantity:
            raise CheckoutError(f'Only {product.stock_quantity} item(s) of {product.name} in stock')
        price = product.price
        subtotal += price * quantity
        weight += (product.weight_kg or Decimal('0')) * quantity
        item_count += quantity
        priced_lines.append((product, quantity, price))

    shipping_address = data['shipping_address']
    delivery_charge = find_delivery_charge(shipping_address, subtotal)
    shipping_total = calculate_delivery_fee(delivery_charge, subtotal, item_count, weight)

    user = request.user if request.user.is_authenticated else None
    email = data.get('email') or (user.email if user else '')
    order = Order.objects.create(
        user=user,
        customer=_resolve_customer(user, email),
        cart=cart if not data.get('items') else None,
        session_key=get_session_key(request) if user is None else '',
        payment_method=data['payment_method'],
        subtotal=subtotal,
        shipping_total=shipping_total,
        total=subtotal + shipping_total,
        email=email,
        billing_address=data['billing_address'],
        shipping_address=shipping_address,
        delivery_charge=delivery_charge,
        estimated_delivery_days=delivery_charge.estimated_delivery_days if delivery_charge else None,
        notes=data.get('notes', ''),
    )
    OrderItem.objects.bulk_create([
        OrderItem(order=order, product=product, name=product.name, sku=product.sku,
                  quantity=quantity, price=price, total=price * quantity)
        for product, quantity, price in priced_lines
    ])

    for product, quantity, _ in priced_lines:
        if product.track_inventory:
            Product.objects.filter(pk=product.pk).update(stock_quantity=F('stock_quantity') - quantity)

    if cart is not None and not data.get('items'):
        cart.status = 'converted'
        cart.save(update_fields=['status', 'updated_at'])

    transaction.on_commit(lambda: bump_namespace('shop_products'))
    return order


def _can_view(request, order):
    if request.user.is_authenticated:
        return request.user.is_staff or order.user_id == request.user.pk
    session_key = get_session_key(request)
    return bool(session_key) and order.user_id is None and order.session_key == session_key


@api_view(['GET', 'POST'])
@permission_classes([AllowAny, OrdersPermission])
def order_list_create(request):
    """GET lists the caller's orders (all orders for staff). POST places an order."""
    if request.method == 'GET':
        if not request.user.is_authenticated:
            return api_error('Authentication credentials were not provided.', status_code=status.HTTP_401_UNAUTHORIZED)
        orders = Order.objects.select_related('delivery_charge').prefetch_related('items')
        if not request.user.is_staff:
            orders = orders.filter(user=request.user)
        order_status = request.query_params.get('status')
        if order_status:
            orders = orders.filter(status=order_status)
        payment_status = request.query_params.get('payment_status')
        if payment_status:
            orders = orders.filter(payment_status=payment_status)
        search = request.query_params.get('search', '').strip()
        if search:
            orders = orders.filter(
                Q(order_number__icontains=search) |
                Q(email__icontains=search) |
                Q(tracking_number__icontains=search)
            )
        return api_response(OrderSerializer(orders, many=True).data)

    serializer = CheckoutSerializer(data=request.data, context={'request': request})
    if not serializer.is_valid():
        return validation_failed(serializer)

    cart = get_current_cart(request, create=False)
    if cart is None and not serializer.validated_data.get('items'):
        if not request.user.is_authenticated and not get_session_key(request):
            return api_error(MISSING_SESSION_MESSAGE)

    try:
        order = _place_order(request, serializer.validated_data, cart)
    except CheckoutError as e:
        return api_error(str(e))

    logger.info(f"Order {order.order_number} placed: total={order.total} {order.currency}")
    create_audit_log(request=request, action='order_create', model_name='Order', object_id=order.pk,
                     object_name=order.order_number,
                     changes={'total': str(order.total), 'items': order.items.count()})
    return api_response(OrderSerializer(order).data, message='Order placed successfully',
                        status_code=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([AllowAny, OrdersPermission])
def order_detail(request, pk):
    order = get_object_or_404(Order.objects.prefetch_related('items'), pk=pk)
    if not _can_view(request, order):
        return api_error('Order not found', status_code=status.HTTP_404_NOT_FOUND)
    return api_response(OrderSerializer(order).data)


@api_view(['POST'])
@permission_classes([AllowAny, OrdersPermission])
def order_cancel(request, pk):
    """Cancel a pending or processing order and put its items back in stock"""
    with transaction.atomic():
        order = get_object_or_404(Order.objects.select_for_update(), pk=pk)
        if not _can_view(request, order):
            return api_error('Order not found', status_code=status.HTTP_404_NOT_FOUND)
        if not order.is_cancellable:
            return api_error(f'Orders that are {order.status} cannot be cancelled')

        previous_status = order.status
        order.status = 'cancelled'
        order.cancelled_at = timezone.now()
        if order.payment_status == 'paid':
            order.payment_status = 'refunded'
        order.save(update_fields=['status', 'payment_status', 'cancelled_at', 'updated_at'])
        _restock(order)

    create_audit_log(request=request, action='order_cancel', model_name='Order', object_id=order.pk,
                     object_name=order.order_number,
                     changes={'status': {'old': previous_status, 'new': 'cancelled'}})
    return api_response(OrderSerializer(order).data, message='Order cancelled')


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, IsAdminUser, OrdersPermission])
def order_status_update(request, pk):
    """Move an order along its fulfilment workflow"""
    with transaction.atomic():
        # Transitions are checked against the locked row
        order = get_object_or_404(Order.objects.select_for_update(), pk=pk)
        serializer = OrderStatusSerializer(order, data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)

        before = {'status': order.status, 'payment_status': order.payment_status, 'tracking_number': order.tracking_number}
        for field_name, value in serializer.validated_data.items():
            setattr(order, field_name, value)
        if order.status == 'cancelled' and before['status'] != 'cancelled':
            order.cancelled_at = timezone.now()
            _restock(order)
        order.save()

    after = {'status': order.status, 'payment_status': order.payment_status, 'tracking_number': order.tracking_number}
    create_audit_log(request=request, action='order_status', model_name='Order', object_id=order.pk,
                     object_name=order.order_number, changes=diff_fields(before, after))
    return api_response(OrderSerializer(order).data)


# ==================== DELIVERY CHARGES ====================

@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser, OrdersPermission])
def delivery_charge_list_create(request):
    if request.method == 'GET':
        charges = DeliveryCharge.objects.all()
        enabled = request.query_params.get('enabled')
        if enabled is not None:
            charges = charges.filter(enabled=enabled.lower() == 'true')
        location_type = request.query_params.get('location_type')
        if location_type:
            charges = charges.filter(location_type=location_type)
        return api_response(DeliveryChargeSerializer(charges, many=True).data)
    else:
        serializer = DeliveryChargeSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)
        charge = serializer.save()
        audit_instance(request, 'create', charge)
        return api_response(serializer.data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser, OrdersPermission])
def delivery_charge_detail(request, pk):
    charge = get_object_or_404(DeliveryCharge, pk=pk)

    if request.method == 'GET':
        return api_response(DeliveryChargeSerializer(charge).data)
    elif request.method in ('PUT', 'PATCH'):
        before = DeliveryChargeSerializer(charge).data
        serializer = DeliveryChargeSerializer(charge, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return validation_failed(serializer)
        serializer.save()
        audit_instance(request, 'update', charge, diff_fields(before, serializer.data))
        return api_response(serializer.data)
    else:  # DELETE
        audit_instance(request, 'delete', charge)
        charge.delete()
        return api_response(message='Delivery charge deleted')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminUser, OrdersPermission])
def delivery_charge_quick_setup(request):
    """Create the default Lahore / Punjab / rest-of-Pakistan zones"""
    created, skipped = quick_setup_delivery_charges()
    for name in created:
        logger.info(f"Quick setup created delivery zone {name}")
    charges = DeliveryCharge.objects.all()
    return api_response(
        {'created': created, 'skipped': skipped, 'charges': DeliveryChargeSerializer(charges, many=True).data},
        message=f'{len(created)} delivery zone(s) created',
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@api_view(['POST'])
@permission_classes([AllowAny])
def delivery_quote(request):
    """Shipping fee for an address and order amount"""
    serializer = DeliveryQuoteSerializer(data=request.data)
    if not serializer.is_valid():
        return validation_failed(serializer)
    data = serializer.validated_data
    charge = find_delivery_charge(data, data['subtotal'])
    if charge is None:
        return api_response({'available': False, 'delivery_charge': None, 'shipping_total': '0.00'},
                            message='No delivery zone covers this address')
    fee = calculate_delivery_fee(charge, data['subtotal'], data['item_count'], data['weight_kg'])
    return api_response({
        'available': True,
        'delivery_charge': DeliveryChargeSerializer(charge).data,
        'shipping_total': str(fee),
        'free_shipping': fee == 0 and charge.free_shipping_threshold is not None,
        'estimated_delivery_days': charge.estimated_delivery_days,
    })
