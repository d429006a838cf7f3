from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAdminUser

from storefront.core.permissions import resource_permission
from storefront.core.responses import api_response, validation_failed
from storefront.core.utils import audit_instance, diff_fields
from .models import Customer, Address
from .serializers import CustomerSerializer, AddressSerializer

CustomersPermission = resource_permission('customers')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser, CustomersPermission])
def customer_list_create(request):
    """List all customers or create a new customer"""
    if request.method == 'GET':
        customers = Customer.objects.prefetch_related('addresses').all()
        search = request.query_params.get('search', '').strip()
        if search:
            customers = customers.filter(
                Q(first_name__icontains=search) |
                Q(last_name__icontains=search) |
                Q(email__icontains=search) |
                Q(phone__icontains=search)
            )
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            customers = customers.filter(is_active=is_active.lower() == 'true')
        has_account = request.query_params.get('has_account')
        if has_account is not None:
            customers = customers.filter(user__isnull=has_account.lower() != 'true')
        return api_response(CustomerSerializer(customers, many=True).data)
    else:
        serializer = CustomerSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)
        customer = serializer.save()
        audit_instance(request, 'create', customer)
        return api_response(serializer.data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser, CustomersPermission])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_object_or_404(Customer, pk=pk)

    if request.method == 'GET':
        return api_response(CustomerSerializer(customer).data)
    elif request.method in ('PUT', 'PATCH'):
        before = CustomerSerializer(customer).data
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return validation_failed(serializer)
        serializer.save()
        audit_instance(request, 'update', customer, diff_fields(before, serializer.data))
        return api_response(serializer.data)
    else:  # DELETE
        audit_instance(request, 'delete', customer)
        customer.delete()
        return api_response(message='Customer deleted')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser, CustomersPermission])
def customer_address_list_create(request, customer_pk):
    """List or add addresses of a customer"""
    customer = get_object_or_404(Customer, pk=customer_pk)

    if request.method == 'GET':
        addresses = customer.addresses.all()
        address_type = request.query_params.get('address_type')
        if address_type:
            addresses = addresses.filter(address_type=address_type)
        return api_response(AddressSerializer(addresses, many=True).data)
    else:
        serializer = AddressSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)
        address = serializer.save(customer=customer)
        audit_instance(request, 'create', address)
        return api_response(serializer.data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser, CustomersPermission])
def customer_address_detail(request, customer_pk, pk):
    address = get_object_or_404(Address, customer_id=customer_pk, pk=pk)

    if request.method == 'GET':
        return api_response(AddressSerializer(address).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = AddressSerializer(address, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return validation_failed(serializer)
        serializer.save()
        audit_instance(request, 'update', address)
        return api_response(serializer.data)
    else:  # DELETE
        audit_instance(request, 'delete', address)
        address.delete()
        return api_response(message='Address deleted')
