from django.db.models import Count, Q
from django.http import Http404
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from storefront.core.permissions import IsAdminOrReadOnly, resource_permission
from storefront.core.responses import api_response, validation_failed
from storefront.core.utils import audit_instance, diff_fields
from .models import MasterDataItem
from .serializers import MasterDataItemSerializer

ProductsPermission = resource_permission('products')


def _check_kind(kind):
    if kind not in MasterDataItem.KINDS:
        raise Http404(f"Unknown master data type: {kind}")


@api_view(['GET'])
@permission_classes([IsAuthenticated, ProductsPermission])
def master_data_kinds(request):
    """Available master data types with item counts"""
    counts = {kind: 0 for kind in MasterDataItem.KINDS}
    for row in MasterDataItem.objects.values('kind').order_by().annotate(total=Count('id')):
        counts[row['kind']] = row['total']
    return api_response([
        {'kind': kind, 'label': label, 'count': counts[kind]}
        for kind, label in MasterDataItem.KIND_CHOICES
    ])


@api_view(['GET', 'POST'])
@permission_classes([IsAdminOrReadOnly, ProductsPermission])
def master_data_list_create(request, kind):
    """List or create items of one master data type"""
    _check_kind(kind)

    if request.method == 'GET':
        items = MasterDataItem.objects.filter(kind=kind)
        search = request.query_params.get('search', '').strip()
        if search:
            items = items.filter(Q(name__icontains=search) | Q(description__icontains=search))
        is_active = request.query_params.get('is_active')
        if is_active is not None:
            items = items.filter(is_active=is_active.lower() == 'true')
        return api_response(MasterDataItemSerializer(items, many=True).data)
    else:
        serializer = MasterDataItemSerializer(data=request.data, context={'kind': kind})
        if not serializer.is_valid():
            return validation_failed(serializer)
        item = serializer.save()
        audit_instance(request, 'create', item)
        return api_response(serializer.data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminOrReadOnly, ProductsPermission])
def master_data_detail(request, kind, pk):
    """Retrieve, update or delete one master data item"""
    _check_kind(kind)
    item = get_object_or_404(MasterDataItem, kind=kind, pk=pk)

    if request.method == 'GET':
        return api_response(MasterDataItemSerializer(item).data)
    elif request.method in ('PUT', 'PATCH'):
        before = MasterDataItemSerializer(item).data
        serializer = MasterDataItemSerializer(
            item, data=request.data, partial=request.method == 'PATCH', context={'kind': kind},
        )
        if not serializer.is_valid():
            return validation_failed(serializer)
        serializer.save()
        audit_instance(request, 'update', item, diff_fields(before, serializer.data))
        return api_response(serializer.data)
    else:  # DELETE
        audit_instance(request, 'delete', item)
        item.delete()
        return api_response(message=f'{item.get_kind_display()} item deleted')
