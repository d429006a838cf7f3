from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAdminUser

from storefront.core.permissions import resource_permission
from storefront.core.responses import api_response, validation_failed
from storefront.core.utils import audit_instance, diff_fields
from .models import Alert, NotificationTemplate
from .serializers import AlertSerializer, NotificationTemplateSerializer

SettingsPermission = resource_permission('settings')


def _filter_common(queryset, request, search_fields):
    search = request.query_params.get('search', '').strip()
    if search:
        query = Q()
        for field_name in search_fields:
            query |= Q(**{f'{field_name}__icontains': search})
        queryset = queryset.filter(query)
    is_active = request.query_params.get('is_active')
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active.lower() == 'true')
    return queryset


def _detail(request, instance, serializer_class, label):
    if request.method == 'GET':
        return api_response(serializer_class(instance).data)
    elif request.method in ('PUT', 'PATCH'):
        before = serializer_class(instance).data
        serializer = serializer_class(instance, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return validation_failed(serializer)
        serializer.save()
        audit_instance(request, 'update', instance, diff_fields(before, serializer.data))
        return api_response(serializer.data)
    else:  # DELETE
        audit_instance(request, 'delete', instance)
        instance.delete()
        return api_response(message=f'{label} deleted')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser, SettingsPermission])
def alert_list_create(request):
    """List alerts (filter by alert_type) or create one"""
    if request.method == 'GET':
        alerts = _filter_common(Alert.objects.all(), request, ['name', 'description'])
        alert_type = request.query_params.get('alert_type')
        if alert_type:
            alerts = alerts.filter(alert_type=alert_type)
        severity = request.query_params.get('severity')
        if severity:
            alerts = alerts.filter(severity=severity)
        return api_response(AlertSerializer(alerts, many=True).data)
    else:
        serializer = AlertSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)
        alert = serializer.save()
        audit_instance(request, 'create', alert)
        return api_response(serializer.data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser, SettingsPermission])
def alert_detail(request, pk):
    return _detail(request, get_object_or_404(Alert, pk=pk), AlertSerializer, 'Alert')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser, SettingsPermission])
def template_list_create(request):
    """List notification templates (filter by channel) or create one"""
    if request.method == 'GET':
        templates = _filter_common(NotificationTemplate.objects.all(), request, ['name', 'subject', 'body'])
        channel = request.query_params.get('channel')
        if channel:
            templates = templates.filter(channel=channel)
        event_type = request.query_params.get('event_type')
        if event_type:
            templates = templates.filter(event_type=event_type)
        return api_response(NotificationTemplateSerializer(templates, many=True).data)
    else:
        serializer = NotificationTemplateSerializer(data=request.data)
        if not serializer.is_valid():
            return validation_failed(serializer)
        template = serializer.save()
        audit_instance(request, 'create', template)
        return api_response(serializer.data, status_code=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser, SettingsPermission])
def template_detail(request, pk):
    template = get_object_or_404(NotificationTemplate, pk=pk)
    return _detail(request, template, NotificationTemplateSerializer, 'Template')
