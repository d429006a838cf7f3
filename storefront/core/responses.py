"""
Response envelope used by every API endpoint:

    {"success": true, "data": ..., "message": "..."}
    {"success": false, "message": "...", "errors": {...}}
"""
import logging

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


def api_response(data=None, message=None, status_code=status.HTTP_200_OK):
    body = {'success': True}
    if data is not None:
        body['data'] = data
    if message:
        body['message'] = message
    return Response(body, status=status_code)


def api_error(message, errors=None, status_code=status.HTTP_400_BAD_REQUEST):
    body = {'success': False, 'message': message}
    if errors:
        body['errors'] = errors
    return Response(body, status=status_code)


def flatten_errors(detail):
    """Collapse DRF error detail into a field -> single message map"""
    if isinstance(detail, dict):
        flat = {}
        for field_name, value in detail.items():
            if isinstance(value, (list, tuple)):
                value = value[0] if value else ''
            if isinstance(value, dict):
                value = flatten_errors(value)
            flat[field_name] = value if isinstance(value, dict) else str(value)
        return flat
    if isinstance(detail, (list, tuple)):
        return {'non_field_errors': str(detail[0]) if detail else ''}
    return {'non_field_errors': str(detail)}


def envelope_exception_handler(exc, context):
    """DRF exception handler that reports errors in the response envelope"""
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = {
            'success': False,
            'message': 'Validation failed',
            'errors': flatten_errors(exc.detail),
        }
        return response

    detail = response.data.get('detail') if isinstance(response.data, dict) else None
    message = str(detail) if detail else 'Request failed'
    if response.status_code >= 500:
        logger.error(f"Unhandled API error in {context.get('view')}: {message}")
    response.data = {'success': False, 'message': message}
    return response


def validation_failed(serializer):
    return api_error(
        'Validation failed',
        errors=flatten_errors(serializer.errors),
        status_code=status.HTTP_400_BAD_REQUEST,
    )
