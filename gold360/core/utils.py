"""Utility functions for audit logging, pagination and date handling"""
import calendar
import logging
from datetime import datetime, timedelta

from django.conf import settings
from django.core.paginator import Paginator
from django.utils import timezone
from rest_framework.response import Response

from .models import AuditLog

logger = logging.getLogger('gold360.core')


def get_client_ip(request):
    """Extract client IP address from request"""
    if not request or not hasattr(request, 'META'):
        return None
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        ip = x_forwarded_for.split(',')[0].strip()
    else:
        ip = request.META.get('REMOTE_ADDR')
    return ip or None


def create_audit_log(request=None, action=None, model_name=None, object_id=None,
                     changes=None, user=None, object_name=None, object_reference=None):
    """
    Create an audit log entry

    Args:
        request: Django request object (for user and IP), optional if user is provided
        action: Action type (create, update, delete, status_change, ...)
        model_name: Name of the model being acted upon
        object_id: ID of the object
        changes: Dictionary of changes made
        user: Optional user override (defaults to request.user)
        object_name: Human-readable name of the object
        object_reference: Reference identifier such as a transfer or order number

    Failures are logged and never propagate to the caller.
    """
    try:
        audit_user = user
        if audit_user is None and request is not None and hasattr(request, 'user'):
            audit_user = request.user

        if not action or not model_name or object_id is None:
            logger.warning(
                f"Audit log creation skipped: missing required fields "
                f"(action={action}, model_name={model_name}, object_id={object_id})"
            )
            return None

        return AuditLog.objects.create(
            user=audit_user if audit_user is not None and audit_user.is_authenticated else None,
            action=action,
            model_name=model_name,
            object_id=str(object_id),
            object_name=object_name,
            object_reference=object_reference,
            changes=changes or {},
            ip_address=get_client_ip(request) if request is not None else None,
        )
    except Exception as e:
        logger.error(f"Failed to create audit log: {str(e)}")
        return None


def paginate(request, queryset, serializer_class, context=None):
    """Paginate a queryset with the page/limit query params and serialize the page"""
    try:
        page = int(request.query_params.get('page', 1))
        limit = int(request.query_params.get('limit', settings.PAGE_SIZE))
    except (TypeError, ValueError):
        page, limit = 1, settings.PAGE_SIZE
    limit = max(1, min(limit, 500))

    paginator = Paginator(queryset, limit)
    page_obj = paginator.get_page(page)
    serializer = serializer_class(page_obj, many=True, context=context or {'request': request})
    return Response({
        'results': serializer.data,
        'count': paginator.count,
        'next': page_obj.next_page_number() if page_obj.has_next() else None,
        'previous': page_obj.previous_page_number() if page_obj.has_previous() else None,
        'page': page_obj.number,
        'page_size': limit,
        'total_pages': paginator.num_pages,
    })


def parse_date_param(value):
    """Parse a YYYY-MM-DD query param, returning None when absent or malformed"""
    if not value:
        return None
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        return None


def get_date_range(request, default_days=30):
    """Return (date_from, date_to) from query params, defaulting to the last N days"""
    today = timezone.localdate()
    date_to = parse_date_param(request.query_params.get('date_to')) or today
    date_from = parse_date_param(request.query_params.get('date_from')) or (date_to - timedelta(days=default_days))
    return date_from, date_to


def add_months(value, months):
    """Add calendar months to a date or datetime, clamping the day to the month end"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def monthly_reference(prefix, model, reference_field='reference_number', now=None):
    """
    Build a PREFIX-YYMM-NNNN reference number.

    NNNN is one more than the number of rows of `model` created in the current month,
    bumped further if that number is already taken.
    """
    now = now or timezone.now()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    sequence = model.objects.filter(created_at__gte=month_start).count() + 1
    while True:
        reference = f"{prefix}-{now.strftime('%y%m')}-{str(sequence).zfill(4)}"
        if not model.objects.filter(**{reference_field: reference}).exists():
            return reference
        sequence += 1
