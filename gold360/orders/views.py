import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Q
from django.shortcuts import get_object_or_404
from gold360.core.exceptions import Gold360Error
from gold360.core.utils import create_audit_log, paginate, parse_date_param
from . import services
from .models import Order
from .serializers import (
    OrderSerializer, OrderCreateSerializer, OrderUpdateSerializer,
    OrderStatusSerializer, PaymentStatusSerializer,
)

logger = logging.getLogger('gold360.orders')


def _order_queryset():
    return Order.objects.select_related('customer', 'warehouse', 'created_by').prefetch_related('items__product')


def _error(exc):
    return Response(exc.as_response_data(), status=status.HTTP_400_BAD_REQUEST)


# Order views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def order_list_create(request):
    """List orders or place a new order"""
    if request.method == 'GET':
        orders = _order_queryset()
        for param in ('status', 'payment_status'):
            value = request.query_params.get(param)
            if value:
                orders = orders.filter(**{param: value})
        customer_id = request.query_params.get('customer')
        if customer_id:
            orders = orders.filter(customer_id=customer_id)
        date_from = parse_date_param(request.query_params.get('date_from'))
        date_to = parse_date_param(request.query_params.get('date_to'))
        if date_from:
            orders = orders.filter(order_date__date__gte=date_from)
        if date_to:
            orders = orders.filter(order_date__date__lte=date_to)
        search = request.query_params.get('search')
        if search:
            orders = orders.filter(
                Q(order_number__icontains=search) | Q(customer__email__icontains=search) |
                Q(customer__last_name__icontains=search)
            )
        return paginate(request, orders, OrderSerializer)

    serializer = OrderCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = dict(serializer.validated_data)
    try:
        order = services.create_order(
            data.pop('customer'), data.pop('warehouse'), data.pop('items'), user=request.user, **data
        )
    except Gold360Error as e:
        logger.warning(f"Order rejected for {request.user.username}: {e.message}")
        return _error(e)

    create_audit_log(request, 'create', 'Order', order.id, object_reference=order.order_number,
                     changes={'total_amount': str(order.total_amount)})
    return Response(OrderSerializer(_order_queryset().get(pk=order.pk)).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def order_detail(request, pk):
    order = get_object_or_404(_order_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(OrderSerializer(order).data)

    serializer = OrderUpdateSerializer(order, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request, 'update', 'Order', order.id, object_reference=order.order_number,
                         changes={k: str(v) for k, v in serializer.validated_data.items()})
        return Response(OrderSerializer(_order_queryset().get(pk=pk)).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def order_status(request, pk):
    """Move an order to a new status"""
    order = get_object_or_404(Order, pk=pk)
    serializer = OrderStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = order.status
    try:
        order = services.change_order_status(order, serializer.validated_data['status'], user=request.user)
    except Gold360Error as e:
        return _error(e)

    create_audit_log(request, 'status_change', 'Order', order.id, object_reference=order.order_number,
                     changes={'status': {'old': old_status, 'new': order.status}})
    return Response(OrderSerializer(_order_queryset().get(pk=pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def order_cancel(request, pk):
    order = get_object_or_404(Order, pk=pk)
    try:
        order = services.cancel_order(order, user=request.user)
    except Gold360Error as e:
        return _error(e)

    create_audit_log(request, 'order_cancel', 'Order', order.id, object_reference=order.order_number,
                     changes={'total_amount': str(order.total_amount)})
    return Response(OrderSerializer(_order_queryset().get(pk=pk)).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def order_payment(request, pk):
    """Update the payment status of an order"""
    order = get_object_or_404(Order, pk=pk)
    serializer = PaymentStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_payment_status = order.payment_status
    try:
        order = services.update_payment_status(order, serializer.validated_data['payment_status'],
                                               user=request.user)
    except Gold360Error as e:
        return _error(e)

    if order.payment_status != old_payment_status:
        create_audit_log(request, 'payment_change', 'Order', order.id, object_reference=order.order_number,
                         changes={'payment_status': {'old': old_payment_status, 'new': order.payment_status}})
    return Response(OrderSerializer(_order_queryset().get(pk=pk)).data)
