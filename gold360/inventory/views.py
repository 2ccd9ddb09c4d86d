import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import IntegrityError, transaction
from django.db.models import F
from django.shortcuts import get_object_or_404
from django.utils import timezone
from gold360.core.exceptions import Gold360Error
from gold360.core.permissions import IsManagerOrAdmin
from gold360.core.utils import create_audit_log, paginate, parse_date_param
from gold360.locations.models import Warehouse
from . import services
from .models import Inventory, StockTransaction, StockTransfer, StockAdjustment, StockAlert
from .serializers import (
    InventorySerializer, InventoryUpdateSerializer,
    StockTransactionSerializer, StockTransactionCreateSerializer,
    StockTransferSerializer, StockTransferCreateSerializer, StockTransferUpdateSerializer,
    TransferStatusSerializer, TransferReceiveSerializer,
    StockAdjustmentSerializer, StockAdjustmentCreateSerializer, AdjustmentProcessSerializer,
    StockAlertSerializer,
)

logger = logging.getLogger('gold360.inventory')

AUDIT_ACTION_BY_TYPE = {
    'IN': 'stock_in',
    'OUT': 'stock_out',
    'ADJUSTMENT': 'stock_adjust',
    'RETURN': 'stock_return',
}


def _error(exc):
    return Response(exc.as_response_data(), status=status.HTTP_400_BAD_REQUEST)


def _transfer_queryset():
    return StockTransfer.objects.select_related(
        'source_warehouse', 'destination_warehouse', 'initiated_by', 'completed_by'
    ).prefetch_related('items__product')


# Inventory views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def inventory_list_create(request):
    """List inventory rows or open a new (product, warehouse) row"""
    if request.method == 'GET':
        rows = Inventory.objects.select_related('product', 'warehouse').all()
        warehouse_id = request.query_params.get('warehouse')
        product_id = request.query_params.get('product')
        low_stock = request.query_params.get('low_stock')
        if warehouse_id:
            rows = rows.filter(warehouse_id=warehouse_id)
        if product_id:
            rows = rows.filter(product_id=product_id)
        if low_stock == 'true':
            rows = rows.filter(quantity__lte=F('alert_threshold'))
        return paginate(request, rows.order_by('warehouse__name', 'product__name'), InventorySerializer)

    serializer = InventorySerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = dict(serializer.validated_data)
    initial_quantity = data.pop('quantity', 0)
    if Inventory.objects.filter(product=data['product'], warehouse=data['warehouse']).exists():
        return Response({'error': 'An inventory row for this product and warehouse already exists'},
                        status=status.HTTP_400_BAD_REQUEST)
    try:
        with transaction.atomic():
            inventory = Inventory.objects.create(**data)
            if initial_quantity:
                services.apply_stock_transaction(
                    inventory.product, inventory.warehouse, StockTransaction.TYPE_IN, initial_quantity,
                    reference_type='MANUAL', notes='Opening stock', user=request.user,
                )
            else:
                services.evaluate_stock_alert(inventory)
    except IntegrityError:
        return Response({'error': 'An inventory row for this product and warehouse already exists'},
                        status=status.HTTP_400_BAD_REQUEST)

    inventory.refresh_from_db()
    create_audit_log(request, 'create', 'Inventory', inventory.id, object_name=str(inventory),
                     changes={'quantity': initial_quantity})
    return Response(InventorySerializer(inventory).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def inventory_detail(request, pk):
    inventory = get_object_or_404(Inventory.objects.select_related('product', 'warehouse'), pk=pk)

    if request.method == 'GET':
        return Response(InventorySerializer(inventory).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = InventoryUpdateSerializer(inventory, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            services.evaluate_stock_alert(inventory)
            create_audit_log(request, 'update', 'Inventory', inventory.id, object_name=str(inventory),
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if inventory.quantity > 0:
            return Response({'error': 'Only empty inventory rows can be deleted'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request, 'delete', 'Inventory', inventory.id, object_name=str(inventory))
        inventory.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def inventory_stock_check(request, pk):
    """Record that a physical stock check happened"""
    inventory = get_object_or_404(Inventory, pk=pk)
    inventory.last_stock_check = timezone.now()
    inventory.save(update_fields=['last_stock_check', 'updated_at'])
    return Response(InventorySerializer(inventory).data)


# Stock transaction views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def stock_transaction_list_create(request):
    """List stock transactions or apply a new one"""
    if request.method == 'GET':
        transactions = StockTransaction.objects.select_related('product', 'warehouse', 'created_by').all()
        for param in ('product', 'warehouse'):
            value = request.query_params.get(param)
            if value:
                transactions = transactions.filter(**{f'{param}_id': value})
        for param in ('transaction_type', 'reference_type'):
            value = request.query_params.get(param)
            if value:
                transactions = transactions.filter(**{param: value})
        date_from = parse_date_param(request.query_params.get('date_from'))
        date_to = parse_date_param(request.query_params.get('date_to'))
        if date_from:
            transactions = transactions.filter(created_at__date__gte=date_from)
        if date_to:
            transactions = transactions.filter(created_at__date__lte=date_to)
        return paginate(request, transactions, StockTransactionSerializer)

    serializer = StockTransactionCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        stock_transaction = services.apply_stock_transaction(
            data['product'], data['warehouse'], data['transaction_type'], data['quantity'],
            reference_type=data['reference_type'], reference_id=data.get('reference_id'),
            notes=data.get('notes', ''), user=request.user,
        )
    except Gold360Error as e:
        logger.warning(f"Stock transaction rejected: {e.message}")
        return _error(e)

    create_audit_log(request, AUDIT_ACTION_BY_TYPE[stock_transaction.transaction_type], 'StockTransaction',
                     stock_transaction.id, object_name=stock_transaction.product.name,
                     object_reference=stock_transaction.reference_id,
                     changes={'previous': stock_transaction.previous_quantity, 'new': stock_transaction.new_quantity})
    return Response(StockTransactionSerializer(stock_transaction).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_transaction_detail(request, pk):
    stock_transaction = get_object_or_404(
        StockTransaction.objects.select_related('product', 'warehouse', 'created_by'), pk=pk
    )
    return Response(StockTransactionSerializer(stock_transaction).data)


# Stock transfer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def stock_transfer_list_create(request):
    """List transfers or create a PENDING transfer"""
    if request.method == 'GET':
        transfers = _transfer_queryset()
        status_filter = request.query_params.get('status')
        if status_filter:
            transfers = transfers.filter(status=status_filter)
        for param in ('source_warehouse', 'destination_warehouse'):
            value = request.query_params.get(param)
            if value:
                transfers = transfers.filter(**{f'{param}_id': value})
        return paginate(request, transfers, StockTransferSerializer)

    serializer = StockTransferCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = dict(serializer.validated_data)
    items = data.pop('items')
    try:
        transfer = services.create_transfer(
            data.pop('source_warehouse'), data.pop('destination_warehouse'), items,
            user=request.user, **data
        )
    except Gold360Error as e:
        return _error(e)

    create_audit_log(request, 'create', 'StockTransfer', transfer.id, object_reference=transfer.reference_number,
                     changes={'items': len(items)})
    return Response(StockTransferSerializer(_transfer_queryset().get(pk=transfer.pk)).data,
                    status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def stock_transfer_detail(request, pk):
    transfer = get_object_or_404(_transfer_queryset(), pk=pk)

    if request.method == 'GET':
        return Response(StockTransferSerializer(transfer).data)
    elif request.method == 'PATCH':
        if transfer.is_terminal:
            return Response({'error': f'Transfer is {transfer.status} and can no longer be edited'},
                            status=status.HTTP_400_BAD_REQUEST)
        serializer = StockTransferUpdateSerializer(transfer, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(StockTransferSerializer(_transfer_queryset().get(pk=pk)).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if transfer.status != StockTransfer.STATUS_PENDING:
            return Response({'error': 'Only pending transfers can be deleted'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request, 'delete', 'StockTransfer', transfer.id, object_reference=transfer.reference_number)
        transfer.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def stock_transfer_status(request, pk):
    """Drive the transfer state machine"""
    transfer = get_object_or_404(StockTransfer, pk=pk)
    serializer = TransferStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = transfer.status
    try:
        transfer = services.change_transfer_status(transfer, serializer.validated_data['status'], user=request.user)
    except Gold360Error as e:
        logger.warning(f"Transfer {transfer.reference_number} status change rejected: {e.message}")
        return _error(e)

    create_audit_log(request, 'status_change', 'StockTransfer', transfer.id,
                     object_reference=transfer.reference_number,
                     changes={'status': {'old': old_status, 'new': transfer.status}})
    return Response(StockTransferSerializer(_transfer_queryset().get(pk=pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def stock_transfer_receive(request, pk):
    """Record received quantities for items of an in-transit transfer"""
    transfer = get_object_or_404(StockTransfer, pk=pk)
    serializer = TransferReceiveSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        transfer = services.receive_transfer_items(transfer, serializer.validated_data['items'], user=request.user)
    except Gold360Error as e:
        return _error(e)

    create_audit_log(request, 'transfer_receive', 'StockTransfer', transfer.id,
                     object_reference=transfer.reference_number,
                     changes={'items': serializer.validated_data['items'], 'status': transfer.status})
    return Response(StockTransferSerializer(_transfer_queryset().get(pk=pk)).data)


# Stock adjustment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def stock_adjustment_list_create(request):
    if request.method == 'GET':
        adjustments = StockAdjustment.objects.select_related(
            'warehouse', 'initiated_by', 'approved_by'
        ).prefetch_related('items__product')
        status_filter = request.query_params.get('status')
        warehouse_id = request.query_params.get('warehouse')
        if status_filter:
            adjustments = adjustments.filter(status=status_filter)
        if warehouse_id:
            adjustments = adjustments.filter(warehouse_id=warehouse_id)
        return paginate(request, adjustments, StockAdjustmentSerializer)

    serializer = StockAdjustmentCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        adjustment = services.create_adjustment(
            data['warehouse'], data['reason'], data['items'], user=request.user, notes=data.get('notes', '')
        )
    except Gold360Error as e:
        return _error(e)

    create_audit_log(request, 'create', 'StockAdjustment', adjustment.id,
                     object_reference=adjustment.reference_number, changes={'reason': adjustment.reason})
    return Response(StockAdjustmentSerializer(adjustment).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_adjustment_detail(request, pk):
    adjustment = get_object_or_404(
        StockAdjustment.objects.select_related('warehouse', 'initiated_by', 'approved_by'), pk=pk
    )
    return Response(StockAdjustmentSerializer(adjustment).data)


def _process_adjustment(request, pk, approve):
    adjustment = get_object_or_404(StockAdjustment, pk=pk)
    serializer = AdjustmentProcessSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    item_ids = serializer.validated_data.get('item_ids')
    handler = services.approve_adjustment if approve else services.reject_adjustment
    try:
        adjustment = handler(adjustment, user=request.user, item_ids=item_ids)
    except Gold360Error as e:
        return _error(e)

    create_audit_log(request, 'adjustment_approve' if approve else 'adjustment_reject', 'StockAdjustment',
                     adjustment.id, object_reference=adjustment.reference_number,
                     changes={'item_ids': item_ids or 'all', 'status': adjustment.status})
    return Response(StockAdjustmentSerializer(adjustment).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManagerOrAdmin])
def stock_adjustment_approve(request, pk):
    return _process_adjustment(request, pk, approve=True)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManagerOrAdmin])
def stock_adjustment_reject(request, pk):
    return _process_adjustment(request, pk, approve=False)


# Stock alert views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_alert_list(request):
    alerts = StockAlert.objects.select_related('product', 'warehouse').all()
    status_filter = request.query_params.get('status')
    if status_filter:
        alerts = alerts.filter(status=status_filter)
    for param in ('warehouse', 'product'):
        value = request.query_params.get(param)
        if value:
            alerts = alerts.filter(**{f'{param}_id': value})
    return paginate(request, alerts, StockAlertSerializer)


@api_view(['GET', 'PATCH'])
@permission_classes([IsAuthenticated])
def stock_alert_detail(request, pk):
    """Retrieve an alert, or ignore/resolve it or change its threshold"""
    alert = get_object_or_404(StockAlert.objects.select_related('product', 'warehouse'), pk=pk)
    if request.method == 'GET':
        return Response(StockAlertSerializer(alert).data)

    serializer = StockAlertSerializer(alert, data=request.data, partial=True)
    if serializer.is_valid():
        serializer.save()
        create_audit_log(request, 'update', 'StockAlert', alert.id, object_name=str(alert),
                         changes={k: str(v) for k, v in serializer.validated_data.items()})
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def stock_alert_check(request):
    """Sweep inventory rows and create, update or resolve alerts"""
    warehouse = None
    warehouse_id = request.data.get('warehouse') or request.query_params.get('warehouse')
    if warehouse_id:
        warehouse = get_object_or_404(Warehouse, pk=warehouse_id)
    counts = services.check_and_create_alerts(warehouse=warehouse)
    return Response(counts)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stock_alert_dashboard(request):
    active = StockAlert.objects.filter(status='active')
    recent = active.select_related('product', 'warehouse').order_by('-updated_at', '-id')[:5]
    return Response({
        'active_count': active.count(),
        'total_count': StockAlert.objects.count(),
        'critical_count': active.filter(current_level=0).count(),
        'recent_alerts': StockAlertSerializer(recent, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def stock_alert_notify(request, pk):
    """Mark an alert as notified"""
    alert = get_object_or_404(StockAlert.objects.select_related('product', 'warehouse'), pk=pk)
    alert.notification_sent = True
    alert.notification_date = timezone.now()
    alert.save(update_fields=['notification_sent', 'notification_date', 'updated_at'])
    logger.info(f"Stock alert {alert.id} marked as notified by {request.user.username}")
    return Response(StockAlertSerializer(alert).data)
