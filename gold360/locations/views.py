import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.shortcuts import get_object_or_404
from django.db import IntegrityError
from django.db.models.deletion import ProtectedError
from django.db.models import Q, Sum
from gold360.core.permissions import is_manager_or_admin
from gold360.core.utils import create_audit_log
from .models import Warehouse
from .serializers import WarehouseSerializer

logger = logging.getLogger('gold360.locations')


def _forbidden(request, action):
    logger.warning(f"User {request.user.username} attempted to {action} a warehouse without manager privileges")
    return Response({'error': 'Only managers and administrators can manage warehouses'},
                    status=status.HTTP_403_FORBIDDEN)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def warehouse_list_create(request):
    """List warehouses or create a new one (create requires manager or admin)"""
    if request.method == 'GET':
        warehouses = Warehouse.objects.all()
        is_active = request.query_params.get('is_active')
        search = request.query_params.get('search')
        if is_active is not None:
            warehouses = warehouses.filter(is_active=is_active.lower() == 'true')
        if search:
            warehouses = warehouses.filter(Q(name__icontains=search) | Q(location__icontains=search))
        serializer = WarehouseSerializer(warehouses, many=True)
        return Response(serializer.data)

    if not is_manager_or_admin(request.user):
        return _forbidden(request, 'create')

    serializer = WarehouseSerializer(data=request.data)
    if serializer.is_valid():
        try:
            warehouse = serializer.save()
        except IntegrityError as e:
            logger.error(f"IntegrityError creating warehouse: {e}")
            return Response({'error': 'A warehouse with this name already exists'}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"Warehouse '{warehouse.name}' created by {request.user.username}")
        create_audit_log(request, 'create', 'Warehouse', warehouse.id, object_name=warehouse.name)
        return Response(WarehouseSerializer(warehouse).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def warehouse_detail(request, pk):
    """Retrieve, update or delete a warehouse (update/delete require manager or admin)"""
    warehouse = get_object_or_404(Warehouse, pk=pk)

    if request.method == 'GET':
        return Response(WarehouseSerializer(warehouse).data)

    if not is_manager_or_admin(request.user):
        return _forbidden(request, 'modify')

    if request.method in ('PUT', 'PATCH'):
        serializer = WarehouseSerializer(warehouse, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            try:
                serializer.save()
            except IntegrityError:
                return Response({'error': 'A warehouse with this name already exists'}, status=status.HTTP_400_BAD_REQUEST)
            create_audit_log(request, 'update', 'Warehouse', warehouse.id, object_name=warehouse.name,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE: refuse while the warehouse still holds stock
    held = warehouse.inventory_rows.aggregate(total=Sum('quantity'))['total'] or 0
    if held > 0:
        return Response(
            {'error': f'Warehouse still holds {held} units of stock. Deactivate it instead.'},
            status=status.HTTP_400_BAD_REQUEST
        )
    try:
        warehouse.delete()
    except ProtectedError:
        return Response(
            {'error': 'Warehouse has stock history and cannot be deleted. Deactivate it instead.'},
            status=status.HTTP_400_BAD_REQUEST
        )
    create_audit_log(request, 'delete', 'Warehouse', pk, object_name=warehouse.name)
    logger.info(f"Warehouse '{warehouse.name}' deleted by {request.user.username}")
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def warehouse_inventory(request, pk):
    """Inventory rows held in a warehouse"""
    from gold360.inventory.serializers import InventorySerializer

    warehouse = get_object_or_404(Warehouse, pk=pk)
    rows = warehouse.inventory_rows.select_related('product').order_by('product__name')
    return Response({
        'warehouse': WarehouseSerializer(warehouse).data,
        'inventory': InventorySerializer(rows, many=True).data,
    })
