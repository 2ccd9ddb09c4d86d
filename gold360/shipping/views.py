import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import IntegrityError
from django.shortcuts import get_object_or_404
from gold360.core.exceptions import CarrierError, Gold360Error
from gold360.core.utils import create_audit_log, paginate
from . import services
from .carriers import fetch_tracking
from .models import Shipment
from .serializers import (
    ShipmentSerializer, ShipmentUpdateSerializer, ShipmentStatusSerializer, ShipmentNotificationSerializer,
)

logger = logging.getLogger('gold360.shipping')

DUPLICATE_TRACKING = {'error': 'A shipment with this tracking number already exists'}


# Shipment views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def shipment_list_create(request):
    """List shipments or create one for an order"""
    if request.method == 'GET':
        shipments = Shipment.objects.select_related('order')
        for param in ('status', 'carrier_name'):
            value = request.query_params.get(param)
            if value:
                shipments = shipments.filter(**{param: value})
        order_id = request.query_params.get('order')
        if order_id:
            shipments = shipments.filter(order_id=order_id)
        return paginate(request, shipments, ShipmentSerializer)

    serializer = ShipmentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = dict(serializer.validated_data)
    try:
        shipment = services.create_shipment(data.pop('order'), user=request.user, **data)
    except Gold360Error as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)
    except IntegrityError:
        return Response(DUPLICATE_TRACKING, status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request, 'create', 'Shipment', shipment.id, object_reference=shipment.tracking_number)
    return Response(ShipmentSerializer(shipment).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def shipment_detail(request, pk):
    shipment = get_object_or_404(Shipment.objects.select_related('order'), pk=pk)

    if request.method == 'GET':
        return Response(ShipmentSerializer(shipment).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ShipmentUpdateSerializer(shipment, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            try:
                serializer.save()
            except IntegrityError:
                return Response(DUPLICATE_TRACKING, status=status.HTTP_400_BAD_REQUEST)
            create_audit_log(request, 'update', 'Shipment', shipment.id, object_reference=shipment.tracking_number,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if shipment.status != 'pending':
            return Response({'error': 'Only pending shipments can be deleted'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request, 'delete', 'Shipment', shipment.id, object_reference=shipment.tracking_number)
        shipment.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def shipment_status(request, pk):
    """Update the shipment status and keep the order in step"""
    shipment = get_object_or_404(Shipment.objects.select_related('order__customer'), pk=pk)
    serializer = ShipmentStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_status = shipment.status
    try:
        shipment = services.update_shipment_status(shipment, serializer.validated_data['status'], user=request.user)
    except Gold360Error as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request, 'status_change', 'Shipment', shipment.id, object_reference=shipment.tracking_number,
                     changes={'status': {'old': old_status, 'new': shipment.status}})
    shipment = Shipment.objects.select_related('order').get(pk=pk)
    return Response(ShipmentSerializer(shipment).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def shipment_track(request, tracking_number):
    """Local shipment record plus live carrier tracking when available"""
    shipment = get_object_or_404(Shipment.objects.select_related('order'), tracking_number=tracking_number)
    data = ShipmentSerializer(shipment).data
    try:
        data['external_tracking'] = fetch_tracking(shipment.tracking_number, shipment.carrier_name)
        data['external_tracking_error'] = None
    except CarrierError as e:
        data['external_tracking'] = None
        data['external_tracking_error'] = e.message
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def shipment_notifications(request, pk):
    shipment = get_object_or_404(Shipment, pk=pk)
    notifications = shipment.notifications.select_related('customer')
    return Response(ShipmentNotificationSerializer(notifications, many=True).data)
