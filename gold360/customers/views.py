import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db import IntegrityError
from django.db.models import Q
from django.shortcuts import get_object_or_404
from gold360.core.cache_utils import DASHBOARD_PREFIX, invalidate_cache_pattern
from gold360.core.utils import create_audit_log, paginate
from .models import Customer
from .serializers import CustomerSerializer

logger = logging.getLogger('gold360.customers')


# Customer views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_list_create(request):
    """List customers or create a new customer"""
    if request.method == 'GET':
        queryset = Customer.objects.all().order_by('-created_at')
        search = request.query_params.get('search')
        segment = request.query_params.get('segment')
        is_active = request.query_params.get('is_active')
        if search:
            queryset = queryset.filter(
                Q(first_name__icontains=search) | Q(last_name__icontains=search) |
                Q(email__icontains=search) | Q(phone__icontains=search)
            )
        if segment:
            queryset = queryset.filter(segment=segment)
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active.lower() == 'true')
        return paginate(request, queryset, CustomerSerializer)

    serializer = CustomerSerializer(data=request.data)
    if serializer.is_valid():
        try:
            customer = serializer.save()
        except IntegrityError:
            return Response({'error': 'A customer with this email already exists'}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"Customer {customer.email} created by {request.user.username}")
        create_audit_log(request, 'create', 'Customer', customer.id, object_name=customer.full_name)
        invalidate_cache_pattern(DASHBOARD_PREFIX)
        return Response(CustomerSerializer(customer).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def customer_detail(request, pk):
    """Retrieve, update or delete a customer"""
    customer = get_object_or_404(Customer, pk=pk)

    if request.method == 'GET':
        return Response(CustomerSerializer(customer).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CustomerSerializer(customer, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            try:
                serializer.save()
            except IntegrityError:
                return Response({'error': 'A customer with this email already exists'}, status=status.HTTP_400_BAD_REQUEST)
            create_audit_log(request, 'update', 'Customer', customer.id, object_name=customer.full_name,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if customer.orders.exists():
            return Response({'error': 'Customer has orders and cannot be deleted. Deactivate the customer instead.'},
                            status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request, 'delete', 'Customer', customer.id, object_name=customer.full_name)
        customer.delete()
        invalidate_cache_pattern(DASHBOARD_PREFIX)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_orders(request, pk):
    """Orders placed by a customer, newest first"""
    from gold360.orders.serializers import OrderSerializer

    customer = get_object_or_404(Customer, pk=pk)
    orders = customer.orders.select_related('warehouse').prefetch_related('items__product').order_by('-order_date')
    return paginate(request, orders, OrderSerializer)
