import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
from gold360.core.exceptions import Gold360Error
from gold360.core.permissions import IsManagerOrAdmin, is_manager_or_admin
from gold360.core.utils import create_audit_log, paginate
from gold360.customers.models import Customer
from .models import LoyaltyProgram
from .serializers import (
    LoyaltyProgramSerializer, LoyaltyTransactionSerializer,
    LoyaltyTransactionCreateSerializer, CustomerLoyaltySerializer,
)
from .services import customer_summary, process_expired_points, record_transaction

logger = logging.getLogger('gold360.loyalty')

MANAGER_REQUIRED = {'error': 'Manager or admin role required'}


# Program views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def program_list_create(request):
    """List loyalty programs or create a new one"""
    if request.method == 'GET':
        programs = LoyaltyProgram.objects.all()
        return Response(LoyaltyProgramSerializer(programs, many=True).data)

    if not is_manager_or_admin(request.user):
        return Response(MANAGER_REQUIRED, status=status.HTTP_403_FORBIDDEN)
    serializer = LoyaltyProgramSerializer(data=request.data)
    if serializer.is_valid():
        program = serializer.save()
        logger.info(f"Loyalty program '{program.name}' created by {request.user.username}")
        create_audit_log(request, 'create', 'LoyaltyProgram', program.id, object_name=program.name)
        return Response(LoyaltyProgramSerializer(program).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def program_detail(request, pk):
    """Retrieve, update or delete a loyalty program"""
    program = get_object_or_404(LoyaltyProgram, pk=pk)

    if request.method == 'GET':
        return Response(LoyaltyProgramSerializer(program).data)
    if not is_manager_or_admin(request.user):
        return Response(MANAGER_REQUIRED, status=status.HTTP_403_FORBIDDEN)

    if request.method in ('PUT', 'PATCH'):
        serializer = LoyaltyProgramSerializer(program, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            create_audit_log(request, 'update', 'LoyaltyProgram', program.id, object_name=program.name,
                             changes={k: str(v) for k, v in serializer.validated_data.items()})
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        program.delete()
    except ProtectedError:
        return Response({'error': 'Loyalty program is in use and cannot be deleted'},
                        status=status.HTTP_400_BAD_REQUEST)
    create_audit_log(request, 'delete', 'LoyaltyProgram', pk, object_name=program.name)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def active_program(request):
    program = LoyaltyProgram.get_active()
    if program is None:
        return Response({'error': 'No active loyalty program'}, status=status.HTTP_404_NOT_FOUND)
    return Response(LoyaltyProgramSerializer(program).data)


# Customer views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def customer_loyalty(request, customer_id):
    """Points balance, value, tier and recent activity for a customer"""
    customer = get_object_or_404(Customer, pk=customer_id)
    return Response(CustomerLoyaltySerializer(customer_summary(customer)).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def customer_transactions(request, customer_id):
    """List a customer's loyalty transactions or record a new one"""
    customer = get_object_or_404(Customer, pk=customer_id)

    if request.method == 'GET':
        transactions = customer.loyalty_transactions.select_related('created_by')
        transaction_type = request.query_params.get('transaction_type')
        if transaction_type:
            transactions = transactions.filter(transaction_type=transaction_type)
        return paginate(request, transactions, LoyaltyTransactionSerializer)

    serializer = LoyaltyTransactionCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        loyalty_transaction = record_transaction(
            customer, data['transaction_type'], data['points'],
            reference_type=data['reference_type'], reference_id=data.get('reference_id'),
            description=data['description'], user=request.user,
        )
    except Gold360Error as e:
        return Response(e.as_response_data(), status=status.HTTP_400_BAD_REQUEST)

    create_audit_log(request, 'loyalty_adjust', 'Customer', customer.id, object_name=customer.full_name,
                     changes={'transaction_type': data['transaction_type'], 'points': data['points'],
                              'balance': customer.loyalty_points})
    return Response(LoyaltyTransactionSerializer(loyalty_transaction).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsManagerOrAdmin])
def process_expired(request):
    """Expire earned points that are past their expiry date"""
    result = process_expired_points()
    if result['processed_count']:
        create_audit_log(request, 'loyalty_expire', 'LoyaltyTransaction', 'batch', changes=result)
    return Response(result)
