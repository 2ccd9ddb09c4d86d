"""
Loyalty ledger rules.

Customer.loyalty_points is only ever changed here, inside transaction.atomic()
with the customer row locked.
"""
import logging
import math
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from gold360.core.exceptions import InsufficientPointsError, ValidationFailed
from gold360.core.utils import add_months
from gold360.customers.models import Customer
from .models import LoyaltyProgram, LoyaltyTransaction

logger = logging.getLogger('gold360.loyalty')

TIER_VIP_THRESHOLD = 10000
TIER_GOLD_THRESHOLD = 5000
TIER_SILVER_THRESHOLD = 1000


def record_transaction(customer, transaction_type, points, reference_type='system', reference_id=None,
                       description='', user=None, program=None):
    """
    Record a loyalty transaction and move the customer's balance.

    earn and redeem take a positive magnitude, expire subtracts (clamped at zero)
    and adjust takes a signed amount (clamped at zero).
    """
    if transaction_type not in dict(LoyaltyTransaction.TRANSACTION_TYPE_CHOICES):
        raise ValidationFailed(f"Unknown loyalty transaction type '{transaction_type}'")
    points = int(points)
    if transaction_type == 'adjust':
        if points == 0:
            raise ValidationFailed('Adjustment points cannot be zero')
    elif points <= 0:
        raise ValidationFailed('Points must be greater than zero')

    if program is None:
        program = LoyaltyProgram.get_active()

    with transaction.atomic():
        locked = Customer.objects.select_for_update().get(pk=customer.pk)
        balance = locked.loyalty_points
        expiry_date = None

        if transaction_type == 'earn':
            new_balance = balance + points
            if program is not None:
                expiry_date = add_months(timezone.now(), program.expiry_months)
        elif transaction_type == 'redeem':
            minimum = program.minimum_points_for_redemption if program is not None else 0
            if balance < minimum:
                raise InsufficientPointsError(
                    f"A balance of at least {minimum} points is required for redemption",
                    minimum_points=minimum, available=balance,
                )
            if balance < points:
                raise InsufficientPointsError(
                    f"Insufficient points: available {balance}, requested {points}",
                    available=balance, requested=points,
                )
            new_balance = balance - points
        elif transaction_type == 'expire':
            new_balance = max(0, balance - points)
        else:
            new_balance = max(0, balance + points)

        loyalty_transaction = LoyaltyTransaction.objects.create(
            customer=locked,
            points=points,
            transaction_type=transaction_type,
            reference_type=reference_type,
            reference_id=str(reference_id) if reference_id is not None else None,
            description=description or '',
            expiry_date=expiry_date,
            created_by=user if user is not None and user.is_authenticated else None,
        )
        locked.loyalty_points = new_balance
        locked.save(update_fields=['loyalty_points', 'updated_at'])

    customer.loyalty_points = new_balance
    logger.info(f"Loyalty {transaction_type} {points} for customer {customer.id}: {balance} -> {new_balance}")
    return loyalty_transaction


def earn_points_for_order(order, user=None):
    """Credit floor(total x points_per_currency) for a paid order; None without an active program"""
    program = LoyaltyProgram.get_active()
    if program is None:
        return None
    points = math.floor(Decimal(order.total_amount) * program.points_per_currency)
    if points <= 0:
        return None
    return record_transaction(
        order.customer, 'earn', points, reference_type='order', reference_id=order.order_number,
        description=f"Points earned for order {order.order_number}", user=user, program=program,
    )


def reverse_points_for_order(order, user=None):
    """
    Take back points earned for a refunded order.

    Only earn rows that have not expired are reversed; they are then flagged
    is_expired so the expiry sweep never removes the same points again.
    """
    with transaction.atomic():
        earned = list(LoyaltyTransaction.objects.select_for_update().filter(
            customer=order.customer, transaction_type='earn', is_expired=False,
            reference_type='order', reference_id=order.order_number,
        ))
        points = sum(t.points for t in earned)
        if points <= 0:
            return None
        reversal = record_transaction(
            order.customer, 'adjust', -points, reference_type='order', reference_id=order.order_number,
            description=f"Points reversed for refunded order {order.order_number}", user=user,
        )
        LoyaltyTransaction.objects.filter(pk__in=[t.pk for t in earned]).update(is_expired=True)
    return reversal


def process_expired_points(now=None, dry_run=False):
    """Expire every earn transaction past its expiry date"""
    now = now or timezone.now()
    due = (LoyaltyTransaction.objects
           .filter(transaction_type='earn', is_expired=False, expiry_date__lt=now)
           .select_related('customer')
           .order_by('expiry_date', 'id'))

    processed_count = 0
    total_points = 0
    affected = set()
    for earned in due:
        if not dry_run:
            with transaction.atomic():
                # A refund may have reversed this row since the sweep started
                still_due = LoyaltyTransaction.objects.select_for_update().filter(
                    pk=earned.pk, is_expired=False,
                ).first()
                if not still_due:
                    continue
                record_transaction(
                    earned.customer, 'expire', earned.points, reference_type='system',
                    reference_id=str(earned.id), description=f"Expired points from transaction {earned.id}",
                )
                LoyaltyTransaction.objects.filter(pk=earned.pk).update(is_expired=True)
        processed_count += 1
        total_points += earned.points
        affected.add(earned.customer_id)

    if processed_count:
        logger.info(f"Expired {total_points} points across {len(affected)} customers "
                    f"({processed_count} transactions{', dry run' if dry_run else ''})")
    return {
        'processed_count': processed_count,
        'total_points_expired': total_points,
        'affected_customers': len(affected),
    }


def get_customer_tier(customer):
    points = customer.loyalty_points
    if points > TIER_VIP_THRESHOLD or customer.total_spent > TIER_VIP_THRESHOLD:
        return 'vip'
    if points > TIER_GOLD_THRESHOLD:
        return 'gold'
    if points > TIER_SILVER_THRESHOLD:
        return 'silver'
    return 'standard'


def get_points_value(points, program=None):
    program = program if program is not None else LoyaltyProgram.get_active()
    if program is None:
        return 0
    return math.floor(Decimal(points) * program.point_value_in_currency)


def customer_summary(customer):
    program = LoyaltyProgram.get_active()
    return {
        'customer_id': customer.id,
        'customer_name': customer.full_name,
        'points': customer.loyalty_points,
        'points_value': get_points_value(customer.loyalty_points, program),
        'tier': get_customer_tier(customer),
        'total_spent': customer.total_spent,
        'recent_transactions': list(customer.loyalty_transactions.order_by('-created_at', '-id')[:10]),
        'program': program,
    }
