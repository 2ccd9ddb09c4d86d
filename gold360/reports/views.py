import logging
from datetime import timedelta
from decimal import Decimal

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.db.models import Sum, Count, Avg, Q, F, Case, When, Value, CharField, DecimalField, ExpressionWrapper
from django.db.models.functions import TruncDate
from django.utils import timezone

from gold360.catalog.models import Product
from gold360.core.cache_utils import DASHBOARD_CACHE_TTL, DASHBOARD_PREFIX, cached_query
from gold360.core.permissions import IsManagerOrAdmin
from gold360.core.utils import get_date_range
from gold360.customers.models import Customer
from gold360.inventory.models import Inventory, StockAlert, StockTransaction
from gold360.inventory.serializers import StockTransactionSerializer
from gold360.loyalty.services import TIER_GOLD_THRESHOLD, TIER_SILVER_THRESHOLD, TIER_VIP_THRESHOLD
from gold360.orders.models import Order, OrderItem

logger = logging.getLogger('gold360.reports')


def _sales_orders():
    return Order.objects.exclude(status__in=Order.EXCLUDED_FROM_SALES)


def _sales_totals(orders):
    totals = orders.aggregate(
        revenue=Sum('total_amount', output_field=DecimalField()),
        order_count=Count('id'),
        avg_order_value=Avg('total_amount', output_field=DecimalField()),
    )
    return {
        'order_count': totals['order_count'],
        'revenue': float(totals['revenue'] or Decimal('0.00')),
        'avg_order_value': float(totals['avg_order_value'] or Decimal('0.00')),
    }


def _period(date_from, date_to):
    return {'from': date_from.isoformat(), 'to': date_to.isoformat()}


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManagerOrAdmin])
def sales_report(request):
    """Sales summary, daily breakdown and top products"""
    date_from, date_to = get_date_range(request)
    in_range = Order.objects.filter(order_date__date__gte=date_from, order_date__date__lte=date_to)
    orders = in_range.exclude(status__in=Order.EXCLUDED_FROM_SALES)

    daily_sales = orders.annotate(
        date=TruncDate('order_date')
    ).values('date').annotate(
        revenue=Sum('total_amount', output_field=DecimalField()),
        order_count=Count('id')
    ).order_by('date')

    top_products = OrderItem.objects.filter(
        order__in=orders
    ).values(
        'product__id',
        'product__name',
        'product__sku'
    ).annotate(
        total_quantity=Sum('quantity'),
        total_revenue=Sum('total_price', output_field=DecimalField()),
        order_count=Count('order', distinct=True)
    ).order_by('-total_revenue')[:10]

    by_status = in_range.values('status').annotate(
        count=Count('id'), total=Sum('total_amount', output_field=DecimalField())
    ).order_by('status')
    by_payment_status = in_range.values('payment_status').annotate(
        count=Count('id'), total=Sum('total_amount', output_field=DecimalField())
    ).order_by('payment_status')

    return Response({
        'period': _period(date_from, date_to),
        'summary': _sales_totals(orders),
        'daily_sales': [
            {'date': row['date'].isoformat(), 'revenue': float(row['revenue'] or 0), 'order_count': row['order_count']}
            for row in daily_sales
        ],
        'top_products': [
            {
                'product_id': row['product__id'],
                'name': row['product__name'],
                'sku': row['product__sku'],
                'total_quantity': row['total_quantity'],
                'total_revenue': float(row['total_revenue'] or 0),
                'order_count': row['order_count'],
            }
            for row in top_products
        ],
        'by_status': [
            {'status': row['status'], 'count': row['count'], 'total': float(row['total'] or 0)}
            for row in by_status
        ],
        'by_payment_status': [
            {'payment_status': row['payment_status'], 'count': row['count'], 'total': float(row['total'] or 0)}
            for row in by_payment_status
        ],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManagerOrAdmin])
def inventory_report(request):
    """Stock totals and value by warehouse, low stock and recent movements"""
    date_from, date_to = get_date_range(request)
    stock_value = ExpressionWrapper(F('quantity') * F('product__cost_price'),
                                    output_field=DecimalField(max_digits=16, decimal_places=2))
    rows = Inventory.objects.filter(is_active=True)

    totals = rows.aggregate(total_units=Sum('quantity'), total_value=Sum(stock_value))
    by_warehouse = rows.values('warehouse__id', 'warehouse__name').annotate(
        product_count=Count('product', distinct=True),
        total_units=Sum('quantity'),
        total_value=Sum(stock_value),
    ).order_by('warehouse__name')

    low_stock = Product.objects.filter(
        is_active=True, stock_quantity__lte=F('stock_alert')
    ).order_by('stock_quantity', 'name').values('id', 'name', 'sku', 'stock_quantity', 'stock_alert')

    recent_transactions = StockTransaction.objects.filter(
        created_at__date__gte=date_from, created_at__date__lte=date_to
    ).select_related('product', 'warehouse', 'created_by')[:20]

    return Response({
        'period': _period(date_from, date_to),
        'summary': {
            'total_products': Product.objects.filter(is_active=True).count(),
            'total_units': totals['total_units'] or 0,
            'total_stock_value': float(totals['total_value'] or Decimal('0.00')),
        },
        'by_warehouse': [
            {
                'warehouse_id': row['warehouse__id'],
                'warehouse_name': row['warehouse__name'],
                'product_count': row['product_count'],
                'total_units': row['total_units'] or 0,
                'total_value': float(row['total_value'] or 0),
            }
            for row in by_warehouse
        ],
        'low_stock_products': list(low_stock),
        'recent_transactions': StockTransactionSerializer(recent_transactions, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManagerOrAdmin])
def customer_report(request):
    """Customer counts, segments, top spenders and loyalty tiers"""
    date_from, date_to = get_date_range(request)
    customers = Customer.objects.all()

    by_segment = customers.values('segment').annotate(count=Count('id')).order_by('segment')
    top_customers = customers.order_by('-total_spent', 'id')[:10]
    tiers = customers.annotate(
        tier=Case(
            When(Q(loyalty_points__gt=TIER_VIP_THRESHOLD) | Q(total_spent__gt=TIER_VIP_THRESHOLD), then=Value('vip')),
            When(loyalty_points__gt=TIER_GOLD_THRESHOLD, then=Value('gold')),
            When(loyalty_points__gt=TIER_SILVER_THRESHOLD, then=Value('silver')),
            default=Value('standard'),
            output_field=CharField(),
        )
    ).values('tier').annotate(count=Count('id')).order_by('tier')

    return Response({
        'period': _period(date_from, date_to),
        'summary': {
            'total_customers': customers.count(),
            'active_customers': customers.filter(is_active=True).count(),
            'new_customers': customers.filter(created_at__date__gte=date_from,
                                              created_at__date__lte=date_to).count(),
        },
        'by_segment': list(by_segment),
        'top_customers': [
            {
                'id': customer.id,
                'name': customer.full_name,
                'email': customer.email,
                'segment': customer.segment,
                'total_spent': float(customer.total_spent),
                'loyalty_points': customer.loyalty_points,
            }
            for customer in top_customers
        ],
        'loyalty_tiers': {row['tier']: row['count'] for row in tiers},
    })


@cached_query(cache_ttl=DASHBOARD_CACHE_TTL, key_prefix=DASHBOARD_PREFIX)
def build_dashboard(today):
    week_start = today - timedelta(days=today.weekday())
    month_start = today.replace(day=1)
    sales = _sales_orders()

    recent_orders = Order.objects.select_related('customer').order_by('-order_date', '-id')[:5]
    by_status = Order.objects.values('status').annotate(count=Count('id')).order_by('status')

    return {
        'date': today.isoformat(),
        'sales': {
            'today': _sales_totals(sales.filter(order_date__date=today)),
            'this_week': _sales_totals(sales.filter(order_date__date__gte=week_start, order_date__date__lte=today)),
            'this_month': _sales_totals(sales.filter(order_date__date__gte=month_start, order_date__date__lte=today)),
        },
        'recent_orders': [
            {
                'id': order.id,
                'order_number': order.order_number,
                'customer_name': order.customer.full_name,
                'status': order.status,
                'payment_status': order.payment_status,
                'total_amount': float(order.total_amount),
                'order_date': order.order_date.isoformat(),
            }
            for order in recent_orders
        ],
        'orders_by_status': {row['status']: row['count'] for row in by_status},
        'low_stock_count': Product.objects.filter(is_active=True, stock_quantity__lte=F('stock_alert')).count(),
        'active_alerts': StockAlert.objects.filter(status='active').count(),
        'new_customers_this_month': Customer.objects.filter(created_at__date__gte=month_start).count(),
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsManagerOrAdmin])
def dashboard(request):
    """Headline KPIs, cached for a few minutes"""
    return Response(build_dashboard(timezone.localdate()))
