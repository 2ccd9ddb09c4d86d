"""
Tests for loyalty programs, the points ledger and expiry processing
"""
from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from gold360.core.exceptions import InsufficientPointsError, ValidationFailed
from gold360.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from gold360.loyalty import services
from gold360.loyalty.models import LoyaltyProgram, LoyaltyTransaction


class LoyaltyProgramModelTests(TestCase):

    def test_single_active_program(self):
        first = TestDataFactory.create_loyalty_program(name='Classic')
        second = TestDataFactory.create_loyalty_program(name='Festive')
        first.refresh_from_db()
        self.assertFalse(first.is_active)
        self.assertTrue(second.is_active)
        self.assertEqual(LoyaltyProgram.get_active(), second)

    def test_inactive_program_does_not_deactivate_others(self):
        active = TestDataFactory.create_loyalty_program()
        TestDataFactory.create_loyalty_program(is_active=False)
        active.refresh_from_db()
        self.assertTrue(active.is_active)


class LoyaltyLedgerTests(TestCase):

    def setUp(self):
        self.customer = TestDataFactory.create_customer()
        self.program = TestDataFactory.create_loyalty_program(minimum_points_for_redemption=100, expiry_months=6)

    def test_earn_sets_expiry(self):
        earned = services.record_transaction(self.customer, 'earn', 250)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 250)
        self.assertIsNotNone(earned.expiry_date)
        self.assertGreater(earned.expiry_date, timezone.now() + timedelta(days=150))

    def test_earn_without_program_has_no_expiry(self):
        LoyaltyProgram.objects.update(is_active=False)
        earned = services.record_transaction(self.customer, 'earn', 10)
        self.assertIsNone(earned.expiry_date)

    def test_redeem(self):
        services.record_transaction(self.customer, 'earn', 300)
        services.record_transaction(self.customer, 'redeem', 200)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 100)

    def test_redeem_needs_minimum_balance(self):
        services.record_transaction(self.customer, 'earn', 80)
        with self.assertRaises(InsufficientPointsError) as ctx:
            services.record_transaction(self.customer, 'redeem', 50)
        self.assertEqual(ctx.exception.details['minimum_points'], 100)

    def test_small_redemption_allowed_above_minimum_balance(self):
        services.record_transaction(self.customer, 'earn', 300)
        services.record_transaction(self.customer, 'redeem', 50)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 250)

    def test_redeem_more_than_balance(self):
        services.record_transaction(self.customer, 'earn', 150)
        with self.assertRaises(InsufficientPointsError) as ctx:
            services.record_transaction(self.customer, 'redeem', 200)
        self.assertEqual(ctx.exception.details['available'], 150)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 150)

    def test_adjust_and_expire_clamp_at_zero(self):
        services.record_transaction(self.customer, 'earn', 40)
        services.record_transaction(self.customer, 'adjust', -100)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 0)
        services.record_transaction(self.customer, 'adjust', 30)
        services.record_transaction(self.customer, 'expire', 50)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 0)

    def test_invalid_points(self):
        with self.assertRaises(ValidationFailed):
            services.record_transaction(self.customer, 'earn', 0)
        with self.assertRaises(ValidationFailed):
            services.record_transaction(self.customer, 'adjust', 0)
        with self.assertRaises(ValidationFailed):
            services.record_transaction(self.customer, 'bonus', 10)

    def test_process_expired_points(self):
        old = services.record_transaction(self.customer, 'earn', 120)
        services.record_transaction(self.customer, 'earn', 80)
        LoyaltyTransaction.objects.filter(pk=old.pk).update(expiry_date=timezone.now() - timedelta(days=1))

        result = services.process_expired_points()
        self.assertEqual(result, {'processed_count': 1, 'total_points_expired': 120, 'affected_customers': 1})
        old.refresh_from_db()
        self.assertTrue(old.is_expired)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 80)
        self.assertEqual(LoyaltyTransaction.objects.filter(transaction_type='expire').count(), 1)

        self.assertEqual(services.process_expired_points()['processed_count'], 0)

    def test_refunded_order_points_are_not_expired_again(self):
        product = TestDataFactory.create_product(price=Decimal('1000.00'))
        warehouse = TestDataFactory.create_warehouse()
        TestDataFactory.stock(product, warehouse, 5)
        order = TestDataFactory.create_order(customer=self.customer, warehouse=warehouse,
                                             items=[{'product': product, 'quantity': 1}])
        LoyaltyProgram.objects.filter(pk=self.program.pk).update(points_per_currency=Decimal('0.1'))

        earned = services.earn_points_for_order(order)
        self.assertEqual(earned.points, 100)
        services.reverse_points_for_order(order)
        earned.refresh_from_db()
        self.assertTrue(earned.is_expired)
        self.assertIsNone(services.reverse_points_for_order(order))

        services.record_transaction(self.customer, 'earn', 500)
        result = services.process_expired_points(now=timezone.now() + timedelta(days=800))
        self.assertEqual(result['processed_count'], 1)
        self.assertEqual(result['total_points_expired'], 500)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 0)

    def test_refund_after_expiry_reverses_nothing(self):
        product = TestDataFactory.create_product(price=Decimal('200.00'))
        warehouse = TestDataFactory.create_warehouse()
        TestDataFactory.stock(product, warehouse, 5)
        order = TestDataFactory.create_order(customer=self.customer, warehouse=warehouse,
                                             items=[{'product': product, 'quantity': 1}])
        services.earn_points_for_order(order)
        services.record_transaction(self.customer, 'earn', 40)
        services.process_expired_points(now=timezone.now() + timedelta(days=800))

        self.assertIsNone(services.reverse_points_for_order(order))
        self.assertFalse(LoyaltyTransaction.objects.filter(transaction_type='adjust').exists())

    def test_expiry_command_dry_run(self):
        earned = services.record_transaction(self.customer, 'earn', 120)
        LoyaltyTransaction.objects.filter(pk=earned.pk).update(expiry_date=timezone.now() - timedelta(days=1))

        out = StringIO()
        call_command('process_expired_points', '--dry-run', stdout=out)
        self.assertIn('DRY RUN', out.getvalue())
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 120)

        call_command('process_expired_points', stdout=StringIO())
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.loyalty_points, 0)

    def test_tiers(self):
        self.assertEqual(services.get_customer_tier(self.customer), 'standard')
        self.customer.loyalty_points = 1001
        self.assertEqual(services.get_customer_tier(self.customer), 'silver')
        self.customer.loyalty_points = 5001
        self.assertEqual(services.get_customer_tier(self.customer), 'gold')
        self.customer.loyalty_points = 0
        self.customer.total_spent = Decimal('10001.00')
        self.assertEqual(services.get_customer_tier(self.customer), 'vip')

    def test_points_value(self):
        self.assertEqual(services.get_points_value(1250, self.program), 12)
        LoyaltyProgram.objects.update(is_active=False)
        self.assertEqual(services.get_points_value(1250), 0)


class LoyaltyAPITests(TestCase):

    def setUp(self):
        self.staff = TestDataFactory.create_user(role='staff')
        self.manager = TestDataFactory.create_user(role='manager')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.staff)
        self.customer = TestDataFactory.create_customer()

    def test_program_writes_need_manager(self):
        data = {'name': 'Gold Club', 'points_per_currency': '1.5'}
        response = self.client.post('/api/v1/loyalty/programs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.authenticate_user(self.manager)
        response = self.client.post('/api/v1/loyalty/programs/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get('/api/v1/loyalty/programs/active/')
        self.assertEqual(response.data['name'], 'Gold Club')

    def test_no_active_program(self):
        response = self.client.get('/api/v1/loyalty/programs/active/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_record_and_list_transactions(self):
        TestDataFactory.create_loyalty_program(minimum_points_for_redemption=100)
        url = f'/api/v1/loyalty/customers/{self.customer.id}/transactions/'
        response = self.client.post(url, {'transaction_type': 'earn', 'points': 500}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post(url, {'transaction_type': 'redeem', 'points': 900}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post(url, {'transaction_type': 'expire', 'points': 10}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.get(url)
        self.assertEqual(response.data['count'], 1)

    def test_customer_summary(self):
        TestDataFactory.create_loyalty_program(point_value_in_currency=Decimal('0.05'))
        services.record_transaction(self.customer, 'earn', 1200)
        response = self.client.get(f'/api/v1/loyalty/customers/{self.customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['points'], 1200)
        self.assertEqual(response.data['points_value'], 60)
        self.assertEqual(response.data['tier'], 'silver')
        self.assertEqual(len(response.data['recent_transactions']), 1)
        self.assertIsNotNone(response.data['program'])

    def test_process_expired_endpoint(self):
        response = self.client.post('/api/v1/loyalty/process-expired/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.authenticate_user(self.manager)
        response = self.client.post('/api/v1/loyalty/process-expired/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['processed_count'], 0)
