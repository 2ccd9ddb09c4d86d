"""
Tests for authentication, users, audit logging and shared helpers
"""
from datetime import date, datetime, timezone as dt_timezone
from unittest import mock

from django.test import TestCase, RequestFactory
from rest_framework import status
from gold360.core.models import AuditLog
from gold360.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from gold360.core.utils import add_months, create_audit_log, get_client_ip, monthly_reference, parse_date_param
from gold360.inventory.models import StockTransfer


class AuthAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_health_is_public(self):
        response = self.client.get('/api/v1/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ok')

    def test_login_returns_tokens_and_user(self):
        TestDataFactory.create_user(username='manager1', password='testpass123', role='manager')
        response = self.client.post('/api/v1/auth/login/', {'username': 'manager1', 'password': 'testpass123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], 'manager')

    def test_login_with_wrong_password(self):
        TestDataFactory.create_user(username='staff1', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {'username': 'staff1', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_issues_new_access_token(self):
        TestDataFactory.create_user(username='staff2', password='testpass123')
        login = self.client.post('/api/v1/auth/login/', {'username': 'staff2', 'password': 'testpass123'},
                                 format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_refresh_rejected_for_deleted_user(self):
        user = TestDataFactory.create_user(username='gone', password='testpass123')
        login = self.client.post('/api/v1/auth/login/', {'username': 'gone', 'password': 'testpass123'},
                                 format='json')
        user.delete()
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_inactive_user_cannot_log_in(self):
        user = TestDataFactory.create_user(username='retired', password='testpass123')
        user.is_active = False
        user.save()
        response = self.client.post('/api/v1/auth/login/', {'username': 'retired', 'password': 'testpass123'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertNotIn('access', response.data)

    def test_refresh_rejected_for_deactivated_user(self):
        user = TestDataFactory.create_user(username='leaver', password='testpass123')
        login = self.client.post('/api/v1/auth/login/', {'username': 'leaver', 'password': 'testpass123'},
                                 format='json')
        user.is_active = False
        user.save()
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertNotIn('access', response.data)

    def test_register_always_creates_staff(self):
        data = {
            'username': 'newbie',
            'email': 'newbie@test.com',
            'password': 'Sparkl3-Diamond!',
            'password_confirm': 'Sparkl3-Diamond!',
            'role': 'admin',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['role'], 'staff')
        self.assertIn('access', response.data)

    def test_register_password_mismatch(self):
        data = {
            'username': 'newbie',
            'email': 'newbie@test.com',
            'password': 'Sparkl3-Diamond!',
            'password_confirm': 'Different-123!',
        }
        response = self.client.post('/api/v1/auth/register/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_protected_endpoint_requires_token(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_reports_role_flags(self):
        user = TestDataFactory.create_user(role='staff')
        self.client.authenticate_user(user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_admin'])
        self.assertFalse(response.data['can_approve_adjustments'])


class UserAdminAPITests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_user(role='admin')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_staff_cannot_list_users(self):
        self.client.authenticate_user(TestDataFactory.create_user(role='staff'))
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_creates_manager(self):
        data = {
            'username': 'floor_manager',
            'email': 'floor@test.com',
            'password': 'Sparkl3-Diamond!',
            'password_confirm': 'Sparkl3-Diamond!',
            'role': 'manager',
        }
        response = self.client.post('/api/v1/users/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['role'], 'manager')
        self.assertTrue(AuditLog.objects.filter(model_name='User', action='create').exists())

    def test_filter_users_by_role(self):
        TestDataFactory.create_user(role='manager')
        response = self.client.get('/api/v1/users/', {'role': 'manager'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_admin_cannot_delete_self(self):
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_audit_log_list_is_paginated(self):
        create_audit_log(action='create', model_name='Warehouse', object_id=1, user=self.admin)
        create_audit_log(action='delete', model_name='Warehouse', object_id=1, user=self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'action': 'delete'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['action'], 'delete')


class UtilsTests(TestCase):

    def test_client_ip_prefers_forwarded_header(self):
        request = RequestFactory().get('/', HTTP_X_FORWARDED_FOR='10.0.0.1, 10.0.0.2')
        self.assertEqual(get_client_ip(request), '10.0.0.1')

    def test_audit_log_requires_fields(self):
        self.assertIsNone(create_audit_log(action='create', model_name=None, object_id=1))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_audit_log_never_raises(self):
        with mock.patch.object(AuditLog.objects, 'create', side_effect=RuntimeError('db down')):
            self.assertIsNone(create_audit_log(action='create', model_name='Order', object_id=1))

    def test_parse_date_param(self):
        self.assertEqual(parse_date_param('2024-02-29'), date(2024, 2, 29))
        self.assertIsNone(parse_date_param('29/02/2024'))
        self.assertIsNone(parse_date_param(None))

    def test_add_months_clamps_to_month_end(self):
        self.assertEqual(add_months(date(2024, 1, 31), 1), date(2024, 2, 29))
        self.assertEqual(add_months(date(2024, 11, 15), 3), date(2025, 2, 15))
        self.assertEqual(add_months(datetime(2023, 12, 31, 10, 30), 12), datetime(2024, 12, 31, 10, 30))

    def test_monthly_reference_format(self):
        reference = monthly_reference('TRF', StockTransfer, now=datetime(2024, 3, 5, tzinfo=dt_timezone.utc))
        self.assertEqual(reference, 'TRF-2403-0001')
