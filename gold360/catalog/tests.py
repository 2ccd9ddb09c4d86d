"""
Tests for categories, products, product filters and labels
"""
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from gold360.catalog.models import Product
from gold360.core.test_utils import TestDataFactory, AuthenticatedAPIClient


class ProductModelTests(TestCase):

    def test_low_stock_and_status(self):
        product = TestDataFactory.create_product(stock_alert=5)
        self.assertTrue(product.is_low_stock)
        product.stock_quantity = 6
        self.assertFalse(product.is_low_stock)
        product.is_active = False
        self.assertEqual(product.status, 'inactive')


class CategoryAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_user())

    def test_create_and_list_categories(self):
        response = self.client.post('/api/v1/categories/', {'name': 'Rings'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.get('/api/v1/categories/')
        self.assertEqual(response.data[0]['name'], 'Rings')
        self.assertEqual(response.data[0]['product_count'], 0)

    def test_delete_category_keeps_products(self):
        category = TestDataFactory.create_category()
        product = TestDataFactory.create_product(category=category)
        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        product.refresh_from_db()
        self.assertIsNone(product.category)


class ProductAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.category = TestDataFactory.create_category(name='Necklaces')

    def test_create_product(self):
        data = {
            'name': 'Gold Chain',
            'sku': 'GC-22-001',
            'category': self.category.id,
            'price': '1500.00',
            'cost_price': '900.00',
            'gold_karat': 22,
            'weight': '12.500',
        }
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['category_name'], 'Necklaces')
        self.assertEqual(response.data['stock_quantity'], 0)

    def test_stock_quantity_is_read_only(self):
        data = {'name': 'Pendant', 'sku': 'PD-1', 'price': '300.00', 'stock_quantity': 50}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Product.objects.get(sku='PD-1').stock_quantity, 0)

    def test_duplicate_sku_rejected(self):
        TestDataFactory.create_product(sku='DUP-1')
        response = self.client.post('/api/v1/products/', {'name': 'Copy', 'sku': 'DUP-1', 'price': '10.00'},
                                    format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_compare_at_price_below_price_rejected(self):
        data = {'name': 'Bangle', 'sku': 'BG-1', 'price': '500.00', 'compare_at_price': '400.00'}
        response = self.client.post('/api/v1/products/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('compare_at_price', response.data)

    def test_list_filters_and_paginates(self):
        TestDataFactory.create_product(name='Diamond Ring', sku='DR-1', category=self.category, gold_karat=18)
        TestDataFactory.create_product(name='Silver Ring', sku='SR-1', price=Decimal('50.00'))
        TestDataFactory.create_product(name='Gold Earring', sku='GE-1', category=self.category, gold_karat=22)

        response = self.client.get('/api/v1/products/', {'category': self.category.id, 'limit': 1})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(len(response.data['results']), 1)

        response = self.client.get('/api/v1/products/', {'search': 'ring', 'max_price': '60'})
        self.assertEqual([p['sku'] for p in response.data['results']], ['SR-1'])

        response = self.client.get('/api/v1/products/', {'gold_karat': 22})
        self.assertEqual([p['sku'] for p in response.data['results']], ['GE-1'])

    def test_list_cache_is_invalidated_on_create(self):
        self.client.get('/api/v1/products/')
        self.client.post('/api/v1/products/', {'name': 'Anklet', 'sku': 'AN-1', 'price': '80.00'}, format='json')
        response = self.client.get('/api/v1/products/')
        self.assertEqual(response.data['count'], 1)

    def test_featured_and_low_stock(self):
        featured = TestDataFactory.create_product(is_featured=True, stock_alert=2)
        warehouse = TestDataFactory.create_warehouse()
        TestDataFactory.stock(featured, warehouse, 10)
        low = TestDataFactory.create_product(stock_alert=5)

        response = self.client.get('/api/v1/products/featured/')
        self.assertEqual([p['id'] for p in response.data], [featured.id])

        response = self.client.get('/api/v1/products/low-stock/')
        self.assertEqual([p['id'] for p in response.data], [low.id])

    def test_update_stock_override(self):
        product = TestDataFactory.create_product()
        response = self.client.patch(f'/api/v1/products/{product.id}/stock/', {'stock_quantity': 7}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock_quantity'], 7)

        response = self.client.patch(f'/api/v1/products/{product.id}/stock/', {'stock_quantity': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_product_with_stock_history_refused(self):
        product = TestDataFactory.create_product()
        TestDataFactory.stock(product, TestDataFactory.create_warehouse(), 1)
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Product.objects.filter(pk=product.pk).exists())

    def test_delete_unused_product(self):
        product = TestDataFactory.create_product()
        response = self.client.delete(f'/api/v1/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_label_is_png_data_url(self):
        product = TestDataFactory.create_product(name='Emerald Stud', sku='ES-18', gold_karat=18)
        response = self.client.get(f'/api/v1/products/{product.id}/label/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['image'].startswith('data:image/png;base64,'))
