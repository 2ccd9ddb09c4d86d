import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.cache import cache
from django.db import IntegrityError
from django.db.models import F
from django.db.models.deletion import ProtectedError
from django.shortcuts import get_object_or_404
from gold360.core.cache_utils import (
    make_cache_key, invalidate_cache_pattern,
    PRODUCTS_PREFIX, PRODUCTS_LIST_CACHE_TTL, DASHBOARD_PREFIX,
)
from gold360.core.utils import create_audit_log, paginate
from .filters import ProductFilter
from .label_generator import generate_label_image
from .models import Category, Product
from .serializers import CategorySerializer, ProductSerializer, ProductStockSerializer

logger = logging.getLogger('gold360.catalog')


def _invalidate_product_caches():
    invalidate_cache_pattern(PRODUCTS_PREFIX)
    invalidate_cache_pattern(DASHBOARD_PREFIX)


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    if request.method == 'GET':
        categories = Category.objects.all()
        serializer = CategorySerializer(categories, many=True)
        return Response(serializer.data)
    serializer = CategorySerializer(data=request.data)
    if serializer.is_valid():
        try:
            category = serializer.save()
        except IntegrityError:
            return Response({'error': 'A category with this name already exists'}, status=status.HTTP_400_BAD_REQUEST)
        create_audit_log(request, 'create', 'Category', category.id, object_name=category.name)
        return Response(CategorySerializer(category).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    category = get_object_or_404(Category, pk=pk)
    if request.method == 'GET':
        return Response(CategorySerializer(category).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        create_audit_log(request, 'delete', 'Category', category.id, object_name=category.name)
        category.delete()
        _invalidate_product_caches()
        return Response(status=status.HTTP_204_NO_CONTENT)


# Product views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def product_list_create(request):
    """List products (filtered, paginated, cached) or create a product"""
    if request.method == 'GET':
        cache_key = make_cache_key(PRODUCTS_PREFIX, sorted(request.query_params.items()))
        cached_data = cache.get(cache_key)
        if cached_data is not None:
            logger.debug(f"Cache hit for product list: {cache_key}")
            return Response(cached_data)

        queryset = Product.objects.select_related('category').all()
        filterset = ProductFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            return Response(filterset.errors, status=status.HTTP_400_BAD_REQUEST)
        queryset = filterset.qs.order_by('-updated_at', '-created_at')

        response = paginate(request, queryset, ProductSerializer)
        cache.set(cache_key, response.data, PRODUCTS_LIST_CACHE_TTL)
        return response

    serializer = ProductSerializer(data=request.data)
    if serializer.is_valid():
        try:
            product = serializer.save()
        except IntegrityError:
            return Response({'error': 'A product with this SKU already exists'}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"Product {product.sku} created by {request.user.username}")
        create_audit_log(request, 'create', 'Product', product.id, object_name=product.name,
                         object_reference=product.sku)
        _invalidate_product_caches()
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def product_detail(request, pk):
    """Retrieve, update or delete a product"""
    product = get_object_or_404(Product.objects.select_related('category'), pk=pk)

    if request.method == 'GET':
        return Response(ProductSerializer(product).data)
    elif request.method in ('PUT', 'PATCH'):
        old_price = product.price
        serializer = ProductSerializer(product, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            try:
                serializer.save()
            except IntegrityError:
                return Response({'error': 'A product with this SKU already exists'}, status=status.HTTP_400_BAD_REQUEST)
            changes = {k: str(v) for k, v in serializer.validated_data.items()}
            if product.price != old_price:
                changes['old_price'] = str(old_price)
            create_audit_log(request, 'update', 'Product', product.id, changes=changes,
                             object_name=product.name, object_reference=product.sku)
            _invalidate_product_caches()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        try:
            product.delete()
        except ProtectedError:
            return Response(
                {'error': 'Product has stock or order history and cannot be deleted. Deactivate it instead.'},
                status=status.HTTP_400_BAD_REQUEST
            )
        create_audit_log(request, 'delete', 'Product', pk, object_name=product.name, object_reference=product.sku)
        _invalidate_product_caches()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_featured(request):
    """Newest active featured products"""
    products = Product.objects.filter(is_featured=True, is_active=True).order_by('-created_at')[:10]
    return Response(ProductSerializer(products, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_low_stock(request):
    """Active products at or below their stock alert level"""
    products = Product.objects.filter(
        is_active=True,
        stock_quantity__lte=F('stock_alert')
    ).select_related('category').order_by('stock_quantity', 'name')
    return Response(ProductSerializer(products, many=True).data)


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def product_update_stock(request, pk):
    """Override the catalog stock figure; inventory rows are untouched"""
    product = get_object_or_404(Product, pk=pk)
    serializer = ProductStockSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    old_quantity = product.stock_quantity
    product.stock_quantity = serializer.validated_data['stock_quantity']
    product.save(update_fields=['stock_quantity', 'updated_at'])
    create_audit_log(request, 'stock_adjust', 'Product', product.id,
                     changes={'stock_quantity': {'old': old_quantity, 'new': product.stock_quantity}},
                     object_name=product.name, object_reference=product.sku)
    _invalidate_product_caches()
    return Response(ProductSerializer(product).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def product_label(request, pk):
    """Printable barcode label for a product"""
    product = get_object_or_404(Product, pk=pk)
    image = generate_label_image(
        product_name=product.name,
        sku=product.sku,
        price=f"{product.price:.2f}",
        karat=product.gold_karat,
    )
    return Response({'product_id': product.id, 'sku': product.sku, 'image': image})
