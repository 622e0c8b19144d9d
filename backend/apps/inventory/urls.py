from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import StockItemViewSet, StockMovementViewSet, WarehouseViewSet

router = DefaultRouter()
router.register(r'warehouses', WarehouseViewSet, basename='warehouse')
router.register(r'items', StockItemViewSet, basename='stock-item')
router.register(r'movements', StockMovementViewSet, basename='stock-movement')

urlpatterns = [
    path('', include(router.urls)),
]
