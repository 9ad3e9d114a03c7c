from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import WarehouseViewSet, InventoryItemViewSet, InventoryTransactionViewSet
from .transfer_views import WarehouseTransferViewSet

router = DefaultRouter()
router.register(r'warehouses', WarehouseViewSet, basename='warehouse')
router.register(r'items', InventoryItemViewSet, basename='inventory-item')
router.register(r'transactions', InventoryTransactionViewSet, basename='inventory-transaction')
router.register(r'transfers', WarehouseTransferViewSet, basename='warehouse-transfer')

urlpatterns = [
    path('api/', include(router.urls)),
]
