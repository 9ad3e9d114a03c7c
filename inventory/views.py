import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from accounts.models import User, AuditLog
from accounts.permissions import has_permission, is_admin_or_higher, can_agent_access
from app.utils import validation_error_response
from .filters import InventoryItemFilter, InventoryTransactionFilter
from .models import Warehouse, InventoryItem, InventoryTransaction
from .serializers import (
    WarehouseSerializer,
    InventoryItemSerializer,
    InventoryItemCreateSerializer,
    InventoryTransactionSerializer,
)
from .services import ensure_default_warehouses, create_item, update_item, stock_levels, low_stock_warehouses

logger = logging.getLogger(__name__)

COMPANY_ONLY_ROLES = (User.ROLE_SALES_EMPLOYEE, User.ROLE_SHOWROOM_USER)


def scope_warehouses(user, queryset):
    """Restrict a Warehouse queryset to what the user may see."""
    if user.role == User.ROLE_AGENT:
        agent = user.agent
        if agent is None or agent.warehouse_id is None:
            return queryset.none()
        return queryset.filter(pk=agent.warehouse_id)
    if user.role in COMPANY_ONLY_ROLES:
        return queryset.exclude(type=Warehouse.TYPE_AGENT)
    return queryset


def scope_items(user, queryset):
    """Restrict an InventoryItem queryset to what the user may see."""
    if user.role == User.ROLE_AGENT:
        agent = user.agent
        if agent is None or agent.warehouse_id is None:
            return queryset.none()
        return queryset.filter(current_warehouse_id=agent.warehouse_id)
    if user.role in COMPANY_ONLY_ROLES:
        return queryset.exclude(current_warehouse__type=Warehouse.TYPE_AGENT)
    return queryset


class WarehouseViewSet(viewsets.ModelViewSet):
    """Warehouses with total and available item counts."""
    serializer_class = WarehouseSerializer
    permission_classes = [permissions.IsAuthenticated]
    http_method_names = ['get', 'post', 'patch', 'put', 'head', 'options']

    def get_queryset(self):
        user = self.request.user
        if not has_permission(user, 'inventory.browse'):
            raise PermissionDenied('You do not have access to inventory.')

        queryset = scope_warehouses(user, stock_levels(Warehouse.objects.select_related('agent')))
        params = self.request.query_params
        if params.get('type'):
            queryset = queryset.filter(type=params['type'])
        if params.get('is_active') in ('true', 'false'):
            queryset = queryset.filter(is_active=params['is_active'] == 'true')
        return queryset

    def perform_create(self, serializer):
        if not has_permission(self.request.user, 'inventory.create'):
            raise PermissionDenied('You cannot create warehouses.')
        warehouse = serializer.save(created_by=self.request.user)
        AuditLog.log(self.request.user, 'CREATE', 'Warehouse', warehouse.id, {'name': warehouse.name})

    def perform_update(self, serializer):
        if not has_permission(self.request.user, 'inventory.edit'):
            raise PermissionDenied('You cannot edit warehouses.')
        serializer.save()

    @action(detail=False, methods=['post'])
    def create_defaults(self, request):
        """
        POST /inventory/api/warehouses/create_defaults/

        Create the main and showroom warehouses if they do not exist yet.
        """
        if not is_admin_or_higher(request.user):
            raise PermissionDenied('Only administrators can create default warehouses.')

        result = ensure_default_warehouses(created_by=request.user)
        return Response({
            'created': WarehouseSerializer(result['created'], many=True).data,
            'existing': WarehouseSerializer(result['existing'], many=True).data,
        }, status=status.HTTP_201_CREATED if result['created'] else status.HTTP_200_OK)

    @action(detail=False, methods=['get'])
    def low_stock(self, request):
        if not has_permission(request.user, 'inventory.view'):
            raise PermissionDenied('You do not have access to stock levels.')

        rows = low_stock_warehouses()
        return Response([
            {
                'warehouse_id': str(row['warehouse'].id),
                'warehouse_name': row['warehouse'].name,
                'warehouse_type': row['warehouse'].type,
                'available': row['available'],
            }
            for row in rows
        ])


class InventoryItemViewSet(viewsets.ModelViewSet):
    """
    Vehicles in stock.

    Agents see their own warehouse only; sales employees and showroom users
    see company warehouses only.
    """
    serializer_class = InventoryItemSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = InventoryItemFilter
    filter_backends = [DjangoFilterBackend]
    http_method_names = ['get', 'post', 'patch', 'put', 'head', 'options']

    def get_queryset(self):
        user = self.request.user
        if not has_permission(user, 'inventory.browse'):
            raise PermissionDenied('You do not have access to inventory.')

        queryset = InventoryItem.objects.select_related('current_warehouse', 'sold_to_agent', 'created_by')
        return scope_items(user, queryset)

    def get_object(self):
        item = super().get_object()
        if not can_agent_access(self.request.user, 'inventory', item):
            raise PermissionDenied('You can only access items in your own warehouse.')
        return item

    def create(self, request, *args, **kwargs):
        if not has_permission(request.user, 'inventory.create'):
            raise PermissionDenied('You cannot add inventory.')

        serializer = InventoryItemCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        warehouse = data.pop('warehouse')

        try:
            item = create_item(data, warehouse, created_by=request.user)
        except DjangoValidationError as e:
            return validation_error_response(e)

        return Response(self.get_serializer(item).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        if not has_permission(request.user, 'inventory.edit'):
            raise PermissionDenied('You cannot edit inventory.')

        item = self.get_object()
        serializer = self.get_serializer(item, data=request.data, partial=kwargs.pop('partial', False))
        serializer.is_valid(raise_exception=True)

        try:
            item = update_item(item, serializer.validated_data)
        except DjangoValidationError as e:
            return validation_error_response(e)

        return Response(self.get_serializer(item).data)

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        """Movement records that include this item."""
        item = self.get_object()
        transactions = item.transactions.select_related('from_warehouse', 'to_warehouse', 'created_by')
        return Response(InventoryTransactionSerializer(transactions, many=True).data)


class InventoryTransactionViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = InventoryTransactionSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = InventoryTransactionFilter
    filter_backends = [DjangoFilterBackend]

    def get_queryset(self):
        if not has_permission(self.request.user, 'inventory.view'):
            raise PermissionDenied('You do not have access to inventory movements.')
        return InventoryTransaction.objects.select_related(
            'from_warehouse', 'to_warehouse', 'created_by'
        ).prefetch_related('items')
