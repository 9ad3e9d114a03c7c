"""
Warehouse transfer endpoints.

Transfers are created complete: there is no draft or approval step, and a
transfer cannot be edited or deleted once written.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q
from rest_framework import viewsets, status, permissions
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from accounts.models import User, AuditLog
from accounts.permissions import has_permission
from app.utils import validation_error_response
from inventory.transfer_models import WarehouseTransfer
from inventory.transfer_serializers import WarehouseTransferSerializer, CreateTransferSerializer

logger = logging.getLogger(__name__)


class WarehouseTransferViewSet(viewsets.ModelViewSet):
    """
    GET  /inventory/api/transfers/
    POST /inventory/api/transfers/
    GET  /inventory/api/transfers/{id}/

    Filters: ``warehouse`` (either side), ``from_warehouse``, ``to_warehouse``.
    """
    serializer_class = WarehouseTransferSerializer
    permission_classes = [permissions.IsAuthenticated]
    http_method_names = ['get', 'post', 'head', 'options']

    def get_queryset(self):
        user = self.request.user
        queryset = WarehouseTransfer.objects.select_related(
            'from_warehouse', 'to_warehouse', 'created_by'
        ).prefetch_related('items__inventory_item')

        if user.role == User.ROLE_AGENT:
            agent = user.agent
            if agent is None or agent.warehouse_id is None:
                return queryset.none()
            queryset = queryset.filter(
                Q(from_warehouse_id=agent.warehouse_id) | Q(to_warehouse_id=agent.warehouse_id)
            )
        elif not has_permission(user, 'inventory.view'):
            raise PermissionDenied('You do not have access to transfers.')

        params = self.request.query_params
        if params.get('warehouse'):
            queryset = queryset.filter(
                Q(from_warehouse_id=params['warehouse']) | Q(to_warehouse_id=params['warehouse'])
            )
        if params.get('from_warehouse'):
            queryset = queryset.filter(from_warehouse_id=params['from_warehouse'])
        if params.get('to_warehouse'):
            queryset = queryset.filter(to_warehouse_id=params['to_warehouse'])
        return queryset

    def create(self, request, *args, **kwargs):
        if not has_permission(request.user, 'inventory.transfer'):
            raise PermissionDenied('You cannot transfer inventory.')

        serializer = CreateTransferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            transfer = WarehouseTransfer.execute(
                data['from_warehouse'],
                data['to_warehouse'],
                data['items'],
                commission_rates=data['commission_rates'],
                notes=data['notes'],
                created_by=request.user,
            )
        except DjangoValidationError as e:
            return validation_error_response(e)

        AuditLog.log(request.user, 'TRANSFER', 'WarehouseTransfer', transfer.id, {
            'reference_number': transfer.reference_number,
            'from_warehouse': transfer.from_warehouse.name,
            'to_warehouse': transfer.to_warehouse.name,
            'items': len(data['items']),
            'total_value': str(transfer.total_value),
        })

        transfer = self.get_queryset().get(pk=transfer.pk)
        return Response(self.get_serializer(transfer).data, status=status.HTTP_201_CREATED)
