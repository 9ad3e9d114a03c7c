import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import HttpResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.response import Response

from accounts.models import User
from accounts.permissions import has_permission, is_admin_or_higher, can_agent_access
from app.utils import validation_error_response
from reports.pdf_exporters import SaleInvoicePDFExporter
from settings.models import SystemSettings
from .filters import SaleFilter, CustomerFilter
from .models import Customer, Sale
from .serializers import (
    CustomerSerializer,
    SaleSerializer,
    CompanySaleCreateSerializer,
    AgentSaleCreateSerializer,
    CancelSaleSerializer,
)
from .services import create_company_sale, create_agent_sale

logger = logging.getLogger(__name__)


class CustomerViewSet(viewsets.ModelViewSet):
    """Customers. Anyone who can sell may look up and register customers."""
    serializer_class = CustomerSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = CustomerFilter
    filter_backends = [DjangoFilterBackend]
    http_method_names = ['get', 'post', 'patch', 'head', 'options']

    def get_queryset(self):
        user = self.request.user
        if not (has_permission(user, 'sales.browse') or has_permission(user, 'sales.create_company_sale')
                or has_permission(user, 'sales.create_agent_sale')):
            raise PermissionDenied('You do not have access to customers.')

        queryset = Customer.objects.all()
        if user.role == User.ROLE_AGENT:
            agent = user.agent
            queryset = queryset.filter(sales__agent=agent).distinct() if agent else queryset.none()
        return queryset

    def perform_create(self, serializer):
        serializer.save(created_by=self.request.user)


class SaleViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Sales listing plus the company sale, agent sale and cancel operations.
    """
    serializer_class = SaleSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_class = SaleFilter
    filter_backends = [DjangoFilterBackend]

    def get_queryset(self):
        user = self.request.user
        queryset = Sale.objects.select_related(
            'agent', 'customer', 'warehouse', 'created_by', 'document'
        ).prefetch_related('items__inventory_item')

        if has_permission(user, 'sales.view'):
            return queryset
        if user.role == User.ROLE_AGENT:
            agent = user.agent
            return queryset.filter(agent=agent) if agent else queryset.none()
        if has_permission(user, 'sales.create_company_sale'):
            return queryset.filter(created_by=user)
        raise PermissionDenied('You do not have access to sales.')

    def get_object(self):
        sale = super().get_object()
        if not can_agent_access(self.request.user, 'sales', sale):
            raise PermissionDenied('You can only access your own sales.')
        return sale

    @action(detail=False, methods=['post'])
    def company(self, request):
        """
        POST /sales/api/sales/company/

        Sell one or more items from company warehouses.
        """
        if not has_permission(request.user, 'sales.create_company_sale'):
            raise PermissionDenied('You cannot create company sales.')

        serializer = CompanySaleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            sale = create_company_sale(
                items=data['items'],
                customer=dict(data['customer']),
                user=request.user,
                payment_method=data['payment_method'],
                notes=data['notes'],
                combined_image_url=data.get('combined_image_url'),
            )
        except DjangoValidationError as e:
            return validation_error_response(e)

        return Response(self.get_serializer(self._reload(sale)).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['post'])
    def agent(self, request):
        """
        POST /sales/api/sales/agent/

        Sell one item from an agent warehouse. Agent users sell as themselves.
        """
        if not has_permission(request.user, 'sales.create_agent_sale'):
            raise PermissionDenied('You cannot create agent sales.')

        serializer = AgentSaleCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        agent_id = data.get('agent')
        if request.user.role == User.ROLE_AGENT:
            own = request.user.agent
            if own is None:
                raise PermissionDenied('Your account is not linked to an agent.')
            if agent_id and agent_id != own.pk:
                raise PermissionDenied('Agents can only sell from their own account.')
            agent_id = own.pk
        if agent_id is None:
            raise ValidationError({'agent': 'This field is required.'})

        try:
            sale = create_agent_sale(
                agent=agent_id,
                item=data['item'],
                sale_price=data['sale_price'],
                customer=dict(data['customer']),
                user=request.user,
                payment_method=data['payment_method'],
                notes=data['notes'],
                combined_image_url=data.get('combined_image_url'),
            )
        except DjangoValidationError as e:
            return validation_error_response(e)

        return Response(self.get_serializer(self._reload(sale)).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """
        POST /sales/api/sales/{id}/cancel/

        Cancel a sale and return its items to stock. Administrators only.
        """
        if not is_admin_or_higher(request.user):
            raise PermissionDenied('Only administrators can cancel sales.')

        sale = self.get_object()
        serializer = CancelSaleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            sale.cancel_sale(user=request.user, reason=serializer.validated_data['reason'])
        except DjangoValidationError as e:
            return validation_error_response(e)

        return Response(self.get_serializer(self._reload(sale)).data)

    @action(detail=True, methods=['get'])
    def invoice(self, request, pk=None):
        """GET /sales/api/sales/{id}/invoice/ - printable PDF invoice."""
        sale = self.get_object()
        content = SaleInvoicePDFExporter().export(sale, SystemSettings.load().merged('company_info'))
        response = HttpResponse(content, content_type=SaleInvoicePDFExporter.content_type)
        response['Content-Disposition'] = f'inline; filename="invoice_{sale.invoice_number}.pdf"'
        return response

    def _reload(self, sale):
        return Sale.objects.select_related('agent', 'customer', 'warehouse', 'created_by').get(pk=sale.pk)
