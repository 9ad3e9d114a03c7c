import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q
from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.models import AuditLog
from accounts.permissions import has_permission, is_admin_or_higher, IsSuperAdmin
from app.utils import validation_error_response
from . import ledger
from .models import Agent, AgentTransaction, AccountSettlement
from .serializers import (
    AgentSerializer,
    AgentCreateSerializer,
    AgentTransactionSerializer,
    AccountSettlementSerializer,
    PaymentSerializer,
    SettlementSerializer,
    StatementQuerySerializer,
)
from .services import create_agent, agent_summary, agent_statement, debt_report

logger = logging.getLogger(__name__)


class AgentViewSet(viewsets.ModelViewSet):
    """
    Agents and their ledgers.

    Agent users only see their own record. Creating and editing need the
    ``agents.create`` / ``agents.edit`` permissions; payments and
    settlements need ``agents.edit``.
    """
    serializer_class = AgentSerializer
    permission_classes = [permissions.IsAuthenticated]
    http_method_names = ['get', 'post', 'patch', 'put', 'head', 'options']

    def get_queryset(self):
        user = self.request.user
        if not has_permission(user, 'agents.browse'):
            raise PermissionDenied('You do not have access to agents.')

        queryset = Agent.objects.select_related('warehouse', 'user')
        if not has_permission(user, 'agents.view'):
            agent = user.agent
            return queryset.filter(pk=agent.pk) if agent else queryset.none()

        is_active = self.request.query_params.get('is_active')
        if is_active in ('true', 'false'):
            queryset = queryset.filter(is_active=is_active == 'true')

        if self.request.query_params.get('has_debt') == 'true':
            queryset = queryset.filter(current_balance__lt=0)

        search = self.request.query_params.get('search')
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(phone__icontains=search) |
                Q(national_id__icontains=search)
            )
        return queryset

    def _require(self, perm):
        if not has_permission(self.request.user, perm):
            raise PermissionDenied('You do not have permission to perform this action.')

    def create(self, request, *args, **kwargs):
        self._require('agents.create')
        serializer = AgentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            agent = create_agent(created_by=request.user, **serializer.validated_data)
        except DjangoValidationError as e:
            return validation_error_response(e)
        return Response(AgentSerializer(agent).data, status=status.HTTP_201_CREATED)

    def perform_update(self, serializer):
        self._require('agents.edit')
        agent = serializer.save()
        AuditLog.log(self.request.user, 'UPDATE', 'Agent', agent.id,
                     {key: str(value) for key, value in serializer.validated_data.items()})

    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        agent = self.get_object()
        return Response(agent_summary(agent))

    @action(detail=True, methods=['get'])
    def transactions(self, request, pk=None):
        agent = self.get_object()
        queryset = AgentTransaction.objects.filter(agent=agent).select_related('created_by')

        entry_type = request.query_params.get('type')
        if entry_type:
            queryset = queryset.filter(type=entry_type)

        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(AgentTransactionSerializer(page, many=True).data)
        return Response(AgentTransactionSerializer(queryset, many=True).data)

    @action(detail=True, methods=['get'])
    def statement(self, request, pk=None):
        agent = self.get_object()
        query = StatementQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        statement = agent_statement(agent, query.validated_data.get('start_date'),
                                    query.validated_data.get('end_date'))
        statement['entries'] = AgentTransactionSerializer(statement['entries'], many=True).data
        return Response(statement)

    @action(detail=True, methods=['get'])
    def settlements(self, request, pk=None):
        agent = self.get_object()
        return Response(AccountSettlementSerializer(
            AccountSettlement.objects.filter(agent=agent), many=True
        ).data)

    @action(detail=True, methods=['post'])
    def payments(self, request, pk=None):
        """Record a payment from the agent, or a credit to the agent."""
        self._require('agents.edit')
        agent = self.get_object()
        serializer = PaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            entry = ledger.record_payment(
                agent,
                data['amount'],
                payment_method=data['payment_method'],
                notes=data['notes'],
                created_by=request.user,
                transaction_type=data['type'],
            )
        except DjangoValidationError as e:
            return validation_error_response(e)

        AuditLog.log(request.user, 'PAYMENT', 'Agent', agent.id,
                     {'amount': str(entry.amount), 'type': entry.type, 'new_balance': str(entry.new_balance)})
        return Response(AgentTransactionSerializer(entry).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def settle(self, request, pk=None):
        self._require('agents.edit')
        agent = self.get_object()
        serializer = SettlementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            settlement, entry = ledger.settle_account(
                agent,
                data['settlement_type'],
                amount=data.get('amount'),
                notes=data['notes'],
                created_by=request.user,
            )
        except DjangoValidationError as e:
            return validation_error_response(e)

        AuditLog.log(request.user, 'SETTLEMENT', 'Agent', agent.id, {
            'type': settlement.settlement_type,
            'previous_balance': str(settlement.previous_balance),
            'new_balance': str(settlement.new_balance),
        })
        return Response({
            'settlement': AccountSettlementSerializer(settlement).data,
            'transaction': AgentTransactionSerializer(entry).data if entry else None,
        }, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def recompute(self, request, pk=None):
        """Rebuild this agent's balance and totals from history."""
        self._require('agents.fix_balances')
        agent = self.get_object()
        old_balance, new_balance, changed = ledger.recompute_balance(agent)
        total_sales, total_commission = ledger.recompute_totals(agent)
        return Response({
            'old_balance': str(old_balance),
            'new_balance': str(new_balance),
            'changed': changed,
            'total_sales': str(total_sales),
            'total_commission': str(total_commission),
        })


class AgentTransactionViewSet(viewsets.ReadOnlyModelViewSet):
    """All ledger entries, filtered by agent, type and date."""
    serializer_class = AgentTransactionSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        queryset = AgentTransaction.objects.select_related('agent', 'created_by')

        if not has_permission(user, 'agents.view'):
            agent = user.agent
            if agent is None:
                return queryset.none()
            queryset = queryset.filter(agent=agent)

        params = self.request.query_params
        if params.get('agent'):
            queryset = queryset.filter(agent_id=params['agent'])
        if params.get('type'):
            queryset = queryset.filter(type=params['type'])
        if params.get('start_date'):
            queryset = queryset.filter(created_at__date__gte=params['start_date'])
        if params.get('end_date'):
            queryset = queryset.filter(created_at__date__lte=params['end_date'])
        return queryset


class DebtReportView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        if not is_admin_or_higher(request.user):
            raise PermissionDenied('Only administrators can view the debt report.')
        return Response(debt_report())


class FixAgentBalancesView(APIView):
    """Recompute every agent's balance and totals from the ledger."""
    permission_classes = [permissions.IsAuthenticated, IsSuperAdmin]

    def post(self, request):
        results = ledger.fix_all_agent_balances()
        AuditLog.log(request.user, 'UPDATE', 'Agent', None,
                     {'reconciled': len(results), 'changed': sum(1 for row in results if row['changed'])})
        return Response({
            'agents': results,
            'changed': sum(1 for row in results if row['changed']),
        })
