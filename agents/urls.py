from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import AgentViewSet, AgentTransactionViewSet, DebtReportView, FixAgentBalancesView

router = DefaultRouter()
router.register(r'agents', AgentViewSet, basename='agent')
router.register(r'transactions', AgentTransactionViewSet, basename='agent-transaction')

urlpatterns = [
    path('api/debt-report/', DebtReportView.as_view(), name='agent-debt-report'),
    path('api/fix-balances/', FixAgentBalancesView.as_view(), name='agent-fix-balances'),
    path('api/', include(router.urls)),
]
