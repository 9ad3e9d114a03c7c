from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import viewsets, permissions
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import has_permission, can_agent_access
from app.utils import validation_error_response
from .models import DocumentTracking
from .serializers import DocumentTrackingSerializer, StatusUpdateSerializer, InquirySerializer
from .services import documents_for_user, update_document_status, customer_inquiry


class DocumentTrackingViewSet(viewsets.ReadOnlyModelViewSet):
    """Document tracking records; agents only see their own sales."""
    serializer_class = DocumentTrackingSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        user = self.request.user
        if not has_permission(user, 'documents.browse'):
            raise PermissionDenied('You do not have access to documents.')

        queryset = documents_for_user(user).prefetch_related('stages__updated_by')

        params = self.request.query_params
        if params.get('status'):
            queryset = queryset.filter(status=params['status'])
        if params.get('agent'):
            queryset = queryset.filter(agent_id=params['agent'])
        if params.get('sale_type'):
            queryset = queryset.filter(sale_type=params['sale_type'])
        if params.get('overdue') == 'true':
            queryset = queryset.exclude(status=DocumentTracking.STATUS_COMPLETED).filter(
                created_at__lt=DocumentTracking.overdue_cutoff()
            )
        return queryset

    def get_object(self):
        document = super().get_object()
        if not can_agent_access(self.request.user, 'documents', document):
            raise PermissionDenied('You can only access documents for your own sales.')
        return document

    @action(detail=True, methods=['post'])
    def update_status(self, request, pk=None):
        if not has_permission(request.user, 'documents.edit'):
            raise PermissionDenied('You cannot update document status.')

        document = self.get_object()
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            document = update_document_status(
                document,
                serializer.validated_data['status'],
                user=request.user,
                notes=serializer.validated_data['notes'],
            )
        except DjangoValidationError as e:
            return validation_error_response(e)

        return Response(self.get_serializer(document).data)

    @action(detail=False, methods=['get'])
    def overdue(self, request):
        queryset = self.get_queryset().exclude(status=DocumentTracking.STATUS_COMPLETED).filter(
            created_at__lt=DocumentTracking.overdue_cutoff()
        )
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data)


class CustomerInquiryView(APIView):
    """
    GET /documents/api/inquiry/?query=ABC

    Prefix search on motor fingerprint or chassis number.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        serializer = InquirySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        try:
            results = customer_inquiry(serializer.validated_data['query'], request.user)
        except DjangoValidationError as e:
            return validation_error_response(e)
        return Response({'count': len(results), 'results': results})
