import logging

from django.db.models import Q
from rest_framework import viewsets, status, permissions
from rest_framework.authtoken.models import Token
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import User, AuditLog
from .permissions import IsSuperAdmin, is_admin_or_higher
from .serializers import (
    UserSerializer,
    CurrentUserSerializer,
    LoginSerializer,
    ChangePasswordSerializer,
    AuditLogSerializer,
)

logger = logging.getLogger(__name__)


class UserViewSet(viewsets.ModelViewSet):
    """User management. Restricted to super admins except for ``me``."""
    queryset = User.objects.all()
    serializer_class = UserSerializer
    permission_classes = [permissions.IsAuthenticated, IsSuperAdmin]

    def get_permissions(self):
        if self.action == 'me':
            return [permissions.IsAuthenticated()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = User.objects.all()

        role = self.request.query_params.get('role')
        if role:
            queryset = queryset.filter(role=role)

        is_active = self.request.query_params.get('is_active')
        if is_active in ('true', 'false'):
            queryset = queryset.filter(is_active=is_active == 'true')

        search = self.request.query_params.get('search', None)
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(email__icontains=search) |
                Q(phone__icontains=search)
            )

        return queryset.order_by('name')

    def perform_create(self, serializer):
        user = serializer.save(created_by=self.request.user)
        AuditLog.log(self.request.user, 'CREATE', 'User', user.id, {'role': user.role})
        logger.info("User %s created with role %s by %s", user.email, user.role, self.request.user.email)

    def perform_update(self, serializer):
        previous_role = serializer.instance.role
        user = serializer.save()
        if previous_role != user.role:
            AuditLog.log(self.request.user, 'UPDATE', 'User', user.id,
                         {'role': {'from': previous_role, 'to': user.role}})

    def destroy(self, request, *args, **kwargs):
        user = self.get_object()
        if user == request.user:
            raise ValidationError({'detail': 'You cannot delete your own account.'})
        # Users referenced by ledger history are deactivated instead of deleted
        user.is_active = False
        user.save(update_fields=['is_active', 'updated_at'])
        AuditLog.log(request.user, 'DELETE', 'User', user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=['get'])
    def me(self, request):
        """Get current user's profile with resolved permissions"""
        serializer = CurrentUserSerializer(request.user)
        return Response(serializer.data)

    @action(detail=True, methods=['post'])
    def activate(self, request, pk=None):
        """Activate a user account"""
        user = self.get_object()
        user.is_active = True
        user.save(update_fields=['is_active', 'updated_at'])
        AuditLog.log(request.user, 'UPDATE', 'User', user.id, {'is_active': True})
        return Response({'status': 'User activated'})

    @action(detail=True, methods=['post'])
    def deactivate(self, request, pk=None):
        """Deactivate a user account"""
        user = self.get_object()
        if user == request.user:
            raise ValidationError({'detail': 'You cannot deactivate your own account.'})
        user.is_active = False
        user.save(update_fields=['is_active', 'updated_at'])
        Token.objects.filter(user=user).delete()
        AuditLog.log(request.user, 'UPDATE', 'User', user.id, {'is_active': False})
        return Response({'status': 'User deactivated'})


class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    """ViewSet for viewing audit logs (read-only)"""
    queryset = AuditLog.objects.all()
    serializer_class = AuditLogSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        """Only admins can view all audit logs"""
        queryset = AuditLog.objects.all()

        if not is_admin_or_higher(self.request.user):
            # Regular users can only see their own actions
            queryset = queryset.filter(user=self.request.user)

        action_filter = self.request.query_params.get('action')
        if action_filter:
            queryset = queryset.filter(action=action_filter)

        start_date = self.request.query_params.get('start_date', None)
        end_date = self.request.query_params.get('end_date', None)

        if start_date:
            queryset = queryset.filter(timestamp__date__gte=start_date)
        if end_date:
            queryset = queryset.filter(timestamp__date__lte=end_date)

        return queryset.select_related('user')


class LoginView(APIView):
    """User login view"""
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if serializer.is_valid():
            user = serializer.validated_data['user']
            token, created = Token.objects.get_or_create(user=user)
            AuditLog.log(user, 'LOGIN', 'User', user.id, ip_address=request.META.get('REMOTE_ADDR'))

            return Response({
                'token': token.key,
                'user': CurrentUserSerializer(user).data
            }, status=status.HTTP_200_OK)

        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


class LogoutView(APIView):
    """User logout view"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        Token.objects.filter(user=request.user).delete()
        return Response({'message': 'Successfully logged out'}, status=status.HTTP_200_OK)


class ChangePasswordView(APIView):
    """Change user password view"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
        if serializer.is_valid():
            user = request.user
            user.set_password(serializer.validated_data['new_password'])
            user.save()

            # Delete all tokens to force re-login
            Token.objects.filter(user=user).delete()

            return Response({'message': 'Password changed successfully'}, status=status.HTTP_200_OK)

        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
