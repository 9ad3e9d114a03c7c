import logging

from rest_framework import viewsets, permissions
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response

from accounts.models import AuditLog
from accounts.permissions import can_manage_settings
from .models import SystemSettings
from .serializers import SystemSettingsSerializer

logger = logging.getLogger(__name__)


class SystemSettingsViewSet(viewsets.ViewSet):
    """
    ViewSet for managing system settings.

    Provides endpoints for:
    - GET: Retrieve settings (auto-creates if not exist)
    - PATCH: Update settings (partial update, super admin only)
    - POST reset_to_defaults: Restore every group (super admin only)
    """
    serializer_class = SystemSettingsSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return SystemSettings.load()

    def _require_manager(self, request):
        if not can_manage_settings(request.user):
            raise PermissionDenied('Only super admins can change system settings.')

    def list(self, request, *args, **kwargs):
        """
        GET /settings/api/settings/

        Returns the settings, creating with defaults if they don't exist.
        """
        settings = self.get_object()
        serializer = SystemSettingsSerializer(settings)
        return Response(serializer.data)

    def update(self, request, *args, **kwargs):
        return self.partial_update(request, *args, **kwargs)

    def partial_update(self, request, *args, **kwargs):
        """
        PATCH /settings/api/settings/

        Merges new values into each group instead of replacing it.
        """
        self._require_manager(request)
        settings = self.get_object()

        data = {}
        for group in SystemSettings.GROUPS:
            if group in request.data:
                merged = dict(getattr(settings, group) or {})
                merged.update(request.data[group] or {})
                data[group] = merged

        serializer = SystemSettingsSerializer(settings, data=data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save(updated_by=request.user)

        AuditLog.log(request.user, 'UPDATE', 'SystemSettings', settings.id,
                     {'groups': sorted(data.keys())})
        logger.info("System settings updated by %s: %s", request.user.email, sorted(data.keys()))
        return Response(serializer.data)

    @action(detail=False, methods=['post'])
    def reset_to_defaults(self, request):
        """
        POST /settings/api/settings/reset_to_defaults/

        Resets all settings to default values.
        """
        self._require_manager(request)
        settings = self.get_object()
        settings.updated_by = request.user
        settings.reset_to_defaults()
        AuditLog.log(request.user, 'UPDATE', 'SystemSettings', settings.id, {'reset': True})

        serializer = SystemSettingsSerializer(settings)
        return Response(serializer.data)
