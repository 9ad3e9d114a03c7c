from django.urls import path
from .views import SystemSettingsViewSet

# Single settings row, so no router
app_name = 'settings'

urlpatterns = [
    path('api/settings/', SystemSettingsViewSet.as_view({
        'get': 'list',
        'patch': 'partial_update',
        'put': 'update',
    }), name='settings-detail'),
    path('api/settings/reset_to_defaults/', SystemSettingsViewSet.as_view({
        'post': 'reset_to_defaults'
    }), name='settings-reset'),
]
