from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import DocumentTrackingViewSet, CustomerInquiryView

router = DefaultRouter()
router.register(r'documents', DocumentTrackingViewSet, basename='document')

urlpatterns = [
    path('api/inquiry/', CustomerInquiryView.as_view(), name='customer-inquiry'),
    path('api/', include(router.urls)),
]
