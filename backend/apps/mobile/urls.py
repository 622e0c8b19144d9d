from django.urls import path

from .views import MobileCapabilitiesView, MobileConfigView, MobileDeviceDetailView, MobileDeviceView

urlpatterns = [
    path("config/", MobileConfigView.as_view(), name="mobile-config"),
    path("capabilities/", MobileCapabilitiesView.as_view(), name="mobile-capabilities"),
    path("devices/", MobileDeviceView.as_view(), name="mobile-devices"),
    path("devices/<str:device_id>/", MobileDeviceDetailView.as_view(), name="mobile-device-detail"),
]
