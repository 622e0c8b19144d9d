from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import SafetyIncidentViewSet, SafetyInspectionViewSet

router = DefaultRouter()
router.register(r"incidents", SafetyIncidentViewSet, basename="safety-incident")
router.register(r"inspections", SafetyInspectionViewSet, basename="safety-inspection")

urlpatterns = [
    path("", include(router.urls)),
]
