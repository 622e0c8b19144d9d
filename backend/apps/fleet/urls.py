from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import FleetAssetViewSet, FleetCostViewSet, FleetDocumentViewSet

router = DefaultRouter()
router.register(r"assets", FleetAssetViewSet, basename="fleet-asset")
router.register(r"costs", FleetCostViewSet, basename="fleet-cost")
router.register(r"documents", FleetDocumentViewSet, basename="fleet-document")

urlpatterns = [
    path("", include(router.urls)),
]
