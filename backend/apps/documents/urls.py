from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import DocumentViewSet, OCRConfigurationView, OCRJobViewSet

router = SimpleRouter()
router.register(r"ocr-jobs", OCRJobViewSet, basename="ocr-job")
router.register(r"", DocumentViewSet, basename="document")

urlpatterns = [
    path("ocr-config/", OCRConfigurationView.as_view(), name="ocr-config"),
    path("", include(router.urls)),
]
