from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import NotificationClearAllView, NotificationMarkView, NotificationViewSet

router = SimpleRouter()
router.register(r"", NotificationViewSet, basename="notification")

urlpatterns = [
    path("<int:pk>/mark/", NotificationMarkView.as_view(), name="notification-mark"),
    path("clear-all/", NotificationClearAllView.as_view(), name="notification-clear-all"),
    path("", include(router.urls)),
]
