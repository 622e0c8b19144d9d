from django.urls import include, path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path('auth/token/', TokenObtainPairView.as_view(), name='token-obtain-pair'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),
    path('users/', include('apps.users.urls')),
    path('procurement/', include('apps.procurement.urls')),
    path('inventory/', include('apps.inventory.urls')),
    path('fleet/', include('apps.fleet.urls')),
    path('hr/', include('apps.hr.urls')),
    path('safety/', include('apps.safety.urls')),
    path('finance/', include('apps.finance.urls')),
    path('tasks/', include('apps.tasks.urls')),
    path('documents/', include('apps.documents.urls')),
    path('approvals/', include('apps.approvals.urls')),
    path('mobile/', include('apps.mobile.urls')),
    path('notifications/', include('apps.notifications.urls')),
]
