from django.urls import path

from .views import (
    ApprovalApproveView,
    ApprovalDetailView,
    ApprovalInboxView,
    ApprovalRejectView,
    ApprovalStatsView,
)

urlpatterns = [
    path("", ApprovalInboxView.as_view(), name="approval-inbox"),
    path("stats/", ApprovalStatsView.as_view(), name="approval-stats"),
    path("item/<str:approval_type>/<int:pk>/", ApprovalDetailView.as_view(), name="approval-detail"),
    path("item/<str:approval_type>/<int:pk>/approve/", ApprovalApproveView.as_view(), name="approval-approve"),
    path("item/<str:approval_type>/<int:pk>/reject/", ApprovalRejectView.as_view(), name="approval-reject"),
]
