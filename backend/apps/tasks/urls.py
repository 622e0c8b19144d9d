from django.urls import path

from .views import (
    TaskCommentListCreateView,
    TaskDetailView,
    TaskListCreateView,
    TaskReassignView,
    TaskStatusUpdateView,
)


urlpatterns = [
    path("", TaskListCreateView.as_view()),
    path("<int:pk>/", TaskDetailView.as_view()),
    path("<int:pk>/status/", TaskStatusUpdateView.as_view()),
    path("<int:pk>/comments/", TaskCommentListCreateView.as_view()),
    path("<int:pk>/reassign/", TaskReassignView.as_view()),
]
