import logging

from django.db import transaction
from rest_framework import generics, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.audit.utils import log_audit_event
from apps.notifications.services import notify_users
from apps.users.roles import LEADERSHIP_ROLES, TASK_SEE_ALL_ROLES, has_role
from shared.exceptions import InvalidTransition
from shared.pagination import PaginatedListMixin
from shared.permissions import HasRole

from .models import Task, TaskComment, TaskStatus
from .serializers import (
    TaskCommentSerializer,
    TaskReassignSerializer,
    TaskSerializer,
    TaskStatusUpdateSerializer,
)
from .signals import severity_for

logger = logging.getLogger(__name__)


class VisibleTasksMixin:
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = Task.objects.select_related("assigned_to", "assigned_by", "completed_by").prefetch_related("comments")
        if not has_role(self.request.user, TASK_SEE_ALL_ROLES):
            qs = qs.filter(assigned_to=self.request.user)
        return qs

    def get_task(self, pk) -> Task:
        return generics.get_object_or_404(self.get_queryset(), pk=pk)


class TaskListCreateView(VisibleTasksMixin, PaginatedListMixin, generics.ListCreateAPIView):
    serializer_class = TaskSerializer
    search_fields = ("title", "description", "assigned_to__username", "assigned_to__first_name", "assigned_to__last_name")
    status_choices = set(TaskStatus.values)

    def apply_list_filters(self, queryset, params):
        queryset = super().apply_list_filters(queryset, params)
        if params.get("mine"):
            queryset = queryset.filter(assigned_to=self.request.user)
        assigned_to = self.request.query_params.get("assigned_to")
        if assigned_to and assigned_to.isdigit():
            queryset = queryset.filter(assigned_to_id=int(assigned_to))
        return queryset

    def perform_create(self, serializer):
        if not has_role(self.request.user, LEADERSHIP_ROLES):
            raise PermissionDenied("Only management and executives can create tasks.")
        task = serializer.save()
        log_audit_event(
            user=self.request.user,
            action="TASK_CREATED",
            entity_type="Task",
            entity_id=task.id,
            description=f"Task '{task.title}' assigned to {task.assigned_to.username}.",
        )


class TaskDetailView(VisibleTasksMixin, generics.RetrieveAPIView):
    serializer_class = TaskSerializer


class TaskStatusUpdateView(VisibleTasksMixin, APIView):
    def post(self, request, pk):
        payload = TaskStatusUpdateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        new_status = payload.validated_data["status"]
        with transaction.atomic():
            task = self.get_task(pk)
            before = task.status
            task.set_status(new_status, user=request.user)
            task.save(update_fields=["status", "completed_at", "completed_by", "updated_at"])
            comment = payload.validated_data.get("comment", "").strip()
            if comment:
                TaskComment.objects.create(task=task, author=request.user, body=comment)
            log_audit_event(
                user=request.user,
                action="TASK_STATUS_CHANGED",
                entity_type="Task",
                entity_id=task.id,
                before={"status": before},
                after={"status": task.status},
            )
        logger.info("Task %s moved %s -> %s by %s", task.id, before, task.status, request.user.username)
        if task.status == TaskStatus.COMPLETED and task.assigned_by_id:
            notify_users(
                [task.assigned_by],
                title=f"Task completed: {task.title}",
                group_key="task_completed",
                entity_type="TASK",
                entity_id=task.id,
                exclude=request.user,
            )
        return Response(TaskSerializer(task).data)

    patch = post


class TaskCommentListCreateView(VisibleTasksMixin, APIView):
    def get(self, request, pk):
        task = self.get_task(pk)
        return Response(TaskCommentSerializer(task.comments.select_related("author"), many=True).data)

    def post(self, request, pk):
        task = self.get_task(pk)
        serializer = TaskCommentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save(task=task, author=request.user)
        notify_users(
            {task.assigned_to, task.assigned_by} - {None},
            title=f"New comment on: {task.title}",
            body=serializer.validated_data["body"][:200],
            group_key="task_comment",
            entity_type="TASK",
            entity_id=task.id,
            exclude=request.user,
        )
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class TaskReassignView(VisibleTasksMixin, APIView):
    permission_classes = [IsAuthenticated, HasRole]
    allowed_roles = TASK_SEE_ALL_ROLES

    def post(self, request, pk):
        payload = TaskReassignSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        assignee = payload.validated_data["assigned_to"]
        with transaction.atomic():
            task = self.get_task(pk)
            if task.status in (TaskStatus.COMPLETED, TaskStatus.CANCELLED):
                raise InvalidTransition("Closed tasks cannot be reassigned.")
            previous = task.assigned_to
            task.assigned_to = assignee
            task.save(update_fields=["assigned_to", "updated_at"])
            log_audit_event(
                user=request.user,
                action="TASK_REASSIGNED",
                entity_type="Task",
                entity_id=task.id,
                description=payload.validated_data.get("reason", ""),
                before={"assigned_to": previous.id},
                after={"assigned_to": assignee.id},
            )
        notify_users(
            [assignee],
            title=f"Task reassigned to you: {task.title}",
            body=task.description,
            severity=severity_for(task.priority),
            group_key="task_assigned",
            entity_type="TASK",
            entity_id=task.id,
            exclude=request.user,
        )
        return Response(TaskSerializer(task).data)
