from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.tasks.models import Task, TaskPriority, TaskStatus
from apps.tasks.tasks import check_overdue_tasks
from apps.users.models import User
from apps.users.roles import Role

BASE = "/api/v1/tasks"


class TaskAPITests(APITestCase):
    def setUp(self):
        self.ops = User.objects.create_user(username="ops", password="pass123", role=Role.OPERATIONS_MANAGER)
        self.head = User.objects.create_user(username="head", password="pass123", role=Role.DEPARTMENT_HEAD)
        self.driller = User.objects.create_user(username="driller", password="pass123", role=Role.EMPLOYEE)
        self.fitter = User.objects.create_user(username="fitter", password="pass123", role=Role.EMPLOYEE)
        self.task = Task.objects.create(title="Service drill rig 3", assigned_to=self.driller, assigned_by=self.ops)
        self.other = Task.objects.create(title="Inspect conveyor", assigned_to=self.fitter, assigned_by=self.ops)

    def test_assignment_creates_notification(self):
        self.assertTrue(
            Notification.objects.filter(user=self.driller, group_key="task_assigned", entity_id=str(self.task.id)).exists()
        )

    def test_employee_sees_only_own_tasks(self):
        self.client.force_authenticate(self.driller)
        response = self.client.get(f"{BASE}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in response.data["items"]], [self.task.id])
        self.assertEqual(self.client.get(f"{BASE}/{self.other.id}/").status_code, status.HTTP_404_NOT_FOUND)

    def test_operations_manager_sees_all_unless_mine(self):
        self.client.force_authenticate(self.ops)
        response = self.client.get(f"{BASE}/")
        self.assertEqual(response.data["total"], 2)
        response = self.client.get(f"{BASE}/", {"mine": "true"})
        self.assertEqual(response.data["total"], 0)

    def test_only_leadership_can_create(self):
        self.client.force_authenticate(self.driller)
        response = self.client.post(f"{BASE}/", {"title": "Self task", "assigned_to": self.driller.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.head)
        response = self.client.post(f"{BASE}/", {"title": "Pit survey", "assigned_to": self.fitter.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["assigned_by"], self.head.id)
        self.assertEqual(response.data["status"], TaskStatus.TODO)

    def test_completing_sets_completion_fields(self):
        self.client.force_authenticate(self.driller)
        response = self.client.post(f"{BASE}/{self.task.id}/status/", {"status": "COMPLETED", "comment": "Done"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.task.refresh_from_db()
        self.assertEqual(self.task.status, TaskStatus.COMPLETED)
        self.assertEqual(self.task.completed_by, self.driller)
        self.assertIsNotNone(self.task.completed_at)
        self.assertEqual(self.task.comments.count(), 1)
        self.assertTrue(Notification.objects.filter(user=self.ops, group_key="task_completed").exists())

        response = self.client.post(f"{BASE}/{self.task.id}/status/", {"status": "IN_PROGRESS"}, format="json")
        self.task.refresh_from_db()
        self.assertIsNone(self.task.completed_at)

    def test_cancelled_task_is_frozen(self):
        self.task.status = TaskStatus.CANCELLED
        self.task.save()
        self.client.force_authenticate(self.driller)
        response = self.client.post(f"{BASE}/{self.task.id}/status/", {"status": "TODO"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_transition")

    def test_comments(self):
        self.client.force_authenticate(self.driller)
        response = self.client.post(f"{BASE}/{self.task.id}/comments/", {"body": "  Waiting on parts  "}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["body"], "Waiting on parts")
        response = self.client.get(f"{BASE}/{self.task.id}/comments/")
        self.assertEqual(len(response.data), 1)
        self.assertEqual(self.client.post(f"{BASE}/{self.task.id}/comments/", {"body": " "}, format="json").status_code, 400)

    def test_reassign_requires_see_all_role(self):
        self.client.force_authenticate(self.driller)
        response = self.client.post(f"{BASE}/{self.task.id}/reassign/", {"assigned_to": self.fitter.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.ops)
        response = self.client.post(f"{BASE}/{self.task.id}/reassign/", {"assigned_to": self.fitter.id}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.task.refresh_from_db()
        self.assertEqual(self.task.assigned_to, self.fitter)


class OverdueTaskJobTests(TestCase):
    def test_notifies_once_per_overdue_high_priority_task(self):
        user = User.objects.create_user(username="shift", password="pass123")
        past = timezone.now() - timedelta(days=1)
        urgent = Task.objects.create(title="Fix pump", assigned_to=user, due_date=past, priority=TaskPriority.CRITICAL)
        Task.objects.create(title="Tidy store", assigned_to=user, due_date=past, priority=TaskPriority.LOW)
        Task.objects.create(
            title="Done already",
            assigned_to=user,
            due_date=past,
            priority=TaskPriority.HIGH,
            status=TaskStatus.COMPLETED,
        )

        self.assertEqual(check_overdue_tasks(), {"created": 1})
        self.assertEqual(check_overdue_tasks(), {"created": 0})
        notification = Notification.objects.get(group_key="task_overdue")
        self.assertEqual(notification.entity_id, str(urgent.id))
        self.assertEqual(notification.severity, "critical")
