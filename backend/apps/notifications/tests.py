from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.audit.utils import log_audit_event
from apps.notifications.models import Notification, NotificationStatus
from apps.notifications.services import notify_roles, notify_users
from apps.users.roles import Role

User = get_user_model()


class NotificationServiceTests(APITestCase):
    def setUp(self):
        self.manager = User.objects.create_user(username="ops", password="pass123", role=Role.OPERATIONS_MANAGER)
        self.officer = User.objects.create_user(username="safety", password="pass123", role=Role.SAFETY_OFFICER)
        User.objects.create_user(username="gone", password="pass123", role=Role.SAFETY_OFFICER, is_active=False)

    def test_notify_roles_targets_active_users_and_skips_actor(self):
        created = notify_roles(
            [Role.SAFETY_OFFICER, Role.OPERATIONS_MANAGER],
            title="Incident reported",
            group_key="safety_incident",
            entity_type="SafetyIncident",
            entity_id=12,
            exclude=self.manager,
        )
        self.assertEqual(created, 1)
        notification = Notification.objects.get()
        self.assertEqual(notification.user, self.officer)
        self.assertEqual(notification.entity_id, "12")

    def test_notify_users_with_no_recipients(self):
        self.assertEqual(notify_users([], title="Nobody"), 0)

    def test_audit_event_drops_anonymous_actor(self):
        from django.contrib.auth.models import AnonymousUser

        entry = log_audit_event(user=AnonymousUser(), action="VIEW", entity_type="Vendor", entity_id=3)
        self.assertIsNone(entry.user)
        self.assertEqual(AuditLog.objects.get().entity_id, "3")


class NotificationAPITests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="kwame", password="pass123", role=Role.EMPLOYEE)
        self.other = User.objects.create_user(username="ama", password="pass123", role=Role.EMPLOYEE)
        notify_users([self.user], title="Leave approved", body="Enjoy the break")
        notify_users([self.user], title="Task assigned")
        notify_users([self.other], title="Not yours")
        self.client.force_authenticate(self.user)

    def test_list_is_scoped_to_current_user(self):
        response = self.client.get("/api/v1/notifications/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 2)
        response = self.client.get("/api/v1/notifications/", {"search": "leave"})
        self.assertEqual([item["title"] for item in response.data["items"]], ["Leave approved"])

    def test_mark_read_stamps_read_at(self):
        notification = Notification.objects.get(title="Leave approved")
        response = self.client.patch(
            f"/api/v1/notifications/{notification.id}/mark/", {"status": "read"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        notification.refresh_from_db()
        self.assertIsNotNone(notification.read_at)
        response = self.client.get("/api/v1/notifications/", {"status": "unread"})
        self.assertEqual(response.data["total"], 1)

    def test_cannot_mark_someone_elses_notification(self):
        foreign = Notification.objects.get(title="Not yours")
        response = self.client.patch(f"/api/v1/notifications/{foreign.id}/mark/", {"status": "read"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_clear_all(self):
        response = self.client.post("/api/v1/notifications/clear-all/")
        self.assertEqual(response.data, {"status": "ok", "cleared": 2})
        self.assertEqual(
            Notification.objects.filter(user=self.other, status=NotificationStatus.UNREAD).count(), 1
        )
