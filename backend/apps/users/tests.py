from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase

from apps.audit.models import AuditLog
from apps.users.roles import Role

User = get_user_model()


class CurrentUserProfileAPITests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            username="alice",
            password="pass12345",
            email="alice@example.com",
            first_name="Alice",
            last_name="Anderson",
            role=Role.WAREHOUSE_MANAGER,
            department="Stores",
        )
        self.client.force_authenticate(self.user)
        self.url = "/api/v1/users/me/"

    def test_retrieve_current_user_profile(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["username"], "alice")
        self.assertEqual(response.data["role"], Role.WAREHOUSE_MANAGER)
        self.assertEqual(response.data["full_name"], "Alice Anderson")

    def test_profile_update_cannot_change_role(self):
        response = self.client.patch(self.url, {"phone": "+233200000000", "role": "SUPER_ADMIN"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.phone, "+233200000000")
        self.assertEqual(self.user.role, Role.WAREHOUSE_MANAGER)


class UserRoleAssignmentAPITests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(username="root", password="pass12345", role=Role.SUPER_ADMIN)
        self.employee = User.objects.create_user(username="bob", password="pass12345")

    def test_super_admin_can_assign_role(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            f"/api/v1/users/{self.employee.id}/role/",
            {"role": Role.SAFETY_OFFICER, "department": "HSE"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.employee.refresh_from_db()
        self.assertEqual(self.employee.role, Role.SAFETY_OFFICER)
        self.assertEqual(self.employee.department, "HSE")
        self.assertTrue(AuditLog.objects.filter(action="ROLE_CHANGED", entity_id=str(self.employee.id)).exists())

    def test_employee_cannot_assign_roles(self):
        self.client.force_authenticate(self.employee)
        response = self.client.post(
            f"/api/v1/users/{self.employee.id}/role/",
            {"role": Role.SUPER_ADMIN},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_role_is_rejected(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(
            f"/api/v1/users/{self.employee.id}/role/",
            {"role": "WIZARD"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("role", response.data)
