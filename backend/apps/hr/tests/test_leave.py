from datetime import date, timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.hr.models import LeaveRequest, LeaveRequestStatus, LeaveType
from apps.hr.services import LeaveService
from apps.hr.tasks import send_leave_reminders
from apps.notifications.models import Notification
from apps.users.models import User
from apps.users.roles import Role
from shared.exceptions import DomainError, InvalidTransition

BASE = "/api/v1/hr/leave-requests"


class LeaveServiceTests(TestCase):
    def setUp(self):
        self.employee = User.objects.create_user(username="miner", password="pass123", role=Role.EMPLOYEE)
        self.hr = User.objects.create_user(username="hr", password="pass123", role=Role.HR_MANAGER)

    def _request(self, start, end, reason="Family event"):
        return LeaveService.request_leave(
            employee=self.employee,
            user=self.employee,
            leave_type=LeaveType.ANNUAL,
            start_date=start,
            end_date=end,
            reason=reason,
        )

    def test_total_days_is_inclusive(self):
        leave = self._request(date(2026, 3, 2), date(2026, 3, 6))
        self.assertEqual(leave.total_days, 5)
        self.assertTrue(leave.request_number.startswith("LV-"))
        self.assertEqual(leave.status, LeaveRequestStatus.PENDING)
        self.assertTrue(Notification.objects.filter(user=self.hr, group_key="hr_leave_requested").exists())

    def test_single_day_and_year_limit(self):
        self.assertEqual(LeaveService.total_days(date(2026, 1, 1), date(2026, 1, 1)), 1)
        self.assertEqual(LeaveService.total_days(date(2026, 1, 1), date(2026, 12, 31)), 365)
        with self.assertRaises(DomainError):
            LeaveService.total_days(date(2028, 1, 1), date(2028, 12, 31))
        with self.assertRaises(DomainError):
            LeaveService.total_days(date(2026, 1, 2), date(2026, 1, 1))

    def test_reason_must_have_two_characters(self):
        with self.assertRaises(DomainError):
            self._request(date(2026, 3, 2), date(2026, 3, 3), reason=" x ")

    def test_overlap_with_pending_or_approved_is_refused(self):
        first = self._request(date(2026, 3, 2), date(2026, 3, 6))
        with self.assertRaises(DomainError) as ctx:
            self._request(date(2026, 3, 6), date(2026, 3, 9))
        self.assertEqual(ctx.exception.code, "leave_overlap")

        LeaveService.reject(first, user=self.hr, reason="Shutdown week")
        second = self._request(date(2026, 3, 6), date(2026, 3, 9))
        self.assertEqual(second.total_days, 4)

    def test_decisions_only_from_pending(self):
        leave = self._request(date(2026, 4, 1), date(2026, 4, 2))
        leave = LeaveService.approve(leave, user=self.hr)
        self.assertEqual(leave.approved_by, self.hr)
        self.assertIsNotNone(leave.approved_at)
        with self.assertRaises(InvalidTransition):
            LeaveService.cancel(leave, user=self.employee)
        with self.assertRaises(InvalidTransition):
            LeaveService.reject(leave, user=self.hr, reason="Too late")

    def test_reminder_task_notifies_hr(self):
        today = timezone.localdate()
        self._request(today + timedelta(days=1), today + timedelta(days=2))
        result = send_leave_reminders()
        self.assertEqual(result["pending"], 1)
        self.assertTrue(Notification.objects.filter(user=self.hr, group_key="hr_leave_reminder").exists())


class LeaveAPITests(APITestCase):
    def setUp(self):
        self.employee = User.objects.create_user(username="miner", password="pass123", role=Role.EMPLOYEE)
        self.colleague = User.objects.create_user(username="miner2", password="pass123", role=Role.EMPLOYEE)
        self.hr = User.objects.create_user(username="hr", password="pass123", role=Role.HR_MANAGER)

    def _create(self, user, **overrides):
        self.client.force_authenticate(user)
        payload = {"leave_type": "SICK", "start_date": "2026-05-04", "end_date": "2026-05-05", "reason": "Flu"}
        payload.update(overrides)
        return self.client.post(f"{BASE}/", payload, format="json")

    def test_request_and_list_visibility(self):
        response = self._create(self.employee)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["total_days"], 2)
        self._create(self.colleague)

        self.client.force_authenticate(self.employee)
        response = self.client.get(f"{BASE}/")
        self.assertEqual(response.data["total"], 1)

        self.client.force_authenticate(self.hr)
        self.assertEqual(self.client.get(f"{BASE}/").data["total"], 2)
        self.assertEqual(self.client.get(f"{BASE}/", {"mine": "1"}).data["total"], 0)
        self.assertEqual(self.client.get(f"{BASE}/", {"type": "annual"}).data["total"], 0)

    def test_validation_errors(self):
        response = self._create(self.employee, start_date="2026-05-06")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("end_date", response.data)

        response = self._create(self.employee, employee=self.colleague.id)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("employee", response.data)

        self._create(self.employee)
        response = self._create(self.employee)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "leave_overlap")

    def test_reject_requires_reason_and_role(self):
        leave_id = self._create(self.employee).data["id"]
        response = self.client.post(f"{BASE}/{leave_id}/approve/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.hr)
        response = self.client.post(f"{BASE}/{leave_id}/reject/", {}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f"{BASE}/{leave_id}/reject/", {"rejection_reason": "Peak production"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "REJECTED")
        self.assertEqual(LeaveRequest.objects.get(pk=leave_id).rejection_reason, "Peak production")

    def test_only_requester_cancels(self):
        leave_id = self._create(self.employee).data["id"]
        self.client.force_authenticate(self.hr)
        self.assertEqual(self.client.post(f"{BASE}/{leave_id}/cancel/").status_code, status.HTTP_403_FORBIDDEN)
        self.client.force_authenticate(self.employee)
        response = self.client.post(f"{BASE}/{leave_id}/cancel/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "CANCELLED")
