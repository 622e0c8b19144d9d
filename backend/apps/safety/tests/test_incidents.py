from datetime import timedelta

from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.safety.models import IncidentStatus, SafetyIncident
from apps.safety.services import SafetyService
from apps.users.models import User
from apps.users.roles import Role

BASE = "/api/v1/safety"


class SafetyIncidentTests(APITestCase):
    def setUp(self):
        self.officer = User.objects.create_user(username="hse", password="pass123", role=Role.SAFETY_OFFICER)
        self.operator = User.objects.create_user(username="operator", password="pass123", role=Role.EMPLOYEE)
        self.other = User.objects.create_user(username="blaster", password="pass123", role=Role.EMPLOYEE)

    def _report(self, user, **fields):
        data = {
            "type": "NEAR_MISS",
            "severity": "LOW",
            "location": "Pit 2 haul road",
            "incident_date": timezone.now() - timedelta(hours=2),
            "description": "Haul truck reversed without spotter",
        }
        data.update(fields)
        return SafetyService.report_incident(user=user, **data)

    def test_report_via_api(self):
        self.client.force_authenticate(self.operator)
        response = self.client.post(
            f"{BASE}/incidents/",
            {
                "type": "INJURY",
                "severity": "CRITICAL",
                "location": "Crusher house",
                "incident_date": (timezone.now() - timedelta(hours=1)).isoformat(),
                "description": "Hand caught in conveyor guard",
                "witnesses": ["K. Mensah", " "],
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "REPORTED")
        self.assertEqual(response.data["witnesses"], ["K. Mensah"])
        self.assertTrue(response.data["incident_number"].startswith("INC-"))
        notification = Notification.objects.get(user=self.officer, group_key="safety_incident_reported")
        self.assertEqual(notification.severity, "critical")

    def test_future_incident_date_rejected(self):
        self.client.force_authenticate(self.operator)
        response = self.client.post(
            f"{BASE}/incidents/",
            {
                "type": "FIRE",
                "location": "Workshop",
                "incident_date": (timezone.now() + timedelta(days=1)).isoformat(),
                "description": "Small fire at welding bay",
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("incident_date", response.data)

    def test_visibility_rules(self):
        own = self._report(self.operator)
        theirs = self._report(self.other)

        self.client.force_authenticate(self.operator)
        response = self.client.get(f"{BASE}/incidents/")
        self.assertEqual([row["id"] for row in response.data["items"]], [own.id])
        self.assertEqual(self.client.get(f"{BASE}/incidents/{theirs.id}/").status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.officer)
        self.assertEqual(self.client.get(f"{BASE}/incidents/").data["total"], 2)
        self.assertEqual(self.client.get(f"{BASE}/incidents/", {"mine": "true"}).data["total"], 0)
        self.assertEqual(self.client.get(f"{BASE}/incidents/{theirs.id}/").status_code, status.HTTP_200_OK)

    def test_photos_are_deduplicated(self):
        incident = self._report(self.operator)
        self.client.force_authenticate(self.operator)
        url = f"{BASE}/incidents/{incident.id}/photos/"
        self.client.post(url, {"photo_urls": ["https://cdn.example.com/a.jpg"]}, format="json")
        response = self.client.post(
            url,
            {"photo_urls": ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            response.data["photo_urls"],
            ["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"],
        )

    def test_status_moves_one_step_at_a_time(self):
        incident = self._report(self.operator)
        self.client.force_authenticate(self.operator)
        url = f"{BASE}/incidents/{incident.id}/status/"
        self.assertEqual(self.client.post(url, {"status": "INVESTIGATING"}, format="json").status_code, 403)

        self.client.force_authenticate(self.officer)
        response = self.client.post(url, {"status": "CLOSED"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "invalid_transition")

        self.assertEqual(self.client.post(url, {"status": "INVESTIGATING"}, format="json").status_code, 200)
        response = self.client.post(url, {"status": "RESOLVED"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(
            url,
            {"status": "RESOLVED", "root_cause": "No spotter rostered", "corrective_actions": "Spotter on every shift"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data["resolved_at"])
        self.assertEqual(self.client.post(url, {"status": "CLOSED"}, format="json").status_code, 200)
        incident.refresh_from_db()
        self.assertEqual(incident.status, IncidentStatus.CLOSED)
        self.assertTrue(
            Notification.objects.filter(user=self.operator, group_key="safety_incident_status").exists()
        )


class SafetyInspectionTests(APITestCase):
    def setUp(self):
        self.officer = User.objects.create_user(username="hse", password="pass123", role=Role.SAFETY_OFFICER)
        self.ops = User.objects.create_user(username="ops", password="pass123", role=Role.OPERATIONS_MANAGER)

    def test_failed_inspection_needs_findings_and_escalates(self):
        self.client.force_authenticate(self.officer)
        response = self.client.post(
            f"{BASE}/inspections/",
            {"title": "Monthly ventilation check", "location": "Underground L3", "scheduled_date": "2026-07-01"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["inspector"], self.officer.id)
        url = f"{BASE}/inspections/{response.data['id']}/complete/"

        self.assertEqual(self.client.post(url, {"passed": False}, format="json").status_code, 400)
        response = self.client.post(url, {"passed": False, "score": 45, "findings": "Fan 2 below rated flow"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "FAILED")
        self.assertTrue(Notification.objects.filter(user=self.ops, group_key="safety_inspection_failed").exists())
        self.assertEqual(self.client.post(url, {"passed": True}, format="json").status_code, 400)

    def test_employees_cannot_schedule_inspections(self):
        employee = User.objects.create_user(username="worker", password="pass123", role=Role.EMPLOYEE)
        self.client.force_authenticate(employee)
        self.assertEqual(self.client.get(f"{BASE}/inspections/").status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(SafetyIncident.objects.count(), 0)
