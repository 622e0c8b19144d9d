from datetime import date, timedelta
from decimal import Decimal

from django.test import SimpleTestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.fleet.models import (
    DocumentValidity,
    FleetAsset,
    FleetAssetStatus,
    FleetAssetType,
    FleetCostStatus,
    FleetDocument,
    validity_for,
)
from apps.fleet.tasks import check_expiring_documents
from apps.notifications.models import Notification
from apps.users.models import User
from apps.users.roles import Role

BASE = "/api/v1/fleet"


class DocumentValidityTests(SimpleTestCase):
    def test_boundaries(self):
        today = date(2026, 10, 1)
        self.assertEqual(validity_for(None, today), DocumentValidity.VALID)
        self.assertEqual(validity_for(date(2026, 9, 30), today), DocumentValidity.EXPIRED)
        self.assertEqual(validity_for(today, today), DocumentValidity.EXPIRING_SOON)
        self.assertEqual(validity_for(date(2026, 10, 31), today), DocumentValidity.EXPIRING_SOON)
        self.assertEqual(validity_for(date(2026, 11, 1), today), DocumentValidity.VALID)


class FleetAPITests(APITestCase):
    def setUp(self):
        self.ops = User.objects.create_user(username="ops", password="pass123", role=Role.OPERATIONS_MANAGER)
        self.head = User.objects.create_user(username="head", password="pass123", role=Role.DEPARTMENT_HEAD)
        self.driver = User.objects.create_user(username="driver", password="pass123", role=Role.EMPLOYEE)
        self.truck = FleetAsset.objects.create(name="CAT 777 haul truck", type=FleetAssetType.HEAVY_MACHINERY)

    def test_asset_code_is_generated_per_type(self):
        self.assertRegex(self.truck.asset_code, r"^HM-\d{4}-0001$")
        self.client.force_authenticate(self.ops)
        response = self.client.post(f"{BASE}/assets/", {"name": "Hilux", "type": "VEHICLE"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertTrue(response.data["asset_code"].startswith("VEH-"))

    def test_employee_can_view_but_not_create(self):
        self.client.force_authenticate(self.driver)
        self.assertEqual(self.client.get(f"{BASE}/assets/").data["total"], 1)
        response = self.client.post(f"{BASE}/assets/", {"name": "Hilux", "type": "VEHICLE"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_breakdown_sets_status_and_notifies(self):
        self.client.force_authenticate(self.driver)
        response = self.client.post(
            f"{BASE}/assets/{self.truck.id}/breakdown/",
            {"description": "Hydraulic leak on hoist cylinder", "location": "Pit 3"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], FleetAssetStatus.BREAKDOWN)
        self.assertTrue(Notification.objects.filter(user=self.ops, group_key="fleet_breakdown").exists())

    def test_fuel_log_updates_odometer_and_refuses_regression(self):
        self.client.force_authenticate(self.driver)
        url = f"{BASE}/assets/{self.truck.id}/fuel/"
        response = self.client.post(url, {"litres": "400", "amount": "5200.00", "odometer_reading": "15230"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["category"], "FUEL")
        self.truck.refresh_from_db()
        self.assertEqual(self.truck.current_odometer, Decimal("15230"))

        response = self.client.post(url, {"litres": "10", "amount": "130.00", "odometer_reading": "15000"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "odometer_regression")

    def test_cost_approval(self):
        self.client.force_authenticate(self.head)
        response = self.client.post(
            f"{BASE}/costs/",
            {"asset": self.truck.id, "cost_date": "2026-09-01", "category": "TYRES", "amount": "18000.00"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        cost_id = response.data["id"]
        self.assertEqual(self.client.post(f"{BASE}/costs/{cost_id}/approve/").status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.ops)
        response = self.client.post(f"{BASE}/costs/{cost_id}/approve/")
        self.assertEqual(response.data["status"], FleetCostStatus.APPROVED)
        response = self.client.post(f"{BASE}/costs/{cost_id}/reject/", {"reason": "Changed my mind"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_documents_report_validity(self):
        today = timezone.localdate()
        FleetDocument.objects.create(
            asset=self.truck,
            type="INSURANCE",
            name="Policy 2026",
            file_url="https://files.example.com/p.pdf",
            expiry_date=today + timedelta(days=10),
        )
        FleetDocument.objects.create(
            asset=self.truck,
            type="ROADWORTHY",
            name="Roadworthy",
            file_url="https://files.example.com/r.pdf",
            expiry_date=today - timedelta(days=1),
        )
        self.client.force_authenticate(self.driver)
        response = self.client.get(f"{BASE}/documents/", {"asset": self.truck.id})
        self.assertEqual(
            sorted(row["validity"] for row in response.data),
            ["EXPIRED", "EXPIRING_SOON"],
        )
        response = self.client.get(f"{BASE}/documents/", {"validity": "expired"})
        self.assertEqual([row["name"] for row in response.data], ["Roadworthy"])

        self.assertEqual(check_expiring_documents(), {"created": 2})
        self.assertEqual(check_expiring_documents(), {"created": 0})
