from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.notifications.models import Notification
from apps.procurement.models import RequestForQuotation, RFQResponse, RFQVendorInvite, Vendor
from apps.procurement.services import RFQService
from apps.procurement.tests.test_procurement_flow import ProcurementFixtureMixin
from apps.users.models import User
from apps.users.roles import Role
from shared.exceptions import InvalidTransition

BASE = "/api/v1/procurement/rfqs"


class RFQFixtureMixin(ProcurementFixtureMixin):
    def setUp(self):
        super().setUp()
        self.vendor_user = User.objects.create_user(username="tms-portal", password="pass123", role=Role.VENDOR)
        self.vendor.user = self.vendor_user
        self.vendor.save()
        self.rival = Vendor.objects.create(vendor_code="V-002", company_name="Prestea Drilling Supplies")

    def _rfq(self, **fields) -> RequestForQuotation:
        fields.setdefault("response_deadline", timezone.now() + timedelta(days=7))
        return RFQService.create(
            user=self.buyer,
            title="Rock bolts for Q3",
            items=[
                {"item_name": "Rock bolt M20", "quantity": Decimal("500")},
                {"item_name": "Bearing plate", "quantity": Decimal("500"), "estimated_price": Decimal("3.00")},
            ],
            **fields,
        )

    def _published_rfq(self) -> RequestForQuotation:
        rfq = self._rfq()
        RFQService.invite_vendors(rfq, user=self.buyer, vendors=[self.vendor, self.rival])
        return RFQService.publish(rfq, user=self.buyer)

    def _quote(self, rfq, vendor, bolt_price, plate_price) -> RFQResponse:
        bolt, plate = rfq.items.all()
        return RFQService.submit_response(
            rfq,
            user=vendor.user,
            vendor=vendor,
            valid_until=timezone.localdate() + timedelta(days=30),
            items=[
                {"rfq_item": bolt, "unit_price": Decimal(bolt_price)},
                {"rfq_item": plate, "unit_price": Decimal(plate_price), "lead_time_days": 10},
            ],
        )


class RFQServiceTests(RFQFixtureMixin, TestCase):
    def test_create_numbers_rfq_and_requires_items(self):
        rfq = self._rfq()
        self.assertTrue(rfq.rfq_number.startswith(f"RFQ-{timezone.now():%Y}-"))
        self.assertEqual(rfq.items.count(), 2)
        with self.assertRaises(InvalidTransition):
            RFQService.create(user=self.buyer, title="Empty", items=[], response_deadline=timezone.now())

    def test_only_drafts_can_be_edited(self):
        rfq = self._published_rfq()
        with self.assertRaises(InvalidTransition):
            RFQService.update(rfq, user=self.buyer, title="Changed")

    def test_publish_needs_future_deadline(self):
        rfq = self._rfq(response_deadline=timezone.now() - timedelta(hours=1))
        with self.assertRaises(InvalidTransition):
            RFQService.publish(rfq, user=self.buyer)

    def test_publish_notifies_invited_vendor_users(self):
        rfq = self._published_rfq()
        self.assertEqual(rfq.status, RequestForQuotation.Status.PUBLISHED)
        self.assertIsNotNone(rfq.issue_date)
        self.assertTrue(
            Notification.objects.filter(user=self.vendor_user, group_key="procurement_rfq_published").exists()
        )

    def test_invites_skip_duplicates_and_refuse_blacklisted(self):
        rfq = self._published_rfq()
        self.assertEqual(RFQService.invite_vendors(rfq, user=self.buyer, vendors=[self.vendor]), 0)
        banned = Vendor.objects.create(vendor_code="V-666", company_name="Banned", status=Vendor.Status.BLACKLISTED)
        with self.assertRaises(InvalidTransition):
            RFQService.invite_vendors(rfq, user=self.buyer, vendors=[banned])
        RFQService.close(rfq, user=self.buyer)
        with self.assertRaises(InvalidTransition):
            RFQService.invite_vendors(rfq, user=self.buyer, vendors=[self.vendor])

    def test_response_totals_and_invite_status(self):
        rfq = self._published_rfq()
        response = self._quote(rfq, self.vendor, "12.50", "2.75")
        self.assertEqual(response.total_amount, Decimal("7625.00"))
        invite = RFQVendorInvite.objects.get(rfq=rfq, vendor=self.vendor)
        self.assertEqual(invite.status, RFQVendorInvite.Status.RESPONDED)
        with self.assertRaises(InvalidTransition):
            self._quote(rfq, self.vendor, "12.00", "2.50")

    def test_no_responses_after_deadline(self):
        rfq = self._published_rfq()
        RequestForQuotation.objects.filter(pk=rfq.pk).update(response_deadline=timezone.now() - timedelta(minutes=1))
        with self.assertRaises(InvalidTransition):
            self._quote(rfq, self.vendor, "12.50", "2.75")

    def test_award_selects_one_and_rejects_the_rest(self):
        rfq = self._published_rfq()
        ours = self._quote(rfq, self.vendor, "12.50", "2.75")
        theirs = self._quote(rfq, self.rival, "13.00", "3.10")
        RFQService.close(rfq, user=self.buyer)
        RFQService.evaluate(
            rfq,
            user=self.buyer,
            evaluations=[{"response": ours, "overall_score": Decimal("88"), "status": RFQResponse.Status.SHORTLISTED}],
        )
        rfq.refresh_from_db()
        self.assertEqual(rfq.status, RequestForQuotation.Status.EVALUATING)

        RFQService.award(rfq, user=self.buyer, response=ours)
        rfq.refresh_from_db()
        ours.refresh_from_db()
        theirs.refresh_from_db()
        self.assertEqual(rfq.status, RequestForQuotation.Status.AWARDED)
        self.assertEqual(rfq.selected_response, ours)
        self.assertEqual(ours.status, RFQResponse.Status.SELECTED)
        self.assertEqual(theirs.status, RFQResponse.Status.REJECTED)
        with self.assertRaises(InvalidTransition):
            RFQService.update_response(ours, user=self.vendor_user, warranty="24 months")


class RFQAPITests(RFQFixtureMixin, APITestCase):
    def test_buyer_creates_and_publishes(self):
        self.client.force_authenticate(self.buyer)
        response = self.client.post(
            f"{BASE}/",
            {
                "title": "Ventilation ducting",
                "response_deadline": (timezone.now() + timedelta(days=5)).isoformat(),
                "items": [{"item_name": "Flexible duct 600mm", "quantity": "40", "unit": "M"}],
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        rfq_id = response.data["id"]
        invite = self.client.post(f"{BASE}/{rfq_id}/invite/", {"vendors": [self.vendor.pk]}, format="json")
        self.assertEqual(invite.data, {"status": "ok", "invited": 1})
        published = self.client.post(f"{BASE}/{rfq_id}/publish/", {}, format="json")
        self.assertEqual(published.status_code, status.HTTP_200_OK, published.data)
        self.assertEqual(published.data["status"], "PUBLISHED")

    def test_vendor_portal_flow(self):
        rfq = self._published_rfq()
        self.client.force_authenticate(self.vendor_user)
        self.assertEqual(self.client.get(f"{BASE}/").status_code, status.HTTP_403_FORBIDDEN)
        invited = self.client.get(f"{BASE}/invited/")
        self.assertEqual(invited.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in invited.data["items"]], [rfq.pk])
        self.assertNotIn("invites", invited.data["items"][0])

        bolt, plate = rfq.items.all()
        payload = {
            "valid_until": (timezone.localdate() + timedelta(days=30)).isoformat(),
            "delivery_days": 21,
            "items": [
                {"rfq_item": bolt.pk, "unit_price": "12.00"},
                {"rfq_item": plate.pk, "unit_price": "3.00"},
            ],
        }
        response = self.client.post(f"{BASE}/{rfq.pk}/respond/", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["total_amount"], "7500.00")

        again = self.client.post(f"{BASE}/{rfq.pk}/respond/", payload, format="json")
        self.assertEqual(again.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(again.data["code"], "response_exists")

        updated = self.client.put(f"{BASE}/{rfq.pk}/response/", {"warranty": "12 months"}, format="json")
        self.assertEqual(updated.status_code, status.HTTP_200_OK, updated.data)
        self.assertEqual(updated.data["warranty"], "12 months")

    def test_uninvited_vendor_cannot_see_rfq(self):
        rfq = self._rfq()
        RFQService.invite_vendors(rfq, user=self.buyer, vendors=[self.rival])
        RFQService.publish(rfq, user=self.buyer)
        self.client.force_authenticate(self.vendor_user)
        self.assertEqual(self.client.get(f"{BASE}/{rfq.pk}/").status_code, status.HTTP_404_NOT_FOUND)

    def test_award_through_api(self):
        rfq = self._published_rfq()
        quote = self._quote(rfq, self.vendor, "12.50", "2.75")
        self.client.force_authenticate(self.buyer)
        listing = self.client.get(f"{BASE}/{rfq.pk}/responses/")
        self.assertEqual([row["id"] for row in listing.data], [quote.pk])
        response = self.client.post(f"{BASE}/{rfq.pk}/award/", {"response": quote.pk}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "AWARDED")
        self.assertEqual(response.data["selected_response"], quote.pk)

    def test_employees_cannot_manage_rfqs(self):
        self.client.force_authenticate(self.requester)
        self.assertEqual(self.client.get(f"{BASE}/").status_code, status.HTTP_403_FORBIDDEN)
