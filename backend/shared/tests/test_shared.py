from io import StringIO

from django.core.management import call_command
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIRequestFactory

from core.doc_numbers import get_next_doc_no
from shared.event_bus import EventBus
from shared.exceptions import InvalidTransition, OverPayment, domain_exception_handler
from shared.models import DocumentSequence, SystemSetting
from shared.pagination import build_page
from shared.permissions import HasRole
from shared.serializers import ListQuerySerializer, parse_loose_bool


class LooseBooleanTests(SimpleTestCase):
    def test_tokens(self):
        for value in ("true", "TRUE", " yes ", "Y", "on", "1", True, 1):
            self.assertIs(parse_loose_bool(value), True, value)
        for value in ("false", "No", "n", "OFF", "0", False, 0):
            self.assertIs(parse_loose_bool(value), False, value)
        for value in ("maybe", "", None, 2, 1.0, []):
            self.assertIsNone(parse_loose_bool(value), value)
        self.assertTrue(parse_loose_bool("maybe", default=True))


class ListQuerySerializerTests(SimpleTestCase):
    def _validate(self, data, **context):
        serializer = ListQuerySerializer(data=data, context=context)
        return serializer.is_valid(), serializer

    def test_defaults(self):
        ok, serializer = self._validate({})
        self.assertTrue(ok)
        self.assertEqual(serializer.validated_data["page"], 1)
        self.assertEqual(serializer.validated_data["pageSize"], 20)
        self.assertIsNone(serializer.validated_data["mine"])

    def test_numeric_coercion_and_bounds(self):
        ok, serializer = self._validate({"page": "3", "pageSize": "50"})
        self.assertTrue(ok)
        self.assertEqual(serializer.validated_data["page"], 3)
        self.assertFalse(self._validate({"pageSize": "51"})[0])
        self.assertFalse(self._validate({"page": "0"})[0])

    def test_status_choices(self):
        ok, serializer = self._validate({"status": "pending, approved"}, status_choices={"PENDING", "APPROVED"})
        self.assertTrue(ok)
        self.assertEqual(serializer.validated_data["status"], ["PENDING", "APPROVED"])
        ok, serializer = self._validate({"status": "LOST"}, status_choices={"PENDING"})
        self.assertFalse(ok)
        self.assertIn("status", serializer.errors)

    def test_mine_never_fails(self):
        ok, serializer = self._validate({"mine": "banana", "search": "  pump  "})
        self.assertTrue(ok)
        self.assertIsNone(serializer.validated_data["mine"])
        self.assertEqual(serializer.validated_data["search"], "pump")


class PaginationTests(SimpleTestCase):
    def test_build_page(self):
        page = build_page(["a", "b"], page=1, page_size=2, total=3)
        self.assertEqual(page, {"items": ["a", "b"], "page": 1, "pageSize": 2, "total": 3, "hasNextPage": True})
        self.assertFalse(build_page([], page=2, page_size=2, total=4)["hasNextPage"])


@override_settings(DOCUMENT_NUMBER_WIDTH=5)
class DocumentNumberTests(TestCase):
    def test_sequences_are_per_type(self):
        year = timezone.now().year
        self.assertEqual(get_next_doc_no(doc_type="EXP"), f"EXP-{year}-00001")
        self.assertEqual(get_next_doc_no(doc_type="EXP"), f"EXP-{year}-00002")
        self.assertEqual(get_next_doc_no(doc_type="VEH", width=4), f"VEH-{year}-0001")
        self.assertEqual(get_next_doc_no(doc_type="EXP", fy_format="YY"), f"EXP-{year % 100:02d}-00001")
        self.assertEqual(DocumentSequence.objects.get(doc_type="EXP", fiscal_year=str(year)).current_value, 2)

    def test_system_setting_lookup(self):
        self.assertEqual(SystemSetting.get_value("MISSING", "fallback"), "fallback")
        SystemSetting.objects.create(key="K", value="v")
        self.assertEqual(SystemSetting.get_value("K"), "v")


class ExceptionHandlerTests(SimpleTestCase):
    def test_domain_errors_render_as_400(self):
        response = domain_exception_handler(InvalidTransition("Nope"), {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {"detail": "Nope", "code": "invalid_transition"})
        response = domain_exception_handler(OverPayment("Too much", code="custom"), {})
        self.assertEqual(response.data["code"], "custom")

    def test_other_errors_use_drf_default(self):
        self.assertIsNone(domain_exception_handler(KeyError("x"), {}))


class HasRoleTests(SimpleTestCase):
    class View:
        allowed_roles = {"CEO"}
        role_map = {"approve": {"CFO"}}
        action = "list"

    def _request(self, role):
        request = APIRequestFactory().get("/")
        request.user = type("U", (), {"is_authenticated": True, "role": role})()
        return request

    def test_role_map_and_fallback(self):
        view = self.View()
        permission = HasRole()
        self.assertTrue(permission.has_permission(self._request("CEO"), view))
        self.assertFalse(permission.has_permission(self._request("CFO"), view))
        view.action = "approve"
        self.assertTrue(permission.has_permission(self._request("CFO"), view))


class EventBusTests(SimpleTestCase):
    def test_publish_reaches_subscribers(self):
        bus = EventBus()
        received = []

        def handler(sender, **kwargs):
            received.append(kwargs["instance"])
            return "ok"

        bus.subscribe("test.event", handler)
        results = bus.publish("test.event", instance=42)
        self.assertEqual(received, [42])
        self.assertEqual(results[0][1], "ok")


class HealthCheckTests(TestCase):
    def test_health_is_public(self):
        response = self.client.get("/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")
        self.assertEqual(response.json()["database"]["details"]["default"], "connected")


class MigrationStateTests(TestCase):
    def test_models_have_no_pending_migrations(self):
        out = StringIO()
        call_command("makemigrations", check=True, dry_run=True, interactive=False, stdout=out)
        self.assertIn("No changes detected", out.getvalue())
