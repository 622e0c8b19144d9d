import json

from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from apps.mobile.capabilities import get_capabilities_for_role, get_modules_for_role, resolve_role
from apps.mobile.models import MobileDevice
from apps.mobile.services import DEFAULT_APP_STORE_URL, build_mobile_config, clean_url
from apps.users.models import User
from apps.users.roles import Role
from shared.models import SystemSetting

BASE = "/api/v1/mobile"
EMPTY_ENV = {
    "MIN_VERSION_IOS": "",
    "MIN_VERSION_ANDROID": "",
    "APP_STORE_URL": "",
    "PLAY_STORE_URL": "",
    "FEATURE_FLAGS": "",
}


class CapabilityTableTests(SimpleTestCase):
    def test_super_admin_modules_cover_every_role(self):
        admin_modules = set(get_modules_for_role(Role.SUPER_ADMIN))
        for role in Role:
            self.assertTrue(set(get_modules_for_role(role)) <= admin_modules, role)

    def test_unknown_role_gets_base_modules(self):
        self.assertEqual(get_modules_for_role("ASTRONAUT"), ["notifications", "tasks"])
        self.assertEqual(get_modules_for_role(Role.VENDOR), ["notifications", "tasks"])

    def test_modules_are_deduplicated_in_order(self):
        self.assertEqual(
            get_modules_for_role(Role.SAFETY_OFFICER),
            ["notifications", "tasks", "safety", "employees", "documents"],
        )
        self.assertNotIn("finance", get_modules_for_role(Role.OPERATIONS_MANAGER))
        self.assertIn("finance", get_modules_for_role(Role.ACCOUNTANT))

    def test_capability_flags(self):
        keys = set(get_capabilities_for_role(Role.CEO))
        for role in list(Role) + ["ASTRONAUT"]:
            self.assertEqual(set(get_capabilities_for_role(role)), keys)

        unknown = get_capabilities_for_role("ASTRONAUT")
        self.assertEqual(
            {name for name, enabled in unknown.items() if enabled},
            {
                "canViewTasks",
                "canUpdateTasks",
                "canCreateIncident",
                "canReportBreakdown",
                "canUploadDocuments",
                "canViewInventory",
                "canCreateRequisition",
            },
        )
        vendor = get_capabilities_for_role(Role.VENDOR)
        self.assertFalse(vendor["canViewInventory"])
        self.assertFalse(vendor["canCreateRequisition"])
        self.assertTrue(get_capabilities_for_role(Role.EMPLOYEE)["canLogFuel"])
        self.assertTrue(get_capabilities_for_role(Role.ACCOUNTANT)["canApproveExpenses"])
        self.assertFalse(get_capabilities_for_role(Role.ACCOUNTANT)["canApproveLeave"])

    def test_store_url_validation(self):
        self.assertEqual(clean_url("https://apps.example.com/app", default="x"), "https://apps.example.com/app")
        for bad in ("ftp://apps.example.com", "https://", "https://exa mple.com", "apps.example.com", 42):
            self.assertEqual(clean_url(bad, default=DEFAULT_APP_STORE_URL), DEFAULT_APP_STORE_URL, bad)
        self.assertEqual(clean_url("", "  http://play.example.com  ", default="x"), "http://play.example.com")

    def test_resolve_role(self):
        profile = resolve_role(Role.WAREHOUSE_MANAGER)
        self.assertIn("receiving", profile.visible_modules)
        self.assertTrue(profile.capabilities["canAdjustStock"])


@override_settings(MOBILE_CONFIG=EMPTY_ENV)
class MobileConfigTests(TestCase):
    def test_defaults(self):
        config = build_mobile_config()
        self.assertEqual(config["minimumVersions"], {"ios": "1.0.0", "android": "1.0.0"})
        self.assertEqual(
            config["storeUrls"],
            {"ios": "https://apps.apple.com/", "android": "https://play.google.com/store"},
        )
        self.assertEqual(config["featureFlags"], dict.fromkeys(["home", "work", "modules", "notifications", "more"], True))
        self.assertFalse(config["maintenance"]["enabled"])
        self.assertIsNone(config["forceUpdateMessage"])

    def test_stored_setting_beats_environment(self):
        SystemSetting.objects.create(
            key="MOBILE_CONFIG_JSON",
            value=json.dumps({
                "minimumVersions": {"ios": "2.3.0"},
                "featureFlags": {"work": "off"},
                "maintenance": {"enabled": "yes", "message": "Back at 14:00"},
                "forceUpdateMessage": "Please update",
            }),
        )
        env = {**EMPTY_ENV, "MIN_VERSION_IOS": "1.5.0", "MIN_VERSION_ANDROID": "1.6.0"}
        with self.settings(MOBILE_CONFIG=env):
            config = build_mobile_config()
        self.assertEqual(config["minimumVersions"], {"ios": "2.3.0", "android": "1.6.0"})
        self.assertFalse(config["featureFlags"]["work"])
        self.assertEqual(config["maintenance"], {"enabled": True, "message": "Back at 14:00"})
        self.assertEqual(config["forceUpdateMessage"], "Please update")

    def test_environment_flags_override_stored_flags(self):
        SystemSetting.objects.create(key="MOBILE_CONFIG_JSON", value=json.dumps({"featureFlags": {"more": False}}))
        env = {**EMPTY_ENV, "FEATURE_FLAGS": json.dumps({"more": "true", "home": 0, "modules": "maybe"})}
        with self.settings(MOBILE_CONFIG=env):
            flags = build_mobile_config()["featureFlags"]
        self.assertTrue(flags["more"])
        self.assertFalse(flags["home"])
        self.assertTrue(flags["modules"])

    def test_malformed_values_fall_back(self):
        SystemSetting.objects.create(key="MOBILE_CONFIG_JSON", value="{not json")
        env = {
            "MIN_VERSION_IOS": "latest",
            "MIN_VERSION_ANDROID": "2.0.1",
            "APP_STORE_URL": "ftp://apps.example.com",
            "PLAY_STORE_URL": "https://play.google.com/store/apps/details?id=com.mining.erp",
            "FEATURE_FLAGS": "[1, 2]",
        }
        with self.settings(MOBILE_CONFIG=env):
            config = build_mobile_config()
        self.assertEqual(config["minimumVersions"], {"ios": "1.0.0", "android": "2.0.1"})
        self.assertEqual(config["storeUrls"]["ios"], "https://apps.apple.com/")
        self.assertEqual(config["storeUrls"]["android"], env["PLAY_STORE_URL"])
        self.assertTrue(all(config["featureFlags"].values()))

    def test_non_object_json_is_ignored(self):
        SystemSetting.objects.create(key="MOBILE_CONFIG_JSON", value="[]")
        self.assertEqual(build_mobile_config()["minimumVersions"]["ios"], "1.0.0")


@override_settings(MOBILE_CONFIG=EMPTY_ENV)
class MobileAPITests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(
            username="driver", password="pass123", role=Role.EMPLOYEE, department="Haulage"
        )

    def test_config_is_public(self):
        response = self.client.get(f"{BASE}/config/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("serverTime", response.data)

    def test_capabilities_require_login(self):
        self.assertEqual(self.client.get(f"{BASE}/capabilities/").status_code, status.HTTP_401_UNAUTHORIZED)
        self.client.force_authenticate(self.user)
        data = self.client.get(f"{BASE}/capabilities/").data
        self.assertEqual(data["userId"], self.user.id)
        self.assertEqual(data["department"], "Haulage")
        self.assertEqual(data["modules"][:2], ["notifications", "tasks"])
        self.assertTrue(data["capabilities"]["canLogFuel"])

    def test_register_upserts_and_unregister(self):
        self.client.force_authenticate(self.user)
        payload = {"device_id": "abc-123", "platform": "Android", "push_token": "tok-1"}
        first = self.client.post(f"{BASE}/devices/", payload, format="json")
        self.assertEqual(first.status_code, status.HTTP_201_CREATED, first.data)
        self.assertEqual(first.data["platform"], "android")
        second = self.client.post(f"{BASE}/devices/", {**payload, "push_token": "tok-2"}, format="json")
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(MobileDevice.objects.get().push_token, "tok-2")

        response = self.client.delete(f"{BASE}/devices/abc-123/")
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(MobileDevice.objects.exists())

    def test_revoked_device_is_refused(self):
        SystemSetting.objects.create(key="MOBILE_REVOKED_DEVICE_IDS_JSON", value=json.dumps(["stolen-1"]))
        self.client.force_authenticate(self.user)
        response = self.client.post(
            f"{BASE}/devices/",
            {"device_id": "stolen-1", "platform": "ios", "push_token": "tok"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(MobileDevice.objects.exists())
