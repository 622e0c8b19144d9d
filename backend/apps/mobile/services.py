"""
Mobile app bootstrap configuration and device registry.

Configuration precedence is: the ``MOBILE_CONFIG_JSON`` system setting,
then the ``MOBILE_*`` environment values in ``settings.MOBILE_CONFIG``,
then built-in defaults. Anything malformed is ignored in favour of the
next source, so building the config never raises.
"""
import json
import logging
import re

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import URLValidator
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied

from shared.models import SystemSetting
from shared.serializers import parse_loose_bool

from .models import MobileDevice

logger = logging.getLogger(__name__)

MOBILE_CONFIG_KEY = "MOBILE_CONFIG_JSON"
REVOKED_DEVICES_KEY = "MOBILE_REVOKED_DEVICE_IDS_JSON"

DEFAULT_MIN_VERSION = "1.0.0"
DEFAULT_APP_STORE_URL = "https://apps.apple.com/"
DEFAULT_PLAY_STORE_URL = "https://play.google.com/store"
DEFAULT_MAINTENANCE_MESSAGE = "We are currently performing scheduled maintenance. Please try again shortly."
FEATURE_FLAGS = ("home", "work", "modules", "notifications", "more")

VERSION_RE = re.compile(r"^\d+(\.\d+){0,3}$")
STORE_URL_VALIDATOR = URLValidator(schemes=["http", "https"])


def parse_json_object(raw):
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed mobile configuration JSON")
        return {}
    return value if isinstance(value, dict) else {}


def _section(source: dict, key: str) -> dict:
    value = source.get(key)
    return value if isinstance(value, dict) else {}


def clean_version(*candidates) -> str:
    for value in candidates:
        if isinstance(value, str) and VERSION_RE.match(value.strip()):
            return value.strip()
    return DEFAULT_MIN_VERSION


def clean_url(*candidates, default: str) -> str:
    for value in candidates:
        if not isinstance(value, str) or not value.strip():
            continue
        try:
            STORE_URL_VALIDATOR(value.strip())
        except ValidationError:
            continue
        return value.strip()
    return default


def feature_flags(stored: dict, env_raw: str) -> dict:
    env_flags = parse_json_object(env_raw)
    stored_flags = _section(stored, "featureFlags")
    flags = {}
    for name in FEATURE_FLAGS:
        value = env_flags.get(name)
        if value is None:
            value = stored_flags.get(name)
        flags[name] = parse_loose_bool(value, default=True)
    return flags


def build_mobile_config() -> dict:
    env = settings.MOBILE_CONFIG
    stored = parse_json_object(SystemSetting.get_value(MOBILE_CONFIG_KEY))
    versions = _section(stored, "minimumVersions")
    stores = _section(stored, "storeUrls")
    maintenance = _section(stored, "maintenance")

    message = maintenance.get("message")
    if not isinstance(message, str) or not message.strip():
        message = DEFAULT_MAINTENANCE_MESSAGE
    force_update_message = stored.get("forceUpdateMessage")

    return {
        "minimumVersions": {
            "ios": clean_version(versions.get("ios"), env.get("MIN_VERSION_IOS")),
            "android": clean_version(versions.get("android"), env.get("MIN_VERSION_ANDROID")),
        },
        "storeUrls": {
            "ios": clean_url(stores.get("ios"), env.get("APP_STORE_URL"), default=DEFAULT_APP_STORE_URL),
            "android": clean_url(stores.get("android"), env.get("PLAY_STORE_URL"), default=DEFAULT_PLAY_STORE_URL),
        },
        "featureFlags": feature_flags(stored, env.get("FEATURE_FLAGS")),
        "maintenance": {
            "enabled": parse_loose_bool(maintenance.get("enabled"), default=False),
            "message": message,
        },
        "forceUpdateMessage": force_update_message if isinstance(force_update_message, str) else None,
        "serverTime": timezone.now().isoformat(),
    }


def revoked_device_ids() -> set:
    raw = SystemSetting.get_value(REVOKED_DEVICES_KEY)
    if not raw:
        return set()
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed %s", REVOKED_DEVICES_KEY)
        return set()
    if not isinstance(value, list):
        return set()
    return {str(item) for item in value}


class MobileDeviceService:

    @staticmethod
    @transaction.atomic
    def register(*, user, device_id, platform, push_token, **fields):
        if device_id in revoked_device_ids():
            logger.warning("Refused registration of revoked device %s for %s", device_id, user.username)
            raise PermissionDenied("This device has been revoked.")
        device, created = MobileDevice.objects.update_or_create(
            user=user,
            device_id=device_id,
            defaults={
                "platform": platform,
                "push_token": push_token,
                "last_seen_at": timezone.now(),
                **fields,
            },
        )
        logger.info("Mobile device %s %s for %s", device_id, "registered" if created else "refreshed", user.username)
        return device, created

    @staticmethod
    def unregister(*, user, device_id) -> int:
        deleted, _ = MobileDevice.objects.filter(user=user, device_id=device_id).delete()
        return deleted
