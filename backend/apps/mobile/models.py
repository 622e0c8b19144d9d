from django.conf import settings
from django.db import models


class DevicePlatform(models.TextChoices):
    IOS = "ios", "iOS"
    ANDROID = "android", "Android"


class MobileDevice(models.Model):
    """A handset registered for push notifications."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="mobile_devices")
    device_id = models.CharField(max_length=200)
    platform = models.CharField(max_length=10, choices=DevicePlatform.choices)
    push_token = models.CharField(max_length=500)
    app_version = models.CharField(max_length=40, blank=True)
    device_model = models.CharField(max_length=120, blank=True)
    os_version = models.CharField(max_length=40, blank=True)
    last_seen_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-last_seen_at"]
        constraints = [
            models.UniqueConstraint(fields=["user", "device_id"], name="uniq_user_mobile_device"),
        ]

    def __str__(self):
        return f"{self.user} / {self.device_id} ({self.platform})"
