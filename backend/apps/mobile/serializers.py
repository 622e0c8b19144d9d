from rest_framework import serializers

from .models import DevicePlatform, MobileDevice


class DeviceRegistrationSerializer(serializers.Serializer):
    device_id = serializers.CharField(max_length=200)
    platform = serializers.ChoiceField(choices=DevicePlatform.choices)
    push_token = serializers.CharField(max_length=500)
    app_version = serializers.CharField(max_length=40, required=False, allow_blank=True)
    device_model = serializers.CharField(max_length=120, required=False, allow_blank=True)
    os_version = serializers.CharField(max_length=40, required=False, allow_blank=True)

    def to_internal_value(self, data):
        if hasattr(data, "copy") and isinstance(data.get("platform"), str):
            data = data.copy()
            data["platform"] = data["platform"].strip().lower()
        return super().to_internal_value(data)


class MobileDeviceSerializer(serializers.ModelSerializer):
    class Meta:
        model = MobileDevice
        fields = [
            "id",
            "device_id",
            "platform",
            "push_token",
            "app_version",
            "device_model",
            "os_version",
            "last_seen_at",
            "created_at",
        ]
        read_only_fields = fields
