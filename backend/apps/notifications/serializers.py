from __future__ import annotations

from rest_framework import serializers

from .models import Notification, NotificationStatus


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "title",
            "body",
            "severity",
            "status",
            "group_key",
            "entity_type",
            "entity_id",
            "created_at",
            "read_at",
        ]
        read_only_fields = fields


class NotificationStatusSerializer(serializers.ModelSerializer):
    status = serializers.ChoiceField(choices=NotificationStatus.choices)

    class Meta:
        model = Notification
        fields = ["status"]

    def update(self, instance, validated_data):
        from django.utils import timezone

        if validated_data["status"] == NotificationStatus.READ and not instance.read_at:
            instance.read_at = timezone.now()
        instance.status = validated_data["status"]
        instance.save(update_fields=["status", "read_at"])
        return instance
