from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Task, TaskComment, TaskStatus


class TaskCommentSerializer(serializers.ModelSerializer):
    author_name = serializers.ReadOnlyField(source="author.get_full_name")

    class Meta:
        model = TaskComment
        fields = ["id", "task", "author", "author_name", "body", "created_at"]
        read_only_fields = ["task", "author", "created_at"]

    def validate_body(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Comment cannot be empty.")
        return value


class TaskSerializer(serializers.ModelSerializer):
    assigned_to_name = serializers.ReadOnlyField(source="assigned_to.get_full_name")
    assigned_by_name = serializers.ReadOnlyField(source="assigned_by.get_full_name")
    is_overdue = serializers.BooleanField(read_only=True)
    comment_count = serializers.SerializerMethodField()

    class Meta:
        model = Task
        fields = [
            "id",
            "title",
            "description",
            "assigned_to",
            "assigned_to_name",
            "assigned_by",
            "assigned_by_name",
            "due_date",
            "priority",
            "status",
            "linked_entity_type",
            "linked_entity_id",
            "completed_at",
            "completed_by",
            "is_overdue",
            "comment_count",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "assigned_by",
            "status",
            "completed_at",
            "completed_by",
            "created_at",
            "updated_at",
        ]

    def get_comment_count(self, obj) -> int:
        return obj.comments.count()

    def validate_title(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Title must be at least 2 characters.")
        return value

    def create(self, validated_data):
        request = self.context.get("request")
        validated_data["assigned_by"] = request.user
        return super().create(validated_data)


class TaskStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=TaskStatus.choices)
    comment = serializers.CharField(required=False, allow_blank=True)


class TaskReassignSerializer(serializers.Serializer):
    assigned_to = serializers.PrimaryKeyRelatedField(queryset=get_user_model().objects.filter(is_active=True))
    reason = serializers.CharField(required=False, allow_blank=True)
