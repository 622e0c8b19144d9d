from django.contrib.auth import get_user_model
from rest_framework import serializers

from .roles import Role

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.SerializerMethodField()
    role_display = serializers.CharField(source="get_role_display", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "role",
            "role_display",
            "department",
            "position",
            "phone",
            "is_active",
        ]
        read_only_fields = ["username", "role", "is_active"]

    def get_full_name(self, obj) -> str:
        return obj.get_full_name() or obj.username


class UserRoleSerializer(serializers.Serializer):
    role = serializers.ChoiceField(choices=Role.choices)
    department = serializers.CharField(required=False, allow_blank=True, max_length=120)
