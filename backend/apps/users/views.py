from django.contrib.auth import get_user_model
from rest_framework import filters, generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.audit.utils import log_audit_event
from shared.permissions import HasRole

from .roles import Role
from .serializers import UserRoleSerializer, UserSerializer

User = get_user_model()


class CurrentUserProfileView(generics.RetrieveUpdateAPIView):
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]

    def get_object(self):
        return self.request.user


class UserLookupView(generics.ListAPIView):
    serializer_class = UserSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [filters.SearchFilter]
    search_fields = ["username", "first_name", "last_name", "email", "department"]

    def get_queryset(self):
        qs = User.objects.filter(is_active=True).order_by("username")
        role = self.request.query_params.get("role")
        if role:
            qs = qs.filter(role=role.upper())
        return qs


class UserRoleAssignmentView(APIView):
    permission_classes = [IsAuthenticated, HasRole]
    allowed_roles = {Role.SUPER_ADMIN, Role.IT_MANAGER, Role.HR_MANAGER}

    def post(self, request, user_id: int):
        try:
            user = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            return Response({"detail": "Not found"}, status=status.HTTP_404_NOT_FOUND)
        serializer = UserRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        before = {"role": user.role, "department": user.department}
        user.role = serializer.validated_data["role"]
        if "department" in serializer.validated_data:
            user.department = serializer.validated_data["department"]
        user.save(update_fields=["role", "department"])
        log_audit_event(
            user=request.user,
            action="ROLE_CHANGED",
            entity_type="User",
            entity_id=user.id,
            description=f"Role for {user.username} set to {user.role}.",
            before=before,
            after={"role": user.role, "department": user.department},
        )
        return Response(UserSerializer(user).data)
