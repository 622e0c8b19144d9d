from rest_framework.permissions import BasePermission


class HasRole(BasePermission):
    """
    Role gate for DRF views.

    Declare ``allowed_roles`` on the view for a blanket rule, or ``role_map``
    keyed by viewset action for per-action rules. Views without either are
    open to any authenticated user.

    Example:
        class GoodsReceiptViewSet(viewsets.ModelViewSet):
            permission_classes = [IsAuthenticated, HasRole]
            role_map = {"accept": RECEIVING_ROLES, "create": RECEIVING_ROLES}
    """

    message = "Your role is not permitted to perform this action."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        role_map = getattr(view, "role_map", None) or {}
        action = getattr(view, "action", None)
        if action in role_map:
            allowed = role_map[action]
        else:
            allowed = getattr(view, "allowed_roles", None)
        if allowed is None:
            return True
        return getattr(user, "role", None) in allowed
