"""Orders API permissions."""

from rest_framework.permissions import BasePermission

from profiles.roles import is_admin_user


class IsOrderOwnerOrAdmin(BasePermission):
    """Object-level read access for the customer who placed the order and for store admins."""

    message = "You may only view your own orders."

    def has_object_permission(self, request, view, obj):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return (obj.user_id is not None and obj.user_id == user.id) or is_admin_user(user)
