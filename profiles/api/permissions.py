"""Profiles API permissions.

Contains the profile ownership check and the store-admin gate that the order,
promotion and catalog endpoints reuse.
"""

from rest_framework.permissions import BasePermission, SAFE_METHODS

from ..roles import is_admin_user


class IsStoreAdmin(BasePermission):
    """Allows access only to authenticated store admins (staff or admin role)."""

    message = "Only store administrators may perform this action."

    def has_permission(self, request, view):
        return is_admin_user(request.user)


class IsProfileOwnerOrAdmin(BasePermission):
    """
    Object-level permission for profile endpoints.

    - SAFE methods are allowed for the owner and for store admins.
    - Write methods (PATCH) are allowed for the owner only.
    """

    message = "You may only access your own profile."

    def has_object_permission(self, request, view, obj):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if obj.user_id == user.id:
            return True
        return request.method in SAFE_METHODS and is_admin_user(user)
