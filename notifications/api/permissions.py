from rest_framework.permissions import BasePermission


class IsNotificationOwner(BasePermission):
    """Object-level permission: only the addressee may touch a notification."""

    message = "You may only manage your own notifications."

    def has_object_permission(self, request, view, obj):
        return obj.user_id == request.user.id
