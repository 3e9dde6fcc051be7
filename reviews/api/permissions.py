"""Reviews API permissions."""

from rest_framework.permissions import BasePermission


class IsReviewOwner(BasePermission):
    """Allow modifications or deletion only by the review owner (reviewer)."""

    message = "Only the review owner may modify this review."

    def has_object_permission(self, request, view, obj):
        user = request.user
        return bool(user and user.is_authenticated and obj.reviewer_id == user.id)
