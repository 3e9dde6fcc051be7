"""Notifications API views.

The list endpoint returns the caller's notifications with an unread counter
and clears them on DELETE. Single notifications are marked read with PATCH,
all of them at once through the read-all endpoint.
"""

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.generics import get_object_or_404
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ..models import Notification
from .permissions import IsNotificationOwner
from .serializers import NotificationSerializer

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def _parse_limit(raw):
    if raw in (None, ""):
        return DEFAULT_LIMIT
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        raise ValidationError({"limit": "Must be an integer."})
    if limit < 1:
        raise ValidationError({"limit": "Must be at least 1."})
    return min(limit, MAX_LIMIT)


class NotificationListAPIView(APIView):
    """GET: own notifications + unread count. DELETE: remove all own notifications."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = Notification.objects.filter(user=request.user).select_related("order")
        unread_count = qs.filter(is_read=False).count()
        if request.query_params.get("unread_only") in ("1", "true"):
            qs = qs.filter(is_read=False)
        limit = _parse_limit(request.query_params.get("limit"))
        data = NotificationSerializer(qs[:limit], many=True).data
        return Response({"notifications": data, "unread_count": unread_count}, status=status.HTTP_200_OK)

    def delete(self, request):
        Notification.objects.filter(user=request.user).delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class NotificationMarkReadAPIView(APIView):
    """PATCH /api/notifications/{id}/ marks one notification as read."""

    permission_classes = [IsAuthenticated, IsNotificationOwner]

    def patch(self, request, pk: int):
        notification = get_object_or_404(Notification.objects.select_related("order"), pk=pk)
        self.check_object_permissions(request, notification)
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=["is_read"])
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)


class NotificationReadAllAPIView(APIView):
    """POST /api/notifications/read-all/ -> {"updated": <int>}"""

    permission_classes = [IsAuthenticated]

    def post(self, request):
        updated = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
        return Response({"updated": updated}, status=status.HTTP_200_OK)
