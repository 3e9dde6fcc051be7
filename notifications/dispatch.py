"""Best-effort notification dispatch.

Failures to store a notification are logged and swallowed so they never fail
the order operation that triggered them.
"""

import logging

from django.db import DatabaseError, transaction

from profiles.roles import admin_users
from .models import Notification

logger = logging.getLogger(__name__)


def notify_user(user, type, title, message, order=None):
    """Store one notification for `user`. Guests (None) are skipped."""
    if user is None:
        return None
    try:
        with transaction.atomic():
            return Notification.objects.create(user=user, type=type, title=title, message=message, order=order)
    except DatabaseError:
        logger.exception("Failed to notify user %s about %s", getattr(user, "pk", None), type)
        return None


def notify_admins(type, title, message, order=None):
    """Store a notification for every active store admin; returns how many were stored."""
    try:
        with transaction.atomic():
            notes = [
                Notification(user=admin, type=type, title=title, message=message, order=order)
                for admin in admin_users()
            ]
            Notification.objects.bulk_create(notes)
    except DatabaseError:
        logger.exception("Failed to notify admins about %s", type)
        return 0
    return len(notes)
