"""Notifications app models.

A Notification is a short message addressed to one user about an order event.
"""

from django.conf import settings
from django.db import models


class Notification(models.Model):
    class Type(models.TextChoices):
        ORDER_CREATED = "ORDER_CREATED", "Order created"
        ORDER_APPROVED = "ORDER_APPROVED", "Order approved"
        ORDER_REJECTED = "ORDER_REJECTED", "Order rejected"
        ORDER_CANCELLED = "ORDER_CANCELLED", "Order cancelled"
        ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED", "Order status changed"

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="notifications")
    type = models.CharField(max_length=30, choices=Type.choices)
    title = models.CharField(max_length=200)
    message = models.TextField()
    order = models.ForeignKey(
        "orders.Order", on_delete=models.SET_NULL, related_name="notifications", null=True, blank=True
    )
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "notifications"
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["user", "is_read"], name="notification_user_read_idx")]

    def __str__(self):
        return f"Notification<{self.user_id} {self.type} read={self.is_read}>"
