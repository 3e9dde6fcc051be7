"""Profiles app models.

Defines the Profile model that extends the base user with contact data and the
store role (customer/admin). String fields default to empty strings to avoid
nulls in API responses.
"""

from django.db import models
from django.conf import settings


class Profile(models.Model):
    """
    Profile for a single user.

    The role decides access to the admin console endpoints (order approval,
    promotion management). A profile is created at most once per user.
    """

    class Role(models.TextChoices):
        CUSTOMER = "customer", "customer"
        ADMIN = "admin", "admin"

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.CUSTOMER)
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.CharField(max_length=255, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        """Readable representation for admin and debugging."""
        return f"Profile<{self.user_id}:{self.role}>"
